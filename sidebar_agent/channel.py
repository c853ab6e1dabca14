"""消息通道：侧边栏向后台发送消息并等待回复"""

from typing import Any, Awaitable, Callable, Optional

from .models import ChannelUnavailable

Handler = Callable[[Any], Awaitable[Any]]


class MessageChannel:
    """一个生产端处理器，多个发送方；处理器抛出的异常原样传回发送方"""

    def __init__(self):
        self._handler: Optional[Handler] = None

    def register(self, handler: Handler) -> None:
        self._handler = handler

    def unregister(self) -> None:
        self._handler = None

    @property
    def connected(self) -> bool:
        return self._handler is not None

    async def send(self, message: Any) -> Any:
        if self._handler is None:
            raise ChannelUnavailable(f"没有接收方: {getattr(message, 'type', message)}")
        return await self._handler(message)
