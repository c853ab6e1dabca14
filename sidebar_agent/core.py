"""侧边栏端核心：自动注入 Agent + 每次页面加载对应的消费会话"""

import asyncio
from typing import Any, Awaitable, Callable, Optional, Set

from playwright.async_api import Page

from .channel import MessageChannel
from .config import INPUT_TIMEOUT_MS
from .controller import Controller
from .models import (
    INPUT_NOT_FOUND,
    NOT_LOGGED_IN,
    UNKNOWN,
    ChannelUnavailable,
    InjectionError,
    InjectionFailure,
    InjectionOutcome,
    InjectionSuccess,
    PendingItem,
    ReadyQuery,
)
from .perception import find_first, is_login_page, wait_for_element
from .settings import Settings
from .store import PendingRepository

# 会话状态
IDLE = "idle"
HANDSHAKING = "handshaking"
CONSUMING = "consuming"
DELIVERED = "delivered"
FAILED = "failed"


class InjectionAgent:
    """
    把提示词写进目标站点的输入框并发送。

    流程：等待输入框 → 判断是否停在登录页 → 处理附件与降级文本 → 写入 →
    （可选）延迟后点击发送 → 把结果报告给后台。
    任何一步失败都会把最合适的文本复制到剪贴板，再报告失败类型。
    """

    def __init__(
        self,
        page: Page,
        channel: MessageChannel,
        load_settings: Callable[[], Settings],
        input_timeout_ms: int = INPUT_TIMEOUT_MS,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.page = page
        self.channel = channel
        self.load_settings = load_settings
        self.input_timeout_ms = input_timeout_ms
        self.sleep = sleep
        self.controller = Controller(page)

    async def inject(self, item: PendingItem) -> InjectionOutcome:
        target = item.target
        print(f"\n[注入] 目标: {target.name} ({self.page.url})")

        try:
            element = await wait_for_element(self.page, target.input_selector, self.input_timeout_ms)
            if element is None:
                raise InjectionFailure(INPUT_NOT_FOUND, f"{target.name}: {target.input_selector}")

            # 登录页里写入任何东西都不对
            if await is_login_page(self.page):
                raise InjectionFailure(NOT_LOGGED_IN, self.page.url)

            payload = await self._effective_payload(item)
            strategy = await self.controller.set_input_value(element, payload)

            settings = self.load_settings()
            if settings.auto_submit:
                await self.sleep(settings.injection_delay / 1000)
                await self.controller.click_submit(target)

            await self._report(InjectionSuccess())
            print(f"[注入] ✓ 已投递到 {target.name}")
            return InjectionOutcome(success=True, strategy=strategy, payload=payload)

        except InjectionFailure as e:
            kind = e.kind
            print(f"[注入] ❌ {kind}: {e}")
        except Exception as e:
            kind = UNKNOWN
            print(f"[注入] ❌ 未预期的错误: {e}")

        fallback = item.best_fallback()
        await self.controller.copy_to_clipboard(fallback)
        await self._report(InjectionError(error=kind, provider_name=target.name))
        return InjectionOutcome(success=False, kind=kind, payload=fallback)

    async def _effective_payload(self, item: PendingItem) -> str:
        """
        有附件时先尝试上传：成功则输入框里只放 prompt；
        失败依次降级为 urlFallback、textFallback、prompt。
        """
        if item.attached_file is None:
            return item.prompt

        selector = item.target.file_input_selector
        if selector:
            file_input = await find_first(self.page, [selector])
            if file_input is not None and await self.controller.attach_file(file_input, item.attached_file):
                return item.prompt

        print("⚠ 附件无法上传，改用降级文本")
        return item.url_fallback or item.text_fallback or item.prompt

    async def _report(self, message: Any) -> None:
        try:
            await self.channel.send(message)
        except ChannelUnavailable as e:
            print(f"⚠ 无法报告结果: {e}")


class ConsumerSession:
    """
    侧边栏每次加载对应一个会话，卸载后丢弃。

    两个标志控制消费：
      consuming  消费流程进行中，在第一个 await 之前置位，整个流程结束后才清除
      unloading  页面即将被替换，一旦置位不再消费；待投递的内容留给下一个会话

    消费期间到达的变更通知不会丢：流程结束后会再读一次存储。
    """

    def __init__(self, repository: PendingRepository, channel: MessageChannel, agent: InjectionAgent):
        self.repository = repository
        self.channel = channel
        self.agent = agent
        self.state = IDLE
        self.consuming = False
        self.unloading = False
        self.last_outcome: Optional[InjectionOutcome] = None
        self._missed_change = False
        self._tasks: Set[asyncio.Task] = set()
        self._listener = repository.on_change(self._on_store_change)

    async def start(self) -> Optional[InjectionOutcome]:
        """页面加载：先握手问后台要，拿不到再直接读存储"""
        if self.unloading or self.consuming:
            return None
        self.consuming = True
        try:
            self.state = HANDSHAKING
            item = None
            try:
                item = await self.channel.send(ReadyQuery())
            except ChannelUnavailable as e:
                print(f"⚠ 握手失败，改读存储: {e}")
            except Exception as e:
                print(f"❌ 握手出错，改读存储: {e}")

            if item is None:
                item = await self.repository.read_store_and_clear()
            return await self._consume(item)
        finally:
            self._release()

    async def consume_from_store(self) -> Optional[InjectionOutcome]:
        """会话已在运行时收到存储变更：直接读存储，不握手"""
        if self.unloading or self.consuming:
            return None
        self.consuming = True
        try:
            item = await self.repository.read_store_and_clear()
            return await self._consume(item)
        finally:
            self._release()

    async def _consume(self, item: Optional[PendingItem]) -> Optional[InjectionOutcome]:
        if item is None:
            return None
        self.state = CONSUMING
        outcome = await self.agent.inject(item)
        self.state = DELIVERED if outcome.success else FAILED
        self.last_outcome = outcome
        return outcome

    def _on_store_change(self, old: Any, new: Any) -> None:
        if new is None:
            return
        # 页面正在卸载时这条属于下一个会话
        if self.unloading:
            return
        if self.consuming:
            self._missed_change = True
            return
        self.track(asyncio.ensure_future(self.consume_from_store()))

    def _release(self) -> None:
        self.state = IDLE
        self.consuming = False
        if self._missed_change and not self.unloading:
            # 消费期间又有新内容写入存储，再读一次
            self._missed_change = False
            self.track(asyncio.ensure_future(self.consume_from_store()))

    def track(self, task: asyncio.Task) -> None:
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def mark_unloading(self) -> None:
        """不可逆；同时停止监听存储"""
        self.unloading = True
        self.repository.store.unsubscribe(self._listener)

    async def wait_idle(self) -> None:
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
