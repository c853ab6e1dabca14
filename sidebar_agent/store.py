"""存储模块：持久化存储 + 生产端内存缓存

PendingStore 对应浏览器扩展里的 storage.local：生产端和侧边栏共享同一个存储区，
侧边栏重新加载后内容依然存在，并且任何修改都会通知订阅者 (key, old, new)。
VolatileCache 是生产端进程内的快速通道，进程重启后丢失。
PendingRepository 把两层包装成一个接口。
"""

import asyncio
import json
from copy import deepcopy
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from .config import PENDING_KEY
from .models import PendingItem

Listener = Callable[[str, Any, Any], None]


class PendingStore:
    """JSON 文件存储；每次访问都重新读取文件，多个实例可以共享同一个文件"""

    def __init__(self, path: Path):
        self.path = Path(path)
        self._lock = asyncio.Lock()
        self._listeners: List[Listener] = []

    # ── 文件读写（在线程里执行，不阻塞事件循环）──────
    def _read(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, indent=2), encoding="utf-8")

    # ── 订阅 ──────────────────────────────────────
    def subscribe(self, listener: Listener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self, key: str, old: Any, new: Any) -> None:
        # 通知在当前调用返回之后才执行，与浏览器 storage.onChanged 一样是异步事件
        loop = asyncio.get_running_loop()
        for listener in list(self._listeners):
            loop.call_soon(listener, key, deepcopy(old), deepcopy(new))

    # ── 读写接口 ──────────────────────────────────
    async def get(self, key: str) -> Any:
        async with self._lock:
            data = await asyncio.to_thread(self._read)
            return deepcopy(data.get(key))

    async def set(self, key: str, value: Any) -> None:
        async with self._lock:
            data = await asyncio.to_thread(self._read)
            old = data.get(key)
            data[key] = deepcopy(value)
            await asyncio.to_thread(self._write, data)
        self._notify(key, old, value)

    async def remove(self, key: str) -> None:
        async with self._lock:
            data = await asyncio.to_thread(self._read)
            if key not in data:
                return
            old = data.pop(key)
            await asyncio.to_thread(self._write, data)
        self._notify(key, old, None)

    async def take(self, key: str) -> Any:
        """读取并立即删除；第二个读取者只会看到空值"""
        async with self._lock:
            data = await asyncio.to_thread(self._read)
            if key not in data:
                return None
            old = data.pop(key)
            await asyncio.to_thread(self._write, data)
        self._notify(key, old, None)
        return old


class VolatileCache:
    """生产端内存中的单槽缓存"""

    def __init__(self):
        self._lock = asyncio.Lock()
        self._item: Optional[PendingItem] = None

    async def put(self, item: PendingItem) -> None:
        async with self._lock:
            self._item = item

    async def peek_and_clear(self) -> Optional[PendingItem]:
        async with self._lock:
            item, self._item = self._item, None
            return item

    async def clear(self) -> None:
        async with self._lock:
            self._item = None

    @property
    def is_empty(self) -> bool:
        return self._item is None


class PendingRepository:
    """待投递提示词仓库：内存缓存在前，持久化存储在后"""

    def __init__(self, store: PendingStore, cache: Optional[VolatileCache] = None, key: str = PENDING_KEY):
        self.store = store
        self.cache = cache
        self.key = key

    async def write(self, item: PendingItem) -> None:
        """先写缓存再写存储"""
        if self.cache is not None:
            await self.cache.put(item)
        await self.store.set(self.key, item.to_dict())

    async def peek_and_clear(self) -> Optional[PendingItem]:
        """
        优先取缓存；命中时顺便清掉存储，避免侧边栏之后再从存储里拿到同一条。
        缓存为空时读存储并清除。
        """
        if self.cache is not None:
            item = await self.cache.peek_and_clear()
            if item is not None:
                await self.store.remove(self.key)
                return item
        return await self.read_store_and_clear()

    async def read_store_and_clear(self) -> Optional[PendingItem]:
        data = await self.store.take(self.key)
        if not data:
            return None
        if not isinstance(data, dict) or not data.get("prompt"):
            # 槽位已经清空，格式不对的内容直接丢弃
            print(f"⚠ 丢弃格式不正确的待投递内容: {data!r}")
            return None
        return PendingItem.from_dict(data)

    async def clear_cache(self) -> None:
        if self.cache is not None:
            await self.cache.clear()

    def on_change(self, callback: Callable[[Any, Any], None]) -> Listener:
        """只关心本仓库键的变化；返回实际注册的监听器，用于取消订阅"""
        def listener(key: str, old: Any, new: Any) -> None:
            if key == self.key:
                callback(old, new)

        self.store.subscribe(listener)
        return listener
