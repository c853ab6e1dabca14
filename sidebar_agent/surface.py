"""侧边栏页面控制：打开、切换地址，每次加载创建新的消费会话"""

import asyncio
from typing import Callable, List, Optional

from playwright.async_api import BrowserContext, Page
from playwright.async_api import Error as PlaywrightError

from .core import ConsumerSession

SessionFactory = Callable[[Page], ConsumerSession]


class HostSurface:
    """
    侧边栏宿主。子类只负责真正的页面导航 (_navigate)。

    set_address 在地址不变时什么都不做；地址变化时先把当前会话标记为 unloading
    （在任何 await 之前），再导航并启动新会话。
    """

    def __init__(self, session_factory: SessionFactory):
        self.session_factory = session_factory
        self.address: Optional[str] = None
        self.session: Optional[ConsumerSession] = None
        self.load_count = 0
        self._retired: List[ConsumerSession] = []

    @property
    def is_open(self) -> bool:
        return self.address is not None

    async def open(self, url: str) -> None:
        """只在关闭状态下打开；已打开的侧边栏通过存储变更拿到新内容"""
        if self.is_open:
            return
        await self._load(url)

    async def set_address(self, url: str) -> None:
        if url == self.address:
            return
        await self._load(url)

    async def _load(self, url: str) -> None:
        self._retire_session()
        self.address = url
        page = await self._navigate(url)
        self.load_count += 1
        print(f"[侧边栏] 已加载 {url}")

        session = self.session_factory(page)
        self.session = session
        session.track(asyncio.ensure_future(session.start()))

    def _retire_session(self) -> None:
        if self.session is not None:
            self.session.mark_unloading()
            self._retired.append(self.session)
            self.session = None

    async def _navigate(self, url: str) -> Page:
        raise NotImplementedError

    async def wait_idle(self) -> None:
        """等待所有会话（包括正在卸载的）上的任务结束"""
        sessions = self._retired + ([self.session] if self.session else [])
        for session in sessions:
            await session.wait_idle()
        self._retired = []

    async def close(self) -> None:
        self._retire_session()
        self.address = None


class PlaywrightSurface(HostSurface):
    """用浏览器上下文中的一个标签页充当侧边栏"""

    def __init__(self, context: BrowserContext, session_factory: SessionFactory):
        super().__init__(session_factory)
        self.context = context
        self.page: Optional[Page] = None

    async def _navigate(self, url: str) -> Page:
        if self.page is None or self.page.is_closed():
            self.page = await self.context.new_page()
        try:
            await self.page.goto(url, wait_until="domcontentloaded")
        except PlaywrightError as e:
            # 导航失败时会话照常启动，等待输入框超时后会报告 input-not-found
            print(f"❌ 侧边栏加载失败: {e}")
        return self.page

    async def close(self) -> None:
        await super().close()
        if self.page is not None and not self.page.is_closed():
            await self.page.close()
        self.page = None
