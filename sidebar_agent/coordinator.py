"""后台协调器：构造待投递内容、驱动侧边栏加载、应答握手、处理注入结果"""

import re
import time
from typing import Any, List, Optional

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page

from .channel import MessageChannel
from .config import FALLBACK_PAGE
from .extractor import describe_tab, extract_article, extract_selection, is_summarizable
from .models import (
    INPUT_NOT_FOUND,
    NOT_LOGGED_IN,
    SUBMIT_NOT_FOUND,
    UNKNOWN,
    AttachedFile,
    ConfigError,
    ExtractionError,
    InjectionError,
    InjectionSuccess,
    PendingItem,
    ReadyQuery,
    ReloadTarget,
)
from .notifier import Notifier
from .prompt_builder import (
    build_article_file,
    build_file_prompt,
    build_page_prompt,
    build_selection_prompt,
    build_tabs_prompt,
    get_preset,
)
from .providers import resolve_target
from .settings import SettingsStore
from .store import PendingRepository
from .surface import HostSurface

ERROR_MESSAGES = {
    INPUT_NOT_FOUND: "Could not find the chat input on {name}. The site may have updated, check your selector settings.",
    SUBMIT_NOT_FOUND: "Could not find the send button on {name}. Prompt was pasted, submit it manually.",
    NOT_LOGGED_IN: "You may need to log in to {name}. Open the sidebar and sign in, then try again.",
    UNKNOWN: "Auto-inject into {name} failed. The prompt has been copied to your clipboard, paste it manually.",
}

PROMPT_READY = "Prompt ready. Open the sidebar to see the summary."


def error_message(kind: str, provider_name: Optional[str] = None) -> str:
    template = ERROR_MESSAGES.get(kind, ERROR_MESSAGES[UNKNOWN])
    return template.format(name=provider_name or "the LLM")


def fresh_address(url: str, token: int) -> str:
    """附加一个递增参数，保证地址一定变化，从而真正触发重新加载"""
    separator = "&" if "?" in url else "?"
    return f"{url}{separator}_t={token}"


def _file_name(title: Optional[str]) -> str:
    slug = re.sub(r"[^A-Za-z0-9]+", "-", title or "").strip("-").lower()[:60]
    return f"{slug or 'article'}.txt"


class DeliveryCoordinator:
    """后台协调器（生产端）"""

    def __init__(
        self,
        repository: PendingRepository,
        surface: HostSurface,
        channel: MessageChannel,
        settings_store: SettingsStore,
        notifier: Notifier,
    ):
        self.repository = repository
        self.surface = surface
        self.channel = channel
        self.settings_store = settings_store
        self.notifier = notifier
        self._last_token = 0

    def start(self) -> None:
        """开始接收侧边栏消息"""
        self.channel.register(self.handle_message)

    def stop(self) -> None:
        self.channel.unregister()

    def _next_token(self) -> int:
        self._last_token = max(self._last_token + 1, int(time.time() * 1000))
        return self._last_token

    # ── 投递 ──────────────────────────────────────
    async def deliver(
        self,
        prompt: str,
        new_chat: bool = False,
        from_user_gesture: bool = False,
        attached_file: Optional[AttachedFile] = None,
        url_fallback: Optional[str] = None,
        text_fallback: Optional[str] = None,
    ) -> Optional[PendingItem]:
        """
        构造待投递内容并写入缓存和存储，然后确保侧边栏能看到它。

        new_chat=True 时强制侧边栏重新加载以开启新对话；否则只在侧边栏关闭时打开，
        已打开的侧边栏通过存储变更通知拿到新内容。
        目标站点解析失败时只发通知，不写任何东西。
        """
        settings = self.settings_store.load()
        try:
            target = resolve_target(settings)
        except ConfigError as e:
            print(f"❌ 配置错误: {e}")
            self.notifier.notify(str(e))
            return None

        item = PendingItem(
            prompt=prompt,
            target=target,
            attached_file=attached_file,
            url_fallback=url_fallback,
            text_fallback=text_fallback,
        )
        await self.repository.write(item)
        print(f"[后台] 待投递内容已写入 ({target.name}, {len(prompt)} 字符)")

        if new_chat:
            await self.surface.set_address(fresh_address(target.url, self._next_token()))
        elif not self.surface.is_open:
            await self.surface.open(target.url)

        if not from_user_gesture:
            self.notifier.notify(PROMPT_READY)
        return item

    # ── 握手应答 ──────────────────────────────────
    async def respond_ready(self) -> Optional[PendingItem]:
        """返回并清除待投递内容：内存优先，其次存储；没有则返回 None"""
        item = await self.repository.peek_and_clear()
        if item is not None:
            print(f"[后台] 握手: 交付给侧边栏 ({item.target.name})")
        return item

    # ── 消息处理 ──────────────────────────────────
    async def handle_message(self, message: Any) -> Any:
        if isinstance(message, ReadyQuery):
            return await self.respond_ready()
        if isinstance(message, InjectionSuccess):
            await self.repository.clear_cache()
            return None
        if isinstance(message, InjectionError):
            # 可能来自正在卸载的旧侧边栏，不清除任何状态
            self.notifier.notify(error_message(message.error, message.provider_name))
            return None
        if isinstance(message, ReloadTarget):
            await self.load_target()
            return None
        print(f"⚠ 未知消息: {message!r}")
        return None

    async def load_target(self) -> None:
        """设置变更后让已打开的侧边栏指向当前目标站点"""
        if not self.surface.is_open:
            return
        try:
            target = resolve_target(self.settings_store.load())
        except ConfigError as e:
            print(f"⚠ 目标站点不可用，显示设置提示页: {e}")
            await self.surface.set_address(FALLBACK_PAGE)
            return
        await self.surface.set_address(target.url)

    # ── 各类总结 ──────────────────────────────────
    async def summarize_page(self, source: Optional[Page], new_chat: bool = False, from_user_gesture: bool = False) -> Optional[PendingItem]:
        if source is None or not source.url:
            self.notifier.notify("No active page found.")
            return None
        preset = get_preset(self.settings_store.load())
        prompt = build_page_prompt(source.url, preset["instruction"])
        return await self.deliver(prompt, new_chat=new_chat, from_user_gesture=from_user_gesture)

    async def summarize_tabs(self, sources: List[Page], new_chat: bool = False, from_user_gesture: bool = False) -> Optional[PendingItem]:
        tabs = [await describe_tab(page) for page in sources if is_summarizable(page.url)]
        if not tabs:
            self.notifier.notify("No summarizable tabs found. Open some pages and try again.")
            return None
        preset = get_preset(self.settings_store.load())
        prompt = build_tabs_prompt(tabs, preset["instruction"])
        return await self.deliver(prompt, new_chat=new_chat, from_user_gesture=from_user_gesture)

    async def summarize_selection(self, source: Optional[Page], new_chat: bool = False) -> Optional[PendingItem]:
        if source is None:
            self.notifier.notify("No active tab found.")
            return None
        try:
            text = await extract_selection(source)
        except ExtractionError as e:
            self.notifier.notify(str(e))
            return None
        except PlaywrightError as e:
            print(f"❌ 读取选中文本失败: {e}")
            self.notifier.notify("Could not read the selected text. Try selecting the text again.")
            return None

        settings = self.settings_store.load()
        preset = get_preset(settings)
        prompt = build_selection_prompt(text, preset["instruction"], settings.char_limit)
        return await self.deliver(prompt, new_chat=new_chat)

    async def summarize_article(self, source: Optional[Page], new_chat: bool = False) -> Optional[PendingItem]:
        """
        正文作为附件上传，输入框里只放指令。
        上传失败时侧边栏依次降级为页面链接提示词、正文文本提示词。
        提取不到正文时直接按页面链接总结。
        """
        if source is None:
            self.notifier.notify("No active page found.")
            return None
        try:
            article = await extract_article(source)
        except (ExtractionError, PlaywrightError) as e:
            print(f"⚠ 正文提取失败，改用页面链接: {e}")
            return await self.summarize_page(source, new_chat=new_chat)

        settings = self.settings_store.load()
        instruction = get_preset(settings)["instruction"]
        return await self.deliver(
            build_file_prompt(article.title, instruction),
            new_chat=new_chat,
            attached_file=AttachedFile(
                name=_file_name(article.title),
                content=build_article_file(article.title, article.byline, article.url, article.text),
            ),
            url_fallback=build_page_prompt(article.url, instruction),
            text_fallback=build_selection_prompt(article.text, instruction, settings.char_limit),
        )
