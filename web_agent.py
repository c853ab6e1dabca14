"""
Sidebar Agent - 基于 Playwright 的"一键总结到聊天站点"工具

流程：
  1. 后台 (DeliveryCoordinator) 根据当前页面构造提示词，写入内存缓存和持久化存储，
     然后打开或重新加载侧边栏。
  2. 侧边栏 (ConsumerSession) 加载后先向后台握手要提示词，拿不到再读存储；
     已打开的侧边栏则通过存储变更通知拿到新内容。
  3. 注入 Agent 等待输入框出现、写入提示词并点击发送，失败时复制到剪贴板并通知。

依赖安装：
    pip install -e .
    playwright install chromium

运行示例：
    python web_agent.py page --url https://example.com --new-chat
    python web_agent.py tabs --url https://a.example --url https://b.example
    python web_agent.py article --url https://example.com/post --provider claude
"""

import argparse
import asyncio
from pathlib import Path
from typing import List

from playwright.async_api import async_playwright

from sidebar_agent import config
from sidebar_agent.channel import MessageChannel
from sidebar_agent.coordinator import DeliveryCoordinator
from sidebar_agent.core import ConsumerSession, InjectionAgent
from sidebar_agent.notifier import Notifier
from sidebar_agent.settings import SettingsStore
from sidebar_agent.store import PendingRepository, PendingStore, VolatileCache
from sidebar_agent.surface import PlaywrightSurface


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="把当前页面的总结提示词送进侧边栏聊天站点")
    parser.add_argument("mode", choices=["page", "tabs", "selection", "article"])
    parser.add_argument("--url", action="append", required=True, help="源页面地址，tabs 模式可重复")
    parser.add_argument("--provider", help="chatgpt / claude / custom，写入设置后生效")
    parser.add_argument("--new-chat", action="store_true", help="强制侧边栏重新加载，开启新对话")
    parser.add_argument("--settings", type=Path, default=config.settings_path())
    parser.add_argument("--headless", action="store_true", default=config.HEADLESS)
    return parser.parse_args(argv)


async def run(args: argparse.Namespace) -> None:
    settings_store = SettingsStore(args.settings)
    if args.provider:
        settings_store.update(active_provider_id=args.provider)

    store = PendingStore(config.pending_store_path())
    repository = PendingRepository(store, VolatileCache())
    channel = MessageChannel()
    notifier = Notifier()

    async with async_playwright() as playwright:
        # 持久化 profile，聊天站点的登录状态可以保留
        config.PROFILE_DIR.mkdir(parents=True, exist_ok=True)
        context = await playwright.chromium.launch_persistent_context(
            str(config.PROFILE_DIR),
            headless=args.headless,
        )
        try:
            await context.grant_permissions(["clipboard-read", "clipboard-write"])
        except Exception as e:
            print(f"⚠ 无法授予剪贴板权限: {e}")

        def session_factory(page):
            agent = InjectionAgent(page, channel, settings_store.load)
            return ConsumerSession(PendingRepository(store), channel, agent)

        surface = PlaywrightSurface(context, session_factory)
        coordinator = DeliveryCoordinator(repository, surface, channel, settings_store, notifier)
        coordinator.start()

        sources: List = []
        for url in args.url:
            page = await context.new_page()
            await page.goto(url)
            sources.append(page)
            print(f"[Agent] 已打开源页面：{url}")

        if args.mode == "page":
            await coordinator.summarize_page(sources[0], new_chat=args.new_chat, from_user_gesture=True)
        elif args.mode == "tabs":
            await coordinator.summarize_tabs(sources, new_chat=args.new_chat, from_user_gesture=True)
        elif args.mode == "selection":
            await coordinator.summarize_selection(sources[0], new_chat=args.new_chat)
        else:
            await coordinator.summarize_article(sources[0], new_chat=args.new_chat)

        await surface.wait_idle()

        if not args.headless and surface.page is not None and not surface.page.is_closed():
            print("\n[Agent] 关闭侧边栏页面即可退出")
            await surface.page.wait_for_event("close", timeout=0)

        coordinator.stop()
        await context.close()
        print("\n[Agent] 浏览器已关闭，运行结束。")


if __name__ == "__main__":
    asyncio.run(run(parse_args()))
