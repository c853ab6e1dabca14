"""感知模块：在侧边栏页面中定位元素、判断页面状态"""

from typing import List, Optional

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Locator, Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from .config import INPUT_TIMEOUT_MS

LOGIN_KEYWORDS = ["/login", "/signin", "/sign-in", "/auth", "/sso"]
PASSWORD_SELECTOR = 'input[type="password"]'


async def wait_for_element(page: Page, selector: str, timeout_ms: int = INPUT_TIMEOUT_MS) -> Optional[Locator]:
    """
    等待匹配 selector 的元素出现在 DOM 中。
    只等一次，超时返回 None，不重试。
    """
    locator = page.locator(selector).first
    try:
        await locator.wait_for(state="attached", timeout=timeout_ms)
    except PlaywrightTimeoutError:
        print(f"❌ {timeout_ms}ms 内未找到元素: {selector}")
        return None
    return locator


async def find_first(page: Page, selectors: List[str]) -> Optional[Locator]:
    """按顺序尝试多个选择器，返回第一个命中的元素"""
    for selector in selectors:
        if not selector:
            continue
        locator = page.locator(selector)
        try:
            if await locator.count() == 0:
                continue
        except PlaywrightError as e:
            # 无效的选择器不影响后面的候选
            print(f"⚠ 选择器无效 {selector}: {e}")
            continue
        return locator.first
    return None


async def is_login_page(page: Page) -> bool:
    """简单判断当前是否停在登录/认证页面，而不是聊天界面"""
    url = (page.url or "").lower()
    if any(keyword in url for keyword in LOGIN_KEYWORDS):
        return True
    return await page.locator(PASSWORD_SELECTOR).count() > 0
