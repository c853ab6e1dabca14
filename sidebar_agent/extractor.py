"""内容提取：从用户正在看的页面读取选中文本、正文和标签信息"""

from dataclasses import dataclass
from typing import Dict, Optional

from playwright.async_api import Page

from .models import ExtractionError

MIN_ARTICLE_LENGTH = 100

# 不能被总结的页面
SKIPPED_SCHEMES = ("about:", "chrome:", "chrome-extension:", "moz-extension:", "data:")

SELECTION_JS = "() => (window.getSelection() ? window.getSelection().toString() : '').trim()"

# 正文提取：优先 <article>，其次 <main> / [role=main]，最后 body
ARTICLE_JS = """
() => {
    const pick = document.querySelector('article')
        || document.querySelector('main')
        || document.querySelector('[role="main"]');
    const meta = (name) => {
        const el = document.querySelector(`meta[name="${name}"], meta[property="${name}"]`);
        return el ? (el.getAttribute('content') || '').trim() : '';
    };
    return {
        readable: Boolean(pick),
        title: meta('og:title') || document.title || '',
        byline: meta('author') || meta('article:author') || '',
        text: ((pick || document.body || {}).innerText || '').trim(),
    };
}
"""


@dataclass
class Article:
    title: Optional[str]
    byline: Optional[str]
    url: str
    text: str


def is_summarizable(url: Optional[str]) -> bool:
    return bool(url) and not url.startswith(SKIPPED_SCHEMES)


async def describe_tab(page: Page) -> Dict[str, str]:
    title = await page.title()
    return {"title": title or page.url, "url": page.url}


async def extract_selection(page: Page) -> str:
    text = await page.evaluate(SELECTION_JS)
    if not text:
        raise ExtractionError("No text is selected. Highlight some text first, then try again.", "no-selection")
    return text


async def extract_article(page: Page) -> Article:
    """正文过短或找不到正文容器时抛出 ExtractionError"""
    data = await page.evaluate(ARTICLE_JS)
    if not data.get("readable"):
        raise ExtractionError(f"No readable article at {page.url}", "not-readable")
    text = data.get("text") or ""
    if len(text) < MIN_ARTICLE_LENGTH:
        raise ExtractionError(f"Not enough article content at {page.url}", "insufficient-content")
    return Article(
        title=data.get("title") or None,
        byline=data.get("byline") or None,
        url=page.url,
        text=text,
    )
