"""提示词构造：预设指令 + 各类总结提示词模板"""

from typing import Dict, List, Optional

from .settings import DEFAULT_CHAR_LIMIT, Settings

DEFAULT_PRESETS = [
    {"id": "concise", "name": "Concise", "instruction": "Provide a brief 2-3 sentence summary."},
    {"id": "detailed", "name": "Detailed", "instruction": "Provide a thorough summary covering all key points."},
    {"id": "bullets", "name": "Bullet Points", "instruction": "Summarize as a concise bulleted list of key takeaways."},
]


def get_presets(settings: Settings) -> List[Dict]:
    """内置预设 + 自定义预设，并标记默认项"""
    default_id = settings.default_preset_id or "concise"
    return [
        {**preset, "isDefault": preset["id"] == default_id}
        for preset in DEFAULT_PRESETS + list(settings.custom_presets or [])
    ]


def get_preset(settings: Settings, preset_id: Optional[str] = None) -> Dict:
    presets = get_presets(settings)
    return (
        next((p for p in presets if p["id"] == preset_id), None)
        or next((p for p in presets if p["isDefault"]), None)
        or presets[0]
    )


def build_page_prompt(url: str, instruction: str) -> str:
    return (
        "Read the full content at the following URL and summarize it as if I had pasted "
        "the complete article text directly into this conversation:\n\n"
        f"{url}\n\n"
        f"{instruction}"
    )


def build_tabs_prompt(tabs: List[Dict[str, str]], instruction: str) -> str:
    """tabs: [{title, url}, ...]"""
    tab_list = "\n".join(
        f"{i}. {tab['title']}\n   {tab['url']}" for i, tab in enumerate(tabs, start=1)
    )
    return (
        "Read the full content at each of the following URLs and summarize each one as if "
        "I had pasted the complete article text directly into this conversation:\n\n"
        f"{tab_list}\n\n"
        f"{instruction}"
    )


def truncate(text: str, char_limit: int = DEFAULT_CHAR_LIMIT) -> str:
    if len(text) <= char_limit:
        return text
    return text[:char_limit] + f"\n\n[Text truncated at {char_limit} characters]"


def build_selection_prompt(selected_text: str, instruction: str, char_limit: int = DEFAULT_CHAR_LIMIT) -> str:
    return f"{instruction}\n\n---\n{truncate(selected_text, char_limit)}"


def build_file_prompt(title: Optional[str], instruction: str) -> str:
    """正文作为附件上传时，输入框里只放指令"""
    subject = f'the article "{title}"' if title else "the article"
    return f"The attached file contains {subject}. {instruction}"


def build_article_file(title: Optional[str], byline: Optional[str], url: str, text: str) -> str:
    """上传文件的正文"""
    header = [title or url]
    if byline:
        header.append(f"By {byline}")
    header.append(f"Source: {url}")
    return "\n".join(header) + "\n\n" + text
