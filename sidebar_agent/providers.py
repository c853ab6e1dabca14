"""目标站点描述：内置预设 + 用户自定义"""

from typing import Dict

from .models import ConfigError, TargetDescriptor
from .settings import Settings

DEFAULT_PROVIDERS: Dict[str, TargetDescriptor] = {
    "chatgpt": TargetDescriptor(
        id="chatgpt",
        name="ChatGPT",
        url="https://chat.openai.com",
        input_selector="#prompt-textarea",
        submit_selector="button[data-testid='send-button']",
        submit_fallbacks=[
            "button[aria-label='Send prompt']",
            "form button[type='submit']",
        ],
        file_input_selector="input[type='file']",
    ),
    "claude": TargetDescriptor(
        id="claude",
        name="Claude",
        url="https://claude.ai/new",
        input_selector="div.ProseMirror[contenteditable='true']",
        submit_selector="button[aria-label='Send Message']",
        submit_fallbacks=[
            "button[aria-label='Send message']",
            "fieldset button[type='submit']",
        ],
        file_input_selector="input[data-testid='file-upload']",
    ),
}

CUSTOM_PROVIDER_TEMPLATE = {
    "id": "custom",
    "name": "Custom",
    "url": "",
    "inputSelector": "",
    "submitSelector": "",
}

# 可被用户覆盖的选择器字段
OVERRIDE_FIELDS = ("inputSelector", "submitSelector", "fileInputSelector")


def resolve_target(settings: Settings) -> TargetDescriptor:
    """
    根据设置解析当前使用的目标站点。
    自定义站点缺少任何必填项、或 id 未知时抛出 ConfigError。
    """
    provider_id = settings.active_provider_id or "chatgpt"

    if provider_id == "custom":
        custom = dict(CUSTOM_PROVIDER_TEMPLATE)
        custom.update({k: v for k, v in (settings.custom_provider or {}).items() if v is not None})
        if not custom.get("url") or not custom.get("inputSelector") or not custom.get("submitSelector"):
            raise ConfigError(
                "Custom provider is incomplete. Please configure URL, input selector, "
                "and submit button selector in settings."
            )
        return TargetDescriptor.from_dict(custom)

    base = DEFAULT_PROVIDERS.get(provider_id)
    if base is None:
        raise ConfigError(f"Unknown provider: {provider_id}")

    overrides = (settings.provider_overrides or {}).get(provider_id) or {}
    if not any(overrides.get(k) for k in OVERRIDE_FIELDS):
        return base

    data = base.to_dict()
    for key in OVERRIDE_FIELDS:
        if overrides.get(key):
            data[key] = overrides[key]
    return TargetDescriptor.from_dict(data)
