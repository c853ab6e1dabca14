"""用户设置：目标站点、选择器覆盖、预设和注入参数"""

import json
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Dict, List, Optional

DEFAULT_INJECTION_DELAY = 500
DEFAULT_CHAR_LIMIT = 10000


@dataclass
class Settings:
    active_provider_id: str = "chatgpt"
    provider_overrides: Dict[str, Dict[str, str]] = field(default_factory=dict)
    custom_provider: Optional[Dict[str, str]] = None
    custom_presets: List[Dict[str, str]] = field(default_factory=list)
    default_preset_id: str = "concise"
    injection_delay: int = DEFAULT_INJECTION_DELAY  # 毫秒
    auto_submit: bool = True
    char_limit: int = DEFAULT_CHAR_LIMIT

    @classmethod
    def from_dict(cls, data: Dict) -> "Settings":
        known = {f.name for f in fields(cls)}
        settings = cls(**{k: v for k, v in data.items() if k in known})
        settings.injection_delay = _positive_int(settings.injection_delay, DEFAULT_INJECTION_DELAY)
        settings.char_limit = _positive_int(settings.char_limit, DEFAULT_CHAR_LIMIT)
        settings.auto_submit = settings.auto_submit is not False
        settings.active_provider_id = settings.active_provider_id or "chatgpt"
        settings.default_preset_id = settings.default_preset_id or "concise"
        return settings


def _positive_int(value, default: int) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    return number if number > 0 else default


class SettingsStore:
    """以 JSON 文件保存的用户设置，每次读取都从磁盘刷新"""

    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> Settings:
        if not self.path.exists():
            return Settings()
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            print(f"⚠ 设置文件无法解析，使用默认设置: {e}")
            return Settings()
        if not isinstance(data, dict):
            return Settings()
        return Settings.from_dict(data)

    def save(self, settings: Settings) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(asdict(settings), indent=2), encoding="utf-8")

    def update(self, **changes) -> Settings:
        settings = self.load()
        for key, value in changes.items():
            if not hasattr(settings, key):
                raise AttributeError(f"未知设置项: {key}")
            setattr(settings, key, value)
        self.save(settings)
        return settings
