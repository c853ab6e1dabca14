"""全局配置：从环境变量（以及 .env 文件）读取"""

import os
from pathlib import Path

from dotenv import load_dotenv

# 加载 .env 文件中的环境变量
load_dotenv()


def _env_flag(key: str, default: bool) -> bool:
    raw = os.environ.get(key)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


# 状态目录：保存待投递提示词和用户设置
STATE_DIR = Path(os.environ.get("SIDEBAR_AGENT_STATE_DIR", Path.home() / ".sidebar-agent"))

# 持久化存储中待投递提示词的键名
PENDING_KEY = "pendingPrompt"

# 等待输入框出现的超时时间（毫秒），超时后不重试
INPUT_TIMEOUT_MS = int(os.environ.get("SIDEBAR_AGENT_INPUT_TIMEOUT_MS", "10000"))

# 浏览器配置：使用持久化 profile 以保持聊天站点的登录状态
HEADLESS = _env_flag("SIDEBAR_AGENT_HEADLESS", False)
PROFILE_DIR = Path(os.environ.get("SIDEBAR_AGENT_PROFILE_DIR", STATE_DIR / "profile"))

# 没有可用目标站点时侧边栏显示的页面
FALLBACK_PAGE = "about:blank#sidebar-setup"


def pending_store_path() -> Path:
    return STATE_DIR / "storage.json"


def settings_path() -> Path:
    return Path(os.environ.get("SIDEBAR_AGENT_SETTINGS", STATE_DIR / "settings.json"))
