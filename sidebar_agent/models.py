"""数据模型定义"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

# 注入失败类型
CONFIG_ERROR = "config-error"
INPUT_NOT_FOUND = "input-not-found"
SUBMIT_NOT_FOUND = "submit-not-found"
NOT_LOGGED_IN = "not-logged-in"
UNKNOWN = "unknown"

FAILURE_KINDS = (CONFIG_ERROR, INPUT_NOT_FOUND, SUBMIT_NOT_FOUND, NOT_LOGGED_IN, UNKNOWN)


class ConfigError(Exception):
    """没有解析出可用的目标站点（未知 id 或自定义配置不完整）"""


class InjectionFailure(Exception):
    """自动注入失败，kind 为上面的失败类型之一"""

    def __init__(self, kind: str, detail: str = ""):
        super().__init__(detail or kind)
        self.kind = kind if kind in FAILURE_KINDS else UNKNOWN


class ChannelUnavailable(Exception):
    """生产端还没有注册消息处理器"""


class ExtractionError(Exception):
    """源页面内容提取失败"""

    def __init__(self, message: str, reason: str = "error"):
        super().__init__(message)
        self.reason = reason


@dataclass(frozen=True)
class TargetDescriptor:
    """目标聊天站点描述：去哪里，以及怎样驱动它"""
    id: str
    name: str
    url: str
    input_selector: str
    submit_selector: str
    submit_fallbacks: List[str] = field(default_factory=list)
    file_input_selector: Optional[str] = None

    def submit_selectors(self) -> List[str]:
        return [self.submit_selector] + [s for s in self.submit_fallbacks if s]

    def to_dict(self) -> Dict:
        return {
            "id": self.id,
            "name": self.name,
            "url": self.url,
            "inputSelector": self.input_selector,
            "submitSelector": self.submit_selector,
            "submitFallbacks": list(self.submit_fallbacks),
            "fileInputSelector": self.file_input_selector,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "TargetDescriptor":
        return cls(
            id=data.get("id", ""),
            name=data.get("name", ""),
            url=data.get("url", ""),
            input_selector=data.get("inputSelector", ""),
            submit_selector=data.get("submitSelector", ""),
            submit_fallbacks=list(data.get("submitFallbacks") or []),
            file_input_selector=data.get("fileInputSelector") or None,
        )


@dataclass(frozen=True)
class AttachedFile:
    """以文件形式上传的内容"""
    name: str
    content: str
    mime_type: str = "text/plain"


@dataclass(frozen=True)
class PendingItem:
    """等待投递给侧边栏的一条提示词"""
    prompt: str
    target: TargetDescriptor
    attached_file: Optional[AttachedFile] = None
    url_fallback: Optional[str] = None
    text_fallback: Optional[str] = None

    def best_fallback(self) -> str:
        """剪贴板兜底时使用的内容：textFallback > urlFallback > prompt"""
        return self.text_fallback or self.url_fallback or self.prompt

    def to_dict(self) -> Dict:
        data = {"prompt": self.prompt, "provider": self.target.to_dict()}
        if self.attached_file is not None:
            data["attachedFile"] = {
                "name": self.attached_file.name,
                "content": self.attached_file.content,
                "mimeType": self.attached_file.mime_type,
            }
        if self.url_fallback:
            data["urlFallback"] = self.url_fallback
        if self.text_fallback:
            data["textFallback"] = self.text_fallback
        return data

    @classmethod
    def from_dict(cls, data: Dict) -> "PendingItem":
        attached = data.get("attachedFile")
        return cls(
            prompt=data.get("prompt", ""),
            target=TargetDescriptor.from_dict(data.get("provider") or {}),
            attached_file=AttachedFile(
                name=attached.get("name") or "attachment.txt",
                content=attached.get("content", ""),
                mime_type=attached.get("mimeType", "text/plain"),
            ) if isinstance(attached, dict) else None,
            url_fallback=data.get("urlFallback"),
            text_fallback=data.get("textFallback"),
        )


@dataclass
class InjectionOutcome:
    """一次注入的结果"""
    success: bool
    kind: Optional[str] = None  # 失败类型，成功时为 None
    strategy: Optional[str] = None  # 写入输入框用的方式
    payload: Optional[str] = None  # 实际写入的文本


# ── 侧边栏与后台之间的消息 ──────────────────────────

@dataclass(frozen=True)
class ReadyQuery:
    """侧边栏加载完成，询问是否有待投递的提示词"""
    type: str = "injector-ready"


@dataclass(frozen=True)
class InjectionSuccess:
    type: str = "injection-success"


@dataclass(frozen=True)
class InjectionError:
    error: str = UNKNOWN
    provider_name: Optional[str] = None
    type: str = "injection-error"


@dataclass(frozen=True)
class ReloadTarget:
    """设置变更后让侧边栏重新加载目标站点"""
    type: str = "reload-provider"
