"""Sidebar Agent 包

把生成好的提示词送进侧边栏里的聊天站点并自动发送。

包含各个模块：
- models: 数据模型与错误类型
- settings / config: 用户设置与全局配置
- providers: 目标站点描述
- prompt_builder: 提示词构造
- store: 持久化存储 + 内存缓存
- channel: 侧边栏与后台之间的消息通道
- perception: 元素定位与页面判断
- controller: 写入、上传、发送、剪贴板
- core: 注入 Agent 与消费会话
- surface: 侧边栏页面控制
- coordinator: 后台协调器
- extractor: 源页面内容提取
- notifier: 用户通知
"""

from .models import (
    AttachedFile,
    ConfigError,
    InjectionFailure,
    InjectionOutcome,
    PendingItem,
    TargetDescriptor,
)
from .settings import Settings, SettingsStore
from .providers import resolve_target
from .store import PendingRepository, PendingStore, VolatileCache
from .channel import MessageChannel
from .controller import Controller
from .core import ConsumerSession, InjectionAgent
from .surface import HostSurface, PlaywrightSurface
from .coordinator import DeliveryCoordinator
from .notifier import Notifier

__all__ = [
    "AttachedFile",
    "ConfigError",
    "InjectionFailure",
    "InjectionOutcome",
    "PendingItem",
    "TargetDescriptor",
    "Settings",
    "SettingsStore",
    "resolve_target",
    "PendingRepository",
    "PendingStore",
    "VolatileCache",
    "MessageChannel",
    "Controller",
    "ConsumerSession",
    "InjectionAgent",
    "HostSurface",
    "PlaywrightSurface",
    "DeliveryCoordinator",
    "Notifier",
]
