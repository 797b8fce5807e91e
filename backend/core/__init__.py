"""
核心模块
提供框架的基础设施和通用功能

导出列表：
- 配置管理: get_settings, Settings
- 数据库: Base, get_db, async_session
- 安全认证: get_current_user, get_optional_user, require_admin
- 事件系统: event_bus, Events, Event
- 错误处理: ErrorCode, AppException 及其子类
"""

# 配置管理
from .config import get_settings, Settings, reload_settings

# 数据库
from .database import Base, get_db, async_session, init_db, close_db

# 安全认证
from .security import (
    get_current_user,
    get_optional_user,
    require_admin,
    create_token,
    decode_token,
    hash_password,
    verify_password,
    TokenData
)

# 事件系统
from .events import event_bus, Events, Event, EventBus

# 错误处理
from .errors import (
    ErrorCode,
    AppException,
    ValidationException,
    NotFoundException,
    ConflictException,
    PermissionException,
    DependencyException,
    AuthException,
)

__all__ = [
    "get_settings", "Settings", "reload_settings",
    "Base", "get_db", "async_session", "init_db", "close_db",
    "get_current_user", "get_optional_user", "require_admin",
    "create_token", "decode_token", "hash_password", "verify_password", "TokenData",
    "event_bus", "Events", "Event", "EventBus",
    "ErrorCode", "AppException", "ValidationException", "NotFoundException",
    "ConflictException", "PermissionException", "DependencyException", "AuthException",
]
