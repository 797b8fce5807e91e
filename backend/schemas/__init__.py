"""
数据验证模式目录
博客模块的请求/响应模式位于 modules/blog/blog_schemas.py
"""

from .auth import UserLogin, UserInfo
from .response import PageData, success, paginate

__all__ = [
    # 认证
    "UserLogin", "UserInfo",
    # 响应
    "PageData", "success", "paginate"
]
