"""
路由目录
"""

from . import auth, health

__all__ = ["auth", "health"]
