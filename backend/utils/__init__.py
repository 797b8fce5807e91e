"""
工具函数目录
"""

from .text import generate_slug, reading_time, truncate

__all__ = ["generate_slug", "reading_time", "truncate"]
