"""
文本处理工具
"""

import math
import re

_NON_ALNUM = re.compile(r'[^a-z0-9]+')
_WORD_SPLIT = re.compile(r'\s+')

WORDS_PER_MINUTE = 200


def generate_slug(text: str) -> str:
    """
    生成URL友好的slug

    转小写后，每一段连续的非 [a-z0-9] 字符替换为单个横线，并去除首尾横线。
    例: "Hello World!!" -> "hello-world"

    Args:
        text: 原始文本

    Returns:
        slug字符串（可能为空字符串）
    """
    if not text:
        return ""
    return _NON_ALNUM.sub('-', text.lower()).strip('-')


def reading_time(content: str) -> int:
    """按每分钟 200 词估算阅读时间（分钟，向上取整）"""
    words = len(_WORD_SPLIT.split(content or ""))
    return math.ceil(words / WORDS_PER_MINUTE)


def truncate(text: str, length: int, suffix: str = "...") -> str:
    """
    截取文本

    Args:
        text: 原始文本
        length: 最大长度
        suffix: 省略后缀
    """
    if not text or len(text) <= length:
        return text or ""
    return text[:length] + suffix
