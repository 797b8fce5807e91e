"""
统一响应格式
成功响应结构：{"code": 200, "message", "data"}；错误响应由 core.errors 统一生成
"""

from typing import Any, Generic, TypeVar, List
from pydantic import BaseModel


T = TypeVar("T")


class PageData(BaseModel, Generic[T]):
    """分页数据"""
    items: List[T]
    total: int
    page: int
    size: int
    pages: int


def success(data: Any = None, message: str = "success") -> dict:
    """成功响应"""
    return {
        "code": 200,
        "message": message,
        "data": data
    }


def paginate(items: List, total: int, page: int, size: int) -> dict:
    """分页响应，pages 向上取整"""
    pages = (total + size - 1) // size if size > 0 else 0
    return success(
        PageData[Any](items=items, total=total, page=page, size=size, pages=pages).model_dump()
    )
