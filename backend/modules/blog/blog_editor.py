"""
后台文章编辑流程
在内存中组装文章草稿，保存时一次性提交完整字段
"""

import logging
from typing import Any, Dict, List, Optional

from .blog_models import BlogCategory, BlogPost, BlogSeries, PostStatus
from .blog_schemas import CategoryCreate, SeriesCreate, PostCreate, PostUpdate, normalize_tags
from .blog_services import BlogService
from utils.text import generate_slug

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = (
    "title", "slug", "excerpt", "content", "cover_image", "category_id",
    "series_id", "series_order", "tags", "status", "meta_title", "meta_description",
)


class PostEditor:
    """
    文章编辑器

    Usage:
        editor = PostEditor(service, author_id=1)
        editor.set_title("Hello World")
        editor.set_fields(content="...", category_id=3)
        editor.add_tag("python")
        await editor.choose_series(2)
        post = await editor.save_draft()
        post = await editor.publish()
    """

    def __init__(self, service: BlogService, author_id: int, post: Optional[BlogPost] = None):
        self.service = service
        self.author_id = author_id
        self.post_id: Optional[int] = None
        self.draft: Dict[str, Any] = {
            "title": "",
            "slug": "",
            "excerpt": None,
            "content": "",
            "cover_image": None,
            "category_id": None,
            "series_id": None,
            "series_order": None,
            "tags": [],
            "status": PostStatus.DRAFT,
            "meta_title": None,
            "meta_description": None,
        }
        # 手动修改过 slug 后不再随标题变化
        self._slug_edited = False
        if post is not None:
            self.load(post)

    def load(self, post: BlogPost) -> None:
        """载入已有文章继续编辑"""
        self.post_id = post.id
        for field in EDITABLE_FIELDS:
            value = getattr(post, field)
            self.draft[field] = list(value or []) if field == "tags" else value
        self._slug_edited = True

    # ============ 字段 ============

    def set_title(self, title: str) -> None:
        self.draft["title"] = title
        if not self._slug_edited:
            self.draft["slug"] = generate_slug(title)

    def set_slug(self, slug: str) -> None:
        self.draft["slug"] = slug
        self._slug_edited = bool(slug)

    def set_fields(self, **fields) -> None:
        """批量设置字段（title/slug/tags/series 走各自的方法）"""
        for key, value in fields.items():
            if key not in EDITABLE_FIELDS:
                raise KeyError(f"未知字段: {key}")
            if key == "title":
                self.set_title(value)
            elif key == "slug":
                self.set_slug(value)
            elif key == "tags":
                self.draft["tags"] = normalize_tags(value)
            else:
                self.draft[key] = value

    @property
    def tags(self) -> List[str]:
        return list(self.draft["tags"])

    def add_tag(self, tag: str) -> bool:
        """添加标签（区分大小写去重），返回是否添加"""
        tag = (tag or "").strip()
        if not tag or tag in self.draft["tags"]:
            return False
        self.draft["tags"].append(tag)
        return True

    def remove_tag(self, tag: str) -> bool:
        if tag not in self.draft["tags"]:
            return False
        self.draft["tags"].remove(tag)
        return True

    async def choose_series(self, series_id: Optional[int]) -> None:
        """
        选择系列

        首次选中某个系列时，序号自动设为该系列当前文章数 + 1；
        再次选择同一系列保留已有序号。
        """
        if series_id is None:
            self.draft["series_id"] = None
            self.draft["series_order"] = None
            return

        if series_id == self.draft["series_id"] and self.draft["series_order"] is not None:
            return

        self.draft["series_id"] = series_id
        count = await self.service.count_series_posts(series_id)
        self.draft["series_order"] = count + 1

    # ============ 内联创建 ============

    async def create_category(self, data: CategoryCreate) -> BlogCategory:
        """在编辑器中新建分类并选中"""
        category = await self.service.create_category(data)
        self.draft["category_id"] = category.id
        return category

    async def create_series(self, data: SeriesCreate) -> BlogSeries:
        """在编辑器中新建系列并选中"""
        series = await self.service.create_series(data, author_id=self.author_id)
        await self.choose_series(series.id)
        return series

    # ============ 保存 ============

    def _payload(self) -> Dict[str, Any]:
        payload = dict(self.draft)
        payload["tags"] = list(self.draft["tags"])
        payload["slug"] = payload["slug"] or None
        return payload

    async def _submit(self, status: str) -> BlogPost:
        payload = self._payload()
        payload["status"] = status

        if self.post_id is None:
            post = await self.service.create_post(PostCreate(**payload), self.author_id)
            self.post_id = post.id
            logger.info(f"编辑器新建文章 #{post.id} [{status}]")
        else:
            post = await self.service.update_post(self.post_id, PostUpdate(**payload))

        self.draft["status"] = post.status
        self.draft["slug"] = post.slug
        self.draft["series_order"] = post.series_order
        self._slug_edited = True
        return post

    async def save_draft(self) -> BlogPost:
        """保存为草稿（首次保存创建，之后整体更新）"""
        return await self._submit(PostStatus.DRAFT)

    async def publish(self) -> BlogPost:
        """发布"""
        return await self._submit(PostStatus.PUBLISHED)
