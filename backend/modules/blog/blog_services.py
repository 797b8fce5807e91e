"""
博客业务逻辑
分类/系列注册表与文章存储
"""

import json
import logging
from collections import Counter
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError
from sqlalchemy import select, func, delete, update, and_, or_

from core.errors import (
    ErrorCode, ValidationException, ConflictException, NotFoundException
)
from utils.text import generate_slug
from .blog_models import (
    BlogPost, BlogCategory, BlogSeries, BlogPostRelation, BlogComment, PostStatus
)
from .blog_schemas import (
    CategoryCreate, SeriesCreate, SeriesUpdate, PostCreate, PostUpdate
)

logger = logging.getLogger(__name__)


class BlogService:
    """博客服务"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _commit_unique(self, message: str, code: int = ErrorCode.BLOG_SLUG_EXISTS):
        """提交事务，唯一索引冲突转换为 ConflictException"""
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictException(message, code=code)

    @staticmethod
    def _require_slug(source: str) -> str:
        slug = generate_slug(source or "")
        if not slug:
            raise ValidationException("无法生成有效的 slug，请使用字母或数字")
        return slug

    # ============ 分类 ============

    async def get_categories(self, published_only: bool = False) -> List[Tuple[BlogCategory, int]]:
        """获取所有分类及文章数"""
        join_on = BlogPost.category_id == BlogCategory.id
        if published_only:
            join_on = and_(join_on, BlogPost.status == PostStatus.PUBLISHED)

        result = await self.db.execute(
            select(BlogCategory, func.count(BlogPost.id))
            .outerjoin(BlogPost, join_on)
            .group_by(BlogCategory.id)
            .order_by(BlogCategory.sort_order, BlogCategory.id)
        )
        return [(category, count) for category, count in result.all()]

    async def get_category(self, category_id: int) -> Optional[BlogCategory]:
        """获取分类"""
        result = await self.db.execute(
            select(BlogCategory).where(BlogCategory.id == category_id)
        )
        return result.scalar_one_or_none()

    async def create_category(self, data: CategoryCreate) -> BlogCategory:
        """创建分类（slug 由名称生成）"""
        name = (data.name or "").strip()
        if not name:
            raise ValidationException("分类名称不能为空")
        slug = self._require_slug(name)

        exists = await self.db.execute(
            select(BlogCategory.id).where(BlogCategory.slug == slug)
        )
        if exists.scalar_one_or_none() is not None:
            raise ConflictException(f"分类 slug '{slug}' 已存在", code=ErrorCode.BLOG_SLUG_EXISTS)

        max_order = await self.db.execute(select(func.max(BlogCategory.sort_order)))
        fields = data.model_dump(exclude={"name"}, exclude_none=True)
        category = BlogCategory(
            name=name,
            slug=slug,
            sort_order=(max_order.scalar() or 0) + 1,
            **fields
        )
        self.db.add(category)
        await self._commit_unique(f"分类 slug '{slug}' 已存在")
        await self.db.refresh(category)
        logger.info(f"创建分类: {category.name} ({category.slug})")
        return category

    async def delete_category(self, category_id: int) -> None:
        """删除分类，其下文章变为未分类"""
        category = await self.get_category(category_id)
        if not category:
            raise NotFoundException("分类", category_id)

        await self.db.execute(
            update(BlogPost)
            .where(BlogPost.category_id == category_id)
            .values(category_id=None)
        )
        await self.db.delete(category)
        await self.db.commit()
        logger.info(f"删除分类: {category.slug}")

    # ============ 系列 ============

    async def get_series_list(
        self,
        published_only: bool = False,
        active_only: bool = False
    ) -> List[Tuple[BlogSeries, int]]:
        """获取所有系列及文章数"""
        join_on = BlogPost.series_id == BlogSeries.id
        if published_only:
            join_on = and_(join_on, BlogPost.status == PostStatus.PUBLISHED)

        query = (
            select(BlogSeries, func.count(BlogPost.id))
            .outerjoin(BlogPost, join_on)
            .group_by(BlogSeries.id)
            .order_by(BlogSeries.sort_order, BlogSeries.id)
        )
        if active_only:
            query = query.where(BlogSeries.is_active.is_(True))

        result = await self.db.execute(query)
        return [(series, count) for series, count in result.all()]

    async def get_series(self, series_id: int) -> Optional[BlogSeries]:
        """获取系列"""
        result = await self.db.execute(
            select(BlogSeries).where(BlogSeries.id == series_id)
        )
        return result.scalar_one_or_none()

    async def count_series_posts(self, series_id: int) -> int:
        """系列当前文章数"""
        result = await self.db.execute(
            select(func.count(BlogPost.id)).where(BlogPost.series_id == series_id)
        )
        return result.scalar() or 0

    async def get_series_posts(self, series_id: int, published_only: bool = False) -> List[BlogPost]:
        """系列文章（series_order 升序，未设置序号的排在最后）"""
        query = (
            select(BlogPost)
            .where(BlogPost.series_id == series_id)
            .order_by(
                BlogPost.series_order.is_(None),
                BlogPost.series_order,
                BlogPost.published_at.desc(),
                BlogPost.id
            )
        )
        if published_only:
            query = query.where(BlogPost.status == PostStatus.PUBLISHED)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get_series_by_slug(
        self,
        slug: str,
        published_only: bool = True
    ) -> Tuple[BlogSeries, List[BlogPost]]:
        """按 slug 获取系列及按阅读顺序排列的文章"""
        result = await self.db.execute(
            select(BlogSeries).where(BlogSeries.slug == slug)
        )
        series = result.scalar_one_or_none()
        if not series:
            raise NotFoundException("系列", slug)

        return series, await self.get_series_posts(series.id, published_only)

    async def create_series(self, data: SeriesCreate, author_id: Optional[int] = None) -> BlogSeries:
        """创建系列"""
        title = (data.title or "").strip()
        if not title:
            raise ValidationException("系列标题不能为空")
        slug = self._require_slug(data.slug or title)

        exists = await self.db.execute(
            select(BlogSeries.id).where(BlogSeries.slug == slug)
        )
        if exists.scalar_one_or_none() is not None:
            raise ConflictException(f"系列 slug '{slug}' 已存在", code=ErrorCode.BLOG_SLUG_EXISTS)

        max_order = await self.db.execute(select(func.max(BlogSeries.sort_order)))
        fields = data.model_dump(exclude={"title", "slug"}, exclude_none=True)
        series = BlogSeries(
            title=title,
            slug=slug,
            sort_order=(max_order.scalar() or 0) + 1,
            author_id=author_id,
            **fields
        )
        self.db.add(series)
        await self._commit_unique(f"系列 slug '{slug}' 已存在")
        await self.db.refresh(series)
        logger.info(f"创建系列: {series.title} ({series.slug})")
        return series

    async def update_series(self, series_id: int, data: SeriesUpdate) -> BlogSeries:
        """更新系列"""
        series = await self.get_series(series_id)
        if not series:
            raise NotFoundException("系列", series_id)

        update_data = data.model_dump(exclude_unset=True)
        if "title" in update_data:
            title = (update_data["title"] or "").strip()
            if not title:
                raise ValidationException("系列标题不能为空")
            update_data["title"] = title

        if update_data.get("slug") is not None:
            slug = self._require_slug(update_data["slug"])
            if slug != series.slug:
                exists = await self.db.execute(
                    select(BlogSeries.id).where(BlogSeries.slug == slug)
                )
                if exists.scalar_one_or_none() is not None:
                    raise ConflictException(f"系列 slug '{slug}' 已存在", code=ErrorCode.BLOG_SLUG_EXISTS)
            update_data["slug"] = slug
        else:
            update_data.pop("slug", None)

        for key, value in update_data.items():
            if value is None and key in ("tags", "color", "is_active"):
                continue
            setattr(series, key, value)

        await self._commit_unique("系列 slug 已存在")
        await self.db.refresh(series)
        return series

    async def delete_series(self, series_id: int) -> None:
        """删除系列（仍有文章时拒绝）"""
        series = await self.get_series(series_id)
        if not series:
            raise NotFoundException("系列", series_id)

        count = await self.count_series_posts(series_id)
        if count > 0:
            raise ValidationException(f"系列中仍有 {count} 篇文章，请先移出文章再删除")

        await self.db.delete(series)
        await self.db.commit()
        logger.info(f"删除系列: {series.slug}")

    async def reorder_series(self, series_id: int, post_id: int, new_position: int) -> List[BlogPost]:
        """
        调整系列内文章顺序

        将文章移动到第 new_position 位（1 开始，超出范围时取边界值），
        之后整个系列重新编号为 1..n。

        Returns:
            重新排序后的文章列表
        """
        series = await self.get_series(series_id)
        if not series:
            raise NotFoundException("系列", series_id)

        members = await self.get_series_posts(series_id)
        moving = next((p for p in members if p.id == post_id), None)
        if moving is None:
            raise ValidationException("文章不属于该系列")

        members.remove(moving)
        position = min(max(new_position, 1), len(members) + 1)
        members.insert(position - 1, moving)

        for index, post in enumerate(members, start=1):
            post.series_order = index

        await self.db.commit()
        logger.info(f"系列 {series.slug} 重新排序: 文章 {post_id} -> 第 {position} 位")
        return members

    # ============ 文章 ============

    async def get_posts(
        self,
        page: int = 1,
        size: int = 10,
        status: Optional[str] = None,
        category_id: Optional[int] = None,
        series_id: Optional[int] = None,
        tag: Optional[str] = None,
        keyword: Optional[str] = None,
        author_id: Optional[int] = None
    ) -> Tuple[List[BlogPost], int]:
        """获取文章列表"""
        query = select(BlogPost)
        count_query = select(func.count(BlogPost.id))

        # 筛选条件
        conditions = []

        if status:
            conditions.append(BlogPost.status == status)

        if category_id:
            conditions.append(BlogPost.category_id == category_id)

        if series_id:
            conditions.append(BlogPost.series_id == series_id)

        if author_id:
            conditions.append(BlogPost.author_id == author_id)

        if keyword:
            conditions.append(
                or_(
                    BlogPost.title.contains(keyword),
                    BlogPost.excerpt.contains(keyword)
                )
            )

        if tag:
            # 标签以 JSON 数组存储，按数组元素精确匹配（SQLite 下由 core.database 注册同名函数）
            conditions.append(func.json_contains(BlogPost.tags, json.dumps(tag, ensure_ascii=False)))

        if conditions:
            query = query.where(and_(*conditions))
            count_query = count_query.where(and_(*conditions))

        # 排序和分页
        if status == PostStatus.PUBLISHED:
            query = query.order_by(BlogPost.published_at.desc(), BlogPost.id.desc())
        else:
            query = query.order_by(BlogPost.updated_at.desc(), BlogPost.id.desc())
        query = query.offset((page - 1) * size).limit(size)

        result = await self.db.execute(query)
        posts = list(result.scalars().all())

        count_result = await self.db.execute(count_query)
        total = count_result.scalar() or 0

        return posts, total

    async def get_post(self, post_id: int) -> Optional[BlogPost]:
        """获取文章"""
        result = await self.db.execute(
            select(BlogPost).where(BlogPost.id == post_id)
        )
        return result.scalar_one_or_none()

    async def find_post_by_slug(self, slug: str) -> Optional[BlogPost]:
        """通过slug查找文章，不存在返回 None"""
        result = await self.db.execute(
            select(BlogPost).where(BlogPost.slug == slug)
        )
        return result.scalar_one_or_none()

    async def get_post_by_slug(self, slug: str) -> BlogPost:
        """通过slug获取文章"""
        post = await self.find_post_by_slug(slug)
        if not post:
            raise NotFoundException("文章", slug)
        return post

    async def _slug_taken(self, slug: str, exclude_id: Optional[int] = None) -> bool:
        query = select(BlogPost.id).where(BlogPost.slug == slug)
        if exclude_id is not None:
            query = query.where(BlogPost.id != exclude_id)
        result = await self.db.execute(query)
        return result.first() is not None

    async def _validate_post(self, title: Optional[str], content: Optional[str], category_id: Optional[int]):
        """文章必填字段：标题、正文、有效分类"""
        errors = []
        if not (title or "").strip():
            errors.append({"field": "title", "error": "标题不能为空"})
        if not (content or "").strip():
            errors.append({"field": "content", "error": "正文不能为空"})
        if category_id is None or await self.get_category(category_id) is None:
            errors.append({"field": "category_id", "error": "请选择有效的分类"})
        if errors:
            raise ValidationException(errors[0]["error"], errors=errors)

    async def _check_series(self, series_id: int) -> None:
        if await self.get_series(series_id) is None:
            raise ValidationException("所选系列不存在")

    async def create_post(self, data: PostCreate, author_id: int) -> BlogPost:
        """创建文章"""
        await self._validate_post(data.title, data.content, data.category_id)

        slug = self._require_slug(data.slug or data.title)
        if await self._slug_taken(slug):
            raise ConflictException(f"文章 slug '{slug}' 已存在", code=ErrorCode.BLOG_SLUG_EXISTS)

        post_data = data.model_dump(exclude={"slug"})
        post_data["title"] = data.title.strip()
        post_data["slug"] = slug
        post_data["author_id"] = author_id

        if data.series_id is not None:
            await self._check_series(data.series_id)
            if data.series_order is None:
                post_data["series_order"] = await self.count_series_posts(data.series_id) + 1
        else:
            post_data["series_order"] = None

        if data.status == PostStatus.PUBLISHED:
            post_data["published_at"] = datetime.now(timezone.utc)

        post = BlogPost(**post_data)
        self.db.add(post)
        await self._commit_unique(f"文章 slug '{slug}' 已存在")
        await self.db.refresh(post)
        logger.info(f"创建文章: {post.title} ({post.slug}) [{post.status}]")
        return post

    async def update_post(self, post_id: int, data: PostUpdate) -> BlogPost:
        """
        更新文章

        提交的字段与已存储的文章合并后再统一校验。
        状态首次变为 PUBLISHED 时写入发布时间；移出系列时同时清空系列序号。
        """
        post = await self.get_post(post_id)
        if not post:
            raise NotFoundException("文章", post_id)

        update_data = data.model_dump(exclude_unset=True)
        # 不可为空的字段显式传 null 时视为未提交
        for key in ("status", "tags"):
            if key in update_data and update_data[key] is None:
                update_data.pop(key)

        await self._validate_post(
            update_data.get("title", post.title),
            update_data.get("content", post.content),
            update_data.get("category_id", post.category_id),
        )
        if "title" in update_data:
            update_data["title"] = update_data["title"].strip()

        if "slug" in update_data:
            slug = self._require_slug(update_data["slug"] or update_data.get("title", post.title))
            if slug != post.slug and await self._slug_taken(slug, exclude_id=post.id):
                raise ConflictException(f"文章 slug '{slug}' 已存在", code=ErrorCode.BLOG_SLUG_EXISTS)
            update_data["slug"] = slug

        new_series_id = update_data.get("series_id", post.series_id)
        if new_series_id is None:
            update_data["series_order"] = None
        elif new_series_id != post.series_id:
            await self._check_series(new_series_id)
            if update_data.get("series_order") is None:
                update_data["series_order"] = await self.count_series_posts(new_series_id) + 1
        elif "series_order" in update_data and update_data["series_order"] is None:
            # 系列未变时显式传 null 保留原位置
            update_data.pop("series_order")

        for key, value in update_data.items():
            setattr(post, key, value)

        if post.status == PostStatus.PUBLISHED and post.published_at is None:
            post.published_at = datetime.now(timezone.utc)

        await self._commit_unique(f"文章 slug '{post.slug}' 已存在")
        await self.db.refresh(post)
        return post

    async def delete_post(self, post_id: int) -> None:
        """删除文章，同时删除其评论和所有相关文章关联"""
        post = await self.get_post(post_id)
        if not post:
            raise NotFoundException("文章", post_id)

        await self.db.execute(
            delete(BlogComment).where(BlogComment.post_id == post_id)
        )
        await self.db.execute(
            delete(BlogPostRelation).where(
                or_(
                    BlogPostRelation.source_post_id == post_id,
                    BlogPostRelation.target_post_id == post_id
                )
            )
        )
        await self.db.delete(post)
        await self.db.commit()
        logger.info(f"删除文章: {post.slug}")

    async def duplicate_post(self, post_id: int, author_id: int) -> BlogPost:
        """复制文章为草稿（slug 依次尝试 -copy, -copy-1, -copy-2 ...）"""
        source = await self.get_post(post_id)
        if not source:
            raise NotFoundException("文章", post_id)

        base = f"{source.slug}-copy"
        slug = base
        suffix = 0
        while await self._slug_taken(slug):
            suffix += 1
            slug = f"{base}-{suffix}"

        post = BlogPost(
            title=f"{source.title} (Copy)",
            slug=slug,
            excerpt=source.excerpt,
            content=source.content,
            cover_image=source.cover_image,
            status=PostStatus.DRAFT,
            tags=list(source.tags or []),
            category_id=source.category_id,
            meta_title=source.meta_title,
            meta_description=source.meta_description,
            author_id=author_id,
        )
        self.db.add(post)
        await self._commit_unique(f"文章 slug '{slug}' 已存在")
        await self.db.refresh(post)
        logger.info(f"复制文章: {source.slug} -> {post.slug}")
        return post

    async def like_post(self, slug: str, action: str = "like", is_admin: bool = False) -> int:
        """文章点赞/取消点赞，返回最新点赞数"""
        post = await self.get_post_by_slug(slug)
        if post.status != PostStatus.PUBLISHED and not is_admin:
            raise NotFoundException("文章", slug)

        if action == "like":
            post.likes = (post.likes or 0) + 1
        elif action == "unlike":
            post.likes = max(0, (post.likes or 0) - 1)
        else:
            raise ValidationException("action 必须是 like 或 unlike")

        await self.db.commit()
        return post.likes

    async def increment_views(self, post: BlogPost) -> None:
        """增加浏览量"""
        post.views = (post.views or 0) + 1
        await self.db.commit()

    async def get_tags(self, published_only: bool = True) -> List[dict]:
        """获取所有标签及使用次数（按次数降序）"""
        query = select(BlogPost.tags)
        if published_only:
            query = query.where(BlogPost.status == PostStatus.PUBLISHED)
        result = await self.db.execute(query)

        counter: Counter = Counter()
        for tags in result.scalars().all():
            counter.update(tags or [])
        return [
            {"name": name, "count": count}
            for name, count in sorted(counter.items(), key=lambda item: (-item[1], item[0]))
        ]
