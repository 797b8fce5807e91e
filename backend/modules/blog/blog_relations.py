"""
相关文章关联图
文章之间的无向边：任意方向添加，两端都能查到
"""

import logging
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError
from sqlalchemy import select, or_, and_

from core.errors import ErrorCode, ValidationException, ConflictException, NotFoundException
from .blog_models import BlogPost, BlogPostRelation, PostStatus
from .blog_schemas import RelatedPostView, CategoryBrief
from .blog_services import BlogService

logger = logging.getLogger(__name__)


def build_related_view(post: BlogPost, relation: BlogPostRelation) -> RelatedPostView:
    """关联边另一端文章的视图"""
    return RelatedPostView(
        id=post.id,
        title=post.title,
        slug=post.slug,
        excerpt=post.excerpt,
        status=post.status,
        cover_image=post.cover_image,
        category=CategoryBrief.model_validate(post.category) if post.category else None,
        author_id=post.author_id,
        published_at=post.published_at,
        relation_type=relation.relation_type,
        relation_id=relation.id,
    )


class RelationService:
    """相关文章服务"""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.posts = BlogService(db)

    async def get_relation(self, relation_id: int) -> Optional[BlogPostRelation]:
        result = await self.db.execute(
            select(BlogPostRelation).where(BlogPostRelation.id == relation_id)
        )
        return result.scalar_one_or_none()

    async def find_edge(self, post_a: int, post_b: int) -> Optional[BlogPostRelation]:
        """查找两篇文章之间的边（不区分方向）"""
        result = await self.db.execute(
            select(BlogPostRelation).where(
                or_(
                    and_(
                        BlogPostRelation.source_post_id == post_a,
                        BlogPostRelation.target_post_id == post_b
                    ),
                    and_(
                        BlogPostRelation.source_post_id == post_b,
                        BlogPostRelation.target_post_id == post_a
                    ),
                )
            )
        )
        return result.scalars().first()

    async def list_related(self, post_slug: str, is_admin: bool = False) -> List[RelatedPostView]:
        """
        获取文章的相关文章

        无论边是从哪一端添加的都会返回，按添加顺序排列。
        非管理员只能看到已发布的文章。
        """
        post = await self.posts.get_post_by_slug(post_slug)

        result = await self.db.execute(
            select(BlogPostRelation)
            .where(
                or_(
                    BlogPostRelation.source_post_id == post.id,
                    BlogPostRelation.target_post_id == post.id
                )
            )
            .order_by(BlogPostRelation.id)
        )
        relations = list(result.scalars().all())
        if not relations:
            return []

        other_ids = {relation.other_end(post.id) for relation in relations}
        posts_result = await self.db.execute(
            select(BlogPost).where(BlogPost.id.in_(other_ids))
        )
        others = {p.id: p for p in posts_result.scalars().all()}

        views = []
        for relation in relations:
            other = others.get(relation.other_end(post.id))
            if other is None:
                continue
            if not is_admin and other.status != PostStatus.PUBLISHED:
                continue
            views.append(build_related_view(other, relation))
        return views

    async def add_relation(
        self,
        source_slug: str,
        target_post_id: int,
        relation_type: str = "related",
        created_by: Optional[int] = None
    ) -> RelatedPostView:
        """添加相关文章，返回目标文章视图"""
        source = await self.posts.get_post_by_slug(source_slug)
        target = await self.posts.get_post(target_post_id)
        if not target:
            raise NotFoundException("目标文章", target_post_id)

        if source.id == target.id:
            raise ValidationException("文章不能关联自身")

        if await self.find_edge(source.id, target.id) is not None:
            raise ConflictException("两篇文章已经关联", code=ErrorCode.BLOG_RELATION_EXISTS)

        relation = BlogPostRelation(
            source_post_id=source.id,
            target_post_id=target.id,
            pair_low=min(source.id, target.id),
            pair_high=max(source.id, target.id),
            relation_type=relation_type or "related",
            created_by=created_by,
        )
        self.db.add(relation)
        try:
            await self.db.commit()
        except IntegrityError:
            # 并发添加同一对文章时由唯一索引兜底
            await self.db.rollback()
            raise ConflictException("两篇文章已经关联", code=ErrorCode.BLOG_RELATION_EXISTS)
        await self.db.refresh(relation)

        logger.info(f"添加相关文章: {source.slug} <-> {target.slug} ({relation.relation_type})")
        return build_related_view(target, relation)

    async def remove_relation(self, relation_id: int) -> None:
        """删除关联"""
        relation = await self.get_relation(relation_id)
        if not relation:
            raise NotFoundException("关联关系", relation_id)

        await self.db.delete(relation)
        await self.db.commit()
        logger.info(
            f"删除相关文章关联 #{relation_id}: {relation.source_post_id} <-> {relation.target_post_id}"
        )
