"""
博客公开API路由
访客可访问：已发布文章、相关文章、评论、分类、系列、标签
"""

from typing import Optional
from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from core.database import get_db
from core.errors import NotFoundException
from core.security import get_optional_user, TokenData
from core.events import event_bus, Events
from schemas import success, paginate
from utils.text import reading_time

from .blog_models import PostStatus
from .blog_schemas import (
    PostInfo, PostListItem, PostLike, CategoryInfo, SeriesInfo,
    CommentCreate, CommentInfo, TagInfo
)
from .blog_services import BlogService
from .blog_relations import RelationService
from .blog_comments import CommentService
from .blog_notify import CommentNotifier

router = APIRouter(prefix="/api/v1/blog", tags=["博客"])


def get_comment_notifier() -> CommentNotifier:
    """评论通知器（测试中可通过 dependency_overrides 替换）"""
    return CommentNotifier()


def _is_admin(user: Optional[TokenData]) -> bool:
    return user is not None and user.is_admin


def post_detail(post) -> dict:
    """文章详情（附阅读时间）"""
    data = PostInfo.model_validate(post).model_dump()
    data["reading_time"] = reading_time(post.content)
    return data


# ============ 文章接口 ============

@router.get("/posts")
async def list_posts(
    page: int = Query(1, ge=1),
    size: int = Query(10, ge=1, le=100),
    category_id: Optional[int] = None,
    series_id: Optional[int] = None,
    tag: Optional[str] = None,
    keyword: Optional[str] = None,
    db: AsyncSession = Depends(get_db)
):
    """获取已发布文章列表"""
    service = BlogService(db)
    posts, total = await service.get_posts(
        page=page,
        size=size,
        status=PostStatus.PUBLISHED,
        category_id=category_id,
        series_id=series_id,
        tag=tag,
        keyword=keyword
    )
    items = [PostListItem.model_validate(p).model_dump() for p in posts]
    return paginate(items, total, page, size)


@router.get("/posts/{slug}")
async def get_post(
    slug: str,
    db: AsyncSession = Depends(get_db),
    user: Optional[TokenData] = Depends(get_optional_user)
):
    """获取文章详情（草稿仅管理员可见），浏览量 +1"""
    service = BlogService(db)
    post = await service.get_post_by_slug(slug)
    if post.status != PostStatus.PUBLISHED and not _is_admin(user):
        raise NotFoundException("文章", slug)

    await service.increment_views(post)
    return success(post_detail(post))


@router.post("/posts/{slug}/like")
async def like_post(
    slug: str,
    data: Optional[PostLike] = Body(None),
    db: AsyncSession = Depends(get_db),
    user: Optional[TokenData] = Depends(get_optional_user)
):
    """文章点赞 / 取消点赞"""
    service = BlogService(db)
    action = data.action if data else "like"
    likes = await service.like_post(slug, action, is_admin=_is_admin(user))
    return success({"likes": likes})


@router.get("/posts/{slug}/related")
async def list_related(
    slug: str,
    db: AsyncSession = Depends(get_db),
    user: Optional[TokenData] = Depends(get_optional_user)
):
    """获取相关文章（管理员可见未发布文章）"""
    service = RelationService(db)
    views = await service.list_related(slug, is_admin=_is_admin(user))
    return success([v.model_dump() for v in views])


# ============ 评论接口 ============

async def _public_post(service: CommentService, post_ref: str, user: Optional[TokenData]):
    post = await service.resolve_post(post_ref)
    if post.status != PostStatus.PUBLISHED and not _is_admin(user):
        raise NotFoundException("文章", post_ref)
    return post


@router.get("/posts/{post_ref}/comments")
async def list_comments(
    post_ref: str,
    db: AsyncSession = Depends(get_db),
    user: Optional[TokenData] = Depends(get_optional_user)
):
    """获取文章下已通过审核的评论"""
    service = CommentService(db)
    post = await _public_post(service, post_ref, user)
    comments = await service.list_approved(post.id)
    return success([CommentInfo.model_validate(c).model_dump() for c in comments])


@router.post("/posts/{post_ref}/comments", status_code=201)
async def submit_comment(
    post_ref: str,
    data: CommentCreate,
    db: AsyncSession = Depends(get_db),
    user: Optional[TokenData] = Depends(get_optional_user),
    notifier: CommentNotifier = Depends(get_comment_notifier)
):
    """提交评论（含敏感词时进入待审核）"""
    service = CommentService(db, notifier=notifier)
    post = await _public_post(service, post_ref, user)
    comment = await service.submit_comment(
        post.id, data.author, data.email, data.content, data.website
    )

    event_bus.emit(Events.COMMENT_CREATED, "blog", {
        "comment_id": comment.id,
        "post_id": post.id,
        "approved": comment.is_approved
    })

    message = "评论已发布" if comment.is_approved else "评论已提交，等待审核"
    return success(
        {**CommentInfo.model_validate(comment).model_dump(), "is_approved": comment.is_approved},
        message
    )


@router.post("/comments/{comment_id}/like")
async def like_comment(comment_id: int, db: AsyncSession = Depends(get_db)):
    """评论点赞"""
    service = CommentService(db)
    likes = await service.like_comment(comment_id)
    return success({"likes": likes})


@router.post("/comments/{comment_id}/report")
async def report_comment(
    comment_id: int,
    reason: Optional[str] = Body(None, embed=True),
    db: AsyncSession = Depends(get_db)
):
    """举报评论"""
    service = CommentService(db)
    await service.report_comment(comment_id, reason)
    return success(message="举报已收到")


# ============ 分类 / 系列 / 标签 ============

@router.get("/categories")
async def list_categories(db: AsyncSession = Depends(get_db)):
    """获取分类列表（含已发布文章数）"""
    service = BlogService(db)
    rows = await service.get_categories(published_only=True)
    return success([
        CategoryInfo.model_validate(c).model_copy(update={"post_count": n}).model_dump()
        for c, n in rows
    ])


@router.get("/series")
async def list_series(db: AsyncSession = Depends(get_db)):
    """获取系列列表（含已发布文章数）"""
    service = BlogService(db)
    rows = await service.get_series_list(published_only=True, active_only=True)
    return success([
        SeriesInfo.model_validate(s).model_copy(update={"total_posts": n}).model_dump()
        for s, n in rows
    ])


@router.get("/series/{slug}")
async def get_series(slug: str, db: AsyncSession = Depends(get_db)):
    """获取系列详情及按顺序排列的文章"""
    service = BlogService(db)
    series, posts = await service.get_series_by_slug(slug, published_only=True)

    items = []
    for post in posts:
        item = PostListItem.model_validate(post).model_dump()
        item["reading_time"] = reading_time(post.content)
        items.append(item)

    data = SeriesInfo.model_validate(series).model_copy(update={"total_posts": len(posts)}).model_dump()
    data["posts"] = items
    data["total_reading_time"] = sum(item["reading_time"] for item in items)
    return success(data)


@router.get("/tags")
async def list_tags(db: AsyncSession = Depends(get_db)):
    """获取标签列表（按使用次数排序）"""
    service = BlogService(db)
    tags = await service.get_tags()
    return success([TagInfo(**t).model_dump() for t in tags])
