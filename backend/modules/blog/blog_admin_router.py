"""
博客后台API路由
整个路由统一由 require_admin 保护
"""

from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from core.database import get_db
from core.errors import NotFoundException
from core.security import get_current_user, require_admin, TokenData
from core.events import event_bus, Events
from schemas import success, paginate

from .blog_schemas import (
    CategoryCreate, CategoryInfo, SeriesCreate, SeriesUpdate, SeriesInfo, SeriesReorder,
    PostCreate, PostUpdate, PostListItem, RelationCreate, RelationDelete,
    CommentModerate, AdminCommentInfo
)
from .blog_services import BlogService
from .blog_relations import RelationService
from .blog_comments import CommentService
from .blog_router import post_detail

router = APIRouter(
    prefix="/api/v1/admin/blog",
    tags=["博客管理"],
    dependencies=[Depends(require_admin())]
)


# ============ 相关文章 ============

@router.post("/posts/{slug}/related")
async def add_related(
    slug: str,
    data: RelationCreate,
    db: AsyncSession = Depends(get_db),
    user: TokenData = Depends(get_current_user)
):
    """添加相关文章（无向，任一方向已存在即冲突）"""
    service = RelationService(db)
    view = await service.add_relation(slug, data.target_post_id, data.relation_type, user.user_id)
    return success(view.model_dump(), "关联成功")


@router.delete("/posts/{slug}/related")
async def remove_related(
    slug: str,
    data: RelationDelete,
    db: AsyncSession = Depends(get_db)
):
    """删除相关文章关联"""
    service = RelationService(db)
    await service.remove_relation(data.relation_id)
    return success(message="已取消关联")


# ============ 评论审核 ============

@router.get("/comments")
async def list_comments(
    status: str = Query("all"),
    post_id: Optional[int] = Query(None, alias="postId"),
    db: AsyncSession = Depends(get_db)
):
    """评论列表及统计"""
    service = CommentService(db)
    comments, summary = await service.list_comments(status, post_id)
    return success({
        "comments": [AdminCommentInfo.model_validate(c).model_dump() for c in comments],
        "summary": summary.model_dump()
    })


@router.patch("/comments")
async def moderate_comment(data: CommentModerate, db: AsyncSession = Depends(get_db)):
    """审核评论：approve / reject / delete"""
    service = CommentService(db)
    comment = await service.moderate(data.comment_id, data.action)

    event_bus.emit(Events.COMMENT_MODERATED, "blog", {
        "comment_id": data.comment_id,
        "action": data.action
    })

    if comment is None:
        return success(message="评论已删除")
    return success(AdminCommentInfo.model_validate(comment).model_dump(), "审核完成")


# ============ 分类 ============

@router.get("/categories")
async def list_categories(db: AsyncSession = Depends(get_db)):
    """分类列表（含全部文章数）"""
    service = BlogService(db)
    rows = await service.get_categories()
    return success([
        CategoryInfo.model_validate(c).model_copy(update={"post_count": n}).model_dump()
        for c, n in rows
    ])


@router.post("/categories")
async def create_category(data: CategoryCreate, db: AsyncSession = Depends(get_db)):
    """创建分类"""
    service = BlogService(db)
    category = await service.create_category(data)
    return success(CategoryInfo.model_validate(category).model_dump(), "创建成功")


@router.delete("/categories/{category_id}")
async def delete_category(category_id: int, db: AsyncSession = Depends(get_db)):
    """删除分类"""
    service = BlogService(db)
    await service.delete_category(category_id)
    return success(message="删除成功")


# ============ 系列 ============

@router.get("/series")
async def list_series(db: AsyncSession = Depends(get_db)):
    """系列列表（含全部文章数）"""
    service = BlogService(db)
    rows = await service.get_series_list()
    return success([
        SeriesInfo.model_validate(s).model_copy(update={"total_posts": n}).model_dump()
        for s, n in rows
    ])


@router.post("/series")
async def create_series(
    data: SeriesCreate,
    db: AsyncSession = Depends(get_db),
    user: TokenData = Depends(get_current_user)
):
    """创建系列"""
    service = BlogService(db)
    series = await service.create_series(data, author_id=user.user_id)
    return success(SeriesInfo.model_validate(series).model_dump(), "创建成功")


async def _series_detail(service: BlogService, series) -> dict:
    posts = await service.get_series_posts(series.id)
    data = SeriesInfo.model_validate(series).model_copy(update={"total_posts": len(posts)}).model_dump()
    data["posts"] = [PostListItem.model_validate(p).model_dump() for p in posts]
    return data


@router.get("/series/{series_id}")
async def get_series(series_id: int, db: AsyncSession = Depends(get_db)):
    """系列详情（含所有状态的文章）"""
    service = BlogService(db)
    series = await service.get_series(series_id)
    if not series:
        raise NotFoundException("系列", series_id)
    return success(await _series_detail(service, series))


@router.put("/series/{series_id}")
async def update_series(series_id: int, data: SeriesUpdate, db: AsyncSession = Depends(get_db)):
    """更新系列"""
    service = BlogService(db)
    series = await service.update_series(series_id, data)
    return success(SeriesInfo.model_validate(series).model_dump(), "更新成功")


@router.delete("/series/{series_id}")
async def delete_series(series_id: int, db: AsyncSession = Depends(get_db)):
    """删除系列（系列中仍有文章时拒绝）"""
    service = BlogService(db)
    await service.delete_series(series_id)
    return success(message="删除成功")


@router.post("/series/{series_id}/reorder")
async def reorder_series(series_id: int, data: SeriesReorder, db: AsyncSession = Depends(get_db)):
    """调整系列内文章顺序"""
    service = BlogService(db)
    posts = await service.reorder_series(series_id, data.post_id, data.position)
    return success([
        {"id": p.id, "title": p.title, "slug": p.slug, "series_order": p.series_order}
        for p in posts
    ])


# ============ 文章 ============

@router.get("/posts")
async def list_posts(
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    status: Optional[str] = None,
    category_id: Optional[int] = None,
    series_id: Optional[int] = None,
    tag: Optional[str] = None,
    keyword: Optional[str] = None,
    db: AsyncSession = Depends(get_db)
):
    """文章列表（所有状态）"""
    service = BlogService(db)
    posts, total = await service.get_posts(
        page=page,
        size=size,
        status=status.upper() if status else None,
        category_id=category_id,
        series_id=series_id,
        tag=tag,
        keyword=keyword
    )
    items = [PostListItem.model_validate(p).model_dump() for p in posts]
    return paginate(items, total, page, size)


@router.post("/posts")
async def create_post(
    data: PostCreate,
    db: AsyncSession = Depends(get_db),
    user: TokenData = Depends(get_current_user)
):
    """创建文章"""
    service = BlogService(db)
    post = await service.create_post(data, user.user_id)

    event_bus.emit(Events.CONTENT_CREATED, "blog", {"post_id": post.id, "title": post.title})

    return success(post_detail(post), "创建成功")


@router.get("/posts/{post_id}")
async def get_post(post_id: int, db: AsyncSession = Depends(get_db)):
    """文章详情（不计浏览量）"""
    service = BlogService(db)
    post = await service.get_post(post_id)
    if not post:
        raise NotFoundException("文章", post_id)
    return success(post_detail(post))


async def _update_post(post_id: int, data: PostUpdate, db: AsyncSession) -> dict:
    service = BlogService(db)
    post = await service.update_post(post_id, data)

    event_bus.emit(Events.CONTENT_UPDATED, "blog", {"post_id": post.id, "status": post.status})

    return success(post_detail(post), "更新成功")


@router.put("/posts/{post_id}")
async def update_post(post_id: int, data: PostUpdate, db: AsyncSession = Depends(get_db)):
    """更新文章"""
    return await _update_post(post_id, data, db)


@router.patch("/posts/{post_id}")
async def patch_post(post_id: int, data: PostUpdate, db: AsyncSession = Depends(get_db)):
    """部分更新文章（如仅切换状态）"""
    return await _update_post(post_id, data, db)


@router.delete("/posts/{post_id}")
async def delete_post(post_id: int, db: AsyncSession = Depends(get_db)):
    """删除文章（同时删除评论和关联）"""
    service = BlogService(db)
    await service.delete_post(post_id)

    event_bus.emit(Events.CONTENT_DELETED, "blog", {"post_id": post_id})

    return success(message="删除成功")


@router.post("/posts/{post_id}/duplicate")
async def duplicate_post(
    post_id: int,
    db: AsyncSession = Depends(get_db),
    user: TokenData = Depends(get_current_user)
):
    """复制文章为草稿"""
    service = BlogService(db)
    post = await service.duplicate_post(post_id, user.user_id)

    event_bus.emit(Events.CONTENT_CREATED, "blog", {"post_id": post.id, "title": post.title})

    return success(post_detail(post), "复制成功")
