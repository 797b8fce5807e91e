"""
博客数据验证模式
请求体同时接受 snake_case 与 camelCase 字段名（后台前端使用 camelCase）
"""

from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .blog_models import PostStatus


class CamelModel(BaseModel):
    """请求体基类"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def normalize_tags(tags: Optional[List[str]]) -> List[str]:
    """标签去重（区分大小写），去除首尾空白和空标签，保持原有顺序"""
    result: List[str] = []
    for tag in tags or []:
        tag = tag.strip()
        if tag and tag not in result:
            result.append(tag)
    return result


def _normalize_status(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip().upper()
    if value not in PostStatus.ALL:
        raise ValueError(f"状态必须是 {', '.join(PostStatus.ALL)} 之一")
    return value


# ============ 分类 ============

class CategoryCreate(CamelModel):
    """创建分类（slug 由名称自动生成）"""
    name: str = Field(..., max_length=100)
    description: Optional[str] = None
    color: Optional[str] = None
    icon: Optional[str] = None
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None


class CategoryBrief(BaseModel):
    """分类摘要（嵌入文章信息中）"""
    id: int
    name: str
    slug: str
    color: str
    icon: str

    model_config = ConfigDict(from_attributes=True)


class CategoryInfo(BaseModel):
    """分类信息"""
    id: int
    name: str
    slug: str
    description: Optional[str]
    color: str
    icon: str
    sort_order: int
    post_count: int = 0
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ============ 系列 ============

class SeriesCreate(CamelModel):
    """创建系列"""
    title: str = Field(..., max_length=200)
    slug: Optional[str] = None  # 不填则由标题生成
    description: Optional[str] = None
    cover_image: Optional[str] = None
    color: Optional[str] = None
    icon: Optional[str] = None
    difficulty: Optional[str] = None
    tags: List[str] = []
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None

    @field_validator("tags")
    @classmethod
    def _dedupe_tags(cls, v):
        return normalize_tags(v)


class SeriesUpdate(CamelModel):
    """更新系列"""
    title: Optional[str] = None
    slug: Optional[str] = None
    description: Optional[str] = None
    cover_image: Optional[str] = None
    color: Optional[str] = None
    icon: Optional[str] = None
    difficulty: Optional[str] = None
    tags: Optional[List[str]] = None
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None
    is_active: Optional[bool] = None


class SeriesReorder(CamelModel):
    """调整系列内文章位置（1 开始）"""
    post_id: int
    position: int = Field(..., ge=1)


class SeriesBrief(BaseModel):
    """系列摘要"""
    id: int
    title: str
    slug: str
    color: str
    icon: Optional[str]
    difficulty: Optional[str]

    model_config = ConfigDict(from_attributes=True)


class SeriesInfo(BaseModel):
    """系列信息"""
    id: int
    title: str
    slug: str
    description: Optional[str]
    cover_image: Optional[str]
    color: str
    icon: Optional[str]
    difficulty: Optional[str]
    tags: List[str] = []
    sort_order: int
    is_active: bool
    total_posts: int = 0
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ============ 文章 ============

class PostCreate(CamelModel):
    """创建文章（后台编辑器提交完整字段）"""
    title: str = ""
    slug: Optional[str] = None  # 不填则由标题生成
    excerpt: Optional[str] = None
    content: str = ""
    cover_image: Optional[str] = None
    category_id: Optional[int] = None
    series_id: Optional[int] = None
    series_order: Optional[int] = None
    tags: List[str] = []
    status: str = PostStatus.DRAFT
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None

    @field_validator("tags")
    @classmethod
    def _dedupe_tags(cls, v):
        return normalize_tags(v)

    @field_validator("status")
    @classmethod
    def _check_status(cls, v):
        return _normalize_status(v)


class PostUpdate(CamelModel):
    """更新文章（未提供的字段保持原值）"""
    title: Optional[str] = None
    slug: Optional[str] = None
    excerpt: Optional[str] = None
    content: Optional[str] = None
    cover_image: Optional[str] = None
    category_id: Optional[int] = None
    series_id: Optional[int] = None
    series_order: Optional[int] = None
    tags: Optional[List[str]] = None
    status: Optional[str] = None
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None

    @field_validator("tags")
    @classmethod
    def _dedupe_tags(cls, v):
        return None if v is None else normalize_tags(v)

    @field_validator("status")
    @classmethod
    def _check_status(cls, v):
        return _normalize_status(v)


class PostListItem(BaseModel):
    """文章列表项"""
    id: int
    title: str
    slug: str
    excerpt: Optional[str]
    cover_image: Optional[str]
    status: str
    tags: List[str] = []
    category: Optional[CategoryBrief] = None
    series: Optional[SeriesBrief] = None
    series_order: Optional[int]
    author_id: int
    views: int
    likes: int
    published_at: Optional[datetime]
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PostInfo(PostListItem):
    """文章详情"""
    content: str
    category_id: Optional[int]
    series_id: Optional[int]
    meta_title: Optional[str]
    meta_description: Optional[str]
    created_at: datetime


class PostLike(CamelModel):
    """文章点赞"""
    action: str = "like"  # like / unlike


class TagInfo(BaseModel):
    """标签使用统计"""
    name: str
    count: int


# ============ 相关文章 ============

class RelationCreate(CamelModel):
    """添加相关文章"""
    target_post_id: int
    relation_type: str = Field("related", max_length=30)


class RelationDelete(CamelModel):
    """删除相关文章"""
    relation_id: int


class RelatedPostView(BaseModel):
    """相关文章视图（关联边的另一端）"""
    id: int
    title: str
    slug: str
    excerpt: Optional[str]
    status: str
    cover_image: Optional[str]
    category: Optional[CategoryBrief] = None
    author_id: int
    published_at: Optional[datetime]
    relation_type: str
    relation_id: int


# ============ 评论 ============

class CommentCreate(CamelModel):
    """访客提交评论（字段校验在服务层完成，以返回统一的错误信息）"""
    author: str = ""
    email: str = ""
    content: str = ""
    website: Optional[str] = None


class CommentModerate(CamelModel):
    """审核评论"""
    comment_id: int
    action: str  # approve / reject / delete


class CommentInfo(BaseModel):
    """公开评论信息（不含邮箱）"""
    id: int
    post_id: int
    author: str
    website: Optional[str]
    content: str
    likes: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CommentPostBrief(BaseModel):
    """评论所属文章"""
    id: int
    title: str
    slug: str

    model_config = ConfigDict(from_attributes=True)


class AdminCommentInfo(CommentInfo):
    """后台评论信息"""
    email: str
    is_approved: bool
    post: Optional[CommentPostBrief] = None


class CommentSummary(BaseModel):
    """评论统计"""
    total: int = 0
    approved: int = 0
    pending: int = 0
