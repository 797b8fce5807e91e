"""
博客数据模型
表名遵循隔离协议：blog_前缀
"""

from datetime import datetime, timezone
from typing import Optional
from sqlalchemy import (
    String, Integer, Boolean, DateTime, Text, ForeignKey, JSON,
    UniqueConstraint, CheckConstraint, Index
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PostStatus:
    """文章状态（任意状态之间可以自由切换）"""
    DRAFT = "DRAFT"
    PUBLISHED = "PUBLISHED"
    ARCHIVED = "ARCHIVED"

    ALL = (DRAFT, PUBLISHED, ARCHIVED)


class BlogCategory(Base):
    """博客分类"""
    __tablename__ = "blog_categories"
    __table_args__ = {"comment": "博客分类表"}

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100))
    slug: Mapped[str] = mapped_column(String(100), unique=True, index=True)
    description: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    color: Mapped[str] = mapped_column(String(20), default="#3B82F6")
    icon: Mapped[str] = mapped_column(String(20), default="📝")
    meta_title: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    meta_description: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    sort_order: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)


class BlogSeries(Base):
    """博客系列（按 series_order 顺序阅读的一组文章）"""
    __tablename__ = "blog_series"
    __table_args__ = {"comment": "博客系列表"}

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(200))
    slug: Mapped[str] = mapped_column(String(200), unique=True, index=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    cover_image: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    color: Mapped[str] = mapped_column(String(20), default="#3B82F6")
    icon: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    difficulty: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)  # beginner/intermediate/advanced
    tags: Mapped[list] = mapped_column(JSON, default=list)
    meta_title: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    meta_description: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    sort_order: Mapped[int] = mapped_column(Integer, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    author_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)


class BlogPost(Base):
    """博客文章"""
    __tablename__ = "blog_posts"
    __table_args__ = (
        Index("idx_blog_posts_series", "series_id", "series_order"),
        {"comment": "博客文章表"},
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(200))
    slug: Mapped[str] = mapped_column(String(200), unique=True, index=True)
    excerpt: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    content: Mapped[str] = mapped_column(Text)
    cover_image: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    # 状态：DRAFT草稿, PUBLISHED已发布, ARCHIVED已归档
    status: Mapped[str] = mapped_column(String(20), default=PostStatus.DRAFT, index=True)

    # 标签（自由文本，区分大小写，去重后保持顺序）
    tags: Mapped[list] = mapped_column(JSON, default=list)

    # 分类
    category_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("blog_categories.id", ondelete="SET NULL"),
        nullable=True
    )

    # 系列位置（series_order 仅在 series_id 存在时有意义）
    series_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("blog_series.id", ondelete="SET NULL"),
        nullable=True
    )
    series_order: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # SEO
    meta_title: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    meta_description: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    # 作者
    author_id: Mapped[int] = mapped_column(Integer, index=True)

    # 统计
    views: Mapped[int] = mapped_column(Integer, default=0)
    likes: Mapped[int] = mapped_column(Integer, default=0)

    # 时间
    published_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    # 关联关系
    category: Mapped[Optional["BlogCategory"]] = relationship("BlogCategory", lazy="selectin", viewonly=True)
    series: Mapped[Optional["BlogSeries"]] = relationship("BlogSeries", lazy="selectin", viewonly=True)


class BlogPostRelation(Base):
    """
    相关文章（无向边）

    source/target 记录管理员添加时的方向，pair_low/pair_high 为规范化后的端点，
    唯一约束保证任意两篇文章之间最多一条边。
    """
    __tablename__ = "blog_post_relations"
    __table_args__ = (
        UniqueConstraint("pair_low", "pair_high", name="uq_blog_relation_pair"),
        CheckConstraint("source_post_id <> target_post_id", name="ck_blog_relation_no_self"),
        {"comment": "相关文章关联表"},
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    source_post_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("blog_posts.id", ondelete="CASCADE"), index=True
    )
    target_post_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("blog_posts.id", ondelete="CASCADE"), index=True
    )
    pair_low: Mapped[int] = mapped_column(Integer)
    pair_high: Mapped[int] = mapped_column(Integer)
    relation_type: Mapped[str] = mapped_column(String(30), default="related")
    created_by: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    def other_end(self, post_id: int) -> int:
        """给定一端，返回另一端的文章ID"""
        return self.target_post_id if self.source_post_id == post_id else self.source_post_id


class BlogComment(Base):
    """访客评论"""
    __tablename__ = "blog_comments"
    __table_args__ = (
        Index("idx_blog_comments_post_approved", "post_id", "is_approved"),
        {"comment": "博客评论表"},
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    post_id: Mapped[int] = mapped_column(Integer, ForeignKey("blog_posts.id", ondelete="CASCADE"))
    content: Mapped[str] = mapped_column(Text)
    author: Mapped[str] = mapped_column(String(100))
    email: Mapped[str] = mapped_column(String(255))
    website: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    is_approved: Mapped[bool] = mapped_column(Boolean, default=False)
    likes: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    post: Mapped["BlogPost"] = relationship("BlogPost", lazy="selectin", viewonly=True)
