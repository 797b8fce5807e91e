"""
评论审核流程
访客提交 -> 自动审核策略 -> 入库 -> 通知站长；管理员可通过/驳回/删除
"""

import re
import logging
from typing import Iterable, List, Optional, Tuple, Union

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func

from core.config import get_settings
from core.errors import (
    ErrorCode, AppException, ValidationException, NotFoundException, DependencyException
)
from .blog_models import BlogComment, BlogPost
from .blog_notify import CommentNotifier
from .blog_schemas import CommentSummary
from .blog_services import BlogService

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

MODERATION_ACTIONS = ("approve", "reject", "delete")
COMMENT_FILTERS = ("all", "pending", "approved")


class ModerationPolicy:
    """
    评论自动审核策略

    内容或昵称中出现敏感词（不区分大小写）时进入待审核，否则自动通过。
    """

    def __init__(self, spam_words: Optional[Iterable[str]] = None):
        if spam_words is None:
            spam_words = get_settings().comment_spam_words
        self.spam_words = [w.lower() for w in spam_words if w]

    def is_spam(self, author: str, content: str) -> bool:
        text = f"{author}\n{content}".lower()
        return any(word in text for word in self.spam_words)

    def initial_approval(self, author: str, content: str) -> bool:
        """新评论的初始审核状态"""
        return not self.is_spam(author, content)


class CommentService:
    """评论服务"""

    def __init__(
        self,
        db: AsyncSession,
        notifier: Optional[CommentNotifier] = None,
        policy: Optional[ModerationPolicy] = None,
        max_length: Optional[int] = None
    ):
        self.db = db
        self.posts = BlogService(db)
        self.notifier = notifier
        self.policy = policy or ModerationPolicy()
        self.max_length = max_length or get_settings().comment_max_length

    async def resolve_post(self, post_ref: Union[int, str]) -> BlogPost:
        """post_ref 可以是文章ID或slug（优先按slug匹配）"""
        post = None
        if isinstance(post_ref, str):
            post = await self.posts.find_post_by_slug(post_ref)
            if post is None and post_ref.isdigit():
                post = await self.posts.get_post(int(post_ref))
        else:
            post = await self.posts.get_post(post_ref)

        if post is None:
            raise NotFoundException("文章", post_ref)
        return post

    async def get_comment(self, comment_id: int) -> Optional[BlogComment]:
        result = await self.db.execute(
            select(BlogComment).where(BlogComment.id == comment_id)
        )
        return result.scalar_one_or_none()

    def _validate(self, author: str, email: str, content: str) -> None:
        errors = []
        if not author:
            errors.append({"field": "author", "error": "昵称不能为空"})
        if not email:
            errors.append({"field": "email", "error": "邮箱不能为空"})
        elif not EMAIL_PATTERN.match(email):
            errors.append({"field": "email", "error": "邮箱格式不正确"})
        if not content:
            errors.append({"field": "content", "error": "评论内容不能为空"})
        elif len(content) > self.max_length:
            errors.append({"field": "content", "error": f"评论内容不能超过 {self.max_length} 个字符"})
        if errors:
            raise ValidationException(errors[0]["error"], errors=errors)

    async def submit_comment(
        self,
        post_ref: Union[int, str],
        author: str,
        email: str,
        content: str,
        website: Optional[str] = None
    ) -> BlogComment:
        """
        提交评论

        评论入库后再通知站长，通知失败只记录日志，不影响提交结果。
        """
        post = await self.resolve_post(post_ref)

        author = (author or "").strip()
        email = (email or "").strip()
        content = (content or "").strip()
        website = (website or "").strip() or None
        self._validate(author, email, content)

        comment = BlogComment(
            post_id=post.id,
            author=author,
            email=email,
            content=content,
            website=website,
            is_approved=self.policy.initial_approval(author, content),
        )
        self.db.add(comment)
        await self.db.commit()
        await self.db.refresh(comment)

        state = "自动通过" if comment.is_approved else "待审核"
        logger.info(f"新评论 #{comment.id} -> {post.slug} ({state})")

        if self.notifier is not None:
            try:
                await self.notifier.notify_new_comment(comment, post)
            except DependencyException as e:
                logger.warning(f"评论 #{comment.id} 通知失败: {e.message}")
            except Exception:
                logger.exception(f"评论 #{comment.id} 通知异常")

        return comment

    async def list_approved(self, post_ref: Union[int, str]) -> List[BlogComment]:
        """文章下已通过审核的评论（按时间正序）"""
        post = await self.resolve_post(post_ref)
        result = await self.db.execute(
            select(BlogComment)
            .where(BlogComment.post_id == post.id, BlogComment.is_approved.is_(True))
            .order_by(BlogComment.created_at, BlogComment.id)
        )
        return list(result.scalars().all())

    async def moderate(self, comment_id: int, action: str) -> Optional[BlogComment]:
        """
        审核评论

        Args:
            comment_id: 评论ID
            action: approve / reject / delete

        Returns:
            更新后的评论，删除时返回 None
        """
        if action not in MODERATION_ACTIONS:
            raise ValidationException(f"action 必须是 {', '.join(MODERATION_ACTIONS)} 之一")

        comment = await self.get_comment(comment_id)
        if not comment:
            raise NotFoundException("评论", comment_id)

        if action == "delete":
            await self.db.delete(comment)
            await self.db.commit()
            logger.info(f"删除评论 #{comment_id}")
            return None

        comment.is_approved = action == "approve"
        await self.db.commit()
        await self.db.refresh(comment)
        logger.info(f"审核评论 #{comment_id}: {action}")
        return comment

    async def get_summary(self) -> CommentSummary:
        """全部评论的统计"""
        result = await self.db.execute(
            select(BlogComment.is_approved, func.count(BlogComment.id))
            .group_by(BlogComment.is_approved)
        )
        counts = {bool(approved): count for approved, count in result.all()}
        approved = counts.get(True, 0)
        pending = counts.get(False, 0)
        return CommentSummary(total=approved + pending, approved=approved, pending=pending)

    async def list_comments(
        self,
        status: str = "all",
        post_id: Optional[int] = None
    ) -> Tuple[List[BlogComment], CommentSummary]:
        """后台评论列表（最新在前）及统计"""
        if status not in COMMENT_FILTERS:
            raise ValidationException(f"status 必须是 {', '.join(COMMENT_FILTERS)} 之一")

        query = select(BlogComment)
        if status == "pending":
            query = query.where(BlogComment.is_approved.is_(False))
        elif status == "approved":
            query = query.where(BlogComment.is_approved.is_(True))
        if post_id:
            query = query.where(BlogComment.post_id == post_id)
        query = query.order_by(BlogComment.created_at.desc(), BlogComment.id.desc())

        result = await self.db.execute(query)
        comments = list(result.scalars().all())
        return comments, await self.get_summary()

    async def like_comment(self, comment_id: int) -> int:
        """评论点赞（仅限已通过审核的评论），返回最新点赞数"""
        comment = await self.get_comment(comment_id)
        if not comment:
            raise NotFoundException("评论", comment_id)
        if not comment.is_approved:
            raise AppException(ErrorCode.BLOG_COMMENT_NOT_APPROVED)

        comment.likes = (comment.likes or 0) + 1
        await self.db.commit()
        return comment.likes

    async def report_comment(self, comment_id: int, reason: Optional[str] = None) -> None:
        """举报评论（仅记录日志）"""
        comment = await self.get_comment(comment_id)
        if not comment:
            raise NotFoundException("评论", comment_id)
        logger.warning(f"评论 #{comment_id} 被举报 (文章 {comment.post_id}): {reason or '未填写原因'}")
