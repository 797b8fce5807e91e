"""
新评论邮件通知
通过 Postmark 发送，发送失败抛出 DependencyException，由调用方决定是否忽略
"""

import asyncio
import html
import logging
from typing import Optional

from postmarker.core import PostmarkClient

from core.config import get_settings
from core.errors import ErrorCode, DependencyException
from utils.text import truncate
from .blog_models import BlogComment, BlogPost

logger = logging.getLogger(__name__)


class CommentNotifier:
    """新评论通知（发送给站长）"""

    def __init__(
        self,
        server_token: Optional[str] = None,
        from_email: Optional[str] = None,
        to_email: Optional[str] = None,
        site_url: Optional[str] = None
    ):
        settings = get_settings()
        self.server_token = server_token or settings.postmark_server_token
        self.from_email = from_email or settings.email_from
        self.to_email = to_email or settings.comment_notify_to
        self.site_url = (site_url or settings.site_url).rstrip("/")

    @property
    def configured(self) -> bool:
        return bool(self.server_token and self.from_email and self.to_email)

    def _build_message(self, comment: BlogComment, post: BlogPost) -> dict:
        post_url = f"{self.site_url}/blog/{post.slug}"
        state = "已自动通过" if comment.is_approved else "待审核"
        subject = f"新评论: {post.title}"
        text_body = (
            f"{comment.author} <{comment.email}> 评论了《{post.title}》（{state}）\n\n"
            f"{comment.content}\n\n{post_url}"
        )
        html_body = (
            f"<p><strong>{html.escape(comment.author)}</strong> "
            f"&lt;{html.escape(comment.email)}&gt; 评论了 "
            f"<a href=\"{html.escape(post_url)}\">{html.escape(post.title)}</a>（{state}）</p>"
            f"<blockquote>{html.escape(comment.content)}</blockquote>"
        )
        return {
            "From": self.from_email,
            "To": self.to_email,
            "Subject": truncate(subject, 120),
            "HtmlBody": html_body,
            "TextBody": text_body,
            "MessageStream": "outbound",
        }

    def _send(self, message: dict) -> None:
        client = PostmarkClient(server_token=self.server_token)
        client.emails.send(**message)

    async def notify_new_comment(self, comment: BlogComment, post: BlogPost) -> None:
        """发送新评论通知（未配置 Postmark 时跳过）"""
        if not self.configured:
            logger.info(f"跳过评论通知（未配置 Postmark）: 评论 #{comment.id}")
            return

        message = self._build_message(comment, post)
        try:
            # postmarker 为同步客户端
            await asyncio.to_thread(self._send, message)
        except Exception as e:
            raise DependencyException(f"评论通知发送失败: {e}", code=ErrorCode.EMAIL_SEND_FAILED) from e

        logger.info(f"已发送评论通知: 评论 #{comment.id} -> {self.to_email}")
