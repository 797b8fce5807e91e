# -*- coding: utf-8 -*-
"""
评论审核流程测试
"""

import logging
from unittest.mock import MagicMock, patch

import pytest
from sqlalchemy import select

from core.errors import (
    AppException, DependencyException, ErrorCode, NotFoundException, ValidationException
)
from modules.blog.blog_models import BlogComment
from modules.blog.blog_comments import CommentService, ModerationPolicy
from modules.blog.blog_notify import CommentNotifier

from modules.blog.blog_tests.blog_conftest import RecordingNotifier, FailingNotifier


VISITOR = {"author": "Ann", "email": "ann@example.com"}


class TestModerationPolicy:
    """自动审核策略"""

    def test_clean_comment_auto_approved(self):
        policy = ModerationPolicy(["casino"])
        assert policy.initial_approval("Ann", "Great article!") is True

    @pytest.mark.parametrize("author,content", [
        ("Ann", "Visit my CASINO today"),
        ("Casino King", "hello"),
        ("Ann", "You are a Winner"),
        ("Ann", "claim your prize"),
    ])
    def test_spam_words_case_insensitive(self, author, content):
        policy = ModerationPolicy()
        assert policy.initial_approval(author, content) is False

    def test_custom_word_list(self):
        policy = ModerationPolicy(["crypto"])
        assert policy.is_spam("Ann", "buy CRYPTO now")
        assert not policy.is_spam("Ann", "casino")


class TestSubmitComment:
    """提交评论"""

    @pytest.mark.asyncio
    async def test_clean_comment_is_approved(self, db_session, make_post):
        post = await make_post("Commented")
        notifier = RecordingNotifier()
        service = CommentService(db_session, notifier=notifier)

        comment = await service.submit_comment(post.slug, "  Ann ", " ann@example.com ", "  Nice post  ")
        assert comment.id is not None
        assert comment.is_approved is True
        assert (comment.author, comment.email, comment.content) == ("Ann", "ann@example.com", "Nice post")
        assert comment.website is None
        assert notifier.calls == [(comment.id, post.id)]

    @pytest.mark.asyncio
    async def test_spam_comment_is_pending(self, db_session, make_post):
        post = await make_post("Spammed")
        comment = await CommentService(db_session).submit_comment(
            post.id, VISITOR["author"], VISITOR["email"], "Win the LOTTERY"
        )
        assert comment.is_approved is False

    @pytest.mark.asyncio
    async def test_post_ref_by_id_or_slug(self, db_session, make_post):
        post = await make_post("Ref Target")
        service = CommentService(db_session)
        by_slug = await service.submit_comment("ref-target", **VISITOR, content="one")
        by_int = await service.submit_comment(post.id, **VISITOR, content="two")
        by_digits = await service.submit_comment(str(post.id), **VISITOR, content="three")
        assert by_slug.post_id == by_int.post_id == by_digits.post_id == post.id

        with pytest.raises(NotFoundException):
            await service.submit_comment("missing-post", **VISITOR, content="x")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("author,email,content", [
        ("", "ann@example.com", "text"),
        ("Ann", "", "text"),
        ("Ann", "not-an-email", "text"),
        ("Ann", "ann@example", "text"),
        ("Ann", "a b@example.com", "text"),
        ("Ann", "ann@example.com", "   "),
        ("Ann", "ann@example.com", "x" * 1001),
    ])
    async def test_validation(self, db_session, make_post, author, email, content):
        post = await make_post("Validated")
        with pytest.raises(ValidationException):
            await CommentService(db_session).submit_comment(post.id, author, email, content)

    @pytest.mark.asyncio
    async def test_max_length_boundary(self, db_session, make_post):
        post = await make_post("Long")
        comment = await CommentService(db_session).submit_comment(post.id, **VISITOR, content="x" * 1000)
        assert len(comment.content) == 1000

    @pytest.mark.asyncio
    @pytest.mark.parametrize("exc", [
        DependencyException("postmark down", code=ErrorCode.EMAIL_SEND_FAILED),
        RuntimeError("unexpected"),
    ])
    async def test_notifier_failure_does_not_lose_comment(self, db_session, make_post, exc, caplog):
        post = await make_post("Resilient")
        notifier = FailingNotifier(exc)
        service = CommentService(db_session, notifier=notifier)

        with caplog.at_level(logging.WARNING, logger="modules.blog.blog_comments"):
            comment = await service.submit_comment(post.slug, **VISITOR, content="still saved")

        assert notifier.calls == 1
        stored = await db_session.execute(select(BlogComment).where(BlogComment.id == comment.id))
        assert stored.scalar_one().content == "still saved"
        assert "通知" in caplog.text


class TestModeration:
    """后台审核"""

    @pytest.mark.asyncio
    async def test_approve_reject_delete(self, db_session, make_post):
        post = await make_post("Moderated")
        service = CommentService(db_session)
        comment = await service.submit_comment(post.id, **VISITOR, content="casino")
        assert comment.is_approved is False

        approved = await service.moderate(comment.id, "approve")
        assert approved.is_approved is True

        rejected = await service.moderate(comment.id, "reject")
        assert rejected.is_approved is False
        comments, _ = await service.list_comments("all")
        assert [c.id for c in comments] == [comment.id]

        assert await service.moderate(comment.id, "delete") is None
        comments, summary = await service.list_comments("all")
        assert comments == []
        assert summary.total == 0

    @pytest.mark.asyncio
    async def test_invalid_action_and_unknown_id(self, db_session, make_post):
        post = await make_post("Strict")
        service = CommentService(db_session)
        comment = await service.submit_comment(post.id, **VISITOR, content="hi")

        with pytest.raises(ValidationException):
            await service.moderate(comment.id, "publish")
        with pytest.raises(NotFoundException):
            await service.moderate(4242, "approve")

    @pytest.mark.asyncio
    async def test_list_filters_and_summary(self, db_session, make_post):
        post = await make_post("Busy")
        other = await make_post("Quiet")
        service = CommentService(db_session)
        first = await service.submit_comment(post.id, **VISITOR, content="good")
        spam = await service.submit_comment(post.id, **VISITOR, content="viagra")
        latest = await service.submit_comment(other.id, **VISITOR, content="also good")

        comments, summary = await service.list_comments("all")
        assert [c.id for c in comments] == [latest.id, spam.id, first.id]
        assert summary.model_dump() == {"total": 3, "approved": 2, "pending": 1}
        assert comments[0].post.slug == "quiet"

        pending, summary = await service.list_comments("pending")
        assert [c.id for c in pending] == [spam.id]
        assert summary.total == 3

        approved, _ = await service.list_comments("approved", post_id=post.id)
        assert [c.id for c in approved] == [first.id]

        with pytest.raises(ValidationException):
            await service.list_comments("spam")

    @pytest.mark.asyncio
    async def test_list_approved_for_post(self, db_session, make_post):
        post = await make_post("Public")
        service = CommentService(db_session)
        visible = await service.submit_comment(post.id, **VISITOR, content="ok")
        await service.submit_comment(post.id, **VISITOR, content="casino")

        comments = await service.list_approved(post.slug)
        assert [c.id for c in comments] == [visible.id]


class TestCommentInteractions:
    """点赞 / 举报"""

    @pytest.mark.asyncio
    async def test_like_only_approved(self, db_session, make_post):
        post = await make_post("Likes")
        service = CommentService(db_session)
        approved = await service.submit_comment(post.id, **VISITOR, content="ok")
        pending = await service.submit_comment(post.id, **VISITOR, content="casino")

        assert await service.like_comment(approved.id) == 1
        assert await service.like_comment(approved.id) == 2

        with pytest.raises(AppException) as exc:
            await service.like_comment(pending.id)
        assert exc.value.http_status == 403
        with pytest.raises(NotFoundException):
            await service.like_comment(999)

    @pytest.mark.asyncio
    async def test_report_is_logged(self, db_session, make_post, caplog):
        post = await make_post("Reported")
        service = CommentService(db_session)
        comment = await service.submit_comment(post.id, **VISITOR, content="rude")

        with caplog.at_level(logging.WARNING, logger="modules.blog.blog_comments"):
            await service.report_comment(comment.id, "offensive")
        assert "offensive" in caplog.text


class TestCommentNotifier:
    """Postmark 通知"""

    def _comment(self):
        return MagicMock(id=1, author="Ann", email="ann@example.com", content="<b>hi</b>", is_approved=True)

    def _post(self):
        return MagicMock(id=2, title="Hello", slug="hello")

    @pytest.mark.asyncio
    async def test_skipped_without_configuration(self):
        notifier = CommentNotifier(server_token="", from_email="", to_email="")
        with patch("modules.blog.blog_notify.PostmarkClient") as client_cls:
            await notifier.notify_new_comment(self._comment(), self._post())
        client_cls.assert_not_called()

    @pytest.mark.asyncio
    async def test_sends_email(self):
        notifier = CommentNotifier("token", "blog@example.com", "owner@example.com", "https://example.com/")
        with patch("modules.blog.blog_notify.PostmarkClient") as client_cls:
            await notifier.notify_new_comment(self._comment(), self._post())

        client_cls.assert_called_once_with(server_token="token")
        kwargs = client_cls.return_value.emails.send.call_args.kwargs
        assert kwargs["To"] == "owner@example.com"
        assert kwargs["From"] == "blog@example.com"
        assert "https://example.com/blog/hello" in kwargs["TextBody"]
        assert "&lt;b&gt;hi&lt;/b&gt;" in kwargs["HtmlBody"]

    @pytest.mark.asyncio
    async def test_provider_error_raises_dependency_exception(self):
        notifier = CommentNotifier("token", "blog@example.com", "owner@example.com")
        with patch("modules.blog.blog_notify.PostmarkClient") as client_cls:
            client_cls.return_value.emails.send.side_effect = ConnectionError("boom")
            with pytest.raises(DependencyException) as exc:
                await notifier.notify_new_comment(self._comment(), self._post())
        assert exc.value.code == ErrorCode.EMAIL_SEND_FAILED
        assert exc.value.http_status == 502
