# -*- coding: utf-8 -*-
"""
后台编辑流程测试
"""

import pytest

from core.errors import ValidationException
from modules.blog.blog_editor import PostEditor
from modules.blog.blog_models import PostStatus
from modules.blog.blog_schemas import CategoryCreate, SeriesCreate


@pytest.fixture
def editor(blog_service) -> PostEditor:
    return PostEditor(blog_service, author_id=1)


class TestEditorFields:
    """字段编辑"""

    def test_title_drives_slug_until_edited(self, editor):
        editor.set_title("Hello World!!")
        assert editor.draft["slug"] == "hello-world"

        editor.set_slug("custom")
        editor.set_title("Another Title")
        assert editor.draft["slug"] == "custom"

    def test_tags_case_sensitive_set(self, editor):
        assert editor.add_tag("python") is True
        assert editor.add_tag("Python") is True
        assert editor.add_tag("python") is False
        assert editor.add_tag("  ") is False
        assert editor.tags == ["python", "Python"]

        assert editor.remove_tag("python") is True
        assert editor.remove_tag("python") is False
        assert editor.tags == ["Python"]

    def test_unknown_field(self, editor):
        with pytest.raises(KeyError):
            editor.set_fields(author_id=3)


class TestEditorSeries:
    """系列选择"""

    @pytest.mark.asyncio
    async def test_first_choice_assigns_next_position(self, editor, blog_service, make_post):
        series = await blog_service.create_series(SeriesCreate(title="Chosen"))
        await make_post("Existing", series_id=series.id)

        await editor.choose_series(series.id)
        assert editor.draft["series_order"] == 2

        # 同一系列再次选择时保留序号
        editor.set_fields(series_order=5)
        await editor.choose_series(series.id)
        assert editor.draft["series_order"] == 5

        await editor.choose_series(None)
        assert editor.draft["series_id"] is None
        assert editor.draft["series_order"] is None

    @pytest.mark.asyncio
    async def test_inline_create(self, editor, blog_service):
        category = await editor.create_category(CategoryCreate(name="Inline Cat"))
        series = await editor.create_series(SeriesCreate(title="Inline Series"))

        assert editor.draft["category_id"] == category.id
        assert editor.draft["series_id"] == series.id
        assert editor.draft["series_order"] == 1
        assert series.author_id == 1


class TestEditorSave:
    """保存 / 发布"""

    @pytest.mark.asyncio
    async def test_save_then_publish_updates_same_post(self, editor, blog_service, category):
        editor.set_title("Hello World!!")
        editor.set_fields(content="Body text", category_id=category.id, excerpt="short")
        editor.add_tag("intro")

        draft = await editor.save_draft()
        assert draft.slug == "hello-world"
        assert draft.status == PostStatus.DRAFT
        assert draft.published_at is None

        editor.set_fields(excerpt="updated")
        published = await editor.publish()
        assert published.id == draft.id
        assert published.status == PostStatus.PUBLISHED
        assert published.published_at is not None
        assert published.excerpt == "updated"
        assert published.tags == ["intro"]

        posts, total = await blog_service.get_posts()
        assert total == 1

    @pytest.mark.asyncio
    async def test_save_requires_content_and_category(self, editor):
        editor.set_title("Incomplete")
        with pytest.raises(ValidationException):
            await editor.save_draft()
        assert editor.post_id is None

    @pytest.mark.asyncio
    async def test_failed_publish_keeps_draft_status(self, editor, blog_service, category):
        editor.set_title("Not Yet")
        editor.set_fields(content="Body text", category_id=category.id)
        await editor.save_draft()

        editor.set_fields(content="")
        with pytest.raises(ValidationException):
            await editor.publish()
        assert editor.draft["status"] == PostStatus.DRAFT

        stored = await blog_service.get_post(editor.post_id)
        assert stored.status == PostStatus.DRAFT

    @pytest.mark.asyncio
    async def test_full_field_set_clears_removed_values(self, editor, blog_service, make_post):
        series = await blog_service.create_series(SeriesCreate(title="Leaving"))
        post = await make_post("Editable", series_id=series.id, tags=["a", "b"])

        existing = PostEditor(blog_service, author_id=1, post=post)
        existing.remove_tag("a")
        await existing.choose_series(None)
        saved = await existing.save_draft()

        assert saved.id == post.id
        assert saved.tags == ["b"]
        assert saved.series_id is None
        assert saved.series_order is None
        assert saved.slug == "editable"
