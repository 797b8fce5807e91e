"""
博客模块测试夹具
"""

import pytest
import pytest_asyncio

from core.errors import DependencyException, ErrorCode
from modules.blog.blog_models import PostStatus
from modules.blog.blog_schemas import CategoryCreate, PostCreate
from modules.blog.blog_services import BlogService


class RecordingNotifier:
    """记录调用参数的通知器"""

    def __init__(self):
        self.calls = []

    async def notify_new_comment(self, comment, post):
        self.calls.append((comment.id, post.id))


class FailingNotifier:
    """总是失败的通知器"""

    def __init__(self, exc=None):
        self.exc = exc or DependencyException("postmark down", code=ErrorCode.EMAIL_SEND_FAILED)
        self.calls = 0

    async def notify_new_comment(self, comment, post):
        self.calls += 1
        raise self.exc


@pytest_asyncio.fixture
async def blog_service(db_session) -> BlogService:
    return BlogService(db_session)


@pytest_asyncio.fixture
async def category(blog_service):
    return await blog_service.create_category(CategoryCreate(name="Tech"))


@pytest.fixture
def make_post(blog_service, category):
    """文章工厂：默认已发布、属于 Tech 分类"""
    async def _make(title: str, status: str = PostStatus.PUBLISHED, **fields):
        author_id = fields.pop("author_id", 1)
        fields.setdefault("content", f"{title} content body")
        fields.setdefault("category_id", category.id)
        return await blog_service.create_post(
            PostCreate(title=title, status=status, **fields),
            author_id=author_id
        )
    return _make
