"""
数据库核心模块单元测试
"""

import pytest
from unittest.mock import patch, MagicMock, AsyncMock
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from core.database import Base, get_db


class TestDatabase:
    """数据库功能测试"""

    @pytest.mark.asyncio
    async def test_engine_connection(self, db_session):
        """测试数据库引擎连接和基本查询"""
        result = await db_session.execute(text("SELECT 1"))
        assert result.scalar() == 1

    @pytest.mark.asyncio
    async def test_get_db_commits_and_closes(self):
        """测试 get_db 正常结束时提交并关闭会话"""
        mock_session = AsyncMock(spec=AsyncSession)
        mock_session.__aenter__.return_value = mock_session
        mock_factory = MagicMock(return_value=mock_session)

        with patch("core.database.async_session", mock_factory):
            gen = get_db()
            session = await gen.__anext__()
            assert session is mock_session
            with pytest.raises(StopAsyncIteration):
                await gen.__anext__()

        mock_session.commit.assert_called_once()
        mock_session.close.assert_called_once()

    @pytest.mark.asyncio
    async def test_get_db_rolls_back_on_error(self):
        """测试 get_db 出错时回滚"""
        mock_session = AsyncMock(spec=AsyncSession)
        mock_session.__aenter__.return_value = mock_session
        mock_factory = MagicMock(return_value=mock_session)

        with patch("core.database.async_session", mock_factory):
            gen = get_db()
            await gen.__anext__()
            with pytest.raises(RuntimeError):
                await gen.athrow(RuntimeError("boom"))

        mock_session.rollback.assert_called_once()
        mock_session.commit.assert_not_called()

    def test_base_metadata(self):
        """测试模型均已注册到 Base.metadata"""
        tables = set(Base.metadata.tables)
        assert {
            "sys_users", "blog_categories", "blog_series", "blog_posts",
            "blog_post_relations", "blog_comments"
        } <= tables
