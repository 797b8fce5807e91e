"""
测试配置和 Fixtures
提供测试用的数据库会话、客户端和通用工具
"""

import os

# 立即设置测试环境变量，确保核心模块加载时使用测试配置
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession

from core.database import Base, get_db, engine as global_engine, async_session as TestSessionLocal
from core.events import event_bus
import models  # noqa: F401  强制加载核心模型以注册 Base.metadata
from modules.blog import blog_models  # noqa: F401
from main import app


# ==================== 测试夹具 (Fixtures) ====================

@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    创建测试用数据库会话
    每个测试函数使用独立的内存数据库，并自动注入到 FastAPI 中
    """
    async with global_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session = TestSessionLocal()

    async def _get_test_db():
        yield session

    app.dependency_overrides[get_db] = _get_test_db

    try:
        yield session
    finally:
        await session.rollback()
        await session.close()

        app.dependency_overrides.clear()
        event_bus.clear()

        async with global_engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
        # 释放连接，下一个测试使用新的内存库
        await global_engine.dispose()


@pytest.fixture
def db(db_session):
    """db_session 测试夹具的别名"""
    return db_session


@pytest_asyncio.fixture(scope="function")
async def client(db_session) -> AsyncGenerator[AsyncClient, None]:
    """创建异步测试客户端"""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def test_user_data() -> dict:
    """测试用户数据"""
    return {
        "username": "testuser",
        "password": "Test@123456",
        "nickname": "测试用户",
        "role": "guest"
    }


@pytest.fixture
def test_admin_data() -> dict:
    """测试管理员数据"""
    return {
        "username": "testadmin",
        "password": "Admin@123456",
        "nickname": "测试管理员",
        "role": "admin"
    }


@pytest_asyncio.fixture(scope="function")
async def admin_token(client: AsyncClient, db_session: AsyncSession, test_admin_data: dict) -> str:
    """提供登录后的管理员令牌字符串"""
    await create_test_user(db_session, test_admin_data)
    return await get_auth_token(client, test_admin_data["username"], test_admin_data["password"])


@pytest_asyncio.fixture(scope="function")
async def admin_client(client: AsyncClient, admin_token: str) -> AsyncClient:
    """提供已登录管理员权限的客户端"""
    client.headers["Authorization"] = f"Bearer {admin_token}"
    return client


@pytest_asyncio.fixture(scope="function")
async def user_client(client: AsyncClient, db_session: AsyncSession, test_user_data: dict) -> AsyncClient:
    """提供已登录普通用户权限的客户端"""
    await create_test_user(db_session, test_user_data)
    token = await get_auth_token(client, test_user_data["username"], test_user_data["password"])
    client.headers["Authorization"] = f"Bearer {token}"
    return client


# ==================== 工具函数 ====================

async def create_test_user(session: AsyncSession, user_data: dict) -> dict:
    """
    创建测试用户并返回用户信息
    """
    from models import User
    from core.security import hash_password

    user = User(
        username=user_data["username"],
        password_hash=hash_password(user_data["password"]),
        nickname=user_data.get("nickname", "测试用户"),
        role=user_data.get("role", "guest"),
        is_active=user_data.get("is_active", True)
    )
    session.add(user)
    await session.commit()
    await session.refresh(user)

    return {
        "id": user.id,
        "username": user.username,
        "role": user.role
    }


async def get_auth_token(client: AsyncClient, username: str, password: str) -> str:
    """
    获取认证令牌
    """
    response = await client.post(
        "/api/v1/auth/login",
        json={"username": username, "password": password}
    )
    if response.status_code == 200:
        return response.json()["data"]["access_token"]
    return ""
