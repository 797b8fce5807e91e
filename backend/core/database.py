"""
数据库连接管理
提供异步数据库连接和会话管理
"""

import json
import logging
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy import text, event
from sqlalchemy.pool import StaticPool
from typing import AsyncGenerator

from .config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()


def _engine_options() -> dict:
    """根据数据库类型生成引擎参数（SQLite 不支持连接池大小等参数）"""
    if settings.is_mysql:
        return {
            "pool_pre_ping": True,
            "pool_size": 10,
            "max_overflow": 20,
            "connect_args": {
                "init_command": f"SET time_zone = '{settings.db_time_zone}'"
            }
        }
    options = {"connect_args": {"check_same_thread": False}}
    if ":memory:" in settings.db_url:
        # 内存库只存在于单个连接中，所有会话共享同一连接
        options["poolclass"] = StaticPool
    return options


# 创建异步引擎
engine = create_async_engine(
    settings.db_url,
    echo=False,  # 禁用 SQL 详细输出，避免日志过多
    **_engine_options()
)


def _sqlite_json_contains(target, candidate) -> bool:
    """SQLite 下的 JSON_CONTAINS：候选值为 JSON 文本，数组按元素精确匹配"""
    if not target or candidate is None:
        return False
    try:
        document = json.loads(target)
        value = json.loads(candidate)
    except (TypeError, ValueError):
        return False
    if isinstance(document, list):
        return value in document
    return document == value


@event.listens_for(engine.sync_engine, "connect")
def _on_connect(dbapi_connection, connection_record):
    """连接初始化：MySQL 统一会话时区，SQLite 打开外键约束（级联删除依赖它）并注册 json_contains"""
    cursor = dbapi_connection.cursor()
    try:
        if settings.is_mysql:
            cursor.execute(f"SET time_zone = '{settings.db_time_zone}'")
        else:
            cursor.execute("PRAGMA foreign_keys=ON")
    finally:
        cursor.close()

    if not settings.is_mysql:
        dbapi_connection.create_function("json_contains", 2, _sqlite_json_contains)


# 会话工厂
async_session = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False
)


class Base(DeclarativeBase):
    """模型基类"""
    pass


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """获取数据库会话（依赖注入用）"""
    async with async_session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def ensure_database_exists():
    """确保 MySQL 数据库存在，如果不存在则尝试创建"""
    admin_url = f"mysql+aiomysql://{settings.db_user}:{settings.db_password}@{settings.db_host}:{settings.db_port}"
    admin_engine = create_async_engine(admin_url, echo=False)

    try:
        async with admin_engine.connect() as conn:
            result = await conn.execute(
                text("SELECT SCHEMA_NAME FROM INFORMATION_SCHEMA.SCHEMATA WHERE SCHEMA_NAME = :name"),
                {"name": settings.db_name}
            )
            if result.fetchone() is None:
                logger.info(f"数据库 '{settings.db_name}' 不存在，正在创建...")
                await conn.execute(text(
                    f"CREATE DATABASE `{settings.db_name}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
                ))
                await conn.commit()
                logger.info(f"数据库 '{settings.db_name}' 创建成功")
            else:
                logger.debug(f"数据库 '{settings.db_name}' 已存在")
    except Exception as e:
        if "Access denied" in str(e):
            logger.error(f"用户 '{settings.db_user}' 没有创建数据库的权限，请手动创建 {settings.db_name}")
        else:
            logger.error(f"检查/创建数据库失败: {e}")
        raise
    finally:
        await admin_engine.dispose()


async def init_db():
    """初始化数据库（创建所有表）"""
    # 确保模型已注册到 Base.metadata
    import models  # noqa: F401
    from modules.blog import blog_models  # noqa: F401

    if settings.is_mysql:
        await ensure_database_exists()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.debug(f"数据库表初始化完成（共 {len(Base.metadata.sorted_tables)} 张表）")


async def close_db():
    """关闭数据库连接"""
    await engine.dispose()
