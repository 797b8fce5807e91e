"""
Alembic 迁移环境配置
使用同步驱动（pymysql）执行迁移
"""

import sys
from pathlib import Path
from logging.config import fileConfig

from sqlalchemy import create_engine, pool
from sqlalchemy.engine import Connection

from alembic import context

# 确保可以导入项目模块
BACKEND_DIR = Path(__file__).parent.parent.resolve()
sys.path.insert(0, str(BACKEND_DIR))

# 导入配置和模型基类
from core.config import get_settings
from core.database import Base

# 加载所有模型，否则 Alembic 无法检测到表结构
import models  # noqa: F401,E402
from modules.blog import blog_models  # noqa: F401,E402

# Alembic 配置对象
config = context.config

# 设置日志
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# 获取应用配置
settings = get_settings()

# 设置数据库 URL（迁移使用同步驱动）
config.set_main_option("sqlalchemy.url", settings.db_url_sync)

# 目标元数据
target_metadata = Base.metadata


def run_migrations_offline() -> None:
    """
    离线模式运行迁移

    仅生成 SQL 脚本，不实际执行
    """
    url = config.get_main_option("sqlalchemy.url")
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        compare_type=True,
        compare_server_default=True,
    )

    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection: Connection) -> None:
    """执行迁移"""
    context.configure(
        connection=connection,
        target_metadata=target_metadata,
        compare_type=True,
        compare_server_default=True,
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """
    在线模式运行迁移

    实际连接数据库并执行迁移
    """
    connectable = create_engine(settings.db_url_sync, poolclass=pool.NullPool)

    with connectable.connect() as connection:
        do_run_migrations(connection)


# 根据环境选择迁移模式
if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
