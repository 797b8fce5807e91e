"""
系统引导初始化
首次启动时自动创建默认管理员账户
"""

import logging
from sqlalchemy import select, or_

from .database import async_session
from .config import get_settings
from .security import hash_password
from models import User

logger = logging.getLogger(__name__)


async def init_admin_user():
    """
    初始化默认管理员账户
    仅在首次启动时创建，如果已存在管理员账户则跳过
    """
    settings = get_settings()

    # 清理密码字符串（移除可能的注释和空白字符）
    admin_password = settings.admin_password.strip()
    if '#' in admin_password:
        admin_password = admin_password.split('#')[0].strip()

    if not admin_password:
        logger.error("管理员密码不能为空")
        return {
            "created": False,
            "message": "管理员密码不能为空"
        }

    async with async_session() as db:
        try:
            result = await db.execute(
                select(User).where(
                    or_(
                        User.role == "admin",
                        User.username == settings.admin_username
                    )
                )
            )
            existing_users = result.scalars().all()

            if any(u.role == "admin" for u in existing_users):
                return {"created": False, "message": "管理员已存在"}

            if any(u.username == settings.admin_username for u in existing_users):
                logger.error(f"用户名 {settings.admin_username} 已被占用，无法创建管理员")
                return {"created": False, "message": "用户名已被占用"}

            admin = User(
                username=settings.admin_username,
                password_hash=hash_password(admin_password),
                nickname=settings.admin_nickname,
                role="admin",
                is_active=True
            )
            db.add(admin)
            await db.commit()

            return {
                "created": True,
                "username": settings.admin_username,
                "password": admin_password
            }
        except Exception:
            await db.rollback()
            raise
