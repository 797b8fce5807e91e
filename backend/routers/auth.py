"""
认证路由
管理员登录与当前用户信息
"""

import logging
from datetime import datetime, timezone
from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from core.database import get_db
from core.security import (
    verify_password,
    create_token,
    TokenData,
    TokenResponse,
    get_current_user
)
from core.events import event_bus, Events
from core.errors import AuthException, ErrorCode, NotFoundException
from core.config import get_settings
from core.middleware import get_client_ip
from models import User
from schemas import UserLogin, UserInfo, success

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/auth", tags=["认证"])


@router.post("/login")
async def login(data: UserLogin, request: Request, db: AsyncSession = Depends(get_db)):
    """用户登录"""
    client_ip = get_client_ip(request)

    result = await db.execute(select(User).where(User.username == data.username))
    user = result.scalar_one_or_none()

    # 登录失败 - 用户不存在或密码错误
    if not user or not verify_password(data.password, user.password_hash):
        logger.warning(f"登录失败 - IP: {client_ip}, 用户名: {data.username}")
        raise AuthException(ErrorCode.LOGIN_FAILED)

    if not user.is_active:
        logger.warning(f"登录被阻止 - IP: {client_ip}, 用户ID: {user.id}, 原因: 账户已禁用")
        raise AuthException(ErrorCode.ACCOUNT_DISABLED)

    # 更新最后登录时间
    user.last_login = datetime.now(timezone.utc)
    await db.commit()

    token_data = TokenData(user_id=user.id, username=user.username, role=user.role)
    token = TokenResponse(
        access_token=create_token(token_data),
        expires_in=get_settings().jwt_expire_minutes * 60
    )

    event_bus.emit(Events.USER_LOGIN, "auth", {"user_id": user.id})

    return success({
        **token.model_dump(),
        "user": UserInfo.model_validate(user).model_dump(mode="json")
    })


@router.get("/me")
async def get_me(
    current_user: TokenData = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """获取当前用户信息"""
    result = await db.execute(select(User).where(User.id == current_user.user_id))
    user = result.scalar_one_or_none()

    if not user:
        raise NotFoundException("用户", current_user.user_id)

    return success(UserInfo.model_validate(user).model_dump(mode="json"))
