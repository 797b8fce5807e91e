"""
健康检查路由
"""

import time
import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy import text

from core.config import get_settings
from core.database import engine

logger = logging.getLogger(__name__)

router = APIRouter(tags=["健康检查"])

# 系统启动时间
_start_time = datetime.now(timezone.utc)


class ComponentHealth(BaseModel):
    """组件健康状态"""
    status: str
    message: Optional[str] = None
    latency_ms: Optional[float] = None


class HealthStatus(BaseModel):
    """健康状态响应"""
    status: str  # healthy, unhealthy
    version: str
    timestamp: str
    uptime_seconds: float
    components: dict


async def check_database() -> ComponentHealth:
    """检查数据库连接"""
    start = time.time()
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(f"数据库健康检查失败: {e}")
        return ComponentHealth(status="unhealthy", message=f"数据库连接失败: {e}")

    return ComponentHealth(
        status="healthy",
        message="数据库连接正常",
        latency_ms=round((time.time() - start) * 1000, 2)
    )


@router.get("/health")
async def health_check():
    """健康检查（数据库不可用时返回 503）"""
    database = await check_database()
    now = datetime.now(timezone.utc)
    health = HealthStatus(
        status=database.status,
        version=get_settings().app_version,
        timestamp=now.isoformat(),
        uptime_seconds=round((now - _start_time).total_seconds(), 2),
        components={"database": database.model_dump()}
    )
    status_code = 200 if database.status == "healthy" else 503
    return JSONResponse(status_code=status_code, content=health.model_dump())
