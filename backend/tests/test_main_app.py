"""
主应用端点和全局异常处理单元测试
覆盖：API 信息、路由注册、标准错误格式
"""

import pytest
from httpx import AsyncClient

from core.errors import ErrorCode
from main import app


class TestRoutes:
    """路由注册测试"""

    def test_blog_routes_registered(self):
        """测试博客公开与后台路由均已注册"""
        paths = {route.path for route in app.routes}

        assert "/api/v1/blog/posts/{slug}" in paths
        assert "/api/v1/blog/posts/{post_ref}/comments" in paths
        assert "/api/v1/admin/blog/posts/{slug}/related" in paths
        assert "/api/v1/admin/blog/comments" in paths
        assert "/api/v1/auth/login" in paths
        assert "/health" in paths


@pytest.mark.asyncio
class TestRootEndpoints:
    """根路径端点测试"""

    async def test_api_info(self, client: AsyncClient):
        """测试 API 信息端点"""
        response = await client.get("/api")
        assert response.status_code == 200

        data = response.json()
        assert data["name"] == "Portfolio Blog"
        assert "version" in data


@pytest.mark.asyncio
class TestGlobalExceptionHandler:
    """全局异常处理测试"""

    async def test_not_found_format(self, client: AsyncClient):
        """测试未知路由返回标准格式"""
        response = await client.get("/api/v1/nonexistent")
        assert response.status_code == 404

        body = response.json()
        assert body["code"] == ErrorCode.RESOURCE_NOT_FOUND
        assert body["data"] is None

    async def test_app_exception_format(self, client: AsyncClient):
        """测试业务异常返回标准格式"""
        response = await client.get("/api/v1/blog/posts/missing-post")
        assert response.status_code == 404

        body = response.json()
        assert body["code"] == ErrorCode.RESOURCE_NOT_FOUND
        assert "missing-post" in body["message"]

    async def test_request_validation_format(self, client: AsyncClient):
        """测试请求参数校验失败返回 400 与字段信息"""
        response = await client.get("/api/v1/blog/posts", params={"page": 0})
        assert response.status_code == 400

        body = response.json()
        assert body["code"] == ErrorCode.VALIDATION_ERROR
        assert body["data"]["errors"][0]["field"] == "query.page"

    async def test_login_validation(self, client: AsyncClient):
        """测试登录请求体校验"""
        response = await client.post("/api/v1/auth/login", json={"username": ""})
        assert response.status_code == 400
