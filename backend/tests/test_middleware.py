"""
中间件单元测试
测试缓存控制、安全响应头和请求ID
"""

import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
class TestMiddleware:
    """中间件测试"""

    async def test_api_cache_control_headers(self, client: AsyncClient):
        """测试 API 路径是否禁用了浏览器缓存"""
        response = await client.get("/api/v1/blog/categories")
        assert response.status_code == 200

        # 验证缓存控制头
        cc = response.headers.get("Cache-Control", "")
        assert "no-cache" in cc
        assert "no-store" in cc
        assert "must-revalidate" in cc
        assert response.headers.get("Pragma") == "no-cache"

    async def test_security_headers(self, client: AsyncClient):
        """测试安全响应头是否正确添加"""
        response = await client.get("/api/v1/blog/categories")

        assert response.headers.get("X-Content-Type-Options") == "nosniff"
        assert response.headers.get("X-Frame-Options") == "DENY"
        assert "strict-origin-when-cross-origin" in response.headers.get("Referrer-Policy", "")

    async def test_request_id_header(self, client: AsyncClient):
        """测试请求ID透传"""
        response = await client.get("/api/v1/blog/tags", headers={"X-Request-ID": "abc123"})

        assert response.headers.get("X-Request-ID") == "abc123"
        assert response.headers.get("X-Response-Time", "").endswith("ms")

    async def test_non_api_no_cache_control(self, client: AsyncClient):
        """测试非 API 路径不受强制禁用缓存影响"""
        response = await client.get("/health")

        cc = response.headers.get("Cache-Control", "")
        assert "no-store" not in cc
        assert "X-Request-ID" not in response.headers
