"""
错误处理模块测试
"""
import pytest
from fastapi import status
from fastapi.responses import JSONResponse
from core.errors import (
    ErrorCode,
    AppException,
    ValidationException,
    AuthException,
    NotFoundException,
    ConflictException,
    PermissionException,
    DependencyException,
    ERROR_MESSAGES,
    ERROR_HTTP_STATUS
)

class TestErrors:
    """错误处理测试"""

    def test_error_codes(self):
        """测试错误码定义"""
        assert ErrorCode.SUCCESS == 0
        assert ErrorCode.INTERNAL_ERROR == 1000
        assert ErrorCode.UNAUTHORIZED == 2001
        assert ErrorCode.BLOG_SLUG_EXISTS == 4010

    def test_every_code_has_message_and_status(self):
        """测试每个错误码都定义了默认消息和 HTTP 状态码"""
        for code in ErrorCode:
            assert code in ERROR_MESSAGES
            assert code in ERROR_HTTP_STATUS

    def test_app_exception(self):
        """测试应用异常基类"""
        exc = AppException(code=ErrorCode.RESOURCE_NOT_FOUND)
        assert exc.code == ErrorCode.RESOURCE_NOT_FOUND
        assert exc.http_status == status.HTTP_404_NOT_FOUND
        assert exc.message == ERROR_MESSAGES[ErrorCode.RESOURCE_NOT_FOUND]

        # 测试 to_dict
        d = exc.to_dict()
        assert d["code"] == ErrorCode.RESOURCE_NOT_FOUND
        assert d["data"] is None

        # 测试 to_response
        resp = exc.to_response()
        assert isinstance(resp, JSONResponse)
        assert resp.status_code == status.HTTP_404_NOT_FOUND

    def test_unknown_code_defaults_to_500(self):
        """测试未登记的错误码按 500 处理"""
        exc = AppException(code=9999)
        assert exc.http_status == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert exc.message == "未知错误"

    def test_specific_exceptions(self):
        """测试具体异常类"""
        # 验证异常
        v_exc = ValidationException(errors=[{"field": "title", "error": "标题不能为空"}])
        assert v_exc.code == ErrorCode.VALIDATION_ERROR
        assert v_exc.http_status == status.HTTP_400_BAD_REQUEST
        assert v_exc.data["errors"][0]["field"] == "title"
        assert ValidationException("x").data is None

        # 认证异常
        a_exc = AuthException()
        assert a_exc.code == ErrorCode.UNAUTHORIZED
        assert a_exc.http_status == status.HTTP_401_UNAUTHORIZED
        assert AuthException(ErrorCode.ACCOUNT_DISABLED).http_status == status.HTTP_403_FORBIDDEN

        # 资源不存在异常
        n_exc = NotFoundException(resource="文章", resource_id="hello-world")
        assert n_exc.code == ErrorCode.RESOURCE_NOT_FOUND
        assert "ID: hello-world" in n_exc.message
        assert NotFoundException("文章").message == "文章不存在"

        # 权限异常
        p_exc = PermissionException()
        assert p_exc.code == ErrorCode.PERMISSION_DENIED
        assert p_exc.http_status == status.HTTP_403_FORBIDDEN

    @pytest.mark.parametrize("code,http_status", [
        (ErrorCode.RESOURCE_EXISTS, status.HTTP_409_CONFLICT),
        (ErrorCode.BLOG_SLUG_EXISTS, status.HTTP_409_CONFLICT),
        (ErrorCode.BLOG_RELATION_EXISTS, status.HTTP_400_BAD_REQUEST),
    ])
    def test_conflict_exception(self, code, http_status):
        """测试唯一性冲突异常（重复关联按 400 返回）"""
        exc = ConflictException("duplicate", code=code)
        assert exc.code == code
        assert exc.http_status == http_status
        assert ConflictException().code == ErrorCode.RESOURCE_EXISTS

    def test_dependency_exception(self):
        """测试外部依赖异常"""
        exc = DependencyException(code=ErrorCode.EMAIL_SEND_FAILED)
        assert exc.http_status == status.HTTP_502_BAD_GATEWAY
        assert exc.message == "外部服务调用失败"
        assert DependencyException().code == ErrorCode.EXTERNAL_API_ERROR
