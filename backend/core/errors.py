"""
标准错误码体系
提供统一的错误码定义和异常处理

所有错误响应使用 {"code", "message", "data"} 结构，
code 为业务错误码，HTTP 状态码由错误码决定。
"""

from typing import Optional, Any, Dict, Tuple
from enum import IntEnum
from fastapi import status
from fastapi.responses import JSONResponse


class ErrorCode(IntEnum):
    """
    标准错误码

    错误码规范：
    - 0: 成功
    - 1xxx: 系统级错误
    - 2xxx: 认证/授权错误
    - 3xxx: 业务通用错误
    - 4xxx: 博客模块错误
    - 5xxx: 第三方服务错误
    """

    SUCCESS = 0

    # 系统级
    INTERNAL_ERROR = 1000

    # 认证/授权
    UNAUTHORIZED = 2001
    PERMISSION_DENIED = 2004
    ACCOUNT_DISABLED = 2005
    LOGIN_FAILED = 2007

    # 业务通用
    VALIDATION_ERROR = 3001
    RESOURCE_NOT_FOUND = 3002
    RESOURCE_EXISTS = 3003
    RESOURCE_CONFLICT = 3004

    # 博客模块
    BLOG_SLUG_EXISTS = 4010
    BLOG_RELATION_EXISTS = 4011
    BLOG_COMMENT_NOT_APPROVED = 4020

    # 第三方服务
    EXTERNAL_API_ERROR = 5001
    EMAIL_SEND_FAILED = 5003


# 错误码 -> (默认消息, HTTP 状态码)
_ERROR_TABLE: Dict[int, Tuple[str, int]] = {
    ErrorCode.SUCCESS: ("操作成功", status.HTTP_200_OK),

    ErrorCode.INTERNAL_ERROR: ("服务器内部错误，请稍后重试", status.HTTP_500_INTERNAL_SERVER_ERROR),

    ErrorCode.UNAUTHORIZED: ("请先登录", status.HTTP_401_UNAUTHORIZED),
    ErrorCode.PERMISSION_DENIED: ("没有权限执行此操作", status.HTTP_403_FORBIDDEN),
    ErrorCode.ACCOUNT_DISABLED: ("账户已被禁用", status.HTTP_403_FORBIDDEN),
    ErrorCode.LOGIN_FAILED: ("用户名或密码错误", status.HTTP_401_UNAUTHORIZED),

    ErrorCode.VALIDATION_ERROR: ("参数验证失败", status.HTTP_400_BAD_REQUEST),
    ErrorCode.RESOURCE_NOT_FOUND: ("请求的资源不存在", status.HTTP_404_NOT_FOUND),
    ErrorCode.RESOURCE_EXISTS: ("资源已存在", status.HTTP_409_CONFLICT),
    ErrorCode.RESOURCE_CONFLICT: ("资源冲突", status.HTTP_409_CONFLICT),

    ErrorCode.BLOG_SLUG_EXISTS: ("slug 已存在", status.HTTP_409_CONFLICT),
    ErrorCode.BLOG_RELATION_EXISTS: ("关联关系已存在", status.HTTP_400_BAD_REQUEST),
    ErrorCode.BLOG_COMMENT_NOT_APPROVED: ("评论尚未通过审核", status.HTTP_403_FORBIDDEN),

    ErrorCode.EXTERNAL_API_ERROR: ("外部服务调用失败", status.HTTP_502_BAD_GATEWAY),
    ErrorCode.EMAIL_SEND_FAILED: ("邮件发送失败", status.HTTP_502_BAD_GATEWAY),
}

ERROR_MESSAGES: Dict[int, str] = {code: msg for code, (msg, _) in _ERROR_TABLE.items()}
ERROR_HTTP_STATUS: Dict[int, int] = {code: http for code, (_, http) in _ERROR_TABLE.items()}


class AppException(Exception):
    """
    应用异常基类

    Usage:
        raise AppException(ErrorCode.BLOG_COMMENT_NOT_APPROVED)
        raise AppException(ErrorCode.VALIDATION_ERROR, data={"errors": [...]})
    """

    def __init__(
        self,
        code: int = ErrorCode.INTERNAL_ERROR,
        message: Optional[str] = None,
        data: Any = None
    ):
        self.code = code
        self.message = message or ERROR_MESSAGES.get(code, "未知错误")
        self.data = data
        self.http_status = ERROR_HTTP_STATUS.get(code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        super().__init__(self.message)

    def to_response(self) -> JSONResponse:
        """转换为 JSONResponse"""
        return JSONResponse(
            status_code=self.http_status,
            content=self.to_dict()
        )

    def to_dict(self) -> dict:
        """转换为字典"""
        return {
            "code": int(self.code),
            "message": self.message,
            "data": self.data
        }


class ValidationException(AppException):
    """参数验证异常，errors 为 [{"field", "error"}] 列表"""

    def __init__(self, message: str = "参数验证失败", errors: Optional[list] = None):
        super().__init__(
            code=ErrorCode.VALIDATION_ERROR,
            message=message,
            data={"errors": errors} if errors else None
        )


class AuthException(AppException):
    """认证异常（登录失败、账户禁用）"""

    def __init__(
        self,
        code: int = ErrorCode.UNAUTHORIZED,
        message: Optional[str] = None
    ):
        super().__init__(code=code, message=message)


class NotFoundException(AppException):
    """资源不存在异常"""

    def __init__(self, resource: str = "资源", resource_id: Any = None):
        message = f"{resource}不存在"
        if resource_id is not None:
            message = f"{resource} (ID: {resource_id}) 不存在"
        super().__init__(
            code=ErrorCode.RESOURCE_NOT_FOUND,
            message=message
        )


class ConflictException(AppException):
    """唯一性冲突异常（重复 slug、重复关联等）"""

    def __init__(self, message: str = "资源已存在", code: int = ErrorCode.RESOURCE_EXISTS):
        super().__init__(code=code, message=message)


class PermissionException(AppException):
    """权限异常"""

    def __init__(self, message: str = "没有权限执行此操作"):
        super().__init__(
            code=ErrorCode.PERMISSION_DENIED,
            message=message
        )


class DependencyException(AppException):
    """外部依赖（邮件等）调用失败"""

    def __init__(self, message: str = "外部服务调用失败", code: int = ErrorCode.EXTERNAL_API_ERROR):
        super().__init__(code=code, message=message)


# ==================== 异常处理器 ====================

# HTTP 状态码 -> 业务错误码（FastAPI/Starlette 抛出的 HTTPException）
_HTTP_CODE_MAPPING = {
    400: ErrorCode.VALIDATION_ERROR,
    401: ErrorCode.UNAUTHORIZED,
    403: ErrorCode.PERMISSION_DENIED,
    404: ErrorCode.RESOURCE_NOT_FOUND,
    409: ErrorCode.RESOURCE_CONFLICT,
}


def register_exception_handlers(app):
    """
    注册异常处理器

    在 main.py 中调用：
        from core.errors import register_exception_handlers
        register_exception_handlers(app)
    """
    from fastapi.exceptions import RequestValidationError
    from starlette.exceptions import HTTPException as StarletteHTTPException

    @app.exception_handler(AppException)
    async def handle_app_exception(request, exc: AppException):
        return exc.to_response()

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request, exc: RequestValidationError):
        errors = [
            {
                "field": ".".join(str(loc) for loc in error["loc"]),
                "error": error["msg"],
                "type": error["type"]
            }
            for error in exc.errors()
        ]
        return ValidationException(errors=errors).to_response()

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request, exc: StarletteHTTPException):
        code = _HTTP_CODE_MAPPING.get(exc.status_code, ErrorCode.INTERNAL_ERROR)
        message = str(exc.detail) if exc.detail else ERROR_MESSAGES.get(code, "请求失败")

        return JSONResponse(
            status_code=exc.status_code,
            content={
                "code": int(code),
                "message": message,
                "data": None
            },
            headers=getattr(exc, "headers", None)
        )
