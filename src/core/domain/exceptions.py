"""Base domain exceptions.

所有领域异常都应继承自 DomainException，并可以通过定义 http_status_code 和 error_code
类属性来指定 HTTP 响应细节。

抓取相关异常（FetchError 及其子类）只在最小边界内被捕获并降级处理，
正常情况下不会到达 HTTP 层。
"""

from fastapi import status


class DomainException(Exception):
    """Base exception for all domain errors.

    子类可以通过定义以下类属性来自定义 HTTP 响应：
    - http_status_code: HTTP 状态码（默认 400）
    - error_code: 错误代码字符串（默认 "DOMAIN_ERROR"）
    """

    http_status_code: int = status.HTTP_400_BAD_REQUEST
    error_code: str = "DOMAIN_ERROR"

    def __init__(self, message: str = "A domain error occurred"):
        self.message = message
        super().__init__(self.message)


class EntityNotFoundError(DomainException):
    """Raised when an entity is not found."""

    http_status_code = status.HTTP_404_NOT_FOUND
    error_code = "NOT_FOUND"

    def __init__(self, entity_type: str, entity_id: str | None = None):
        message = f"{entity_type} not found"
        if entity_id:
            message = f"{entity_type} with id '{entity_id}' not found"
        super().__init__(message)


# ============ 抓取错误分类 ============


class FetchError(DomainException):
    """Base class for upstream fetch failures."""

    http_status_code = status.HTTP_502_BAD_GATEWAY
    error_code = "FETCH_ERROR"


class TransportError(FetchError):
    """网络不可达、连接失败或超时。"""

    error_code = "TRANSPORT_ERROR"


class ProtocolError(FetchError):
    """上游返回了非 2xx 状态码。"""

    error_code = "PROTOCOL_ERROR"

    def __init__(self, status_code: int, message: str | None = None):
        self.status_code = status_code
        super().__init__(message or f"Unexpected HTTP status {status_code}")


class DecodeError(FetchError):
    """JSON 格式错误或结构不符合预期。"""

    error_code = "DECODE_ERROR"


class URLResolutionError(FetchError):
    """endpoint 无法解析为合法的绝对 URL。"""

    error_code = "URL_RESOLUTION_ERROR"
