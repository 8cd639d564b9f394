"""工具包 - HTTP执行层与调用方重试工具。"""

from .http import (
    HttpClient,
    HttpClientConfig,
    HttpError,
    HttpExecutor,
    HttpNetworkError,
    HttpRequest,
    HttpResponse,
    HttpTimeoutError,
    LoggingInterceptor,
    RequestInterceptor,
)
from .retry import transport_retrying

__all__ = [
    "HttpClient",
    "HttpClientConfig",
    "HttpError",
    "HttpExecutor",
    "HttpNetworkError",
    "HttpRequest",
    "HttpResponse",
    "HttpTimeoutError",
    "LoggingInterceptor",
    "RequestInterceptor",
    "transport_retrying",
]
