"""Common 层模块。

最基础层，提供：
- 异常体系
- 日志系统
- 编码工具
"""

from .exceptions import (
    AuthenticationError,
    ErrorCode,
    InvalidExpiryError,
    InvalidRequestError,
    InvalidResponseError,
    InvalidSessionStateError,
    OssError,
    RemoteError,
    SessionCreationError,
    TransportError,
)
from .logging import logger, setup_logging

__all__ = [
    # 异常
    "AuthenticationError",
    "ErrorCode",
    "InvalidExpiryError",
    "InvalidRequestError",
    "InvalidResponseError",
    "InvalidSessionStateError",
    "OssError",
    "RemoteError",
    "SessionCreationError",
    "TransportError",
    # 日志
    "logger",
    "setup_logging",
]
