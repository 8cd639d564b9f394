"""OSS 客户端异常定义。

所有异常都继承自 OssError，携带错误代码、HTTP 状态码和元数据。
本地校验失败在发起网络请求之前抛出；远端错误按原样携带服务端返回的错误码。
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """错误代码枚举。"""

    UNKNOWN_ERROR = "UnknownError"

    # 本地校验错误
    INVALID_REQUEST = "InvalidRequest"
    INVALID_EXPIRY = "InvalidExpiry"
    INVALID_SESSION_STATE = "InvalidSessionState"

    # 网络错误
    TRANSPORT_FAILURE = "TransportFailure"

    # 远端错误
    AUTHENTICATION_FAILED = "AuthenticationFailed"
    REMOTE_ERROR = "RemoteError"
    SESSION_CREATION_FAILED = "SessionCreationFailed"
    INVALID_RESPONSE = "InvalidResponse"


class OssError(Exception):
    """OSS 客户端异常基类。

    Attributes:
        message: 错误消息
        code: 错误代码
        status_code: HTTP状态码（本地错误为 None）
        metadata: 元数据
    """

    default_code: ErrorCode = ErrorCode.UNKNOWN_ERROR
    retriable: bool = False

    def __init__(
        self,
        message: str,
        *,
        code: ErrorCode | None = None,
        status_code: int | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.status_code = status_code
        self.metadata = metadata or {}

    def to_dict(self) -> dict[str, Any]:
        """转换为字典。"""
        return {
            "message": self.message,
            "code": self.code.value,
            "status_code": self.status_code,
            "metadata": self.metadata,
        }

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} code={self.code.value} message={self.message}>"


class InvalidRequestError(OssError):
    """请求参数不完整或非法（在发送前检出）。"""

    default_code = ErrorCode.INVALID_REQUEST


class InvalidExpiryError(OssError):
    """预签名 URL 的过期时间不在未来。"""

    default_code = ErrorCode.INVALID_EXPIRY


class InvalidSessionStateError(OssError):
    """分片上传会话已完成或已中止，或终态转换发生竞争。"""

    default_code = ErrorCode.INVALID_SESSION_STATE

    def __init__(self, message: str, *, upload_id: str | None = None, state: str | None = None) -> None:
        metadata: dict[str, Any] = {}
        if upload_id is not None:
            metadata["upload_id"] = upload_id
        if state is not None:
            metadata["state"] = state
        super().__init__(message, metadata=metadata)


class TransportError(OssError):
    """网络或连接层失败，调用方可以重试。"""

    default_code = ErrorCode.TRANSPORT_FAILURE
    retriable = True


class InvalidResponseError(OssError):
    """OSS 返回成功状态，但响应体无法解析。"""

    default_code = ErrorCode.INVALID_RESPONSE

    def __init__(self, message: str, *, body: bytes | None = None, status_code: int | None = None) -> None:
        super().__init__(message, status_code=status_code)
        self.body = body


class RemoteError(OssError):
    """OSS 返回了非 2xx 状态码。

    Attributes:
        error_code: OSS 错误码（如 NoSuchKey）
        error_message: OSS 错误描述
        request_id: 请求ID
        host_id: 访问的主机
        ec: OSS 内部错误编号
        body: 原始响应体
    """

    default_code = ErrorCode.REMOTE_ERROR

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        error_code: str | None = None,
        error_message: str | None = None,
        request_id: str | None = None,
        host_id: str | None = None,
        ec: str | None = None,
        body: bytes | None = None,
    ) -> None:
        metadata = {
            key: value
            for key, value in (
                ("error_code", error_code),
                ("request_id", request_id),
                ("host_id", host_id),
                ("ec", ec),
            )
            if value is not None
        }
        super().__init__(message, status_code=status_code, metadata=metadata)
        self.error_code = error_code
        self.error_message = error_message
        self.request_id = request_id
        self.host_id = host_id
        self.ec = ec
        self.body = body

    @classmethod
    def from_remote(cls, other: RemoteError, message: str | None = None) -> RemoteError:
        """以另一个远端错误的内容构造本类异常。"""
        return cls(
            message or other.message,
            status_code=other.status_code,
            error_code=other.error_code,
            error_message=other.error_message,
            request_id=other.request_id,
            host_id=other.host_id,
            ec=other.ec,
            body=other.body,
        )


class AuthenticationError(RemoteError):
    """签名校验失败，通常意味着规范化逻辑有误，重试无效。"""

    default_code = ErrorCode.AUTHENTICATION_FAILED


class SessionCreationError(RemoteError):
    """初始化分片上传失败。"""

    default_code = ErrorCode.SESSION_CREATION_FAILED


__all__ = [
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
]
