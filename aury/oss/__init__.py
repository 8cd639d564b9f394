"""阿里云 OSS 异步客户端。

提供存储空间与对象操作的链式接口，核心包括：
- 请求签名（OSS V1 / HMAC-SHA1）
- 单次使用的请求构建器
- 分片上传协调器
- 预签名 URL

使用示例:
    from aury.oss import OssClient

    async with OssClient("AccessKey ID", "AccessKey Secret", "oss-cn-hangzhou.aliyuncs.com") as client:
        obj = client.bucket("my-bucket").object("hello.txt")
        await obj.put_object().send_content(b"hello")
"""

from .bucket import OssBucket
from .client import OssClient
from .common import (
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
    logger,
    setup_logging,
)
from .config import LogSettings, OssSettings, configure_logging
from .core import (
    ClientContext,
    Credential,
    Endpoint,
    PresignedUrlBuilder,
    RequestBuilder,
    Scope,
    SignatureEngine,
    SignedRequest,
)
from .models import Acl, DataRedundancyType, RestoreTier, StorageClass
from .multipart import MultipartSession, MultipartUploadCoordinator, PartRecord, SessionState
from .object import OssObject
from .toolkit import HttpClient, HttpClientConfig, transport_retrying

__all__ = [
    # 入口
    "OssBucket",
    "OssClient",
    "OssObject",
    # 核心
    "ClientContext",
    "Credential",
    "Endpoint",
    "PresignedUrlBuilder",
    "RequestBuilder",
    "Scope",
    "SignatureEngine",
    "SignedRequest",
    # 分片上传
    "MultipartSession",
    "MultipartUploadCoordinator",
    "PartRecord",
    "SessionState",
    # 枚举
    "Acl",
    "DataRedundancyType",
    "RestoreTier",
    "StorageClass",
    # 配置
    "LogSettings",
    "OssSettings",
    "configure_logging",
    # HTTP
    "HttpClient",
    "HttpClientConfig",
    "transport_retrying",
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
