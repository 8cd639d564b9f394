"""客户端上下文。

凭证、地域域名、HTTP执行器、时钟和签名引擎的不可变组合，
由 OssClient 创建后在所有请求构建器之间共享。
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone

from aury.oss.toolkit.http import HttpExecutor

from .credential import Credential
from .request import Endpoint
from .sign import SignatureEngine


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ClientContext:
    """请求构建所需的共享配置。

    Attributes:
        credential: 访问凭证
        endpoint: 地域访问域名（如 oss-cn-hangzhou.aliyuncs.com）
        executor: HTTP执行能力
        enable_https: 是否使用 HTTPS
        clock: 当前时间来源（带时区）
        signer: 签名引擎
    """

    credential: Credential
    endpoint: str
    executor: HttpExecutor
    enable_https: bool = True
    clock: Callable[[], datetime] = utc_now
    signer: SignatureEngine = field(default_factory=SignatureEngine)

    def endpoint_for(self, bucket: str | None = None, object_key: str | None = None) -> Endpoint:
        """生成指向服务、存储空间或对象的 Endpoint。"""
        return Endpoint(
            region_host=self.endpoint,
            bucket_name=bucket,
            object_key=object_key,
            enable_https=self.enable_https,
        )


__all__ = [
    "ClientContext",
    "utc_now",
]
