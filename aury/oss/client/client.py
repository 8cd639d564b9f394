"""客户端入口。"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime

from aury.oss.bucket import OssBucket
from aury.oss.common.logging import logger
from aury.oss.config import OssSettings
from aury.oss.core.context import ClientContext, utc_now
from aury.oss.core.credential import Credential
from aury.oss.multipart import MultipartUploadCoordinator
from aury.oss.toolkit.http import HttpClient, HttpExecutor

from .operations import DescribeRegions, ListBuckets


class OssClient:
    """OSS 客户端。
    
    持有凭证和 HTTP 执行器，凭证在构造后不可变，可被任意多个并发请求共享。
    
    使用示例:
        async with OssClient("AccessKey ID", "AccessKey Secret", "oss-cn-hangzhou.aliyuncs.com") as client:
            buckets = await client.list_buckets().set_prefix("logs-").send()
            obj = client.bucket("my-bucket").object("a.txt")
            await obj.put_object().send_content(b"hello")
        
        # 从环境变量（OSS_*）创建
        client = OssClient.from_settings()
    """
    
    def __init__(
        self,
        access_key_id: str,
        access_key_secret: str,
        endpoint: str = "oss.aliyuncs.com",
        *,
        security_token: str | None = None,
        enable_https: bool = True,
        executor: HttpExecutor | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """初始化客户端。
        
        Args:
            access_key_id: AccessKey ID
            access_key_secret: AccessKey Secret
            endpoint: 地域访问域名，例如 oss-cn-hangzhou.aliyuncs.com
            security_token: STS 临时令牌
            enable_https: 是否使用 HTTPS
            executor: HTTP执行器，不传时创建并持有一个 HttpClient
            clock: 当前时间来源
        """
        credential = Credential(access_key_id, access_key_secret, security_token)
        self._owns_executor = executor is None
        self._executor: HttpExecutor = executor if executor is not None else HttpClient()
        self._context = ClientContext(
            credential=credential,
            endpoint=endpoint,
            executor=self._executor,
            enable_https=enable_https,
            clock=clock,
        )
        self._multipart = MultipartUploadCoordinator(self._context)
        logger.debug(f"OSS客户端初始化: endpoint={endpoint}, access_key_id={access_key_id}")
    
    @classmethod
    def from_settings(
        cls,
        settings: OssSettings | None = None,
        *,
        executor: HttpExecutor | None = None,
    ) -> OssClient:
        """从配置创建客户端（不传配置时读取环境变量）。"""
        settings = settings or OssSettings()
        owns_executor = executor is None
        if executor is None:
            executor = HttpClient(timeout=settings.timeout, max_connections=settings.max_connections)
        token = settings.security_token.get_secret_value() if settings.security_token else None
        client = cls(
            settings.access_key_id,
            settings.access_key_secret.get_secret_value(),
            settings.endpoint,
            security_token=token,
            enable_https=settings.enable_https,
            executor=executor,
        )
        client._owns_executor = owns_executor
        return client
    
    @property
    def context(self) -> ClientContext:
        return self._context
    
    @property
    def multipart(self) -> MultipartUploadCoordinator:
        """分片上传协调器（会话表在客户端生命周期内共享）。"""
        return self._multipart
    
    def bucket(self, name: str) -> OssBucket:
        return OssBucket(self._context, self._context.endpoint_for(name), self._multipart)
    
    def list_buckets(self) -> ListBuckets:
        return ListBuckets(self._context)
    
    def describe_regions(self) -> DescribeRegions:
        return DescribeRegions(self._context)
    
    async def close(self) -> None:
        """关闭客户端持有的 HTTP 执行器；外部传入的执行器由调用方关闭。"""
        if self._owns_executor and isinstance(self._executor, HttpClient):
            await self._executor.close()
    
    async def __aenter__(self) -> OssClient:
        return self
    
    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
    
    def __repr__(self) -> str:
        return f"<OssClient endpoint={self._context.endpoint} access_key_id={self._context.credential.access_key_id}>"


__all__ = ["OssClient"]
