"""HTTP执行层 - 发送已签名请求的异步客户端。

特性：
- 连接池管理
- 请求/响应拦截器
- 超时控制
- 错误处理（网络错误与超时统一为 HttpError）
- 请求日志（凭证脱敏）

基于 aiohttp 实现，全异步无阻塞。
本层不做重试，也不按状态码抛出异常；状态码到业务错误的映射由上层完成。
"""

from __future__ import annotations

import asyncio
import time
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Protocol, runtime_checkable

import aiohttp
from multidict import CIMultiDict, CIMultiDictProxy
from pydantic import BaseModel
from yarl import URL

from aury.oss.common.logging import logger, redact_headers, redact_url


class HttpClientConfig(BaseModel):
    """HTTP客户端配置（Pydantic）。"""
    
    timeout: float = 60.0
    connect_timeout: float | None = None
    max_connections: int = 100
    keepalive_timeout: float = 30.0


class OutgoingRequest(Protocol):
    """可被执行的请求（已签名，字段只读）。"""
    
    @property
    def method(self) -> str: ...
    
    @property
    def url(self) -> str: ...
    
    @property
    def headers(self) -> Mapping[str, str]: ...
    
    @property
    def body(self) -> bytes | None: ...


@dataclass(frozen=True)
class HttpRequest:
    """请求的只读快照（用于拦截器）。
    
    请求已签名，头被包装为只读映射，拦截器无法修改实际发送的内容。
    """
    
    method: str
    url: str
    headers: Mapping[str, str] = field(default_factory=dict)
    body: bytes | None = None
    
    def __post_init__(self) -> None:
        object.__setattr__(self, "headers", MappingProxyType(dict(self.headers)))


@dataclass
class HttpResponse:
    """响应对象（用于拦截器和返回）。"""
    
    status_code: int
    url: str
    headers: CIMultiDict[str] | CIMultiDictProxy[str] = field(default_factory=CIMultiDict)
    content: bytes = b""
    elapsed_seconds: float = 0.0
    
    @property
    def text(self) -> str:
        return self.content.decode("utf-8", errors="replace")
    
    @property
    def is_success(self) -> bool:
        """是否为 2xx 响应。"""
        return 200 <= self.status_code < 300


class HttpError(Exception):
    """HTTP 错误基类。"""
    pass


class HttpTimeoutError(HttpError):
    """HTTP 超时错误。"""
    pass


class HttpNetworkError(HttpError):
    """HTTP 网络错误。"""
    pass


@runtime_checkable
class HttpExecutor(Protocol):
    """HTTP 执行能力：接收已签名请求，返回响应或抛出 HttpError。"""
    
    async def execute(self, request: OutgoingRequest) -> HttpResponse: ...


class RequestInterceptor(ABC):
    """请求拦截器接口。
    
    请求已签名，before_request 只能观察请求，返回值被忽略；
    after_response 可以替换返回给调用方的响应。
    """
    
    @abstractmethod
    async def before_request(self, request: HttpRequest) -> None:
        """请求前处理（只读）。"""
        pass
    
    @abstractmethod
    async def after_response(self, response: HttpResponse) -> HttpResponse:
        """响应后处理。"""
        pass


class LoggingInterceptor(RequestInterceptor):
    """日志拦截器（Authorization、Signature、安全令牌脱敏）。"""
    
    async def before_request(self, request: HttpRequest) -> None:
        """记录请求日志。"""
        logger.debug(
            f"HTTP请求: {request.method} {redact_url(request.url)} | "
            f"Headers: {redact_headers(request.headers)}"
        )
    
    async def after_response(self, response: HttpResponse) -> HttpResponse:
        """记录响应日志。"""
        logger.debug(
            f"HTTP响应: {response.status_code} {redact_url(response.url)} | "
            f"耗时: {response.elapsed_seconds:.3f}s"
        )
        return response


class HttpClient:
    """OSS 请求执行器（基于 aiohttp）。
    
    使用示例:
        async with HttpClient(timeout=30) as http:
            client = OssClient(credential, executor=http)
            ...
        
        # 添加拦截器
        http.add_interceptor(LoggingInterceptor())
    """
    
    def __init__(
        self,
        *,
        timeout: float = 60.0,
        connect_timeout: float | None = None,
        max_connections: int = 100,
        keepalive_timeout: float = 30.0,
    ) -> None:
        """初始化HTTP客户端。
        
        Args:
            timeout: 单次请求总超时（秒）
            connect_timeout: 建立连接超时（秒）
            max_connections: 最大连接数
            keepalive_timeout: 空闲连接保持时间（秒）
        """
        self._timeout = aiohttp.ClientTimeout(total=timeout, connect=connect_timeout)
        self._max_connections = max_connections
        self._keepalive_timeout = keepalive_timeout
        self._interceptors: list[RequestInterceptor] = []
        
        # 连接器和会话都需要运行中的事件循环，延迟到首次请求时创建
        self._connector: aiohttp.TCPConnector | None = None
        self._session: aiohttp.ClientSession | None = None
        
        logger.debug(f"HTTP客户端初始化: timeout={timeout}, max_connections={max_connections}")
    
    @classmethod
    def from_config(cls, config: HttpClientConfig) -> HttpClient:
        """从配置创建客户端。"""
        return cls(
            timeout=config.timeout,
            connect_timeout=config.connect_timeout,
            max_connections=config.max_connections,
            keepalive_timeout=config.keepalive_timeout,
        )
    
    async def _ensure_session(self) -> aiohttp.ClientSession:
        """确保会话已创建。"""
        if self._session is None or self._session.closed:
            self._connector = aiohttp.TCPConnector(
                limit=self._max_connections,
                keepalive_timeout=self._keepalive_timeout,
            )
            self._session = aiohttp.ClientSession(
                connector=self._connector,
                timeout=self._timeout,
                # 不让 aiohttp 自动补充 Content-Type 等未签名的头
                skip_auto_headers=("Content-Type",),
            )
        return self._session
    
    def add_interceptor(self, interceptor: RequestInterceptor) -> None:
        """添加拦截器。"""
        self._interceptors.append(interceptor)
        logger.debug(f"添加拦截器: {interceptor.__class__.__name__}")
    
    async def execute(self, request: OutgoingRequest) -> HttpResponse:
        """发送已签名的请求。
        
        Args:
            request: 已签名请求（URL 已完成百分号编码）
            
        Returns:
            HttpResponse: 响应对象（任意状态码）
            
        Raises:
            HttpTimeoutError: 请求超时
            HttpNetworkError: 连接或读取失败
        """
        outgoing = HttpRequest(
            method=request.method,
            url=request.url,
            headers=dict(request.headers),
            body=request.body,
        )
        for interceptor in self._interceptors:
            await interceptor.before_request(outgoing)
        
        session = await self._ensure_session()
        start_time = time.perf_counter()
        try:
            async with session.request(
                outgoing.method,
                URL(outgoing.url, encoded=True),
                headers=dict(outgoing.headers),
                data=outgoing.body,
                allow_redirects=False,
            ) as resp:
                content = await resp.read()
                response = HttpResponse(
                    status_code=resp.status,
                    url=outgoing.url,
                    headers=CIMultiDict(resp.headers),
                    content=content,
                    elapsed_seconds=time.perf_counter() - start_time,
                )
        except asyncio.TimeoutError as exc:
            logger.error(f"HTTP请求超时: {outgoing.method} {redact_url(outgoing.url)}")
            raise HttpTimeoutError(f"请求超时: {redact_url(outgoing.url)}") from exc
        except aiohttp.ClientError as exc:
            logger.error(
                f"HTTP请求失败: {outgoing.method} {redact_url(outgoing.url)} | "
                f"错误: {type(exc).__name__}: {exc}"
            )
            raise HttpNetworkError(f"网络错误: {exc}") from exc
        
        for interceptor in self._interceptors:
            response = await interceptor.after_response(response)
        return response
    
    async def close(self) -> None:
        """关闭客户端。"""
        if self._session and not self._session.closed:
            await self._session.close()
        if self._connector and not self._connector.closed:
            await self._connector.close()
        logger.debug("HTTP客户端已关闭")
    
    async def __aenter__(self) -> HttpClient:
        """异步上下文管理器入口。"""
        return self
    
    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """异步上下文管理器出口。"""
        await self.close()
    
    def __repr__(self) -> str:
        return f"<HttpClient timeout={self._timeout.total} max_connections={self._max_connections}>"


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
    "OutgoingRequest",
    "RequestInterceptor",
]
