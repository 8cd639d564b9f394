"""请求构建与发送。

RequestBuilder 是所有操作的基础：链式设置查询参数、请求头和请求体，
send() 时冻结参数、签名并交给 HTTP 执行器。构建器只能使用一次，
发送后的任何修改都会抛出 InvalidRequestError，保证签名内容与实际发送内容一致。
"""

from __future__ import annotations

import base64
import hashlib
from dataclasses import dataclass, replace
from enum import Enum
from types import MappingProxyType
from typing import TYPE_CHECKING, Mapping

from multidict import CIMultiDict

from aury.oss.common.encoding import http_date, url_encode
from aury.oss.common.exceptions import InvalidRequestError, TransportError
from aury.oss.common.logging import logger, redact_url
from aury.oss.toolkit.http import HttpError, HttpResponse

from .response import error_from_response
from .sign import canonical_resource

if TYPE_CHECKING:
    from typing import Self

    from .context import ClientContext

DEFAULT_CONTENT_TYPE = "application/octet-stream"
MAX_OBJECT_KEY_BYTES = 1023


class Scope(str, Enum):
    """请求作用范围。"""
    
    SERVICE = "service"
    BUCKET = "bucket"
    OBJECT = "object"


@dataclass(frozen=True)
class Endpoint:
    """请求目标。
    
    未设置 bucket_name 时指向服务本身；设置了 custom_domain 时
    请求发往自定义域名，签名中的资源路径仍包含存储空间名称。
    """
    
    region_host: str
    bucket_name: str | None = None
    object_key: str | None = None
    enable_https: bool = True
    custom_domain: str | None = None
    
    @property
    def host(self) -> str:
        if self.custom_domain:
            return self.custom_domain
        if self.bucket_name:
            return f"{self.bucket_name}.{self.region_host}"
        return self.region_host
    
    @property
    def path(self) -> str:
        if self.object_key:
            return "/" + url_encode(self.object_key)
        return "/"
    
    @property
    def base_url(self) -> str:
        scheme = "https" if self.enable_https else "http"
        return f"{scheme}://{self.host}{self.path}"
    
    @property
    def canonical_resource(self) -> str:
        return canonical_resource(self.bucket_name, self.object_key)
    
    def with_object(self, object_key: str) -> Endpoint:
        return replace(self, object_key=object_key)
    
    def with_custom_domain(self, domain: str, enable_https: bool = True) -> Endpoint:
        return replace(self, custom_domain=domain, enable_https=enable_https)


@dataclass(frozen=True)
class SignedRequest:
    """已签名的请求（不可变，只会被执行一次）。"""
    
    method: str
    url: str
    canonical_resource: str
    headers: Mapping[str, str]
    query: tuple[tuple[str, str], ...]
    body: bytes | None
    signature: str
    timestamp: str
    
    def __repr__(self) -> str:
        return f"<SignedRequest {self.method} {redact_url(self.url)}>"


def render_query(query: tuple[tuple[str, str], ...] | list[tuple[str, str]]) -> str:
    """按插入顺序渲染查询字符串，值为空时只保留名称。"""
    if not query:
        return ""
    items = [
        url_encode(key) if value == "" else f"{url_encode(key)}={url_encode(value)}"
        for key, value in query
    ]
    return "?" + "&".join(items)


def validate_endpoint(endpoint: Endpoint, scope: Scope) -> None:
    """校验寻址字段是否完整。
    
    Raises:
        InvalidRequestError: 缺少存储空间或对象名称，或对象名称非法
    """
    if endpoint.object_key and not endpoint.bucket_name:
        raise InvalidRequestError("指定了对象名称但缺少存储空间名称")
    if scope in (Scope.BUCKET, Scope.OBJECT) and not endpoint.bucket_name:
        raise InvalidRequestError("缺少存储空间名称")
    if scope is Scope.OBJECT:
        key = endpoint.object_key
        if not key:
            raise InvalidRequestError("缺少对象名称")
        if key.startswith(("/", "\\")):
            raise InvalidRequestError(f"对象名称不能以 / 或 \\ 开头: {key!r}")
        if len(key.encode("utf-8")) > MAX_OBJECT_KEY_BYTES:
            raise InvalidRequestError(f"对象名称超过 {MAX_OBJECT_KEY_BYTES} 字节")


class RequestBuilder:
    """签名请求构建器。
    
    使用示例:
        builder = RequestBuilder(context, "GET", endpoint, Scope.BUCKET)
        response = await builder.set_query("acl").send()
    
    子类通过链式方法积累参数，并覆盖 send() 把响应解码为具体结果。
    """
    
    def __init__(
        self,
        context: ClientContext,
        method: str,
        endpoint: Endpoint,
        scope: Scope = Scope.OBJECT,
    ) -> None:
        self._context = context
        self._method = method.upper()
        self._endpoint = endpoint
        self._scope = scope
        self._headers: CIMultiDict[str] = CIMultiDict()
        self._query: dict[str, str] = {}
        self._body: bytes | None = None
        self._compute_md5 = False
        self._consumed = False
    
    @property
    def consumed(self) -> bool:
        return self._consumed
    
    def _ensure_open(self) -> None:
        if self._consumed:
            raise InvalidRequestError("请求已发送，构建器不能再次使用")
    
    def set_header(self, name: str, value: str) -> Self:
        self._ensure_open()
        self._headers[name] = str(value)
        return self
    
    def set_query(self, name: str, value: str | int = "") -> Self:
        self._ensure_open()
        self._query[name] = str(value)
        return self
    
    def set_body(self, data: bytes | str) -> Self:
        self._ensure_open()
        self._body = data.encode("utf-8") if isinstance(data, str) else bytes(data)
        return self
    
    def set_content_type(self, content_type: str) -> Self:
        return self.set_header("Content-Type", content_type)
    
    def set_content_md5(self, value: str | None = None) -> Self:
        """设置 Content-MD5；不传值时在构建时根据请求体计算。"""
        self._ensure_open()
        if value is None:
            self._compute_md5 = True
        else:
            self._headers["Content-MD5"] = value
        return self
    
    def _prepare(self) -> None:
        """冻结前的钩子，子类可在此补充参数。"""
    
    def build(self) -> SignedRequest:
        """校验、冻结并签名，之后构建器不可再用。
        
        Raises:
            InvalidRequestError: 构建器已被使用，或寻址字段不完整
        """
        self._ensure_open()
        validate_endpoint(self._endpoint, self._scope)
        self._prepare()
        self._consumed = True
        
        context = self._context
        credential = context.credential
        headers = CIMultiDict(self._headers)
        if self._body is not None and "Content-Type" not in headers:
            # 提前固定类型，避免执行层补充一个未签名的 Content-Type
            headers["Content-Type"] = DEFAULT_CONTENT_TYPE
        if self._compute_md5:
            digest = hashlib.md5(self._body or b"").digest()
            headers["Content-MD5"] = base64.b64encode(digest).decode("ascii")
        if credential.security_token:
            headers["x-oss-security-token"] = credential.security_token
        timestamp = http_date(context.clock())
        headers["Date"] = timestamp
        
        query = tuple(self._query.items())
        resource = self._endpoint.canonical_resource
        signature = context.signer.sign(
            credential, self._method, resource, headers, query, timestamp
        )
        headers["Authorization"] = context.signer.authorization(credential, signature)
        
        return SignedRequest(
            method=self._method,
            url=self._endpoint.base_url + render_query(query),
            canonical_resource=resource,
            headers=MappingProxyType(dict(headers)),
            query=query,
            body=self._body,
            signature=signature,
            timestamp=timestamp,
        )
    
    async def dispatch(self) -> HttpResponse:
        """发送请求并返回 2xx 响应。
        
        Raises:
            TransportError: 网络层失败
            RemoteError: 非 2xx 响应
        """
        request = self.build()
        try:
            response = await self._context.executor.execute(request)
        except HttpError as exc:
            raise TransportError(
                f"请求失败: {request.method} {redact_url(request.url)}: {exc}"
            ) from exc
        
        logger.debug(
            f"OSS请求: {request.method} {redact_url(request.url)} | "
            f"状态码: {response.status_code}, 耗时: {response.elapsed_seconds:.3f}s"
        )
        if not response.is_success:
            raise error_from_response(response, request.method)
        return response
    
    async def send(self) -> HttpResponse:
        """发送请求，默认返回原始响应。"""
        return await self.dispatch()


__all__ = [
    "DEFAULT_CONTENT_TYPE",
    "Endpoint",
    "RequestBuilder",
    "Scope",
    "SignedRequest",
    "render_query",
    "validate_endpoint",
]
