"""预签名 URL。

把签名放入查询参数，持有 URL 的任何人在过期前都可以直接访问对象，
无需再次鉴权。生成过程是纯计算，不发起网络请求。
"""

from __future__ import annotations

import math
from datetime import datetime
from typing import TYPE_CHECKING
from urllib.parse import quote

from aury.oss.common.encoding import as_utc, url_encode
from aury.oss.common.exceptions import InvalidExpiryError, InvalidRequestError

from .request import Endpoint, Scope, render_query, validate_endpoint
from .sign import canonicalize_sub_resources

if TYPE_CHECKING:
    from typing import Self

    from .context import ClientContext

RESPONSE_HEADERS = frozenset(
    {
        "content-type",
        "content-language",
        "expires",
        "cache-control",
        "content-disposition",
        "content-encoding",
    }
)


class PresignedUrlBuilder:
    """预签名 URL 构建器。
    
    使用示例:
        url = (
            PresignedUrlBuilder(context, endpoint)
            .set_response_header("content-disposition", "attachment")
            .url(datetime.now(timezone.utc) + timedelta(hours=1))
        )
    """
    
    def __init__(self, context: ClientContext, endpoint: Endpoint) -> None:
        self._context = context
        self._endpoint = endpoint
        self._method = "GET"
        self._content_type = ""
        self._params: dict[str, str] = {}
        self._source_ip: str | None = None
    
    def set_method(self, method: str) -> Self:
        """设置允许的 HTTP 方法（默认 GET）。"""
        self._method = method.upper()
        return self
    
    def set_content_type(self, content_type: str) -> Self:
        """签入 Content-Type，使用 URL 的请求必须带上相同的头。"""
        self._content_type = content_type
        return self
    
    def set_response_header(self, name: str, value: str) -> Self:
        """覆盖下载时的响应头，例如 content-disposition。"""
        name = name.lower().removeprefix("response-")
        if name not in RESPONSE_HEADERS:
            raise InvalidRequestError(f"不支持覆盖的响应头: {name}")
        self._params[f"response-{name}"] = value
        return self
    
    def set_process(self, process: str) -> Self:
        """设置图片处理等 x-oss-process 参数。"""
        self._params["x-oss-process"] = process
        return self
    
    def set_ip(self, source_ip: str, subnet_mask: int = 32) -> Self:
        """限制访问来源 IP；只允许单个 IP 时掩码为 32。"""
        self._source_ip = source_ip
        self._params["x-oss-ac-subnet-mask"] = str(subnet_mask)
        return self
    
    def set_vpc_id(self, vpc_id: str) -> Self:
        self._params["x-oss-ac-vpc-id"] = vpc_id
        return self
    
    def set_forward_allow(self, forward_allow: bool = True) -> Self:
        """是否允许转发请求（默认不允许）。"""
        if forward_allow:
            self._params["x-oss-ac-forward-allow"] = "true"
        else:
            self._params.pop("x-oss-ac-forward-allow", None)
        return self
    
    def url(self, expiry: datetime | int | float) -> str:
        """生成预签名 URL。
        
        Args:
            expiry: 过期时间，datetime（不带时区视为 UTC）或 Unix 时间戳
            
        Returns:
            str: 形如 ``base_url?OSSAccessKeyId=...&Expires=...&Signature=...`` 的 URL
            
        Raises:
            InvalidExpiryError: 过期时间不晚于当前时间
            InvalidRequestError: 缺少存储空间或对象名称
        """
        validate_endpoint(self._endpoint, Scope.OBJECT)
        deadline = as_utc(expiry).timestamp() if isinstance(expiry, datetime) else float(expiry)
        now = as_utc(self._context.clock()).timestamp()
        if deadline <= now:
            raise InvalidExpiryError(f"过期时间必须晚于当前时间: expires={deadline}, now={now}")
        # 向上取整，保证传输的 Expires 仍晚于当前时间
        expires = math.ceil(deadline)
        
        credential = self._context.credential
        params = dict(self._params)
        if credential.security_token:
            params["security-token"] = credential.security_token
        
        sub_resources = canonicalize_sub_resources(params)
        if self._source_ip:
            # 来源 IP 参与签名但不出现在 URL 中，固定追加在末尾
            source = f"x-oss-ac-source-ip={self._source_ip}"
            sub_resources = f"{sub_resources}&{source}" if sub_resources else source
        resource = self._endpoint.canonical_resource
        if sub_resources:
            resource = f"{resource}?{sub_resources}"
        
        headers = {"Content-Type": self._content_type} if self._content_type else {}
        signature = self._context.signer.sign(
            credential, self._method, resource, headers, None, str(expires)
        )
        
        query = (
            f"?OSSAccessKeyId={url_encode(credential.access_key_id)}"
            f"&Expires={expires}"
            f"&Signature={quote(signature, safe='')}"
        )
        extra = render_query(list(params.items()))
        if extra:
            query += "&" + extra[1:]
        return self._endpoint.base_url + query


__all__ = ["PresignedUrlBuilder", "RESPONSE_HEADERS"]
