"""请求签名（OSS V1 / HMAC）。

待签名字符串：

    VERB + "\n"
    + Content-MD5 + "\n"
    + Content-Type + "\n"
    + Date 或 Expires + "\n"
    + CanonicalizedOSSHeaders
    + CanonicalizedResource

签名结果为 HMAC(AccessKeySecret, 待签名字符串) 的 Base64 编码。
Header 模式中时间为 GMT 日期，URL 模式中为过期时间的 Unix 时间戳。
"""

from __future__ import annotations

import base64
import hashlib
import hmac
from collections.abc import Callable, Iterable, Mapping
from typing import Any

from .credential import Credential

OSS_HEADER_PREFIX = "x-oss-"

# 参与 CanonicalizedResource 计算的子资源
SIGNED_SUB_RESOURCES: frozenset[str] = frozenset(
    {
        "acl",
        "uploads",
        "location",
        "cors",
        "logging",
        "website",
        "referer",
        "lifecycle",
        "delete",
        "append",
        "tagging",
        "objectMeta",
        "uploadId",
        "partNumber",
        "security-token",
        "position",
        "img",
        "style",
        "styleName",
        "replication",
        "replicationProgress",
        "replicationLocation",
        "cname",
        "bucketInfo",
        "comp",
        "qos",
        "live",
        "status",
        "vod",
        "startTime",
        "endTime",
        "symlink",
        "x-oss-process",
        "response-content-type",
        "x-oss-traffic-limit",
        "response-content-language",
        "response-expires",
        "response-cache-control",
        "response-content-disposition",
        "response-content-encoding",
        "udf",
        "udfName",
        "udfImage",
        "udfId",
        "udfImageDesc",
        "udfApplication",
        "udfApplicationLog",
        "restore",
        "callback",
        "callback-var",
        "qosInfo",
        "policy",
        "stat",
        "encryption",
        "versions",
        "versioning",
        "versionId",
        "requestPayment",
        "x-oss-request-payer",
        "sequential",
        "inventory",
        "inventoryId",
        "continuation-token",
        "asyncFetch",
        "worm",
        "wormId",
        "wormExtend",
        "withHashContext",
        "x-oss-enable-md5",
        "x-oss-enable-sha1",
        "x-oss-enable-sha256",
        "x-oss-hash-ctx",
        "x-oss-md5-ctx",
        "transferAcceleration",
        "regionList",
        "regions",
        "cloudboxes",
        "x-oss-ac-source-ip",
        "x-oss-ac-subnet-mask",
        "x-oss-ac-vpc-id",
        "x-oss-ac-forward-allow",
        "metaQuery",
        "resourceGroup",
        "rtc",
    }
)

Params = Mapping[str, str] | Iterable[tuple[str, str]]


def _pairs(params: Params | None) -> list[tuple[str, str]]:
    if params is None:
        return []
    if isinstance(params, Mapping):
        return [(str(k), str(v)) for k, v in params.items()]
    return [(str(k), str(v)) for k, v in params]


def _header(headers: Mapping[str, str], name: str) -> str:
    lowered = name.lower()
    for key, value in headers.items():
        if key.lower() == lowered:
            return str(value).strip()
    return ""


def canonical_resource(bucket: str | None = None, object_key: str | None = None) -> str:
    """生成不含子资源的规范资源路径。
    
    对象键保持原样（不做百分号编码），与服务端计算方式一致。
    """
    if not bucket:
        return "/"
    return f"/{bucket}/{object_key or ''}"


def canonicalize_oss_headers(headers: Mapping[str, str]) -> str:
    """提取 x-oss- 前缀的头，名称小写后按字典序排列，每行 ``name:value``。"""
    oss_headers = sorted(
        (key.lower().strip(), str(value).strip())
        for key, value in headers.items()
        if key.lower().startswith(OSS_HEADER_PREFIX)
    )
    return "".join(f"{key}:{value}\n" for key, value in oss_headers)


def canonicalize_sub_resources(params: Params | None) -> str:
    """按名称排序参与签名的子资源，值为空时只保留名称。"""
    items = sorted(
        key if value == "" else f"{key}={value}"
        for key, value in _pairs(params)
        if key in SIGNED_SUB_RESOURCES
    )
    return "&".join(items)


def string_to_sign(
    method: str,
    resource: str,
    headers: Mapping[str, str],
    params: Params | None,
    timestamp: str,
) -> str:
    """拼接待签名字符串。"""
    sub_resources = canonicalize_sub_resources(params)
    if sub_resources:
        resource = f"{resource}?{sub_resources}"
    return "\n".join(
        [
            method.upper(),
            _header(headers, "Content-MD5"),
            _header(headers, "Content-Type"),
            timestamp,
            canonicalize_oss_headers(headers) + resource,
        ]
    )


class SignatureEngine:
    """签名引擎（纯函数，无内部状态，可在并发请求间共享）。"""
    
    def __init__(self, digestmod: Callable[..., Any] = hashlib.sha1) -> None:
        self._digestmod = digestmod
    
    def sign(
        self,
        credential: Credential,
        method: str,
        canonical_resource: str,
        headers: Mapping[str, str],
        params: Params | None,
        timestamp: str,
    ) -> str:
        """计算签名。
        
        Args:
            credential: 访问凭证
            method: HTTP方法
            canonical_resource: 规范资源路径（不含子资源）
            headers: 将要发送的请求头
            params: 将要发送的查询参数
            timestamp: GMT 日期（Header 模式）或过期时间戳（URL 模式）
            
        Returns:
            str: Base64 编码的签名
        """
        message = string_to_sign(method, canonical_resource, headers, params, timestamp)
        digest = hmac.new(
            credential.access_key_secret.encode("utf-8"),
            message.encode("utf-8"),
            self._digestmod,
        ).digest()
        return base64.b64encode(digest).decode("ascii")
    
    @staticmethod
    def authorization(credential: Credential, signature: str) -> str:
        """生成 Authorization 头的值。"""
        return f"OSS {credential.access_key_id}:{signature}"


__all__ = [
    "OSS_HEADER_PREFIX",
    "SIGNED_SUB_RESOURCES",
    "SignatureEngine",
    "canonical_resource",
    "canonicalize_oss_headers",
    "canonicalize_sub_resources",
    "string_to_sign",
]
