"""响应解码。

XML 文档解析、错误文档解码以及状态码到业务异常的映射。
"""

from __future__ import annotations

import base64
import binascii
import xml.etree.ElementTree as ET
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from aury.oss.common.exceptions import (
    AuthenticationError,
    InvalidResponseError,
    RemoteError,
)
from aury.oss.common.logging import logger, redact_url
from aury.oss.toolkit.http import HttpResponse

# 服务端判定为签名或凭证无效的错误码
AUTHENTICATION_ERROR_CODES = frozenset({"SignatureDoesNotMatch", "InvalidAccessKeyId"})

ModelT = TypeVar("ModelT", bound=BaseModel)


def parse_xml(content: bytes, *, status_code: int | None = None) -> ET.Element:
    """解析 XML 响应体。
    
    Raises:
        InvalidResponseError: 响应体不是合法 XML
    """
    try:
        return ET.fromstring(content)
    except ET.ParseError as exc:
        raise InvalidResponseError(
            f"无法解析响应体: {exc}", body=content, status_code=status_code
        ) from exc


def findtext(element: ET.Element, name: str, default: str | None = None) -> str | None:
    value = element.findtext(name)
    return default if value is None else value


def element_to_dict(element: ET.Element) -> Any:
    """把 XML 元素转换为嵌套字典。
    
    叶子节点转换为文本，同名子节点合并为列表，供 pydantic 模型校验。
    """
    children = list(element)
    if not children:
        return element.text or ""
    result: dict[str, Any] = {}
    for child in children:
        value = element_to_dict(child)
        if child.tag in result:
            existing = result[child.tag]
            if not isinstance(existing, list):
                result[child.tag] = [existing]
            result[child.tag].append(value)
        else:
            result[child.tag] = value
    return result


def decode_model(model: type[ModelT], data: Any, response: HttpResponse) -> ModelT:
    """用 pydantic 校验解码结果，失败时抛出 InvalidResponseError。"""
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise InvalidResponseError(
            f"响应内容与 {model.__name__} 不符: {exc.error_count()} 个字段校验失败",
            body=response.content,
            status_code=response.status_code,
        ) from exc


def decode_xml(model: type[ModelT], response: HttpResponse, *path: str) -> ModelT:
    """解析 XML 响应体并沿 path 取出子节点，再校验为模型。"""
    element = parse_xml(response.content, status_code=response.status_code)
    for name in path:
        child = element.find(name)
        if child is None:
            raise InvalidResponseError(
                f"响应缺少节点: {name}", body=response.content, status_code=response.status_code
            )
        element = child
    return decode_model(model, element_to_dict(element), response)


def xml_document(root: str, children: list[tuple[str, Any]]) -> bytes:
    """生成简单的 XML 请求体。
    
    children 为 (名称, 值) 序列；值为同样形式的列表时生成嵌套节点，
    同名节点重复出现即生成多个节点，值为 None 的节点被忽略。
    """
    element = ET.Element(root)
    _append(element, children)
    return ET.tostring(element, encoding="utf-8", xml_declaration=True)


def _append(parent: ET.Element, children: list[tuple[str, Any]]) -> None:
    for name, value in children:
        if value is None:
            continue
        if isinstance(value, list):
            child = ET.SubElement(parent, name)
            _append(child, value)
        elif isinstance(value, bool):
            ET.SubElement(parent, name).text = "true" if value else "false"
        else:
            ET.SubElement(parent, name).text = str(value)


def trim_etag(value: str | None) -> str | None:
    """去掉 ETag 两侧的引号。"""
    if value is None:
        return None
    return value.strip('"')


def _decode_error_document(response: HttpResponse) -> dict[str, str | None]:
    content = response.content
    if not content and "x-oss-err" in response.headers:
        # HEAD 请求没有响应体，错误文档以 Base64 放在头中
        try:
            content = base64.b64decode(response.headers["x-oss-err"])
        except (binascii.Error, ValueError):
            content = b""
    fields: dict[str, str | None] = {
        "Code": None,
        "Message": None,
        "RequestId": response.headers.get("x-oss-request-id"),
        "HostId": None,
        "EC": response.headers.get("x-oss-ec"),
    }
    if not content:
        return fields
    try:
        element = ET.fromstring(content)
    except ET.ParseError:
        return fields
    for name in fields:
        value = element.findtext(name)
        if value is not None:
            fields[name] = value
    return fields


def error_from_response(response: HttpResponse, method: str) -> RemoteError:
    """把非 2xx 响应转换为 RemoteError（签名失败为 AuthenticationError）。"""
    fields = _decode_error_document(response)
    error_code = fields["Code"]
    error_message = fields["Message"]
    summary = error_code or f"HTTP {response.status_code}"
    if error_message:
        summary = f"{summary}: {error_message}"
    
    logger.warning(
        f"OSS返回错误: {method} {redact_url(response.url)} | "
        f"状态码: {response.status_code}, 错误码: {error_code}, 请求ID: {fields['RequestId']}"
    )
    
    error_class = AuthenticationError if error_code in AUTHENTICATION_ERROR_CODES else RemoteError
    return error_class(
        summary,
        status_code=response.status_code,
        error_code=error_code,
        error_message=error_message,
        request_id=fields["RequestId"],
        host_id=fields["HostId"],
        ec=fields["EC"],
        body=response.content or None,
    )


__all__ = [
    "AUTHENTICATION_ERROR_CODES",
    "decode_model",
    "decode_xml",
    "element_to_dict",
    "error_from_response",
    "findtext",
    "parse_xml",
    "trim_etag",
    "xml_document",
]
