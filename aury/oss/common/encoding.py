"""编码工具。

URL 编码、HTTP 日期以及元数据/标签的格式化。
"""

from __future__ import annotations

from datetime import datetime, timezone
from email.utils import format_datetime
from typing import Iterable
from urllib.parse import quote, unquote

from .exceptions import InvalidRequestError


def url_encode(value: str) -> str:
    """百分号编码，保留路径分隔符。"""
    return quote(value, safe="/")


def url_decode(value: str) -> str:
    return unquote(value)


def as_utc(moment: datetime) -> datetime:
    """把时间转换为 UTC；不带时区的时间视为 UTC。"""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def http_date(moment: datetime) -> str:
    """格式化为 RFC 1123 GMT 日期，例如 ``Thu, 17 Nov 2005 18:49:58 GMT``。"""
    return format_datetime(as_utc(moment).replace(microsecond=0), usegmt=True)


def byte_range(start: int, end: int | None = None) -> str:
    """生成 ``bytes=start-end`` 范围表达式，end 为 None 表示读到末尾。"""
    if start < 0 or (end is not None and end < start):
        raise InvalidRequestError(f"非法的字节范围: {start}-{end}")
    return f"bytes={start}-{'' if end is None else end}"


def validate_metadata_key(key: str) -> str:
    """校验自定义元数据键，只允许 ASCII 字母、数字和 ``-``。"""
    if not key or any(not (c.isascii() and (c.isalnum() or c == "-")) for c in key):
        raise InvalidRequestError(f"元数据键包含不支持的字符: {key!r}")
    return key


def encode_tagging(tags: Iterable[tuple[str, str]]) -> str:
    """把标签编码为 ``k1=v1&k2`` 形式，用于 x-oss-tagging 头。"""
    items = []
    for key, value in tags:
        if value:
            items.append(f"{url_encode(key)}={url_encode(value)}")
        else:
            items.append(url_encode(key))
    return "&".join(items)


def copy_source(bucket: str, object_key: str, version_id: str | None = None) -> str:
    """生成 x-oss-copy-source 头的值：``/bucket/`` 加编码后的对象名称。"""
    source = f"/{bucket}/{url_encode(object_key)}"
    if version_id:
        source = f"{source}?versionId={version_id}"
    return source


def content_disposition_attachment(filename: str) -> str:
    """生成带下载文件名的 Content-Disposition 值。"""
    encoded = url_encode(filename)
    return f"attachment;filename=\"{encoded}\";filename*=UTF-8''{encoded}"


__all__ = [
    "as_utc",
    "byte_range",
    "content_disposition_attachment",
    "copy_source",
    "encode_tagging",
    "http_date",
    "url_decode",
    "url_encode",
    "validate_metadata_key",
]
