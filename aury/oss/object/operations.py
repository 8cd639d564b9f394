"""对象操作。"""

from __future__ import annotations

import asyncio
import mimetypes
import os
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING

from aury.oss.common.encoding import byte_range, copy_source, http_date, url_decode, url_encode
from aury.oss.common.exceptions import InvalidRequestError, InvalidResponseError
from aury.oss.common.logging import logger
from aury.oss.core.request import DEFAULT_CONTENT_TYPE, Endpoint, RequestBuilder, Scope
from aury.oss.core.response import parse_xml, trim_etag, xml_document
from aury.oss.models import Acl, AppendObjectResult, ObjectMeta, PutObjectResult, RestoreTier, Tag
from aury.oss.toolkit.http import HttpResponse

from .options import ObjectOptions

if TYPE_CHECKING:
    from typing import Self

    from aury.oss.core.context import ClientContext

MAX_OBJECT_SIZE = 5 * 1024**3
XML_CONTENT_TYPE = "application/xml"

# HEAD 响应中与对象本身无关的头
_TRANSPORT_HEADERS = frozenset(
    {"server", "date", "content-type", "content-length", "connection", "x-oss-request-id", "accept-ranges"}
)


def _check_size(size: int) -> None:
    if size >= MAX_OBJECT_SIZE:
        raise InvalidRequestError(f"单次上传的数据必须小于 5GB，请改用分片上传: {size}")


async def _read_file(path: str | os.PathLike[str]) -> bytes:
    def _read() -> bytes:
        file_path = Path(path)
        _check_size(file_path.stat().st_size)
        return file_path.read_bytes()
    
    return await asyncio.to_thread(_read)


def _guess_mime(*names: str | os.PathLike[str]) -> str:
    for name in names:
        mime, _ = mimetypes.guess_type(str(name))
        if mime:
            return mime
    return DEFAULT_CONTENT_TYPE


class _ContentUpload(ObjectOptions):
    """带请求体的上传，子类提供 send_content / send_file。"""
    
    async def _dispatch_content(self, content: bytes | str) -> HttpResponse:
        data = content.encode("utf-8") if isinstance(content, str) else bytes(content)
        _check_size(len(data))
        return await self.set_body(data).dispatch()
    
    async def _dispatch_file(self, path: str | os.PathLike[str]) -> HttpResponse:
        data = await _read_file(path)
        if "Content-Type" not in self._headers:
            self.set_mime(_guess_mime(path, self._endpoint.object_key or ""))
        return await self.set_body(data).dispatch()


class PutObject(_ContentUpload):
    """上传对象（单次请求，小于 5GB）。
    
    使用示例:
        result = await obj.put_object().set_meta("owner", "alice").send_content(b"hello")
        result = await obj.put_object().forbid_overwrite().send_file("/tmp/report.pdf")
    """
    
    def __init__(self, context: ClientContext, endpoint: Endpoint) -> None:
        super().__init__(context, "PUT", endpoint)
    
    @staticmethod
    def _result(response: HttpResponse) -> PutObjectResult:
        return PutObjectResult(
            e_tag=response.headers.get("ETag"),
            version_id=response.headers.get("x-oss-version-id"),
        )
    
    async def send_content(self, content: bytes | str) -> PutObjectResult:
        return self._result(await self._dispatch_content(content))
    
    async def send_file(self, path: str | os.PathLike[str]) -> PutObjectResult:
        return self._result(await self._dispatch_file(path))


class AppendObject(_ContentUpload):
    """以追加方式上传，返回下一次追加的位置。"""
    
    def __init__(self, context: ClientContext, endpoint: Endpoint) -> None:
        super().__init__(context, "POST", endpoint)
        self.set_query("append")
        self.set_query("position", 0)
    
    def set_position(self, position: int) -> Self:
        """追加位置，首次追加为 0，之后为上一次返回的 next_append_position。"""
        if position < 0:
            raise InvalidRequestError(f"追加位置不能为负数: {position}")
        return self.set_query("position", position)
    
    @staticmethod
    def _result(response: HttpResponse) -> AppendObjectResult:
        position = response.headers.get("x-oss-next-append-position")
        if position is None:
            raise InvalidResponseError("响应缺少 x-oss-next-append-position", status_code=response.status_code)
        return AppendObjectResult(
            next_append_position=int(position),
            hash_crc64ecma=response.headers.get("x-oss-hash-crc64ecma"),
        )
    
    async def send_content(self, content: bytes | str) -> AppendObjectResult:
        return self._result(await self._dispatch_content(content))
    
    async def send_file(self, path: str | os.PathLike[str]) -> AppendObjectResult:
        return self._result(await self._dispatch_file(path))


class _Conditional(RequestBuilder):
    """If-* 条件请求头。"""
    
    def set_if_modified_since(self, moment: datetime) -> Self:
        return self.set_header("If-Modified-Since", http_date(moment))
    
    def set_if_unmodified_since(self, moment: datetime) -> Self:
        return self.set_header("If-Unmodified-Since", http_date(moment))
    
    def set_if_match(self, etag: str) -> Self:
        return self.set_header("If-Match", etag)
    
    def set_if_none_match(self, etag: str) -> Self:
        return self.set_header("If-None-Match", etag)


class GetObject(_Conditional):
    """下载对象（响应体完整缓存在内存中）。"""
    
    def __init__(self, context: ClientContext, endpoint: Endpoint) -> None:
        super().__init__(context, "GET", endpoint, Scope.OBJECT)
    
    def set_range(self, start: int, end: int | None = None) -> Self:
        """只下载 [start, end] 字节范围，end 为 None 时读到末尾。"""
        return self.set_header("Range", byte_range(start, end))
    
    def set_version_id(self, version_id: str) -> Self:
        return self.set_query("versionId", version_id)
    
    async def download(self) -> bytes:
        response = await self.dispatch()
        return response.content
    
    async def download_to_file(self, save_path: str | os.PathLike[str]) -> int:
        """下载到本地文件，返回写入的字节数。
        
        不支持网络路径；目标文件已存在时抛出 FileExistsError。
        """
        if "://" in str(save_path):
            raise InvalidRequestError(f"不支持网络路径: {save_path}")
        content = await self.download()
        
        def _write() -> int:
            path = Path(save_path)
            path.parent.mkdir(parents=True, exist_ok=True)
            with path.open("xb") as file:
                return file.write(content)
        
        written = await asyncio.to_thread(_write)
        logger.debug(f"对象已下载: {self._endpoint.object_key} -> {save_path} ({written} bytes)")
        return written
    
    async def send(self) -> bytes:
        return await self.download()


class HeadObject(_Conditional):
    """获取对象的全部元信息（响应头）。"""
    
    def __init__(self, context: ClientContext, endpoint: Endpoint) -> None:
        super().__init__(context, "HEAD", endpoint, Scope.OBJECT)
    
    async def send(self) -> dict[str, str]:
        response = await self.dispatch()
        result: dict[str, str] = {}
        for key, value in response.headers.items():
            name = key.lower()
            if name in _TRANSPORT_HEADERS:
                continue
            result[name] = trim_etag(value) if name == "etag" else value
        return result


class GetObjectMeta(RequestBuilder):
    """获取对象的基本元信息（ETag、大小、最后修改时间等）。"""
    
    def __init__(self, context: ClientContext, endpoint: Endpoint) -> None:
        super().__init__(context, "HEAD", endpoint, Scope.OBJECT)
        self.set_query("objectMeta")
    
    def set_version_id(self, version_id: str) -> Self:
        return self.set_query("versionId", version_id)
    
    async def send(self) -> ObjectMeta:
        response = await self.dispatch()
        headers = response.headers
        length = headers.get("Content-Length")
        return ObjectMeta(
            content_length=int(length) if length is not None else None,
            e_tag=headers.get("ETag"),
            last_modified=headers.get("Last-Modified"),
            last_access_time=headers.get("x-oss-last-access-time"),
            content_type=headers.get("Content-Type"),
            version_id=headers.get("x-oss-version-id"),
            headers={key.lower(): value for key, value in headers.items()},
        )


class DelObject(RequestBuilder):
    """删除对象（对象不存在时同样成功）。"""
    
    def __init__(self, context: ClientContext, endpoint: Endpoint) -> None:
        super().__init__(context, "DELETE", endpoint, Scope.OBJECT)
    
    def set_version_id(self, version_id: str) -> Self:
        return self.set_query("versionId", version_id)
    
    async def send(self) -> None:
        await self.dispatch()


class CopyObject(ObjectOptions):
    """在同一地域内复制对象到当前对象。"""
    
    def __init__(
        self,
        context: ClientContext,
        endpoint: Endpoint,
        source_bucket: str,
        source_key: str,
    ) -> None:
        super().__init__(context, "PUT", endpoint)
        if not source_bucket or not source_key:
            raise InvalidRequestError("复制源的存储空间和对象名称不能为空")
        self._source = (source_bucket, source_key)
        self.set_header("x-oss-copy-source", copy_source(source_bucket, source_key))
    
    def set_source_version_id(self, version_id: str) -> Self:
        return self.set_header("x-oss-copy-source", copy_source(*self._source, version_id))
    
    def set_if_modified_since(self, moment: datetime) -> Self:
        return self.set_header("x-oss-copy-source-if-modified-since", http_date(moment))
    
    def set_if_unmodified_since(self, moment: datetime) -> Self:
        return self.set_header("x-oss-copy-source-if-unmodified-since", http_date(moment))
    
    def set_if_match(self, etag: str) -> Self:
        return self.set_header("x-oss-copy-source-if-match", etag)
    
    def set_if_none_match(self, etag: str) -> Self:
        return self.set_header("x-oss-copy-source-if-none-match", etag)
    
    def set_metadata_directive(self) -> Self:
        """使用本次请求的元数据替换源对象的元数据。"""
        return self.set_header("x-oss-metadata-directive", "REPLACE")
    
    def set_tagging_directive(self) -> Self:
        """使用本次请求的标签替换源对象的标签。"""
        return self.set_header("x-oss-tagging-directive", "Replace")
    
    async def send(self) -> PutObjectResult:
        response = await self.dispatch()
        e_tag = None
        if response.content:
            e_tag = parse_xml(response.content, status_code=response.status_code).findtext("ETag")
        return PutObjectResult(
            e_tag=e_tag or response.headers.get("ETag"),
            version_id=response.headers.get("x-oss-version-id"),
        )


class GetObjectTagging(RequestBuilder):
    def __init__(self, context: ClientContext, endpoint: Endpoint) -> None:
        super().__init__(context, "GET", endpoint, Scope.OBJECT)
        self.set_query("tagging")
    
    async def send(self) -> list[Tag]:
        response = await self.dispatch()
        element = parse_xml(response.content, status_code=response.status_code)
        return [
            Tag(key=item.findtext("Key") or "", value=item.findtext("Value") or "")
            for item in element.iterfind("TagSet/Tag")
        ]


class PutObjectTagging(RequestBuilder):
    """设置对象标签（覆盖已有标签）。"""
    
    def __init__(self, context: ClientContext, endpoint: Endpoint, tags: list[tuple[str, str]] | None = None) -> None:
        super().__init__(context, "PUT", endpoint, Scope.OBJECT)
        self.set_query("tagging")
        self._tags: list[tuple[str, str]] = list(tags or [])
    
    def add_tag(self, key: str, value: str = "") -> Self:
        self._ensure_open()
        self._tags.append((key, value))
        return self
    
    def _prepare(self) -> None:
        body = xml_document(
            "Tagging",
            [("TagSet", [("Tag", [("Key", key), ("Value", value)]) for key, value in self._tags])],
        )
        self.set_body(body).set_content_type(XML_CONTENT_TYPE)
    
    async def send(self) -> None:
        await self.dispatch()


class DelObjectTagging(RequestBuilder):
    def __init__(self, context: ClientContext, endpoint: Endpoint) -> None:
        super().__init__(context, "DELETE", endpoint, Scope.OBJECT)
        self.set_query("tagging")
    
    async def send(self) -> None:
        await self.dispatch()


class GetObjectAcl(RequestBuilder):
    def __init__(self, context: ClientContext, endpoint: Endpoint) -> None:
        super().__init__(context, "GET", endpoint, Scope.OBJECT)
        self.set_query("acl")
    
    async def send(self) -> Acl:
        response = await self.dispatch()
        element = parse_xml(response.content, status_code=response.status_code)
        grant = element.findtext("AccessControlList/Grant")
        try:
            return Acl(grant)
        except ValueError as exc:
            raise InvalidResponseError(
                f"未知的访问权限: {grant}", body=response.content, status_code=response.status_code
            ) from exc


class PutObjectAcl(RequestBuilder):
    def __init__(self, context: ClientContext, endpoint: Endpoint, acl: Acl) -> None:
        super().__init__(context, "PUT", endpoint, Scope.OBJECT)
        self.set_query("acl")
        self.set_header("x-oss-object-acl", Acl(acl).value)
    
    async def send(self) -> None:
        await self.dispatch()


class PutSymlink(ObjectOptions):
    """创建指向 target 的软链接。"""
    
    def __init__(self, context: ClientContext, endpoint: Endpoint, target: str) -> None:
        super().__init__(context, "PUT", endpoint)
        if not target:
            raise InvalidRequestError("软链接目标不能为空")
        self.set_query("symlink")
        self.set_header("x-oss-symlink-target", url_encode(target))
    
    async def send(self) -> None:
        await self.dispatch()


class GetSymlink(RequestBuilder):
    """获取软链接指向的目标对象名称。"""
    
    def __init__(self, context: ClientContext, endpoint: Endpoint) -> None:
        super().__init__(context, "GET", endpoint, Scope.OBJECT)
        self.set_query("symlink")
    
    async def send(self) -> str:
        response = await self.dispatch()
        target = response.headers.get("x-oss-symlink-target")
        if target is None:
            raise InvalidResponseError("响应缺少 x-oss-symlink-target", status_code=response.status_code)
        return url_decode(target)


class RestoreObject(RequestBuilder):
    """解冻归档、冷归档或深度冷归档对象。"""
    
    def __init__(self, context: ClientContext, endpoint: Endpoint) -> None:
        super().__init__(context, "POST", endpoint, Scope.OBJECT)
        self.set_query("restore")
        self._days: int | None = None
        self._tier: RestoreTier | None = None
    
    def set_days(self, days: int) -> Self:
        """解冻后保持可读的天数。"""
        self._ensure_open()
        if days < 1:
            raise InvalidRequestError(f"解冻天数必须大于 0: {days}")
        self._days = days
        return self
    
    def set_tier(self, tier: RestoreTier) -> Self:
        """解冻优先级（仅冷归档和深度冷归档）。"""
        self._ensure_open()
        self._tier = RestoreTier(tier)
        return self
    
    def _prepare(self) -> None:
        if self._days is None and self._tier is None:
            return
        children: list[tuple[str, object]] = [("Days", self._days)]
        if self._tier is not None:
            children.append(("JobParameters", [("Tier", self._tier.value)]))
        self.set_body(xml_document("RestoreRequest", children)).set_content_type(XML_CONTENT_TYPE)
    
    async def send(self) -> None:
        await self.dispatch()
        logger.info(f"已提交解冻请求: {self._endpoint.bucket_name}/{self._endpoint.object_key}")


__all__ = [
    "AppendObject",
    "CopyObject",
    "DelObject",
    "DelObjectTagging",
    "GetObject",
    "GetObjectAcl",
    "GetObjectMeta",
    "GetObjectTagging",
    "GetSymlink",
    "HeadObject",
    "MAX_OBJECT_SIZE",
    "PutObject",
    "PutObjectAcl",
    "PutObjectTagging",
    "PutSymlink",
    "RestoreObject",
]
