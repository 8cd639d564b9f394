"""分片上传的底层请求。

每个类对应一次签名请求；会话状态由 MultipartUploadCoordinator 维护。
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

from aury.oss.common.encoding import byte_range, copy_source
from aury.oss.common.exceptions import InvalidRequestError, InvalidResponseError, RemoteError, SessionCreationError
from aury.oss.core.request import Endpoint, RequestBuilder, Scope
from aury.oss.core.response import decode_xml, parse_xml, trim_etag, xml_document
from aury.oss.models import CompleteMultipartUploadResult, ListMultipartUploadsResult, ListPartsResult
from aury.oss.object.options import ObjectOptions

if TYPE_CHECKING:
    from typing import Self

    from aury.oss.core.context import ClientContext

MIN_PART_NUMBER = 1
MAX_PART_NUMBER = 10000
MAX_PART_SIZE = 5 * 1024**3
XML_CONTENT_TYPE = "application/xml"


def validate_part_number(part_number: int) -> int:
    if not MIN_PART_NUMBER <= part_number <= MAX_PART_NUMBER:
        raise InvalidRequestError(
            f"分片编号必须在 {MIN_PART_NUMBER}~{MAX_PART_NUMBER} 之间: {part_number}"
        )
    return part_number


def validate_part_size(size: int) -> int:
    if size >= MAX_PART_SIZE:
        raise InvalidRequestError(f"分片大小必须小于 5GB: {size}")
    return size


class InitiateMultipartUpload(ObjectOptions):
    """初始化分片上传，返回 upload_id。"""
    
    def __init__(self, context: ClientContext, endpoint: Endpoint) -> None:
        super().__init__(context, "POST", endpoint)
        self.set_query("uploads")
    
    async def send(self) -> str:
        try:
            response = await self.dispatch()
        except RemoteError as exc:
            raise SessionCreationError.from_remote(exc, f"初始化分片上传失败: {exc.message}") from exc
        element = parse_xml(response.content, status_code=response.status_code)
        upload_id = element.findtext("UploadId")
        if not upload_id:
            raise InvalidResponseError(
                "响应缺少 UploadId", body=response.content, status_code=response.status_code
            )
        return upload_id


class UploadPart(RequestBuilder):
    """上传单个分片，返回分片 ETag。"""
    
    def __init__(self, context: ClientContext, endpoint: Endpoint, upload_id: str, part_number: int) -> None:
        super().__init__(context, "PUT", endpoint, Scope.OBJECT)
        self.set_query("partNumber", validate_part_number(part_number))
        self.set_query("uploadId", upload_id)
    
    async def send(self) -> str:
        response = await self.dispatch()
        etag = trim_etag(response.headers.get("ETag"))
        if not etag:
            raise InvalidResponseError("响应缺少 ETag", status_code=response.status_code)
        return etag


class UploadPartCopy(RequestBuilder):
    """从已有对象复制数据作为分片，返回分片 ETag。"""
    
    def __init__(
        self,
        context: ClientContext,
        endpoint: Endpoint,
        upload_id: str,
        part_number: int,
        source_bucket: str,
        source_object: str,
        *,
        source_version_id: str | None = None,
    ) -> None:
        super().__init__(context, "PUT", endpoint, Scope.OBJECT)
        if not source_bucket or not source_object:
            raise InvalidRequestError("复制源的存储空间和对象名称不能为空")
        self.set_query("partNumber", validate_part_number(part_number))
        self.set_query("uploadId", upload_id)
        self.set_header("x-oss-copy-source", copy_source(source_bucket, source_object, source_version_id))
    
    def set_range(self, start: int, end: int | None = None) -> Self:
        """只复制源对象的 [start, end] 字节范围。"""
        return self.set_header("x-oss-copy-source-range", byte_range(start, end))
    
    async def send(self) -> str:
        response = await self.dispatch()
        etag = None
        if response.content:
            etag = parse_xml(response.content, status_code=response.status_code).findtext("ETag")
        etag = trim_etag(etag or response.headers.get("ETag"))
        if not etag:
            raise InvalidResponseError("响应缺少 ETag", body=response.content, status_code=response.status_code)
        return etag


class CompleteMultipartUpload(RequestBuilder):
    """完成分片上传。分片列表按调用方给定的顺序提交。"""
    
    def __init__(
        self,
        context: ClientContext,
        endpoint: Endpoint,
        upload_id: str,
        parts: Sequence[tuple[int, str]],
    ) -> None:
        super().__init__(context, "POST", endpoint, Scope.OBJECT)
        if not parts:
            raise InvalidRequestError("提交的分片列表不能为空")
        seen: set[int] = set()
        for part_number, etag in parts:
            validate_part_number(part_number)
            if part_number in seen:
                raise InvalidRequestError(f"分片编号重复: {part_number}")
            if not etag:
                raise InvalidRequestError(f"分片 {part_number} 缺少 ETag")
            seen.add(part_number)
        self.set_query("uploadId", upload_id)
        self._parts = list(parts)
    
    def _prepare(self) -> None:
        body = xml_document(
            "CompleteMultipartUpload",
            [
                ("Part", [("PartNumber", part_number), ("ETag", f'"{trim_etag(etag)}"')])
                for part_number, etag in self._parts
            ],
        )
        self.set_body(body).set_content_type(XML_CONTENT_TYPE)
    
    async def send(self) -> CompleteMultipartUploadResult:
        response = await self.dispatch()
        result = CompleteMultipartUploadResult()
        if response.content:
            result = decode_xml(CompleteMultipartUploadResult, response)
        result.version_id = response.headers.get("x-oss-version-id", result.version_id)
        return result


class AbortMultipartUpload(RequestBuilder):
    def __init__(self, context: ClientContext, endpoint: Endpoint, upload_id: str) -> None:
        super().__init__(context, "DELETE", endpoint, Scope.OBJECT)
        self.set_query("uploadId", upload_id)
    
    async def send(self) -> None:
        await self.dispatch()


class ListParts(RequestBuilder):
    """列举某次分片上传中已上传的分片。"""
    
    def __init__(self, context: ClientContext, endpoint: Endpoint, upload_id: str) -> None:
        super().__init__(context, "GET", endpoint, Scope.OBJECT)
        self.set_query("uploadId", upload_id)
    
    def set_max_parts(self, max_parts: int) -> Self:
        if not 1 <= max_parts <= 1000:
            raise InvalidRequestError(f"max-parts 取值范围为 1~1000: {max_parts}")
        return self.set_query("max-parts", max_parts)
    
    def set_part_number_marker(self, marker: int) -> Self:
        """从编号大于 marker 的分片开始返回。"""
        return self.set_query("part-number-marker", marker)
    
    async def send(self) -> ListPartsResult:
        response = await self.dispatch()
        return decode_xml(ListPartsResult, response)


class ListMultipartUploads(RequestBuilder):
    """列举存储空间中进行中的分片上传，用于跨进程恢复。"""
    
    def __init__(self, context: ClientContext, endpoint: Endpoint) -> None:
        super().__init__(context, "GET", endpoint, Scope.BUCKET)
        self.set_query("uploads")
    
    def set_prefix(self, prefix: str) -> Self:
        return self.set_query("prefix", prefix)
    
    def set_delimiter(self, delimiter: str) -> Self:
        return self.set_query("delimiter", delimiter)
    
    def set_key_marker(self, key_marker: str) -> Self:
        return self.set_query("key-marker", key_marker)
    
    def set_upload_id_marker(self, upload_id_marker: str) -> Self:
        """与 key_marker 一起使用，从该 upload_id 之后开始返回。"""
        return self.set_query("upload-id-marker", upload_id_marker)
    
    def set_max_uploads(self, max_uploads: int) -> Self:
        if not 1 <= max_uploads <= 1000:
            raise InvalidRequestError(f"max-uploads 取值范围为 1~1000: {max_uploads}")
        return self.set_query("max-uploads", max_uploads)
    
    async def send(self) -> ListMultipartUploadsResult:
        response = await self.dispatch()
        return decode_xml(ListMultipartUploadsResult, response)


__all__ = [
    "AbortMultipartUpload",
    "CompleteMultipartUpload",
    "InitiateMultipartUpload",
    "ListMultipartUploads",
    "ListParts",
    "MAX_PART_NUMBER",
    "MAX_PART_SIZE",
    "MIN_PART_NUMBER",
    "UploadPart",
    "UploadPartCopy",
    "validate_part_number",
    "validate_part_size",
]
