"""分片上传协调器。

管理分片上传会话的生命周期：初始化、上传分片（可乱序、可并发）、
复制分片、完成、中止以及列举。会话登记在以 upload_id 为键的表中，
进程重启后可通过 list_multipart_uploads + resume 恢复。

协调器不做任何自动重试；上传失败的分片不会被记录，调用方可以重传
同一编号或中止整个会话。
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING

from aury.oss.common.exceptions import InvalidRequestError, InvalidSessionStateError
from aury.oss.common.logging import logger
from aury.oss.models import Acl, CompleteMultipartUploadResult, ListMultipartUploadsResult, ListPartsResult, StorageClass

from .operations import (
    AbortMultipartUpload,
    CompleteMultipartUpload,
    InitiateMultipartUpload,
    ListMultipartUploads,
    ListParts,
    UploadPart,
    UploadPartCopy,
    validate_part_number,
    validate_part_size,
)
from .session import MultipartSession, PartRecord, SessionState

if TYPE_CHECKING:
    from aury.oss.core.context import ClientContext


class MultipartUploadCoordinator:
    """分片上传协调器。
    
    使用示例:
        coordinator = client.multipart
        session = await coordinator.initiate("my-bucket", "video.mp4")
        part1 = await coordinator.upload_part(session, 1, chunk_a)
        part2 = await coordinator.upload_part(session, 2, chunk_b)
        await coordinator.complete(session, [part1, part2])
    """
    
    def __init__(self, context: ClientContext) -> None:
        self._context = context
        self._sessions: dict[str, MultipartSession] = {}
    
    def session(self, upload_id: str) -> MultipartSession:
        """按 upload_id 查找登记中的会话。"""
        try:
            return self._sessions[upload_id]
        except KeyError:
            raise InvalidRequestError(f"未登记的分片上传会话: {upload_id}") from None
    
    def sessions(self) -> list[MultipartSession]:
        return list(self._sessions.values())
    
    def resume(self, bucket: str, object_key: str, upload_id: str) -> MultipartSession:
        """接管一个已存在的分片上传（例如其他进程创建的）。"""
        existing = self._sessions.get(upload_id)
        if existing is not None:
            return existing
        session = MultipartSession(self._context.endpoint_for(bucket, object_key))
        session.activate(upload_id)
        self._sessions[upload_id] = session
        logger.info(f"恢复分片上传会话: bucket={bucket}, key={object_key}, upload_id={upload_id}")
        return session
    
    async def initiate(
        self,
        bucket: str,
        object_key: str,
        *,
        metadata: Mapping[str, str] | None = None,
        content_type: str | None = None,
        acl: Acl | None = None,
        storage_class: StorageClass | None = None,
        tags: Iterable[tuple[str, str]] | None = None,
        forbid_overwrite: bool = False,
    ) -> MultipartSession:
        """初始化分片上传。
        
        Returns:
            MultipartSession: 处于 ACTIVE 状态的会话
            
        Raises:
            InvalidRequestError: 寻址字段或元数据非法
            SessionCreationError: 服务端拒绝初始化
            TransportError: 网络层失败
        """
        session = MultipartSession(self._context.endpoint_for(bucket, object_key))
        request = InitiateMultipartUpload(self._context, session.endpoint)
        for key, value in (metadata or {}).items():
            request.set_meta(key, value)
        for key, value in tags or ():
            request.set_tagging(key, value)
        if content_type:
            request.set_mime(content_type)
        if acl is not None:
            request.set_acl(acl)
        if storage_class is not None:
            request.set_storage_class(storage_class)
        if forbid_overwrite:
            request.forbid_overwrite()
        
        upload_id = await request.send()
        session.activate(upload_id)
        self._sessions[upload_id] = session
        logger.info(f"分片上传已初始化: bucket={bucket}, key={object_key}, upload_id={upload_id}")
        return session
    
    async def upload_part(
        self,
        session: MultipartSession,
        part_number: int,
        body: bytes | bytearray | memoryview,
    ) -> PartRecord:
        """上传分片。同一编号重复上传时以最后一次成功的结果为准。
        
        Raises:
            InvalidRequestError: 分片编号不在 1~10000 或分片过大
            InvalidSessionStateError: 会话不处于 ACTIVE 状态
        """
        validate_part_number(part_number)
        data = bytes(body)
        validate_part_size(len(data))
        upload_id = session.ensure_active("upload_part")
        
        etag = await UploadPart(self._context, session.endpoint, upload_id, part_number).set_body(data).send()
        return self._record(session, PartRecord(part_number, etag, len(data)))
    
    async def upload_part_copy(
        self,
        session: MultipartSession,
        part_number: int,
        source_bucket: str,
        source_object: str,
        byte_range: tuple[int, int | None] | None = None,
        *,
        source_version_id: str | None = None,
    ) -> PartRecord:
        """从已有对象复制数据作为分片，可只复制一个字节范围。"""
        validate_part_number(part_number)
        upload_id = session.ensure_active("upload_part_copy")
        
        request = UploadPartCopy(
            self._context,
            session.endpoint,
            upload_id,
            part_number,
            source_bucket,
            source_object,
            source_version_id=source_version_id,
        )
        size = 0
        if byte_range is not None:
            start, end = byte_range
            request.set_range(start, end)
            if end is not None:
                size = end - start + 1
        etag = await request.send()
        return self._record(session, PartRecord(part_number, etag, size))
    
    def _record(self, session: MultipartSession, part: PartRecord) -> PartRecord:
        if not session.record(part):
            raise InvalidSessionStateError(
                f"分片 {part.part_number} 上传期间会话已结束",
                upload_id=session.upload_id,
                state=session.state.value,
            )
        logger.debug(f"分片已确认: upload_id={session.upload_id}, part={part.part_number}, size={part.size}")
        return part
    
    async def complete(
        self,
        session: MultipartSession,
        parts: Iterable[PartRecord | tuple[int, str]],
    ) -> CompleteMultipartUploadResult:
        """完成分片上传。
        
        parts 是要提交的完整分片列表，不要求与本地记录一致
        （分片可能由其他进程上传）。失败时会话保持 ACTIVE，可重试或中止。
        
        Raises:
            InvalidSessionStateError: 会话已完成或已中止（包括与 abort 竞争失败）
        """
        pairs = [part.as_pair() if isinstance(part, PartRecord) else (part[0], part[1]) for part in parts]
        async with session.lock:
            upload_id = session.ensure_active("complete")
            result = await CompleteMultipartUpload(self._context, session.endpoint, upload_id, pairs).send()
            session.state = SessionState.COMPLETED
        self._sessions.pop(upload_id, None)
        logger.info(
            f"分片上传已完成: bucket={session.bucket}, key={session.object_key}, "
            f"upload_id={upload_id}, parts={len(pairs)}"
        )
        return result
    
    async def abort(self, session: MultipartSession) -> None:
        """中止分片上传，已上传的分片被服务端清除。
        
        Raises:
            InvalidSessionStateError: 会话已完成或已中止（包括与 complete 竞争失败）
        """
        async with session.lock:
            upload_id = session.ensure_active("abort")
            await AbortMultipartUpload(self._context, session.endpoint, upload_id).send()
            session.state = SessionState.ABORTED
        self._sessions.pop(upload_id, None)
        logger.info(f"分片上传已中止: bucket={session.bucket}, key={session.object_key}, upload_id={upload_id}")
    
    async def list_parts(
        self,
        session: MultipartSession,
        *,
        max_parts: int | None = None,
        part_number_marker: int | None = None,
    ) -> ListPartsResult:
        """查询服务端已收到的分片（只读）。"""
        upload_id = session.ensure_active("list_parts")
        request = ListParts(self._context, session.endpoint, upload_id)
        if max_parts is not None:
            request.set_max_parts(max_parts)
        if part_number_marker is not None:
            request.set_part_number_marker(part_number_marker)
        return await request.send()
    
    async def list_multipart_uploads(
        self,
        bucket: str,
        *,
        prefix: str | None = None,
        delimiter: str | None = None,
        key_marker: str | None = None,
        upload_id_marker: str | None = None,
        max_uploads: int | None = None,
    ) -> ListMultipartUploadsResult:
        """列举存储空间中进行中的分片上传，不依赖本地会话。"""
        request = ListMultipartUploads(self._context, self._context.endpoint_for(bucket))
        if prefix is not None:
            request.set_prefix(prefix)
        if delimiter is not None:
            request.set_delimiter(delimiter)
        if key_marker is not None:
            request.set_key_marker(key_marker)
        if upload_id_marker is not None:
            request.set_upload_id_marker(upload_id_marker)
        if max_uploads is not None:
            request.set_max_uploads(max_uploads)
        return await request.send()


__all__ = ["MultipartUploadCoordinator"]
