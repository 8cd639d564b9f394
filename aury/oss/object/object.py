"""对象入口。"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import datetime
from typing import TYPE_CHECKING

from aury.oss.core.presign import PresignedUrlBuilder
from aury.oss.core.request import Endpoint
from aury.oss.models import Acl, StorageClass

from .operations import (
    AppendObject,
    CopyObject,
    DelObject,
    DelObjectTagging,
    GetObject,
    GetObjectAcl,
    GetObjectMeta,
    GetObjectTagging,
    GetSymlink,
    HeadObject,
    PutObject,
    PutObjectAcl,
    PutObjectTagging,
    PutSymlink,
    RestoreObject,
)

if TYPE_CHECKING:
    from aury.oss.core.context import ClientContext
    from aury.oss.multipart import MultipartSession, MultipartUploadCoordinator


class OssObject:
    """对象操作入口，每个方法返回一个新的单次请求构建器。
    
    使用示例:
        obj = client.bucket("my-bucket").object("docs/readme.md")
        await obj.put_object().set_mime("text/markdown").send_content("# hello")
        content = await obj.get_object().download()
        url = obj.get_url(datetime.now(timezone.utc) + timedelta(hours=1))
    """
    
    def __init__(
        self,
        context: ClientContext,
        endpoint: Endpoint,
        coordinator: MultipartUploadCoordinator,
    ) -> None:
        self._context = context
        self._endpoint = endpoint
        self._coordinator = coordinator
    
    @property
    def bucket_name(self) -> str:
        return self._endpoint.bucket_name or ""
    
    @property
    def key(self) -> str:
        return self._endpoint.object_key or ""
    
    @property
    def endpoint(self) -> Endpoint:
        return self._endpoint
    
    def put_object(self) -> PutObject:
        return PutObject(self._context, self._endpoint)
    
    def append_object(self) -> AppendObject:
        return AppendObject(self._context, self._endpoint)
    
    def get_object(self) -> GetObject:
        return GetObject(self._context, self._endpoint)
    
    def head_object(self) -> HeadObject:
        return HeadObject(self._context, self._endpoint)
    
    def get_object_meta(self) -> GetObjectMeta:
        return GetObjectMeta(self._context, self._endpoint)
    
    def del_object(self) -> DelObject:
        return DelObject(self._context, self._endpoint)
    
    def copy_object(self, source_bucket: str, source_key: str) -> CopyObject:
        """把 source_bucket/source_key 复制到当前对象。"""
        return CopyObject(self._context, self._endpoint, source_bucket, source_key)
    
    def get_object_tagging(self) -> GetObjectTagging:
        return GetObjectTagging(self._context, self._endpoint)
    
    def put_object_tagging(self, tags: Iterable[tuple[str, str]] | None = None) -> PutObjectTagging:
        return PutObjectTagging(self._context, self._endpoint, list(tags or []))
    
    def del_object_tagging(self) -> DelObjectTagging:
        return DelObjectTagging(self._context, self._endpoint)
    
    def get_object_acl(self) -> GetObjectAcl:
        return GetObjectAcl(self._context, self._endpoint)
    
    def put_object_acl(self, acl: Acl) -> PutObjectAcl:
        return PutObjectAcl(self._context, self._endpoint, acl)
    
    def put_symlink(self, target: str) -> PutSymlink:
        return PutSymlink(self._context, self._endpoint, target)
    
    def get_symlink(self) -> GetSymlink:
        return GetSymlink(self._context, self._endpoint)
    
    def restore_object(self) -> RestoreObject:
        return RestoreObject(self._context, self._endpoint)
    
    def presign(self) -> PresignedUrlBuilder:
        """预签名 URL 构建器，可设置方法、响应头和访问限制。"""
        return PresignedUrlBuilder(self._context, self._endpoint)
    
    def get_url(self, expiry: datetime | int | float) -> str:
        """生成在 expiry 之前有效的下载 URL。"""
        return self.presign().url(expiry)
    
    async def initiate_multipart_upload(
        self,
        *,
        metadata: Mapping[str, str] | None = None,
        content_type: str | None = None,
        acl: Acl | None = None,
        storage_class: StorageClass | None = None,
        tags: Iterable[tuple[str, str]] | None = None,
        forbid_overwrite: bool = False,
    ) -> MultipartSession:
        """为当前对象初始化分片上传，后续操作通过客户端的协调器进行。"""
        return await self._coordinator.initiate(
            self.bucket_name,
            self.key,
            metadata=metadata,
            content_type=content_type,
            acl=acl,
            storage_class=storage_class,
            tags=tags,
            forbid_overwrite=forbid_overwrite,
        )
    
    def resume_multipart_upload(self, upload_id: str) -> MultipartSession:
        return self._coordinator.resume(self.bucket_name, self.key, upload_id)
    
    def __repr__(self) -> str:
        return f"<OssObject bucket={self.bucket_name} key={self.key}>"


__all__ = ["OssObject"]
