"""对象写入选项。

上传、追加、复制和初始化分片上传共用的请求头设置。
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from aury.oss.common.encoding import content_disposition_attachment, encode_tagging, validate_metadata_key
from aury.oss.core.request import Endpoint, RequestBuilder, Scope
from aury.oss.models import Acl, StorageClass

if TYPE_CHECKING:
    from typing import Self

    from aury.oss.core.context import ClientContext

META_PREFIX = "x-oss-meta-"


class ObjectOptions(RequestBuilder):
    """携带对象元数据、标签和存储选项的请求。"""
    
    def __init__(self, context: ClientContext, method: str, endpoint: Endpoint) -> None:
        super().__init__(context, method, endpoint, Scope.OBJECT)
        self._tags: list[tuple[str, str]] = []
    
    def set_mime(self, mime: str) -> Self:
        """设置对象的 Content-Type。"""
        return self.set_content_type(mime)
    
    def set_acl(self, acl: Acl) -> Self:
        return self.set_header("x-oss-object-acl", Acl(acl).value)
    
    def set_storage_class(self, storage_class: StorageClass) -> Self:
        return self.set_header("x-oss-storage-class", StorageClass(storage_class).value)
    
    def set_cache_control(self, cache_control: str) -> Self:
        """例如 no-cache、no-store、max-age=3600。"""
        return self.set_header("Cache-Control", cache_control)
    
    def set_content_disposition(self, content_disposition: str) -> Self:
        """例如 inline、attachment。"""
        return self.set_header("Content-Disposition", content_disposition)
    
    def set_download_name(self, filename: str) -> Self:
        """以附件形式下载，并指定下载文件名。"""
        return self.set_header("Content-Disposition", content_disposition_attachment(filename))
    
    def forbid_overwrite(self) -> Self:
        """禁止覆盖同名对象。"""
        return self.set_header("x-oss-forbid-overwrite", "true")
    
    def set_meta(self, key: str, value: str) -> Self:
        """设置自定义元数据，键只允许 ASCII 字母、数字和 ``-``。"""
        validate_metadata_key(key)
        return self.set_header(f"{META_PREFIX}{key.lower()}", value)
    
    def set_tagging(self, key: str, value: str = "") -> Self:
        """添加对象标签。"""
        self._ensure_open()
        self._tags.append((key, value))
        return self
    
    def _prepare(self) -> None:
        if self._tags:
            self.set_header("x-oss-tagging", encode_tagging(self._tags))


__all__ = ["META_PREFIX", "ObjectOptions"]
