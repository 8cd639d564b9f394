"""存储空间入口。"""

from __future__ import annotations

from typing import TYPE_CHECKING

from aury.oss.core.request import Endpoint
from aury.oss.multipart.operations import ListMultipartUploads
from aury.oss.object import OssObject

from .operations import DelBucket, DelObjects, GetBucketInfo, GetBucketStat, ListObjects, PutBucket

if TYPE_CHECKING:
    from aury.oss.core.context import ClientContext
    from aury.oss.multipart import MultipartUploadCoordinator


class OssBucket:
    """存储空间操作入口。
    
    使用示例:
        bucket = client.bucket("my-bucket")
        await bucket.put_bucket().set_acl(Acl.PRIVATE).send()
        result = await bucket.list_objects().set_prefix("logs/").send()
        
        # 通过自定义域名访问
        cdn_bucket = bucket.set_custom_domain("static.example.com")
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
    def name(self) -> str:
        return self._endpoint.bucket_name or ""
    
    @property
    def endpoint(self) -> Endpoint:
        return self._endpoint
    
    def set_custom_domain(self, domain: str, enable_https: bool = True) -> OssBucket:
        """返回通过自定义域名访问的存储空间入口。"""
        return OssBucket(
            self._context,
            self._endpoint.with_custom_domain(domain, enable_https),
            self._coordinator,
        )
    
    def object(self, key: str) -> OssObject:
        return OssObject(self._context, self._endpoint.with_object(key), self._coordinator)
    
    def put_bucket(self) -> PutBucket:
        return PutBucket(self._context, self._endpoint)
    
    def del_bucket(self) -> DelBucket:
        return DelBucket(self._context, self._endpoint)
    
    def list_objects(self) -> ListObjects:
        return ListObjects(self._context, self._endpoint)
    
    def get_bucket_info(self) -> GetBucketInfo:
        return GetBucketInfo(self._context, self._endpoint)
    
    def get_bucket_stat(self) -> GetBucketStat:
        return GetBucketStat(self._context, self._endpoint)
    
    def del_objects(self, keys: list[str] | None = None) -> DelObjects:
        return DelObjects(self._context, self._endpoint, keys)
    
    def list_multipart_uploads(self) -> ListMultipartUploads:
        return ListMultipartUploads(self._context, self._endpoint)
    
    def __repr__(self) -> str:
        return f"<OssBucket name={self.name} host={self._endpoint.host}>"


__all__ = ["OssBucket"]
