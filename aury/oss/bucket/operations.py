"""存储空间操作。"""

from __future__ import annotations

from typing import TYPE_CHECKING

from aury.oss.common.encoding import url_decode
from aury.oss.common.exceptions import InvalidRequestError
from aury.oss.common.logging import logger
from aury.oss.core.request import Endpoint, RequestBuilder, Scope
from aury.oss.core.response import decode_model, decode_xml, element_to_dict, parse_xml, xml_document
from aury.oss.models import (
    Acl,
    BucketInfo,
    BucketStat,
    CommonPrefix,
    DataRedundancyType,
    ListObjectsResult,
    ObjectSummary,
    StorageClass,
)

if TYPE_CHECKING:
    from typing import Self

    from aury.oss.core.context import ClientContext

XML_CONTENT_TYPE = "application/xml"
MAX_LIST_PAGE = 1000
MAX_DELETE_OBJECTS = 1000


class PutBucket(RequestBuilder):
    """创建存储空间。"""
    
    def __init__(self, context: ClientContext, endpoint: Endpoint) -> None:
        super().__init__(context, "PUT", endpoint, Scope.BUCKET)
        self._storage_class: StorageClass | None = None
        self._redundancy_type: DataRedundancyType | None = None
    
    def set_acl(self, acl: Acl) -> Self:
        return self.set_header("x-oss-acl", Acl(acl).value)
    
    def set_group_id(self, group_id: str) -> Self:
        """指定资源组ID，不指定时属于默认资源组。"""
        return self.set_header("x-oss-resource-group-id", group_id)
    
    def set_storage_class(self, storage_class: StorageClass) -> Self:
        self._ensure_open()
        self._storage_class = StorageClass(storage_class)
        return self
    
    def set_redundancy_type(self, redundancy_type: DataRedundancyType) -> Self:
        self._ensure_open()
        self._redundancy_type = DataRedundancyType(redundancy_type)
        return self
    
    def _prepare(self) -> None:
        if self._storage_class is None and self._redundancy_type is None:
            return
        body = xml_document(
            "CreateBucketConfiguration",
            [
                ("StorageClass", self._storage_class and self._storage_class.value),
                ("DataRedundancyType", self._redundancy_type and self._redundancy_type.value),
            ],
        )
        self.set_body(body).set_content_type(XML_CONTENT_TYPE)
    
    async def send(self) -> None:
        await self.dispatch()
        logger.info(f"存储空间已创建: {self._endpoint.bucket_name}")


class DelBucket(RequestBuilder):
    """删除存储空间（必须为空）。"""
    
    def __init__(self, context: ClientContext, endpoint: Endpoint) -> None:
        super().__init__(context, "DELETE", endpoint, Scope.BUCKET)
    
    async def send(self) -> None:
        await self.dispatch()
        logger.info(f"存储空间已删除: {self._endpoint.bucket_name}")


class GetBucketInfo(RequestBuilder):
    def __init__(self, context: ClientContext, endpoint: Endpoint) -> None:
        super().__init__(context, "GET", endpoint, Scope.BUCKET)
        self.set_query("bucketInfo")
    
    async def send(self) -> BucketInfo:
        response = await self.dispatch()
        return decode_xml(BucketInfo, response, "Bucket")


class GetBucketStat(RequestBuilder):
    """获取存储容量与对象数量。
    
    数据并非实时，延时可能超过一个小时。
    """
    
    def __init__(self, context: ClientContext, endpoint: Endpoint) -> None:
        super().__init__(context, "GET", endpoint, Scope.BUCKET)
        self.set_query("stat")
    
    async def send(self) -> BucketStat:
        response = await self.dispatch()
        return decode_xml(BucketStat, response)


class DelObjects(RequestBuilder):
    """批量删除对象（quiet 模式，单次最多 1000 个）。"""
    
    def __init__(self, context: ClientContext, endpoint: Endpoint, keys: list[str] | None = None) -> None:
        super().__init__(context, "POST", endpoint, Scope.BUCKET)
        self.set_query("delete")
        self._keys: list[str] = list(keys or [])
    
    def add_keys(self, keys: list[str]) -> Self:
        self._ensure_open()
        self._keys.extend(keys)
        return self
    
    def _prepare(self) -> None:
        if not self._keys:
            raise InvalidRequestError("待删除的对象列表不能为空")
        if len(self._keys) > MAX_DELETE_OBJECTS:
            raise InvalidRequestError(f"单次最多删除 {MAX_DELETE_OBJECTS} 个对象")
        body = xml_document(
            "Delete",
            [("Quiet", True)] + [("Object", [("Key", key)]) for key in self._keys],
        )
        self.set_body(body).set_content_type(XML_CONTENT_TYPE).set_content_md5()
    
    async def send(self) -> None:
        await self.dispatch()
        logger.info(f"批量删除对象: bucket={self._endpoint.bucket_name}, count={len(self._keys)}")


class ListObjects:
    """列举存储空间中的对象（ListObjectsV2）。
    
    默认最多取回 1000 条；max_objects 更大时自动按 continuation-token 翻页。
    每一页都是独立签名的请求。
    
    使用示例:
        result = await bucket.list_objects().set_prefix("logs/").set_max_objects(5000).send()
        for item in result.contents:
            print(item.key, item.size)
    """
    
    def __init__(self, context: ClientContext, endpoint: Endpoint) -> None:
        self._context = context
        self._endpoint = endpoint
        self._prefix: str | None = None
        self._delimiter: str | None = None
        self._start_after: str | None = None
        self._continuation_token: str | None = None
        self._encoding_type: str | None = None
        self._fetch_owner = False
        self._max_objects = MAX_LIST_PAGE
        self._sent = False
    
    def _ensure_open(self) -> None:
        if self._sent:
            raise InvalidRequestError("请求已发送，构建器不能再次使用")
    
    def set_prefix(self, prefix: str) -> Self:
        """限定返回的对象名称必须以 prefix 作为前缀。"""
        self._ensure_open()
        self._prefix = prefix
        return self
    
    def set_delimiter(self, delimiter: str) -> Self:
        """对对象名称分组的字符，分组结果放在 common_prefixes 中。"""
        self._ensure_open()
        self._delimiter = delimiter
        return self
    
    def set_start_after(self, start_after: str) -> Self:
        """从 start_after 之后按字母排序开始返回。"""
        self._ensure_open()
        self._start_after = start_after
        return self
    
    def set_continuation_token(self, token: str) -> Self:
        """从上一次结果的 next_continuation_token 继续列举。"""
        self._ensure_open()
        self._continuation_token = token
        return self
    
    def set_encoding_type(self, encoding_type: str) -> Self:
        """设置为 url 时对象名称经 URL 编码返回，结果中会自动解码。"""
        self._ensure_open()
        self._encoding_type = encoding_type
        return self
    
    def set_fetch_owner(self, fetch_owner: bool = True) -> Self:
        self._ensure_open()
        self._fetch_owner = fetch_owner
        return self
    
    def set_max_objects(self, max_objects: int) -> Self:
        """返回对象与分组的最大总数。"""
        self._ensure_open()
        if max_objects < 1:
            raise InvalidRequestError(f"max_objects 必须大于 0: {max_objects}")
        self._max_objects = max_objects
        return self
    
    def _page(self, page_size: int, token: str | None) -> RequestBuilder:
        builder = RequestBuilder(self._context, "GET", self._endpoint, Scope.BUCKET)
        builder.set_query("list-type", 2).set_query("max-keys", page_size)
        builder.set_query("fetch-owner", "true" if self._fetch_owner else "false")
        for name, value in (
            ("prefix", self._prefix),
            ("delimiter", self._delimiter),
            ("start-after", self._start_after),
            ("continuation-token", token),
            ("encoding-type", self._encoding_type),
        ):
            if value is not None:
                builder.set_query(name, value)
        return builder
    
    async def send(self) -> ListObjectsResult:
        self._ensure_open()
        self._sent = True
        contents: list[ObjectSummary] = []
        prefixes: list[CommonPrefix] = []
        token = self._continuation_token
        decode = url_decode if self._encoding_type == "url" else (lambda value: value)
        name = prefix = delimiter = None
        
        remaining = self._max_objects
        while remaining > 0:
            response = await self._page(min(remaining, MAX_LIST_PAGE), token).dispatch()
            element = parse_xml(response.content, status_code=response.status_code)
            name = element.findtext("Name")
            prefix = element.findtext("Prefix")
            delimiter = element.findtext("Delimiter")
            
            page_count = 0
            for item in element.findall("Contents"):
                summary = decode_model(ObjectSummary, element_to_dict(item), response)
                summary.key = decode(summary.key)
                contents.append(summary)
                page_count += 1
            for item in element.findall("CommonPrefixes"):
                common = decode_model(CommonPrefix, element_to_dict(item), response)
                common.prefix = decode(common.prefix)
                prefixes.append(common)
                page_count += 1
            
            truncated = element.findtext("IsTruncated") == "true"
            token = element.findtext("NextContinuationToken") if truncated else None
            remaining -= page_count
            if token is None or page_count == 0:
                break
        
        return ListObjectsResult(
            name=name,
            prefix=prefix or None,
            delimiter=delimiter or None,
            contents=contents,
            common_prefixes=prefixes,
            next_continuation_token=token,
        )


__all__ = [
    "DelBucket",
    "DelObjects",
    "GetBucketInfo",
    "GetBucketStat",
    "ListObjects",
    "PutBucket",
]
