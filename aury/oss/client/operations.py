"""服务级操作：列举存储空间、查询地域信息。"""

from __future__ import annotations

from typing import TYPE_CHECKING

from aury.oss.common.exceptions import InvalidRequestError
from aury.oss.core.request import RequestBuilder, Scope
from aury.oss.core.response import decode_model, element_to_dict, parse_xml
from aury.oss.models import ListBucketsResult, RegionInfo

if TYPE_CHECKING:
    from typing import Self

    from aury.oss.core.context import ClientContext


class ListBuckets(RequestBuilder):
    """查询存储空间列表。
    
    使用示例:
        result = await client.list_buckets().set_prefix("logs-").send()
    """
    
    def __init__(self, context: ClientContext) -> None:
        super().__init__(context, "GET", context.endpoint_for(), Scope.SERVICE)
    
    def set_prefix(self, prefix: str) -> Self:
        """限定返回的存储空间名称必须以 prefix 作为前缀。"""
        return self.set_query("prefix", prefix)
    
    def set_marker(self, marker: str) -> Self:
        """从 marker 之后按字母排序的第一个开始返回。"""
        return self.set_query("marker", marker)
    
    def set_max_keys(self, max_keys: int) -> Self:
        """限定返回的最大个数，取值范围 1~1000。"""
        if not 1 <= max_keys <= 1000:
            raise InvalidRequestError(f"max-keys 取值范围为 1~1000: {max_keys}")
        return self.set_query("max-keys", max_keys)
    
    def set_group_id(self, group_id: str) -> Self:
        """指定资源组ID。"""
        return self.set_header("x-oss-resource-group-id", group_id)
    
    async def send(self) -> ListBucketsResult:
        response = await self.dispatch()
        data = element_to_dict(parse_xml(response.content, status_code=response.status_code))
        if not isinstance(data, dict):
            data = {}
        buckets = data.pop("Buckets", None)
        if isinstance(buckets, dict):
            data["Buckets"] = buckets.get("Bucket", [])
        return decode_model(ListBucketsResult, data, response)


class DescribeRegions(RequestBuilder):
    """查询地域的 Endpoint 信息，默认查询全部地域。"""
    
    def __init__(self, context: ClientContext) -> None:
        super().__init__(context, "GET", context.endpoint_for(), Scope.SERVICE)
        self.set_query("regions")
    
    def set_regions(self, region: str) -> Self:
        """只查询指定地域，例如 oss-cn-hangzhou。"""
        return self.set_query("regions", region)
    
    async def send(self) -> list[RegionInfo]:
        response = await self.dispatch()
        element = parse_xml(response.content, status_code=response.status_code)
        return [
            decode_model(RegionInfo, element_to_dict(item), response)
            for item in element.findall("RegionInfo")
        ]


__all__ = [
    "DescribeRegions",
    "ListBuckets",
]
