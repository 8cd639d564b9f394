"""数据模型。

请求参数使用的枚举，以及由 XML 响应解码得到的结果模型。
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, get_origin

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_pascal


class Acl(str, Enum):
    """访问权限。"""
    
    DEFAULT = "default"
    PRIVATE = "private"
    PUBLIC_READ = "public-read"
    PUBLIC_READ_WRITE = "public-read-write"


class StorageClass(str, Enum):
    """存储类型。"""
    
    STANDARD = "Standard"
    IA = "IA"
    ARCHIVE = "Archive"
    COLD_ARCHIVE = "ColdArchive"
    DEEP_COLD_ARCHIVE = "DeepColdArchive"


class DataRedundancyType(str, Enum):
    """数据容灾类型。"""
    
    LRS = "LRS"
    ZRS = "ZRS"


class RestoreTier(str, Enum):
    """解冻优先级。"""
    
    EXPEDITED = "Expedited"
    STANDARD = "Standard"
    BULK = "Bulk"


class OssModel(BaseModel):
    """结果模型基类。
    
    字段名与 XML 节点名按 PascalCase 对应；空节点视为缺省，
    列表字段遇到单个节点时自动包装为列表。
    """
    
    model_config = ConfigDict(
        alias_generator=to_pascal,
        populate_by_name=True,
        extra="ignore",
    )
    
    @model_validator(mode="before")
    @classmethod
    def _normalize_xml(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = {key: value for key, value in data.items() if value != ""}
        for name, field in cls.model_fields.items():
            key = field.alias or name
            if key in data and get_origin(field.annotation) is list and not isinstance(data[key], list):
                data[key] = [data[key]]
        return data
    
    @field_validator("e_tag", mode="before", check_fields=False)
    @classmethod
    def _trim_etag(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip('"')
        return value


class Owner(OssModel):
    id: str | None = Field(default=None, alias="ID")
    display_name: str | None = None


class BucketSummary(OssModel):
    """存储空间概要（ListBuckets）。"""
    
    name: str
    creation_date: datetime | None = None
    location: str | None = None
    region: str | None = None
    extranet_endpoint: str | None = None
    intranet_endpoint: str | None = None
    storage_class: str | None = None
    resource_group_id: str | None = None
    comment: str | None = None


class ListBucketsResult(OssModel):
    prefix: str | None = None
    marker: str | None = None
    max_keys: int | None = None
    is_truncated: bool = False
    next_marker: str | None = None
    owner: Owner | None = None
    buckets: list[BucketSummary] = Field(default_factory=list)


class RegionInfo(OssModel):
    """地域 Endpoint 信息。"""
    
    region: str
    internet_endpoint: str | None = None
    internal_endpoint: str | None = None
    accelerate_endpoint: str | None = None


class ObjectSummary(OssModel):
    """对象概要（ListObjects）。"""
    
    key: str
    last_modified: datetime | None = None
    e_tag: str | None = None
    type: str | None = None
    size: int = 0
    storage_class: str | None = None
    restore_info: str | None = None
    owner: Owner | None = None


class CommonPrefix(OssModel):
    prefix: str


class ListObjectsResult(OssModel):
    """对象列表。
    
    next_continuation_token 不为 None 时说明结果被 max_objects 截断，
    可用它继续列举剩余对象。
    """
    
    name: str | None = None
    prefix: str | None = None
    delimiter: str | None = None
    contents: list[ObjectSummary] = Field(default_factory=list)
    common_prefixes: list[CommonPrefix] = Field(default_factory=list)
    next_continuation_token: str | None = None


class AccessControlList(OssModel):
    grant: Acl = Acl.PRIVATE


class ServerSideEncryptionRule(OssModel):
    sse_algorithm: str | None = Field(default=None, alias="SSEAlgorithm")


class BucketPolicy(OssModel):
    log_bucket: str | None = None
    log_prefix: str | None = None


class BucketInfo(OssModel):
    """存储空间详细信息（GetBucketInfo）。"""
    
    name: str
    access_monitor: str | None = None
    comment: str | None = None
    creation_date: datetime | None = None
    cross_region_replication: str | None = None
    data_redundancy_type: str | None = None
    extranet_endpoint: str | None = None
    intranet_endpoint: str | None = None
    location: str | None = None
    resource_group_id: str | None = None
    storage_class: str | None = None
    transfer_acceleration: str | None = None
    versioning: str | None = None
    owner: Owner | None = None
    access_control_list: AccessControlList | None = None
    server_side_encryption_rule: ServerSideEncryptionRule | None = None
    bucket_policy: BucketPolicy | None = None


class BucketStat(OssModel):
    """存储空间容量与对象数量（非实时数据）。"""
    
    storage: int = 0
    object_count: int = 0
    multipart_upload_count: int = 0
    live_channel_count: int = 0
    last_modified_time: int | None = None
    standard_storage: int = 0
    standard_object_count: int = 0
    infrequent_access_storage: int = 0
    infrequent_access_real_storage: int = 0
    infrequent_access_object_count: int = 0
    archive_storage: int = 0
    archive_real_storage: int = 0
    archive_object_count: int = 0
    cold_archive_storage: int = 0
    cold_archive_real_storage: int = 0
    cold_archive_object_count: int = 0


class Tag(OssModel):
    key: str
    value: str = ""


class PutObjectResult(OssModel):
    e_tag: str | None = None
    version_id: str | None = None


class AppendObjectResult(OssModel):
    next_append_position: int
    hash_crc64ecma: str | None = None


class ObjectMeta(OssModel):
    """对象元信息（来自 HEAD 响应头）。"""
    
    content_length: int | None = None
    e_tag: str | None = None
    last_modified: str | None = None
    last_access_time: str | None = None
    content_type: str | None = None
    version_id: str | None = None
    headers: dict[str, str] = Field(default_factory=dict)


class Part(OssModel):
    """已上传的分片（ListParts）。"""
    
    part_number: int
    last_modified: datetime | None = None
    e_tag: str
    size: int = 0


class ListPartsResult(OssModel):
    bucket: str | None = None
    key: str | None = None
    upload_id: str | None = None
    storage_class: str | None = None
    part_number_marker: int = 0
    next_part_number_marker: int = 0
    max_parts: int | None = None
    is_truncated: bool = False
    parts: list[Part] = Field(default_factory=list, alias="Part")


class Upload(OssModel):
    """进行中的分片上传（ListMultipartUploads）。"""
    
    key: str
    upload_id: str
    storage_class: str | None = None
    initiated: datetime | None = None


class ListMultipartUploadsResult(OssModel):
    bucket: str | None = None
    key_marker: str | None = None
    upload_id_marker: str | None = None
    next_key_marker: str | None = None
    next_upload_id_marker: str | None = None
    max_uploads: int | None = None
    is_truncated: bool = False
    uploads: list[Upload] = Field(default_factory=list, alias="Upload")
    common_prefixes: list[CommonPrefix] = Field(default_factory=list)


class CompleteMultipartUploadResult(OssModel):
    location: str | None = None
    bucket: str | None = None
    key: str | None = None
    e_tag: str | None = None
    version_id: str | None = None


__all__ = [
    "AccessControlList",
    "Acl",
    "AppendObjectResult",
    "BucketInfo",
    "BucketPolicy",
    "BucketStat",
    "BucketSummary",
    "CommonPrefix",
    "CompleteMultipartUploadResult",
    "DataRedundancyType",
    "ListBucketsResult",
    "ListMultipartUploadsResult",
    "ListObjectsResult",
    "ListPartsResult",
    "ObjectMeta",
    "ObjectSummary",
    "OssModel",
    "Owner",
    "Part",
    "PutObjectResult",
    "RegionInfo",
    "RestoreTier",
    "ServerSideEncryptionRule",
    "StorageClass",
    "Tag",
]
