"""对象 - 入口与对象级操作。"""

from .object import OssObject
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
from .options import ObjectOptions

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
    "ObjectOptions",
    "OssObject",
    "PutObject",
    "PutObjectAcl",
    "PutObjectTagging",
    "PutSymlink",
    "RestoreObject",
]
