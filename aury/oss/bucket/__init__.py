"""存储空间 - 入口与存储空间级操作。"""

from .bucket import OssBucket
from .operations import DelBucket, DelObjects, GetBucketInfo, GetBucketStat, ListObjects, PutBucket

__all__ = [
    "DelBucket",
    "DelObjects",
    "GetBucketInfo",
    "GetBucketStat",
    "ListObjects",
    "OssBucket",
    "PutBucket",
]
