"""客户端 - 入口与服务级操作。"""

from .client import OssClient
from .operations import DescribeRegions, ListBuckets

__all__ = [
    "DescribeRegions",
    "ListBuckets",
    "OssClient",
]
