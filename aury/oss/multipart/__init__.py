"""分片上传 - 会话、底层请求与协调器。"""

from .coordinator import MultipartUploadCoordinator
from .operations import (
    AbortMultipartUpload,
    CompleteMultipartUpload,
    InitiateMultipartUpload,
    ListMultipartUploads,
    ListParts,
    UploadPart,
    UploadPartCopy,
)
from .session import MultipartSession, PartRecord, SessionState

__all__ = [
    "AbortMultipartUpload",
    "CompleteMultipartUpload",
    "InitiateMultipartUpload",
    "ListMultipartUploads",
    "ListParts",
    "MultipartSession",
    "MultipartUploadCoordinator",
    "PartRecord",
    "SessionState",
    "UploadPart",
    "UploadPartCopy",
]
