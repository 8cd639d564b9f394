"""分片上传会话。

会话状态机：UNINITIATED -> ACTIVE -> {COMPLETED, ABORTED}。
完成和中止都是一次性的终态转换，由会话上的锁串行化；
不同编号的分片各自写入 parts 中独立的槽位，可以并发上传。
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from enum import Enum

from aury.oss.common.exceptions import InvalidSessionStateError
from aury.oss.core.request import Endpoint


class SessionState(str, Enum):
    """会话状态。"""
    
    UNINITIATED = "uninitiated"
    ACTIVE = "active"
    COMPLETED = "completed"
    ABORTED = "aborted"


@dataclass(frozen=True)
class PartRecord:
    """已确认的分片。"""
    
    part_number: int
    etag: str
    size: int = 0
    
    def as_pair(self) -> tuple[int, str]:
        return self.part_number, self.etag


@dataclass(eq=False)
class MultipartSession:
    """一次分片上传的本地状态。
    
    Attributes:
        endpoint: 目标对象
        upload_id: 服务端分配的上传ID（初始化成功后才有）
        state: 当前状态
        parts: 按分片编号记录的已确认分片（同一编号重复上传时保留最后一次）
    """
    
    endpoint: Endpoint
    upload_id: str | None = None
    state: SessionState = SessionState.UNINITIATED
    parts: dict[int, PartRecord] = field(default_factory=dict)
    lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)
    
    @property
    def bucket(self) -> str:
        return self.endpoint.bucket_name or ""
    
    @property
    def object_key(self) -> str:
        return self.endpoint.object_key or ""
    
    @property
    def is_active(self) -> bool:
        return self.state is SessionState.ACTIVE
    
    @property
    def is_terminal(self) -> bool:
        return self.state in (SessionState.COMPLETED, SessionState.ABORTED)
    
    def ensure_active(self, operation: str) -> str:
        """校验会话处于 ACTIVE 状态并返回 upload_id。"""
        if self.state is not SessionState.ACTIVE or self.upload_id is None:
            raise InvalidSessionStateError(
                f"会话状态为 {self.state.value}，不能执行 {operation}",
                upload_id=self.upload_id,
                state=self.state.value,
            )
        return self.upload_id
    
    def activate(self, upload_id: str) -> None:
        if self.state is not SessionState.UNINITIATED:
            raise InvalidSessionStateError(
                "只有未初始化的会话可以激活", upload_id=self.upload_id, state=self.state.value
            )
        self.upload_id = upload_id
        self.state = SessionState.ACTIVE
    
    def record(self, part: PartRecord) -> bool:
        """记录已确认的分片；会话已结束时不记录并返回 False。"""
        if not self.is_active:
            return False
        self.parts[part.part_number] = part
        return True
    
    def ordered_parts(self) -> list[PartRecord]:
        """按分片编号排序的已确认分片。"""
        return [self.parts[number] for number in sorted(self.parts)]


__all__ = [
    "MultipartSession",
    "PartRecord",
    "SessionState",
]
