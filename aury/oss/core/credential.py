"""访问凭证。"""

from __future__ import annotations

from dataclasses import dataclass, field

from aury.oss.common.exceptions import InvalidRequestError


@dataclass(frozen=True)
class Credential:
    """AccessKey 凭证（不可变，可在多个请求间共享）。
    
    密钥和临时令牌不会出现在 repr 中。
    
    Attributes:
        access_key_id: AccessKey ID
        access_key_secret: AccessKey Secret
        security_token: STS 临时令牌（可选）
    """
    
    access_key_id: str
    access_key_secret: str = field(repr=False)
    security_token: str | None = field(default=None, repr=False)
    
    def __post_init__(self) -> None:
        if not self.access_key_id or not self.access_key_secret:
            raise InvalidRequestError("AccessKey ID 和 AccessKey Secret 不能为空")
