"""调用方重试工具。

客户端内部从不自动重试；需要重试的调用方显式包裹单次调用：

    async for attempt in transport_retrying(max_attempts=5):
        with attempt:
            await coordinator.upload_part(session, 3, chunk)

只有 TransportError（网络层失败）会被重试，远端错误和本地校验错误直接抛出。
"""

from __future__ import annotations

from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from aury.oss.common.exceptions import TransportError


def transport_retrying(
    max_attempts: int = 3,
    *,
    min_wait: float = 0.5,
    max_wait: float = 8.0,
) -> AsyncRetrying:
    """构建只针对 TransportError 的重试器。
    
    Args:
        max_attempts: 最大尝试次数（含首次）
        min_wait: 最小等待时间（秒）
        max_wait: 最大等待时间（秒）
        
    Returns:
        AsyncRetrying: tenacity 重试器，最后一次失败原样抛出
    """
    return AsyncRetrying(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=min_wait, min=min_wait, max=max_wait),
        retry=retry_if_exception_type(TransportError),
        reraise=True,
    )


__all__ = ["transport_retrying"]
