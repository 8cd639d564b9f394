"""日志管理器 - 统一的日志配置。

提供：
- 统一的日志配置（控制台 + 可选滚动文件）
- 凭证脱敏工具

库本身不在导入时安装任何输出，由调用方通过 setup_logging 配置。
"""

from __future__ import annotations

from collections.abc import Mapping

from loguru import logger

_CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}:{function}:{line}</cyan> - "
    "<level>{message}</level>"
)

_FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"

REDACTED = "******"


def setup_logging(log_level: str = "INFO", log_file: str | None = None) -> None:
    """设置日志配置。
    
    Args:
        log_level: 日志级别（默认：INFO）
        log_file: 日志文件路径（可选，按天滚动）
    """
    log_level = log_level.upper()
    logger.remove()
    
    # 控制台输出
    logger.add(
        lambda msg: print(msg, end=""),
        format=_CONSOLE_FORMAT,
        level=log_level,
        colorize=True,
    )
    
    # 文件输出
    if log_file:
        logger.add(
            log_file,
            rotation="00:00",
            retention="7 days",
            level=log_level,
            format=_FILE_FORMAT,
            encoding="utf-8",
            enqueue=True,  # 异步写入
        )
    
    logger.info(f"日志系统初始化完成，级别: {log_level}")


def redact_headers(headers: Mapping[str, str]) -> dict[str, str]:
    """返回隐藏了认证信息的请求头副本。"""
    sensitive = {"authorization", "x-oss-security-token"}
    return {
        key: (REDACTED if key.lower() in sensitive else value)
        for key, value in headers.items()
    }


def redact_url(url: str) -> str:
    """隐藏 URL 查询串中的签名和临时令牌。"""
    if "?" not in url:
        return url
    base, query = url.split("?", 1)
    pairs = []
    for item in query.split("&"):
        name = item.split("=", 1)[0]
        if name in ("Signature", "security-token"):
            pairs.append(f"{name}={REDACTED}")
        else:
            pairs.append(item)
    return f"{base}?{'&'.join(pairs)}"


__all__ = [
    "REDACTED",
    "logger",
    "redact_headers",
    "redact_url",
    "setup_logging",
]
