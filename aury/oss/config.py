"""客户端配置。

使用 pydantic-settings 从环境变量读取配置。
"""

from __future__ import annotations

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from aury.oss.common.logging import setup_logging


class OssSettings(BaseSettings):
    """OSS 访问配置。
    
    环境变量前缀: OSS_
    示例: OSS_ACCESS_KEY_ID, OSS_ACCESS_KEY_SECRET, OSS_ENDPOINT
    """
    
    access_key_id: str = Field(
        default="",
        description="AccessKey ID"
    )
    access_key_secret: SecretStr = Field(
        default=SecretStr(""),
        description="AccessKey Secret"
    )
    security_token: SecretStr | None = Field(
        default=None,
        description="STS 临时令牌"
    )
    endpoint: str = Field(
        default="oss.aliyuncs.com",
        description="地域访问域名，例如 oss-cn-hangzhou.aliyuncs.com"
    )
    enable_https: bool = Field(
        default=True,
        description="是否使用 HTTPS"
    )
    timeout: float = Field(
        default=60.0,
        description="单次请求超时（秒）"
    )
    max_connections: int = Field(
        default=100,
        description="连接池最大连接数"
    )
    
    model_config = SettingsConfigDict(
        env_prefix="OSS_",
        case_sensitive=False,
    )


class LogSettings(BaseSettings):
    """日志配置。
    
    环境变量前缀: OSS_LOG_
    示例: OSS_LOG_LEVEL, OSS_LOG_FILE
    """
    
    level: str = Field(
        default="INFO",
        description="日志级别"
    )
    file: str | None = Field(
        default=None,
        description="日志文件路径"
    )
    
    model_config = SettingsConfigDict(
        env_prefix="OSS_LOG_",
        case_sensitive=False,
    )


def configure_logging(settings: LogSettings | None = None) -> None:
    """按日志配置安装日志输出（不传配置时读取环境变量）。"""
    settings = settings or LogSettings()
    setup_logging(log_level=settings.level, log_file=settings.file)


__all__ = [
    "LogSettings",
    "OssSettings",
    "configure_logging",
]
