"""
Shared configuration management for the WeChat SDK.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class SDKSettings(BaseSettings):
    """SDK settings read from WECHAT_* environment variables or .env."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="WECHAT_",
        case_sensitive=False,
        extra="ignore"
    )

    # Official account credentials
    app_id: str = Field(default="")
    app_secret: str = Field(default="")
    token: str = Field(default="")
    encoding_aes_key: str = Field(default="")

    # Logging
    log_level: str = Field(default="info")

    # Transport
    http_timeout: float = Field(default=10.0, gt=0)

    # Cache backend; memory cache when unset
    redis_url: Optional[str] = Field(default=None)
    cache_key_prefix: str = Field(default="gowechat_officialaccount_")


@lru_cache()
def get_settings() -> SDKSettings:
    """Get process-wide SDK settings."""
    return SDKSettings()
