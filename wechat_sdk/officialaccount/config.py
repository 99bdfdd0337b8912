"""
Official account configuration and the context shared by its modules.
"""

from dataclasses import dataclass
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..cache import MemoryCache, build_cache
from ..credential.base import CACHE_KEY_OFFICIAL_ACCOUNT_PREFIX, AccessTokenProvider
from ..shared.config import SDKSettings


class OfficialAccountConfig(BaseModel):
    """Credentials and cache for one official account."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    app_id: str
    app_secret: str = ""
    token: str = ""
    encoding_aes_key: str = ""
    cache: Any = Field(default_factory=MemoryCache)
    cache_key_prefix: str = CACHE_KEY_OFFICIAL_ACCOUNT_PREFIX

    @classmethod
    def from_settings(cls, settings: SDKSettings, cache: Optional[Any] = None) -> "OfficialAccountConfig":
        return cls(
            app_id=settings.app_id,
            app_secret=settings.app_secret,
            token=settings.token,
            encoding_aes_key=settings.encoding_aes_key,
            cache=cache if cache is not None else build_cache(settings),
            cache_key_prefix=settings.cache_key_prefix,
        )


@dataclass
class OfficialAccountContext:
    config: OfficialAccountConfig
    access_token_handle: AccessTokenProvider

    @property
    def app_id(self) -> str:
        return self.config.app_id
