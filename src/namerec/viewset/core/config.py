"""Process-wide settings."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings
from pydantic_settings import SettingsConfigDict

from namerec.viewset.core.types import PaginationMode


class ViewSetSettings(BaseSettings):
    """Defaults for resource bindings, loaded from VIEWSET_* environment variables."""

    model_config = SettingsConfigDict(
        env_prefix='VIEWSET_',
        env_file='.env',
        env_file_encoding='utf-8',
        case_sensitive=False,
        extra='ignore',
    )

    page_size: int = Field(default=20, ge=1)
    max_page_size: int = Field(default=1000, ge=1)
    pagination: PaginationMode = PaginationMode.AUTO
    log_level: str = 'INFO'
    debug_mode: bool = False


@lru_cache(maxsize=1)
def get_settings() -> ViewSetSettings:
    """
    Get cached settings instance.

    Returns:
        Settings read once per process
    """
    return ViewSetSettings()
