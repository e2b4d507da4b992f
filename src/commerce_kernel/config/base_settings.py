# src/commerce_kernel/config/base_settings.py
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class KernelSettings(BaseSettings):
    """
    Shared settings for the commerce kernel.
    Apps can subclass and extend it.
    """

    database_url: str | None = None
    echo_sql: bool = False
    log_level: str = "INFO"
    app_name: str = "Commerce Kernel"

    # feature flags
    tax_inclusive_pricing: bool = False

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache(maxsize=1)
def get_settings() -> KernelSettings:
    # singleton (reads env once)
    return KernelSettings()
