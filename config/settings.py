"""
Environment settings (pydantic-settings).

Values come from the process environment or a .env file. Missing
Supabase credentials fail at import time.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Service settings. Names match the env vars case-insensitively."""

    model_config = SettingsConfigDict(
        env_file=(".env", "../.env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ===================
    # SUPABASE
    # ===================
    supabase_url: str = Field(..., description="Project URL")
    supabase_key: str = Field(..., description="Anon key used for normal reads and writes")
    supabase_service_key: Optional[str] = Field(
        None,
        description="Service role key; needed to read profiles for notifications"
    )

    # ===================
    # PUBLISHING
    # ===================
    publish_batch_size: int = Field(
        default=500,
        ge=1,
        le=5000,
        description="Rows per insert call for items and notifications"
    )
    freeze_retention_days: int = Field(
        default=7,
        ge=1,
        le=90,
        description="delete_after offset stamped on a version when it is frozen"
    )
    version_retention_count: int = Field(
        default=3,
        ge=1,
        le=52,
        description="Versions kept per list after a publish (the active one always survives)"
    )

    # ===================
    # DISPLAY / LAYOUT
    # ===================
    default_mark_yellow_weeks: int = Field(
        default=4,
        ge=0,
        le=53,
        description="Yellow highlight window used until a layout settings row exists"
    )
    settings_update_timeout_seconds: float = Field(
        default=12.0,
        gt=0,
        le=120,
        description="Seconds before a layout settings write reports a timeout"
    )

    # ===================
    # SERVER
    # ===================
    environment: str = Field(
        default="development",
        pattern="^(development|staging|production)$"
    )
    debug: bool = True
    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$"
    )
    api_host: str = "0.0.0.0"
    api_port: int = Field(default=8000, ge=1000, le=65535)

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


@lru_cache()
def get_settings() -> Settings:
    """
    Load settings once.

    Tests that change the environment call get_settings.cache_clear().
    """
    return Settings()


settings = get_settings()
