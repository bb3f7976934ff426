"""
Configuration and settings for the portal service.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    api_prefix: str = Field(default="/api")
    log_level: str = Field(default="INFO")

    # Database (any SQLAlchemy URL; Postgres in production)
    database_url: Optional[str] = Field(default=None)

    # S3-compatible object storage for uploaded media
    storage_endpoint: Optional[str] = Field(default=None)
    storage_region: Optional[str] = Field(default=None)
    storage_bucket: Optional[str] = Field(default=None)
    aws_access_key_id: Optional[str] = Field(default=None)
    aws_secret_access_key: Optional[str] = Field(default=None)

    # Development toggles
    use_in_memory_backends: bool = Field(default=False)

    # Realtime change notifications (Redis pub/sub)
    redis_url: Optional[str] = Field(default=None)
    realtime_channel_prefix: str = Field(default="portal:recipients")

    # Admin surface; disabled while no code is configured
    admin_code: Optional[str] = Field(default=None)
    admin_session_ttl_seconds: int = Field(default=12 * 60 * 60, ge=60)

    # Passwords
    password_hash_method: str = Field(default="scrypt")
    min_password_length: int = Field(default=4, ge=1)

    cors_allow_origins: list[str] = Field(default_factory=lambda: ["*"])


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
