"""Server configuration using pydantic-settings."""
from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_ADMIN_PASSWORD = "NEXUS_ADMIN"


class Settings(BaseSettings):
    """Server settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Server
    app_name: str = "Nexus"
    debug: bool = False
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8000

    # Admin console shared secret (x-admin-password header)
    admin_password: str = DEFAULT_ADMIN_PASSWORD

    # Gemini (fallback when system_config has no key)
    gemini_api_key: str = ""
    gemini_model: str = "gemini-2.5-flash"
    ai_temperature: float = 0.4

    # Accounts
    starting_credits: int = 5
    session_ttl_days: int = 7

    # Key-value store
    kv_backend: Literal["memory", "turso"] = "memory"
    turso_db_url: str = ""
    turso_auth_token: str = ""

    # Object storage
    storage_backend: Literal["memory", "minio"] = "memory"
    minio_endpoint: str = "localhost:9000"
    minio_access_key: str = ""
    minio_secret_key: str = ""
    minio_bucket: str = "nexus"
    minio_secure: bool = False

    # CORS
    allowed_origins: list[str] = ["*"]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
