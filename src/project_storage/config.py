"""Configuration settings for the project storage server."""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Storage
    storage_dir: Path = Path("projects")
    max_upload_bytes: int = 50 * 1024 * 1024  # 50 MiB per .sb3 upload

    # Server
    host: str = "127.0.0.1"
    port: int = 8333
    log_level: str = "info"

    # Upstream for requests no local route handles (empty = disabled)
    fallback: str = ""
    fallback_timeout: float = 30.0


settings = Settings()
