from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")
    """Application runtime configuration."""

    app_name: str = "FleetLog"
    environment: str = "development"
    host: str = os.getenv("FL_HOST", "127.0.0.1")
    port: int = int(os.getenv("FL_PORT", "8080"))

    storage_backend: str = os.getenv("FL_STORAGE", "sqlite")
    sqlite_path: Path = Path(os.getenv("FL_SQLITE_PATH", "./data/fleetlog.db"))
    storage_prefix: str = os.getenv("FL_STORAGE_PREFIX", "fleetlog")

    remote_endpoint_url: str = os.getenv("FL_REMOTE_URL", "")
    auto_sync: bool = os.getenv("FL_AUTO_SYNC", "false").lower() == "true"
    remote_timeout_seconds: Optional[float] = (
        float(os.getenv("FL_REMOTE_TIMEOUT"))
        if os.getenv("FL_REMOTE_TIMEOUT")
        else None
    )

    log_level: str = os.getenv("FL_LOG_LEVEL", "INFO")
    log_file: Optional[Path] = Path(os.getenv("FL_LOG_FILE")) if os.getenv("FL_LOG_FILE") else None

    @field_validator("storage_prefix", mode="before")
    @classmethod
    def _strip_prefix(cls, value: str) -> str:
        cleaned = str(value or "").strip().rstrip("_")
        return cleaned or "fleetlog"

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        return str(value or "INFO").strip().upper()


settings = Settings()

# Ensure essential directories exist
settings.sqlite_path.parent.mkdir(parents=True, exist_ok=True)
