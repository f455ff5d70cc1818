"""Environment-driven runtime settings."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_optional(name: str) -> Optional[str]:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return None
    return raw.strip()


@dataclass(frozen=True)
class Settings:
    app_name: str
    app_version: str
    log_level: str

    admin_password: Optional[str]

    snapshot_database_path: Path
    snapshot_key: str
    snapshot_autosave: bool
    seed_demo_data: bool

    maintenance_blocks_booking: bool

    remote_sync_url: Optional[str]
    remote_sync_api_key: Optional[str]
    remote_sync_table: str
    remote_sync_timeout_seconds: float

    text_generation_api_key: Optional[str]
    text_generation_base_url: Optional[str]
    text_generation_model: str
    text_generation_temperature: float
    text_generation_timeout_seconds: float

    month_regex: str = r"^\d{4}-(0[1-9]|1[0-2])$"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Build settings once per process from environment variables."""
    return Settings(
        app_name=os.getenv("APP_NAME", "Pet Hotel Dashboard"),
        app_version=os.getenv("APP_VERSION", "1.0.0"),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        admin_password=_env_optional("ADMIN_PASSWORD"),
        snapshot_database_path=Path(
            os.getenv("SNAPSHOT_DATABASE_PATH", "data/pethotel.db")
        ),
        snapshot_key=os.getenv("SNAPSHOT_KEY", "local"),
        snapshot_autosave=_env_bool("SNAPSHOT_AUTOSAVE", True),
        seed_demo_data=_env_bool("SEED_DEMO_DATA", True),
        maintenance_blocks_booking=_env_bool("MAINTENANCE_BLOCKS_BOOKING", False),
        remote_sync_url=_env_optional("REMOTE_SYNC_URL"),
        remote_sync_api_key=_env_optional("REMOTE_SYNC_API_KEY"),
        remote_sync_table=os.getenv("REMOTE_SYNC_TABLE", "settings"),
        remote_sync_timeout_seconds=float(os.getenv("REMOTE_SYNC_TIMEOUT_SECONDS", "10")),
        text_generation_api_key=_env_optional("TEXT_GENERATION_API_KEY"),
        text_generation_base_url=_env_optional("TEXT_GENERATION_BASE_URL"),
        text_generation_model=os.getenv("TEXT_GENERATION_MODEL", "gemini-3-flash-preview"),
        text_generation_temperature=float(os.getenv("TEXT_GENERATION_TEMPERATURE", "0.7")),
        text_generation_timeout_seconds=float(
            os.getenv("TEXT_GENERATION_TIMEOUT_SECONDS", "30")
        ),
    )
