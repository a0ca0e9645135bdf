"""
Configuration helpers for the Accounts API.

Settings are read from the environment once per process (see get_settings)
and never mutated afterwards. Tests redirect storage by setting DATA_DIR and
calling get_settings.cache_clear().
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
import os

DEFAULT_DATA_DIR = Path(__file__).resolve().parents[2] / ".data"


@dataclass(frozen=True)
class Settings:
    """Typed view of environment variables."""

    app_env: str
    data_dir: Path
    log_level: str

    @property
    def is_production(self) -> bool:
        return self.app_env == "prod"


@lru_cache
def get_settings() -> Settings:
    """Read the current environment and build a Settings instance."""
    data_dir = (os.getenv("DATA_DIR") or "").strip()
    return Settings(
        app_env=(os.getenv("APP_ENV") or "dev").lower(),
        data_dir=Path(data_dir).expanduser().resolve() if data_dir else DEFAULT_DATA_DIR,
        log_level=(os.getenv("LOG_LEVEL") or "INFO").upper(),
    )
