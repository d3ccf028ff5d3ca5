"""
Paranoid Configuration

Environment-driven settings for the database connection, the default
timezone used for deletion timestamps, and logging.
"""

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from paranoid.exceptions import ConfigurationError

UTC = "utc"
LOCAL = "local"
TIMEZONE_MODES = (UTC, LOCAL)

DEFAULT_DATABASE_URL = "sqlite:///./paranoid.db"


@dataclass(frozen=True)
class Settings:
    database_url: str = DEFAULT_DATABASE_URL
    default_timezone: str = LOCAL
    sql_echo: bool = False
    log_level: str = "INFO"


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


def normalize_timezone(value: Optional[str]) -> str:
    """Validate a timezone mode, accepting any case and surrounding spaces"""
    mode = (value or "").strip().lower()
    if mode not in TIMEZONE_MODES:
        raise ConfigurationError(f"default timezone must be one of {TIMEZONE_MODES}, got {value!r}")
    return mode


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings from the environment (cached until reset_settings())"""
    return Settings(
        database_url=os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL),
        default_timezone=normalize_timezone(os.getenv("PARANOID_DEFAULT_TIMEZONE", LOCAL)),
        sql_echo=_env_flag("SQL_ECHO"),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )


def reset_settings() -> None:
    get_settings.cache_clear()


def configure_logging(level: Optional[str] = None) -> None:
    """Apply LOG_LEVEL (or an explicit level) to the root logger"""
    logging.basicConfig(
        level=level or get_settings().log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
