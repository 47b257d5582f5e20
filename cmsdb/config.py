"""Environment-driven settings for the data-access layer.

Settings are read once from the process environment and cached; call
``get_settings.cache_clear()`` after changing the environment (tests do).
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Dict, Optional

SUPPORTED_DRIVERS = ("sqlite", "mysql", "postgres")

_DRIVER_URL_PREFIXES: Dict[str, str] = {
    "mysql": "mysql+pymysql",
    "postgres": "postgresql",
}


@dataclass(frozen=True)
class Settings:
    database_url: str
    node_id: str
    sql_echo: bool
    log_level: str


def _normalize_bool(value: Optional[str], default: bool = False) -> bool:
    """Return normalized boolean from environment-style value."""
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"", "0", "false", "no", "off"}:
        return False
    if normalized in {"1", "true", "yes", "on"}:
        return True
    return default


def resolve_database_url() -> str:
    """Build the database URL from the environment.

    ``DATABASE_URL`` wins when set. Otherwise ``CMSDB_DB_DRIVER`` selects the
    backend and the remaining components must all be present.
    """
    if os.getenv("DATABASE_URL"):
        return os.getenv("DATABASE_URL")

    driver = os.getenv("CMSDB_DB_DRIVER", "sqlite").strip().lower()
    if driver not in SUPPORTED_DRIVERS:
        raise ValueError(
            f"Unsupported CMSDB_DB_DRIVER {driver!r} (valid: {', '.join(SUPPORTED_DRIVERS)})"
        )

    if driver == "sqlite":
        path = os.getenv("CMSDB_DB_PATH", ":memory:")
        return f"sqlite+pysqlite:///{path}"

    db_user = os.getenv("CMSDB_DB_USER")
    db_password = os.getenv("CMSDB_DB_PASSWORD")
    db_host = os.getenv("CMSDB_DB_HOST")
    db_port = os.getenv("CMSDB_DB_PORT")
    db_name = os.getenv("CMSDB_DB_NAME")

    if not all([db_user, db_password, db_host, db_port, db_name]):
        missing = []
        if not db_user: missing.append("CMSDB_DB_USER")
        if not db_password: missing.append("CMSDB_DB_PASSWORD")
        if not db_host: missing.append("CMSDB_DB_HOST")
        if not db_port: missing.append("CMSDB_DB_PORT")
        if not db_name: missing.append("CMSDB_DB_NAME")
        raise ValueError(f"Missing required database environment variables: {', '.join(missing)}")

    prefix = _DRIVER_URL_PREFIXES[driver]
    return f"{prefix}://{db_user}:{db_password}@{db_host}:{db_port}/{db_name}"


@lru_cache(maxsize=None)
def get_settings() -> Settings:
    """Return the cached settings sourced from the environment."""
    return Settings(
        database_url=resolve_database_url(),
        node_id=os.getenv("CMSDB_NODE_ID", "node-local"),
        sql_echo=_normalize_bool(os.getenv("CMSDB_SQL_ECHO"), default=False),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )


def configure_logging(level_name: Optional[str] = None) -> int:
    """Apply ``LOG_LEVEL`` (or ``level_name``) to the root logger; return the level."""
    name = (level_name or os.getenv("LOG_LEVEL", "INFO")).upper()
    level = getattr(logging, name, logging.INFO)
    logging.basicConfig(level=level)
    logging.getLogger().setLevel(level)
    return level
