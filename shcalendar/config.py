"""Runtime configuration read from the environment."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass

DB_FILE = "calendar.db"


@dataclass(frozen=True)
class AppConfig:
    """Settings for the HTTP service; timeouts are in seconds."""

    port: str = "8086"
    db_path: str = DB_FILE
    read_header_timeout: float = 5.0
    read_timeout: float = 10.0
    write_timeout: float = 10.0
    idle_timeout: float = 60.0


def getenv(key: str, default: str, environ: Mapping[str, str] | None = None) -> str:
    """Return the variable's value, or ``default`` when it is unset or empty."""
    env = os.environ if environ is None else environ
    return env.get(key) or default


def load_config(environ: Mapping[str, str] | None = None) -> AppConfig:
    """Build the configuration from ``PORT`` and ``DB_PATH``."""
    return AppConfig(
        port=getenv("PORT", "8086", environ),
        db_path=getenv("DB_PATH", DB_FILE, environ),
    )