from __future__ import annotations

import os
from dataclasses import dataclass
from typing import List


@dataclass(frozen=True)
class Settings:
    """
    Application settings loaded from environment variables.

    Env vars:
    - STORAGE_BACKEND: 'memory' (default), 'file' or 'sqlite'
    - STORAGE_KEY: key the todo list is persisted under. Default '@todos'
    - STORAGE_DIR: directory used by the file backend. Default './data'
    - SQLITE_DB_PATH: path to sqlite db file. Default './data/todos.db'
    - CORS_ALLOW_ORIGINS: comma-separated list of allowed origins; '*' by default
    - LOG_LEVEL: logging level name. Default 'INFO'
    """

    storage_backend: str
    storage_key: str
    storage_dir: str
    sqlite_db_path: str
    cors_allow_origins: List[str]
    log_level: str


_BACKENDS = {"memory", "file", "sqlite"}
_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name, default)
    if value is None or value == "":
        return default
    return value


def _parse_origins(origins_value: str) -> List[str]:
    """
    Parse CORS origins from env. Supports:
    - '*' to allow all origins
    - Comma-separated list of origins
    """
    value = origins_value.strip()
    if value == "*":
        return ["*"]
    return [o.strip() for o in value.split(",") if o.strip()]


# PUBLIC_INTERFACE
def get_settings() -> Settings:
    """Return application settings loaded from environment variables."""
    backend = _get_env("STORAGE_BACKEND", "memory").strip().lower()
    if backend not in _BACKENDS:
        # Fallback to memory if unsupported
        backend = "memory"

    log_level = _get_env("LOG_LEVEL", "INFO").strip().upper()
    if log_level not in _LOG_LEVELS:
        log_level = "INFO"

    return Settings(
        storage_backend=backend,
        storage_key=_get_env("STORAGE_KEY", "@todos").strip(),
        storage_dir=_get_env("STORAGE_DIR", "./data").strip(),
        sqlite_db_path=_get_env("SQLITE_DB_PATH", "./data/todos.db").strip(),
        cors_allow_origins=_parse_origins(_get_env("CORS_ALLOW_ORIGINS", "*")),
        log_level=log_level,
    )
