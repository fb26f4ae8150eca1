from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import List, Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

BACKENDS = {"mongodb", "memory"}
LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


@dataclass(frozen=True)
class Settings:
    """
    Application settings loaded from environment variables.

    Env vars:
    - ENV: deployment environment; anything other than 'production' loads a local .env first
    - PERSISTENCE_BACKEND: 'mongodb' (default) or 'memory'
    - MONGODB_URI: MongoDB connection string. Default 'mongodb://localhost:27017'
    - MONGODB_DATABASE: database name. Default 'todo_db'
    - MONGODB_COLLECTION: collection holding todo documents. Default 'todos'
    - MONGODB_TIMEOUT_MS: server selection timeout in milliseconds. Default 5000
    - HOST: interface to bind. Default '0.0.0.0'
    - PORT: listening port. Default 8000
    - CORS_ALLOW_ORIGINS: comma-separated list of allowed origins; '*' by default
    - LOG_LEVEL: root log level. Default 'INFO'
    """

    env: str
    persistence_backend: str
    mongodb_uri: str
    mongodb_database: str
    mongodb_collection: str
    mongodb_timeout_ms: int
    host: str
    port: int
    cors_allow_origins: List[str]
    log_level: str

    @property
    def is_production(self) -> bool:
        return self.env == "production"


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name, default)
    if value is None or value == "":
        return default
    return value


def _parse_int(value: str, default: int) -> int:
    try:
        return int(value.strip())
    except ValueError:
        logger.warning("Ignoring non-integer value %r, using %d", value, default)
        return default


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
def load_local_env(env: Optional[str] = None, dotenv_path: str = ".env") -> bool:
    """
    Load a local .env file unless running in production.

    Variables already present in the process environment win over the file.
    Returns True if a file was loaded.
    """
    env = (env if env is not None else os.getenv("ENV", "")).strip().lower()
    if env == "production":
        return False
    if not os.path.isfile(dotenv_path):
        logger.warning("No %s file found; using process environment only", dotenv_path)
        return False
    return load_dotenv(dotenv_path, override=False)


# PUBLIC_INTERFACE
def get_settings() -> Settings:
    """Return application settings loaded from environment variables."""
    load_local_env()

    env = _get_env("ENV", "development").strip().lower()

    backend = _get_env("PERSISTENCE_BACKEND", "mongodb").strip().lower()
    if backend not in BACKENDS:
        logger.warning("Unsupported PERSISTENCE_BACKEND %r, falling back to mongodb", backend)
        backend = "mongodb"

    log_level = _get_env("LOG_LEVEL", "INFO").strip().upper()
    if log_level not in LOG_LEVELS:
        logger.warning("Unsupported LOG_LEVEL %r, falling back to INFO", log_level)
        log_level = "INFO"

    return Settings(
        env=env,
        persistence_backend=backend,
        mongodb_uri=_get_env("MONGODB_URI", "mongodb://localhost:27017").strip(),
        mongodb_database=_get_env("MONGODB_DATABASE", "todo_db").strip(),
        mongodb_collection=_get_env("MONGODB_COLLECTION", "todos").strip(),
        mongodb_timeout_ms=_parse_int(_get_env("MONGODB_TIMEOUT_MS", "5000"), 5000),
        host=_get_env("HOST", "0.0.0.0").strip(),
        port=_parse_int(_get_env("PORT", "8000"), 8000),
        cors_allow_origins=_parse_origins(_get_env("CORS_ALLOW_ORIGINS", "*")),
        log_level=log_level,
    )
