from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


def _get_env(name: str, default: str | None = None) -> str | None:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return value


def _get_env_bool(name: str, default: bool) -> bool:
    raw = _get_env(name, None)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _get_env_int(name: str, default: int) -> int:
    raw = _get_env(name, None)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _get_env_list(name: str, default: list[str]) -> tuple[str, ...]:
    raw = _get_env(name, None)
    if raw is None:
        return tuple(default)
    values = [item.strip() for item in raw.split(",")]
    clean = [item for item in values if item]
    return tuple(clean) if clean else tuple(default)


@dataclass(frozen=True)
class Settings:
    log_level: str
    sentry_dsn: str | None
    rate_limit: str
    rate_limit_enabled: bool
    scan_rate_limit_per_minute: int
    scan_rate_limit_db_path: str
    scan_history_backend: str
    scan_history_db_path: str
    cors_allowed_origins: tuple[str, ...]
    max_upload_mb: int


settings = Settings(
    log_level=_get_env("LOG_LEVEL", "INFO") or "INFO",
    sentry_dsn=_get_env("SENTRY_DSN"),
    rate_limit=_get_env("RATE_LIMIT", "60/minute") or "60/minute",
    rate_limit_enabled=_get_env_bool("RATE_LIMIT_ENABLED", True),
    scan_rate_limit_per_minute=_get_env_int("SCAN_RATE_LIMIT_PER_MINUTE", 30),
    scan_rate_limit_db_path=_get_env("SCAN_RATE_LIMIT_DB_PATH", "data/scan_rate_limit.db") or "data/scan_rate_limit.db",
    scan_history_backend=(_get_env("SCAN_HISTORY_BACKEND", "memory") or "memory").strip().lower(),
    scan_history_db_path=_get_env("SCAN_HISTORY_DB_PATH", "data/scan_history.db") or "data/scan_history.db",
    cors_allowed_origins=_get_env_list(
        "CORS_ALLOWED_ORIGINS",
        [
            "http://localhost:5173",
            "http://127.0.0.1:5173",
            "http://localhost:3000",
        ],
    ),
    max_upload_mb=_get_env_int("MAX_UPLOAD_MB", 10),
)

if settings.scan_history_backend not in {"memory", "sqlite"}:
    raise RuntimeError("SCAN_HISTORY_BACKEND must be either 'memory' or 'sqlite'.")

__all__ = ["Settings", "settings"]
