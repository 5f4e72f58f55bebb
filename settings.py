from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional, Tuple


_STORE_BACKEND_ENV = "SENSOR_STORE_BACKEND"
_DB_PATH_ENV = "SENSOR_DB_PATH"
_MIN_THRESHOLD_ENV = "ALERT_MIN_THRESHOLD"
_MAX_THRESHOLD_ENV = "ALERT_MAX_THRESHOLD"
_RETENTION_DAYS_ENV = "RETENTION_DAYS"
_PRUNE_INTERVAL_ENV = "PRUNE_INTERVAL_SECONDS"
_QUEUE_SIZE_ENV = "REALTIME_QUEUE_SIZE"
_ALLOWED_ORIGINS_ENV = "ALLOWED_ORIGINS"
_LOG_LEVEL_ENV = "LOG_LEVEL"

_STORE_BACKENDS = ("sqlite", "memory")


@dataclass(frozen=True)
class Settings:
    store_backend: str
    db_path: Optional[str]
    alert_min_threshold: float
    alert_max_threshold: float
    retention_days: int
    prune_interval_seconds: float
    realtime_queue_size: int
    allowed_origins: Tuple[str, ...]
    log_level: str


def _read_optional_env(name: str, default: Optional[str]) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or None


def _read_backend(default: str) -> str:
    value = os.getenv(_STORE_BACKEND_ENV)
    if value is None:
        return default
    candidate = value.strip().lower()
    return candidate if candidate in _STORE_BACKENDS else default


def _read_float(name: str, default: float, allow_zero: bool = True) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = float(candidate)
    except ValueError:
        return default
    if parsed < 0 or (parsed == 0 and not allow_zero):
        return default
    return parsed


def _read_positive_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = int(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_origins(default: Tuple[str, ...]) -> Tuple[str, ...]:
    value = os.getenv(_ALLOWED_ORIGINS_ENV)
    if value is None:
        return default
    origins = tuple(part.strip() for part in value.split(",") if part.strip())
    return origins or default


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    min_threshold = _read_float(_MIN_THRESHOLD_ENV, 10.0)
    max_threshold = _read_float(_MAX_THRESHOLD_ENV, 200.0)
    if min_threshold > max_threshold:
        min_threshold, max_threshold = 10.0, 200.0
    return Settings(
        store_backend=_read_backend("sqlite"),
        db_path=_read_optional_env(_DB_PATH_ENV, "./tmp/sensors.db"),
        alert_min_threshold=min_threshold,
        alert_max_threshold=max_threshold,
        retention_days=_read_positive_int(_RETENTION_DAYS_ENV, 30),
        prune_interval_seconds=_read_float(_PRUNE_INTERVAL_ENV, 3600.0),
        realtime_queue_size=_read_positive_int(_QUEUE_SIZE_ENV, 100),
        allowed_origins=_read_origins(("http://localhost:3000",)),
        log_level=_read_log_level("INFO"),
    )
