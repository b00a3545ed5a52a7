from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional


_DATASET_PATH_ENV = "SENSOR_DATASET_PATH"
_READINGS_PATH_ENV = "SENSOR_READINGS_PATH"
_JOURNAL_SIZE_ENV = "EVENT_JOURNAL_SIZE"
_RAISE_LISTENER_ERRORS_ENV = "DATA_VIEW_RAISE_LISTENER_ERRORS"
_LOG_LEVEL_ENV = "LOG_LEVEL"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class Settings:
    dataset_path: Optional[str]
    readings_path: Optional[str]
    journal_size: int
    raise_listener_errors: bool
    log_level: str


def _read_optional_env(name: str, default: Optional[str]) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or None


def _read_journal_size(default: int) -> int:
    value = os.getenv(_JOURNAL_SIZE_ENV)
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


def _read_bool_env(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip().lower()
    if candidate in _TRUE_VALUES:
        return True
    if candidate in _FALSE_VALUES:
        return False
    return default


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
    return Settings(
        dataset_path=_read_optional_env(_DATASET_PATH_ENV, "./data/dataset.json"),
        readings_path=_read_optional_env(_READINGS_PATH_ENV, "./data/readings.csv"),
        journal_size=_read_journal_size(500),
        raise_listener_errors=_read_bool_env(_RAISE_LISTENER_ERRORS_ENV, True),
        log_level=_read_log_level("INFO"),
    )
