from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import Type, TypeVar

from models.records import AnalysisConfig, ColumnMap, DailyStrategy, HourlyPolicy


_DAILY_STRATEGY_ENV = "DAILY_STRATEGY"
_HOURLY_POLICY_ENV = "HOURLY_POLICY"
_HOURLY_SAMPLE_CAP_ENV = "HOURLY_SAMPLE_CAP"
_TIMESTAMP_COLUMN_ENV = "TIMESTAMP_COLUMN"
_PM25_COLUMN_ENV = "PM25_COLUMN"
_PM10_COLUMN_ENV = "PM10_COLUMN"
_WORKER_COUNT_ENV = "ANALYSIS_WORKER_COUNT"
_LOG_LEVEL_ENV = "LOG_LEVEL"

_E = TypeVar("_E", bound=Enum)


@dataclass(frozen=True)
class Settings:
    daily_strategy: DailyStrategy
    hourly_policy: HourlyPolicy
    hourly_sample_cap: int
    timestamp_column: str
    pm25_column: str
    pm10_column: str
    analysis_workers: int
    log_level: str


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


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


def _read_enum(name: str, enum_cls: Type[_E], default: _E) -> _E:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip().lower()
    if not candidate:
        return default
    try:
        return enum_cls(candidate)
    except ValueError:
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
        daily_strategy=_read_enum(_DAILY_STRATEGY_ENV, DailyStrategy, DailyStrategy.max),
        hourly_policy=_read_enum(
            _HOURLY_POLICY_ENV, HourlyPolicy, HourlyPolicy.trailing_window_mean
        ),
        hourly_sample_cap=_read_positive_int(_HOURLY_SAMPLE_CAP_ENV, 4),
        timestamp_column=_read_str_env(_TIMESTAMP_COLUMN_ENV, "dt_time"),
        pm25_column=_read_str_env(_PM25_COLUMN_ENV, "pm2.5cnc"),
        pm10_column=_read_str_env(_PM10_COLUMN_ENV, "pm10cnc"),
        analysis_workers=_read_positive_int(_WORKER_COUNT_ENV, 2),
        log_level=_read_log_level("INFO"),
    )


def default_config() -> AnalysisConfig:
    """Build the pipeline configuration implied by the environment."""
    settings = get_settings()
    return AnalysisConfig(
        daily_strategy=settings.daily_strategy,
        hourly_policy=settings.hourly_policy,
        hourly_sample_cap=settings.hourly_sample_cap,
        column_map=ColumnMap(
            timestamp_key=settings.timestamp_column,
            pm25_key=settings.pm25_column,
            pm10_key=settings.pm10_column,
        ),
    )
