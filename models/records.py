"""Domain models shared across services."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Optional, Tuple


class DailyStrategy(str, Enum):
    """Reduction rule applied to the samples of one calendar date."""

    max = "max"
    mean = "mean"


class HourlyPolicy(str, Enum):
    """Windowing rule deciding which samples feed the hourly buckets."""

    today_capped = "today_capped"
    trailing_window_mean = "trailing_window_mean"


@dataclass(frozen=True, slots=True)
class ColumnMap:
    """Header names of the timestamp and pollutant columns."""

    timestamp_key: str = "dt_time"
    pm25_key: str = "pm2.5cnc"
    pm10_key: str = "pm10cnc"


@dataclass(frozen=True, slots=True)
class Sample:
    """A single validated reading parsed from the CSV."""

    timestamp: datetime
    pm25: float
    pm10: float


@dataclass(frozen=True, slots=True)
class DailyAggregate:
    date: date
    pm25: float
    pm10: float
    representative_timestamp: datetime


@dataclass(frozen=True, slots=True)
class HourlyBucket:
    hour: int
    pm25: float
    pm10: float
    sample_count: int
    last_update: datetime

    @property
    def time_of_day(self) -> str:
        """Clock time of the bucket's representative sample as ``HH:MM``."""
        return self.last_update.strftime("%H:%M")


@dataclass(frozen=True, slots=True)
class TimeBand:
    label: str
    start: str
    end: str


def parse_time_band(value: str) -> TimeBand:
    """Build a band from ``"label,HH:MM,HH:MM"``; the end is exclusive."""
    parts = [part.strip() for part in value.split(",")]
    if len(parts) != 3 or not parts[0]:
        raise ValueError(f"Time band {value!r} must look like 'label,HH:MM,HH:MM'.")
    label, start, end = parts
    for bound in (start, end):
        try:
            valid = len(bound) == 5 and bool(datetime.strptime(bound, "%H:%M"))
        except ValueError:
            valid = False
        # bands compare as zero-padded strings
        if not valid:
            raise ValueError(f"Time band {value!r} has an invalid time {bound!r}.")
    if start >= end:
        raise ValueError(f"Time band {value!r} must start before it ends.")
    return TimeBand(label=label, start=start, end=end)


DEFAULT_TIME_BANDS: Tuple[TimeBand, ...] = (
    TimeBand(label="Morning", start="06:00", end="09:00"),
    TimeBand(label="Office Hours", start="09:00", end="17:00"),
    TimeBand(label="Evening", start="17:00", end="22:00"),
)


@dataclass(frozen=True)
class AnalysisConfig:
    """Per-invocation knobs for the aggregation pipeline."""

    daily_strategy: DailyStrategy = DailyStrategy.max
    hourly_policy: HourlyPolicy = HourlyPolicy.trailing_window_mean
    hourly_sample_cap: int = 4
    time_bands: Tuple[TimeBand, ...] = DEFAULT_TIME_BANDS
    column_map: ColumnMap = field(default_factory=ColumnMap)
    trailing_window: timedelta = timedelta(hours=24)


@dataclass(frozen=True, slots=True)
class BandAverage:
    label: str
    start: str
    end: str
    pm25: Optional[float]


@dataclass(frozen=True, slots=True)
class ComparisonPoint:
    date: date
    primary_pm25: float
    reference_pm25: float


@dataclass(frozen=True)
class ComparisonResult:
    """Primary vs. reference location; a positive delta means the primary is worse."""

    per_date_series: Tuple[ComparisonPoint, ...]
    primary_mean: float
    reference_mean: float
    mean_delta: float
