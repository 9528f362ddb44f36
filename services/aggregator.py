"""Aggregation logic for station samples."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Dict, Iterable, List

from models.records import (
    DailyAggregate,
    DailyStrategy,
    HourlyBucket,
    HourlyPolicy,
    Sample,
)

logger = logging.getLogger(__name__)

DEFAULT_HOURLY_SAMPLE_CAP = 4
DEFAULT_TRAILING_WINDOW = timedelta(hours=24)


@dataclass
class _MeanAccumulator:
    first_timestamp: datetime
    pm25_total: float = 0.0
    pm10_total: float = 0.0
    count: int = 0

    def add(self, sample: Sample) -> None:
        self.pm25_total += sample.pm25
        self.pm10_total += sample.pm10
        self.count += 1


@dataclass
class _CappedPool:
    last_update: datetime
    pm25_values: List[float] = field(default_factory=list)
    pm10_values: List[float] = field(default_factory=list)


class Aggregator:
    """Pure aggregation component that can be unit tested in isolation."""

    def aggregate_daily(
        self,
        samples: Iterable[Sample],
        strategy: DailyStrategy = DailyStrategy.max,
    ) -> List[DailyAggregate]:
        """Collapse samples into one aggregate per calendar date.

        Dates come out in the order they were first seen, not sorted.
        """
        if strategy is DailyStrategy.max:
            return self._daily_max(samples)
        if strategy is DailyStrategy.mean:
            return self._daily_mean(samples)
        raise ValueError(f"Unsupported daily strategy: {strategy!r}")

    def aggregate_hourly(
        self,
        samples: Iterable[Sample],
        policy: HourlyPolicy,
        reference_instant: datetime,
        cap: int = DEFAULT_HOURLY_SAMPLE_CAP,
        window: timedelta = DEFAULT_TRAILING_WINDOW,
    ) -> List[HourlyBucket]:
        """Bucket samples by hour of day, returned in ascending hour order.

        ``reference_instant`` stands in for "now": it selects the current date
        for ``today_capped`` and anchors the lookback of ``trailing_window_mean``.
        """
        if cap < 1:
            raise ValueError("Hourly sample cap must be at least 1.")
        reference_instant = reference_instant.replace(tzinfo=None)

        if policy is HourlyPolicy.today_capped:
            buckets = self._hourly_today(samples, reference_instant.date(), cap)
        elif policy is HourlyPolicy.trailing_window_mean:
            buckets = self._hourly_trailing(samples, reference_instant, cap, window)
        else:
            raise ValueError(f"Unsupported hourly policy: {policy!r}")

        return sorted(buckets, key=lambda bucket: bucket.hour)

    @staticmethod
    def _daily_max(samples: Iterable[Sample]) -> List[DailyAggregate]:
        peaks: Dict[date, Sample] = {}
        for sample in samples:
            key = sample.timestamp.date()
            current = peaks.get(key)
            if current is None or sample.pm25 > current.pm25:
                peaks[key] = sample

        return [
            DailyAggregate(
                date=key,
                pm25=peak.pm25,
                pm10=peak.pm10,
                representative_timestamp=peak.timestamp,
            )
            for key, peak in peaks.items()
        ]

    @staticmethod
    def _daily_mean(samples: Iterable[Sample]) -> List[DailyAggregate]:
        groups: Dict[date, _MeanAccumulator] = {}
        for sample in samples:
            key = sample.timestamp.date()
            group = groups.get(key)
            if group is None:
                group = groups[key] = _MeanAccumulator(first_timestamp=sample.timestamp)
            group.add(sample)

        return [
            DailyAggregate(
                date=key,
                pm25=group.pm25_total / group.count,
                pm10=group.pm10_total / group.count,
                representative_timestamp=group.first_timestamp,
            )
            for key, group in groups.items()
        ]

    @staticmethod
    def _hourly_today(samples: Iterable[Sample], today: date, cap: int) -> List[HourlyBucket]:
        peaks: Dict[int, Sample] = {}
        counts: Dict[int, int] = {}
        for sample in samples:
            if sample.timestamp.date() != today:
                continue
            hour = sample.timestamp.hour
            counts[hour] = counts.get(hour, 0) + 1
            current = peaks.get(hour)
            if current is None or sample.pm25 > current.pm25:
                peaks[hour] = sample

        return [
            HourlyBucket(
                hour=hour,
                pm25=peak.pm25,
                pm10=peak.pm10,
                sample_count=min(counts[hour], cap),
                last_update=peak.timestamp,
            )
            for hour, peak in peaks.items()
        ]

    @staticmethod
    def _hourly_trailing(
        samples: Iterable[Sample],
        reference_instant: datetime,
        cap: int,
        window: timedelta,
    ) -> List[HourlyBucket]:
        window_start = reference_instant - window
        recent = sorted(
            (s for s in samples if window_start <= s.timestamp <= reference_instant),
            key=lambda s: s.timestamp,
            reverse=True,
        )

        pools: Dict[int, _CappedPool] = {}
        ignored = 0
        for sample in recent:
            hour = sample.timestamp.hour
            pool = pools.get(hour)
            if pool is None:
                pool = pools[hour] = _CappedPool(last_update=sample.timestamp)
            if len(pool.pm25_values) >= cap:
                ignored += 1
                continue
            pool.pm25_values.append(sample.pm25)
            pool.pm10_values.append(sample.pm10)

        if ignored:
            logger.debug(
                "Hourly pools reached their cap",
                extra={"dropped_count": ignored, "policy": HourlyPolicy.trailing_window_mean},
            )

        return [
            HourlyBucket(
                hour=hour,
                pm25=sum(pool.pm25_values) / len(pool.pm25_values),
                pm10=sum(pool.pm10_values) / len(pool.pm10_values),
                sample_count=len(pool.pm25_values),
                last_update=pool.last_update,
            )
            for hour, pool in pools.items()
        ]
