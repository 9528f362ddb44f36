"""Unit tests for the aggregation logic."""

from __future__ import annotations

from datetime import date, datetime

import pytest

from models.records import DailyStrategy, HourlyPolicy, Sample
from services.aggregator import Aggregator


def _sample(stamp: str, pm25: float, pm10: float = 0.0) -> Sample:
    """Helper to build deterministic samples."""

    return Sample(timestamp=datetime.fromisoformat(stamp), pm25=pm25, pm10=pm10)


NOW = datetime(2024, 1, 2, 12, 0)


def test_aggregate_empty_iterable_returns_empty_collections() -> None:
    aggregator = Aggregator()

    assert aggregator.aggregate_daily([], DailyStrategy.max) == []
    assert aggregator.aggregate_daily([], DailyStrategy.mean) == []
    assert aggregator.aggregate_hourly([], HourlyPolicy.today_capped, NOW) == []
    assert aggregator.aggregate_hourly([], HourlyPolicy.trailing_window_mean, NOW) == []


def test_daily_max_keeps_pm10_from_the_same_row() -> None:
    aggregator = Aggregator()
    samples = [
        _sample("2024-01-01 00:00", 30, 300),
        _sample("2024-01-01 12:00", 120, 140),
        _sample("2024-01-01 18:00", 90, 500),
    ]

    (day,) = aggregator.aggregate_daily(samples, DailyStrategy.max)

    assert day.date == date(2024, 1, 1)
    assert day.pm25 == 120
    assert day.pm10 == 140
    assert day.representative_timestamp == datetime(2024, 1, 1, 12, 0)


def test_daily_max_first_sample_wins_a_tie() -> None:
    aggregator = Aggregator()
    samples = [
        _sample("2024-01-01 03:00", 80, 1),
        _sample("2024-01-01 09:00", 80, 2),
    ]

    (day,) = aggregator.aggregate_daily(samples, DailyStrategy.max)

    assert day.pm10 == 1
    assert day.representative_timestamp == datetime(2024, 1, 1, 3, 0)


def test_daily_mean_averages_every_sample() -> None:
    aggregator = Aggregator()
    samples = [
        _sample("2024-01-01 00:00", 10, 20),
        _sample("2024-01-01 06:00", 20, 40),
        _sample("2024-01-01 12:00", 60, 90),
    ]

    (day,) = aggregator.aggregate_daily(samples, DailyStrategy.mean)

    assert day.pm25 == pytest.approx(30.0)
    assert day.pm10 == pytest.approx(50.0)
    assert day.representative_timestamp == datetime(2024, 1, 1, 0, 0)


def test_daily_output_follows_first_seen_order() -> None:
    aggregator = Aggregator()
    samples = [
        _sample("2024-01-03 00:00", 1),
        _sample("2024-01-01 00:00", 2),
        _sample("2024-01-03 01:00", 3),
        _sample("2024-01-02 00:00", 4),
    ]

    daily = aggregator.aggregate_daily(samples, DailyStrategy.max)

    assert [day.date for day in daily] == [
        date(2024, 1, 3),
        date(2024, 1, 1),
        date(2024, 1, 2),
    ]


def test_today_capped_only_uses_reference_date_and_keeps_peak_row() -> None:
    aggregator = Aggregator()
    samples = [
        _sample("2024-01-01 08:00", 500, 500),
        _sample("2024-01-02 08:00", 40, 41),
        _sample("2024-01-02 08:15", 55, 12),
        _sample("2024-01-02 08:30", 50, 99),
        _sample("2024-01-02 07:45", 20, 21),
    ]

    buckets = aggregator.aggregate_hourly(samples, HourlyPolicy.today_capped, NOW)

    assert [bucket.hour for bucket in buckets] == [7, 8]
    peak = buckets[1]
    assert peak.pm25 == 55
    assert peak.pm10 == 12
    assert peak.time_of_day == "08:15"
    assert peak.sample_count == 3


def test_trailing_window_caps_each_hour_to_most_recent_samples() -> None:
    aggregator = Aggregator()
    samples = [
        _sample("2024-01-02 09:00", 100, 10),
        _sample("2024-01-02 09:10", 10, 1),
        _sample("2024-01-02 09:20", 20, 2),
        _sample("2024-01-02 09:30", 30, 3),
        _sample("2024-01-02 09:40", 40, 4),
        _sample("2024-01-01 09:50", 1000, 1000),
    ]

    (bucket,) = aggregator.aggregate_hourly(
        samples, HourlyPolicy.trailing_window_mean, NOW, cap=4
    )

    assert bucket.hour == 9
    assert bucket.sample_count == 4
    assert bucket.pm25 == pytest.approx(25.0)
    assert bucket.pm10 == pytest.approx(2.5)
    assert bucket.last_update == datetime(2024, 1, 2, 9, 40)


def test_trailing_window_excludes_samples_outside_lookback() -> None:
    aggregator = Aggregator()
    samples = [
        _sample("2024-01-01 11:59", 300),
        _sample("2024-01-01 12:00", 50),
        _sample("2024-01-02 12:30", 999),
        _sample("2024-01-02 11:00", 70),
    ]

    buckets = aggregator.aggregate_hourly(samples, HourlyPolicy.trailing_window_mean, NOW)

    assert [(bucket.hour, bucket.pm25) for bucket in buckets] == [(11, 70), (12, 50)]


def test_trailing_window_pool_never_exceeds_cap() -> None:
    aggregator = Aggregator()
    samples = [
        _sample(f"2024-01-02 {hour:02d}:{minute:02d}", float(hour + minute))
        for hour in range(12)
        for minute in range(0, 60, 5)
    ]

    for cap in (1, 2, 4, 7):
        buckets = aggregator.aggregate_hourly(
            samples, HourlyPolicy.trailing_window_mean, NOW, cap=cap
        )
        assert len(buckets) == 12
        assert all(bucket.sample_count == cap for bucket in buckets)


def test_aggregate_hourly_rejects_non_positive_cap() -> None:
    with pytest.raises(ValueError):
        Aggregator().aggregate_hourly([], HourlyPolicy.trailing_window_mean, NOW, cap=0)


def test_today_capped_sample_count_never_exceeds_cap() -> None:
    aggregator = Aggregator()
    samples = [_sample(f"2024-01-02 10:{minute:02d}", float(minute)) for minute in range(0, 60, 5)]

    (bucket,) = aggregator.aggregate_hourly(samples, HourlyPolicy.today_capped, NOW, cap=4)

    assert bucket.sample_count == 4
    assert bucket.pm25 == 55.0
    assert bucket.time_of_day == "10:55"
