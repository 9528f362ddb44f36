"""Summaries derived from daily and hourly aggregates."""

from __future__ import annotations

from typing import Iterable, List, Optional, Sequence

from models.records import (
    BandAverage,
    ComparisonPoint,
    ComparisonResult,
    DailyAggregate,
    HourlyBucket,
    TimeBand,
)


def peak_hour(buckets: Sequence[HourlyBucket]) -> Optional[HourlyBucket]:
    """Bucket with the highest pm2.5; the earliest one wins a tie."""
    peak: Optional[HourlyBucket] = None
    for bucket in buckets:
        if peak is None or bucket.pm25 > peak.pm25:
            peak = bucket
    return peak


def band_average(buckets: Iterable[HourlyBucket], start: str, end: str) -> Optional[float]:
    """Mean pm2.5 of buckets whose ``HH:MM`` falls in ``[start, end)``.

    Returns ``None`` when no bucket falls in the band.
    """
    values = [bucket.pm25 for bucket in buckets if start <= bucket.time_of_day < end]
    if not values:
        return None
    return sum(values) / len(values)


def band_averages(
    buckets: Sequence[HourlyBucket], bands: Iterable[TimeBand]
) -> List[BandAverage]:
    return [
        BandAverage(
            label=band.label,
            start=band.start,
            end=band.end,
            pm25=band_average(buckets, band.start, band.end),
        )
        for band in bands
    ]


def compare_series(
    primary: Sequence[DailyAggregate],
    reference: Sequence[DailyAggregate],
) -> Optional[ComparisonResult]:
    """Compare two daily series by position, not by date.

    The per-date series pairs entries index by index and is labelled with the
    primary's dates, so gaps on different days misalign the pairs. The means
    always cover each full series. ``None`` means there is not enough data.
    """
    if not primary or not reference:
        return None

    primary_mean = sum(day.pm25 for day in primary) / len(primary)
    reference_mean = sum(day.pm25 for day in reference) / len(reference)
    points = tuple(
        ComparisonPoint(
            date=ours.date,
            primary_pm25=ours.pm25,
            reference_pm25=theirs.pm25,
        )
        for ours, theirs in zip(primary, reference)
    )
    return ComparisonResult(
        per_date_series=points,
        primary_mean=primary_mean,
        reference_mean=reference_mean,
        mean_delta=primary_mean - reference_mean,
    )


def latest_daily(daily: Sequence[DailyAggregate]) -> Optional[DailyAggregate]:
    return daily[-1] if daily else None
