"""Parse → aggregate → derive → classify orchestration."""

from __future__ import annotations

import logging
import time
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime
from functools import lru_cache
from typing import List, Optional

from models.records import (
    AnalysisConfig,
    BandAverage,
    ComparisonResult,
    DailyAggregate,
    HourlyBucket,
    Sample,
)
from services.aggregator import Aggregator
from services.analytics import band_averages, compare_series, latest_daily, peak_hour
from services.classifier import HealthTier, classify
from services.parser import parse_samples
from settings import default_config, get_settings

logger = logging.getLogger(__name__)


@dataclass
class SeriesSummary:
    """Aggregates computed for one station feed."""

    samples: List[Sample] = field(default_factory=list)
    daily: List[DailyAggregate] = field(default_factory=list)
    hourly: List[HourlyBucket] = field(default_factory=list)


@dataclass
class AnalysisReport:
    config: AnalysisConfig
    reference_instant: datetime
    primary: SeriesSummary
    reference: Optional[SeriesSummary] = None
    peak_hour: Optional[HourlyBucket] = None
    band_averages: List[BandAverage] = field(default_factory=list)
    latest: Optional[DailyAggregate] = None
    health: Optional[HealthTier] = None
    comparison: Optional[ComparisonResult] = None
    processing_ms: int = 0


class AnalysisService:
    """Runs the pipeline, fanning the primary and reference feeds out to workers."""

    def __init__(self, aggregator: Aggregator, workers: int = 2) -> None:
        self.aggregator = aggregator
        self.executor = ThreadPoolExecutor(max_workers=workers)

    def analyze(
        self,
        primary_text: str,
        reference_text: Optional[str] = None,
        config: Optional[AnalysisConfig] = None,
        reference_instant: Optional[datetime] = None,
    ) -> AnalysisReport:
        """Build the full report for a primary feed and an optional reference feed."""
        start_time = time.perf_counter()
        config = config or default_config()
        instant = reference_instant or datetime.now()

        primary_future: Future[SeriesSummary] = self.executor.submit(
            self.summarize, primary_text, config, instant, "primary"
        )
        reference_future: Optional[Future[SeriesSummary]] = None
        if reference_text is not None:
            reference_future = self.executor.submit(
                self.summarize, reference_text, config, instant, "reference"
            )

        primary = primary_future.result()
        reference = reference_future.result() if reference_future is not None else None

        latest = latest_daily(primary.daily)
        report = AnalysisReport(
            config=config,
            reference_instant=instant,
            primary=primary,
            reference=reference,
            peak_hour=peak_hour(primary.hourly),
            band_averages=band_averages(primary.hourly, config.time_bands),
            latest=latest,
            health=classify(latest.pm25) if latest is not None else None,
            comparison=compare_series(primary.daily, reference.daily) if reference else None,
        )
        report.processing_ms = int((time.perf_counter() - start_time) * 1000)

        logger.info(
            "Analysis complete",
            extra={
                "series": "primary" if reference is None else "primary+reference",
                "sample_count": len(primary.samples),
                "strategy": config.daily_strategy,
                "policy": config.hourly_policy,
                "processing_ms": report.processing_ms,
            },
        )
        return report

    def summarize(
        self,
        text: str,
        config: AnalysisConfig,
        reference_instant: datetime,
        series: str = "primary",
    ) -> SeriesSummary:
        """Parse and aggregate a single feed on the calling thread."""
        samples = parse_samples(text, config.column_map)
        daily = self.aggregator.aggregate_daily(samples, config.daily_strategy)
        hourly = self.aggregator.aggregate_hourly(
            samples,
            config.hourly_policy,
            reference_instant,
            cap=config.hourly_sample_cap,
            window=config.trailing_window,
        )
        logger.debug(
            "Series aggregated",
            extra={"series": series, "sample_count": len(samples), "row_count": len(daily)},
        )
        return SeriesSummary(samples=samples, daily=daily, hourly=hourly)

    def shutdown(self) -> None:
        """Clean up executor resources during application shutdown."""
        self.executor.shutdown(wait=False, cancel_futures=True)


@lru_cache
def build_default_service(workers: Optional[int] = None) -> AnalysisService:
    """Factory that wires the service from environment settings."""
    worker_count = workers or get_settings().analysis_workers
    return AnalysisService(aggregator=Aggregator(), workers=worker_count)
