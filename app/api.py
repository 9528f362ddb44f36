"""HTTP route definitions for the service."""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status
from fastapi.concurrency import run_in_threadpool

from app.schemas import (
    AnalysisResponse,
    BandAverageSchema,
    ComparisonPointSchema,
    ComparisonSchema,
    DailyAggregateSchema,
    HealthTierSchema,
    HourlyBucketSchema,
    TierThresholdSchema,
)
from models.records import (
    DailyAggregate,
    DailyStrategy,
    HourlyBucket,
    HourlyPolicy,
    parse_time_band,
)
from services.classifier import HealthTier, InvalidClassifierInput, classify, tier_table
from services.pipeline import AnalysisReport, AnalysisService, build_default_service
from settings import default_config

router = APIRouter()


def get_service() -> AnalysisService:
    return build_default_service()


async def _read_csv(upload: UploadFile) -> str:
    contents = await upload.read()
    if not contents:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Uploaded file {upload.filename or 'upload.csv'} is empty.",
        )
    try:
        return contents.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Uploaded file {upload.filename or 'upload.csv'} is not UTF-8 text.",
        ) from exc


def _daily(day: DailyAggregate) -> DailyAggregateSchema:
    return DailyAggregateSchema(
        date=day.date,
        pm25=day.pm25,
        pm10=day.pm10,
        representative_timestamp=day.representative_timestamp,
    )


def _hourly(bucket: HourlyBucket) -> HourlyBucketSchema:
    return HourlyBucketSchema(
        hour=bucket.hour,
        time=bucket.time_of_day,
        pm25=bucket.pm25,
        pm10=bucket.pm10,
        sample_count=bucket.sample_count,
        last_update=bucket.last_update,
    )


def _health(tier: HealthTier, pm25: Optional[float] = None) -> HealthTierSchema:
    return HealthTierSchema(
        level=tier.level, color=tier.color, icon=tier.icon, advice=tier.advice, pm25=pm25
    )


def _to_response(report: AnalysisReport) -> AnalysisResponse:
    comparison = None
    if report.comparison is not None:
        comparison = ComparisonSchema(
            per_date_series=[
                ComparisonPointSchema(
                    date=point.date,
                    primary_pm25=point.primary_pm25,
                    reference_pm25=point.reference_pm25,
                )
                for point in report.comparison.per_date_series
            ],
            primary_mean=report.comparison.primary_mean,
            reference_mean=report.comparison.reference_mean,
            mean_delta=report.comparison.mean_delta,
        )

    return AnalysisResponse(
        daily_strategy=report.config.daily_strategy,
        hourly_policy=report.config.hourly_policy,
        hourly_sample_cap=report.config.hourly_sample_cap,
        reference_time=report.reference_instant,
        sample_count=len(report.primary.samples),
        daily=[_daily(day) for day in report.primary.daily],
        hourly=[_hourly(bucket) for bucket in report.primary.hourly],
        peak_hour=_hourly(report.peak_hour) if report.peak_hour else None,
        band_averages=[
            BandAverageSchema(label=band.label, start=band.start, end=band.end, pm25=band.pm25)
            for band in report.band_averages
        ],
        latest=_daily(report.latest) if report.latest else None,
        health=(
            _health(report.health, report.latest.pm25)
            if report.health and report.latest
            else None
        ),
        comparison=comparison,
        processing_ms=report.processing_ms,
    )


@router.post(
    "/analyses",
    response_model=AnalysisResponse,
    summary="Aggregate an uploaded station feed, optionally against a reference feed.",
)
async def create_analysis(
    primary: UploadFile = File(..., description="CSV feed of the station being analysed."),
    reference: Optional[UploadFile] = File(
        None, description="CSV feed of the reference location used for comparison."
    ),
    daily_strategy: Optional[DailyStrategy] = Query(None),
    hourly_policy: Optional[HourlyPolicy] = Query(None),
    hourly_sample_cap: Optional[int] = Query(None, ge=1),
    reference_time: Optional[datetime] = Query(
        None, description="Instant treated as 'now' for hourly windowing."
    ),
    time_band: Optional[List[str]] = Query(
        None, description="Repeatable 'label,HH:MM,HH:MM' band replacing the defaults."
    ),
    timestamp_column: Optional[str] = Query(None),
    pm25_column: Optional[str] = Query(None),
    pm10_column: Optional[str] = Query(None),
    service: AnalysisService = Depends(get_service),
) -> AnalysisResponse:
    config = default_config()
    try:
        bands = tuple(parse_time_band(value) for value in time_band) if time_band else None
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc

    column_overrides = {
        "timestamp_key": timestamp_column,
        "pm25_key": pm25_column,
        "pm10_key": pm10_column,
    }
    columns = replace(
        config.column_map,
        **{key: value.strip() for key, value in column_overrides.items() if value and value.strip()},
    )
    overrides = {
        "daily_strategy": daily_strategy,
        "hourly_policy": hourly_policy,
        "hourly_sample_cap": hourly_sample_cap,
        "time_bands": bands,
        "column_map": columns,
    }
    config = replace(config, **{key: value for key, value in overrides.items() if value is not None})

    primary_text = await _read_csv(primary)
    reference_text = await _read_csv(reference) if reference is not None else None

    report = await run_in_threadpool(
        service.analyze,
        primary_text,
        reference_text,
        config=config,
        reference_instant=reference_time,
    )
    return _to_response(report)


@router.get(
    "/classify",
    response_model=HealthTierSchema,
    summary="Classify a PM2.5 concentration into a health tier.",
)
async def classify_pm25(pm25: float = Query(..., description="PM2.5 in µg/m³.")) -> HealthTierSchema:
    try:
        tier = classify(pm25)
    except InvalidClassifierInput as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    return _health(tier, pm25)


@router.get(
    "/tiers",
    response_model=list[TierThresholdSchema],
    summary="List the health tiers and their PM2.5 thresholds.",
)
async def list_tiers() -> list[TierThresholdSchema]:
    return [
        TierThresholdSchema(
            level=tier.level,
            color=tier.color,
            icon=tier.icon,
            advice=tier.advice,
            exclusive_lower_bound=bound,
        )
        for bound, tier in tier_table()
    ]


@router.get(
    "/health",
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.get(
    "/",
    summary="Root endpoint mirrors health information.",
    status_code=status.HTTP_200_OK,
)
async def root() -> dict[str, str]:
    return {"status": "ok", "detail": "See /health for service status."}
