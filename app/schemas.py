"""Pydantic schemas for the HTTP API layer."""

from __future__ import annotations

import datetime as dt
from typing import List, Optional

from pydantic import BaseModel, Field

from models.records import DailyStrategy, HourlyPolicy
from services.classifier import HealthLevel


class DailyAggregateSchema(BaseModel):
    date: dt.date
    pm25: float
    pm10: float
    representative_timestamp: dt.datetime


class HourlyBucketSchema(BaseModel):
    hour: int = Field(..., ge=0, le=23)
    time: str = Field(..., description="HH:MM of the bucket's representative sample.")
    pm25: float
    pm10: float
    sample_count: int = Field(..., ge=1)
    last_update: dt.datetime


class BandAverageSchema(BaseModel):
    label: str
    start: str
    end: str
    pm25: Optional[float] = Field(
        default=None, description="Null when no hourly bucket falls in the band."
    )


class HealthTierSchema(BaseModel):
    """Health guidance for a pm2.5 value."""

    level: HealthLevel
    color: str
    icon: str
    advice: str
    pm25: Optional[float] = None


class TierThresholdSchema(BaseModel):
    level: HealthLevel
    color: str
    icon: str
    advice: str
    exclusive_lower_bound: Optional[float] = None


class ComparisonPointSchema(BaseModel):
    date: dt.date
    primary_pm25: float
    reference_pm25: float


class ComparisonSchema(BaseModel):
    """Primary location compared to the reference; positive delta means worse."""

    per_date_series: List[ComparisonPointSchema] = Field(default_factory=list)
    primary_mean: float
    reference_mean: float
    mean_delta: float


class AnalysisResponse(BaseModel):
    """Full pipeline output for an uploaded feed."""

    daily_strategy: DailyStrategy
    hourly_policy: HourlyPolicy
    hourly_sample_cap: int = Field(..., ge=1)
    reference_time: dt.datetime
    sample_count: int = Field(..., ge=0)
    daily: List[DailyAggregateSchema] = Field(default_factory=list)
    hourly: List[HourlyBucketSchema] = Field(default_factory=list)
    peak_hour: Optional[HourlyBucketSchema] = None
    band_averages: List[BandAverageSchema] = Field(default_factory=list)
    latest: Optional[DailyAggregateSchema] = None
    health: Optional[HealthTierSchema] = None
    comparison: Optional[ComparisonSchema] = None
    processing_ms: Optional[int] = Field(
        default=None, description="Duration in milliseconds from start to finish."
    )
