"""Health guidance for a PM2.5 concentration."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import List, Tuple


class InvalidClassifierInput(ValueError):
    """The caller passed a negative or non-finite concentration."""


class HealthLevel(str, Enum):
    good = "Good"
    moderate = "Moderate"
    unhealthy = "Unhealthy"
    very_unhealthy = "Very Unhealthy"
    hazardous = "Hazardous"


@dataclass(frozen=True, slots=True)
class HealthTier:
    level: HealthLevel
    color: str
    icon: str
    advice: str


GOOD = HealthTier(
    level=HealthLevel.good,
    color="#00E400",
    icon="✅",
    advice="Air quality is satisfactory, ideal for outdoor activities.",
)
MODERATE = HealthTier(
    level=HealthLevel.moderate,
    color="#FFA500",
    icon="⚠️",
    advice="Acceptable air quality for most individuals.",
)
UNHEALTHY = HealthTier(
    level=HealthLevel.unhealthy,
    color="#FF0000",
    icon="⚡",
    advice="Sensitive groups should limit outdoor exposure.",
)
VERY_UNHEALTHY = HealthTier(
    level=HealthLevel.very_unhealthy,
    color="#8F3F97",
    icon="😷",
    advice="Minimize outdoor activities. Keep windows closed.",
)
HAZARDOUS = HealthTier(
    level=HealthLevel.hazardous,
    color="#7E0023",
    icon="⚠️",
    advice="Avoid outdoor activities. Wear N95 mask if going outside.",
)

# (exclusive lower bound in µg/m³, tier), most severe first.
PM25_THRESHOLDS: List[Tuple[float, HealthTier]] = [
    (250.0, HAZARDOUS),
    (150.0, VERY_UNHEALTHY),
    (100.0, UNHEALTHY),
    (50.0, MODERATE),
]


def classify(pm25: float) -> HealthTier:
    """Map a pm2.5 concentration to its health tier.

    A boundary value stays in the lower tier: ``classify(100.0)`` is Moderate.
    """
    if not math.isfinite(pm25) or pm25 < 0:
        raise InvalidClassifierInput(
            f"PM2.5 must be a finite, non-negative number, got {pm25!r}."
        )
    for lower_bound, tier in PM25_THRESHOLDS:
        if pm25 > lower_bound:
            return tier
    return GOOD


def tier_table() -> List[Tuple[float | None, HealthTier]]:
    """Every tier with its exclusive lower bound, least severe first."""
    return [(None, GOOD)] + list(reversed(PM25_THRESHOLDS))
