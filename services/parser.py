"""CSV parsing for raw station feeds."""

from __future__ import annotations

import csv
import io
import logging
import math
from datetime import datetime
from typing import Dict, List, Optional

from models.records import ColumnMap, Sample

logger = logging.getLogger(__name__)

MISSING_SENTINEL = "NaN"

_FALLBACK_FORMATS = (
    "%Y/%m/%d %H:%M",
    "%Y/%m/%d %H:%M:%S",
    "%d-%m-%Y %H:%M",
    "%d-%m-%Y %H:%M:%S",
)


class RowRejected(ValueError):
    """Raised internally when a row cannot become a :class:`Sample`."""


def parse_samples(raw_text: str, column_map: Optional[ColumnMap] = None) -> List[Sample]:
    """Turn header-delimited text into validated samples, in input order.

    Malformed rows are dropped rather than reported; degraded input (empty
    text, no header, missing columns) yields an empty list.
    """
    columns = column_map or ColumnMap()
    text = (raw_text or "").lstrip("\ufeff")
    body = text.lstrip()
    if not body:
        logger.info("Empty payload, no samples parsed", extra={"row_count": 0})
        return []

    # the header is the first non-blank line
    leading_lines = text[: len(text) - len(body)].count("\n")
    reader = csv.DictReader(io.StringIO(body))
    if not reader.fieldnames:
        return []

    resolved = _resolve_columns(reader.fieldnames, columns)
    if resolved is None:
        logger.warning(
            "Header is missing required columns",
            extra={"reason": ",".join(reader.fieldnames)},
        )
        return []
    timestamp_col, pm25_col, pm10_col = resolved

    samples: List[Sample] = []
    row_count = 0
    for row in reader:
        row_number = reader.line_num + leading_lines
        if not any((value or "").strip() for value in row.values() if isinstance(value, str)):
            continue
        row_count += 1
        try:
            sample = Sample(
                timestamp=parse_timestamp(row.get(timestamp_col) or ""),
                pm25=_parse_concentration(row.get(pm25_col), "pm2.5"),
                pm10=_parse_concentration(row.get(pm10_col), "pm10"),
            )
        except RowRejected as exc:
            logger.debug(
                "Skipping row", extra={"row_number": row_number, "reason": str(exc)}
            )
            continue
        samples.append(sample)

    logger.info(
        "Parsed station feed",
        extra={
            "row_count": row_count,
            "sample_count": len(samples),
            "dropped_count": row_count - len(samples),
        },
    )
    return samples


def parse_timestamp(value: str) -> datetime:
    """Parse a feed timestamp, keeping the station's wall-clock time."""
    candidate = value.strip()
    if not candidate:
        raise RowRejected("missing timestamp")

    if candidate.endswith("Z"):
        candidate = candidate[:-1] + "+00:00"

    try:
        parsed = datetime.fromisoformat(candidate)
    except ValueError:
        for fmt in _FALLBACK_FORMATS:
            try:
                return datetime.strptime(candidate, fmt)
            except ValueError:
                continue
        raise RowRejected("invalid timestamp") from None

    return parsed.replace(tzinfo=None)


def _parse_concentration(raw: Optional[str], label: str) -> float:
    candidate = (raw or "").strip()
    if candidate == MISSING_SENTINEL:
        raise RowRejected(f"{label} is NaN")
    if not candidate:
        raise RowRejected(f"missing {label}")
    try:
        value = float(candidate)
    except ValueError:
        raise RowRejected(f"invalid {label} value") from None
    if not math.isfinite(value) or value < 0:
        raise RowRejected(f"out of range {label} value")
    return value


def _resolve_columns(fieldnames: List[str], columns: ColumnMap) -> Optional[tuple[str, str, str]]:
    normalized: Dict[str, str] = {
        name.strip().lower(): name for name in fieldnames if name is not None
    }
    wanted = (columns.timestamp_key, columns.pm25_key, columns.pm10_key)
    resolved = [normalized.get(key.strip().lower()) for key in wanted]
    if any(name is None for name in resolved):
        return None
    return resolved[0], resolved[1], resolved[2]
