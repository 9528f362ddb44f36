"""Unit tests for the station feed parser."""

from __future__ import annotations

import logging
import random
from datetime import datetime

from models.records import ColumnMap
from services.parser import parse_samples, parse_timestamp


HEADER = "dt_time,pm2.5cnc,pm10cnc\n"


def test_parse_samples_drops_nan_rows_and_keeps_order() -> None:
    csv_body = (
        HEADER
        + "2024-01-01 12:00,120,140\n"
        + '2024-01-01 06:00,"NaN",70\n'
        + "2024-01-01 00:00,30,60\n"
        + "2024-01-01 01:00,31,NaN\n"
    )

    samples = parse_samples(csv_body)

    assert [sample.timestamp for sample in samples] == [
        datetime(2024, 1, 1, 12, 0),
        datetime(2024, 1, 1, 0, 0),
    ]
    assert samples[0].pm25 == 120.0
    assert samples[0].pm10 == 140.0


def test_parse_samples_uses_header_order_not_positions() -> None:
    csv_body = (
        "pm10cnc,dt_time,pm2.5cnc\n"
        "80,2024-03-05 10:15,42.5\n"
    )

    samples = parse_samples(csv_body)

    assert len(samples) == 1
    assert samples[0].timestamp == datetime(2024, 3, 5, 10, 15)
    assert samples[0].pm25 == 42.5
    assert samples[0].pm10 == 80.0


def test_parse_samples_honours_custom_column_map() -> None:
    csv_body = "Time,PM25,PM10\n2024-01-01T08:00:00Z,12,24\n"
    columns = ColumnMap(timestamp_key="time", pm25_key="pm25", pm10_key="pm10")

    samples = parse_samples(csv_body, columns)

    assert len(samples) == 1
    assert samples[0].timestamp == datetime(2024, 1, 1, 8, 0)


def test_parse_samples_drops_malformed_rows() -> None:
    csv_body = (
        HEADER
        + "2024-01-01 00:00,10,20\n"
        + "not-a-time,10,20\n"
        + "2024-01-01 00:15,abc,20\n"
        + "2024-01-01 00:30,10,\n"
        + "2024-01-01 00:45,-1,20\n"
        + "2024-01-01 01:00,inf,20\n"
        + "2024-01-01 01:15,nan,20\n"
    )

    samples = parse_samples(csv_body)

    assert len(samples) == 1
    assert samples[0].pm25 == 10.0


def test_parse_samples_degraded_input_yields_empty_list() -> None:
    assert parse_samples("") == []
    assert parse_samples("   \n") == []
    assert parse_samples(HEADER) == []
    assert parse_samples("time,value\n2024-01-01 00:00,1\n") == []


def test_parse_samples_nan_rows_never_survive() -> None:
    rng = random.Random(1234)
    lines = [HEADER.strip()]
    expected_valid = 0
    for index in range(500):
        pm25 = "NaN" if rng.random() < 0.3 else f"{rng.uniform(0, 400):.2f}"
        pm10 = "NaN" if rng.random() < 0.3 else f"{rng.uniform(0, 600):.2f}"
        minute = (index * 15) % 60
        hour = (index // 4) % 24
        lines.append(f"2024-01-{1 + index // 96:02d} {hour:02d}:{minute:02d},{pm25},{pm10}")
        if pm25 != "NaN" and pm10 != "NaN":
            expected_valid += 1

    samples = parse_samples("\n".join(lines) + "\n")

    assert len(samples) == expected_valid
    assert all(sample.pm25 >= 0 and sample.pm10 >= 0 for sample in samples)


def test_parse_timestamp_accepts_common_layouts() -> None:
    assert parse_timestamp("2024-01-01 12:00") == datetime(2024, 1, 1, 12, 0)
    assert parse_timestamp("2024-01-01T12:00:30") == datetime(2024, 1, 1, 12, 0, 30)
    assert parse_timestamp("2024/01/01 12:00") == datetime(2024, 1, 1, 12, 0)
    assert parse_timestamp("31-01-2024 23:45") == datetime(2024, 1, 31, 23, 45)


def test_parse_samples_logs_dropped_rows(caplog) -> None:
    csv_body = HEADER + "2024-01-01 00:00,10,20\n2024-01-01 00:15,NaN,20\n"

    with caplog.at_level(logging.DEBUG, logger="services.parser"):
        parse_samples(csv_body)

    records = [record for record in caplog.records if record.name == "services.parser"]
    skipped = [record for record in records if record.getMessage() == "Skipping row"]
    assert len(skipped) == 1
    assert getattr(skipped[0], "row_number", None) == 3
    assert getattr(skipped[0], "reason", "") == "pm2.5 is NaN"

    summary = [record for record in records if record.getMessage() == "Parsed station feed"]
    assert getattr(summary[0], "dropped_count", None) == 1


def test_parse_samples_skips_blank_lines_before_header(caplog) -> None:
    csv_body = "\n\r\n" + HEADER + "2024-01-01 00:00,1,2\n2024-01-01 00:15,NaN,2\n"

    with caplog.at_level(logging.DEBUG, logger="services.parser"):
        samples = parse_samples(csv_body)

    assert [(sample.pm25, sample.pm10) for sample in samples] == [(1.0, 2.0)]
    skipped = [record for record in caplog.records if record.getMessage() == "Skipping row"]
    assert getattr(skipped[0], "row_number", None) == 5


def test_parse_samples_ignores_byte_order_mark(caplog) -> None:
    csv_body = "\ufeff" + HEADER + "2024-01-01 00:00,1,2\n"

    with caplog.at_level(logging.WARNING, logger="services.parser"):
        samples = parse_samples(csv_body)

    assert len(samples) == 1
    assert samples[0].timestamp == datetime(2024, 1, 1, 0, 0)
    assert not [record for record in caplog.records if record.levelno >= logging.WARNING]
