from __future__ import annotations

from typing import Any, Dict, Iterable, Optional

import typer


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def _fmt(value: Optional[float]) -> str:
    return "N/A" if value is None else f"{value:.1f}"


def render_tier(payload: Dict[str, Any]) -> None:
    typer.echo(f"{payload.get('icon')} {payload.get('level')} (PM2.5 {_fmt(payload.get('pm25'))} µg/m³)")
    typer.echo(payload.get("advice"))


def render_report(payload: Dict[str, Any]) -> None:
    echo_heading("Analysis")
    echo_key_values(
        [
            ("daily_strategy", payload.get("daily_strategy")),
            ("hourly_policy", payload.get("hourly_policy")),
            ("reference_time", payload.get("reference_time")),
            ("sample_count", payload.get("sample_count")),
            ("processing_ms", payload.get("processing_ms")),
        ]
    )

    typer.echo()
    echo_heading("Current Air Quality")
    health = payload.get("health")
    if health:
        render_tier(health)
    else:
        typer.echo("No data available.")

    typer.echo()
    echo_heading("Hourly PM2.5")
    peak = payload.get("peak_hour")
    if peak:
        typer.echo(f"Peak pollution at {peak.get('time')} ({_fmt(peak.get('pm25'))} µg/m³)")
        for bucket in payload.get("hourly") or []:
            typer.echo(
                f"  - {bucket.get('time')}: {_fmt(bucket.get('pm25'))} "
                f"(n={bucket.get('sample_count')})"
            )
    else:
        typer.echo("No hourly data available.")
    for band in payload.get("band_averages") or []:
        typer.echo(f"{band.get('label')} ({band.get('start')}-{band.get('end')}): {_fmt(band.get('pm25'))}")

    typer.echo()
    echo_heading("Daily Summary")
    daily = payload.get("daily") or []
    if daily:
        for day in daily:
            typer.echo(
                f"  - {day.get('date')}: PM2.5 {_fmt(day.get('pm25'))} µg/m³, "
                f"PM10 {_fmt(day.get('pm10'))} µg/m³"
            )
    else:
        typer.echo("No daily data available.")

    comparison = payload.get("comparison")
    if comparison:
        delta = comparison.get("mean_delta") or 0.0
        verdict = "worse" if delta > 0 else "better"
        typer.echo()
        echo_heading("Comparison")
        typer.echo(f"Your location is {abs(delta):.1f} µg/m³ {verdict} than the reference average.")
