from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import List, Optional

import typer

from cli.client import ApiClient
from cli.config import CLIConfig, load_config
from cli.render import render_report, render_tier


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


app = typer.Typer(
    help="Utilities for interacting with the PM station insights service.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise typer.Exit(code=1)
    return state


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Service base URL (defaults to API_BASE_URL env or http://localhost:8000).",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="Seconds to wait for the service to respond.",
    ),
) -> None:
    """Entry point for the CLI."""
    config = load_config(base_url=base_url, timeout=timeout)
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


@app.command("analyze")
def analyze_command(
    ctx: typer.Context,
    primary: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True, help="Station CSV feed."),
    reference: Optional[Path] = typer.Option(
        None,
        "--reference",
        "-r",
        exists=True,
        dir_okay=False,
        readable=True,
        help="Reference location CSV feed to compare against.",
    ),
    daily_strategy: Optional[str] = typer.Option(None, "--daily-strategy", help="max or mean."),
    hourly_policy: Optional[str] = typer.Option(
        None, "--hourly-policy", help="today_capped or trailing_window_mean."
    ),
    cap: Optional[int] = typer.Option(None, "--cap", min=1, help="Samples kept per hourly bucket."),
    reference_time: Optional[datetime] = typer.Option(
        None, "--reference-time", help="Instant treated as 'now' for hourly windowing."
    ),
    band: Optional[List[str]] = typer.Option(
        None, "--band", help="Time band as label,HH:MM,HH:MM. Repeat to add more."
    ),
    timestamp_column: Optional[str] = typer.Option(None, "--timestamp-column"),
    pm25_column: Optional[str] = typer.Option(None, "--pm25-column"),
    pm10_column: Optional[str] = typer.Option(None, "--pm10-column"),
) -> None:
    """Upload a station feed and print its aggregates and health tier."""
    state = _get_state(ctx)
    typer.echo(f"Analysing {primary} via {state.config.base_url} ...")
    payload = state.client.analyze(
        primary,
        reference=reference,
        daily_strategy=daily_strategy,
        hourly_policy=hourly_policy,
        cap=cap,
        reference_time=reference_time,
        bands=band,
        timestamp_column=timestamp_column,
        pm25_column=pm25_column,
        pm10_column=pm10_column,
    )
    render_report(payload)


@app.command("classify")
def classify_command(
    ctx: typer.Context,
    pm25: float = typer.Argument(..., help="PM2.5 concentration in µg/m³."),
) -> None:
    """Show the health tier for a PM2.5 concentration."""
    state = _get_state(ctx)
    render_tier(state.client.classify(pm25))
