from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

import httpx
import typer

from cli.config import CLIConfig


class ApiClient:
    """Minimal HTTP client for the insights service."""

    def __init__(self, config: CLIConfig) -> None:
        self._config = config
        self._client = httpx.Client(base_url=config.base_url, timeout=config.timeout)

    def close(self) -> None:
        self._client.close()

    def analyze(
        self,
        primary: Path,
        reference: Optional[Path] = None,
        daily_strategy: Optional[str] = None,
        hourly_policy: Optional[str] = None,
        cap: Optional[int] = None,
        reference_time: Optional[datetime] = None,
        bands: Optional[List[str]] = None,
        timestamp_column: Optional[str] = None,
        pm25_column: Optional[str] = None,
        pm10_column: Optional[str] = None,
    ) -> Dict[str, Any]:
        for path in (primary, reference):
            if path is not None and not path.is_file():
                raise typer.BadParameter(f"Path {path} is not a file.")

        params: Dict[str, Any] = {}
        if daily_strategy:
            params["daily_strategy"] = daily_strategy
        if hourly_policy:
            params["hourly_policy"] = hourly_policy
        if cap is not None:
            params["hourly_sample_cap"] = cap
        if reference_time is not None:
            params["reference_time"] = reference_time.isoformat()
        if bands:
            params["time_band"] = list(bands)
        for key, column in (
            ("timestamp_column", timestamp_column),
            ("pm25_column", pm25_column),
            ("pm10_column", pm10_column),
        ):
            if column:
                params[key] = column

        files = {"primary": (primary.name, primary.read_bytes(), "text/csv")}
        if reference is not None:
            files["reference"] = (reference.name, reference.read_bytes(), "text/csv")

        try:
            response = self._client.post("/analyses", params=params, files=files)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        return response.json()

    def classify(self, pm25: float) -> Dict[str, Any]:
        try:
            response = self._client.get("/classify", params={"pm25": pm25})
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        return response.json()

    @staticmethod
    def _handle_http_error(exc: httpx.HTTPStatusError) -> None:
        detail: str | None = None
        try:
            data = exc.response.json()
            detail = data.get("detail")
        except (ValueError, AttributeError):
            detail = exc.response.text.strip()
        message = (
            f"Request failed with status {exc.response.status_code}: {detail or 'no detail provided.'}"
        )
        typer.secho(message, fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
