from __future__ import annotations

import httpx
import pytest
import typer

from cli.client import ApiClient
from cli.config import CLIConfig


def _client_with(handler) -> ApiClient:
    client = ApiClient(CLIConfig(base_url="http://testserver"))
    client._client.close()
    client._client = httpx.Client(
        base_url="http://testserver", transport=httpx.MockTransport(handler)
    )
    return client


def test_classify_returns_payload() -> None:
    client = _client_with(
        lambda request: httpx.Response(200, json={"level": "Good", "pm25": 10.0})
    )
    try:
        assert client.classify(10.0)["level"] == "Good"
    finally:
        client.close()


def test_error_with_list_body_exits_cleanly(capsys) -> None:
    client = _client_with(
        lambda request: httpx.Response(422, json=[{"loc": ["query", "pm25"]}])
    )
    try:
        with pytest.raises(typer.Exit) as excinfo:
            client.classify(10.0)
    finally:
        client.close()

    assert excinfo.value.exit_code == 1
    assert "Request failed with status 422" in capsys.readouterr().err


def test_error_with_plain_text_body_reports_text(capsys) -> None:
    client = _client_with(lambda request: httpx.Response(500, text="upstream down"))
    try:
        with pytest.raises(typer.Exit):
            client.classify(10.0)
    finally:
        client.close()

    assert "upstream down" in capsys.readouterr().err


def test_analyze_sends_repeated_bands_and_column_names(tmp_path) -> None:
    csv_path = tmp_path / "station.csv"
    csv_path.write_text("time,fine,coarse\n2024-01-01 12:00,120,140\n")
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"sample_count": 1})

    client = _client_with(handler)
    try:
        payload = client.analyze(
            csv_path,
            bands=["Commute,08:00,09:00", "Night,00:00,05:00"],
            timestamp_column="time",
            pm25_column="fine",
        )
    finally:
        client.close()

    assert payload == {"sample_count": 1}
    (request,) = seen
    assert request.url.params.get_list("time_band") == ["Commute,08:00,09:00", "Night,00:00,05:00"]
    assert request.url.params["timestamp_column"] == "time"
    assert request.url.params["pm25_column"] == "fine"
    assert "pm10_column" not in request.url.params
