from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import pytest
from typer.testing import CliRunner

from cli.app import app
from datastore.memory import InMemoryReadingStore
from models.records import ReadingDraft

_READING: Dict[str, Any] = {
    "id": 7,
    "sensor1": 25.43,
    "sensor2": 30.12,
    "sensor3": 15.67,
    "sensor4": 42.89,
    "timestamp": 1_704_096_000,
    "recordedAt": "2024-01-01T08:00:00Z",
}


class StubClient:
    def __init__(self, config) -> None:
        self.config = config
        self.sent: List[Dict[str, Any]] = []
        self.analytics_calls: List[tuple] = []
        self.range_calls: List[tuple[str, str]] = []
        self.limit: Optional[int] = None
        self.closed = False

    def send_reading(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        self.sent.append(payload)
        return {**_READING, **payload, "id": len(self.sent)}

    def latest(self) -> Dict[str, Any]:
        return dict(_READING)

    def readings(self, limit: int) -> List[Dict[str, Any]]:
        self.limit = limit
        return [dict(_READING)]

    def analytics(self, hours, min_threshold=None, max_threshold=None) -> Dict[str, Any]:
        self.analytics_calls.append((hours, min_threshold, max_threshold))
        values = {"sensor1": 25.43, "sensor2": 30.12, "sensor3": 15.67, "sensor4": 42.89}
        return {
            "timeRange": {"from": "2024-01-01T07:00:00Z", "to": "2024-01-01T08:00:00Z"},
            "totalReadings": 1,
            "averageValues": values,
            "minValues": values,
            "maxValues": values,
            "alertsCount": 0,
        }

    def chart_data(self, hours: int) -> List[Dict[str, Any]]:
        return [{key: _READING[key] for key in ("timestamp", "sensor1", "sensor2", "sensor3", "sensor4")}]

    def readings_between(self, start: str, end: str) -> List[Dict[str, Any]]:
        self.range_calls.append((start, end))
        return []

    def close(self) -> None:
        self.closed = True


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture()
def stub(monkeypatch) -> StubClient:
    client = StubClient(config=None)

    def factory(config):
        client.config = config
        return client

    monkeypatch.setattr("cli.app.ApiClient", factory)
    return client


def test_send_posts_reading(runner: CliRunner, stub: StubClient) -> None:
    result = runner.invoke(app, ["send", "25.43", "30.12", "15.67", "42.89", "-t", "1704096000"])

    assert result.exit_code == 0
    assert "Reading stored. id=1" in result.stdout
    assert stub.sent == [
        {
            "sensor1": 25.43,
            "sensor2": 30.12,
            "sensor3": 15.67,
            "sensor4": 42.89,
            "timestamp": 1_704_096_000,
        }
    ]
    assert stub.closed is True


def test_base_url_option_reaches_client(runner: CliRunner, stub: StubClient) -> None:
    result = runner.invoke(app, ["--base-url", "http://sensors.test/", "latest"])

    assert result.exit_code == 0
    assert stub.config.base_url == "http://sensors.test"
    assert "sensor3: 15.67" in result.stdout


def test_readings_passes_limit(runner: CliRunner, stub: StubClient) -> None:
    result = runner.invoke(app, ["readings", "--limit", "5"])

    assert result.exit_code == 0
    assert stub.limit == 5
    assert "Readings (1)" in result.stdout


def test_analytics_forwards_thresholds(runner: CliRunner, stub: StubClient) -> None:
    result = runner.invoke(app, ["analytics", "--hours", "2", "--min-threshold", "20"])

    assert result.exit_code == 0
    assert stub.analytics_calls == [(2, 20.0, None)]
    assert "totalReadings: 1" in result.stdout
    assert "alertsCount: 0" in result.stdout


def test_chart_and_range(runner: CliRunner, stub: StubClient) -> None:
    chart = runner.invoke(app, ["chart"])
    assert chart.exit_code == 0
    assert "Chart points (1)" in chart.stdout

    listing = runner.invoke(app, ["range", "2024-01-01T00:00:00Z", "2024-01-02T00:00:00Z"])
    assert listing.exit_code == 0
    assert stub.range_calls == [("2024-01-01T00:00:00Z", "2024-01-02T00:00:00Z")]
    assert "No readings in range." in listing.stdout


def test_simulate_sends_values_in_range(runner: CliRunner, stub: StubClient) -> None:
    result = runner.invoke(app, ["simulate", "--count", "3", "--interval", "0", "--seed", "42"])

    assert result.exit_code == 0
    assert len(stub.sent) == 3
    for payload in stub.sent:
        for name in ("sensor1", "sensor2", "sensor3", "sensor4"):
            assert 0 <= payload[name] <= 250
    assert "Sent 3 readings." in result.stdout


def test_prune_deletes_old_readings(monkeypatch, runner: CliRunner, stub: StubClient) -> None:
    now = datetime.now(timezone.utc)
    times = iter([now - timedelta(days=10), now])
    store = InMemoryReadingStore(clock=lambda: next(times))
    draft = ReadingDraft(sensor1=1.0, sensor2=2.0, sensor3=3.0, sensor4=4.0, timestamp=1_704_096_000)
    store.insert(draft)
    store.insert(draft)
    monkeypatch.setattr("cli.app.build_default_store", lambda: store)

    result = runner.invoke(app, ["prune", "--days", "7"])

    assert result.exit_code == 0
    assert "Deleted 1 readings older than 7 days." in result.stdout
    assert store.count() == 1
