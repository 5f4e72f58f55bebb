from __future__ import annotations

from typing import Any, Dict, Iterable, Sequence

import typer

_SENSORS = ("sensor1", "sensor2", "sensor3", "sensor4")


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def render_reading(payload: Dict[str, Any]) -> None:
    echo_heading("Reading")
    echo_key_values(
        [
            ("id", payload.get("id")),
            ("timestamp", payload.get("timestamp")),
            ("recordedAt", payload.get("recordedAt")),
        ]
        + [(name, payload.get(name)) for name in _SENSORS]
    )


def render_readings(readings: Sequence[Dict[str, Any]], title: str = "Readings") -> None:
    echo_heading(f"{title} ({len(readings)})")
    if not readings:
        typer.echo("No readings in range.")
        return
    for reading in readings:
        values = " ".join(f"{str(reading.get(name)):>8}" for name in _SENSORS)
        typer.echo(f"  #{reading.get('id')} {reading.get('recordedAt')} ts={reading.get('timestamp')} {values}")


def render_analytics(stats: Dict[str, Any]) -> None:
    echo_heading("Analytics")
    time_range = stats.get("timeRange") or {}
    echo_key_values(
        [
            ("from", time_range.get("from")),
            ("to", time_range.get("to")),
            ("totalReadings", stats.get("totalReadings")),
            ("alertsCount", stats.get("alertsCount")),
        ]
    )
    typer.echo()
    typer.echo(f"{'':10}{'min':>10}{'avg':>10}{'max':>10}")
    for name in _SENSORS:
        typer.echo(
            f"{name:10}"
            f"{str((stats.get('minValues') or {}).get(name)):>10}"
            f"{str((stats.get('averageValues') or {}).get(name)):>10}"
            f"{str((stats.get('maxValues') or {}).get(name)):>10}"
        )


def render_chart(points: Sequence[Dict[str, Any]]) -> None:
    echo_heading(f"Chart points ({len(points)})")
    for point in points:
        values = ", ".join(str(point.get(name)) for name in _SENSORS)
        typer.echo(f"  {point.get('timestamp')}: {values}")
