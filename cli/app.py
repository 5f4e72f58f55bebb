from __future__ import annotations

import random
import time
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

import typer

from cli.client import ApiClient
from cli.config import CLIConfig, load_config
from cli.render import render_analytics, render_chart, render_reading, render_readings
from datastore.factory import build_default_store
from services.retention import RetentionPruner


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


app = typer.Typer(
    help="Utilities for interacting with the traffic sensor backend.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        typer.secho("CLI state is uninitialized.", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    return state


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Backend API base URL (defaults to API_BASE_URL env or http://localhost:8000).",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="Seconds to wait for each HTTP request.",
    ),
) -> None:
    """Entry point for the CLI."""
    config = load_config(base_url=base_url, request_timeout=timeout)
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


@app.command("send")
def send_command(
    ctx: typer.Context,
    sensor1: float = typer.Argument(..., help="Distance reported by sensor 1 (cm)."),
    sensor2: float = typer.Argument(..., help="Distance reported by sensor 2 (cm)."),
    sensor3: float = typer.Argument(..., help="Distance reported by sensor 3 (cm)."),
    sensor4: float = typer.Argument(..., help="Distance reported by sensor 4 (cm)."),
    timestamp: Optional[int] = typer.Option(
        None,
        "--timestamp",
        "-t",
        help="Device epoch seconds (defaults to now).",
    ),
) -> None:
    """Post one reading, as the sensor controller would."""
    state = _get_state(ctx)
    payload = {
        "sensor1": sensor1,
        "sensor2": sensor2,
        "sensor3": sensor3,
        "sensor4": sensor4,
        "timestamp": timestamp if timestamp is not None else int(time.time()),
    }
    reading = state.client.send_reading(payload)
    typer.secho(f"Reading stored. id={reading.get('id')}", fg=typer.colors.GREEN)
    render_reading(reading)


@app.command("latest")
def latest_command(ctx: typer.Context) -> None:
    """Show the most recently recorded reading."""
    state = _get_state(ctx)
    render_reading(state.client.latest())


@app.command("readings")
def readings_command(
    ctx: typer.Context,
    limit: int = typer.Option(100, "--limit", "-n", min=1, help="Maximum readings to list."),
) -> None:
    """List recent readings, newest first."""
    state = _get_state(ctx)
    render_readings(state.client.readings(limit))


@app.command("analytics")
def analytics_command(
    ctx: typer.Context,
    hours: int = typer.Option(24, "--hours", min=1, help="Window length in hours."),
    min_threshold: Optional[float] = typer.Option(None, "--min-threshold"),
    max_threshold: Optional[float] = typer.Option(None, "--max-threshold"),
) -> None:
    """Show per-sensor statistics for the last N hours."""
    state = _get_state(ctx)
    render_analytics(state.client.analytics(hours, min_threshold, max_threshold))


@app.command("chart")
def chart_command(
    ctx: typer.Context,
    hours: int = typer.Option(1, "--hours", min=1, help="Window length in hours."),
) -> None:
    """Print chart points for the last N hours."""
    state = _get_state(ctx)
    render_chart(state.client.chart_data(hours))


@app.command("range")
def range_command(
    ctx: typer.Context,
    start: str = typer.Argument(..., help="ISO-8601 start date."),
    end: str = typer.Argument(..., help="ISO-8601 end date."),
) -> None:
    """List readings recorded between two dates."""
    state = _get_state(ctx)
    render_readings(state.client.readings_between(start, end), title="Readings in range")


@app.command("simulate")
def simulate_command(
    ctx: typer.Context,
    count: int = typer.Option(10, "--count", "-c", min=1, help="Number of readings to send."),
    interval: Optional[float] = typer.Option(
        None,
        "--interval",
        help="Seconds between readings (defaults to CLI_SIMULATE_INTERVAL or 1s).",
    ),
    seed: Optional[int] = typer.Option(None, "--seed", help="Seed for reproducible values."),
) -> None:
    """Send random readings to exercise the backend end to end."""
    state = _get_state(ctx)
    delay = interval if interval is not None else state.config.simulate_interval
    rng = random.Random(seed)
    for index in range(count):
        payload = {
            "sensor1": round(rng.uniform(0, 250), 2),
            "sensor2": round(rng.uniform(0, 250), 2),
            "sensor3": round(rng.uniform(0, 250), 2),
            "sensor4": round(rng.uniform(0, 250), 2),
            "timestamp": int(time.time()),
        }
        reading = state.client.send_reading(payload)
        typer.echo(f"[{index + 1}/{count}] stored id={reading.get('id')}")
        if index + 1 < count and delay > 0:
            time.sleep(delay)
    typer.secho(f"Sent {count} readings.", fg=typer.colors.GREEN)


@app.command("prune")
def prune_command(
    days: int = typer.Option(30, "--days", min=1, help="Keep readings recorded in the last N days."),
) -> None:
    """Delete old readings from the locally configured store."""
    pruner = RetentionPruner(store=build_default_store(), retention=timedelta(days=days))
    deleted = pruner.prune_expired()
    typer.secho(f"Deleted {deleted} readings older than {days} days.", fg=typer.colors.GREEN)
