from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import typer

from cli.client import ApiClient
from cli.config import CLIConfig, load_config
from cli.render import render_reading, render_rows


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


app = typer.Typer(
    help="Utilities for interacting with the weather sensor service.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise typer.Exit(code=1)
    return state


def _parse_thresholds(values: List[str]) -> Dict[str, str]:
    thresholds: Dict[str, str] = {}
    for item in values:
        name, separator, value = item.partition("=")
        if not separator or not name.strip() or not value.strip():
            raise typer.BadParameter(
                f"Expected FIELD=VALUE, got {item!r}.", param_hint="--min"
            )
        thresholds[name.strip()] = value.strip()
    return thresholds


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
        help="Seconds to wait for each HTTP request.",
    ),
) -> None:
    """Entry point for the CLI."""
    config = load_config(base_url=base_url, timeout=timeout)
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


@app.command("submit")
def submit_command(
    ctx: typer.Context,
    sensor_id: int = typer.Option(..., "--sensor-id", min=0, help="Sensor identifier."),
    temperature: float = typer.Option(..., help="Temperature in degrees Celsius."),
    humidity: float = typer.Option(..., help="Relative humidity in percent."),
    wind_speed: float = typer.Option(..., "--wind-speed", help="Wind speed."),
    date: Optional[str] = typer.Option(
        None, help="ISO-8601 observation time (defaults to now, UTC)."
    ),
    pressure: Optional[float] = typer.Option(None, help="Pressure in hPa."),
    precipitation: Optional[float] = typer.Option(None),
    wind_direction: Optional[float] = typer.Option(None, "--wind-direction"),
    solar_radiation: Optional[float] = typer.Option(None, "--solar-radiation"),
    uv_index: Optional[float] = typer.Option(None, "--uv-index"),
    visibility: Optional[float] = typer.Option(None),
    cloud_cover: Optional[float] = typer.Option(None, "--cloud-cover"),
) -> None:
    """Submit a single reading to the service."""
    state = _get_state(ctx)
    payload: Dict[str, Any] = {
        "sensor_id": sensor_id,
        "date": date or datetime.now(timezone.utc).isoformat(),
        "temperature": temperature,
        "humidity": humidity,
        "wind_speed": wind_speed,
    }
    optional = {
        "pressure": pressure,
        "precipitation": precipitation,
        "wind_direction": wind_direction,
        "solar_radiation": solar_radiation,
        "uv_index": uv_index,
        "visibility": visibility,
        "cloud_cover": cloud_cover,
    }
    payload.update({key: value for key, value in optional.items() if value is not None})

    stored = state.client.submit_reading(payload)
    typer.secho(f"Reading stored. id={stored.get('id')}", fg=typer.colors.GREEN)
    render_reading(stored)


@app.command("query")
def query_command(
    ctx: typer.Context,
    sensor_id: Optional[int] = typer.Option(None, "--sensor-id", help="Only this sensor."),
    start_date: Optional[str] = typer.Option(None, "--start-date", help="Earliest observation time."),
    end_date: Optional[str] = typer.Option(None, "--end-date", help="Latest observation time."),
    minimums: List[str] = typer.Option(
        [],
        "--min",
        help="Lower-bound filter as FIELD=VALUE; repeat for several fields.",
    ),
    metrics: Optional[str] = typer.Option(
        None, help="Comma-separated metrics to aggregate per sensor."
    ),
    statistic: Optional[str] = typer.Option(
        None, help="Statistic to compute: min, max, sum or average."
    ),
) -> None:
    """Query stored readings or per-sensor statistics."""
    state = _get_state(ctx)
    params: Dict[str, str] = _parse_thresholds(minimums)
    if sensor_id is not None:
        params["sensor_id"] = str(sensor_id)
    if start_date:
        params["startDate"] = start_date
    if end_date:
        params["endDate"] = end_date
    if metrics:
        params["metrics"] = metrics
    if statistic:
        params["statistic"] = statistic

    rows = state.client.query_readings(params)
    render_rows(rows)
