from __future__ import annotations

from typing import Any, Dict, Iterable, List

import typer

_READING_KEYS = (
    "id",
    "sensor_id",
    "date",
    "temperature",
    "humidity",
    "wind_speed",
    "pressure",
    "precipitation",
    "wind_direction",
    "solar_radiation",
    "uv_index",
    "visibility",
    "cloud_cover",
    "created_at",
)


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def render_reading(payload: Dict[str, Any]) -> None:
    echo_heading("Sensor Reading")
    echo_key_values((key, payload[key]) for key in _READING_KEYS if key in payload)


def render_rows(rows: List[Dict[str, Any]]) -> None:
    echo_heading(f"Results ({len(rows)})")
    if not rows:
        typer.echo("No matching readings.")
        return
    for index, row in enumerate(rows, start=1):
        typer.echo()
        typer.echo(f"#{index}")
        echo_key_values(
            (key, value) for key, value in row.items() if key != "updated_at"
        )
