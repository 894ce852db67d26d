from __future__ import annotations

from typing import Any, Dict, Iterable

import typer

from models.records import BRIDGE_HUMIDITY_ID, BRIDGE_TEMPERATURE_ID

_LABELS = {
    BRIDGE_TEMPERATURE_ID: "helper temperature",
    BRIDGE_HUMIDITY_ID: "helper humidity",
}


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def render_sensors(payload: Dict[str, Any]) -> None:
    echo_heading("Sensors")
    sensors = payload.get("sensors") or []
    if not sensors:
        typer.echo("No sensors reported.")
        return
    for sensor in sensors:
        sensor_id = sensor.get("id")
        label = _LABELS.get(sensor_id, "1-wire")
        typer.echo(f"  - {sensor_id} ({label}): {sensor.get('value')}")


def render_health(payload: Dict[str, Any]) -> None:
    echo_heading("Health")
    echo_key_values(payload.items())
