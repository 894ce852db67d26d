from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Optional

import typer
import uvicorn

from cli.client import ApiClient, SensorServerBusy
from cli.config import CLIConfig, load_config
from cli.render import render_health, render_sensors
from services.catalog import SensorCatalogError
from services.snapshot import build_default_snapshot_service, serialize


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


app = typer.Typer(
    help="Utilities for reading the sensor server and the sensors behind it.",
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
        help="Sensor server base URL (defaults to API_BASE_URL env or http://localhost:8080).",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="Seconds to wait for the server to answer.",
    ),
) -> None:
    """Entry point for the CLI."""
    config = load_config(base_url=base_url, request_timeout=timeout)
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


@app.command("read")
def read_command(
    ctx: typer.Context,
    raw: bool = typer.Option(False, "--json", help="Print the JSON document unchanged."),
) -> None:
    """Fetch the current readings from a running server."""
    state = _get_state(ctx)
    try:
        payload = state.client.get_sensors()
    except SensorServerBusy as exc:
        typer.secho(str(exc), fg=typer.colors.YELLOW, err=True)
        raise typer.Exit(code=1)
    if raw:
        typer.echo(json.dumps(payload, separators=(",", ":")))
        return
    render_sensors(payload)


@app.command("health")
def health_command(ctx: typer.Context) -> None:
    """Check that the server is up."""
    state = _get_state(ctx)
    render_health(state.client.get_health())


@app.command("local")
def local_command(
    raw: bool = typer.Option(False, "--json", help="Print the JSON document unchanged."),
) -> None:
    """Read the sensors on this host directly, without a running server."""
    service = build_default_snapshot_service()
    try:
        readings = service.take_snapshot()
    except SensorCatalogError as exc:
        typer.secho(str(exc), fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    if readings is None:
        typer.secho("Sensor bus is busy; try again later.", fg=typer.colors.YELLOW, err=True)
        raise typer.Exit(code=1)

    body = serialize(readings)
    if raw:
        typer.echo(body)
        return
    render_sensors(json.loads(body))


@app.command("serve")
def serve_command(
    host: str = typer.Option("0.0.0.0", "--host", help="Interface to bind."),
    port: int = typer.Option(8080, "--port", "-p", help="Port to listen on."),
) -> None:
    """Run the HTTP server."""
    uvicorn.run("app.main:app", host=host, port=port, log_config=None)
