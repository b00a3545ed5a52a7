from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import typer

from cli.client import ApiClient
from cli.config import CLIConfig, load_config
from cli.render import render_events, render_history, render_selection, render_sensors


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


app = typer.Typer(
    help="Utilities for inspecting and steering the IoT data view service.",
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
        help="Data view API base URL (defaults to API_BASE_URL env or http://localhost:8000).",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="Seconds to wait for each API request.",
    ),
) -> None:
    """Entry point for the CLI."""
    config = load_config(base_url=base_url, timeout=timeout)
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


@app.command("sensors")
def sensors_command(ctx: typer.Context) -> None:
    """List the sensors currently in scope."""
    state = _get_state(ctx)
    render_sensors(state.client.get_sensors())


@app.command("history")
def history_command(
    ctx: typer.Context,
    sensor_id: str = typer.Argument(..., help="Sensor to show historical data for."),
    channel: Optional[str] = typer.Option(None, "--channel", "-c", help="Only show this channel."),
) -> None:
    """Summarize the historical samples of a sensor."""
    state = _get_state(ctx)
    payload = state.client.get_historical_data(sensor_id)
    render_history(sensor_id, payload, channel=channel)


@app.command("current")
def current_command(ctx: typer.Context) -> None:
    """Show the current time, sensor and channel."""
    state = _get_state(ctx)
    render_selection(state.client.get_current())


@app.command("select")
def select_command(
    ctx: typer.Context,
    sensor_id: str = typer.Argument(..., help="Sensor to focus."),
    channel: Optional[str] = typer.Option(None, "--channel", "-c", help="Channel to focus."),
) -> None:
    """Focus a sensor and optionally one of its channels."""
    state = _get_state(ctx)
    payload = state.client.select_sensor(sensor_id)
    if channel is not None:
        payload = state.client.select_channel(channel)
    typer.secho(f"Selected sensor {payload.get('sensor_id')}.", fg=typer.colors.GREEN)
    render_selection(payload)


@app.command("refresh")
def refresh_command(ctx: typer.Context) -> None:
    """Ask the service to reload its data source."""
    state = _get_state(ctx)
    state.client.refresh()
    typer.secho("Refresh accepted.", fg=typer.colors.GREEN)


@app.command("events")
def events_command(
    ctx: typer.Context,
    after: Optional[int] = typer.Option(None, "--after", help="Only show events after this sequence."),
) -> None:
    """List recorded data view events."""
    state = _get_state(ctx)
    render_events(state.client.get_events(after=after))
