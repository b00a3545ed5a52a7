from __future__ import annotations

from typing import Any, Dict, Iterable, Optional

import typer


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def render_sensors(payload: Dict[str, Any]) -> None:
    echo_heading("Sensors")
    if not payload:
        typer.echo("No sensors in scope.")
        return
    for sensor_id, sensor in payload.items():
        model = sensor.get("model") or {}
        location = sensor.get("location") or {}
        typer.echo(
            f"  - {sensor_id}: {sensor.get('name')} "
            f"[{model.get('name')}] at "
            f"({location.get('x')}, {location.get('y')}, {location.get('z')})"
        )
        channels = model.get("channels") or {}
        if channels:
            typer.echo(f"      channels: {', '.join(channels)}")


def render_history(sensor_id: str, payload: Dict[str, Any], channel: Optional[str] = None) -> None:
    echo_heading(f"Historical data: {sensor_id}")
    timestamps = payload.get("timestamps") or []
    echo_key_values(
        [
            ("count", payload.get("count")),
            ("first", timestamps[0] if timestamps else None),
            ("last", timestamps[-1] if timestamps else None),
        ]
    )

    stats = payload.get("stats") or {}
    if channel is not None:
        if channel not in stats:
            typer.secho(f"Channel {channel} has no samples.", fg=typer.colors.YELLOW)
            return
        stats = {channel: stats[channel]}

    typer.echo()
    echo_heading("Channels")
    if not stats:
        typer.echo("No channel data available.")
        return
    for channel_id, item in stats.items():
        typer.echo(
            f"  - {channel_id}: samples={item.get('sample_count')} "
            f"missing={item.get('missing_count')} min={item.get('min_value')} "
            f"max={item.get('max_value')} mean={item.get('mean_value')}"
        )


def render_selection(payload: Dict[str, Any]) -> None:
    echo_heading("Current Selection")
    echo_key_values(
        [
            ("current_time", payload.get("current_time")),
            ("sensor_id", payload.get("sensor_id")),
            ("channel_id", payload.get("channel_id")),
        ]
    )


def render_events(payload: Dict[str, Any]) -> None:
    echo_heading("Events")
    entries = payload.get("entries") or []
    if not entries:
        typer.echo("No events recorded.")
    for entry in entries:
        typer.echo(
            f"  #{entry.get('sequence')} {entry.get('recorded_at')} "
            f"{entry.get('event_type')}: {entry.get('payload')}"
        )
    typer.echo(f"latest_sequence: {payload.get('latest_sequence')}")
