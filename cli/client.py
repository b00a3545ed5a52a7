from __future__ import annotations

from typing import Any, Dict, Optional

import httpx
import typer

from cli.config import CLIConfig


class ApiClient:
    """Minimal HTTP client for the data view service."""

    def __init__(self, config: CLIConfig) -> None:
        self._config = config
        self._client = httpx.Client(base_url=config.base_url, timeout=config.timeout)

    def close(self) -> None:
        self._client.close()

    def get_sensors(self) -> Dict[str, Any]:
        return self._request("GET", "/sensors")

    def get_historical_data(self, sensor_id: str) -> Dict[str, Any]:
        return self._request("GET", f"/historical-data/{sensor_id}")

    def get_current(self) -> Dict[str, Any]:
        return self._request("GET", "/current")

    def select_sensor(self, sensor_id: Optional[str]) -> Dict[str, Any]:
        return self._request("PUT", "/current/sensor", json={"sensor_id": sensor_id})

    def select_channel(self, channel_id: Optional[str]) -> Dict[str, Any]:
        return self._request("PUT", "/current/channel", json={"channel_id": channel_id})

    def refresh(self) -> Dict[str, Any]:
        return self._request("POST", "/refresh")

    def get_events(self, after: Optional[int] = None) -> Dict[str, Any]:
        params = {"after": after} if after is not None else None
        return self._request("GET", "/events", params=params)

    def _request(self, method: str, path: str, **kwargs: Any) -> Dict[str, Any]:
        try:
            response = self._client.request(method, path, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        except httpx.TransportError as exc:
            typer.secho(
                f"Could not reach {self._config.base_url}: {exc}",
                fg=typer.colors.RED,
                err=True,
            )
            raise typer.Exit(code=1)
        return response.json()

    @staticmethod
    def _handle_http_error(exc: httpx.HTTPStatusError) -> None:
        detail: str | None = None
        try:
            data = exc.response.json()
            detail = data.get("detail")
        except Exception:  # noqa: BLE001 - best effort parsing
            detail = exc.response.text.strip()
        message = (
            f"Request failed with status {exc.response.status_code}: {detail or 'no detail provided.'}"
        )
        typer.secho(message, fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
