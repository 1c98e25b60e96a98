from __future__ import annotations

from typing import Any, Dict, List, NoReturn

import httpx
import typer

from cli.config import CLIConfig


class ApiClient:
    """Minimal HTTP client for the measurement service."""

    def __init__(self, config: CLIConfig) -> None:
        self._config = config
        self._client = httpx.Client(base_url=config.base_url, timeout=config.timeout)

    def close(self) -> None:
        self._client.close()

    def add_measurement(self, temperature: float, humidity: float, date: int) -> None:
        payload = {"Temperature": temperature, "Humidity": humidity, "Date": date}
        response = self._client.post("/add", json=payload)
        # Success is a redirect back to the chart, which is not followed.
        if response.status_code >= 400:
            self._fail(response)

    def get_latest(self) -> List[Dict[str, Any]]:
        return self._get_list("/latest")

    def get_recent(self) -> List[Dict[str, Any]]:
        return self._get_list("/get")

    def _get_list(self, path: str) -> List[Dict[str, Any]]:
        response = self._client.get(path)
        if response.status_code >= 400:
            self._fail(response)
        payload = response.json()
        if not isinstance(payload, list):
            raise typer.BadParameter(f"Unexpected response payload from {path}.")
        return payload

    @staticmethod
    def _fail(response: httpx.Response) -> NoReturn:
        detail = response.text.strip()
        message = f"Request failed with status {response.status_code}: {detail or 'no detail provided.'}"
        typer.secho(message, fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
