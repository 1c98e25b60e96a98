from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Optional

import typer

from cli.client import ApiClient
from cli.config import CLIConfig, load_config
from cli.render import format_date, render_measurements


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


app = typer.Typer(
    help="Sensor client for the measurement service.",
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


@app.command("add")
def add_command(
    ctx: typer.Context,
    temperature: float = typer.Option(..., "--temperature", "-t", help="Degrees Celsius."),
    humidity: float = typer.Option(..., "--humidity", "-u", help="Relative humidity in percent."),
    date: Optional[int] = typer.Option(
        None,
        "--date",
        "-d",
        help="Epoch milliseconds of the reading (defaults to now).",
    ),
) -> None:
    """Report one reading to the service."""
    state = _get_state(ctx)
    reading_date = date if date is not None else int(time.time() * 1000)
    state.client.add_measurement(temperature=temperature, humidity=humidity, date=reading_date)
    typer.secho(
        f"Stored reading for {format_date(reading_date)} at {state.config.base_url}",
        fg=typer.colors.GREEN,
    )


@app.command("latest")
def latest_command(ctx: typer.Context) -> None:
    """Show the most recent reading."""
    state = _get_state(ctx)
    render_measurements("Latest Measurement", state.client.get_latest())


@app.command("recent")
def recent_command(ctx: typer.Context) -> None:
    """Show readings from the last seven days, newest first."""
    state = _get_state(ctx)
    render_measurements("Last 7 Days", state.client.get_recent())
