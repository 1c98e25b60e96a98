from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Iterable

import typer


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def format_date(value: Any) -> str:
    if not isinstance(value, int):
        return str(value)
    try:
        moment = datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        # Valid int64 dates can fall outside what datetime represents.
        return str(value)
    return moment.strftime("%Y-%m-%d %H:%M:%S UTC")


def render_measurements(title: str, measurements: Iterable[Dict[str, Any]]) -> None:
    echo_heading(title)
    rows = list(measurements)
    if not rows:
        typer.echo("No measurements recorded.")
        return
    for row in rows:
        typer.echo(
            f"  - {format_date(row.get('Date'))}: "
            f"temperature={row.get('Temperature')} humidity={row.get('Humidity')}"
        )
