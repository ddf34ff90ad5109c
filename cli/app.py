from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import typer

from cli.client import ApiClient
from cli.config import CLIConfig, load_config
from cli.render import render_advisory, render_forecast, render_readings, render_sources


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


app = typer.Typer(
    help="Utilities for interacting with the air-quality aggregation service.",
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
        help="Request timeout in seconds.",
    ),
) -> None:
    """Entry point for the CLI."""
    config = load_config(base_url=base_url, timeout=timeout)
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


@app.command("readings")
def readings_command(
    ctx: typer.Context,
    latest: bool = typer.Option(
        False,
        "--latest/--live",
        help="Show the last refreshed snapshot instead of fetching live.",
    ),
) -> None:
    """List current readings for the monitored area."""
    state = _get_state(ctx)
    render_readings(state.client.get_readings(latest=latest))


@app.command("forecast")
def forecast_command(
    ctx: typer.Context,
    lat: float = typer.Option(..., "--lat", help="Latitude of the point to forecast."),
    lon: float = typer.Option(..., "--lon", help="Longitude of the point to forecast."),
) -> None:
    """Show the short-horizon forecast for a coordinate."""
    state = _get_state(ctx)
    render_forecast(state.client.get_forecast(lat, lon))


@app.command("ask")
def ask_command(
    ctx: typer.Context,
    query: str = typer.Argument(..., help="Question about the air quality."),
    location: Optional[str] = typer.Option(
        None, "--location", help="Location label for a custom reading."
    ),
    pm25: Optional[float] = typer.Option(None, "--pm25", min=0.0),
    no2: float = typer.Option(0.0, "--no2", min=0.0),
    o3: float = typer.Option(0.0, "--o3", min=0.0),
) -> None:
    """Ask the advisory assistant a question.

    Without ``--pm25`` the service answers about its latest reading.
    """
    state = _get_state(ctx)
    reading = None
    if pm25 is not None:
        reading = {
            "location_label": location or "Custom location",
            "pm25": pm25,
            "no2": no2,
            "o3": o3,
        }
    render_advisory(state.client.ask(query, reading))


@app.command("sources")
def sources_command(ctx: typer.Context) -> None:
    """List the data providers and their confidence."""
    state = _get_state(ctx)
    render_sources(state.client.get_sources())
