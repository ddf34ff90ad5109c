from __future__ import annotations

from typing import Any, Dict, Iterable, List

import typer

_TONE_COLORS = {
    "positive": typer.colors.GREEN,
    "calm": typer.colors.BLUE,
    "warning": typer.colors.YELLOW,
    "urgent": typer.colors.RED,
}


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def _fmt(value: Any) -> str:
    if isinstance(value, float):
        return f"{value:.1f}"
    return str(value)


def render_readings(readings: List[Dict[str, Any]]) -> None:
    echo_heading("Current Readings")
    if not readings:
        typer.echo("No data available for this area.")
        return
    for reading in readings:
        typer.echo(
            f"  - {reading.get('location_label')}: AQI {reading.get('aqi')} "
            f"(pm25={_fmt(reading.get('pm25'))} no2={_fmt(reading.get('no2'))} "
            f"o3={_fmt(reading.get('o3'))})"
        )


def render_forecast(points: List[Dict[str, Any]]) -> None:
    echo_heading("Forecast")
    if not points:
        typer.echo("No forecast available.")
        return
    for point in points:
        confidence = point.get("confidence") or 0.0
        typer.echo(
            f"  - {point.get('timestamp')}: AQI {point.get('aqi')} "
            f"pm25={_fmt(point.get('pm25'))} confidence={confidence * 100:.0f}%"
        )


def render_advisory(payload: Dict[str, Any]) -> None:
    tone = payload.get("tone") or "calm"
    typer.secho(f"[{tone}] {payload.get('reply_text')}", fg=_TONE_COLORS.get(tone))
    echo_key_values(
        [
            ("confidence", payload.get("confidence")),
            ("sources", ", ".join(payload.get("sources") or [])),
        ]
    )
    area = payload.get("highlight_area")
    if area:
        typer.echo(f"highlight: {area.get('lat')}, {area.get('lon')}")


def render_sources(sources: List[Dict[str, Any]]) -> None:
    echo_heading("Data Sources")
    for source in sources:
        confidence = source.get("confidence") or 0.0
        typer.echo(
            f"  - {source.get('name')} ({confidence * 100:.0f}%): {source.get('description')}"
        )
