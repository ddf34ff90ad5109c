"""Unit tests for the AQI calculator and the derived-AQI invariant."""

from __future__ import annotations

import dataclasses

import pytest

from models.readings import CanonicalReading, ForecastPoint
from services.aqi import aqi_level, compute_aqi

from conftest import OBSERVED_AT, make_reading


@pytest.mark.parametrize(
    ("pm25", "no2", "o3"),
    [(15, 0, 0), (0, 40, 0), (0, 0, 100)],
)
def test_each_pollutant_at_its_ceiling_scores_fifty(pm25: float, no2: float, o3: float) -> None:
    assert compute_aqi(pm25, no2, o3) == 50


def test_worst_pollutant_drives_the_index() -> None:
    # pm25 sub-index 273.3 dominates no2 (25) and o3 (22.5)
    assert compute_aqi(82, 20, 45) == 273


def test_zero_inputs_score_zero() -> None:
    assert compute_aqi(0, 0, 0) == 0


def test_negative_inputs_do_not_raise() -> None:
    assert compute_aqi(-15, -40, -100) == -50
    assert compute_aqi(-15, 0, 0) == 0


@pytest.mark.parametrize("position", [0, 1, 2])
def test_index_is_monotonic_in_each_pollutant(position: int) -> None:
    baseline = [12.0, 18.0, 40.0]
    previous = None
    for value in [0.0, 1.0, 5.5, 14.9, 15.0, 39.9, 40.0, 75.0, 100.0, 250.0, 600.0]:
        args = list(baseline)
        args[position] = value
        current = compute_aqi(*args)
        if previous is not None:
            assert current >= previous
        previous = current


@pytest.mark.parametrize(
    ("aqi", "level"),
    [
        (0, "Good"),
        (50, "Good"),
        (51, "Moderate"),
        (100, "Moderate"),
        (150, "Unhealthy for Sensitive Groups"),
        (200, "Unhealthy"),
        (201, "Very Unhealthy"),
    ],
)
def test_aqi_level_bands(aqi: int, level: str) -> None:
    assert aqi_level(aqi).level == level


def test_reading_aqi_is_derived_from_pollutants() -> None:
    reading = make_reading(pm25=82, no2=20, o3=45)

    assert reading.aqi == compute_aqi(reading.pm25, reading.no2, reading.o3) == 273


def test_replace_recomputes_aqi() -> None:
    reading = make_reading(pm25=82, no2=20, o3=45)

    cleaner = dataclasses.replace(reading, pm25=7.5)

    assert cleaner.aqi == compute_aqi(7.5, 20, 45)


def test_aqi_cannot_be_passed_to_constructor() -> None:
    with pytest.raises(TypeError):
        CanonicalReading(  # type: ignore[call-arg]
            pm25=1.0,
            no2=1.0,
            o3=1.0,
            aqi=999,
            timestamp=OBSERVED_AT,
            location_label="x",
        )


def test_forecast_point_aqi_is_derived() -> None:
    point = ForecastPoint(
        pm25=30.0,
        no2=80.0,
        o3=10.0,
        timestamp=OBSERVED_AT,
        location_label="x",
        confidence=0.9,
    )

    assert point.aqi == compute_aqi(30.0, 80.0, 10.0) == 100
