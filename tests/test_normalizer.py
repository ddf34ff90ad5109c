from __future__ import annotations

import pytest

from models.readings import Pollutant, SourceId
from services.normalizer import (
    PollutantNormalizer,
    parse_parameter,
    to_micrograms,
)

from conftest import OBSERVED_AT, reading_of


@pytest.fixture()
def normalizer() -> PollutantNormalizer:
    return PollutantNormalizer()


def test_satellite_no2_wins_over_ground_sensor(normalizer: PollutantNormalizer) -> None:
    readings = [
        reading_of(Pollutant.no2, 18.0, SourceId.ground_sensor),
        reading_of(Pollutant.no2, 31.0, SourceId.satellite),
        reading_of(Pollutant.pm25, 40.0, SourceId.ground_sensor),
    ]

    result = normalizer.normalize(readings, location_label="Fort Kochi")

    assert result.no2 == 31.0
    assert result.pm25 == 40.0
    assert result.location_label == "Fort Kochi"


def test_ground_sensor_used_when_satellite_absent(normalizer: PollutantNormalizer) -> None:
    readings = [
        reading_of(Pollutant.no2, 18.0, SourceId.ground_sensor),
        reading_of(Pollutant.o3, 44.0, SourceId.ground_sensor),
    ]

    result = normalizer.normalize(readings, location_label="Edappally")

    assert result.no2 == 18.0
    assert result.o3 == 44.0


def test_ground_sensor_preferred_for_pm25(normalizer: PollutantNormalizer) -> None:
    readings = [
        reading_of(Pollutant.pm25, 90.0, SourceId.reanalysis),
        reading_of(Pollutant.pm25, 60.0, SourceId.ground_sensor),
    ]

    result = normalizer.normalize(readings, location_label="site")

    assert result.pm25 == 60.0


def test_missing_pollutants_default_to_zero(normalizer: PollutantNormalizer) -> None:
    result = normalizer.normalize(
        [reading_of(Pollutant.pm25, 12.0, SourceId.ground_sensor)],
        location_label="site",
    )

    assert (result.pm25, result.no2, result.o3) == (12.0, 0.0, 0.0)
    assert result.aqi == 40


def test_priority_is_configurable_per_call(normalizer: PollutantNormalizer) -> None:
    readings = [
        reading_of(Pollutant.no2, 18.0, SourceId.ground_sensor),
        reading_of(Pollutant.no2, 31.0, SourceId.satellite),
    ]

    result = normalizer.normalize(
        readings,
        [SourceId.ground_sensor, SourceId.satellite],
        location_label="site",
    )

    assert result.no2 == 18.0


def test_priority_mapping_configured_on_instance() -> None:
    normalizer = PollutantNormalizer(
        source_priority={Pollutant.o3: [SourceId.reanalysis, SourceId.satellite]}
    )
    readings = [
        reading_of(Pollutant.o3, 50.0, SourceId.satellite),
        reading_of(Pollutant.o3, 65.0, SourceId.reanalysis),
    ]

    result = normalizer.normalize(readings, location_label="site")

    assert result.o3 == 65.0


def test_untracked_and_negative_values_are_ignored(normalizer: PollutantNormalizer) -> None:
    readings = [
        reading_of(Pollutant.co, 400.0, SourceId.satellite),
        reading_of(Pollutant.pm25, -3.0, SourceId.ground_sensor),
    ]

    result = normalizer.normalize(readings, location_label="site")

    assert result.pm25 == 0.0
    assert result.is_empty()


def test_first_report_from_a_source_is_kept(normalizer: PollutantNormalizer) -> None:
    readings = [
        reading_of(Pollutant.pm25, 20.0, SourceId.ground_sensor),
        reading_of(Pollutant.pm25, 70.0, SourceId.ground_sensor),
    ]

    result = normalizer.normalize(readings, location_label="site")

    assert result.pm25 == 20.0


def test_ppb_values_are_converted(normalizer: PollutantNormalizer) -> None:
    result = normalizer.normalize(
        [reading_of(Pollutant.no2, 10.0, SourceId.ground_sensor, unit="ppb")],
        location_label="site",
    )

    assert result.no2 == pytest.approx(18.8)


def test_timestamp_defaults_to_newest_observation(normalizer: PollutantNormalizer) -> None:
    result = normalizer.normalize(
        [reading_of(Pollutant.pm25, 20.0, SourceId.ground_sensor)],
        location_label="site",
    )

    assert result.timestamp == OBSERVED_AT


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("pm25", Pollutant.pm25), ("PM2.5", Pollutant.pm25), ("pm2_5", Pollutant.pm25), ("bc", None)],
)
def test_parse_parameter_aliases(raw: str, expected) -> None:
    assert parse_parameter(raw) is expected


def test_ppm_conversion_and_unknown_units() -> None:
    assert to_micrograms(Pollutant.o3, 0.05, "ppm") == pytest.approx(98.0)
    assert to_micrograms(Pollutant.pm25, 12.0, "ppm") == 12.0
    assert to_micrograms(Pollutant.o3, 12.0, "mg") == 12.0
