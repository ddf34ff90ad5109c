from __future__ import annotations

import asyncio

import httpx
import pytest

from datastore.reading_cache import ReadingCache
from models.readings import Pollutant, SourceId
from providers.openaq import OpenAQClient
from providers.openweather import OpenWeatherPollutionClient
from providers.satellite import SatelliteClient
from services.aggregator import SourceAggregator
from services.forecast import ForecastGenerator

from conftest import (
    OBSERVED_AT,
    StubGround,
    StubPollution,
    StubSatellite,
    make_reading,
    make_site,
    pollution_step,
    reading_of,
    unavailable,
)

SYNTHETIC_NAMES = [
    "Central Station",
    "Industrial Area",
    "Residential Zone",
    "Highway Junction",
    "Green Park",
]


def _forecaster() -> ForecastGenerator:
    return ForecastGenerator(clock=lambda: OBSERVED_AT)


def _aggregator(cache: ReadingCache, ground=None, satellite=None, pollution=None, **kwargs):
    return SourceAggregator(
        ground=ground,
        satellite=satellite,
        pollution=pollution,
        cache=cache,
        forecaster=_forecaster(),
        **kwargs,
    )


def test_satellite_enrichment_overrides_ground_no2(cache: ReadingCache) -> None:
    ground = StubGround([make_site("Vyttila", lat=9.96, pm25=38, no2=12, o3=30)])
    satellite = StubSatellite(
        {9.96: [reading_of(Pollutant.no2, 27.0, SourceId.satellite)]}
    )
    aggregator = _aggregator(cache, ground, satellite)

    readings = asyncio.run(aggregator.fetch_current(9.93, 76.26, 25))

    assert len(readings) == 1
    reading = readings[0]
    assert reading.location_label == "Vyttila"
    assert (reading.pm25, reading.no2, reading.o3) == (38, 27.0, 30)
    assert reading.latitude == 9.96
    assert ground.calls == [(9.93, 76.26, 25, 10)]


def test_enrichment_failure_keeps_ground_values(cache: ReadingCache) -> None:
    ground = StubGround(
        [
            make_site("Kaloor", lat=9.99, pm25=40, no2=15, o3=25),
            make_site("Aluva", lat=10.1, pm25=22, no2=8, o3=35),
            make_site("Fort Kochi", lat=9.96, pm25=18, no2=6, o3=50),
        ]
    )
    satellite = StubSatellite(
        {
            9.99: unavailable("satellite"),
            10.1: RuntimeError("boom"),
            9.96: [reading_of(Pollutant.o3, 70.0, SourceId.satellite)],
        }
    )
    aggregator = _aggregator(cache, ground, satellite)

    readings = asyncio.run(aggregator.fetch_current(9.93, 76.26, 25))

    by_label = {reading.location_label: reading for reading in readings}
    assert set(by_label) == {"Kaloor", "Aluva", "Fort Kochi"}
    assert by_label["Kaloor"].no2 == 15
    assert by_label["Aluva"].o3 == 35
    assert by_label["Fort Kochi"].o3 == 70.0


def test_ground_outage_serves_synthetic_sites(cache: ReadingCache) -> None:
    aggregator = _aggregator(cache, StubGround(error=unavailable("openaq")), StubSatellite())

    readings = asyncio.run(aggregator.fetch_current(9.93, 76.26, 25))

    assert [reading.location_label for reading in readings] == SYNTHETIC_NAMES
    assert all(not reading.is_empty() for reading in readings)


def test_missing_ground_provider_serves_synthetic_sites(cache: ReadingCache) -> None:
    aggregator = _aggregator(cache)

    readings = asyncio.run(aggregator.fetch_current(9.93, 76.26, 25))

    assert len(readings) == 5


def test_synthetic_sites_follow_last_known_reading(cache: ReadingCache) -> None:
    cache.put(make_reading(pm25=100, no2=40, o3=80, label="Edappally", lat=9.93, lon=76.26))
    aggregator = _aggregator(cache, StubGround(error=unavailable("openaq")))

    readings = asyncio.run(aggregator.fetch_current(9.93, 76.26, 25))

    central = next(r for r in readings if r.location_label == "Central Station")
    assert 85 <= central.pm25 <= 115
    assert 34 <= central.no2 <= 46


def test_all_zero_sites_are_dropped(cache: ReadingCache) -> None:
    ground = StubGround(
        [make_site("Quiet", pm25=0, no2=0, o3=0), make_site("Silent")]
    )
    aggregator = _aggregator(cache, ground, StubSatellite())

    readings = asyncio.run(aggregator.fetch_current(9.93, 76.26, 25))

    assert readings == []
    assert cache.scan() == []


def test_sites_are_capped_and_cached(cache: ReadingCache) -> None:
    ground = StubGround(
        [make_site(f"Site {index}", lat=9.9 + index / 100, pm25=10 + index) for index in range(6)]
    )
    aggregator = _aggregator(cache, ground, max_sites=4)

    readings = asyncio.run(aggregator.fetch_current(9.93, 76.26, 25))

    assert [reading.location_label for reading in readings] == [f"Site {i}" for i in range(4)]
    assert ground.calls[0][3] == 4
    assert cache.get("Site 2") == readings[2]


def test_forecast_maps_provider_feed(cache: ReadingCache) -> None:
    feed = [pollution_step(hour, 30 + hour, 12, 60) for hour in range(8)]
    pollution = StubPollution(current=pollution_step(0, 30, 12, 60), feed=feed)
    aggregator = _aggregator(cache, pollution=pollution)

    points = asyncio.run(aggregator.fetch_forecast(9.93, 76.26, "Marine Drive"))

    assert len(points) == 6
    assert points[0].confidence == pytest.approx(0.9)
    assert [point.pm25 for point in points] == [30, 31, 32, 33, 34, 35]
    assert {point.location_label for point in points} == {"Marine Drive"}


def test_forecast_without_feed_synthesizes_from_current(cache: ReadingCache) -> None:
    pollution = StubPollution(current=pollution_step(0, 50, 20, 60))
    aggregator = _aggregator(cache, pollution=pollution)

    points = asyncio.run(aggregator.fetch_forecast(9.93, 76.26))

    assert len(points) == 6
    assert points[0].confidence == pytest.approx(0.85)
    assert points[0].pm25 == 50
    assert points[0].location_label == "9.9300, 76.2600"


def test_forecast_outage_uses_nearby_known_reading(cache: ReadingCache) -> None:
    cache.put(make_reading(pm25=70, no2=30, o3=40, label="Kakkanad", lat=9.95, lon=76.27))
    aggregator = _aggregator(cache, pollution=StubPollution(error=unavailable("openweather")))

    points = asyncio.run(aggregator.fetch_forecast(9.93, 76.26))

    assert points[0].location_label == "Kakkanad"
    assert points[0].pm25 == 70


def test_forecast_ignores_distant_known_reading(cache: ReadingCache) -> None:
    cache.put(make_reading(pm25=70, label="Chennai", lat=13.08, lon=80.27))
    aggregator = _aggregator(cache)

    points = asyncio.run(aggregator.fetch_forecast(9.93, 76.26))

    assert points[0].location_label == "9.9300, 76.2600"
    assert (points[0].pm25, points[0].no2, points[0].o3) == (45, 25, 55)


def _json_transport(payload) -> httpx.MockTransport:
    return httpx.MockTransport(lambda request: httpx.Response(200, json=payload))


def test_naive_satellite_timestamp_merges_with_ground_readings(cache: ReadingCache) -> None:
    satellite_payload = {"no2": 20.0, "o3": 50.0, "timestamp": "2024-01-01T13:00:00"}

    async def scenario():
        async with httpx.AsyncClient(transport=_json_transport(satellite_payload)) as client:
            aggregator = _aggregator(
                cache,
                StubGround([make_site("Vyttila", pm25=38, no2=12, o3=30)]),
                SatelliteClient(client, "https://sat.test"),
            )
            return await aggregator.fetch_current(9.93, 76.26, 25)

    (reading,) = asyncio.run(scenario())

    assert (reading.pm25, reading.no2, reading.o3) == (38, 20.0, 50.0)
    assert reading.timestamp.isoformat() == "2024-01-01T13:00:00+00:00"


def test_malformed_ground_envelope_serves_synthetic_sites(cache: ReadingCache) -> None:
    async def scenario():
        async with httpx.AsyncClient(transport=_json_transport({"results": "oops"})) as client:
            aggregator = _aggregator(cache, OpenAQClient(client, "https://aq.test/v2"))
            return await aggregator.fetch_current(9.93, 76.26, 25)

    readings = asyncio.run(scenario())

    assert [reading.location_label for reading in readings] == SYNTHETIC_NAMES


def test_malformed_pollution_envelope_synthesizes_forecast(cache: ReadingCache) -> None:
    async def scenario():
        async with httpx.AsyncClient(transport=_json_transport({"list": {"dt": 1}})) as client:
            aggregator = _aggregator(
                cache, pollution=OpenWeatherPollutionClient(client, "https://ow.test", "key")
            )
            return await aggregator.fetch_forecast(9.93, 76.26)

    points = asyncio.run(scenario())

    assert len(points) == 6
    assert points[0].confidence == pytest.approx(0.85)
    assert (points[0].pm25, points[0].no2, points[0].o3) == (45, 25, 55)


def test_distant_cached_reading_does_not_seed_synthetic_sites(cache: ReadingCache) -> None:
    cache.put(make_reading(pm25=300, no2=150, o3=200, label="Delhi", lat=28.61, lon=77.21))
    aggregator = _aggregator(cache, StubGround(error=unavailable("openaq")))

    readings = asyncio.run(aggregator.fetch_current(9.93, 76.26, 25))

    central = next(r for r in readings if r.location_label == "Central Station")
    assert 38 <= central.pm25 <= 52
