"""HTTP route definitions for the service."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status

from app.schemas import (
    AdvisoryOut,
    AdvisoryRequest,
    AqiLevelOut,
    DataSourceOut,
    ForecastPointOut,
    ReadingOut,
)
from services.aqi import aqi_level
from services.dashboard import DashboardService, build_default_dashboard

router = APIRouter()


def get_dashboard() -> DashboardService:
    return build_default_dashboard()


@router.get(
    "/readings",
    response_model=List[ReadingOut],
    summary="Fetch current readings for the monitored area.",
)
async def list_readings(
    dashboard: DashboardService = Depends(get_dashboard),
) -> List[ReadingOut]:
    readings = await dashboard.fetch_air_quality_data()
    return [ReadingOut.from_reading(reading) for reading in readings]


@router.get(
    "/readings/latest",
    response_model=List[ReadingOut],
    summary="Return the snapshot published by the most recent refresh cycle.",
)
async def latest_readings(
    dashboard: DashboardService = Depends(get_dashboard),
) -> List[ReadingOut]:
    return [ReadingOut.from_reading(reading) for reading in dashboard.latest]


@router.get(
    "/forecast",
    response_model=List[ForecastPointOut],
    summary="Short-horizon forecast for a coordinate.",
)
async def get_forecast(
    lat: float = Query(..., ge=-90.0, le=90.0),
    lon: float = Query(..., ge=-180.0, le=180.0),
    dashboard: DashboardService = Depends(get_dashboard),
) -> List[ForecastPointOut]:
    points = await dashboard.fetch_forecast(lat, lon)
    return [ForecastPointOut.from_point(point) for point in points]


@router.post(
    "/advisory",
    response_model=AdvisoryOut,
    summary="Answer a free-text air-quality question.",
)
async def post_advisory(
    request: AdvisoryRequest,
    dashboard: DashboardService = Depends(get_dashboard),
) -> AdvisoryOut:
    reading = request.reading.to_reading() if request.reading else None
    try:
        result = await dashboard.send_query(request.query, reading)
    except KeyError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=exc.args[0] if exc.args else str(exc),
        ) from exc
    return AdvisoryOut.from_result(result)


@router.get(
    "/sources",
    response_model=List[DataSourceOut],
    summary="Provenance metadata for the data providers.",
)
async def list_sources(
    dashboard: DashboardService = Depends(get_dashboard),
) -> List[DataSourceOut]:
    return [DataSourceOut.from_descriptor(source) for source in dashboard.get_data_sources()]


@router.get(
    "/levels/{aqi}",
    response_model=AqiLevelOut,
    summary="Display band for an AQI value.",
)
async def get_level(aqi: int = Path(..., ge=0)) -> AqiLevelOut:
    return AqiLevelOut.from_level(aqi, aqi_level(aqi))


@router.get(
    "/health",
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.get(
    "/",
    summary="Root endpoint mirrors health information.",
    status_code=status.HTTP_200_OK,
)
async def root() -> dict[str, str]:
    return {"status": "ok", "detail": "See /health for service status."}
