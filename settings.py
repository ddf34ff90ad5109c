from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional


_OPENAQ_URL_ENV = "OPENAQ_BASE_URL"
_OPENAQ_KEY_ENV = "OPENAQ_API_KEY"
_SATELLITE_URL_ENV = "SATELLITE_BASE_URL"
_SATELLITE_KEY_ENV = "SATELLITE_API_KEY"
_OPENWEATHER_URL_ENV = "OPENWEATHER_BASE_URL"
_OPENWEATHER_KEY_ENV = "OPENWEATHER_API_KEY"
_GEMINI_URL_ENV = "GEMINI_API_URL"
_GEMINI_KEY_ENV = "GEMINI_API_KEY"
_DEFAULT_LAT_ENV = "DEFAULT_LATITUDE"
_DEFAULT_LON_ENV = "DEFAULT_LONGITUDE"
_RADIUS_ENV = "SEARCH_RADIUS_KM"
_MAX_SITES_ENV = "MAX_SITES"
_HTTP_TIMEOUT_ENV = "PROVIDER_TIMEOUT_SECONDS"
_REFRESH_ENV = "REFRESH_INTERVAL_SECONDS"
_HORIZON_ENV = "FORECAST_HORIZON_STEPS"
_STEP_HOURS_ENV = "FORECAST_STEP_HOURS"
_CACHE_PATH_ENV = "READING_CACHE_PATH"
_LOG_LEVEL_ENV = "LOG_LEVEL"


@dataclass(frozen=True)
class Settings:
    openaq_base_url: str
    openaq_api_key: Optional[str]
    satellite_base_url: Optional[str]
    satellite_api_key: Optional[str]
    openweather_base_url: str
    openweather_api_key: Optional[str]
    gemini_api_url: str
    gemini_api_key: Optional[str]
    default_latitude: float
    default_longitude: float
    search_radius_km: float
    max_sites: int
    provider_timeout: float
    refresh_interval: float
    forecast_horizon_steps: int
    forecast_step_hours: float
    reading_cache_path: Optional[str]
    log_level: str


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_optional_env(name: str, default: Optional[str]) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or None


def _read_float_env(name: str, default: float, positive: bool = True) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = float(candidate)
    except ValueError:
        return default
    if positive and parsed <= 0:
        return default
    return parsed


def _read_int_env(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = int(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings(
        openaq_base_url=_read_str_env(_OPENAQ_URL_ENV, "https://api.openaq.org/v2"),
        openaq_api_key=_read_optional_env(_OPENAQ_KEY_ENV, None),
        satellite_base_url=_read_optional_env(_SATELLITE_URL_ENV, None),
        satellite_api_key=_read_optional_env(_SATELLITE_KEY_ENV, None),
        openweather_base_url=_read_str_env(
            _OPENWEATHER_URL_ENV, "https://api.openweathermap.org/data/2.5"
        ),
        openweather_api_key=_read_optional_env(_OPENWEATHER_KEY_ENV, None),
        gemini_api_url=_read_str_env(
            _GEMINI_URL_ENV,
            "https://generativelanguage.googleapis.com/v1beta/models/"
            "gemini-1.5-flash:generateContent",
        ),
        gemini_api_key=_read_optional_env(_GEMINI_KEY_ENV, None),
        default_latitude=_read_float_env(_DEFAULT_LAT_ENV, 9.9312, positive=False),
        default_longitude=_read_float_env(_DEFAULT_LON_ENV, 76.2673, positive=False),
        search_radius_km=_read_float_env(_RADIUS_ENV, 50.0),
        max_sites=_read_int_env(_MAX_SITES_ENV, 10),
        provider_timeout=_read_float_env(_HTTP_TIMEOUT_ENV, 10.0),
        refresh_interval=_read_float_env(_REFRESH_ENV, 30.0),
        forecast_horizon_steps=_read_int_env(_HORIZON_ENV, 6),
        forecast_step_hours=_read_float_env(_STEP_HOURS_ENV, 1.0),
        reading_cache_path=_read_optional_env(_CACHE_PATH_ENV, None),
        log_level=_read_log_level("INFO"),
    )
