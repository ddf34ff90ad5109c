"""Pydantic schemas for the HTTP API layer."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, Field

from models.readings import (
    AdvisoryResult,
    CanonicalReading,
    DataSourceDescriptor,
    ForecastPoint,
    Tone,
)
from services.aqi import AqiLevel


class ReadingOut(BaseModel):
    """Canonical pollutant snapshot for one monitoring location."""

    location_label: str
    pm25: float
    no2: float
    o3: float
    aqi: int
    timestamp: datetime
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    @classmethod
    def from_reading(cls, reading: CanonicalReading) -> "ReadingOut":
        return cls(
            location_label=reading.location_label,
            pm25=reading.pm25,
            no2=reading.no2,
            o3=reading.o3,
            aqi=reading.aqi,
            timestamp=reading.timestamp,
            latitude=reading.latitude,
            longitude=reading.longitude,
        )

    def to_reading(self) -> CanonicalReading:
        # aqi is recomputed from the pollutant values, never trusted from the payload
        return CanonicalReading(
            pm25=self.pm25,
            no2=self.no2,
            o3=self.o3,
            timestamp=self.timestamp,
            location_label=self.location_label,
            latitude=self.latitude,
            longitude=self.longitude,
        )


class ForecastPointOut(ReadingOut):
    confidence: float = Field(..., ge=0.0, le=1.0)

    @classmethod
    def from_point(cls, point: ForecastPoint) -> "ForecastPointOut":
        return cls(
            **ReadingOut.from_reading(point).model_dump(),
            confidence=point.confidence,
        )


class ReadingIn(BaseModel):
    """Reading supplied by a client alongside an advisory query."""

    location_label: str = Field(..., min_length=1)
    pm25: float = Field(..., ge=0.0)
    no2: float = Field(0.0, ge=0.0)
    o3: float = Field(0.0, ge=0.0)
    timestamp: Optional[datetime] = None
    latitude: Optional[float] = Field(default=None, ge=-90.0, le=90.0)
    longitude: Optional[float] = Field(default=None, ge=-180.0, le=180.0)

    def to_reading(self) -> CanonicalReading:
        return CanonicalReading(
            pm25=self.pm25,
            no2=self.no2,
            o3=self.o3,
            timestamp=self.timestamp or datetime.now(timezone.utc),
            location_label=self.location_label,
            latitude=self.latitude,
            longitude=self.longitude,
        )


class AdvisoryRequest(BaseModel):
    query: str = Field(..., min_length=1, description="Free-text question from the user.")
    reading: Optional[ReadingIn] = Field(
        default=None,
        description="Reading to advise on; defaults to the first location of the latest snapshot.",
    )


class HighlightArea(BaseModel):
    lat: float
    lon: float


class AdvisoryOut(BaseModel):
    reply_text: str
    tone: Tone
    confidence: float = Field(..., ge=0.0, le=1.0)
    sources: List[str] = Field(default_factory=list)
    highlight_area: Optional[HighlightArea] = None

    @classmethod
    def from_result(cls, result: AdvisoryResult) -> "AdvisoryOut":
        area = result.highlight_area
        return cls(
            reply_text=result.reply_text,
            tone=result.tone,
            confidence=result.confidence,
            sources=list(result.sources),
            highlight_area=HighlightArea(lat=area.lat, lon=area.lon) if area else None,
        )


class DataSourceOut(BaseModel):
    name: str
    confidence: float
    description: str

    @classmethod
    def from_descriptor(cls, descriptor: DataSourceDescriptor) -> "DataSourceOut":
        return cls(
            name=descriptor.name,
            confidence=descriptor.confidence,
            description=descriptor.description,
        )


class AqiLevelOut(BaseModel):
    aqi: int
    level: str
    color: str
    advice: str

    @classmethod
    def from_level(cls, aqi: int, level: AqiLevel) -> "AqiLevelOut":
        return cls(aqi=aqi, level=level.level, color=level.color, advice=level.advice)
