"""Static provenance metadata for the data providers."""

from __future__ import annotations

from typing import Tuple

from models.readings import DataSourceDescriptor

DATA_SOURCES: Tuple[DataSourceDescriptor, ...] = (
    DataSourceDescriptor(
        name="TEMPO NRT",
        confidence=0.92,
        description="NASA satellite tropospheric observations",
    ),
    DataSourceDescriptor(
        name="OpenAQ",
        confidence=0.88,
        description="Ground-level sensor network",
    ),
    DataSourceDescriptor(
        name="MERRA-2",
        confidence=0.85,
        description="Atmospheric reanalysis model",
    ),
)


def get_data_sources() -> Tuple[DataSourceDescriptor, ...]:
    return DATA_SOURCES
