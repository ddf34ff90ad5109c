from __future__ import annotations
import json
import math
from functools import lru_cache
from pathlib import Path
from threading import Lock
from typing import Dict, Iterable, Optional

from pydantic import ValidationError

from app.schemas import ReadingOut
from models.readings import CanonicalReading
from settings import get_settings


class ReadingCache:
    """Last known reading per location, optionally snapshotted to JSON."""

    def __init__(self, persistence_path: Optional[Path] = None) -> None:
        self._items: Dict[str, CanonicalReading] = {}
        self.persistence_path = persistence_path
        self._lock = Lock()
        if persistence_path:
            persistence_path.parent.mkdir(parents=True, exist_ok=True)
            self._load_from_disk()

    def put(self, reading: CanonicalReading) -> None:
        with self._lock:
            self._items[reading.location_label] = reading
            self._persist()

    def put_many(self, readings: Iterable[CanonicalReading]) -> None:
        with self._lock:
            for reading in readings:
                self._items[reading.location_label] = reading
            self._persist()

    def get(self, location_label: str) -> Optional[CanonicalReading]:
        with self._lock:
            return self._items.get(location_label)

    def nearest(self, lat: float, lon: float) -> Optional[CanonicalReading]:
        """Return the located reading closest to ``(lat, lon)``, if any."""
        with self._lock:
            candidates = [
                reading
                for reading in self._items.values()
                if reading.latitude is not None and reading.longitude is not None
            ]
        if not candidates:
            return None
        return min(
            candidates,
            key=lambda reading: distance_km(lat, lon, reading.latitude, reading.longitude),
        )

    def scan(self) -> list[CanonicalReading]:
        with self._lock:
            return list(self._items.values())

    def _persist(self) -> None:
        if not self.persistence_path:
            return
        payload = {
            label: ReadingOut.from_reading(reading).model_dump(mode="json")
            for label, reading in self._items.items()
        }
        self.persistence_path.write_text(json.dumps(payload, indent=2, sort_keys=True))

    def _load_from_disk(self) -> None:
        if not self.persistence_path or not self.persistence_path.exists():
            return

        try:
            raw = self.persistence_path.read_text() or "{}"
            data = json.loads(raw)
        except (OSError, json.JSONDecodeError):
            data = {}

        for label, payload in data.items():
            try:
                self._items[label] = ReadingOut.model_validate(payload).to_reading()
            except ValidationError:
                continue


def distance_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in kilometres."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = phi2 - phi1
    d_lambda = math.radians(lon2 - lon1)
    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return 6371.0 * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


@lru_cache
def build_default_cache(path: Optional[str] = None) -> ReadingCache:
    settings = get_settings()
    cache_path = settings.reading_cache_path if path is None else path
    persistence = Path(cache_path) if cache_path else None
    return ReadingCache(persistence_path=persistence)
