"""Last-known-good readings, kept in a Django cache backend."""
from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Optional
from urllib.parse import quote

from django.core.cache.backends.base import BaseCache

from backend.core.abstractions import WeatherReading


logger = logging.getLogger(__name__)


class ReadingCache:
    """Map a city to the most recent reading a provider returned for it.

    Entries are stored without a timeout: a reading stays until it is
    overwritten by a newer provider success or evicted by the backend.
    """

    key_template = "weather:{city}"

    def __init__(self, backend: BaseCache) -> None:
        self._backend = backend

    def get(self, city: str) -> Optional[WeatherReading]:
        payload = self._backend.get(self._key(city))
        if payload is None:
            return None
        try:
            return self._deserialize(payload)
        except (KeyError, TypeError, ValueError):
            logger.warning("Ignoring malformed cache entry for %s: %r", city, payload)
            return None

    def put(self, city: str, reading: WeatherReading) -> None:
        self._backend.set(self._key(city), self._serialize(reading), timeout=None)

    def _key(self, city: str) -> str:
        # percent-encoding keeps the key case-sensitive and free of spaces
        return self.key_template.format(city=quote(city, safe=""))

    def _serialize(self, reading: WeatherReading) -> dict:
        return asdict(reading)

    def _deserialize(self, payload: dict) -> WeatherReading:
        return WeatherReading(
            temperature_degrees=float(payload["temperature_degrees"]),
            wind_speed_kmh=float(payload["wind_speed_kmh"]),
        )


__all__ = ["ReadingCache"]
