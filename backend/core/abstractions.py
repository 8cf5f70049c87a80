"""Core abstractions for the weather domain."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol


@dataclass(frozen=True, slots=True)
class WeatherReading:
    """Current conditions for a city.

    Wind speed is always normalised to kilometres per hour regardless of the
    unit the upstream API reports.
    """

    temperature_degrees: float
    wind_speed_kmh: float


class WeatherProvider(Protocol):
    """A remote data source capable of returning the current weather for a city."""

    name: str

    def fetch(self, city: str) -> WeatherReading:
        """Fetch the current reading or raise a ``ProviderError``."""
        ...


class ReadingStore(Protocol):
    """Key/value store used as the last line of defense by the orchestrator."""

    def get(self, city: str) -> Optional[WeatherReading]:
        ...

    def put(self, city: str, reading: WeatherReading) -> None:
        ...
