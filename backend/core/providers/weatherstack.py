"""WeatherStack provider, wired as the primary source."""
from __future__ import annotations

from typing import Any, Optional

from backend.core.abstractions import WeatherReading
from backend.core.providers.base import HttpWeatherProvider, ProviderDataError


class WeatherStackProvider(HttpWeatherProvider):
    """Integration with the WeatherStack ``current`` endpoint.

    WeatherStack answers application errors with HTTP 200 and an ``error``
    object in the body, so the payload is inspected before the measurements.
    """

    name = "weatherstack"
    base_url = "http://api.weatherstack.com/current"

    def __init__(self, access_key: str, base_url: Optional[str] = None, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.access_key = access_key
        self.base_url = base_url or self.base_url

    def fetch(self, city: str) -> WeatherReading:
        self._log.info("Fetching weather from WeatherStack for %s", city)
        params = {"access_key": self.access_key, "query": city, "units": "m"}
        data = self._json(self._request("GET", self.base_url, params=params))

        error = data.get("error")
        if error or data.get("success") is False:
            info = error.get("info") if isinstance(error, dict) else error
            self._log.error("Error from WeatherStack API: %s", error)
            raise ProviderDataError(f"WeatherStack API error: {info}", provider=self.name)

        current = self._section(data, "current")
        reading = WeatherReading(
            temperature_degrees=self._number(current, "temperature"),
            wind_speed_kmh=self._number(current, "wind_speed"),
        )
        self._log.info(
            "Fetched weather for %s: temp=%s, wind=%s",
            city,
            reading.temperature_degrees,
            reading.wind_speed_kmh,
        )
        return reading


__all__ = ["WeatherStackProvider"]
