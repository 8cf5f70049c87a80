"""OpenWeatherMap provider, wired as the secondary source."""
from __future__ import annotations

from typing import Any, Optional

from backend.core.abstractions import WeatherReading
from backend.core.providers.base import HttpWeatherProvider, ProviderDataError


def _ms_to_kmh(value: float) -> float:
    return round(value * 3.6, 2)


class OpenWeatherMapProvider(HttpWeatherProvider):
    """Integration with the OpenWeatherMap current weather endpoint."""

    name = "openweathermap"
    base_url = "https://api.openweathermap.org/data/2.5/weather"

    def __init__(
        self,
        app_id: str,
        base_url: Optional[str] = None,
        country_code: Optional[str] = "AU",
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self.app_id = app_id
        self.base_url = base_url or self.base_url
        self.country_code = country_code

    def fetch(self, city: str) -> WeatherReading:
        self._log.debug("Fetching weather from OpenWeatherMap for %s", city)
        query = f"{city},{self.country_code}" if self.country_code else city
        params = {"q": query, "appid": self.app_id, "units": "metric"}
        data = self._json(self._request("GET", self.base_url, params=params))

        # "cod" comes back as an int on success and as a string on errors
        code = data.get("cod")
        if code is not None and str(code) != "200":
            self._log.error("Error from OpenWeatherMap API: %s", data.get("message"))
            raise ProviderDataError(
                f"OpenWeatherMap API error: {data.get('message')}", provider=self.name
            )

        main = self._section(data, "main")
        wind = self._section(data, "wind")
        reading = WeatherReading(
            temperature_degrees=self._number(main, "temp"),
            wind_speed_kmh=_ms_to_kmh(self._number(wind, "speed")),
        )
        self._log.debug(
            "Fetched weather for %s: temp=%s, wind=%s",
            city,
            reading.temperature_degrees,
            reading.wind_speed_kmh,
        )
        return reading


__all__ = ["OpenWeatherMapProvider"]
