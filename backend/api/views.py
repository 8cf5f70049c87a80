"""REST API views for weather information."""
from __future__ import annotations

import logging
from functools import lru_cache
from typing import Dict

from django.conf import settings
from django.core.cache import caches
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from backend.core.abstractions import WeatherReading
from backend.core.cache import ReadingCache
from backend.core.circuit_breaker import build_breakers
from backend.core.providers.base import RequestConfig
from backend.core.providers.openweathermap import OpenWeatherMapProvider
from backend.core.providers.weatherstack import WeatherStackProvider
from backend.core.services.weather_service import AllProvidersUnavailableError, WeatherOrchestrator


logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_weather_service() -> WeatherOrchestrator:
    """Build the process-wide orchestrator, breakers and cache once."""
    request_config = RequestConfig(
        timeout=settings.WEATHER_REQUEST_TIMEOUT,
        retries=settings.WEATHER_REQUEST_RETRIES,
    )
    primary_conf = settings.WEATHER_PROVIDERS["primary"]
    secondary_conf = settings.WEATHER_PROVIDERS["secondary"]
    breakers = build_breakers(settings.CIRCUIT_BREAKERS)
    return WeatherOrchestrator(
        primary=WeatherStackProvider(
            access_key=primary_conf["access_key"],
            base_url=primary_conf["base_url"],
            request_config=request_config,
            name="primary",
        ),
        secondary=OpenWeatherMapProvider(
            app_id=secondary_conf["app_id"],
            base_url=secondary_conf["base_url"],
            country_code=secondary_conf.get("country_code") or None,
            request_config=request_config,
            name="secondary",
        ),
        primary_breaker=breakers["primary"],
        secondary_breaker=breakers["secondary"],
        cache=ReadingCache(caches[settings.WEATHER_CACHE_ALIAS]),
    )


def _serialize_reading(city: str, reading: WeatherReading) -> Dict[str, object]:
    return {
        "city": city,
        "temperature_degrees": reading.temperature_degrees,
        "wind_speed": reading.wind_speed_kmh,
    }


def _resolve_city(raw: str | None) -> str:
    if raw is None or not raw.strip():
        return settings.WEATHER_DEFAULT_CITY
    return raw


class WeatherView(APIView):
    """Current weather for a city, served through the fallback chain."""

    permission_classes = [AllowAny]

    def get(self, request, *args, **kwargs):  # noqa: D401
        """Return the weather reading for ``?city=`` (or the default city)."""
        city = _resolve_city(request.query_params.get("city"))
        try:
            reading = get_weather_service().get_weather(city)
        except AllProvidersUnavailableError as exc:
            return Response(
                {"detail": str(exc), "city": city},
                status=status.HTTP_503_SERVICE_UNAVAILABLE,
            )
        except Exception:  # noqa: BLE001 - anything else is a defect, not an outage
            logger.exception("Unexpected error while serving weather for %s", city)
            return Response(
                {"detail": "Internal server error"},
                status=status.HTTP_500_INTERNAL_SERVER_ERROR,
            )
        return Response(_serialize_reading(city, reading), status=status.HTTP_200_OK)


class HealthView(APIView):
    """Breaker states and fallback counters for operators."""

    permission_classes = [AllowAny]

    def get(self, request, *args, **kwargs):
        return Response(get_weather_service().status(), status=status.HTTP_200_OK)
