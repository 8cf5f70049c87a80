"""Management command to fetch weather using the same stack as the API."""
from __future__ import annotations

import json
from typing import Any

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError

from backend.api import views
from backend.core.services.weather_service import AllProvidersUnavailableError


class Command(BaseCommand):
    help = "Fetch current weather for a city through the provider fallback chain"

    def add_arguments(self, parser) -> None:  # noqa: D401
        parser.add_argument("--city", type=str, help="City name (defaults to WEATHER_DEFAULT_CITY)")

    def handle(self, *args: Any, **options: Any) -> None:  # noqa: D401
        city = options.get("city") or settings.WEATHER_DEFAULT_CITY
        try:
            reading = views.get_weather_service().get_weather(city)
        except AllProvidersUnavailableError as exc:
            raise CommandError(f"All weather providers failed for {city}") from exc

        payload = views._serialize_reading(city, reading)
        self.stdout.write(json.dumps(payload))
