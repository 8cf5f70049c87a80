"""API URL configuration."""
from __future__ import annotations

from django.urls import path

from backend.api.views import HealthView, WeatherView

urlpatterns = [
    path("weather", WeatherView.as_view(), name="weather"),
    path("health", HealthView.as_view(), name="health"),
]
