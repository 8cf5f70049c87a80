"""Base Django settings for the weather report service."""
from __future__ import annotations

from pathlib import Path
import math
import os

from django.core.exceptions import ImproperlyConfigured

BASE_DIR = Path(__file__).resolve().parent.parent


def env(name: str, default: str | None = None) -> str:
    """Fetch environment variables while allowing explicit defaults."""

    value = os.environ.get(name, default)
    if value is None:
        raise ImproperlyConfigured(f"Environment variable {name} is required")
    return value


def env_number(name: str, default: str, cast=float):
    raw = env(name, default)
    try:
        value = cast(raw)
    except ValueError as exc:
        raise ImproperlyConfigured(f"Environment variable {name} must be a number, got {raw!r}") from exc
    if not math.isfinite(value):
        raise ImproperlyConfigured(f"Environment variable {name} must be finite, got {raw!r}")
    return value


SECRET_KEY = env("DJANGO_SECRET_KEY")
DEBUG = os.environ.get("DJANGO_DEBUG", "0") == "1"
ALLOWED_HOSTS = os.environ.get("DJANGO_ALLOWED_HOSTS", "*").split(",")

INSTALLED_APPS = [
    "django.contrib.contenttypes",
    "django.contrib.auth",
    "rest_framework",
    "backend.api",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.middleware.common.CommonMiddleware",
]

ROOT_URLCONF = "backend.urls"

WSGI_APPLICATION = "backend.wsgi.application"

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# Readings live in process memory only; a restart starts with an empty cache.
WEATHER_CACHE_ALIAS = os.environ.get("WEATHER_CACHE_ALIAS", "default")
CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
        "LOCATION": "weather-local",
        "OPTIONS": {
            "MAX_ENTRIES": env_number("WEATHER_CACHE_MAX_ENTRIES", "1000", int),
        },
    }
}

WEATHER_DEFAULT_CITY = os.environ.get("WEATHER_DEFAULT_CITY", "melbourne")

WEATHER_REQUEST_TIMEOUT = env_number("WEATHER_REQUEST_TIMEOUT", "5.0")
WEATHER_REQUEST_RETRIES = env_number("WEATHER_REQUEST_RETRIES", "0", int)

WEATHER_PROVIDERS = {
    "primary": {
        "base_url": env("WEATHERSTACK_BASE_URL", "http://api.weatherstack.com/current"),
        "access_key": env("WEATHERSTACK_ACCESS_KEY", ""),
    },
    "secondary": {
        "base_url": env("OPENWEATHERMAP_BASE_URL", "https://api.openweathermap.org/data/2.5/weather"),
        "app_id": env("OPENWEATHERMAP_APP_ID", ""),
        "country_code": env("OPENWEATHERMAP_COUNTRY", "AU"),
    },
}


def _breaker_settings(prefix: str) -> dict:
    return {
        "failure_threshold": env_number(f"{prefix}_BREAKER_FAILURE_THRESHOLD", "5"),
        "sliding_window_size": env_number(f"{prefix}_BREAKER_WINDOW_SIZE", "10", int),
        "open_cooldown": env_number(f"{prefix}_BREAKER_COOLDOWN", "30.0"),
    }


CIRCUIT_BREAKERS = {
    "primary": _breaker_settings("PRIMARY"),
    "secondary": _breaker_settings("SECONDARY"),
}

REST_FRAMEWORK = {
    "DEFAULT_RENDERER_CLASSES": [
        "rest_framework.renderers.JSONRenderer",
    ],
    "DEFAULT_PARSER_CLASSES": [
        "rest_framework.parsers.JSONParser",
    ],
    "DEFAULT_AUTHENTICATION_CLASSES": [],
    "UNAUTHENTICATED_USER": None,
}

LOG_LEVEL = os.environ.get("DJANGO_LOG_LEVEL", "INFO").upper()

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "standard": {
            "format": "%(asctime)s %(levelname)s %(name)s: %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "standard",
        },
    },
    "root": {
        "handlers": ["console"],
        "level": LOG_LEVEL,
    },
    "loggers": {
        "urllib3": {"level": "WARNING"},
    },
}

LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True
