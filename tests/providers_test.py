from __future__ import annotations

import pytest
import requests

from backend.core.abstractions import WeatherReading
from backend.core.providers.base import (
    ProviderDataError,
    ProviderTransportError,
    QuotaExceeded,
    RequestConfig,
)
from backend.core.providers.openweathermap import OpenWeatherMapProvider
from backend.core.providers.weatherstack import WeatherStackProvider


WEATHERSTACK_URL = "https://weatherstack.test/current"
OWM_URL = "https://owm.test/data/2.5/weather"


@pytest.fixture
def weatherstack() -> WeatherStackProvider:
    return WeatherStackProvider(access_key="ws-key", base_url=WEATHERSTACK_URL, name="primary")


@pytest.fixture
def openweathermap() -> OpenWeatherMapProvider:
    return OpenWeatherMapProvider(app_id="owm-key", base_url=OWM_URL, name="secondary")


def test_weatherstack_current_normalization(requests_mock, weatherstack):
    requests_mock.get(
        WEATHERSTACK_URL,
        json={
            "request": {"type": "City", "query": "Sydney, Australia"},
            "current": {"temperature": 25, "wind_speed": 10, "humidity": 60},
        },
    )

    reading = weatherstack.fetch("Sydney")

    assert reading == WeatherReading(temperature_degrees=25.0, wind_speed_kmh=10.0)
    query = requests_mock.last_request.qs
    assert query["access_key"] == ["ws-key"]
    assert query["query"] == ["sydney"]
    assert query["units"] == ["m"]


def test_weatherstack_error_payload_is_a_data_error(requests_mock, weatherstack):
    requests_mock.get(
        WEATHERSTACK_URL,
        json={
            "success": False,
            "error": {"code": 101, "type": "invalid_access_key", "info": "You have not supplied a valid API Access Key."},
        },
    )

    with pytest.raises(ProviderDataError, match="valid API Access Key") as excinfo:
        weatherstack.fetch("Sydney")
    assert excinfo.value.provider == "primary"


@pytest.mark.parametrize(
    "payload",
    [
        {},
        {"current": None},
        {"current": {"wind_speed": 10}},
        {"current": {"temperature": 25}},
        {"current": {"temperature": "25", "wind_speed": 10}},
        {"current": {"temperature": True, "wind_speed": 10}},
    ],
)
def test_weatherstack_malformed_payload(requests_mock, weatherstack, payload):
    requests_mock.get(WEATHERSTACK_URL, json=payload)

    with pytest.raises(ProviderDataError):
        weatherstack.fetch("Sydney")


def test_openweathermap_converts_wind_to_kmh(requests_mock, openweathermap):
    requests_mock.get(
        OWM_URL,
        json={"cod": 200, "main": {"temp": 20.0, "humidity": 40}, "wind": {"speed": 5.0, "deg": 180}},
    )

    reading = openweathermap.fetch("Sydney")

    assert reading.temperature_degrees == 20.0
    assert reading.wind_speed_kmh == pytest.approx(18.0)
    query = requests_mock.last_request.qs
    assert query["q"] == ["sydney,au"]
    assert query["appid"] == ["owm-key"]
    assert query["units"] == ["metric"]


def test_openweathermap_without_country_code(requests_mock):
    provider = OpenWeatherMapProvider(app_id="owm-key", base_url=OWM_URL, country_code=None)
    requests_mock.get(OWM_URL, json={"cod": 200, "main": {"temp": 1}, "wind": {"speed": 0}})

    provider.fetch("London")

    assert requests_mock.last_request.qs["q"] == ["london"]


def test_openweathermap_application_error(requests_mock, openweathermap):
    requests_mock.get(OWM_URL, json={"cod": "401", "message": "Invalid API key"})

    with pytest.raises(ProviderDataError, match="Invalid API key"):
        openweathermap.fetch("Sydney")


def test_openweathermap_missing_wind_section(requests_mock, openweathermap):
    requests_mock.get(OWM_URL, json={"cod": 200, "main": {"temp": 20.0}})

    with pytest.raises(ProviderDataError, match="missing wind data"):
        openweathermap.fetch("Sydney")


def test_quota_is_reported(requests_mock, weatherstack):
    requests_mock.get(WEATHERSTACK_URL, status_code=429, text="quota exceeded")

    with pytest.raises(QuotaExceeded):
        weatherstack.fetch("Sydney")


def test_http_error_status_is_a_data_error(requests_mock, openweathermap):
    requests_mock.get(OWM_URL, status_code=502, text="bad gateway")

    with pytest.raises(ProviderDataError, match="HTTP 502"):
        openweathermap.fetch("Sydney")


def test_invalid_json_is_a_data_error(requests_mock, weatherstack):
    requests_mock.get(WEATHERSTACK_URL, text="<html>oops</html>")

    with pytest.raises(ProviderDataError, match="invalid json"):
        weatherstack.fetch("Sydney")


@pytest.mark.parametrize("exc", [requests.exceptions.ConnectTimeout, requests.exceptions.ConnectionError])
def test_network_failures_are_transport_errors(requests_mock, weatherstack, exc):
    requests_mock.get(WEATHERSTACK_URL, exc=exc)

    with pytest.raises(ProviderTransportError) as excinfo:
        weatherstack.fetch("Sydney")
    assert excinfo.value.provider == "primary"


def test_request_uses_configured_timeout(requests_mock):
    provider = WeatherStackProvider(
        access_key="ws-key", base_url=WEATHERSTACK_URL, request_config=RequestConfig(timeout=1.5)
    )
    requests_mock.get(WEATHERSTACK_URL, json={"current": {"temperature": 1, "wind_speed": 2}})

    provider.fetch("Hobart")

    assert requests_mock.last_request.timeout == 1.5
    assert provider.name == "weatherstack"


def test_retries_mount_an_adapter_with_retry_policy():
    provider = OpenWeatherMapProvider(app_id="k", request_config=RequestConfig(retries=2))

    adapter = provider.session.get_adapter("https://api.openweathermap.org")

    assert adapter.max_retries.total == 2
    assert 503 in adapter.max_retries.status_forcelist
