"""Shared HTTP plumbing and error taxonomy for weather providers."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional

import requests
from requests import Response
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry


class ProviderError(RuntimeError):
    """Base provider error."""

    def __init__(self, message: str, provider: Optional[str] = None) -> None:
        super().__init__(message)
        self.provider = provider


class ProviderTransportError(ProviderError):
    """Raised when the remote API cannot be reached (network, timeout)."""


class ProviderDataError(ProviderError):
    """Raised when the API answered but the answer is unusable."""


class QuotaExceeded(ProviderDataError):
    """Raised when a provider reports a quota/usage limit issue."""


@dataclass
class RequestConfig:
    timeout: float = 5.0
    retries: int = 0
    backoff_factor: float = 0.3
    status_forcelist: Iterable[int] = (429, 500, 502, 503, 504)


class HttpWeatherProvider:
    """Base class that adds retry/timeouts for HTTP providers."""

    name = "http"

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        request_config: Optional[RequestConfig] = None,
        name: Optional[str] = None,
    ) -> None:
        self.request_config = request_config or RequestConfig()
        self.session = session or self._build_session(self.request_config)
        if name:
            self.name = name
        self._log = logging.getLogger(self.__class__.__name__)

    def _build_session(self, config: RequestConfig) -> requests.Session:
        session = requests.Session()
        if config.retries > 0:
            retry = Retry(
                total=config.retries,
                backoff_factor=config.backoff_factor,
                status_forcelist=tuple(config.status_forcelist),
                allowed_methods=frozenset({"GET"}),
                raise_on_status=False,
            )
            adapter = HTTPAdapter(max_retries=retry)
            session.mount("http://", adapter)
            session.mount("https://", adapter)
        return session

    def _handle_response(self, response: Response) -> Response:
        if response.status_code == 429:
            self._log.warning("Quota exceeded: %s", response.text)
            raise QuotaExceeded("quota exceeded", provider=self.name)
        if response.status_code >= 400:
            self._log.error("Provider returned %s: %s", response.status_code, response.text)
            raise ProviderDataError(f"HTTP {response.status_code}", provider=self.name)
        return response

    def _request(self, method: str, url: str, **kwargs: Any) -> Response:
        try:
            response = self.session.request(
                method,
                url,
                timeout=self.request_config.timeout,
                **kwargs,
            )
        except requests.Timeout as exc:
            self._log.error("Request timed out", exc_info=exc)
            raise ProviderTransportError("timeout", provider=self.name) from exc
        except requests.RequestException as exc:
            self._log.error("Request failed", exc_info=exc)
            raise ProviderTransportError("request failed", provider=self.name) from exc
        return self._handle_response(response)

    def _json(self, response: Response) -> dict:
        try:
            data = response.json()
        except ValueError as exc:
            self._log.error("Failed to decode JSON", exc_info=exc)
            raise ProviderDataError("invalid json", provider=self.name) from exc
        if not isinstance(data, dict):
            raise ProviderDataError("unexpected payload type", provider=self.name)
        return data

    def _section(self, payload: Mapping[str, Any], key: str) -> Mapping[str, Any]:
        section = payload.get(key)
        if not isinstance(section, Mapping):
            self._log.error("Missing '%s' section in response: %s", key, payload)
            raise ProviderDataError(f"missing {key} data", provider=self.name)
        return section

    def _number(self, payload: Mapping[str, Any], key: str) -> float:
        value = payload.get(key)
        # bool is an int subclass but never a measurement
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            self._log.error("Missing or non-numeric '%s': %r", key, value)
            raise ProviderDataError(f"missing required field {key}", provider=self.name)
        return float(value)


__all__ = [
    "HttpWeatherProvider",
    "ProviderError",
    "ProviderTransportError",
    "ProviderDataError",
    "QuotaExceeded",
    "RequestConfig",
]
