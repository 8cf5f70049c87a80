"""Weather orchestrator: primary -> secondary -> last known reading."""
from __future__ import annotations

import logging
from functools import partial
from typing import Dict, List, Optional, Tuple

from backend.core.abstractions import ReadingStore, WeatherProvider, WeatherReading
from backend.core.circuit_breaker import CircuitBreaker, CircuitOpenError
from backend.core.health import HealthRegistry
from backend.core.providers.base import ProviderDataError


logger = logging.getLogger(__name__)


class AllProvidersUnavailableError(RuntimeError):
    """Raised when both providers failed and nothing is cached for the city."""

    def __init__(self, city: str, failures: Optional[List[Exception]] = None) -> None:
        super().__init__("All weather providers are down")
        self.city = city
        self.failures: List[Exception] = list(failures or [])


class WeatherOrchestrator:
    """Combine two breaker-guarded providers with a cache fallback.

    The chain is strictly sequential: the primary provider, then the
    secondary, then the cache. The cache is consulted only once both
    providers are exhausted, so a reachable provider always wins over a
    stored reading. Stored readings are returned regardless of their age.
    """

    def __init__(
        self,
        *,
        primary: WeatherProvider,
        secondary: WeatherProvider,
        primary_breaker: CircuitBreaker,
        secondary_breaker: CircuitBreaker,
        cache: ReadingStore,
        health: Optional[HealthRegistry] = None,
    ) -> None:
        self._chain: Tuple[Tuple[WeatherProvider, CircuitBreaker], ...] = (
            (primary, primary_breaker),
            (secondary, secondary_breaker),
        )
        self._cache = cache
        self._health = health or HealthRegistry()

    def get_weather(self, city: str) -> WeatherReading:
        failures: List[Exception] = []
        for provider, breaker in self._chain:
            try:
                reading = breaker.execute(partial(self._fetch, provider, city))
            except CircuitOpenError as exc:
                logger.info("Skipping %s for %s: %s", breaker.name, city, exc)
                failures.append(exc)
                continue
            except Exception as exc:  # noqa: BLE001 - every provider failure moves on to the next layer
                logger.warning("Weather provider %s failed for %s: %s", breaker.name, city, exc)
                self._health.record_provider_error(breaker.name)
                failures.append(exc)
                continue

            self._cache.put(city, reading)
            return reading

        cached = self._cache.get(city)
        self._health.record_cache_fallback(hit=cached is not None)
        if cached is not None:
            logger.warning("All providers failed for %s, serving last known reading", city)
            return cached

        logger.error("All weather providers are down and nothing is cached for %s", city)
        raise AllProvidersUnavailableError(city, failures) from (failures[-1] if failures else None)

    def status(self) -> Dict[str, object]:
        payload: Dict[str, object] = {
            "breakers": {breaker.name: breaker.snapshot() for _, breaker in self._chain}
        }
        payload.update(self._health.snapshot())
        return payload

    @staticmethod
    def _fetch(provider: WeatherProvider, city: str) -> WeatherReading:
        reading = provider.fetch(city)
        if not isinstance(reading, WeatherReading):
            raise ProviderDataError(
                f"unexpected result type {type(reading).__name__}",
                provider=getattr(provider, "name", None),
            )
        return reading


__all__ = ["AllProvidersUnavailableError", "WeatherOrchestrator"]
