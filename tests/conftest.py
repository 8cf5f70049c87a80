from __future__ import annotations

from typing import Callable, List, Optional

import pytest
from django.core.cache.backends.locmem import LocMemCache
from requests_mock import Mocker

from backend.core.abstractions import WeatherReading
from backend.core.cache import ReadingCache
from backend.core.circuit_breaker import BreakerConfig, CircuitBreaker
from backend.core.services.weather_service import WeatherOrchestrator


class TimeController:
    def __init__(self) -> None:
        self.now = 0.0

    def advance(self, seconds: float) -> None:
        self.now += seconds

    def __call__(self) -> float:
        return self.now


class FakeProvider:
    """Provider double replaying readings or exceptions in order; the last one repeats."""

    def __init__(self, name: str, *outcomes: object) -> None:
        self.name = name
        self._outcomes: List[object] = list(outcomes)
        self.calls: List[str] = []

    def fetch(self, city: str) -> WeatherReading:
        self.calls.append(city)
        outcome = self._outcomes.pop(0) if len(self._outcomes) > 1 else self._outcomes[0]
        if isinstance(outcome, BaseException):
            raise outcome
        if callable(outcome):
            return outcome(city)
        return outcome  # type: ignore[return-value]


@pytest.fixture
def requests_mock():
    with Mocker() as mock:
        yield mock


@pytest.fixture
def make_provider() -> Callable[..., FakeProvider]:
    return FakeProvider


@pytest.fixture
def clock() -> TimeController:
    return TimeController()


@pytest.fixture
def reading_cache() -> ReadingCache:
    backend = LocMemCache("weather-tests", {})
    backend.clear()
    return ReadingCache(backend)


@pytest.fixture
def make_orchestrator(clock: TimeController, reading_cache: ReadingCache) -> Callable[..., WeatherOrchestrator]:
    def factory(
        primary: FakeProvider,
        secondary: FakeProvider,
        config: Optional[BreakerConfig] = None,
    ) -> WeatherOrchestrator:
        config = config or BreakerConfig(failure_threshold=3, sliding_window_size=5, open_cooldown=30.0)
        return WeatherOrchestrator(
            primary=primary,
            secondary=secondary,
            primary_breaker=CircuitBreaker("primary", config, time_func=clock),
            secondary_breaker=CircuitBreaker("secondary", config, time_func=clock),
            cache=reading_cache,
        )

    return factory
