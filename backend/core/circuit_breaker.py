"""Per-resource circuit breaker.

State machine::

    CLOSED --(threshold crossed in sliding window)--> OPEN
    OPEN --(cool-down elapsed, next call)--> HALF_OPEN (one trial call)
    HALF_OPEN --(trial succeeds)--> CLOSED
    HALF_OPEN --(trial fails)--> OPEN

A breaker is shared by every request thread that talks to its resource.
Admission, outcome recording and transitions each happen under the
instance lock; the wrapped operation runs outside of it.
"""
from __future__ import annotations

import logging
import math
import time
from collections import deque
from dataclasses import dataclass
from enum import Enum
from threading import Lock
from typing import Callable, Deque, Dict, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CircuitState(Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitOpenError(RuntimeError):
    """The breaker rejected the call; the resource was not contacted."""

    def __init__(self, name: str, retry_after: float) -> None:
        super().__init__(f"Circuit breaker '{name}' is open, retry in {retry_after:.1f}s")
        self.name = name
        self.retry_after = retry_after


@dataclass(frozen=True)
class BreakerConfig:
    """Thresholds for a breaker.

    ``failure_threshold`` of 1 or more is a failure count within the window;
    a value between 0 and 1 is a failure rate, evaluated once the window
    holds ``minimum_calls`` outcomes (defaults to the window size).
    ``open_cooldown`` is in seconds.
    """

    failure_threshold: float = 5
    sliding_window_size: int = 10
    open_cooldown: float = 30.0
    minimum_calls: Optional[int] = None

    def __post_init__(self) -> None:
        if not all(math.isfinite(value) for value in (self.failure_threshold, self.open_cooldown)):
            raise ValueError("failure_threshold and open_cooldown must be finite")
        if self.failure_threshold <= 0:
            raise ValueError("failure_threshold must be positive")
        if self.sliding_window_size < 1:
            raise ValueError("sliding_window_size must be at least 1")
        if self.is_rate:
            if not 1 <= self.required_calls <= self.sliding_window_size:
                raise ValueError("minimum_calls must be between 1 and sliding_window_size")
        elif self.failure_threshold > self.sliding_window_size:
            raise ValueError("failure_threshold cannot exceed sliding_window_size")
        if self.open_cooldown < 0:
            raise ValueError("open_cooldown must not be negative")

    @property
    def is_rate(self) -> bool:
        return self.failure_threshold < 1

    @property
    def required_calls(self) -> int:
        if self.minimum_calls is None:
            return self.sliding_window_size
        return self.minimum_calls


class CircuitBreaker:
    """Guard calls to a single named resource."""

    def __init__(
        self,
        name: str,
        config: Optional[BreakerConfig] = None,
        time_func: Callable[[], float] = time.monotonic,
    ) -> None:
        self.name = name
        self.config = config or BreakerConfig()
        self._time_func = time_func
        self._lock = Lock()
        self._state = CircuitState.CLOSED
        # True = failure; only closed-state outcomes are kept here
        self._window: Deque[bool] = deque(maxlen=self.config.sliding_window_size)
        self._total_successes = 0
        self._total_failures = 0
        self._last_transition = time_func()
        self._generation = 0
        self._trial_in_flight = False

    @property
    def state(self) -> CircuitState:
        with self._lock:
            return self._state

    def execute(self, operation: Callable[[], T]) -> T:
        """Run ``operation`` if the breaker permits it.

        Raises ``CircuitOpenError`` without calling ``operation`` when the
        breaker is open; otherwise returns its result or re-raises its error
        after recording the outcome.
        """
        generation = self._acquire_permission()
        try:
            result = operation()
        except BaseException:
            # interrupts and timeouts still have to release a half-open trial
            self._record(generation, failed=True)
            raise
        self._record(generation, failed=False)
        return result

    def snapshot(self) -> Dict[str, object]:
        with self._lock:
            return {
                "name": self.name,
                "state": self._state.value,
                "window_calls": len(self._window),
                "window_failures": sum(self._window),
                "total_successes": self._total_successes,
                "total_failures": self._total_failures,
                "seconds_in_state": round(self._time_func() - self._last_transition, 3),
            }

    def reset(self) -> None:
        """Force the breaker back to CLOSED and clear the sliding window."""
        with self._lock:
            self._transition(CircuitState.CLOSED)
        logger.info("Circuit breaker '%s' manually reset", self.name)

    # Internals ----------------------------------------------------------
    def _acquire_permission(self) -> int:
        with self._lock:
            if self._state is CircuitState.OPEN:
                remaining = self._remaining_cooldown()
                if remaining > 0:
                    raise CircuitOpenError(self.name, remaining)
                self._transition(CircuitState.HALF_OPEN)
                logger.info("Circuit breaker '%s' half-open, admitting trial call", self.name)
                self._trial_in_flight = True
            elif self._state is CircuitState.HALF_OPEN:
                if self._trial_in_flight:
                    raise CircuitOpenError(self.name, 0.0)
                self._trial_in_flight = True
            return self._generation

    def _record(self, generation: int, *, failed: bool) -> None:
        with self._lock:
            if failed:
                self._total_failures += 1
            else:
                self._total_successes += 1
            if generation != self._generation:
                logger.debug("Circuit breaker '%s' ignoring outcome from an earlier state", self.name)
                return
            if self._state is CircuitState.HALF_OPEN:
                self._trial_in_flight = False
                if failed:
                    self._transition(CircuitState.OPEN)
                    logger.warning("Circuit breaker '%s' trial call failed, reopened", self.name)
                else:
                    self._transition(CircuitState.CLOSED)
                    logger.info("Circuit breaker '%s' closed after successful trial", self.name)
                return
            self._window.append(failed)
            if failed and self._threshold_crossed():
                failures = sum(self._window)
                calls = len(self._window)
                self._transition(CircuitState.OPEN)
                logger.warning(
                    "Circuit breaker '%s' opened after %s failures in %s calls",
                    self.name,
                    failures,
                    calls,
                )

    def _threshold_crossed(self) -> bool:
        failures = sum(self._window)
        if not self.config.is_rate:
            return failures >= self.config.failure_threshold
        calls = len(self._window)
        if calls < self.config.required_calls:
            return False
        return failures / calls >= self.config.failure_threshold

    def _remaining_cooldown(self) -> float:
        elapsed = self._time_func() - self._last_transition
        return max(0.0, self.config.open_cooldown - elapsed)

    def _transition(self, state: CircuitState) -> None:
        self._state = state
        self._last_transition = self._time_func()
        self._generation += 1
        self._trial_in_flight = False
        self._window.clear()


def build_breakers(configs: Dict[str, Dict[str, float]], **kwargs) -> Dict[str, CircuitBreaker]:
    """Create one independent breaker per configured resource name."""
    return {name: CircuitBreaker(name, BreakerConfig(**values), **kwargs) for name, values in configs.items()}


__all__ = ["BreakerConfig", "CircuitBreaker", "CircuitOpenError", "CircuitState", "build_breakers"]
