"""In-memory health counters for the weather fallback chain.

Counters live for the lifetime of the process only; they are reported next to
the breaker snapshots by the health endpoint.
"""
from __future__ import annotations

from dataclasses import dataclass
from threading import Lock
from typing import Dict


@dataclass(frozen=True)
class CacheStats:
    """Outcomes of cache fallback reads."""

    hits: int = 0
    misses: int = 0

    def as_dict(self) -> Dict[str, int]:
        return {"hits": self.hits, "misses": self.misses}


class HealthRegistry:
    """Stores provider error counters and cache fallback stats."""

    def __init__(self) -> None:
        self._provider_errors: Dict[str, int] = {}
        self._cache_stats = CacheStats()
        self._lock = Lock()

    # -- Provider errors ----------------------------------------------------
    def record_provider_error(self, provider: str, increment: int = 1) -> None:
        if not provider:
            raise ValueError("provider must be provided")
        if increment <= 0:
            raise ValueError("increment must be positive")
        with self._lock:
            self._provider_errors[provider] = (
                self._provider_errors.get(provider, 0) + increment
            )

    # -- Cache fallback -----------------------------------------------------
    def record_cache_fallback(self, hit: bool) -> None:
        with self._lock:
            stats = self._cache_stats
            if hit:
                self._cache_stats = CacheStats(hits=stats.hits + 1, misses=stats.misses)
            else:
                self._cache_stats = CacheStats(hits=stats.hits, misses=stats.misses + 1)

    # -- Snapshot -----------------------------------------------------------
    def snapshot(self) -> Dict[str, object]:
        with self._lock:
            providers = dict(self._provider_errors)
            cache = self._cache_stats.as_dict()
        return {"provider_errors": providers, "cache_fallback": cache}
