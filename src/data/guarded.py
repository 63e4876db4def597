"""
Guarded price fetcher: TTL cache + circuit breaker around any PriceFetcher.

Cache hits never touch the breaker. On a miss the breaker decides whether
the provider is called at all; an open breaker raises CircuitOpenError so
the caller can report the outage instead of hanging on a dead upstream.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable

from data.circuit_breaker import CircuitBreaker
from data.fetcher import CircuitOpenError, PriceFetcher, PriceFetchError, PriceQuote

logger = logging.getLogger("ladder.prices")


class GuardedPriceFetcher:
    """Wrap *fetcher* with a per-id TTL cache and the given *breaker*.

    The breaker is owned by the caller so one breaker can be shared by
    every client of the same upstream endpoint.
    """

    def __init__(
        self,
        fetcher: PriceFetcher,
        breaker: CircuitBreaker,
        *,
        ttl_seconds: float = 20.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._fetcher = fetcher
        self._breaker = breaker
        self._ttl = ttl_seconds
        self._clock = clock
        self._cache: dict[str, tuple[float, PriceQuote]] = {}
        self._lock = threading.Lock()

    @property
    def breaker(self) -> CircuitBreaker:
        return self._breaker

    def _cached(self, key: str) -> PriceQuote | None:
        with self._lock:
            hit = self._cache.get(key)
        if hit and self._clock() - hit[0] < self._ttl:
            return hit[1]
        return None

    def fetch_price(self, coin_id: str) -> PriceQuote:
        key = coin_id.strip().lower()
        hit = self._cached(key)
        if hit is not None:
            return hit

        if not self._breaker.can_pass():
            raise CircuitOpenError(f"Price provider unavailable (breaker {self._breaker.name} open)")

        try:
            quote = self._fetcher.fetch_price(key)
        except Exception as exc:
            self._breaker.on_failure()
            logger.warning("Price fetch failed for %s: %s", key, exc)
            if isinstance(exc, PriceFetchError):
                raise
            raise PriceFetchError(f"Price fetch failed for {key}: {exc}") from exc

        self._breaker.on_success()
        if quote is None:
            quote = PriceQuote(coin_id=key, price=None, source="none")
        with self._lock:
            self._cache[key] = (self._clock(), quote)
        return quote

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()
