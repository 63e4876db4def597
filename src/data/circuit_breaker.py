"""
Circuit breaker guarding calls to an external price provider.

States:
    closed  -> calls pass through; failures are counted.
    open    -> calls fail fast until the cooldown elapses.
    half    -> one trial call is let through; its outcome closes or reopens.

The breaker is advisory and never raises. The caller checks can_pass()
before the guarded call and reports the outcome with on_success() or
on_failure(). Create one breaker per upstream endpoint and pass it to the
client that owns it; there is no module-level instance.
"""

from __future__ import annotations

import logging
import threading
import time
from enum import Enum
from typing import Callable

logger = logging.getLogger("ladder.breaker")


class BreakerState(str, Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF = "half"


class CircuitBreaker:
    """Failure-counting breaker with a cooldown before a single trial call.

    Parameters
    ----------
    failure_threshold:
        Consecutive-ish failures (reset only by a success) before opening.
    cooldown_ms:
        Time to stay open before allowing a trial call.
    clock:
        Monotonic time source in seconds. Injectable for tests.
    """

    def __init__(
        self,
        failure_threshold: int = 5,
        cooldown_ms: float = 10_000,
        *,
        clock: Callable[[], float] = time.monotonic,
        name: str = "price",
    ) -> None:
        self._failure_threshold = max(1, int(failure_threshold))
        self._cooldown_s = max(0.0, float(cooldown_ms)) / 1000.0
        self._clock = clock
        self._name = name
        self._lock = threading.Lock()
        self._state = BreakerState.CLOSED
        self._failures = 0
        self._next_try_at = 0.0

    @property
    def name(self) -> str:
        return self._name

    @property
    def state(self) -> BreakerState:
        return self._state

    @property
    def failure_count(self) -> int:
        return self._failures

    @property
    def next_try_at(self) -> float:
        return self._next_try_at

    def can_pass(self) -> bool:
        """True if the guarded call may proceed. Moves open -> half once the cooldown is over."""
        with self._lock:
            if self._state is BreakerState.OPEN:
                if self._clock() >= self._next_try_at:
                    self._state = BreakerState.HALF
                    logger.info("Breaker %s half-open: allowing one trial call", self._name)
                    return True
                return False
            return True

    def on_success(self) -> None:
        with self._lock:
            if self._state is not BreakerState.CLOSED:
                logger.info("Breaker %s closed after successful call", self._name)
            self._state = BreakerState.CLOSED
            self._failures = 0

    def on_failure(self) -> None:
        with self._lock:
            self._failures += 1
            if self._failures >= self._failure_threshold:
                self._state = BreakerState.OPEN
                self._next_try_at = self._clock() + self._cooldown_s
                logger.warning(
                    "Breaker %s open after %d failures; next trial in %.1fs",
                    self._name,
                    self._failures,
                    self._cooldown_s,
                )
