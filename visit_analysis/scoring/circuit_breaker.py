"""
Circuit breaker guarding the language-model path.

Two states: CLOSED (model calls permitted) and OPEN (calls short-circuited
to the fallback scorer). The breaker opens once ``max_failures``
consecutive failures have been recorded and closes again either on a
recorded success or lazily, the first time it is queried after
``reset_timeout`` seconds have passed since the last failure. There is no
background timer.

Usage:
    breaker = CircuitBreaker(max_failures=3, reset_timeout=60.0)
    if not breaker.is_open():
        ...
        breaker.record_failure()
"""

import logging
import threading
import time
from enum import Enum
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class CircuitState(str, Enum):
    CLOSED = "closed"
    OPEN = "open"


def is_breaker_open(
    failure_count: int,
    last_failure_at: Optional[float],
    now: float,
    max_failures: int,
    reset_timeout: float,
) -> bool:
    """Pure open/closed decision from the breaker's state and the current time."""
    if failure_count < max_failures or last_failure_at is None:
        return False
    return now - last_failure_at <= reset_timeout


class CircuitBreaker:
    """
    Process-local breaker shared by every invocation in the process.

    All reads and writes of the failure state happen under one lock so
    concurrent failure bursts never lose an increment. ``clock`` returns
    seconds and defaults to ``time.monotonic``; tests inject their own.
    """

    def __init__(
        self,
        max_failures: int = 3,
        reset_timeout: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_failures < 1:
            raise ValueError(f"max_failures must be >= 1, got {max_failures}")
        if reset_timeout <= 0:
            raise ValueError(f"reset_timeout must be > 0, got {reset_timeout}")
        self.max_failures = max_failures
        self.reset_timeout = reset_timeout
        self._clock = clock
        self._lock = threading.Lock()
        self._failure_count = 0
        self._last_failure_at: Optional[float] = None

    @property
    def failure_count(self) -> int:
        with self._lock:
            return self._failure_count

    @property
    def last_failure_at(self) -> Optional[float]:
        with self._lock:
            return self._last_failure_at

    @property
    def state(self) -> CircuitState:
        return CircuitState.OPEN if self.is_open() else CircuitState.CLOSED

    def is_open(self) -> bool:
        """
        Return True while calls should be short-circuited.

        Once the cool-down window has elapsed the state is reset to zero
        and False is returned.
        """
        with self._lock:
            now = self._clock()
            if is_breaker_open(
                self._failure_count, self._last_failure_at, now,
                self.max_failures, self.reset_timeout,
            ):
                return True
            if self._failure_count >= self.max_failures:
                logger.info(
                    "Circuit breaker cool-down elapsed after %d failures, closing",
                    self._failure_count,
                )
                self._reset()
            return False

    def record_failure(self) -> None:
        with self._lock:
            self._failure_count += 1
            self._last_failure_at = self._clock()
            if self._failure_count == self.max_failures:
                logger.warning(
                    "Circuit breaker opened after %d consecutive failures",
                    self._failure_count,
                )
            else:
                logger.debug("Circuit breaker failure count: %d", self._failure_count)

    def record_success(self) -> None:
        with self._lock:
            if self._failure_count:
                logger.debug(
                    "Circuit breaker reset by success (was %d failures)", self._failure_count
                )
            self._reset()

    def snapshot(self) -> dict:
        """Current breaker state for health reporting."""
        state = self.state
        with self._lock:
            return {
                "state": state.value,
                "failure_count": self._failure_count,
                "max_failures": self.max_failures,
                "reset_timeout_seconds": self.reset_timeout,
            }

    def _reset(self) -> None:
        self._failure_count = 0
        self._last_failure_at = None
