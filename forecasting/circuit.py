from __future__ import annotations

import logging
import threading
import time
from enum import Enum
from typing import Callable, Optional

from core.config import CircuitConfig

logger = logging.getLogger(__name__)


class CircuitState(str, Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitBreaker:
    """
    Circuit breaker around the forecast provider, with exponential cooldown backoff.

    closed    -> open       after ``failure_threshold`` consecutive failures
    open      -> half_open  once the cooldown has elapsed (on the next probe)
    half_open -> closed     after ``success_threshold`` successes
    half_open -> open       on any failure; the cooldown doubles up to the cap

    While half-open only one probe call is let through at a time; callers that
    give up on a probe without an outcome must call ``release_probe``.

    The clock is injectable so tests can step time instead of sleeping.
    """

    def __init__(
        self,
        config: Optional[CircuitConfig] = None,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.config: CircuitConfig = config or CircuitConfig()
        self._clock = clock
        self._lock = threading.Lock()
        self.state: CircuitState = CircuitState.CLOSED
        self.failures: int = 0
        self.successes: int = 0
        self.last_failure_at: Optional[float] = None
        self.current_cooldown: float = self.config.cooldown_seconds
        self._probe_in_flight = False

    def record_failure(self) -> None:
        with self._lock:
            self._probe_in_flight = False
            self.failures += 1
            self.successes = 0
            self.last_failure_at = self._clock()

            if self.state == CircuitState.CLOSED and self.failures >= self.config.failure_threshold:
                self._transition(CircuitState.OPEN)
            elif self.state == CircuitState.HALF_OPEN:
                self.current_cooldown = min(self.current_cooldown * 2, self.config.max_cooldown_seconds)
                self._transition(CircuitState.OPEN)

    def record_success(self) -> None:
        with self._lock:
            self._probe_in_flight = False
            self.successes += 1
            self.failures = 0

            if self.state == CircuitState.HALF_OPEN and self.successes >= self.config.success_threshold:
                self.current_cooldown = self.config.cooldown_seconds
                self._transition(CircuitState.CLOSED)

    def can_execute(self) -> bool:
        with self._lock:
            if self.state == CircuitState.CLOSED:
                return True

            if self.state == CircuitState.OPEN:
                if self._cooldown_elapsed():
                    self._transition(CircuitState.HALF_OPEN)
                    self.successes = 0
                    self._probe_in_flight = True
                    return True
                return False

            if self._probe_in_flight:
                return False
            self._probe_in_flight = True
            return True

    def release_probe(self) -> None:
        with self._lock:
            self._probe_in_flight = False

    def _cooldown_elapsed(self) -> bool:
        if self.last_failure_at is None:
            return True
        return (self._clock() - self.last_failure_at) >= self.current_cooldown

    def _transition(self, new_state: CircuitState) -> None:
        if new_state != self.state:
            logger.warning(
                "forecast circuit %s -> %s (failures=%d, cooldown=%.1fs)",
                self.state.value,
                new_state.value,
                self.failures,
                self.current_cooldown,
            )
        self.state = new_state
