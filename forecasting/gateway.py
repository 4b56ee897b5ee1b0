"""
Bounded-wait access to the forecast provider.

The gateway is the only place a provider is called. It owns the circuit
breaker and a small thread pool, enforces a timeout on every call, and lets
callers cancel a pending call through a threading.Event.
"""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import wait as wait_futures
from typing import Optional

from core.errors import (
    InsufficientData,
    ProviderTimeout,
    ProviderUnavailable,
    SimulationCancelled,
)
from core.schema import Forecast

from .base import ForecastProvider
from .circuit import CircuitBreaker

logger = logging.getLogger(__name__)

# how often a pending call checks the cancel event
CANCEL_POLL_SECONDS = 0.05


class ForecastGateway:
    def __init__(
        self,
        provider: ForecastProvider,
        *,
        breaker: Optional[CircuitBreaker] = None,
        max_workers: int = 4,
    ) -> None:
        self.provider = provider
        self.breaker = breaker or CircuitBreaker()
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="forecast")

    def close(self) -> None:
        # abandoned provider calls keep their thread until they return
        self._executor.shutdown(wait=False, cancel_futures=True)

    def __enter__(self) -> "ForecastGateway":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def fetch(
        self,
        business_id: str,
        horizon_days: int,
        *,
        timeout: float,
        cancel_event: Optional[threading.Event] = None,
    ) -> Forecast:
        """
        Call the provider and wait at most ``timeout`` seconds.

        Anything the provider raises or returns that is not a usable
        ``Forecast`` counts as an outage, including a malformed forecast.

        Raises
        ------
        ProviderUnavailable : circuit open, or the provider failed
        ProviderTimeout     : no answer within ``timeout``
        InsufficientData    : the provider answered with an empty forecast
        SimulationCancelled : ``cancel_event`` was set while waiting
        """
        if cancel_event is not None and cancel_event.is_set():
            raise SimulationCancelled(f"Simulation for {business_id} cancelled before forecasting.")

        if not self.breaker.can_execute():
            raise ProviderUnavailable(
                f"Forecast provider circuit is {self.breaker.state.value}; skipping call."
            )

        future: Future = self._executor.submit(self.provider.generate_forecast, business_id, horizon_days)
        self._wait(future, business_id, timeout, cancel_event)
        forecast = self._outcome(future, business_id)

        if forecast.horizon_days == 0:
            raise InsufficientData(f"Forecast provider returned no data points for {business_id}.")
        return forecast

    def _wait(
        self,
        future: Future,
        business_id: str,
        timeout: float,
        cancel_event: Optional[threading.Event],
    ) -> None:
        # futures.wait never raises, so a provider's own TimeoutError is an outcome
        deadline = time.monotonic() + timeout
        while not future.done():
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                future.cancel()
                self.breaker.record_failure()
                raise ProviderTimeout(
                    f"Forecast provider did not answer for {business_id} within {timeout:.2f}s."
                )
            step = min(remaining, CANCEL_POLL_SECONDS) if cancel_event is not None else remaining
            wait_futures([future], timeout=step)
            if not future.done() and cancel_event is not None and cancel_event.is_set():
                future.cancel()
                self.breaker.release_probe()
                raise SimulationCancelled(f"Simulation for {business_id} cancelled while forecasting.")

    def _outcome(self, future: Future, business_id: str) -> Forecast:
        exc = future.exception()
        if isinstance(exc, (InsufficientData, SimulationCancelled)):
            # no verdict on the provider's health
            self.breaker.release_probe()
            raise exc
        if isinstance(exc, ProviderUnavailable):
            self.breaker.record_failure()
            raise exc
        if exc is not None:
            logger.debug("forecast provider raised for %s: %r", business_id, exc)
            self.breaker.record_failure()
            raise ProviderUnavailable(f"Forecast provider failed for {business_id}: {exc}") from exc

        forecast = future.result()
        if not isinstance(forecast, Forecast):
            self.breaker.record_failure()
            raise ProviderUnavailable(
                f"Forecast provider returned {type(forecast).__name__} for {business_id}, not a Forecast."
            )
        self.breaker.record_success()
        return forecast
