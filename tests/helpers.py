"""Builders and fake forecast providers shared by the test modules."""

from __future__ import annotations

import threading
from datetime import date, timedelta
from decimal import Decimal
from typing import List, Optional, Sequence

from core.schema import (
    BusinessContext,
    CashFlowProjection,
    DataPoint,
    Forecast,
    TimePoint,
)
from core.utils import add_days, to_money
from engine.projection import summarize

AS_OF = date(2024, 1, 1)


def history(days: int, value=4000, *, end: date = AS_OF, confidence: float = 1.0) -> List[DataPoint]:
    """``days`` daily observations ending the day before ``end``."""
    return [
        DataPoint(date=end - timedelta(days=days - i), value=value, confidence=confidence)
        for i in range(days)
    ]


def make_context(
    *,
    monthly_revenue=120000,
    employee_count: int = 10,
    history_days: int = 60,
    daily_value=4000,
    location: str = "Austin, urban",
    business_id: str = "biz-1",
) -> BusinessContext:
    return BusinessContext(
        business_id=business_id,
        location=location,
        monthly_revenue=monthly_revenue,
        employee_count=employee_count,
        revenue_history=history(history_days, daily_value) if history_days else (),
    )


def projection_from_nets(
    nets: Sequence,
    *,
    start: date = AS_OF,
    confidence=0.9,
) -> CashFlowProjection:
    """Projection whose daily net cash is exactly ``nets`` (confidence may be a list)."""
    confs = list(confidence) if isinstance(confidence, (list, tuple)) else [confidence] * len(nets)
    timeline = []
    cumulative = Decimal("0.00")
    for i, n in enumerate(nets):
        net = to_money(n)
        cumulative += net
        timeline.append(
            TimePoint(
                date=add_days(start, i),
                cash_in=max(net, Decimal("0.00")),
                cash_out=max(-net, Decimal("0.00")),
                net_cash=net,
                cumulative_net=cumulative,
                confidence=confs[i],
            )
        )
    return CashFlowProjection(timeline=tuple(timeline), summary=summarize(timeline))


class FlatProvider:
    """Deterministic provider: constant daily revenue from ``start``."""

    def __init__(self, daily_revenue=4000, *, start: date = AS_OF, length: Optional[int] = None, band: float = 0.1):
        self.daily_revenue = daily_revenue
        self.start = start
        self.length = length
        self.band = band
        self.calls = 0

    def generate_forecast(self, business_id: str, horizon_days: int) -> Forecast:
        self.calls += 1
        n = self.length if self.length is not None else horizon_days
        return Forecast.flat(business_id, self.start, self.daily_revenue, n, band=self.band)


class SlowProvider(FlatProvider):
    """Answers only after ``delay`` seconds (or when released)."""

    def __init__(self, delay: float = 2.0, **kwargs):
        super().__init__(**kwargs)
        self.delay = delay
        self.release = threading.Event()

    def generate_forecast(self, business_id: str, horizon_days: int) -> Forecast:
        self.calls += 1
        self.release.wait(self.delay)
        return Forecast.flat(business_id, self.start, self.daily_revenue, horizon_days)


class FailingProvider:
    def __init__(self, exc: Optional[Exception] = None):
        self.exc = exc or RuntimeError("model server returned 503")
        self.calls = 0

    def generate_forecast(self, business_id: str, horizon_days: int) -> Forecast:
        self.calls += 1
        raise self.exc


class ReturningProvider:
    """Answers every request with the same object, whatever it is."""

    def __init__(self, answer):
        self.answer = answer
        self.calls = 0

    def generate_forecast(self, business_id: str, horizon_days: int):
        self.calls += 1
        return self.answer


class MisalignedProvider:
    """Builds a forecast whose bound series are shorter than its revenue series."""

    calls = 0

    def generate_forecast(self, business_id: str, horizon_days: int) -> Forecast:
        self.calls += 1
        revenue = [4000] * horizon_days
        return Forecast(business_id, AS_OF, revenue, revenue[:-1], revenue[:-1])


class EmptyProvider:
    calls = 0

    def generate_forecast(self, business_id: str, horizon_days: int) -> Forecast:
        self.calls += 1
        return Forecast(business_id, AS_OF, (), (), ())


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds
