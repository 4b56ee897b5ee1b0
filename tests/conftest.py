from __future__ import annotations

from datetime import date

import pytest
from hypothesis import HealthCheck, settings

from core.config import DEFAULT_CONFIG
from core.schema import BusinessContext, Forecast
from tests.helpers import AS_OF, FakeClock, SlowProvider, make_context

# projection properties build Decimal timelines; slow CI boxes trip the deadline
settings.register_profile(
    "decision_engine_stable",
    suppress_health_check=[HealthCheck.too_slow],
    deadline=None,
)

settings.load_profile("decision_engine_stable")


@pytest.fixture
def as_of() -> date:
    return AS_OF


@pytest.fixture
def context() -> BusinessContext:
    return make_context()


@pytest.fixture
def flat_forecast() -> Forecast:
    return Forecast.flat("biz-1", AS_OF, 4000, 90)


@pytest.fixture
def fast_config():
    return DEFAULT_CONFIG.with_overrides(provider_timeout_seconds=0.2)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def slow_provider():
    provider = SlowProvider(delay=2.0)
    yield provider
    # let the abandoned worker thread finish promptly
    provider.release.set()
