"""
Forecasting package — provider interface and the fallback baselines used when it fails.

  1. base.py        — ForecastProvider interface (external model, injected)
  2. gateway.py     — bounded-wait provider calls behind a circuit breaker
  3. historical.py  — trend-extrapolated baseline from the business's history
  4. benchmarks.py  — regional benchmark baseline when history is too short
"""

from .base import ForecastProvider, align_forecast
from .benchmarks import benchmark_forecast, blend_with_benchmarks, get_benchmark
from .circuit import CircuitBreaker, CircuitState
from .gateway import ForecastGateway
from .historical import compute_revenue_statistics, trend_forecast

__all__ = [
    "ForecastProvider",
    "align_forecast",
    "benchmark_forecast",
    "blend_with_benchmarks",
    "get_benchmark",
    "CircuitBreaker",
    "CircuitState",
    "ForecastGateway",
    "compute_revenue_statistics",
    "trend_forecast",
]
