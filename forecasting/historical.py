"""
Trend-extrapolated baseline from the business's own revenue history.

Fallback source when the forecast provider times out or is down:
  1. Collapse the history to one value per calendar day
  2. Fit a linear trend (scipy.stats.linregress) over day offsets
  3. Extrapolate from the evaluation date across the horizon
  4. Wrap it in bounds that widen with distance from the last observation,
     using residual volatility blended with the regional benchmark
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

import numpy as np
import pandas as pd
from scipy import stats

from core.config import DEFAULT_CONFIG, SimulationConfig
from core.errors import InsufficientData
from core.schema import BusinessContext, Forecast
from core.utils import to_date, to_money

from .benchmarks import blend_with_benchmarks, get_benchmark

TREND_MODEL_VERSION = "trend-linregress-v1"
MIN_TREND_POINTS = 2


@dataclass
class HistoricalRevenueStats:
    """Summary statistics of the daily revenue history."""
    mean: float
    std: float
    n_observations: int
    first_date: date
    last_date: date
    slope: float          # revenue change per day
    intercept: float      # revenue at first_date
    relative_volatility: float
    mean_confidence: float
    daily_series: pd.Series

    def __repr__(self) -> str:
        return (
            f"HistoricalRevenueStats(mean={self.mean:.2f}, std={self.std:.2f}, "
            f"slope={self.slope:.4f}/day, n={self.n_observations})"
        )


def revenue_series(context: BusinessContext) -> pd.Series:
    """Daily revenue indexed by date; same-day observations are summed."""
    if not context.revenue_history:
        return pd.Series(dtype=float)
    df = pd.DataFrame(
        {
            "date": pd.to_datetime([p.date for p in context.revenue_history]),
            "value": [float(p.value) for p in context.revenue_history],
        }
    )
    return df.groupby("date")["value"].sum().sort_index()


def compute_revenue_statistics(context: BusinessContext) -> HistoricalRevenueStats:
    """
    Fit the linear trend and measure residual volatility.

    Raises InsufficientData with fewer than 2 distinct days of history.
    """
    series = revenue_series(context)
    if len(series) < MIN_TREND_POINTS:
        raise InsufficientData(
            f"{context.business_id} has {len(series)} day(s) of revenue history; "
            f"at least {MIN_TREND_POINTS} are needed for a trend."
        )

    first = series.index[0]
    x = np.asarray((series.index - first).days, dtype=float)
    y = series.to_numpy(dtype=float)
    fit = stats.linregress(x, y)

    residuals = y - (fit.intercept + fit.slope * x)
    resid_std = float(np.std(residuals, ddof=1)) if len(y) > 2 else 0.0
    mean = float(np.mean(y))
    rel_vol = resid_std / mean if mean > 0 else 0.0

    return HistoricalRevenueStats(
        mean=mean,
        std=float(np.std(y)),
        n_observations=len(y),
        first_date=first.date(),
        last_date=series.index[-1].date(),
        slope=float(fit.slope),
        intercept=float(fit.intercept),
        relative_volatility=rel_vol,
        mean_confidence=float(np.mean([p.confidence for p in context.revenue_history])),
        daily_series=series,
    )


def trend_forecast(
    context: BusinessContext,
    start_date: date,
    horizon_days: int,
    *,
    config: Optional[SimulationConfig] = None,
) -> Forecast:
    """
    Extrapolate the history's trend from ``start_date`` for ``horizon_days``.

    Inside the observed window the fitted line is used directly. Past the last
    observation, revenue compounds from the fitted level at a daily drift
    blended from the observed slope and the regional benchmark (short
    histories lean on the benchmark). Revenue is floored at 0. The relative
    band starts at the blended volatility and widens with distance past the
    last observed day, capped by the region.
    """
    cfg = config or DEFAULT_CONFIG
    st = compute_revenue_statistics(context)
    bench = get_benchmark(context.location)

    start = pd.Timestamp(to_date(start_date))
    first = pd.Timestamp(st.first_date)
    last_x = float((pd.Timestamp(st.last_date) - first).days)

    observed_growth = st.slope / st.mean if st.mean > 0 else 0.0
    drift, vol = blend_with_benchmarks(
        observed_growth,
        st.relative_volatility,
        st.n_observations,
        bench.daily_growth_mean,
        bench.daily_volatility,
        min_observations=cfg.sparse_history_days,
    )

    offsets = (start - first).days + np.arange(horizon_days, dtype=float)
    distance = np.maximum(offsets - last_x, 0.0)
    level_last = max(st.intercept + st.slope * last_x, 0.0)
    fitted = st.intercept + st.slope * np.minimum(offsets, last_x)
    revenue = np.where(
        distance > 0,
        level_last * np.power(max(1.0 + drift, 0.0), distance),
        fitted,
    )
    revenue = np.maximum(revenue, 0.0)

    band = np.minimum(vol + cfg.extrapolation_widening_per_day * distance / 10.0, bench.max_band)

    coverage = min(st.n_observations / cfg.sparse_history_days, 1.0)
    confidence = float(np.clip(st.mean_confidence * coverage, 0.1, 0.9))

    return Forecast(
        business_id=context.business_id,
        start_date=start.date(),
        daily_revenue=tuple(to_money(float(v)) for v in revenue),
        lower_bound=tuple(to_money(float(v)) for v in revenue * (1.0 - band)),
        upper_bound=tuple(to_money(float(v)) for v in revenue * (1.0 + band)),
        confidence=confidence,
        model_version=TREND_MODEL_VERSION,
    )
