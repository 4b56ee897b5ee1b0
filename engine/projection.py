"""
Projection Calculator — deterministic daily cash-flow math.

Key design principles:
  1. Day 0 is the baseline forecast's start date (the evaluation date)
  2. Money is Decimal, rounded to cents per day, summed in date order
  3. Ramp factors are computed with numpy, then applied in Decimal
  4. Short baselines are extended flat, with bounds widening per extra day
  5. The finished timeline is checked against its own invariants; a breach
     is raised, never patched
"""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import List, Optional, Sequence, Tuple

import numpy as np

from core.config import DEFAULT_CONFIG, SimulationConfig
from core.errors import InsufficientData, InternalInvariantViolation, InvalidParameters
from core.schema import (
    FLAG_EXTRAPOLATED,
    FLAG_SPARSE_HISTORY,
    CashFlowProjection,
    DataQuality,
    Forecast,
    ProjectionSummary,
    ScenarioImpact,
    TimePoint,
)
from core.utils import add_days, day_range, to_money

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")


def ramp_factors(
    horizon_days: int,
    offset: int,
    ramp_days: int,
    duration_days: Optional[int] = None,
) -> np.ndarray:
    """
    Activation ramp per day, shape (horizon_days,).

    0 before ``offset``; rises linearly from 0 to 1 over ``ramp_days``
    (immediately 1 when ``ramp_days`` is 0); back to 0 once ``duration_days``
    have passed since activation.
    """
    days = np.arange(horizon_days, dtype=float)
    since = days - offset
    if ramp_days > 0:
        ramp = np.clip(since / ramp_days, 0.0, 1.0)
    else:
        ramp = np.ones(horizon_days, dtype=float)
    ramp = np.where(since >= 0, ramp, 0.0)
    if duration_days is not None:
        ramp = np.where(since < duration_days, ramp, 0.0)
    return ramp


def extend_baseline(
    baseline: Forecast,
    horizon_days: int,
    *,
    widening_per_day: float,
) -> Tuple[List[Decimal], List[Decimal], List[Decimal], bool]:
    """
    Revenue, lower and upper bounds covering exactly ``horizon_days``.

    Days past the forecast hold the last revenue flat; the relative half-width
    grows by ``widening_per_day`` for each day past the known horizon.
    Returns (revenue, lower, upper, extrapolated).
    """
    revenue = list(baseline.daily_revenue[:horizon_days])
    lower = list(baseline.lower_bound[:horizon_days])
    upper = list(baseline.upper_bound[:horizon_days])
    missing = horizon_days - len(revenue)
    if missing <= 0:
        return revenue, lower, upper, False

    last = revenue[-1]
    last_rel = float((upper[-1] - lower[-1]) / (2 * last)) if last > 0 else 0.0
    last_rel = max(last_rel, 0.0)
    for k in range(1, missing + 1):
        rel = Decimal(repr(last_rel + widening_per_day * k))
        revenue.append(last)
        lower.append(max(to_money(last * (1 - rel)), ZERO))
        upper.append(to_money(last * (1 + rel)))
    return revenue, lower, upper, True


def daily_confidence(
    revenue: Sequence[Decimal],
    lower: Sequence[Decimal],
    upper: Sequence[Decimal],
    fallback: float,
) -> np.ndarray:
    """1 - relative half-width of the bounds, clipped to [0, 1]."""
    rev = np.array([float(v) for v in revenue], dtype=float)
    width = np.array([float(u - l) for u, l in zip(upper, lower)], dtype=float)
    with np.errstate(divide="ignore", invalid="ignore"):
        conf = np.where(rev > 0, 1.0 - width / (2.0 * rev), fallback)
    return np.clip(conf, 0.0, 1.0)


def project(
    baseline: Forecast,
    impact: ScenarioImpact,
    horizon_days: int = 90,
    *,
    data_quality: DataQuality = DataQuality.FULL,
    config: Optional[SimulationConfig] = None,
) -> CashFlowProjection:
    """
    Merge a baseline forecast with a scenario impact into a daily projection.

    Parameters
    ----------
    baseline : Forecast
        Daily revenue with bounds; day 0 is ``baseline.start_date``
    impact : ScenarioImpact
        Output of the impact translator
    horizon_days : int
        Number of daily points to produce (default 90)
    data_quality : DataQuality
        ``sparse`` lowers every day's confidence by the configured factor
    config : SimulationConfig, optional
        Widening step, sparse factor and days-per-month for recurring costs

    Returns
    -------
    CashFlowProjection with exactly ``horizon_days`` consecutive TimePoints.
    """
    cfg = config or DEFAULT_CONFIG
    if horizon_days <= 0:
        raise InvalidParameters(
            f"horizon_days must be > 0, got {horizon_days}",
            field="horizon_days",
            guidance="request at least one day, e.g. 90",
        )
    if baseline.horizon_days == 0:
        raise InsufficientData(
            f"Baseline forecast for {baseline.business_id} has no data points; "
            "use a benchmark or trend fallback before projecting."
        )

    revenue, lower, upper, extrapolated = extend_baseline(
        baseline, horizon_days, widening_per_day=cfg.extrapolation_widening_per_day
    )
    confidence = daily_confidence(revenue, lower, upper, baseline.confidence)
    if data_quality == DataQuality.SPARSE:
        confidence = confidence * cfg.sparse_confidence_factor

    offset = int(impact.timing_offset_days)
    rev_ramp = ramp_factors(horizon_days, offset, impact.revenue_ramp_days, impact.duration_days)
    cost_ramp = ramp_factors(horizon_days, offset, impact.cost_ramp_days, impact.duration_days)

    multiplier = Decimal(repr(impact.revenue_multiplier))
    daily_recurring = impact.recurring_cost / Decimal(cfg.days_per_month)
    dates = day_range(baseline.start_date, horizon_days)

    timeline: List[TimePoint] = []
    cumulative = ZERO
    for i in range(horizon_days):
        uplift = multiplier * Decimal(repr(float(rev_ramp[i])))
        cash_in = to_money(revenue[i] * (1 + uplift))

        cash_out = to_money(daily_recurring * Decimal(repr(float(cost_ramp[i]))))
        if i == offset:
            # one-time charge lands entirely on the activation day
            cash_out += impact.initial_cost

        net = cash_in - cash_out
        cumulative += net
        timeline.append(
            TimePoint(
                date=dates[i],
                cash_in=cash_in,
                cash_out=cash_out,
                net_cash=net,
                cumulative_net=cumulative,
                confidence=round(float(confidence[i]), 6),
            )
        )

    _verify_timeline(timeline, baseline.start_date, horizon_days)

    flags = []
    if extrapolated:
        flags.append(FLAG_EXTRAPOLATED)
        logger.info(
            "baseline for %s covers %d of %d days; extrapolated flat",
            baseline.business_id,
            baseline.horizon_days,
            horizon_days,
        )
    if data_quality == DataQuality.SPARSE:
        flags.append(FLAG_SPARSE_HISTORY)

    projection = CashFlowProjection(
        timeline=tuple(timeline),
        summary=summarize(timeline),
        data_quality=data_quality,
        quality_flags=tuple(flags),
    )
    logger.debug(
        "projected %s: net_change=%s lowest=%s on %s",
        baseline.business_id,
        projection.summary.net_change,
        projection.summary.lowest_point,
        projection.summary.lowest_point_date,
    )
    return projection


def summarize(timeline: Sequence[TimePoint]) -> ProjectionSummary:
    """Summary statistics over ``cumulative_net`` (first occurrence wins ties)."""
    if not timeline:
        raise InternalInvariantViolation("Cannot summarize an empty timeline.")

    lowest = highest = timeline[0]
    break_even: Optional[date] = None
    total_in = total_out = ZERO
    for tp in timeline:
        if tp.cumulative_net < lowest.cumulative_net:
            lowest = tp
        if tp.cumulative_net > highest.cumulative_net:
            highest = tp
        if break_even is None and tp.cumulative_net >= 0:
            break_even = tp.date
        total_in += tp.cash_in
        total_out += tp.cash_out

    return ProjectionSummary(
        net_change=timeline[-1].cumulative_net,
        lowest_point=lowest.cumulative_net,
        lowest_point_date=lowest.date,
        highest_point=highest.cumulative_net,
        highest_point_date=highest.date,
        break_even_date=break_even,
        total_cash_in=total_in,
        total_cash_out=total_out,
    )


def _verify_timeline(timeline: Sequence[TimePoint], start: date, horizon_days: int) -> None:
    problems = []
    if len(timeline) != horizon_days:
        problems.append(f"timeline has {len(timeline)} points, expected {horizon_days}")

    running = ZERO
    for i, tp in enumerate(timeline):
        if tp.date != add_days(start, i):
            problems.append(f"point {i} dated {tp.date}, expected {add_days(start, i)}")
            break
        if tp.net_cash != tp.cash_in - tp.cash_out:
            problems.append(f"point {i} net_cash does not equal cash_in - cash_out")
            break
        running += tp.net_cash
        if tp.cumulative_net != running:
            problems.append(f"point {i} cumulative_net {tp.cumulative_net} != running sum {running}")
            break

    if problems:
        logger.error("projection invariant violated: %s", "; ".join(problems))
        raise InternalInvariantViolation("; ".join(problems))
