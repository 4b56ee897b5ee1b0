"""
Impact Translator — turns validated decision parameters into a ScenarioImpact.

Pure and deterministic: the evaluation date is an explicit argument, so the
same params and ``as_of`` always give the same impact. All validation happens
here, before any forecast is requested.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any, Mapping, Optional, Union

from core.config import DEFAULT_CONFIG, SimulationConfig
from core.errors import InvalidParameters
from core.schema import DecisionType, ScenarioImpact
from core.utils import days_between, to_date, to_money
from forecasting.benchmarks import DEFAULT_LOCATION_SQFT

from .params import (
    CustomParams,
    HiringParams,
    InventoryParams,
    StoreLaunchParams,
    parse_scenario_params,
)


def translate(
    params: Union[Mapping[str, Any], HiringParams, InventoryParams, StoreLaunchParams, CustomParams],
    *,
    as_of: date,
    config: Optional[SimulationConfig] = None,
) -> ScenarioImpact:
    """
    Convert decision parameters into a structured impact.

    Parameters
    ----------
    params : mapping or ScenarioParams variant
        Raw mappings are validated first (InvalidParameters on failure).
    as_of : date
        Evaluation date (day 0 of the projection). ``params.timing`` must be
        strictly after it.
    config : SimulationConfig, optional
        Supplies ``days_per_month`` for per-period cost normalization.
    """
    cfg = config or DEFAULT_CONFIG
    parsed = parse_scenario_params(params)
    as_of = to_date(as_of)

    offset = days_between(as_of, parsed.timing)
    if offset <= 0:
        raise InvalidParameters(
            f"timing {parsed.timing.isoformat()} is not after the evaluation date {as_of.isoformat()}",
            field="timing",
            guidance="schedule the decision for a future date",
        )

    return _translate(parsed, offset, cfg)


def _translate(params, offset: int, cfg: SimulationConfig) -> ScenarioImpact:
    if isinstance(params, HiringParams):
        return _hiring_impact(params, offset)
    if isinstance(params, InventoryParams):
        return _inventory_impact(params, offset, cfg)
    if isinstance(params, StoreLaunchParams):
        return _store_launch_impact(params, offset)
    if isinstance(params, CustomParams):
        return _custom_impact(params, offset)
    raise InvalidParameters(
        f"Unsupported scenario parameters: {type(params).__name__}",
        field="type",
        guidance=f"use one of {[t.value for t in DecisionType]}",
    )


def _hiring_impact(params: HiringParams, offset: int) -> ScenarioImpact:
    # salary is paid per hire; ramp_up_days applies to both cost and uplift
    return ScenarioImpact(
        decision_type=DecisionType.HIRING,
        initial_cost=Decimal("0"),
        recurring_cost=to_money(params.salary * params.headcount),
        revenue_multiplier=params.expected_revenue_uplift,
        operational_changes={"employee_count": float(params.headcount)},
        timing_offset_days=offset,
        revenue_ramp_days=params.ramp_up_days,
        cost_ramp_days=params.ramp_up_days,
        duration_days=params.duration_days,
    )


def _inventory_impact(params: InventoryParams, offset: int, cfg: SimulationConfig) -> ScenarioImpact:
    # expected turnover is 1 + sell-through; the multiplier is the uplift part
    turnover = 1.0 + params.sell_through_rate
    monthly_storage = params.storage_cost * Decimal(cfg.days_per_month) / Decimal(params.storage_period_days)
    return ScenarioImpact(
        decision_type=DecisionType.INVENTORY,
        initial_cost=params.cost,
        recurring_cost=to_money(monthly_storage),
        revenue_multiplier=max(turnover - 1.0, 0.0),
        operational_changes={"inventory_value": float(params.cost)},
        timing_offset_days=offset,
        duration_days=params.duration_days,
    )


def _store_launch_impact(params: StoreLaunchParams, offset: int) -> ScenarioImpact:
    baseline_sqft = params.existing_location_sqft or DEFAULT_LOCATION_SQFT
    return ScenarioImpact(
        decision_type=DecisionType.STORE_LAUNCH,
        initial_cost=params.cost,
        recurring_cost=to_money(params.rent + params.staffing_estimate),
        revenue_multiplier=max(params.size_sqft / baseline_sqft, 0.0),
        operational_changes={"locations": 1.0, "floor_area_sqft": float(params.size_sqft)},
        timing_offset_days=offset,
        revenue_ramp_days=params.ramp_up_days,
        duration_days=params.duration_days,
    )


def _custom_impact(params: CustomParams, offset: int) -> ScenarioImpact:
    initial = params.initial_cost if params.initial_cost is not None else params.cost
    return ScenarioImpact(
        decision_type=DecisionType.CUSTOM,
        initial_cost=initial,
        recurring_cost=params.recurring_cost,
        revenue_multiplier=params.revenue_multiplier,
        operational_changes=dict(params.operational_changes),
        timing_offset_days=offset,
        revenue_ramp_days=params.ramp_days,
        cost_ramp_days=params.ramp_days,
        duration_days=params.duration_days,
    )
