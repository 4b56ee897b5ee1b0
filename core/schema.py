"""
Entity definitions for the decision simulation engine.

Monetary amounts are Decimal quantized to cents; confidences are floats in
[0, 1]; dates are calendar dates. Enumerations carry the fixed string tags
used on the wire, so ``to_dict()`` output can be serialized losslessly by the
API layer.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields, is_dataclass, replace
from datetime import date, timedelta
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple

import pandas as pd

from .errors import InvalidParameters
from .utils import to_date, to_money


class DecisionType(str, Enum):
    HIRING = "hiring"
    INVENTORY = "inventory"
    STORE_LAUNCH = "store_launch"
    CUSTOM = "custom"


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {
    Severity.LOW: 0,
    Severity.MEDIUM: 1,
    Severity.HIGH: 2,
    Severity.CRITICAL: 3,
}


class RiskType(str, Enum):
    CASHFLOW = "cashflow"
    OPERATIONAL = "operational"
    MARKET = "market"


class DataQuality(str, Enum):
    FULL = "full"
    SPARSE = "sparse"


class ForecastSource(str, Enum):
    PROVIDER = "provider"
    TREND = "trend"
    BENCHMARK = "benchmark"


class SimulationStatus(str, Enum):
    OK = "ok"
    DEGRADED = "degraded"


# projection quality flags
FLAG_EXTRAPOLATED = "extrapolated"
FLAG_DEGRADED_FORECAST = "degraded_forecast"
FLAG_SPARSE_HISTORY = "sparse_history"


def to_plain(value: Any) -> Any:
    """Recursively convert entities into JSON-friendly primitives."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, date):
        return value.isoformat()
    if is_dataclass(value) and not isinstance(value, type):
        return {f.name: to_plain(getattr(value, f.name)) for f in fields(value)}
    if isinstance(value, Mapping):
        return {str(k): to_plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_plain(v) for v in value]
    return value


def _check_unit(name: str, value: float) -> float:
    value = float(value)
    if not 0.0 <= value <= 1.0:
        raise InvalidParameters(
            f"{name} must lie in [0, 1], got {value}",
            field=name,
            guidance="express confidence as a fraction, e.g. 0.8",
        )
    return value


# ---------------------------------------------------------------------------
# Business context (read-only snapshot from the context store)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DataPoint:
    """One observation of a historical daily series."""
    date: date
    value: Decimal
    confidence: float = 1.0
    source: str = "manual"

    def __post_init__(self) -> None:
        object.__setattr__(self, "date", to_date(self.date))
        object.__setattr__(self, "value", to_money(self.value))
        object.__setattr__(self, "confidence", _check_unit("confidence", self.confidence))


@dataclass(frozen=True)
class BusinessContext:
    business_id: str
    location: str
    monthly_revenue: Decimal
    employee_count: int
    revenue_history: Tuple[DataPoint, ...] = ()
    expense_history: Tuple[DataPoint, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "monthly_revenue", to_money(self.monthly_revenue))
        object.__setattr__(self, "employee_count", int(self.employee_count))
        object.__setattr__(self, "revenue_history", tuple(self.revenue_history))
        object.__setattr__(self, "expense_history", tuple(self.expense_history))

    @property
    def history_days(self) -> int:
        return len({p.date for p in self.revenue_history})

    def to_dict(self) -> Dict[str, Any]:
        return to_plain(self)


# ---------------------------------------------------------------------------
# Baseline forecast (produced by the external forecast provider)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Forecast:
    """
    Baseline daily revenue with lower/upper confidence bounds.

    Day ``k`` of every series corresponds to ``start_date + k days``.
    """
    business_id: str
    start_date: date
    daily_revenue: Tuple[Decimal, ...]
    lower_bound: Tuple[Decimal, ...]
    upper_bound: Tuple[Decimal, ...]
    confidence: float = 1.0
    model_version: str = "unknown"

    def __post_init__(self) -> None:
        object.__setattr__(self, "start_date", to_date(self.start_date))
        for name in ("daily_revenue", "lower_bound", "upper_bound"):
            object.__setattr__(self, name, tuple(to_money(v) for v in getattr(self, name)))
        n = len(self.daily_revenue)
        if len(self.lower_bound) != n or len(self.upper_bound) != n:
            raise InvalidParameters(
                "Forecast series lengths differ: "
                f"revenue={n}, lower={len(self.lower_bound)}, upper={len(self.upper_bound)}",
                field="daily_revenue",
                guidance="supply one lower and one upper bound per forecast day",
            )
        object.__setattr__(self, "confidence", _check_unit("confidence", self.confidence))

    @property
    def horizon_days(self) -> int:
        return len(self.daily_revenue)

    @property
    def end_date(self) -> Optional[date]:
        if not self.daily_revenue:
            return None
        return self.start_date + timedelta(days=self.horizon_days - 1)

    @classmethod
    def flat(
        cls,
        business_id: str,
        start_date: date,
        daily_revenue,
        horizon_days: int,
        *,
        band: float = 0.1,
        confidence: float = 0.9,
        model_version: str = "flat",
    ) -> "Forecast":
        """Constant daily revenue with a symmetric relative band."""
        rev = to_money(daily_revenue)
        lo = to_money(rev * (Decimal(1) - Decimal(str(band))))
        hi = to_money(rev * (Decimal(1) + Decimal(str(band))))
        return cls(
            business_id=business_id,
            start_date=start_date,
            daily_revenue=(rev,) * horizon_days,
            lower_bound=(lo,) * horizon_days,
            upper_bound=(hi,) * horizon_days,
            confidence=confidence,
            model_version=model_version,
        )

    def to_dict(self) -> Dict[str, Any]:
        return to_plain(self)


# ---------------------------------------------------------------------------
# Scenario impact (intermediate value owned by one simulation call)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ScenarioImpact:
    """
    Structured effect of a decision on cash flow.

    recurring_cost is a monthly amount; the projection spreads it per day.
    """
    decision_type: DecisionType
    initial_cost: Decimal = Decimal("0.00")
    recurring_cost: Decimal = Decimal("0.00")
    revenue_multiplier: float = 0.0
    operational_changes: Mapping[str, float] = field(default_factory=dict)
    timing_offset_days: int = 0
    revenue_ramp_days: int = 0
    cost_ramp_days: int = 0
    duration_days: Optional[int] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "decision_type", DecisionType(self.decision_type))
        object.__setattr__(self, "initial_cost", to_money(self.initial_cost))
        object.__setattr__(self, "recurring_cost", to_money(self.recurring_cost))
        object.__setattr__(self, "revenue_multiplier", float(self.revenue_multiplier))
        object.__setattr__(self, "operational_changes", dict(self.operational_changes))

        for name in ("initial_cost", "recurring_cost"):
            if getattr(self, name) < 0:
                raise InvalidParameters(
                    f"{name} must be >= 0",
                    field=name,
                    guidance="costs are amounts paid out; use 0 for none",
                )
        if self.revenue_multiplier < 0:
            raise InvalidParameters(
                "revenue_multiplier must be >= 0",
                field="revenue_multiplier",
                guidance="use 0 for no uplift, 0.1 for +10%",
            )
        for name in ("timing_offset_days", "revenue_ramp_days", "cost_ramp_days"):
            if int(getattr(self, name)) < 0:
                raise InvalidParameters(f"{name} must be >= 0", field=name, guidance="day counts start at 0")
        if self.duration_days is not None and self.duration_days <= 0:
            raise InvalidParameters(
                "duration_days must be > 0 when set",
                field="duration_days",
                guidance="omit duration_days for a permanent change",
            )

    def to_dict(self) -> Dict[str, Any]:
        return to_plain(self)


# ---------------------------------------------------------------------------
# Cash-flow projection
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TimePoint:
    date: date
    cash_in: Decimal
    cash_out: Decimal
    net_cash: Decimal
    cumulative_net: Decimal
    confidence: float


@dataclass(frozen=True)
class ProjectionSummary:
    net_change: Decimal
    lowest_point: Decimal
    lowest_point_date: date
    highest_point: Decimal
    highest_point_date: date
    break_even_date: Optional[date]
    total_cash_in: Decimal
    total_cash_out: Decimal


@dataclass(frozen=True)
class CashFlowProjection:
    timeline: Tuple[TimePoint, ...]
    summary: ProjectionSummary
    data_quality: DataQuality = DataQuality.FULL
    forecast_source: ForecastSource = ForecastSource.PROVIDER
    quality_flags: Tuple[str, ...] = ()

    @property
    def start_date(self) -> date:
        return self.timeline[0].date

    @property
    def end_date(self) -> date:
        return self.timeline[-1].date

    @property
    def horizon_days(self) -> int:
        return len(self.timeline)

    @property
    def is_degraded(self) -> bool:
        return FLAG_DEGRADED_FORECAST in self.quality_flags

    def with_flags(self, *flags: str, source: Optional[ForecastSource] = None) -> "CashFlowProjection":
        merged = tuple(dict.fromkeys(self.quality_flags + tuple(flags)))
        return replace(
            self,
            quality_flags=merged,
            forecast_source=source if source is not None else self.forecast_source,
        )

    def to_dataframe(self) -> pd.DataFrame:
        """Timeline as a DataFrame (floats, for charts and inspection)."""
        return pd.DataFrame(
            {
                "date": pd.to_datetime([tp.date for tp in self.timeline]),
                "cash_in": [float(tp.cash_in) for tp in self.timeline],
                "cash_out": [float(tp.cash_out) for tp in self.timeline],
                "net_cash": [float(tp.net_cash) for tp in self.timeline],
                "cumulative_net": [float(tp.cumulative_net) for tp in self.timeline],
                "confidence": [tp.confidence for tp in self.timeline],
            }
        )

    def to_dict(self) -> Dict[str, Any]:
        return to_plain(self)


# ---------------------------------------------------------------------------
# Risk signals
# ---------------------------------------------------------------------------


@dataclass
class RiskSignal:
    """
    A detected risk condition.

    Mutable only so that callers (notification/UI layer) can set
    ``acknowledged``; the engine hands out new objects instead of editing.
    """
    severity: Severity
    type: RiskType
    description: str
    projected_date: date
    impact_amount: Optional[Decimal] = None
    mitigation_suggestions: List[str] = field(default_factory=list)
    acknowledged: bool = False
    rule: str = ""

    def acknowledge(self) -> None:
        self.acknowledged = True

    def to_dict(self) -> Dict[str, Any]:
        return to_plain(self)


# ---------------------------------------------------------------------------
# Comparison
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ScenarioResult:
    """A completed simulation as fed to the comparator."""
    scenario_id: str
    projection: CashFlowProjection
    signals: Tuple[RiskSignal, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "signals", tuple(self.signals))

    def to_dict(self) -> Dict[str, Any]:
        return to_plain(self)


@dataclass(frozen=True)
class ScenarioMetrics:
    scenario_id: str
    net_change: Decimal
    net_cash_difference: Decimal
    highest_severity: Optional[Severity]
    severity_comparison: str
    break_even_date: Optional[date]
    break_even_difference_days: Optional[int]
    break_even_comparison: str
    signal_count: int


@dataclass(frozen=True)
class ComparisonResult:
    reference_scenario_id: str
    comparative_metrics: Mapping[str, ScenarioMetrics]
    best_case_scenario_id: str
    worst_case_scenario_id: str

    def to_dataframe(self) -> pd.DataFrame:
        rows = []
        for sid, m in self.comparative_metrics.items():
            rows.append({
                "scenario_id": sid,
                "net_change": float(m.net_change),
                "net_cash_difference": float(m.net_cash_difference),
                "highest_severity": m.highest_severity.value if m.highest_severity else None,
                "severity_comparison": m.severity_comparison,
                "break_even_date": m.break_even_date,
                "break_even_difference_days": m.break_even_difference_days,
                "break_even_comparison": m.break_even_comparison,
                "signal_count": m.signal_count,
                "best_case": sid == self.best_case_scenario_id,
                "worst_case": sid == self.worst_case_scenario_id,
            })
        return pd.DataFrame(rows)

    def to_dict(self) -> Dict[str, Any]:
        return to_plain(self)
