"""
Risk Analyzer — scans a projection for threshold violations and grades them.

Rules:
  cashflow     cumulative cash below -(threshold × monthly revenue); one signal
               per contiguous breach run, graded by depth relative to threshold
  operational  recurring cost or headcount growth out of proportion to the
               business; advisory (low/medium) only
  market       baseline revenue confidence falling below a floor

Then every signal dated within ``critical_days`` of the evaluation date is
escalated to at least high, mitigations are attached for the final severity,
and the list is ordered by severity (desc), date (asc), insertion order.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field, replace
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Sequence, TypeVar

from core.config import DEFAULT_CONFIG, SimulationConfig
from core.errors import InternalInvariantViolation, InvalidParameters
from core.schema import (
    BusinessContext,
    CashFlowProjection,
    DecisionType,
    RiskSignal,
    RiskType,
    ScenarioImpact,
    Severity,
    TimePoint,
)
from core.utils import add_days, days_between, to_money

from .mitigation import suggest_mitigations

logger = logging.getLogger(__name__)

RULE_CASHFLOW = "cashflow_threshold"
RULE_RECURRING_COST = "recurring_cost_ratio"
RULE_HEADCOUNT = "headcount_ratio"
RULE_CONFIDENCE = "forecast_confidence"

# breach depth / threshold boundaries
HIGH_BREACH_RATIO = Decimal("1.5")
CRITICAL_BREACH_RATIO = Decimal("3")


@dataclass
class _Finding:
    """A detected condition before escalation and mitigation."""
    severity: Severity
    type: RiskType
    description: str
    projected_date: date
    impact_amount: Optional[Decimal] = None
    rule: str = ""
    values: Dict[str, object] = field(default_factory=dict)


_S = TypeVar("_S", _Finding, RiskSignal)


def classify_breach(depth: Decimal, threshold_amount: Decimal) -> Severity:
    """Severity of a cash-flow breach of ``depth`` below zero."""
    if threshold_amount <= 0:
        return Severity.CRITICAL
    ratio = depth / threshold_amount
    if ratio > CRITICAL_BREACH_RATIO:
        return Severity.CRITICAL
    if ratio >= HIGH_BREACH_RATIO:
        return Severity.HIGH
    return Severity.MEDIUM


def _breach_runs(timeline: Sequence[TimePoint], limit: Decimal) -> List[List[TimePoint]]:
    runs: List[List[TimePoint]] = []
    current: List[TimePoint] = []
    for tp in timeline:
        if tp.cumulative_net < limit:
            current.append(tp)
        elif current:
            runs.append(current)
            current = []
    if current:
        runs.append(current)
    return runs


def cashflow_findings(
    projection: CashFlowProjection,
    context: BusinessContext,
    cashflow_threshold: float,
) -> List[_Finding]:
    threshold_amount = to_money(Decimal(repr(float(cashflow_threshold))) * context.monthly_revenue)
    findings = []
    for run in _breach_runs(projection.timeline, -threshold_amount):
        start = run[0]
        trough = min(run, key=lambda tp: tp.cumulative_net)
        depth = -trough.cumulative_net
        severity = classify_breach(depth, threshold_amount)
        ratio = (
            f"{depth / threshold_amount:.1f}x the {threshold_amount:,.2f} threshold"
            if threshold_amount > 0
            else "with no revenue buffer"
        )
        findings.append(
            _Finding(
                severity=severity,
                type=RiskType.CASHFLOW,
                description=(
                    f"Cumulative cash falls below -{threshold_amount:,.2f} from "
                    f"{start.date.isoformat()} to {run[-1].date.isoformat()}, bottoming at "
                    f"{trough.cumulative_net:,.2f} on {trough.date.isoformat()} ({ratio})."
                ),
                projected_date=start.date,
                impact_amount=depth,
                rule=RULE_CASHFLOW,
                values={
                    "delay_days": len(run),
                    "shortfall": f"{depth:,.2f}",
                    "date": start.date.isoformat(),
                },
            )
        )
    return findings


def _ratio_severity(ratio: float, limit: float) -> Optional[Severity]:
    if ratio <= limit:
        return None
    return Severity.MEDIUM if ratio > 2 * limit else Severity.LOW


def operational_findings(
    impact: ScenarioImpact,
    context: BusinessContext,
    evaluation_date: date,
    config: SimulationConfig,
) -> List[_Finding]:
    findings = []
    activation = add_days(evaluation_date, impact.timing_offset_days)
    revenue = context.monthly_revenue

    if impact.recurring_cost > 0:
        ratio = float(impact.recurring_cost / revenue) if revenue > 0 else math.inf
        severity = _ratio_severity(ratio, config.recurring_cost_fraction)
        if severity is not None:
            share = f"{ratio:.0%}" if math.isfinite(ratio) else "all"
            findings.append(
                _Finding(
                    severity=severity,
                    type=RiskType.OPERATIONAL,
                    description=(
                        f"New recurring cost of {impact.recurring_cost:,.2f}/month is {share} of "
                        f"current monthly revenue (limit {config.recurring_cost_fraction:.0%})."
                    ),
                    projected_date=activation,
                    impact_amount=impact.recurring_cost,
                    rule=RULE_RECURRING_COST,
                    values={"date": activation.isoformat()},
                )
            )

    added = float(impact.operational_changes.get("employee_count", 0.0))
    if impact.decision_type == DecisionType.HIRING and added > 0:
        current = context.employee_count
        ratio = added / current if current > 0 else math.inf
        severity = _ratio_severity(ratio, config.sustainable_headcount_ratio)
        if severity is not None:
            findings.append(
                _Finding(
                    severity=severity,
                    type=RiskType.OPERATIONAL,
                    description=(
                        f"Adding {added:g} employee(s) to a team of {current} exceeds the "
                        f"sustainable growth ratio of {config.sustainable_headcount_ratio:.0%}."
                    ),
                    projected_date=activation,
                    rule=RULE_HEADCOUNT,
                    values={"date": activation.isoformat()},
                )
            )
    return findings


def market_findings(projection: CashFlowProjection, config: SimulationConfig) -> List[_Finding]:
    floor = config.market_confidence_floor
    below = [tp for tp in projection.timeline if tp.confidence < floor]
    if not below:
        return []
    lowest = min(tp.confidence for tp in below)
    severity = Severity.MEDIUM if lowest < floor / 2 else Severity.LOW
    first = below[0]
    return [
        _Finding(
            severity=severity,
            type=RiskType.MARKET,
            description=(
                f"Revenue forecast confidence drops below {floor:.0%} from "
                f"{first.date.isoformat()} (lowest {lowest:.0%}); projected revenue is uncertain."
            ),
            projected_date=first.date,
            rule=RULE_CONFIDENCE,
            values={"date": first.date.isoformat()},
        )
    ]


def escalate_signals(signals: Iterable[_S], evaluation_date: date, critical_days: int) -> List[_S]:
    """
    Promote anything dated within ``critical_days`` of ``evaluation_date`` to
    at least high. Returns new objects; inputs are untouched.
    """
    out = []
    for s in signals:
        near = days_between(evaluation_date, s.projected_date) <= critical_days
        if near and s.severity.rank < Severity.HIGH.rank:
            out.append(replace(s, severity=Severity.HIGH))
        else:
            out.append(s)
    return out


def prioritize_signals(signals: Iterable[_S]) -> List[_S]:
    """Severity descending, then date ascending; stable for remaining ties."""
    return sorted(signals, key=lambda s: (-s.severity.rank, s.projected_date))


def _to_signal(finding: _Finding, decision_type: Optional[DecisionType]) -> RiskSignal:
    suggestions = suggest_mitigations(
        finding.type,
        finding.severity,
        decision_type=decision_type,
        values=finding.values,
    )
    if not suggestions:
        logger.error("no mitigation for %s/%s", finding.type.value, finding.severity.value)
        raise InternalInvariantViolation(
            f"Risk signal {finding.type.value}/{finding.severity.value} has no mitigation suggestions."
        )
    return RiskSignal(
        severity=finding.severity,
        type=finding.type,
        description=finding.description,
        projected_date=finding.projected_date,
        impact_amount=finding.impact_amount,
        mitigation_suggestions=suggestions,
        rule=finding.rule,
    )


def analyze(
    projection: CashFlowProjection,
    context: BusinessContext,
    cashflow_threshold: float = 0.1,
    critical_days: int = 30,
    *,
    impact: Optional[ScenarioImpact] = None,
    config: Optional[SimulationConfig] = None,
) -> List[RiskSignal]:
    """
    Derive the ordered risk signal list for one projection.

    Parameters
    ----------
    projection : CashFlowProjection
        Its first date is the evaluation date
    context : BusinessContext
        Supplies monthly revenue and headcount
    cashflow_threshold : float
        Fraction of monthly revenue the cumulative cash may dip below zero
    critical_days : int
        Escalation window, in days from the evaluation date
    impact : ScenarioImpact, optional
        Enables the operational rule and tailors mitigation wording
    config : SimulationConfig, optional
        Operational and market rule limits
    """
    cfg = config or DEFAULT_CONFIG
    if cashflow_threshold < 0:
        raise InvalidParameters(
            f"cashflow_threshold must be >= 0, got {cashflow_threshold}",
            field="cashflow_threshold",
            guidance="express the threshold as a fraction of monthly revenue, e.g. 0.1",
        )
    if critical_days < 0:
        raise InvalidParameters(
            f"critical_days must be >= 0, got {critical_days}",
            field="critical_days",
            guidance="use 0 to disable escalation",
        )
    if not projection.timeline:
        raise InvalidParameters(
            "Projection has an empty timeline.",
            field="projection",
            guidance="project at least one day before analyzing",
        )

    evaluation_date = projection.start_date
    decision_type = impact.decision_type if impact is not None else None

    findings: List[_Finding] = []
    findings.extend(cashflow_findings(projection, context, cashflow_threshold))
    if impact is not None:
        findings.extend(operational_findings(impact, context, evaluation_date, cfg))
    findings.extend(market_findings(projection, cfg))

    findings = escalate_signals(findings, evaluation_date, critical_days)
    signals = prioritize_signals(_to_signal(f, decision_type) for f in findings)

    logger.debug(
        "analyzed %d-day projection: %s",
        projection.horizon_days,
        [f"{s.type.value}/{s.severity.value}" for s in signals] or "no signals",
    )
    return signals
