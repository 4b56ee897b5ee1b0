"""
Mitigation catalogue — short, actionable recommendations per (risk type, severity).

Templates are formatted with scenario context; placeholders that the context
cannot fill are never emitted (the template is skipped instead).
"""

from __future__ import annotations

import string
from typing import Dict, List, Mapping, Optional, Tuple

from core.schema import DecisionType, RiskType, Severity

_DECISION_NOUN: Dict[Optional[DecisionType], str] = {
    DecisionType.HIRING: "hiring",
    DecisionType.INVENTORY: "the inventory purchase",
    DecisionType.STORE_LAUNCH: "the store launch",
    DecisionType.CUSTOM: "the decision",
    None: "the decision",
}

MITIGATION_CATALOGUE: Dict[Tuple[RiskType, Severity], Tuple[str, ...]] = {
    (RiskType.CASHFLOW, Severity.CRITICAL): (
        "Delay {decision} by {delay_days} days",
        "Negotiate extended payment terms with suppliers",
        "Arrange a short-term credit line covering {shortfall} before {date}",
        "Split the up-front cost into smaller staged commitments",
    ),
    (RiskType.CASHFLOW, Severity.HIGH): (
        "Delay {decision} by {delay_days} days",
        "Negotiate extended payment terms with suppliers",
        "Build a cash buffer of at least {shortfall} before {date}",
    ),
    (RiskType.CASHFLOW, Severity.MEDIUM): (
        "Monitor daily cash position around {date}",
        "Defer non-essential spending until cumulative cash recovers",
    ),
    (RiskType.CASHFLOW, Severity.LOW): (
        "Keep an eye on cash position around {date}",
    ),
    (RiskType.OPERATIONAL, Severity.CRITICAL): (
        "Phase {decision} in smaller steps",
        "Review whether current revenue can sustain the new recurring cost",
    ),
    (RiskType.OPERATIONAL, Severity.HIGH): (
        "Phase {decision} in smaller steps",
        "Set a review checkpoint 30 days after {date}",
    ),
    (RiskType.OPERATIONAL, Severity.MEDIUM): (
        "Phase {decision} in smaller steps",
        "Confirm the recurring cost fits within the monthly budget",
    ),
    (RiskType.OPERATIONAL, Severity.LOW): (
        "Confirm the recurring cost fits within the monthly budget",
    ),
    (RiskType.MARKET, Severity.CRITICAL): (
        "Hold {decision} until revenue data improves",
        "Validate demand with a smaller pilot first",
    ),
    (RiskType.MARKET, Severity.HIGH): (
        "Validate demand with a smaller pilot first",
        "Refresh the revenue history before committing",
    ),
    (RiskType.MARKET, Severity.MEDIUM): (
        "Refresh the revenue history before committing",
        "Plan for the lower revenue bound rather than the expected value",
    ),
    (RiskType.MARKET, Severity.LOW): (
        "Plan for the lower revenue bound rather than the expected value",
    ),
}

_FALLBACK = "Review the projection with your accountant before committing"


def _fields(template: str) -> List[str]:
    return [name for _, name, _, _ in string.Formatter().parse(template) if name]


def suggest_mitigations(
    risk_type: RiskType,
    severity: Severity,
    *,
    decision_type: Optional[DecisionType] = None,
    values: Optional[Mapping[str, object]] = None,
) -> List[str]:
    """
    Return a non-empty list of recommendations for one signal.

    ``values`` fills template placeholders (delay_days, shortfall, date).
    """
    ctx: Dict[str, object] = {"decision": _DECISION_NOUN.get(decision_type, "the decision")}
    ctx.update({k: v for k, v in (values or {}).items() if v is not None})

    out: List[str] = []
    for template in MITIGATION_CATALOGUE.get((risk_type, severity), ()):
        if all(name in ctx for name in _fields(template)):
            text = template.format(**ctx)
            out.append(text[0].upper() + text[1:])
    if not out:
        out.append(_FALLBACK)
    return out
