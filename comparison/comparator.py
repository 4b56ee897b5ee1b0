"""
Scenario Comparator — side-by-side metrics for already-simulated decisions.

Answers the owner's questions:
  Q1: "Which option leaves me with the most cash?"  → net_change, net_cash_difference
  Q2: "Which one is riskiest?"                      → highest_severity vs reference
  Q3: "When do I get my money back?"                → break-even date and difference

The first scenario is the reference. Never breaking even ranks below any date.
"""

from __future__ import annotations

import math
from typing import Dict, List, Optional, Sequence, Tuple

from core.errors import InvalidParameters
from core.schema import ComparisonResult, ScenarioMetrics, ScenarioResult, Severity

BETTER = "better"
SAME = "same"
WORSE = "worse"


def highest_severity(result: ScenarioResult) -> Optional[Severity]:
    if not result.signals:
        return None
    return max((s.severity for s in result.signals), key=lambda sev: sev.rank)


def _severity_rank(severity: Optional[Severity]) -> int:
    return -1 if severity is None else severity.rank


def _compare_severity(candidate: Optional[Severity], reference: Optional[Severity]) -> str:
    c, r = _severity_rank(candidate), _severity_rank(reference)
    if c < r:
        return BETTER
    if c > r:
        return WORSE
    return SAME


def _compare_break_even(result: ScenarioResult, reference: ScenarioResult) -> Tuple[Optional[int], str]:
    mine = result.projection.summary.break_even_date
    theirs = reference.projection.summary.break_even_date
    if mine is None and theirs is None:
        return None, SAME
    if mine is None:
        return None, WORSE
    if theirs is None:
        return None, BETTER
    diff = (mine - theirs).days
    if diff < 0:
        return diff, BETTER
    if diff > 0:
        return diff, WORSE
    return 0, SAME


def _ranking_key(result: ScenarioResult):
    """Larger is better: cash, then earlier break-even, then milder and fewer signals."""
    summary = result.projection.summary
    be = summary.break_even_date
    be_ordinal = be.toordinal() if be is not None else math.inf
    return (
        summary.net_change,
        -be_ordinal,
        -_severity_rank(highest_severity(result)),
        -len(result.signals),
    )


def compare(scenarios: Sequence[ScenarioResult]) -> ComparisonResult:
    """
    Compare two or more scenario results against the first one.

    Parameters
    ----------
    scenarios : sequence of ScenarioResult
        At least two, with distinct ids. Not modified.

    Returns
    -------
    ComparisonResult with one ScenarioMetrics per scenario (the reference
    included, with zero differences) and best/worst case ids. Ties go to the
    scenario listed first.
    """
    scenarios = list(scenarios)
    if len(scenarios) < 2:
        raise InvalidParameters(
            f"comparison needs at least 2 scenarios, got {len(scenarios)}",
            field="scenarios",
            guidance="pass the reference scenario first, then its alternatives",
        )
    ids = [s.scenario_id for s in scenarios]
    duplicates = sorted({sid for sid in ids if ids.count(sid) > 1})
    if duplicates:
        raise InvalidParameters(
            f"duplicate scenario ids: {', '.join(duplicates)}",
            field="scenario_id",
            guidance="give each scenario a unique id",
        )

    reference = scenarios[0]
    ref_net = reference.projection.summary.net_change
    ref_severity = highest_severity(reference)

    metrics: Dict[str, ScenarioMetrics] = {}
    for result in scenarios:
        severity = highest_severity(result)
        be_diff, be_cmp = _compare_break_even(result, reference)
        metrics[result.scenario_id] = ScenarioMetrics(
            scenario_id=result.scenario_id,
            net_change=result.projection.summary.net_change,
            net_cash_difference=result.projection.summary.net_change - ref_net,
            highest_severity=severity,
            severity_comparison=_compare_severity(severity, ref_severity),
            break_even_date=result.projection.summary.break_even_date,
            break_even_difference_days=be_diff,
            break_even_comparison=be_cmp,
            signal_count=len(result.signals),
        )

    # max/min keep the first of equal keys, so ties resolve to input order
    best = max(scenarios, key=_ranking_key)
    worst = min(scenarios, key=_ranking_key)

    return ComparisonResult(
        reference_scenario_id=reference.scenario_id,
        comparative_metrics=metrics,
        best_case_scenario_id=best.scenario_id,
        worst_case_scenario_id=worst.scenario_id,
    )


def rank_scenarios(scenarios: Sequence[ScenarioResult]) -> List[str]:
    """Scenario ids from best to worst (stable for ties)."""
    return [s.scenario_id for s in sorted(scenarios, key=_ranking_key, reverse=True)]
