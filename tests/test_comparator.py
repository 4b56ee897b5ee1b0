import copy

import pytest

from comparison.comparator import compare, rank_scenarios
from core.errors import InvalidParameters
from core.schema import RiskSignal, RiskType, ScenarioResult, Severity
from core.utils import add_days
from tests.helpers import AS_OF, projection_from_nets


def _signal(severity, day=40):
    return RiskSignal(severity, RiskType.CASHFLOW, f"{severity.value} breach", add_days(AS_OF, day),
                      mitigation_suggestions=["Monitor cash"])


def _scenario(sid, nets, signals=()):
    return ScenarioResult(sid, projection_from_nets(nets), signals)


def test_metrics_cover_every_scenario_relative_to_first():
    base = _scenario("base", [100] * 10)
    hire = _scenario("hire", [50] * 10, [_signal(Severity.MEDIUM)])
    expand = _scenario("expand", [-500] + [200] * 9, [_signal(Severity.HIGH), _signal(Severity.LOW)])

    result = compare([base, hire, expand])

    assert result.reference_scenario_id == "base"
    assert set(result.comparative_metrics) == {"base", "hire", "expand"}

    ref = result.comparative_metrics["base"]
    assert ref.net_cash_difference == 0
    assert ref.severity_comparison == "same"
    assert ref.break_even_difference_days == 0

    hire_m = result.comparative_metrics["hire"]
    assert hire_m.net_cash_difference == -500
    assert hire_m.highest_severity == Severity.MEDIUM
    assert hire_m.severity_comparison == "worse"
    assert hire_m.signal_count == 1

    expand_m = result.comparative_metrics["expand"]
    assert expand_m.net_change == 1300
    assert expand_m.highest_severity == Severity.HIGH
    # cumulative -500, -300, -100, 100 -> breaks even on day 3
    assert expand_m.break_even_date == add_days(AS_OF, 3)
    assert expand_m.break_even_difference_days == 3
    assert expand_m.break_even_comparison == "worse"

    assert result.best_case_scenario_id == "expand"
    assert result.worst_case_scenario_id == "hire"


def test_never_breaking_even_ranks_below_any_date():
    recovers = _scenario("recovers", [-100] + [20] * 9)
    never = _scenario("never", [-100] + [10] * 8 + [0])

    result = compare([recovers, never])
    metrics = result.comparative_metrics["never"]

    assert metrics.break_even_date is None
    assert metrics.break_even_difference_days is None
    assert metrics.break_even_comparison == "worse"
    assert compare([never, recovers]).comparative_metrics["recovers"].break_even_comparison == "better"


def test_net_change_ties_break_on_earlier_break_even():
    late = _scenario("late", [-200, 0, 0, 300])
    early = _scenario("early", [100, 0, 0, 0])

    result = compare([late, early])

    assert result.best_case_scenario_id == "early"
    assert result.worst_case_scenario_id == "late"


def test_then_on_milder_and_fewer_signals():
    risky = _scenario("risky", [10] * 5, [_signal(Severity.HIGH)])
    noisy = _scenario("noisy", [10] * 5, [_signal(Severity.LOW), _signal(Severity.LOW)])
    quiet = _scenario("quiet", [10] * 5, [_signal(Severity.LOW)])

    result = compare([risky, noisy, quiet])

    assert result.best_case_scenario_id == "quiet"
    assert result.worst_case_scenario_id == "risky"
    assert rank_scenarios([risky, noisy, quiet]) == ["quiet", "noisy", "risky"]


def test_full_ties_resolve_to_input_order():
    result = compare([_scenario("a", [10] * 5), _scenario("b", [10] * 5)])
    assert result.best_case_scenario_id == "a"
    assert result.worst_case_scenario_id == "a"


def test_needs_two_scenarios():
    with pytest.raises(InvalidParameters):
        compare([_scenario("only", [1] * 3)])
    with pytest.raises(InvalidParameters):
        compare([])


def test_duplicate_ids_are_rejected():
    with pytest.raises(InvalidParameters) as exc_info:
        compare([_scenario("x", [1] * 3), _scenario("x", [2] * 3)])
    assert exc_info.value.field == "scenario_id"


def test_inputs_are_not_mutated():
    scenarios = [
        _scenario("base", [100] * 10, [_signal(Severity.LOW)]),
        _scenario("alt", [80] * 10, [_signal(Severity.CRITICAL, day=5)]),
    ]
    snapshot = copy.deepcopy(scenarios)

    first = compare(scenarios)
    second = compare(scenarios)

    assert scenarios == snapshot
    assert first == second


def test_to_dataframe_flags_best_and_worst():
    result = compare([_scenario("base", [100] * 10), _scenario("alt", [80] * 10)])
    df = result.to_dataframe()

    assert list(df["scenario_id"]) == ["base", "alt"]
    assert df.loc[df["scenario_id"] == "base", "best_case"].item()
    assert df.loc[df["scenario_id"] == "alt", "worst_case"].item()
