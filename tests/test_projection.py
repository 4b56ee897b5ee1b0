from datetime import timedelta
from decimal import Decimal

import numpy as np
import pytest
from hypothesis import given, strategies as st

from core.errors import InsufficientData, InvalidParameters
from core.schema import (
    FLAG_EXTRAPOLATED,
    FLAG_SPARSE_HISTORY,
    DataQuality,
    DecisionType,
    Forecast,
    ScenarioImpact,
)
from core.utils import add_days
from engine.projection import project, ramp_factors
from tests.helpers import AS_OF

HIRING = ScenarioImpact(
    decision_type=DecisionType.HIRING,
    recurring_cost=Decimal("20000"),
    timing_offset_days=1,
    operational_changes={"employee_count": 1.0},
)


def test_timeline_is_complete_and_consecutive(flat_forecast):
    projection = project(flat_forecast, HIRING, 90)

    assert len(projection.timeline) == 90
    assert projection.start_date == AS_OF
    assert projection.end_date == add_days(AS_OF, 89)
    for i, tp in enumerate(projection.timeline):
        assert tp.date == AS_OF + timedelta(days=i)


def test_monthly_salary_is_spread_per_day(flat_forecast):
    projection = project(flat_forecast, HIRING, 90)
    timeline = projection.timeline

    assert timeline[0].cash_out == Decimal("0.00")
    assert timeline[1].cash_out == Decimal("666.67")
    assert timeline[1].net_cash == Decimal("3333.33")
    assert projection.summary.net_change == Decimal("300666.37")
    assert projection.summary.total_cash_in == Decimal("360000.00")


def test_initial_cost_lands_on_activation_day(flat_forecast):
    impact = ScenarioImpact(decision_type=DecisionType.CUSTOM, initial_cost=Decimal("10000"), timing_offset_days=5)
    projection = project(flat_forecast, impact, 30)

    outs = [tp.cash_out for tp in projection.timeline]
    assert outs[5] == Decimal("10000.00")
    assert sum(outs) == Decimal("10000.00")


def test_break_even_is_first_non_negative_day(flat_forecast):
    impact = ScenarioImpact(decision_type=DecisionType.CUSTOM, initial_cost=Decimal("50000"), timing_offset_days=0)
    projection = project(flat_forecast, impact, 30)

    # 4000 * (k + 1) - 50000 >= 0 first at k = 12
    assert projection.summary.break_even_date == add_days(AS_OF, 12)
    assert projection.timeline[11].cumulative_net < 0
    assert projection.summary.lowest_point == Decimal("-46000.00")
    assert projection.summary.lowest_point_date == AS_OF


def test_break_even_absent_when_never_reached(flat_forecast):
    impact = ScenarioImpact(decision_type=DecisionType.CUSTOM, initial_cost=Decimal("1000000"), timing_offset_days=0)
    projection = project(flat_forecast, impact, 90)

    assert projection.summary.break_even_date is None
    assert all(tp.cumulative_net < 0 for tp in projection.timeline)


def test_revenue_uplift_ramps_in():
    baseline = Forecast.flat("biz-1", AS_OF, 1000, 10)
    impact = ScenarioImpact(
        decision_type=DecisionType.CUSTOM,
        revenue_multiplier=0.5,
        timing_offset_days=2,
        revenue_ramp_days=4,
    )
    projection = project(baseline, impact, 10)

    cash_in = [tp.cash_in for tp in projection.timeline]
    assert cash_in[:3] == [Decimal("1000.00")] * 3
    assert cash_in[3] == Decimal("1125.00")
    assert cash_in[6:] == [Decimal("1500.00")] * 4


def test_ramp_factors():
    np.testing.assert_allclose(
        ramp_factors(10, 2, 4),
        [0, 0, 0, 0.25, 0.5, 0.75, 1, 1, 1, 1],
    )
    np.testing.assert_allclose(ramp_factors(6, 1, 0, duration_days=2), [0, 1, 1, 0, 0, 0])


def test_impact_beyond_horizon_never_activates(flat_forecast):
    impact = ScenarioImpact(
        decision_type=DecisionType.HIRING,
        initial_cost=Decimal("5000"),
        recurring_cost=Decimal("20000"),
        timing_offset_days=120,
    )
    projection = project(flat_forecast, impact, 90)
    assert projection.summary.total_cash_out == Decimal("0.00")


def test_short_baseline_is_extrapolated_with_wider_bounds():
    baseline = Forecast.flat("biz-1", AS_OF, 4000, 30)
    projection = project(baseline, HIRING, 90)

    assert len(projection.timeline) == 90
    assert FLAG_EXTRAPOLATED in projection.quality_flags
    assert projection.timeline[60].cash_in == Decimal("4000.00")
    assert projection.timeline[29].confidence == pytest.approx(0.9)
    assert projection.timeline[30].confidence < projection.timeline[29].confidence
    assert projection.timeline[89].confidence < projection.timeline[30].confidence


def test_sparse_history_lowers_confidence(flat_forecast):
    full = project(flat_forecast, HIRING, 90)
    sparse = project(flat_forecast, HIRING, 90, data_quality=DataQuality.SPARSE)

    assert len(sparse.timeline) == 90
    assert sparse.data_quality == DataQuality.SPARSE
    assert FLAG_SPARSE_HISTORY in sparse.quality_flags
    assert sparse.timeline[0].confidence == pytest.approx(0.72)
    assert all(s.confidence < f.confidence for s, f in zip(sparse.timeline, full.timeline))
    assert sparse.summary == full.summary


def test_invalid_horizon(flat_forecast):
    with pytest.raises(InvalidParameters) as exc_info:
        project(flat_forecast, HIRING, 0)
    assert exc_info.value.field == "horizon_days"


def test_empty_baseline():
    with pytest.raises(InsufficientData):
        project(Forecast("biz-1", AS_OF, (), (), ()), HIRING, 90)


def test_to_dataframe_has_one_row_per_day(flat_forecast):
    df = project(flat_forecast, HIRING, 45).to_dataframe()
    assert len(df) == 45
    assert list(df.columns) == ["date", "cash_in", "cash_out", "net_cash", "cumulative_net", "confidence"]


money = st.decimals(min_value=Decimal("0"), max_value=Decimal("100000"), places=2, allow_nan=False, allow_infinity=False)


@given(
    daily=money,
    baseline_days=st.integers(min_value=1, max_value=120),
    horizon=st.integers(min_value=1, max_value=120),
    initial=money,
    recurring=money,
    multiplier=st.floats(min_value=0.0, max_value=3.0, allow_nan=False, allow_infinity=False),
    offset=st.integers(min_value=0, max_value=130),
    ramp=st.integers(min_value=0, max_value=60),
    duration=st.one_of(st.none(), st.integers(min_value=1, max_value=90)),
)
def test_projection_invariants(daily, baseline_days, horizon, initial, recurring, multiplier, offset, ramp, duration):
    baseline = Forecast.flat("biz-1", AS_OF, daily, baseline_days)
    impact = ScenarioImpact(
        decision_type=DecisionType.CUSTOM,
        initial_cost=initial,
        recurring_cost=recurring,
        revenue_multiplier=multiplier,
        timing_offset_days=offset,
        revenue_ramp_days=ramp,
        cost_ramp_days=ramp,
        duration_days=duration,
    )
    projection = project(baseline, impact, horizon)
    timeline = projection.timeline

    # completeness
    assert len(timeline) == horizon
    assert [tp.date for tp in timeline] == [add_days(AS_OF, i) for i in range(horizon)]

    # cumulative consistency
    running = Decimal("0.00")
    for tp in timeline:
        assert tp.net_cash == tp.cash_in - tp.cash_out
        running += tp.net_cash
        assert tp.cumulative_net == running
        assert 0.0 <= tp.confidence <= 1.0
    summary = projection.summary
    assert summary.net_change == timeline[-1].cumulative_net
    assert summary.lowest_point == min(tp.cumulative_net for tp in timeline)
    assert summary.highest_point == max(tp.cumulative_net for tp in timeline)

    # break-even correctness
    non_negative = [tp.date for tp in timeline if tp.cumulative_net >= 0]
    assert summary.break_even_date == (non_negative[0] if non_negative else None)

    # determinism
    assert project(baseline, impact, horizon) == projection
