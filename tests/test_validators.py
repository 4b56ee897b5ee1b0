from datetime import timedelta

from core.schema import BusinessContext, DataPoint, DataQuality
from scenarios.validators import assess_data_quality, validate_context
from tests.helpers import AS_OF, history, make_context


def test_clean_context_passes():
    result = validate_context(make_context())

    assert result.is_valid
    assert result.warnings == []
    assert result.history_days == 60
    assert "All checks passed" in result.summary()
    assert assess_data_quality(make_context()) == DataQuality.FULL


def test_negative_headline_figures_are_errors():
    context = BusinessContext("biz-1", "urban", monthly_revenue=-10, employee_count=-1)
    result = validate_context(context)

    assert not result.is_valid
    assert len(result.errors) == 2
    assert "ERRORS (2)" in result.summary()


def test_short_history_is_sparse():
    context = make_context(history_days=10)
    result = validate_context(context)

    assert result.is_valid
    assert any("10 days" in w for w in result.warnings)
    assert assess_data_quality(context) == DataQuality.SPARSE


def test_missing_history_is_sparse():
    context = make_context(history_days=0)
    assert assess_data_quality(context) == DataQuality.SPARSE


def test_low_confidence_history_is_sparse():
    points = history(60, confidence=0.3)
    context = BusinessContext("biz-1", "urban", 120000, 10, revenue_history=points)

    result = validate_context(context)

    assert any("confidence" in w for w in result.warnings)
    assert assess_data_quality(context, validation=result) == DataQuality.SPARSE


def test_gaps_and_duplicates_are_warnings():
    points = list(history(40))
    del points[10:13]
    points.append(DataPoint(date=AS_OF - timedelta(days=1), value=10))
    context = BusinessContext("biz-1", "urban", 120000, 10, revenue_history=points)

    result = validate_context(context)

    assert result.is_valid
    assert any("3 missing days" in w for w in result.warnings)
    assert any("duplicate" in w for w in result.warnings)


def test_negative_observations_are_errors():
    points = history(40) + [DataPoint(date=AS_OF - timedelta(days=50), value=-5)]
    result = validate_context(BusinessContext("biz-1", "urban", 120000, 10, revenue_history=points))
    assert not result.is_valid
