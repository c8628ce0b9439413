from datetime import date

import pytest

from analytics import (
    AggregationEngine, PeakDay, PeakMonth, average, find_peak, find_peak_month, percent_change,
    projection
)
from period_calendar import PeriodKey
from utility_types import ResourceType

WEEK_6 = PeriodKey.week(2026, 6)  # Feb 2 - Feb 8, 2026


def test_average_ignores_missing_days():
    assert average([10.0, None, 20.0, None]) == 15.0
    assert average([None, None]) == 0.0
    assert average([]) == 0.0


def test_find_peak_first_occurrence_wins():
    days = [date(2026, 1, d) for d in range(1, 5)]
    assert find_peak(days, [3.0, None, 7.0, 7.0]) == PeakDay(index=2, value=7.0, date=date(2026, 1, 3))
    assert find_peak(days, [None, None, None, None]) is None
    assert find_peak(days, [-2.0, -1.0, None, -3.0]).value == -1.0


def test_projection_only_for_partial_periods():
    assert projection(60.0, 3, 7) == 140.0
    assert projection(0.0, 0, 7) is None
    assert projection(70.0, 7, 7) is None


def test_percent_change_zero_comparison():
    assert percent_change(60.0, 0.0) == 0.0
    assert percent_change(0.0, 0.0) == 0.0
    assert percent_change(60.0, 50.0) == pytest.approx(20.0)
    assert percent_change(25.0, 50.0) == pytest.approx(-50.0)


def test_current_week_with_missing_days(db, seed):
    seed({'2026-02-02': 10.0, '2026-02-03': 20.0, '2026-02-05': 30.0})
    stats = AggregationEngine(db, today=date(2026, 2, 5)).compute(WEEK_6, ResourceType.ELECTRIC)

    assert stats.current.values == [10.0, 20.0, None, 30.0, None, None, None]
    assert stats.total == 60.0
    assert stats.average == 20.0
    assert stats.days_with_data == 3
    assert stats.total_days == 7
    assert stats.peak == PeakDay(index=3, value=30.0, date=date(2026, 2, 5))
    assert stats.projection == 140.0
    assert stats.navigation.is_current
    assert stats.label == "Week 6: Feb 2–8, 2026"


def test_past_period_has_no_projection(db, seed):
    seed({'2026-02-02': 10.0})
    stats = AggregationEngine(db, today=date(2026, 3, 1)).compute(WEEK_6, ResourceType.ELECTRIC)
    assert stats.projection is None
    assert not stats.navigation.is_current
    assert stats.navigation.prev == PeriodKey.week(2026, 5)
    assert stats.navigation.next == PeriodKey.week(2026, 7)


def test_complete_current_period_has_no_projection(db, seed):
    seed({f'2026-02-0{d}': 1.0 for d in range(2, 9)})
    stats = AggregationEngine(db, today=date(2026, 2, 8)).compute(WEEK_6, ResourceType.ELECTRIC)
    assert stats.days_with_data == 7
    assert stats.projection is None


def test_empty_period(db):
    stats = AggregationEngine(db, today=date(2026, 2, 5)).compute(WEEK_6, ResourceType.ELECTRIC)
    assert stats.total == 0.0
    assert stats.average == 0.0
    assert stats.peak is None
    assert stats.projection is None
    assert stats.percent_change == 0.0
    assert (stats.rolling_average, stats.rolling_periods) == (0.0, 0)


def test_comparison_defaults_to_previous_period(db, seed):
    seed({'2026-02-02': 30.0, '2026-02-03': 30.0})
    seed({'2026-01-26': 25.0, '2026-02-01': 25.0})
    stats = AggregationEngine(db, today=date(2026, 3, 1)).compute(WEEK_6, ResourceType.ELECTRIC)

    assert stats.comparison.key == PeriodKey.week(2026, 5)
    assert stats.previous_total == 50.0
    assert stats.percent_change == pytest.approx(20.0)


def test_explicit_comparison_period(db, seed):
    seed({'2026-02-02': 30.0, '2025-02-03': 10.0})
    engine = AggregationEngine(db, today=date(2026, 3, 1))
    stats = engine.compute(WEEK_6, ResourceType.ELECTRIC, compare_to=PeriodKey.week(2025, 6))
    assert stats.previous_total == 10.0
    assert stats.percent_change == pytest.approx(200.0)

    with pytest.raises(ValueError):
        engine.compute(WEEK_6, ResourceType.ELECTRIC, compare_to=PeriodKey.month(2026, 1))


def test_rolling_average_skips_periods_without_data(db, seed):
    # Week 5 totals 50 and week 3 totals 30; weeks 4 and 2 are empty
    seed({'2026-01-27': 50.0, '2026-01-13': 30.0})
    # Week 1 is outside the four-week window
    seed({'2025-12-30': 1000.0})
    stats = AggregationEngine(db, today=date(2026, 3, 1)).compute(WEEK_6, ResourceType.ELECTRIC)
    assert stats.rolling_average == 40.0
    assert stats.rolling_periods == 2


def test_week_one_spans_calendar_years(db, seed):
    seed({'2025-12-29': 5.0, '2026-01-04': 7.0, '2025-12-28': 100.0})
    stats = AggregationEngine(db, today=date(2026, 2, 1)).compute(
        PeriodKey.week(2026, 1), ResourceType.ELECTRIC)
    assert stats.total == 12.0
    assert stats.current.dates[0] == date(2025, 12, 29)


def test_month_view_picks_up_active_target(db, seed):
    seed({'2026-02-01': 10.0, '2026-02-10': 20.0})
    db.add_target('monthly', ResourceType.ELECTRIC, 400.0, '2026-01-01')
    stats = AggregationEngine(db, today=date(2026, 2, 14)).compute(
        PeriodKey.month(2026, 2), ResourceType.ELECTRIC)

    assert stats.total_days == 28
    assert stats.target.value == 400.0
    assert stats.projection == pytest.approx(420.0)


def test_year_view_monthly_breakdown(db, seed):
    seed({'2025-01-15': 5.0, '2025-01-20': 1.0, '2025-03-01': 7.0})
    seed({'2024-12-31': 9.0})
    stats = AggregationEngine(db, today=date(2026, 6, 1)).compute(
        PeriodKey.for_year(2025), ResourceType.ELECTRIC)

    assert stats.total_days == 365
    assert stats.monthly_totals[:3] == [6.0, None, 7.0]
    assert len(stats.monthly_totals) == 12
    assert stats.comparison_monthly_totals[11] == 9.0
    assert stats.rolling_periods == 1
    assert stats.monthly_average == 6.5
    assert stats.peak_month == PeakMonth(month=3, value=7.0)


def test_resources_are_isolated(db, seed):
    seed({'2026-02-02': 10.0})
    seed({'2026-02-02': 900.0}, ResourceType.WATER)
    engine = AggregationEngine(db, today=date(2026, 3, 1))
    assert engine.compute(WEEK_6, ResourceType.WATER).total == 900.0
    assert engine.compute(WEEK_6, ResourceType.ELECTRIC).total == 10.0


def test_recomputing_is_idempotent(db, seed):
    seed({'2026-02-02': 10.5, '2026-02-04': 3.25})
    engine = AggregationEngine(db, today=date(2026, 2, 5))
    first = engine.compute(WEEK_6, ResourceType.ELECTRIC)
    second = engine.compute(WEEK_6, ResourceType.ELECTRIC)
    assert (first.total, first.average, first.peak) == (second.total, second.average, second.peak)


def test_month_budget(db, seed):
    seed({'2026-02-01': 10.0, '2026-02-02': 10.0})
    engine = AggregationEngine(db, today=date(2026, 2, 2))

    budget = engine.month_budget(ResourceType.ELECTRIC)
    assert budget.key == PeriodKey.month(2026, 2)
    assert budget.projection == 280.0
    assert budget.on_track is None

    db.add_target('monthly', ResourceType.ELECTRIC, 300.0, '2026-02-01')
    assert engine.month_budget(ResourceType.ELECTRIC).on_track is True

    db.add_target('monthly', ResourceType.ELECTRIC, 250.0, '2026-02-02')
    assert engine.month_budget(ResourceType.ELECTRIC).on_track is False


def test_find_peak_month():
    assert find_peak_month([None] * 12) is None
    assert find_peak_month([4.0, None, 9.0, 9.0] + [None] * 8) == PeakMonth(month=3, value=9.0)


def test_week_view_has_no_monthly_summary(db, seed):
    seed({'2026-02-02': 10.0})
    stats = AggregationEngine(db, today=date(2026, 3, 1)).compute(WEEK_6, ResourceType.ELECTRIC)
    assert stats.monthly_totals == []
    assert stats.peak_month is None
