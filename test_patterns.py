from datetime import date

from patterns import (
    FilterKind, PeriodFilter, compute_patterns, day_of_week_buckets, heatmap,
    month_of_year_buckets, resolve_heatmap_months, resolve_period_filter
)
from utility_types import ResourceType

BOUNDS = (2024, 2026)


def test_resolve_period_filter():
    assert resolve_period_filter('year', '2025', None, BOUNDS) == PeriodFilter(FilterKind.YEAR, 2025)
    assert resolve_period_filter('month', '2026', '2', BOUNDS) == PeriodFilter(FilterKind.MONTH, 2026, 2)


def test_invalid_filters_fall_back_to_all_time():
    assert resolve_period_filter('year', '2023', None, BOUNDS) == PeriodFilter()
    assert resolve_period_filter('year', 'abc', None, BOUNDS) == PeriodFilter()
    assert resolve_period_filter('month', '2025', '13', BOUNDS) == PeriodFilter()
    assert resolve_period_filter('month', '2025', None, BOUNDS) == PeriodFilter()
    assert resolve_period_filter('week', '2025', '1', BOUNDS) == PeriodFilter()
    assert resolve_period_filter(None, None, None, BOUNDS).kind == FilterKind.ALL


def test_filter_date_ranges():
    assert PeriodFilter(FilterKind.YEAR, 2024).date_range() == (date(2024, 1, 1), date(2024, 12, 31))
    assert PeriodFilter(FilterKind.MONTH, 2024, 2).date_range() == (date(2024, 2, 1), date(2024, 2, 29))
    assert PeriodFilter().date_range() == (None, None)


def test_resolve_heatmap_months():
    assert resolve_heatmap_months('6') == 6
    assert resolve_heatmap_months('0') == 3
    assert resolve_heatmap_months('abc') == 3
    assert resolve_heatmap_months(None, 12) == 12


def test_day_of_week_buckets_are_monday_first(db, seed):
    # Sunday and Monday readings
    seed({'2026-02-01': 7.0, '2026-02-02': 1.0, '2026-02-09': 3.0})
    buckets = day_of_week_buckets(db, ResourceType.ELECTRIC, PeriodFilter())

    assert buckets.labels == ['Mon', 'Tue', 'Wed', 'Thu', 'Fri', 'Sat', 'Sun']
    assert buckets.values == [2.0, None, None, None, None, None, 7.0]


def test_month_of_year_buckets_with_filter(db, seed):
    seed({'2025-01-10': 4.0, '2026-01-10': 8.0, '2026-03-10': 2.0})

    all_time = month_of_year_buckets(db, ResourceType.ELECTRIC, PeriodFilter())
    assert all_time.labels[0] == 'Jan'
    assert all_time.values[0] == 6.0
    assert all_time.values[2] == 2.0

    only_2025 = month_of_year_buckets(db, ResourceType.ELECTRIC, PeriodFilter(FilterKind.YEAR, 2025))
    assert only_2025.values == [4.0] + [None] * 11


def test_heatmap_trailing_window_ends_today(db, seed):
    seed({'2026-02-10': 1.0, '2026-02-20': 2.0, '2026-03-15': 3.0, '2026-03-16': 4.0})
    cells = heatmap(db, ResourceType.ELECTRIC, PeriodFilter(), 1, today=date(2026, 3, 15))
    assert [(c.date, c.total) for c in cells] == [(date(2026, 2, 20), 2.0), (date(2026, 3, 15), 3.0)]


def test_heatmap_uses_filter_range(db, seed):
    seed({'2026-01-31': 1.0, '2026-02-01': 2.0, '2026-02-28': 3.0})
    cells = heatmap(db, ResourceType.ELECTRIC, PeriodFilter(FilterKind.MONTH, 2026, 2), 3,
                    today=date(2026, 10, 1))
    assert [c.date for c in cells] == [date(2026, 2, 1), date(2026, 2, 28)]


def test_compute_patterns_with_comparison(db, seed):
    seed({'2025-02-03': 5.0, '2026-02-02': 9.0})
    seed({'2026-02-02': 500.0}, ResourceType.WATER)
    today = date(2026, 2, 10)

    stats = compute_patterns(db, ResourceType.ELECTRIC, today,
                             PeriodFilter(FilterKind.YEAR, 2026), 3,
                             PeriodFilter(FilterKind.YEAR, 2025), [2025, 2026])
    assert stats.day_of_week.values[0] == 9.0
    assert stats.comparison_day_of_week.values[0] == 5.0
    assert [c.total for c in stats.comparison_heatmap] == [5.0]
    assert stats.available_years == [2025, 2026]


def test_all_time_comparison_has_no_heatmap(db, seed):
    seed({'2026-02-02': 9.0})
    stats = compute_patterns(db, ResourceType.ELECTRIC, date(2026, 2, 10),
                             comparison_filter=PeriodFilter())
    assert stats.comparison_month_of_year.values[1] == 9.0
    assert stats.comparison_heatmap is None
    assert [c.total for c in stats.heatmap] == [9.0]
