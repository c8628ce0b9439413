from datetime import date, timedelta

from period_calendar import (
    Granularity, PeriodKey, current_period, format_date_range, format_day_of_week,
    format_month_label, iso_week_of, monday_of, month_dates, navigate_month, navigate_week,
    navigate_year, period_contains, period_dates, period_label, shift_period, week_dates,
    year_dates, year_months
)


def test_week_dates_contain_the_date_and_start_monday():
    day = date(2019, 12, 20)
    while day <= date(2027, 1, 10):
        dates = week_dates(*iso_week_of(day))
        assert day in dates
        assert len(dates) == 7
        assert dates[0].weekday() == 0
        assert all(b - a == timedelta(days=1) for a, b in zip(dates, dates[1:]))
        day += timedelta(days=3)


def test_iso_week_year_boundary():
    assert iso_week_of("2025-12-29") == (2026, 1)
    assert iso_week_of(date(2027, 1, 3)) == (2026, 53)


def test_navigate_week_across_years():
    assert navigate_week(2026, 53, 1) == (2027, 1)
    year, week = navigate_week(2026, 1, -1)
    assert year == 2025
    assert week > 50


def test_monday_of_week_53():
    assert monday_of(2026, 53) == date(2026, 12, 28)
    # 2025 has 52 weeks, so week 53 rolls into 2026 week 1
    assert monday_of(2025, 53) == date(2025, 12, 29)


def test_month_navigation_and_dates():
    assert navigate_month(2026, 12, 1) == (2027, 1)
    assert navigate_month(2026, 1, -1) == (2025, 12)
    assert len(month_dates(2024, 2)) == 29
    assert len(month_dates(2026, 2)) == 28
    assert month_dates(2026, 4)[-1] == date(2026, 4, 30)


def test_year_helpers():
    assert len(year_dates(2024)) == 366
    assert len(year_dates(2026)) == 365
    assert year_months(2026)[0] == (2026, 1)
    assert len(year_months(2026)) == 12
    assert navigate_year(2026, -1) == 2025


def test_shift_period():
    assert shift_period(PeriodKey.week(2026, 1), -1) == PeriodKey.week(2025, 52)
    assert shift_period(PeriodKey.week(2026, 6), -4) == PeriodKey.week(2026, 2)
    assert shift_period(PeriodKey.month(2026, 1), -3) == PeriodKey.month(2025, 10)
    assert shift_period(PeriodKey.for_year(2026), 1) == PeriodKey.for_year(2027)


def test_current_period_and_contains():
    today = date(2026, 1, 2)
    assert current_period(Granularity.WEEK, today) == PeriodKey.week(2026, 1)
    assert current_period(Granularity.MONTH, today) == PeriodKey.month(2026, 1)
    assert current_period(Granularity.YEAR, today) == PeriodKey.for_year(2026)
    assert period_contains(PeriodKey.week(2026, 1), date(2025, 12, 29))
    assert not period_contains(PeriodKey.month(2026, 1), date(2025, 12, 29))


def test_period_dates():
    assert period_dates(PeriodKey.week(2026, 6))[0] == date(2026, 2, 2)
    assert len(period_dates(PeriodKey.month(2026, 2))) == 28
    assert len(period_dates(PeriodKey.for_year(2026))) == 365


def test_labels():
    assert period_label(PeriodKey.week(2026, 6)) == "Week 6: Feb 2–8, 2026"
    assert period_label(PeriodKey.week(2026, 5)) == "Week 5: Jan 26 – Feb 1, 2026"
    assert period_label(PeriodKey.month(2026, 2)) == "February 2026"
    assert period_label(PeriodKey.for_year(2026)) == "2026"
    assert format_date_range("2025-12-29", "2026-01-04") == "Dec 29 – Jan 4, 2026"
    assert format_date_range("2025-03-05", "2026-03-10") == "Mar 5 – Mar 10, 2026"
    assert format_month_label(2026, 12) == "December 2026"
    assert format_day_of_week("2026-02-02") == "Mon"
    assert format_day_of_week(date(2026, 2, 8)) == "Sun"
