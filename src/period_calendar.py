"""
MeterHQ - Period Calendar
ISO week, calendar month and year arithmetic used by the analytics views and importers.

All functions take plain ``datetime.date`` values (ISO strings are accepted where noted)
and never read the wall clock; callers pass the reference date in.
"""

from calendar import monthrange
from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum
from typing import List, Optional, Tuple, Union

from dateutil.relativedelta import relativedelta


MONTH_NAMES = ['', 'January', 'February', 'March', 'April', 'May', 'June',
               'July', 'August', 'September', 'October', 'November', 'December']
SHORT_MONTH_NAMES = ['', 'Jan', 'Feb', 'Mar', 'Apr', 'May', 'Jun',
                     'Jul', 'Aug', 'Sep', 'Oct', 'Nov', 'Dec']
DAY_NAMES = ['Mon', 'Tue', 'Wed', 'Thu', 'Fri', 'Sat', 'Sun']

DateLike = Union[date, str]


class Granularity(str, Enum):
    """Aggregation period size."""
    WEEK = 'week'
    MONTH = 'month'
    YEAR = 'year'


@dataclass(frozen=True)
class PeriodKey:
    """
    Identifies one aggregation period.

    ``ordinal`` is the ISO week for WEEK, the month (1-12) for MONTH and None for YEAR.
    ``year`` is the ISO week-numbering year for WEEK keys.
    """
    granularity: Granularity
    year: int
    ordinal: Optional[int] = None

    @classmethod
    def week(cls, iso_year: int, iso_week: int) -> 'PeriodKey':
        return cls(Granularity.WEEK, iso_year, iso_week)

    @classmethod
    def month(cls, year: int, month: int) -> 'PeriodKey':
        return cls(Granularity.MONTH, year, month)

    @classmethod
    def for_year(cls, year: int) -> 'PeriodKey':
        return cls(Granularity.YEAR, year, None)


def to_date(value: DateLike) -> date:
    """Coerce a ``YYYY-MM-DD`` string (or date) to a date."""
    if isinstance(value, str):
        return date.fromisoformat(value[:10])
    return value


# ==================== Week Operations ====================

def iso_week_of(value: DateLike) -> Tuple[int, int]:
    """Return (iso_year, iso_week) for a date. The ISO year can differ from the calendar year."""
    iso = to_date(value).isocalendar()
    return iso[0], iso[1]


def monday_of(iso_year: int, iso_week: int) -> date:
    """Return the Monday that starts an ISO week."""
    # Counting from week 1 lets an out-of-range week 53 roll into the next ISO year.
    return date.fromisocalendar(iso_year, 1, 1) + timedelta(weeks=iso_week - 1)


def week_dates(iso_year: int, iso_week: int) -> List[date]:
    """Get the 7 dates of an ISO week, Monday through Sunday."""
    monday = monday_of(iso_year, iso_week)
    return [monday + timedelta(days=i) for i in range(7)]


def navigate_week(iso_year: int, iso_week: int, direction: int) -> Tuple[int, int]:
    """Step one week forward (1) or back (-1), recomputing the ISO year at boundaries."""
    return iso_week_of(monday_of(iso_year, iso_week) + timedelta(weeks=direction))


def current_week(today: date) -> Tuple[int, int]:
    return iso_week_of(today)


# ==================== Month Operations ====================

def month_dates(year: int, month: int) -> List[date]:
    """Get every date in a calendar month."""
    days = monthrange(year, month)[1]
    return [date(year, month, day) for day in range(1, days + 1)]


def navigate_month(year: int, month: int, direction: int) -> Tuple[int, int]:
    """Step one calendar month forward or back with year rollover."""
    moved = date(year, month, 1) + relativedelta(months=direction)
    return moved.year, moved.month


def current_month(today: date) -> Tuple[int, int]:
    return today.year, today.month


# ==================== Year Operations ====================

def year_dates(year: int) -> List[date]:
    """Get every date in a calendar year."""
    start = date(year, 1, 1)
    days = (date(year + 1, 1, 1) - start).days
    return [start + timedelta(days=i) for i in range(days)]


def year_months(year: int) -> List[Tuple[int, int]]:
    """Get the 12 (year, month) pairs of a year."""
    return [(year, month) for month in range(1, 13)]


def navigate_year(year: int, direction: int) -> int:
    return year + direction


def current_year(today: date) -> int:
    return today.year


# ==================== Generic Period Operations ====================

def period_dates(key: PeriodKey) -> List[date]:
    """Resolve a period to its ordered date sequence."""
    if key.granularity == Granularity.WEEK:
        return week_dates(key.year, key.ordinal)
    if key.granularity == Granularity.MONTH:
        return month_dates(key.year, key.ordinal)
    return year_dates(key.year)


def shift_period(key: PeriodKey, steps: int) -> PeriodKey:
    """Move a period by ``steps`` same-granularity periods (negative goes back)."""
    if key.granularity == Granularity.WEEK:
        moved = monday_of(key.year, key.ordinal) + timedelta(weeks=steps)
        return PeriodKey.week(*iso_week_of(moved))
    if key.granularity == Granularity.MONTH:
        moved = date(key.year, key.ordinal, 1) + relativedelta(months=steps)
        return PeriodKey.month(moved.year, moved.month)
    return PeriodKey.for_year(key.year + steps)


def current_period(granularity: Granularity, today: date) -> PeriodKey:
    """The period of the given granularity containing ``today``."""
    if granularity == Granularity.WEEK:
        return PeriodKey.week(*current_week(today))
    if granularity == Granularity.MONTH:
        return PeriodKey.month(*current_month(today))
    return PeriodKey.for_year(current_year(today))


def period_contains(key: PeriodKey, day: date) -> bool:
    return current_period(key.granularity, day) == key


def period_label(key: PeriodKey) -> str:
    """Human-readable name for a period."""
    if key.granularity == Granularity.WEEK:
        dates = week_dates(key.year, key.ordinal)
        return f"Week {key.ordinal}: {format_date_range(dates[0], dates[-1])}"
    if key.granularity == Granularity.MONTH:
        return format_month_label(key.year, key.ordinal)
    return str(key.year)


# ==================== Labels ====================

def format_date_range(start: DateLike, end: DateLike) -> str:
    """
    Format a date range.

    Same month:  "Feb 3–9, 2026"
    Cross month: "Jan 29 – Feb 4, 2026"
    """
    start = to_date(start)
    end = to_date(end)
    start_month = SHORT_MONTH_NAMES[start.month]
    end_month = SHORT_MONTH_NAMES[end.month]

    if (start.year, start.month) == (end.year, end.month):
        return f"{start_month} {start.day}–{end.day}, {end.year}"
    return f"{start_month} {start.day} – {end_month} {end.day}, {end.year}"


def format_month_label(year: int, month: int) -> str:
    """E.g. "February 2026"."""
    return f"{MONTH_NAMES[month]} {year}"


def format_short_month(month: int) -> str:
    return SHORT_MONTH_NAMES[month]


def format_day_of_week(value: DateLike) -> str:
    """Short weekday name (Mon..Sun)."""
    return DAY_NAMES[to_date(value).weekday()]
