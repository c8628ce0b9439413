"""
MeterHQ - Consumption Patterns
Seasonal buckets (weekday and month-of-year averages) and the daily heatmap,
optionally restricted to a year or month and paired with a comparison filter.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import List, Optional, Tuple

from dateutil.relativedelta import relativedelta

from database import DatabaseManager
from period_calendar import DAY_NAMES, SHORT_MONTH_NAMES, month_dates
from utility_types import ResourceType


logger = logging.getLogger(__name__)

DEFAULT_HEATMAP_MONTHS = 3

# The database numbers weekdays Sunday=0..Saturday=6; views list Monday first
WEEKDAY_ORDER = [1, 2, 3, 4, 5, 6, 0]


class FilterKind(str, Enum):
    ALL = 'all'
    YEAR = 'year'
    MONTH = 'month'


@dataclass(frozen=True)
class PeriodFilter:
    """Restricts pattern queries to all time, one year, or one month."""
    kind: FilterKind = FilterKind.ALL
    year: Optional[int] = None
    month: Optional[int] = None

    @property
    def is_active(self) -> bool:
        return self.kind != FilterKind.ALL

    def date_range(self) -> Tuple[Optional[date], Optional[date]]:
        """Inclusive (start, end) dates, or (None, None) for all time."""
        if self.kind == FilterKind.YEAR:
            return date(self.year, 1, 1), date(self.year, 12, 31)
        if self.kind == FilterKind.MONTH:
            days = month_dates(self.year, self.month)
            return days[0], days[-1]
        return None, None


@dataclass
class Buckets:
    labels: List[str]
    values: List[Optional[float]]


@dataclass(frozen=True)
class HeatmapCell:
    date: date
    total: float


@dataclass
class PatternStats:
    resource_type: ResourceType
    period_filter: PeriodFilter
    day_of_week: Buckets
    month_of_year: Buckets
    heatmap: List[HeatmapCell]
    heatmap_months: int
    available_years: List[int] = field(default_factory=list)
    comparison_filter: Optional[PeriodFilter] = None
    comparison_day_of_week: Optional[Buckets] = None
    comparison_month_of_year: Optional[Buckets] = None
    comparison_heatmap: Optional[List[HeatmapCell]] = None


# ==================== Request Parameters ====================

def parse_int(value) -> Optional[int]:
    """Parse an integer request parameter, None when missing or not numeric."""
    if value is None:
        return None
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def resolve_period_filter(period: Optional[str], year: Optional[str], month: Optional[str],
                          year_bounds: Tuple[int, int]) -> PeriodFilter:
    """
    Build a filter from raw parameters.

    The year must fall inside ``year_bounds`` (first and last year with data) and the month
    inside 1-12; anything else falls back to all time.
    """
    year_value = parse_int(year)
    month_value = parse_int(month)
    min_year, max_year = year_bounds
    valid_year = year_value is not None and min_year <= year_value <= max_year

    if period == FilterKind.YEAR.value and valid_year:
        return PeriodFilter(FilterKind.YEAR, year_value)
    if (period == FilterKind.MONTH.value and valid_year
            and month_value is not None and 1 <= month_value <= 12):
        return PeriodFilter(FilterKind.MONTH, year_value, month_value)
    return PeriodFilter()


def resolve_heatmap_months(value, default: int = DEFAULT_HEATMAP_MONTHS) -> int:
    months = parse_int(value)
    if months is None or months <= 0:
        return default
    return months


# ==================== Buckets ====================

def day_of_week_buckets(db: DatabaseManager, resource_type: ResourceType,
                        period_filter: PeriodFilter) -> Buckets:
    """Average per weekday, Monday through Sunday. None for weekdays without data."""
    start, end = period_filter.date_range()
    by_weekday = db.weekday_averages(resource_type, start, end)
    return Buckets(
        labels=list(DAY_NAMES),
        values=[by_weekday.get(dow) for dow in WEEKDAY_ORDER],
    )


def month_of_year_buckets(db: DatabaseManager, resource_type: ResourceType,
                          period_filter: PeriodFilter) -> Buckets:
    """Average per calendar month, January through December."""
    start, end = period_filter.date_range()
    by_month = db.month_averages(resource_type, start, end)
    return Buckets(
        labels=SHORT_MONTH_NAMES[1:],
        values=[by_month.get(month) for month in range(1, 13)],
    )


def heatmap(db: DatabaseManager, resource_type: ResourceType, period_filter: PeriodFilter,
            months: int, today: date) -> List[HeatmapCell]:
    """
    Daily totals for the filter's range, or for the trailing ``months`` months
    ending ``today`` when the filter is all time.
    """
    if period_filter.is_active:
        start, end = period_filter.date_range()
    else:
        start, end = today - relativedelta(months=max(months, 1)), today
    return [HeatmapCell(day, total) for day, total in db.daily_totals(resource_type, start, end)]


def compute_patterns(db: DatabaseManager, resource_type: ResourceType, today: date,
                     period_filter: PeriodFilter = PeriodFilter(),
                     heatmap_months: int = DEFAULT_HEATMAP_MONTHS,
                     comparison_filter: Optional[PeriodFilter] = None,
                     available_years: Optional[List[int]] = None) -> PatternStats:
    """Compute all pattern views for a filter and an optional comparison filter."""
    stats = PatternStats(
        resource_type=resource_type,
        period_filter=period_filter,
        day_of_week=day_of_week_buckets(db, resource_type, period_filter),
        month_of_year=month_of_year_buckets(db, resource_type, period_filter),
        heatmap=heatmap(db, resource_type, period_filter, heatmap_months, today),
        heatmap_months=heatmap_months,
        available_years=available_years or [],
    )

    if comparison_filter is not None:
        stats.comparison_filter = comparison_filter
        stats.comparison_day_of_week = day_of_week_buckets(db, resource_type, comparison_filter)
        stats.comparison_month_of_year = month_of_year_buckets(db, resource_type, comparison_filter)
        if comparison_filter.is_active:
            stats.comparison_heatmap = heatmap(db, resource_type, comparison_filter,
                                               heatmap_months, today)

    logger.debug("Computed %s patterns for %s", resource_type.value, period_filter.kind.value)
    return stats
