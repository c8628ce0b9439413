"""
MeterHQ - Reports
Request-level entry points used by the command line (and any other front end).

Each function samples "today" once, turns raw string parameters into periods, falls back
to the current period when they are missing or invalid, and returns a ``Result`` instead
of raising.
"""

import logging
import sqlite3
from datetime import date
from typing import Callable, Dict, List, Optional

from analytics import AggregationEngine, BudgetStats, PeriodStats
from database import DatabaseManager, Target
from errors import ErrorKind, Result
from gaps import DateGap, find_date_gaps
from patterns import (
    PatternStats, compute_patterns, parse_int, resolve_heatmap_months, resolve_period_filter
)
from period_calendar import Granularity, PeriodKey, current_period, iso_week_of, monday_of
from utility_types import PeriodType, ResourceType, parse_resource


logger = logging.getLogger(__name__)

# Years outside this range fall back to the current period
MIN_YEAR = 1900
MAX_YEAR = 9998


def _run(action: Callable[[], object]) -> Result:
    """Run one request, converting failures into error results."""
    try:
        return Result.success(action())
    except sqlite3.Error as e:
        logger.exception("Database error")
        return Result.failure(ErrorKind.STORE, f"Database error: {e}")
    except ValueError as e:
        return Result.failure(ErrorKind.INVALID_INPUT, str(e))
    except OverflowError:
        return Result.failure(ErrorKind.INVALID_INPUT, "Period is out of range.")


# ==================== Parameters ====================

def resolve_resource(db: DatabaseManager, value: Optional[str] = None) -> ResourceType:
    """Explicit resource code, else the configured active resource."""
    if value is None:
        value = db.get_config('active_resource')
    return parse_resource(value)


def set_active_resource(db: DatabaseManager, value: Optional[str]) -> Result[ResourceType]:
    """Persist the resource type used when a request does not name one."""
    resource_type = parse_resource(value)

    def save() -> ResourceType:
        db.set_config('active_resource', resource_type.value)
        return resource_type

    return _run(save)


def parse_period_key(granularity: Granularity, year, ordinal=None) -> Optional[PeriodKey]:
    """Build a key from raw parameters, None if they are missing or out of range."""
    year_value = parse_int(year)
    if year_value is None or not MIN_YEAR <= year_value <= MAX_YEAR:
        return None

    if granularity == Granularity.YEAR:
        return PeriodKey.for_year(year_value)

    ordinal_value = parse_int(ordinal)
    upper = 53 if granularity == Granularity.WEEK else 12
    if ordinal_value is None or not 1 <= ordinal_value <= upper:
        return None
    if granularity == Granularity.WEEK:
        # Week 53 of a 52-week year is week 1 of the next ISO year
        return PeriodKey.week(*iso_week_of(monday_of(year_value, ordinal_value)))
    return PeriodKey(granularity, year_value, ordinal_value)


def resolve_period_key(granularity: Granularity, today: date, year, ordinal=None) -> PeriodKey:
    """Like ``parse_period_key`` but falls back to the current period."""
    return parse_period_key(granularity, year, ordinal) or current_period(granularity, today)


# ==================== Period Views ====================

def period_report(db: DatabaseManager, granularity: Granularity, resource: Optional[str] = None,
                  year=None, ordinal=None, compare_year=None, compare_ordinal=None,
                  today: Optional[date] = None) -> Result[PeriodStats]:
    today = today or date.today()

    def build() -> PeriodStats:
        resource_type = resolve_resource(db, resource)
        key = resolve_period_key(granularity, today, year, ordinal)
        compare_to = parse_period_key(granularity, compare_year, compare_ordinal)
        return AggregationEngine(db, today).compute(key, resource_type, compare_to)

    return _run(build)


def weekly_report(db: DatabaseManager, resource: Optional[str] = None, year=None, week=None,
                  compare_year=None, compare_week=None, today: Optional[date] = None) -> Result[PeriodStats]:
    return period_report(db, Granularity.WEEK, resource, year, week, compare_year, compare_week, today)


def monthly_report(db: DatabaseManager, resource: Optional[str] = None, year=None, month=None,
                   compare_year=None, compare_month=None, today: Optional[date] = None) -> Result[PeriodStats]:
    return period_report(db, Granularity.MONTH, resource, year, month, compare_year, compare_month, today)


def yearly_report(db: DatabaseManager, resource: Optional[str] = None, year=None,
                  compare_year=None, today: Optional[date] = None) -> Result[PeriodStats]:
    return period_report(db, Granularity.YEAR, resource, year, None, compare_year, None, today)


def budget_report(db: DatabaseManager, resource: Optional[str] = None,
                  today: Optional[date] = None) -> Result[BudgetStats]:
    today = today or date.today()
    return _run(lambda: AggregationEngine(db, today).month_budget(resolve_resource(db, resource)))


# ==================== Patterns ====================

def patterns_report(db: DatabaseManager, resource: Optional[str] = None, period: Optional[str] = None,
                    year=None, month=None, months=None, compare_period: Optional[str] = None,
                    compare_year=None, compare_month=None,
                    today: Optional[date] = None) -> Result[PatternStats]:
    today = today or date.today()

    def build() -> PatternStats:
        resource_type = resolve_resource(db, resource)
        bounds = db.min_max_reading_year(resource_type) or (today.year, today.year)
        available_years = list(range(bounds[0], bounds[1] + 1))

        period_filter = resolve_period_filter(period, year, month, bounds)
        comparison_filter = None
        if compare_period is not None:
            comparison_filter = resolve_period_filter(compare_period, compare_year, compare_month, bounds)

        configured = resolve_heatmap_months(db.get_config('heatmap_months'))
        heatmap_months = resolve_heatmap_months(months, configured)

        return compute_patterns(db, resource_type, today, period_filter, heatmap_months,
                                comparison_filter, available_years)

    return _run(build)


# ==================== Data Quality ====================

def gaps_report(db: DatabaseManager, resource: Optional[str] = None) -> Result[List[DateGap]]:
    return _run(lambda: find_date_gaps(db.distinct_dates(resolve_resource(db, resource))))


# ==================== Targets ====================

def active_targets_report(db: DatabaseManager, resource: Optional[str] = None,
                          today: Optional[date] = None) -> Result[Dict[PeriodType, Optional[Target]]]:
    today = today or date.today()

    def build() -> Dict[PeriodType, Optional[Target]]:
        resource_type = resolve_resource(db, resource)
        return {period: db.active_target(period, resource_type, today) for period in PeriodType}

    return _run(build)


def create_target(db: DatabaseManager, period_type: Optional[str], value,
                  valid_from: Optional[str], resource: Optional[str] = None) -> Result[int]:
    def build() -> int:
        try:
            amount = float(value)
        except (TypeError, ValueError):
            raise ValueError("Target must be a positive number.")
        return db.add_target(period_type or '', resolve_resource(db, resource), amount, valid_from)

    return _run(build)


def delete_target(db: DatabaseManager, target_id) -> Result[bool]:
    target = parse_int(target_id)
    if target is None:
        return Result.failure(ErrorKind.INVALID_INPUT, "Invalid target ID.")
    return _run(lambda: db.delete_target(target))

