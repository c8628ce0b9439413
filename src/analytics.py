"""
MeterHQ - Analytics Module
Period rollups for the week, month and year views.

One engine serves all three granularities; the granularity only decides how a period
resolves to dates, how far the rolling window reaches, and which target type applies.
Days without a reading stay ``None`` and are left out of every statistic.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional, Tuple

from database import DatabaseManager, Target
from period_calendar import (
    Granularity, PeriodKey, current_period, period_dates, period_label, shift_period
)
from utility_types import PeriodType, ResourceType


logger = logging.getLogger(__name__)

# Number of preceding periods averaged into the rolling baseline
ROLLING_WINDOW = {
    Granularity.WEEK: 4,
    Granularity.MONTH: 3,
    Granularity.YEAR: 3,
}

TARGET_PERIOD = {
    Granularity.WEEK: PeriodType.WEEKLY,
    Granularity.MONTH: PeriodType.MONTHLY,
    Granularity.YEAR: PeriodType.YEARLY,
}


@dataclass(frozen=True)
class PeakDay:
    index: int
    value: float
    date: date


@dataclass(frozen=True)
class PeakMonth:
    month: int
    value: float


@dataclass
class PeriodValues:
    """Daily values of one period, aligned with its dates. Missing days are None."""
    key: PeriodKey
    dates: List[date]
    values: List[Optional[float]]

    @property
    def present(self) -> List[float]:
        return [v for v in self.values if v is not None]

    @property
    def total(self) -> float:
        return sum(self.present)

    @property
    def days_with_data(self) -> int:
        return len(self.present)

    @property
    def total_days(self) -> int:
        return len(self.dates)

    @property
    def average(self) -> float:
        return average(self.values)

    @property
    def peak(self) -> Optional[PeakDay]:
        return find_peak(self.dates, self.values)

    def monthly_totals(self) -> List[Optional[float]]:
        """Totals per calendar month (12 entries), None for months without data."""
        totals: List[Optional[float]] = [None] * 12
        for day, value in zip(self.dates, self.values):
            if value is None:
                continue
            index = day.month - 1
            totals[index] = (totals[index] or 0.0) + value
        return totals


@dataclass(frozen=True)
class Navigation:
    prev: PeriodKey
    next: PeriodKey
    is_current: bool


@dataclass
class PeriodStats:
    """Everything a week/month/year view shows."""
    key: PeriodKey
    resource_type: ResourceType
    label: str
    current: PeriodValues
    comparison: PeriodValues
    total: float
    average: float
    peak: Optional[PeakDay]
    days_with_data: int
    total_days: int
    projection: Optional[float]
    rolling_average: float
    rolling_periods: int
    previous_total: float
    percent_change: float
    target: Optional[Target]
    navigation: Navigation
    monthly_totals: List[Optional[float]] = field(default_factory=list)
    comparison_monthly_totals: List[Optional[float]] = field(default_factory=list)
    monthly_average: Optional[float] = None
    peak_month: Optional[PeakMonth] = None


@dataclass
class BudgetStats:
    """Current month against its monthly target."""
    key: PeriodKey
    resource_type: ResourceType
    total: float
    average: float
    projection: Optional[float]
    days_with_data: int
    total_days: int
    target: Optional[Target]

    @property
    def on_track(self) -> Optional[bool]:
        if self.target is None:
            return None
        expected = self.projection if self.projection is not None else self.total
        return expected <= self.target.value


# ==================== Statistics ====================

def average(values: List[Optional[float]]) -> float:
    """Mean of the present values; 0 when there are none."""
    present = [v for v in values if v is not None]
    return sum(present) / len(present) if present else 0.0


def find_peak(dates: List[date], values: List[Optional[float]]) -> Optional[PeakDay]:
    """Largest present value and its position. The first occurrence wins ties."""
    peak = None
    for index, value in enumerate(values):
        if value is None:
            continue
        if peak is None or value > peak.value:
            peak = PeakDay(index=index, value=value, date=dates[index])
    return peak


def find_peak_month(monthly_totals: List[Optional[float]]) -> Optional[PeakMonth]:
    """Month (1-12) with the largest total. Months without data are skipped."""
    peak = None
    for index, total in enumerate(monthly_totals):
        if total is not None and (peak is None or total > peak.value):
            peak = PeakMonth(month=index + 1, value=total)
    return peak


def projection(total: float, days_with_data: int, total_days: int) -> Optional[float]:
    """Linear full-period estimate. Only defined for partially filled periods."""
    if 0 < days_with_data < total_days:
        return (total / days_with_data) * total_days
    return None


def percent_change(total: float, comparison_total: float) -> float:
    if comparison_total == 0:
        return 0.0
    return (total - comparison_total) / comparison_total * 100


# ==================== Engine ====================

class AggregationEngine:
    """
    Computes period statistics against the database.

    ``today`` is sampled once by the caller and used for every "current period" and
    target decision in this engine's lifetime.
    """

    def __init__(self, db: DatabaseManager, today: date):
        self.db = db
        self.today = today

    def load_period(self, key: PeriodKey, resource_type: ResourceType) -> PeriodValues:
        """Fetch a period's readings and align them with its dates."""
        dates = period_dates(key)
        rows = self.db.readings_in_range(resource_type, dates[0], dates[-1])
        lookup: Dict[date, float] = {day: value for day, value in rows}
        return PeriodValues(key=key, dates=dates, values=[lookup.get(day) for day in dates])

    def rolling_average(self, key: PeriodKey, resource_type: ResourceType) -> Tuple[float, int]:
        """
        Average total of the preceding periods that have data.

        Returns (average, number of periods counted).
        """
        window = ROLLING_WINDOW[key.granularity]
        totals = []
        for steps in range(1, window + 1):
            previous = self.load_period(shift_period(key, -steps), resource_type)
            if previous.days_with_data > 0:
                totals.append(previous.total)
        if not totals:
            return 0.0, 0
        return sum(totals) / len(totals), len(totals)

    def is_current(self, key: PeriodKey) -> bool:
        return current_period(key.granularity, self.today) == key

    def compute(self, key: PeriodKey, resource_type: ResourceType,
                compare_to: Optional[PeriodKey] = None) -> PeriodStats:
        """
        Roll up one period.

        The comparison period defaults to the one immediately before ``key``.

        Raises:
            ValueError: if ``compare_to`` has a different granularity.
        """
        if compare_to is not None and compare_to.granularity != key.granularity:
            raise ValueError("Comparison period must have the same granularity")

        current = self.load_period(key, resource_type)
        comparison = self.load_period(compare_to or shift_period(key, -1), resource_type)
        rolling, rolling_periods = self.rolling_average(key, resource_type)
        target = self.db.active_target(TARGET_PERIOD[key.granularity], resource_type, self.today)

        is_current = self.is_current(key)
        total = current.total

        stats = PeriodStats(
            key=key,
            resource_type=resource_type,
            label=period_label(key),
            current=current,
            comparison=comparison,
            total=total,
            average=current.average,
            peak=current.peak,
            days_with_data=current.days_with_data,
            total_days=current.total_days,
            projection=projection(total, current.days_with_data, current.total_days) if is_current else None,
            rolling_average=rolling,
            rolling_periods=rolling_periods,
            previous_total=comparison.total,
            percent_change=percent_change(total, comparison.total),
            target=target,
            navigation=Navigation(
                prev=shift_period(key, -1),
                next=shift_period(key, 1),
                is_current=is_current,
            ),
        )

        if key.granularity == Granularity.YEAR:
            stats.monthly_totals = current.monthly_totals()
            stats.comparison_monthly_totals = comparison.monthly_totals()
            stats.monthly_average = average(stats.monthly_totals)
            stats.peak_month = find_peak_month(stats.monthly_totals)

        logger.debug("Computed %s %s: total=%.3f days=%d/%d", resource_type.value,
                     stats.label, total, stats.days_with_data, stats.total_days)
        return stats

    def month_budget(self, resource_type: ResourceType) -> BudgetStats:
        """Current month progress against the active monthly target."""
        key = current_period(Granularity.MONTH, self.today)
        current = self.load_period(key, resource_type)
        return BudgetStats(
            key=key,
            resource_type=resource_type,
            total=current.total,
            average=current.average,
            projection=projection(current.total, current.days_with_data, current.total_days),
            days_with_data=current.days_with_data,
            total_days=current.total_days,
            target=self.db.active_target(PeriodType.MONTHLY, resource_type, self.today),
        )
