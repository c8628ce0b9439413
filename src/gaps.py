"""
MeterHQ - Gap Detection
Finds runs of missing days between readings.
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import List, Sequence

from period_calendar import DateLike, to_date


@dataclass(frozen=True)
class DateGap:
    """A run of consecutive dates without a reading. ``start == end`` for one-day gaps."""
    start: date
    end: date
    days: int


def _utc_noon(day: date) -> datetime:
    return datetime.combine(day, time(12), tzinfo=timezone.utc)


def find_date_gaps(sorted_dates: Sequence[DateLike]) -> List[DateGap]:
    """
    Find the missing-date intervals between adjacent entries of an ascending date list.

    The input is not sorted or deduplicated here. Each adjacent pair yields at most one gap.
    """
    if len(sorted_dates) < 2:
        return []

    gaps = []
    days = [to_date(d) for d in sorted_dates]

    for prev, curr in zip(days, days[1:]):
        # Noon anchors keep the difference whole even if a DST shift sits in between
        diff_days = round((_utc_noon(curr) - _utc_noon(prev)).total_seconds() / 86400)

        if diff_days > 1:
            gaps.append(DateGap(
                start=prev + timedelta(days=1),
                end=curr - timedelta(days=1),
                days=diff_days - 1,
            ))

    return gaps
