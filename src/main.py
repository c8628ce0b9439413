"""
MeterHQ - Command Line
Plain-text front end over the report functions: import batches, browse week/month/year
rollups, seasonal patterns, the monthly budget, gaps and targets.
"""

import argparse
import logging
import sys
from datetime import date
from pathlib import Path
from typing import List, Optional

from analytics import BudgetStats, PeriodStats
from csv_import import import_file
from database import DatabaseManager
from errors import Result
from patterns import Buckets, FilterKind, PatternStats
from period_calendar import (
    Granularity, PeriodKey, format_day_of_week, format_month_label,
    format_short_month, period_label
)
from reports import (
    active_targets_report, budget_report, create_target, delete_target, gaps_report,
    monthly_report, patterns_report, resolve_resource, set_active_resource, weekly_report,
    yearly_report
)
from utility_types import ResourceType, get_label, get_unit


logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
MAX_LISTED_ERRORS = 10


def default_db_path() -> Path:
    return Path(__file__).parent.parent / "data" / "meterhq.db"


# ==================== Formatting ====================

def format_amount(value: Optional[float], unit: str) -> str:
    if value is None:
        return "-"
    if abs(value) >= 1000:
        return f"{value:,.0f} {unit}"
    return f"{value:.2f} {unit}"


def format_change(percent: float) -> str:
    return f"{percent:+.1f}%"


def format_key(key: PeriodKey) -> str:
    """Compact key text, e.g. 2026-W06, 2026-02, 2026."""
    if key.granularity == Granularity.WEEK:
        return f"{key.year}-W{key.ordinal:02d}"
    if key.granularity == Granularity.MONTH:
        return f"{key.year}-{key.ordinal:02d}"
    return str(key.year)


def _header(title: str):
    print(title)
    print("-" * max(40, len(title)))


def _fail(result: Result) -> int:
    print(f"Error: {result.error}", file=sys.stderr)
    return 1


# ==================== Reports ====================

def print_period(stats: PeriodStats):
    unit = get_unit(stats.resource_type)
    _header(f"{get_label(stats.resource_type)} - {stats.label}")

    print(f"Total:        {format_amount(stats.total, unit)}")
    print(f"Average/day:  {format_amount(stats.average, unit)}")
    if stats.peak is not None:
        peak_day = stats.peak.date
        print(f"Peak:         {format_amount(stats.peak.value, unit)} "
              f"({format_day_of_week(peak_day)} {peak_day.isoformat()})")
    else:
        print("Peak:         -")
    print(f"Days:         {stats.days_with_data}/{stats.total_days}")
    if stats.projection is not None:
        print(f"Projection:   {format_amount(stats.projection, unit)}")
    print(f"Rolling avg:  {format_amount(stats.rolling_average, unit)} "
          f"({stats.rolling_periods} periods)")
    print(f"Compared to:  {period_label(stats.comparison.key)} "
          f"{format_amount(stats.previous_total, unit)} ({format_change(stats.percent_change)})")
    if stats.target is not None:
        print(f"Target:       {format_amount(stats.target.value, unit)} "
              f"(from {stats.target.valid_from.isoformat()})")

    print()
    if stats.key.granularity == Granularity.YEAR:
        print(f"Avg/month:    {format_amount(stats.monthly_average, unit)}")
        if stats.peak_month is not None:
            print(f"Peak month:   {format_short_month(stats.peak_month.month)} "
                  f"{format_amount(stats.peak_month.value, unit)}")
        print()
        print(f"{'Month':<8}{'Total':>16}{'Compared':>16}")
        for index, (total, other) in enumerate(zip(stats.monthly_totals,
                                                   stats.comparison_monthly_totals), start=1):
            print(f"{format_short_month(index):<8}"
                  f"{format_amount(total, unit):>16}{format_amount(other, unit):>16}")
    else:
        other_values = stats.comparison.values
        for index, (day, value) in enumerate(zip(stats.current.dates, stats.current.values)):
            other = other_values[index] if index < len(other_values) else None
            print(f"{format_day_of_week(day)} {day.isoformat()}"
                  f"{format_amount(value, unit):>16}{format_amount(other, unit):>16}")

    nav = stats.navigation
    current = " (current)" if nav.is_current else ""
    print(f"\nPrev: {format_key(nav.prev)}  Next: {format_key(nav.next)}{current}")


def print_budget(stats: BudgetStats):
    unit = get_unit(stats.resource_type)
    _header(f"{get_label(stats.resource_type)} - Budget "
            f"{format_month_label(stats.key.year, stats.key.ordinal)}")
    print(f"Spent so far: {format_amount(stats.total, unit)}")
    print(f"Average/day:  {format_amount(stats.average, unit)}")
    print(f"Days:         {stats.days_with_data}/{stats.total_days}")
    print(f"Projection:   {format_amount(stats.projection, unit)}")
    if stats.target is None:
        print("Target:       not set")
        return
    status = "on track" if stats.on_track else "over budget"
    print(f"Target:       {format_amount(stats.target.value, unit)} ({status})")


def _print_buckets(title: str, buckets: Buckets, unit: str, other: Optional[Buckets] = None):
    print(f"\n{title}")
    for index, label in enumerate(buckets.labels):
        line = f"  {label:<5}{format_amount(buckets.values[index], unit):>16}"
        if other is not None:
            line += f"{format_amount(other.values[index], unit):>16}"
        print(line)


def print_patterns(stats: PatternStats):
    unit = get_unit(stats.resource_type)
    flt = stats.period_filter
    if flt.kind == FilterKind.MONTH:
        scope = format_month_label(flt.year, flt.month)
    elif flt.kind == FilterKind.YEAR:
        scope = str(flt.year)
    else:
        scope = "all time"
    _header(f"{get_label(stats.resource_type)} - Patterns ({scope})")
    if stats.available_years:
        print(f"Years with data: {stats.available_years[0]}-{stats.available_years[-1]}")

    _print_buckets("Average by weekday", stats.day_of_week, unit, stats.comparison_day_of_week)
    _print_buckets("Average by month", stats.month_of_year, unit, stats.comparison_month_of_year)

    if flt.is_active:
        print(f"\nDaily totals ({len(stats.heatmap)} days)")
    else:
        print(f"\nDaily totals, last {stats.heatmap_months} months ({len(stats.heatmap)} days)")
    if stats.heatmap:
        peak = max(stats.heatmap, key=lambda cell: cell.total)
        print(f"  Highest: {peak.date.isoformat()} {format_amount(peak.total, unit)}")


# ==================== Commands ====================

def cmd_import(db: DatabaseManager, args) -> int:
    path = Path(args.file)
    if not path.exists():
        print(f"Error: File not found: {path}", file=sys.stderr)
        return 1

    result = import_file(db, path.name, path.read_bytes())
    if not result.ok:
        return _fail(result)

    summary = result.value
    print(f"Imported {summary.resource_type.value} data from {path.name}")
    print(f"  Inserted: {summary.inserted}")
    print(f"  Updated:  {summary.updated}")
    print(f"  Errors:   {summary.errors}")
    if summary.date_range:
        print(f"  Range:    {summary.date_range[0].isoformat()} to {summary.date_range[1].isoformat()}")
    for error in summary.parse_errors[:MAX_LISTED_ERRORS]:
        print(f"  Line {error.line}: {error.message}")
    if len(summary.parse_errors) > MAX_LISTED_ERRORS:
        print(f"  ... and {len(summary.parse_errors) - MAX_LISTED_ERRORS} more")
    return 0


def cmd_week(db: DatabaseManager, args) -> int:
    result = weekly_report(db, args.resource, args.year, args.week,
                           args.compare_year, args.compare_week, today=args.today)
    if not result.ok:
        return _fail(result)
    print_period(result.value)
    return 0


def cmd_month(db: DatabaseManager, args) -> int:
    result = monthly_report(db, args.resource, args.year, args.month,
                            args.compare_year, args.compare_month, today=args.today)
    if not result.ok:
        return _fail(result)
    print_period(result.value)
    return 0


def cmd_year(db: DatabaseManager, args) -> int:
    result = yearly_report(db, args.resource, args.year, args.compare_year, today=args.today)
    if not result.ok:
        return _fail(result)
    print_period(result.value)
    return 0


def cmd_patterns(db: DatabaseManager, args) -> int:
    result = patterns_report(db, args.resource, args.period, args.year, args.month, args.months,
                             args.compare_period, args.compare_year, args.compare_month,
                             today=args.today)
    if not result.ok:
        return _fail(result)
    print_patterns(result.value)
    return 0


def cmd_budget(db: DatabaseManager, args) -> int:
    result = budget_report(db, args.resource, today=args.today)
    if not result.ok:
        return _fail(result)
    print_budget(result.value)
    return 0


def cmd_gaps(db: DatabaseManager, args) -> int:
    result = gaps_report(db, args.resource)
    if not result.ok:
        return _fail(result)

    if not result.value:
        print("No gaps found")
        return 0
    print(f"{len(result.value)} gaps, {sum(g.days for g in result.value)} missing days")
    for gap in result.value:
        print(f"  {gap.start.isoformat()} to {gap.end.isoformat()} ({gap.days} days)")
    return 0


def cmd_targets(db: DatabaseManager, args) -> int:
    if args.action == 'add':
        result = create_target(db, args.period_type, args.value, args.valid_from, args.resource)
        if not result.ok:
            return _fail(result)
        print(f"Target {result.value} created")
        return 0

    if args.action == 'delete':
        result = delete_target(db, args.id)
        if not result.ok:
            return _fail(result)
        print("Target deleted" if result.value else "Target not found")
        return 0 if result.value else 1

    result = active_targets_report(db, args.resource, today=args.today)
    if not result.ok:
        return _fail(result)

    resource_type = resolve_resource(db, args.resource)
    unit = get_unit(resource_type)
    _header(f"{get_label(resource_type)} - Active targets")
    for period_type, target in result.value.items():
        if target is None:
            print(f"  {period_type.value:<8} -")
        else:
            print(f"  {period_type.value:<8} {format_amount(target.value, unit)} "
                  f"from {target.valid_from.isoformat()} (#{target.id})")
    return 0


def cmd_resource(db: DatabaseManager, args) -> int:
    if args.code is None:
        print(resolve_resource(db).value)
        return 0
    result = set_active_resource(db, args.code)
    if not result.ok:
        return _fail(result)
    print(f"Active resource: {result.value.value} ({get_label(result.value)})")
    return 0


# ==================== Entry Point ====================

def _today(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid date: {value}")


def build_parser(default_db: Optional[str] = None) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='meterhq', description='Daily electricity and water consumption tracker')
    parser.add_argument('--db', default=default_db or str(default_db_path()), help='SQLite database path')
    parser.add_argument('--resource', choices=[r.value for r in ResourceType],
                        help='Resource type (defaults to the active resource)')
    parser.add_argument('--today', type=_today, default=None, help=argparse.SUPPRESS)
    parser.add_argument('-v', '--verbose', action='store_true', help='Enable debug logging')

    sub = parser.add_subparsers(dest='command', required=True)

    p = sub.add_parser('import', help='Import a .csv or .txt export')
    p.add_argument('file')
    p.set_defaults(func=cmd_import)

    p = sub.add_parser('week', help='Weekly view')
    p.add_argument('--year')
    p.add_argument('--week')
    p.add_argument('--compare-year')
    p.add_argument('--compare-week')
    p.set_defaults(func=cmd_week)

    p = sub.add_parser('month', help='Monthly view')
    p.add_argument('--year')
    p.add_argument('--month')
    p.add_argument('--compare-year')
    p.add_argument('--compare-month')
    p.set_defaults(func=cmd_month)

    p = sub.add_parser('year', help='Yearly view')
    p.add_argument('--year')
    p.add_argument('--compare-year')
    p.set_defaults(func=cmd_year)

    p = sub.add_parser('patterns', help='Weekday and month averages plus daily heatmap')
    p.add_argument('--period', choices=['all', 'year', 'month'], default='all')
    p.add_argument('--year')
    p.add_argument('--month')
    p.add_argument('--months', help='Heatmap window in months')
    p.add_argument('--compare-period', choices=['all', 'year', 'month'])
    p.add_argument('--compare-year')
    p.add_argument('--compare-month')
    p.set_defaults(func=cmd_patterns)

    p = sub.add_parser('budget', help='Current month against the monthly target')
    p.set_defaults(func=cmd_budget)

    p = sub.add_parser('gaps', help='List missing days')
    p.set_defaults(func=cmd_gaps)

    p = sub.add_parser('targets', help='Manage consumption targets')
    actions = p.add_subparsers(dest='action')
    actions.add_parser('list', help='Show active targets')
    add = actions.add_parser('add', help='Add a target')
    add.add_argument('period_type', help='daily, weekly, monthly or yearly')
    add.add_argument('value')
    add.add_argument('valid_from', help='YYYY-MM-DD')
    delete = actions.add_parser('delete', help='Delete a target')
    delete.add_argument('id')
    p.set_defaults(func=cmd_targets, action='list')

    p = sub.add_parser('resource', help='Show or set the active resource')
    p.add_argument('code', nargs='?', choices=[r.value for r in ResourceType])
    p.set_defaults(func=cmd_resource)

    return parser


def main(argv: Optional[List[str]] = None, default_db: Optional[str] = None) -> int:
    parser = build_parser(default_db)
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format=LOG_FORMAT,
    )

    db_path = Path(args.db)
    db_path.parent.mkdir(parents=True, exist_ok=True)
    db = DatabaseManager(str(db_path))
    logger.debug("Using database %s", db_path)

    # One reference date per invocation
    if args.today is None:
        args.today = date.today()

    return args.func(db, args)


if __name__ == '__main__':
    sys.exit(main())
