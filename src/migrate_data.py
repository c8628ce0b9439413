"""
MeterHQ - Data Migration
Imports historical daily readings from an .xlsx workbook (or a CSV export of one)
into the SQLite database.

The first column holds the date and the second the value. The resource type is taken
from the command line or detected from the header, the same way text imports do it.
"""

import sqlite3
import sys
from datetime import date, datetime
from pathlib import Path
from typing import Optional

import pandas as pd

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent))

from csv_import import ImportSummary, LineError, detect_resource_type, parse_value
from database import DatabaseManager, Reading
from utility_types import ResourceType, get_unit, parse_resource


class WorkbookMigrator:
    """Migrates daily readings from a workbook to SQLite."""

    def __init__(self, workbook_path: str, db_path: str = "meterhq.db",
                 resource_type: Optional[ResourceType] = None):
        self.workbook_path = Path(workbook_path)
        self.resource_type = resource_type

        if not self.workbook_path.exists():
            raise FileNotFoundError(f"Workbook not found: {workbook_path}")

        self.db = DatabaseManager(db_path)

    def _read_frame(self) -> pd.DataFrame:
        if self.workbook_path.suffix.lower() == '.csv':
            return pd.read_csv(self.workbook_path, sep=';', dtype=str, encoding='utf-8-sig')
        return pd.read_excel(self.workbook_path, dtype=object)

    def _safe_float(self, value, resource_type: ResourceType) -> Optional[float]:
        """Safely convert a cell to float. Text cells use the import number format."""
        if pd.isna(value) or value == '' or value == '-':
            return None
        if isinstance(value, str):
            return parse_value(value.strip(), resource_type)
        try:
            return float(value)
        except (ValueError, TypeError):
            return None

    def _safe_date(self, value) -> Optional[date]:
        """Safely convert a cell to date."""
        if pd.isna(value) or value == '':
            return None
        try:
            if isinstance(value, datetime):
                return value.date()
            elif isinstance(value, date):
                return value
            elif isinstance(value, str):
                return datetime.strptime(value.strip()[:10], '%Y-%m-%d').date()
            return None
        except (ValueError, TypeError):
            return None

    def migrate(self) -> ImportSummary:
        """Run the migration and print a summary."""
        print("=" * 60)
        print("METERHQ - DATA MIGRATION")
        print("=" * 60)

        print(f"\nSource: {self.workbook_path}")
        print(f"Target: {self.db.db_path}")

        df = self._read_frame()
        if len(df.columns) < 2:
            raise ValueError("Workbook needs a date column and a value column")

        resource_type = self.resource_type or detect_resource_type(' '.join(str(c) for c in df.columns))
        unit = get_unit(resource_type)
        summary = ImportSummary(resource_type=resource_type)
        dates = []

        print(f"\n📥 Migrating {resource_type.value} readings ({unit})...")

        for idx, row in df.iterrows():
            # Row 1 is the header, so data rows start at line 2
            line = idx + 2
            reading_date = self._safe_date(row.iloc[0])
            if reading_date is None:
                summary.parse_errors.append(LineError(line, f"Invalid date format: {row.iloc[0]}"))
                continue

            value = self._safe_float(row.iloc[1], resource_type)
            if value is None:
                summary.parse_errors.append(LineError(line, f"Invalid {unit} value: {row.iloc[1]}"))
                continue

            try:
                if self.db.upsert_reading(Reading(reading_date, value, resource_type)):
                    summary.inserted += 1
                else:
                    summary.updated += 1
                dates.append(reading_date)
            except sqlite3.Error as e:
                summary.errors += 1
                if summary.errors <= 3:
                    print(f"   ⚠️  Row {line}: {e}")

        summary.errors += len(summary.parse_errors)
        summary.total_rows = summary.inserted + summary.updated
        if dates:
            summary.date_range = (min(dates), max(dates))

        print(f"   ✅ Imported {summary.inserted} new readings, updated {summary.updated}")
        if summary.parse_errors:
            print(f"   ⚠️  Skipped {len(summary.parse_errors)} rows")

        self._print_summary(summary)
        return summary

    def _print_summary(self, summary: ImportSummary):
        """Print migration summary."""
        print("\n📊 DATABASE SUMMARY")
        print("-" * 40)
        print(f"Electric Readings: {self.db.count_readings(ResourceType.ELECTRIC):,} records")
        print(f"Water Readings:    {self.db.count_readings(ResourceType.WATER):,} records")

        if summary.date_range:
            print(f"\nMigrated Range: {summary.date_range[0]} to {summary.date_range[1]}")


def main():
    """Main entry point for migration."""
    import argparse

    parser = argparse.ArgumentParser(description='Migrate workbook readings to SQLite')
    parser.add_argument('workbook', help='Path to the workbook (.xlsx) or CSV export')
    parser.add_argument('--db', default='meterhq.db', help='Output database path')
    parser.add_argument('--resource', choices=['el', 'water'], help='Resource type (detected from header if omitted)')

    args = parser.parse_args()

    resource_type = parse_resource(args.resource) if args.resource else None
    migrator = WorkbookMigrator(args.workbook, args.db, resource_type)
    migrator.migrate()


if __name__ == '__main__':
    main()
