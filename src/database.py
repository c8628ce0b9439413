"""
MeterHQ - Database Module
SQLite schema and operations for daily readings, consumption targets, and configuration.
"""

import logging
import re
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from utility_types import PeriodType, ResourceType


logger = logging.getLogger(__name__)

DATE_PATTERN = re.compile(r'[0-9]{4}-[0-9]{2}-[0-9]{2}')


# Data Classes for type safety
@dataclass
class Reading:
    date: date
    value: float
    resource_type: ResourceType

    @property
    def timestamp(self) -> str:
        """Canonical storage timestamp: the date at local midnight."""
        return f"{self.date.isoformat()}T00:00:00"


@dataclass
class Target:
    id: Optional[int]
    period_type: PeriodType
    resource_type: ResourceType
    value: float
    valid_from: date


def _parse_timestamp(value: str) -> date:
    return datetime.strptime(value[:10], '%Y-%m-%d').date()


def _row_to_target(row: sqlite3.Row) -> Target:
    return Target(
        id=row['id'],
        period_type=PeriodType(row['period_type']),
        resource_type=ResourceType(row['resource_type']),
        value=row['value'],
        valid_from=_parse_timestamp(row['valid_from']),
    )


class DatabaseManager:
    """Manages SQLite database operations for MeterHQ."""

    def __init__(self, db_path: str = "meterhq.db"):
        self.db_path = Path(db_path)
        self._init_database()

    @contextmanager
    def get_connection(self):
        """Context manager for database connections."""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _init_database(self):
        """Initialize database with schema."""
        with self.get_connection() as conn:
            cursor = conn.cursor()

            # Daily readings, one per (day, resource)
            cursor.execute('''
                CREATE TABLE IF NOT EXISTS readings (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    timestamp TEXT NOT NULL,
                    value REAL NOT NULL,
                    resource_type TEXT NOT NULL DEFAULT 'el',
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    UNIQUE(timestamp, resource_type)
                )
            ''')

            # Consumption targets
            cursor.execute('''
                CREATE TABLE IF NOT EXISTS targets (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    period_type TEXT NOT NULL,
                    resource_type TEXT NOT NULL DEFAULT 'el',
                    value REAL NOT NULL,
                    valid_from TEXT NOT NULL,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            ''')

            # Configuration Table
            cursor.execute('''
                CREATE TABLE IF NOT EXISTS config (
                    key TEXT PRIMARY KEY,
                    value TEXT,
                    description TEXT,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            ''')

            cursor.execute('CREATE INDEX IF NOT EXISTS idx_readings_resource ON readings(resource_type, timestamp)')
            cursor.execute('CREATE INDEX IF NOT EXISTS idx_targets_lookup ON targets(period_type, resource_type, valid_from)')

            # Insert default configuration
            default_config = [
                ('active_resource', ResourceType.ELECTRIC.value, 'Resource type shown by default: el or water'),
                ('heatmap_months', '3', 'Trailing months shown in the heatmap when no period filter is set'),
            ]

            cursor.executemany('''
                INSERT OR IGNORE INTO config (key, value, description) VALUES (?, ?, ?)
            ''', default_config)

    # ==================== Reading Operations ====================

    def upsert_reading(self, reading: Reading) -> bool:
        """Insert a reading or overwrite the value stored for its day. Returns True on insert."""
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute('''
                SELECT id FROM readings WHERE timestamp = ? AND resource_type = ?
            ''', (reading.timestamp, reading.resource_type.value))
            existing = cursor.fetchone()

            cursor.execute('''
                INSERT INTO readings (timestamp, value, resource_type)
                VALUES (?, ?, ?)
                ON CONFLICT(timestamp, resource_type)
                DO UPDATE SET value = excluded.value, updated_at = CURRENT_TIMESTAMP
            ''', (reading.timestamp, reading.value, reading.resource_type.value))
            return existing is None

    def readings_in_range(self, resource_type: ResourceType, start_date: date,
                          end_date: date) -> List[Tuple[date, float]]:
        """Get (date, value) pairs for an inclusive date range, ordered by date."""
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute('''
                SELECT timestamp, value FROM readings
                WHERE resource_type = ? AND timestamp BETWEEN ? AND ?
                ORDER BY timestamp
            ''', (resource_type.value, f"{start_date.isoformat()}T00:00:00",
                  f"{end_date.isoformat()}T23:59:59"))
            return [(_parse_timestamp(row['timestamp']), row['value']) for row in cursor.fetchall()]

    def distinct_dates(self, resource_type: ResourceType) -> List[date]:
        """Get every date with at least one reading, ascending."""
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute('''
                SELECT DISTINCT substr(timestamp, 1, 10) as day FROM readings
                WHERE resource_type = ?
                ORDER BY day
            ''', (resource_type.value,))
            return [_parse_timestamp(row['day']) for row in cursor.fetchall()]

    def min_max_reading_year(self, resource_type: Optional[ResourceType] = None) -> Optional[Tuple[int, int]]:
        """Get the first and last year with readings, or None when there are none."""
        with self.get_connection() as conn:
            cursor = conn.cursor()
            if resource_type is None:
                cursor.execute('''
                    SELECT CAST(strftime('%Y', MIN(timestamp)) AS INTEGER) as min_year,
                           CAST(strftime('%Y', MAX(timestamp)) AS INTEGER) as max_year
                    FROM readings
                ''')
            else:
                cursor.execute('''
                    SELECT CAST(strftime('%Y', MIN(timestamp)) AS INTEGER) as min_year,
                           CAST(strftime('%Y', MAX(timestamp)) AS INTEGER) as max_year
                    FROM readings WHERE resource_type = ?
                ''', (resource_type.value,))
            row = cursor.fetchone()
            if row and row['min_year'] is not None:
                return row['min_year'], row['max_year']
            return None

    def count_readings(self, resource_type: Optional[ResourceType] = None) -> int:
        with self.get_connection() as conn:
            cursor = conn.cursor()
            if resource_type is None:
                cursor.execute('SELECT COUNT(*) as count FROM readings')
            else:
                cursor.execute('SELECT COUNT(*) as count FROM readings WHERE resource_type = ?',
                               (resource_type.value,))
            return cursor.fetchone()['count']

    # ==================== Pattern Queries ====================

    def _range_filter(self, resource_type: ResourceType, start_date: Optional[date],
                      end_date: Optional[date]) -> Tuple[str, list]:
        """Build a WHERE clause for an optional inclusive date range."""
        clause = 'WHERE resource_type = ?'
        params = [resource_type.value]
        if start_date is not None:
            clause += ' AND timestamp >= ?'
            params.append(f"{start_date.isoformat()}T00:00:00")
        if end_date is not None:
            clause += ' AND timestamp <= ?'
            params.append(f"{end_date.isoformat()}T23:59:59")
        return clause, params

    def weekday_averages(self, resource_type: ResourceType, start_date: Optional[date] = None,
                         end_date: Optional[date] = None) -> Dict[int, float]:
        """Average value per weekday, keyed by SQLite %w numbering (0=Sunday .. 6=Saturday)."""
        where, params = self._range_filter(resource_type, start_date, end_date)
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(f'''
                SELECT CAST(strftime('%w', timestamp) AS INTEGER) as dow, AVG(value) as avg_value
                FROM readings
                {where}
                GROUP BY strftime('%w', timestamp)
                ORDER BY dow
            ''', params)
            return {row['dow']: row['avg_value'] for row in cursor.fetchall()}

    def month_averages(self, resource_type: ResourceType, start_date: Optional[date] = None,
                       end_date: Optional[date] = None) -> Dict[int, float]:
        """Average value per calendar month, keyed 1-12."""
        where, params = self._range_filter(resource_type, start_date, end_date)
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(f'''
                SELECT CAST(strftime('%m', timestamp) AS INTEGER) as month, AVG(value) as avg_value
                FROM readings
                {where}
                GROUP BY strftime('%m', timestamp)
                ORDER BY month
            ''', params)
            return {row['month']: row['avg_value'] for row in cursor.fetchall()}

    def daily_totals(self, resource_type: ResourceType, start_date: Optional[date] = None,
                     end_date: Optional[date] = None) -> List[Tuple[date, float]]:
        """Sum of values per day, ascending."""
        where, params = self._range_filter(resource_type, start_date, end_date)
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(f'''
                SELECT substr(timestamp, 1, 10) as day, SUM(value) as total
                FROM readings
                {where}
                GROUP BY substr(timestamp, 1, 10)
                ORDER BY day
            ''', params)
            return [(_parse_timestamp(row['day']), row['total']) for row in cursor.fetchall()]

    # ==================== Target Operations ====================

    def add_target(self, period_type: str, resource_type: ResourceType, value: float,
                   valid_from: str) -> int:
        """
        Add a consumption target.

        Raises:
            ValueError: if the period type, value or valid-from date is invalid.
        """
        try:
            period = PeriodType(period_type)
        except ValueError:
            raise ValueError("Invalid period type.")

        if value is None or not value > 0:
            raise ValueError("Target must be a positive number.")

        if not valid_from or not DATE_PATTERN.fullmatch(valid_from):
            raise ValueError("Invalid date.")
        try:
            date.fromisoformat(valid_from)
        except ValueError:
            raise ValueError("Invalid date.")

        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute('''
                INSERT INTO targets (period_type, resource_type, value, valid_from)
                VALUES (?, ?, ?, ?)
            ''', (period.value, resource_type.value, value, valid_from))
            logger.info("Added %s %s target %.2f from %s", resource_type.value, period.value, value, valid_from)
            return cursor.lastrowid

    def delete_target(self, target_id: int) -> bool:
        """Delete a target. Returns False if it did not exist."""
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute('DELETE FROM targets WHERE id = ?', (target_id,))
            return cursor.rowcount > 0

    def get_targets(self, resource_type: Optional[ResourceType] = None) -> List[Target]:
        """Get all targets, newest valid_from first."""
        with self.get_connection() as conn:
            cursor = conn.cursor()
            if resource_type is None:
                cursor.execute('SELECT * FROM targets ORDER BY valid_from DESC, id DESC')
            else:
                cursor.execute('''
                    SELECT * FROM targets WHERE resource_type = ?
                    ORDER BY valid_from DESC, id DESC
                ''', (resource_type.value,))
            return [_row_to_target(row) for row in cursor.fetchall()]

    def active_target(self, period_type: PeriodType, resource_type: ResourceType,
                      as_of: date) -> Optional[Target]:
        """Get the target with the latest valid_from on or before ``as_of``."""
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute('''
                SELECT * FROM targets
                WHERE period_type = ? AND resource_type = ? AND valid_from <= ?
                ORDER BY valid_from DESC, id DESC
                LIMIT 1
            ''', (period_type.value, resource_type.value, as_of.isoformat()))
            row = cursor.fetchone()
            return _row_to_target(row) if row else None

    # ==================== Configuration Operations ====================

    def get_config(self, key: str) -> Optional[str]:
        """Get a configuration value."""
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute('SELECT value FROM config WHERE key = ?', (key,))
            row = cursor.fetchone()
            return row['value'] if row else None

    def set_config(self, key: str, value: str, description: str = None):
        """Set a configuration value (insert or update)."""
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute('''
                INSERT OR REPLACE INTO config (key, value, description, updated_at)
                VALUES (?, ?, COALESCE(?, (SELECT description FROM config WHERE key = ?)), CURRENT_TIMESTAMP)
            ''', (key, value, description, key))

    def get_all_config(self) -> Dict[str, str]:
        """Get all configuration values."""
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute('SELECT key, value FROM config')
            return {row['key']: row['value'] for row in cursor.fetchall()}
