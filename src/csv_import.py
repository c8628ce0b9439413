"""
MeterHQ - CSV Import Module
Parses provider exports and pasted tables of daily consumption into readings,
then merges them into the database.

Supported input (line 1 is always a header):
    "Datum";"El kWh"                 semicolon separated, quoted, decimal comma
    "2026-01-29";"101,009"

    Datum<TAB>Vatten liter           tab separated, pasted from a provider page
    2026-02-06 (fredag)<TAB>1 250,5
"""

import logging
import re
import sqlite3
from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional, Tuple, Union

from database import DatabaseManager, Reading
from errors import ErrorKind, Result
from utility_types import ResourceType, get_unit


logger = logging.getLogger(__name__)

WATER_KEYWORDS = ('vatten', 'water')
ALLOWED_EXTENSIONS = ('.csv', '.txt')

DATE_PATTERN = re.compile(r'[0-9]{4}-[0-9]{2}-[0-9]{2}')
QUOTED_FIELD = re.compile(r'^"(.*)"$')
# Leading numeric prefix, so "12.5 kWh" reads as 12.5
NUMBER_PREFIX = re.compile(r'[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?')


@dataclass
class LineError:
    """A row that could not be parsed. ``line`` is 1-based and counts the header."""
    line: int
    message: str


@dataclass
class ParseResult:
    readings: List[Reading]
    errors: List[LineError]
    resource_type: ResourceType


@dataclass
class ImportSummary:
    """Outcome of merging a parsed batch into the database."""
    resource_type: ResourceType
    inserted: int = 0
    updated: int = 0
    errors: int = 0
    total_rows: int = 0
    date_range: Optional[Tuple[date, date]] = None
    parse_errors: List[LineError] = field(default_factory=list)


def detect_resource_type(header: str) -> ResourceType:
    """Classify a batch from its header line."""
    lowered = header.lower()
    if any(keyword in lowered for keyword in WATER_KEYWORDS):
        return ResourceType.WATER
    return ResourceType.ELECTRIC


def parse_value(value: str, resource_type: ResourceType) -> Optional[float]:
    """
    Parse a decimal-comma number. Water exports also use spaces as thousands separators.

    Returns None when the text has no numeric prefix.
    """
    clean = value
    if resource_type == ResourceType.WATER:
        clean = re.sub('[ \u00a0]', '', clean)
    clean = clean.replace(',', '.', 1)

    match = NUMBER_PREFIX.match(clean)
    if not match:
        return None
    return float(match.group())


def _strip_quotes(text: str) -> str:
    return QUOTED_FIELD.sub(r'\1', text)


def _split_fields(line: str) -> Tuple[List[str], bool]:
    """Split a line into fields. Returns (fields, is_pasted)."""
    if '\t' in line:
        return [_strip_quotes(f.strip()) for f in line.split('\t')], True
    return [_strip_quotes(f) for f in line.split(';')], False


def _parse_date(text: str) -> Optional[date]:
    if not DATE_PATTERN.fullmatch(text):
        return None
    try:
        return date.fromisoformat(text)
    except ValueError:
        return None


def parse_consumption_text(text: str) -> ParseResult:
    """
    Parse a batch of daily readings.

    Bad rows are reported in ``errors`` and skipped; they never abort the batch.
    """
    readings: List[Reading] = []
    errors: List[LineError] = []

    if text.startswith('\ufeff'):
        text = text[1:]

    lines = [line.strip() for line in text.split('\n')]
    resource_type = detect_resource_type(lines[0] if lines else '')
    unit = get_unit(resource_type)

    for line_number, line in enumerate(lines[1:], start=2):
        if not line:
            continue

        try:
            fields, pasted = _split_fields(line)

            if len(fields) < 2:
                errors.append(LineError(line_number, "Invalid format: expected 2 fields"))
                continue

            date_str = fields[0].strip()
            if pasted:
                # Pasted rows look like "2026-02-06 (fredag)"
                date_str = date_str[:10]
            value_str = fields[1].strip()

            reading_date = _parse_date(date_str)
            if reading_date is None:
                errors.append(LineError(line_number, f"Invalid date format: {date_str}"))
                continue

            value = parse_value(value_str, resource_type)
            if value is None:
                errors.append(LineError(line_number, f"Invalid {unit} value: {value_str}"))
                continue

            readings.append(Reading(date=reading_date, value=value, resource_type=resource_type))

        except Exception as e:
            errors.append(LineError(line_number, str(e) or type(e).__name__))

    return ParseResult(readings=readings, errors=errors, resource_type=resource_type)


def import_text(db: DatabaseManager, text: str) -> ImportSummary:
    """Parse a batch and upsert every reading, counting inserts, overwrites and failures."""
    parsed = parse_consumption_text(text)
    summary = ImportSummary(
        resource_type=parsed.resource_type,
        errors=len(parsed.errors),
        total_rows=len(parsed.readings),
        parse_errors=parsed.errors,
    )

    for reading in parsed.readings:
        try:
            if db.upsert_reading(reading):
                summary.inserted += 1
            else:
                summary.updated += 1
        except sqlite3.Error as e:
            summary.errors += 1
            logger.error("Insert error for %s: %s", reading.timestamp, e)

    if parsed.readings:
        dates = sorted(r.date for r in parsed.readings)
        summary.date_range = (dates[0], dates[-1])

    logger.info("Imported %s batch: %d inserted, %d updated, %d errors",
                summary.resource_type.value, summary.inserted, summary.updated, summary.errors)
    return summary


def import_file(db: DatabaseManager, filename: str, data: Union[bytes, str]) -> Result[ImportSummary]:
    """Validate an uploaded file, then import it. Malformed uploads are rejected before parsing."""
    if not filename or not data:
        return Result.failure(ErrorKind.INVALID_INPUT, "No file uploaded")

    if not filename.lower().endswith(ALLOWED_EXTENSIONS):
        return Result.failure(ErrorKind.INVALID_INPUT,
                              "Invalid file type. Please upload a .csv or .txt file")

    if isinstance(data, bytes):
        try:
            data = data.decode('utf-8')
        except UnicodeDecodeError:
            return Result.failure(ErrorKind.INVALID_INPUT, "Could not read file: expected UTF-8 text")

    return Result.success(import_text(db, data))
