"""Smart meter consumption CSV importer.

CSV format: Consumption (kwh), Start, End
Timestamps are ISO 8601. Bad rows are reported and skipped.
"""

import csv
import io
import logging
from datetime import datetime
from pathlib import Path

from ..models import ConsumptionInterval, ParseResult

logger = logging.getLogger(__name__)

CONSUMPTION_COLUMN = "Consumption (kwh)"
START_COLUMN = "Start"
END_COLUMN = "End"
REQUIRED_COLUMNS = (CONSUMPTION_COLUMN, START_COLUMN, END_COLUMN)


class ConsumptionCsvError(Exception):
    """Raised when a consumption file can't be used at all."""


def _parse_timestamp(value: str | None, label: str) -> datetime:
    value = (value or "").strip()
    if not value:
        raise ValueError(f"Missing {label} timestamp")
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        raise ValueError(f'Invalid {label} timestamp: "{value}"') from None


def parse_row(row: dict) -> ConsumptionInterval:
    """Parse a single CSV row, raising ValueError describing the problem."""
    raw = (row.get(CONSUMPTION_COLUMN) or "").strip()
    if not raw:
        raise ValueError("Missing consumption value")
    try:
        consumption = float(raw)
    except ValueError:
        raise ValueError(f'Invalid consumption value: "{raw}"') from None
    if consumption != consumption:
        raise ValueError(f'Invalid consumption value: "{raw}"')
    if consumption < 0:
        raise ValueError(f"Negative consumption value: {consumption}")

    start = _parse_timestamp(row.get(START_COLUMN), "start")
    end = _parse_timestamp(row.get(END_COLUMN), "end")
    if end <= start:
        raise ValueError(f"End time ({end.isoformat()}) must be after start time ({start.isoformat()})")

    return ConsumptionInterval(consumption=consumption, start=start, end=end)


def parse_text(text: str) -> ParseResult:
    """Parse CSV content into a sorted consumption series."""
    reader = csv.DictReader(io.StringIO(text))
    if reader.fieldnames:
        reader.fieldnames = [name.strip() for name in reader.fieldnames]

    rows = [row for row in reader if any((v or "").strip() for v in row.values() if isinstance(v, str))]
    if not rows:
        raise ConsumptionCsvError("CSV file is empty or contains no data rows")

    missing = [col for col in REQUIRED_COLUMNS if col not in (reader.fieldnames or [])]
    if missing:
        raise ConsumptionCsvError(
            'CSV file must have columns: "Consumption (kwh)", "Start", and "End"'
        )

    readings = []
    errors = []
    for index, row in enumerate(rows):
        # +2 for the header row and 1-based numbering
        try:
            readings.append(parse_row(row))
        except ValueError as e:
            errors.append(f"Row {index + 2}: {e}")

    if not readings:
        raise ConsumptionCsvError(f"No valid data rows found. Errors: {'; '.join(errors)}")

    if errors:
        logger.warning("Parsed %d rows with %d errors: %s", len(readings), len(errors), errors[:5])

    readings.sort(key=lambda r: r.start)
    return ParseResult(readings=readings, errors=errors)


def parse_csv(csv_path: Path) -> ParseResult:
    """Parse a consumption CSV file."""
    try:
        with open(csv_path, newline="", encoding="utf-8-sig") as f:
            text = f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise ConsumptionCsvError(f"Could not read {csv_path}: {e}") from e
    return parse_text(text)
