"""
Sheet rows -> records. The first row is the schema; every later row is read against it.
Records are read-only ordered mappings (header -> cell text or None).
"""
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterable, List, Mapping, Optional, Sequence, Tuple

from utils.errors import SchemaError

# Column names in the ratings sheet
INSTRUCTOR_COL = "Instructor"
DOMAIN_COL = "Domain"
TOPIC_COL = "Topic Code"
DATE_COL = "Session Date"
RATING_COL = "Overall Average Rating"
COHORTS_COL = "Cohorts"

REQUIRED_HEADERS = (INSTRUCTOR_COL, DOMAIN_COL, TOPIC_COL, DATE_COL, RATING_COL)

Record = Mapping[str, Optional[str]]
EntityKey = Tuple[Optional[str], Optional[str], Optional[str]]


@dataclass
class RawSheet:
    sheet_name: str
    rows: List[List[str]] = field(default_factory=list)

    @property
    def headers(self) -> List[str]:
        return list(self.rows[0]) if self.rows else []


def structure(raw: RawSheet) -> List[Record]:
    """
    Zip the header row with each data row. Short rows pad with None; cells past the
    last header have no column name and are ignored.
    Total: a sheet with no data rows gives an empty list.
    """
    if not raw.rows or len(raw.rows) < 2:
        return []
    headers = raw.rows[0]
    records: List[Record] = []
    for row in raw.rows[1:]:
        values = {}
        for index, header in enumerate(headers):
            values[header] = row[index] if index < len(row) else None
        records.append(MappingProxyType(values))
    return records


def validate_headers(headers: Sequence[str]) -> None:
    """Raise SchemaError when any required column is missing from the header row."""
    present = set(headers or [])
    missing = [h for h in REQUIRED_HEADERS if h not in present]
    if missing:
        raise SchemaError(f"Sheet is missing required column(s): {', '.join(missing)}")


def vocabulary(records: Iterable[Record], column: str) -> List[str]:
    """Distinct non-empty values of column, first-seen order."""
    seen = {}
    for r in records:
        value = r.get(column)
        if value:
            seen.setdefault(value, None)
    return list(seen)


def entity_key(record: Record) -> EntityKey:
    return (record.get(TOPIC_COL), record.get(INSTRUCTOR_COL), record.get(DATE_COL))
