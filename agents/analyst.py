"""
Analyst agent: deterministic local report used when the completion service is unavailable.
Uses Decimal for averages; rounds half-up to 2 decimals for output.
"""
import logging
from collections import OrderedDict
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Dict, List, Mapping, Optional, Sequence

from utils.errors import FallbackError
from utils.records import (
    COHORTS_COL,
    DATE_COL,
    DOMAIN_COL,
    INSTRUCTOR_COL,
    RATING_COL,
    TOPIC_COL,
    Record,
    vocabulary,
)

logger = logging.getLogger(__name__)

QUANTIZE = Decimal("0.01")
NO_VALID_RATINGS = "No valid ratings available"
UNKNOWN_QUERY_MESSAGE = (
    "Could not analyze this specific query. Please try asking about a specific instructor or domain."
)


def _decimal(val: Any) -> Optional[Decimal]:
    if val is None:
        return None
    s = str(val).strip()
    if not s:
        return None
    try:
        d = Decimal(s)
    except InvalidOperation:
        return None
    return d if d.is_finite() else None


def average_rating(records: Sequence[Record], column: str = RATING_COL) -> Optional[str]:
    """
    Mean of the parseable values of column, as a 2-decimal string (half-up).
    Null, empty and unparseable values are skipped; None when nothing is left.
    """
    values = []
    for r in records:
        if not isinstance(r, Mapping):
            raise FallbackError(f"Malformed record: {r!r}")
        d = _decimal(r.get(column))
        if d is not None:
            values.append(d)
    if not values:
        return None
    mean = sum(values, Decimal("0")) / len(values)
    return str(mean.quantize(QUANTIZE, rounding=ROUND_HALF_UP))


def _group_by(records: Sequence[Record], column: str) -> Dict[str, List[Record]]:
    groups: Dict[str, List[Record]] = OrderedDict()
    for r in records:
        groups.setdefault(r.get(column) or "Unknown", []).append(r)
    return groups


def _summary_lines(rows: Sequence[Record], group_column: str, group_label: str) -> List[str]:
    overall = average_rating(rows)
    lines = [
        f"Total sessions: {len(rows)}",
        f"Overall average rating: {overall or NO_VALID_RATINGS}",
        "",
        f"Sessions by {group_label}:",
    ]
    for name, group in _group_by(rows, group_column).items():
        avg = average_rating(group)
        lines.append(f"- {name}: {len(group)} session(s), Average rating: {avg or NO_VALID_RATINGS}")
    return lines


def _session_lines(rows: Sequence[Record], detail_column: str, detail_label: str) -> List[str]:
    lines = ["", "Sessions:"]
    for i, r in enumerate(rows, start=1):
        lines.append(f"{i}. {r.get(TOPIC_COL) or 'Unknown Topic'}")
        lines.append(f"   - {detail_label}: {r.get(detail_column) or 'Not specified'}")
        lines.append(f"   - Date: {r.get(DATE_COL) or 'Not specified'}")
        lines.append(f"   - Rating: {r.get(RATING_COL) or 'Not rated'}")
        if r.get(COHORTS_COL):
            lines.append(f"   - Cohorts: {r.get(COHORTS_COL)}")
    return lines


def instructor_report(instructor: str, records: Sequence[Record]) -> str:
    rows = [r for r in records if r.get(INSTRUCTOR_COL) == instructor]
    if not rows:
        return f"No data found for instructor: {instructor}"
    lines = [f"Information for instructor {instructor}:", ""]
    lines += _summary_lines(rows, DOMAIN_COL, "domain")
    lines += _session_lines(rows, DOMAIN_COL, "Domain")
    return "\n".join(lines) + "\n"


def domain_report(domain: str, records: Sequence[Record]) -> str:
    rows = [r for r in records if r.get(DOMAIN_COL) == domain]
    if not rows:
        return f"No data found for domain: {domain}"
    lines = [f"Analysis for {domain} domain:", ""]
    lines += _summary_lines(rows, INSTRUCTOR_COL, "instructor")
    lines += _session_lines(rows, INSTRUCTOR_COL, "Instructor")
    return "\n".join(lines) + "\n"


def _analyze(query: str, records: Sequence[Record]) -> str:
    q = (query or "").lower()
    for instructor in vocabulary(records, INSTRUCTOR_COL):
        if instructor.lower() in q:
            logger.info("fallback_report: instructor=%s", instructor)
            return instructor_report(instructor, records)
    for domain in vocabulary(records, DOMAIN_COL):
        if domain.lower() in q:
            logger.info("fallback_report: domain=%s", domain)
            return domain_report(domain, records)
    logger.info("fallback_report: no instructor or domain in query")
    return UNKNOWN_QUERY_MESSAGE


def analyze_locally(query: str, records: Sequence[Record]) -> str:
    """
    Calculations only, no LLM. First match wins: instructor report, domain report, fixed message.
    Never raises; failures come back as an error string.
    """
    try:
        return _analyze(query, records)
    except Exception as exc:
        logger.exception("fallback_failed: %s", exc)
        return f"Error performing analysis: {exc}"
