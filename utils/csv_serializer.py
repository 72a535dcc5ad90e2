"""
Compact comma-delimited rendering of a record subset for the completion prompt.
"""
from typing import Any, Iterable, List, Sequence

from utils.records import Record


def _serialize_value(v: Any) -> str:
    """None -> empty field; quote values containing a comma or a double quote."""
    if v is None:
        return ""
    s = v if isinstance(v, str) else str(v)
    if "," in s or '"' in s:
        return '"' + s.replace('"', '""') + '"'
    return s


def to_delimited_text(headers: Sequence[str], records: Iterable[Record]) -> str:
    """Header line, then one line per record in header order. Every line ends with a newline."""
    lines: List[str] = [",".join(headers)]
    for r in records:
        lines.append(",".join(_serialize_value(r.get(h)) for h in headers))
    return "\n".join(lines) + "\n"
