import re
from datetime import date, datetime
from typing import Any, Optional

from sitelog.services.errors import ReportInputError

_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def clean_str(val: Optional[str], max_len: int = 255) -> Optional[str]:
    """
    Collapse whitespace, trim, enforce max length. Returns None if empty after cleaning.
    """
    if val is None:
        return None
    s = re.sub(r"\s+", " ", str(val)).strip()
    if not s:
        return None
    return s[:max_len]


def parse_report_date(value: Any) -> date:
    """
    Accept a `date` or a strict 'YYYY-MM-DD' string naming a real calendar day.
    Datetimes are rejected rather than truncated so a caller's timezone slip is visible.
    """
    if isinstance(value, datetime):
        raise ReportInputError(f"Expected a calendar date, got a datetime: {value!r}")
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not _ISO_DATE_RE.match(value.strip()):
        raise ReportInputError(f"Invalid report date {value!r}; expected YYYY-MM-DD.")
    try:
        return date.fromisoformat(value.strip())
    except ValueError:
        raise ReportInputError(f"Invalid report date {value!r}; not a calendar day.") from None


def parse_max_rows(value: Any) -> int:
    """Positive integer row count; bools and fractional numbers are rejected."""
    if isinstance(value, bool):
        raise ReportInputError("maxRows must be a positive integer.")
    if isinstance(value, float) and not value.is_integer():
        raise ReportInputError("maxRows must be a positive integer.")
    try:
        n = int(str(value).strip()) if isinstance(value, str) else int(value)
    except (TypeError, ValueError):
        raise ReportInputError("maxRows must be a positive integer.") from None
    if n <= 0:
        raise ReportInputError("maxRows must be a positive integer.")
    return n
