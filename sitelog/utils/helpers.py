from datetime import date, datetime, timedelta, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

QTY_PLACES = Decimal("0.001")


def fixed_offset(hours: int) -> timezone:
    return timezone(timedelta(hours=hours))


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def local_now(now: Optional[datetime] = None, offset_hours: int = 9) -> datetime:
    """`now` (default: current time) expressed in the site's fixed UTC offset.

    Naive datetimes are taken to be UTC.
    """
    now = now or utcnow()
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(fixed_offset(offset_hours))


def local_today(now: Optional[datetime] = None, offset_hours: int = 9) -> date:
    return local_now(now, offset_hours).date()


def previous_day(d: date) -> date:
    # Literal prior calendar day; no weekend/holiday carry-over
    return d - timedelta(days=1)


def to_quantity(value: Any) -> Decimal:
    """Decimal with 3 fractional digits (matches NUMERIC(10,3)); bad input -> 0.000."""
    try:
        return Decimal(str(value if value is not None else "0")).quantize(QTY_PLACES)
    except (InvalidOperation, ValueError):
        return Decimal("0").quantize(QTY_PLACES)
