from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Iterator, Optional

from ..core.constants import HOURS_DECIMAL_PLACES
from ..core.exceptions import ValidationError


def parse_iso_date(value: str, field_name: str = "date") -> date:
    """Parse YYYY-MM-DD string into date."""
    try:
        return datetime.strptime((value or "").strip(), "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError(f"Invalid {field_name} (expected YYYY-MM-DD)", field=field_name)


def parse_optional_date(value: Optional[str], field_name: str = "date") -> Optional[date]:
    if value is None or not str(value).strip():
        return None
    return parse_iso_date(str(value), field_name)


def hours_between(start: datetime, end: datetime) -> float:
    seconds = (end - start).total_seconds()
    return round(seconds / 3600, HOURS_DECIMAL_PLACES)


def iter_dates(start: date, end: date) -> Iterator[date]:
    """Yield every date from ``start`` to ``end`` inclusive."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def format_dt(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None
