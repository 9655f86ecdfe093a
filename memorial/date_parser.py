"""
Date handling for API payloads and death-date filters.

Dates travel as ISO-8601 strings and are stored as naive UTC datetimes.
"""
from __future__ import annotations
import re
from typing import Optional, Tuple
from datetime import datetime, timezone

DATE_ONLY = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})$")


def parse_iso_datetime(raw: str) -> datetime:
    """
    Parse an ISO date or datetime string to a naive UTC datetime.

    Raises:
        ValueError: when the string is not a valid ISO date.

    Examples:
        "1988-06-04" -> datetime(1988, 6, 4)
        "1988-06-04T10:00:00Z" -> datetime(1988, 6, 4, 10, 0)
        "1988-06-04T10:00:00+02:00" -> datetime(1988, 6, 4, 8, 0)
    """
    if not isinstance(raw, str) or not raw.strip():
        raise ValueError("date is required")

    date_str = raw.strip()

    m = DATE_ONLY.match(date_str)
    if m:
        year, month, day = (int(part) for part in m.groups())
        return datetime(year, month, day)

    if date_str.endswith(("Z", "z")):
        date_str = date_str[:-1] + "+00:00"
    parsed = datetime.fromisoformat(date_str)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def to_iso(value: Optional[datetime]) -> Optional[str]:
    """Serialise a stored (naive UTC) datetime with a trailing Z."""
    if value is None:
        return None
    return value.isoformat(timespec="milliseconds") + "Z"


def death_date_range(year: int, month: Optional[int] = None) -> Tuple[datetime, datetime]:
    """
    Half-open ``[start, end)`` UTC range covering a year or a single month.

    Examples:
        (1989, None) -> (1989-01-01, 1990-01-01)
        (1989, 12) -> (1989-12-01, 1990-01-01)
    """
    if month is None:
        return datetime(year, 1, 1), datetime(year + 1, 1, 1)
    start = datetime(year, month, 1)
    if month == 12:
        end = datetime(year + 1, 1, 1)
    else:
        end = datetime(year, month + 1, 1)
    return start, end


def utc_month(value: Optional[datetime]) -> Optional[int]:
    if value is None:
        return None
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.month
