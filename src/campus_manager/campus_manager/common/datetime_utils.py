from __future__ import annotations

from datetime import date, datetime, time
from typing import Any, Optional


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def as_datetime(value: Any) -> Optional[datetime]:
    """Coerce date/datetime/ISO strings to a naive datetime."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.replace(tzinfo=None) if value.tzinfo else value
    if isinstance(value, date):
        return datetime.combine(value, time.min)
    if isinstance(value, str):
        text = value.strip().replace("Z", "+00:00")
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return datetime.combine(parse_iso_date(text[:10]), time.min)
        return parsed.replace(tzinfo=None) if parsed.tzinfo else parsed
    raise TypeError(f"Unsupported date value: {value!r}")


def start_of_day(moment: datetime) -> datetime:
    return datetime.combine(moment.date(), time.min)


def end_of_day(moment: datetime) -> datetime:
    return datetime.combine(moment.date(), time.max)


def start_of_month(moment: datetime) -> datetime:
    return datetime(moment.year, moment.month, 1)


def start_of_year(moment: datetime) -> datetime:
    return datetime(moment.year, 1, 1)


def add_months(moment: datetime, months: int) -> datetime:
    """Shift to the first day of the month `months` away."""
    index = moment.year * 12 + (moment.month - 1) + months
    return datetime(index // 12, index % 12 + 1, 1)


def month_key(moment: datetime) -> str:
    return f"{moment.year:04d}-{moment.month:02d}"


def last_months(moment: datetime, count: int = 12) -> list[datetime]:
    """First day of each of the last `count` months, oldest first, current month included."""
    return [add_months(start_of_month(moment), -offset) for offset in range(count - 1, -1, -1)]


def whole_years_between(start: date, end: date) -> int:
    years = end.year - start.year
    if (end.month, end.day) < (start.month, start.day):
        years -= 1
    return years


def reference_number(prefix: str, moment: Optional[datetime] = None) -> str:
    """Receipt/voucher style number: prefix + epoch milliseconds."""
    moment = moment or now_local()
    return f"{prefix}{int(moment.timestamp() * 1000)}"
