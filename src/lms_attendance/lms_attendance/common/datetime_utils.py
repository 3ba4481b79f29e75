from __future__ import annotations

from datetime import date, datetime, timezone


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def now_utc() -> datetime:
    """Current UTC time, used for ``marked_at``.

    Services take it as an injectable clock so tests can pass a fixed time.
    """
    return datetime.now(timezone.utc)


def month_start(value: date) -> date:
    return value.replace(day=1)


def shift_months(value: date, months: int) -> date:
    """First day of the month ``months`` away from ``value`` (negative goes back)."""
    index = value.year * 12 + (value.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)
