"""UTC time helpers shared by eligibility and ledger code."""

from __future__ import annotations

from datetime import datetime, timezone


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes.

    SQLite drops tzinfo on read even for ``DateTime(timezone=True)`` columns,
    so values coming back from the store are normalized before comparison.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def month_window_utc(now: datetime | None = None) -> tuple[datetime, datetime]:
    """Return the current calendar month's UTC boundaries."""
    current = as_utc(now or utc_now())
    start = current.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    if start.month == 12:
        end = start.replace(year=start.year + 1, month=1)
    else:
        end = start.replace(month=start.month + 1)
    return start, end


def js_weekday(value: datetime) -> int:
    """Weekday number with 0 for Sunday through 6 for Saturday."""
    return value.isoweekday() % 7
