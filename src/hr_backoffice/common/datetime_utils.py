from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Iterator, Optional


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def current_year() -> int:
    return now_local().year


def iter_dates(start: date, end: date) -> Iterator[date]:
    """Yield every date in the inclusive range [start, end]."""
    day = start
    while day <= end:
        yield day
        day += timedelta(days=1)


def count_weekdays(start: date, end: date) -> int:
    """Number of Monday-Friday dates in [start, end]; 0 when the range is inverted."""
    if end < start:
        return 0
    total_days = (end - start).days + 1
    full_weeks, extra = divmod(total_days, 7)
    count = full_weeks * 5
    weekday = start.weekday()
    for offset in range(extra):
        if (weekday + offset) % 7 < 5:
            count += 1
    return count


def count_calendar_days(start: date, end: date) -> int:
    if end < start:
        return 0
    return (end - start).days + 1


def count_leave_days(start: date, end: date, *, include_weekend: bool = False) -> int:
    """Leave day count for a range.

    Leave entries always use the weekday-only count; the weekend-inclusive
    variant exists for reporting on departments that work seven days.
    """
    if include_weekend:
        return count_calendar_days(start, end)
    return count_weekdays(start, end)


def parse_clock_time(value: str) -> Optional[time]:
    """Extract a clock time from 'HH:MM[:SS]' or 'YYYY-MM-DD HH:MM[:SS]'.

    Returns None when the value holds no usable time.
    """
    v = (value or "").strip()
    if not v:
        return None
    parts = v.split()
    time_part = parts[1] if len(parts) > 1 else parts[0]
    pieces = time_part.split(":")
    if len(pieces) < 2:
        return None
    try:
        hours = int(pieces[0])
        minutes = int(pieces[1] or 0)
    except ValueError:
        return None
    if not (0 <= hours < 24 and 0 <= minutes < 60):
        return None
    return time(hour=hours, minute=minutes)


def normalize_date_text(value: str) -> Optional[str]:
    """'YYYY-MM-DD[ ...]' or 'D/M/YYYY' as 'YYYY-MM-DD'; None when neither."""
    v = (value or "").strip()
    if not v:
        return None
    head = v.split()[0]
    for fmt in ("%Y-%m-%d", "%d/%m/%Y"):
        try:
            return datetime.strptime(head, fmt).date().isoformat()
        except ValueError:
            continue
    return None


def normalize_clock_text(value: str) -> Optional[str]:
    """Clock time as 'HH:MM', or None for blanks and placeholders like '-'."""
    parsed = parse_clock_time(value)
    return parsed.strftime("%H:%M") if parsed else None


def day_first(iso_date: str) -> str:
    """'2026-02-01' -> '01-02-2026'; other text is returned unchanged."""
    parts = iso_date.split("-")
    if len(parts) != 3 or len(parts[0]) != 4:
        return iso_date
    return "-".join(reversed(parts))
