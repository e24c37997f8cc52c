"""Calendar-day helpers. Everything is truncated to a local day before comparing."""
from datetime import date, datetime, time, timedelta


def to_day(value: date | datetime | str) -> date:
    """Truncate a date, datetime or ISO string to a local calendar day.

    Strings come back from Supabase either as ``2026-01-31`` (date columns) or
    as full ISO timestamps (timestamptz columns, usually UTC); both are accepted.
    Timezone-aware values are converted to local time first, so they land on
    the same day ``today()`` would report.
    """
    if isinstance(value, datetime):
        return value.astimezone().date() if value.tzinfo is not None else value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            if len(text) <= 10:
                return date.fromisoformat(text)
            return to_day(datetime.fromisoformat(text.replace("Z", "+00:00")))
        except ValueError:
            raise ValueError(f"Not a calendar date: {value!r}") from None
    raise ValueError(f"Not a calendar date: {value!r}")


def today() -> date:
    return date.today()


def local_midnight(day: date) -> datetime:
    """Start of ``day`` in local time, timezone-aware (for timestamptz filters)."""
    return datetime.combine(day, time.min).astimezone()


def days_between(a: date | datetime | str, b: date | datetime | str | None = None) -> int:
    """Whole days from ``a`` to ``b`` (default today). Never negative."""
    start = to_day(a)
    end = to_day(b) if b is not None else today()
    return max(0, (end - start).days)


def add_days(day: date | datetime | str, n: int) -> date:
    return to_day(day) + timedelta(days=n)
