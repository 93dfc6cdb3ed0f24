"""Time helpers.

Timestamps reach the client in several shapes: native ``datetime`` values
(including store-specific subclasses), objects exposing a conversion method,
ISO-8601 strings, plain dates and epoch numbers. Everything inside CRUX works
on timezone-aware UTC datetimes, so values are coerced at the boundary.
"""

from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Protocol


class Clock(Protocol):
    """Source of the current time (aware UTC)."""

    def __call__(self) -> datetime: ...


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


class SystemClock:
    """Wall clock used outside tests."""

    def __call__(self) -> datetime:
        return utc_now()


def to_datetime(value: Any, default: datetime | None = None) -> datetime | None:
    """Coerce a timestamp representation to an aware UTC datetime.

    Args:
        value: datetime, date, ISO string, epoch seconds, or an object with a
            ``to_datetime()`` / ``ToDatetime()`` conversion method
        default: Returned when the value is missing or cannot be parsed

    Returns:
        Aware UTC datetime, or ``default``
    """
    if value is None:
        return default

    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=timezone.utc)

    if isinstance(value, bool):
        return default

    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value, tz=timezone.utc)

    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return to_datetime(datetime.fromisoformat(text), default)
        except ValueError:
            return default

    # Native timestamp objects (store SDK timestamps, protobuf Timestamp)
    for method_name in ("to_datetime", "ToDatetime"):
        method = getattr(value, method_name, None)
        if callable(method):
            return to_datetime(method(), default)

    return default


def time_ago(moment: Any, now: datetime | None = None) -> str:
    """Format a timestamp as a compact relative age.

    Examples: ``"42s"``, ``"5m"``, ``"3h"``, ``"12d"``. Missing timestamps
    (a server timestamp that has not resolved yet) read as ``"just now"``.
    """
    when = to_datetime(moment)
    if when is None:
        return "just now"

    reference = now or utc_now()
    seconds = max(0, int((reference - when).total_seconds()))

    if seconds < 60:
        return f"{seconds}s"
    if seconds < 3600:
        return f"{seconds // 60}m"
    if seconds < 86400:
        return f"{seconds // 3600}h"
    return f"{seconds // 86400}d"


def format_duration(remaining: timedelta) -> str:
    """Format a wait duration at 1-second resolution, e.g. ``"23h 4m 5s"``."""
    total = max(0, int(remaining.total_seconds()))
    hours, rest = divmod(total, 3600)
    minutes, seconds = divmod(rest, 60)
    return f"{hours}h {minutes}m {seconds}s"


def member_since(created_at: Any) -> str | None:
    """Format a profile creation time as ``"Mon YYYY"``."""
    when = to_datetime(created_at)
    if when is None:
        return None
    return when.strftime("%b %Y")
