"""Time helpers shared by recency-aware scorers."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any, Callable

import pendulum

SECONDS_PER_DAY = 60 * 60 * 24

NowProvider = Callable[[], datetime]


def ensure_aware(value: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def days_since(moment: datetime, as_of: datetime) -> float:
    """Fractional days elapsed from ``moment`` to ``as_of`` (negative if in the future)."""
    delta = ensure_aware(as_of) - ensure_aware(moment)
    return delta.total_seconds() / SECONDS_PER_DAY


def resolve_as_of(value: Any = None, *, now_provider: NowProvider | None = None) -> datetime:
    """Return a timezone-aware reference instant.

    Accepts ``None`` (current time), a ``datetime``/``date`` or an ISO-8601 /
    ``YYYY-MM`` string.
    """
    if value is None:
        return ensure_aware((now_provider or pendulum.now)())
    if isinstance(value, datetime):
        return ensure_aware(value)
    if isinstance(value, date):
        return pendulum.datetime(value.year, value.month, value.day)
    text = str(value).strip()
    if len(text) == 7 and text[4] == "-":
        return pendulum.datetime(int(text[:4]), int(text[5:7]), 1)
    parsed = pendulum.parse(text)
    if isinstance(parsed, datetime):
        return ensure_aware(parsed)
    raise ValueError(f"Unsupported reference date: {value!r}")
