"""Resolve activity time filters to an absolute half-open interval."""
from __future__ import annotations

import calendar
from datetime import datetime, timedelta, timezone

Interval = tuple[datetime | None, datetime | None]


def _start_of_day(moment: datetime) -> datetime:
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def _subtract_month(moment: datetime) -> datetime:
    year, month = (moment.year, moment.month - 1) if moment.month > 1 else (moment.year - 1, 12)
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def resolve_time_range(
    time_range: str | None = None,
    date_from: datetime | None = None,
    date_to: datetime | None = None,
    now: datetime | None = None,
) -> Interval:
    """
    Return ``(start, end)`` for ``start <= created_at < end``.

    Explicit ``date_from``/``date_to`` take precedence over the named bucket.
    ``today``/``yesterday`` are whole days in the timezone of ``now``;
    ``week``/``month`` are rolling windows ending at ``now``. Either bound may
    be None (unbounded).

    Raises:
        ValueError: If ``time_range`` is not a known bucket
    """
    if date_from is not None or date_to is not None:
        return date_from, date_to

    if time_range is None or time_range == "all":
        return None, None

    if now is None:
        now = datetime.now(timezone.utc)
    midnight = _start_of_day(now)

    if time_range == "today":
        return midnight, None
    if time_range == "yesterday":
        return midnight - timedelta(days=1), midnight
    if time_range == "week":
        return now - timedelta(days=7), None
    if time_range == "month":
        return _subtract_month(now), None

    raise ValueError(f"Unknown time range '{time_range}'")
