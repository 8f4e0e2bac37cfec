"""Time-related helpers for AlertDesk."""

from __future__ import annotations

import datetime

_EPOCH = datetime.datetime(1970, 1, 1, tzinfo=datetime.UTC)


def utc_now_iso() -> str:
    """Return current UTC time in ISO format without sub-second precision."""
    return datetime.datetime.now(datetime.UTC).isoformat(timespec="seconds")


def coerce_datetime(
    value: datetime.datetime | datetime.date | int | float | str,
    *,
    tz: datetime.tzinfo | None = None,
) -> datetime.datetime:
    """Return an aware :class:`datetime.datetime` for *value*.

    Integers and floats are epoch milliseconds as sent by the alert store.
    Strings are parsed with :meth:`datetime.datetime.fromisoformat`. Naive
    values are interpreted in *tz*, defaulting to the local timezone.
    """

    if isinstance(value, bool):
        raise TypeError("Boolean is not a valid timestamp")
    if isinstance(value, (int, float)):
        moment = datetime.datetime.fromtimestamp(value / 1000, datetime.UTC)
        return moment.astimezone(tz) if tz is not None else moment.astimezone()
    if isinstance(value, str):
        try:
            moment = datetime.datetime.fromisoformat(value.strip())
        except ValueError as exc:
            raise ValueError(f"Invalid datetime: {value}") from exc
    elif isinstance(value, datetime.datetime):
        moment = value
    elif isinstance(value, datetime.date):
        moment = datetime.datetime.combine(value, datetime.time())
    else:
        raise TypeError(f"Unsupported timestamp type: {type(value).__name__}")
    if moment.tzinfo is None:
        if tz is None:
            return moment.astimezone()
        return moment.replace(tzinfo=tz)
    return moment


def day_bounds(
    value: datetime.datetime | datetime.date | int | float | str,
    *,
    tz: datetime.tzinfo | None = None,
) -> tuple[datetime.datetime, datetime.datetime]:
    """Return start and end of the calendar day containing *value*.

    The end bound is ``23:59:59.999`` so it stays inside the day when
    rendered with millisecond precision.
    """

    moment = coerce_datetime(value, tz=tz)
    start = moment.replace(hour=0, minute=0, second=0, microsecond=0)
    end = moment.replace(hour=23, minute=59, second=59, microsecond=999000)
    return start, end


def to_epoch_millis(value: datetime.datetime) -> int:
    """Return *value* as integer milliseconds since the Unix epoch."""
    if value.tzinfo is None:
        value = value.astimezone()
    return (value - _EPOCH) // datetime.timedelta(milliseconds=1)
