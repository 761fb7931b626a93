from __future__ import annotations

from datetime import UTC, datetime
from email.utils import parsedate_to_datetime


WIRE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


def parse_time(value: object) -> datetime | None:
    """Best-effort parse of feed timestamps into an aware UTC datetime.

    Accepts datetimes, epoch milliseconds (int/float or digit strings),
    ISO-8601 strings and RFC 2822 strings. Returns ``None`` otherwise.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, (int, float)):
        try:
            dt = datetime.fromtimestamp(value / 1000.0, tz=UTC)
        except (OverflowError, OSError, ValueError):
            return None
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.isdigit():
            return parse_time(int(text))
        try:
            dt = datetime.fromisoformat(text)
        except ValueError:
            try:
                dt = parsedate_to_datetime(text)
            except (TypeError, ValueError):
                return None
    else:
        return None

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def to_wire_time(value: object) -> str | None:
    dt = parse_time(value)
    if dt is None:
        return None
    return dt.strftime(WIRE_FORMAT)


def now_wire_time() -> str:
    return _utc_now().strftime(WIRE_FORMAT)


def is_active_at(cleared: object, now: datetime | None = None) -> bool:
    """No clearance time means active; a future clearance time is still active."""
    cleared_dt = parse_time(cleared)
    if cleared_dt is None:
        return True
    return cleared_dt > (now or _utc_now())
