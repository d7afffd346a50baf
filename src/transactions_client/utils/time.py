"""Time helpers."""

from __future__ import annotations

from datetime import datetime, timezone


def utc_now() -> datetime:
    return datetime.now(tz=timezone.utc)


def parse_instant(value: datetime | str) -> datetime:
    """Parse an ISO-8601 string or datetime into an aware instant.

    Naive values are read as local wall-clock time, the way a browser reads a
    ``datetime-local`` input. Raises ``ValueError`` for unparseable strings.
    """
    if isinstance(value, datetime):
        parsed = value
    else:
        text = value.strip()
        if not text:
            raise ValueError("empty timestamp")
        parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.astimezone()
    return parsed


def to_wire_instant(value: datetime) -> str:
    """Serialize an instant as UTC ISO-8601 with millisecond precision and ``Z``."""
    utc = parse_instant(value).astimezone(timezone.utc)
    return utc.isoformat(timespec="milliseconds").replace("+00:00", "Z")
