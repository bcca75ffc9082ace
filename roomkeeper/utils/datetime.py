"""Datetime helpers.

Deadlines travel as RFC 3339 strings in container labels, so parsing here is
strict: ``datetime.fromisoformat`` alone accepts far more than RFC 3339
(week dates, missing offsets, space separators).
"""

from __future__ import annotations

import re
from datetime import UTC, datetime

_RFC3339_RE = re.compile(
    r"(?P<date>[0-9]{4}-[0-9]{2}-[0-9]{2})[Tt]"
    r"(?P<time>[0-9]{2}:[0-9]{2}:[0-9]{2})"
    r"(?:\.(?P<frac>[0-9]+))?"
    r"(?P<offset>[Zz]|[+-][0-9]{2}:[0-9]{2})"
)


def utcnow() -> datetime:
    """Return current UTC time as an aware datetime."""
    return datetime.now(UTC)


def parse_rfc3339(value: str) -> datetime:
    """Parse an RFC 3339 timestamp into an aware datetime.

    Fractional seconds beyond microseconds are truncated.

    Raises:
        ValueError: If value is not RFC 3339.
    """
    m = _RFC3339_RE.fullmatch(value)
    if m is None:
        raise ValueError(f"not an RFC 3339 timestamp: {value!r}")

    iso = f"{m['date']}T{m['time']}"
    if m["frac"]:
        iso += "." + m["frac"][:6].ljust(6, "0")

    offset = m["offset"]
    iso += "+00:00" if offset in ("Z", "z") else offset

    # fromisoformat still validates field ranges (month 13, hour 25, ...)
    return datetime.fromisoformat(iso)


def format_rfc3339(value: datetime) -> str:
    """Format a datetime as RFC 3339 with second precision.

    Naive datetimes are treated as UTC. UTC is rendered with a ``Z`` suffix.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)

    text = value.replace(microsecond=0).isoformat()
    if text.endswith("+00:00"):
        text = text[: -len("+00:00")] + "Z"
    return text
