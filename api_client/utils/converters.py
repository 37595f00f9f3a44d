"""Round-trip date/time text encoding used for stored expiration values."""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone

# Sentinel returned for an absent expiration. Aware so it compares with
# every value this package produces.
MIN_INSTANT = datetime.min.replace(tzinfo=timezone.utc)

_FRACTION_RE = re.compile(r"(?P<head>T\d{2}:\d{2}:\d{2})\.(?P<fraction>\d+)")

# Naive values in the first day of year 1 cannot be shifted to local time;
# other round-trip writers store them for "never set".
_UNSET_WINDOW = timedelta(days=1)


def format_roundtrip(value: datetime) -> str:
    """Render ``value`` as ISO-8601 with microseconds and an explicit offset.

    Naive values are taken as local time. UTC is written with a ``Z``
    suffix, every other offset as ``+HH:MM``.
    """

    if value.tzinfo is None:
        value = value.astimezone()
    text = value.isoformat(timespec="microseconds")
    if value.utcoffset() == timedelta(0):
        text = text[: -len("+00:00")] + "Z"
    return text


def parse_roundtrip(text: str) -> datetime:
    """Parse text produced by :func:`format_roundtrip`.

    Also accepts fractions longer than six digits (truncated to
    microseconds) and values without an offset, which are returned naive.
    Raises ``ValueError`` for anything else.
    """

    stripped = text.strip()
    if not stripped:
        raise ValueError("empty date/time value")
    if stripped[-1] in ("Z", "z"):
        stripped = stripped[:-1] + "+00:00"

    def _truncate(match: re.Match) -> str:
        fraction = match.group("fraction")[:6].ljust(6, "0")
        return f"{match.group('head')}.{fraction}"

    stripped = _FRACTION_RE.sub(_truncate, stripped, count=1)
    return datetime.fromisoformat(stripped)


def as_aware(value: datetime) -> datetime:
    """Return ``value`` with an offset, reading naive values as local time.

    Naive values within a day of ``datetime.min`` map to :data:`MIN_INSTANT`.
    Other out-of-range values raise ``ValueError`` or ``OverflowError``.
    """

    if value.tzinfo is not None:
        return value
    if value - datetime.min < _UNSET_WINDOW:
        return MIN_INSTANT
    return value.astimezone()


__all__ = ["MIN_INSTANT", "as_aware", "format_roundtrip", "parse_roundtrip"]
