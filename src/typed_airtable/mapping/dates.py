"""Lenient date parsing and canonical ISO-8601 rendering."""

from __future__ import annotations

import math
import re
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime

_BASIC_OFFSET = re.compile(r"([+-]\d{2})(\d{2})$")
# Output of a JavaScript Date#toString(), e.g.
# "Sun Apr 09 2023 13:34:56 GMT+0100 (British Summer Time)"
_DATE_STRING = re.compile(
    r"^(?P<body>[A-Za-z]{3} [A-Za-z]{3} \d{1,2} \d{4} \d{2}:\d{2}:\d{2}(?P<fraction>\.\d+)?)"
    r"\s+GMT(?P<offset>[+-]\d{4})(?:\s*\(.*\))?$"
)


def _from_iso(text: str) -> datetime | None:
    candidate = _BASIC_OFFSET.sub(r"\1:\2", text) if "T" in text else text
    try:
        return datetime.fromisoformat(candidate)
    except ValueError:
        return None


def _from_date_string(text: str) -> datetime | None:
    match = _DATE_STRING.match(text)
    if not match:
        return None
    pattern = "%a %b %d %Y %H:%M:%S" + (".%f" if match.group("fraction") else "")
    try:
        parsed = datetime.strptime(match.group("body"), pattern)
        offset = datetime.strptime(match.group("offset"), "%z").tzinfo
    except ValueError:
        return None
    return parsed.replace(tzinfo=offset)


def _from_rfc2822(text: str) -> datetime | None:
    try:
        return parsedate_to_datetime(text)
    except (TypeError, ValueError, IndexError):
        return None


def parse_datetime(text: str) -> datetime | None:
    """Parse ISO-8601, RFC 2822 or JavaScript date strings; ``None`` if invalid.

    Values without an offset are taken to be UTC.
    """

    candidate = text.strip()
    if not candidate:
        return None

    parsed = _from_iso(candidate) or _from_date_string(candidate) or _from_rfc2822(candidate)
    if parsed is None:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def from_unix_seconds(seconds: float) -> datetime | None:
    try:
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None


def to_unix_seconds(moment: datetime) -> int:
    """Whole seconds since the epoch; fractions are floored, never rounded."""

    return math.floor(moment.timestamp())


def to_iso(moment: datetime) -> str:
    """Millisecond-precision UTC rendering, e.g. ``2023-04-09T12:34:56.789Z``."""

    utc = moment.astimezone(timezone.utc)
    return f"{utc.year:04d}-{utc:%m-%dT%H:%M:%S}.{utc.microsecond // 1000:03d}Z"
