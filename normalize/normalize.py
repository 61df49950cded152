from __future__ import annotations

import re
from datetime import UTC, datetime

from dateutil import parser as dateutil_parser


_WS_RE = re.compile(r"\s+")
_SPACE_BEFORE_COMMA_RE = re.compile(r"\s+,")
_DIGITS_RE = re.compile(r"[0-9]+")

DISEASE_SEPARATOR = "-"


def utc_now_iso() -> str:
    return datetime.now(tz=UTC).isoformat().replace("+00:00", "Z")


def to_utc_iso(dt: datetime) -> str:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone(tz=UTC).isoformat().replace("+00:00", "Z")


def collapse_whitespace(text: str) -> str:
    flattened = _WS_RE.sub(" ", text).strip()
    return _SPACE_BEFORE_COMMA_RE.sub(",", flattened)


def iso_from_date_label(date_label: str | None) -> str | None:
    """Parse a label such as "November 28, 2025" into a UTC ISO-8601 instant.

    A label without a timezone is taken as midnight UTC. Returns None when the
    label is missing or does not describe a real calendar date; the current
    time is never substituted.
    """
    if not date_label:
        return None
    try:
        dt = dateutil_parser.parse(date_label)
    except (ValueError, OverflowError):
        return None
    return to_utc_iso(dt)


def parse_count(token: str | None) -> int | None:
    if token is None:
        return None
    token = token.strip()
    if not token or token.casefold() == "unknown":
        return None
    if _DIGITS_RE.fullmatch(token) is None:
        return None
    return int(token)


def category_from_disease(disease: str | None) -> str | None:
    if not disease:
        return None
    parts = disease.split(DISEASE_SEPARATOR)
    if len(parts) < 2:
        return None
    category = parts[1].strip()
    return category or None
