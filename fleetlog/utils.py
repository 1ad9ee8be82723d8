from __future__ import annotations

import datetime as dt
import math
import re
from typing import Any

_WHITESPACE = re.compile(r"\s+")


def utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def parse_number(value: Any) -> float:
    """Parse user input as a float, returning NaN when it is not a number."""
    if value is None or isinstance(value, bool):
        return math.nan
    if isinstance(value, (int, float)):
        return float(value)
    text = str(value).strip()
    if not text:
        return math.nan
    try:
        return float(text)
    except ValueError:
        return math.nan


def coerce_number(value: Any, default: float = 0.0) -> float:
    """Like :func:`parse_number` but falls back to ``default`` for anything non-finite."""
    number = parse_number(value)
    if not math.isfinite(number):
        return default
    return number


def coerce_text(value: Any) -> Any:
    """Render empty cells as "" and numeric cells as text; anything else passes through."""
    if value is None:
        return ""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(int(value)) if float(value).is_integer() else str(value)
    return value


def slugify_service(name: str) -> str:
    return _WHITESPACE.sub("-", name.strip().lower())


def timestamp_identifier(moment: dt.datetime) -> str:
    """Millisecond epoch string used as identifier for new records."""
    return str(int(moment.timestamp() * 1000))


def isoformat_utc(moment: dt.datetime) -> str:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=dt.timezone.utc)
    return moment.astimezone(dt.timezone.utc).isoformat()
