"""Pure coercion helpers.

The ``parse_*`` / ``normalize_*`` functions are total: malformed input
yields ``None`` instead of raising, so a single bad field never fails a
whole response.  The ``resolve_*`` functions validate caller input and
raise :class:`CalendarError`.
"""

from __future__ import annotations

import math
import re
from typing import Any, Iterable

from .errors import CalendarError

IMPORTANCE_LEVELS = (1, 2, 3)
MAX_EVENTS_CAP = 200

_NUMBER_RE = re.compile(r"-?\d+(?:\.\d+)?")
_LEADING_INT_RE = re.compile(r"^[+-]?\d+")


def parse_numeric_value(raw: Any) -> float | None:
    """``"3.2%"`` -> 3.2, ``"-1.5"`` -> -1.5, ``"n/a"`` -> None, ``7`` -> 7."""
    if isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        return raw if math.isfinite(raw) else None
    if not isinstance(raw, str):
        return None
    match = _NUMBER_RE.search(raw.strip())
    if not match:
        return None
    return float(match.group(0))


def normalize_importance(raw: Any) -> int | None:
    """Importance of an upstream item, or None when unknown/out of range."""
    value: int | None = None
    if isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)) and math.isfinite(raw):
        value = math.trunc(raw)
    elif isinstance(raw, str):
        match = _LEADING_INT_RE.match(raw.strip())
        if match:
            value = int(match.group(0))
    return value if value in IMPORTANCE_LEVELS else None


def _read_integer(raw: Any) -> int | None:
    """Truncate a number or numeric string; ``None`` if it is neither."""
    if isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        return math.trunc(raw) if math.isfinite(raw) else None
    if isinstance(raw, str) and raw.strip():
        try:
            parsed = float(raw.strip())
        except ValueError:
            return None
        return math.trunc(parsed) if math.isfinite(parsed) else None
    return None


def resolve_importance(raw: Any) -> int | None:
    """Validate the caller's importance filter (absent -> None)."""
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return None
    value = _read_integer(raw)
    if value not in IMPORTANCE_LEVELS:
        raise CalendarError("invalid_importance", "importance must be 1, 2, or 3.")
    return value


def resolve_max_events(raw: Any, default: int) -> int:
    """Caller value must land in ``[1, MAX_EVENTS_CAP]``; the configured
    default is clamped into that range instead."""
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return min(MAX_EVENTS_CAP, max(1, default))
    value = _read_integer(raw)
    if value is None or not 1 <= value <= MAX_EVENTS_CAP:
        raise CalendarError(
            "invalid_max_events",
            f"maxEvents must be a number between 1 and {MAX_EVENTS_CAP}.",
        )
    return value


def _split_csv(values: Iterable[Any]) -> list[str]:
    out: list[str] = []
    for value in values:
        if isinstance(value, str):
            out.extend(part.strip() for part in value.split(","))
    return [part for part in out if part]


def resolve_countries(
    country: str | None = None,
    countries: Iterable[str] | None = None,
    fallback: str | None = None,
) -> list[str]:
    """Country list from ``countries``, a comma-separated ``country``, the
    configured fallback, and finally ``["all"]``."""
    for candidate in (countries or [], [country], [fallback]):
        resolved = _split_csv(candidate)
        if resolved:
            return resolved
    return ["all"]


def resolve_series_ids(raw: Any) -> list[str]:
    if isinstance(raw, str):
        return _split_csv([raw])
    if isinstance(raw, (list, tuple)):
        return _split_csv(raw)
    return []


def normalize_secret(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""
