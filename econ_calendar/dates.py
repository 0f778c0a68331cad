"""Date range resolution for calendar and series requests."""

from __future__ import annotations

import math
import re
from datetime import date, datetime, timedelta, timezone

from .errors import CalendarError

_ISO_DATE_RE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")


def is_valid_iso_date(value: str) -> bool:
    """True for strict ``YYYY-MM-DD`` strings naming a real calendar day.

    ``2026-02-30`` matches the pattern but is rejected.
    """
    if not _ISO_DATE_RE.fullmatch(value):
        return False
    year, month, day = (int(part) for part in value.split("-"))
    try:
        date(year, month, day)
    except ValueError:
        return False
    return True


def utc_today() -> str:
    return datetime.now(timezone.utc).date().isoformat()


def add_days(start: str, days: float) -> str:
    """Return *start* shifted forward by ``floor(days)``, never backwards."""
    offset = max(0, math.floor(days))
    return (date.fromisoformat(start) + timedelta(days=offset)).isoformat()


def resolve_date_range(
    start_date: str | None,
    end_date: str | None,
    *,
    days_ahead: float,
    today: str | None = None,
) -> tuple[str, str]:
    """Validate and fill in ``(start_date, end_date)``.

    Parameters
    ----------
    start_date, end_date:
        Caller-supplied ``YYYY-MM-DD`` strings, or ``None``/blank.
    days_ahead:
        Look-ahead used when *end_date* is absent.
    today:
        Override for the current UTC date (``YYYY-MM-DD``).

    Raises :class:`CalendarError` with kind ``invalid_start_date``,
    ``invalid_end_date`` or ``invalid_date_range``.
    """
    start = (start_date or "").strip() or today or utc_today()
    if not is_valid_iso_date(start):
        raise CalendarError(
            "invalid_start_date", "startDate must be in YYYY-MM-DD format.",
        )

    end = (end_date or "").strip() or add_days(start, days_ahead)
    if not is_valid_iso_date(end):
        raise CalendarError(
            "invalid_end_date", "endDate must be in YYYY-MM-DD format.",
        )

    # Zero-padded ISO dates compare chronologically as strings.
    if start > end:
        raise CalendarError(
            "invalid_date_range", "startDate must be before or equal to endDate.",
        )
    return start, end
