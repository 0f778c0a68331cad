"""Economic calendar events and time-series observations from FRED, BLS
and Trading Economics, normalised into one payload shape."""

from __future__ import annotations

from .cache import ResponseCache, make_cache_key
from .config import CalendarConfig
from .dispatcher import EconomicCalendar, create_economic_calendar
from .errors import CalendarError, UpstreamError
from .models import (
    Action,
    CalendarRequest,
    CapabilityHints,
    NormalizedEvent,
    NormalizedObservation,
    Provider,
)

__all__ = [
    "Action",
    "CalendarConfig",
    "CalendarError",
    "CalendarRequest",
    "CapabilityHints",
    "EconomicCalendar",
    "NormalizedEvent",
    "NormalizedObservation",
    "Provider",
    "ResponseCache",
    "UpstreamError",
    "create_economic_calendar",
    "make_cache_key",
]
