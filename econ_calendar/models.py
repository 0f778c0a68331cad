"""Normalised request/result models shared across all fetchers."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any


class Provider(str, Enum):
    FRED = "fred"
    BLS = "bls"
    TRADING_ECONOMICS = "tradingeconomics"


class Action(str, Enum):
    CALENDAR = "calendar"
    SERIES = "series"


@dataclass(frozen=True, slots=True)
class CapabilityHints:
    """Which fields a provider is able to populate at all.

    Declared once per provider; never inferred from a single response.
    """

    actual: bool
    consensus: bool
    previous: bool
    official: bool

    def to_dict(self) -> dict[str, bool]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class CalendarRequest:
    """Fully-resolved request: dates filled in, filters validated."""

    provider: Provider
    action: Action
    countries: tuple[str, ...]
    start_date: str                  # YYYY-MM-DD
    end_date: str                    # YYYY-MM-DD
    max_events: int
    importance: int | None = None    # 1=Low, 2=Medium, 3=High
    event_filter: str | None = None
    series_ids: tuple[str, ...] = ()

    def query(self) -> dict[str, Any]:
        """Echo of the resolved parameters, as returned to the caller."""
        query: dict[str, Any] = {
            "provider": self.provider.value,
            "action": self.action.value,
            "startDate": self.start_date,
            "endDate": self.end_date,
            "maxEvents": self.max_events,
        }
        if self.action is Action.CALENDAR:
            query["countries"] = list(self.countries)
            if self.importance is not None:
                query["importance"] = self.importance
            if self.event_filter:
                query["event"] = self.event_filter
        else:
            query["seriesIds"] = list(self.series_ids)
        return query


@dataclass(frozen=True, slots=True)
class NormalizedEvent:
    """Source-agnostic representation of a single economic calendar event.

    Every fetcher maps its raw API response into this shape.  ``*_number``
    fields hold the parsed reading, or ``None`` when the raw value could not
    be parsed.
    """

    date: str | None
    calendar_id: str | int | None = None
    country: str | None = None
    category: str | None = None
    event: str | None = None             # e.g. "Non Farm Payrolls"
    actual: str | float | None = None
    consensus: str | float | None = None
    previous: str | float | None = None
    te_forecast: str | float | None = None
    actual_number: float | None = None
    consensus_number: float | None = None
    previous_number: float | None = None
    te_forecast_number: float | None = None
    importance: int | None = None
    currency: str | None = None
    unit: str | None = None
    source: str | None = None
    reference: str | None = None
    url: str | None = None
    last_update: str | None = None

    def to_dict(self) -> dict[str, Any]:
        # Absent values are dropped rather than emitted as null/zero.
        raw = {
            "calendarId": self.calendar_id,
            "date": self.date,
            "country": self.country,
            "category": self.category,
            "event": self.event,
            "actual": self.actual,
            "consensus": self.consensus,
            "previous": self.previous,
            "teForecast": self.te_forecast,
            "actualNumber": self.actual_number,
            "consensusNumber": self.consensus_number,
            "previousNumber": self.previous_number,
            "teForecastNumber": self.te_forecast_number,
            "importance": self.importance,
            "currency": self.currency,
            "unit": self.unit,
            "source": self.source,
            "reference": self.reference,
            "url": self.url,
            "lastUpdate": self.last_update,
        }
        return {k: v for k, v in raw.items() if v is not None}


@dataclass(frozen=True, slots=True)
class NormalizedObservation:
    """One point of a time series; ``value`` is ``None`` when missing upstream."""

    series_id: str
    date: str
    value: float | None
    raw: str | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"seriesId": self.series_id, "date": self.date}
        if self.value is None:
            out["missing"] = True
        else:
            out["value"] = self.value
        if self.raw is not None:
            out["raw"] = self.raw
        return out


@dataclass(frozen=True, slots=True)
class UpstreamRequest:
    """A single HTTP call a fetcher wants issued on its behalf."""

    method: str
    url: str
    params: dict[str, str] = field(default_factory=dict)
    json: dict[str, Any] | None = None
    tag: str | None = None           # e.g. the series id for per-series calls
