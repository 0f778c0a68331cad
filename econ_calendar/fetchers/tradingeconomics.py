"""Fetcher for the Trading Economics economic calendar.

Requires an API key via ``TRADING_ECONOMICS_API_KEY``.
Endpoint: ``/calendar/country/{countries}/{start}/{end}?c=<key>&f=json``
"""

from __future__ import annotations

from typing import Any
from urllib.parse import quote

from ..coerce import normalize_importance, parse_numeric_value
from ..models import (
    Action,
    CalendarRequest,
    CapabilityHints,
    NormalizedEvent,
    Provider,
    UpstreamRequest,
)
from .base import BaseFetcher, join_url


class TradingEconomicsFetcher(BaseFetcher):
    """Calendar events with actuals and market consensus from Trading Economics."""

    provider = Provider.TRADING_ECONOMICS
    actions = frozenset({Action.CALENDAR})
    capabilities = CapabilityHints(
        actual=True, consensus=True, previous=True, official=False,
    )
    default_base_url = "https://api.tradingeconomics.com"
    env_var = "TRADING_ECONOMICS_API_KEY"
    config_key = "tradingEconomicsApiKey"
    key_label = "trading_economics"
    display_name = "Trading Economics"
    docs_url = "https://tradingeconomics.com/api/"

    def build_calendar(
        self, request: CalendarRequest, *, api_key: str, base_url: str,
    ) -> UpstreamRequest:
        countries = ",".join(quote(c, safe="") for c in request.countries)
        params = {"c": api_key, "f": "json"}
        if request.importance is not None:
            params["importance"] = str(request.importance)
        return UpstreamRequest(
            method="GET",
            url=join_url(
                base_url,
                f"/calendar/country/{countries}/{request.start_date}/{request.end_date}",
            ),
            params=params,
        )

    def parse_calendar(
        self, request: CalendarRequest, data: Any,
    ) -> list[NormalizedEvent]:
        # Errors and empty ranges come back as objects rather than lists.
        if not isinstance(data, list):
            return []
        return [self._normalise(item) for item in data if isinstance(item, dict)]

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    @staticmethod
    def _normalise(raw: dict) -> NormalizedEvent:
        return NormalizedEvent(
            calendar_id=raw.get("CalendarId"),
            date=raw.get("Date"),
            country=raw.get("Country"),
            category=raw.get("Category"),
            event=raw.get("Event"),
            actual=raw.get("Actual"),
            consensus=raw.get("Forecast"),
            previous=raw.get("Previous"),
            te_forecast=raw.get("TEForecast"),
            actual_number=parse_numeric_value(raw.get("Actual")),
            consensus_number=parse_numeric_value(raw.get("Forecast")),
            previous_number=parse_numeric_value(raw.get("Previous")),
            te_forecast_number=parse_numeric_value(raw.get("TEForecast")),
            importance=normalize_importance(raw.get("Importance")),
            currency=raw.get("Currency"),
            unit=raw.get("Unit"),
            source=raw.get("Source"),
            reference=raw.get("Reference"),
            url=raw.get("URL"),
            last_update=raw.get("LastUpdate"),
        )
