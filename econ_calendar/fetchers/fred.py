"""Fetcher for FRED (Federal Reserve Economic Data).

Free API key via ``FRED_API_KEY``: https://fred.stlouisfed.org/docs/api/api_key.html
Endpoints:
  - ``/fred/releases/dates`` – release calendar (``calendar`` action)
  - ``/fred/series/observations`` – one call per series id (``series`` action)
"""

from __future__ import annotations

import logging
from typing import Any

from ..coerce import parse_numeric_value
from ..errors import CalendarError
from ..models import (
    Action,
    CalendarRequest,
    CapabilityHints,
    NormalizedEvent,
    NormalizedObservation,
    Provider,
    UpstreamRequest,
)
from .base import BaseFetcher, join_url

logger = logging.getLogger(__name__)

_RELEASE_PAGE = "https://fred.stlouisfed.org/releases/calendar"
_RELEASE_URL = "https://fred.stlouisfed.org/release?rid={rid}"

# FRED caps release-date pages at 1000 rows.
_RELEASE_DATES_LIMIT = 1000

# Observations are fetched with one call per id, all in flight at once.
MAX_SERIES_IDS = 50


class FREDFetcher(BaseFetcher):
    """Release calendar and series observations from FRED."""

    provider = Provider.FRED
    actions = frozenset({Action.CALENDAR, Action.SERIES})
    capabilities = CapabilityHints(
        actual=True, consensus=False, previous=False, official=True,
    )
    default_base_url = "https://api.stlouisfed.org"
    env_var = "FRED_API_KEY"
    config_key = "fredApiKey"
    key_label = "fred"
    display_name = "FRED"
    docs_url = "https://fred.stlouisfed.org/docs/api/api_key.html"

    def build_calendar(
        self, request: CalendarRequest, *, api_key: str, base_url: str,
    ) -> UpstreamRequest:
        return UpstreamRequest(
            method="GET",
            url=join_url(base_url, "/fred/releases/dates"),
            params={
                "api_key": api_key,
                "file_type": "json",
                "realtime_start": request.start_date,
                "realtime_end": request.end_date,
                "include_release_dates_with_no_data": "true",
                "sort_order": "asc",
                "limit": str(_RELEASE_DATES_LIMIT),
            },
        )

    def parse_calendar(
        self, request: CalendarRequest, data: Any,
    ) -> list[NormalizedEvent]:
        rows = data.get("release_dates") if isinstance(data, dict) else None
        if not isinstance(rows, list):
            return []
        total = data.get("count")
        if isinstance(total, int) and total > len(rows):
            logger.warning(
                "[fred] release calendar truncated: %d of %d release dates returned; "
                "narrow the date range",
                len(rows), total,
            )
        return [self._normalise_release(row) for row in rows if isinstance(row, dict)]

    def build_series(
        self, request: CalendarRequest, *, api_key: str, base_url: str,
    ) -> list[UpstreamRequest]:
        if len(request.series_ids) > MAX_SERIES_IDS:
            raise CalendarError(
                "too_many_series_ids",
                f"FRED accepts at most {MAX_SERIES_IDS} series ids per request.",
            )
        url = join_url(base_url, "/fred/series/observations")
        return [
            UpstreamRequest(
                method="GET",
                url=url,
                params={
                    "series_id": series_id,
                    "api_key": api_key,
                    "file_type": "json",
                    "observation_start": request.start_date,
                    "observation_end": request.end_date,
                    "sort_order": "asc",
                },
                tag=series_id,
            )
            for series_id in request.series_ids
        ]

    def parse_series(
        self, request: CalendarRequest, upstream: UpstreamRequest, data: Any,
    ) -> list[NormalizedObservation]:
        rows = data.get("observations") if isinstance(data, dict) else None
        if not isinstance(rows, list):
            return []
        series_id = upstream.tag or ""
        results: list[NormalizedObservation] = []
        for row in rows:
            if not isinstance(row, dict) or not isinstance(row.get("date"), str):
                continue
            raw = row.get("value")
            # FRED marks missing observations with "."
            results.append(
                NormalizedObservation(
                    series_id=series_id,
                    date=row["date"],
                    value=parse_numeric_value(raw),
                    raw=raw if isinstance(raw, str) else None,
                )
            )
        return results

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    @staticmethod
    def _normalise_release(raw: dict) -> NormalizedEvent:
        release_id = raw.get("release_id")
        return NormalizedEvent(
            calendar_id=release_id,
            date=raw.get("date"),
            country="united states",
            category="Release",
            event=raw.get("release_name"),
            source="FRED",
            reference=_RELEASE_PAGE,
            url=_RELEASE_URL.format(rid=release_id) if release_id is not None else None,
        )
