"""Fetcher for the U.S. Bureau of Labor Statistics public data API (v2).

Requires a registration key via ``BLS_API_KEY``.
Endpoint: ``POST /publicAPI/v2/timeseries/data/`` – a batch of series ids per
call, with the key in the JSON body.  BLS has no release calendar endpoint,
so only the ``series`` action is supported.
"""

from __future__ import annotations

import logging
from typing import Any

from ..coerce import parse_numeric_value
from ..errors import CalendarError, UpstreamError
from ..models import (
    Action,
    CalendarRequest,
    CapabilityHints,
    NormalizedObservation,
    Provider,
    UpstreamRequest,
)
from .base import BaseFetcher, join_url

logger = logging.getLogger(__name__)

MAX_SERIES_PER_REQUEST = 50

# Period code prefix -> month of the first day of that period.
_QUARTER_START = {"Q01": 1, "Q02": 4, "Q03": 7, "Q04": 10}
_HALF_START = {"S01": 1, "S02": 7}
# Annual averages carry no point-in-time date.
_AVERAGE_PERIODS = {"M13", "Q05", "S03"}


def period_to_date(year: str, period: str) -> str | None:
    """Map a BLS ``(year, period)`` pair to the first day of the period.

    ``("2024", "M03")`` -> ``"2024-03-01"``; annual averages and unknown
    codes yield ``None``.
    """
    if not (isinstance(year, str) and year.isdigit() and len(year) == 4):
        return None
    if not isinstance(period, str) or period in _AVERAGE_PERIODS:
        return None
    month: int | None = None
    if period.startswith("M") and period[1:].isdigit():
        month = int(period[1:])
        if not 1 <= month <= 12:
            return None
    elif period in _QUARTER_START:
        month = _QUARTER_START[period]
    elif period in _HALF_START:
        month = _HALF_START[period]
    elif period == "A01":
        month = 1
    if month is None:
        return None
    return f"{year}-{month:02d}-01"


class BLSFetcher(BaseFetcher):
    """Time-series observations from BLS."""

    provider = Provider.BLS
    actions = frozenset({Action.SERIES})
    capabilities = CapabilityHints(
        actual=True, consensus=False, previous=False, official=True,
    )
    default_base_url = "https://api.bls.gov"
    env_var = "BLS_API_KEY"
    config_key = "blsApiKey"
    key_label = "bls"
    display_name = "BLS"
    docs_url = "https://data.bls.gov/registrationEngine/"

    def build_series(
        self, request: CalendarRequest, *, api_key: str, base_url: str,
    ) -> list[UpstreamRequest]:
        if len(request.series_ids) > MAX_SERIES_PER_REQUEST:
            raise CalendarError(
                "too_many_series_ids",
                f"BLS accepts at most {MAX_SERIES_PER_REQUEST} series ids per request.",
            )
        return [
            UpstreamRequest(
                method="POST",
                url=join_url(base_url, "/publicAPI/v2/timeseries/data/"),
                json={
                    "seriesid": list(request.series_ids),
                    "startyear": request.start_date[:4],
                    "endyear": request.end_date[:4],
                    "registrationkey": api_key,
                },
            )
        ]

    def parse_series(
        self, request: CalendarRequest, upstream: UpstreamRequest, data: Any,
    ) -> list[NormalizedObservation]:
        if not isinstance(data, dict):
            return []
        status = data.get("status")
        if status is not None and status != "REQUEST_SUCCEEDED":
            messages = data.get("message") or []
            detail = "; ".join(str(m) for m in messages) if isinstance(messages, list) else str(messages)
            raise UpstreamError(
                "upstream_error",
                f"BLS API error ({status}): {detail or 'no detail'}",
                provider=self.name,
                detail=detail or None,
            )

        results_block = data.get("Results")
        series_list = results_block.get("series") if isinstance(results_block, dict) else None
        if not isinstance(series_list, list):
            return []

        results: list[NormalizedObservation] = []
        for series in series_list:
            if not isinstance(series, dict):
                continue
            series_id = str(series.get("seriesID") or "")
            for row in series.get("data") or []:
                if not isinstance(row, dict):
                    continue
                obs_date = period_to_date(row.get("year"), row.get("period"))
                if obs_date is None:
                    logger.debug("[bls] skipping period %r for %s", row.get("period"), series_id)
                    continue
                # BLS only filters by year; trim to the requested days.
                if not (request.start_date <= obs_date <= request.end_date):
                    continue
                raw = row.get("value")
                results.append(
                    NormalizedObservation(
                        series_id=series_id,
                        date=obs_date,
                        value=parse_numeric_value(raw),
                        raw=raw if isinstance(raw, str) else None,
                    )
                )
        return results
