"""Economic calendar dispatcher.

Selects a provider fetcher, validates the request, consults the response
cache and, on a miss, issues the upstream call(s) and shapes the payload.
Every failure is returned as an ``{error, message, ...}`` payload; only
cancellation of the caller's task propagates.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Mapping, Sequence

import httpx

from .cache import ResponseCache, make_cache_key
from .coerce import (
    resolve_countries,
    resolve_importance,
    resolve_max_events,
    resolve_series_ids,
)
from .config import CalendarConfig
from .dates import resolve_date_range
from .errors import CalendarError
from .fetchers import BaseFetcher, get_fetcher
from .http import fetch_json
from .models import (
    Action,
    CalendarRequest,
    NormalizedEvent,
    NormalizedObservation,
    Provider,
    UpstreamRequest,
)

logger = logging.getLogger(__name__)


def select_events(
    events: Sequence[NormalizedEvent], request: CalendarRequest,
) -> list[NormalizedEvent]:
    """Filter, sort ascending by date (stable) and cap at ``max_events``.

    Filters see the full fetched set; truncation happens last.
    """
    needle = (request.event_filter or "").strip().lower()
    kept = [
        ev for ev in events
        if (not needle or (isinstance(ev.event, str) and needle in ev.event.lower()))
        # Unknown importance is not grounds for exclusion.
        and (request.importance is None or ev.importance is None
             or ev.importance == request.importance)
    ]
    kept.sort(key=lambda ev: ev.date if isinstance(ev.date, str) else "")
    return kept[: request.max_events]


def select_observations(
    observations: Sequence[NormalizedObservation], request: CalendarRequest,
) -> list[NormalizedObservation]:
    ordered = sorted(observations, key=lambda obs: obs.date)
    return ordered[: request.max_events]


class EconomicCalendar:
    """Single entry point: ``await calendar.run(params)``.

    Parameters
    ----------
    config:
        Resolved settings (credentials, defaults, timeout, cache TTL).
    cache:
        Shared response cache; one instance per process is the intended
        deployment.  A private one is created when omitted.
    client:
        Optional ``httpx.AsyncClient`` to reuse; otherwise a client is
        opened per call.
    """

    def __init__(
        self,
        config: CalendarConfig | None = None,
        *,
        cache: ResponseCache | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.config = config or CalendarConfig.from_mapping()
        self.cache = cache if cache is not None else ResponseCache()
        self._client = client

    async def run(self, params: Mapping[str, Any]) -> dict[str, Any]:
        try:
            return await self._run(params)
        except CalendarError as exc:
            return exc.to_payload()
        except Exception:  # noqa: BLE001
            logger.exception("economic calendar request failed unexpectedly")
            return {
                "error": "internal_error",
                "message": "economic_calendar failed unexpectedly; see logs.",
            }

    # ------------------------------------------------------------------ #
    # Request resolution
    # ------------------------------------------------------------------ #

    def _resolve_provider(self, raw: Any) -> Provider:
        if raw is None or (isinstance(raw, str) and not raw.strip()):
            return self.config.provider
        try:
            return Provider(str(raw).strip().lower())
        except ValueError:
            available = ", ".join(p.value for p in Provider)
            raise CalendarError(
                "invalid_provider",
                f"provider must be one of: {available}.",
                provider=str(raw),
            ) from None

    @staticmethod
    def _resolve_action(raw: Any) -> Action:
        if raw is None or (isinstance(raw, str) and not raw.strip()):
            return Action.CALENDAR
        try:
            return Action(str(raw).strip().lower())
        except ValueError:
            raise CalendarError(
                "invalid_action",
                "action must be 'calendar' or 'series'.",
                action=str(raw),
            ) from None

    def resolve_request(
        self, params: Mapping[str, Any], fetcher: BaseFetcher, action: Action,
    ) -> CalendarRequest:
        start_date, end_date = resolve_date_range(
            params.get("startDate"),
            params.get("endDate"),
            days_ahead=self.config.default_days_ahead,
        )
        importance = resolve_importance(params.get("importance"))
        max_events = resolve_max_events(params.get("maxEvents"), self.config.max_events)

        series_ids: list[str] = []
        if action is Action.SERIES:
            series_ids = resolve_series_ids(params.get("seriesIds"))
            if not series_ids:
                raise CalendarError(
                    "missing_series_ids",
                    "The series action needs at least one id in seriesIds.",
                )

        raw_countries = params.get("countries")
        if isinstance(raw_countries, str):
            raw_countries = [raw_countries]
        countries = resolve_countries(
            params.get("country"),
            raw_countries if isinstance(raw_countries, (list, tuple)) else None,
            self.config.default_country,
        )

        event_filter = params.get("event")
        if not isinstance(event_filter, str) or not event_filter.strip():
            event_filter = None
        return CalendarRequest(
            provider=fetcher.provider,
            action=action,
            countries=tuple(countries),
            start_date=start_date,
            end_date=end_date,
            max_events=max_events,
            importance=importance,
            event_filter=event_filter.strip() if event_filter else None,
            series_ids=tuple(series_ids),
        )

    # ------------------------------------------------------------------ #
    # Execution
    # ------------------------------------------------------------------ #

    async def _run(self, params: Mapping[str, Any]) -> dict[str, Any]:
        provider = self._resolve_provider(params.get("provider"))
        action = self._resolve_action(params.get("action"))
        fetcher = get_fetcher(provider)

        # Checked before credentials so the answer does not depend on setup.
        if not fetcher.supports(action):
            raise CalendarError(
                "unsupported_action",
                f"{provider.value} does not support the '{action.value}' action.",
                provider=provider.value,
                action=action.value,
            )

        api_key = self.config.api_key_for(provider)
        if not api_key:
            raise fetcher.missing_key_error()

        request = self.resolve_request(params, fetcher, action)
        base_url = self.config.base_url_for(provider)
        cache_key = make_cache_key(request, base_url)

        cached = self.cache.get(cache_key)
        if cached is not None:
            logger.debug("[%s] cache hit", provider.value)
            # The key folds case; echo this caller's own spelling.
            return {**cached, "query": request.query(), "cached": True}
        logger.debug("[%s] cache miss", provider.value)

        upstreams = fetcher.build_requests(request, api_key=api_key, base_url=base_url)
        started = time.monotonic()
        responses = await self._fetch_all(fetcher, upstreams)

        items: list = []
        for upstream, data in zip(upstreams, responses):
            items.extend(fetcher.parse(request, upstream, data))

        if action is Action.CALENDAR:
            selected = select_events(items, request)
            result_key = "events"
        else:
            selected = select_observations(items, request)
            result_key = "observations"

        payload: dict[str, Any] = {
            "query": request.query(),
            "count": len(selected),
            "tookMs": round((time.monotonic() - started) * 1000),
            "externalContent": {
                "untrusted": True,
                "source": "api",
                "provider": provider.value,
                "wrapped": False,
            },
            "capabilities": fetcher.capabilities.to_dict(),
            result_key: [item.to_dict() for item in selected],
        }
        logger.info(
            "[%s] %s: %d fetched, %d returned",
            provider.value, action.value, len(items), len(selected),
        )
        self.cache.put(cache_key, payload, self.config.cache_ttl_ms)
        return payload

    async def _fetch_all(
        self, fetcher: BaseFetcher, upstreams: list[UpstreamRequest],
    ) -> list[Any]:
        if self._client is not None:
            return await self._gather(self._client, fetcher, upstreams)
        async with httpx.AsyncClient() as client:
            return await self._gather(client, fetcher, upstreams)

    async def _gather(
        self,
        client: httpx.AsyncClient,
        fetcher: BaseFetcher,
        upstreams: list[UpstreamRequest],
    ) -> list[Any]:
        tasks = [
            asyncio.ensure_future(
                fetch_json(
                    client,
                    upstream,
                    provider=fetcher.name,
                    timeout_seconds=self.config.timeout_seconds,
                )
            )
            for upstream in upstreams
        ]
        try:
            return await asyncio.gather(*tasks)
        except BaseException:
            # One failed call fails the whole request; stop the others.
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise


def create_economic_calendar(
    config: CalendarConfig | None = None,
    *,
    cache: ResponseCache | None = None,
    client: httpx.AsyncClient | None = None,
) -> EconomicCalendar | None:
    """Return a dispatcher, or ``None`` when the capability is disabled."""
    config = config or CalendarConfig.from_mapping()
    if not config.enabled:
        return None
    return EconomicCalendar(config, cache=cache, client=client)
