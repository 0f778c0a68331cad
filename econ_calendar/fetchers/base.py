"""Abstract base class for provider fetchers.

A fetcher never performs I/O itself: it turns a resolved
:class:`CalendarRequest` into one or more :class:`UpstreamRequest` objects
and maps each decoded JSON response back into normalised models.
"""

from __future__ import annotations

from abc import ABC
from typing import Any, ClassVar

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


def join_url(base_url: str, path: str) -> str:
    return base_url.strip().rstrip("/") + path


class BaseFetcher(ABC):
    """Interface that every data-source fetcher must implement.

    Subclasses declare the actions they support in ``actions`` and override
    the matching ``build_<action>`` / ``parse_<action>`` pair.
    """

    provider: ClassVar[Provider]
    actions: ClassVar[frozenset[Action]]
    capabilities: ClassVar[CapabilityHints]
    default_base_url: ClassVar[str]
    env_var: ClassVar[str]           # e.g. "FRED_API_KEY"
    config_key: ClassVar[str]        # e.g. "fredApiKey"
    key_label: ClassVar[str]         # used in the missing-key error kind
    display_name: ClassVar[str]
    docs_url: ClassVar[str]

    @property
    def name(self) -> str:
        """Short identifier for this source (e.g. ``'fred'``)."""
        return self.provider.value

    def supports(self, action: Action) -> bool:
        return action in self.actions

    def missing_key_error(self) -> CalendarError:
        return CalendarError(
            f"missing_{self.key_label}_api_key",
            f"economic_calendar needs a {self.display_name} API key. "
            f"Set {self.env_var} in the environment, or configure "
            f"{self.config_key} in the economic calendar settings.",
            docs=self.docs_url,
        )

    def _unsupported(self, action: Action) -> CalendarError:
        return CalendarError(
            "unsupported_action",
            f"{self.name} does not support the '{action.value}' action.",
            provider=self.name,
            action=action.value,
        )

    # ------------------------------------------------------------------ #
    # Dispatch
    # ------------------------------------------------------------------ #

    def build_requests(
        self, request: CalendarRequest, *, api_key: str, base_url: str,
    ) -> list[UpstreamRequest]:
        if not self.supports(request.action):
            raise self._unsupported(request.action)
        if request.action is Action.CALENDAR:
            return [self.build_calendar(request, api_key=api_key, base_url=base_url)]
        return self.build_series(request, api_key=api_key, base_url=base_url)

    def parse(
        self, request: CalendarRequest, upstream: UpstreamRequest, data: Any,
    ) -> list[NormalizedEvent] | list[NormalizedObservation]:
        if not self.supports(request.action):
            raise self._unsupported(request.action)
        if request.action is Action.CALENDAR:
            return self.parse_calendar(request, data)
        return self.parse_series(request, upstream, data)

    # ------------------------------------------------------------------ #
    # Per-action hooks
    # ------------------------------------------------------------------ #

    def build_calendar(
        self, request: CalendarRequest, *, api_key: str, base_url: str,
    ) -> UpstreamRequest:
        raise NotImplementedError

    def parse_calendar(
        self, request: CalendarRequest, data: Any,
    ) -> list[NormalizedEvent]:
        raise NotImplementedError

    def build_series(
        self, request: CalendarRequest, *, api_key: str, base_url: str,
    ) -> list[UpstreamRequest]:
        raise NotImplementedError

    def parse_series(
        self, request: CalendarRequest, upstream: UpstreamRequest, data: Any,
    ) -> list[NormalizedObservation]:
        raise NotImplementedError
