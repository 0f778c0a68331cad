"""In-memory, TTL-bounded cache of normalised payloads."""

from __future__ import annotations

import copy
import hashlib
import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable

from .models import CalendarRequest

logger = logging.getLogger(__name__)

DEFAULT_MAX_ENTRIES = 100


@dataclass(frozen=True, slots=True)
class CacheEntry:
    value: dict[str, Any]
    expires_at: float                # monotonic seconds


def make_cache_key(request: CalendarRequest, base_url: str) -> str:
    """Deterministic fingerprint of the fully-resolved request.

    Two logically identical requests collide; requests differing in any
    filter, date or limit do not.  Credentials are not part of the key.
    """
    material = {
        "provider": request.provider.value,
        "action": request.action.value,
        "baseUrl": base_url,
        "countries": [c.lower() for c in request.countries],
        "startDate": request.start_date,
        "endDate": request.end_date,
        "importance": request.importance,
        # Event filtering is case-insensitive.
        "event": (request.event_filter or "").strip().lower(),
        "maxEvents": request.max_events,
        "seriesIds": list(request.series_ids),
    }
    encoded = json.dumps(material, sort_keys=True, separators=(",", ":"))
    digest = hashlib.sha256(encoded.encode("utf-8")).hexdigest()
    return f"economic_calendar:{request.provider.value}:{digest}"


class ResponseCache:
    """Process-wide payload cache with lazy expiry.

    Entries are independent and replaced whole on write, so concurrent
    callers need no lock: two racing misses for one key both fetch and the
    later write wins.
    """

    def __init__(
        self,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._entries: dict[str, CacheEntry] = {}
        self._max_entries = max(1, max_entries)
        self._clock = clock

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: str) -> dict[str, Any] | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() > entry.expires_at:
            self._entries.pop(key, None)
            logger.debug("cache entry expired: %s", key)
            return None
        return copy.deepcopy(entry.value)

    def put(self, key: str, value: dict[str, Any], ttl_ms: float) -> None:
        """Store *value* for *ttl_ms*; a TTL <= 0 stores nothing."""
        if ttl_ms <= 0:
            return
        if key not in self._entries and len(self._entries) >= self._max_entries:
            # dicts keep insertion order: the first key is the oldest write
            oldest = next(iter(self._entries))
            self._entries.pop(oldest, None)
        self._entries.pop(key, None)
        self._entries[key] = CacheEntry(
            value=copy.deepcopy(value),
            expires_at=self._clock() + ttl_ms / 1000.0,
        )

    def clear(self) -> None:
        self._entries.clear()
