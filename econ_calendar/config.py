"""Economic calendar settings.

Values come from a camelCase mapping (the host application's config) with
API keys falling back to environment variables.  Config wins over the
environment when both are present.
"""

from __future__ import annotations

import math
import os
from dataclasses import dataclass, field
from typing import Any, Mapping

from .coerce import normalize_secret
from .fetchers import get_fetcher
from .models import Provider

DEFAULT_PROVIDER = Provider.TRADING_ECONOMICS
DEFAULT_DAYS_AHEAD = 7
DEFAULT_MAX_EVENTS = 50
DEFAULT_TIMEOUT_SECONDS = 30
DEFAULT_CACHE_TTL_MINUTES = 15

# Config keys holding each provider's API key.  "apiKey" is kept as an
# alias for Trading Economics, the original single-provider setting.
_API_KEY_FIELDS: dict[Provider, tuple[str, ...]] = {
    Provider.FRED: ("fredApiKey",),
    Provider.BLS: ("blsApiKey",),
    Provider.TRADING_ECONOMICS: ("tradingEconomicsApiKey", "apiKey"),
}


def _finite_number(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return value if math.isfinite(value) else None


def _parse_provider(name: Any) -> Provider:
    try:
        return Provider(str(name).strip().lower())
    except ValueError:
        available = ", ".join(p.value for p in Provider)
        raise ValueError(
            f"Unknown provider '{name}'. Available: {available}"
        ) from None


def resolve_timeout_seconds(value: Any, fallback: int = DEFAULT_TIMEOUT_SECONDS) -> int:
    number = _finite_number(value)
    if number is None:
        return fallback
    return max(1, math.floor(number))


def resolve_cache_ttl_ms(value: Any, fallback: float = DEFAULT_CACHE_TTL_MINUTES) -> int:
    number = _finite_number(value)
    minutes = fallback if number is None else max(0.0, number)
    return round(minutes * 60_000)


@dataclass(slots=True)
class CalendarConfig:
    enabled: bool = True
    provider: Provider = DEFAULT_PROVIDER
    api_keys: dict[Provider, str] = field(default_factory=dict)
    base_urls: dict[Provider, str] = field(default_factory=dict)
    default_country: str | None = None
    default_days_ahead: int = DEFAULT_DAYS_AHEAD
    max_events: int = DEFAULT_MAX_EVENTS
    timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS
    cache_ttl_ms: int = DEFAULT_CACHE_TTL_MINUTES * 60_000
    environ: Mapping[str, str] = field(default_factory=lambda: os.environ, repr=False)

    @classmethod
    def from_mapping(
        cls,
        data: Mapping[str, Any] | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> "CalendarConfig":
        data = data or {}
        env = os.environ if environ is None else environ

        provider = _parse_provider(
            data.get("provider") or env.get("EVENT_SOURCE") or DEFAULT_PROVIDER.value
        )

        api_keys: dict[Provider, str] = {}
        for key_provider, fields in _API_KEY_FIELDS.items():
            for name in fields:
                secret = normalize_secret(data.get(name))
                if secret:
                    api_keys[key_provider] = secret
                    break

        base_urls: dict[Provider, str] = {}
        raw_base = data.get("baseUrl")
        if isinstance(raw_base, str) and raw_base.strip():
            base_urls[provider] = raw_base.strip()
        elif isinstance(raw_base, Mapping):
            for name, url in raw_base.items():
                if isinstance(url, str) and url.strip():
                    base_urls[_parse_provider(name)] = url.strip()

        enabled = data.get("enabled")
        days_ahead = _finite_number(data.get("defaultDaysAhead"))
        max_events = _finite_number(data.get("maxEvents"))
        default_country = data.get("defaultCountry")

        return cls(
            enabled=enabled if isinstance(enabled, bool) else True,
            provider=provider,
            api_keys=api_keys,
            base_urls=base_urls,
            default_country=default_country if isinstance(default_country, str) else None,
            default_days_ahead=(
                max(0, math.floor(days_ahead)) if days_ahead is not None else DEFAULT_DAYS_AHEAD
            ),
            max_events=max(1, math.floor(max_events)) if max_events is not None else DEFAULT_MAX_EVENTS,
            timeout_seconds=resolve_timeout_seconds(data.get("timeoutSeconds")),
            cache_ttl_ms=resolve_cache_ttl_ms(data.get("cacheTtlMinutes")),
            environ=env,
        )

    def api_key_for(self, provider: Provider) -> str | None:
        """Configured key, else the provider's environment variable."""
        from_config = normalize_secret(self.api_keys.get(provider))
        from_env = normalize_secret(self.environ.get(get_fetcher(provider).env_var))
        return from_config or from_env or None

    def base_url_for(self, provider: Provider) -> str:
        return self.base_urls.get(provider) or get_fetcher(provider).default_base_url
