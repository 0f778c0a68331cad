"""Provider fetchers.

The set of providers is closed: every :class:`Provider` member is registered
here exactly once, and the registry is checked against each fetcher's
declared actions at import time.
"""

from __future__ import annotations

from ..models import Action, Provider
from .base import BaseFetcher
from .bls import BLSFetcher
from .fred import FREDFetcher
from .tradingeconomics import TradingEconomicsFetcher

__all__ = [
    "BLSFetcher",
    "BaseFetcher",
    "FREDFetcher",
    "SUPPORT_MATRIX",
    "TradingEconomicsFetcher",
    "get_fetcher",
]

_FETCHERS: dict[Provider, type[BaseFetcher]] = {
    Provider.FRED: FREDFetcher,
    Provider.BLS: BLSFetcher,
    Provider.TRADING_ECONOMICS: TradingEconomicsFetcher,
}


def _check_registry() -> None:
    missing = set(Provider) - set(_FETCHERS)
    if missing:
        raise TypeError(f"No fetcher registered for: {sorted(p.value for p in missing)}")
    for provider, cls in _FETCHERS.items():
        if cls.provider is not provider:
            raise TypeError(f"{cls.__name__} registered under '{provider.value}'")
        for action in cls.actions:
            for hook in (f"build_{action.value}", f"parse_{action.value}"):
                if getattr(cls, hook) is getattr(BaseFetcher, hook):
                    raise TypeError(f"{cls.__name__} declares '{action.value}' but lacks {hook}()")


_check_registry()

# provider -> actions it can serve
SUPPORT_MATRIX: dict[Provider, frozenset[Action]] = {
    provider: cls.actions for provider, cls in _FETCHERS.items()
}


def get_fetcher(provider: Provider | str) -> BaseFetcher:
    """Return a fetcher instance for *provider*.

    Raises ``KeyError`` if *provider* is not registered.
    Available names: bls, fred, tradingeconomics
    """
    try:
        cls = _FETCHERS[Provider(provider)]
    except ValueError:
        available = ", ".join(sorted(p.value for p in _FETCHERS))
        raise KeyError(
            f"Unknown provider '{provider}'. Available: {available}"
        ) from None
    return cls()
