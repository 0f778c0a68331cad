"""Structured errors returned to callers as ``{error, message, ...}`` payloads."""

from __future__ import annotations

from typing import Any


class CalendarError(Exception):
    """A failure with a machine-readable ``kind`` a caller can branch on."""

    def __init__(self, kind: str, message: str, **extra: Any) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.extra = extra

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"error": self.kind, "message": self.message}
        payload.update({k: v for k, v in self.extra.items() if v is not None})
        return payload


class UpstreamError(CalendarError):
    """Non-2xx response, transport failure or timeout from a provider."""

    def __init__(
        self,
        kind: str,
        message: str,
        *,
        provider: str,
        status: int | None = None,
        detail: str | None = None,
    ) -> None:
        super().__init__(kind, message, provider=provider, status=status, detail=detail)
        self.provider = provider
        self.status = status
        self.detail = detail
