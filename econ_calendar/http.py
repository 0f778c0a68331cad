"""Timeout-bounded async fetch of a single :class:`UpstreamRequest`."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

import httpx

from .errors import UpstreamError
from .models import UpstreamRequest

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30
ERROR_BODY_MAX_BYTES = 64_000


async def _read_excerpt(response: httpx.Response, max_bytes: int) -> str:
    """Read at most *max_bytes* of the body, then stop streaming."""
    chunks: list[bytes] = []
    size = 0
    async for chunk in response.aiter_bytes():
        remaining = max_bytes - size
        chunks.append(chunk[:remaining])
        size += min(len(chunk), remaining)
        if size >= max_bytes:
            break
    return b"".join(chunks).decode("utf-8", errors="replace").strip()


async def _fetch(
    client: httpx.AsyncClient,
    upstream: UpstreamRequest,
    provider: str,
    timeout_seconds: float,
) -> Any:
    async with client.stream(
        upstream.method,
        upstream.url,
        params=upstream.params or None,
        json=upstream.json,
        headers={"Accept": "application/json"},
        timeout=timeout_seconds,
    ) as response:
        if not response.is_success:
            detail = await _read_excerpt(response, ERROR_BODY_MAX_BYTES)
            raise UpstreamError(
                "upstream_error",
                f"{provider} API error ({response.status_code}).",
                provider=provider,
                status=response.status_code,
                detail=detail or response.reason_phrase,
            )
        body = await response.aread()
    try:
        return json.loads(body)
    except ValueError:
        raise UpstreamError(
            "invalid_response",
            f"{provider} API returned a non-JSON body.",
            provider=provider,
            status=response.status_code,
            detail=body[:ERROR_BODY_MAX_BYTES].decode("utf-8", errors="replace"),
        ) from None


async def fetch_json(
    client: httpx.AsyncClient,
    upstream: UpstreamRequest,
    *,
    provider: str,
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
) -> Any:
    """Issue *upstream* and decode its JSON body.

    The whole exchange is bounded by *timeout_seconds*; on expiry the
    in-flight request is cancelled.  Outer cancellation propagates the same
    way.  Nothing is retried.
    """
    logger.debug("[%s] %s %s", provider, upstream.method, upstream.url)
    try:
        return await asyncio.wait_for(
            _fetch(client, upstream, provider, timeout_seconds),
            timeout=timeout_seconds,
        )
    except (asyncio.TimeoutError, httpx.TimeoutException):
        logger.warning("[%s] request timed out after %ss", provider, timeout_seconds)
        raise UpstreamError(
            "upstream_timeout",
            f"{provider} API did not respond within {timeout_seconds} seconds.",
            provider=provider,
        ) from None
    except httpx.HTTPError as exc:
        logger.warning("[%s] request failed: %s", provider, type(exc).__name__)
        raise UpstreamError(
            "upstream_unavailable",
            f"{provider} API request failed: {type(exc).__name__}",
            provider=provider,
        ) from exc
