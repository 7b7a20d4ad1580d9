# clients/http.py
from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable

import httpx
from loguru import logger

from flowscout.services.providers import ProviderError

RETRYABLE_STATUS = frozenset({429, 500, 502, 503, 504})

Sleep = Callable[[float], Awaitable[None]]


async def request_with_retry(
    client: httpx.AsyncClient,
    method: str,
    path: str,
    *,
    provider: str,
    max_retries: int,
    backoff_seconds: float,
    allow_status: frozenset[int] = frozenset(),
    sleep: Sleep = asyncio.sleep,
    **kwargs: Any,
) -> httpx.Response:
    """
    Send one request, retrying rate limits, 5xx and transport errors up to
    `max_retries` times after the first attempt.

    Waits `backoff_seconds * 2**attempt` between attempts. Statuses in
    `allow_status` are handed back to the caller instead of raising.
    """
    attempts = max(0, max_retries) + 1
    last_exc: Exception | None = None

    for attempt in range(attempts):
        is_last = attempt == attempts - 1
        delay = backoff_seconds * 2 ** attempt

        try:
            resp = await client.request(method, path, **kwargs)
        except httpx.TransportError as exc:
            last_exc = exc
            logger.warning(f"[{provider}] {method} {path} failed ({exc!r}), attempt {attempt + 1}/{attempts}")
            if not is_last:
                await sleep(delay)
            continue

        if resp.status_code in allow_status:
            return resp

        if resp.status_code in RETRYABLE_STATUS:
            last_exc = ProviderError(f"{provider} API {resp.status_code}")
            if not is_last:
                logger.warning(f"[{provider}] {resp.status_code} on {path}, retrying in {delay:.1f}s")
                await sleep(delay)
            continue

        if resp.is_error:
            raise ProviderError(f"{provider} API {resp.status_code}: {resp.text[:200]}")

        return resp

    raise ProviderError(f"{provider} {path} failed after {attempts} attempts: {last_exc}")


def parse_json(resp: httpx.Response, provider: str) -> Any:
    try:
        return resp.json()
    except ValueError as exc:
        raise ProviderError(f"{provider} returned invalid JSON for {resp.request.url.path}") from exc
