# clients/nansen_client.py
from __future__ import annotations

import asyncio
from datetime import date, datetime, timedelta, timezone
from typing import Any, Literal, Sequence

import httpx
from pydantic import ValidationError

from flowscout.clients.http import Sleep, parse_json, request_with_retry
from flowscout.core.config import get_settings
from flowscout.models.nansen import (
    NansenFlowIntelligence,
    NansenScreenerToken,
    NansenTokenInfo,
    NansenTrader,
    TokenInformationResponse,
)
from flowscout.services.providers import AnalyticsProvider, ProviderError

PROVIDER = "Nansen"


class NansenClient(AnalyticsProvider):
    """
    Thin wrapper around the Nansen API.

    Every endpoint is a JSON POST with the key in an `apikey` header. You only
    change THIS file (and models/nansen.py) when their schema changes.
    """

    def __init__(
        self,
        api_key: str | None = None,
        *,
        base_url: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        backoff_seconds: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        settings = get_settings()
        api_key = api_key or settings.NANSEN_API_KEY
        if not api_key:
            raise RuntimeError("NANSEN_API_KEY must be set to query Nansen")

        self._client = httpx.AsyncClient(
            base_url=base_url or str(settings.NANSEN_BASE_URL),
            timeout=timeout if timeout is not None else settings.NANSEN_TIMEOUT_SECONDS,
            headers={"apikey": api_key, "Content-Type": "application/json"},
            transport=transport,
        )
        self._max_retries = max_retries if max_retries is not None else settings.NANSEN_MAX_RETRIES
        self._backoff = (
            backoff_seconds if backoff_seconds is not None else settings.RETRY_BACKOFF_SECONDS
        )
        self._sleep = sleep

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _post(self, path: str, body: dict[str, Any]) -> Any:
        resp = await request_with_retry(
            self._client,
            "POST",
            path,
            provider=PROVIDER,
            max_retries=self._max_retries,
            backoff_seconds=self._backoff,
            sleep=self._sleep,
            json=body,
        )
        return parse_json(resp, PROVIDER)

    @staticmethod
    def _data(payload: Any) -> Any:
        if isinstance(payload, dict):
            return payload.get("data")
        return payload

    async def get_token_info(
        self, chain: str, token_address: str, timeframe: str = "1d"
    ) -> NansenTokenInfo | None:
        """Name, symbol, cap, FDV, volume, liquidity, holders. Price is derived."""
        payload = await self._post(
            "/tgm/token-information",
            {"chain": chain, "token_address": token_address, "timeframe": timeframe},
        )
        raw = self._data(payload)
        if not raw:
            return None
        try:
            return NansenTokenInfo.from_response(TokenInformationResponse.model_validate(raw))
        except ValidationError as exc:
            raise ProviderError(f"Unexpected token-information shape: {exc}") from exc

    async def get_flow_intelligence(
        self, chain: str, token_address: str, timeframe: str = "1d"
    ) -> NansenFlowIntelligence | None:
        payload = await self._post(
            "/tgm/flow-intelligence",
            {"chain": chain, "token_address": token_address, "timeframe": timeframe},
        )
        rows = self._data(payload)
        if not isinstance(rows, list) or not rows:
            return None
        try:
            return NansenFlowIntelligence.model_validate(rows[0])
        except ValidationError as exc:
            raise ProviderError(f"Unexpected flow-intelligence shape: {exc}") from exc

    async def get_who_bought_sold(
        self,
        chain: str,
        token_address: str,
        side: Literal["BUY", "SELL"],
        today: date | None = None,
    ) -> list[NansenTrader]:
        """Top DEX traders on one side over the last day (yesterday..today, UTC)."""
        today = today or datetime.now(timezone.utc).date()
        yesterday = today - timedelta(days=1)

        payload = await self._post(
            "/tgm/who-bought-sold",
            {
                "chain": chain,
                "token_address": token_address,
                "date": {"from": yesterday.isoformat(), "to": today.isoformat()},
                "buy_or_sell": side,
                "pagination": {"page": 1, "per_page": 10},
            },
        )
        rows = self._data(payload) or []
        if not isinstance(rows, list):
            raise ProviderError("Unexpected who-bought-sold response format")
        try:
            return [NansenTrader.model_validate(row) for row in rows]
        except ValidationError as exc:
            raise ProviderError(f"Unexpected who-bought-sold shape: {exc}") from exc

    async def screen_tokens(
        self, chains: Sequence[str], timeframe: str = "24h", per_page: int = 100
    ) -> list[NansenScreenerToken]:
        """Most-traded tokens on `chains`, used to place tokens CoinGecko has not indexed."""
        payload = await self._post(
            "/token-screener",
            {
                "chains": list(chains),
                "timeframe": timeframe,
                "pagination": {"page": 1, "per_page": per_page},
                "order_by": [{"field": "volume", "direction": "DESC"}],
            },
        )
        rows = self._data(payload) or []
        if not isinstance(rows, list):
            raise ProviderError("Unexpected token-screener response format")

        tokens: list[NansenScreenerToken] = []
        for row in rows:
            try:
                tokens.append(NansenScreenerToken.model_validate(row))
            except ValidationError:
                continue  # rows without chain/address cannot be resolved
        return tokens
