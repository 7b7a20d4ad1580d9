# clients/coingecko_client.py
from __future__ import annotations

import asyncio
from typing import Any

import httpx
from pydantic import ValidationError

from flowscout.clients.http import Sleep, parse_json, request_with_retry
from flowscout.core.config import get_settings
from flowscout.core.parser import EVM_ADDRESS_RE
from flowscout.models.coingecko import (
    CoinDetail,
    ContractInfo,
    MarketQuote,
    MarketsEntry,
    SearchCoin,
    SimpleTokenPrice,
)
from flowscout.services.providers import MarketDataProvider, ProviderError

PROVIDER = "CoinGecko"

_NOT_FOUND = frozenset({404})


def _contract_key(address: str) -> str:
    # CoinGecko keys EVM contracts in lowercase; base58 addresses are case-sensitive
    return address.lower() if EVM_ADDRESS_RE.fullmatch(address) else address


class CoinGeckoClient(MarketDataProvider):
    """
    CoinGecko public API. Works keyless; a demo key raises the rate limit.

    A 404 means "not listed" and comes back as None, not as an error.
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
        api_key = api_key or settings.COINGECKO_API_KEY

        headers = {"accept": "application/json"}
        if api_key:
            headers["x-cg-demo-api-key"] = api_key

        self._client = httpx.AsyncClient(
            base_url=base_url or str(settings.COINGECKO_BASE_URL),
            timeout=timeout if timeout is not None else settings.COINGECKO_TIMEOUT_SECONDS,
            headers=headers,
            transport=transport,
        )
        self._max_retries = (
            max_retries if max_retries is not None else settings.COINGECKO_MAX_RETRIES
        )
        self._backoff = (
            backoff_seconds if backoff_seconds is not None else settings.RETRY_BACKOFF_SECONDS
        )
        self._sleep = sleep

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _get(self, path: str, params: dict[str, Any] | None = None) -> Any | None:
        resp = await request_with_retry(
            self._client,
            "GET",
            path,
            provider=PROVIDER,
            max_retries=self._max_retries,
            backoff_seconds=self._backoff,
            allow_status=_NOT_FOUND,
            sleep=self._sleep,
            params=params,
        )
        if resp.status_code == 404:
            return None
        return parse_json(resp, PROVIDER)

    async def search(self, query: str) -> list[SearchCoin]:
        data = await self._get("/search", {"query": query})
        coins = (data or {}).get("coins") or []
        try:
            return [SearchCoin.model_validate(coin) for coin in coins]
        except ValidationError as exc:
            raise ProviderError(f"Unexpected search shape: {exc}") from exc

    async def get_coin_detail(self, coin_id: str) -> CoinDetail | None:
        data = await self._get(
            f"/coins/{coin_id}",
            {
                "localization": "false",
                "tickers": "false",
                "market_data": "false",
                "community_data": "false",
                "developer_data": "false",
            },
        )
        if data is None:
            return None
        try:
            return CoinDetail.model_validate(data)
        except ValidationError as exc:
            raise ProviderError(f"Unexpected coin detail shape for {coin_id}: {exc}") from exc

    async def get_contract(self, platform: str, address: str) -> ContractInfo | None:
        """Detailed lookup by contract; the slow path, but it carries FDV."""
        data = await self._get(f"/coins/{platform}/contract/{_contract_key(address)}")
        if data is None:
            return None
        try:
            return ContractInfo.model_validate(data)
        except ValidationError as exc:
            raise ProviderError(f"Unexpected contract shape for {address}: {exc}") from exc

    async def get_simple_token_price(self, platform: str, address: str) -> MarketQuote | None:
        """Fast price/cap/volume/24h-change lookup by contract. No FDV."""
        data = await self._get(
            f"/simple/token_price/{platform}",
            {
                "contract_addresses": address,
                "vs_currencies": "usd",
                "include_market_cap": "true",
                "include_24hr_vol": "true",
                "include_24hr_change": "true",
            },
        )
        entry = (data or {}).get(_contract_key(address))
        if not entry:
            return None
        try:
            return MarketQuote.from_simple(SimpleTokenPrice.model_validate(entry))
        except ValidationError as exc:
            raise ProviderError(f"Unexpected token_price shape for {address}: {exc}") from exc

    async def get_market_by_id(self, coin_id: str) -> MarketQuote | None:
        """Market figures for assets CoinGecko indexes by coin id (native ETH, SOL, ...)."""
        data = await self._get("/coins/markets", {"vs_currency": "usd", "ids": coin_id})
        if not data:
            return None
        try:
            return MarketQuote.from_markets(MarketsEntry.model_validate(data[0]))
        except ValidationError as exc:
            raise ProviderError(f"Unexpected markets shape for {coin_id}: {exc}") from exc
