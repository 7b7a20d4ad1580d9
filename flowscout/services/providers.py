# services/providers.py
from __future__ import annotations

from typing import Literal, Protocol, Sequence

from flowscout.models.coingecko import CoinDetail, ContractInfo, MarketQuote, SearchCoin
from flowscout.models.nansen import (
    NansenFlowIntelligence,
    NansenScreenerToken,
    NansenTokenInfo,
    NansenTrader,
)


class ProviderError(Exception):
    """Raised when an upstream provider cannot satisfy a request (upstream issue)."""


class AnalyticsProvider(Protocol):
    """
    On-chain analytics source (Nansen).

    Resolver and report builder only talk to this interface, never directly to HTTP.
    """

    async def get_token_info(
        self, chain: str, token_address: str, timeframe: str = "1d"
    ) -> NansenTokenInfo | None:
        ...

    async def get_flow_intelligence(
        self, chain: str, token_address: str, timeframe: str = "1d"
    ) -> NansenFlowIntelligence | None:
        ...

    async def get_who_bought_sold(
        self, chain: str, token_address: str, side: Literal["BUY", "SELL"]
    ) -> list[NansenTrader]:
        ...

    async def screen_tokens(self, chains: Sequence[str]) -> list[NansenScreenerToken]:
        ...


class MarketDataProvider(Protocol):
    """Market data and symbol search (CoinGecko)."""

    async def search(self, query: str) -> list[SearchCoin]:
        ...

    async def get_coin_detail(self, coin_id: str) -> CoinDetail | None:
        ...

    async def get_contract(self, platform: str, address: str) -> ContractInfo | None:
        ...

    async def get_simple_token_price(self, platform: str, address: str) -> MarketQuote | None:
        ...

    async def get_market_by_id(self, coin_id: str) -> MarketQuote | None:
        ...
