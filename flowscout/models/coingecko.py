# models/coingecko.py
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class _CoinGeckoModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


class SearchCoin(_CoinGeckoModel):
    """Entry of GET /search `coins`."""

    id: str
    name: str
    symbol: str
    market_cap_rank: int | None = None


class PlatformDetail(_CoinGeckoModel):
    decimal_place: int | None = None
    contract_address: str | None = None


class CoinDetail(_CoinGeckoModel):
    """
    GET /coins/{id} with everything but platforms switched off.

    Dict order is kept from the JSON; CoinGecko lists the primary platform first.
    """

    id: str | None = None
    name: str
    symbol: str
    platforms: dict[str, str | None] = Field(default_factory=dict)
    detail_platforms: dict[str, PlatformDetail | None] = Field(default_factory=dict)

    def address_on(self, platform: str) -> str | None:
        addr = self.platforms.get(platform)
        if addr:
            return addr
        detail = self.detail_platforms.get(platform)
        if detail and detail.contract_address:
            return detail.contract_address
        return None


class ContractMarketData(_CoinGeckoModel):
    current_price: dict[str, float | None] = Field(default_factory=dict)
    market_cap: dict[str, float | None] = Field(default_factory=dict)
    fully_diluted_valuation: dict[str, float | None] = Field(default_factory=dict)
    total_volume: dict[str, float | None] = Field(default_factory=dict)
    price_change_percentage_24h: float | None = None


class ContractInfo(_CoinGeckoModel):
    """GET /coins/{platform}/contract/{address}."""

    id: str | None = None
    name: str
    symbol: str
    market_data: ContractMarketData | None = None


class SimpleTokenPrice(_CoinGeckoModel):
    """Value of GET /simple/token_price/{platform}, keyed by address (lowercased for EVM)."""

    usd: float | None = None
    usd_market_cap: float | None = None
    usd_24h_vol: float | None = None
    usd_24h_change: float | None = None


class MarketsEntry(_CoinGeckoModel):
    """Entry of GET /coins/markets."""

    id: str
    symbol: str
    name: str
    current_price: float | None = None
    market_cap: float | None = None
    fully_diluted_valuation: float | None = None
    total_volume: float | None = None
    price_change_percentage_24h: float | None = None


class MarketQuote(BaseModel):
    """Normalized CoinGecko market figures for one token."""

    name: str | None = None
    symbol: str | None = None
    price_usd: float | None = None
    market_cap_usd: float | None = None
    fdv_usd: float | None = None
    volume_24h_usd: float | None = None
    price_change_24h: float | None = None
    # came from an endpoint that reports FDV (contract detail or /coins/markets)
    detailed: bool = False

    @property
    def has_market_data(self) -> bool:
        return self.price_usd is not None or self.market_cap_usd is not None

    @classmethod
    def from_simple(cls, entry: SimpleTokenPrice) -> "MarketQuote":
        return cls(
            price_usd=entry.usd,
            market_cap_usd=entry.usd_market_cap,
            volume_24h_usd=entry.usd_24h_vol,
            price_change_24h=entry.usd_24h_change,
        )

    @classmethod
    def from_contract(cls, info: ContractInfo) -> "MarketQuote":
        md = info.market_data or ContractMarketData()
        return cls(
            name=info.name,
            symbol=info.symbol.upper(),
            price_usd=md.current_price.get("usd"),
            market_cap_usd=md.market_cap.get("usd"),
            fdv_usd=md.fully_diluted_valuation.get("usd"),
            volume_24h_usd=md.total_volume.get("usd"),
            price_change_24h=md.price_change_percentage_24h,
            detailed=True,
        )

    @classmethod
    def from_markets(cls, entry: MarketsEntry) -> "MarketQuote":
        return cls(
            name=entry.name,
            symbol=entry.symbol.upper(),
            price_usd=entry.current_price,
            market_cap_usd=entry.market_cap,
            fdv_usd=entry.fully_diluted_valuation,
            volume_24h_usd=entry.total_volume,
            price_change_24h=entry.price_change_percentage_24h,
            detailed=True,
        )
