# models/nansen.py
from __future__ import annotations

from pydantic import BaseModel, ConfigDict

# Shapes returned by the Nansen API. These stop at clients/nansen_client.py;
# services only see the flattened NansenTokenInfo and the typed rows below.


class _NansenModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


class TokenDetails(_NansenModel):
    token_deployment_date: str | None = None
    website: str | None = None
    market_cap_usd: float | None = None
    fdv_usd: float | None = None
    circulating_supply: float | None = None
    total_supply: float | None = None


class SpotMetrics(_NansenModel):
    volume_total_usd: float | None = None
    buy_volume_usd: float | None = None
    sell_volume_usd: float | None = None
    total_buys: int | None = None
    total_sells: int | None = None
    unique_buyers: int | None = None
    unique_sellers: int | None = None
    liquidity_usd: float | None = None
    total_holders: int | None = None


class TokenInformationResponse(_NansenModel):
    """`data` object of POST /tgm/token-information."""

    name: str | None = None
    symbol: str | None = None
    contract_address: str | None = None
    logo: str | None = None
    token_details: TokenDetails | None = None
    spot_metrics: SpotMetrics | None = None


class NansenTokenInfo(_NansenModel):
    """Flattened token information used by the report builder."""

    name: str | None = None
    symbol: str | None = None
    logo_url: str | None = None
    deployment_date: str | None = None
    market_cap: float | None = None
    fdv: float | None = None
    volume: float | None = None
    buy_volume: float | None = None
    sell_volume: float | None = None
    liquidity: float | None = None
    holder_count: int | None = None
    price: float | None = None
    unique_buyers: int | None = None
    unique_sellers: int | None = None
    total_buys: int | None = None
    total_sells: int | None = None

    @classmethod
    def from_response(cls, raw: TokenInformationResponse) -> "NansenTokenInfo":
        td = raw.token_details or TokenDetails()
        sm = raw.spot_metrics or SpotMetrics()

        # Nansen does not return a spot price; derive it from cap / circulating supply
        price = None
        if td.market_cap_usd and td.circulating_supply and td.circulating_supply > 0:
            price = td.market_cap_usd / td.circulating_supply

        return cls(
            name=raw.name,
            symbol=raw.symbol,
            logo_url=raw.logo,
            deployment_date=td.token_deployment_date,
            market_cap=td.market_cap_usd,
            fdv=td.fdv_usd,
            volume=sm.volume_total_usd,
            buy_volume=sm.buy_volume_usd,
            sell_volume=sm.sell_volume_usd,
            liquidity=sm.liquidity_usd,
            holder_count=sm.total_holders,
            price=price,
            unique_buyers=sm.unique_buyers,
            unique_sellers=sm.unique_sellers,
            total_buys=sm.total_buys,
            total_sells=sm.total_sells,
        )

    @property
    def has_market_data(self) -> bool:
        return self.price is not None or self.market_cap is not None


class NansenFlowIntelligence(_NansenModel):
    """One row of POST /tgm/flow-intelligence. Zero wallets + zero flow means no data."""

    whale_net_flow_usd: float | None = None
    whale_avg_flow_usd: float | None = None
    whale_wallet_count: int | None = None
    smart_trader_net_flow_usd: float | None = None
    smart_trader_avg_flow_usd: float | None = None
    smart_trader_wallet_count: int | None = None
    public_figure_net_flow_usd: float | None = None
    public_figure_avg_flow_usd: float | None = None
    public_figure_wallet_count: int | None = None
    top_pnl_net_flow_usd: float | None = None
    top_pnl_avg_flow_usd: float | None = None
    top_pnl_wallet_count: int | None = None
    exchange_net_flow_usd: float | None = None
    exchange_avg_flow_usd: float | None = None
    exchange_wallet_count: int | None = None
    fresh_wallets_net_flow_usd: float | None = None
    fresh_wallets_avg_flow_usd: float | None = None
    fresh_wallets_wallet_count: int | None = None


class NansenTrader(_NansenModel):
    """One row of POST /tgm/who-bought-sold."""

    address: str
    address_label: str | None = None
    bought_token_volume: float | None = None
    sold_token_volume: float | None = None
    token_trade_volume: float | None = None
    bought_volume_usd: float | None = None
    sold_volume_usd: float | None = None
    trade_volume_usd: float | None = None


class NansenScreenerToken(_NansenModel):
    """One row of POST /token-screener."""

    chain: str
    token_address: str
    token_symbol: str | None = None
    market_cap_usd: float | None = None
    volume: float | None = None
    liquidity: float | None = None
