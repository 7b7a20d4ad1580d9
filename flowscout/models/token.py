# models/token.py
from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

FLOW_SEGMENT_NAMES: tuple[str, ...] = (
    "Smart Traders",
    "Whales",
    "Public Figures",
    "Exchanges",
    "Top PnL Traders",
    "Fresh Wallets",
)

UNKNOWN_TOKEN_NAME = "Unknown Token"
UNKNOWN_TOKEN_SYMBOL = "???"

DataSource = Literal["nansen", "coingecko", "both", "none"]
TradeSide = Literal["BUY", "SELL"]


class ParsedInput(BaseModel):
    """
    One user message, classified.

    `inferred_chain` is only set when the address format itself implies the
    chain (Tron, Solana). EVM addresses are valid on many chains and leave it None.
    """

    model_config = ConfigDict(frozen=True)

    query: str
    is_contract_address: bool
    chain_hint: str | None = None
    inferred_chain: str | None = None

    @property
    def wanted_chain(self) -> str | None:
        return self.chain_hint or self.inferred_chain


class ResolvedToken(BaseModel):
    """A token pinned to one (chain, address)."""

    model_config = ConfigDict(frozen=True)

    name: str
    symbol: str
    chain: str
    address: str
    # native assets CoinGecko indexes by coin id rather than by contract
    coingecko_id: str | None = None


class PresentFlow(BaseModel):
    kind: Literal["present"] = "present"
    name: str
    net_flow_usd: float
    avg_flow_usd: float
    wallet_count: int


class AbsentFlow(BaseModel):
    """Segment the analytics provider reported as zero wallets and zero flow."""

    kind: Literal["absent"] = "absent"
    name: str


FlowSegment = Annotated[Union[PresentFlow, AbsentFlow], Field(discriminator="kind")]


def flow_segment(
    name: str,
    net_flow_usd: float | None,
    avg_flow_usd: float | None,
    wallet_count: int | None,
) -> PresentFlow | AbsentFlow:
    net = net_flow_usd or 0.0
    count = wallet_count or 0
    if count == 0 and net == 0:
        return AbsentFlow(name=name)
    return PresentFlow(
        name=name,
        net_flow_usd=net,
        avg_flow_usd=avg_flow_usd or 0.0,
        wallet_count=count,
    )


class SmartMoneyBuySell(BaseModel):
    bought_volume_usd: float
    sold_volume_usd: float
    net_flow_usd: float
    buyer_count: int
    seller_count: int


class TopTrader(BaseModel):
    label: str
    volume_usd: float
    side: TradeSide


class SmartMoneySection(BaseModel):
    buy_sell: SmartMoneyBuySell | None = None
    top_buyers: list[TopTrader] = Field(default_factory=list)
    top_sellers: list[TopTrader] = Field(default_factory=list)


class TokenReport(BaseModel):
    """
    Everything we know about one token right now.

    Any market field may be None when its source failed or had nothing;
    consumers render what is there.
    """

    token: ResolvedToken

    # market data
    price_usd: float | None = None
    market_cap_usd: float | None = None
    fdv_usd: float | None = None
    price_change_24h: float | None = None
    volume_24h_usd: float | None = None
    liquidity_usd: float | None = None
    token_age_days: int | None = None
    holder_count: int | None = None

    # holder flows, always the six segments in FLOW_SEGMENT_NAMES order when present
    flows: list[FlowSegment] = Field(default_factory=list)

    smart_money: SmartMoneySection = Field(default_factory=SmartMoneySection)

    nansen_url: str
    data_source: DataSource = "none"

    def flow(self, name: str) -> PresentFlow | AbsentFlow | None:
        for segment in self.flows:
            if segment.name == name:
                return segment
        return None


class ScanResult(BaseModel):
    token: ResolvedToken
    report: TokenReport
    interest_score: int
    signals: list[str]
