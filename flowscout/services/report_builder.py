# services/report_builder.py
from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Any, Callable, TypeVar

from loguru import logger

from flowscout.core.chains import CHAIN_TO_PLATFORM
from flowscout.models.coingecko import MarketQuote
from flowscout.models.nansen import NansenFlowIntelligence, NansenTokenInfo, NansenTrader
from flowscout.models.token import (
    UNKNOWN_TOKEN_NAME,
    UNKNOWN_TOKEN_SYMBOL,
    AbsentFlow,
    DataSource,
    PresentFlow,
    ResolvedToken,
    SmartMoneyBuySell,
    SmartMoneySection,
    TokenReport,
    TopTrader,
    TradeSide,
    flow_segment,
)
from flowscout.services.providers import AnalyticsProvider, MarketDataProvider, ProviderError

T = TypeVar("T")

TOP_TRADERS = 3
MS_PER_DAY = 86_400_000

NANSEN_TOKEN_URL = "https://app.nansen.ai/token-god-mode?tokenAddress={address}&chain={chain}"

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ReportBuilder:
    """
    Builds a TokenReport from Nansen and CoinGecko in one concurrent round,
    plus a contract lookup when neither source reported FDV.

    Never raises: every upstream call is isolated, and a failure only blanks
    the fields that call would have filled.
    """

    def __init__(
        self,
        analytics: AnalyticsProvider,
        market: MarketDataProvider,
        clock: Clock = _utcnow,
    ) -> None:
        self._analytics = analytics
        self._market = market
        self._clock = clock

    async def build(self, token: ResolvedToken) -> TokenReport:
        results = await asyncio.gather(
            self._analytics.get_token_info(token.chain, token.address, "1d"),
            self._analytics.get_flow_intelligence(token.chain, token.address, "1d"),
            self._fetch_buy_sell(token),
            self._fetch_market_quote(token),
            return_exceptions=True,
        )
        info: NansenTokenInfo | None = _settled(results[0], "token info", token)
        flows: NansenFlowIntelligence | None = _settled(results[1], "flow intelligence", token)
        traders: tuple[list[NansenTrader], list[NansenTrader]] | None = _settled(
            results[2], "who bought/sold", token
        )
        quote: MarketQuote | None = _settled(results[3], "market quote", token)

        nansen = info or NansenTokenInfo()
        cg = quote or MarketQuote()

        # simple price carries no FDV; ask the contract endpoint only if Nansen had none either
        if nansen.fdv is None and cg.price_usd is not None and not cg.detailed:
            quote = cg = await self._with_contract(token, cg) or cg

        report = TokenReport(
            token=patch_identity(token, info, quote),
            price_usd=_prefer(nansen.price, cg.price_usd),
            market_cap_usd=_prefer(nansen.market_cap, cg.market_cap_usd),
            fdv_usd=_prefer(nansen.fdv, cg.fdv_usd),
            # Nansen's 24h change is unreliable; CoinGecko only
            price_change_24h=cg.price_change_24h,
            volume_24h_usd=_prefer(nansen.volume, cg.volume_24h_usd),
            liquidity_usd=nansen.liquidity,
            token_age_days=compute_token_age(nansen.deployment_date, self._clock()),
            holder_count=nansen.holder_count,
            flows=extract_flows(flows) if flows else [],
            smart_money=build_smart_money_section(traders),
            nansen_url=build_nansen_url(token),
            data_source=data_source(info, quote),
        )
        logger.debug(
            f"[Report] {report.token.symbol} on {token.chain}: source={report.data_source} "
            f"flows={len(report.flows)}"
        )
        return report

    async def _fetch_buy_sell(
        self, token: ResolvedToken
    ) -> tuple[list[NansenTrader], list[NansenTrader]] | None:
        buy_res, sell_res = await asyncio.gather(
            self._analytics.get_who_bought_sold(token.chain, token.address, "BUY"),
            self._analytics.get_who_bought_sold(token.chain, token.address, "SELL"),
            return_exceptions=True,
        )
        if isinstance(buy_res, BaseException) and isinstance(sell_res, BaseException):
            raise buy_res
        buyers = _settled(buy_res, "buyers", token) or []
        sellers = _settled(sell_res, "sellers", token) or []
        return buyers, sellers

    async def _fetch_market_quote(self, token: ResolvedToken) -> MarketQuote | None:
        if token.coingecko_id:
            return await self._market.get_market_by_id(token.coingecko_id)

        platform = CHAIN_TO_PLATFORM.get(token.chain)
        if not platform:
            return None

        try:
            quote = await self._market.get_simple_token_price(platform, token.address)
        except ProviderError as exc:
            logger.warning(f"[Report] simple price for {token.symbol} failed, trying contract lookup: {exc}")
            quote = None
        if quote is not None and quote.price_usd is not None:
            return quote

        return await self._with_contract(token, quote)

    async def _with_contract(self, token: ResolvedToken, quote: MarketQuote | None) -> MarketQuote | None:
        """
        Fill the gaps in `quote` from the detailed contract endpoint.

        Fields `quote` already has are kept; a failed lookup returns `quote` unchanged.
        """
        platform = CHAIN_TO_PLATFORM.get(token.chain)
        if not platform:
            return quote
        try:
            info = await self._market.get_contract(platform, token.address)
        except ProviderError as exc:
            logger.warning(f"[Report] contract lookup for {token.symbol} failed: {exc}")
            return quote
        if info is None:
            return quote

        detailed = MarketQuote.from_contract(info)
        if quote is None:
            return detailed
        update = {
            field: value
            for field, value in detailed.model_dump().items()
            if getattr(quote, field) is None and value is not None
        }
        update["detailed"] = True
        return quote.model_copy(update=update)


def _settled(result: T | BaseException, what: str, token: ResolvedToken) -> T | None:
    if isinstance(result, BaseException):
        if not isinstance(result, Exception):
            raise result
        logger.warning(f"[Report] {what} unavailable for {token.symbol} on {token.chain}: {result}")
        return None
    return result


def _prefer(value: Any, fallback: Any) -> Any:
    return value if value is not None else fallback


def data_source(info: NansenTokenInfo | None, quote: MarketQuote | None) -> DataSource:
    has_nansen = info is not None and info.has_market_data
    has_cg = quote is not None and quote.has_market_data
    if has_nansen and has_cg:
        return "both"
    if has_nansen:
        return "nansen"
    if has_cg:
        return "coingecko"
    return "none"


def _is_placeholder_name(token: ResolvedToken) -> bool:
    # resolver leaves "Unknown Token" for unlisted addresses and the bare
    # ticker for screener hits
    return token.name == UNKNOWN_TOKEN_NAME or token.name == token.symbol.upper()


def patch_identity(
    token: ResolvedToken, info: NansenTokenInfo | None, quote: MarketQuote | None
) -> ResolvedToken:
    """Adopt Nansen's live name/symbol over whatever the resolver guessed."""
    update: dict[str, str] = {}

    if _is_placeholder_name(token):
        if info and info.name:
            update["name"] = info.name
        elif quote and quote.name:
            update["name"] = quote.name

    if info and info.symbol:
        update["symbol"] = info.symbol.upper()
    elif token.symbol == UNKNOWN_TOKEN_SYMBOL and quote and quote.symbol:
        update["symbol"] = quote.symbol.upper()

    return token.model_copy(update=update) if update else token


def compute_token_age(deployment_date: str | None, now: datetime) -> int | None:
    """Whole days since deployment, None if missing or unparseable."""
    if not deployment_date:
        return None
    try:
        deployed = datetime.fromisoformat(deployment_date.replace("Z", "+00:00"))
    except ValueError:
        return None
    if deployed.tzinfo is None:
        deployed = deployed.replace(tzinfo=timezone.utc)
    diff_ms = (now - deployed).total_seconds() * 1000
    return int(diff_ms // MS_PER_DAY)


def shorten_address(address: str) -> str:
    if len(address) <= 10:
        return address
    return f"{address[:6]}...{address[-4:]}"


def _top_traders(
    traders: list[NansenTrader], volume: Callable[[NansenTrader], float], side: TradeSide
) -> list[TopTrader]:
    ranked = sorted(traders, key=volume, reverse=True)[:TOP_TRADERS]
    return [
        TopTrader(
            label=trader.address_label or shorten_address(trader.address),
            volume_usd=volume(trader),
            side=side,
        )
        for trader in ranked
    ]


def _bought(trader: NansenTrader) -> float:
    return trader.bought_volume_usd or 0.0


def _sold(trader: NansenTrader) -> float:
    return trader.sold_volume_usd or 0.0


def build_smart_money_section(
    traders: tuple[list[NansenTrader], list[NansenTrader]] | None,
) -> SmartMoneySection:
    if traders is None:
        return SmartMoneySection()

    buyers = [t for t in traders[0] if _bought(t) > 0]
    sellers = [t for t in traders[1] if _sold(t) > 0]

    bought = sum(_bought(t) for t in buyers)
    sold = sum(_sold(t) for t in sellers)

    return SmartMoneySection(
        buy_sell=SmartMoneyBuySell(
            bought_volume_usd=bought,
            sold_volume_usd=sold,
            net_flow_usd=bought - sold,
            buyer_count=len(buyers),
            seller_count=len(sellers),
        ),
        top_buyers=_top_traders(buyers, _bought, "BUY"),
        top_sellers=_top_traders(sellers, _sold, "SELL"),
    )


def extract_flows(data: NansenFlowIntelligence) -> list[PresentFlow | AbsentFlow]:
    return [
        flow_segment(
            "Smart Traders",
            data.smart_trader_net_flow_usd,
            data.smart_trader_avg_flow_usd,
            data.smart_trader_wallet_count,
        ),
        flow_segment(
            "Whales",
            data.whale_net_flow_usd,
            data.whale_avg_flow_usd,
            data.whale_wallet_count,
        ),
        flow_segment(
            "Public Figures",
            data.public_figure_net_flow_usd,
            data.public_figure_avg_flow_usd,
            data.public_figure_wallet_count,
        ),
        flow_segment(
            "Exchanges",
            data.exchange_net_flow_usd,
            data.exchange_avg_flow_usd,
            data.exchange_wallet_count,
        ),
        flow_segment(
            "Top PnL Traders",
            data.top_pnl_net_flow_usd,
            data.top_pnl_avg_flow_usd,
            data.top_pnl_wallet_count,
        ),
        flow_segment(
            "Fresh Wallets",
            data.fresh_wallets_net_flow_usd,
            data.fresh_wallets_avg_flow_usd,
            data.fresh_wallets_wallet_count,
        ),
    ]


def build_nansen_url(token: ResolvedToken) -> str:
    return NANSEN_TOKEN_URL.format(address=token.address, chain=token.chain)


async def build_token_report(
    token: ResolvedToken,
    analytics: AnalyticsProvider,
    market: MarketDataProvider,
) -> TokenReport:
    return await ReportBuilder(analytics, market).build(token)
