# tests/test_report_builder.py
from datetime import datetime, timezone

import pytest

from conftest import PEPE_ADDRESS
from flowscout.core.chains import NATIVE_TOKENS
from flowscout.models.coingecko import ContractInfo, ContractMarketData, MarketQuote
from flowscout.models.nansen import NansenFlowIntelligence, NansenTokenInfo, NansenTrader
from flowscout.models.token import FLOW_SEGMENT_NAMES, AbsentFlow, PresentFlow, ResolvedToken
from flowscout.services.providers import ProviderError
from flowscout.services.report_builder import (
    ReportBuilder,
    build_nansen_url,
    build_smart_money_section,
    compute_token_age,
    data_source,
    extract_flows,
    patch_identity,
    shorten_address,
)

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


def builder(analytics, market):
    return ReportBuilder(analytics, market, clock=lambda: NOW)


def trader(address, bought=None, sold=None, label=None):
    return NansenTrader(
        address=address, address_label=label, bought_volume_usd=bought, sold_volume_usd=sold
    )


class TestBuild:
    @pytest.mark.asyncio
    async def test_every_source_failing_still_builds(self, analytics, market, pepe):
        boom = ProviderError("upstream down")
        for method in ("get_token_info", "get_flow_intelligence", "get_who_bought_sold"):
            getattr(analytics, method).side_effect = boom
        for method in ("get_simple_token_price", "get_contract", "get_market_by_id"):
            getattr(market, method).side_effect = boom

        report = await builder(analytics, market).build(pepe)

        assert report.token == pepe
        assert report.price_usd is None
        assert report.market_cap_usd is None
        assert report.flows == []
        assert report.smart_money.buy_sell is None
        assert report.data_source == "none"
        assert report.nansen_url == build_nansen_url(pepe)

    @pytest.mark.asyncio
    async def test_nansen_preferred_over_coingecko(self, analytics, market, pepe):
        analytics.get_token_info.return_value = NansenTokenInfo(
            name="Pepe", symbol="PEPE", price=5.0, market_cap=5e9, fdv=6e9, liquidity=2e7, holder_count=400_000
        )
        market.get_simple_token_price.return_value = MarketQuote(
            price_usd=7.0, market_cap_usd=7e9, volume_24h_usd=3e8, price_change_24h=-4.2
        )

        report = await builder(analytics, market).build(pepe)

        assert report.price_usd == 5.0
        assert report.market_cap_usd == 5e9
        assert report.volume_24h_usd == 3e8
        assert report.price_change_24h == -4.2
        assert report.liquidity_usd == 2e7
        assert report.holder_count == 400_000
        assert report.data_source == "both"
        market.get_contract.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_coingecko_only(self, analytics, market, pepe):
        analytics.get_token_info.side_effect = ProviderError("Nansen API 500")
        market.get_simple_token_price.return_value = MarketQuote(price_usd=7.0)

        report = await builder(analytics, market).build(pepe)

        assert report.price_usd == 7.0
        assert report.data_source == "coingecko"

    @pytest.mark.asyncio
    async def test_contract_lookup_when_simple_price_empty(self, analytics, market, pepe):
        market.get_contract.return_value = ContractInfo(
            name="Pepe",
            symbol="pepe",
            market_data=ContractMarketData(
                current_price={"usd": 0.00001},
                fully_diluted_valuation={"usd": 4.2e9},
            ),
        )

        report = await builder(analytics, market).build(pepe)

        market.get_contract.assert_awaited_once_with("ethereum", PEPE_ADDRESS)
        assert report.fdv_usd == 4.2e9
        assert report.price_usd == 0.00001

    @pytest.mark.asyncio
    async def test_missing_fdv_filled_from_contract(self, analytics, market, pepe):
        market.get_simple_token_price.return_value = MarketQuote(price_usd=1.0, price_change_24h=2.0)
        market.get_contract.return_value = ContractInfo(
            name="Pepe",
            symbol="pepe",
            market_data=ContractMarketData(
                current_price={"usd": 1.1},
                fully_diluted_valuation={"usd": 4.2e9},
                price_change_percentage_24h=3.0,
            ),
        )

        report = await builder(analytics, market).build(pepe)

        assert report.fdv_usd == 4.2e9
        assert report.price_usd == 1.0
        assert report.price_change_24h == 2.0

    @pytest.mark.asyncio
    async def test_simple_price_error_falls_back_to_contract(self, analytics, market, pepe):
        market.get_simple_token_price.side_effect = ProviderError("CoinGecko API 429")
        market.get_contract.return_value = ContractInfo(
            name="Pepe", symbol="pepe", market_data=ContractMarketData(current_price={"usd": 1.0})
        )

        report = await builder(analytics, market).build(pepe)

        assert report.price_usd == 1.0

    @pytest.mark.asyncio
    async def test_priceless_quote_survives_contract_failure(self, analytics, market, pepe):
        market.get_simple_token_price.return_value = MarketQuote(
            market_cap_usd=4e9, volume_24h_usd=1e8, price_change_24h=12.5
        )
        market.get_contract.side_effect = ProviderError("CoinGecko API 429")

        report = await builder(analytics, market).build(pepe)

        market.get_contract.assert_awaited_once_with("ethereum", PEPE_ADDRESS)
        assert report.price_change_24h == 12.5
        assert report.market_cap_usd == 4e9
        assert report.volume_24h_usd == 1e8
        assert report.data_source == "coingecko"

    @pytest.mark.asyncio
    async def test_contract_only_fills_what_simple_price_lacked(self, analytics, market, pepe):
        market.get_simple_token_price.return_value = MarketQuote(market_cap_usd=4e9, price_change_24h=12.5)
        market.get_contract.return_value = ContractInfo(
            name="Pepe",
            symbol="pepe",
            market_data=ContractMarketData(
                current_price={"usd": 0.00001},
                market_cap={"usd": 3e9},
                price_change_percentage_24h=-1.0,
            ),
        )

        report = await builder(analytics, market).build(pepe)

        assert report.price_usd == 0.00001
        assert report.market_cap_usd == 4e9
        assert report.price_change_24h == 12.5
        market.get_contract.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_native_asset_quoted_by_coin_id(self, analytics, market):
        market.get_market_by_id.return_value = MarketQuote(name="Ethereum", symbol="ETH", price_usd=3500.0)

        report = await builder(analytics, market).build(NATIVE_TOKENS["ethereum"])

        market.get_market_by_id.assert_awaited_once_with("ethereum")
        market.get_simple_token_price.assert_not_awaited()
        assert report.price_usd == 3500.0

    @pytest.mark.asyncio
    async def test_one_failed_trade_side(self, analytics, market, pepe):
        async def who_bought_sold(chain, address, side):
            if side == "SELL":
                raise ProviderError("Nansen API 500")
            return [trader("0xaaaaaaaaaaaa", bought=1000.0)]

        analytics.get_who_bought_sold.side_effect = who_bought_sold

        report = await builder(analytics, market).build(pepe)

        buy_sell = report.smart_money.buy_sell
        assert buy_sell.bought_volume_usd == 1000.0
        assert buy_sell.seller_count == 0
        assert report.smart_money.top_sellers == []

    @pytest.mark.asyncio
    async def test_token_age_and_flows(self, analytics, market, pepe):
        analytics.get_token_info.return_value = NansenTokenInfo(deployment_date="2024-05-22T00:00:00Z")
        analytics.get_flow_intelligence.return_value = NansenFlowIntelligence(
            whale_net_flow_usd=1e6, whale_avg_flow_usd=1e5, whale_wallet_count=12
        )

        report = await builder(analytics, market).build(pepe)

        assert report.token_age_days == 10
        assert [f.name for f in report.flows] == list(FLOW_SEGMENT_NAMES)
        assert isinstance(report.flow("Whales"), PresentFlow)

    @pytest.mark.asyncio
    async def test_placeholder_identity_is_patched(self, analytics, market):
        token = ResolvedToken(name="Unknown Token", symbol="???", chain="base", address="0xabc")
        analytics.get_token_info.return_value = NansenTokenInfo(name="Brett", symbol="brett")

        report = await builder(analytics, market).build(token)

        assert report.token.name == "Brett"
        assert report.token.symbol == "BRETT"
        assert report.token.address == "0xabc"


class TestPatchIdentity:
    def test_real_name_kept(self, pepe):
        patched = patch_identity(pepe, NansenTokenInfo(name="PEPE Token", symbol="pepe"), None)
        assert patched.name == "Pepe"
        assert patched.symbol == "PEPE"

    def test_screener_placeholder_replaced(self):
        token = ResolvedToken(name="FOO", symbol="FOO", chain="solana", address="FooSol")
        patched = patch_identity(token, NansenTokenInfo(name="Foo Finance"), None)
        assert patched.name == "Foo Finance"

    def test_coingecko_fills_unknown(self):
        token = ResolvedToken(name="Unknown Token", symbol="???", chain="base", address="0xabc")
        patched = patch_identity(token, None, MarketQuote(name="Brett", symbol="brett"))
        assert patched.name == "Brett"
        assert patched.symbol == "BRETT"

    def test_nothing_to_patch(self, pepe):
        assert patch_identity(pepe, None, None) is pepe


class TestDataSource:
    def test_nansen_only(self):
        assert data_source(NansenTokenInfo(market_cap=1.0), MarketQuote()) == "nansen"

    def test_coingecko_only(self):
        assert data_source(NansenTokenInfo(name="Pepe"), MarketQuote(price_usd=1.0)) == "coingecko"

    def test_both(self):
        assert data_source(NansenTokenInfo(price=1.0), MarketQuote(market_cap_usd=1.0)) == "both"

    def test_none(self):
        assert data_source(None, None) == "none"


class TestComputeTokenAge:
    def test_floors_to_whole_days(self):
        assert compute_token_age("2024-05-22T00:00:00Z", NOW) == 10
        assert compute_token_age("2024-05-22T12:00:01Z", NOW) == 9

    def test_naive_date_is_utc(self):
        assert compute_token_age("2024-05-22T00:00:00", NOW) == 10

    @pytest.mark.parametrize("value", [None, "", "not a date"])
    def test_unusable(self, value):
        assert compute_token_age(value, NOW) is None


class TestSmartMoney:
    def test_totals_and_top_traders(self):
        buyers = [
            trader("0x1111111111111111111111111111111111111111", bought=300.0, label="Wintermute"),
            trader("0x2222222222222222222222222222222222222222", bought=100.0),
            trader("0x3333333333333333333333333333333333333333", bought=0.0),
            trader("0x4444444444444444444444444444444444444444", bought=200.0),
            trader("0x5555555555555555555555555555555555555555", bought=50.0),
        ]
        sellers = [
            trader("0x6666666666666666666666666666666666666666", sold=400.0),
            trader("0x7777777777777777777777777777777777777777", sold=None),
        ]

        section = build_smart_money_section((buyers, sellers))

        assert section.buy_sell.bought_volume_usd == 650.0
        assert section.buy_sell.sold_volume_usd == 400.0
        assert section.buy_sell.net_flow_usd == 250.0
        assert section.buy_sell.buyer_count == 4
        assert section.buy_sell.seller_count == 1
        assert [t.volume_usd for t in section.top_buyers] == [300.0, 200.0, 100.0]
        assert section.top_buyers[0].label == "Wintermute"
        assert section.top_buyers[1].label == "0x4444...4444"
        assert section.top_sellers[0].side == "SELL"

    def test_no_data(self):
        assert build_smart_money_section(None).buy_sell is None

    def test_shorten_address(self):
        assert shorten_address("0x1234567890abcdef") == "0x1234...cdef"
        assert shorten_address("short") == "short"


class TestExtractFlows:
    def test_fixed_order_and_absent_segments(self):
        flows = extract_flows(
            NansenFlowIntelligence(
                smart_trader_net_flow_usd=0.0,
                smart_trader_wallet_count=0,
                exchange_net_flow_usd=-2e5,
                exchange_avg_flow_usd=4e4,
                exchange_wallet_count=3,
                fresh_wallets_net_flow_usd=5e3,
            )
        )

        assert [f.name for f in flows] == list(FLOW_SEGMENT_NAMES)
        assert isinstance(flows[0], AbsentFlow)
        exchanges = flows[3]
        assert isinstance(exchanges, PresentFlow)
        assert exchanges.net_flow_usd == -2e5
        assert exchanges.wallet_count == 3
        # flow with no wallet count still counts as data
        assert isinstance(flows[5], PresentFlow)
