# tests/test_clients.py
import json
from datetime import date
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from conftest import PEPE_ADDRESS, USDC_SOL_ADDRESS
from flowscout.clients.coingecko_client import CoinGeckoClient
from flowscout.clients.nansen_client import NansenClient
from flowscout.clients.pool import NansenClientPool, validate_key
from flowscout.models.nansen import NansenTokenInfo
from flowscout.services.providers import ProviderError

CG_BASE = "https://cg.test/api/v3"
NANSEN_BASE = "https://nansen.test/api/v1"


class Recorder:
    """MockTransport handler replaying canned responses in order"""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests = []

    def __call__(self, request):
        self.requests.append(request)
        status, body = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        return httpx.Response(status, json=body)


@pytest.fixture
def slept():
    return []


def coingecko(handler, slept, **kwargs):
    async def sleep(seconds):
        slept.append(seconds)

    return CoinGeckoClient(
        base_url=CG_BASE,
        transport=httpx.MockTransport(handler),
        sleep=sleep,
        backoff_seconds=1.0,
        **kwargs,
    )


def nansen(handler, slept, **kwargs):
    async def sleep(seconds):
        slept.append(seconds)

    return NansenClient(
        "test-key",
        base_url=NANSEN_BASE,
        transport=httpx.MockTransport(handler),
        sleep=sleep,
        backoff_seconds=1.0,
        **kwargs,
    )


class TestRetries:
    @pytest.mark.asyncio
    async def test_rate_limit_then_success(self, slept):
        handler = Recorder((429, {}), (200, {"coins": [{"id": "pepe", "name": "Pepe", "symbol": "PEPE"}]}))
        client = coingecko(handler, slept, max_retries=3)

        coins = await client.search("pepe")

        assert [c.id for c in coins] == ["pepe"]
        assert len(handler.requests) == 2
        assert slept == [1.0]
        await client.aclose()

    @pytest.mark.asyncio
    async def test_backoff_doubles_and_gives_up(self, slept):
        handler = Recorder((503, {}))
        client = coingecko(handler, slept, max_retries=2)

        with pytest.raises(ProviderError):
            await client.search("pepe")

        assert len(handler.requests) == 3
        assert slept == [1.0, 2.0]
        await client.aclose()

    @pytest.mark.asyncio
    async def test_zero_retries_is_one_attempt(self, slept):
        handler = Recorder((503, {}))
        client = coingecko(handler, slept, max_retries=0)

        with pytest.raises(ProviderError):
            await client.search("pepe")

        assert len(handler.requests) == 1
        assert slept == []
        await client.aclose()

    @pytest.mark.asyncio
    async def test_transport_error_retried(self, slept):
        calls = []

        def handler(request):
            calls.append(request)
            if len(calls) == 1:
                raise httpx.ConnectError("connection refused", request=request)
            return httpx.Response(200, json={"coins": []})

        client = coingecko(handler, slept, max_retries=1)

        assert await client.search("pepe") == []
        assert len(calls) == 2
        await client.aclose()

    @pytest.mark.asyncio
    async def test_client_error_not_retried(self, slept):
        handler = Recorder((401, {"error": "bad key"}))
        client = nansen(handler, slept, max_retries=3)

        with pytest.raises(ProviderError):
            await client.get_token_info("ethereum", "0xabc")

        assert len(handler.requests) == 1
        assert slept == []
        await client.aclose()


class TestCoinGeckoClient:
    @pytest.mark.asyncio
    async def test_unlisted_contract_is_none(self, slept):
        handler = Recorder((404, {"error": "coin not found"}))
        client = coingecko(handler, slept)

        assert await client.get_contract("ethereum", PEPE_ADDRESS) is None
        assert handler.requests[0].url.path == f"/api/v3/coins/ethereum/contract/{PEPE_ADDRESS.lower()}"
        await client.aclose()

    @pytest.mark.asyncio
    async def test_solana_contract_path_keeps_case(self, slept):
        handler = Recorder((200, {"id": "usd-coin", "name": "USDC", "symbol": "usdc"}))
        client = coingecko(handler, slept)

        info = await client.get_contract("solana", USDC_SOL_ADDRESS)

        assert info.symbol == "usdc"
        assert handler.requests[0].url.path == f"/api/v3/coins/solana/contract/{USDC_SOL_ADDRESS}"
        await client.aclose()

    @pytest.mark.asyncio
    async def test_simple_price_keyed_by_lowercase_address(self, slept):
        body = {PEPE_ADDRESS.lower(): {"usd": 1.5, "usd_market_cap": 1e6, "usd_24h_change": -3.0}}
        handler = Recorder((200, body))
        client = coingecko(handler, slept)

        quote = await client.get_simple_token_price("ethereum", PEPE_ADDRESS)

        assert quote.price_usd == 1.5
        assert quote.market_cap_usd == 1e6
        assert quote.price_change_24h == -3.0
        assert quote.fdv_usd is None
        assert handler.requests[0].url.params["contract_addresses"] == PEPE_ADDRESS
        await client.aclose()

    @pytest.mark.asyncio
    async def test_simple_price_solana_key_keeps_case(self, slept):
        handler = Recorder((200, {USDC_SOL_ADDRESS: {"usd": 1.0, "usd_market_cap": 6e10}}))
        client = coingecko(handler, slept)

        quote = await client.get_simple_token_price("solana", USDC_SOL_ADDRESS)

        assert quote.price_usd == 1.0
        assert quote.market_cap_usd == 6e10
        await client.aclose()

    @pytest.mark.asyncio
    async def test_simple_price_missing_entry(self, slept):
        client = coingecko(Recorder((200, {})), slept)
        assert await client.get_simple_token_price("ethereum", "0xabc") is None
        await client.aclose()

    @pytest.mark.asyncio
    async def test_coin_detail_keeps_platform_order(self, slept):
        handler = Recorder((200, {
            "id": "virtual-protocol",
            "name": "Virtuals Protocol",
            "symbol": "virtual",
            "platforms": {"base": "0xbase", "ethereum": "0xeth"},
            "detail_platforms": {
                "base": {"decimal_place": 18, "contract_address": "0xbase"},
                "ethereum": {"decimal_place": 18, "contract_address": "0xeth"},
            },
        }))
        client = coingecko(handler, slept)

        detail = await client.get_coin_detail("virtual-protocol")

        assert list(detail.detail_platforms) == ["base", "ethereum"]
        assert handler.requests[0].url.params["market_data"] == "false"
        await client.aclose()

    @pytest.mark.asyncio
    async def test_markets_by_id(self, slept):
        handler = Recorder((200, [{
            "id": "ethereum", "symbol": "eth", "name": "Ethereum",
            "current_price": 3500.0, "fully_diluted_valuation": 4.2e11,
            "price_change_percentage_24h": 1.2,
        }]))
        client = coingecko(handler, slept)

        quote = await client.get_market_by_id("ethereum")

        assert quote.symbol == "ETH"
        assert quote.fdv_usd == 4.2e11
        await client.aclose()

    @pytest.mark.asyncio
    async def test_demo_key_header(self, slept):
        handler = Recorder((200, {"coins": []}))
        client = coingecko(handler, slept, api_key="cg-demo")

        await client.search("x")

        assert handler.requests[0].headers["x-cg-demo-api-key"] == "cg-demo"
        await client.aclose()


class TestNansenClient:
    @pytest.mark.asyncio
    async def test_token_info_flattened_with_derived_price(self, slept):
        handler = Recorder((200, {"data": {
            "name": "Pepe",
            "symbol": "PEPE",
            "token_details": {
                "token_deployment_date": "2023-04-14T00:00:00Z",
                "market_cap_usd": 1_000_000_000.0,
                "fdv_usd": 1_100_000_000.0,
                "circulating_supply": 400_000_000.0,
            },
            "spot_metrics": {"volume_total_usd": 5e7, "liquidity_usd": 1e7, "total_holders": 120_000},
        }}))
        client = nansen(handler, slept)

        info = await client.get_token_info("ethereum", "0xabc")

        assert info.price == 2.5
        assert info.holder_count == 120_000
        assert info.deployment_date == "2023-04-14T00:00:00Z"
        request = handler.requests[0]
        assert request.url.path == "/api/v1/tgm/token-information"
        assert request.headers["apikey"] == "test-key"
        assert json.loads(request.content) == {"chain": "ethereum", "token_address": "0xabc", "timeframe": "1d"}
        await client.aclose()

    @pytest.mark.asyncio
    async def test_flow_intelligence_first_row(self, slept):
        handler = Recorder((200, {"data": [{"whale_net_flow_usd": 1e6, "whale_wallet_count": 4}]}))
        client = nansen(handler, slept)

        flows = await client.get_flow_intelligence("ethereum", "0xabc")

        assert flows.whale_net_flow_usd == 1e6
        assert flows.smart_trader_wallet_count is None
        await client.aclose()

    @pytest.mark.asyncio
    async def test_flow_intelligence_empty(self, slept):
        client = nansen(Recorder((200, {"data": []})), slept)
        assert await client.get_flow_intelligence("ethereum", "0xabc") is None
        await client.aclose()

    @pytest.mark.asyncio
    async def test_who_bought_sold_request(self, slept):
        handler = Recorder((200, {"data": [
            {"address": "0x1", "address_label": "Smart Trader", "bought_volume_usd": 1000.0, "sold_volume_usd": None},
        ]}))
        client = nansen(handler, slept)

        traders = await client.get_who_bought_sold("solana", "Mint111", "BUY", today=date(2024, 5, 2))

        assert traders[0].address_label == "Smart Trader"
        body = json.loads(handler.requests[0].content)
        assert body["date"] == {"from": "2024-05-01", "to": "2024-05-02"}
        assert body["buy_or_sell"] == "BUY"
        assert body["pagination"] == {"page": 1, "per_page": 10}
        await client.aclose()

    @pytest.mark.asyncio
    async def test_screener_skips_unusable_rows(self, slept):
        handler = Recorder((200, {"data": [
            {"chain": "base", "token_address": "0xfoo", "token_symbol": "FOO", "volume": 100.0},
            {"token_symbol": "BROKEN"},
        ]}))
        client = nansen(handler, slept)

        rows = await client.screen_tokens(["base"])

        assert [r.token_address for r in rows] == ["0xfoo"]
        assert json.loads(handler.requests[0].content)["chains"] == ["base"]
        await client.aclose()

    def test_key_required(self, monkeypatch):
        monkeypatch.setattr(
            "flowscout.clients.nansen_client.get_settings",
            lambda: MagicMock(NANSEN_API_KEY=None),
        )
        with pytest.raises(RuntimeError):
            NansenClient()


class TestPool:
    @pytest.mark.asyncio
    async def test_one_client_per_key(self):
        made = []

        def factory(api_key):
            client = MagicMock()
            client.aclose = AsyncMock()
            made.append(client)
            return client

        pool = NansenClientPool(factory=factory)

        assert pool.get("a") is pool.get("a")
        assert pool.get("b") is not pool.get("a")
        assert len(pool) == 2

        await pool.aclose()

        assert len(pool) == 0
        for client in made:
            client.aclose.assert_awaited_once()


class TestValidateKey:
    def fake(self, **kwargs):
        client = MagicMock()
        client.get_token_info = AsyncMock(**kwargs)
        client.aclose = AsyncMock()
        return client

    @pytest.mark.asyncio
    async def test_valid(self):
        client = self.fake(return_value=NansenTokenInfo(name="Tether USD"))
        assert await validate_key("k", factory=lambda key: client) is True
        client.aclose.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_rejected(self):
        client = self.fake(side_effect=ProviderError("Nansen API 401: unauthorized"))
        assert await validate_key("k", factory=lambda key: client) is False
        client.aclose.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_no_data(self):
        client = self.fake(return_value=None)
        assert await validate_key("k", factory=lambda key: client) is False
