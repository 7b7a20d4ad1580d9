# tests/conftest.py
"""
Shared fixtures: mocked providers and small model factories
"""
from unittest.mock import AsyncMock

import pytest

from flowscout.models.token import ResolvedToken, SmartMoneyBuySell, SmartMoneySection, TokenReport

PEPE_ADDRESS = "0x6982508145454Ce325dDbE47a25d4ec3d2311933"
USDC_SOL_ADDRESS = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"


@pytest.fixture
def analytics():
    """Nansen stand-in; every call succeeds with nothing unless a test says otherwise"""
    mock = AsyncMock()
    mock.get_token_info.return_value = None
    mock.get_flow_intelligence.return_value = None
    mock.get_who_bought_sold.return_value = []
    mock.screen_tokens.return_value = []
    return mock


@pytest.fixture
def market():
    """CoinGecko stand-in"""
    mock = AsyncMock()
    mock.search.return_value = []
    mock.get_coin_detail.return_value = None
    mock.get_contract.return_value = None
    mock.get_simple_token_price.return_value = None
    mock.get_market_by_id.return_value = None
    return mock


@pytest.fixture
def pepe():
    return ResolvedToken(name="Pepe", symbol="PEPE", chain="ethereum", address=PEPE_ADDRESS)


def make_token(symbol="PEPE", chain="ethereum", address=PEPE_ADDRESS, name=None):
    return ResolvedToken(name=name or symbol.title(), symbol=symbol, chain=chain, address=address)


def make_report(token=None, net=None, buyers=0, sellers=0, flows=(), price_change=None):
    token = token or make_token()
    smart_money = SmartMoneySection()
    if net is not None:
        smart_money = SmartMoneySection(
            buy_sell=SmartMoneyBuySell(
                bought_volume_usd=max(net, 0),
                sold_volume_usd=max(-net, 0),
                net_flow_usd=net,
                buyer_count=buyers,
                seller_count=sellers,
            )
        )
    return TokenReport(
        token=token,
        flows=list(flows),
        smart_money=smart_money,
        price_change_24h=price_change,
        nansen_url=f"https://app.nansen.ai/token-god-mode?tokenAddress={token.address}&chain={token.chain}",
    )
