# services/resolver.py
from __future__ import annotations

from loguru import logger

from flowscout.core.chains import (
    ADDRESS_CHAIN_PRIORITY,
    CHAIN_TO_PLATFORM,
    NATIVE_TOKENS,
    PLATFORM_TO_CHAIN,
    SCREENER_CHAINS,
)
from flowscout.models.coingecko import CoinDetail, SearchCoin
from flowscout.models.token import (
    UNKNOWN_TOKEN_NAME,
    UNKNOWN_TOKEN_SYMBOL,
    ParsedInput,
    ResolvedToken,
)
from flowscout.services.providers import AnalyticsProvider, MarketDataProvider, ProviderError

FUZZY_CANDIDATES = 5


class ResolutionError(Exception):
    """Base for failures that stop a query before any report is built."""


class TokenNotFoundError(ResolutionError):
    """No provider can place the query on a supported chain."""


class ChainMismatchError(TokenNotFoundError):
    """The token exists, but not on the chain the user asked for."""

    def __init__(self, query: str, chain: str) -> None:
        super().__init__(
            f'Found "{query}" but it has no contract on {chain}. '
            f"Try another chain or provide the contract address directly."
        )
        self.query = query
        self.chain = chain


class TokenResolver:
    """
    Turns a ParsedInput into a concrete (chain, address).

    Addresses go through CoinGecko's contract lookup; symbols through CoinGecko
    search, then the Nansen screener when search has nothing.
    """

    def __init__(
        self,
        market: MarketDataProvider,
        analytics: AnalyticsProvider | None = None,
    ) -> None:
        self._market = market
        self._analytics = analytics

    async def resolve(self, parsed: ParsedInput) -> ResolvedToken:
        if parsed.is_contract_address:
            return await self._resolve_by_address(parsed)
        return await self._resolve_by_symbol(parsed)

    # -- address ---------------------------------------------------------

    async def _resolve_by_address(self, parsed: ParsedInput) -> ResolvedToken:
        chain = parsed.wanted_chain
        chains_to_try = [chain] if chain else list(ADDRESS_CHAIN_PRIORITY)

        for try_chain in chains_to_try:
            platform = CHAIN_TO_PLATFORM.get(try_chain)
            if not platform:
                continue
            try:
                info = await self._market.get_contract(platform, parsed.query)
            except ProviderError as exc:
                logger.warning(f"[Resolver] Contract lookup on {try_chain} failed: {exc}")
                continue
            if info is None:
                continue
            logger.debug(f"[Resolver] {parsed.query} found on {try_chain} as {info.symbol.upper()}")
            return ResolvedToken(
                name=info.name,
                symbol=info.symbol.upper(),
                chain=try_chain,
                address=parsed.query,
            )

        # CoinGecko does not know it; Nansen may still index the raw address
        logger.info(f"[Resolver] {parsed.query} not listed on CoinGecko, continuing unresolved")
        return ResolvedToken(
            name=UNKNOWN_TOKEN_NAME,
            symbol=UNKNOWN_TOKEN_SYMBOL,
            chain=chain or chains_to_try[0],
            address=parsed.query,
        )

    # -- symbol ----------------------------------------------------------

    async def _resolve_by_symbol(self, parsed: ParsedInput) -> ResolvedToken:
        try:
            coins = await self._market.search(parsed.query)
        except ProviderError as exc:
            logger.warning(f"[Resolver] CoinGecko search for {parsed.query} failed: {exc}")
            coins = []

        if not coins:
            screened = await self._resolve_from_screener(parsed)
            if screened is not None:
                return screened
            raise TokenNotFoundError(f'No token found matching "{parsed.query}"')

        for coin in rank_candidates(coins, parsed.query):
            resolved = await self._resolve_candidate(coin, parsed)
            if resolved is not None:
                return resolved

        if parsed.wanted_chain:
            raise ChainMismatchError(parsed.query, parsed.wanted_chain)
        raise TokenNotFoundError(
            f'Found "{parsed.query}" but no contract address on supported chains. '
            f"Try providing the contract address directly."
        )

    async def _resolve_candidate(self, coin: SearchCoin, parsed: ParsedInput) -> ResolvedToken | None:
        chain = parsed.wanted_chain

        native = NATIVE_TOKENS.get(coin.id)
        if native is not None and (not chain or chain == native.chain):
            return native

        try:
            detail = await self._market.get_coin_detail(coin.id)
        except ProviderError as exc:
            logger.warning(f"[Resolver] Coin detail for {coin.id} failed: {exc}")
            return None
        if detail is None:
            return None

        if chain:
            platform = CHAIN_TO_PLATFORM.get(chain)
            address = detail.address_on(platform) if platform else None
            return _from_detail(detail, chain, address) if address else None

        return pick_platform(detail)

    async def _resolve_from_screener(self, parsed: ParsedInput) -> ResolvedToken | None:
        if self._analytics is None:
            return None

        chains = [parsed.wanted_chain] if parsed.wanted_chain else list(SCREENER_CHAINS)
        try:
            rows = await self._analytics.screen_tokens(chains)
        except ProviderError as exc:
            logger.warning(f"[Resolver] Nansen screener fallback failed: {exc}")
            return None

        matches = [
            row for row in rows
            if row.token_symbol and row.token_symbol.upper() == parsed.query.upper()
        ]
        if not matches:
            return None

        best = max(matches, key=lambda row: row.volume or 0.0)
        logger.info(f"[Resolver] {parsed.query} placed by Nansen screener on {best.chain}")
        symbol = parsed.query.upper()
        # name is provisional; the report builder replaces it with Nansen's metadata
        return ResolvedToken(name=symbol, symbol=symbol, chain=best.chain, address=best.token_address)


def rank_candidates(coins: list[SearchCoin], query: str) -> list[SearchCoin]:
    """
    Exact ticker matches (else the first few fuzzy hits), largest market cap first.

    Unranked coins sort last; ties keep search order.
    """
    exact = [coin for coin in coins if coin.symbol.upper() == query.upper()]
    candidates = exact or coins[:FUZZY_CANDIDATES]
    return sorted(
        candidates,
        key=lambda coin: (coin.market_cap_rank is None, coin.market_cap_rank or 0),
    )


def pick_platform(detail: CoinDetail) -> ResolvedToken | None:
    """CoinGecko's own platform order first (primary listing), then any platform we support."""
    for platform, entry in detail.detail_platforms.items():
        chain = PLATFORM_TO_CHAIN.get(platform)
        if chain and entry and entry.contract_address:
            return _from_detail(detail, chain, entry.contract_address)

    for platform, chain in PLATFORM_TO_CHAIN.items():
        address = detail.platforms.get(platform)
        if address:
            return _from_detail(detail, chain, address)

    return None


def _from_detail(detail: CoinDetail, chain: str, address: str) -> ResolvedToken:
    return ResolvedToken(
        name=detail.name,
        symbol=detail.symbol.upper(),
        chain=chain,
        address=address,
    )


async def resolve_token(
    parsed: ParsedInput,
    market: MarketDataProvider,
    analytics: AnalyticsProvider | None = None,
) -> ResolvedToken:
    return await TokenResolver(market, analytics).resolve(parsed)
