# core/chains.py
from __future__ import annotations

from flowscout.models.token import ResolvedToken

# what users type -> canonical (Nansen) chain name
CHAIN_ALIASES: dict[str, str] = {
    "eth": "ethereum",
    "ethereum": "ethereum",
    "sol": "solana",
    "solana": "solana",
    "bsc": "bnb",
    "bnb": "bnb",
    "binance": "bnb",
    "base": "base",
    "arb": "arbitrum",
    "arbitrum": "arbitrum",
    "poly": "polygon",
    "polygon": "polygon",
    "avax": "avalanche",
    "avalanche": "avalanche",
    "op": "optimism",
    "optimism": "optimism",
    "tron": "tron",
    "fantom": "fantom",
    "ftm": "fantom",
    "blast": "blast",
    "scroll": "scroll",
    "linea": "linea",
    "mantle": "mantle",
    "ronin": "ronin",
    "sei": "sei",
    "zksync": "zksync",
    "zk": "zksync",
    "unichain": "unichain",
    "sonic": "sonic",
    "monad": "monad",
    "mon": "monad",
    "near": "near",
    "starknet": "starknet",
    "stark": "starknet",
    "sui": "sui",
    "ton": "ton",
    "hyperevm": "hyperevm",
    "plasma": "plasma",
    "iotaevm": "iotaevm",
    "iota": "iotaevm",
}

# CoinGecko asset platform id -> canonical chain
PLATFORM_TO_CHAIN: dict[str, str] = {
    "ethereum": "ethereum",
    "binance-smart-chain": "bnb",
    "solana": "solana",
    "arbitrum-one": "arbitrum",
    "polygon-pos": "polygon",
    "optimistic-ethereum": "optimism",
    "avalanche": "avalanche",
    "base": "base",
    "tron": "tron",
    "fantom": "fantom",
    "blast": "blast",
    "scroll": "scroll",
    "linea": "linea",
    "mantle": "mantle",
    "ronin": "ronin",
    "sei-v2": "sei",
    "zksync": "zksync",
    "unichain": "unichain",
    "sonic": "sonic",
    "iota-evm": "iotaevm",
    "hyperevm": "hyperevm",
    "near-protocol": "near",
    "starknet": "starknet",
    "sui": "sui",
    "the-open-network": "ton",
    "plasma": "plasma",
    "monad": "monad",
}

CHAIN_TO_PLATFORM: dict[str, str] = {chain: platform for platform, chain in PLATFORM_TO_CHAIN.items()}

# tried in order for an EVM address with no chain hint, most liquid first
ADDRESS_CHAIN_PRIORITY: tuple[str, ...] = (
    "ethereum",
    "base",
    "arbitrum",
    "polygon",
    "optimism",
    "bnb",
    "avalanche",
    "scroll",
    "linea",
    "mantle",
    "zksync",
    "blast",
    "sonic",
    "monad",
    "ronin",
    "sei",
    "fantom",
    "unichain",
    "hyperevm",
    "iotaevm",
    "plasma",
)

# chains the Nansen screener is asked about when resolving an unhinted symbol
SCREENER_CHAINS: tuple[str, ...] = ("ethereum", "solana", "base", "bnb", "arbitrum")

_NATIVE_PLACEHOLDER = "0xeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeee"

# CoinGecko coin id -> what Nansen accepts for assets without a uniform contract.
# Keys must equal each entry's coingecko_id; search results are matched on it.
NATIVE_TOKENS: dict[str, ResolvedToken] = {
    "ethereum": ResolvedToken(
        name="Ethereum", symbol="ETH", chain="ethereum",
        address=_NATIVE_PLACEHOLDER, coingecko_id="ethereum",
    ),
    "bitcoin": ResolvedToken(
        name="Bitcoin", symbol="BTC", chain="ethereum",
        address="0x2260fac5e5542a773aa44fbcfedf7c193bc2c599",  # WBTC
        coingecko_id="bitcoin",
    ),
    "solana": ResolvedToken(
        name="Solana", symbol="SOL", chain="solana",
        address="So11111111111111111111111111111111111111112", coingecko_id="solana",
    ),
    "binancecoin": ResolvedToken(
        name="BNB", symbol="BNB", chain="bnb",
        address=_NATIVE_PLACEHOLDER, coingecko_id="binancecoin",
    ),
    "avalanche-2": ResolvedToken(
        name="Avalanche", symbol="AVAX", chain="avalanche",
        address=_NATIVE_PLACEHOLDER, coingecko_id="avalanche-2",
    ),
    "matic-network": ResolvedToken(
        name="Polygon", symbol="POL", chain="polygon",
        address=_NATIVE_PLACEHOLDER, coingecko_id="matic-network",
    ),
    "fantom": ResolvedToken(
        name="Fantom", symbol="FTM", chain="fantom",
        address=_NATIVE_PLACEHOLDER, coingecko_id="fantom",
    ),
    "monad": ResolvedToken(
        name="Monad", symbol="MON", chain="monad",
        address=_NATIVE_PLACEHOLDER, coingecko_id="monad",
    ),
    "the-open-network": ResolvedToken(
        name="Toncoin", symbol="TON", chain="ton",
        address=_NATIVE_PLACEHOLDER, coingecko_id="the-open-network",
    ),
    "sui": ResolvedToken(
        name="Sui", symbol="SUI", chain="sui",
        address="0x0000000000000000000000000000000000000000000000000000000000000002::sui::SUI",
        coingecko_id="sui",
    ),
    "near": ResolvedToken(
        name="NEAR Protocol", symbol="NEAR", chain="near",
        address="wrap.near", coingecko_id="near",
    ),
    "mantle": ResolvedToken(
        name="Mantle", symbol="MNT", chain="mantle",
        address=_NATIVE_PLACEHOLDER, coingecko_id="mantle",
    ),
    "sonic-3": ResolvedToken(
        name="Sonic", symbol="S", chain="sonic",
        address=_NATIVE_PLACEHOLDER, coingecko_id="sonic-3",
    ),
    "sei-network": ResolvedToken(
        name="Sei", symbol="SEI", chain="sei",
        address=_NATIVE_PLACEHOLDER, coingecko_id="sei-network",
    ),
    "hyperliquid": ResolvedToken(
        name="Hyperliquid", symbol="HYPE", chain="hyperevm",
        address=_NATIVE_PLACEHOLDER, coingecko_id="hyperliquid",
    ),
    "tron": ResolvedToken(
        name="TRON", symbol="TRX", chain="tron",
        address=_NATIVE_PLACEHOLDER, coingecko_id="tron",
    ),
}

# chain -> native ticker, for keyword mentions like "whales on solana"
CHAIN_TO_NATIVE_SYMBOL: dict[str, str] = {
    "ethereum": "ETH",
    "solana": "SOL",
    "bnb": "BNB",
    "arbitrum": "ARB",
    "optimism": "OP",
    "polygon": "MATIC",
    "avalanche": "AVAX",
    "base": "ETH",
    "fantom": "FTM",
    "tron": "TRX",
    "sui": "SUI",
    "near": "NEAR",
    "ton": "TON",
    "hyperevm": "HYPE",
    "sei": "SEI",
    "mantle": "MNT",
    "sonic": "S",
    "monad": "MON",
    "blast": "ETH",
    "scroll": "ETH",
    "linea": "ETH",
    "zksync": "ETH",
    "unichain": "ETH",
    "ronin": "RON",
    "starknet": "STRK",
    "plasma": "ETH",
    "iotaevm": "IOTA",
}


def normalize_chain(alias: str) -> str | None:
    """Map a user-typed chain name (any case, optional leading `$`) to its canonical id."""
    return CHAIN_ALIASES.get(alias.lower().removeprefix("$"))
