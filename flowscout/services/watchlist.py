# services/watchlist.py
from __future__ import annotations

from flowscout.core.chains import NATIVE_TOKENS
from flowscout.models.token import ResolvedToken


def _t(name: str, symbol: str, chain: str, address: str) -> ResolvedToken:
    return ResolvedToken(name=name, symbol=symbol, chain=chain, address=address)


# Pre-resolved so a scan cycle never spends CoinGecko calls on resolution.
# Native assets carry their coin id so their quote comes from /coins/markets.
WATCHLIST: tuple[ResolvedToken, ...] = (
    # blue chips
    NATIVE_TOKENS["ethereum"],
    NATIVE_TOKENS["bitcoin"],
    NATIVE_TOKENS["solana"],
    NATIVE_TOKENS["binancecoin"],
    # DeFi
    _t("Chainlink", "LINK", "ethereum", "0x514910771af9ca656af840dff83e8264ecf986ca"),
    _t("Uniswap", "UNI", "ethereum", "0x1f9840a85d5af5bf1d1762f925bdaddc4201f984"),
    _t("Aave", "AAVE", "ethereum", "0x7fc66500c84a76ad7e9c93437bfc5ac33e2ddae9"),
    _t("Lido DAO", "LDO", "ethereum", "0x5a98fcbea516cf06857215779fd812ca3bef1b32"),
    _t("Maker", "MKR", "ethereum", "0x9f8f72aa9304c8b593d555f12ef6589cc3a579a2"),
    _t("Pendle", "PENDLE", "ethereum", "0x808507121b80c02388fad14726482e061b8da827"),
    # L2s / alt-L1s
    _t("Arbitrum", "ARB", "arbitrum", "0x912ce59144191c1204e64559fe8253a0e49e6548"),
    _t("Optimism", "OP", "optimism", "0x4200000000000000000000000000000000000042"),
    NATIVE_TOKENS["hyperliquid"],
    NATIVE_TOKENS["sui"],
    NATIVE_TOKENS["avalanche-2"],
    # memecoins
    _t("Pepe", "PEPE", "ethereum", "0x6982508145454ce325ddbe47a25d4ec3d2311933"),
    _t("Dogecoin", "DOGE", "ethereum", "0x4206931337dc273a630d328da6441786bfad668f"),
    _t("dogwifhat", "WIF", "solana", "EKpQGSJtjMFqKZ9KQanSqYXRcF8fBopzLHYxdM65zcjm"),
    _t("Bonk", "BONK", "solana", "DezXAZ8z7PnrnRJjz3wXBoRgixCa6xjnB7YaB1pPB263"),
    _t("Floki", "FLOKI", "ethereum", "0xcf0c122c6b73ff809c693db761e7baebe62b6a2e"),
    # trending / high volume
    _t("Render", "RNDR", "ethereum", "0x6de037ef9ad2725eb40118bb1702ebb27e4aeb24"),
    _t("Virtuals Protocol", "VIRTUAL", "base", "0x0b3e328455c4059eeb9e3f84b5543f74e24e7e1b"),
    _t("Ondo Finance", "ONDO", "ethereum", "0xfaba6f8e4a5e8ab82f62fe7c39859fa577269be3"),
    _t("Ethena", "ENA", "ethereum", "0x57e114b691db790c35207b2e685d4a43181e6061"),
    _t("Jupiter", "JUP", "solana", "JUPyiwrYJFskUPiHa7hkeR8VUtAeFoSYbKedZNsDvCN"),
)


def get_watchlist_tokens() -> list[ResolvedToken]:
    return list(WATCHLIST)
