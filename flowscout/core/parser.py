# core/parser.py
from __future__ import annotations

import re
from typing import NamedTuple

from flowscout.core.chains import CHAIN_ALIASES, CHAIN_TO_NATIVE_SYMBOL, normalize_chain
from flowscout.models.token import ParsedInput

_BASE58 = "[1-9A-HJ-NP-Za-km-z]"

EVM_ADDRESS_RE = re.compile(r"0x[a-fA-F0-9]{40}")
TRON_ADDRESS_RE = re.compile(rf"T{_BASE58}{{33}}")
SOLANA_ADDRESS_RE = re.compile(rf"{_BASE58}{{32,44}}")

# same grammars, delimited by whitespace inside a longer message
EVM_ADDRESS_ANYWHERE_RE = re.compile(r"(?:^|\s)(0x[a-fA-F0-9]{40})(?=\s|$)")
TRON_ADDRESS_ANYWHERE_RE = re.compile(rf"(?:^|\s)(T{_BASE58}{{33}})(?=\s|$)")
SOLANA_ADDRESS_ANYWHERE_RE = re.compile(rf"(?:^|\s)({_BASE58}{{32,44}})(?=\s|$)")

DOLLAR_SYMBOL_RE = re.compile(r"\$[A-Za-z]{2,10}")

SOLANA_MIN_LENGTH = 32

KEYWORD_TRIGGERS: tuple[str, ...] = (
    "smart money",
    "whales",
    "whale",
    "flows",
    "flow",
    "holders",
    "buying",
    "selling",
    "accumulating",
    "dumping",
)


class KeywordQuery(NamedTuple):
    query: str
    keyword: str


def _is_evm_address(text: str) -> bool:
    return EVM_ADDRESS_RE.fullmatch(text) is not None


def _is_tron_address(text: str) -> bool:
    return TRON_ADDRESS_RE.fullmatch(text) is not None


def _is_solana_address(text: str) -> bool:
    # 32+ chars of base58. A long base58-only ticker is read as an address too;
    # there is no checksum or network check to tell them apart.
    return len(text) >= SOLANA_MIN_LENGTH and SOLANA_ADDRESS_RE.fullmatch(text) is not None


def _is_address(text: str) -> bool:
    return _is_evm_address(text) or _is_tron_address(text) or _is_solana_address(text)


def parse_user_input(raw: str) -> ParsedInput | None:
    """
    Classify a user message as a contract address or a ticker.

    The first whitespace-separated word is the subject (leading `$` dropped);
    the first later word that is a known chain alias becomes the chain hint.
    """
    parts = raw.split()
    if not parts:
        return None

    query = parts[0].removeprefix("$")
    if not query:
        return None

    chain_hint = None
    for part in parts[1:]:
        chain = normalize_chain(part)
        if chain:
            chain_hint = chain
            break

    if _is_evm_address(query):
        return ParsedInput(query=query, is_contract_address=True, chain_hint=chain_hint)

    if _is_tron_address(query):
        return ParsedInput(
            query=query, is_contract_address=True, chain_hint=chain_hint, inferred_chain="tron"
        )

    if _is_solana_address(query):
        return ParsedInput(
            query=query, is_contract_address=True, chain_hint=chain_hint, inferred_chain="solana"
        )

    return ParsedInput(query=query.upper(), is_contract_address=False, chain_hint=chain_hint)


def _first_word(text: str) -> str:
    parts = text.split()
    return parts[0] if parts else ""


def _solana_anywhere(text: str) -> str | None:
    for match in SOLANA_ADDRESS_ANYWHERE_RE.finditer(text):
        if len(match.group(1)) >= SOLANA_MIN_LENGTH:
            return match.group(1)
    return None


def looks_like_token_query(text: str) -> bool:
    """
    Cheap check for passive listeners: is this message worth a full lookup?

    Uses the same patterns as extract_token_query, so anything extraction
    would find is accepted here. Widen both together.
    """
    trimmed = text.strip()
    if trimmed.startswith("$") and len(trimmed) >= 2:
        return True
    if _is_address(_first_word(trimmed)):
        return True
    if DOLLAR_SYMBOL_RE.search(trimmed):
        return True
    if EVM_ADDRESS_ANYWHERE_RE.search(trimmed) or TRON_ADDRESS_ANYWHERE_RE.search(trimmed):
        return True
    return _solana_anywhere(trimmed) is not None


def _chain_word(text: str, exclude: str) -> str | None:
    """First word in `text` that is a chain alias, skipping the subject itself."""
    for word in text.split():
        lower = word.lower().removeprefix("$")
        if lower in CHAIN_ALIASES and lower != exclude.lower().removeprefix("$"):
            return lower
    return None


def extract_token_query(text: str) -> str | None:
    """
    Pull a parseable query out of a longer message.

    "tell me about $PEPE on solana" -> "$PEPE solana". Messages that already
    start with `$` or an address are returned as-is.
    """
    trimmed = text.strip()

    if trimmed.startswith("$") and len(trimmed) >= 2:
        return trimmed
    if _is_address(_first_word(trimmed)):
        return trimmed

    symbol_match = DOLLAR_SYMBOL_RE.search(trimmed)
    if symbol_match:
        symbol = symbol_match.group(0)
        chain = _chain_word(trimmed, exclude=symbol)
        return f"{symbol} {chain}" if chain else symbol

    evm_match = EVM_ADDRESS_ANYWHERE_RE.search(trimmed)
    if evm_match:
        address = evm_match.group(1)
        chain = _chain_word(trimmed, exclude=address)
        return f"{address} {chain}" if chain else address

    tron_match = TRON_ADDRESS_ANYWHERE_RE.search(trimmed)
    if tron_match:
        return tron_match.group(1)

    return _solana_anywhere(trimmed)


def extract_keyword_query(text: str) -> KeywordQuery | None:
    """
    Fallback for mentions with no ticker or address, e.g. "smart money on Solana?".

    A flow keyword plus a chain name maps to that chain's native asset.
    """
    lower = text.lower()

    keyword = next((kw for kw in KEYWORD_TRIGGERS if kw in lower), None)
    if keyword is None:
        return None

    words = re.sub(r"[^a-z0-9\s]", "", lower).split()
    for word in words:
        chain = CHAIN_ALIASES.get(word)
        if chain and chain in CHAIN_TO_NATIVE_SYMBOL:
            return KeywordQuery(query=f"${CHAIN_TO_NATIVE_SYMBOL[chain]}", keyword=keyword)

    return None
