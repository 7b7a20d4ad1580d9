# clients/pool.py
from __future__ import annotations

from typing import Callable

from loguru import logger

from flowscout.clients.nansen_client import NansenClient
from flowscout.services.providers import ProviderError

# USDT on Ethereum, always indexed by Nansen
_PROBE_CHAIN = "ethereum"
_PROBE_ADDRESS = "0xdac17f958d2ee523a2206206994597c13d831ec7"


class NansenClientPool:
    """One NansenClient per API key, so callers bringing the same key share a connection pool."""

    def __init__(self, factory: Callable[[str], NansenClient] = NansenClient) -> None:
        self._factory = factory
        self._clients: dict[str, NansenClient] = {}

    def get(self, api_key: str) -> NansenClient:
        client = self._clients.get(api_key)
        if client is None:
            client = self._factory(api_key)
            self._clients[api_key] = client
        return client

    def __len__(self) -> int:
        return len(self._clients)

    async def aclose(self) -> None:
        for client in self._clients.values():
            await client.aclose()
        self._clients.clear()


async def validate_key(api_key: str, factory: Callable[[str], NansenClient] = NansenClient) -> bool:
    """Probe Nansen with a cheap token-information call; True if the key is accepted."""
    client = factory(api_key)
    try:
        info = await client.get_token_info(_PROBE_CHAIN, _PROBE_ADDRESS, "1d")
    except ProviderError as exc:
        logger.info(f"[Nansen] Key validation failed: {exc}")
        return False
    finally:
        await client.aclose()
    return info is not None
