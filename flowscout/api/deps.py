# api/deps.py
from __future__ import annotations

from functools import lru_cache
from typing import Annotated

from fastapi import Depends, Header, HTTPException, Request, status

from flowscout.clients.coingecko_client import CoinGeckoClient
from flowscout.clients.pool import NansenClientPool
from flowscout.core.config import get_settings
from flowscout.services.providers import AnalyticsProvider, MarketDataProvider
from flowscout.services.rate_limiter import QueryRateLimiter
from flowscout.services.report_builder import ReportBuilder
from flowscout.services.resolver import TokenResolver
from flowscout.services.scanner import RateGate, WatchlistScanner


@lru_cache
def get_market_provider() -> CoinGeckoClient:
    return CoinGeckoClient()


@lru_cache
def get_client_pool() -> NansenClientPool:
    return NansenClientPool()


@lru_cache
def get_rate_limiter() -> QueryRateLimiter:
    settings = get_settings()
    return QueryRateLimiter(
        per_minute=settings.QUERY_LIMIT_PER_MINUTE,
        per_hour=settings.QUERY_LIMIT_PER_HOUR,
    )


@lru_cache
def get_scan_gate() -> RateGate:
    return RateGate(get_settings().SCAN_DELAY_SECONDS)


def get_analytics_provider(
    pool: Annotated[NansenClientPool, Depends(get_client_pool)],
    x_nansen_api_key: Annotated[str | None, Header()] = None,
) -> AnalyticsProvider:
    """Caller's own Nansen key if sent, else the server key."""
    api_key = x_nansen_api_key or get_settings().NANSEN_API_KEY
    if not api_key:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="No Nansen API key configured; send X-Nansen-Api-Key",
        )
    return pool.get(api_key)


def get_resolver(
    market: Annotated[MarketDataProvider, Depends(get_market_provider)],
    analytics: Annotated[AnalyticsProvider, Depends(get_analytics_provider)],
) -> TokenResolver:
    return TokenResolver(market, analytics)


def get_report_builder(
    analytics: Annotated[AnalyticsProvider, Depends(get_analytics_provider)],
    market: Annotated[MarketDataProvider, Depends(get_market_provider)],
) -> ReportBuilder:
    return ReportBuilder(analytics, market)


def get_scanner(
    builder: Annotated[ReportBuilder, Depends(get_report_builder)],
    gate: Annotated[RateGate, Depends(get_scan_gate)],
) -> WatchlistScanner:
    return WatchlistScanner(builder, gate)


def get_user_id(
    request: Request,
    x_user_id: Annotated[str | None, Header()] = None,
) -> str:
    if x_user_id:
        return x_user_id
    return request.client.host if request.client else "anonymous"
