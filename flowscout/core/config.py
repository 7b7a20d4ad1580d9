# core/config.py
from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import AnyHttpUrl
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # general
    ENV: Literal["local", "dev", "staging", "prod"] = "local"
    APP_NAME: str = "flowscout"

    # Nansen analytics API (token info, flow intelligence, who bought/sold, screener)
    NANSEN_API_KEY: str | None = None
    NANSEN_BASE_URL: AnyHttpUrl = AnyHttpUrl("https://api.nansen.ai/api/v1")
    NANSEN_TIMEOUT_SECONDS: float = 12.0
    NANSEN_MAX_RETRIES: int = 2

    # CoinGecko market data API (search, coin detail, prices)
    COINGECKO_BASE_URL: AnyHttpUrl = AnyHttpUrl("https://api.coingecko.com/api/v3")
    COINGECKO_API_KEY: str | None = None
    COINGECKO_TIMEOUT_SECONDS: float = 12.0
    COINGECKO_MAX_RETRIES: int = 1

    # base delay for exponential backoff on 429 / 5xx
    RETRY_BACKOFF_SECONDS: float = 1.0

    # watchlist scanner
    SCAN_DELAY_SECONDS: float = 2.0
    SCAN_MIN_SCORE: int = 30

    # per-user query limits on the lookup endpoint
    QUERY_LIMIT_PER_MINUTE: int = 10
    QUERY_LIMIT_PER_HOUR: int = 30

    # logging
    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",   # ignore unrelated env vars like TELEGRAM_BOT_TOKEN
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()
