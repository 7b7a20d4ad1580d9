# services/scanner.py
from __future__ import annotations

import asyncio
import time
from typing import Awaitable, Callable, Protocol, Sequence

from loguru import logger

from flowscout.models.token import ResolvedToken, ScanResult, TokenReport
from flowscout.services.scorer import InterestScore, score_report

DEFAULT_MIN_SCORE = 30


class ReportSource(Protocol):
    async def build(self, token: ResolvedToken) -> TokenReport:
        ...


class RateGate:
    """
    Spaces out guarded sections so each one starts at least `min_interval`
    seconds after the previous one finished.

    Use as `async with gate:`. The first section goes through immediately;
    sections are serialized by a lock.
    """

    def __init__(
        self,
        min_interval: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._min_interval = min_interval
        self._clock = clock
        self._sleep = sleep
        self._lock = asyncio.Lock()
        self._next_at: float | None = None

    async def __aenter__(self) -> "RateGate":
        await self._lock.acquire()
        try:
            if self._next_at is not None:
                delay = self._next_at - self._clock()
                if delay > 0:
                    await self._sleep(delay)
        except BaseException:
            self._lock.release()
            raise
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self._next_at = self._clock() + self._min_interval
        self._lock.release()


class WatchlistScanner:
    """
    Builds and scores reports for a watchlist, one token at a time.

    Each report is built inside the rate gate, so the delay runs from the end
    of one build to the start of the next; a report costs five Nansen calls
    and Nansen rate-limits per key.
    """

    def __init__(
        self,
        builder: ReportSource,
        gate: RateGate,
        scorer: Callable[[TokenReport], InterestScore] = score_report,
    ) -> None:
        self._builder = builder
        self._gate = gate
        self._scorer = scorer

    async def scan(
        self, tokens: Sequence[ResolvedToken], min_score: int = DEFAULT_MIN_SCORE
    ) -> list[ScanResult]:
        results: list[ScanResult] = []
        total = len(tokens)

        for i, token in enumerate(tokens, start=1):
            try:
                async with self._gate:
                    logger.info(f"[Scanner] ({i}/{total}) Scanning {token.symbol}...")
                    report = await self._builder.build(token)
                score, signals = self._scorer(report)
            except Exception:
                logger.exception(f"[Scanner] Error scanning {token.symbol}, skipping")
                continue

            if score >= min_score:
                results.append(
                    ScanResult(token=token, report=report, interest_score=score, signals=signals)
                )
                logger.info(f"[Scanner] {token.symbol}: score={score} signals=[{', '.join(signals)}]")
            else:
                logger.info(f"[Scanner] {token.symbol}: score={score} (below threshold)")

        # sorted() is stable, equal scores keep watchlist order
        return sorted(results, key=lambda r: r.interest_score, reverse=True)


async def scan_watchlist(
    tokens: Sequence[ResolvedToken],
    builder: ReportSource,
    min_score: int = DEFAULT_MIN_SCORE,
    delay_seconds: float = 2.0,
) -> list[ScanResult]:
    scanner = WatchlistScanner(builder, RateGate(delay_seconds))
    return await scanner.scan(tokens, min_score=min_score)
