# services/rate_limiter.py
from __future__ import annotations

import math
import time
from contextlib import contextmanager
from typing import Callable, Hashable, Iterator, NamedTuple

MINUTE = 60.0
HOUR = 3600.0


class QueryInFlightError(Exception):
    """The user already has a lookup running."""


class RateLimitDecision(NamedTuple):
    allowed: bool
    retry_after_secs: int | None = None


class QueryRateLimiter:
    """
    Per-user sliding-window limits plus a one-query-at-a-time guard.

    In memory only; counts reset on restart. `check` does not record,
    call `record` once the query is accepted.
    """

    def __init__(
        self,
        per_minute: int = 10,
        per_hour: int = 30,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._per_minute = per_minute
        self._per_hour = per_hour
        self._clock = clock
        self._log: dict[Hashable, list[float]] = {}
        self._in_flight: set[Hashable] = set()

    def _window(self, user: Hashable, seconds: float, now: float) -> list[float]:
        return [t for t in self._log.get(user, []) if t > now - seconds]

    def check(self, user: Hashable) -> RateLimitDecision:
        now = self._clock()
        for limit, seconds in ((self._per_minute, MINUTE), (self._per_hour, HOUR)):
            recent = self._window(user, seconds, now)
            if len(recent) >= limit:
                retry = math.ceil(recent[0] + seconds - now)
                return RateLimitDecision(allowed=False, retry_after_secs=max(retry, 1))
        return RateLimitDecision(allowed=True)

    def record(self, user: Hashable) -> None:
        self._log.setdefault(user, []).append(self._clock())

    def remaining_per_minute(self, user: Hashable) -> int:
        return max(0, self._per_minute - len(self._window(user, MINUTE, self._clock())))

    def is_in_flight(self, user: Hashable) -> bool:
        return user in self._in_flight

    @contextmanager
    def in_flight(self, user: Hashable) -> Iterator[None]:
        if user in self._in_flight:
            raise QueryInFlightError(f"A query is already running for {user}")
        self._in_flight.add(user)
        try:
            yield
        finally:
            self._in_flight.discard(user)

    def prune(self) -> None:
        """Drop users with nothing in the last hour."""
        now = self._clock()
        for user in list(self._log):
            recent = self._window(user, HOUR, now)
            if recent:
                self._log[user] = recent
            else:
                del self._log[user]
