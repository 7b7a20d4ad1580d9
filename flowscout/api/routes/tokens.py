# api/routes/tokens.py
from __future__ import annotations

from typing import Annotated, Awaitable, Callable

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status
from loguru import logger

from flowscout.api.deps import get_rate_limiter, get_report_builder, get_resolver, get_user_id
from flowscout.core.chains import normalize_chain
from flowscout.core.parser import (
    extract_keyword_query,
    extract_token_query,
    looks_like_token_query,
    parse_user_input,
)
from flowscout.models.api import QueryDetection
from flowscout.models.token import UNKNOWN_TOKEN_NAME, UNKNOWN_TOKEN_SYMBOL, ResolvedToken, TokenReport
from flowscout.services.rate_limiter import QueryInFlightError, QueryRateLimiter
from flowscout.services.report_builder import ReportBuilder
from flowscout.services.resolver import TokenNotFoundError, TokenResolver

router = APIRouter(prefix="/v1", tags=["tokens"])


async def _rate_limited(
    limiter: QueryRateLimiter,
    user_id: str,
    run: Callable[[], Awaitable[TokenReport]],
) -> TokenReport:
    decision = limiter.check(user_id)
    if not decision.allowed:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=f"Too many lookups, try again in {decision.retry_after_secs}s",
            headers={"Retry-After": str(decision.retry_after_secs)},
        )
    try:
        with limiter.in_flight(user_id):
            limiter.record(user_id)
            return await run()
    except QueryInFlightError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc


@router.get(
    "/token/lookup",
    response_model=TokenReport,
    summary="Resolve a ticker, address or mention and build its report",
)
async def lookup_token(
    q: Annotated[str, Query(min_length=1, description="e.g. `$PEPE`, `PEPE sol`, `0x6982...`", examples=["$PEPE"])],
    user_id: Annotated[str, Depends(get_user_id)],
    limiter: Annotated[QueryRateLimiter, Depends(get_rate_limiter)],
    resolver: Annotated[TokenResolver, Depends(get_resolver)],
    builder: Annotated[ReportBuilder, Depends(get_report_builder)],
) -> TokenReport:
    parsed = parse_user_input(extract_token_query(q) or q)
    if parsed is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Empty query")

    async def run() -> TokenReport:
        try:
            token = await resolver.resolve(parsed)
        except TokenNotFoundError as exc:
            logger.info(f"[API] lookup {q!r}: {exc}")
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
        return await builder.build(token)

    return await _rate_limited(limiter, user_id, run)


@router.get(
    "/token/{chain}/{address}/report",
    response_model=TokenReport,
    summary="Build a report for a known chain + contract address",
)
async def token_report(
    chain: Annotated[str, Path(description="Chain name or alias, e.g. `ethereum`, `sol`")],
    address: Annotated[str, Path(description="Token contract address")],
    user_id: Annotated[str, Depends(get_user_id)],
    limiter: Annotated[QueryRateLimiter, Depends(get_rate_limiter)],
    builder: Annotated[ReportBuilder, Depends(get_report_builder)],
) -> TokenReport:
    canonical = normalize_chain(chain)
    if canonical is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Unsupported chain: {chain}")

    token = ResolvedToken(
        name=UNKNOWN_TOKEN_NAME,
        symbol=UNKNOWN_TOKEN_SYMBOL,
        chain=canonical,
        address=address,
    )
    return await _rate_limited(limiter, user_id, lambda: builder.build(token))


@router.get(
    "/query/detect",
    response_model=QueryDetection,
    summary="Show how a chat message would be read as a token query",
)
async def detect_query(
    text: Annotated[str, Query(description="Raw chat message")],
) -> QueryDetection:
    extracted = extract_token_query(text)
    keyword = None
    if extracted is None:
        keyword_query = extract_keyword_query(text)
        if keyword_query is not None:
            extracted, keyword = keyword_query.query, keyword_query.keyword

    return QueryDetection(
        text=text,
        looks_like_query=looks_like_token_query(text),
        extracted=extracted,
        parsed=parse_user_input(extracted) if extracted else None,
        keyword=keyword,
    )
