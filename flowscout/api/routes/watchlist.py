# api/routes/watchlist.py
from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from flowscout.api.deps import get_scanner
from flowscout.core.config import get_settings
from flowscout.models.api import ScanQuery, ScanResponse
from flowscout.services.scanner import WatchlistScanner
from flowscout.services.watchlist import get_watchlist_tokens

router = APIRouter(prefix="/v1", tags=["watchlist"])


@router.post(
    "/watchlist/scan",
    response_model=ScanResponse,
    summary="Scan the watchlist and rank tokens by interest score",
)
async def scan_watchlist(
    scanner: Annotated[WatchlistScanner, Depends(get_scanner)],
    min_score: Annotated[int | None, Query(ge=0, le=500, description="Drop results below this score")] = None,
) -> ScanResponse:
    """
    Tokens are scanned one at a time with SCAN_DELAY_SECONDS between them,
    so a full pass over the watchlist takes about a minute.
    """
    query = ScanQuery(min_score=min_score if min_score is not None else get_settings().SCAN_MIN_SCORE)
    tokens = get_watchlist_tokens()

    results = await scanner.scan(tokens, min_score=query.min_score)

    return ScanResponse(scanned=len(tokens), min_score=query.min_score, results=results)
