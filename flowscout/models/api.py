# models/api.py
from __future__ import annotations

from pydantic import BaseModel, Field

from flowscout.models.token import ParsedInput, ScanResult


class QueryDetection(BaseModel):
    """
    Response body for GET /v1/query/detect

    What a passive listener would do with a chat message.
    """

    text: str
    looks_like_query: bool
    extracted: str | None = None
    parsed: ParsedInput | None = None
    keyword: str | None = None


class ScanQuery(BaseModel):
    """Parsed & validated query params for the watchlist scan endpoint."""

    min_score: int = Field(30, ge=0, le=500)


class ScanResponse(BaseModel):
    """
    Response body for POST /v1/watchlist/scan
    """

    scanned: int
    min_score: int
    results: list[ScanResult]


class KeyValidationRequest(BaseModel):
    api_key: str = Field(..., min_length=1)


class KeyValidationResponse(BaseModel):
    valid: bool
