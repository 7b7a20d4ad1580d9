# api/routes/keys.py
from __future__ import annotations

from fastapi import APIRouter

from flowscout.clients.pool import validate_key
from flowscout.models.api import KeyValidationRequest, KeyValidationResponse

router = APIRouter(prefix="/v1", tags=["keys"])


@router.post(
    "/keys/validate",
    response_model=KeyValidationResponse,
    summary="Check that a Nansen API key works before using it",
)
async def validate_nansen_key(body: KeyValidationRequest) -> KeyValidationResponse:
    return KeyValidationResponse(valid=await validate_key(body.api_key))
