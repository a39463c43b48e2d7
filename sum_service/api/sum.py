from __future__ import annotations

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import PlainTextResponse
from pydantic import ValidationError

from sum_service.models.schemas import SumRequest, SumResponse

router = APIRouter(tags=["sum"])

INVALID_PAYLOAD = "invalid payload"


@router.post("/sum", response_model=SumResponse)
async def sum_numbers(request: Request) -> SumResponse | PlainTextResponse:
    body = await request.body()
    try:
        payload = SumRequest.model_validate_json(body)
    except ValidationError as exc:
        structlog.get_logger("sum").info("invalid_payload", error_count=exc.error_count())
        return PlainTextResponse(INVALID_PAYLOAD, status_code=400)

    return SumResponse(result=payload.a + payload.b)
