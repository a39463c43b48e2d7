from __future__ import annotations

from fastapi import APIRouter, Request, Response


router = APIRouter(tags=["metrics"])


@router.get("/metrics")
async def metrics(request: Request) -> Response:
    content, content_type = request.app.state.metrics.render()
    return Response(content=content, media_type=content_type)
