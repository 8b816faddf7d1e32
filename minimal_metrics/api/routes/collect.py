"""
Beacon ingestion endpoint.

POST /api/collect accepts one JSON event from the tracking snippet.

- 204: accepted (buffered; persisted on the next flush)
- 400: malformed JSON, non-object body, or failed field validation
- 413: body larger than 10 KB, detected while streaming
"""

from __future__ import annotations

import json
import logging

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse

from minimal_metrics.adapters.geo import extract_ip_info
from minimal_metrics.api.deps import get_context
from minimal_metrics.api.schemas import ErrorResponse
from minimal_metrics.app_shell.context import AppContext
from minimal_metrics.components.ingest import RequestContext

logger = logging.getLogger(__name__)

router = APIRouter()

MAX_BODY_BYTES = 10 * 1024
NO_CACHE = "no-cache, no-store, must-revalidate"


def _error(status_code: int, error: str, details: list[str] | None = None) -> JSONResponse:
    content: dict[str, object] = {"error": error}
    if details is not None:
        content["details"] = details
    return JSONResponse(content, status_code=status_code)


async def _read_limited(request: Request, limit: int) -> bytes | None:
    """Read the body, giving up as soon as it exceeds limit bytes."""
    declared = request.headers.get("content-length")
    if declared and declared.isdigit() and int(declared) > limit:
        return None

    body = bytearray()
    async for chunk in request.stream():
        body.extend(chunk)
        if len(body) > limit:
            return None
    return bytes(body)


@router.post(
    "/collect",
    status_code=204,
    response_class=Response,
    responses={
        400: {"model": ErrorResponse},
        413: {"model": ErrorResponse},
    },
)
async def collect(request: Request, ctx: AppContext = Depends(get_context)) -> Response:
    body = await _read_limited(request, MAX_BODY_BYTES)
    if body is None:
        return _error(413, "Request too large")

    try:
        data = json.loads(body)
    except (ValueError, RecursionError):
        return _error(400, "Invalid request")

    if not isinstance(data, dict):
        return _error(400, "Invalid request")

    peer = request.client.host if request.client else None
    info = extract_ip_info(request.headers, peer)
    output = ctx.collect_service.ingest(
        data, RequestContext(network_address=info.ip or "", country=info.country)
    )

    if not output.accepted:
        logger.debug("Rejected beacon: %s", output.errors)
        return _error(400, "Invalid data", output.errors)

    return Response(status_code=204, headers={"Cache-Control": NO_CACHE})
