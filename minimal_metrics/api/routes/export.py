"""
Data export endpoint.

GET /api/export?type=&format=&period= returns an attachment named
`minimal-metrics-{type}-{period}.{json|csv}`.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Response
from fastapi.responses import JSONResponse

from minimal_metrics.api.deps import get_context
from minimal_metrics.api.schemas import ErrorResponse
from minimal_metrics.app_shell.context import AppContext
from minimal_metrics.components.export import ExportError

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "/export",
    response_class=Response,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
def export(
    type: str = "overview",
    format: str = "json",
    period: str = "30d",
    ctx: AppContext = Depends(get_context),
) -> Response:
    try:
        result = ctx.export_service.export(type, format, period)
    except ExportError as e:
        return JSONResponse({"error": str(e)}, status_code=400)
    except Exception:
        logger.exception("Export failed")
        return JSONResponse({"error": "Export failed"}, status_code=500)

    return Response(
        content=result.content,
        media_type=result.media_type,
        headers={"Content-Disposition": f'attachment; filename="{result.filename}"'},
    )
