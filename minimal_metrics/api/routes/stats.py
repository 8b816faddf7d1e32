"""
Dashboard stats endpoints under /api/stats.

Every endpoint is read-only. Unknown endpoints return 404; a storage
failure returns a generic 500 with no partial data.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from fastapi import APIRouter, Depends, Query, Response
from fastapi.responses import JSONResponse

from minimal_metrics.api.deps import get_context
from minimal_metrics.api.schemas import (
    CampaignsResponse,
    CountriesResponse,
    DailyResponse,
    ErrorResponse,
    HourlyResponse,
    OverviewResponse,
    PagesResponse,
    RealtimeResponse,
    ReferrersResponse,
)
from minimal_metrics.app_shell.context import AppContext
from minimal_metrics.components.stats import InvalidDateError

logger = logging.getLogger(__name__)

router = APIRouter(responses={500: {"model": ErrorResponse}})

CACHE_CONTROL = "public, max-age=60"


def _run(response: Response, query: Callable[[], dict[str, Any]]) -> Any:
    try:
        payload = query()
    except InvalidDateError as e:
        return JSONResponse({"error": str(e)}, status_code=400)
    except Exception:
        logger.exception("Stats query failed")
        return JSONResponse({"error": "Internal server error"}, status_code=500)
    response.headers["Cache-Control"] = CACHE_CONTROL
    return payload


@router.get("/realtime", response_model=RealtimeResponse)
def realtime(response: Response, ctx: AppContext = Depends(get_context)) -> Any:
    return _run(response, ctx.stats_service.realtime)


@router.get("/overview", response_model=OverviewResponse, response_model_exclude_none=True)
def overview(
    response: Response,
    period: str = "7d",
    compare: bool = False,
    ctx: AppContext = Depends(get_context),
) -> Any:
    return _run(response, lambda: ctx.stats_service.overview(period, compare))


@router.get("/pages", response_model=PagesResponse)
def pages(
    response: Response,
    period: str = "7d",
    limit: str | None = None,
    ctx: AppContext = Depends(get_context),
) -> Any:
    return _run(response, lambda: ctx.stats_service.pages(period, limit))


@router.get("/referrers", response_model=ReferrersResponse)
def referrers(
    response: Response,
    period: str = "7d",
    limit: str | None = None,
    ctx: AppContext = Depends(get_context),
) -> Any:
    return _run(response, lambda: ctx.stats_service.referrers(period, limit))


@router.get("/countries", response_model=CountriesResponse)
def countries(
    response: Response,
    period: str = "7d",
    limit: str | None = None,
    ctx: AppContext = Depends(get_context),
) -> Any:
    return _run(response, lambda: ctx.stats_service.countries(period, limit))


@router.get("/campaigns", response_model=CampaignsResponse)
def campaigns(
    response: Response,
    period: str = "7d",
    limit: str | None = None,
    ctx: AppContext = Depends(get_context),
) -> Any:
    return _run(response, lambda: ctx.stats_service.campaigns(period, limit))


@router.get("/hourly", response_model=HourlyResponse, responses={400: {"model": ErrorResponse}})
def hourly(
    response: Response,
    date: str | None = Query(None, description="UTC date, YYYY-MM-DD"),
    ctx: AppContext = Depends(get_context),
) -> Any:
    return _run(response, lambda: ctx.stats_service.hourly(date))


@router.get("/daily", response_model=DailyResponse)
def daily(
    response: Response,
    days: str | None = None,
    ctx: AppContext = Depends(get_context),
) -> Any:
    return _run(response, lambda: ctx.stats_service.daily(days))


@router.get("/{endpoint}", include_in_schema=False)
def unknown_endpoint(endpoint: str) -> JSONResponse:
    return JSONResponse({"error": "Endpoint not found"}, status_code=404)
