import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from minimal_metrics import __version__
from minimal_metrics.api.deps import get_context, get_rules, get_settings
from minimal_metrics.api.routes import collect, export, stats
from minimal_metrics.api.schemas import HealthResponse
from minimal_metrics.app_shell.context import AppContext
from minimal_metrics.rules.models import Rules

logger = logging.getLogger(__name__)


def create_app(
    context: AppContext | None = None,
    start_schedulers: bool = True,
) -> FastAPI:
    """
    Build the HTTP application.

    Without a context, settings and rules are resolved at startup and a new
    context is created (fail-fast on invalid rules). Tests pass their own.
    """
    rules: Rules = context.rules if context is not None else get_rules(get_settings())

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        ctx = context
        if ctx is None:
            settings = get_settings()
            ctx = AppContext.create(settings.db_path, rules)
            logger.info("Database ready at %s", settings.db_path)
        app.state.context = ctx
        if start_schedulers:
            ctx.start()

        yield

        ctx.close()

    app = FastAPI(
        title="Minimal Metrics",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.include_router(collect.router, prefix="/api", tags=["Collect"])
    app.include_router(export.router, prefix="/api", tags=["Export"])
    app.include_router(stats.router, prefix="/api/stats", tags=["Stats"])

    app.add_middleware(
        CORSMiddleware,
        allow_origins=rules.cors.allowed_origins,
        allow_credentials=rules.cors.allow_credentials,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    @app.get("/health", response_model=HealthResponse)
    def health_check(request: Request) -> dict[str, Any]:
        """Health check endpoint."""
        return get_context(request).health()

    return app
