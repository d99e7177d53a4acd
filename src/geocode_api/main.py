"""FastAPI application factory.

Creates the FastAPI app with lifespan management, exception handlers,
and OpenAPI metadata.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from loguru import logger

from geocode_api.core.config import get_settings
from geocode_api.core.database import dispose_engine, get_session_factory, init_engine
from geocode_api.core.logging import setup_logging
from geocode_api.lib.geocoder import create_resolver


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Manage application lifecycle: engine and resolver on startup, dispose on shutdown."""
    settings = get_settings()
    setup_logging(settings.log_level, log_dir=settings.log_dir, json_logs=settings.log_json)
    init_engine(settings.database_url, echo=False, schema=settings.database_schema)

    # One resolver (and memory cache) per process, never reset implicitly
    app.state.resolver = create_resolver(settings, get_session_factory())
    if not settings.google_geocode_api_key:
        logger.warning("GOOGLE_GEOCODE_API_KEY not configured, all lookups will use fallback coordinates")

    yield

    await app.state.resolver.aclose()
    app.state.resolver = None
    await dispose_engine()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance.
    """
    settings = get_settings()

    app = FastAPI(
        title="Geocode API",
        description="Cached, rate-limited address geocoding for the studio directory",
        version="0.1.0",
        lifespan=lifespan,
    )

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content={"detail": str(exc)},
        )

    from geocode_api.api.router import create_router

    app.include_router(create_router(settings))

    return app
