"""Main FastAPI application for OCR Image Search."""

import time
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from .api import (
    search_router,
    scan_router,
    images_router,
    health_router,
    metrics_router,
)
from .config import Settings, get_settings
from .context import AppContext
from .logging_config import configure_logging
from .models.response import ErrorResponse

logger = structlog.get_logger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    context: Optional[AppContext] = None,
) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        settings: Application settings (cached environment settings if None)
        context: Pre-built application context; built at startup if None

    Returns:
        Configured FastAPI app
    """
    settings = settings or (context.settings if context else get_settings())
    configure_logging(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Application lifespan manager."""
        logger.info("Starting OCR Image Search service", version=settings.app_version)

        if getattr(app.state, "context", None) is None:
            app.state.context = AppContext.from_settings(settings)
        logger.info("Index store opened", **app.state.context.store.get_stats())

        yield

        logger.info("Shutting down OCR Image Search service")
        app.state.context.close()

    app = FastAPI(
        title=settings.app_name,
        description="Catalog images, recognize their text and search it",
        version=settings.app_version,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan
    )
    app.state.context = context

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=1000)

    @app.middleware("http")
    async def log_requests(request: Request, call_next) -> Response:
        """Log all HTTP requests."""
        start_time = time.time()

        logger.info(
            "Request started",
            method=request.method,
            url=str(request.url),
            client_ip=request.client.host if request.client else None
        )

        response = await call_next(request)

        process_time = time.time() - start_time
        logger.info(
            "Request completed",
            method=request.method,
            url=str(request.url),
            status_code=response.status_code,
            process_time_ms=round(process_time * 1000, 2)
        )

        return response

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Handle global exceptions."""
        logger.error(
            "Unhandled exception",
            method=request.method,
            url=str(request.url),
            error=str(exc),
            exc_info=True
        )

        return JSONResponse(
            status_code=500,
            content=ErrorResponse(
                error="Internal Server Error",
                message="An unexpected error occurred",
                details={"exception": str(exc)} if settings.debug else None
            ).model_dump(mode="json")
        )

    app.include_router(search_router)
    app.include_router(scan_router)
    app.include_router(images_router)
    app.include_router(health_router)
    app.include_router(metrics_router)

    @app.get("/api", summary="API information", description="Get detailed API information")
    async def api_info() -> dict:
        """Get detailed API information."""
        return {
            "name": settings.app_name,
            "version": settings.app_version,
            "endpoints": {
                "scan": "POST /api/scan",
                "search": "POST /api/search",
                "search_details": "GET /api/v1/search?q=...",
                "image": "GET /api/image?id=...",
                "health": "/api/v1/health",
                "metrics": "/api/v1/metrics"
            },
            "search": {
                "escalation_threshold": settings.escalation_threshold,
                "max_results": settings.max_results,
                "fuzzy_corpus_limit": settings.fuzzy_corpus_limit
            }
        }

    # Static frontend; every other unknown path is a 404
    try:
        app.mount("/", StaticFiles(directory=settings.static_dir, html=True), name="static")
    except RuntimeError:
        logger.warning("Static directory not found, frontend disabled", static_dir=settings.static_dir)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "ocr_image_search.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        workers=1 if settings.debug else settings.workers,
        log_level=settings.log_level.lower()
    )
