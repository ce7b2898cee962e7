"""
FastAPI application entry point.

Initializes the FastAPI app, registers routers, adds middleware, and
configures lifespan.

Dependencies: fastapi, uvicorn, diagrammaton.api, diagrammaton.observability, diagrammaton.configs
System role: Application initialization and configuration
"""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from diagrammaton import __version__
from diagrammaton.api.cors import ALLOWED_HEADERS, ALLOWED_METHODS, PreflightMiddleware
from diagrammaton.api.deps import get_service_cache
from diagrammaton.api.error_handling import register_exception_handlers
from diagrammaton.api.routers import (
    generate_router,
    health_router,
    license_router,
    models_router,
)
from diagrammaton.boundary.db import dispose_async_engine
from diagrammaton.configs import get_settings
from diagrammaton.observability.logger import configure_logging
from diagrammaton.observability.middleware import (
    CorrelationMiddleware,
    RequestLoggingMiddleware,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    Configures logging and pre-warms the shared service cache on startup;
    clears it and disposes the database engine on shutdown.
    """
    # Startup
    configure_logging(get_settings().log_level)
    logger.info("Application startup: logging configured")

    cache = get_service_cache()
    # Trigger property access to load instances
    _ = cache.rate_limiter
    _ = cache.gateway
    _ = cache.validator
    _ = cache.model_cache
    logger.info("Service cache pre-warmed")

    yield

    # Shutdown
    cache.clear()
    await dispose_async_engine()
    logger.info("Application shutdown: service cache cleared")


def create_app() -> FastAPI:
    """
    Create and configure FastAPI application.

    Returns:
        FastAPI: Configured application instance
    """
    settings = get_settings()
    show_docs = settings.debug or not settings.is_production
    app = FastAPI(
        title="Diagrammaton API",
        description="Natural language to FigJam diagram generation",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs" if show_docs else None,
        redoc_url=None,
        openapi_url="/openapi.json" if show_docs else None,
    )

    register_exception_handlers(app)

    # Add observability middleware (added first = last to execute)
    app.add_middleware(CorrelationMiddleware)
    app.add_middleware(RequestLoggingMiddleware)

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=list(ALLOWED_METHODS),
        allow_headers=list(ALLOWED_HEADERS),
    )
    # Outermost: preflights are answered before CORSMiddleware sees them
    app.add_middleware(PreflightMiddleware)

    # Register API routes
    app.include_router(generate_router, prefix="/api")
    app.include_router(models_router, prefix="/api")
    app.include_router(license_router, prefix="/api")
    app.include_router(health_router)

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(
        "diagrammaton.main:app",
        host="0.0.0.0",
        port=8000,
    )
