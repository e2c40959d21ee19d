"""FastAPI application.

Proxies the concordance, morphology and tutor services for the browser
reader, and serves the Greek text, translation chunks and study log.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from iliadtutor import __version__
from iliadtutor.api.middleware import register_error_handlers, setup_secure_logging
from iliadtutor.api.routes import router
from iliadtutor.api.state import Services
from iliadtutor.config import Settings

logger = logging.getLogger(__name__)


def create_app(
    settings: Settings | None = None, services: Services | None = None
) -> FastAPI:
    """Create the FastAPI application.

    Args:
        settings: Application settings (default: loaded from config file)
        services: Prebuilt services (tests); built from settings otherwise

    Returns:
        Configured FastAPI application
    """
    if services is None:
        services = Services.from_settings(settings or Settings.load())

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager."""
        setup_secure_logging()
        logger.info(f"Iliad Tutor service {__version__} starting")
        yield
        services.close()
        logger.info("Iliad Tutor service stopped")

    app = FastAPI(
        title="Iliad Tutor",
        description="Homeric Greek reader: text windows, lookups, tutor, study log",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.services = services

    # The reader page is served from a different origin
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_error_handlers(app)
    app.include_router(router, prefix="/api")

    @app.get("/")
    async def root():
        """Root endpoint with API info."""
        return {
            "name": "Iliad Tutor",
            "version": __version__,
            "docs": "/docs",
            "api": "/api",
        }

    return app


def run_server(
    settings: Settings | None = None,
    host: str | None = None,
    port: int | None = None,
    log_level: str = "info",
) -> None:
    """Run the service with uvicorn."""
    import uvicorn

    settings = settings or Settings.load()
    app = create_app(settings)
    uvicorn.run(
        app,
        host=host or settings.host,
        port=port or settings.port,
        log_level=log_level,
    )
