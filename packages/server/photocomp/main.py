"""
PhotoComp API Server

Entry point for the FastAPI application.
"""

from __future__ import annotations

import argparse
from typing import Optional

import structlog
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from photocomp.api.v1 import router as api_router
from photocomp.core.config import Settings, get_settings
from photocomp.core.container import ServiceContainer, build_container
from photocomp.core.errors import register_exception_handlers
from photocomp.core.logging_config import configure_logging
from photocomp.core.middleware import RequestLoggingMiddleware, SecurityHeadersMiddleware

log = structlog.get_logger()


def create_app(
    container: Optional[ServiceContainer] = None,
    settings: Optional[Settings] = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Without a container one is built from settings at startup.
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level, settings.log_format)
    app = FastAPI(
        title="PhotoComp",
        description="Organizations, events and shared event photos.",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )
    app.state.settings = settings
    app.state.container = container

    # Middleware (the last one added runs outermost)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "PUT", "DELETE"],
        allow_headers=["Content-Type", "Authorization"],
    )

    register_exception_handlers(app, debug=settings.debug)
    app.include_router(api_router)

    @app.get("/health", tags=["System"])
    async def health_check():
        """Health check endpoint for liveness probes."""
        return {"status": "ok"}

    @app.on_event("startup")
    async def on_startup():
        if app.state.container is None:
            app.state.container = build_container(settings)
        log.info("PhotoComp starting", environment=settings.environment)

    @app.on_event("shutdown")
    async def on_shutdown():
        log.info("PhotoComp shutting down")
        if app.state.container is not None:
            await app.state.container.aclose()

    return app


def run() -> None:
    """CLI entry point for the API server."""
    settings = get_settings()
    parser = argparse.ArgumentParser(description="PhotoComp API server")
    parser.add_argument("--host", default=settings.host)
    parser.add_argument("--port", type=int, default=settings.port)
    parser.add_argument("--reload", action="store_true", help="Reload on code changes (development)")
    args = parser.parse_args()

    uvicorn.run(
        "photocomp.main:create_app",
        factory=True,
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=settings.log_level,
    )


if __name__ == "__main__":
    run()
