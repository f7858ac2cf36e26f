"""FastAPI application entry point."""

import logging
import os
from contextlib import asynccontextmanager

import structlog
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from learnsphere.api.routes import register_error_handlers, router
from learnsphere.backend.client import BackendClient
from learnsphere.config import Settings, get_settings
from learnsphere.content.provider import build_content_provider
from learnsphere.session.controller import SessionController
from learnsphere.session.registry import SessionRegistry

# Configure structlog based on environment
is_production = os.getenv("ENV", "development").lower() == "production"

if is_production:
    # Production: JSON format for machine parsing
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.INFO),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
else:
    # Development: console format for human readability
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.DEBUG),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

logger = structlog.get_logger()


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the application with its backend client and session registry."""
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        client = BackendClient(settings)
        content = build_content_provider(settings, client)
        app.state.registry = SessionRegistry(
            lambda: SessionController(client, content, normalize_answers=settings.answer_normalization),
            idle_timeout_seconds=settings.session_idle_timeout_seconds,
            max_sessions=settings.max_sessions,
        )
        if not settings.backend_configured:
            logger.warning("backend_url_not_configured")
        logger.info("app_started", content_source=settings.content_source)
        try:
            yield
        finally:
            await client.aclose()

    app = FastAPI(title="LearnSphere", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(router)
    register_error_handlers(app)
    return app


app = create_app()


def main() -> None:
    """Run the application."""
    settings = get_settings()
    uvicorn.run(
        "learnsphere.main:app",
        host=settings.host,
        port=settings.port,
        reload=False,
        log_level="info",
    )


if __name__ == "__main__":
    main()
