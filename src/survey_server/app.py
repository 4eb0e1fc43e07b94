"""Application factory and CLI entry point.

``create_app()`` builds the FastAPI application with:
  - Lifespan handler that wires the engine and its clients once
  - A global catch-all exception handler
  - The Telegram webhook route
  - A ``/health`` endpoint for readiness checks

The ``cli()`` function is the ``survey-server`` console-script entry point.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI

from survey_server.config import ServerSettings, load_settings
from survey_server.errors import generic_error_handler
from survey_server.routes import register_routes
from survey_server.runtime import Runtime, build_runtime

logger = logging.getLogger(__name__)


# ------------------------------------------------------------------
# Lifespan: runs once at startup and shutdown
# ------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Initialise shared resources at startup, tear down on shutdown.

    Startup:
      1. Build the runtime (engine + clients) unless one was injected
      2. Register the webhook URL with Telegram if configured

    Shutdown:
      1. Close the HTTP clients the lifespan created
    """
    settings: ServerSettings = app.state.settings
    owned = app.state.runtime is None

    if owned:
        app.state.runtime = build_runtime(settings)
        logger.info("Survey engine ready (forms: %s)", ", ".join(settings.forms))

    runtime: Runtime = app.state.runtime
    if owned and settings.webhook_url:
        await runtime.channel.set_webhook(
            settings.webhook_url, secret_token=settings.webhook_secret,
        )
        logger.info("Telegram webhook registered")

    yield

    # --- Shutdown ---
    if owned:
        await runtime.aclose()
        app.state.runtime = None
        logger.info("HTTP clients closed")


# ------------------------------------------------------------------
# Factory
# ------------------------------------------------------------------

def create_app(
    settings: ServerSettings | None = None,
    runtime: Runtime | None = None,
) -> FastAPI:
    """Build and return the configured FastAPI application.

    ``runtime`` lets callers (tests, embedding apps) supply a ready engine;
    the lifespan then neither builds nor closes it.
    """
    if settings is None:
        settings = load_settings()

    # --- Configure logging ---
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    app = FastAPI(
        title="Survey Bot",
        description="Telegram webhook for the accessible voice/text survey bot",
        version="0.1.0",
        lifespan=lifespan,
    )

    # Store settings so the lifespan handler can read them
    app.state.settings = settings
    app.state.runtime = runtime

    # --- Exception handlers ---
    app.add_exception_handler(Exception, generic_error_handler)

    # --- Health check ---
    @app.get("/health")
    async def health() -> dict:
        """Readiness check: reports how many sessions are in progress."""
        current: Runtime | None = app.state.runtime
        if current is None:
            return {"status": "starting"}
        return {"status": "ok", "active_sessions": len(current.engine.store)}

    register_routes(app)

    return app


# ------------------------------------------------------------------
# Module-level ASGI export (for uvicorn survey_server.app:app)
# ------------------------------------------------------------------
app = create_app()


# ------------------------------------------------------------------
# CLI entry point
# ------------------------------------------------------------------

def cli() -> None:
    """Console-script entry point: ``survey-server``."""
    import uvicorn

    settings = load_settings()
    uvicorn.run(
        "survey_server.app:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        reload=False,
    )
