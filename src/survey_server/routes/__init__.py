"""Route registration."""

from fastapi import FastAPI

from survey_server.routes.webhook import router as webhook_router


def register_routes(app: FastAPI) -> None:
    """Include all sub-routers."""
    app.include_router(webhook_router)
