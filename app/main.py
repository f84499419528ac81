"""
FastAPI application entrypoint for the FCM admin token console.
"""

from __future__ import annotations

import logging
from http import HTTPStatus

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.api.routes import router as api_router
from app.core.config import get_settings
from app.core.logging import configure_logging

logger = logging.getLogger(__name__)


async def _unhandled_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=HTTPStatus.INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error"},
    )


def create_app() -> FastAPI:
    """
    Factory for the FastAPI application.

    Settings are loaded here so missing configuration fails at startup with a
    ``ConfigurationError`` instead of surfacing later as a provider error.
    """
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="FCM Admin Token Console",
        version="0.1.0",
        description=(
            "Upload a Firebase service account key, mint Admin SDK access tokens "
            "and manage FCM topic subscriptions."
        ),
    )
    app.add_exception_handler(Exception, _unhandled_error)
    app.include_router(api_router, prefix="/api")
    logger.info("Started in %s environment", settings.environment)
    return app


app = create_app()

__all__ = ["app", "create_app"]
