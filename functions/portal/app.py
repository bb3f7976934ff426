"""
FastAPI application entry point for the portal service.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from portal.config import Settings, get_settings
from portal.routes import DATABASE_ERROR, router
from shared.errors import BackendUnavailable

logger = logging.getLogger(__name__)

CORS_ALLOW_HEADERS = [
    "authorization",
    "x-client-info",
    "apikey",
    "content-type",
]


async def handle_backend_unavailable(
    request: Request, exc: BackendUnavailable
) -> JSONResponse:
    logger.error("Backend unavailable during %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": DATABASE_ERROR})


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    logging.basicConfig(level=settings.log_level)

    app = FastAPI(title="Birthday Portal", version="0.1.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=CORS_ALLOW_HEADERS,
    )
    app.add_exception_handler(BackendUnavailable, handle_backend_unavailable)
    app.include_router(router, prefix=settings.api_prefix)
    return app


app = create_app()
