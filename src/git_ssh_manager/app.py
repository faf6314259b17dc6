"""ASGI application factory and FastAPI wiring for Git SSH Manager."""

from __future__ import annotations

import logging
import time

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.middleware.cors import CORSMiddleware

from .broadcaster import ClientRegistry, EventBroadcaster
from .config import settings
from .database import init_db
from .errors import ServiceError
from .oauth import OAuthBridge
from .pipeline_runner import AirflowCliRunner, PipelineRunner
from .web import events, keys, oauth, pipelines, system

logger = logging.getLogger(__name__)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log method, path, status and duration of every HTTP request."""

    async def dispatch(self, request: Request, call_next):
        start_time = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start_time) * 1000
        logger.info(
            "%s %s -> %s (%.2fms)",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
        )
        return response


def _validation_message(exc: RequestValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error.get("loc", ()) if item != "body")
        parts.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    return "; ".join(parts) or "Invalid request"


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(ServiceError)
    async def service_error_handler(request: Request, exc: ServiceError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        else:
            logger.debug("%s %s rejected: %s", request.method, request.url.path, exc.message)
        return JSONResponse(exc.to_payload(), status_code=exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse({"error": _validation_message(exc)}, status_code=400)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404 and exc.detail == "Not Found":
            return JSONResponse({"error": "Route not found"}, status_code=404)
        return JSONResponse({"error": exc.detail}, status_code=exc.status_code, headers=exc.headers)

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse({"error": "Something went wrong!"}, status_code=500)


def create_app(
    runner: PipelineRunner | None = None,
    oauth_bridge: OAuthBridge | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    :param runner: Orchestrator integration; defaults to the Airflow CLI.
    :param oauth_bridge: OAuth code exchanger; defaults to live provider calls.
    :returns: Fully configured FastAPI instance with routers mounted.
    """
    logger.debug("Initializing database")
    init_db()
    app = FastAPI(title="Git SSH Manager")
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    broadcaster = EventBroadcaster(ClientRegistry())
    app.state.broadcaster = broadcaster
    app.state.pipeline_runner = runner or AirflowCliRunner()
    app.state.oauth_bridge = oauth_bridge or OAuthBridge()

    @app.on_event("shutdown")
    async def shutdown_event() -> None:
        """Close live-update sockets during shutdown."""
        logger.info("Closing %s live-update clients", len(broadcaster.clients))
        await broadcaster.close()

    _register_error_handlers(app)
    app.include_router(system.router)
    app.include_router(keys.router)
    app.include_router(pipelines.router)
    app.include_router(oauth.router)
    app.include_router(events.router)

    return app


def get_app() -> FastAPI:
    """FastAPI factory hook used by uvicorn's ``--factory`` option."""
    return create_app()
