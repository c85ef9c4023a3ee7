"""FastAPI application entry point."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.httpsredirect import HTTPSRedirectMiddleware

from unsubscribe_service.api.router import api_router
from unsubscribe_service.core.config import Settings, get_settings
from unsubscribe_service.core.errors import (
    AdmissionRejected,
    UnauthorizedCredentials,
    UnsubscribeError,
)
from unsubscribe_service.core.logging_config import (
    generate_request_id,
    request_id_var,
    setup_logging,
)
from unsubscribe_service.core.rate_limit import build_admission_gate
from unsubscribe_service.schemas.common import ErrorResponse
from unsubscribe_service.services.unsubscribe_service import UnsubscribeWorkflow, build_workflow

logger = logging.getLogger(__name__)

UNEXPECTED_ERROR_MESSAGE = "An unexpected error occurred."


def _error(status_code: int, message: str, headers: dict[str, str] | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=message).model_dump(),
        headers=headers,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Translate the error taxonomy into HTTP responses."""

    @app.exception_handler(UnsubscribeError)
    async def unsubscribe_error_handler(_request: Request, exc: UnsubscribeError) -> JSONResponse:
        logger.warning("An expected error occurred: %s (%s)", exc.message, exc.code)
        return _error(400, exc.message)

    @app.exception_handler(UnauthorizedCredentials)
    async def unauthorized_handler(_request: Request, exc: UnauthorizedCredentials) -> JSONResponse:
        return _error(401, exc.message, headers={"WWW-Authenticate": "Basic"})

    @app.exception_handler(AdmissionRejected)
    async def admission_rejected_handler(_request: Request, exc: AdmissionRejected) -> JSONResponse:
        return _error(429, exc.message)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return _error(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))

    # Internal detail is logged, never returned
    @app.exception_handler(Exception)
    async def global_exception_handler(_request: Request, exc: Exception) -> JSONResponse:
        """Handle unhandled exceptions with an opaque JSON response."""
        logger.exception("An unexpected error occurred: %s", exc)
        return _error(500, UNEXPECTED_ERROR_MESSAGE)


def create_app(
    settings: Settings | None = None,
    workflow: UnsubscribeWorkflow | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    The workflow (and the token store and mailing list it owns) is built once
    here and shared by every request through ``app.state``.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
        """Application lifespan manager."""
        setup_logging(debug=settings.debug)
        logger.info("Starting %s v%s", settings.project_name, settings.version)
        logger.info("Environment: %s", settings.environment)
        logger.info("Mailing list loaded with %d recipients", len(app.state.workflow.mailing_list))
        yield
        logger.info("Shutting down...")

    # Sentry/GlitchTip init (before middleware)
    if settings.sentry_dsn:
        import sentry_sdk

        sentry_sdk.init(
            dsn=settings.sentry_dsn,
            environment=settings.environment,
            traces_sample_rate=0.1,
        )

    app = FastAPI(
        title=settings.project_name,
        version=settings.version,
        openapi_url="/openapi.json" if settings.enable_docs else None,
        docs_url="/docs" if settings.enable_docs else None,
        redoc_url="/redoc" if settings.enable_docs else None,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.workflow = workflow or build_workflow(settings)
    app.state.admission_gate = build_admission_gate(settings)
    app.state.limiter = app.state.admission_gate.limiter

    if settings.use_https_redirection:
        app.add_middleware(HTTPSRedirectMiddleware)

    # Request ID middleware
    @app.middleware("http")
    async def request_id_middleware(request: Request, call_next: Any) -> Response:
        rid = request.headers.get("X-Request-ID") or generate_request_id()
        request_id_var.set(rid)
        response: Response = await call_next(request)
        response.headers["X-Request-ID"] = rid
        return response

    register_exception_handlers(app)
    app.include_router(api_router)

    # Root endpoint
    @app.get("/")
    async def root() -> dict[str, Any]:
        """Root endpoint with service information."""
        return {
            "name": settings.project_name,
            "version": settings.version,
            "health": "/health",
        }

    return app
