"""
ASGI entry point: ``uvicorn schoolhub.main:app``.

Resources live under /api/v1 (teachers, customers, branches, plus the
health probes) behind per-client read and write budgets; Prometheus
metrics are served at /metrics behind the X-Metrics-Token header. Every
error leaves the API as the ``{"status": false, "message": ...}``
envelope.
"""

import hmac
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from schoolhub.api.mappings import MAPPING_PROFILES
from schoolhub.api.routes.branches import router as branches_router
from schoolhub.api.routes.customers import router as customers_router
from schoolhub.api.routes.health import router as health_router
from schoolhub.api.routes.teachers import router as teachers_router
from schoolhub.api.schemas.envelope import failure
from schoolhub.core.config import settings
from schoolhub.core.db import init_schema, reset_engine
from schoolhub.core.errors import SchoolHubError, get_status_code
from schoolhub.core.mapping import init_mapper, reset_mapper
from schoolhub.core.observability import (
    ObservabilityMiddleware,
    configure_structured_logging,
    extract_request_context,
    metrics_endpoint,
)
from schoolhub.core.rate_limit import RateLimitMiddleware

if settings.observability_structured_logs:
    configure_structured_logging(settings.app_log_level)

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"

GENERIC_ERROR_MESSAGE = "An error occurred while processing your request"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    init_mapper(MAPPING_PROFILES)
    if settings.db_create_schema:
        init_schema()
    logger.info(f"{settings.app_name} started", extra={"app_env": settings.app_env.value})
    try:
        yield
    finally:
        reset_mapper()
        reset_engine()
        logger.info(f"{settings.app_name} stopped")


# ============================================================================
# Exception Handlers
# ============================================================================


def _envelope(status_code: int, message: str, headers: dict | None = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=failure(message), headers=headers)


def _first_validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    return f"{location}: {first.get('msg', 'invalid value')}" if location else first["msg"]


async def handle_domain_error(request: Request, exc: SchoolHubError) -> JSONResponse:
    """
    Domain errors keep their own message below 500.

    Storage failures are logged with traceback and answered generically so
    driver details never reach the client.
    """
    status_code = get_status_code(exc)
    context = {"details": exc.details, **extract_request_context(request)}
    name = type(exc).__name__

    if status_code >= 500:
        logger.error(f"{name}: {exc.message}", exc_info=exc, extra=context)
        return _envelope(status_code, GENERIC_ERROR_MESSAGE)

    logger.warning(f"{name}: {exc.message}", extra=context)
    return _envelope(status_code, exc.message)


async def handle_request_validation(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Unparseable bodies and malformed path ids are client errors (400)."""
    message = _first_validation_message(exc)
    logger.warning(f"Rejected request: {message}", extra=extract_request_context(request))
    return _envelope(status.HTTP_400_BAD_REQUEST, message)


async def handle_http_error(request: Request, exc: HTTPException) -> JSONResponse:
    """Framework errors (unknown route, wrong method) rendered in the envelope."""
    return _envelope(exc.status_code, str(exc.detail), headers=exc.headers)


async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        f"Unhandled {type(exc).__name__}: {exc}",
        exc_info=exc,
        extra=extract_request_context(request),
    )
    return _envelope(status.HTTP_500_INTERNAL_SERVER_ERROR, GENERIC_ERROR_MESSAGE)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(SchoolHubError, handle_domain_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation)
    app.add_exception_handler(HTTPException, handle_http_error)
    app.add_exception_handler(Exception, handle_unexpected)


# ============================================================================
# Metrics
# ============================================================================


async def serve_metrics(request: Request) -> Response:
    """Prometheus scrape target; X-Metrics-Token must equal METRICS_TOKEN."""
    expected = settings.metrics_token
    if not expected:
        logger.error("METRICS_TOKEN is not configured; refusing to serve /metrics")
        return _envelope(status.HTTP_500_INTERNAL_SERVER_ERROR, "Metrics token not configured")

    supplied = request.headers.get("X-Metrics-Token") or ""
    if not hmac.compare_digest(supplied, expected):
        logger.warning("Rejected /metrics request with a bad token")
        return _envelope(status.HTTP_403_FORBIDDEN, "Invalid metrics token")

    return metrics_endpoint()


# ============================================================================
# Application Factory
# ============================================================================


def create_app() -> FastAPI:
    app = FastAPI(
        title="SchoolHub API",
        description="CRUD over teachers, customers and branches",
        version="0.1.0",
        lifespan=lifespan,
    )

    # Starlette runs the last added middleware first: CORS, then
    # observability, then rate limiting.
    if settings.rate_limit_enabled:
        app.add_middleware(
            RateLimitMiddleware,
            read_limit=settings.rate_limit_read_requests,
            write_limit=settings.rate_limit_write_requests,
            window_seconds=settings.rate_limit_window_seconds,
            prefix=API_PREFIX,
            exempt_paths=(f"{API_PREFIX}/health", f"{API_PREFIX}/readyz"),
        )
    if settings.observability_enabled:
        app.add_middleware(
            ObservabilityMiddleware, header_name=settings.observability_request_id_header
        )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    for router in (health_router, teachers_router, customers_router, branches_router):
        app.include_router(router, prefix=API_PREFIX)

    if settings.observability_enabled:
        app.add_route("/metrics", serve_metrics)

    return app


app = create_app()
