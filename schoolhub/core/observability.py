"""
Request tracking, JSON logging and Prometheus metrics for the SchoolHub API.

Every request gets a correlation id (taken from the X-Request-ID header or
generated) that is stored in a ContextVar, attached to every JSON log line
emitted while the request is served, and echoed back in the response.

Metrics live in a private registry under the ``schoolhub`` namespace:

    schoolhub_http_requests_total{method, route, status_code}
    schoolhub_http_request_duration_seconds{method, route}
    schoolhub_store_operations_total{table, operation, outcome}
    schoolhub_store_operation_duration_seconds{table, operation}
    schoolhub_transactions_total{outcome}

Usage:
    from schoolhub.core.observability import db_metrics, get_request_id

    with db_metrics.track("teachers", "insert"):
        session.flush()
"""

import json
import logging
import time
import uuid
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import Any

from fastapi import Request, Response
from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram, generate_latest
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

NAMESPACE = "schoolhub"

request_logger = logging.getLogger("schoolhub.request")

# ============================================================================
# Correlation ID
# ============================================================================

_request_id_ctx: ContextVar[str] = ContextVar("schoolhub_request_id", default="")


def generate_request_id() -> str:
    return str(uuid.uuid4())


def get_request_id() -> str:
    """Correlation id of the request being served, "" outside a request."""
    return _request_id_ctx.get()


def set_correlation_id(request_id: str) -> None:
    _request_id_ctx.set(request_id)


# ============================================================================
# JSON Logging
# ============================================================================

# Attributes every LogRecord carries; anything else was passed via `extra=`.
_STANDARD_RECORD_ATTRS = frozenset(logging.makeLogRecord({}).__dict__) | {
    "message",
    "asctime",
    "taskName",
}


class StructuredFormatter(logging.Formatter):
    """
    Render a record as one JSON object per line.

    Keys: timestamp, level, logger, message, request_id (inside a request),
    exception (type and message, when exc_info is set), source location, and
    an ``extra`` object with whatever the caller passed via ``extra=``.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "source": f"{record.pathname}:{record.lineno}:{record.funcName}",
        }

        if request_id := get_request_id():
            entry["request_id"] = request_id

        if record.exc_info and record.exc_info[0] is not None:
            exc_type, exc_value, _ = record.exc_info
            entry["exception"] = {"type": exc_type.__name__, "message": str(exc_value)}

        extra = {k: v for k, v in vars(record).items() if k not in _STANDARD_RECORD_ATTRS}
        if extra:
            entry["extra"] = extra

        return json.dumps(entry, default=str)


def configure_structured_logging(level: str = "INFO") -> None:
    """Replace the root handlers with a single stderr handler using StructuredFormatter."""
    handler = logging.StreamHandler()
    handler.setFormatter(StructuredFormatter())

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(getattr(logging, level.upper(), logging.INFO))


# ============================================================================
# Prometheus Metrics
# ============================================================================

_registry = CollectorRegistry()


class Metrics:
    """Collectors for HTTP traffic, store operations and transaction outcomes."""

    def __init__(self, registry: CollectorRegistry) -> None:
        self.registry = registry
        common = {"namespace": NAMESPACE, "registry": registry}

        self.http_requests_total = Counter(
            "http_requests", "HTTP requests served", ["method", "route", "status_code"], **common
        )
        self.http_request_duration_seconds = Histogram(
            "http_request_duration_seconds",
            "HTTP request latency",
            ["method", "route"],
            buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0),
            **common,
        )
        self.http_requests_in_progress = Gauge(
            "http_requests_in_progress", "HTTP requests being served", ["method"], **common
        )
        self.http_errors_total = Counter(
            "http_errors", "Requests that raised past the app", ["error_type", "route"], **common
        )

        self.store_operations_total = Counter(
            "store_operations",
            "Entity store calls by outcome",
            ["table", "operation", "outcome"],
            **common,
        )
        self.store_operation_duration_seconds = Histogram(
            "store_operation_duration_seconds",
            "Entity store call latency",
            ["table", "operation"],
            buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 5.0),
            **common,
        )

        self.transactions_total = Counter(
            "transactions", "Transaction scopes by outcome", ["outcome"], **common
        )

    def sample(self, name: str, **labels: str) -> float:
        """Current value of a sample, 0.0 when it has not been recorded yet."""
        return self.registry.get_sample_value(f"{NAMESPACE}_{name}", labels) or 0.0


metrics = Metrics(_registry)


# ============================================================================
# Request Tracking Middleware
# ============================================================================


class ObservabilityMiddleware(BaseHTTPMiddleware):
    """
    Assigns the correlation id, times the request and records HTTP metrics.

    Requests to skip_paths (probes and /metrics) are counted but not logged.
    """

    def __init__(
        self,
        app: ASGIApp,
        metrics_instance: Metrics | None = None,
        skip_paths: list[str] | None = None,
        header_name: str = "X-Request-ID",
    ) -> None:
        super().__init__(app)
        self.metrics = metrics_instance or metrics
        self.skip_paths = tuple(skip_paths or ("/health", "/readyz", "/metrics"))
        self.header_name = header_name

    @staticmethod
    def _route_of(request: Request) -> str:
        route = request.scope.get("route")
        return getattr(route, "path", None) or request.url.path

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(self.header_name) or generate_request_id()
        set_correlation_id(request_id)
        method = request.method

        in_progress = self.metrics.http_requests_in_progress.labels(method=method)
        in_progress.inc()
        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as exc:
            route = self._route_of(request)
            self.metrics.http_errors_total.labels(
                error_type=type(exc).__name__, route=route
            ).inc()
            self.metrics.http_requests_total.labels(
                method=method, route=route, status_code=500
            ).inc()
            request_logger.exception(f"{method} {route} failed", extra={"route": route})
            raise
        finally:
            in_progress.dec()

        elapsed = time.perf_counter() - started
        route = self._route_of(request)
        self.metrics.http_requests_total.labels(
            method=method, route=route, status_code=response.status_code
        ).inc()
        self.metrics.http_request_duration_seconds.labels(method=method, route=route).observe(
            elapsed
        )
        response.headers[self.header_name] = request_id

        if not request.url.path.endswith(self.skip_paths):
            request_logger.info(
                f"{method} {route} {response.status_code}",
                extra={
                    "route": route,
                    "status_code": response.status_code,
                    "latency_ms": round(elapsed * 1000, 2),
                },
            )
        return response


# ============================================================================
# Store Metrics
# ============================================================================


class DBMetricsWrapper:
    """Times entity store calls and counts them by outcome."""

    def __init__(self, metrics_instance: Metrics | None = None) -> None:
        self.metrics = metrics_instance or metrics

    @contextmanager
    def track(self, table: str, operation: str) -> Iterator[None]:
        started = time.perf_counter()
        outcome = "success"
        try:
            yield
        except Exception:
            outcome = "error"
            raise
        finally:
            self.metrics.store_operation_duration_seconds.labels(
                table=table, operation=operation
            ).observe(time.perf_counter() - started)
            self.metrics.store_operations_total.labels(
                table=table, operation=operation, outcome=outcome
            ).inc()


db_metrics = DBMetricsWrapper()


def metrics_endpoint() -> Response:
    """Prometheus text exposition of the private registry."""
    return Response(
        content=generate_latest(_registry),
        media_type="text/plain; version=0.0.4; charset=utf-8",
    )


def extract_request_context(request: Request) -> dict[str, Any]:
    """Fields identifying the current request, for `extra=` in handler logs."""
    return {
        "request_id": get_request_id(),
        "method": request.method,
        "path": request.url.path,
    }
