"""Observability module for logging, metrics, and error tracking."""

import asyncio
import logging
import json
import sys
import time
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST

logger = logging.getLogger("warddost.observability")

# Prometheus metrics
http_requests_total = Counter(
    "http_requests_total",
    "Total number of HTTP requests",
    ["method", "endpoint", "status"],
)

http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "Duration of HTTP requests in seconds",
    ["method", "endpoint"],
)

http_request_timeouts_total = Counter(
    "http_request_timeouts_total",
    "Requests aborted by the server-side timeout",
    ["method", "endpoint"],
)

complaints_created_total = Counter(
    "complaints_created_total",
    "Complaints filed by citizens",
)

complaint_status_changes_total = Counter(
    "complaint_status_changes_total",
    "Complaint status updates made by authorities",
    ["status"],
)

reviews_created_total = Counter(
    "reviews_created_total",
    "Reviews posted on complaint resolutions",
)

review_votes_total = Counter(
    "review_votes_total",
    "Helpful / not-helpful votes cast (including overwrites)",
    ["is_helpful"],
)


class JSONFormatter(logging.Formatter):
    # Attributes every LogRecord carries; anything else came from `extra=`.
    _RESERVED = set(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {"message", "asctime"}

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in self._RESERVED and not key.startswith("_"):
                log_data[key] = value

        return json.dumps(log_data, default=str)


def setup_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging on stdout."""
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter())

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    logging.getLogger("warddost").setLevel(root.level)
    logger.info("Structured JSON logging configured")


def init_sentry(dsn: Optional[str], environment: str) -> None:
    """Initialize Sentry error tracking when a DSN is configured."""
    if not dsn:
        logger.info("Sentry DSN not configured, skipping initialization")
        return

    import sentry_sdk
    from sentry_sdk.integrations.fastapi import FastApiIntegration
    from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

    sentry_sdk.init(
        dsn=dsn,
        environment=environment,
        integrations=[
            FastApiIntegration(),
            SqlalchemyIntegration(),
        ],
        traces_sample_rate=0.1,
    )
    logger.info("Sentry initialized successfully", extra={"dsn": dsn[:20] + "..."})


def _endpoint_label(request: Request) -> str:
    # Route templates keep label cardinality bounded (no complaint ids).
    route = request.scope.get("route")
    return getattr(route, "path", request.url.path)


def setup_metrics_middleware(app: FastAPI) -> None:
    """Add Prometheus metrics middleware to FastAPI app."""

    @app.middleware("http")
    async def metrics_middleware(request: Request, call_next):
        start_time = time.time()
        response = await call_next(request)
        duration = time.time() - start_time

        endpoint = _endpoint_label(request)
        http_requests_total.labels(method=request.method, endpoint=endpoint, status=response.status_code).inc()
        http_request_duration_seconds.labels(method=request.method, endpoint=endpoint).observe(duration)
        return response


def setup_timeout_middleware(app: FastAPI, timeout_seconds: float) -> None:
    """Bound every request; a slow database or object store yields a 504, not a hang."""

    @app.middleware("http")
    async def timeout_middleware(request: Request, call_next):
        try:
            return await asyncio.wait_for(call_next(request), timeout=timeout_seconds)
        except asyncio.TimeoutError:
            endpoint = _endpoint_label(request)
            http_request_timeouts_total.labels(method=request.method, endpoint=endpoint).inc()
            logger.warning(
                "Request timed out",
                extra={"method": request.method, "path": request.url.path, "timeout": timeout_seconds},
            )
            return JSONResponse(status_code=504, content={"detail": "Request timed out, please retry"})


def metrics_response() -> Response:
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


def get_health_check() -> Dict[str, Any]:
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
