import json
import logging
import os
import time
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import Awaitable, Callable, Dict, Tuple
from uuid import uuid4

from fastapi import FastAPI, Request, Response
from prometheus_fastapi_instrumentator import Instrumentator

correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="")
request_id_var: ContextVar[str] = ContextVar("request_id", default="")
trace_id_var: ContextVar[str] = ContextVar("trace_id", default="")

SERVICE_NAME_DEFAULT = "pms-cockpit"
TRACE_VERSION = "00"
DEFAULT_TRACE_FLAGS = "01"
# Polled by orchestrators and scrapers; access-logged at DEBUG only.
HEALTH_CHECK_PATHS = frozenset({"/health", "/health/live", "/health/ready", "/metrics"})


class JsonFormatter(logging.Formatter):
    """One JSON object per record, stamped with the ids of the request in flight."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "service": os.getenv("SERVICE_NAME", SERVICE_NAME_DEFAULT),
            "environment": os.getenv("ENVIRONMENT", "local"),
            "logger": record.name,
            "message": record.getMessage(),
            "correlation_id": correlation_id_var.get() or None,
            "request_id": request_id_var.get() or None,
            "trace_id": trace_id_var.get() or None,
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        extra_fields = getattr(record, "extra_fields", None)
        if isinstance(extra_fields, dict):
            payload.update(extra_fields)
        # Decimals from the calculation core serialize as strings.
        return json.dumps({k: v for k, v in payload.items() if v is not None}, default=str)


def configure_logging() -> None:
    root_logger = logging.getLogger()
    if root_logger.hasHandlers():
        root_logger.handlers.clear()
    root_logger.setLevel(os.getenv("LOG_LEVEL", "INFO").upper())
    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    root_logger.addHandler(handler)


def parse_traceparent(traceparent: str) -> Tuple[str, str]:
    """Returns (trace_id, flags); starts a new trace when the header is absent or malformed."""
    parts = traceparent.split("-")
    if len(parts) >= 4 and len(parts[1]) == 32 and len(parts[3]) == 2:
        return parts[1], parts[3]
    return uuid4().hex, DEFAULT_TRACE_FLAGS


def _response_headers(
    correlation_id: str, request_id: str, trace_id: str, flags: str
) -> Dict[str, str]:
    span_id = uuid4().hex[:16]
    return {
        "X-Correlation-Id": correlation_id,
        "X-Request-Id": request_id,
        "X-Trace-Id": trace_id,
        "traceparent": f"{TRACE_VERSION}-{trace_id}-{span_id}-{flags}",
    }


def setup_observability(app: FastAPI) -> None:
    configure_logging()
    Instrumentator().instrument(app).expose(app)
    access_logger = logging.getLogger("http.access")

    @app.middleware("http")
    async def _request_observability_middleware(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        started = time.perf_counter()

        correlation_id = request.headers.get("X-Correlation-Id") or f"corr_{uuid4().hex[:12]}"
        request_id = request.headers.get("X-Request-Id") or f"req_{uuid4().hex[:12]}"
        trace_id, flags = parse_traceparent(request.headers.get("traceparent", ""))

        tokens = (
            (correlation_id_var, correlation_id_var.set(correlation_id)),
            (request_id_var, request_id_var.set(request_id)),
            (trace_id_var, trace_id_var.set(trace_id)),
        )
        status_code = 500
        try:
            response: Response = await call_next(request)
            status_code = response.status_code
        finally:
            path = request.url.path
            access_logger.log(
                logging.DEBUG if path in HEALTH_CHECK_PATHS else logging.INFO,
                "request.completed",
                extra={
                    "extra_fields": {
                        "http_method": request.method,
                        "endpoint": path,
                        "status_code": status_code,
                        "latency_ms": round((time.perf_counter() - started) * 1000, 2),
                    }
                },
            )
            for var, token in tokens:
                var.reset(token)

        response.headers.update(_response_headers(correlation_id, request_id, trace_id, flags))
        return response
