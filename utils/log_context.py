"""
Request logging middleware and context management.

Provides:
- Request ID generation for correlation (echoed as X-Request-ID)
- Request/response logging with timing
- request_id bound into structlog contextvars, so every log line emitted
  while handling the request carries it
"""

import time
import uuid

import structlog
from fastapi import FastAPI, Request

from .logger import get_logger
from .logging_config import IS_PRODUCTION

REQUEST_ID_HEADER = "X-Request-ID"


def generate_request_id() -> str:
    """Generate a unique request ID for correlation."""
    return f"req_{uuid.uuid4().hex[:12]}"


def log_request_end(
    log: structlog.stdlib.BoundLogger,
    status_code: int,
    duration_ms: int,
) -> None:
    """Log the end of a request with timing and status."""
    if status_code >= 500:
        log_fn = log.error
    elif status_code >= 400:
        log_fn = log.warning
    else:
        log_fn = log.info

    log_fn("request_completed", status_code=status_code, duration_ms=duration_ms)


def setup_logging_middleware(app: FastAPI) -> None:
    """
    Register the request logging middleware on the FastAPI app.

    Example:
        >>> app = FastAPI()
        >>> setup_logging_middleware(app)
    """

    @app.middleware("http")
    async def request_logging(request: Request, call_next):
        start = time.time()
        request_id = generate_request_id()

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )
        log = get_logger("credential_engine.request")

        # Health probes are high-frequency noise in production
        if not (IS_PRODUCTION and request.url.path == "/health"):
            log.debug("request_started")

        try:
            response = await call_next(request)
        except Exception as exc:
            log.error(
                "unhandled_exception",
                error=str(exc),
                error_type=type(exc).__name__,
                exc_info=exc,
            )
            raise

        duration_ms = int((time.time() - start) * 1000)
        log_request_end(log, response.status_code, duration_ms)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
