"""
Request timing and bind outcome logging.
"""

import os
import time
import uuid
import logging
from typing import Callable, Optional
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger("autoquote")

SLOW_REQUEST_MS = float(os.getenv("SLOW_REQUEST_MS", "250"))
MONITORED_PATHS = ("/api/v1/quotes", "/api/v1/policies/bind")
BIND_PATH = "/api/v1/policies/bind"

BIND_OUTCOMES = {
    200: "bound",
    400: "rejected",
    402: "declined",
    404: "unknown_quote",
    409: "conflict",
}


def bind_outcome(path: str, status_code: int) -> Optional[str]:
    """Business outcome of a bind request, or None for any other path."""
    if path != BIND_PATH:
        return None
    return BIND_OUTCOMES.get(status_code, "error")


class PerformanceMiddleware(BaseHTTPMiddleware):
    """
    Tags every request with an X-Request-ID and logs its duration.

    The request id is the caller's X-Request-ID, else the idempotency key,
    else a fresh UUID. Bind requests also log their outcome, and slow quote
    or bind requests log a warning.
    """

    def __init__(self, app: ASGIApp, slow_request_ms: float = SLOW_REQUEST_MS):
        super().__init__(app)
        self.slow_request_ms = slow_request_ms

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID")
        if not request_id:
            request_id = request.headers.get("X-Idempotency-Key") or str(uuid.uuid4())

        # Read by the exception handlers in main
        request.state.request_id = request_id
        start_time = time.time()

        logger.info(
            f"Request started | "
            f"request_id={request_id} | "
            f"method={request.method} | "
            f"path={request.url.path}"
        )

        try:
            response = await call_next(request)
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            logger.error(
                f"Request failed | "
                f"request_id={request_id} | "
                f"path={request.url.path} | "
                f"duration_ms={duration_ms:.2f} | "
                f"error={str(e)}"
            )
            raise

        duration_ms = (time.time() - start_time) * 1000
        outcome = bind_outcome(request.url.path, response.status_code)

        logger.info(
            f"Request completed | "
            f"request_id={request_id} | "
            f"method={request.method} | "
            f"path={request.url.path} | "
            f"status={response.status_code} | "
            f"duration_ms={duration_ms:.2f}"
            + (f" | outcome={outcome}" if outcome else "")
        )

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time-Ms"] = f"{duration_ms:.2f}"

        if duration_ms > self.slow_request_ms and request.url.path.startswith(MONITORED_PATHS):
            logger.warning(
                f"Slow request | "
                f"request_id={request_id} | "
                f"path={request.url.path} | "
                f"duration_ms={duration_ms:.2f} | "
                f"threshold_ms={self.slow_request_ms:.0f}"
            )

        return response
