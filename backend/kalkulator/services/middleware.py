"""
Request tracing for the MSP Kalkulator API.

RequestTimingMiddleware binds a request id (the caller's X-Request-ID when it
is usable, otherwise a fresh uuid4) to the logging context, so every pricing
log line of the request carries it, then writes one access line per request.
"""
import time
import uuid
import logging
from typing import Optional
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from kalkulator.services.logging_config import request_id_var

logger = logging.getLogger("kalkulator-api.middleware")

REQUEST_ID_HEADER = "X-Request-ID"
MAX_REQUEST_ID_LENGTH = 128
SKIP_LOG_PATHS = {"/health"}


def resolve_request_id(header_value: Optional[str]) -> str:
    """Reuse a caller-supplied id if it is short printable text; otherwise mint one."""
    if header_value:
        candidate = header_value.strip()
        if 0 < len(candidate) <= MAX_REQUEST_ID_LENGTH and candidate.isprintable():
            return candidate
    return str(uuid.uuid4())


class RequestTimingMiddleware(BaseHTTPMiddleware):
    """Adds X-Request-ID / X-Process-Time (ms); 5xx responses are logged at ERROR."""

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))
        request.state.request_id = request_id
        token = request_id_var.set(request_id)
        start_time = time.perf_counter()
        try:
            response: Response = await call_next(request)
        finally:
            request_id_var.reset(token)

        duration_ms = round((time.perf_counter() - start_time) * 1000, 2)
        response.headers[REQUEST_ID_HEADER] = request_id
        response.headers["X-Process-Time"] = str(duration_ms)

        if request.url.path not in SKIP_LOG_PATHS:
            logger.log(
                logging.ERROR if response.status_code >= 500 else logging.INFO,
                "%s %s -> %d",
                request.method,
                request.url.path,
                response.status_code,
                extra={
                    "http_method": request.method,
                    "http_path": request.url.path,
                    "http_status": response.status_code,
                    "request_id": request_id,
                    "duration_ms": duration_ms,
                },
            )

        return response
