"""
Structured logging for the MSP Kalkulator API.

Records emitted while a request is in flight carry that request's id, so the
engine's per-tier lines ("Package costs calculated", tier=gold) join up with
the access line written by RequestTimingMiddleware.
"""
import logging
import json
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Optional

# Set by RequestTimingMiddleware for the duration of one request
request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

# ``extra=`` fields copied into the JSON line when set
PRICING_FIELDS = ("tier", "services", "licenses")
REQUEST_FIELDS = ("request_id", "http_method", "http_path", "http_status", "duration_ms")

TEXT_FORMAT = "%(asctime)s [%(name)s] %(levelname)s [%(request_id)s]: %(message)s"


class RequestContextFilter(logging.Filter):
    """Stamps the current request id onto records that do not carry one."""
    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "request_id", None) is None:
            request_id = request_id_var.get()
            if request_id is not None:
                record.request_id = request_id
        return True


class JSONFormatter(logging.Formatter):
    """JSON structured log formatter for production."""
    def format(self, record):
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)
        for name in PRICING_FIELDS + REQUEST_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                log_entry[name] = value
        return json.dumps(log_entry, default=str)


def setup_logging(level: str = "INFO", json_output: bool = True):
    """Configure application logging: one stdout handler, request-aware."""
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(RequestContextFilter())
    if json_output:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT, defaults={"request_id": "-"}))

    root.handlers = [handler]

    # SQL echo and driver chatter stay out of the pricing log
    for name in ["uvicorn.access", "sqlalchemy.engine", "aiosqlite", "asyncpg"]:
        logging.getLogger(name).setLevel(logging.WARNING)
