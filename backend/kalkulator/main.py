"""
MSP Kalkulator API
FastAPI backend over the pricing engine: per-tier EK/VK package prices,
customer package matrix, internal cost analysis and saved offers.
"""
import os
import logging
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

load_dotenv()

from kalkulator.config import CORS_ORIGINS, get_tier_levels  # noqa: E402
from kalkulator.services.logging_config import setup_logging  # noqa: E402
from kalkulator.services.middleware import RequestTimingMiddleware  # noqa: E402

_log_level = os.getenv("LOG_LEVEL", "INFO")
_json_logs = os.getenv("LOG_FORMAT", "json").lower() != "text"
setup_logging(level=_log_level, json_output=_json_logs)
logger = logging.getLogger("kalkulator-api")

APP_VERSION = "1.0.0"

if not os.getenv("DATABASE_URL"):
    logger.warning("MISSING env var: DATABASE_URL — running in dev mode")


@asynccontextmanager
async def lifespan(app: FastAPI):
    from kalkulator.db import init_db
    await init_db()
    logger.info("Pricing API ready (tiers: %s)", ", ".join(get_tier_levels()))
    yield


app = FastAPI(
    title="MSP Kalkulator API",
    version=APP_VERSION,
    description="Package pricing for managed-service bundles (EK/VK per tier)",
    lifespan=lifespan,
)


# ---------------------------------------------------------------------------
# Security Headers Middleware
# ---------------------------------------------------------------------------
class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Adds standard security headers to every response."""
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        return response


app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Accept", "X-Requested-With", "X-Request-ID"],
)
app.add_middleware(SecurityHeadersMiddleware)
# Request timing + X-Request-ID must be outermost so it wraps all other middleware
app.add_middleware(RequestTimingMiddleware)

# Routers
from kalkulator.api.pricing_routes import router as pricing_router  # noqa: E402
from kalkulator.api.package_config_routes import router as package_config_router  # noqa: E402
from kalkulator.api.offer_routes import router as offer_router  # noqa: E402

app.include_router(pricing_router)
app.include_router(package_config_router)
app.include_router(offer_router)


@app.get("/health")
async def health_check():
    return {
        "status": "active",
        "version": APP_VERSION,
        "db_configured": bool(os.getenv("DATABASE_URL")),
        "tiers": get_tier_levels(),
    }
