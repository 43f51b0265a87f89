"""
Pricing configuration — single source of truth for the tier ladder,
billing-unit quantity mapping, inclusion types, and markup defaults.

Import from here in all engines and routes rather than hardcoding values.
"""
from __future__ import annotations

import os

# ── Tier ladder ───────────────────────────────────────────────────────────────
# Lower index = more basic package. Services available at a tier are inherited
# by every tier above it unless revoked via a not_available package config.
DEFAULT_TIER_LEVELS: list[str] = ["basis", "gold", "allin", "allin_black"]


def get_tier_levels() -> list[str]:
    """Return the configured ladder (``PACKAGE_TIERS=basis,silver,allin``) or the default."""
    raw = os.getenv("PACKAGE_TIERS", "")
    levels = [t.strip() for t in raw.split(",") if t.strip()]
    return levels or list(DEFAULT_TIER_LEVELS)


# ── Inclusion types ───────────────────────────────────────────────────────────
INCLUSION_INCLUSIVE: str = "inclusive"
INCLUSION_EFFORT_BASED: str = "effort_based"
INCLUSION_NOT_AVAILABLE: str = "not_available"
INCLUSION_CUSTOM: str = "custom"

INCLUSION_TYPES: tuple[str, ...] = (
    INCLUSION_INCLUSIVE,
    INCLUSION_EFFORT_BASED,
    INCLUSION_NOT_AVAILABLE,
    INCLUSION_CUSTOM,
)

# Applied when no package config exists for a (service, tier) pair
DEFAULT_INCLUSION_TYPE: str = INCLUSION_EFFORT_BASED
DEFAULT_MULTIPLIER: float = 1.0


# ── Quantity mapping ──────────────────────────────────────────────────────────
# Keys are lower-cased billing types / units; values name the CustomerSizeConfig
# field that drives the quantity. Anything not listed is billed once.

# Service billing types. pro_site and per_tb have no metric yet and stay at 1.
SERVICE_QUANTITY_FIELDS: dict[str, str] = {
    "pro_client": "clients",
    "pro_device": "clients",
    "pro_server": "servers",
    "pro_user": "users",
}

# License billing units (legacy per_* spellings included)
LICENSE_QUANTITY_FIELDS: dict[str, str] = {
    "pro_client": "clients",
    "per_client": "clients",
    "pro_server": "servers",
    "per_server": "servers",
    "pro_user": "users",
    "per_user": "users",
}


# ── Markups ───────────────────────────────────────────────────────────────────
# Calculator default markup on EK (percent), applied at the presentation layer only
DEFAULT_MARKUP_PCT: float = float(os.getenv("DEFAULT_MARKUP_PCT", "0"))

# Fixed markup used by the internal cost-analysis view
REFERENCE_MARKUP_PCT: float = float(os.getenv("REFERENCE_MARKUP_PCT", "30"))


# ── Labour ────────────────────────────────────────────────────────────────────
MINUTES_PER_HOUR: int = 60


# ── API ───────────────────────────────────────────────────────────────────────
CORS_ORIGINS: list[str] = [
    o.strip()
    for o in os.getenv("CORS_ORIGINS", "http://localhost:5173,http://localhost:3000").split(",")
    if o.strip()
]
