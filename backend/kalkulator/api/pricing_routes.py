"""
Pricing API Routes

POST /api/pricing/calculate            — EK/VK totals per tier for a customer size (+ markup)
POST /api/pricing/tiers/{tier_name}    — full calculation for one tier (services + licenses)
GET  /api/pricing/customer-view        — service × tier inclusion badges and SLA metadata
POST /api/pricing/cost-analysis        — EK / VK / margin per tier at the reference markup
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from kalkulator.api.deps import get_catalog_snapshot
from kalkulator.config import DEFAULT_MARKUP_PCT
from kalkulator.models.pricing_models import CustomerSizeConfig
from kalkulator.services.catalog_repository import CatalogSnapshot
from kalkulator.services.costing_engine import CostingEngine
from kalkulator.services.labor_engine import LaborEngine
from kalkulator.services.package_matrix import build_package_matrix

router = APIRouter(prefix="/api/pricing", tags=["Pricing"])
logger = logging.getLogger("kalkulator-pricing-routes")


# ── Pydantic Models ─────────────────────────────────────────────────────────

class CustomerSize(BaseModel):
    clients: int = Field(0, ge=0)
    servers: int = Field(0, ge=0)
    users: int = Field(0, ge=0)

    def to_config(self) -> CustomerSizeConfig:
        return CustomerSizeConfig(clients=self.clients, servers=self.servers, users=self.users)


class CalculateRequest(CustomerSize):
    markup_pct: float = Field(DEFAULT_MARKUP_PCT, ge=0)
    tiers: Optional[List[str]] = None


class CostAnalysisRequest(CustomerSize):
    reference_markup_pct: Optional[float] = Field(None, ge=0)


# ── Helpers ──────────────────────────────────────────────────────────────────

def _engine_for(snapshot: CatalogSnapshot) -> CostingEngine:
    return CostingEngine(tier_levels=snapshot.ladder().levels)


def _calculate_all(snapshot: CatalogSnapshot, size: CustomerSizeConfig, tiers: Optional[List[str]] = None):
    engine = _engine_for(snapshot)
    results = engine.calculate_all_tiers(
        snapshot.services,
        snapshot.licenses,
        snapshot.links,
        snapshot.package_configs,
        snapshot.avg_cost_per_minute(),
        size,
        tiers=tiers,
    )
    return engine, results


# ── Endpoints ────────────────────────────────────────────────────────────────

@router.post("/calculate")
async def calculate_tiers(
    req: CalculateRequest,
    snapshot: CatalogSnapshot = Depends(get_catalog_snapshot),
):
    """EK/VK totals for every tier, with the quote markup applied on top of EK."""
    engine, results = _calculate_all(snapshot, req.to_config(), req.tiers)

    packages = []
    for tier, calc in results.items():
        packages.append({
            **calc.totals(),
            "tier_name": tier,
            "service_count": len(calc.service_costs),
            "license_count": len(calc.unique_licenses),
            "quote": engine.apply_markup(calc.total_cost_ek, req.markup_pct),
        })

    return {
        "customer_size": req.model_dump(include={"clients", "servers", "users"}),
        "avg_cost_per_minute": round(snapshot.avg_cost_per_minute(), 4),
        "markup_pct": req.markup_pct,
        "packages": packages,
    }


@router.post("/tiers/{tier_name}")
async def calculate_tier(
    tier_name: str,
    req: CustomerSize,
    snapshot: CatalogSnapshot = Depends(get_catalog_snapshot),
):
    """Full breakdown for one tier: per-service costs and deduplicated licenses."""
    engine = _engine_for(snapshot)
    if tier_name not in engine.ladder:
        raise HTTPException(status_code=404, detail=f"Unknown package tier '{tier_name}'")

    calc = engine.calculate_package_costs(
        tier_name,
        snapshot.services,
        snapshot.licenses,
        snapshot.links,
        snapshot.package_configs,
        snapshot.avg_cost_per_minute(),
        req.to_config(),
    )
    return calc.to_dict()


@router.get("/customer-view")
async def customer_view(snapshot: CatalogSnapshot = Depends(get_catalog_snapshot)):
    """Service × tier matrix with inclusion badges and SLA metadata."""
    ladder = snapshot.ladder()
    return {
        "tiers": ladder.levels,
        "services": build_package_matrix(snapshot.services, snapshot.package_configs, ladder),
    }


@router.post("/cost-analysis")
async def cost_analysis(
    req: CostAnalysisRequest,
    snapshot: CatalogSnapshot = Depends(get_catalog_snapshot),
):
    """Internal EK/VK/margin per tier at the fixed reference markup."""
    engine, results = _calculate_all(snapshot, req.to_config())
    return {
        "labor": LaborEngine(snapshot.employees).summary(),
        "packages": [
            engine.margin_analysis(calc, req.reference_markup_pct)
            for calc in results.values()
        ],
    }
