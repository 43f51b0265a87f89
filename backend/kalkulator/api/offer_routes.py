"""
Saved offer routes — quote persistence.

The offer stores the customer size, the chosen tiers and a copy of the totals
calculated at save time; later catalogue edits do not rewrite saved offers.
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from kalkulator.api.deps import get_catalog_repository, get_catalog_snapshot
from kalkulator.config import DEFAULT_MARKUP_PCT
from kalkulator.models.pricing_models import CustomerSizeConfig
from kalkulator.services.catalog_repository import CatalogRepository, CatalogSnapshot
from kalkulator.services.costing_engine import CostingEngine

router = APIRouter(prefix="/api/offers", tags=["Saved Offers"])
logger = logging.getLogger("kalkulator-offers")


class OfferCreateRequest(BaseModel):
    name: str = Field(..., min_length=1)
    company_name: Optional[str] = None
    clients: int = Field(0, ge=0)
    servers: int = Field(0, ge=0)
    users: int = Field(0, ge=0)
    selected_packages: List[str] = Field(..., min_length=1)
    markup_pct: float = Field(DEFAULT_MARKUP_PCT, ge=0)
    notes: Optional[str] = None


@router.post("", status_code=201)
async def create_offer(
    req: OfferCreateRequest,
    snapshot: CatalogSnapshot = Depends(get_catalog_snapshot),
    repo: CatalogRepository = Depends(get_catalog_repository),
):
    engine = CostingEngine(tier_levels=snapshot.ladder().levels)
    unknown = [t for t in req.selected_packages if t not in engine.ladder]
    if unknown:
        raise HTTPException(status_code=400, detail=f"Unknown package tiers: {', '.join(unknown)}")

    size = CustomerSizeConfig(clients=req.clients, servers=req.servers, users=req.users)
    results = engine.calculate_all_tiers(
        snapshot.services,
        snapshot.licenses,
        snapshot.links,
        snapshot.package_configs,
        snapshot.avg_cost_per_minute(),
        size,
        tiers=req.selected_packages,
    )
    calculation_results = {
        tier: {**calc.totals(), "quote": engine.apply_markup(calc.total_cost_ek, req.markup_pct)}
        for tier, calc in results.items()
    }

    return await repo.create_offer({
        "name": req.name,
        "company_name": req.company_name,
        "clients": req.clients,
        "servers": req.servers,
        "users": req.users,
        "selected_packages": list(req.selected_packages),
        "calculation_results": calculation_results,
        "notes": req.notes,
    })


@router.get("")
async def list_offers(repo: CatalogRepository = Depends(get_catalog_repository)):
    return await repo.list_offers()


@router.get("/{offer_id}")
async def get_offer(offer_id: str, repo: CatalogRepository = Depends(get_catalog_repository)):
    offer = await repo.get_offer(offer_id)
    if not offer:
        raise HTTPException(status_code=404, detail=f"Offer {offer_id} not found")
    return offer


@router.delete("/{offer_id}")
async def delete_offer(offer_id: str, repo: CatalogRepository = Depends(get_catalog_repository)):
    if not await repo.delete_offer(offer_id):
        raise HTTPException(status_code=404, detail=f"Offer {offer_id} not found")
    logger.info(f"Offer {offer_id} deleted")
    return {"deleted": True}
