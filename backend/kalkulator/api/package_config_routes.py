"""Package-config matrix routes — per (service, tier) overrides edited by administrators."""
import logging
from dataclasses import asdict
from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from kalkulator.api.deps import get_catalog_repository
from kalkulator.services.catalog_repository import CatalogRepository

router = APIRouter(prefix="/api/package-configs", tags=["Package Matrix"])
logger = logging.getLogger("kalkulator-api")


class PackageConfigUpsert(BaseModel):
    service_id: str
    package_type: str = Field(..., min_length=1)
    inclusion_type: Literal["inclusive", "effort_based", "not_available", "custom"] = "effort_based"
    multiplier: Optional[float] = Field(1.0, ge=0)
    hourly_rate_surcharge: Optional[float] = None   # percent
    sla_response_time: Optional[str] = None
    sla_availability: Optional[str] = None
    custom_description: Optional[str] = None
    notes: Optional[str] = None


@router.get("")
async def list_package_configs(repo: CatalogRepository = Depends(get_catalog_repository)):
    return [asdict(cfg) for cfg in await repo.list_package_configs()]


@router.put("")
async def upsert_package_config(
    req: PackageConfigUpsert,
    repo: CatalogRepository = Depends(get_catalog_repository),
):
    """Create or replace the config for (service_id, package_type)."""
    try:
        cfg = await repo.upsert_package_config(req.model_dump())
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return asdict(cfg)


@router.delete("/{service_id}/{package_type}")
async def delete_package_config(
    service_id: str,
    package_type: str,
    repo: CatalogRepository = Depends(get_catalog_repository),
):
    """Remove an override; the service falls back to hierarchy inheritance."""
    if not await repo.delete_package_config(service_id, package_type):
        raise HTTPException(
            status_code=404,
            detail=f"No package config for service {service_id} / {package_type}",
        )
    logger.info(f"Package config deleted: {service_id} / {package_type}")
    return {"deleted": True}
