"""FastAPI dependency injection — catalogue store access."""
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession
from kalkulator.db import get_db
from kalkulator.services.catalog_repository import CatalogRepository, CatalogSnapshot


async def get_catalog_repository(db: AsyncSession = Depends(get_db)) -> CatalogRepository:
    return CatalogRepository(db)


async def get_catalog_snapshot(
    repo: CatalogRepository = Depends(get_catalog_repository),
) -> CatalogSnapshot:
    """One consistent catalogue read per request; the engine runs on this snapshot."""
    return await repo.load_snapshot()
