"""
Catalogue repository — read/write contract between the catalogue store and the
pricing engine.

Reads materialise one consistent CatalogSnapshot of frozen records inside a
single session; the engine never sees ORM rows or live cursors. Writes cover
the package-config matrix (upsert on service + tier) and saved offers.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from kalkulator.models.orm_models import (
    EmployeeRow,
    LicenseRow,
    PackageConfigRow,
    PackageRow,
    SavedOfferRow,
    ServiceLicenseRow,
    ServiceRow,
)
from kalkulator.models.pricing_models import (
    Employee,
    License,
    Package,
    PackageConfig,
    Service,
    ServiceLicenseLink,
)
from kalkulator.services.labor_engine import average_cost_per_minute
from kalkulator.services.tier_engine import TierLadder, normalize_tier_name

logger = logging.getLogger("kalkulator-catalog")

_CONFIG_FIELDS = (
    "inclusion_type",
    "multiplier",
    "hourly_rate_surcharge",
    "sla_response_time",
    "sla_availability",
    "custom_description",
    "notes",
)


def _row_dict(row: Any) -> Dict[str, Any]:
    return {col.key: getattr(row, col.key) for col in row.__table__.columns}


@dataclass(frozen=True)
class CatalogSnapshot:
    """Everything the pricing engine needs, read in one unit of work."""
    services: List[Service] = field(default_factory=list)
    licenses: List[License] = field(default_factory=list)
    links: List[ServiceLicenseLink] = field(default_factory=list)
    package_configs: List[PackageConfig] = field(default_factory=list)
    packages: List[Package] = field(default_factory=list)
    employees: List[Employee] = field(default_factory=list)

    def ladder(self) -> TierLadder:
        """Ladder from active package rows, or the configured default when none exist."""
        return TierLadder.from_packages(self.packages)

    def avg_cost_per_minute(self) -> float:
        return average_cost_per_minute(self.employees)


class CatalogRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def _all(self, model) -> List[Any]:
        result = await self.session.execute(select(model))
        return list(result.scalars().all())

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def load_snapshot(self) -> CatalogSnapshot:
        services = [Service.from_record(_row_dict(r)) for r in await self._all(ServiceRow)]
        licenses = [License.from_record(_row_dict(r)) for r in await self._all(LicenseRow)]
        links = [ServiceLicenseLink.from_record(_row_dict(r)) for r in await self._all(ServiceLicenseRow)]
        configs = [PackageConfig.from_record(_row_dict(r)) for r in await self._all(PackageConfigRow)]
        packages = [Package.from_record(_row_dict(r)) for r in await self._all(PackageRow)]
        employees = [Employee.from_record(_row_dict(r)) for r in await self._all(EmployeeRow)]
        logger.debug(
            "Catalogue snapshot loaded: %d services, %d licenses, %d links, %d configs",
            len(services), len(licenses), len(links), len(configs),
        )
        return CatalogSnapshot(
            services=services,
            licenses=licenses,
            links=links,
            package_configs=configs,
            packages=packages,
            employees=employees,
        )

    async def list_package_configs(self) -> List[PackageConfig]:
        return [PackageConfig.from_record(_row_dict(r)) for r in await self._all(PackageConfigRow)]

    # ------------------------------------------------------------------
    # Package-config matrix
    # ------------------------------------------------------------------

    async def upsert_package_config(self, data: Dict[str, Any]) -> PackageConfig:
        """
        Create or update the config for (service_id, package_type).

        package_type is stored normalised so "Allin Black" and "allin_black"
        address the same record.
        """
        service_id = str(data["service_id"])
        package_type = normalize_tier_name(data["package_type"])

        service = await self.session.get(ServiceRow, service_id)
        if service is None:
            raise LookupError(f"Service {service_id} not found")

        result = await self.session.execute(
            select(PackageConfigRow).where(
                PackageConfigRow.service_id == service_id,
                PackageConfigRow.package_type == package_type,
            )
        )
        row = result.scalar_one_or_none()
        if row is None:
            row = PackageConfigRow(service_id=service_id, package_type=package_type)
            self.session.add(row)
            action = "created"
        else:
            action = "updated"

        for key in _CONFIG_FIELDS:
            if key in data:
                setattr(row, key, data[key])
        if row.multiplier is None:
            row.multiplier = 1.0
        if not row.inclusion_type:
            row.inclusion_type = "effort_based"

        await self.session.flush()
        await self.session.refresh(row)
        logger.info("Package config %s for service %s / %s", action, service_id, package_type)
        return PackageConfig.from_record(_row_dict(row))

    async def delete_package_config(self, service_id: str, package_type: str) -> bool:
        result = await self.session.execute(
            delete(PackageConfigRow).where(
                PackageConfigRow.service_id == service_id,
                PackageConfigRow.package_type == normalize_tier_name(package_type),
            )
        )
        return bool(result.rowcount)

    # ------------------------------------------------------------------
    # Saved offers
    # ------------------------------------------------------------------

    async def create_offer(self, data: Dict[str, Any]) -> Dict[str, Any]:
        row = SavedOfferRow(**data)
        self.session.add(row)
        await self.session.flush()
        await self.session.refresh(row)
        logger.info("Offer %s saved (%s)", row.id, row.name)
        return _row_dict(row)

    async def list_offers(self) -> List[Dict[str, Any]]:
        result = await self.session.execute(
            select(SavedOfferRow).order_by(SavedOfferRow.created_at.desc())
        )
        return [_row_dict(r) for r in result.scalars().all()]

    async def get_offer(self, offer_id: str) -> Optional[Dict[str, Any]]:
        row = await self.session.get(SavedOfferRow, offer_id)
        return _row_dict(row) if row else None

    async def delete_offer(self, offer_id: str) -> bool:
        row = await self.session.get(SavedOfferRow, offer_id)
        if row is None:
            return False
        await self.session.delete(row)
        await self.session.flush()
        return True
