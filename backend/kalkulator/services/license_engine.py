"""
License engine — deduplicated license costs for a set of services.

A license linked to several services in the same package is billed once, at
the quantity derived from its own billing unit. Links with include_cost=False
are informational only.
"""

import logging
from typing import Dict, Iterable, List, Optional

from kalkulator.config import LICENSE_QUANTITY_FIELDS
from kalkulator.models.pricing_models import (
    CustomerSizeConfig,
    License,
    Service,
    ServiceLicenseLink,
    UniqueLicense,
)

logger = logging.getLogger("kalkulator-pricing.licenses")


def license_quantity(billing_unit: Optional[str], size: CustomerSizeConfig) -> int:
    """
    Quantity for a license billing unit (case-insensitive).

        pro_client / per_client → clients
        pro_server / per_server → servers
        pro_user   / per_user   → users
        fix / fixed / anything else → 1
    """
    return size.quantity_for(LICENSE_QUANTITY_FIELDS.get((billing_unit or "").lower()))


def unique_license_costs(
    services: Iterable[Service],
    service_license_links: Iterable[ServiceLicenseLink],
    licenses: Iterable[License],
    size: CustomerSizeConfig,
) -> List[UniqueLicense]:
    """
    Return one UniqueLicense per distinct billable license reachable from ``services``.

    Dangling links (license deleted) and inactive licenses are skipped
    silently; the catalogue store may be edited while a quote is calculated.
    """
    licenses_by_id: Dict[str, License] = {lic.id: lic for lic in licenses}

    links_by_service: Dict[str, List[ServiceLicenseLink]] = {}
    for link in service_license_links:
        if link.include_cost:
            links_by_service.setdefault(link.service_id, []).append(link)

    unique: Dict[str, UniqueLicense] = {}
    skipped = 0
    for service in services:
        for link in links_by_service.get(service.id, ()):
            if link.license_id in unique:
                continue
            lic = licenses_by_id.get(link.license_id)
            if lic is None or not lic.active:
                skipped += 1
                continue
            unique[lic.id] = UniqueLicense(
                id=lic.id,
                name=lic.name,
                cost_per_month=float(lic.cost_per_month),
                price_per_month=float(lic.price_per_month),
                billing_unit=lic.billing_unit,
                quantity=license_quantity(lic.billing_unit, size),
            )

    if skipped:
        logger.debug("Skipped %d license links (missing or inactive license)", skipped)
    return list(unique.values())


def license_totals(unique_licenses: Iterable[UniqueLicense]) -> Dict[str, float]:
    """Sum EK (cost × qty) and VK (price × qty) over deduplicated licenses."""
    total_cost = 0.0
    total_price = 0.0
    for lic in unique_licenses:
        total_cost += lic.total_cost
        total_price += lic.total_price
    return {"total_license_cost_ek": total_cost, "total_license_price_vk": total_price}
