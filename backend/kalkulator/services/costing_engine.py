"""
CostingEngine — package pricing engine for managed-service bundles.

Covers:
  - Service time cost (minutes × avg cost per minute × size-driven quantity)
  - Package override resolution (inclusion type, multiplier, hourly surcharge)
  - Package cost rollup per tier (EK = time + license cost, VK = time + license price)
  - All-tier enumeration for the calculator view
  - Markup and margin helpers for the quote and cost-analysis views

All amounts are monthly and in the catalogue currency. The engine is pure:
it reads its arguments and returns new result objects.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence

from kalkulator.config import (
    DEFAULT_INCLUSION_TYPE,
    DEFAULT_MULTIPLIER,
    INCLUSION_EFFORT_BASED,
    INCLUSION_INCLUSIVE,
    INCLUSION_NOT_AVAILABLE,
    REFERENCE_MARKUP_PCT,
    SERVICE_QUANTITY_FIELDS,
)
from kalkulator.models.pricing_models import (
    CustomerSizeConfig,
    License,
    PackageConfig,
    PackageCostCalculation,
    Service,
    ServiceCost,
    ServiceLicenseLink,
)
from kalkulator.services.license_engine import license_totals, unique_license_costs
from kalkulator.services.tier_engine import TierLadder, index_package_configs, normalize_tier_name

logger = logging.getLogger("kalkulator-pricing")


def service_quantity(billing_type: Optional[str], size: CustomerSizeConfig) -> int:
    """
    Quantity for a service billing type (case-insensitive).

        pro_client / pro_device → clients
        pro_server              → servers
        pro_user                → users
        fix / pro_site / per_tb / anything else → 1

    pro_site and per_tb have no metric on CustomerSizeConfig and are billed once.
    """
    return size.quantity_for(SERVICE_QUANTITY_FIELDS.get((billing_type or "").lower()))


def find_package_config(
    service_id: str,
    package_configs: Iterable[PackageConfig],
    tier_name: str,
) -> Optional[PackageConfig]:
    """
    Return the config for (service, tier), matching package_type case-insensitively.

    Records that differ only in spelling ("Gold" / "gold") resolve to the last
    one, the same record the eligibility filter reads.
    """
    return index_package_configs(package_configs).get((service_id, normalize_tier_name(tier_name)))


class CostingEngine:
    """
    Pricing engine for MSP package tiers.

    Holds only the tier ladder and the reference markup; every calculation
    takes the catalogue snapshot as arguments.
    """

    # ------------------------------------------------------------------
    # Initialisation
    # ------------------------------------------------------------------

    def __init__(
        self,
        tier_levels: Optional[Sequence[str]] = None,
        reference_markup_pct: Optional[float] = None,
    ) -> None:
        self.ladder = TierLadder(tier_levels)
        self.reference_markup_pct: float = float(
            REFERENCE_MARKUP_PCT if reference_markup_pct is None else reference_markup_pct
        )

    # ------------------------------------------------------------------
    # 1. Service time cost
    # ------------------------------------------------------------------

    def time_cost(
        self,
        service: Service,
        avg_cost_per_minute: float,
        size: CustomerSizeConfig,
    ) -> float:
        """
        Raw time-based cost of one service before package overrides.

        Formula:
            cost = time_in_minutes × avg_cost_per_minute × quantity(billing_type)
        """
        quantity = service_quantity(service.billing_type, size)
        return float(service.time_in_minutes or 0) * float(avg_cost_per_minute) * quantity

    # ------------------------------------------------------------------
    # 2. Package override resolution
    # ------------------------------------------------------------------

    def resolve_override(
        self,
        service: Service,
        package_configs: Iterable[PackageConfig],
        tier_name: str,
        base_time_cost: float,
    ) -> ServiceCost:
        """
        Apply the (service, tier) package config to a base time cost.

        Without a config the service is effort_based at multiplier 1.0.
            hourly_rate_multiplier = 1 + surcharge_pct / 100
            adjusted = base × multiplier × hourly_rate_multiplier
        not_available forces the adjusted cost to 0. Under correct use the
        eligibility filter has already dropped such services; the zeroing
        covers callers that resolve services outside the filter's output.
        """
        cfg = find_package_config(service.id, package_configs, tier_name)
        return self.apply_config(service, cfg, base_time_cost)

    def apply_config(
        self,
        service: Service,
        cfg: Optional[PackageConfig],
        base_time_cost: float,
    ) -> ServiceCost:
        """Apply an already resolved config (or None) to a base time cost."""
        inclusion_type = cfg.inclusion_type if cfg and cfg.inclusion_type else DEFAULT_INCLUSION_TYPE
        multiplier = DEFAULT_MULTIPLIER
        surcharge_pct = 0.0
        if cfg is not None:
            if cfg.multiplier is not None:
                multiplier = float(cfg.multiplier)
            if cfg.hourly_rate_surcharge is not None:
                surcharge_pct = float(cfg.hourly_rate_surcharge)

        hourly_rate_multiplier = 1.0 + surcharge_pct / 100.0
        adjusted = base_time_cost * multiplier * hourly_rate_multiplier
        if inclusion_type == INCLUSION_NOT_AVAILABLE:
            adjusted = 0.0

        return ServiceCost(
            service=service,
            package_config=cfg,
            inclusion_type=inclusion_type,
            base_time_cost=base_time_cost,
            adjusted_time_cost=adjusted,
            is_included=inclusion_type == INCLUSION_INCLUSIVE,
            hourly_rate_multiplier=hourly_rate_multiplier,
        )

    # ------------------------------------------------------------------
    # 3. Package cost rollup
    # ------------------------------------------------------------------

    def calculate_package_costs(
        self,
        tier_name: str,
        services: Iterable[Service],
        licenses: Iterable[License],
        service_license_links: Iterable[ServiceLicenseLink],
        package_configs: Iterable[PackageConfig],
        avg_cost_per_minute: float,
        size: CustomerSizeConfig,
    ) -> PackageCostCalculation:
        """
        Full EK/VK rollup for one package tier.

        Steps:
            - eligible services for the tier (inheritance + revocation)
            - deduplicated licenses of the eligible services
            - per-service override; inclusive and effort_based costs go into
              their buckets, custom / not_available are reported but not summed
            - total_time_cost = inclusive + effort_based
            - total_cost_ek  = total_time_cost + Σ license cost × qty
            - total_price_vk = total_time_cost + Σ license price × qty

        An unknown tier yields an all-zero calculation.
        """
        # One lookup for eligibility and overrides so both read the same record
        configs_index = index_package_configs(package_configs)
        tier_key = normalize_tier_name(tier_name)
        eligible = self.ladder.eligible_from_index(services, configs_index, tier_name)
        if not eligible:
            return PackageCostCalculation(tier_name=tier_name)

        unique_licenses = unique_license_costs(eligible, service_license_links, licenses, size)
        lic_totals = license_totals(unique_licenses)

        service_costs: List[ServiceCost] = []
        inclusive_total = 0.0
        effort_total = 0.0
        for service in eligible:
            base = self.time_cost(service, avg_cost_per_minute, size)
            sc = self.apply_config(service, configs_index.get((service.id, tier_key)), base)
            service_costs.append(sc)
            if sc.is_included:
                inclusive_total += sc.adjusted_time_cost
            elif sc.inclusion_type == INCLUSION_EFFORT_BASED:
                effort_total += sc.adjusted_time_cost

        total_time_cost = inclusive_total + effort_total

        logger.debug(
            "Package costs calculated",
            extra={"tier": tier_name, "services": len(eligible), "licenses": len(unique_licenses)},
        )

        return PackageCostCalculation(
            tier_name=tier_name,
            unique_licenses=unique_licenses,
            service_costs=service_costs,
            total_license_cost_ek=lic_totals["total_license_cost_ek"],
            total_license_price_vk=lic_totals["total_license_price_vk"],
            total_inclusive_time_cost=inclusive_total,
            total_effort_based_time_cost=effort_total,
            total_time_cost=total_time_cost,
            total_cost_ek=total_time_cost + lic_totals["total_license_cost_ek"],
            total_price_vk=total_time_cost + lic_totals["total_license_price_vk"],
        )

    # ------------------------------------------------------------------
    # 4. All-tier enumeration
    # ------------------------------------------------------------------

    def calculate_all_tiers(
        self,
        services: Iterable[Service],
        licenses: Iterable[License],
        service_license_links: Iterable[ServiceLicenseLink],
        package_configs: Iterable[PackageConfig],
        avg_cost_per_minute: float,
        size: CustomerSizeConfig,
        tiers: Optional[Sequence[str]] = None,
    ) -> Dict[str, PackageCostCalculation]:
        """Calculate every requested tier (default: the whole ladder), keyed by tier name."""
        services = list(services)
        licenses = list(licenses)
        links = list(service_license_links)
        configs = list(package_configs)

        results: Dict[str, PackageCostCalculation] = {}
        for tier in (tiers if tiers is not None else self.ladder.levels):
            results[tier] = self.calculate_package_costs(
                tier, services, licenses, links, configs, avg_cost_per_minute, size
            )
        return results

    # ------------------------------------------------------------------
    # 5. Markup and margin helpers (presentation layer)
    # ------------------------------------------------------------------

    def apply_markup(self, total_cost_ek: float, markup_pct: float) -> Dict[str, Any]:
        """
        Quote price on top of EK.

        Formula:
            price_with_markup = total_cost_ek × (1 + markup_pct / 100)
        """
        price = total_cost_ek * (1.0 + float(markup_pct) / 100.0)
        return {
            "total_cost_ek": round(total_cost_ek, 2),
            "markup_pct": round(float(markup_pct), 2),
            "markup_amount": round(price - total_cost_ek, 2),
            "price_with_markup": round(price, 2),
        }

    def margin_analysis(
        self,
        calculation: PackageCostCalculation,
        reference_markup_pct: Optional[float] = None,
    ) -> Dict[str, Any]:
        """
        Internal EK/VK/margin breakdown for one tier.

            margin     = total_price_vk − total_cost_ek
            margin_pct = margin / total_cost_ek × 100   (0 when EK is 0)
        The reference price applies the fixed cost-analysis markup to EK.
        """
        markup = self.reference_markup_pct if reference_markup_pct is None else float(reference_markup_pct)
        cost = calculation.total_cost_ek
        price = calculation.total_price_vk
        margin = price - cost
        margin_pct = margin / cost * 100.0 if cost > 0 else 0.0

        return {
            "tier_name": calculation.tier_name,
            "total_cost_ek": round(cost, 2),
            "total_price_vk": round(price, 2),
            "margin": round(margin, 2),
            "margin_pct": round(margin_pct, 2),
            "reference_markup_pct": round(markup, 2),
            "reference_price": round(cost * (1.0 + markup / 100.0), 2),
            "service_count": len(calculation.service_costs),
            "license_count": len(calculation.unique_licenses),
            "time_cost": round(calculation.total_time_cost, 2),
            "license_cost_ek": round(calculation.total_license_cost_ek, 2),
            "license_price_vk": round(calculation.total_license_price_vk, 2),
        }
