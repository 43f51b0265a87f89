"""
Package matrix — the customer-facing service × tier view.

Inclusion badges and SLA metadata come straight from PackageConfig records;
availability comes from the tier ladder so the matrix agrees with the prices.
"""

from typing import Any, Dict, Iterable, List, Optional

from kalkulator.config import DEFAULT_INCLUSION_TYPE, INCLUSION_NOT_AVAILABLE
from kalkulator.models.pricing_models import PackageConfig, Service
from kalkulator.services.tier_engine import TierLadder, index_package_configs

INCLUSION_LABELS: Dict[str, str] = {
    "inclusive": "Inklusive",
    "effort_based": "Nach Aufwand",
    "not_available": "Nicht verfügbar",
    "custom": "Benutzerdefiniert",
}

INCLUSION_ICONS: Dict[str, str] = {
    "inclusive": "✓",
    "effort_based": "🕓",
    "not_available": "✗",
    "custom": "⚙️",
}

BILLING_TYPE_LABELS: Dict[str, str] = {
    "fix": "Pauschal",
    "pro_user": "Pro Benutzer",
    "pro_server": "Pro Server",
    "pro_device": "Pro Gerät",
    "pro_client": "Pro Device",   # legacy
    "pro_site": "Pro Site",
    "per_tb": "Per TB",
}


def inclusion_label(inclusion_type: str) -> str:
    return INCLUSION_LABELS.get(inclusion_type, inclusion_type)


def billing_type_label(billing_type: str) -> str:
    """Display label for a billing type; unknown types pass through unchanged."""
    return BILLING_TYPE_LABELS.get(billing_type, billing_type)


def _cell(inclusion_type: str, cfg: Optional[PackageConfig]) -> Dict[str, Any]:
    return {
        "inclusion_type": inclusion_type,
        "label": inclusion_label(inclusion_type),
        "icon": INCLUSION_ICONS.get(inclusion_type, ""),
        "sla_response_time": cfg.sla_response_time if cfg else None,
        "sla_availability": cfg.sla_availability if cfg else None,
        "custom_description": cfg.custom_description if cfg else None,
    }


def build_package_matrix(
    services: Iterable[Service],
    package_configs: Iterable[PackageConfig],
    ladder: TierLadder,
) -> List[Dict[str, Any]]:
    """
    One row per active service with a cell per tier.

    A tier where the service is not eligible shows not_available. An eligible
    tier shows its config's inclusion type, or effort_based without a config.
    """
    configs = index_package_configs(package_configs)
    rows: List[Dict[str, Any]] = []
    for service in services:
        if not service.active:
            continue
        tiers: Dict[str, Dict[str, Any]] = {}
        for idx, level in enumerate(ladder.levels):
            cfg = configs.get((service.id, level))
            if not ladder.is_eligible(service, idx, configs):
                tiers[level] = _cell(INCLUSION_NOT_AVAILABLE, cfg)
            elif cfg is not None:
                tiers[level] = _cell(cfg.inclusion_type, cfg)
            else:
                tiers[level] = _cell(DEFAULT_INCLUSION_TYPE, None)
        rows.append({
            "service_id": service.id,
            "service_name": service.name,
            "description": service.description,
            "product_name": service.product_name,
            "billing_type": service.billing_type,
            "billing_type_label": billing_type_label(service.billing_type),
            "min_package_level": service.min_package_level or ladder.lowest,
            "tiers": tiers,
        })
    return rows
