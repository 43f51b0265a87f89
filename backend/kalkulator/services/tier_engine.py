"""
Tier engine — package ladder resolution and service eligibility.

Covers:
  - Tier name normalisation ("Allin Black" == "allin black" == "allin_black")
  - Ladder position lookup (unknown tier → None, never tier 0)
  - Ladder construction from active Package rows (order_index)
  - Service eligibility per tier: cumulative inheritance from the service's
    minimum package level, individually revocable via not_available configs
"""

import logging
import re
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from kalkulator.config import INCLUSION_NOT_AVAILABLE, get_tier_levels
from kalkulator.models.pricing_models import Package, PackageConfig, Service

logger = logging.getLogger("kalkulator-pricing.tiers")

_WHITESPACE = re.compile(r"\s+")


def normalize_tier_name(tier_name: Optional[str]) -> str:
    """Lower-case and collapse whitespace runs to underscores."""
    if not tier_name:
        return ""
    return _WHITESPACE.sub("_", tier_name.strip().lower())


def tier_index(tier_levels: Sequence[str], tier_name: Optional[str]) -> Optional[int]:
    """
    Return the ladder position of ``tier_name`` or None when it is not on the ladder.

    Both the ladder entries and the requested name are normalised, so callers
    may pass display names straight from the package table.
    """
    wanted = normalize_tier_name(tier_name)
    if not wanted:
        return None
    for idx, level in enumerate(tier_levels):
        if normalize_tier_name(level) == wanted:
            return idx
    return None


def ladder_from_packages(packages: Iterable[Package]) -> List[str]:
    """Build the ladder from active packages ordered by order_index (ties keep input order)."""
    active = [p for p in packages if p.active]
    ordered = sorted(enumerate(active), key=lambda pair: (pair[1].order_index, pair[0]))
    return [normalize_tier_name(p.name) for _, p in ordered]


def index_package_configs(
    package_configs: Iterable[PackageConfig],
) -> Dict[Tuple[str, str], PackageConfig]:
    """Key configs by (service_id, normalised package_type); later rows replace earlier ones."""
    return {
        (cfg.service_id, normalize_tier_name(cfg.package_type)): cfg
        for cfg in package_configs
    }


class TierLadder:
    """
    Ordered package ladder plus the eligibility rules that ride on it.

    The ladder defaults to the configured tiers (``PACKAGE_TIERS`` env var or
    basis < gold < allin < allin_black).
    """

    def __init__(self, tier_levels: Optional[Sequence[str]] = None) -> None:
        levels = tier_levels if tier_levels else get_tier_levels()
        self.levels: List[str] = [normalize_tier_name(t) for t in levels]

    @classmethod
    def from_packages(cls, packages: Iterable[Package]) -> "TierLadder":
        levels = ladder_from_packages(packages)
        return cls(levels or None)

    @property
    def lowest(self) -> str:
        return self.levels[0]

    def index_of(self, tier_name: Optional[str]) -> Optional[int]:
        return tier_index(self.levels, tier_name)

    def __contains__(self, tier_name: object) -> bool:
        return isinstance(tier_name, str) and self.index_of(tier_name) is not None

    def __iter__(self):
        return iter(self.levels)

    def __len__(self) -> int:
        return len(self.levels)

    # ------------------------------------------------------------------
    # Eligibility
    # ------------------------------------------------------------------

    def is_eligible(
        self,
        service: Service,
        target_index: int,
        configs: Dict[Tuple[str, str], PackageConfig],
    ) -> bool:
        """Decide one service against a resolved target tier. ``configs`` comes from index_package_configs."""
        if not service.active:
            return False

        # An explicit config for the exact tier decides on its own
        exact = configs.get((service.id, self.levels[target_index]))
        if exact is not None:
            return exact.inclusion_type != INCLUSION_NOT_AVAILABLE

        min_index = self.index_of(service.min_package_level or self.lowest)
        if min_index is None or min_index > target_index:
            return False

        # Revocation at any inherited tier sticks for every tier above it
        for level in self.levels[min_index:target_index + 1]:
            cfg = configs.get((service.id, level))
            if cfg is not None and cfg.inclusion_type == INCLUSION_NOT_AVAILABLE:
                return False
        return True

    def eligible_services(
        self,
        services: Iterable[Service],
        package_configs: Iterable[PackageConfig],
        target_tier: str,
    ) -> List[Service]:
        """
        Return the active services available at ``target_tier``, in input order.

        Rules, in precedence order:
            1. Inactive services are never eligible.
            2. Unknown target tier → empty list.
            3. A config for (service, target tier) decides alone:
               not_available excludes, any other inclusion type includes.
            4. The service's minimum level (default: lowest tier) must be
               resolvable and at or below the target.
            5. A not_available config anywhere from the minimum level up to the
               target excludes the service.
        """
        return self.eligible_from_index(services, index_package_configs(package_configs), target_tier)

    def eligible_from_index(
        self,
        services: Iterable[Service],
        configs: Dict[Tuple[str, str], PackageConfig],
        target_tier: str,
    ) -> List[Service]:
        """eligible_services over a prebuilt index_package_configs mapping."""
        target_index = self.index_of(target_tier)
        if target_index is None:
            logger.warning("Unknown package tier %r — no services eligible", target_tier)
            return []
        return [s for s in services if self.is_eligible(s, target_index, configs)]


def eligible_services(
    services: Iterable[Service],
    package_configs: Iterable[PackageConfig],
    target_tier: str,
    tier_levels: Optional[Sequence[str]] = None,
) -> List[Service]:
    """Module-level convenience wrapper around TierLadder.eligible_services."""
    return TierLadder(tier_levels).eligible_services(services, package_configs, target_tier)
