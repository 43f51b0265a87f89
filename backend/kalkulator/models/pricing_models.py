"""
Immutable catalogue records and calculation results for the pricing engine.

Catalogue records are materialised once from the catalogue store (see
``Service.from_record`` and friends) and passed to the engines as plain
collections. Engines never mutate them; every calculation returns new values.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from kalkulator.config import DEFAULT_INCLUSION_TYPE


def _opt_float(value: Any) -> Optional[float]:
    return None if value is None else float(value)


def _opt_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


# ---------------------------------------------------------------------------
# Catalogue records
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Service:
    """A billable service. ``min_package_level`` is the first tier offering it."""
    id: str
    name: str
    time_in_minutes: int = 0
    billing_type: str = "fix"
    min_package_level: Optional[str] = None
    active: bool = True
    description: Optional[str] = None
    product_name: Optional[str] = None

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Service":
        """
        Build a Service from a store row (dict-like).

        The legacy ``package_level`` column is folded into ``min_package_level``
        here so no call site has to repeat the fallback.
        """
        min_level = _opt_str(record.get("min_package_level")) or _opt_str(record.get("package_level"))
        return cls(
            id=str(record["id"]),
            name=str(record.get("name", "")),
            time_in_minutes=max(0, int(record.get("time_in_minutes") or 0)),
            billing_type=str(record.get("billing_type") or "fix"),
            min_package_level=min_level,
            active=bool(record.get("active", True)),
            description=_opt_str(record.get("description")),
            product_name=_opt_str(record.get("product_name")),
        )


@dataclass(frozen=True)
class License:
    id: str
    name: str
    cost_per_month: float = 0.0
    price_per_month: float = 0.0
    billing_unit: str = "fix"
    category: Optional[str] = None
    active: bool = True

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "License":
        return cls(
            id=str(record["id"]),
            name=str(record.get("name", "")),
            cost_per_month=float(record.get("cost_per_month") or 0.0),
            price_per_month=float(record.get("price_per_month") or 0.0),
            billing_unit=str(record.get("billing_unit") or "fix"),
            category=_opt_str(record.get("category")),
            active=bool(record.get("active", True)),
        )


@dataclass(frozen=True)
class ServiceLicenseLink:
    """Many-to-many service ↔ license association; only include_cost links are billed."""
    service_id: str
    license_id: str
    include_cost: bool = True

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "ServiceLicenseLink":
        return cls(
            service_id=str(record["service_id"]),
            license_id=str(record["license_id"]),
            include_cost=bool(record.get("include_cost", True)),
        )


@dataclass(frozen=True)
class PackageConfig:
    """Per (service, package tier) override. At most one per pair."""
    service_id: str
    package_type: str
    inclusion_type: str = DEFAULT_INCLUSION_TYPE
    multiplier: Optional[float] = 1.0
    hourly_rate_surcharge: Optional[float] = None   # percent
    sla_response_time: Optional[str] = None
    sla_availability: Optional[str] = None
    custom_description: Optional[str] = None
    notes: Optional[str] = None
    id: Optional[str] = None

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "PackageConfig":
        return cls(
            id=_opt_str(record.get("id")),
            service_id=str(record["service_id"]),
            package_type=str(record["package_type"]),
            inclusion_type=str(record.get("inclusion_type") or DEFAULT_INCLUSION_TYPE),
            multiplier=_opt_float(record.get("multiplier")),
            hourly_rate_surcharge=_opt_float(record.get("hourly_rate_surcharge")),
            sla_response_time=_opt_str(record.get("sla_response_time")),
            sla_availability=_opt_str(record.get("sla_availability")),
            custom_description=_opt_str(record.get("custom_description")),
            notes=_opt_str(record.get("notes")),
        )


@dataclass(frozen=True)
class Package:
    """Tier definition; active packages ordered by order_index form the ladder."""
    name: str
    order_index: int = 1
    color: Optional[str] = None
    active: bool = True
    id: Optional[str] = None

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Package":
        return cls(
            id=_opt_str(record.get("id")),
            name=str(record["name"]),
            order_index=int(record["order_index"]) if record.get("order_index") is not None else 1,
            color=_opt_str(record.get("color")),
            active=bool(record.get("active", True)),
        )


@dataclass(frozen=True)
class Employee:
    id: str
    name: str
    hourly_rate: float = 0.0
    active: bool = True

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Employee":
        return cls(
            id=str(record["id"]),
            name=str(record.get("name", "")),
            hourly_rate=float(record.get("hourly_rate") or 0.0),
            active=bool(record.get("active", True)),
        )


@dataclass(frozen=True)
class CustomerSizeConfig:
    clients: int = 0
    servers: int = 0
    users: int = 0

    def __post_init__(self) -> None:
        for name in ("clients", "servers", "users"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be non-negative; received {getattr(self, name)}")

    def quantity_for(self, size_field: Optional[str]) -> int:
        """Return the size metric named by ``size_field``; 1 for flat-fee items."""
        if size_field is None:
            return 1
        return int(getattr(self, size_field))


# ---------------------------------------------------------------------------
# Calculation results
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class UniqueLicense:
    id: str
    name: str
    cost_per_month: float
    price_per_month: float
    billing_unit: str
    quantity: int

    @property
    def total_cost(self) -> float:
        return self.cost_per_month * self.quantity

    @property
    def total_price(self) -> float:
        return self.price_per_month * self.quantity

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ServiceCost:
    """Time cost of one service inside one tier, after package overrides."""
    service: Service
    inclusion_type: str
    base_time_cost: float
    adjusted_time_cost: float
    is_included: bool
    hourly_rate_multiplier: float
    package_config: Optional[PackageConfig] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "service_id": self.service.id,
            "service_name": self.service.name,
            "billing_type": self.service.billing_type,
            "inclusion_type": self.inclusion_type,
            "base_time_cost": self.base_time_cost,
            "adjusted_time_cost": self.adjusted_time_cost,
            "is_included": self.is_included,
            "hourly_rate_multiplier": self.hourly_rate_multiplier,
            "sla_response_time": self.package_config.sla_response_time if self.package_config else None,
            "sla_availability": self.package_config.sla_availability if self.package_config else None,
        }


@dataclass(frozen=True)
class PackageCostCalculation:
    tier_name: str
    unique_licenses: List[UniqueLicense] = field(default_factory=list)
    service_costs: List[ServiceCost] = field(default_factory=list)
    total_license_cost_ek: float = 0.0
    total_license_price_vk: float = 0.0
    total_inclusive_time_cost: float = 0.0
    total_effort_based_time_cost: float = 0.0
    total_time_cost: float = 0.0
    total_cost_ek: float = 0.0
    total_price_vk: float = 0.0

    def totals(self) -> Dict[str, float]:
        return {
            "total_license_cost_ek": self.total_license_cost_ek,
            "total_license_price_vk": self.total_license_price_vk,
            "total_inclusive_time_cost": self.total_inclusive_time_cost,
            "total_effort_based_time_cost": self.total_effort_based_time_cost,
            "total_time_cost": self.total_time_cost,
            "total_cost_ek": self.total_cost_ek,
            "total_price_vk": self.total_price_vk,
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tier_name": self.tier_name,
            **self.totals(),
            "unique_licenses": [lic.to_dict() for lic in self.unique_licenses],
            "service_costs": [sc.to_dict() for sc in self.service_costs],
        }
