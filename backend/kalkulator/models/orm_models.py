"""ORM Models for the MSP Kalkulator catalogue store — SQLAlchemy 2.0"""
import uuid
from datetime import datetime
from typing import Any, Optional
from sqlalchemy import (
    JSON, String, Text, Boolean, Integer, Numeric, DateTime,
    ForeignKey, UniqueConstraint, Index
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func
from kalkulator.db import Base


def gen_uuid():
    return str(uuid.uuid4())


# ── EMPLOYEES ────────────────────────────────────────────────────────────────
class EmployeeRow(Base):
    __tablename__ = "employees"
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=gen_uuid)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    hourly_rate: Mapped[float] = mapped_column(Numeric(10, 2), default=0)
    active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())


# ── LICENSES ─────────────────────────────────────────────────────────────────
class LicenseRow(Base):
    __tablename__ = "licenses"
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=gen_uuid)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    category: Mapped[Optional[str]] = mapped_column(String(100))
    cost_per_month: Mapped[float] = mapped_column(Numeric(12, 2), default=0)    # EK
    price_per_month: Mapped[float] = mapped_column(Numeric(12, 2), default=0)   # VK
    billing_unit: Mapped[str] = mapped_column(String(50), default="fix")
    active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())


# ── SERVICES ─────────────────────────────────────────────────────────────────
class ServiceRow(Base):
    __tablename__ = "services"
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=gen_uuid)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    product_name: Mapped[Optional[str]] = mapped_column(String(255))
    time_in_minutes: Mapped[int] = mapped_column(Integer, default=0)
    billing_type: Mapped[str] = mapped_column(String(50), default="fix")
    min_package_level: Mapped[Optional[str]] = mapped_column(String(50))
    # Legacy column, read only as a fallback for min_package_level
    package_level: Mapped[Optional[str]] = mapped_column(String(50))
    active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    license_links: Mapped[list["ServiceLicenseRow"]] = relationship(
        "ServiceLicenseRow", back_populates="service", cascade="all, delete-orphan"
    )


class ServiceLicenseRow(Base):
    __tablename__ = "service_licenses"
    __table_args__ = (UniqueConstraint("service_id", "license_id", name="uq_service_license"),)
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=gen_uuid)
    service_id: Mapped[str] = mapped_column(String(36), ForeignKey("services.id", ondelete="CASCADE"), nullable=False)
    license_id: Mapped[str] = mapped_column(String(36), ForeignKey("licenses.id", ondelete="CASCADE"), nullable=False)
    include_cost: Mapped[bool] = mapped_column(Boolean, default=True)
    service: Mapped["ServiceRow"] = relationship("ServiceRow", back_populates="license_links")


# ── PACKAGES ─────────────────────────────────────────────────────────────────
class PackageRow(Base):
    __tablename__ = "packages"
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=gen_uuid)
    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    order_index: Mapped[int] = mapped_column(Integer, default=1)
    color: Mapped[Optional[str]] = mapped_column(String(20))
    active: Mapped[bool] = mapped_column(Boolean, default=True)


class PackageConfigRow(Base):
    __tablename__ = "package_configs"
    __table_args__ = (
        UniqueConstraint("service_id", "package_type", name="uq_package_config_service_type"),
        Index("ix_package_configs_package_type", "package_type"),
    )
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=gen_uuid)
    service_id: Mapped[str] = mapped_column(String(36), ForeignKey("services.id", ondelete="CASCADE"), nullable=False)
    # Stored normalised (lower-case, underscores) so the unique constraint holds across spellings
    package_type: Mapped[str] = mapped_column(String(50), nullable=False)
    multiplier: Mapped[Optional[float]] = mapped_column(Numeric(8, 4), default=1.0)
    inclusion_type: Mapped[str] = mapped_column(String(30), default="effort_based")
    sla_response_time: Mapped[Optional[str]] = mapped_column(String(100))
    sla_availability: Mapped[Optional[str]] = mapped_column(String(100))
    hourly_rate_surcharge: Mapped[Optional[float]] = mapped_column(Numeric(8, 2))
    custom_description: Mapped[Optional[str]] = mapped_column(Text)
    notes: Mapped[Optional[str]] = mapped_column(Text)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )


# ── SAVED OFFERS ─────────────────────────────────────────────────────────────
class SavedOfferRow(Base):
    __tablename__ = "saved_offers"
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=gen_uuid)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    company_name: Mapped[Optional[str]] = mapped_column(String(255))
    clients: Mapped[int] = mapped_column(Integer, default=0)
    servers: Mapped[int] = mapped_column(Integer, default=0)
    users: Mapped[int] = mapped_column(Integer, default=0)
    selected_packages: Mapped[Any] = mapped_column(JSON, default=list)
    calculation_results: Mapped[Any] = mapped_column(JSON, default=dict)
    notes: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
