"""
conftest.py — Shared pytest fixtures for the MSP Kalkulator backend test suite.

Engine tests are pure unit tests over in-memory catalogue records. API and
repository tests run against a throwaway SQLite database (aiosqlite) created
per test in ``tmp_path``.

Import-path bootstrapping:
    The ``backend/`` directory is inserted into sys.path so that all
    ``kalkulator.*`` imports resolve correctly regardless of where pytest is invoked.
"""

import asyncio
import sys
import os
import pytest

# ---------------------------------------------------------------------------
# Ensure ``backend/`` is on the import path before any kalkulator imports occur.
# ---------------------------------------------------------------------------
_BACKEND_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if _BACKEND_DIR not in sys.path:
    sys.path.insert(0, _BACKEND_DIR)

TIERS = ["basis", "gold", "allin", "allin_black"]


# ---------------------------------------------------------------------------
# Engine fixtures
# ---------------------------------------------------------------------------

@pytest.fixture(scope="session")
def costing_engine():
    """CostingEngine on the default ladder basis < gold < allin < allin_black."""
    from kalkulator.services.costing_engine import CostingEngine
    return CostingEngine(tier_levels=TIERS, reference_markup_pct=30.0)


@pytest.fixture(scope="session")
def ladder():
    from kalkulator.services.tier_engine import TierLadder
    return TierLadder(TIERS)


@pytest.fixture
def unit_size():
    """One client, one server, one user."""
    from kalkulator.models.pricing_models import CustomerSizeConfig
    return CustomerSizeConfig(clients=1, servers=1, users=1)


@pytest.fixture
def office_size():
    """A small office: 10 clients, 2 servers, 5 users."""
    from kalkulator.models.pricing_models import CustomerSizeConfig
    return CustomerSizeConfig(clients=10, servers=2, users=5)


# ---------------------------------------------------------------------------
# In-memory catalogue
# ---------------------------------------------------------------------------

@pytest.fixture
def catalogue():
    """
    A small MSP catalogue used across engine tests.

    Services:
      backup   fix,         60 min, basis
      patch    pro_client,  10 min, basis
      m365     pro_user,    30 min, gold   (legacy package_level column)
      soc      pro_server,  20 min, allin
      retired  fix,         45 min, basis  (inactive)
    Licenses:
      rmm  per_client  EK 1 / VK 3   — linked to backup and patch
      av   pro_client  EK 2 / VK 4   — linked to patch; m365 link is info only
      siem fix         EK 50 / VK 80 — linked to soc
      old  fix         EK 9 / VK 9   — inactive, linked to backup
    """
    from kalkulator.models.pricing_models import License, Service, ServiceLicenseLink

    services = [
        Service.from_record({"id": "backup", "name": "Backup Monitoring", "time_in_minutes": 60,
                             "billing_type": "fix", "min_package_level": "basis"}),
        Service.from_record({"id": "patch", "name": "Patch Management", "time_in_minutes": 10,
                             "billing_type": "pro_client", "min_package_level": "basis"}),
        Service.from_record({"id": "m365", "name": "M365 Administration", "time_in_minutes": 30,
                             "billing_type": "pro_user", "package_level": "Gold"}),
        Service.from_record({"id": "soc", "name": "SOC Monitoring", "time_in_minutes": 20,
                             "billing_type": "pro_server", "min_package_level": "allin"}),
        Service.from_record({"id": "retired", "name": "Fax Support", "time_in_minutes": 45,
                             "billing_type": "fix", "min_package_level": "basis", "active": False}),
    ]
    licenses = [
        License(id="rmm", name="RMM Agent", cost_per_month=1.0, price_per_month=3.0, billing_unit="per_client"),
        License(id="av", name="Endpoint AV", cost_per_month=2.0, price_per_month=4.0, billing_unit="pro_client"),
        License(id="siem", name="SIEM", cost_per_month=50.0, price_per_month=80.0, billing_unit="fix"),
        License(id="old", name="Legacy Tool", cost_per_month=9.0, price_per_month=9.0, billing_unit="fix",
                active=False),
    ]
    links = [
        ServiceLicenseLink("backup", "rmm", True),
        ServiceLicenseLink("backup", "old", True),
        ServiceLicenseLink("patch", "rmm", True),
        ServiceLicenseLink("patch", "av", True),
        ServiceLicenseLink("m365", "av", False),
        ServiceLicenseLink("soc", "siem", True),
        ServiceLicenseLink("soc", "deleted-license", True),
    ]
    return {"services": services, "licenses": licenses, "links": links}


# ---------------------------------------------------------------------------
# Database-backed fixtures
# ---------------------------------------------------------------------------

def _seed_rows():
    from kalkulator.models.orm_models import (
        EmployeeRow, LicenseRow, PackageConfigRow, PackageRow, ServiceLicenseRow, ServiceRow,
    )
    return [
        PackageRow(id="pkg-basis", name="Basis", order_index=1, color="#3b82f6"),
        PackageRow(id="pkg-gold", name="Gold", order_index=2, color="#eab308"),
        PackageRow(id="pkg-allin", name="Allin", order_index=3, color="#a855f7"),
        PackageRow(id="pkg-black", name="Allin Black", order_index=4, color="#1f2937"),
        EmployeeRow(id="emp-1", name="Technician A", hourly_rate=60, active=True),
        EmployeeRow(id="emp-2", name="Technician B", hourly_rate=90, active=True),
        EmployeeRow(id="emp-3", name="Former Staff", hourly_rate=200, active=False),
        ServiceRow(id="backup", name="Backup Monitoring", time_in_minutes=60, billing_type="fix",
                   min_package_level="basis"),
        ServiceRow(id="patch", name="Patch Management", time_in_minutes=10, billing_type="pro_client",
                   min_package_level="basis"),
        ServiceRow(id="m365", name="M365 Administration", time_in_minutes=30, billing_type="pro_user",
                   package_level="Gold"),
        ServiceRow(id="soc", name="SOC Monitoring", time_in_minutes=20, billing_type="pro_server",
                   min_package_level="allin"),
        LicenseRow(id="rmm", name="RMM Agent", cost_per_month=1, price_per_month=3, billing_unit="per_client"),
        LicenseRow(id="av", name="Endpoint AV", cost_per_month=2, price_per_month=4, billing_unit="pro_client"),
        ServiceLicenseRow(service_id="backup", license_id="rmm", include_cost=True),
        ServiceLicenseRow(service_id="patch", license_id="rmm", include_cost=True),
        ServiceLicenseRow(service_id="patch", license_id="av", include_cost=True),
        ServiceLicenseRow(service_id="m365", license_id="av", include_cost=False),
        PackageConfigRow(service_id="backup", package_type="basis", inclusion_type="inclusive",
                         multiplier=1.0, sla_response_time="4h", sla_availability="99.5%"),
    ]


@pytest.fixture
def session_factory(tmp_path):
    """
    async_sessionmaker bound to a seeded SQLite file database.

    NullPool keeps connections from leaking across the event loops used by
    asyncio.run and TestClient.
    """
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
    from sqlalchemy.pool import NullPool
    from kalkulator.db import create_tables

    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'catalogue.db'}", poolclass=NullPool)
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async def _setup():
        await create_tables(engine)
        async with factory() as session:
            session.add_all(_seed_rows())
            await session.commit()

    asyncio.run(_setup())
    yield factory
    asyncio.run(engine.dispose())


@pytest.fixture
def api_client(session_factory, monkeypatch):
    """TestClient with get_db routed to the seeded SQLite database."""
    monkeypatch.delenv("DATABASE_URL", raising=False)
    from fastapi.testclient import TestClient
    from kalkulator.db import get_db
    from kalkulator.main import app

    async def _get_test_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = _get_test_db
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()
