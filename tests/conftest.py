"""
Shared pytest fixtures for the recovery engine test suite.

Provides:
  - ``in_memory_db``: A fresh in-memory SQLite connection with the full
    schema applied. Created anew for each test that requests it.
  - ``make_household`` / ``make_material``: factories that fill every
    required field so tests only spell out what they care about.
  - ``sample_zones``, ``sample_materials``, ``sample_households``: a small
    consistent snapshot used across the ledger, generator and DB tests.
"""

from __future__ import annotations

import sqlite3
from datetime import datetime, timezone
from typing import Any, Callable, Generator

import pytest

from recovery_engine.db.schema import apply_schema
from recovery_engine.models.household import Household, Zone
from recovery_engine.models.material import Donation, Material
from recovery_engine.taxonomy.case_taxonomy import CaseType, PriorityTier, TerminalStatus


# ── Database fixture ──────────────────────────────────────────────────────────

@pytest.fixture
def in_memory_db() -> Generator[sqlite3.Connection, None, None]:
    """Yield a fresh in-memory SQLite connection with the full schema applied.

    Foreign key enforcement is ON. Connection is closed after the test.
    """
    conn = sqlite3.connect(":memory:")
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON;")
    apply_schema(conn)
    yield conn
    conn.close()


# ── Factories ─────────────────────────────────────────────────────────────────

@pytest.fixture
def make_household() -> Callable[..., Household]:
    """Build a ``Household`` with defaults for every required field."""
    counter = {"n": 0}

    def _make(**overrides: Any) -> Household:
        counter["n"] += 1
        n = counter["n"]
        fields: dict[str, Any] = {
            "household_id": f"h{n}",
            "household_code": f"HH-{n:04d}",
            "head_of_household": f"Head {n}",
            "family_size": 3,
            "case_type": CaseType.REPAIR,
            "damage_areas": ["ROOF"],
        }
        fields.update(overrides)
        if fields["case_type"] == CaseType.REBUILD and "damage_areas" not in overrides:
            fields["damage_areas"] = []
        return Household(**fields)

    return _make


@pytest.fixture
def make_material() -> Callable[..., Material]:
    """Build a ``Material`` with defaults for every required field."""

    def _make(material_id: str, category: str = "ROOF", **overrides: Any) -> Material:
        fields: dict[str, Any] = {
            "material_id": material_id,
            "name": material_id.title(),
            "category": category,
            "unit": "unit",
            "total_demand": 100,
            "total_donated": 0,
        }
        fields.update(overrides)
        return Material(**fields)

    return _make


# ── Sample snapshot ───────────────────────────────────────────────────────────

@pytest.fixture
def sample_zones() -> list[Zone]:
    return [
        Zone(zone_id="z1", name="คลองแห", gps_lat=7.0280, gps_lng=100.4740),
        Zone(zone_id="z2", name="คอหงส์", gps_lat=7.0070, gps_lng=100.5010),
        Zone(zone_id="z3", name="ควนลัง", gps_lat=6.9850, gps_lng=100.4350),
    ]


@pytest.fixture
def sample_materials() -> list[Material]:
    """Catalog in store order: three ROOF, two WALL, one PAINT material."""
    return [
        Material(material_id="m1", name="Zinc sheet", category="ROOF", unit="sheet",
                 total_demand=1200, total_donated=600),
        Material(material_id="m2", name="Nail", category="ROOF", unit="kg",
                 total_demand=300, total_donated=300),
        Material(material_id="m3", name="Ridge cap", category="ROOF", unit="piece",
                 total_demand=150, total_donated=0),
        Material(material_id="m4", name="Cement", category="WALL", unit="bag",
                 total_demand=800, total_donated=200),
        Material(material_id="m5", name="Concrete block", category="WALL", unit="block",
                 total_demand=500, total_donated=100),
        Material(material_id="m6", name="Exterior paint", category="PAINT", unit="gallon",
                 total_demand=250, total_donated=250),
    ]


@pytest.fixture
def sample_households() -> list[Household]:
    """Five households across zones z1/z2 covering every review state."""
    return [
        Household(
            household_id="h1", household_code="HH-0001", head_of_household="Somchai",
            zone_id="z1", family_size=5, case_type=CaseType.REBUILD,
            elderly_count=2, children_count=2, priority=PriorityTier.HIGH,
        ),
        Household(
            household_id="h2", household_code="HH-0002", head_of_household="Somsri",
            zone_id="z1", family_size=3, case_type=CaseType.REPAIR,
            damage_areas=["ROOF", "WALL"], priority=PriorityTier.MEDIUM,
        ),
        Household(
            household_id="h3", household_code="HH-0003", head_of_household="Prayut",
            zone_id="z2", family_size=4, case_type=CaseType.REPAIR,
            damage_areas=["ROOF"], priority=PriorityTier.LOW,
            admin_approved=True,
            approved_at=datetime(2026, 1, 10, 3, 15, tzinfo=timezone.utc),
        ),
        Household(
            household_id="h4", household_code="HH-0004", head_of_household="Wilai",
            zone_id="z1", family_size=2, case_type=CaseType.REPAIR,
            damage_areas=["PAINT"], status=TerminalStatus.REJECTED.value,
            priority=PriorityTier.LOW,
        ),
        Household(
            household_id="h5", household_code="HH-0005", head_of_household="Boonmee",
            zone_id="z2", family_size=4, case_type=CaseType.REPAIR,
            damage_areas=["WALL"], status=TerminalStatus.COMPLETED.value,
            progress=100, priority=PriorityTier.HIGH,
        ),
    ]


@pytest.fixture
def sample_donation() -> Donation:
    return Donation(
        donor_name="Thai Materials Co.",
        donor_type="company",
        material_id="m1",
        quantity=450,
        unit="sheet",
        received_at=datetime(2025, 12, 2, 2, 0, tzinfo=timezone.utc),
    )
