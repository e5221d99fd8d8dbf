"""
Seed data loader: JSON file -> validated models -> SQLite.

File format
-----------
One JSON object with four optional arrays::

    {
      "zones":      [{"zone_id": "z1", "name": "Khlong Hae", "gps_lat": 7.028, "gps_lng": 100.474}],
      "materials":  [{"material_id": "m1", "name": "Zinc sheet", "category": "ROOF",
                      "unit": "sheet", "total_demand": 1200}],
      "households": [{"household_id": "h1", "household_code": "HH-0001", ...}],
      "donations":  [{"donor_name": "...", "material_id": "m1", "quantity": 50,
                      "unit": "sheet", "received_at": "2025-12-01T09:00:00+07:00"}]
    }

Validation rules
----------------
- Every record must validate against its model.
- Duplicate ids within one array are rejected.
- ``households[].zone_id`` must reference a zone in the file (or be null).
- ``donations[].material_id`` must reference a material in the file.
- Households without a ``priority`` get one from the case classifier.

All records are validated before anything is written. If any fail, a single
``CaseValidationError`` lists the first 10 failures.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ValidationError

from recovery_engine.classification.classifier import classify_priority
from recovery_engine.classification.rules import DEFAULT_PRIORITY_POLICY, PriorityPolicy
from recovery_engine.db.repositories.household_repo import HouseholdRepository
from recovery_engine.db.repositories.material_repo import DonationRepository, MaterialRepository
from recovery_engine.db.repositories.zone_repo import ZoneRepository
from recovery_engine.errors import CaseValidationError
from recovery_engine.models.household import Household, Zone
from recovery_engine.models.material import Donation, Material

logger = logging.getLogger(__name__)

_MAX_ERRORS_SHOWN = 10


@dataclass
class SeedData:
    """Validated contents of a seed file."""

    zones:      list[Zone] = field(default_factory=list)
    materials:  list[Material] = field(default_factory=list)
    households: list[Household] = field(default_factory=list)
    donations:  list[Donation] = field(default_factory=list)

    def counts(self) -> dict[str, int]:
        return {
            "zones": len(self.zones),
            "materials": len(self.materials),
            "households": len(self.households),
            "donations": len(self.donations),
        }


def parse_seed(
    path:   Path,
    policy: PriorityPolicy = DEFAULT_PRIORITY_POLICY,
) -> SeedData:
    """Read and validate a seed JSON file.

    Raises:
        FileNotFoundError:   If ``path`` does not exist.
        CaseValidationError: If the file is malformed or any record fails.
    """
    if not path.exists():
        raise FileNotFoundError(f"Seed file not found: {path}")

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise CaseValidationError(f"Seed file {path.name} is not valid JSON", [str(exc)]) from exc

    if not isinstance(raw, dict):
        raise CaseValidationError(f"Seed file {path.name} must contain a JSON object")

    return parse_seed_dict(raw, policy=policy, source=path.name)


def parse_seed_dict(
    raw:    dict[str, Any],
    policy: PriorityPolicy = DEFAULT_PRIORITY_POLICY,
    source: str = "<seed>",
) -> SeedData:
    """Validate an already-decoded seed object. See module docstring."""
    errors: list[str] = []
    data = SeedData()

    data.zones = _parse_records(raw.get("zones", []), Zone, "zones", errors)
    data.materials = _parse_records(raw.get("materials", []), Material, "materials", errors)
    households_raw = raw.get("households", [])
    if isinstance(households_raw, list):
        households_raw = [_with_priority(r, policy) for r in households_raw]
    data.households = _parse_records(households_raw, Household, "households", errors)
    data.donations = _parse_records(raw.get("donations", []), Donation, "donations", errors)

    _check_unique([z.zone_id for z in data.zones], "zones", errors)
    _check_unique([m.material_id for m in data.materials], "materials", errors)
    _check_unique([h.household_id for h in data.households], "households", errors)
    _check_unique([h.household_code for h in data.households], "household codes", errors)

    zone_ids = {z.zone_id for z in data.zones}
    for h in data.households:
        if h.zone_id is not None and h.zone_id not in zone_ids:
            errors.append(f"households[{h.household_id}]: unknown zone_id '{h.zone_id}'")

    material_ids = {m.material_id for m in data.materials}
    for i, d in enumerate(data.donations):
        if d.material_id not in material_ids:
            errors.append(f"donations[{i}]: unknown material_id '{d.material_id}'")

    if errors:
        shown = errors[:_MAX_ERRORS_SHOWN]
        if len(errors) > _MAX_ERRORS_SHOWN:
            shown.append(f"... and {len(errors) - _MAX_ERRORS_SHOWN} more")
        raise CaseValidationError(f"{len(errors)} record(s) failed validation in {source}", shown)

    logger.info("Parsed seed %s: %s", source, data.counts())
    return data


def load_seed(conn: sqlite3.Connection, data: SeedData) -> dict[str, int]:
    """Write validated seed data.

    Zones, materials and households are upserted. Donation receipts already
    in the store are skipped, so loading the same file twice leaves the
    ledger totals unchanged.

    Returns:
        Rows written per entity; ``donations`` counts only new receipts.
    """
    zone_repo = ZoneRepository(conn)
    for z in data.zones:
        zone_repo.upsert(z)

    material_repo = MaterialRepository(conn)
    for m in data.materials:
        material_repo.upsert(m)

    household_repo = HouseholdRepository(conn)
    for h in data.households:
        household_repo.upsert(h)

    donation_repo = DonationRepository(conn)
    added = sum(1 for d in data.donations if donation_repo.insert_if_new(d) is not None)
    if added < len(data.donations):
        logger.info("Skipped %d donation receipt(s) already stored.", len(data.donations) - added)

    conn.commit()
    counts = {**data.counts(), "donations": added}
    logger.info("Seed loaded: %s", counts)
    return counts


# ── Private helpers ────────────────────────────────────────────────────────────


def _with_priority(record: Any, policy: PriorityPolicy) -> Any:
    """Fill a missing ``priority`` from the classifier when the counts parse."""
    if not isinstance(record, dict) or record.get("priority"):
        return record
    try:
        tier = classify_priority(
            family_size=int(record.get("family_size", 1)),
            elderly_count=int(record.get("elderly_count", 0)),
            children_count=int(record.get("children_count", 0)),
            disabled_count=int(record.get("disabled_count", 0)),
            case_type=record.get("case_type"),
            policy=policy,
        )
    except (TypeError, ValueError):
        # Leave it unset; model validation reports the bad fields
        return record
    return {**record, "priority": tier.value}


def _parse_records(
    records: Any,
    model:   type[BaseModel],
    label:   str,
    errors:  list[str],
) -> list[Any]:
    if not isinstance(records, list):
        errors.append(f"{label}: expected an array, got {type(records).__name__}")
        return []
    parsed = []
    for i, record in enumerate(records):
        try:
            parsed.append(model.model_validate(record))
        except ValidationError as exc:
            detail = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or 'record'}: {err['msg']}"
                for err in exc.errors()
            )
            errors.append(f"{label}[{i}]: {detail}")
    return parsed


def _check_unique(values: list[str], label: str, errors: list[str]) -> None:
    seen: set[str] = set()
    for v in values:
        if v in seen:
            errors.append(f"{label}: duplicate id '{v}'")
        seen.add(v)
