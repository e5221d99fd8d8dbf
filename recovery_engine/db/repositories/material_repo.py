"""
Repositories for the material catalog and its donation receipts.

``MaterialRepository.list_demand_summary()`` reads the ``demand_summary``
view, so every ``Material`` arrives with demand and donated totals already
joined. ``DonationRepository`` only ever inserts and reads; receipts are
never updated or deleted, and ``insert_if_new()`` makes re-imports safe.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime, timezone
from typing import Optional

from recovery_engine.db.repositories.base import BaseRepository
from recovery_engine.ledger.donations import recent_donations
from recovery_engine.models.material import Donation, Material

logger = logging.getLogger(__name__)


class MaterialRepository(BaseRepository):
    """Read/write access to ``materials`` and the ``demand_summary`` view."""

    def upsert(self, material: Material) -> None:
        """Insert or update a catalog entry. ``total_donated`` is not stored."""
        self.execute(
            """
            INSERT INTO materials (material_id, name, category, unit, total_demand)
            VALUES (?, ?, ?, ?, ?)
            ON CONFLICT(material_id) DO UPDATE SET
                name         = excluded.name,
                category     = excluded.category,
                unit         = excluded.unit,
                total_demand = excluded.total_demand;
            """,
            (
                material.material_id,
                material.name,
                material.category,
                material.unit,
                material.total_demand,
            ),
        )

    def exists(self, material_id: str) -> bool:
        row = self.fetchone("SELECT 1 FROM materials WHERE material_id = ?;", (material_id,))
        return row is not None

    def get(self, material_id: str) -> Optional[Material]:
        row = self.fetchone(
            "SELECT * FROM demand_summary WHERE material_id = ?;", (material_id,)
        )
        return _row_to_material(row) if row else None

    def list_demand_summary(self) -> list[Material]:
        """All materials with demand/donated totals, in catalog order."""
        rows = self.fetchall("SELECT * FROM demand_summary ORDER BY catalog_order;")
        return [_row_to_material(r) for r in rows]


class DonationRepository(BaseRepository):
    """Append-only access to the ``donations`` table.

    ``received_at`` is stored as UTC ISO-8601 whatever offset the receipt
    carried.
    """

    _COLUMNS = "donor_name, donor_type, material_id, quantity, unit, received_at"

    def insert(self, donation: Donation) -> int:
        """Record a receipt and return its ``donation_id``."""
        self.execute(
            f"INSERT INTO donations ({self._COLUMNS}) VALUES (?, ?, ?, ?, ?, ?);",
            _donation_params(donation),
        )
        return self.last_insert_rowid()

    def insert_if_new(self, donation: Donation) -> Optional[int]:
        """Record a receipt unless the same one is already stored.

        Two receipts are the same when donor, material, quantity and
        received time all match.

        Returns:
            The new ``donation_id``, or ``None`` if the receipt was skipped.
        """
        params = _donation_params(donation)
        cur = self.execute(
            f"""
            INSERT INTO donations ({self._COLUMNS})
            SELECT ?, ?, ?, ?, ?, ?
            WHERE NOT EXISTS (
                SELECT 1 FROM donations
                WHERE donor_name = ? AND material_id = ? AND quantity = ? AND received_at = ?
            );
            """,
            params + (params[0], params[2], params[3], params[5]),
        )
        return self.last_insert_rowid() if cur.rowcount == 1 else None

    def list_recent(self, limit: Optional[int] = None) -> list[Donation]:
        """Donations newest first, with the material name joined in.

        Ordered on parsed timestamps, so rows written with a local offset by
        older releases still sort correctly. Equal timestamps list the later
        receipt first.
        """
        rows = self.fetchall(
            """
            SELECT d.*, m.name AS material_name
            FROM donations d
            LEFT JOIN materials m ON m.material_id = d.material_id
            ORDER BY d.donation_id DESC;
            """
        )
        return recent_donations([_row_to_donation(r) for r in rows], limit)


# ── Row mapping ───────────────────────────────────────────────────────────────


def _as_utc(ts: datetime) -> datetime:
    """Naive timestamps are taken as UTC."""
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def _donation_params(donation: Donation) -> tuple:
    return (
        donation.donor_name,
        donation.donor_type,
        donation.material_id,
        donation.quantity,
        donation.unit,
        _as_utc(donation.received_at).isoformat(),
    )


def _row_to_material(row: sqlite3.Row) -> Material:
    return Material(
        material_id=row["material_id"],
        name=row["name"],
        category=row["category"],
        unit=row["unit"] or "",
        total_demand=row["total_demand"],
        total_donated=row["total_donated"],
    )


def _row_to_donation(row: sqlite3.Row) -> Donation:
    return Donation(
        donation_id=row["donation_id"],
        donor_name=row["donor_name"],
        donor_type=row["donor_type"],
        material_id=row["material_id"],
        material_name=row["material_name"],
        quantity=row["quantity"],
        unit=row["unit"] or "",
        received_at=_as_utc(datetime.fromisoformat(row["received_at"])),
    )
