"""
Repository for zones. The engine only reads zones; upsert is for imports.
"""

from __future__ import annotations

import logging
import sqlite3
from typing import Optional

from recovery_engine.db.repositories.base import BaseRepository
from recovery_engine.models.household import Zone

logger = logging.getLogger(__name__)


class ZoneRepository(BaseRepository):
    """Read/write access to the ``zones`` table."""

    def upsert(self, zone: Zone) -> None:
        self.execute(
            """
            INSERT INTO zones (zone_id, name, gps_lat, gps_lng)
            VALUES (?, ?, ?, ?)
            ON CONFLICT(zone_id) DO UPDATE SET
                name    = excluded.name,
                gps_lat = excluded.gps_lat,
                gps_lng = excluded.gps_lng;
            """,
            (zone.zone_id, zone.name, zone.gps_lat, zone.gps_lng),
        )

    def get(self, zone_id: str) -> Optional[Zone]:
        row = self.fetchone("SELECT * FROM zones WHERE zone_id = ?;", (zone_id,))
        return _row_to_zone(row) if row else None

    def list_all(self) -> list[Zone]:
        """All zones in insertion order."""
        return [_row_to_zone(r) for r in self.fetchall("SELECT * FROM zones ORDER BY rowid;")]


def _row_to_zone(row: sqlite3.Row) -> Zone:
    return Zone(
        zone_id=row["zone_id"],
        name=row["name"],
        gps_lat=row["gps_lat"],
        gps_lng=row["gps_lng"],
    )
