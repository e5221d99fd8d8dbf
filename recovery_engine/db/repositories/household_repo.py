"""
Repository for households: import upserts, reads, and the review
compare-and-set write.

``HouseholdRepository`` satisfies the workflow's ``HouseholdStore``
protocol. ``apply_review_update()`` is a single conditional UPDATE whose
WHERE clause re-checks the PENDING predicate, so SQLite's write lock makes
the check-and-write atomic: of two racing decisions only one matches a row.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from datetime import datetime
from typing import Optional

from pydantic import ValidationError

from recovery_engine.db.repositories.base import BaseRepository
from recovery_engine.errors import CaseValidationError
from recovery_engine.models.household import Household
from recovery_engine.models.review import ReviewUpdate
from recovery_engine.taxonomy.case_taxonomy import PriorityTier, ReviewState, TerminalStatus

logger = logging.getLogger(__name__)

_SELECT = """
    SELECT h.*, z.name AS zone_name
    FROM households h
    LEFT JOIN zones z ON z.zone_id = h.zone_id
"""

# SQL rendering of classifier.review_state() == PENDING
_PENDING_WHERE = "admin_approved = 0 AND status NOT IN (?, ?)"

# Existing row is APPROVED or REJECTED
_DECIDED = (
    "(households.admin_approved = 1 OR "
    f"households.status = '{TerminalStatus.REJECTED.value}')"
)


class HouseholdRepository(BaseRepository):
    """Read/write access to the ``households`` table."""

    def upsert(self, household: Household) -> None:
        """Insert or update a household by id (data import path).

        Once a household has been approved or rejected its ``admin_approved``,
        ``approved_at`` and ``status`` only change through
        ``apply_review_update()``; re-importing keeps the decision.
        """
        self.execute(
            f"""
            INSERT INTO households (
                household_id, household_code, head_of_household, address, zone_id,
                family_size, case_type, damage_areas, elderly_count, children_count,
                disabled_count, progress, status, priority, admin_approved, approved_at,
                updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?,
                      strftime('%Y-%m-%dT%H:%M:%SZ', 'now'))
            ON CONFLICT(household_id) DO UPDATE SET
                household_code    = excluded.household_code,
                head_of_household = excluded.head_of_household,
                address           = excluded.address,
                zone_id           = excluded.zone_id,
                family_size       = excluded.family_size,
                case_type         = excluded.case_type,
                damage_areas      = excluded.damage_areas,
                elderly_count     = excluded.elderly_count,
                children_count    = excluded.children_count,
                disabled_count    = excluded.disabled_count,
                progress          = excluded.progress,
                priority          = excluded.priority,
                status            = CASE WHEN {_DECIDED}
                                         THEN households.status ELSE excluded.status END,
                admin_approved    = CASE WHEN {_DECIDED}
                                         THEN households.admin_approved
                                         ELSE excluded.admin_approved END,
                approved_at       = CASE WHEN {_DECIDED}
                                         THEN households.approved_at ELSE excluded.approved_at END,
                updated_at        = excluded.updated_at;
            """,
            (
                household.household_id,
                household.household_code,
                household.head_of_household,
                household.address,
                household.zone_id,
                household.family_size,
                household.case_type.value,
                json.dumps(household.damage_areas),
                household.elderly_count,
                household.children_count,
                household.disabled_count,
                household.progress,
                household.status,
                household.priority.value,
                int(household.admin_approved),
                household.approved_at.isoformat() if household.approved_at else None,
            ),
        )

    def get(self, household_id: str) -> Optional[Household]:
        """Fetch one household by id, or ``None``."""
        row = self.fetchone(f"{_SELECT} WHERE h.household_id = ?;", (household_id,))
        return _row_to_household(row) if row else None

    def get_by_code(self, household_code: str) -> Optional[Household]:
        row = self.fetchone(f"{_SELECT} WHERE h.household_code = ?;", (household_code,))
        return _row_to_household(row) if row else None

    def list_all(self) -> list[Household]:
        """All households in insertion order."""
        rows = self.fetchall(f"{_SELECT} ORDER BY h.rowid;")
        return [_row_to_household(r) for r in rows]

    def update_priority(self, household_id: str, priority: PriorityTier) -> bool:
        """Store a recomputed priority tier. Returns ``False`` for an unknown id."""
        cur = self.execute(
            """
            UPDATE households
            SET priority = ?, updated_at = strftime('%Y-%m-%dT%H:%M:%SZ', 'now')
            WHERE household_id = ?;
            """,
            (priority.value, household_id),
        )
        return cur.rowcount == 1

    def apply_review_update(self, update: ReviewUpdate) -> bool:
        """Compare-and-set the lifecycle fields of one household.

        Returns:
            ``True`` if the row was still pending and has been written;
            ``False`` if it was missing or no longer pending.

        Raises:
            ValueError: If ``update.expected_state`` is not PENDING (the only
                state a transition may start from).
        """
        if update.expected_state != ReviewState.PENDING:
            raise ValueError(
                f"Review updates must expect PENDING, got {update.expected_state.value}."
            )
        cur = self.execute(
            f"""
            UPDATE households
            SET admin_approved = ?,
                approved_at    = COALESCE(?, approved_at),
                status         = COALESCE(?, status),
                updated_at     = strftime('%Y-%m-%dT%H:%M:%SZ', 'now')
            WHERE household_id = ? AND {_PENDING_WHERE};
            """,
            (
                int(update.admin_approved),
                update.approved_at.isoformat() if update.approved_at else None,
                update.status,
                update.household_id,
                TerminalStatus.COMPLETED.value,
                TerminalStatus.REJECTED.value,
            ),
        )
        self.conn.commit()
        return cur.rowcount == 1


# ── Row mapping ───────────────────────────────────────────────────────────────


def _row_to_household(row: sqlite3.Row) -> Household:
    """Map a households row (with joined ``zone_name``) to a ``Household``.

    Raises:
        CaseValidationError: If the stored row violates a domain invariant.
    """
    data = dict(row)
    try:
        return Household(
            household_id=data["household_id"],
            household_code=data["household_code"],
            head_of_household=data["head_of_household"],
            address=data["address"] or "",
            zone_id=data["zone_id"],
            zone_name=data.get("zone_name"),
            family_size=data["family_size"],
            case_type=data["case_type"],
            damage_areas=json.loads(data["damage_areas"] or "[]"),
            elderly_count=data["elderly_count"],
            children_count=data["children_count"],
            disabled_count=data["disabled_count"],
            progress=data["progress"],
            status=data["status"] or "",
            priority=data["priority"],
            admin_approved=bool(data["admin_approved"]),
            approved_at=datetime.fromisoformat(data["approved_at"]) if data["approved_at"] else None,
        )
    except ValidationError as exc:
        raise CaseValidationError(
            f"Stored household {data['household_id']} is invalid",
            [err["msg"] for err in exc.errors()],
        ) from exc
