"""
Incremental schema changes for stores created by older releases.

``apply_schema()`` always creates the current layout; migrations only patch
stores that predate a change. Applied migrations are recorded by id in
``schema_versions`` and each one runs at most once per store, in list order.
"""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Callable
from dataclasses import dataclass

logger = logging.getLogger(__name__)

_VERSION_TABLE_DDL = """
CREATE TABLE IF NOT EXISTS schema_versions (
    version_id  TEXT NOT NULL PRIMARY KEY,
    description TEXT,
    applied_at  TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ', 'now'))
);
"""


@dataclass(frozen=True)
class Migration:
    """One recorded schema change."""

    version_id:  str
    description: str
    apply:       Callable[[sqlite3.Connection], None]


def _add_review_queue_index(conn: sqlite3.Connection) -> None:
    conn.execute(
        "CREATE INDEX IF NOT EXISTS idx_households_review "
        "ON households(admin_approved, status, priority);"
    )


def _add_donor_type(conn: sqlite3.Connection) -> None:
    columns = {row[1] for row in conn.execute("PRAGMA table_info(donations);")}
    if "donor_type" in columns:
        return
    conn.execute(
        "ALTER TABLE donations ADD COLUMN donor_type TEXT NOT NULL DEFAULT 'individual';"
    )


MIGRATIONS: list[Migration] = [
    Migration(
        "0001_review_queue_index",
        "Index households(admin_approved, status, priority) for the review queue",
        _add_review_queue_index,
    ),
    Migration(
        "0002_donor_type_column",
        "Add donations.donor_type to stores created before it was tracked",
        _add_donor_type,
    ),
]


def applied_versions(conn: sqlite3.Connection) -> set[str]:
    """Ids of migrations already recorded in this store."""
    conn.execute(_VERSION_TABLE_DDL)
    return {row[0] for row in conn.execute("SELECT version_id FROM schema_versions;")}


def pending_migrations(conn: sqlite3.Connection) -> list[Migration]:
    done = applied_versions(conn)
    return [m for m in MIGRATIONS if m.version_id not in done]


def run_migrations(conn: sqlite3.Connection) -> int:
    """Apply every pending migration, each in its own transaction.

    Returns:
        Number of migrations applied by this call.

    Raises:
        sqlite3.Error: If a migration fails; it is rolled back and later
            migrations are not attempted.
    """
    pending = pending_migrations(conn)
    conn.commit()
    if not pending:
        logger.debug("Store schema is current.")
        return 0

    for migration in pending:
        logger.info("Migrating store: %s (%s)", migration.version_id, migration.description)
        try:
            migration.apply(conn)
            conn.execute(
                "INSERT INTO schema_versions (version_id, description) VALUES (?, ?);",
                (migration.version_id, migration.description),
            )
            conn.commit()
        except sqlite3.Error:
            conn.rollback()
            logger.error("Migration %s failed; store left at previous version.",
                         migration.version_id)
            raise

    logger.info("Applied %d migration(s).", len(pending))
    return len(pending)
