"""
SQLite connection handling for the reference household store.

``get_connection()`` opens the store for one unit of work: foreign keys on,
WAL so the dashboard can keep reading during an import, a busy timeout so
two reviewers deciding at the same moment queue up on the write lock, and
``sqlite3.Row`` rows. The unit of work commits when the block exits cleanly
and rolls back otherwise.

``open_store()`` does the same from a ``DatabaseConfig``::

    with open_store(config.database) as conn:
        HouseholdRepository(conn).list_all()
"""

from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Iterator, Optional

if TYPE_CHECKING:
    from recovery_engine.config import DatabaseConfig

logger = logging.getLogger(__name__)

IN_MEMORY = ":memory:"


def _session_pragmas(busy_timeout_ms: int, wal_mode: bool) -> list[str]:
    pragmas = [
        "PRAGMA foreign_keys = ON;",
        f"PRAGMA busy_timeout = {int(busy_timeout_ms)};",
    ]
    if wal_mode:
        pragmas.append("PRAGMA journal_mode = WAL;")
    return pragmas


@contextmanager
def get_connection(
    db_path: str,
    wal_mode: bool = True,
    busy_timeout_ms: int = 5000,
) -> Iterator[sqlite3.Connection]:
    """Open the store at ``db_path`` for one unit of work.

    Missing parent directories of a file-backed store are created.

    Args:
        db_path: SQLite file path, or ``":memory:"``.
        wal_mode: Switch the journal to WAL.
        busy_timeout_ms: How long a writer waits on a locked store.

    Yields:
        A configured ``sqlite3.Connection``; closed when the block exits.
    """
    if db_path != IN_MEMORY:
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(db_path, timeout=busy_timeout_ms / 1000)
    conn.row_factory = sqlite3.Row
    try:
        for pragma in _session_pragmas(busy_timeout_ms, wal_mode):
            conn.execute(pragma)
        logger.debug("Opened store %s", db_path)
        yield conn
        conn.commit()
    except Exception:
        logger.debug("Rolling back unit of work on %s", db_path)
        conn.rollback()
        raise
    finally:
        conn.close()


def open_store(
    db_config: "DatabaseConfig",
    db_path: Optional[str] = None,
):
    """``get_connection()`` with settings from config; ``db_path`` overrides the file."""
    return get_connection(
        db_path or db_config.db_path,
        wal_mode=db_config.wal_mode,
        busy_timeout_ms=db_config.busy_timeout_ms,
    )
