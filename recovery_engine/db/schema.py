"""
SQLite schema DDL for the reference household store.

All statements use ``IF NOT EXISTS`` so ``apply_schema()`` is idempotent.

Table creation order respects foreign key dependencies:
  1. zones       (no FKs)
  2. households  (-> zones)
  3. materials   (no FKs)
  4. donations   (-> materials)   append-only
  5. demand_summary  VIEW: materials + SUM(donations.quantity)

``still_needed`` is intentionally absent from every table and view; the
engine derives it from demand and donated on read.
"""

from __future__ import annotations

import logging
import sqlite3

logger = logging.getLogger(__name__)

# ── DDL statements ─────────────────────────────────────────────────────────────

_DDL_ZONES = """
CREATE TABLE IF NOT EXISTS zones (
    zone_id     TEXT    PRIMARY KEY,
    name        TEXT    NOT NULL,
    gps_lat     REAL,
    gps_lng     REAL,
    created_at  TEXT    NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ', 'now'))
);
"""

_DDL_HOUSEHOLDS = """
CREATE TABLE IF NOT EXISTS households (
    household_id      TEXT    PRIMARY KEY,
    household_code    TEXT    NOT NULL UNIQUE,
    head_of_household TEXT    NOT NULL,
    address           TEXT    NOT NULL DEFAULT '',
    zone_id           TEXT    REFERENCES zones(zone_id),
    family_size       INTEGER NOT NULL CHECK (family_size >= 1),
    case_type         TEXT    NOT NULL CHECK (case_type IN ('REBUILD', 'REPAIR')),
    damage_areas      TEXT    NOT NULL DEFAULT '[]',
    elderly_count     INTEGER NOT NULL DEFAULT 0,
    children_count    INTEGER NOT NULL DEFAULT 0,
    disabled_count    INTEGER NOT NULL DEFAULT 0,
    progress          INTEGER NOT NULL DEFAULT 0,
    status            TEXT    NOT NULL DEFAULT '',
    priority          TEXT    NOT NULL DEFAULT 'MEDIUM',
    admin_approved    INTEGER NOT NULL DEFAULT 0,
    approved_at       TEXT,
    created_at        TEXT    NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ', 'now')),
    updated_at        TEXT    NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ', 'now'))
);
"""

_DDL_HOUSEHOLD_INDEXES = """
CREATE INDEX IF NOT EXISTS idx_households_zone
    ON households(zone_id);
"""

_DDL_MATERIALS = """
CREATE TABLE IF NOT EXISTS materials (
    material_id   TEXT    PRIMARY KEY,
    name          TEXT    NOT NULL,
    category      TEXT    NOT NULL,
    unit          TEXT    NOT NULL DEFAULT '',
    total_demand  REAL    NOT NULL DEFAULT 0,
    created_at    TEXT    NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ', 'now'))
);
"""

_DDL_DONATIONS = """
CREATE TABLE IF NOT EXISTS donations (
    donation_id   INTEGER PRIMARY KEY AUTOINCREMENT,
    donor_name    TEXT    NOT NULL,
    donor_type    TEXT    NOT NULL DEFAULT 'individual',
    material_id   TEXT    NOT NULL REFERENCES materials(material_id),
    quantity      REAL    NOT NULL,
    unit          TEXT    NOT NULL DEFAULT '',
    received_at   TEXT    NOT NULL
);
"""

_DDL_DONATION_INDEXES = """
CREATE INDEX IF NOT EXISTS idx_donations_material
    ON donations(material_id);
CREATE INDEX IF NOT EXISTS idx_donations_received
    ON donations(received_at DESC);
"""

_DDL_DEMAND_SUMMARY = """
CREATE VIEW IF NOT EXISTS demand_summary AS
    SELECT
        m.material_id                   AS material_id,
        m.name                          AS name,
        m.category                      AS category,
        m.unit                          AS unit,
        m.total_demand                  AS total_demand,
        COALESCE(SUM(d.quantity), 0)    AS total_donated,
        m.rowid                         AS catalog_order
    FROM materials m
    LEFT JOIN donations d ON d.material_id = m.material_id
    GROUP BY m.material_id
"""

_ALL_DDL = [
    _DDL_ZONES,
    _DDL_HOUSEHOLDS,
    _DDL_HOUSEHOLD_INDEXES,
    _DDL_MATERIALS,
    _DDL_DONATIONS,
    _DDL_DONATION_INDEXES,
    _DDL_DEMAND_SUMMARY,
]

# Table names for introspection / tests
ALL_TABLE_NAMES = [
    "zones",
    "households",
    "materials",
    "donations",
]

ALL_VIEW_NAMES = ["demand_summary"]


def apply_schema(conn: sqlite3.Connection) -> None:
    """Apply all DDL statements to ``conn``.

    Idempotent; safe to call on an already-initialized database.

    Args:
        conn: An open ``sqlite3.Connection`` (FK enforcement should be ON).
    """
    logger.debug("Applying schema to database...")

    for ddl in _ALL_DDL:
        for statement in _split_ddl(ddl):
            conn.execute(statement)

    conn.commit()
    logger.info("Schema applied: %d tables, %d view(s).", len(ALL_TABLE_NAMES), len(ALL_VIEW_NAMES))


def _split_ddl(ddl: str) -> list[str]:
    """Split a multi-statement DDL block on semicolons."""
    return [s.strip() for s in ddl.split(";") if s.strip()]


def get_existing_tables(conn: sqlite3.Connection) -> list[str]:
    """Return table names present in the database, sorted."""
    rows = conn.execute(
        "SELECT name FROM sqlite_master WHERE type='table' ORDER BY name;"
    ).fetchall()
    return [row["name"] for row in rows]


def get_existing_views(conn: sqlite3.Connection) -> list[str]:
    """Return view names present in the database, sorted."""
    rows = conn.execute(
        "SELECT name FROM sqlite_master WHERE type='view' ORDER BY name;"
    ).fetchall()
    return [row["name"] for row in rows]


def get_existing_indexes(conn: sqlite3.Connection) -> list[str]:
    """Return index names present in the database, sorted."""
    rows = conn.execute(
        "SELECT name FROM sqlite_master WHERE type='index' ORDER BY name;"
    ).fetchall()
    return [row["name"] for row in rows]
