"""
Recovery engine CLI entry point.

All commands follow this pattern:
  1. Load ``AppConfig`` via ``load_config()``.
  2. Configure logging.
  3. Read a snapshot from the SQLite store.
  4. Run the pure engine functions over it.
  5. Report the result to stdout (errors to stderr, exit code 1).

Install and run::

    pip install -e .
    recovery-engine --help
    recovery-engine init-db
    recovery-engine import-seed --file config/seed/sample_seed.json
    recovery-engine dashboard
    recovery-engine review-queue --filter pending
    recovery-engine recommend HH-0003
    recovery-engine approve HH-0003
    recovery-engine reject HH-0004
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer

app = typer.Typer(
    name="recovery-engine",
    help="Disaster-recovery case classification and resource recommendation CLI.",
    add_completion=False,
)


# ── Helpers ───────────────────────────────────────────────────────────────────

def _load_config_or_exit(config_path: Optional[str] = None):
    """Load AppConfig, printing a friendly error and exiting on failure."""
    from pydantic import ValidationError

    from recovery_engine.config import load_config

    try:
        cfg_path = Path(config_path) if config_path else None
        return load_config(cfg_path)
    except FileNotFoundError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)
    except (ValidationError, ValueError) as exc:
        typer.echo(f"[ERROR] Config validation failed: {exc}", err=True)
        raise typer.Exit(code=1)


def _configure_logging(config) -> None:
    from recovery_engine.utils.logging import configure_logging
    configure_logging(config.logging)


def _connect(config, db_path: Optional[str] = None):
    from recovery_engine.db.connection import open_store
    return open_store(config.database, db_path)


def _resolve_household(repo, key: str):
    """Look a household up by id, then by human-readable code."""
    from recovery_engine.errors import NotFoundError

    household = repo.get(key) or repo.get_by_code(key)
    if household is None:
        raise NotFoundError("household", key)
    return household


_DB_OPTION = typer.Option(None, "--db-path", help="Override DB path from config.")
_CONFIG_OPTION = typer.Option(None, "--config", help="Path to TOML config file.")


# ── Setup commands ────────────────────────────────────────────────────────────

@app.command("init-db")
def init_db(
    db_path: Optional[str] = _DB_OPTION,
    config_path: Optional[str] = _CONFIG_OPTION,
) -> None:
    """Create the SQLite store and apply schema + pending migrations.

    Safe to run multiple times; all DDL uses IF NOT EXISTS.
    """
    from recovery_engine.db.migrations import run_migrations
    from recovery_engine.db.schema import ALL_TABLE_NAMES, apply_schema

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    typer.echo(f"Initializing database at: {db_path or config.database.db_path}")
    with _connect(config, db_path) as conn:
        apply_schema(conn)
        migrations_applied = run_migrations(conn)

    typer.echo(f"  Tables: {len(ALL_TABLE_NAMES)} created/verified.")
    typer.echo(f"  Migrations applied: {migrations_applied}")
    typer.echo("[OK] Database ready.")


@app.command("validate-config")
def validate_config(
    config_path: Optional[str] = _CONFIG_OPTION,
    show_full: bool = typer.Option(False, "--full", help="Print the full config as JSON."),
) -> None:
    """Validate the configuration file and print the policy tables."""
    config = _load_config_or_exit(config_path)

    typer.echo("Configuration validated successfully.")
    typer.echo("")
    typer.echo(f"  Database path:    {config.database.db_path}")
    typer.echo(f"  Seed file:        {config.data.seed_file}")
    typer.echo(f"  Shortage top-N:   {config.ledger.shortage_top_n}")
    typer.echo(f"  Quantity policy:  {config.recommendation.quantity_policy}")
    typer.echo(f"  Log level:        {config.logging.level}")
    typer.echo("  Priority rules:")
    for rule in config.priority_policy().rules:
        typer.echo(f"    {rule.tier.value:<6} score >= {rule.min_score:g}")
    typer.echo("  Size buckets:")
    for bucket in config.size_buckets():
        limit = f"<= {bucket.max_family_size}" if bucket.max_family_size is not None else "any"
        typer.echo(f"    {bucket.code:<8} {limit:<5} {bucket.display_name}")

    if show_full:
        typer.echo("")
        typer.echo("Full config (JSON):")
        typer.echo(json.dumps(config.model_dump(), indent=2, default=str, ensure_ascii=False))

    typer.echo("")
    typer.echo("[OK] Config valid.")


@app.command("import-seed")
def import_seed(
    seed_file: Optional[str] = typer.Option(
        None, "--file", "-f", help="Seed JSON file. Defaults to config.data.seed_file."
    ),
    db_path: Optional[str] = _DB_OPTION,
    config_path: Optional[str] = _CONFIG_OPTION,
    dry_run: bool = typer.Option(False, "--dry-run", help="Validate only; write nothing."),
) -> None:
    """Validate a JSON seed file and load it into the store."""
    from recovery_engine.db.migrations import run_migrations
    from recovery_engine.db.schema import apply_schema
    from recovery_engine.errors import CaseValidationError
    from recovery_engine.ingestion.seed_loader import load_seed, parse_seed

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    path = Path(seed_file) if seed_file else Path(config.data.seed_file)
    typer.echo(f"Loading seed data from: {path}")
    try:
        data = parse_seed(path, policy=config.priority_policy())
    except (FileNotFoundError, CaseValidationError) as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)

    for entity, n in data.counts().items():
        typer.echo(f"  {entity:<11} {n}")

    if dry_run:
        from recovery_engine.ledger.aggregates import build_ledger
        from recovery_engine.ledger.donations import with_donation_totals
        from recovery_engine.reporting.formatters import format_dashboard

        preview = build_ledger(
            with_donation_totals(data.materials, data.donations),
            data.households,
            data.zones,
            top_n=config.ledger.shortage_top_n,
        )
        typer.echo(format_dashboard(preview))
        typer.echo("")
        typer.echo("[DRY RUN] Nothing written to the database.")
        return

    with _connect(config, db_path) as conn:
        apply_schema(conn)
        run_migrations(conn)
        written = load_seed(conn, data)

    skipped = len(data.donations) - written["donations"]
    if skipped:
        typer.echo(f"  Skipped {skipped} donation receipt(s) already in the store.")
    typer.echo("[OK] Seed imported.")


# ── Reporting commands ────────────────────────────────────────────────────────

@app.command("dashboard")
def dashboard(
    donations: int = typer.Option(5, "--donations", help="Recent donations to list (0 = none)."),
    db_path: Optional[str] = _DB_OPTION,
    config_path: Optional[str] = _CONFIG_OPTION,
) -> None:
    """Show case counts, material totals, critical shortages and zone counts."""
    from recovery_engine.db.repositories.household_repo import HouseholdRepository
    from recovery_engine.db.repositories.material_repo import (
        DonationRepository,
        MaterialRepository,
    )
    from recovery_engine.db.repositories.zone_repo import ZoneRepository
    from recovery_engine.errors import CaseValidationError
    from recovery_engine.ledger.aggregates import build_ledger
    from recovery_engine.reporting.formatters import format_dashboard, format_donation_feed

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    try:
        with _connect(config, db_path) as conn:
            materials = MaterialRepository(conn).list_demand_summary()
            households = HouseholdRepository(conn).list_all()
            zones = ZoneRepository(conn).list_all()
            recent = DonationRepository(conn).list_recent(limit=donations) if donations > 0 else []
    except CaseValidationError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)

    snapshot = build_ledger(materials, households, zones, top_n=config.ledger.shortage_top_n)
    typer.echo(format_dashboard(snapshot))
    if recent:
        typer.echo(format_donation_feed(recent))


@app.command("review-queue")
def review_queue_cmd(
    review_filter: str = typer.Option(
        "pending", "--filter", help="pending | approved | rejected | all"
    ),
    db_path: Optional[str] = _DB_OPTION,
    config_path: Optional[str] = _CONFIG_OPTION,
) -> None:
    """List cases for review, highest priority first, with their suggestions."""
    from recovery_engine.classification.classifier import review_queue
    from recovery_engine.db.repositories.household_repo import HouseholdRepository
    from recovery_engine.db.repositories.material_repo import MaterialRepository
    from recovery_engine.errors import CaseValidationError
    from recovery_engine.recommendations.generator import build_catalog, recommend_all
    from recovery_engine.reporting.formatters import format_review_queue

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    try:
        with _connect(config, db_path) as conn:
            households = HouseholdRepository(conn).list_all()
            materials = MaterialRepository(conn).list_demand_summary()
    except CaseValidationError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)

    try:
        queue = review_queue(households, review_filter)  # type: ignore[arg-type]
    except ValueError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)

    rec = config.recommendation
    suggestions = recommend_all(
        queue,
        build_catalog(materials, households),
        buckets=config.size_buckets(),
        quantity_policy=config.quantity_policy(),
        max_per_area=rec.max_materials_per_area,
        max_line_items=rec.max_line_items,
    )
    typer.echo(format_review_queue(queue, suggestions, f"Review queue: {review_filter}"))


@app.command("recommend")
def recommend_cmd(
    household: str = typer.Argument(..., help="Household id or code."),
    as_json: bool = typer.Option(False, "--json", help="Print the suggestion as JSON."),
    db_path: Optional[str] = _DB_OPTION,
    config_path: Optional[str] = _CONFIG_OPTION,
) -> None:
    """Show one case with its rebuild or repair suggestion."""
    from recovery_engine.db.repositories.household_repo import HouseholdRepository
    from recovery_engine.db.repositories.material_repo import MaterialRepository
    from recovery_engine.errors import CaseValidationError, NotFoundError
    from recovery_engine.recommendations.generator import build_catalog, recommend
    from recovery_engine.reporting.formatters import format_case_detail

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    with _connect(config, db_path) as conn:
        repo = HouseholdRepository(conn)
        try:
            target = _resolve_household(repo, household)
            households = repo.list_all()
        except (NotFoundError, CaseValidationError) as exc:
            typer.echo(f"[ERROR] {exc}", err=True)
            raise typer.Exit(code=1)
        materials = MaterialRepository(conn).list_demand_summary()

    rec = config.recommendation
    suggestion = recommend(
        target,
        build_catalog(materials, households),
        buckets=config.size_buckets(),
        quantity_policy=config.quantity_policy(),
        max_per_area=rec.max_materials_per_area,
        max_line_items=rec.max_line_items,
    )
    if as_json:
        typer.echo(suggestion.model_dump_json(indent=2))
    else:
        typer.echo(format_case_detail(target, suggestion))


@app.command("reclassify")
def reclassify(
    apply: bool = typer.Option(False, "--apply", help="Write computed tiers back to the store."),
    db_path: Optional[str] = _DB_OPTION,
    config_path: Optional[str] = _CONFIG_OPTION,
) -> None:
    """Compare stored priority tiers with the configured policy."""
    from recovery_engine.classification.classifier import classify_household
    from recovery_engine.db.repositories.household_repo import HouseholdRepository
    from recovery_engine.errors import CaseValidationError

    config = _load_config_or_exit(config_path)
    _configure_logging(config)
    policy = config.priority_policy()

    changed = 0
    with _connect(config, db_path) as conn:
        repo = HouseholdRepository(conn)
        try:
            households = repo.list_all()
        except CaseValidationError as exc:
            typer.echo(f"[ERROR] {exc}", err=True)
            raise typer.Exit(code=1)
        for h in households:
            computed = classify_household(h, policy)
            if computed == h.priority:
                continue
            changed += 1
            typer.echo(f"  {h.household_code:<10} {h.priority.value:<6} -> {computed.value}")
            if apply:
                repo.update_priority(h.household_id, computed)

    verb = "updated" if apply else "would change"
    typer.echo(f"[OK] {changed} household(s) {verb}.")


# ── Workflow commands ─────────────────────────────────────────────────────────

_PAST_TENSE = {"approve": "approved", "reject": "rejected"}


def _decide(household: str, decision: str, db_path: Optional[str], config_path: Optional[str]):
    from recovery_engine.db.repositories.household_repo import HouseholdRepository
    from recovery_engine.errors import CaseValidationError, NotFoundError, StateConflictError
    from recovery_engine.workflow.approval import ApprovalWorkflow

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    with _connect(config, db_path) as conn:
        repo = HouseholdRepository(conn)
        workflow = ApprovalWorkflow(repo)
        try:
            target = _resolve_household(repo, household)
            if decision == "approve":
                result = workflow.approve(target.household_id)
            else:
                result = workflow.reject(target.household_id)
        except (NotFoundError, StateConflictError, CaseValidationError) as exc:
            typer.echo(f"[ERROR] {exc}", err=True)
            raise typer.Exit(code=1)

    typer.echo(f"[OK] {result.household_code} {_PAST_TENSE[decision]}.")


@app.command("approve")
def approve(
    household: str = typer.Argument(..., help="Household id or code."),
    db_path: Optional[str] = _DB_OPTION,
    config_path: Optional[str] = _CONFIG_OPTION,
) -> None:
    """Approve a pending case."""
    _decide(household, "approve", db_path, config_path)


@app.command("reject")
def reject(
    household: str = typer.Argument(..., help="Household id or code."),
    db_path: Optional[str] = _DB_OPTION,
    config_path: Optional[str] = _CONFIG_OPTION,
) -> None:
    """Reject a pending case. Rejection is final."""
    _decide(household, "reject", db_path, config_path)


if __name__ == "__main__":
    app()
