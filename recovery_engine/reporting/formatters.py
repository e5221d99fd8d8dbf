"""
ASCII terminal formatters for CLI reporting commands.

All formatters accept ledger / classifier / generator outputs and return
plain multi-line strings suitable for ``typer.echo()``. No third-party
dependencies (no ``rich``, no ``colorama``).

Quantities are shown with thousands separators and no decimals when whole,
so ``1200.0`` prints as ``1,200``.
"""

from __future__ import annotations

from typing import Sequence

from recovery_engine.classification.classifier import review_state
from recovery_engine.ledger.aggregates import LedgerSnapshot
from recovery_engine.models.household import Household
from recovery_engine.models.material import Donation
from recovery_engine.models.recommendation import RebuildSuggestion, Suggestion
from recovery_engine.taxonomy.case_taxonomy import damage_area_label


def format_qty(value: float) -> str:
    """``1200.0`` -> ``"1,200"``; ``12.5`` -> ``"12.5"``."""
    if float(value).is_integer():
        return f"{int(value):,}"
    return f"{value:,.1f}"


# ── Dashboard ────────────────────────────────────────────────────────────────


def format_dashboard(snapshot: LedgerSnapshot) -> str:
    """Headline counts, material totals, shortages, per-material progress and zones.

    Example::

        === Recovery Dashboard ===
          Households:  468   (rebuild 142 / repair 326, completed 12)
          Review:      pending 301 / approved 150 / rejected 5
          Materials:   demand 12,000  donated 4,800  still needed 7,200  (40%)
    """
    c = snapshot.cases
    s = snapshot.summary
    lines: list[str] = []
    lines.append("")
    lines.append("=== Recovery Dashboard ===")
    lines.append(
        f"  Households:  {c.total:<5} (rebuild {c.rebuild} / repair {c.repair}, "
        f"completed {c.completed})"
    )
    lines.append(
        f"  Review:      pending {c.pending} / approved {c.approved} / rejected {c.rejected}"
    )
    lines.append(
        f"  Materials:   demand {format_qty(s.total_demand)}  "
        f"donated {format_qty(s.total_donated)}  "
        f"still needed {format_qty(s.total_needed)}  ({s.fulfillment_pct}%)"
    )

    lines.append("")
    lines.append("  [CRITICAL SHORTAGES]")
    if not snapshot.shortages:
        lines.append("    (none, every material is fully supplied)")
    for m in snapshot.shortages:
        lines.append(
            f"    {m.name[:28]:<28}  {damage_area_label(m.category):<18}  "
            f"{format_qty(m.still_needed):>9} {m.unit}"
        )

    lines.append("")
    lines.append("  [MATERIALS]")
    if not snapshot.fulfillment:
        lines.append("    (no materials)")
    for row in snapshot.fulfillment:
        m = row.material
        lines.append(
            f"    {m.name[:28]:<28}  {format_qty(m.total_donated):>9} / "
            f"{format_qty(m.total_demand):<9} {m.unit:<8} {row.fulfillment_pct:>3}%"
        )

    lines.append("")
    lines.append("  [ZONES]")
    header = f"    {'Zone':<24}  {'Total':>6}  {'Rebuild':>7}  {'Repair':>6}"
    lines.append(header)
    lines.append("    " + "-" * (len(header) - 4))
    for z in snapshot.zones:
        lines.append(f"    {z.zone[:24]:<24}  {z.total:>6}  {z.rebuild:>7}  {z.repair:>6}")
    return "\n".join(lines)


# ── Review queue ─────────────────────────────────────────────────────────────


def format_review_queue(
    households:  Sequence[Household],
    suggestions: dict[str, Suggestion],
    title:       str,
) -> str:
    """One row per household with its stored priority and suggestion headline."""
    lines: list[str] = ["", f"=== {title} ({len(households)}) ==="]
    if not households:
        lines.append("  (no cases)")
        return "\n".join(lines)

    header = (
        f"  {'Code':<10}  {'Head of household':<24}  {'Zone':<16}  "
        f"{'Type':<7}  {'Prio':<6}  {'State':<9}  Suggestion"
    )
    lines.append(header)
    lines.append("  " + "-" * (len(header) - 2))
    for h in households:
        lines.append(
            f"  {h.household_code[:10]:<10}  {h.head_of_household[:24]:<24}  "
            f"{(h.zone_name or '-')[:16]:<16}  {h.case_type.value:<7}  "
            f"{h.priority.value:<6}  {review_state(h).value:<9}  "
            f"{_headline(h, suggestions.get(h.household_id))}"
        )
    return "\n".join(lines)


def _headline(household: Household, suggestion: Suggestion | None) -> str:
    if suggestion is None:
        return "-"
    if isinstance(suggestion, RebuildSuggestion):
        return suggestion.model
    return f"{len(household.damage_areas)} areas"


# ── Case detail ──────────────────────────────────────────────────────────────


def format_case_detail(household: Household, suggestion: Suggestion) -> str:
    """Full case card with the recommendation, as shown before a decision."""
    h = household
    lines = [
        "",
        f"=== Case {h.household_code} ===",
        f"  Head of household: {h.head_of_household}",
        f"  Address:           {h.address or '-'}",
        f"  Zone:              {h.zone_name or h.zone_id or '-'}",
        f"  Family size:       {h.family_size} "
        f"(elderly {h.elderly_count}, children {h.children_count}, disabled {h.disabled_count})",
        f"  Case type:         {h.case_type.value}",
        f"  Priority:          {h.priority.value}",
        f"  Review state:      {review_state(h).value}",
        f"  Progress:          {h.progress}%",
        "",
    ]
    if isinstance(suggestion, RebuildSuggestion):
        lines.append(f"  Suggested house:   {suggestion.model}: {suggestion.model_name}")
        return "\n".join(lines)

    areas = ", ".join(damage_area_label(a) for a in suggestion.damage_areas)
    lines.append(f"  Damage areas:      {areas}")
    if not suggestion.deterministic:
        lines.append("  [RANDOM] Quantities are placeholders, not derived from stock.")
    if not suggestion.materials:
        lines.append("  (no catalog materials match these damage areas)")
    for item in suggestion.materials:
        note = "  (covered by stock)" if item.covered else ""
        lines.append(f"    - {item.name[:28]:<28}  {item.quantity:>5} {item.unit}{note}")
    return "\n".join(lines)


# ── Donations ────────────────────────────────────────────────────────────────


def format_donation_feed(donations: Sequence[Donation]) -> str:
    lines = ["", f"=== Recent Donations ({len(donations)}) ==="]
    for d in donations:
        material = d.material_name or d.material_id
        lines.append(
            f"  {d.received_at:%Y-%m-%d}  {d.donor_name[:24]:<24}  "
            f"{material[:20]:<20}  {format_qty(d.quantity):>8} {d.unit}"
        )
    return "\n".join(lines)
