"""
Material ledger: demand vs. supply totals and per-zone case counts.

All functions are pure over an in-memory snapshot (material rows with
precomputed demand/donated, household rows, zone rows). Nothing here
raises on bad numbers (``Material`` already coerced them to 0) and no
function knows about any dashboard tab or filter.

Outputs
-------
summarize_materials()       -> MaterialSummary   (global totals + fulfillment %)
critical_shortages()        -> list[Material]    (top-N by still-needed)
material_fulfillment()      -> list[MaterialFulfillment]
zone_aggregates()           -> list[ZoneAggregate] (by total desc)
summarize_cases()           -> CaseSummary       (dashboard case counts)
count_cases_by_damage_area()-> dict[tag, int]    (REPAIR cases per tag)
build_ledger()              -> LedgerSnapshot    (all of the above at once)

Ordering
--------
Every ranked list is sorted with Python's stable ``sorted()`` on a single
descending key, so ties keep input order.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Sequence

from recovery_engine.classification.classifier import count_by_review_state
from recovery_engine.models.household import Household, Zone
from recovery_engine.models.material import Material
from recovery_engine.taxonomy.case_taxonomy import CaseType, ReviewState, TerminalStatus

logger = logging.getLogger(__name__)

DEFAULT_SHORTAGE_TOP_N = 4


@dataclass(frozen=True)
class MaterialSummary:
    """Global demand/supply totals across all materials.

    Attributes:
        total_demand:    Sum of ``total_demand``.
        total_donated:   Sum of ``total_donated``.
        total_needed:    Sum of per-material ``still_needed``.
        fulfillment_pct: ``round(donated / demand * 100)``; 0 when demand is 0.
    """

    total_demand:    float
    total_donated:   float
    total_needed:    float
    fulfillment_pct: int


@dataclass(frozen=True)
class MaterialFulfillment:
    """Per-material progress row."""

    material:        Material
    fulfillment_pct: int


@dataclass(frozen=True)
class ZoneAggregate:
    """Household counts for one zone. Derived; never persisted."""

    zone_id: str
    zone:    str
    total:   int
    rebuild: int
    repair:  int


@dataclass(frozen=True)
class CaseSummary:
    """Dashboard headline counts."""

    total:     int
    rebuild:   int
    repair:    int
    completed: int
    pending:   int
    approved:  int
    rejected:  int


@dataclass(frozen=True)
class LedgerSnapshot:
    """Everything the ledger derives from one store snapshot."""

    materials:             list[Material]
    summary:               MaterialSummary
    shortages:             list[Material]
    zones:                 list[ZoneAggregate]
    cases:                 CaseSummary
    fulfillment:           list[MaterialFulfillment] = field(default_factory=list)
    damage_area_case_counts: dict[str, int] = field(default_factory=dict)


def fulfillment_pct(donated: float, demand: float) -> int:
    """Rounded donated/demand percentage; 0 when demand is 0.

    Rounds half away from zero (so 12.5% -> 13), not banker's rounding.
    """
    if demand <= 0:
        return 0
    return int(donated / demand * 100 + 0.5)


def summarize_materials(materials: Sequence[Material]) -> MaterialSummary:
    """Sum demand, donated and still-needed across all materials."""
    total_demand  = sum(m.total_demand for m in materials)
    total_donated = sum(m.total_donated for m in materials)
    total_needed  = sum(m.still_needed for m in materials)
    return MaterialSummary(
        total_demand=total_demand,
        total_donated=total_donated,
        total_needed=total_needed,
        fulfillment_pct=fulfillment_pct(total_donated, total_demand),
    )


def critical_shortages(
    materials: Sequence[Material],
    top_n:     int = DEFAULT_SHORTAGE_TOP_N,
) -> list[Material]:
    """Materials with an outstanding shortage, largest first.

    Args:
        materials: Material snapshot.
        top_n:     Maximum number of rows returned.

    Returns:
        At most ``top_n`` materials with ``still_needed > 0``, sorted by
        ``still_needed`` descending; ties keep input order.
    """
    if top_n <= 0:
        return []
    short = [m for m in materials if m.still_needed > 0]
    return sorted(short, key=lambda m: -m.still_needed)[:top_n]


def material_fulfillment(materials: Sequence[Material]) -> list[MaterialFulfillment]:
    """Per-material fulfillment percentage, in input order."""
    return [
        MaterialFulfillment(m, fulfillment_pct(m.total_donated, m.total_demand))
        for m in materials
    ]


def zone_aggregates(
    zones:      Sequence[Zone],
    households: Sequence[Household],
) -> list[ZoneAggregate]:
    """Count households per zone, split by case type.

    Every zone appears, including zones with no households. Households whose
    ``zone_id`` matches no zone are counted nowhere and logged at DEBUG.

    Returns:
        One ``ZoneAggregate`` per zone, sorted by ``total`` descending; ties
        keep zone input order.
    """
    by_zone: dict[str, Counter[CaseType]] = {z.zone_id: Counter() for z in zones}
    unzoned = 0
    for h in households:
        counts = by_zone.get(h.zone_id) if h.zone_id is not None else None
        if counts is None:
            unzoned += 1
            continue
        counts[h.case_type] += 1

    if unzoned:
        logger.debug("%d household(s) reference no known zone", unzoned)

    aggregates = [
        ZoneAggregate(
            zone_id=z.zone_id,
            zone=z.name,
            total=sum(by_zone[z.zone_id].values()),
            rebuild=by_zone[z.zone_id][CaseType.REBUILD],
            repair=by_zone[z.zone_id][CaseType.REPAIR],
        )
        for z in zones
    ]
    return sorted(aggregates, key=lambda a: -a.total)


def summarize_cases(households: Sequence[Household]) -> CaseSummary:
    """Headline case counts for the dashboard and admin overview."""
    by_type = Counter(h.case_type for h in households)
    by_state = count_by_review_state(households)
    return CaseSummary(
        total=len(households),
        rebuild=by_type[CaseType.REBUILD],
        repair=by_type[CaseType.REPAIR],
        completed=sum(1 for h in households if h.status == TerminalStatus.COMPLETED),
        pending=by_state[ReviewState.PENDING],
        approved=by_state[ReviewState.APPROVED],
        rejected=by_state[ReviewState.REJECTED],
    )


def count_cases_by_damage_area(households: Sequence[Household]) -> dict[str, int]:
    """Number of REPAIR households listing each damage-area tag.

    A household that lists the same tag twice is counted once for it.
    """
    counts: Counter[str] = Counter()
    for h in households:
        if h.case_type == CaseType.REPAIR:
            counts.update(set(h.damage_areas))
    return dict(counts)


def build_ledger(
    materials:  Sequence[Material],
    households: Sequence[Household],
    zones:      Sequence[Zone],
    top_n:      int = DEFAULT_SHORTAGE_TOP_N,
) -> LedgerSnapshot:
    """Run every ledger aggregation over one consistent snapshot."""
    snapshot = LedgerSnapshot(
        materials=list(materials),
        summary=summarize_materials(materials),
        shortages=critical_shortages(materials, top_n=top_n),
        zones=zone_aggregates(zones, households),
        cases=summarize_cases(households),
        fulfillment=material_fulfillment(materials),
        damage_area_case_counts=count_cases_by_damage_area(households),
    )
    logger.info(
        "Ledger built: %d materials, %d households, %d zones, %d shortages",
        len(materials), len(households), len(zones), len(snapshot.shortages),
    )
    return snapshot
