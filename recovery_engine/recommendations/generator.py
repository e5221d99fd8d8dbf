"""
Recommendation generator: one rebuild-or-repair suggestion per household.

Each household is handled independently against the current catalog
snapshot; no supply is reserved or split between concurrent suggestions.

REBUILD
-------
Family size walks the ordered ``SizeBucket`` table (see
``classification.rules``); the first bucket whose ``max_family_size`` is at
least the family size wins.

REPAIR
------
For each damage area on the household, in household order and with
duplicates preserved, take up to ``max_per_area`` catalog materials whose
category equals the tag (catalog order). The combined list is then
truncated to ``max_line_items``. Each line gets a quantity from the
configured ``QuantityPolicy``.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Optional, Sequence

from recovery_engine.classification.rules import SIZE_BUCKETS, SizeBucket
from recovery_engine.ledger.aggregates import count_cases_by_damage_area
from recovery_engine.models.household import Household
from recovery_engine.models.material import Material
from recovery_engine.models.recommendation import (
    RebuildSuggestion,
    RepairLineItem,
    RepairSuggestion,
    Suggestion,
)
from recovery_engine.recommendations.quantity import EvenShareQuantity, QuantityPolicy
from recovery_engine.taxonomy.case_taxonomy import CaseType

logger = logging.getLogger(__name__)

DEFAULT_MAX_PER_AREA = 2
DEFAULT_MAX_LINE_ITEMS = 6


@dataclass(frozen=True)
class MaterialCatalog:
    """Catalog snapshot the generator selects from.

    Attributes:
        materials:               Materials in store order.
        damage_area_case_counts: REPAIR households per damage-area tag.
    """

    materials:               tuple[Material, ...]
    damage_area_case_counts: dict[str, int] = field(default_factory=dict)

    def by_category(self) -> dict[str, list[Material]]:
        grouped: dict[str, list[Material]] = defaultdict(list)
        for m in self.materials:
            grouped[m.category].append(m)
        return grouped


def build_catalog(
    materials:  Sequence[Material],
    households: Sequence[Household] = (),
) -> MaterialCatalog:
    """Bundle a material snapshot with per-tag REPAIR case counts."""
    return MaterialCatalog(
        materials=tuple(materials),
        damage_area_case_counts=count_cases_by_damage_area(households),
    )


def select_size_bucket(
    family_size: int,
    buckets:     Sequence[SizeBucket] = SIZE_BUCKETS,
) -> SizeBucket:
    """First bucket whose ``max_family_size`` is >= ``family_size``."""
    for bucket in buckets:
        if bucket.max_family_size is None or family_size <= bucket.max_family_size:
            return bucket
    # A validated table ends with an open bucket; fall back to the largest
    return buckets[-1]


def recommend_rebuild(
    household: Household,
    buckets:   Sequence[SizeBucket] = SIZE_BUCKETS,
) -> RebuildSuggestion:
    bucket = select_size_bucket(household.family_size, buckets)
    return RebuildSuggestion(
        household_id=household.household_id,
        model=bucket.code,
        model_name=bucket.display_name,
    )


def recommend_repair(
    household:       Household,
    catalog:         MaterialCatalog,
    quantity_policy: Optional[QuantityPolicy] = None,
    max_per_area:    int = DEFAULT_MAX_PER_AREA,
    max_line_items:  int = DEFAULT_MAX_LINE_ITEMS,
) -> RepairSuggestion:
    """Build a repair bill of materials.

    Damage areas with no matching catalog materials contribute nothing.
    """
    policy = quantity_policy or EvenShareQuantity()
    grouped = catalog.by_category()

    selected: list[Material] = []
    for area in household.damage_areas:
        selected.extend(grouped.get(area, [])[: max(max_per_area, 0)])
    selected = selected[: max(max_line_items, 0)]

    lines = [
        RepairLineItem(
            material_id=m.material_id,
            name=m.name,
            category=m.category,
            quantity=policy.quantity_for(m, catalog.damage_area_case_counts.get(m.category, 0)),
            unit=m.unit,
            covered=m.still_needed <= 0,
        )
        for m in selected
    ]

    if not lines:
        logger.debug(
            "No catalog materials for household %s damage areas %s",
            household.household_id, household.damage_areas,
        )

    return RepairSuggestion(
        household_id=household.household_id,
        damage_areas=list(household.damage_areas),
        materials=lines,
        deterministic=policy.deterministic,
    )


def recommend(
    household:       Household,
    catalog:         MaterialCatalog,
    buckets:         Sequence[SizeBucket] = SIZE_BUCKETS,
    quantity_policy: Optional[QuantityPolicy] = None,
    max_per_area:    int = DEFAULT_MAX_PER_AREA,
    max_line_items:  int = DEFAULT_MAX_LINE_ITEMS,
) -> Suggestion:
    """Produce the suggestion for one household, dispatching on case type."""
    if household.case_type == CaseType.REBUILD:
        return recommend_rebuild(household, buckets)
    return recommend_repair(
        household,
        catalog,
        quantity_policy=quantity_policy,
        max_per_area=max_per_area,
        max_line_items=max_line_items,
    )


def recommend_all(
    households:      Sequence[Household],
    catalog:         MaterialCatalog,
    buckets:         Sequence[SizeBucket] = SIZE_BUCKETS,
    quantity_policy: Optional[QuantityPolicy] = None,
    max_per_area:    int = DEFAULT_MAX_PER_AREA,
    max_line_items:  int = DEFAULT_MAX_LINE_ITEMS,
) -> dict[str, Suggestion]:
    """Suggestions for every household, keyed by ``household_id``."""
    policy = quantity_policy or EvenShareQuantity()
    return {
        h.household_id: recommend(
            h, catalog, buckets, policy, max_per_area, max_line_items
        )
        for h in households
    }
