"""
Repair quantity policies: how many units of a selected material one
household should receive.

EvenShareQuantity (default, deterministic)
------------------------------------------
    quantity = ceil(still_needed / cases_needing_category)

``cases_needing_category`` is the number of REPAIR households that list the
material's damage area (floored at 1). A material with no outstanding
shortage gets quantity 0 and is reported as ``covered``.

BoundedRandomQuantity (demo / test fixtures only)
-------------------------------------------------
A uniform integer in ``[low, high)`` drawn from its own seeded
``random.Random``. This is NOT deterministic across seeds and must never
back a production recommendation; suggestions built with it carry
``deterministic = False``.
"""

from __future__ import annotations

import math
import random
from dataclasses import dataclass, field
from typing import Optional, Protocol

from recovery_engine.models.material import Material


class QuantityPolicy(Protocol):
    """Assigns a per-household quantity to a selected material."""

    deterministic: bool

    def quantity_for(self, material: Material, cases_needing_category: int) -> int:
        ...


@dataclass(frozen=True)
class EvenShareQuantity:
    """Split a material's outstanding shortage evenly across the cases needing it."""

    deterministic: bool = True

    def quantity_for(self, material: Material, cases_needing_category: int) -> int:
        if material.still_needed <= 0:
            return 0
        return math.ceil(material.still_needed / max(cases_needing_category, 1))


@dataclass
class BoundedRandomQuantity:
    """Uniform random quantity in ``[low, high)``. Non-deterministic."""

    low:  int = 5
    high: int = 20
    seed: Optional[int] = None
    deterministic: bool = False
    _rng: random.Random = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if not 0 <= self.low < self.high:
            raise ValueError(f"Need 0 <= low < high, got low={self.low}, high={self.high}.")
        self._rng = random.Random(self.seed)

    def quantity_for(self, material: Material, cases_needing_category: int) -> int:
        return self._rng.randrange(self.low, self.high)


def make_quantity_policy(
    name: str,
    low:  int = 5,
    high: int = 20,
    seed: Optional[int] = None,
) -> QuantityPolicy:
    """Build a policy from its config name (``"even_share"`` or ``"bounded_random"``)."""
    if name == "even_share":
        return EvenShareQuantity()
    if name == "bounded_random":
        return BoundedRandomQuantity(low=low, high=high, seed=seed)
    raise ValueError(
        f"Unknown quantity policy '{name}'. Must be one of ['bounded_random', 'even_share']."
    )
