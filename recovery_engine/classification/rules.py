"""
Policy rule tables for case classification and rebuild sizing.

Both policies are ordered threshold tables (data, not branching code) so
they can be tuned from ``config/default.toml`` without touching the
algorithms that walk them.

Priority policy
---------------
A household's vulnerability score is a weighted sum::

    score = elderly_count  * elderly_weight
          + children_count * children_weight
          + disabled_count * disabled_weight
          + max(family_size - baseline_family_size, 0) * extra_member_weight
          + (rebuild_bonus if case_type == REBUILD else 0)

The score is then matched against ``PRIORITY_RULES`` top-down; the first
rule with ``score >= min_score`` wins. The last rule must be a catch-all
(``min_score == 0``).

    HIGH   : score >= 6
    MEDIUM : score >= 3
    LOW    : everything else

Rebuild size buckets
--------------------
Family size is matched against ``SIZE_BUCKETS`` top-down; the first bucket
with ``family_size <= max_family_size`` wins, and a boundary value lands in
the lower bucket. The last bucket has ``max_family_size = None`` (no upper
limit).

    SIZE-S  : <= 2 people   (24 m²)
    SIZE-M  : <= 4 people   (48 m²)
    SIZE-L  : <= 6 people   (64 m²)
    SIZE-XL : anything larger (80 m²)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Sequence

from recovery_engine.taxonomy.case_taxonomy import PriorityTier


@dataclass(frozen=True)
class PriorityRule:
    """One row of the priority table.

    Attributes:
        tier:      Tier assigned when the rule matches.
        min_score: Minimum vulnerability score (inclusive).
    """

    tier:      PriorityTier
    min_score: float


@dataclass(frozen=True)
class VulnerabilityWeights:
    """Weights for the vulnerability score."""

    elderly:              float = 2.0
    children:             float = 1.0
    disabled:             float = 3.0
    extra_member:         float = 1.0
    baseline_family_size: int   = 4
    rebuild_bonus:        float = 2.0


@dataclass(frozen=True)
class PriorityPolicy:
    """Weights plus the ordered tier table."""

    weights: VulnerabilityWeights = field(default_factory=VulnerabilityWeights)
    rules:   tuple[PriorityRule, ...] = ()

    def __post_init__(self) -> None:
        if not self.rules:
            object.__setattr__(self, "rules", PRIORITY_RULES)
        validate_priority_rules(self.rules)


@dataclass(frozen=True)
class SizeBucket:
    """One row of the rebuild size table.

    Attributes:
        code:            Bucket code, e.g. ``"SIZE-M"``.
        max_family_size: Largest family size in this bucket (inclusive);
                         ``None`` for the open-ended last bucket.
        display_name:    Human-readable description.
    """

    code:            str
    max_family_size: Optional[int]
    display_name:    str


PRIORITY_RULES: tuple[PriorityRule, ...] = (
    PriorityRule(PriorityTier.HIGH,   6.0),
    PriorityRule(PriorityTier.MEDIUM, 3.0),
    PriorityRule(PriorityTier.LOW,    0.0),
)

SIZE_BUCKETS: tuple[SizeBucket, ...] = (
    SizeBucket("SIZE-S",  2,    "Small house (24 m²)"),
    SizeBucket("SIZE-M",  4,    "Medium house (48 m²)"),
    SizeBucket("SIZE-L",  6,    "Large house (64 m²)"),
    SizeBucket("SIZE-XL", None, "Extra-large house (80 m²)"),
)

def validate_priority_rules(rules: Sequence[PriorityRule]) -> None:
    """Check that ``rules`` is a usable ordered table.

    Raises:
        ValueError: If empty, not strictly descending by ``min_score``, or
            missing the trailing catch-all rule.
    """
    if not rules:
        raise ValueError("Priority rule table cannot be empty.")
    scores = [r.min_score for r in rules]
    if any(a <= b for a, b in zip(scores, scores[1:])):
        raise ValueError(f"Priority rules must be strictly descending by min_score, got {scores}.")
    if scores[-1] != 0:
        raise ValueError("The last priority rule must be a catch-all with min_score = 0.")


def validate_size_buckets(buckets: Sequence[SizeBucket]) -> None:
    """Check that ``buckets`` is a usable ordered table.

    Raises:
        ValueError: If empty, not strictly ascending, or if any bucket but
            the last is open-ended (or the last one is bounded).
    """
    if not buckets:
        raise ValueError("Size bucket table cannot be empty.")
    if buckets[-1].max_family_size is not None:
        raise ValueError("The last size bucket must be open-ended (max_family_size = None).")
    bounds = [b.max_family_size for b in buckets[:-1]]
    if any(b is None for b in bounds):
        raise ValueError("Only the last size bucket may be open-ended.")
    if any(a >= b for a, b in zip(bounds, bounds[1:])):  # type: ignore[operator]
        raise ValueError(f"Size buckets must be strictly ascending, got {bounds}.")


validate_size_buckets(SIZE_BUCKETS)

DEFAULT_PRIORITY_POLICY = PriorityPolicy()
