"""
Case taxonomy for disaster-recovery households.

Four orthogonal dimensions describe every case:
  - ``CaseType``      - the *what*: full reconstruction or targeted repair?
  - ``DamageArea``    - the *where*: which part of the structure is damaged?
  - ``PriorityTier``  - the *how urgent*: review-queue ordering tier.
  - ``ReviewState``   - the *where in the workflow*: derived, never stored.

``TerminalStatus`` holds the two distinguished free-text status values the
field teams write into ``households.status``. They are kept verbatim (Thai)
because imported data uses them as-is.

This module has NO imports from any other ``recovery_engine`` package.
"""

from enum import StrEnum


class CaseType(StrEnum):
    """Kind of help a household needs."""

    REBUILD = "REBUILD"
    """House is a total loss; a new house of a standard size is built."""

    REPAIR = "REPAIR"
    """House stands; listed damage areas are repaired from donated stock."""


class DamageArea(StrEnum):
    """Structural damage category. Matches ``Material.category`` tags."""

    ROOF = "ROOF"
    WALL = "WALL"
    DOOR_WINDOW = "DOOR_WINDOW"
    ELECTRICAL = "ELECTRICAL"
    PLUMBING = "PLUMBING"
    PAINT = "PAINT"


class PriorityTier(StrEnum):
    """Coarse urgency ranking used to order the review queue."""

    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


class ReviewState(StrEnum):
    """Position of a household in the approval workflow.

    Derived from ``(admin_approved, status)`` on every read; never persisted.
    """

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    COMPLETED = "COMPLETED"
    """Work finished without an approval decision on record; not reviewable."""


class TerminalStatus(StrEnum):
    """Distinguished ``households.status`` values."""

    COMPLETED = "เสร็จแล้ว"
    REJECTED = "ถูกปฏิเสธ"


# Sort rank for review-queue ordering (lower = reviewed first)
PRIORITY_RANK: dict[PriorityTier, int] = {
    PriorityTier.HIGH: 0,
    PriorityTier.MEDIUM: 1,
    PriorityTier.LOW: 2,
}

DAMAGE_AREA_LABELS: dict[str, str] = {
    "TOTAL_LOSS": "Total loss",
    DamageArea.ROOF: "Roof",
    DamageArea.WALL: "Walls",
    DamageArea.DOOR_WINDOW: "Doors / windows",
    DamageArea.ELECTRICAL: "Electrical",
    DamageArea.PLUMBING: "Plumbing",
    DamageArea.PAINT: "Paint / finishing",
}


def damage_area_label(tag: str) -> str:
    """Return the display label for a damage-area tag (the tag itself if unknown)."""
    return DAMAGE_AREA_LABELS.get(tag, tag)
