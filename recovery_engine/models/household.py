"""
Household and zone models.

``Household`` is one recovery case as read from the store. Its review
position (pending / approved / rejected) is NOT a field; it is derived from
``admin_approved`` and ``status`` by the case classifier on every read.

``Zone`` is a geographic grouping referenced by ``Household.zone_id``; the
engine only aggregates over zones and never mutates them.

Both models are frozen. Workflow transitions produce a ``ReviewUpdate`` for
the store rather than mutating a household in place.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from recovery_engine.taxonomy.case_taxonomy import (
    CaseType,
    PriorityTier,
    TerminalStatus,
)


class Zone(BaseModel):
    """A geographic grouping of households.

    Attributes:
        zone_id: Store primary key.
        name: Display name (sub-district).
        gps_lat: Latitude of the zone centroid.
        gps_lng: Longitude of the zone centroid.
    """

    model_config = ConfigDict(frozen=True)

    zone_id: str
    name: str
    gps_lat: Optional[float] = None
    gps_lng: Optional[float] = None


class Household(BaseModel):
    """A recovery case.

    Attributes:
        household_id: Store primary key.
        household_code: Human-readable case code, e.g. ``"HH-0042"``.
        head_of_household: Name of the head of household.
        address: Street address.
        zone_id: FK to ``zones.zone_id``; ``None`` if unassigned.
        zone_name: Zone display name joined in by the store, if available.
        family_size: Number of people in the household (>= 1).
        case_type: ``REBUILD`` or ``REPAIR``.
        damage_areas: Damage-area tags in field-survey order. Required
            (non-empty) for ``REPAIR``; ignored for ``REBUILD``.
        elderly_count: Elderly members (0..family_size).
        children_count: Children (0..family_size).
        disabled_count: Members with disabilities (0..family_size).
        progress: Work progress percentage (0..100).
        status: Free-text status written by field teams.
        priority: Stored priority tier.
        admin_approved: ``True`` once an admin approved the case.
        approved_at: UTC timestamp of the approval, if any.
    """

    model_config = ConfigDict(frozen=True)

    household_id: str
    household_code: str
    head_of_household: str
    address: str = ""
    zone_id: Optional[str] = None
    zone_name: Optional[str] = None
    family_size: int = Field(ge=1)
    case_type: CaseType
    damage_areas: list[str] = []
    elderly_count: int = Field(default=0, ge=0)
    children_count: int = Field(default=0, ge=0)
    disabled_count: int = Field(default=0, ge=0)
    progress: int = Field(default=0, ge=0, le=100)
    status: str = ""
    priority: PriorityTier = PriorityTier.MEDIUM
    admin_approved: bool = False
    approved_at: Optional[datetime] = None

    @field_validator("damage_areas")
    @classmethod
    def normalize_damage_areas(cls, v: list[str]) -> list[str]:
        return [tag.strip().upper() for tag in v if tag and tag.strip()]

    @model_validator(mode="after")
    def validate_case(self) -> "Household":
        for field in ("elderly_count", "children_count", "disabled_count"):
            count = getattr(self, field)
            if count > self.family_size:
                raise ValueError(
                    f"{field} ({count}) cannot exceed family_size ({self.family_size})."
                )
        if self.case_type == CaseType.REPAIR and not self.damage_areas:
            raise ValueError("A REPAIR case must list at least one damage area.")
        if self.admin_approved and self.status == TerminalStatus.REJECTED:
            raise ValueError("A household cannot be both approved and rejected.")
        return self

    @property
    def vulnerable_count(self) -> int:
        """Elderly + children + disabled members (may double count a person)."""
        return self.elderly_count + self.children_count + self.disabled_count
