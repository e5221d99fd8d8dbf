"""
Material and donation models.

``Material`` is one supply category row from the store's demand summary:
catalog fields plus precomputed ``total_demand`` and ``total_donated``.
``still_needed`` is a computed field, derived from demand and donated
on every access and is never stored or accepted as input.

Numeric totals are lenient: ``None``, NaN, infinities and unparseable values
coerce to ``0.0`` with a WARNING log, so a single bad row cannot take the
dashboard down.

``Donation`` is an immutable receipt. The engine treats donations as an
append-only input and never rewrites one.
"""

from __future__ import annotations

import logging
import math
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, computed_field, field_validator

logger = logging.getLogger(__name__)


def coerce_quantity(value: Any, field_name: str = "quantity") -> float:
    """Coerce a raw numeric store value to a finite, non-negative float.

    Missing, NaN, infinite, negative or unparseable values become ``0.0``.

    Args:
        value:      Raw value from a store row.
        field_name: Used in the warning log line.

    Returns:
        A finite float >= 0.
    """
    if value is None:
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        logger.warning("Coercing non-numeric %s=%r to 0", field_name, value)
        return 0.0
    if math.isnan(number) or math.isinf(number):
        logger.warning("Coercing non-finite %s=%r to 0", field_name, value)
        return 0.0
    if number < 0:
        logger.warning("Coercing negative %s=%r to 0", field_name, value)
        return 0.0
    return number


class Material(BaseModel):
    """A supply category with demand and donation totals.

    Attributes:
        material_id: Store primary key.
        name: Display name, e.g. ``"Zinc sheet"``.
        category: Damage-area tag this material repairs (e.g. ``"ROOF"``).
        unit: Unit of measure, e.g. ``"sheet"``.
        total_demand: Units requested across all cases.
        total_donated: Units received across all donations.
    """

    model_config = ConfigDict(frozen=True)

    material_id: str
    name: str
    category: str
    unit: str = ""
    total_demand: float = 0.0
    total_donated: float = 0.0

    @field_validator("total_demand", "total_donated", mode="before")
    @classmethod
    def coerce_totals(cls, v: Any, info) -> float:
        return coerce_quantity(v, info.field_name)

    @field_validator("category")
    @classmethod
    def normalize_category(cls, v: str) -> str:
        return v.strip().upper()

    @computed_field  # type: ignore[prop-decorator]
    @property
    def still_needed(self) -> float:
        """``max(total_demand - total_donated, 0)``."""
        return max(self.total_demand - self.total_donated, 0.0)


class Donation(BaseModel):
    """An immutable donation receipt.

    Attributes:
        donation_id: Store primary key; ``None`` before insertion.
        donor_name: Donor display name.
        donor_type: Donor kind, e.g. ``"company"``, ``"individual"``.
        material_id: FK to ``materials.material_id``.
        material_name: Material display name joined in by the store.
        quantity: Units received.
        unit: Unit of measure as written on the receipt.
        received_at: When the donation was received.
    """

    model_config = ConfigDict(frozen=True)

    donation_id: Optional[int] = None
    donor_name: str
    donor_type: str = "individual"
    material_id: str
    material_name: Optional[str] = None
    quantity: float
    unit: str = ""
    received_at: datetime

    @field_validator("quantity", mode="before")
    @classmethod
    def coerce_qty(cls, v: Any) -> float:
        return coerce_quantity(v, "donation.quantity")
