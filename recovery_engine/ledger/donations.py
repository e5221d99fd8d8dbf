"""
Donation feed helpers.

Donations are append-only receipts; these helpers only read them.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Iterable, Optional, Sequence

from recovery_engine.models.material import Donation, Material


def tally_donations(donations: Iterable[Donation]) -> dict[str, float]:
    """Sum donated quantity per ``material_id``."""
    totals: dict[str, float] = defaultdict(float)
    for d in donations:
        totals[d.material_id] += d.quantity
    return dict(totals)


def recent_donations(
    donations: Sequence[Donation],
    limit:     Optional[int] = None,
) -> list[Donation]:
    """Donations newest first (stable for equal timestamps).

    Args:
        donations: Donation snapshot.
        limit:     Optional maximum number of rows.
    """
    ordered = sorted(donations, key=lambda d: d.received_at, reverse=True)
    return ordered if limit is None else ordered[: max(limit, 0)]


def with_donation_totals(
    materials: Sequence[Material],
    donations: Iterable[Donation],
) -> list[Material]:
    """Rebuild ``total_donated`` on each material from raw donation receipts.

    Used when the store supplies the material catalog and the receipts
    separately instead of a precomputed demand summary. Materials with no
    receipts end up with ``total_donated = 0``.
    """
    totals = tally_donations(donations)
    return [
        m.model_copy(update={"total_donated": totals.get(m.material_id, 0.0)})
        for m in materials
    ]
