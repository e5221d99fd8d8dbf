"""
Case classifier: priority tiers and review-state predicates.

Pure functions over ``Household`` fields with no DB access or cached state.
``review_state()`` is re-evaluated on every call; nothing is written back
onto the household.

Review state rules
------------------
    APPROVED  : admin_approved is True
    REJECTED  : status == TerminalStatus.REJECTED
    COMPLETED : status == TerminalStatus.COMPLETED (no approval on record)
    PENDING   : everything else

Review queue
------------
``review_queue()`` filters by an explicit ``ReviewFilter`` and orders the
result HIGH -> MEDIUM -> LOW by the *stored* priority. Order within a tier
follows input order.
"""

from __future__ import annotations

from collections import Counter
from typing import Iterable, Literal, Optional

from recovery_engine.classification.rules import (
    DEFAULT_PRIORITY_POLICY,
    PriorityPolicy,
)
from recovery_engine.models.household import Household
from recovery_engine.taxonomy.case_taxonomy import (
    PRIORITY_RANK,
    CaseType,
    PriorityTier,
    ReviewState,
    TerminalStatus,
)

ReviewFilter = Literal["pending", "approved", "rejected", "all"]

_FILTER_STATES: dict[str, Optional[ReviewState]] = {
    "pending":  ReviewState.PENDING,
    "approved": ReviewState.APPROVED,
    "rejected": ReviewState.REJECTED,
    "all":      None,
}


# ── Priority ─────────────────────────────────────────────────────────────────


def vulnerability_score(
    family_size:    int,
    elderly_count:  int,
    children_count: int,
    disabled_count: int,
    case_type:      CaseType,
    policy:         PriorityPolicy = DEFAULT_PRIORITY_POLICY,
) -> float:
    """Weighted vulnerability score; see ``classification.rules``."""
    w = policy.weights
    extra_members = max(family_size - w.baseline_family_size, 0)
    score = (
        elderly_count    * w.elderly
        + children_count * w.children
        + disabled_count * w.disabled
        + extra_members  * w.extra_member
    )
    if case_type == CaseType.REBUILD:
        score += w.rebuild_bonus
    return round(score, 4)


def classify_priority(
    family_size:    int,
    elderly_count:  int,
    children_count: int,
    disabled_count: int,
    case_type:      CaseType,
    policy:         PriorityPolicy = DEFAULT_PRIORITY_POLICY,
) -> PriorityTier:
    """Assign a priority tier by walking the policy's rule table.

    Returns:
        Tier of the first rule whose ``min_score`` the score reaches.
    """
    score = vulnerability_score(
        family_size, elderly_count, children_count, disabled_count, case_type, policy
    )
    for rule in policy.rules:
        if score >= rule.min_score:
            return rule.tier
    # Unreachable with a validated table (last rule is a catch-all)
    return policy.rules[-1].tier


def classify_household(
    household: Household,
    policy:    PriorityPolicy = DEFAULT_PRIORITY_POLICY,
) -> PriorityTier:
    """``classify_priority()`` applied to a household's stored fields."""
    return classify_priority(
        family_size=household.family_size,
        elderly_count=household.elderly_count,
        children_count=household.children_count,
        disabled_count=household.disabled_count,
        case_type=household.case_type,
        policy=policy,
    )


# ── Review state ─────────────────────────────────────────────────────────────


def review_state(household: Household) -> ReviewState:
    """Derive the review state from ``(admin_approved, status)``."""
    if household.admin_approved:
        return ReviewState.APPROVED
    if household.status == TerminalStatus.REJECTED:
        return ReviewState.REJECTED
    if household.status == TerminalStatus.COMPLETED:
        return ReviewState.COMPLETED
    return ReviewState.PENDING


def is_pending(household: Household) -> bool:
    return review_state(household) == ReviewState.PENDING


def is_approved(household: Household) -> bool:
    return household.admin_approved


def is_rejected(household: Household) -> bool:
    return household.status == TerminalStatus.REJECTED


def count_by_review_state(households: Iterable[Household]) -> dict[ReviewState, int]:
    """Count households per review state; every state appears (possibly 0)."""
    counts: Counter[ReviewState] = Counter(review_state(h) for h in households)
    return {state: counts.get(state, 0) for state in ReviewState}


def review_queue(
    households:    Iterable[Household],
    review_filter: ReviewFilter = "pending",
) -> list[Household]:
    """Filter households by review state and order them by stored priority.

    Args:
        households:    Household snapshot from the store.
        review_filter: ``"pending"``, ``"approved"``, ``"rejected"`` or ``"all"``.

    Returns:
        Matching households, HIGH tier first; stable within a tier.

    Raises:
        ValueError: If ``review_filter`` is not a known filter.
    """
    if review_filter not in _FILTER_STATES:
        raise ValueError(
            f"Unknown review filter '{review_filter}'. "
            f"Must be one of {sorted(_FILTER_STATES)}."
        )
    wanted = _FILTER_STATES[review_filter]
    selected = [h for h in households if wanted is None or review_state(h) == wanted]
    return sorted(selected, key=lambda h: PRIORITY_RANK[h.priority])
