"""
Approval workflow: the PENDING -> APPROVED | REJECTED state machine.

Transitions
-----------
    PENDING -> APPROVED : admin_approved = True, approved_at = now
    PENDING -> REJECTED : admin_approved = False, status = TerminalStatus.REJECTED

APPROVED and REJECTED are terminal; COMPLETED households are not reviewable.
Any call on a non-pending household raises ``StateConflictError``; an
unknown id raises ``NotFoundError``. Redundant calls are never treated as
no-ops.

Concurrency
-----------
The workflow owns no lock. It hands the store a ``ReviewUpdate`` whose
``expected_state`` the store must re-check atomically (compare-and-set).
If the store reports the precondition failed, another reviewer won the race
and this call raises ``StateConflictError``. Of two concurrent terminal
transitions on one household, at most one succeeds.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Optional, Protocol

from recovery_engine.classification.classifier import review_state
from recovery_engine.errors import NotFoundError, StateConflictError
from recovery_engine.models.household import Household
from recovery_engine.models.review import ReviewUpdate
from recovery_engine.taxonomy.case_taxonomy import ReviewState, TerminalStatus

logger = logging.getLogger(__name__)


class HouseholdStore(Protocol):
    """The slice of the household store the workflow needs."""

    def get(self, household_id: str) -> Optional[Household]:
        ...

    def apply_review_update(self, update: ReviewUpdate) -> bool:
        """Atomically apply ``update`` iff the row is still in ``update.expected_state``.

        Returns:
            ``True`` if the row was written, ``False`` if the precondition failed.
        """
        ...


# ── Pure transition planning ──────────────────────────────────────────────────


def plan_approval(household: Household, now: datetime) -> ReviewUpdate:
    """Build the approval write for a pending household.

    Raises:
        StateConflictError: If the household is not pending.
    """
    _require_pending(household, ReviewState.APPROVED)
    return ReviewUpdate(
        household_id=household.household_id,
        admin_approved=True,
        approved_at=now,
        status=None,
        expected_state=ReviewState.PENDING,
        target_state=ReviewState.APPROVED,
    )


def plan_rejection(household: Household) -> ReviewUpdate:
    """Build the rejection write for a pending household.

    Raises:
        StateConflictError: If the household is not pending.
    """
    _require_pending(household, ReviewState.REJECTED)
    return ReviewUpdate(
        household_id=household.household_id,
        admin_approved=False,
        approved_at=None,
        status=TerminalStatus.REJECTED.value,
        expected_state=ReviewState.PENDING,
        target_state=ReviewState.REJECTED,
    )


def apply_update(household: Household, update: ReviewUpdate) -> Household:
    """Return ``household`` as it looks after ``update`` is written."""
    changes: dict = {"admin_approved": update.admin_approved}
    if update.approved_at is not None:
        changes["approved_at"] = update.approved_at
    if update.status is not None:
        changes["status"] = update.status
    return household.model_copy(update=changes)


def _require_pending(household: Household, attempted: ReviewState) -> None:
    current = review_state(household)
    if current != ReviewState.PENDING:
        raise StateConflictError(household.household_id, current.value, attempted.value)


# ── Store-backed workflow ─────────────────────────────────────────────────────


class ApprovalWorkflow:
    """Runs reviewer decisions against a ``HouseholdStore``.

    Attributes:
        store: Household store providing lookup + compare-and-set writes.
        clock: Returns the current UTC time; injectable for tests.
    """

    def __init__(
        self,
        store: HouseholdStore,
        clock: Callable[[], datetime] = lambda: datetime.now(tz=timezone.utc),
    ) -> None:
        self.store = store
        self.clock = clock

    def approve(self, household_id: str) -> Household:
        """Approve a pending household.

        Returns:
            The household as written.

        Raises:
            NotFoundError:      Unknown ``household_id``.
            StateConflictError: Household not pending, or a concurrent
                decision landed first.
        """
        household = self._load(household_id)
        update = plan_approval(household, self.clock())
        return self._commit(household, update)

    def reject(self, household_id: str) -> Household:
        """Reject a pending household. Terminal; there is no reopen.

        Raises:
            NotFoundError:      Unknown ``household_id``.
            StateConflictError: Household not pending, or a concurrent
                decision landed first.
        """
        household = self._load(household_id)
        update = plan_rejection(household)
        return self._commit(household, update)

    def _load(self, household_id: str) -> Household:
        household = self.store.get(household_id)
        if household is None:
            raise NotFoundError("household", household_id)
        return household

    def _commit(self, household: Household, update: ReviewUpdate) -> Household:
        if not self.store.apply_review_update(update):
            latest = self.store.get(household.household_id)
            current = review_state(latest).value if latest is not None else "UNKNOWN"
            logger.warning(
                "Lost review race on household %s: wanted %s, store now %s",
                household.household_id, update.target_state.value, current,
            )
            raise StateConflictError(
                household.household_id,
                current,
                update.target_state.value,
                detail="Another decision was recorded concurrently.",
            )
        logger.info(
            "Household %s (%s) -> %s",
            household.household_id, household.household_code, update.target_state.value,
        )
        return apply_update(household, update)
