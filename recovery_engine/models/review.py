"""
Review update: the single write shape the engine hands to the store.

A ``ReviewUpdate`` carries the new lifecycle fields for one household plus
the precondition the store must re-check atomically before writing it
(compare-and-set). The store applies the update only if the row is still in
``expected_state``; otherwise it must leave the row untouched and report a
lost race so the workflow can raise ``StateConflictError``.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, model_validator

from recovery_engine.taxonomy.case_taxonomy import ReviewState


class ReviewUpdate(BaseModel):
    """Lifecycle write for one household.

    Attributes:
        household_id: Row to update.
        admin_approved: New approval flag.
        approved_at: Approval timestamp (set only for approvals).
        status: New status string, or ``None`` to leave the status unchanged.
        expected_state: Review state the row must still be in for the write
            to apply.
        target_state: Review state the row will be in after the write.
    """

    model_config = ConfigDict(frozen=True)

    household_id: str
    admin_approved: bool
    approved_at: Optional[datetime] = None
    status: Optional[str] = None
    expected_state: ReviewState = ReviewState.PENDING
    target_state: ReviewState

    @model_validator(mode="after")
    def validate_target(self) -> "ReviewUpdate":
        if self.target_state == ReviewState.APPROVED and not self.admin_approved:
            raise ValueError("An APPROVED update must set admin_approved.")
        if self.target_state == ReviewState.REJECTED and self.admin_approved:
            raise ValueError("A REJECTED update cannot set admin_approved.")
        return self
