"""
Error taxonomy for the recovery engine.

  NotFoundError        - an operation references an unknown household,
                         material or zone id.
  StateConflictError   - a terminal workflow transition was attempted on a
                         household that is no longer pending (including the
                         loser of a concurrent approve/reject race).
  CaseValidationError  - a record cannot be turned into a valid domain
                         model (e.g. ``disabled_count > family_size``, or a
                         REPAIR case with no damage areas).

Aggregation and recommendation code never raises these; it degrades
gracefully instead. Workflow errors always propagate to the caller.
"""

from __future__ import annotations

from typing import Optional


class RecoveryError(Exception):
    """Base class for all recovery-engine errors."""


class NotFoundError(RecoveryError, LookupError):
    """Raised when a referenced entity does not exist.

    Attributes:
        entity:    Entity kind, e.g. ``"household"``.
        entity_id: The id that was looked up.
    """

    def __init__(self, entity: str, entity_id: str) -> None:
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} not found: {entity_id}")


class StateConflictError(RecoveryError):
    """Raised when a workflow transition is not allowed from the current state.

    Attributes:
        household_id:  Household the transition targeted.
        current_state: Review state observed when the transition was refused.
        attempted:     Target state of the refused transition.
    """

    def __init__(
        self,
        household_id: str,
        current_state: str,
        attempted: str,
        detail: Optional[str] = None,
    ) -> None:
        self.household_id = household_id
        self.current_state = current_state
        self.attempted = attempted
        msg = (
            f"Household {household_id} cannot move to {attempted}: "
            f"current state is {current_state}."
        )
        if detail:
            msg = f"{msg} {detail}"
        super().__init__(msg)


class CaseValidationError(RecoveryError, ValueError):
    """Raised when a record fails domain validation.

    Attributes:
        errors: Individual validation messages.
    """

    def __init__(self, message: str, errors: Optional[list[str]] = None) -> None:
        self.errors = errors or []
        detail = "; ".join(self.errors)
        super().__init__(f"{message}: {detail}" if detail else message)
