"""Submission lifecycle: validates status transitions for drive submissions.

PENDING -> APPROVED | REJECTED, APPROVED -> PAID. PAID and REJECTED are
terminal. Only admins move submissions; the route layer checks the role
before calling in, so this module trusts its caller.
"""

import logging

from goagent.domain.enums import SubmissionStatus
from goagent.domain.schemas import VerificationResult

logger = logging.getLogger(__name__)


class InvalidTransitionError(Exception):
    """Raised when a submission status transition is not allowed."""

    def __init__(
        self,
        current_status: SubmissionStatus,
        target_status: SubmissionStatus,
        reason: str,
    ):
        self.current_status = current_status
        self.target_status = target_status
        self.reason = reason
        super().__init__(
            f"Invalid transition from {current_status.value} to {target_status.value}: {reason}"
        )


S = SubmissionStatus

TRANSITION_MAP: dict[SubmissionStatus, set[SubmissionStatus]] = {
    S.PENDING: {S.APPROVED, S.REJECTED},
    S.APPROVED: {S.PAID},
    S.PAID: set(),
    S.REJECTED: set(),
}

TERMINAL_STATES: set[SubmissionStatus] = {
    s for s, targets in TRANSITION_MAP.items() if not targets
}


class SubmissionLifecycle:
    """Validates and applies submission status transitions."""

    def validate_transition(
        self,
        current_status: SubmissionStatus,
        target_status: SubmissionStatus,
    ) -> bool:
        """Return True if the transition is valid. Raise InvalidTransitionError if not."""
        if current_status == target_status:
            raise InvalidTransitionError(
                current_status, target_status, "submission is already in this status"
            )
        if current_status in TERMINAL_STATES:
            raise InvalidTransitionError(
                current_status, target_status, f"{current_status.value} is a terminal status"
            )
        if target_status not in TRANSITION_MAP[current_status]:
            allowed = ", ".join(sorted(s.value for s in TRANSITION_MAP[current_status]))
            raise InvalidTransitionError(
                current_status, target_status, f"allowed next statuses: {allowed}"
            )
        return True

    def get_valid_targets(self, current_status: SubmissionStatus) -> set[SubmissionStatus]:
        return set(TRANSITION_MAP[current_status])

    def advance(
        self,
        submission,
        target_status: SubmissionStatus,
        actor,
        verification: VerificationResult | None = None,
    ):
        """Move ``submission`` to ``target_status``.

        When ``verification`` is given it replaces whatever verdict the
        submission carried. Nothing is touched if the transition is invalid.
        """
        current = SubmissionStatus(submission.status)
        target = SubmissionStatus(target_status)
        self.validate_transition(current, target)

        submission.status = target.value
        if verification is not None:
            submission.verification = verification.model_dump(mode="json")

        logger.info(
            "Submission %s: %s -> %s by %s",
            submission.id, current.value, target.value, getattr(actor, "id", actor),
        )
        return submission
