"""Unit tests for the SubmissionLifecycle."""

from types import SimpleNamespace

import pytest

from goagent.domain.enums import SubmissionStatus, Verdict
from goagent.domain.schemas import VerificationResult, VerificationSource
from goagent.services.submission_lifecycle import (
    TERMINAL_STATES,
    TRANSITION_MAP,
    InvalidTransitionError,
    SubmissionLifecycle,
)

S = SubmissionStatus

ADMIN = SimpleNamespace(id="admin-1", role="ADMIN")


@pytest.fixture
def lifecycle():
    return SubmissionLifecycle()


def _make_submission(**kwargs):
    """Create a simple namespace that acts like a submission row."""
    defaults = {"id": "sub-1", "status": S.PENDING.value, "verification": None}
    defaults.update(kwargs)
    return SimpleNamespace(**defaults)


class TestValidTransitions:
    @pytest.mark.parametrize(
        "from_status,to_status",
        [(from_s, to_s) for from_s, targets in TRANSITION_MAP.items() for to_s in targets],
    )
    def test_all_valid_transitions(self, lifecycle, from_status, to_status):
        assert lifecycle.validate_transition(from_status, to_status) is True

    def test_valid_targets(self, lifecycle):
        assert lifecycle.get_valid_targets(S.PENDING) == {S.APPROVED, S.REJECTED}
        assert lifecycle.get_valid_targets(S.APPROVED) == {S.PAID}
        assert lifecycle.get_valid_targets(S.PAID) == set()


class TestInvalidTransitions:
    @pytest.mark.parametrize(
        "from_status,to_status",
        [
            (S.PENDING, S.PAID),
            (S.APPROVED, S.PENDING),
            (S.APPROVED, S.REJECTED),
            (S.REJECTED, S.APPROVED),
            (S.REJECTED, S.PENDING),
            (S.PAID, S.PENDING),
            (S.PAID, S.APPROVED),
        ],
    )
    def test_rejected(self, lifecycle, from_status, to_status):
        with pytest.raises(InvalidTransitionError) as exc_info:
            lifecycle.validate_transition(from_status, to_status)
        assert exc_info.value.current_status == from_status
        assert exc_info.value.target_status == to_status

    @pytest.mark.parametrize("status", list(SubmissionStatus))
    def test_same_status_rejected(self, lifecycle, status):
        with pytest.raises(InvalidTransitionError, match="already in this status"):
            lifecycle.validate_transition(status, status)

    def test_terminal_states(self):
        assert TERMINAL_STATES == {S.PAID, S.REJECTED}

    def test_invalid_advance_leaves_submission_untouched(self, lifecycle):
        sub = _make_submission(status=S.PAID.value, verification={"verdict": "AUTHENTIC"})
        verification = VerificationResult(score=5, verdict=Verdict.SUSPICIOUS, findings="x")
        with pytest.raises(InvalidTransitionError):
            lifecycle.advance(sub, S.PENDING, ADMIN, verification=verification)
        assert sub.status == S.PAID.value
        assert sub.verification == {"verdict": "AUTHENTIC"}


class TestAdvance:
    def test_approve_then_pay_then_no_way_back(self, lifecycle):
        sub = _make_submission()
        lifecycle.advance(sub, S.APPROVED, ADMIN)
        assert sub.status == "APPROVED"
        lifecycle.advance(sub, S.PAID, ADMIN)
        assert sub.status == "PAID"
        with pytest.raises(InvalidTransitionError):
            lifecycle.advance(sub, S.PENDING, ADMIN)
        assert sub.status == "PAID"

    def test_accepts_string_target(self, lifecycle):
        sub = _make_submission()
        lifecycle.advance(sub, "REJECTED", ADMIN)
        assert sub.status == "REJECTED"

    def test_verification_replaces_previous(self, lifecycle):
        sub = _make_submission(verification={"score": 10, "verdict": "SUSPICIOUS"})
        verification = VerificationResult(
            score=82,
            verdict=Verdict.AUTHENTIC,
            findings="Estate found on listings.",
            sources=[VerificationSource(title="X", uri="http://x")],
        )
        lifecycle.advance(sub, S.APPROVED, ADMIN, verification=verification)
        assert sub.verification["score"] == 82
        assert sub.verification["verdict"] == "AUTHENTIC"
        assert sub.verification["sources"] == [{"title": "X", "uri": "http://x"}]

    def test_without_verification_keeps_existing(self, lifecycle):
        sub = _make_submission(verification={"score": 10})
        lifecycle.advance(sub, S.REJECTED, ADMIN)
        assert sub.verification == {"score": 10}
