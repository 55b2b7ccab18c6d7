"""Commission calculation for drive submissions.

Agents earn a flat rate per unit on the property they onboard. The amount is
fixed when the submission is created and never recomputed.
"""

from dataclasses import dataclass, field
from typing import Iterable

from goagent.domain.enums import SubmissionStatus

# Naira per unit, per the Field Operations Agreement
COMMISSION_RATE_NGN = 450


def compute_commission(units: int) -> int:
    """Return the commission owed for ``units`` onboarded units.

    Raises:
        ValueError: ``units`` is not a non-negative integer.
    """
    if isinstance(units, bool) or not isinstance(units, int):
        raise ValueError(f"Unit count must be an integer, got {units!r}")
    if units < 0:
        raise ValueError(f"Unit count must be non-negative, got {units}")
    return units * COMMISSION_RATE_NGN


@dataclass
class CommissionSummary:
    """Dashboard figures for a set of submissions."""

    total_earned: int = 0
    pending_commission: int = 0
    total_units: int = 0
    total_submissions: int = 0
    submissions_by_month: list[int] = field(default_factory=lambda: [0] * 12)


def summarize_commissions(submissions: Iterable) -> CommissionSummary:
    """Aggregate earnings across submissions.

    PAID submissions count as earned; every other status (REJECTED included)
    is reported as pending, which is what the agent dashboard has always shown.
    """
    summary = CommissionSummary()
    for sub in submissions:
        amount = sub.estimated_commission or 0
        if sub.status == SubmissionStatus.PAID.value:
            summary.total_earned += amount
        else:
            summary.pending_commission += amount
        summary.total_units += sub.no_of_units or 0
        summary.total_submissions += 1
        if sub.submission_date is not None:
            summary.submissions_by_month[sub.submission_date.month - 1] += 1
    return summary
