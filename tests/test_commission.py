"""Unit tests for commission calculation and the dashboard summary."""

from datetime import datetime
from types import SimpleNamespace

import pytest

from goagent.services.commission import (
    COMMISSION_RATE_NGN,
    compute_commission,
    summarize_commissions,
)


def _sub(status="PENDING", units=10, month=1, commission=None):
    return SimpleNamespace(
        status=status,
        no_of_units=units,
        estimated_commission=compute_commission(units) if commission is None else commission,
        submission_date=datetime(2026, month, 15),
    )


class TestComputeCommission:
    @pytest.mark.parametrize("units,expected", [(0, 0), (1, 450), (120, 54000), (1000, 450000)])
    def test_flat_rate_per_unit(self, units, expected):
        assert compute_commission(units) == expected

    def test_rate_constant(self):
        assert COMMISSION_RATE_NGN == 450

    def test_negative_units_rejected(self):
        with pytest.raises(ValueError):
            compute_commission(-1)

    @pytest.mark.parametrize("value", [1.5, "10", None, True])
    def test_non_integer_rejected(self, value):
        with pytest.raises(ValueError):
            compute_commission(value)


class TestSummarizeCommissions:
    def test_empty(self):
        summary = summarize_commissions([])
        assert summary.total_earned == 0
        assert summary.pending_commission == 0
        assert summary.total_submissions == 0
        assert summary.submissions_by_month == [0] * 12

    def test_paid_is_earned_everything_else_pending(self):
        summary = summarize_commissions([
            _sub("PAID", 10),
            _sub("APPROVED", 20),
            _sub("PENDING", 30),
            _sub("REJECTED", 40),
        ])
        assert summary.total_earned == 4500
        assert summary.pending_commission == (20 + 30 + 40) * 450
        assert summary.total_units == 100
        assert summary.total_submissions == 4

    def test_uses_stored_commission_not_recomputed(self):
        summary = summarize_commissions([_sub("PAID", units=10, commission=999)])
        assert summary.total_earned == 999

    def test_month_buckets(self):
        summary = summarize_commissions([_sub(month=1), _sub(month=1), _sub(month=12)])
        assert summary.submissions_by_month[0] == 2
        assert summary.submissions_by_month[11] == 1
        assert sum(summary.submissions_by_month) == 3
