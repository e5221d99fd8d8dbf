"""Tests for the donation feed helpers in recovery_engine/ledger/donations.py."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from recovery_engine.ledger.donations import (
    recent_donations,
    tally_donations,
    with_donation_totals,
)
from recovery_engine.models.material import Donation

_T0 = datetime(2025, 12, 1, tzinfo=timezone.utc)


def _donation(material_id: str, quantity: float, days: int, donor: str = "d") -> Donation:
    return Donation(
        donor_name=donor,
        material_id=material_id,
        quantity=quantity,
        received_at=_T0 + timedelta(days=days),
    )


class TestTallyDonations:
    def test_sums_per_material(self):
        totals = tally_donations([_donation("m1", 10, 0), _donation("m1", 5, 1), _donation("m2", 2, 2)])
        assert totals == {"m1": 15, "m2": 2}

    def test_empty(self):
        assert tally_donations([]) == {}


class TestRecentDonations:
    def test_newest_first(self):
        feed = recent_donations([_donation("m1", 1, 0), _donation("m1", 1, 5), _donation("m1", 1, 2)])
        assert [d.received_at.day for d in feed] == [6, 3, 1]

    def test_limit(self):
        feed = recent_donations([_donation("m1", 1, i) for i in range(10)], limit=3)
        assert len(feed) == 3
        assert feed[0].received_at == _T0 + timedelta(days=9)

    def test_equal_timestamps_keep_input_order(self):
        a, b = _donation("m1", 1, 0, donor="a"), _donation("m1", 1, 0, donor="b")
        assert [d.donor_name for d in recent_donations([a, b])] == ["a", "b"]

    def test_negative_limit_returns_nothing(self):
        assert recent_donations([_donation("m1", 1, 0)], limit=-1) == []


class TestWithDonationTotals:
    def test_rebuilds_totals(self, make_material):
        materials = [make_material("m1", total_demand=100, total_donated=999),
                     make_material("m2", total_demand=50)]
        rebuilt = with_donation_totals(materials, [_donation("m1", 30, 0), _donation("m1", 10, 1)])
        assert rebuilt[0].total_donated == 40
        assert rebuilt[0].still_needed == 60
        assert rebuilt[1].total_donated == 0
        assert rebuilt[1].still_needed == 50
