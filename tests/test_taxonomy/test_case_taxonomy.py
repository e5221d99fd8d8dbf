"""Tests for case taxonomy integrity: enums, ranks, labels."""

from __future__ import annotations

from recovery_engine.taxonomy.case_taxonomy import (
    DAMAGE_AREA_LABELS,
    PRIORITY_RANK,
    CaseType,
    DamageArea,
    PriorityTier,
    ReviewState,
    TerminalStatus,
    damage_area_label,
)


class TestCaseTypeEnum:
    def test_exactly_two_case_types(self):
        assert {m.value for m in CaseType} == {"REBUILD", "REPAIR"}

    def test_compares_equal_to_raw_string(self):
        assert CaseType.REPAIR == "REPAIR"


class TestDamageAreaEnum:
    def test_values_are_uppercase_slugs(self):
        for member in DamageArea:
            assert member.value == member.value.upper()
            assert " " not in member.value

    def test_every_area_has_a_label(self):
        missing = {m.value for m in DamageArea} - set(DAMAGE_AREA_LABELS)
        assert not missing, f"Damage areas without a label: {missing}"


class TestPriorityRank:
    def test_every_tier_ranked(self):
        assert set(PRIORITY_RANK) == set(PriorityTier)

    def test_high_before_medium_before_low(self):
        assert PRIORITY_RANK[PriorityTier.HIGH] < PRIORITY_RANK[PriorityTier.MEDIUM]
        assert PRIORITY_RANK[PriorityTier.MEDIUM] < PRIORITY_RANK[PriorityTier.LOW]


class TestReviewStateEnum:
    def test_four_states(self):
        assert {m.value for m in ReviewState} == {"PENDING", "APPROVED", "REJECTED", "COMPLETED"}


class TestTerminalStatus:
    def test_thai_values_preserved(self):
        assert TerminalStatus.COMPLETED == "เสร็จแล้ว"
        assert TerminalStatus.REJECTED == "ถูกปฏิเสธ"

    def test_values_distinct(self):
        assert TerminalStatus.COMPLETED != TerminalStatus.REJECTED


class TestDamageAreaLabel:
    def test_known_tag(self):
        assert damage_area_label("ROOF") == "Roof"

    def test_unknown_tag_falls_back_to_tag(self):
        assert damage_area_label("GARDEN") == "GARDEN"
