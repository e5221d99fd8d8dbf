"""
Tests for the household, material, review and recommendation models.

What we test
------------
Household:
  - Valid construction; damage areas are normalized to uppercase.
  - Vulnerable counts cannot exceed family size; family size >= 1.
  - REPAIR requires at least one damage area; REBUILD does not.
  - Approved + rejected status together is invalid.
  - Frozen.
Material:
  - still_needed = max(demand - donated, 0).
  - None / NaN / inf / negative / non-numeric totals coerce to 0.
  - still_needed appears in model_dump().
Donation:
  - Quantity coerced like material totals.
ReviewUpdate:
  - APPROVED target must set admin_approved; REJECTED must not.
Suggestion union:
  - Discriminated on ``kind``.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from recovery_engine.models.material import Donation, coerce_quantity
from recovery_engine.models.recommendation import (
    RebuildSuggestion,
    RepairLineItem,
    RepairSuggestion,
    SuggestionAdapter,
)
from recovery_engine.models.review import ReviewUpdate
from recovery_engine.taxonomy.case_taxonomy import (
    CaseType,
    PriorityTier,
    ReviewState,
    TerminalStatus,
)


class TestHousehold:
    def test_valid_repair(self, make_household):
        h = make_household(damage_areas=["roof", " wall "])
        assert h.damage_areas == ["ROOF", "WALL"]
        assert h.priority == PriorityTier.MEDIUM
        assert h.admin_approved is False

    def test_rebuild_without_damage_areas(self, make_household):
        h = make_household(case_type=CaseType.REBUILD)
        assert h.damage_areas == []

    def test_repair_without_damage_areas_rejected(self, make_household):
        with pytest.raises(ValidationError, match="damage area"):
            make_household(case_type=CaseType.REPAIR, damage_areas=[])

    def test_blank_tags_dropped_then_rejected(self, make_household):
        with pytest.raises(ValidationError):
            make_household(damage_areas=["", "  "])

    @pytest.mark.parametrize("field", ["elderly_count", "children_count", "disabled_count"])
    def test_count_exceeding_family_size_rejected(self, make_household, field):
        with pytest.raises(ValidationError, match=field):
            make_household(family_size=2, **{field: 3})

    def test_count_equal_to_family_size_allowed(self, make_household):
        h = make_household(family_size=2, elderly_count=2)
        assert h.elderly_count == 2

    def test_zero_family_size_rejected(self, make_household):
        with pytest.raises(ValidationError):
            make_household(family_size=0)

    def test_negative_count_rejected(self, make_household):
        with pytest.raises(ValidationError):
            make_household(children_count=-1)

    def test_progress_bounds(self, make_household):
        with pytest.raises(ValidationError):
            make_household(progress=101)

    def test_approved_and_rejected_is_invalid(self, make_household):
        with pytest.raises(ValidationError, match="approved and rejected"):
            make_household(admin_approved=True, status=TerminalStatus.REJECTED.value)

    def test_vulnerable_count(self, make_household):
        h = make_household(family_size=6, elderly_count=2, children_count=3, disabled_count=1)
        assert h.vulnerable_count == 6

    def test_frozen(self, make_household):
        h = make_household()
        with pytest.raises(ValidationError):
            h.family_size = 9  # type: ignore[misc]

    def test_unknown_case_type_rejected(self, make_household):
        with pytest.raises(ValidationError):
            make_household(case_type="DEMOLISH")


class TestMaterial:
    def test_still_needed_positive(self, make_material):
        m = make_material("zinc", total_demand=100, total_donated=30)
        assert m.still_needed == 70

    def test_still_needed_floors_at_zero(self, make_material):
        m = make_material("zinc", total_demand=100, total_donated=130)
        assert m.still_needed == 0

    def test_category_uppercased(self, make_material):
        assert make_material("zinc", category=" roof ").category == "ROOF"

    @pytest.mark.parametrize("raw", [None, float("nan"), float("inf"), -5, "abc"])
    def test_bad_totals_coerce_to_zero(self, make_material, raw):
        m = make_material("zinc", total_demand=raw, total_donated=raw)
        assert m.total_demand == 0.0
        assert m.total_donated == 0.0
        assert m.still_needed == 0.0

    def test_numeric_string_accepted(self, make_material):
        assert make_material("zinc", total_demand="12.5").total_demand == 12.5

    def test_still_needed_in_dump(self, make_material):
        dumped = make_material("zinc", total_demand=10, total_donated=4).model_dump()
        assert dumped["still_needed"] == 6

    def test_coercion_logs_warning(self, caplog):
        with caplog.at_level(logging.WARNING, logger="recovery_engine.models.material"):
            assert coerce_quantity(float("nan"), "total_demand") == 0.0
        assert "total_demand" in caplog.text

    def test_coerce_quantity_passthrough(self):
        assert coerce_quantity(3) == 3.0
        assert coerce_quantity("nan") == 0.0


class TestDonation:
    def test_negative_quantity_coerced(self):
        d = Donation(
            donor_name="x", material_id="m1", quantity=-3,
            received_at=datetime(2026, 1, 1, tzinfo=timezone.utc),
        )
        assert d.quantity == 0.0
        assert d.donor_type == "individual"
        assert d.donation_id is None


class TestReviewUpdate:
    def test_approval_must_set_flag(self):
        with pytest.raises(ValidationError):
            ReviewUpdate(household_id="h1", admin_approved=False,
                         target_state=ReviewState.APPROVED)

    def test_rejection_cannot_set_flag(self):
        with pytest.raises(ValidationError):
            ReviewUpdate(household_id="h1", admin_approved=True,
                         status=TerminalStatus.REJECTED.value,
                         target_state=ReviewState.REJECTED)

    def test_default_expected_state_is_pending(self):
        u = ReviewUpdate(household_id="h1", admin_approved=True,
                         target_state=ReviewState.APPROVED)
        assert u.expected_state == ReviewState.PENDING


class TestSuggestionUnion:
    def test_rebuild_parsed_by_kind(self):
        parsed = SuggestionAdapter.validate_python(
            {"kind": "REBUILD", "household_id": "h1", "model": "SIZE-M",
             "model_name": "Medium house (48 m²)"}
        )
        assert isinstance(parsed, RebuildSuggestion)
        assert parsed.model == "SIZE-M"

    def test_repair_parsed_by_kind(self):
        suggestion = RepairSuggestion(
            household_id="h2",
            damage_areas=["ROOF"],
            materials=[RepairLineItem(material_id="m1", name="Zinc sheet",
                                      category="ROOF", quantity=3, unit="sheet")],
        )
        parsed = SuggestionAdapter.validate_json(suggestion.model_dump_json())
        assert isinstance(parsed, RepairSuggestion)
        assert parsed.materials[0].quantity == 3

    def test_unknown_kind_rejected(self):
        with pytest.raises(ValidationError):
            SuggestionAdapter.validate_python({"kind": "DEMOLISH", "household_id": "h1"})

    def test_negative_line_quantity_rejected(self):
        with pytest.raises(ValidationError):
            RepairLineItem(material_id="m1", name="x", category="ROOF", quantity=-1)
