"""
Tests for recovery_engine/ledger/aggregates.py.

What we test
------------
- fulfillment_pct(): zero demand, half-up rounding, over-fulfillment.
- summarize_materials(): totals and percentage, empty input.
- critical_shortages(): excludes fully supplied rows, sorts descending,
  keeps input order on ties, honours top_n.
- material_fulfillment(): per-material percentage in input order.
- zone_aggregates(): every zone present, rebuild/repair split, sorted by
  total, unknown zone ids ignored.
- summarize_cases(): dashboard headline counts.
- count_cases_by_damage_area(): REPAIR only, duplicate tags counted once.
- build_ledger(): one snapshot wiring everything together.
"""

from __future__ import annotations

import pytest

from recovery_engine.ledger.aggregates import (
    CaseSummary,
    build_ledger,
    count_cases_by_damage_area,
    critical_shortages,
    fulfillment_pct,
    material_fulfillment,
    summarize_cases,
    summarize_materials,
    zone_aggregates,
)
from recovery_engine.models.household import Zone
from recovery_engine.taxonomy.case_taxonomy import CaseType


class TestFulfillmentPct:
    @pytest.mark.parametrize(
        "donated, demand, expected",
        [
            (0, 0, 0),
            (5, 0, 0),
            (0, 100, 0),
            (1, 8, 13),        # 12.5 rounds up
            (1, 3, 33),
            (2, 3, 67),
            (100, 100, 100),
            (150, 100, 150),
        ],
    )
    def test_values(self, donated, demand, expected):
        assert fulfillment_pct(donated, demand) == expected


class TestSummarizeMaterials:
    def test_totals(self, sample_materials):
        s = summarize_materials(sample_materials)
        assert s.total_demand == 3200
        assert s.total_donated == 1450
        assert s.total_needed == 1750
        assert s.fulfillment_pct == 45

    def test_over_donation_does_not_reduce_other_needs(self, make_material):
        materials = [
            make_material("a", total_demand=100, total_donated=300),
            make_material("b", total_demand=100, total_donated=0),
        ]
        assert summarize_materials(materials).total_needed == 100

    def test_empty(self):
        s = summarize_materials([])
        assert (s.total_demand, s.total_donated, s.total_needed, s.fulfillment_pct) == (0, 0, 0, 0)


class TestCriticalShortages:
    def test_sorted_desc_with_stable_ties(self, sample_materials):
        ids = [m.material_id for m in critical_shortages(sample_materials)]
        assert ids == ["m1", "m4", "m5", "m3"]

    def test_top_n(self, sample_materials):
        assert [m.material_id for m in critical_shortages(sample_materials, top_n=2)] == ["m1", "m4"]

    def test_fully_supplied_excluded(self, make_material):
        materials = [make_material("a", total_demand=10, total_donated=10)]
        assert critical_shortages(materials) == []

    def test_fewer_than_top_n(self, make_material):
        materials = [make_material("a", total_demand=10, total_donated=3)]
        assert len(critical_shortages(materials, top_n=4)) == 1

    def test_non_positive_top_n(self, sample_materials):
        assert critical_shortages(sample_materials, top_n=0) == []


class TestMaterialFulfillment:
    def test_rows(self, sample_materials):
        rows = material_fulfillment(sample_materials)
        assert [r.material.material_id for r in rows] == [m.material_id for m in sample_materials]
        assert [r.fulfillment_pct for r in rows] == [50, 100, 0, 25, 20, 100]


class TestZoneAggregates:
    def test_counts_and_order(self, sample_zones, sample_households):
        zones = zone_aggregates(sample_zones, sample_households)
        assert [(z.zone_id, z.total, z.rebuild, z.repair) for z in zones] == [
            ("z1", 3, 1, 2),
            ("z2", 2, 0, 2),
            ("z3", 0, 0, 0),
        ]

    def test_rebuild_plus_repair_equals_total(self, sample_zones, sample_households):
        for z in zone_aggregates(sample_zones, sample_households):
            assert z.rebuild + z.repair == z.total

    def test_ties_keep_zone_order(self, make_household):
        zones = [Zone(zone_id="a", name="A"), Zone(zone_id="b", name="B")]
        households = [make_household(zone_id="b"), make_household(zone_id="a")]
        assert [z.zone_id for z in zone_aggregates(zones, households)] == ["a", "b"]

    def test_unknown_and_missing_zone_ignored(self, sample_zones, make_household):
        households = [make_household(zone_id="nowhere"), make_household(zone_id=None)]
        assert all(z.total == 0 for z in zone_aggregates(sample_zones, households))

    def test_zone_name_carried(self, sample_zones):
        names = {z.zone_id: z.zone for z in zone_aggregates(sample_zones, [])}
        assert names["z1"] == "คลองแห"


class TestSummarizeCases:
    def test_counts(self, sample_households):
        assert summarize_cases(sample_households) == CaseSummary(
            total=5, rebuild=1, repair=4, completed=1, pending=2, approved=1, rejected=1,
        )

    def test_empty(self):
        assert summarize_cases([]).total == 0


class TestCountCasesByDamageArea:
    def test_repair_only(self, sample_households):
        assert count_cases_by_damage_area(sample_households) == {"ROOF": 2, "WALL": 2, "PAINT": 1}

    def test_duplicate_tags_counted_once(self, make_household):
        h = make_household(damage_areas=["ROOF", "ROOF"])
        assert count_cases_by_damage_area([h]) == {"ROOF": 1}

    def test_rebuild_ignored(self, make_household):
        assert count_cases_by_damage_area([make_household(case_type=CaseType.REBUILD)]) == {}


class TestBuildLedger:
    def test_snapshot(self, sample_materials, sample_households, sample_zones):
        snap = build_ledger(sample_materials, sample_households, sample_zones, top_n=3)
        assert snap.summary.total_needed == 1750
        assert len(snap.shortages) == 3
        assert snap.zones[0].zone_id == "z1"
        assert snap.cases.total == 5
        assert snap.damage_area_case_counts["ROOF"] == 2
        assert [r.fulfillment_pct for r in snap.fulfillment] == [50, 100, 0, 25, 20, 100]

    def test_empty_snapshot(self):
        snap = build_ledger([], [], [])
        assert snap.shortages == []
        assert snap.zones == []
        assert snap.fulfillment == []
        assert snap.summary.fulfillment_pct == 0
