# tests/test_architecture.py

"""Tests for trim ladders and cross-brand segment comparison."""

import unittest
from datetime import date

from src.analytics.architecture import ArchitectureBuilder, build_ladder, compare_segments
from tests.helpers import FIXED_NOW, make_record, store_with

DAY = date(2026, 3, 1)


class TestBuildLadder(unittest.TestCase):
    def setUp(self) -> None:
        self.ladder = build_ladder("volkswagen", "Volkswagen", "Golf", [
            make_record(trim="Style", price=1_300_000),
            make_record(trim="Life", price=1_100_000),
            make_record(trim="R-Line", price=1_500_000),
        ])

    def test_trims_sorted_by_price(self) -> None:
        self.assertEqual(
            [s.trim for s in self.ladder.trims], ["Life", "Style", "R-Line"]
        )

    def test_spread(self) -> None:
        self.assertEqual(self.ladder.base_price, 1_100_000)
        self.assertEqual(self.ladder.top_price, 1_500_000)
        self.assertEqual(self.ladder.price_spread, 400_000)
        self.assertEqual(self.ladder.price_spread_percent, 36.36)
        self.assertEqual(self.ladder.trim_count, 3)

    def test_steps(self) -> None:
        style = self.ladder.trims[1]
        self.assertEqual(style.step_from_base, 200_000)
        self.assertEqual(style.step_percent, 18.18)
        self.assertEqual(self.ladder.trims[0].step_percent, 0.0)

    def test_identity(self) -> None:
        self.assertEqual(self.ladder.id, "volkswagen-golf")
        self.assertEqual(self.ladder.segment, "Hatchback-C")


class TestCompareSegments(unittest.TestCase):
    def test_needs_two_distinct_models(self) -> None:
        golf = build_ladder("volkswagen", "Volkswagen", "Golf", [
            make_record(price=1_400_000),
        ])
        scala = build_ladder("skoda", "Škoda", "Scala", [
            make_record(brand="Škoda", model="Scala", price=1_200_000),
            make_record(brand="Škoda", model="Scala", trim="Monte Carlo",
                        price=1_500_000),
        ])
        polo = build_ladder("volkswagen", "Volkswagen", "Polo", [
            make_record(model="Polo", price=900_000),
        ])
        comparisons = compare_segments([golf, scala, polo])

        self.assertEqual([c.segment for c in comparisons], ["Hatchback-C"])
        entries = comparisons[0].models
        self.assertEqual([e.model for e in entries], ["Scala", "Golf"])
        self.assertEqual(comparisons[0].avg_base_price, 1_300_000)
        self.assertEqual(comparisons[0].avg_top_price, 1_450_000)


class TestArchitectureBuilder(unittest.TestCase):
    def test_report(self) -> None:
        store = store_with({DAY: [
            make_record(trim="Life", price=1_100_000),
            make_record(trim="Style", price=1_300_000),
            make_record(model="Polo", price=900_000),
            make_record(model="Polo", trim="GTI", price=0.0),
        ]})
        store_with(
            {DAY: [make_record(brand="Škoda", model="Scala", price=1_000_000)]},
            brand_id="skoda", brand_name="Škoda", store=store,
        )
        report = ArchitectureBuilder(store).generate(FIXED_NOW)

        self.assertEqual(report.date, DAY)
        self.assertEqual(report.summary.total_models, 3)
        polo = next(l for l in report.ladders if l.model == "Polo")
        self.assertEqual(polo.trim_count, 1)
        self.assertEqual(report.summary.avg_trims_per_model, 1.3)
        self.assertEqual(len(report.cross_brand_comparison), 1)

    def test_empty_store(self) -> None:
        report = ArchitectureBuilder(store_with({})).generate(FIXED_NOW)
        self.assertEqual(report.ladders, [])
        self.assertEqual(report.summary.total_models, 0)


if __name__ == "__main__":
    unittest.main()
