# tests/test_events.py

"""Tests for the snapshot diff and event engine."""

import unittest
from datetime import date, datetime

from src.analytics.events import (
    EventEngine,
    EventType,
    big_moves,
    consecutive_pairs,
    diff_snapshots,
    volatility_rollups,
)
from src.models.snapshot import Snapshot
from tests.helpers import FIXED_NOW, make_record, store_with

DAY1 = date(2026, 3, 1)
DAY2 = date(2026, 3, 2)
DAY3 = date(2026, 3, 3)


def _snapshot(day: date, records: list, is_fallback: bool = False) -> Snapshot:
    return Snapshot(
        brand_id="volkswagen",
        brand="Volkswagen",
        date=day,
        collected_at=datetime.combine(day, datetime.min.time()),
        records=tuple(records),
        is_fallback=is_fallback,
    )


class TestDiffSnapshots(unittest.TestCase):
    """diff_snapshots over one adjacent pair."""

    def test_price_increase(self) -> None:
        """1,000,000 -> 1,100,000 is +100,000 and +10%."""
        events = diff_snapshots(
            _snapshot(DAY1, [make_record(price=1_000_000)]),
            _snapshot(DAY2, [make_record(price=1_100_000)]),
        )
        self.assertEqual(len(events), 1)
        event = events[0]
        self.assertEqual(event.type, EventType.PRICE_INCREASE)
        self.assertEqual(event.price_change, 100_000)
        self.assertEqual(event.price_change_percent, 10.0)
        self.assertEqual(event.old_price, 1_000_000)
        self.assertEqual(event.new_price, 1_100_000)
        self.assertEqual(event.date, DAY2)
        self.assertEqual(event.previous_date, DAY1)
        self.assertEqual(event.id, "volkswagen-golf-life-1.5-tsi-price_increase-2026-03-02")

    def test_only_changed_trim_reported(self) -> None:
        """TrimTop keeps its price, so only TrimBase yields an event."""
        events = diff_snapshots(
            _snapshot(DAY1, [
                make_record(trim="TrimBase", price=1_000_000),
                make_record(trim="TrimTop", price=1_500_000),
            ]),
            _snapshot(DAY2, [
                make_record(trim="TrimBase", price=1_100_000),
                make_record(trim="TrimTop", price=1_500_000),
            ]),
        )
        self.assertEqual(len(events), 1)
        self.assertEqual(events[0].trim, "TrimBase")
        self.assertEqual(events[0].type, EventType.PRICE_INCREASE)
        self.assertEqual(events[0].price_change_percent, 10.0)
        self.assertFalse(any(e.trim == "TrimTop" for e in events))

    def test_price_decrease_percent_rounded(self) -> None:
        events = diff_snapshots(
            _snapshot(DAY1, [make_record(price=1_500_000)]),
            _snapshot(DAY2, [make_record(price=1_450_000)]),
        )
        self.assertEqual(events[0].type, EventType.PRICE_DECREASE)
        self.assertEqual(events[0].price_change, -50_000)
        self.assertEqual(events[0].price_change_percent, -3.33)

    def test_unchanged_produces_nothing(self) -> None:
        records = [make_record(trim="Life"), make_record(trim="Style")]
        self.assertEqual(
            diff_snapshots(_snapshot(DAY1, records), _snapshot(DAY2, records)),
            [],
        )

    def test_identity_ignores_case_and_spacing(self) -> None:
        events = diff_snapshots(
            _snapshot(DAY1, [make_record(trim="R-Line", engine="1.5 TSI")]),
            _snapshot(DAY2, [make_record(trim="r-line ", engine="1.5  tsi")]),
        )
        self.assertEqual(events, [])

    def test_event_order(self) -> None:
        """New, then removed, then price changes."""
        previous = _snapshot(DAY1, [
            make_record(trim="Life", price=1_000_000),
            make_record(trim="Impression", price=950_000),
        ])
        current = _snapshot(DAY2, [
            make_record(trim="Life", price=1_050_000),
            make_record(trim="R-Line", price=1_300_000),
        ])
        events = diff_snapshots(previous, current)
        self.assertEqual(
            [(e.type, e.trim) for e in events],
            [
                (EventType.NEW, "R-Line"),
                (EventType.REMOVED, "Impression"),
                (EventType.PRICE_INCREASE, "Life"),
            ],
        )
        self.assertEqual(events[0].new_price, 1_300_000)
        self.assertIsNone(events[0].old_price)
        self.assertEqual(events[1].old_price, 950_000)


class TestConsecutivePairs(unittest.TestCase):
    def test_fallback_days_skipped(self) -> None:
        day1 = _snapshot(DAY1, [make_record(price=1_000_000)])
        day2 = _snapshot(DAY2, [make_record(price=1_000_000)], is_fallback=True)
        day3 = _snapshot(DAY3, [make_record(price=1_100_000)])
        pairs = consecutive_pairs([day3, day1, day2])
        self.assertEqual([(a.date, b.date) for a, b in pairs], [(DAY1, DAY3)])

    def test_fallback_kept_when_disabled(self) -> None:
        day1 = _snapshot(DAY1, [])
        day2 = _snapshot(DAY2, [], is_fallback=True)
        pairs = consecutive_pairs([day1, day2], skip_fallback=False)
        self.assertEqual(len(pairs), 1)

    def test_single_snapshot_has_no_pairs(self) -> None:
        self.assertEqual(consecutive_pairs([_snapshot(DAY1, [])]), [])


class TestRollups(unittest.TestCase):
    def _events(self) -> list:
        previous = _snapshot(DAY1, [
            make_record(model="Golf", trim="Life", price=1_000_000),
            make_record(model="Golf", trim="Style", price=1_200_000),
            make_record(model="Polo", trim="Life", price=800_000),
        ])
        current = _snapshot(DAY2, [
            make_record(model="Golf", trim="Life", price=1_100_000),
            make_record(model="Golf", trim="Style", price=1_140_000),
            make_record(model="Polo", trim="Life", price=840_000),
        ])
        return diff_snapshots(previous, current)

    def test_volatility_by_brand_and_model(self) -> None:
        by_brand, by_model = volatility_rollups(
            self._events(), {"volkswagen": "Volkswagen"}
        )
        self.assertEqual(len(by_brand), 1)
        brand = by_brand[0]
        self.assertEqual(brand.name, "Volkswagen")
        self.assertEqual(brand.change_count, 3)
        self.assertEqual(brand.increase_count, 2)
        self.assertEqual(brand.decrease_count, 1)
        self.assertEqual(brand.avg_change, round((100_000 + 60_000 + 40_000) / 3))
        self.assertEqual(by_model[0].id, "volkswagen-Golf")
        self.assertEqual(by_model[0].change_count, 2)

    def test_big_moves_ranked_by_percent(self) -> None:
        increases, decreases = big_moves(self._events())
        # Golf Life +10% beats Polo Life +5% although amounts differ
        self.assertEqual(
            [(e.model, e.price_change_percent) for e in increases],
            [("Golf", 10.0), ("Polo", 5.0)],
        )
        self.assertEqual(decreases[0].price_change_percent, -5.0)

    def test_big_moves_limit(self) -> None:
        increases, _ = big_moves(self._events(), limit=1)
        self.assertEqual(len(increases), 1)


class TestEventEngine(unittest.TestCase):
    """EventEngine over a stored history."""

    def test_single_change_over_three_days(self) -> None:
        """One change across three days yields exactly one event."""
        store = store_with({
            DAY1: [make_record(price=1_000_000)],
            DAY2: [make_record(price=1_000_000)],
            DAY3: [make_record(price=1_100_000)],
        })
        events = EventEngine(store).brand_events("volkswagen")
        self.assertEqual(len(events), 1)
        self.assertEqual(events[0].previous_date, DAY2)

    def test_fallback_day_does_not_mask_change(self) -> None:
        store = store_with({DAY1: [make_record(price=1_000_000)]})
        store.write_fallback("volkswagen", DAY2, "Volkswagen")
        store_with({DAY3: [make_record(price=1_100_000)]}, store=store)
        events = EventEngine(store).brand_events("volkswagen")
        self.assertEqual(len(events), 1)
        self.assertEqual(events[0].previous_date, DAY1)
        self.assertEqual(events[0].price_change_percent, 10.0)

    def test_generate_report(self) -> None:
        store = store_with({
            DAY1: [make_record(price=1_000_000)],
            DAY2: [make_record(price=1_100_000), make_record(trim="GTI", price=2_500_000)],
        })
        report = EventEngine(store).generate(FIXED_NOW)
        self.assertEqual(report.generated_at, FIXED_NOW)
        self.assertEqual(report.date, DAY2)
        self.assertEqual(report.previous_date, DAY1)
        self.assertEqual(report.summary.total_events, 2)
        self.assertEqual(report.summary.new_vehicles, 1)
        self.assertEqual(report.summary.price_increases, 1)
        self.assertEqual(report.summary.avg_price_change_percent, 10.0)
        self.assertEqual(len(report.big_moves.top_increases), 1)

    def test_empty_store(self) -> None:
        report = EventEngine(store_with({})).generate(FIXED_NOW)
        self.assertEqual(report.events, [])
        self.assertIsNone(report.date)


if __name__ == "__main__":
    unittest.main()
