# tests/test_snapshot_store.py

"""Tests for the date-partitioned snapshot stores."""

import json
import tempfile
import unittest
from datetime import date, datetime
from pathlib import Path

from src.models.price_record import PriceRecord
from src.storage.snapshot_store import InMemorySnapshotStore, JsonSnapshotStore
from tests.helpers import make_record

DAY1 = date(2026, 3, 1)
DAY2 = date(2026, 3, 2)
DAY3 = date(2026, 3, 3)


class TestJsonSnapshotStore(unittest.TestCase):
    """File-backed store layout, index and fallback handling."""

    def setUp(self) -> None:
        self.root = Path(tempfile.mkdtemp())
        self.store = JsonSnapshotStore(self.root)
        self.records = [
            make_record(trim="Life", price=1_500_000),
            make_record(
                trim="Style",
                price=1_700_000,
                model_year="2026",
                price_list_numeric=1_750_000.0,
            ),
        ]

    def test_path_layout(self) -> None:
        path = self.store.path_for("volkswagen", DAY2)
        self.assertEqual(
            path, self.root / "2026" / "03" / "volkswagen" / "02.json"
        )

    def test_write_then_read(self) -> None:
        self.store.write("volkswagen", DAY1, self.records, "Volkswagen")
        self.store.invalidate_cache()
        snapshot = self.store.read("volkswagen", DAY1)
        self.assertIsNotNone(snapshot)
        self.assertEqual(snapshot.brand, "Volkswagen")
        self.assertEqual(snapshot.row_count, 2)
        self.assertEqual(list(snapshot.records), self.records)
        self.assertFalse(snapshot.is_fallback)

    def test_document_shape(self) -> None:
        self.store.write("volkswagen", DAY1, self.records, "Volkswagen")
        doc = json.loads(
            self.store.path_for("volkswagen", DAY1).read_text("utf-8")
        )
        self.assertEqual(doc["rowCount"], 2)
        self.assertEqual(doc["date"], "2026-03-01")
        self.assertEqual(doc["rows"][1]["modelYear"], "2026")
        self.assertEqual(doc["rows"][1]["priceListNumeric"], 1_750_000.0)
        self.assertNotIn("modelYear", doc["rows"][0])
        self.assertNotIn("isFallback", doc)

    def test_same_day_overwrites(self) -> None:
        self.store.write("volkswagen", DAY1, self.records, "Volkswagen")
        self.store.write("volkswagen", DAY1, self.records[:1], "Volkswagen")
        self.store.invalidate_cache()
        self.assertEqual(self.store.read("volkswagen", DAY1).row_count, 1)
        self.assertEqual(self.store.list_dates("volkswagen"), [DAY1])

    def test_index_updated(self) -> None:
        self.store.write("volkswagen", DAY1, self.records, "Volkswagen")
        self.store.write("volkswagen", DAY2, self.records[:1], "Volkswagen")
        self.store.invalidate_cache()
        index = self.store.load_index()
        entry = index.brands["volkswagen"]
        self.assertEqual(entry.available_dates, [DAY2, DAY1])
        self.assertEqual(entry.latest_date, DAY2)
        self.assertEqual(entry.total_records, 1)

    def test_backfill_keeps_latest_total(self) -> None:
        self.store.write("volkswagen", DAY2, self.records, "Volkswagen")
        self.store.write("volkswagen", DAY1, self.records[:1], "Volkswagen")
        self.store.invalidate_cache()
        entry = self.store.load_index().brands["volkswagen"]
        self.assertEqual(entry.available_dates, [DAY2, DAY1])
        self.assertEqual(entry.total_records, 2)

    def test_missing_day_is_none(self) -> None:
        self.assertIsNone(self.store.read("volkswagen", DAY1))
        self.assertIsNone(self.store.read_latest("volkswagen"))

    def test_corrupt_document_is_none(self) -> None:
        path = self.store.path_for("volkswagen", DAY1)
        path.parent.mkdir(parents=True)
        path.write_text("{not json", encoding="utf-8")
        with self.assertLogs("pricelist_intel.store", level="WARNING"):
            self.assertIsNone(self.store.read("volkswagen", DAY1))

    def test_read_latest_skips_corrupt(self) -> None:
        self.store.write("volkswagen", DAY1, self.records, "Volkswagen")
        path = self.store.path_for("volkswagen", DAY2)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("[]", encoding="utf-8")
        latest = self.store.read_latest("volkswagen")
        self.assertEqual(latest.date, DAY1)

    def test_corrupt_index_starts_empty(self) -> None:
        self.store.index_path.write_text("oops", encoding="utf-8")
        self.assertEqual(self.store.load_index().brands, {})

    def test_fallback_copies_previous_day(self) -> None:
        self.store.write("volkswagen", DAY2, self.records, "Volkswagen")
        fallback = self.store.write_fallback("volkswagen", DAY3, "Volkswagen")
        self.assertTrue(fallback.is_fallback)
        self.assertEqual(fallback.original_date, DAY2)
        self.assertEqual(fallback.records, tuple(self.records))

        self.store.invalidate_cache()
        doc = json.loads(
            self.store.path_for("volkswagen", DAY3).read_text("utf-8")
        )
        self.assertTrue(doc["isFallback"])
        self.assertEqual(doc["originalDate"], "2026-03-02")

    def test_fallback_chain_keeps_original_date(self) -> None:
        self.store.write("volkswagen", DAY1, self.records, "Volkswagen")
        self.store.write_fallback("volkswagen", DAY2, "Volkswagen")
        chained = self.store.write_fallback("volkswagen", DAY3, "Volkswagen")
        self.assertEqual(chained.original_date, DAY1)

    def test_fallback_without_history(self) -> None:
        self.assertIsNone(
            self.store.write_fallback("volkswagen", DAY1, "Volkswagen")
        )
        self.assertEqual(self.store.list_dates("volkswagen"), [])

    def test_history_oldest_first_with_limit(self) -> None:
        for day in (DAY1, DAY2, DAY3):
            self.store.write("volkswagen", day, self.records, "Volkswagen")
        self.assertEqual(
            [s.date for s in self.store.history("volkswagen")],
            [DAY1, DAY2, DAY3],
        )
        self.assertEqual(
            [s.date for s in self.store.history("volkswagen", limit=2)],
            [DAY2, DAY3],
        )

    def test_brand_ids_include_unindexed_dirs(self) -> None:
        self.store.write("volkswagen", DAY1, self.records, "Volkswagen")
        (self.root / "2026" / "03" / "toyota").mkdir(parents=True)
        self.assertEqual(self.store.brand_ids(), ["volkswagen", "toyota"])

    def test_extras_survive_round_trip(self) -> None:
        record = PriceRecord.from_dict({
            "brand": "Mercedes-Benz", "model": "C", "trim": "C 200",
            "engine": "1.5", "transmission": "Automatic", "fuel": "Petrol",
            "priceRaw": "₺3.000.000,00", "priceNumeric": 3_000_000,
            "code": "C200",
        })
        self.store.write("mercedes", DAY1, [record], "Mercedes-Benz")
        self.store.invalidate_cache()
        stored = self.store.read("mercedes", DAY1).records[0]
        self.assertEqual(stored.extras, {"code": "C200"})


class TestInMemorySnapshotStore(unittest.TestCase):
    def test_latest_snapshots_per_brand(self) -> None:
        store = InMemorySnapshotStore()
        store.write("toyota", DAY1, [make_record(brand="Toyota")], "Toyota")
        store.write("toyota", DAY2, [make_record(brand="Toyota")], "Toyota")
        store.write(
            "fiat", DAY1, [make_record(brand="Fiat")], "Fiat",
            collected_at=datetime(2026, 3, 1, 8),
        )
        latest = store.latest_snapshots()
        self.assertEqual(list(latest), ["fiat", "toyota"])
        self.assertEqual(latest["toyota"].date, DAY2)


if __name__ == "__main__":
    unittest.main()
