# tests/test_toyota_adapter.py

"""Tests for the Toyota XML feed adapter."""

import unittest
from pathlib import Path
from unittest.mock import patch

from src.adapters.toyota_adapter import ToyotaAdapter
from src.models.payloads import JsonPayload, XmlPayload

FIXTURES_DIR = Path(__file__).parent / "fixtures"


class TestToyotaAdapter(unittest.TestCase):
    def setUp(self) -> None:
        patcher = patch("src.adapters.base_adapter.curl_requests.Session")
        patcher.start()
        self.addCleanup(patcher.stop)
        self.adapter = ToyotaAdapter("toyota", "Toyota")
        self.payload = XmlPayload(
            text=(FIXTURES_DIR / "toyota_prices.xml").read_text("utf-8")
        )

    def test_only_active_versions(self) -> None:
        """Inactive rows and promotional notes are skipped."""
        records = self.adapter.parse(self.payload).records
        self.assertEqual(
            [r.trim for r in records],
            ["Corolla 1.5 Dream", "C-HR 1.8 Hybrid Flame"],
        )

    def test_campaign_price_preferred(self) -> None:
        corolla = self.adapter.parse(self.payload).records[0]
        self.assertEqual(corolla.price_numeric, 1_550_000.0)
        self.assertEqual(corolla.price_raw, "1.550.000")
        self.assertEqual(corolla.price_list_numeric, 1_600_000.0)
        self.assertEqual(corolla.price_campaign_numeric, 1_550_000.0)

    def test_child_element_fields(self) -> None:
        """Fields may be child elements instead of attributes."""
        chr_ = self.adapter.parse(self.payload).records[1]
        self.assertEqual(chr_.model, "C-HR")
        self.assertEqual(chr_.engine, "1.8")
        self.assertEqual(chr_.transmission, "Automatic")
        self.assertEqual(chr_.fuel, "Hybrid")
        self.assertEqual(chr_.price_numeric, 2_100_000.0)
        self.assertIsNone(chr_.price_campaign_numeric)

    def test_missing_root(self) -> None:
        result = self.adapter.parse(XmlPayload(text="<Other/>"))
        self.assertEqual(result.error.code, "MISSING_ROOT")

    def test_json_payload_rejected(self) -> None:
        result = self.adapter.parse(JsonPayload(data={}))
        self.assertEqual(result.error.code, "WRONG_PAYLOAD_KIND")


if __name__ == "__main__":
    unittest.main()
