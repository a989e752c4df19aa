# tests/test_renault_adapter.py

"""Tests for the Renault adapter."""

import json
import unittest
from pathlib import Path
from unittest.mock import patch

from src.adapters.renault_adapter import RenaultAdapter
from src.models.payloads import JsonPayload

FIXTURES_DIR = Path(__file__).parent / "fixtures"


class TestRenaultAdapter(unittest.TestCase):
    def setUp(self) -> None:
        patcher = patch("src.adapters.base_adapter.curl_requests.Session")
        patcher.start()
        self.addCleanup(patcher.stop)
        self.adapter = RenaultAdapter("renault", "Renault")
        self.payload = JsonPayload(data=json.loads(
            (FIXTURES_DIR / "renault_prices.json").read_text("utf-8")
        ))

    def test_rows_without_price_skipped(self) -> None:
        result = self.adapter.parse(self.payload)
        self.assertEqual(
            [r.model for r in result.records], ["Clio", "Austral"]
        )

    def test_decimal_amount_and_formatted_raw(self) -> None:
        """AntesFiyati is a plain decimal; the raw price is re-rendered."""
        clio = self.adapter.parse(self.payload).records[0]
        self.assertEqual(clio.price_numeric, 1_245_000.0)
        self.assertEqual(clio.price_raw, "₺1.245.000,00")

    def test_fields(self) -> None:
        clio, austral = self.adapter.parse(self.payload).records
        self.assertEqual(clio.trim, "Evolution")
        self.assertEqual(clio.engine, "1.0 TCe 90 Evolution")
        self.assertEqual(clio.transmission, "Manual")
        self.assertEqual(clio.fuel, "Petrol")
        self.assertEqual(austral.fuel, "Hybrid")
        self.assertEqual(austral.transmission, "Automatic")

    def test_missing_results(self) -> None:
        result = self.adapter.parse(JsonPayload(data={"results": None}))
        self.assertEqual(result.error.code, "MISSING_RESULTS")


if __name__ == "__main__":
    unittest.main()
