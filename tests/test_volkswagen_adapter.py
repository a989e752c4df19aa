# tests/test_volkswagen_adapter.py

"""Tests for the Volkswagen adapter using a recorded price payload."""

import json
import unittest
from pathlib import Path
from unittest.mock import MagicMock, patch

from src.adapters.volkswagen_adapter import VolkswagenAdapter
from src.models.payloads import JsonPayload

FIXTURES_DIR = Path(__file__).parent / "fixtures"


class TestVolkswagenAdapter(unittest.TestCase):
    """Tests for the Volkswagen adapter using mocked HTTP responses."""

    def setUp(self) -> None:
        patcher = patch("src.adapters.base_adapter.curl_requests.Session")
        patcher.start()
        self.addCleanup(patcher.stop)
        self.adapter = VolkswagenAdapter("volkswagen", "Volkswagen")
        self.adapter.session = MagicMock()
        text = (FIXTURES_DIR / "volkswagen_prices.json").read_text("utf-8")
        resp = MagicMock()
        resp.status_code = 200
        resp.text = text
        self.adapter.session.get.return_value = resp
        self.data = json.loads(text)

    def test_collect_returns_priced_rows(self) -> None:
        """Rows without a turnkey price are skipped."""
        result = self.adapter.collect()
        self.assertTrue(result.ok)
        self.assertEqual(
            [(r.model, r.trim) for r in result.records],
            [("Golf", "Life"), ("Golf", "R-Line"), ("ID.4", "Pro")],
        )

    def test_turnkey_price_excludes_notary(self) -> None:
        records = self.adapter.collect().records
        self.assertEqual(records[0].price_numeric, 1_899_000.0)
        self.assertEqual(records[0].price_raw, "1.899.000 TL")

    def test_fields_normalised(self) -> None:
        golf = self.adapter.collect().records[0]
        self.assertEqual(golf.brand, "Volkswagen")
        self.assertEqual(golf.engine, "1.5 TSI 150 PS")
        self.assertEqual(golf.transmission, "Automatic")
        self.assertEqual(golf.fuel, "Petrol")

    def test_id_models_are_electric(self) -> None:
        """ID. models carry no fuel word in the payload."""
        id4 = self.adapter.collect().records[-1]
        self.assertEqual(id4.fuel, "Electric")

    def test_same_payload_same_records(self) -> None:
        first = self.adapter.parse(JsonPayload(data=self.data))
        second = self.adapter.parse(JsonPayload(data=self.data))
        self.assertEqual(first.records, second.records)
        self.assertEqual(len(first.records), 3)

    def test_missing_vehicle_list(self) -> None:
        result = self.adapter.parse(JsonPayload(data={"Data": {}}))
        self.assertEqual(result.error.code, "MISSING_VEHICLE_LIST")

    def test_null_nodes_tolerated(self) -> None:
        self.data["Data"]["FiyatBilgisi"]["Arac"].append(None)
        result = self.adapter.parse(JsonPayload(data=self.data))
        self.assertTrue(result.ok)
        self.assertEqual(len(result.records), 3)


if __name__ == "__main__":
    unittest.main()
