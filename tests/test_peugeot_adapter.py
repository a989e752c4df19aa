# tests/test_peugeot_adapter.py

"""Tests for the Peugeot HTML table adapter."""

import unittest
from pathlib import Path
from unittest.mock import patch

from src.adapters.peugeot_adapter import PeugeotAdapter, map_columns
from src.models.payloads import HtmlPayload

FIXTURES_DIR = Path(__file__).parent / "fixtures"


class TestMapColumns(unittest.TestCase):
    def test_campaign_header_not_taken_for_list(self) -> None:
        columns = map_columns(
            ["Versiyon", "Kampanyalı Fiyat", "Liste Fiyatı", "Motor"]
        )
        self.assertEqual(columns["campaign"], 1)
        self.assertEqual(columns["list"], 2)
        self.assertEqual(columns["trim"], 0)
        self.assertEqual(columns["engine"], 3)

    def test_column_order_independent(self) -> None:
        columns = map_columns(["Fiyat", "Donanım Paketi"])
        self.assertEqual(columns, {"list": 0, "trim": 1})


class TestPeugeotAdapter(unittest.TestCase):
    def setUp(self) -> None:
        patcher = patch("src.adapters.base_adapter.curl_requests.Session")
        patcher.start()
        self.addCleanup(patcher.stop)
        self.adapter = PeugeotAdapter("peugeot", "Peugeot")
        self.payload = HtmlPayload(
            text=(FIXTURES_DIR / "peugeot_308.html").read_text("utf-8"),
            resource="308",
        )

    def test_price_table_rows(self) -> None:
        """Non-price tables and footnote rows are ignored."""
        records = self.adapter.parse(self.payload).records
        self.assertEqual([r.trim for r in records], ["Allure", "GT"])
        self.assertTrue(all(r.model == "308" for r in records))

    def test_campaign_then_list_price(self) -> None:
        allure, gt = self.adapter.parse(self.payload).records
        self.assertEqual(allure.price_numeric, 1_690_000.0)
        self.assertEqual(allure.price_raw, "1.690.000 TL")
        self.assertEqual(allure.price_list_numeric, 1_750_000.0)
        self.assertEqual(gt.price_numeric, 1_950_000.0)
        self.assertIsNone(gt.price_campaign_numeric)

    def test_fields_normalised(self) -> None:
        allure, gt = self.adapter.parse(self.payload).records
        self.assertEqual(allure.transmission, "Automatic")
        self.assertEqual(allure.fuel, "Petrol")
        self.assertEqual(gt.fuel, "Hybrid")

    def test_unknown_page_uses_heading(self) -> None:
        payload = HtmlPayload(text=self.payload.text, resource="")
        records = self.adapter.parse(payload).records
        self.assertEqual(records[0].model, "Yeni PEUGEOT 308")

    def test_no_price_table(self) -> None:
        result = self.adapter.parse(
            HtmlPayload(text="<html><p>Bakımda</p></html>", resource="408")
        )
        self.assertEqual(result.error.code, "NO_PRICE_TABLE")


if __name__ == "__main__":
    unittest.main()
