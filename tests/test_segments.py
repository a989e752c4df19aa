# tests/test_segments.py

"""Tests for segment classification and price bands."""

import unittest

from src.analytics.segments import (
    OTHER_SEGMENT,
    PRICE_BANDS,
    brand_key,
    classify_segment,
    price_band,
    price_band_label,
    vehicle_class,
)


class TestClassifySegment(unittest.TestCase):
    """Brand tables first, then generic keywords, then Other."""

    def test_brand_rules(self) -> None:
        cases = [
            ("Volkswagen", "T-Roc", "SUV-Compact"),
            ("Volkswagen", "Golf", "Hatchback-C"),
            ("Volkswagen", "ID. Buzz", "MPV"),
            ("Škoda", "Kodiaq", "SUV-Large"),
            ("Škoda", "Octavia", "Sedan-C"),
            ("Toyota", "Corolla Cross", "SUV-Medium"),
            ("Toyota", "Corolla", "Sedan-C"),
            ("Hyundai", "Tucson", "SUV-Medium"),
            ("Renault", "Clio", "Hatchback-B"),
            ("Fiat", "Egea Cross", "SUV-Compact"),
            ("Fiat", "Egea Sedan", "Sedan-C"),
            ("Peugeot", "E-2008", "SUV-Compact"),
        ]
        for brand, model, expected in cases:
            with self.subTest(brand=brand, model=model):
                self.assertEqual(classify_segment(brand, model), expected)

    def test_mercedes_sedan_before_hatchback(self) -> None:
        self.assertEqual(
            classify_segment("Mercedes-Benz", "A-Serisi Sedan"), "Sedan-C"
        )
        self.assertEqual(
            classify_segment("Mercedes-Benz", "A-Serisi"), "Hatchback-C"
        )
        self.assertEqual(
            classify_segment("Mercedes-Benz", "C-Serisi"), "Sedan-D"
        )

    def test_generic_rules_for_unknown_brand(self) -> None:
        self.assertEqual(classify_segment("Lada", "Niva 4x4"), "SUV-Compact")
        self.assertEqual(classify_segment("Togg", "T10X Hybrid"), "Hybrid")
        self.assertEqual(classify_segment("Togg", "e-Tron"), "Electric")

    def test_other(self) -> None:
        self.assertEqual(classify_segment("Lada", "Granta"), OTHER_SEGMENT)

    def test_brand_key(self) -> None:
        self.assertEqual(brand_key("Škoda"), "skoda")
        self.assertEqual(brand_key("Mercedes-Benz"), "mercedes")
        self.assertEqual(brand_key(""), "")

    def test_vehicle_class(self) -> None:
        self.assertEqual(vehicle_class("SUV-Compact"), "SUV")
        self.assertEqual(vehicle_class("MPV"), "MPV")


class TestPriceBands(unittest.TestCase):
    def test_half_open_intervals(self) -> None:
        self.assertEqual(price_band(499_999.99).label, "0-500K")
        self.assertEqual(price_band(500_000).label, "500K-1M")
        self.assertEqual(price_band(5_000_000).label, "5M+")

    def test_bands_contiguous(self) -> None:
        for lower, upper in zip(PRICE_BANDS, PRICE_BANDS[1:]):
            self.assertEqual(lower.max_price, upper.min_price)

    def test_unbanded(self) -> None:
        self.assertIsNone(price_band(150_000_000))
        self.assertEqual(price_band_label(150_000_000), "unbanded")


if __name__ == "__main__":
    unittest.main()
