# tests/test_settings.py

"""Tests for the Settings configuration class."""

import importlib
import unittest
from pathlib import Path

from src.config.settings import Settings


class TestSettings(unittest.TestCase):
    """Verify Settings constants and the brand registry table."""

    def test_request_delay_is_positive_float(self) -> None:
        """REQUEST_DELAY must be a positive number."""
        self.assertIsInstance(Settings.REQUEST_DELAY, float)
        self.assertGreater(Settings.REQUEST_DELAY, 0)

    def test_max_retries_is_positive(self) -> None:
        """MAX_RETRIES must be >= 1."""
        self.assertGreaterEqual(Settings.MAX_RETRIES, 1)

    def test_price_bounds_ordered(self) -> None:
        """The valid price range is non-empty."""
        self.assertLess(Settings.MIN_VALID_PRICE, Settings.MAX_VALID_PRICE)
        self.assertEqual(Settings.MIN_VALID_PRICE, 100_000.0)
        self.assertEqual(Settings.MAX_VALID_PRICE, 50_000_000.0)

    def test_outlier_thresholds(self) -> None:
        """Outliers need a z above 2 in segments of at least 5."""
        self.assertEqual(Settings.OUTLIER_Z_THRESHOLD, 2.0)
        self.assertEqual(Settings.MIN_SEGMENT_SIZE, 5)

    def test_opportunity_weights_sum_to_one(self) -> None:
        """The opportunity blend weights add up to 1."""
        self.assertAlmostEqual(
            sum(Settings.OPPORTUNITY_WEIGHTS.values()), 1.0
        )

    def test_brand_ids_are_unique(self) -> None:
        """No duplicate brand ids."""
        ids = [b["id"] for b in Settings.BRANDS]
        self.assertEqual(len(ids), len(set(ids)))

    def test_each_brand_has_required_keys(self) -> None:
        """Every brand must have id, name, and adapter keys."""
        for brand in Settings.BRANDS:
            with self.subTest(brand=brand.get("id", "?")):
                self.assertIn("id", brand)
                self.assertIn("name", brand)
                self.assertIn("adapter", brand)

    def test_adapter_paths_importable(self) -> None:
        """Every adapter dotted path resolves to a class."""
        for brand in Settings.BRANDS:
            with self.subTest(brand=brand["id"]):
                module_path, class_name = brand["adapter"].rsplit(".", 1)
                module = importlib.import_module(module_path)
                self.assertTrue(hasattr(module, class_name))

    def test_path_constants_are_paths(self) -> None:
        """Path-typed settings are Path instances."""
        self.assertIsInstance(Settings.BASE_DIR, Path)
        self.assertIsInstance(Settings.DATA_DIR, Path)
        self.assertIsInstance(Settings.LOGS_DIR, Path)

    def test_default_headers_has_accept_language(self) -> None:
        """DEFAULT_HEADERS must include a Turkish Accept-Language."""
        self.assertIn("Accept-Language", Settings.DEFAULT_HEADERS)
        self.assertTrue(
            Settings.DEFAULT_HEADERS["Accept-Language"].startswith("tr")
        )


if __name__ == "__main__":
    unittest.main()
