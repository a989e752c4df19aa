# tests/test_registry.py

"""Tests for the adapter registry."""

import unittest
from unittest.mock import patch

from src.adapters.registry import AdapterRegistry
from src.adapters.renault_adapter import RenaultAdapter
from src.adapters.toyota_adapter import ToyotaAdapter
from src.config.settings import Settings
from src.services.error_log import ErrorLog


class TestAdapterRegistry(unittest.TestCase):
    def setUp(self) -> None:
        patcher = patch("src.adapters.base_adapter.curl_requests.Session")
        patcher.start()
        self.addCleanup(patcher.stop)

    def test_from_settings_registers_every_brand(self) -> None:
        registry = AdapterRegistry.from_settings()
        self.assertEqual(
            registry.brand_ids, [b["id"] for b in Settings.BRANDS]
        )
        self.assertEqual(len(registry), len(Settings.BRANDS))

    def test_only_subset(self) -> None:
        registry = AdapterRegistry.from_settings(only=["toyota", "renault"])
        # Registration order follows the brand table, not the filter
        self.assertEqual(registry.brand_ids, ["renault", "toyota"])
        self.assertIsInstance(registry.get("toyota"), ToyotaAdapter)

    def test_error_log_shared(self) -> None:
        log = ErrorLog()
        registry = AdapterRegistry.from_settings(error_log=log)
        self.assertTrue(all(a.error_log is log for a in registry))

    def test_custom_brand_table(self) -> None:
        brands = [{
            "id": "renault-test",
            "name": "Renault",
            "adapter": "src.adapters.renault_adapter.RenaultAdapter",
        }]
        registry = AdapterRegistry.from_settings(brands=brands)
        adapter = registry.get("renault-test")
        self.assertIsInstance(adapter, RenaultAdapter)
        self.assertEqual(adapter.brand_name, "Renault")

    def test_unknown_brand(self) -> None:
        registry = AdapterRegistry()
        self.assertNotIn("lada", registry)
        with self.assertRaises(KeyError):
            registry.get("lada")

    def test_register_replaces(self) -> None:
        registry = AdapterRegistry()
        registry.register(RenaultAdapter("renault", "Renault"))
        replacement = RenaultAdapter("renault", "Renault")
        registry.register(replacement)
        self.assertEqual(len(registry), 1)
        self.assertIs(registry.get("renault"), replacement)


if __name__ == "__main__":
    unittest.main()
