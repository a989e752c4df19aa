# src/adapters/registry.py

"""Registry of adapter instances keyed by brand id."""

import importlib
import logging
from collections.abc import Iterator
from typing import Any

from src.adapters.base_adapter import BaseAdapter
from src.config.settings import Settings
from src.services.error_log import ErrorLog

logger = logging.getLogger("pricelist_intel.registry")


def _load_adapter_class(dotted_path: str) -> type[Any]:
    """Dynamically import an adapter class from its dotted module path."""
    module_path, class_name = dotted_path.rsplit(".", 1)
    module = importlib.import_module(module_path)
    cls: type[Any] = getattr(module, class_name)
    return cls


class AdapterRegistry:
    """Maps brand ids to ready adapters, in registration order."""

    def __init__(self) -> None:
        self._adapters: dict[str, BaseAdapter] = {}

    def register(self, adapter: BaseAdapter) -> None:
        """Add or replace the adapter for ``adapter.brand_id``."""
        if adapter.brand_id in self._adapters:
            logger.info("Replacing adapter for %s", adapter.brand_id)
        self._adapters[adapter.brand_id] = adapter

    def get(self, brand_id: str) -> BaseAdapter:
        try:
            return self._adapters[brand_id]
        except KeyError:
            raise KeyError(f"No adapter registered for '{brand_id}'") from None

    def __contains__(self, brand_id: object) -> bool:
        return brand_id in self._adapters

    def __iter__(self) -> Iterator[BaseAdapter]:
        return iter(self._adapters.values())

    def __len__(self) -> int:
        return len(self._adapters)

    @property
    def brand_ids(self) -> list[str]:
        return list(self._adapters)

    @classmethod
    def from_settings(
        cls,
        brands: list[dict[str, str]] | None = None,
        error_log: ErrorLog | None = None,
        only: list[str] | None = None,
    ) -> "AdapterRegistry":
        """Build the registry from the ``Settings.BRANDS`` table.

        Args:
            brands: Brand table; defaults to ``Settings.BRANDS``.
            error_log: Shared run error log handed to every adapter.
            only: Optional subset of brand ids to keep.
        """
        registry = cls()
        for brand in brands if brands is not None else Settings.BRANDS:
            if only and brand["id"] not in only:
                continue
            adapter_cls = _load_adapter_class(brand["adapter"])
            registry.register(
                adapter_cls(brand["id"], brand["name"], error_log)
            )
        return registry
