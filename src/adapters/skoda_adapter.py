# src/adapters/skoda_adapter.py

"""Škoda Türkiye price-list adapter.

The price list is served from a Next.js data route whose URL embeds the
deployment's build id, which changes on every site release. The id is
read from the public price-list page before each collection.
"""

import re
from typing import Any

from src.adapters.base_adapter import BaseAdapter
from src.filters.normalizer import (
    ELECTRIC,
    MILD_HYBRID,
    PLUG_IN_HYBRID,
    normalize_fuel,
    normalize_transmission,
    parse_price,
)
from src.models.parse_result import PayloadShapeError
from src.models.payloads import JsonPayload, RawPayload
from src.models.price_record import PriceRecord

_BUILD_ID_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r'"buildId"\s*:\s*"([^"]+)"'),
    re.compile(r"/_next/static/([^/\"']+)/_buildManifest\.js"),
)

_GEARBOX_RE = re.compile(r"DSG|Manuel|Otomatik", re.IGNORECASE)
_PHEV_HINT_RE = re.compile(r"plug-in|phev|e-hybrid|(?<!enyaq )\biv\b|ivrs")
_MILD_HYBRID_HINT_RE = re.compile(r"e-?tec\b|\bmhev\b")
_ELECTRIC_HINT_RE = re.compile(r"elroq|enyaq")


def extract_build_id(html: str) -> str | None:
    """Return the Next.js build id embedded in a rendered page."""
    for pattern in _BUILD_ID_PATTERNS:
        match = pattern.search(html)
        if match:
            return match.group(1)
    return None


class SkodaAdapter(BaseAdapter):
    """Discover the data endpoint, then parse price-list sections."""

    homepage_url = "https://www.skoda.com.tr/"
    PRICE_PAGE_URL = "https://www.skoda.com.tr/fiyat-listesi"
    DATA_URL = "https://www.skoda.com.tr/_next/data/{build_id}/fiyat-listesi.json"

    def discover_data_url(self) -> str:
        """Fetch the public page and build the data URL from its build id."""
        resp = self._fetch_get(self.PRICE_PAGE_URL)
        build_id = extract_build_id(resp.text)
        if not build_id:
            raise PayloadShapeError(
                "Škoda: no Next.js buildId on the price-list page",
                code="BUILD_ID_NOT_FOUND",
            )
        self.logger.info("[%s] Discovered buildId %s", self.brand_id, build_id)
        return self.DATA_URL.format(build_id=build_id)

    def fetch(self, resource: str = "") -> RawPayload:
        return self._fetch_json(self.discover_data_url())

    @staticmethod
    def _sections(data: Any) -> list[Any] | None:
        """Old layout: ``pageProps.priceListSections``; new layout nests
        it under the first tab's ``content.priceListData``."""
        if not isinstance(data, dict):
            return None
        page_props = data.get("pageProps") or {}
        sections = page_props.get("priceListSections")
        if sections is None:
            tabs = page_props.get("tabs")
            if isinstance(tabs, list) and tabs:
                sections = (
                    ((tabs[0] or {}).get("content") or {})
                    .get("priceListData", {})
                    .get("priceListSections")
                )
        return sections if isinstance(sections, list) else None

    @staticmethod
    def _detect_fuel(model_name: str, hardware: str) -> str:
        """Hybrid hints win over the electric model names."""
        text = f"{model_name} {hardware}".lower()
        if _PHEV_HINT_RE.search(text):
            return PLUG_IN_HYBRID
        if _MILD_HYBRID_HINT_RE.search(text):
            return MILD_HYBRID
        if _ELECTRIC_HINT_RE.search(text):
            return ELECTRIC
        return normalize_fuel(text)

    def _parse_payload(self, payload: JsonPayload) -> list[PriceRecord]:
        sections = self._sections(payload.data)
        if sections is None:
            raise PayloadShapeError(
                "Škoda: priceListSections not found in either layout",
                code="MISSING_SECTIONS",
            )

        records: list[PriceRecord] = []
        for section in sections:
            for item in (section or {}).get("items") or []:
                model_name = item.get("title") or "Unknown"
                table = (item.get("modelPricesTable") or {}).get("data")
                if not isinstance(table, list):
                    continue
                for row in table:
                    hardware = (row.get("hardware") or {}).get("value") or ""
                    price = (row.get("currentPrice") or {}).get("value") or ""
                    if not price:
                        continue
                    records.append(self.make_record(
                        model=model_name,
                        trim=hardware,
                        engine=_GEARBOX_RE.sub("", hardware).strip(),
                        transmission=normalize_transmission(hardware),
                        fuel=self._detect_fuel(model_name, hardware),
                        price_raw=price,
                        price_numeric=parse_price(price),
                    ))
        return records
