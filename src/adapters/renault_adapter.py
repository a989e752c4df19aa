# src/adapters/renault_adapter.py

"""Renault Türkiye price-list adapter (flat JSON rows)."""

from src.adapters.base_adapter import BaseAdapter
from src.filters.normalizer import (
    format_price,
    normalize_fuel,
    normalize_transmission,
    parse_price,
)
from src.models.parse_result import PayloadShapeError
from src.models.payloads import JsonPayload, RawPayload
from src.models.price_record import PriceRecord


class RenaultAdapter(BaseAdapter):
    homepage_url = "https://best.renault.com.tr/"
    PRICE_URL = (
        "https://best.renault.com.tr/wp-json/service/v1/"
        "CatFiyatData?cat=Binek"
    )

    def fetch(self, resource: str = "") -> RawPayload:
        return self._fetch_json(self.PRICE_URL)

    def _parse_payload(self, payload: JsonPayload) -> list[PriceRecord]:
        data = payload.data
        results = data.get("results") if isinstance(data, dict) else None
        if not isinstance(results, list):
            raise PayloadShapeError(
                "Renault: 'results' is not a list",
                code="MISSING_RESULTS",
            )

        records: list[PriceRecord] = []
        for item in results:
            # AntesFiyati is a plain decimal string, not Turkish formatted
            raw_amount = item.get("AntesFiyati")
            if not raw_amount:
                continue
            try:
                amount = float(raw_amount)
            except (TypeError, ValueError):
                amount = parse_price(raw_amount)
            version = item.get("VersiyonAdi") or ""
            records.append(self.make_record(
                model=item.get("ModelAdi") or "Unknown",
                trim=item.get("EkipmanAdi") or version,
                engine=version,
                transmission=normalize_transmission(item.get("VitesTipi")),
                fuel=normalize_fuel(item.get("YakitTipi"), version),
                price_raw=format_price(amount),
                price_numeric=amount,
            ))
        return records
