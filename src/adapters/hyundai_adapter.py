# src/adapters/hyundai_adapter.py

"""Hyundai Türkiye price-list adapter (JSON)."""

from src.adapters.base_adapter import BaseAdapter
from src.filters.normalizer import (
    normalize_fuel,
    normalize_transmission,
    parse_price,
)
from src.models.parse_result import PayloadShapeError
from src.models.payloads import JsonPayload, RawPayload
from src.models.price_record import PriceRecord


class HyundaiAdapter(BaseAdapter):
    """Parse ``productList[].yearDetailList[].priceDetailList[]``."""

    homepage_url = "https://www.hyundai.com/tr/tr"
    PRICE_URL = (
        "https://www.hyundai.com/wsvc/tr/spa/pricelist/list?loc=TR&lan=tr"
    )

    def fetch(self, resource: str = "") -> RawPayload:
        return self._fetch_json(self.PRICE_URL)

    def _parse_payload(self, payload: JsonPayload) -> list[PriceRecord]:
        data = payload.data
        products = data.get("productList") if isinstance(data, dict) else None
        if not isinstance(products, list):
            raise PayloadShapeError(
                "Hyundai: 'productList' is not a list",
                code="MISSING_PRODUCT_LIST",
            )

        records: list[PriceRecord] = []
        for product in products:
            product_name = product.get("productName") or "Unknown"
            for year_detail in product.get("yearDetailList") or []:
                model_year = year_detail.get("modelYear") or year_detail.get("year")
                for item in year_detail.get("priceDetailList") or []:
                    price = item.get("suggestedPrice") or item.get("price") or ""
                    if not price or price == "N/A":
                        continue
                    trim = item.get("trimName") or ""
                    powertrain = item.get("powertrainName") or ""
                    records.append(self.make_record(
                        model=product_name,
                        trim=trim,
                        engine=powertrain.replace(trim, "").strip(),
                        transmission=normalize_transmission(
                            item.get("transmission")
                        ),
                        fuel=normalize_fuel(item.get("fuelName"), powertrain),
                        price_raw=str(price),
                        price_numeric=parse_price(price),
                        model_year=str(model_year) if model_year else None,
                    ))
        return records
