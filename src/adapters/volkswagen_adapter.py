# src/adapters/volkswagen_adapter.py

"""Volkswagen Türkiye price-list adapter (JSON)."""

from typing import Any

from src.adapters.base_adapter import BaseAdapter
from src.filters.normalizer import (
    ELECTRIC,
    OTHER,
    normalize_fuel,
    normalize_transmission,
    parse_price,
)
from src.models.parse_result import PayloadShapeError
from src.models.payloads import JsonPayload, RawPayload
from src.models.price_record import PriceRecord


class VolkswagenAdapter(BaseAdapter):
    """Parse ``Data.FiyatBilgisi.Arac[]`` title/value sub-item lists."""

    homepage_url = "https://binekarac2.vw.com.tr/"
    PRICE_URL = (
        "https://binekarac2.vw.com.tr/app/local/fiyatlardata/"
        "fiyatlar-test.json"
    )

    def fetch(self, resource: str = "") -> RawPayload:
        return self._fetch_json(self.PRICE_URL)

    @staticmethod
    def _as_list(value: Any) -> list[Any]:
        if value is None:
            return []
        return value if isinstance(value, list) else [value]

    @staticmethod
    def _detect_fuel(text: str) -> str:
        """Engine codes first; ``ID.`` models carry no fuel word."""
        fuel = normalize_fuel(text)
        if fuel == OTHER and "id." in text.lower():
            return ELECTRIC
        return fuel

    @staticmethod
    def _is_turnkey_price(title: str) -> bool:
        """Turnkey price excluding notary fees."""
        return (
            "Fiyat" in title
            and "Anahtar Teslim" in title
            and "Noter" not in title
        )

    def _parse_payload(self, payload: JsonPayload) -> list[PriceRecord]:
        data = payload.data
        vehicles = None
        if isinstance(data, dict):
            vehicles = (
                ((data.get("Data") or {}).get("FiyatBilgisi") or {}).get("Arac")
            )
        if not isinstance(vehicles, list):
            raise PayloadShapeError(
                "Volkswagen: Data.FiyatBilgisi.Arac is not a list",
                code="MISSING_VEHICLE_LIST",
            )

        records: list[PriceRecord] = []
        for vehicle in vehicles:
            price_data = ((vehicle or {}).get("AracXML") or {}).get("PriceData")
            if not isinstance(price_data, dict):
                continue
            model_name = price_data.get("-ModelName") or "Unknown"
            items = self._as_list(
                (price_data.get("SubList") or {}).get("Item")
            )

            for item in items:
                sub_items = item.get("SubItem") if isinstance(item, dict) else None
                if not isinstance(sub_items, list):
                    continue

                trim = engine = gearbox = price = ""
                for detail in sub_items:
                    title = detail.get("-Title") or ""
                    value = detail.get("-Value") or ""
                    if title == "Donanım":
                        trim = value
                    elif title == "Motor":
                        engine = value
                    elif title == "Şanzıman":
                        gearbox = value
                    elif self._is_turnkey_price(title):
                        price = value

                if not price:
                    continue
                records.append(self.make_record(
                    model=model_name,
                    trim=trim,
                    engine=engine,
                    transmission=normalize_transmission(gearbox),
                    fuel=self._detect_fuel(
                        f"{model_name} {engine} {trim}"
                    ),
                    price_raw=price,
                    price_numeric=parse_price(price),
                ))
        return records
