# src/adapters/mercedes_adapter.py

"""Mercedes-Benz Türkiye price-list adapter.

The price admin API answers one model family (category code) per call,
so the brand is collected as a sequence of sub-resources.
"""

from typing import Any

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


class MercedesAdapter(BaseAdapter):
    homepage_url = "https://fiyat.mercedes-benz.com.tr/"
    API_URL = (
        "https://pladmin.mercedes-benz.com.tr/api/product/"
        "searchByCategoryCode?code={code}&_includes=ID,Code,Alias,Name,"
        "GroupName,ProductAttribute,ProductPrice,TaxRatio,VATRatio,"
        "IsActive,ImagePath"
    )
    API_HEADERS: dict[str, str] = {
        "Accept": "application/json, text/plain, */*",
        "applicationid": "b7d8f89b-8642-40e7-902e-eae1190c40c0",
        "organizationid": "637ca6c6-9d07-4e59-9c31-e9081b3a9d7b",
        "Origin": "https://fiyat.mercedes-benz.com.tr",
    }
    MODEL_CODES: tuple[str, ...] = (
        "w177-fl", "v177-fl", "c118-fl", "h247-fl", "x247-fl",
        "w206", "x254", "w214", "x243", "v295",
    )

    _CAMPAIGN_WORDS = ("kampanya", "campaign", "indirim")
    _LIST_WORDS = ("liste", "list", "retail", "tavsiye")

    def resources(self) -> list[str]:
        return list(self.MODEL_CODES)

    def fetch(self, resource: str = "") -> RawPayload:
        return self._fetch_json(
            self.API_URL.format(code=resource),
            headers=self.API_HEADERS,
            resource=resource,
        )

    @classmethod
    def _classify_price(cls, label: str) -> str | None:
        lowered = label.lower()
        if any(w in lowered for w in cls._CAMPAIGN_WORDS):
            return "campaign"
        if any(w in lowered for w in cls._LIST_WORDS):
            return "list"
        return None

    @classmethod
    def _prices(cls, raw: Any) -> tuple[float | None, float | None]:
        """Return (list price, campaign price) from ``ProductPrice``.

        The field is either a mapping of labelled amounts or a list of
        ``{Type|PriceType|Name, Price|Value}`` entries.
        """
        entries: list[tuple[str, Any]] = []
        if isinstance(raw, dict):
            entries = [(str(k), v) for k, v in raw.items()]
        elif isinstance(raw, list):
            for entry in raw:
                if not isinstance(entry, dict):
                    continue
                label = (
                    entry.get("Type")
                    or entry.get("PriceType")
                    or entry.get("Name")
                    or "list"
                )
                entries.append(
                    (str(label), entry.get("Price", entry.get("Value")))
                )
        elif raw is not None:
            entries = [("list", raw)]

        list_price: float | None = None
        campaign_price: float | None = None
        for label, amount in entries:
            value = parse_price(amount)
            if value <= 0:
                continue
            kind = cls._classify_price(label)
            if kind == "campaign" and campaign_price is None:
                campaign_price = value
            elif kind == "list" and list_price is None:
                list_price = value
        return list_price, campaign_price

    @staticmethod
    def _attributes(raw: Any) -> dict[str, str]:
        attributes: dict[str, str] = {}
        for attr in raw or []:
            if isinstance(attr, dict) and attr.get("Name"):
                attributes[str(attr["Name"]).lower()] = str(
                    attr.get("Value") or ""
                )
        return attributes

    def _parse_payload(self, payload: JsonPayload) -> list[PriceRecord]:
        data = payload.data
        results = data.get("result") if isinstance(data, dict) else None
        if not isinstance(results, list):
            raise PayloadShapeError(
                f"Mercedes-Benz {payload.resource}: 'result' is not a list",
                code="MISSING_RESULT",
            )

        records: list[PriceRecord] = []
        for item in results:
            if item.get("IsActive") is False:
                continue
            list_price, campaign_price = self._prices(item.get("ProductPrice"))
            # Campaign price when one is published, else list price
            price = campaign_price if campaign_price is not None else list_price
            if price is None:
                continue

            attributes = self._attributes(item.get("ProductAttribute"))
            engine = (
                attributes.get("motor")
                or attributes.get("engine")
                or str(item.get("Alias") or "")
            )
            tax_ratio = item.get("TaxRatio")
            records.append(self.make_record(
                model=str(item.get("GroupName") or payload.resource),
                trim=str(item.get("Name") or ""),
                engine=engine,
                transmission=normalize_transmission(
                    attributes.get("şanzıman") or attributes.get("transmission")
                ),
                fuel=normalize_fuel(
                    attributes.get("yakıt tipi")
                    or attributes.get("yakıt")
                    or attributes.get("fuel"),
                    engine,
                ),
                price_raw=format_price(price),
                price_numeric=price,
                tax_rate=float(tax_ratio) if tax_ratio is not None else None,
                price_list_numeric=list_price,
                price_campaign_numeric=campaign_price,
                extras={"code": item["Code"]} if item.get("Code") else {},
            ))
        return records
