# src/adapters/toyota_adapter.py

"""Toyota Türkiye price-list adapter (XML feed)."""

import re

from bs4 import BeautifulSoup, Tag

from src.adapters.base_adapter import BaseAdapter
from src.filters.normalizer import (
    normalize_fuel,
    normalize_transmission,
    parse_price,
)
from src.models.parse_result import PayloadShapeError
from src.models.payloads import PayloadKind, RawPayload, XmlPayload
from src.models.price_record import PriceRecord

_TL_SUFFIX_RE = re.compile(r"\s*TL\s*$", re.IGNORECASE)


class ToyotaAdapter(BaseAdapter):
    """Parse ``Data/Model/ModelFiyat`` rows.

    Only active rows (``Durum == 1``) are kept, and rows whose name is a
    promotional note rather than a version are skipped.
    """

    payload_kind = PayloadKind.XML
    homepage_url = "https://turkiye.toyota.com.tr/"
    PRICE_URL = (
        "https://turkiye.toyota.com.tr/middle/fiyat-listesi/fiyat_v3.xml"
    )

    # Campaign prices win over list prices; the "2" columns are the
    # newer figures when both are present.
    PRICE_PRIORITY: tuple[str, ...] = (
        "KampanyaliFiyati2",
        "KampanyaliFiyati1",
        "ListeFiyati2",
        "ListeFiyati1",
    )

    def fetch(self, resource: str = "") -> RawPayload:
        return self._fetch_xml(self.PRICE_URL)

    @staticmethod
    def _field(node: Tag, name: str) -> str:
        """Read a field stored either as an attribute or a child element."""
        attr = node.get(name)
        if attr is not None:
            return str(attr).strip()
        child = node.find(name, recursive=False)
        if isinstance(child, Tag):
            return child.get_text(strip=True)
        return ""

    @staticmethod
    def _is_promotional_note(name: str) -> bool:
        return (
            "%" in name
            or "ÖTV" in name
            or "tüm versiyonlarda" in name.lower()
        )

    def _parse_payload(self, payload: XmlPayload) -> list[PriceRecord]:
        soup = BeautifulSoup(payload.text, "xml")
        root = soup.find("Data")
        if not isinstance(root, Tag):
            raise PayloadShapeError(
                "Toyota: <Data> root element missing", code="MISSING_ROOT"
            )

        records: list[PriceRecord] = []
        for row in root.find_all("ModelFiyat"):
            if self._field(row, "Durum") != "1":
                continue
            name = self._field(row, "Model") or "Unknown"
            if self._is_promotional_note(name):
                continue

            price = ""
            for column in self.PRICE_PRIORITY:
                price = self._field(row, column)
                if price and parse_price(price) > 0:
                    break
                price = ""
            if not price:
                continue
            price = _TL_SUFFIX_RE.sub("", price).strip()

            list_price = next(
                (
                    parse_price(self._field(row, c))
                    for c in ("ListeFiyati2", "ListeFiyati1")
                    if parse_price(self._field(row, c)) > 0
                ),
                None,
            )
            campaign_price = next(
                (
                    parse_price(self._field(row, c))
                    for c in ("KampanyaliFiyati2", "KampanyaliFiyati1")
                    if parse_price(self._field(row, c)) > 0
                ),
                None,
            )
            records.append(self.make_record(
                model=self._field(row, "Govde"),
                trim=name,
                engine=self._field(row, "MotorHacmi"),
                transmission=normalize_transmission(
                    self._field(row, "VitesTipi")
                ),
                fuel=normalize_fuel(self._field(row, "MotorTipi")),
                price_raw=price,
                price_numeric=parse_price(price),
                price_list_numeric=list_price,
                price_campaign_numeric=campaign_price,
            ))
        return records
