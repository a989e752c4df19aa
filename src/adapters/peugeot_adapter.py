# src/adapters/peugeot_adapter.py

"""Peugeot Türkiye price-list adapter (rendered HTML, one page per model).

The pages render a plain ``<table>`` whose column order differs between
models and over time, so columns are located by header keywords rather
than by position.
"""

import re

from bs4 import BeautifulSoup, Tag

from src.adapters.base_adapter import BaseAdapter
from src.filters.normalizer import (
    normalize_fuel,
    normalize_transmission,
    parse_price,
)
from src.models.parse_result import PayloadShapeError
from src.models.payloads import HtmlPayload, PayloadKind, RawPayload
from src.models.price_record import PriceRecord

_WS_RE = re.compile(r"\s+")

# Column role -> header keywords, checked in this order so that a
# "Kampanyalı Fiyat" header is never taken for the list price.
HEADER_KEYWORDS: list[tuple[str, tuple[str, ...]]] = [
    ("campaign", ("kampanya", "indirimli")),
    ("list", ("liste", "tavsiye edilen", "anahtar teslim", "fiyat")),
    ("trim", ("donanım", "versiyon", "paket")),
    ("engine", ("motor",)),
    ("transmission", ("şanzıman", "vites")),
    ("fuel", ("yakıt",)),
]


def _cell_text(cell: Tag) -> str:
    return _WS_RE.sub(" ", cell.get_text(" ", strip=True)).strip()


def map_columns(headers: list[str]) -> dict[str, int]:
    """Assign each column role to the first header carrying its keyword."""
    columns: dict[str, int] = {}
    for index, header in enumerate(headers):
        lowered = header.replace("İ", "i").lower()
        for role, keywords in HEADER_KEYWORDS:
            if role in columns:
                continue
            if any(k in lowered for k in keywords):
                columns[role] = index
                break
    return columns


class PeugeotAdapter(BaseAdapter):
    payload_kind = PayloadKind.HTML
    homepage_url = "https://www.peugeot.com.tr/"
    PAGE_URL = "https://www.peugeot.com.tr/fiyat-listesi/{slug}.html"
    # Page slug -> display model name
    MODEL_PAGES: dict[str, str] = {
        "208": "208",
        "e-208": "E-208",
        "2008": "2008",
        "e-2008": "E-2008",
        "308": "308",
        "408": "408",
        "3008": "3008",
        "5008": "5008",
        "rifter": "Rifter",
    }

    def resources(self) -> list[str]:
        return list(self.MODEL_PAGES)

    def fetch(self, resource: str = "") -> RawPayload:
        return self._get_html(
            self.PAGE_URL.format(slug=resource), resource=resource
        )

    @staticmethod
    def _header_cells(table: Tag) -> tuple[list[str], Tag | None]:
        """Return header texts and the row they came from."""
        thead = table.find("thead")
        header_row = (
            thead.find("tr") if isinstance(thead, Tag) else table.find("tr")
        )
        if not isinstance(header_row, Tag):
            return [], None
        cells = header_row.find_all(["th", "td"])
        return [_cell_text(c) for c in cells], header_row

    def _parse_table(
        self, table: Tag, model: str,
    ) -> list[PriceRecord] | None:
        headers, header_row = self._header_cells(table)
        columns = map_columns(headers)
        if "trim" not in columns or not (
            "list" in columns or "campaign" in columns
        ):
            return None

        records: list[PriceRecord] = []
        for row in table.find_all("tr"):
            if row is header_row:
                continue
            cells = [_cell_text(c) for c in row.find_all(["td", "th"])]
            if len(cells) < len(headers):
                continue

            def cell(role: str) -> str:
                index = columns.get(role)
                return cells[index] if index is not None else ""

            list_price = parse_price(cell("list")) or None
            campaign_price = parse_price(cell("campaign")) or None
            # Campaign price when the row has one, else list price
            price_raw = cell("campaign") if campaign_price else cell("list")
            price = campaign_price or list_price
            if not price:
                continue

            engine = cell("engine")
            records.append(self.make_record(
                model=model,
                trim=cell("trim"),
                engine=engine,
                transmission=normalize_transmission(
                    cell("transmission"), engine
                ),
                fuel=normalize_fuel(cell("fuel"), engine, model),
                price_raw=price_raw,
                price_numeric=price,
                price_list_numeric=list_price,
                price_campaign_numeric=campaign_price,
            ))
        return records

    def _parse_payload(self, payload: HtmlPayload) -> list[PriceRecord]:
        soup = BeautifulSoup(payload.text, "lxml")
        model = self.MODEL_PAGES.get(payload.resource)
        if model is None:
            heading = soup.find("h1")
            model = _cell_text(heading) if isinstance(heading, Tag) else "Unknown"

        found_table = False
        records: list[PriceRecord] = []
        for table in soup.find_all("table"):
            parsed = self._parse_table(table, model)
            if parsed is None:
                continue
            found_table = True
            records.extend(parsed)

        if not found_table:
            raise PayloadShapeError(
                f"Peugeot {payload.resource or model}: no price table "
                "with recognisable headers",
                code="NO_PRICE_TABLE",
            )
        return records
