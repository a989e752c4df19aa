# src/adapters/fiat_adapter.py

"""Fiat Türkiye price-list adapter (print-ready PDF)."""

import re

from src.adapters.base_adapter import BaseAdapter
from src.adapters.pdf_table import (
    PriceTableReconstructor,
    TableLayout,
    extract_fragments,
)
from src.models.parse_result import PayloadShapeError
from src.models.payloads import PayloadKind, PdfPayload, RawPayload
from src.models.price_record import PriceRecord


def _header(pattern: str) -> re.Pattern[str]:
    return re.compile(pattern, re.IGNORECASE)


FIAT_LAYOUT = TableLayout(
    model_headers=[
        (_header(r"egea\s+sedan\b"), "Egea Sedan"),
        (_header(r"egea\s+hatchback\b"), "Egea Hatchback"),
        (_header(r"egea\s+cross\s+wagon\b"), "Egea Cross Wagon"),
        (_header(r"egea\s+cross\b"), "Egea Cross"),
        (_header(r"egea\s+station\s+wagon\b"), "Egea Station Wagon"),
        (_header(r"(?:yeni\s+)?600e?(?![\d.,])"), "600"),
        (_header(r"500e\b"), "500e"),
        (_header(r"topolino\b"), "Topolino"),
        (_header(r"doblo\b"), "Doblo"),
        (_header(r"fiorino\b"), "Fiorino"),
    ],
    trim_keywords=(
        "Easy", "Urban", "Lounge", "Limited", "Street", "Cross",
        "Plus", "Red", "La Prima", "Icon", "Premium", "Safeguard",
        "Active", "Elegance",
    ),
    engine_pattern=re.compile(
        r"\d[.,]\d\s*[A-Za-zÇĞİÖŞÜçğıöşü\- ]*?\d{2,3}\s*(?:HP|PS|BG)\b"
        r"|\d{2,3}\s*kW\b",
        re.IGNORECASE,
    ),
    ignore_keywords=("fiyat listesi", "tavsiye edilen", "sayfa"),
    noise_pattern=re.compile(
        r"\b(?:Manuel|Otomatik|DCT|e-?DCT|TL)\b", re.IGNORECASE
    ),
)


class FiatAdapter(BaseAdapter):
    """Download the price-list PDF and rebuild its table rows."""

    payload_kind = PayloadKind.PDF
    homepage_url = "https://www.fiat.com.tr/"
    PDF_URL = "https://www.fiat.com.tr/content/dam/fiat/tr/fiyat-listesi.pdf"

    def fetch(self, resource: str = "") -> RawPayload:
        content = self._fetch_bytes(self.PDF_URL)
        try:
            pages = extract_fragments(content)
        except Exception as exc:
            raise PayloadShapeError(
                f"Fiat: unreadable PDF ({type(exc).__name__}: {exc})",
                code="INVALID_PDF",
            ) from exc
        return PdfPayload(pages=pages, source_url=self.PDF_URL)

    def _parse_payload(self, payload: PdfPayload) -> list[PriceRecord]:
        reconstructor = PriceTableReconstructor(
            self.brand_name, FIAT_LAYOUT, self.settings.ROW_Y_TOLERANCE
        )
        records = reconstructor.parse_pages(payload.pages)
        if not records and any(payload.pages):
            raise PayloadShapeError(
                "Fiat: document has text but no price rows were recovered",
                code="NO_TABLE_ROWS",
            )
        return records
