# src/adapters/pdf_table.py

"""Table reconstruction from positioned text in print-ready price lists.

Print documents carry no table structure: every word is an isolated
fragment with page coordinates. Rows are recovered by clustering
fragments on their vertical position, then walked by a small state
machine that tracks the current model and engine headings.
"""

import io
import logging
import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from enum import Enum

import pdfplumber

from src.config.settings import Settings
from src.filters.deduplicator import RecordDeduplicator
from src.filters.normalizer import (
    normalize_fuel,
    normalize_transmission,
    parse_price,
)
from src.models.payloads import TextFragment
from src.models.price_record import PriceRecord

logger = logging.getLogger("pricelist_intel.adapters.pdf")

# Turkish currency formatting: 1.400.000 or 1.400.000,00
PRICE_TOKEN_RE = re.compile(r"(?<![\d.,])\d{1,3}(?:\.\d{3})+(?:,\d{2})?(?![\d.])")

_WS_RE = re.compile(r"\s+")


@dataclass(frozen=True)
class TableRow:
    """Fragments sharing one visual line, ordered left to right."""

    y: float
    fragments: tuple[TextFragment, ...]

    @property
    def text(self) -> str:
        return " ".join(f.text.strip() for f in self.fragments).strip()


def extract_fragments(pdf_bytes: bytes) -> tuple[tuple[TextFragment, ...], ...]:
    """Extract positioned words from every page of a PDF document."""
    pages: list[tuple[TextFragment, ...]] = []
    with pdfplumber.open(io.BytesIO(pdf_bytes)) as pdf:
        for page in pdf.pages:
            words = page.extract_words(keep_blank_chars=False) or []
            pages.append(tuple(
                TextFragment(
                    x=float(w["x0"]),
                    y=float(w["top"]),
                    text=str(w["text"]),
                )
                for w in words
            ))
    return tuple(pages)


def group_rows(
    fragments: Iterable[TextFragment],
    tolerance: float = Settings.ROW_Y_TOLERANCE,
) -> list[TableRow]:
    """Cluster fragments into rows by vertical position.

    Fragments are visited in ``(y, x)`` order. A row is anchored at the
    ``y`` of its first fragment; a later fragment joins it while
    ``y - row_y <= tolerance`` and opens a new row otherwise.
    """
    ordered = sorted(
        (f for f in fragments if f.text.strip()),
        key=lambda f: (f.y, f.x),
    )
    rows: list[TableRow] = []
    current: list[TextFragment] = []
    row_y: float | None = None

    def push() -> None:
        if current and row_y is not None:
            rows.append(TableRow(
                y=row_y,
                fragments=tuple(sorted(current, key=lambda f: f.x)),
            ))

    for frag in ordered:
        if row_y is None or frag.y - row_y > tolerance:
            push()
            current = [frag]
            row_y = frag.y
        else:
            current.append(frag)
    push()
    return rows


class RowState(str, Enum):
    SEEKING_SECTION = "seeking_section"
    IN_DATA_SECTION = "in_data_section"


@dataclass
class TableLayout:
    """Brand-specific vocabulary driving the row state machine."""

    # (pattern matched at the start of a row, canonical model name)
    model_headers: list[tuple[re.Pattern[str], str]]
    trim_keywords: tuple[str, ...]
    engine_pattern: re.Pattern[str]
    # Rows containing any of these are page furniture, never data
    ignore_keywords: tuple[str, ...] = field(default_factory=tuple)
    # Words stripped from the trim label (gearbox names and the like)
    noise_pattern: re.Pattern[str] | None = None

    def match_model(self, text: str) -> str | None:
        for pattern, name in self.model_headers:
            if pattern.match(text):
                return name
        return None

    def match_trim(self, text: str) -> str | None:
        lowered = text.lower()
        for keyword in self.trim_keywords:
            if re.search(rf"\b{re.escape(keyword.lower())}\b", lowered):
                return keyword
        return None


class PriceTableReconstructor:
    """Turn grouped rows into price records for one brand."""

    def __init__(
        self,
        brand: str,
        layout: TableLayout,
        tolerance: float = Settings.ROW_Y_TOLERANCE,
    ) -> None:
        self.brand = brand
        self.layout = layout
        self.tolerance = tolerance
        self.state = RowState.SEEKING_SECTION
        self.current_model = ""
        self.current_engine = ""
        self.engine_context = ""

    def reset(self) -> None:
        self.state = RowState.SEEKING_SECTION
        self.current_model = ""
        self.current_engine = ""
        self.engine_context = ""

    def parse_pages(
        self, pages: Sequence[Sequence[TextFragment]],
    ) -> list[PriceRecord]:
        """Run the state machine over every page and dedupe the output.

        Model and engine context carries across page breaks because
        long tables continue on the next page without repeating the
        heading.
        """
        self.reset()
        records: list[PriceRecord] = []
        for page_no, fragments in enumerate(pages, start=1):
            rows = group_rows(fragments, self.tolerance)
            logger.debug("Page %d: %d rows", page_no, len(rows))
            for row in rows:
                record = self.consume(row)
                if record is not None:
                    records.append(record)
        kept, _ = RecordDeduplicator.deduplicate(records)
        return kept

    def _first_price(self, text: str) -> re.Match[str] | None:
        for match in PRICE_TOKEN_RE.finditer(text):
            value = parse_price(match.group(0))
            if Settings.MIN_VALID_PRICE <= value <= Settings.MAX_VALID_PRICE:
                return match
        return None

    def consume(self, row: TableRow) -> PriceRecord | None:
        """Advance the state machine by one row."""
        text = _WS_RE.sub(" ", row.text)
        lowered = text.lower()
        if any(k.lower() in lowered for k in self.layout.ignore_keywords):
            return None

        price_match = self._first_price(text)
        engine_match = self.layout.engine_pattern.search(text)
        model = self.layout.match_model(text)
        if model is not None:
            self.state = RowState.IN_DATA_SECTION
            self.current_model = model
            self.current_engine = ""
            self.engine_context = ""

        if self.state is RowState.SEEKING_SECTION:
            return None

        if price_match is None:
            if engine_match is not None:
                self.current_engine = engine_match.group(0).strip()
                self.engine_context = text
            return None

        trim_keyword = self.layout.match_trim(text[: price_match.start()])
        if trim_keyword is None:
            return None

        engine = self.current_engine
        label = text[: price_match.start()]
        if engine_match is not None and engine_match.start() < price_match.start():
            engine = engine_match.group(0).strip()
            label = label.replace(engine_match.group(0), " ")
        if model is not None:
            label = re.sub(
                rf"^{re.escape(model)}", "", label.strip(), flags=re.I
            )
        if self.layout.noise_pattern is not None:
            label = self.layout.noise_pattern.sub(" ", label)
        trim = _WS_RE.sub(" ", label).strip(" -|") or trim_keyword

        price_raw = price_match.group(0)
        return PriceRecord(
            brand=self.brand,
            model=self.current_model,
            trim=trim,
            engine=engine,
            transmission=normalize_transmission(text, self.engine_context),
            fuel=normalize_fuel(
                text, self.engine_context, self.current_model
            ),
            price_raw=price_raw,
            price_numeric=parse_price(price_raw),
        )
