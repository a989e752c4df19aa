# src/models/snapshot.py

"""Dated per-brand snapshot and brand index models."""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any

from src.models.price_record import PriceRecord


def parse_iso_date(value: str) -> date:
    """Parse ``YYYY-MM-DD`` (or a full ISO timestamp) into a date."""
    return date.fromisoformat(value[:10])


@dataclass(frozen=True)
class Snapshot:
    """One day's complete price list for one brand."""

    brand_id: str
    brand: str
    date: date
    collected_at: datetime
    records: tuple[PriceRecord, ...]
    is_fallback: bool = False
    original_date: date | None = None

    @property
    def row_count(self) -> int:
        """Number of records in the snapshot."""
        return len(self.records)

    def to_document(self) -> dict[str, Any]:
        """Serialise to the on-disk snapshot document."""
        doc: dict[str, Any] = {
            "collectedAt": self.collected_at.isoformat(),
            "brand": self.brand,
            "brandId": self.brand_id,
            "date": self.date.isoformat(),
            "rowCount": self.row_count,
            "rows": [r.to_dict() for r in self.records],
        }
        if self.is_fallback:
            doc["isFallback"] = True
            if self.original_date is not None:
                doc["originalDate"] = self.original_date.isoformat()
        return doc

    @classmethod
    def from_document(
        cls, doc: dict[str, Any], snapshot_date: date,
    ) -> "Snapshot":
        """Build a snapshot from a stored document.

        Raises ``KeyError``/``TypeError``/``ValueError`` on a malformed
        document; the store turns those into "not found".
        """
        rows = doc["rows"]
        if not isinstance(rows, list):
            raise TypeError("rows must be a list")
        original = doc.get("originalDate")
        return cls(
            brand_id=str(doc.get("brandId", "")),
            brand=str(doc.get("brand", "")),
            date=snapshot_date,
            collected_at=datetime.fromisoformat(str(doc["collectedAt"])),
            records=tuple(
                PriceRecord.from_dict(row)
                for row in rows
                if isinstance(row, dict)
            ),
            is_fallback=bool(doc.get("isFallback", False)),
            original_date=(
                parse_iso_date(str(original)) if original else None
            ),
        )


@dataclass
class BrandIndexEntry:
    """Per-brand availability summary."""

    name: str
    available_dates: list[date] = field(
        default_factory=lambda: list[date]()
    )
    total_records: int = 0

    @property
    def latest_date(self) -> date | None:
        """Newest available date, if any."""
        return self.available_dates[0] if self.available_dates else None

    def add_date(self, snapshot_date: date, row_count: int) -> None:
        """Record a successful write, keeping dates newest first.

        ``total_records`` follows the newest date, so backfilling an
        older day leaves it alone.
        """
        if snapshot_date not in self.available_dates:
            self.available_dates.append(snapshot_date)
            self.available_dates.sort(reverse=True)
        if snapshot_date == self.latest_date:
            self.total_records = row_count

    def to_document(self) -> dict[str, Any]:
        """Serialise to the index document entry."""
        latest = self.latest_date
        return {
            "name": self.name,
            "availableDates": [d.isoformat() for d in self.available_dates],
            "latestDate": latest.isoformat() if latest else "",
            "totalRecords": self.total_records,
        }

    @classmethod
    def from_document(cls, doc: dict[str, Any]) -> "BrandIndexEntry":
        """Build an entry from the index document."""
        dates = sorted(
            {parse_iso_date(str(d)) for d in doc.get("availableDates", [])},
            reverse=True,
        )
        return cls(
            name=str(doc.get("name", "")),
            available_dates=dates,
            total_records=int(doc.get("totalRecords", 0)),
        )


@dataclass
class BrandIndex:
    """Index of every brand and the dates stored for it."""

    last_updated: datetime = field(default_factory=datetime.now)
    brands: dict[str, BrandIndexEntry] = field(
        default_factory=lambda: dict[str, BrandIndexEntry]()
    )

    def to_document(self) -> dict[str, Any]:
        """Serialise to the ``index.json`` document."""
        return {
            "lastUpdated": self.last_updated.isoformat(),
            "brands": {
                brand_id: entry.to_document()
                for brand_id, entry in self.brands.items()
            },
        }

    @classmethod
    def from_document(cls, doc: dict[str, Any]) -> "BrandIndex":
        """Build an index from ``index.json`` content."""
        brands_doc = doc.get("brands", {})
        if not isinstance(brands_doc, dict):
            raise TypeError("brands must be a mapping")
        last_updated = doc.get("lastUpdated")
        return cls(
            last_updated=(
                datetime.fromisoformat(str(last_updated))
                if last_updated
                else datetime.now()
            ),
            brands={
                str(brand_id): BrandIndexEntry.from_document(entry)
                for brand_id, entry in brands_doc.items()
                if isinstance(entry, dict)
            },
        )
