# src/analytics/rollups.py

"""Latest-snapshot rollup, flattened search index and summary statistics."""

import logging
import re
import statistics
import unicodedata
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any

from src.filters.normalizer import normalize_fuel, normalize_transmission
from src.storage.snapshot_store import SnapshotStore

logger = logging.getLogger("pricelist_intel.rollups")

_NON_ALNUM_RE = re.compile(r"[^a-z0-9\s]")

# (label, min, max); max None is open-ended
PRICE_SEGMENTS: tuple[tuple[str, float, float | None], ...] = (
    ("budget", 0, 1_500_000),
    ("mid", 1_500_000, 3_000_000),
    ("premium", 3_000_000, 5_000_000),
    ("luxury", 5_000_000, None),
)


# ── latest.json ──────────────────────────────────────────


@dataclass
class LatestBrand:
    name: str
    date: date
    is_fallback: bool
    vehicles: list[dict[str, Any]]


@dataclass
class LatestRollup:
    generated_at: datetime
    total_vehicles: int
    brands: dict[str, LatestBrand]


def build_latest(
    store: SnapshotStore, generated_at: datetime | None = None,
) -> LatestRollup:
    """Every brand's newest snapshot in one document."""
    brands: dict[str, LatestBrand] = {}
    for brand_id, snapshot in store.latest_snapshots().items():
        brands[brand_id] = LatestBrand(
            name=snapshot.brand,
            date=snapshot.date,
            is_fallback=snapshot.is_fallback,
            vehicles=[r.to_dict() for r in snapshot.records],
        )
    total = sum(len(b.vehicles) for b in brands.values())
    logger.info("Latest rollup: %d vehicles, %d brands", total, len(brands))
    return LatestRollup(
        generated_at=generated_at or datetime.now(),
        total_vehicles=total,
        brands=brands,
    )


# ── search-index.json ────────────────────────────────────


def normalize_search_text(text: str) -> str:
    """Lower-case, strip diacritics and punctuation, collapse spaces."""
    folded = unicodedata.normalize("NFD", text.replace("ı", "i").replace("İ", "i"))
    stripped = "".join(c for c in folded if not unicodedata.combining(c))
    return " ".join(_NON_ALNUM_RE.sub(" ", stripped.lower()).split())


@dataclass
class SearchIndexEntry:
    id: str
    brand: str
    brand_id: str
    model: str
    trim: str
    engine: str
    fuel: str
    transmission: str
    price: float
    price_formatted: str
    search_text: str


@dataclass
class SearchIndex:
    generated_at: datetime
    total_entries: int
    entries: list[SearchIndexEntry]


def build_search_index(
    store: SnapshotStore, generated_at: datetime | None = None,
) -> SearchIndex:
    entries: list[SearchIndexEntry] = []
    for brand_id, snapshot in store.latest_snapshots().items():
        for record in snapshot.records:
            text = " ".join((
                record.brand, record.model, record.trim,
                record.engine, record.fuel, record.transmission,
            ))
            entries.append(SearchIndexEntry(
                id=record.vehicle_id(),
                brand=record.brand,
                brand_id=brand_id,
                model=record.model,
                trim=record.trim,
                engine=record.engine,
                fuel=record.fuel,
                transmission=record.transmission,
                price=record.price_numeric,
                price_formatted=record.price_raw,
                search_text=normalize_search_text(text),
            ))
    logger.info("Search index: %d entries", len(entries))
    return SearchIndex(
        generated_at=generated_at or datetime.now(),
        total_entries=len(entries),
        entries=entries,
    )


# ── stats/precomputed.json ───────────────────────────────


@dataclass
class PriceSummary:
    avg_price: float = 0
    min_price: float = 0
    max_price: float = 0
    median_price: float = 0

    @classmethod
    def of(cls, prices: Sequence[float]) -> "PriceSummary":
        if not prices:
            return cls()
        return cls(
            avg_price=round(sum(prices) / len(prices)),
            min_price=min(prices),
            max_price=max(prices),
            median_price=statistics.median(prices),
        )


@dataclass
class BrandStats:
    name: str
    vehicle_count: int
    avg_price: float
    min_price: float
    max_price: float
    median_price: float


@dataclass
class ShareStats:
    """Count, share of all vehicles and mean price of one category."""

    name: str
    count: int
    percentage: float
    avg_price: float


@dataclass
class PriceSegmentStats:
    segment: str
    min: float
    max: float
    count: int
    percentage: float


@dataclass
class PrecomputedStats:
    generated_at: datetime
    total_vehicles: int
    overall_stats: PriceSummary
    brand_stats: list[BrandStats] = field(
        default_factory=lambda: list[BrandStats]()
    )
    fuel_stats: list[ShareStats] = field(
        default_factory=lambda: list[ShareStats]()
    )
    transmission_stats: list[ShareStats] = field(
        default_factory=lambda: list[ShareStats]()
    )
    price_segments: list[PriceSegmentStats] = field(
        default_factory=lambda: list[PriceSegmentStats]()
    )


def _share(count: int, total: int) -> float:
    return round(count / total * 100, 1) if total else 0.0


def _share_stats(
    groups: dict[str, list[float]], total: int,
) -> list[ShareStats]:
    stats = [
        ShareStats(
            name=name,
            count=len(prices),
            percentage=_share(len(prices), total),
            avg_price=round(sum(prices) / len(prices)),
        )
        for name, prices in groups.items()
        if prices
    ]
    stats.sort(key=lambda s: -s.count)
    return stats


def build_stats(
    store: SnapshotStore, generated_at: datetime | None = None,
) -> PrecomputedStats:
    """Overall, per-brand, per-fuel and per-transmission price statistics."""
    all_prices: list[float] = []
    by_brand: dict[str, tuple[str, list[float]]] = {}
    by_fuel: dict[str, list[float]] = {}
    by_transmission: dict[str, list[float]] = {}

    for brand_id, snapshot in store.latest_snapshots().items():
        _, prices = by_brand.setdefault(brand_id, (snapshot.brand, []))
        for record in snapshot.records:
            price = record.price_numeric
            if price <= 0:
                continue
            all_prices.append(price)
            prices.append(price)
            by_fuel.setdefault(normalize_fuel(record.fuel), []).append(price)
            by_transmission.setdefault(
                normalize_transmission(record.transmission), []
            ).append(price)

    brand_stats = []
    for name, prices in by_brand.values():
        if not prices:
            continue
        summary = PriceSummary.of(prices)
        brand_stats.append(BrandStats(
            name=name,
            vehicle_count=len(prices),
            avg_price=summary.avg_price,
            min_price=summary.min_price,
            max_price=summary.max_price,
            median_price=summary.median_price,
        ))
    brand_stats.sort(key=lambda b: -b.vehicle_count)

    total = len(all_prices)
    segments = []
    for label, low, high in PRICE_SEGMENTS:
        count = sum(
            1 for p in all_prices if p >= low and (high is None or p < high)
        )
        segments.append(PriceSegmentStats(
            segment=label,
            min=low,
            max=high if high is not None else 0,
            count=count,
            percentage=_share(count, total),
        ))

    logger.info("Stats over %d vehicles", total)
    return PrecomputedStats(
        generated_at=generated_at or datetime.now(),
        total_vehicles=total,
        overall_stats=PriceSummary.of(all_prices),
        brand_stats=brand_stats,
        fuel_stats=_share_stats(by_fuel, total),
        transmission_stats=_share_stats(by_transmission, total),
        price_segments=segments,
    )
