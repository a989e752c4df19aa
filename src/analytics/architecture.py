# src/analytics/architecture.py

"""Trim ladders per (brand, model) and cross-brand segment comparison."""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime

from src.analytics.segments import classify_segment
from src.filters.normalizer import format_price
from src.models.price_record import PriceRecord
from src.storage.snapshot_store import SnapshotStore

logger = logging.getLogger("pricelist_intel.architecture")


@dataclass
class TrimStep:
    trim: str
    price: float
    price_formatted: str
    step_from_base: float
    step_percent: float
    engine: str
    transmission: str
    fuel: str


@dataclass
class TrimLadder:
    """Trims of one model sorted by ascending price."""

    id: str
    model: str
    brand: str
    brand_id: str
    segment: str
    trims: list[TrimStep]
    base_price: float
    top_price: float
    price_spread: float
    price_spread_percent: float
    trim_count: int


@dataclass
class CrossBrandEntry:
    brand: str
    brand_id: str
    model: str
    base_price: float
    top_price: float
    base_price_formatted: str
    top_price_formatted: str
    trim_count: int


@dataclass
class SegmentComparison:
    segment: str
    models: list[CrossBrandEntry]
    avg_base_price: float
    avg_top_price: float


@dataclass
class ArchitectureSummary:
    total_models: int = 0
    avg_trims_per_model: float = 0.0
    avg_price_spread: float = 0.0
    avg_price_spread_percent: float = 0.0


@dataclass
class ArchitectureReport:
    generated_at: datetime
    date: date | None
    ladders: list[TrimLadder] = field(
        default_factory=lambda: list[TrimLadder]()
    )
    cross_brand_comparison: list[SegmentComparison] = field(
        default_factory=lambda: list[SegmentComparison]()
    )
    summary: ArchitectureSummary = field(default_factory=ArchitectureSummary)


def _percent_above(price: float, base: float) -> float:
    return (price - base) / base * 100 if base > 0 else 0.0


def build_ladder(
    brand_id: str, brand: str, model: str, records: list[PriceRecord],
) -> TrimLadder:
    """Ladder of one model; ``records`` must be non-empty."""
    ordered = sorted(records, key=lambda r: r.price_numeric)
    base = ordered[0].price_numeric
    top = ordered[-1].price_numeric
    steps = [
        TrimStep(
            trim=r.trim,
            price=r.price_numeric,
            price_formatted=r.price_raw,
            step_from_base=r.price_numeric - base,
            step_percent=round(_percent_above(r.price_numeric, base), 2),
            engine=r.engine,
            transmission=r.transmission,
            fuel=r.fuel,
        )
        for r in ordered
    ]
    return TrimLadder(
        id=f"{brand_id}-{model}".lower().replace(" ", "-"),
        model=model,
        brand=brand,
        brand_id=brand_id,
        segment=classify_segment(brand, model),
        trims=steps,
        base_price=base,
        top_price=top,
        price_spread=top - base,
        price_spread_percent=round(_percent_above(top, base), 2),
        trim_count=len(steps),
    )


def compare_segments(ladders: list[TrimLadder]) -> list[SegmentComparison]:
    """Group ladders by segment, keeping segments with 2+ distinct models."""
    by_segment: dict[str, list[TrimLadder]] = {}
    for ladder in ladders:
        by_segment.setdefault(ladder.segment, []).append(ladder)

    comparisons = []
    for segment, members in by_segment.items():
        distinct = {(l.brand_id, l.model) for l in members}
        if len(distinct) < 2:
            continue
        entries = sorted(
            (
                CrossBrandEntry(
                    brand=l.brand,
                    brand_id=l.brand_id,
                    model=l.model,
                    base_price=l.base_price,
                    top_price=l.top_price,
                    base_price_formatted=format_price(l.base_price),
                    top_price_formatted=format_price(l.top_price),
                    trim_count=l.trim_count,
                )
                for l in members
            ),
            key=lambda e: e.base_price,
        )
        comparisons.append(SegmentComparison(
            segment=segment,
            models=entries,
            avg_base_price=round(
                sum(e.base_price for e in entries) / len(entries)
            ),
            avg_top_price=round(
                sum(e.top_price for e in entries) / len(entries)
            ),
        ))
    comparisons.sort(key=lambda c: -len(c.models))
    return comparisons


class ArchitectureBuilder:
    """Builds the architecture (ladders) artifact from the store."""

    def __init__(self, store: SnapshotStore) -> None:
        self.store = store

    def generate(
        self, generated_at: datetime | None = None,
    ) -> ArchitectureReport:
        latest = self.store.latest_snapshots()
        ladders: list[TrimLadder] = []
        for brand_id, snapshot in latest.items():
            by_model: dict[str, list[PriceRecord]] = {}
            for record in snapshot.records:
                if record.price_numeric > 0:
                    by_model.setdefault(record.model, []).append(record)
            for model, records in by_model.items():
                ladders.append(
                    build_ladder(brand_id, snapshot.brand, model, records)
                )
            logger.debug("%s: %d ladders", brand_id, len(by_model))

        summary = ArchitectureSummary(total_models=len(ladders))
        if ladders:
            n = len(ladders)
            summary.avg_trims_per_model = round(
                sum(l.trim_count for l in ladders) / n, 1
            )
            summary.avg_price_spread = round(
                sum(l.price_spread for l in ladders) / n
            )
            summary.avg_price_spread_percent = round(
                sum(l.price_spread_percent for l in ladders) / n, 2
            )
        comparisons = compare_segments(ladders)
        logger.info(
            "Architecture: %d ladders, %d segment comparisons",
            len(ladders),
            len(comparisons),
        )
        return ArchitectureReport(
            generated_at=generated_at or datetime.now(),
            date=max((s.date for s in latest.values()), default=None),
            ladders=ladders,
            cross_brand_comparison=comparisons,
            summary=summary,
        )
