# src/analytics/scoring.py

"""Segment statistics, outlier detection and deal scores.

Vehicles are grouped by vehicle class × fuel × price band over the
latest snapshot of every brand. Within a segment:

* z-score against the population mean and standard deviation,
* continuity-corrected percentile, neutral (50) below three members,
* outlier flag only for segments of at least ``MIN_SEGMENT_SIZE``,
* deal score from the percentile, or from the z-score in small segments.

With population SD a single point of an ``n``-member segment cannot sit
more than ``sqrt(n - 1)`` deviations from the mean, so a lone extreme
price in a five-member segment would never clear 2.0. The outlier test
also measures each price against the rest of its segment and flags when
either distance exceeds the threshold. Against an all-equal remainder
only a gap of ``OUTLIER_MIN_RELATIVE_GAP`` or more counts.
"""

import logging
import math
from bisect import bisect_left
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date, datetime

from src.analytics.segments import classify_segment, price_band_label, vehicle_class
from src.config.settings import Settings
from src.models.price_record import PriceRecord
from src.storage.snapshot_store import SnapshotStore

logger = logging.getLogger("pricelist_intel.scoring")

CHEAP = "cheap"
EXPENSIVE = "expensive"


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def _pstdev(values: Sequence[float], mean: float) -> float:
    if not values:
        return 0.0
    return math.sqrt(sum((v - mean) ** 2 for v in values) / len(values))


@dataclass
class SegmentStats:
    """Mean, population SD and sorted prices of one segment."""

    mean: float
    std_dev: float
    sorted_prices: list[float]

    @property
    def size(self) -> int:
        return len(self.sorted_prices)

    @classmethod
    def from_prices(cls, prices: Sequence[float]) -> "SegmentStats":
        mean = _mean(prices)
        return cls(
            mean=mean,
            std_dev=_pstdev(prices, mean),
            sorted_prices=sorted(prices),
        )

    def z_score(self, price: float) -> float:
        if self.std_dev == 0:
            return 0.0
        return (price - self.mean) / self.std_dev

    def leave_one_out_z(
        self,
        price: float,
        min_relative_gap: float = Settings.OUTLIER_MIN_RELATIVE_GAP,
    ) -> float:
        """z of ``price`` against the segment with one copy of it removed.

        Against an all-equal remainder there is no spread to measure, so
        a price at least ``min_relative_gap`` away from it is infinitely
        far and anything closer counts as level with it.
        """
        if self.size < 2:
            return 0.0
        rest = list(self.sorted_prices)
        rest.remove(price)
        mean = _mean(rest)
        std_dev = _pstdev(rest, mean)
        if std_dev == 0:
            if mean == 0 or abs(price - mean) / mean < min_relative_gap:
                return 0.0
            return math.inf if price > mean else -math.inf
        return (price - mean) / std_dev

    def percentile(
        self, price: float, min_size: int = Settings.MIN_PERCENTILE_SEGMENT,
    ) -> int:
        """``round((rank + 0.5) / n * 100)``; 50 in tiny segments."""
        if self.size < min_size:
            return 50
        index = bisect_left(self.sorted_prices, price)
        if index >= self.size:
            return 100
        return round((index + 0.5) / self.size * 100)


@dataclass
class PriceScore:
    """Scores of one price inside its segment."""

    price: float
    z_score: float
    percentile: int
    deal_score: int
    is_outlier: bool
    outlier_type: str | None = None


def _clamp(value: float, low: int = 0, high: int = 100) -> int:
    return max(low, min(high, round(value)))


def score_price(
    price: float,
    stats: SegmentStats,
    threshold: float = Settings.OUTLIER_Z_THRESHOLD,
    min_segment_size: int = Settings.MIN_SEGMENT_SIZE,
) -> PriceScore:
    z = stats.z_score(price)
    percentile = stats.percentile(price)
    small = stats.size < min_segment_size

    outlier_type = None
    if not small:
        loo = stats.leave_one_out_z(price)
        if max(abs(z), abs(loo)) > threshold:
            direction = z if z != 0 else loo
            outlier_type = CHEAP if direction < 0 else EXPENSIVE

    if small:
        deal = _clamp(50 - 25 * z)
    else:
        deal = _clamp(100 - percentile)

    return PriceScore(
        price=price,
        z_score=z,
        percentile=percentile,
        deal_score=deal,
        is_outlier=outlier_type is not None,
        outlier_type=outlier_type,
    )


def score_prices(prices: Sequence[float]) -> list[PriceScore]:
    """Score every price of one segment, in input order."""
    stats = SegmentStats.from_prices(prices)
    return [score_price(p, stats) for p in prices]


def segment_of(record: PriceRecord) -> tuple[str, str, str]:
    """(vehicle class, fuel, price band) scoring key of a record."""
    segment = classify_segment(record.brand, record.model)
    return (
        vehicle_class(segment),
        record.fuel or "unknown",
        price_band_label(record.price_numeric),
    )


# ── Insights artifact ────────────────────────────────────


@dataclass
class ScoredVehicle:
    id: str
    brand: str
    brand_id: str
    model: str
    trim: str
    engine: str
    fuel: str
    transmission: str
    vehicle_class: str
    price_band: str
    price: float
    price_formatted: str
    deal_score: int
    z_score: float
    percentile: int
    segment_avg: float
    segment_size: int
    is_outlier: bool
    outlier_type: str | None = None


@dataclass
class InsightsReport:
    generated_at: datetime
    date: date | None
    top_deals: list[ScoredVehicle] = field(
        default_factory=lambda: list[ScoredVehicle]()
    )
    cheap_outliers: list[ScoredVehicle] = field(
        default_factory=lambda: list[ScoredVehicle]()
    )
    expensive_outliers: list[ScoredVehicle] = field(
        default_factory=lambda: list[ScoredVehicle]()
    )
    all_vehicles: list[ScoredVehicle] = field(
        default_factory=lambda: list[ScoredVehicle]()
    )


class ScoringEngine:
    """Scores the latest records of every brand."""

    def __init__(self, store: SnapshotStore) -> None:
        self.store = store

    def generate(self, generated_at: datetime | None = None) -> InsightsReport:
        latest = self.store.latest_snapshots()
        rows: list[tuple[str, PriceRecord, tuple[str, str, str]]] = []
        segments: dict[tuple[str, str, str], list[float]] = {}
        for brand_id, snapshot in latest.items():
            for record in snapshot.records:
                if record.price_numeric <= 0:
                    continue
                key = segment_of(record)
                rows.append((brand_id, record, key))
                segments.setdefault(key, []).append(record.price_numeric)

        stats = {k: SegmentStats.from_prices(v) for k, v in segments.items()}
        vehicles: list[ScoredVehicle] = []
        for brand_id, record, key in rows:
            segment = stats[key]
            score = score_price(record.price_numeric, segment)
            vehicles.append(ScoredVehicle(
                id=record.vehicle_id(),
                brand=record.brand,
                brand_id=brand_id,
                model=record.model,
                trim=record.trim,
                engine=record.engine,
                fuel=record.fuel,
                transmission=record.transmission,
                vehicle_class=key[0],
                price_band=key[2],
                price=record.price_numeric,
                price_formatted=record.price_raw,
                deal_score=score.deal_score,
                z_score=round(score.z_score, 2),
                percentile=score.percentile,
                segment_avg=round(segment.mean),
                segment_size=segment.size,
                is_outlier=score.is_outlier,
                outlier_type=score.outlier_type,
            ))

        top_deals = sorted(vehicles, key=lambda v: -v.deal_score)
        cheap = sorted(
            (v for v in vehicles if v.outlier_type == CHEAP),
            key=lambda v: v.z_score,
        )
        expensive = sorted(
            (v for v in vehicles if v.outlier_type == EXPENSIVE),
            key=lambda v: -v.z_score,
        )
        logger.info(
            "Scored %d vehicles in %d segments (%d outliers)",
            len(vehicles),
            len(stats),
            len(cheap) + len(expensive),
        )
        return InsightsReport(
            generated_at=generated_at or datetime.now(),
            date=max((s.date for s in latest.values()), default=None),
            top_deals=top_deals[: Settings.TOP_DEALS_LIMIT],
            cheap_outliers=cheap[: Settings.OUTLIER_LIST_LIMIT],
            expensive_outliers=expensive[: Settings.OUTLIER_LIST_LIMIT],
            all_vehicles=vehicles,
        )
