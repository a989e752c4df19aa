# src/analytics/promos.py

"""Price drops over recent history: peak-to-current and latest-pair."""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime

from src.config.settings import Settings
from src.filters.normalizer import format_price, normalize_fuel
from src.models.price_record import PriceRecord
from src.storage.snapshot_store import SnapshotStore

logger = logging.getLogger("pricelist_intel.promos")

PRICE_DROPS_LIMIT = 50
RECENT_DROPS_LIMIT = 30
HISTORY_POINTS = 10


@dataclass
class PricePoint:
    date: date
    price: float


@dataclass
class PriceDrop:
    id: str
    brand: str
    brand_id: str
    model: str
    trim: str
    engine: str
    fuel: str
    transmission: str
    current_price: float
    current_price_formatted: str
    peak_price: float
    peak_price_formatted: str
    peak_date: date
    drop_amount: float
    drop_percent: float
    days_since_peak: int
    price_history: list[PricePoint]


@dataclass
class RecentDrop:
    id: str
    brand: str
    brand_id: str
    model: str
    trim: str
    engine: str
    current_price: float
    previous_price: float
    drop_amount: float
    drop_percent: float
    date: date
    previous_date: date


@dataclass
class BrandDropSummary:
    brand_id: str
    brand: str
    drop_count: int
    avg_drop_percent: float


@dataclass
class PromosSummary:
    total_price_drops: int = 0
    total_recent_drops: int = 0
    avg_drop_percent: float = 0.0
    max_drop_percent: float = 0.0
    brands_with_drops: int = 0


@dataclass
class PromosReport:
    generated_at: datetime
    date: date | None
    summary: PromosSummary
    price_drops: list[PriceDrop] = field(
        default_factory=lambda: list[PriceDrop]()
    )
    recent_drops: list[RecentDrop] = field(
        default_factory=lambda: list[RecentDrop]()
    )
    brand_summary: list[BrandDropSummary] = field(
        default_factory=lambda: list[BrandDropSummary]()
    )


@dataclass
class _Track:
    record: PriceRecord
    history: list[PricePoint] = field(
        default_factory=lambda: list[PricePoint]()
    )


def _drop_percent(high: float, low: float) -> float:
    return (high - low) / high * 100 if high > 0 else 0.0


class PromoTracker:
    """Builds the promos artifact from each brand's recent snapshots."""

    def __init__(
        self,
        store: SnapshotStore,
        depth: int = Settings.PROMO_HISTORY_DEPTH,
        peak_min_percent: float = Settings.PEAK_DROP_MIN_PERCENT,
        recent_min_percent: float = Settings.RECENT_DROP_MIN_PERCENT,
    ) -> None:
        self.store = store
        self.depth = depth
        self.peak_min_percent = peak_min_percent
        self.recent_min_percent = recent_min_percent

    def _tracks(self, brand_id: str) -> dict[str, _Track]:
        snapshots = self.store.history(brand_id, limit=self.depth)
        if Settings.DIFF_SKIP_FALLBACK:
            snapshots = [s for s in snapshots if not s.is_fallback]
        tracks: dict[str, _Track] = {}
        for snapshot in snapshots:
            for record in snapshot.records:
                track = tracks.setdefault(record.vehicle_key, _Track(record))
                track.record = record
                track.history.append(
                    PricePoint(snapshot.date, record.price_numeric)
                )
        return tracks

    def _peak_drop(
        self, brand_id: str, key: str, track: _Track,
    ) -> PriceDrop | None:
        current = track.history[-1]
        peak = max(track.history, key=lambda p: p.price)
        percent = _drop_percent(peak.price, current.price)
        if current.price >= peak.price or percent < self.peak_min_percent:
            return None
        record = track.record
        return PriceDrop(
            id=f"{brand_id}-{key}",
            brand=record.brand,
            brand_id=brand_id,
            model=record.model,
            trim=record.trim,
            engine=record.engine,
            fuel=normalize_fuel(record.fuel),
            transmission=record.transmission,
            current_price=current.price,
            current_price_formatted=format_price(current.price),
            peak_price=peak.price,
            peak_price_formatted=format_price(peak.price),
            peak_date=peak.date,
            drop_amount=peak.price - current.price,
            drop_percent=round(percent, 2),
            days_since_peak=(current.date - peak.date).days,
            price_history=track.history[-HISTORY_POINTS:],
        )

    def _recent_drop(
        self, brand_id: str, key: str, track: _Track,
    ) -> RecentDrop | None:
        previous, current = track.history[-2], track.history[-1]
        percent = _drop_percent(previous.price, current.price)
        if current.price >= previous.price or percent < self.recent_min_percent:
            return None
        record = track.record
        return RecentDrop(
            id=f"{brand_id}-{key}-recent",
            brand=record.brand,
            brand_id=brand_id,
            model=record.model,
            trim=record.trim,
            engine=record.engine,
            current_price=current.price,
            previous_price=previous.price,
            drop_amount=previous.price - current.price,
            drop_percent=round(percent, 2),
            date=current.date,
            previous_date=previous.date,
        )

    def generate(self, generated_at: datetime | None = None) -> PromosReport:
        drops: list[PriceDrop] = []
        recent: list[RecentDrop] = []
        per_brand: dict[str, list[PriceDrop]] = {}
        newest: date | None = None

        for brand_id in sorted(self.store.brand_ids()):
            tracks = self._tracks(brand_id)
            for key, track in tracks.items():
                if len(track.history) < 2:
                    continue
                last = track.history[-1].date
                newest = last if newest is None else max(newest, last)
                drop = self._peak_drop(brand_id, key, track)
                if drop is not None:
                    drops.append(drop)
                    per_brand.setdefault(brand_id, []).append(drop)
                latest_drop = self._recent_drop(brand_id, key, track)
                if latest_drop is not None:
                    recent.append(latest_drop)
            logger.debug("%s: %d vehicles tracked", brand_id, len(tracks))

        drops.sort(key=lambda d: -d.drop_percent)
        recent.sort(key=lambda d: -d.drop_percent)
        brand_summary = sorted(
            (
                BrandDropSummary(
                    brand_id=brand_id,
                    brand=items[0].brand,
                    drop_count=len(items),
                    avg_drop_percent=round(
                        sum(d.drop_percent for d in items) / len(items), 2
                    ),
                )
                for brand_id, items in per_brand.items()
            ),
            key=lambda b: -b.drop_count,
        )
        summary = PromosSummary(
            total_price_drops=len(drops),
            total_recent_drops=len(recent),
            brands_with_drops=len(per_brand),
        )
        if drops:
            summary.avg_drop_percent = round(
                sum(d.drop_percent for d in drops) / len(drops), 2
            )
            summary.max_drop_percent = max(d.drop_percent for d in drops)
        logger.info(
            "Promos: %d peak drops, %d recent drops",
            len(drops),
            len(recent),
        )
        return PromosReport(
            generated_at=generated_at or datetime.now(),
            date=newest,
            summary=summary,
            price_drops=drops[:PRICE_DROPS_LIMIT],
            recent_drops=recent[:RECENT_DROPS_LIMIT],
            brand_summary=brand_summary,
        )
