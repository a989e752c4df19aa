# src/analytics/gaps.py

"""Segment gap map: which segment/fuel/transmission/price cells are empty.

The opportunity score is a hand-tuned ranking heuristic, not an
estimate. Its weights and priors come from :class:`OpportunityConfig`,
which defaults to the values in ``Settings``.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime

from src.analytics.segments import OTHER_SEGMENT, PRICE_BANDS, PriceBand, classify_segment, price_band
from src.config.settings import Settings
from src.filters.normalizer import (
    AUTOMATIC,
    DIESEL,
    ELECTRIC,
    HYBRID,
    MANUAL,
    MILD_HYBRID,
    PETROL,
    PLUG_IN_HYBRID,
    normalize_fuel,
    normalize_transmission,
)
from src.storage.snapshot_store import SnapshotStore

logger = logging.getLogger("pricelist_intel.gaps")

PHEV = "PHEV"

GRID_FUELS: tuple[str, ...] = (PETROL, DIESEL, HYBRID, PHEV, ELECTRIC)
GRID_TRANSMISSIONS: tuple[str, ...] = (AUTOMATIC, MANUAL)

# The grid folds the hybrid variants into two columns
_GRID_FUEL_ALIASES: dict[str, str] = {
    PLUG_IN_HYBRID: PHEV,
    MILD_HYBRID: HYBRID,
}


def grid_fuel(fuel: str) -> str:
    canonical = normalize_fuel(fuel)
    return _GRID_FUEL_ALIASES.get(canonical, canonical)


@dataclass
class OpportunityConfig:
    """Weights and popularity priors of the opportunity score."""

    weights: dict[str, float] = field(
        default_factory=lambda: dict(Settings.OPPORTUNITY_WEIGHTS)
    )
    fuel_priors: dict[str, float] = field(
        default_factory=lambda: dict(Settings.FUEL_PRIORS)
    )
    default_fuel_prior: float = Settings.DEFAULT_FUEL_PRIOR
    transmission_priors: dict[str, float] = field(
        default_factory=lambda: dict(Settings.TRANSMISSION_PRIORS)
    )
    default_transmission_prior: float = 0.0
    price_band_priors: dict[str, float] = field(
        default_factory=lambda: dict(Settings.PRICE_BAND_PRIORS)
    )
    default_price_band_prior: float = Settings.DEFAULT_PRICE_BAND_PRIOR
    max_vehicles_for_gap: int = Settings.GAP_MAX_VEHICLES

    def score(
        self,
        segment_share: float,
        fuel: str,
        transmission: str,
        band_label: str,
    ) -> float:
        """Weighted blend on a 0-100 scale, rounded to 2 decimals."""
        blend = (
            segment_share * self.weights.get("segment", 0.0)
            + self.fuel_priors.get(fuel, self.default_fuel_prior)
            * self.weights.get("fuel", 0.0)
            + self.transmission_priors.get(
                transmission, self.default_transmission_prior
            )
            * self.weights.get("transmission", 0.0)
            + self.price_band_priors.get(
                band_label, self.default_price_band_prior
            )
            * self.weights.get("price_band", 0.0)
        )
        return round(blend * 100, 2)


@dataclass
class GapCell:
    segment: str
    fuel: str
    transmission: str
    price_range: str
    price_range_min: float
    price_range_max: float
    vehicle_count: int
    brands: list[str]
    avg_price: float
    has_gap: bool
    opportunity_score: float


@dataclass
class SegmentSummary:
    segment: str
    total_vehicles: int
    avg_price: float
    min_price: float
    max_price: float
    brands: list[str]
    fuel_types: list[str]


@dataclass
class GapsSummary:
    total_segments: int
    total_gaps: int
    total_opportunities: int
    avg_opportunity_score: float


@dataclass
class GapsReport:
    generated_at: datetime
    date: date | None
    summary: GapsSummary
    segments: list[SegmentSummary]
    heatmap_data: list[GapCell]
    top_opportunities: list[GapCell]
    price_ranges: list[PriceBand]


@dataclass
class _Vehicle:
    brand: str
    segment: str
    fuel: str
    transmission: str
    price: float
    band: PriceBand


def _unique(values: list[str]) -> list[str]:
    return list(dict.fromkeys(values))


class GapAnalyzer:
    """Builds the segment × fuel × transmission × price-band grid."""

    def __init__(
        self,
        store: SnapshotStore,
        config: OpportunityConfig | None = None,
    ) -> None:
        self.store = store
        self.config = config or OpportunityConfig()

    def _vehicles(self) -> tuple[list[_Vehicle], date | None]:
        latest = self.store.latest_snapshots()
        vehicles: list[_Vehicle] = []
        for snapshot in latest.values():
            for record in snapshot.records:
                band = price_band(record.price_numeric)
                if band is None:
                    continue
                vehicles.append(_Vehicle(
                    brand=record.brand or snapshot.brand,
                    segment=classify_segment(
                        record.brand or snapshot.brand, record.model
                    ),
                    fuel=grid_fuel(record.fuel),
                    transmission=normalize_transmission(record.transmission),
                    price=record.price_numeric,
                    band=band,
                ))
        newest = max((s.date for s in latest.values()), default=None)
        return vehicles, newest

    @staticmethod
    def _segment_summaries(
        by_segment: dict[str, list[_Vehicle]],
    ) -> list[SegmentSummary]:
        summaries = []
        for segment, members in by_segment.items():
            prices = [v.price for v in members]
            summaries.append(SegmentSummary(
                segment=segment,
                total_vehicles=len(members),
                avg_price=round(sum(prices) / len(prices)),
                min_price=min(prices),
                max_price=max(prices),
                brands=_unique([v.brand for v in members]),
                fuel_types=_unique([v.fuel for v in members]),
            ))
        summaries.sort(key=lambda s: -s.total_vehicles)
        return summaries

    def generate(self, generated_at: datetime | None = None) -> GapsReport:
        vehicles, newest = self._vehicles()
        by_segment: dict[str, list[_Vehicle]] = {}
        for vehicle in vehicles:
            by_segment.setdefault(vehicle.segment, []).append(vehicle)

        cells: dict[tuple[str, str, str, str], list[_Vehicle]] = {}
        for vehicle in vehicles:
            key = (
                vehicle.segment,
                vehicle.fuel,
                vehicle.transmission,
                vehicle.band.label,
            )
            cells.setdefault(key, []).append(vehicle)

        grid_segments = [s for s in by_segment if s != OTHER_SEGMENT]
        total = len(vehicles)
        heatmap: list[GapCell] = []
        for segment in grid_segments:
            share = len(by_segment[segment]) / total if total else 0.0
            for fuel in GRID_FUELS:
                for transmission in GRID_TRANSMISSIONS:
                    for band in PRICE_BANDS:
                        members = cells.get(
                            (segment, fuel, transmission, band.label), []
                        )
                        count = len(members)
                        has_gap = count < self.config.max_vehicles_for_gap
                        heatmap.append(GapCell(
                            segment=segment,
                            fuel=fuel,
                            transmission=transmission,
                            price_range=band.label,
                            price_range_min=band.min_price,
                            price_range_max=band.max_price,
                            vehicle_count=count,
                            brands=_unique([v.brand for v in members]),
                            avg_price=(
                                round(sum(v.price for v in members) / count)
                                if count
                                else 0
                            ),
                            has_gap=has_gap,
                            opportunity_score=(
                                self.config.score(
                                    share, fuel, transmission, band.label
                                )
                                if has_gap
                                else 0.0
                            ),
                        ))

        scored = [c for c in heatmap if c.opportunity_score > 0]
        top = sorted(
            (c for c in scored if c.has_gap),
            key=lambda c: -c.opportunity_score,
        )[: Settings.TOP_OPPORTUNITIES_LIMIT]
        avg_score = (
            round(sum(c.opportunity_score for c in scored) / len(scored), 2)
            if scored
            else 0.0
        )
        summary = GapsSummary(
            total_segments=len(grid_segments),
            total_gaps=sum(1 for c in heatmap if c.has_gap),
            total_opportunities=len(top),
            avg_opportunity_score=avg_score,
        )
        logger.info(
            "Gaps: %d segments, %d gap cells, %d opportunities",
            summary.total_segments,
            summary.total_gaps,
            summary.total_opportunities,
        )
        return GapsReport(
            generated_at=generated_at or datetime.now(),
            date=newest,
            summary=summary,
            segments=self._segment_summaries(by_segment),
            heatmap_data=heatmap,
            top_opportunities=top,
            price_ranges=list(PRICE_BANDS),
        )
