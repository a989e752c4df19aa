# src/analytics/events.py

"""Diff/event engine over a brand's full snapshot history.

Every chronologically consecutive pair of snapshots is compared on the
record identity key, and the events of all pairs are unioned into one
log. Volatility rollups and "big moves" are computed from that log.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum

from src.config.settings import Settings
from src.models.price_record import PriceRecord
from src.models.snapshot import Snapshot
from src.storage.snapshot_store import SnapshotStore

logger = logging.getLogger("pricelist_intel.events")


class EventType(str, Enum):
    NEW = "new"
    REMOVED = "removed"
    PRICE_INCREASE = "price_increase"
    PRICE_DECREASE = "price_decrease"


@dataclass
class PriceEvent:
    """One change between two adjacent snapshots of a brand."""

    id: str
    type: EventType
    vehicle_id: str
    vehicle_key: str
    brand: str
    brand_id: str
    model: str
    trim: str
    engine: str
    fuel: str
    transmission: str
    date: date
    previous_date: date
    old_price: float | None = None
    new_price: float | None = None
    old_price_formatted: str | None = None
    new_price_formatted: str | None = None
    price_change: float | None = None
    price_change_percent: float | None = None

    @property
    def is_price_change(self) -> bool:
        return self.type in (EventType.PRICE_INCREASE, EventType.PRICE_DECREASE)


def _event(
    kind: EventType,
    record: PriceRecord,
    brand_id: str,
    previous: Snapshot,
    current: Snapshot,
) -> PriceEvent:
    key = record.vehicle_key
    return PriceEvent(
        id=f"{brand_id}-{key}-{kind.value}-{current.date.isoformat()}",
        type=kind,
        vehicle_id=record.vehicle_id(),
        vehicle_key=key,
        brand=record.brand or current.brand,
        brand_id=brand_id,
        model=record.model,
        trim=record.trim,
        engine=record.engine,
        fuel=record.fuel,
        transmission=record.transmission,
        date=current.date,
        previous_date=previous.date,
    )


def diff_snapshots(previous: Snapshot, current: Snapshot) -> list[PriceEvent]:
    """Events turning ``previous`` into ``current``.

    Order: new records (current order), removed records (previous
    order), then price changes (current order). Percent change is
    ``delta / old * 100`` rounded to 2 decimals.
    """
    brand_id = current.brand_id or previous.brand_id
    before = {r.identity_key: r for r in previous.records}
    after = {r.identity_key: r for r in current.records}
    events: list[PriceEvent] = []

    for key, record in after.items():
        if key not in before:
            event = _event(EventType.NEW, record, brand_id, previous, current)
            event.new_price = record.price_numeric
            event.new_price_formatted = record.price_raw
            events.append(event)

    for key, record in before.items():
        if key not in after:
            event = _event(EventType.REMOVED, record, brand_id, previous, current)
            event.old_price = record.price_numeric
            event.old_price_formatted = record.price_raw
            events.append(event)

    for key, record in after.items():
        old = before.get(key)
        if old is None or old.price_numeric == record.price_numeric:
            continue
        change = record.price_numeric - old.price_numeric
        percent = change / old.price_numeric * 100 if old.price_numeric > 0 else 0.0
        kind = EventType.PRICE_INCREASE if change > 0 else EventType.PRICE_DECREASE
        event = _event(kind, record, brand_id, previous, current)
        event.old_price = old.price_numeric
        event.new_price = record.price_numeric
        event.old_price_formatted = old.price_raw
        event.new_price_formatted = record.price_raw
        event.price_change = change
        event.price_change_percent = round(percent, 2)
        events.append(event)

    return events


def consecutive_pairs(
    snapshots: Sequence[Snapshot],
    skip_fallback: bool = Settings.DIFF_SKIP_FALLBACK,
) -> list[tuple[Snapshot, Snapshot]]:
    """Chronologically adjacent pairs, optionally ignoring fallback copies.

    With ``skip_fallback`` a real collection is compared with the last
    real collection before it, so copied-forward days produce neither
    zero-change noise nor a masked change on the following day.
    """
    ordered = sorted(snapshots, key=lambda s: s.date)
    if skip_fallback:
        ordered = [s for s in ordered if not s.is_fallback]
    return list(zip(ordered, ordered[1:]))


# ── Rollups ──────────────────────────────────────────────


@dataclass
class VolatilityMetric:
    id: str
    name: str
    change_count: int
    avg_change: float
    avg_change_percent: float
    increase_count: int
    decrease_count: int


@dataclass
class _Tally:
    name: str
    changes: int = 0
    total_abs_change: float = 0.0
    total_abs_percent: float = 0.0
    increases: int = 0
    decreases: int = 0

    def add(self, event: PriceEvent) -> None:
        self.changes += 1
        self.total_abs_change += abs(event.price_change or 0.0)
        self.total_abs_percent += abs(event.price_change_percent or 0.0)
        if event.type is EventType.PRICE_INCREASE:
            self.increases += 1
        else:
            self.decreases += 1

    def metric(self, metric_id: str) -> VolatilityMetric:
        return VolatilityMetric(
            id=metric_id,
            name=self.name,
            change_count=self.changes,
            avg_change=round(self.total_abs_change / self.changes),
            avg_change_percent=round(self.total_abs_percent / self.changes, 2),
            increase_count=self.increases,
            decrease_count=self.decreases,
        )


def volatility_rollups(
    events: Sequence[PriceEvent],
    brand_names: dict[str, str] | None = None,
) -> tuple[list[VolatilityMetric], list[VolatilityMetric]]:
    """Per-brand and per-model change statistics, busiest first."""
    names = brand_names or {}
    by_brand: dict[str, _Tally] = {}
    by_model: dict[str, _Tally] = {}
    for event in events:
        if not event.is_price_change:
            continue
        by_brand.setdefault(
            event.brand_id, _Tally(names.get(event.brand_id, event.brand))
        ).add(event)
        by_model.setdefault(
            f"{event.brand_id}-{event.model}",
            _Tally(f"{event.brand} {event.model}"),
        ).add(event)

    brand_metrics = [t.metric(k) for k, t in by_brand.items()]
    model_metrics = [t.metric(k) for k, t in by_model.items()]
    brand_metrics.sort(key=lambda m: (-m.change_count, m.id))
    model_metrics.sort(key=lambda m: (-m.change_count, m.id))
    return brand_metrics, model_metrics


def big_moves(
    events: Sequence[PriceEvent], limit: int = Settings.BIG_MOVES_LIMIT,
) -> tuple[list[PriceEvent], list[PriceEvent]]:
    """Largest increases and decreases ranked by percent, not amount."""
    changes = [e for e in events if e.price_change_percent is not None]
    increases = sorted(
        (e for e in changes if e.type is EventType.PRICE_INCREASE),
        key=lambda e: -(e.price_change_percent or 0.0),
    )
    decreases = sorted(
        (e for e in changes if e.type is EventType.PRICE_DECREASE),
        key=lambda e: e.price_change_percent or 0.0,
    )
    return increases[:limit], decreases[:limit]


@dataclass
class EventsSummary:
    total_events: int = 0
    new_vehicles: int = 0
    removed_vehicles: int = 0
    price_increases: int = 0
    price_decreases: int = 0
    avg_price_change: float = 0.0
    avg_price_change_percent: float = 0.0

    @classmethod
    def from_events(cls, events: Sequence[PriceEvent]) -> "EventsSummary":
        changes = [e for e in events if e.is_price_change]
        summary = cls(
            total_events=len(events),
            new_vehicles=sum(1 for e in events if e.type is EventType.NEW),
            removed_vehicles=sum(
                1 for e in events if e.type is EventType.REMOVED
            ),
            price_increases=sum(
                1 for e in changes if e.type is EventType.PRICE_INCREASE
            ),
            price_decreases=sum(
                1 for e in changes if e.type is EventType.PRICE_DECREASE
            ),
        )
        if changes:
            summary.avg_price_change = round(
                sum(e.price_change or 0.0 for e in changes) / len(changes)
            )
            summary.avg_price_change_percent = round(
                sum(e.price_change_percent or 0.0 for e in changes)
                / len(changes),
                2,
            )
        return summary


@dataclass
class Volatility:
    by_brand: list[VolatilityMetric] = field(
        default_factory=lambda: list[VolatilityMetric]()
    )
    by_model: list[VolatilityMetric] = field(
        default_factory=lambda: list[VolatilityMetric]()
    )


@dataclass
class BigMoves:
    top_increases: list[PriceEvent] = field(
        default_factory=lambda: list[PriceEvent]()
    )
    top_decreases: list[PriceEvent] = field(
        default_factory=lambda: list[PriceEvent]()
    )


@dataclass
class EventsReport:
    generated_at: datetime
    date: date | None
    previous_date: date | None
    summary: EventsSummary
    events: list[PriceEvent]
    volatility: Volatility
    big_moves: BigMoves


class EventEngine:
    """Builds the events artifact from a snapshot store."""

    def __init__(
        self,
        store: SnapshotStore,
        skip_fallback: bool = Settings.DIFF_SKIP_FALLBACK,
    ) -> None:
        self.store = store
        self.skip_fallback = skip_fallback

    def brand_events(self, brand_id: str) -> list[PriceEvent]:
        """Union of the events of every adjacent pair for one brand."""
        pairs = consecutive_pairs(
            self.store.history(brand_id), self.skip_fallback
        )
        events: list[PriceEvent] = []
        for previous, current in pairs:
            events.extend(diff_snapshots(previous, current))
        logger.debug(
            "%s: %d pairs, %d events", brand_id, len(pairs), len(events)
        )
        return events

    def generate(self, generated_at: datetime | None = None) -> EventsReport:
        index = self.store.load_index()
        brand_names = {b: e.name for b, e in index.brands.items()}
        events: list[PriceEvent] = []
        for brand_id in sorted(self.store.brand_ids()):
            events.extend(self.brand_events(brand_id))

        latest = max(events, key=lambda e: e.date, default=None)
        by_brand, by_model = volatility_rollups(events, brand_names)
        top_increases, top_decreases = big_moves(events)
        logger.info(
            "Events: %d across %d brands", len(events), len(brand_names)
        )
        return EventsReport(
            generated_at=generated_at or datetime.now(),
            date=latest.date if latest else None,
            previous_date=latest.previous_date if latest else None,
            summary=EventsSummary.from_events(events),
            events=events,
            volatility=Volatility(
                by_brand=by_brand,
                by_model=by_model[: Settings.VOLATILITY_MODEL_LIMIT],
            ),
            big_moves=BigMoves(
                top_increases=top_increases, top_decreases=top_decreases
            ),
        )
