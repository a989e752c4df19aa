# src/analytics/lifecycle.py

"""Model-year transitions, entry-price drift and stale brands."""

import logging
import re
from dataclasses import dataclass, field
from datetime import date, datetime

from src.config.settings import Settings
from src.filters.normalizer import normalize_fuel
from src.models.price_record import PriceRecord
from src.models.snapshot import Snapshot
from src.storage.snapshot_store import SnapshotStore

logger = logging.getLogger("pricelist_intel.lifecycle")

YEAR_RE = re.compile(r"\b(20\d{2})\b")

TRANSITIONS_LIMIT = 20
ENTRY_DELTAS_LIMIT = 30
STALE_LIMIT = 20


def extract_model_year(record: PriceRecord) -> str | None:
    """Vendor model year, else the first year token in model or trim."""
    if record.model_year:
        match = YEAR_RE.search(record.model_year)
        if match:
            return match.group(1)
    for text in (record.model, record.trim):
        match = YEAR_RE.search(text or "")
        if match:
            return match.group(1)
    return None


def base_model_name(model: str) -> str:
    """Model name without year tokens, whitespace collapsed."""
    return " ".join(YEAR_RE.sub("", model).split())


def _group_by_base_model(
    records: tuple[PriceRecord, ...],
) -> dict[str, list[PriceRecord]]:
    groups: dict[str, list[PriceRecord]] = {}
    for record in records:
        if record.price_numeric > 0:
            groups.setdefault(base_model_name(record.model), []).append(record)
    return groups


def _percent(delta: float, base: float) -> float:
    return round(delta / base * 100, 2) if base > 0 else 0.0


@dataclass
class ModelYearTransition:
    id: str
    brand: str
    brand_id: str
    model: str
    old_year: str
    new_year: str
    old_entry_price: float
    new_entry_price: float
    price_delta: float
    price_delta_percent: float
    transition_date: date
    trim_count: int


@dataclass
class EntryPriceDelta:
    id: str
    brand: str
    brand_id: str
    model: str
    current_entry_price: float
    previous_entry_price: float
    delta: float
    delta_percent: float
    current_date: date
    previous_date: date
    days_between: int


@dataclass
class StaleModel:
    id: str
    brand: str
    brand_id: str
    model: str
    last_update_date: date
    days_since_update: int
    current_entry_price: float
    trim_count: int


@dataclass
class ModelInfo:
    brand: str
    brand_id: str
    model: str
    entry_price: float
    top_price: float
    trim_count: int
    fuel_types: list[str]
    last_updated: date


@dataclass
class LifecycleSummary:
    total_models: int = 0
    total_transitions: int = 0
    total_stale_models: int = 0
    avg_entry_price_delta: float = 0.0


@dataclass
class LifecycleReport:
    generated_at: datetime
    date: date | None
    summary: LifecycleSummary
    model_year_transitions: list[ModelYearTransition] = field(
        default_factory=lambda: list[ModelYearTransition]()
    )
    entry_price_deltas: list[EntryPriceDelta] = field(
        default_factory=lambda: list[EntryPriceDelta]()
    )
    stale_models: list[StaleModel] = field(
        default_factory=lambda: list[StaleModel]()
    )
    all_models: list[ModelInfo] = field(
        default_factory=lambda: list[ModelInfo]()
    )


def detect_transition(
    brand_id: str, brand: str, model: str, records: list[PriceRecord],
    snapshot_date: date,
) -> ModelYearTransition | None:
    """Oldest → newest model year inside one snapshot, if two coexist."""
    by_year: dict[str, list[float]] = {}
    for record in records:
        year = extract_model_year(record)
        if year:
            by_year.setdefault(year, []).append(record.price_numeric)
    if len(by_year) < 2:
        return None
    old_year, new_year = min(by_year), max(by_year)
    old_entry = min(by_year[old_year])
    new_entry = min(by_year[new_year])
    return ModelYearTransition(
        id=f"{brand_id}-{model}-{old_year}-{new_year}",
        brand=brand,
        brand_id=brand_id,
        model=model,
        old_year=old_year,
        new_year=new_year,
        old_entry_price=old_entry,
        new_entry_price=new_entry,
        price_delta=new_entry - old_entry,
        price_delta_percent=_percent(new_entry - old_entry, old_entry),
        transition_date=snapshot_date,
        trim_count=len(by_year[new_year]),
    )


class LifecycleTracker:
    """Builds the lifecycle artifact from the store."""

    def __init__(
        self,
        store: SnapshotStore,
        stale_after_days: int = Settings.STALE_AFTER_DAYS,
        drift_min_days: int = Settings.ENTRY_DRIFT_MIN_DAYS,
        drift_min_percent: float = Settings.ENTRY_DRIFT_MIN_PERCENT,
    ) -> None:
        self.store = store
        self.stale_after_days = stale_after_days
        self.drift_min_days = drift_min_days
        self.drift_min_percent = drift_min_percent

    def _drift_baseline(self, brand_id: str, current: Snapshot) -> Snapshot | None:
        """Newest readable snapshot at least ``drift_min_days`` older."""
        for candidate in self.store.list_dates(brand_id):
            if (current.date - candidate).days < self.drift_min_days:
                continue
            snapshot = self.store.read(brand_id, candidate)
            if snapshot is not None:
                return snapshot
        return None

    def entry_drift(
        self,
        brand_id: str,
        current: Snapshot,
        groups: dict[str, list[PriceRecord]],
    ) -> list[EntryPriceDelta]:
        previous = self._drift_baseline(brand_id, current)
        if previous is None:
            return []
        previous_entry: dict[str, float] = {}
        for model, records in _group_by_base_model(previous.records).items():
            previous_entry[model] = min(r.price_numeric for r in records)

        days = (current.date - previous.date).days
        deltas = []
        for model, records in groups.items():
            before = previous_entry.get(model)
            now = min(r.price_numeric for r in records)
            if before is None or now == before:
                continue
            percent = _percent(now - before, before)
            if abs(percent) < self.drift_min_percent:
                continue
            deltas.append(EntryPriceDelta(
                id=f"{brand_id}-{model}-entry",
                brand=current.brand,
                brand_id=brand_id,
                model=model,
                current_entry_price=now,
                previous_entry_price=before,
                delta=now - before,
                delta_percent=percent,
                current_date=current.date,
                previous_date=previous.date,
                days_between=days,
            ))
        return deltas

    def generate(
        self,
        generated_at: datetime | None = None,
        today: date | None = None,
    ) -> LifecycleReport:
        today = today or date.today()
        latest = self.store.latest_snapshots()
        transitions: list[ModelYearTransition] = []
        deltas: list[EntryPriceDelta] = []
        stale: list[StaleModel] = []
        models: list[ModelInfo] = []

        for brand_id, snapshot in latest.items():
            groups = _group_by_base_model(snapshot.records)
            for model, records in groups.items():
                prices = sorted(r.price_numeric for r in records)
                models.append(ModelInfo(
                    brand=snapshot.brand,
                    brand_id=brand_id,
                    model=model,
                    entry_price=prices[0],
                    top_price=prices[-1],
                    trim_count=len(records),
                    fuel_types=list(dict.fromkeys(
                        normalize_fuel(r.fuel) for r in records
                    )),
                    last_updated=snapshot.date,
                ))
                transition = detect_transition(
                    brand_id, snapshot.brand, model, records, snapshot.date
                )
                if transition is not None:
                    transitions.append(transition)

            deltas.extend(self.entry_drift(brand_id, snapshot, groups))

            age = (today - snapshot.date).days
            if age >= self.stale_after_days:
                logger.warning(
                    "%s is stale: latest snapshot %s (%d days)",
                    brand_id,
                    snapshot.date.isoformat(),
                    age,
                )
                for model, records in groups.items():
                    stale.append(StaleModel(
                        id=f"{brand_id}-{model}-stale",
                        brand=snapshot.brand,
                        brand_id=brand_id,
                        model=model,
                        last_update_date=snapshot.date,
                        days_since_update=age,
                        current_entry_price=min(
                            r.price_numeric for r in records
                        ),
                        trim_count=len(records),
                    ))

        transitions.sort(key=lambda t: -t.price_delta_percent)
        deltas.sort(key=lambda d: -abs(d.delta_percent))
        stale.sort(key=lambda s: -s.days_since_update)
        models.sort(key=lambda m: (m.brand, m.model))

        summary = LifecycleSummary(
            total_models=len(models),
            total_transitions=len(transitions),
            total_stale_models=len(stale),
            avg_entry_price_delta=(
                round(sum(d.delta_percent for d in deltas) / len(deltas), 2)
                if deltas
                else 0.0
            ),
        )
        logger.info(
            "Lifecycle: %d models, %d transitions, %d stale",
            summary.total_models,
            summary.total_transitions,
            summary.total_stale_models,
        )
        return LifecycleReport(
            generated_at=generated_at or datetime.now(),
            date=max((s.date for s in latest.values()), default=None),
            summary=summary,
            model_year_transitions=transitions[:TRANSITIONS_LIMIT],
            entry_price_deltas=deltas[:ENTRY_DELTAS_LIMIT],
            stale_models=stale[:STALE_LIMIT],
            all_models=models,
        )
