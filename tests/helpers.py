# tests/helpers.py

"""Builders shared by the analytics and service tests."""

from datetime import date, datetime

from src.filters.normalizer import format_price
from src.models.price_record import PriceRecord
from src.storage.snapshot_store import InMemorySnapshotStore

FIXED_NOW = datetime(2026, 3, 10, 9, 0, 0)


def make_record(
    model: str = "Golf",
    trim: str = "Life",
    price: float = 1_500_000.0,
    engine: str = "1.5 TSI",
    brand: str = "Volkswagen",
    fuel: str = "Petrol",
    transmission: str = "Automatic",
    **extra: object,
) -> PriceRecord:
    """Create a minimal PriceRecord."""
    return PriceRecord(
        brand=brand,
        model=model,
        trim=trim,
        engine=engine,
        transmission=transmission,
        fuel=fuel,
        price_raw=format_price(price),
        price_numeric=price,
        **extra,  # type: ignore[arg-type]
    )


def store_with(
    days: dict[date, list[PriceRecord]],
    brand_id: str = "volkswagen",
    brand_name: str = "Volkswagen",
    store: InMemorySnapshotStore | None = None,
) -> InMemorySnapshotStore:
    """Write one snapshot per day into an in-memory store."""
    store = store or InMemorySnapshotStore()
    for day in sorted(days):
        store.write(
            brand_id,
            day,
            days[day],
            brand_name,
            collected_at=datetime.combine(day, datetime.min.time()),
        )
    return store
