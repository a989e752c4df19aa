# src/services/health_checker.py

"""Health of the stored data, plus vendor connectivity probes."""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from datetime import date, datetime

from src.adapters.base_adapter import BaseAdapter
from src.adapters.registry import AdapterRegistry
from src.config.settings import Settings
from src.storage.snapshot_store import SnapshotStore

logger = logging.getLogger("pricelist_intel.health")

DATA_HEALTH_PATH = "data-health.json"


@dataclass
class BrandHealth:
    """Health of one brand's latest snapshot."""

    id: str
    name: str
    status: str  # "ok", "warning", "error"
    vehicle_count: int
    latest_date: date | None
    is_fallback: bool = False
    issues: list[str] = field(default_factory=lambda: list[str]())

    def warn(self, issue: str) -> None:
        self.issues.append(issue)
        if self.status == "ok":
            self.status = "warning"

    def fail(self, issue: str) -> None:
        self.issues.append(issue)
        self.status = "error"


@dataclass
class HealthSummary:
    total_brands: int = 0
    total_vehicles: int = 0
    last_update: datetime | None = None
    data_date: date | None = None


@dataclass
class DataHealthReport:
    timestamp: datetime
    status: str  # "healthy", "warning", "error"
    summary: HealthSummary
    brands: list[BrandHealth] = field(
        default_factory=lambda: list[BrandHealth]()
    )
    issues: list[str] = field(default_factory=lambda: list[str]())
    warnings: list[str] = field(default_factory=lambda: list[str]())


class DataHealthChecker:
    """Checks every indexed brand's latest snapshot."""

    def __init__(
        self,
        store: SnapshotStore,
        max_age_days: int = Settings.HEALTH_MAX_AGE_DAYS,
    ) -> None:
        self.store = store
        self.max_age_days = max_age_days

    def check_brand(self, brand_id: str, name: str, today: date) -> BrandHealth:
        dates = self.store.list_dates(brand_id)
        health = BrandHealth(
            id=brand_id,
            name=name,
            status="ok",
            vehicle_count=0,
            latest_date=dates[0] if dates else None,
        )
        if not dates:
            health.fail("No snapshots stored")
            return health

        snapshot = self.store.read(brand_id, dates[0])
        if snapshot is None:
            health.fail(f"Latest snapshot {dates[0].isoformat()} unreadable")
            return health

        health.vehicle_count = snapshot.row_count
        health.is_fallback = snapshot.is_fallback
        if snapshot.row_count == 0:
            health.warn("No vehicles in latest snapshot")
        if snapshot.is_fallback:
            source = snapshot.original_date or snapshot.date
            health.warn(f"Serving fallback data from {source.isoformat()}")

        prices = [r.price_numeric for r in snapshot.records if r.price_numeric > 0]
        if prices and min(prices) < Settings.MIN_VALID_PRICE:
            health.warn(f"Suspiciously low price: {min(prices):.0f}")
        if prices and max(prices) > Settings.MAX_VALID_PRICE:
            health.warn(f"Suspiciously high price: {max(prices):.0f}")
        missing = sum(
            1 for r in snapshot.records if not r.model or r.price_numeric <= 0
        )
        if missing:
            health.warn(f"{missing} rows with missing data")

        age = (today - snapshot.date).days
        if age > self.max_age_days:
            health.warn(f"Latest snapshot is {age} days old")
        return health

    def check(self, today: date | None = None) -> DataHealthReport:
        today = today or date.today()
        index = self.store.load_index()
        report = DataHealthReport(
            timestamp=datetime.now(),
            status="healthy",
            summary=HealthSummary(last_update=index.last_updated),
        )
        brand_ids = self.store.brand_ids()
        if not brand_ids:
            report.status = "error"
            report.issues.append("No brands found in index")
            return report

        for brand_id in brand_ids:
            entry = index.brands.get(brand_id)
            health = self.check_brand(
                brand_id, entry.name if entry else brand_id, today
            )
            report.brands.append(health)
            report.summary.total_vehicles += health.vehicle_count
            if health.latest_date and (
                report.summary.data_date is None
                or health.latest_date > report.summary.data_date
            ):
                report.summary.data_date = health.latest_date
            target = report.issues if health.status == "error" else report.warnings
            target.extend(f"{health.name}: {issue}" for issue in health.issues)

        report.summary.total_brands = len(report.brands)
        if report.issues:
            report.status = "error"
        elif report.warnings:
            report.status = "warning"
        logger.info(
            "Data health %s: %d brands, %d issues, %d warnings",
            report.status,
            report.summary.total_brands,
            len(report.issues),
            len(report.warnings),
        )
        return report


# ── Connectivity probes ──────────────────────────────────


@dataclass
class HealthResult:
    """Result of a single vendor homepage probe."""

    source_id: str
    status: str  # "ok", "slow", "down"
    latency_ms: float
    message: str


def probe_adapter(adapter: BaseAdapter) -> HealthResult:
    """GET the vendor homepage through the adapter's own session."""
    homepage = adapter.homepage_url
    if not homepage:
        return HealthResult(adapter.brand_id, "down", 0.0, "No homepage configured")

    start = time.monotonic()
    try:
        resp = adapter.session.get(
            homepage,
            headers=adapter.settings.DEFAULT_HEADERS,
            timeout=Settings.HEALTH_PROBE_TIMEOUT,
        )
        elapsed_ms = (time.monotonic() - start) * 1000
    except Exception as exc:
        elapsed_ms = (time.monotonic() - start) * 1000
        return HealthResult(adapter.brand_id, "down", elapsed_ms, str(exc)[:80])

    if resp.status_code != 200:
        return HealthResult(
            adapter.brand_id, "down", elapsed_ms, f"HTTP {resp.status_code}"
        )
    if elapsed_ms > Settings.HEALTH_SLOW_MS:
        return HealthResult(adapter.brand_id, "slow", elapsed_ms, "High latency")
    return HealthResult(adapter.brand_id, "ok", elapsed_ms, "")


class ConnectivityChecker:
    """Runs concurrent homepage probes against every registered vendor."""

    def __init__(self, registry: AdapterRegistry) -> None:
        self.registry = registry

    async def check_all(self) -> list[HealthResult]:
        tasks = [
            asyncio.to_thread(probe_adapter, adapter)
            for adapter in self.registry
        ]
        results: list[HealthResult] = list(await asyncio.gather(*tasks))
        for r in results:
            logger.info(
                "Health check %s: %s (%.0fms) %s",
                r.source_id,
                r.status,
                r.latency_ms,
                r.message,
            )
        return results
