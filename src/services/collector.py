# src/services/collector.py

"""Daily collection run: every brand, one after another.

Each brand runs to completion (stored, fallback, or failed) before the
next one starts. A brand that yields no rows gets yesterday's snapshot
copied forward; the run is fatal only when no brand produced data at all.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime

from src.adapters.base_adapter import BaseAdapter
from src.adapters.registry import AdapterRegistry
from src.filters.deduplicator import RecordDeduplicator
from src.models.parse_result import ErrorCategory
from src.services.error_log import ErrorLog, ErrorSource, RunError, Severity
from src.storage.artifact_writer import ArtifactWriter
from src.storage.snapshot_store import SnapshotStore

logger = logging.getLogger("pricelist_intel.collector")

HEALTH_REPORT_PATH = "health-report.json"


@dataclass
class BrandOutcome:
    """What happened to one brand during a run."""

    brand: str
    brand_id: str
    success: bool
    count: int = 0
    used_fallback: bool = False
    original_date: date | None = None
    error: str | None = None
    error_code: str | None = None


@dataclass
class CollectionReport:
    generated_at: datetime
    date: date
    total_brands: int = 0
    successful: int = 0
    failed: int = 0
    used_fallback: int = 0
    details: list[BrandOutcome] = field(
        default_factory=lambda: list[BrandOutcome]()
    )

    def add(self, outcome: BrandOutcome) -> None:
        self.details.append(outcome)
        self.total_brands += 1
        if outcome.success:
            self.successful += 1
        else:
            self.failed += 1
        if outcome.used_fallback:
            self.used_fallback += 1

    @property
    def fatal(self) -> bool:
        """Every brand failed and none could fall back."""
        return self.total_brands > 0 and self.successful == 0

    @property
    def exit_code(self) -> int:
        return 1 if self.fatal else 0


class Collector:
    """Runs the adapters against a snapshot store."""

    def __init__(
        self,
        registry: AdapterRegistry,
        store: SnapshotStore,
        error_log: ErrorLog | None = None,
        writer: ArtifactWriter | None = None,
    ) -> None:
        self.registry = registry
        self.store = store
        self.error_log = error_log
        self.writer = writer

    def _fallback(
        self, adapter: BaseAdapter, run_date: date, reason: str, code: str,
    ) -> BrandOutcome:
        snapshot = self.store.write_fallback(
            adapter.brand_id, run_date, adapter.brand_name
        )
        if snapshot is None:
            return BrandOutcome(
                brand=adapter.brand_name,
                brand_id=adapter.brand_id,
                success=False,
                error=f"{reason}; no fallback data available",
                error_code=code,
            )
        if self.error_log is not None:
            self.error_log.mark_recovered(adapter.brand_id, "fallback")
        return BrandOutcome(
            brand=adapter.brand_name,
            brand_id=adapter.brand_id,
            success=True,
            count=snapshot.row_count,
            used_fallback=True,
            original_date=snapshot.original_date,
            error=reason,
            error_code=code,
        )

    def collect_brand(self, adapter: BaseAdapter, run_date: date) -> BrandOutcome:
        """Collect, store or fall back for one brand; never raises."""
        logger.info("Collecting %s", adapter.brand_id)
        result = adapter.collect()
        records, removed = RecordDeduplicator.deduplicate(result.records)
        if removed:
            logger.info(
                "[%s] %d duplicate rows removed", adapter.brand_id, removed
            )

        if not records:
            if result.error is not None:
                reason, code = result.error.message, result.error.code
            else:
                reason, code = "No rows parsed", "NO_ROWS"
                if self.error_log is not None:
                    self.error_log.record(RunError(
                        category=ErrorCategory.DATA_QUALITY_ERROR,
                        source=ErrorSource.COLLECTION,
                        code=code,
                        message=f"{adapter.brand_name}: {reason}",
                        severity=Severity.WARNING,
                        brand=adapter.brand_name,
                        brand_id=adapter.brand_id,
                    ))
            logger.warning(
                "[%s] %s, trying fallback", adapter.brand_id, reason
            )
            return self._fallback(adapter, run_date, reason, code)

        try:
            snapshot = self.store.write(
                adapter.brand_id, run_date, records, adapter.brand_name
            )
        except OSError as exc:
            logger.error(
                "[%s] Could not store snapshot: %s", adapter.brand_id, exc
            )
            if self.error_log is not None:
                self.error_log.record(RunError(
                    category=ErrorCategory.FILE_ERROR,
                    source=ErrorSource.COLLECTION,
                    code="WRITE_FAILED",
                    message=str(exc),
                    brand=adapter.brand_name,
                    brand_id=adapter.brand_id,
                ))
            return BrandOutcome(
                brand=adapter.brand_name,
                brand_id=adapter.brand_id,
                success=False,
                error=str(exc),
                error_code="WRITE_FAILED",
            )

        outcome = BrandOutcome(
            brand=adapter.brand_name,
            brand_id=adapter.brand_id,
            success=True,
            count=snapshot.row_count,
        )
        if result.error is not None:
            # Partial collection: some sub-resources failed
            outcome.error = result.error.message
            outcome.error_code = result.error.code
        return outcome

    def run(self, run_date: date | None = None) -> CollectionReport:
        run_date = run_date or date.today()
        if self.error_log is not None:
            self.error_log.clear()

        report = CollectionReport(generated_at=datetime.now(), date=run_date)
        for adapter in self.registry:
            outcome = self.collect_brand(adapter, run_date)
            report.add(outcome)
            logger.info(
                "[%s] success=%s rows=%d fallback=%s",
                outcome.brand_id,
                outcome.success,
                outcome.count,
                outcome.used_fallback,
            )

        if self.writer is not None:
            self.writer.write(HEALTH_REPORT_PATH, report)
        if self.error_log is not None:
            self.error_log.save()
        if report.fatal:
            logger.critical("All brands failed with no fallback available")
        return report
