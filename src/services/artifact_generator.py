# src/services/artifact_generator.py

"""Runs every derived-artifact generator against the snapshot store.

Generators only read the store and each writes its own documents, so
they run concurrently in worker threads. One failing generator is
logged and recorded; its siblings still write their output.
"""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from src.analytics.architecture import ArchitectureBuilder
from src.analytics.events import EventEngine
from src.analytics.gaps import GapAnalyzer, OpportunityConfig
from src.analytics.lifecycle import LifecycleTracker
from src.analytics.promos import PromoTracker
from src.analytics.rollups import build_latest, build_search_index, build_stats
from src.analytics.scoring import ScoringEngine
from src.models.parse_result import ErrorCategory
from src.services.error_log import ErrorLog, ErrorSource, RunError
from src.storage.artifact_writer import ArtifactWriter
from src.storage.snapshot_store import SnapshotStore

logger = logging.getLogger("pricelist_intel.artifacts")

# A job returns (relative path, document) pairs to write
Job = Callable[[datetime], list[tuple[str, Any]]]


@dataclass
class GeneratorOutcome:
    name: str
    success: bool
    paths: list[str] = field(default_factory=lambda: list[str]())
    error: str | None = None


class ArtifactService:
    """Builds and writes the latest, search, stats, insights and intel set."""

    def __init__(
        self,
        store: SnapshotStore,
        writer: ArtifactWriter | None = None,
        error_log: ErrorLog | None = None,
        gap_config: OpportunityConfig | None = None,
    ) -> None:
        self.store = store
        self.writer = writer or ArtifactWriter()
        self.error_log = error_log
        self.gap_config = gap_config

    def _insights(self, now: datetime) -> list[tuple[str, Any]]:
        report = ScoringEngine(self.store).generate(now)
        day = (report.date or now.date()).isoformat()
        return [
            ("insights/latest.json", report),
            (f"insights/deals-{day}.json", report),
        ]

    def jobs(self) -> dict[str, Job]:
        store = self.store
        return {
            "latest": lambda now: [
                ("latest.json", build_latest(store, now)),
            ],
            "search-index": lambda now: [
                ("search-index.json", build_search_index(store, now)),
            ],
            "stats": lambda now: [
                ("stats/precomputed.json", build_stats(store, now)),
            ],
            "insights": self._insights,
            "events": lambda now: [
                ("intel/events.json", EventEngine(store).generate(now)),
            ],
            "architecture": lambda now: [
                (
                    "intel/architecture.json",
                    ArchitectureBuilder(store).generate(now),
                ),
            ],
            "gaps": lambda now: [
                (
                    "intel/gaps.json",
                    GapAnalyzer(store, self.gap_config).generate(now),
                ),
            ],
            "promos": lambda now: [
                ("intel/promos.json", PromoTracker(store).generate(now)),
            ],
            "lifecycle": lambda now: [
                (
                    "intel/lifecycle.json",
                    LifecycleTracker(store).generate(now),
                ),
            ],
        }

    def _run_job(self, job: Job, now: datetime) -> list[str]:
        return [str(self.writer.write(path, doc)) for path, doc in job(now)]

    async def generate_all(
        self, only: list[str] | None = None,
    ) -> list[GeneratorOutcome]:
        """Run the selected (default: all) generators concurrently."""
        self.store.invalidate_cache()
        now = datetime.now()
        jobs = {
            name: job
            for name, job in self.jobs().items()
            if not only or name in only
        }
        results = await asyncio.gather(
            *(
                asyncio.to_thread(self._run_job, job, now)
                for job in jobs.values()
            ),
            return_exceptions=True,
        )

        outcomes: list[GeneratorOutcome] = []
        for name, result in zip(jobs, results):
            if isinstance(result, BaseException):
                logger.error(
                    "Generator %s failed: %s", name, result, exc_info=result
                )
                if self.error_log is not None:
                    self.error_log.record(RunError(
                        category=(
                            ErrorCategory.FILE_ERROR
                            if isinstance(result, OSError)
                            else ErrorCategory.DATA_QUALITY_ERROR
                        ),
                        source=ErrorSource.GENERATION,
                        code="GENERATOR_FAILED",
                        message=f"{name}: {type(result).__name__}: {result}",
                        details={"generator": name},
                    ))
                outcomes.append(GeneratorOutcome(
                    name=name, success=False, error=str(result)
                ))
            else:
                outcomes.append(GeneratorOutcome(
                    name=name, success=True, paths=result
                ))

        if self.error_log is not None:
            self.error_log.save()
        failed = sum(1 for o in outcomes if not o.success)
        logger.info(
            "Artifacts: %d generated, %d failed", len(outcomes) - failed, failed
        )
        return outcomes
