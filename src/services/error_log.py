# src/services/error_log.py

"""Categorised run errors persisted to ``errors.json``.

The log is an explicit object handed to the collector, the adapters and
the artifact service; nothing is global. ``clear()`` is called at the
start of each run.
"""

import json
import logging
import uuid
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any

from src.models.parse_result import AdapterError, ErrorCategory
from src.models.serialization import to_document

logger = logging.getLogger("pricelist_intel.errors")


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class ErrorSource(str, Enum):
    COLLECTION = "collection"
    GENERATION = "generation"
    HEALTH = "health"


@dataclass
class RunError:
    """A single recorded error."""

    category: ErrorCategory
    source: ErrorSource
    code: str
    message: str
    severity: Severity = Severity.ERROR
    brand: str | None = None
    brand_id: str | None = None
    details: dict[str, Any] | None = None
    recovered: bool = False
    recovery_method: str | None = None
    id: str = field(
        default_factory=lambda: f"err_{uuid.uuid4().hex[:12]}"
    )
    timestamp: datetime = field(default_factory=datetime.now)


_LOG_LEVELS: dict[Severity, int] = {
    Severity.ERROR: logging.ERROR,
    Severity.WARNING: logging.WARNING,
    Severity.INFO: logging.INFO,
}


class ErrorLog:
    """Collects :class:`RunError` entries and writes them to disk."""

    def __init__(self, output_path: Path | None = None) -> None:
        self.output_path = output_path
        self._errors: list[RunError] = []
        self.cleared_at: datetime = datetime.now()

    @property
    def errors(self) -> list[RunError]:
        return list(self._errors)

    def clear(self) -> None:
        """Forget every recorded error; call at the start of a run."""
        self._errors = []
        self.cleared_at = datetime.now()
        logger.debug("Error log cleared")

    def record(self, error: RunError) -> RunError:
        """Append an error and mirror it to the run log."""
        self._errors.append(error)
        logger.log(
            _LOG_LEVELS[error.severity],
            "[%s] %s %s: %s",
            error.brand_id or error.source.value,
            error.category.value,
            error.code,
            error.message,
        )
        return error

    def record_adapter_error(
        self,
        exc: AdapterError,
        brand_id: str,
        brand: str,
        details: dict[str, Any] | None = None,
    ) -> RunError:
        """Record an adapter failure raised during collection."""
        return self.record(RunError(
            category=exc.category,
            source=ErrorSource.COLLECTION,
            code=exc.code,
            message=exc.message,
            brand=brand,
            brand_id=brand_id,
            details=details,
        ))

    def mark_recovered(self, brand_id: str, method: str) -> None:
        """Flag every error of a brand as recovered (e.g. by fallback)."""
        for error in self._errors:
            if error.brand_id == brand_id and not error.recovered:
                error.recovered = True
                error.recovery_method = method

    def has_errors(self) -> bool:
        """True when at least one entry has ``error`` severity."""
        return any(e.severity is Severity.ERROR for e in self._errors)

    def count(self, severity: Severity | None = None) -> int:
        if severity is None:
            return len(self._errors)
        return sum(1 for e in self._errors if e.severity is severity)

    def summary(self) -> dict[str, Any]:
        """Totals by category, severity and source."""
        return {
            "total": len(self._errors),
            "byCategory": dict(
                Counter(e.category.value for e in self._errors)
            ),
            "bySeverity": dict(
                Counter(e.severity.value for e in self._errors)
            ),
            "bySource": dict(
                Counter(e.source.value for e in self._errors)
            ),
        }

    def to_document(self) -> dict[str, Any]:
        return {
            "generatedAt": datetime.now().isoformat(),
            "clearedAt": self.cleared_at.isoformat(),
            "errors": [to_document(e) for e in self._errors],
            "summary": self.summary(),
        }

    def save(self, output_path: Path | None = None) -> Path | None:
        """Write the log as JSON; returns the path written, if any."""
        target = output_path or self.output_path
        if target is None:
            return None
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(
            json.dumps(self.to_document(), ensure_ascii=False, indent=2),
            encoding="utf-8",
        )
        logger.info(
            "Saved %d errors to %s", len(self._errors), target
        )
        return target

    @classmethod
    def resume(cls, output_path: Path) -> "ErrorLog":
        """Continue an existing ``errors.json`` (e.g. after collection).

        A missing or corrupt file starts an empty log.
        """
        log = cls(output_path)
        try:
            doc = json.loads(output_path.read_text(encoding="utf-8"))
            log.cleared_at = datetime.fromisoformat(doc["clearedAt"])
            for raw in doc.get("errors", []):
                log._errors.append(RunError(
                    category=ErrorCategory(raw["category"]),
                    source=ErrorSource(raw["source"]),
                    code=str(raw["code"]),
                    message=str(raw["message"]),
                    severity=Severity(raw.get("severity", "error")),
                    brand=raw.get("brand"),
                    brand_id=raw.get("brandId"),
                    details=raw.get("details"),
                    recovered=bool(raw.get("recovered", False)),
                    recovery_method=raw.get("recoveryMethod"),
                    id=str(raw.get("id", "")) or f"err_{uuid.uuid4().hex[:12]}",
                    timestamp=datetime.fromisoformat(raw["timestamp"]),
                ))
        except FileNotFoundError:
            logger.debug("No existing error log at %s", output_path)
        except (OSError, ValueError, KeyError, TypeError) as exc:
            logger.warning(
                "Ignoring unreadable error log %s: %s", output_path, exc
            )
            log._errors = []
        return log
