# src/storage/snapshot_store.py

"""Date-partitioned per-brand snapshot persistence.

The store is an explicit object handed to every consumer. Cached reads
are dropped with :meth:`SnapshotStore.invalidate_cache`; nothing is held
in module state.
"""

import json
import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable
from datetime import date, datetime
from pathlib import Path
from typing import Any

from src.config.settings import Settings
from src.models.price_record import PriceRecord
from src.models.snapshot import BrandIndex, BrandIndexEntry, Snapshot

logger = logging.getLogger("pricelist_intel.store")


class SnapshotStore(ABC):
    """Interface shared by the file-backed and in-memory stores."""

    # ── Backend primitives ───────────────────────────────

    @abstractmethod
    def _save(self, snapshot: Snapshot) -> None:
        """Persist one snapshot, replacing any existing one."""
        ...

    @abstractmethod
    def read(self, brand_id: str, snapshot_date: date) -> Snapshot | None:
        """Return the snapshot for a day, or None if missing/corrupt."""
        ...

    @abstractmethod
    def list_dates(self, brand_id: str) -> list[date]:
        """Dates with a stored snapshot, newest first."""
        ...

    @abstractmethod
    def load_index(self) -> BrandIndex:
        """Return the brand index (empty default when unreadable)."""
        ...

    @abstractmethod
    def _save_index(self, index: BrandIndex) -> None:
        ...

    def invalidate_cache(self) -> None:
        """Drop any cached documents so the next read hits the backend."""

    # ── Operations ───────────────────────────────────────

    def write(
        self,
        brand_id: str,
        snapshot_date: date,
        records: Iterable[PriceRecord],
        brand_name: str = "",
        collected_at: datetime | None = None,
    ) -> Snapshot:
        """Store a real collection; overwrites the same (brand, date)."""
        snapshot = Snapshot(
            brand_id=brand_id,
            brand=brand_name or brand_id,
            date=snapshot_date,
            collected_at=collected_at or datetime.now(),
            records=tuple(records),
        )
        self._commit(snapshot)
        logger.info(
            "Stored %s %s (%d rows)",
            brand_id,
            snapshot_date.isoformat(),
            snapshot.row_count,
        )
        return snapshot

    def write_fallback(
        self,
        brand_id: str,
        snapshot_date: date,
        brand_name: str = "",
        collected_at: datetime | None = None,
    ) -> Snapshot | None:
        """Copy the nearest prior snapshot forward, tagged as fallback.

        ``original_date`` names the last real collection, so a chain of
        fallbacks keeps pointing at the same source day. Returns None
        when there is no earlier snapshot to copy.
        """
        previous = self.read_before(brand_id, snapshot_date)
        if previous is None:
            logger.warning(
                "No earlier snapshot to fall back to for %s on %s",
                brand_id,
                snapshot_date.isoformat(),
            )
            return None

        original = (
            previous.original_date
            if previous.is_fallback and previous.original_date
            else previous.date
        )
        snapshot = Snapshot(
            brand_id=brand_id,
            brand=brand_name or previous.brand or brand_id,
            date=snapshot_date,
            collected_at=collected_at or datetime.now(),
            records=previous.records,
            is_fallback=True,
            original_date=original,
        )
        self._commit(snapshot)
        logger.warning(
            "Stored fallback for %s %s copied from %s (%d rows)",
            brand_id,
            snapshot_date.isoformat(),
            original.isoformat(),
            snapshot.row_count,
        )
        return snapshot

    def read_latest(self, brand_id: str) -> Snapshot | None:
        """Newest readable snapshot for a brand."""
        for snapshot_date in self.list_dates(brand_id):
            snapshot = self.read(brand_id, snapshot_date)
            if snapshot is not None:
                return snapshot
        return None

    def read_before(
        self, brand_id: str, snapshot_date: date,
    ) -> Snapshot | None:
        """Newest readable snapshot strictly before ``snapshot_date``."""
        for candidate in self.list_dates(brand_id):
            if candidate >= snapshot_date:
                continue
            snapshot = self.read(brand_id, candidate)
            if snapshot is not None:
                return snapshot
        return None

    def history(self, brand_id: str, limit: int | None = None) -> list[Snapshot]:
        """Readable snapshots oldest first, optionally the newest ``limit``."""
        dates = self.list_dates(brand_id)
        if limit is not None:
            dates = dates[:limit]
        snapshots = [self.read(brand_id, d) for d in reversed(dates)]
        return [s for s in snapshots if s is not None]

    def brand_ids(self) -> list[str]:
        """Brands known to the index."""
        return list(self.load_index().brands)

    def latest_snapshots(self) -> dict[str, Snapshot]:
        """Newest readable snapshot of every brand, keyed by brand id."""
        latest: dict[str, Snapshot] = {}
        for brand_id in sorted(self.brand_ids()):
            snapshot = self.read_latest(brand_id)
            if snapshot is not None:
                latest[brand_id] = snapshot
        return latest

    def _commit(self, snapshot: Snapshot) -> None:
        self._save(snapshot)
        index = self.load_index()
        entry = index.brands.get(snapshot.brand_id)
        if entry is None:
            entry = BrandIndexEntry(name=snapshot.brand)
            index.brands[snapshot.brand_id] = entry
        entry.name = snapshot.brand or entry.name
        entry.add_date(snapshot.date, snapshot.row_count)
        index.last_updated = datetime.now()
        self._save_index(index)


class JsonSnapshotStore(SnapshotStore):
    """JSON documents under ``<root>/YYYY/MM/<brand>/DD.json``."""

    INDEX_FILENAME = "index.json"

    def __init__(self, root: Path | None = None) -> None:
        self.root: Path = root or Settings.DATA_DIR
        self._cache: dict[tuple[str, date], Snapshot] = {}
        self._index: BrandIndex | None = None

    def path_for(self, brand_id: str, snapshot_date: date) -> Path:
        return (
            self.root
            / f"{snapshot_date.year:04d}"
            / f"{snapshot_date.month:02d}"
            / brand_id
            / f"{snapshot_date.day:02d}.json"
        )

    @property
    def index_path(self) -> Path:
        return self.root / self.INDEX_FILENAME

    def invalidate_cache(self) -> None:
        self._cache.clear()
        self._index = None
        logger.debug("Snapshot cache invalidated")

    @staticmethod
    def _write_json(path: Path, document: dict[str, Any]) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = path.with_suffix(path.suffix + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(document, f, ensure_ascii=False, indent=2)
        tmp_path.replace(path)

    def _save(self, snapshot: Snapshot) -> None:
        path = self.path_for(snapshot.brand_id, snapshot.date)
        self._write_json(path, snapshot.to_document())
        self._cache[(snapshot.brand_id, snapshot.date)] = snapshot

    def read(self, brand_id: str, snapshot_date: date) -> Snapshot | None:
        key = (brand_id, snapshot_date)
        if key in self._cache:
            return self._cache[key]
        path = self.path_for(brand_id, snapshot_date)
        try:
            with open(path, encoding="utf-8") as f:
                document = json.load(f)
            snapshot = Snapshot.from_document(document, snapshot_date)
        except FileNotFoundError:
            return None
        except (OSError, ValueError, KeyError, TypeError) as exc:
            logger.warning("Unreadable snapshot %s: %s", path, exc)
            return None
        if not snapshot.brand_id:
            snapshot = Snapshot(
                brand_id=brand_id,
                brand=snapshot.brand,
                date=snapshot.date,
                collected_at=snapshot.collected_at,
                records=snapshot.records,
                is_fallback=snapshot.is_fallback,
                original_date=snapshot.original_date,
            )
        self._cache[key] = snapshot
        return snapshot

    def list_dates(self, brand_id: str) -> list[date]:
        dates: list[date] = []
        for path in self.root.glob(f"[0-9][0-9][0-9][0-9]/[0-9][0-9]/{brand_id}/*.json"):
            try:
                dates.append(date(
                    int(path.parent.parent.parent.name),
                    int(path.parent.parent.name),
                    int(path.stem),
                ))
            except ValueError:
                logger.debug("Skipping non-snapshot file %s", path)
        return sorted(dates, reverse=True)

    def brand_ids(self) -> list[str]:
        """Brands in the index plus any found on disk."""
        ids = dict.fromkeys(self.load_index().brands)
        for brand_dir in sorted(self.root.glob("[0-9][0-9][0-9][0-9]/[0-9][0-9]/*")):
            if brand_dir.is_dir():
                ids.setdefault(brand_dir.name, None)
        return list(ids)

    def load_index(self) -> BrandIndex:
        if self._index is not None:
            return self._index
        try:
            with open(self.index_path, encoding="utf-8") as f:
                self._index = BrandIndex.from_document(json.load(f))
        except FileNotFoundError:
            self._index = BrandIndex()
        except (OSError, ValueError, KeyError, TypeError) as exc:
            logger.warning(
                "Unreadable index %s, starting empty: %s",
                self.index_path,
                exc,
            )
            self._index = BrandIndex()
        return self._index

    def _save_index(self, index: BrandIndex) -> None:
        self._write_json(self.index_path, index.to_document())
        self._index = index


class InMemorySnapshotStore(SnapshotStore):
    """Dictionary-backed store for tests and dry runs."""

    def __init__(self) -> None:
        self._snapshots: dict[tuple[str, date], Snapshot] = {}
        self._index = BrandIndex()

    def _save(self, snapshot: Snapshot) -> None:
        self._snapshots[(snapshot.brand_id, snapshot.date)] = snapshot

    def read(self, brand_id: str, snapshot_date: date) -> Snapshot | None:
        return self._snapshots.get((brand_id, snapshot_date))

    def list_dates(self, brand_id: str) -> list[date]:
        return sorted(
            (d for b, d in self._snapshots if b == brand_id),
            reverse=True,
        )

    def load_index(self) -> BrandIndex:
        return self._index

    def _save_index(self, index: BrandIndex) -> None:
        self._index = index
