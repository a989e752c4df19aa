# src/storage/artifact_writer.py

"""Writes derived JSON artifacts next to the snapshot store."""

import json
import logging
from pathlib import Path
from typing import Any

from src.config.settings import Settings
from src.models.serialization import to_document

logger = logging.getLogger("pricelist_intel.storage")


class ArtifactWriter:
    """Serialises generator output to files under the data directory."""

    def __init__(self, root: Path | None = None) -> None:
        self.root: Path = root or Settings.DATA_DIR

    def path_for(self, relative: str) -> Path:
        return self.root / relative

    def write(self, relative: str, payload: Any) -> Path:
        """Write ``payload`` (dataclasses allowed) to ``root/relative``."""
        path = self.path_for(relative)
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = path.with_suffix(path.suffix + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(to_document(payload), f, ensure_ascii=False, indent=2)
        tmp_path.replace(path)
        logger.info("Wrote artifact %s", path)
        return path

    def read(self, relative: str) -> Any | None:
        """Load a previously written artifact; None if missing or corrupt."""
        path = self.path_for(relative)
        try:
            with open(path, encoding="utf-8") as f:
                return json.load(f)
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as exc:
            logger.warning("Unreadable artifact %s: %s", path, exc)
            return None
