# src/filters/deduplicator.py

"""Duplicate suppression for parsed price records."""

import logging

from src.models.price_record import PriceRecord, normalize_key_part

logger = logging.getLogger("pricelist_intel.filters")


class RecordDeduplicator:
    """Drop repeated (model, trim, engine, price) rows, keeping the first."""

    @staticmethod
    def _key(record: PriceRecord) -> tuple[str, str, str, float]:
        return (
            normalize_key_part(record.model),
            normalize_key_part(record.trim),
            normalize_key_part(record.engine),
            record.price_numeric,
        )

    @staticmethod
    def deduplicate(
        records: list[PriceRecord],
    ) -> tuple[list[PriceRecord], int]:
        """Remove exact repeats while preserving source order.

        Print documents and multi-page HTML lists often repeat the same
        row (page headers, carry-over lines). Rows that share the
        identity key but differ in price are *not* duplicates.

        Returns the kept records and the count of removed rows.
        """
        if not records:
            return [], 0

        seen: set[tuple[str, str, str, float]] = set()
        kept: list[PriceRecord] = []
        removed = 0

        for record in records:
            key = RecordDeduplicator._key(record)
            if key in seen:
                removed += 1
                continue
            seen.add(key)
            kept.append(record)

        if removed:
            logger.info(
                "Deduplication removed %d duplicate rows",
                removed,
            )

        return kept, removed
