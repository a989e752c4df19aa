# src/filters/price_validator.py

"""Price validation: drop records outside the plausible price range."""

import logging

from src.config.settings import Settings
from src.models.price_record import PriceRecord

logger = logging.getLogger("pricelist_intel.filters")

_EXAMPLES_SHOWN = 3


class PriceValidator:
    """Enforce the price bounds invariant before records are stored."""

    @staticmethod
    def is_valid_price(price: float) -> bool:
        return (
            Settings.MIN_VALID_PRICE
            <= price
            <= Settings.MAX_VALID_PRICE
        )

    @staticmethod
    def validate(
        records: list[PriceRecord],
        brand: str = "",
    ) -> tuple[list[PriceRecord], int]:
        """Keep records whose numeric price lies inside the bounds.

        Positive out-of-range prices usually mean a unit or decimal
        error upstream; they are dropped with a warning listing the
        first few offenders. Zero/negative prices are dropped quietly.

        Returns the valid records and the count of dropped items.
        """
        valid: list[PriceRecord] = []
        out_of_range: list[PriceRecord] = []
        dropped = 0

        for record in records:
            if PriceValidator.is_valid_price(record.price_numeric):
                valid.append(record)
                continue
            dropped += 1
            if record.price_numeric > 0:
                out_of_range.append(record)
            else:
                logger.debug(
                    "Dropped record with zero/negative price "
                    "(brand=%s, model=%s, trim=%s)",
                    brand or record.brand,
                    record.model,
                    record.trim,
                )

        if out_of_range:
            logger.warning(
                "%d rows with out-of-range prices filtered out for %s",
                len(out_of_range),
                brand or out_of_range[0].brand,
            )
            for record in out_of_range[:_EXAMPLES_SHOWN]:
                logger.warning(
                    "  - %s %s: %.2f",
                    record.model,
                    record.trim,
                    record.price_numeric,
                )
            if len(out_of_range) > _EXAMPLES_SHOWN:
                logger.warning(
                    "  ... and %d more",
                    len(out_of_range) - _EXAMPLES_SHOWN,
                )

        return valid, dropped
