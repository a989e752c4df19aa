# src/models/price_record.py

"""Canonical price-list record shared by every adapter and generator."""

import re
from dataclasses import dataclass, field
from typing import Any

_WHITESPACE_RE = re.compile(r"\s+")

# Wire names of the optional extension fields
_EXTENSION_KEYS: dict[str, str] = {
    "model_year": "modelYear",
    "tax_rate": "otvRate",
    "price_list_numeric": "priceListNumeric",
    "price_campaign_numeric": "priceCampaignNumeric",
}

_CORE_KEYS: frozenset[str] = frozenset({
    "brand", "model", "trim", "engine", "transmission",
    "fuel", "priceRaw", "priceNumeric",
    *_EXTENSION_KEYS.values(),
})


def normalize_key_part(value: str) -> str:
    """Lower-case and collapse whitespace for identity matching."""
    return _WHITESPACE_RE.sub(" ", (value or "").strip()).lower()


@dataclass(frozen=True)
class PriceRecord:
    """One priced vehicle configuration from a vendor price list."""

    brand: str
    model: str
    trim: str
    engine: str
    transmission: str
    fuel: str
    price_raw: str
    price_numeric: float
    model_year: str | None = None
    tax_rate: float | None = None
    price_list_numeric: float | None = None
    price_campaign_numeric: float | None = None
    extras: dict[str, Any] = field(default_factory=dict)

    @property
    def identity_key(self) -> tuple[str, str, str]:
        """Normalised (model, trim, engine) used to match across days."""
        return (
            normalize_key_part(self.model),
            normalize_key_part(self.trim),
            normalize_key_part(self.engine),
        )

    @property
    def vehicle_key(self) -> str:
        """String form of the identity key, e.g. ``golf-1.5-tsi-life``."""
        joined = f"{self.model}-{self.trim}-{self.engine}"
        return _WHITESPACE_RE.sub("-", joined.strip()).lower()

    def vehicle_id(self, brand_id: str | None = None) -> str:
        """Stable id including the brand, used by derived documents."""
        prefix = brand_id or self.brand
        joined = f"{prefix}-{self.model}-{self.trim}-{self.engine}"
        return _WHITESPACE_RE.sub("-", joined.strip()).lower()

    def to_dict(self) -> dict[str, Any]:
        """Serialise to the snapshot document row format."""
        data: dict[str, Any] = {
            "model": self.model,
            "trim": self.trim,
            "engine": self.engine,
            "transmission": self.transmission,
            "fuel": self.fuel,
            "priceRaw": self.price_raw,
            "priceNumeric": self.price_numeric,
            "brand": self.brand,
        }
        for attr, wire_name in _EXTENSION_KEYS.items():
            value = getattr(self, attr)
            if value is not None:
                data[wire_name] = value
        for key, value in self.extras.items():
            data.setdefault(key, value)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PriceRecord":
        """Build a record from a snapshot document row.

        Unknown keys are preserved in ``extras`` so that vendor-specific
        fields survive a read/write cycle.
        """
        model_year = data.get("modelYear")
        tax_rate = data.get("otvRate")
        list_price = data.get("priceListNumeric")
        campaign_price = data.get("priceCampaignNumeric")
        return cls(
            brand=str(data.get("brand", "")),
            model=str(data.get("model", "")),
            trim=str(data.get("trim", "")),
            engine=str(data.get("engine", "")),
            transmission=str(data.get("transmission", "")),
            fuel=str(data.get("fuel", "")),
            price_raw=str(data.get("priceRaw", "")),
            price_numeric=float(data.get("priceNumeric") or 0),
            model_year=(
                str(model_year) if model_year is not None else None
            ),
            tax_rate=float(tax_rate) if tax_rate is not None else None,
            price_list_numeric=(
                float(list_price) if list_price is not None else None
            ),
            price_campaign_numeric=(
                float(campaign_price)
                if campaign_price is not None
                else None
            ),
            extras={
                k: v for k, v in data.items() if k not in _CORE_KEYS
            },
        )
