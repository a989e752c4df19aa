# src/analytics/segments.py

"""Market segment classification and price banding.

``classify_segment`` is the single source of segment labels for the
scoring engine, the gap analyzer and the ladder builder. Rules are
evaluated in a fixed order: the brand's own table first (naming schemes
differ sharply between brands), then generic body-style keywords, then
powertrain keywords with hybrid before electric, then ``Other``.
"""

import re
import unicodedata
from dataclasses import dataclass
from functools import lru_cache

OTHER_SEGMENT = "Other"

Rule = tuple[re.Pattern[str], str]


def _rules(*pairs: tuple[str, str]) -> list[Rule]:
    return [(re.compile(p, re.IGNORECASE), label) for p, label in pairs]


# More specific names precede their prefixes (``corolla cross`` before
# ``corolla``, ``id. buzz`` before ``id.``).
BRAND_RULES: dict[str, list[Rule]] = {
    "volkswagen": _rules(
        (r"t-?cross|t-?roc|taigo", "SUV-Compact"),
        (r"tiguan|id\.?\s?[45]\b", "SUV-Medium"),
        (r"touareg", "SUV-Large"),
        (r"id\.?\s?buzz|caddy|touran|multivan|caravelle|transporter", "MPV"),
        (r"passat|arteon|id\.?\s?7", "Sedan-D"),
        (r"jetta", "Sedan-C"),
        (r"golf|id\.?\s?3\b", "Hatchback-C"),
        (r"polo", "Hatchback-B"),
        (r"amarok", "Pickup"),
    ),
    "skoda": _rules(
        (r"kamiq|elroq", "SUV-Compact"),
        (r"karoq", "SUV-Medium"),
        (r"kodiaq|enyaq", "SUV-Large"),
        (r"superb", "Sedan-D"),
        (r"octavia", "Sedan-C"),
        (r"scala", "Hatchback-C"),
        (r"fabia", "Hatchback-B"),
    ),
    "renault": _rules(
        (r"megane\s*e-?tech", "SUV-Compact"),
        (r"captur|duster", "SUV-Compact"),
        (r"austral|arkana|symbioz|kadjar", "SUV-Medium"),
        (r"koleos|rafale", "SUV-Large"),
        (r"megane.*sedan|taliant|fluence", "Sedan-C"),
        (r"talisman", "Sedan-D"),
        (r"megane", "Hatchback-C"),
        (r"clio|zoe|\br5\b|renault 5", "Hatchback-B"),
        (r"kangoo|trafic|master|espace|scenic", "MPV"),
    ),
    "toyota": _rules(
        (r"yaris\s*cross|c-?hr", "SUV-Compact"),
        (r"corolla\s*cross|rav\s?4|bz4x", "SUV-Medium"),
        (r"land\s*cruiser|highlander", "SUV-Large"),
        (r"corolla.*(?:hb|hatch)", "Hatchback-C"),
        (r"corolla", "Sedan-C"),
        (r"camry", "Sedan-D"),
        (r"yaris|aygo", "Hatchback-B"),
        (r"proace|verso", "MPV"),
        (r"hilux", "Pickup"),
        (r"gr\s?86|supra", "Coupe"),
    ),
    "hyundai": _rules(
        (r"bayon|kona|venue|inster", "SUV-Compact"),
        (r"tucson|ioniq\s*5", "SUV-Medium"),
        (r"santa\s*fe|palisade", "SUV-Large"),
        (r"elantra|ioniq\s*6", "Sedan-C"),
        (r"sonata", "Sedan-D"),
        (r"i30", "Hatchback-C"),
        (r"i10|i20", "Hatchback-B"),
        (r"staria", "MPV"),
    ),
    "mercedes": _rules(
        (r"\bgla\b|\bglb\b|\beqa\b|\beqb\b", "SUV-Compact"),
        (r"\bglc\b|eqe\s*suv", "SUV-Medium"),
        (r"\bgle\b|\bgls\b|g-?class|g\s?\d{3}|eqs\s*suv", "SUV-Large"),
        (r"\bcla\b|\bcle\b|amg\s*gt|\bsl\b", "Coupe"),
        (r"\ba\b.*sedan|a-?serisi\s*sedan", "Sedan-C"),
        (r"\bc\b|c-?serisi|c-?class", "Sedan-D"),
        (r"\be\b|e-?serisi|e-?class|\beqe\b", "Sedan-E"),
        (r"\bs\b|s-?serisi|s-?class|\beqs\b", "Sedan-E"),
        (r"\ba\b|a-?serisi|a-?class", "Hatchback-C"),
        (r"v-?class|vito|sprinter", "MPV"),
    ),
    "peugeot": _rules(
        (r"\be?-?2008\b", "SUV-Compact"),
        (r"\be?-?3008\b", "SUV-Medium"),
        (r"\be?-?5008\b", "SUV-Large"),
        (r"\be?-?408\b|\b508\b", "Sedan-C"),
        (r"\be?-?308\b", "Hatchback-C"),
        (r"\be?-?208\b", "Hatchback-B"),
        (r"rifter|partner|traveller|expert", "MPV"),
    ),
    "fiat": _rules(
        (r"egea\s*cross|\b600e?\b", "SUV-Compact"),
        (r"egea.*(?:hatch|hb)", "Hatchback-C"),
        (r"egea", "Sedan-C"),
        (r"\b500e?\b", "Hatchback-B"),
        (r"doblo|fiorino|ducato|scudo", "MPV"),
    ),
}

GENERIC_RULES: list[Rule] = _rules(
    (r"suv|crossover|4x4|off-?road", "SUV-Compact"),
    (r"sedan|saloon", "Sedan-C"),
    (r"hatch", "Hatchback-C"),
    (r"\bmpv\b|\bvan\b|kombi", "MPV"),
    (r"pick-?up", "Pickup"),
    (r"coup[eé]|roadster|cabrio|convertible", "Coupe"),
    # Hybrid markers before electric ones: "e-" also prefixes hybrids
    (r"hybrid|hibrit|phev", "Hybrid"),
    (r"\bid\.\d|\be-|electric|elektrik|\bev\b|\bbev\b", "Electric"),
)


def _fold(text: str) -> str:
    decomposed = unicodedata.normalize("NFD", text.replace("ı", "i"))
    stripped = "".join(c for c in decomposed if not unicodedata.combining(c))
    return stripped.lower().strip()


def brand_key(brand: str) -> str:
    """``Škoda`` -> ``skoda``, ``Mercedes-Benz`` -> ``mercedes``."""
    folded = _fold(brand)
    return re.split(r"[^a-z0-9]+", folded, maxsplit=1)[0] if folded else ""


@lru_cache(maxsize=4096)
def classify_segment(brand: str, model: str) -> str:
    """Return the segment label for a (brand, model name) pair."""
    text = model.strip()
    for pattern, label in BRAND_RULES.get(brand_key(brand), []):
        if pattern.search(text):
            return label
    for pattern, label in GENERIC_RULES:
        if pattern.search(text):
            return label
    return OTHER_SEGMENT


def vehicle_class(segment: str) -> str:
    """Body class of a segment label (``SUV-Compact`` -> ``SUV``)."""
    return segment.split("-", 1)[0]


# ── Price bands ──────────────────────────────────────────


@dataclass(frozen=True)
class PriceBand:
    """Half-open price interval ``[min_price, max_price)``."""

    label: str
    min_price: float
    max_price: float

    def contains(self, price: float) -> bool:
        return self.min_price <= price < self.max_price


PRICE_BANDS: tuple[PriceBand, ...] = (
    PriceBand("0-500K", 0, 500_000),
    PriceBand("500K-1M", 500_000, 1_000_000),
    PriceBand("1M-1.5M", 1_000_000, 1_500_000),
    PriceBand("1.5M-2M", 1_500_000, 2_000_000),
    PriceBand("2M-3M", 2_000_000, 3_000_000),
    PriceBand("3M-5M", 3_000_000, 5_000_000),
    PriceBand("5M+", 5_000_000, 100_000_000),
)


def price_band(price: float) -> PriceBand | None:
    """Band containing ``price``; None outside every band."""
    for band in PRICE_BANDS:
        if band.contains(price):
            return band
    return None


def price_band_label(price: float) -> str:
    band = price_band(price)
    return band.label if band is not None else "unbanded"
