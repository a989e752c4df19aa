# src/filters/normalizer.py

"""Canonical fuel/transmission vocabularies and Turkish price parsing.

Rule order is part of the contract: plug-in and mild indicators win over
plain hybrid words, and a string naming both an electric and a
combustion source (``electric-petrol``, ``benzin-elektrik``) is a hybrid,
never a pure powertrain.
"""

import re
from typing import Any

PETROL = "Petrol"
DIESEL = "Diesel"
HYBRID = "Hybrid"
MILD_HYBRID = "Mild Hybrid"
PLUG_IN_HYBRID = "Plug-in Hybrid"
ELECTRIC = "Electric"
LPG_CNG = "LPG/CNG"
OTHER = "Other"

FUEL_VOCABULARY: tuple[str, ...] = (
    PETROL, DIESEL, HYBRID, MILD_HYBRID,
    PLUG_IN_HYBRID, ELECTRIC, LPG_CNG, OTHER,
)

AUTOMATIC = "Automatic"
MANUAL = "Manual"

TRANSMISSION_VOCABULARY: tuple[str, ...] = (AUTOMATIC, MANUAL, OTHER)


def _rx(*alternatives: str) -> re.Pattern[str]:
    return re.compile("|".join(alternatives))


# Ordered (label, pattern) rules, first match wins
_FUEL_RULES: list[tuple[str, re.Pattern[str]]] = [
    (PLUG_IN_HYBRID, _rx(
        r"plug-?in", r"\bphev\b", r"e-?hybrid", r"şarj edilebilir",
    )),
    (MILD_HYBRID, _rx(
        r"\bmild\b", r"\bmhev\b", r"\b48\s?v\b", r"hafif hibrit",
    )),
    (HYBRID, _rx(r"hybrid", r"hibrit", r"\bhev\b")),
]

_ELECTRIC_RE = _rx(r"elektrik", r"electric", r"\bbev\b", r"\bev\b")
_COMBUSTION_RE = _rx(
    r"benzin", r"petrol", r"gasoline", r"dizel", r"diesel",
)

_TAIL_RULES: list[tuple[str, re.Pattern[str]]] = [
    (LPG_CNG, _rx(
        r"\blpg\b", r"\bcng\b", r"\btgi\b", r"do[gğ]algaz",
    )),
    (ELECTRIC, _ELECTRIC_RE),
    (DIESEL, _rx(
        r"dizel", r"diesel", r"\btdi\b", r"\bdci\b", r"\bcrdi\b",
        r"bluehdi", r"multijet",
    )),
    (PETROL, _rx(
        r"benzin", r"petrol", r"gasoline", r"\btsi\b", r"\btfsi\b",
        r"\btce\b", r"puretech", r"\bt-?gdi\b", r"\bmpi\b", r"firefly",
    )),
]

_AUTOMATIC_RE = _rx(
    r"otomatik", r"automatic", r"\bauto\b", r"\bdsg\b", r"\bedc\b",
    r"\be?-?cvt\b", r"\bdct\b", r"tronic", r"\beat\d\b", r"\bat\b",
    r"\ba/t\b", r"\bivt\b", r"\bs-?dct\b",
)
_MANUAL_RE = _rx(r"manuel", r"manual", r"\bmt\b", r"\bm/t\b", r"\bdüz\b")

_NUMERIC_CLEAN_RE = re.compile(r"[^\d.,\-]")


def _lower(text: str) -> str:
    """Lower-case with the Turkish dotted capital I folded first."""
    return text.replace("İ", "i").lower().strip()


def normalize_fuel(*values: str | None) -> str:
    """Map vendor fuel spellings to the closed fuel vocabulary.

    Several hint strings may be passed (fuel column, engine name,
    trim); they are joined before the rules run.
    """
    text = _lower(" ".join(v for v in values if v))
    if not text:
        return OTHER

    for label, pattern in _FUEL_RULES:
        if pattern.search(text):
            return label

    if _ELECTRIC_RE.search(text) and _COMBUSTION_RE.search(text):
        return HYBRID

    for label, pattern in _TAIL_RULES:
        if pattern.search(text):
            return label
    return OTHER


def normalize_transmission(*values: str | None) -> str:
    """Map vendor gearbox spellings to Automatic / Manual / Other."""
    text = _lower(" ".join(v for v in values if v))
    if not text:
        return OTHER
    if _AUTOMATIC_RE.search(text):
        return AUTOMATIC
    if _MANUAL_RE.search(text):
        return MANUAL
    return OTHER


def parse_price(value: Any) -> float:
    """Parse a Turkish-formatted price (``₺1.234.567,89``, ``1.400.000 TL``).

    Thousands separators are dots and the decimal separator is a comma.
    Returns ``0.0`` for anything unparseable.
    """
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    cleaned = _NUMERIC_CLEAN_RE.sub("", str(value))
    cleaned = cleaned.replace(".", "").replace(",", ".")
    try:
        return float(cleaned)
    except ValueError:
        return 0.0


def format_price(value: float) -> str:
    """Render a price the way Turkish price lists display it."""
    whole = f"{value:,.2f}"
    return "₺" + whole.replace(",", "X").replace(".", ",").replace("X", ".")
