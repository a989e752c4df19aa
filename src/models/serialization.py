# src/models/serialization.py

"""camelCase serialisation of derived-artifact dataclasses."""

import dataclasses
import math
from datetime import date, datetime
from enum import Enum
from typing import Any


def to_camel(name: str) -> str:
    """``avg_base_price`` -> ``avgBasePrice``."""
    head, *rest = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


def to_document(value: Any) -> Any:
    """Recursively convert dataclasses/dates/enums to JSON-ready values.

    Dataclass field names become camelCase keys; ``None`` fields are
    omitted. Non-finite floats are written as ``None``.
    """
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        doc: dict[str, Any] = {}
        for f in dataclasses.fields(value):
            item = getattr(value, f.name)
            if item is None:
                continue
            doc[to_camel(f.name)] = to_document(item)
        return doc
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, dict):
        return {str(k): to_document(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_document(v) for v in value]
    if isinstance(value, float) and not math.isfinite(value):
        return None
    return value
