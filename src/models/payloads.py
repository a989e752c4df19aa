# src/models/payloads.py

"""Raw vendor payloads as a tagged union.

Every adapter fetches one or more of these and declares the single kind
it knows how to parse. Handing an adapter the wrong kind is reported as
a shape error instead of being navigated blindly.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class PayloadKind(str, Enum):
    """Discriminator for :data:`RawPayload`."""

    JSON = "json"
    XML = "xml"
    HTML = "html"
    PDF = "pdf"


@dataclass(frozen=True)
class JsonPayload:
    """Decoded JSON document returned by a vendor API."""

    data: Any
    source_url: str = ""
    resource: str = ""
    kind: PayloadKind = field(default=PayloadKind.JSON, init=False)


@dataclass(frozen=True)
class XmlPayload:
    """Raw XML feed text."""

    text: str
    source_url: str = ""
    resource: str = ""
    kind: PayloadKind = field(default=PayloadKind.XML, init=False)


@dataclass(frozen=True)
class HtmlPayload:
    """Rendered HTML page text."""

    text: str
    source_url: str = ""
    resource: str = ""
    kind: PayloadKind = field(default=PayloadKind.HTML, init=False)


@dataclass(frozen=True)
class TextFragment:
    """A positioned piece of text extracted from a print document."""

    x: float
    y: float
    text: str


@dataclass(frozen=True)
class PdfPayload:
    """Positioned text fragments, one tuple per page."""

    pages: tuple[tuple[TextFragment, ...], ...]
    source_url: str = ""
    resource: str = ""
    kind: PayloadKind = field(default=PayloadKind.PDF, init=False)


RawPayload = JsonPayload | XmlPayload | HtmlPayload | PdfPayload
