# src/models/parse_result.py

"""Typed adapter errors and the parse result container."""

from dataclasses import dataclass, field
from enum import Enum

from src.models.price_record import PriceRecord


class ErrorCategory(str, Enum):
    """Categories shared by adapter errors and the run error log."""

    HTTP_ERROR = "HTTP_ERROR"
    PARSE_ERROR = "PARSE_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    FILE_ERROR = "FILE_ERROR"
    DATA_QUALITY_ERROR = "DATA_QUALITY_ERROR"


class AdapterError(Exception):
    """Base error raised inside an adapter, carrying category and code."""

    category: ErrorCategory = ErrorCategory.PARSE_ERROR

    def __init__(
        self,
        message: str,
        code: str = "PARSE_FAILED",
        category: ErrorCategory | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        if category is not None:
            self.category = category


class FetchError(AdapterError):
    """Network or HTTP failure while fetching a vendor resource."""

    category = ErrorCategory.HTTP_ERROR

    def __init__(
        self,
        message: str,
        code: str = "FETCH_FAILED",
        status_code: int | None = None,
    ) -> None:
        super().__init__(message, code=code)
        self.status_code = status_code


class PayloadShapeError(AdapterError):
    """The upstream payload does not have the expected structure."""

    def __init__(
        self, message: str, code: str = "UNEXPECTED_SHAPE",
    ) -> None:
        super().__init__(message, code=code)


@dataclass
class ParseResult:
    """Records parsed from one or more payloads plus the first error."""

    records: list[PriceRecord] = field(
        default_factory=lambda: list[PriceRecord]()
    )
    error: AdapterError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def extend(self, other: "ParseResult") -> None:
        """Append another result, keeping the earliest error."""
        self.records.extend(other.records)
        if self.error is None and other.error is not None:
            self.error = other.error
