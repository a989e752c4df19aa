# tests/test_error_log.py

"""Tests for the categorised run error log."""

import json
import tempfile
import unittest
from pathlib import Path

from src.models.parse_result import ErrorCategory, FetchError, PayloadShapeError
from src.services.error_log import (
    ErrorLog,
    ErrorSource,
    RunError,
    Severity,
)


class TestErrorLog(unittest.TestCase):
    """ErrorLog recording, recovery marking and persistence."""

    def setUp(self) -> None:
        self.path = Path(tempfile.mkdtemp()) / "errors.json"
        self.log = ErrorLog(self.path)

    def test_record_adapter_error_keeps_category(self) -> None:
        entry = self.log.record_adapter_error(
            FetchError("Toyota: timeout", code="NETWORK_ERROR"),
            "toyota",
            "Toyota",
        )
        self.assertEqual(entry.category, ErrorCategory.HTTP_ERROR)
        self.assertEqual(entry.source, ErrorSource.COLLECTION)
        self.assertEqual(entry.code, "NETWORK_ERROR")
        self.assertTrue(entry.id.startswith("err_"))

    def test_shape_error_is_parse_category(self) -> None:
        entry = self.log.record_adapter_error(
            PayloadShapeError("Fiat: no rows"), "fiat", "Fiat"
        )
        self.assertEqual(entry.category, ErrorCategory.PARSE_ERROR)

    def test_mark_recovered_only_that_brand(self) -> None:
        self.log.record_adapter_error(FetchError("a"), "toyota", "Toyota")
        self.log.record_adapter_error(FetchError("b"), "fiat", "Fiat")
        self.log.mark_recovered("toyota", "fallback")
        toyota, fiat = self.log.errors
        self.assertTrue(toyota.recovered)
        self.assertEqual(toyota.recovery_method, "fallback")
        self.assertFalse(fiat.recovered)

    def test_clear(self) -> None:
        self.log.record_adapter_error(FetchError("a"), "toyota", "Toyota")
        self.log.clear()
        self.assertEqual(self.log.count(), 0)
        self.assertFalse(self.log.has_errors())

    def test_warnings_are_not_errors(self) -> None:
        self.log.record(RunError(
            category=ErrorCategory.DATA_QUALITY_ERROR,
            source=ErrorSource.COLLECTION,
            code="NO_ROWS",
            message="Renault: No rows parsed",
            severity=Severity.WARNING,
        ))
        self.assertFalse(self.log.has_errors())
        self.assertEqual(self.log.count(Severity.WARNING), 1)

    def test_save_document(self) -> None:
        self.log.record_adapter_error(
            FetchError("down", code="HTTP_503"), "toyota", "Toyota",
            {"resource": "fiyat_v3"},
        )
        self.log.save()
        doc = json.loads(self.path.read_text("utf-8"))
        entry = doc["errors"][0]
        self.assertEqual(entry["brandId"], "toyota")
        self.assertEqual(entry["category"], "HTTP_ERROR")
        self.assertEqual(entry["details"], {"resource": "fiyat_v3"})
        self.assertEqual(doc["summary"]["total"], 1)
        self.assertEqual(doc["summary"]["byCategory"], {"HTTP_ERROR": 1})
        self.assertEqual(doc["summary"]["bySource"], {"collection": 1})

    def test_save_without_path(self) -> None:
        self.assertIsNone(ErrorLog().save())

    def test_resume_continues_saved_log(self) -> None:
        self.log.record_adapter_error(FetchError("down"), "toyota", "Toyota")
        self.log.mark_recovered("toyota", "fallback")
        self.log.save()
        resumed = ErrorLog.resume(self.path)
        self.assertEqual(resumed.count(), 1)
        entry = resumed.errors[0]
        self.assertEqual(entry.brand_id, "toyota")
        self.assertTrue(entry.recovered)
        self.assertEqual(entry.category, ErrorCategory.HTTP_ERROR)

    def test_resume_missing_or_corrupt(self) -> None:
        self.assertEqual(ErrorLog.resume(self.path).count(), 0)
        self.path.write_text("{broken", encoding="utf-8")
        self.assertEqual(ErrorLog.resume(self.path).count(), 0)


if __name__ == "__main__":
    unittest.main()
