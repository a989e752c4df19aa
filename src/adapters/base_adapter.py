# src/adapters/base_adapter.py

"""Abstract base class for all vendor price-list adapters."""

import json
import logging
import time
from abc import ABC, abstractmethod
from typing import Any

import cloudscraper  # type: ignore[import-untyped]
from curl_cffi import requests as curl_requests

from src.config.settings import Settings
from src.filters.price_validator import PriceValidator
from src.models.parse_result import (
    AdapterError,
    FetchError,
    ParseResult,
    PayloadShapeError,
)
from src.models.payloads import (
    HtmlPayload,
    JsonPayload,
    PayloadKind,
    RawPayload,
    XmlPayload,
)
from src.models.price_record import PriceRecord
from src.services.error_log import ErrorLog


class BaseAdapter(ABC):
    """Fetches one vendor's price list and maps it to PriceRecords.

    Subclasses implement :meth:`fetch` (one raw payload per
    sub-resource) and :meth:`_parse_payload`. :meth:`collect` wraps both
    so that no exception crosses the brand boundary.
    """

    payload_kind: PayloadKind = PayloadKind.JSON
    homepage_url: str = ""

    def __init__(
        self,
        brand_id: str,
        brand_name: str,
        error_log: ErrorLog | None = None,
    ) -> None:
        self.brand_id = brand_id
        self.brand_name = brand_name
        self.error_log = error_log
        self.logger = logging.getLogger(
            f"pricelist_intel.adapters.{brand_id}"
        )
        self.settings = Settings()
        self.session = curl_requests.Session(
            impersonate=self.settings.IMPERSONATE_BROWSER
        )
        self._current_delay: float = self.settings.REQUEST_DELAY
        self._request_timeout: int = self.settings.REQUEST_TIMEOUT

    # ── HTTP plumbing ────────────────────────────────────

    def _escalate_delay(self) -> None:
        """Double the current delay up to the configured max."""
        max_delay = (
            self.settings.REQUEST_DELAY
            * self.settings.MAX_DELAY_MULTIPLIER
        )
        self._current_delay = min(self._current_delay * 2, max_delay)
        self.logger.warning(
            "[%s] Rate-limited, delay escalated to %.1fs",
            self.brand_id,
            self._current_delay,
        )

    def _headers(self, extra: dict[str, str] | None = None) -> dict[str, str]:
        headers: dict[str, str] = {**self.settings.DEFAULT_HEADERS}
        if self.homepage_url:
            headers["Referer"] = self.homepage_url
        if extra:
            headers.update(extra)
        return headers

    def _fetch_get(
        self,
        url: str,
        headers: dict[str, str] | None = None,
    ) -> curl_requests.Response:
        """GET with capped retries and linearly scaled backoff.

        Raises:
            FetchError: when every attempt failed.
        """
        request_headers = self._headers(headers)
        last_status: int | None = None
        for attempt in range(self.settings.MAX_RETRIES):
            try:
                resp = self.session.get(
                    url,
                    headers=request_headers,
                    timeout=self._request_timeout,
                )
                if resp.status_code == 200:
                    self._current_delay = self.settings.REQUEST_DELAY
                    return resp
                last_status = resp.status_code
                self.logger.warning(
                    "[%s] HTTP %d on attempt %d for %s",
                    self.brand_id,
                    resp.status_code,
                    attempt + 1,
                    url,
                )
                if resp.status_code in (429, 403):
                    self._escalate_delay()
                    time.sleep(self._current_delay)
                else:
                    time.sleep(self._current_delay * (attempt + 1))
            except Exception as exc:
                self.logger.warning(
                    "[%s] Request error on attempt %d: %s",
                    self.brand_id,
                    attempt + 1,
                    exc,
                    exc_info=True,
                )
                time.sleep(self._current_delay * (attempt + 1))

        code = f"HTTP_{last_status}" if last_status else "NETWORK_ERROR"
        raise FetchError(
            f"{self.brand_name}: giving up on {url} after "
            f"{self.settings.MAX_RETRIES} attempts",
            code=code,
            status_code=last_status,
        )

    def _fetch_json(
        self,
        url: str,
        headers: dict[str, str] | None = None,
        resource: str = "",
    ) -> JsonPayload:
        """Fetch and decode a JSON document."""
        resp = self._fetch_get(url, headers)
        try:
            data: Any = json.loads(resp.text)
        except ValueError as exc:
            raise PayloadShapeError(
                f"{self.brand_name}: response from {url} is not JSON",
                code="INVALID_JSON",
            ) from exc
        return JsonPayload(data=data, source_url=url, resource=resource)

    def _fetch_xml(self, url: str, resource: str = "") -> XmlPayload:
        resp = self._fetch_get(url)
        return XmlPayload(text=resp.text, source_url=url, resource=resource)

    def _get_html(self, url: str, resource: str = "") -> HtmlPayload:
        """Fetch a rendered page, falling back to cloudscraper."""
        try:
            resp = self._fetch_get(url)
            return HtmlPayload(
                text=resp.text, source_url=url, resource=resource
            )
        except FetchError as primary:
            self.logger.info(
                "[%s] curl_cffi exhausted, falling back to cloudscraper",
                self.brand_id,
            )
            try:
                _cs: Any = cloudscraper
                scraper: Any = _cs.create_scraper()
                fallback_resp: Any = scraper.get(
                    url,
                    headers=self._headers(),
                    timeout=self._request_timeout,
                )
            except Exception as exc:
                self.logger.error(
                    "[%s] cloudscraper fallback also failed: %s",
                    self.brand_id,
                    exc,
                    exc_info=True,
                )
                raise primary from exc
            if fallback_resp.status_code != 200:
                raise primary
            return HtmlPayload(
                text=str(fallback_resp.text),
                source_url=url,
                resource=resource,
            )

    def _fetch_bytes(self, url: str) -> bytes:
        resp = self._fetch_get(url)
        content: bytes = resp.content
        return content

    # ── Adapter contract ─────────────────────────────────

    def resources(self) -> list[str]:
        """Sub-resources fetched sequentially; one by default."""
        return [""]

    @abstractmethod
    def fetch(self, resource: str = "") -> RawPayload:
        """Fetch the raw payload for one sub-resource."""
        ...

    @abstractmethod
    def _parse_payload(self, payload: Any) -> list[PriceRecord]:
        """Map a payload of :attr:`payload_kind` to records.

        May raise :class:`AdapterError`; ``KeyError``/``TypeError``/
        ``ValueError``/``AttributeError`` are reported as shape errors.
        """
        ...

    def parse(self, payload: RawPayload) -> ParseResult:
        """Parse one payload into a :class:`ParseResult`; never raises."""
        if payload.kind is not self.payload_kind:
            error = PayloadShapeError(
                f"{self.brand_name} expects a {self.payload_kind.value} "
                f"payload, got {payload.kind.value}",
                code="WRONG_PAYLOAD_KIND",
            )
            return ParseResult(error=error)
        try:
            return ParseResult(records=self._parse_payload(payload))
        except AdapterError as exc:
            return ParseResult(error=exc)
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            self.logger.debug(
                "[%s] Parse failure", self.brand_id, exc_info=True
            )
            return ParseResult(error=PayloadShapeError(
                f"{self.brand_name}: unexpected payload structure "
                f"({type(exc).__name__}: {exc})",
            ))

    def collect(self) -> ParseResult:
        """Fetch and parse every sub-resource, then validate prices.

        Errors are logged with brand/category/code, recorded in the
        error log, and returned on the result next to whatever records
        were recovered.
        """
        result = ParseResult()
        try:
            resources = self.resources()
        except Exception as exc:
            self._record(result, self._as_adapter_error(exc), "")
            return result

        for index, resource in enumerate(resources):
            if index:
                time.sleep(self._current_delay)
            try:
                payload = self.fetch(resource)
            except Exception as exc:
                self._record(result, self._as_adapter_error(exc), resource)
                continue
            parsed = self.parse(payload)
            if parsed.error is not None:
                self._record(result, parsed.error, resource)
            result.records.extend(parsed.records)
            self.logger.info(
                "[%s] %s: %d rows parsed",
                self.brand_id,
                resource or "price list",
                len(parsed.records),
            )

        result.records, _ = PriceValidator.validate(
            result.records, self.brand_name
        )
        return result

    # ── Helpers ──────────────────────────────────────────

    def _as_adapter_error(self, exc: Exception) -> AdapterError:
        if isinstance(exc, AdapterError):
            return exc
        self.logger.error(
            "[%s] Unexpected error: %s", self.brand_id, exc, exc_info=True
        )
        return AdapterError(
            f"{self.brand_name}: {type(exc).__name__}: {exc}",
            code="UNEXPECTED_ERROR",
        )

    def _record(
        self, result: ParseResult, error: AdapterError, resource: str,
    ) -> None:
        self.logger.error(
            "[%s] %s/%s: %s",
            self.brand_id,
            error.category.value,
            error.code,
            error.message,
        )
        if result.error is None:
            result.error = error
        if self.error_log is not None:
            details = {"resource": resource} if resource else None
            self.error_log.record_adapter_error(
                error, self.brand_id, self.brand_name, details
            )

    def make_record(self, **fields: Any) -> PriceRecord:
        """Build a record stamped with this adapter's brand name."""
        return PriceRecord(brand=self.brand_name, **fields)
