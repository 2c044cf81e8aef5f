# evquote/repositories/airtable.py
from __future__ import annotations

import logging
import random
import time
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence
from urllib.parse import quote

import requests

from evquote.config import Settings
from evquote.core.errors import NotFoundError, StoreError, UpstreamUnavailableError
from evquote.repositories.base import Record, SortSpec

logger = logging.getLogger(__name__)


class RateLimitedError(UpstreamUnavailableError):
    """Airtable answered 429; safe to retry after a short pause."""


def rate_limit_delay(attempt: int, *, base: float = 0.2, cap: float = 2.0) -> float:
    # exponential backoff met jitter, Airtable staat 5 req/s per base toe
    delay = min(base * (2 ** attempt), cap)
    return delay + random.uniform(0, delay * 0.25)


# ----------------------------------------------------
# Formula helpers
# ----------------------------------------------------
def formula_literal(value: Any) -> str:
    if isinstance(value, bool):
        return "TRUE()" if value else "FALSE()"
    if isinstance(value, (int, float)):
        return str(value)
    text = str(value).replace("\\", "\\\\").replace("'", "\\'")
    return f"'{text}'"


def build_formula(
    where: Optional[Mapping[str, Any]] = None,
    linked: Optional[Mapping[str, str]] = None,
) -> Optional[str]:
    clauses: List[str] = []
    for field, value in (where or {}).items():
        clauses.append(f"{{{field}}} = {formula_literal(value)}")
    for field, record_id in (linked or {}).items():
        clauses.append(f"FIND({formula_literal(record_id)}, ARRAYJOIN({{{field}}}))")

    if not clauses:
        return None
    if len(clauses) == 1:
        return clauses[0]
    return "AND(" + ", ".join(clauses) + ")"


class AirtableStore:
    """Airtable REST client voor de vijf tabellen van de quote engine."""

    def __init__(
        self,
        api_key: Optional[str],
        base_id: Optional[str],
        *,
        api_url: str = "https://api.airtable.com/v0",
        timeout: float = 30.0,
        rate_limit_retries: int = 3,
        table_names: Sequence[str] = (),
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.api_key = api_key
        self.base_id = base_id
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self.rate_limit_retries = rate_limit_retries
        self.table_names = list(table_names)
        self.session = session or requests.Session()
        self._sleep = sleep

        if not api_key:
            logger.warning("AIRTABLE_API_KEY is not set; every store call will fail")

    @classmethod
    def from_settings(cls, s: Settings) -> "AirtableStore":
        return cls(
            s.AIRTABLE_API_KEY,
            s.AIRTABLE_BASE_ID,
            api_url=s.AIRTABLE_API_URL,
            timeout=s.AIRTABLE_TIMEOUT_SECONDS,
            rate_limit_retries=s.AIRTABLE_RATE_LIMIT_RETRIES,
            table_names=s.table_names(),
        )

    # ----------------------------------------------------
    # Transport
    # ----------------------------------------------------
    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        body: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        if not self.api_key:
            raise UpstreamUnavailableError(
                "Airtable is not configured: AIRTABLE_API_KEY is missing"
            )
        if not self.base_id:
            raise UpstreamUnavailableError(
                "Airtable is not configured: AIRTABLE_BASE_ID is missing"
            )

        # alleen 429 wordt herhaald; de laatste poging laat de fout door
        for attempt in range(max(self.rate_limit_retries, 1) - 1):
            try:
                return self._send(method, path, params=params, body=body)
            except RateLimitedError:
                delay = rate_limit_delay(attempt)
                logger.warning("airtable 429 on %s %s, retry #%s in %.2fs", method, path, attempt + 1, delay)
                self._sleep(delay)
        return self._send(method, path, params=params, body=body)

    def _send(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]],
        body: Optional[Dict[str, Any]],
    ) -> Dict[str, Any]:
        url = f"{self.api_url}/{self.base_id}/{path}"
        try:
            r = self.session.request(
                method,
                url,
                headers=self._headers(),
                params=params,
                json=body,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise UpstreamUnavailableError(
                f"airtable_network_error:{type(e).__name__}:{e}"
            ) from e

        if r.status_code in (401, 403):
            tables = ", ".join(self.table_names) or "(unknown)"
            raise UpstreamUnavailableError(
                "Airtable authentication failed. Check that the API key is valid, "
                f"that it has access to base {self.base_id} and that the table names "
                f"are correct ({tables}). Error: {r.text}"
            )
        if r.status_code == 404:
            raise NotFoundError(f"Airtable record not found: {path}")
        if r.status_code == 429:
            raise RateLimitedError("Airtable rate limit exceeded")
        if r.status_code >= 500:
            raise UpstreamUnavailableError(f"Airtable unavailable: {r.status_code}")
        if r.status_code >= 300:
            try:
                data: Any = r.json()
            except ValueError:
                data = {"raw": r.text}
            raise StoreError(f"airtable_request_failed:{r.status_code}:{data}")

        try:
            return r.json()
        except ValueError as e:
            raise StoreError(f"airtable_invalid_json:{r.status_code}:{r.text[:200]}") from e

    @staticmethod
    def _path(table: str, record_id: Optional[str] = None) -> str:
        path = quote(table, safe="")
        if record_id:
            path += "/" + quote(record_id, safe="")
        return path

    # ----------------------------------------------------
    # RecordStore
    # ----------------------------------------------------
    def get(self, table: str, record_id: str) -> Record:
        return self._request("GET", self._path(table, record_id))

    def list(
        self,
        table: str,
        *,
        where: Optional[Mapping[str, Any]] = None,
        linked: Optional[Mapping[str, str]] = None,
        sort: Optional[SortSpec] = None,
        max_records: Optional[int] = None,
    ) -> List[Record]:
        params: Dict[str, Any] = {}
        formula = build_formula(where, linked)
        if formula:
            params["filterByFormula"] = formula
        for i, (field, direction) in enumerate(sort or ()):
            params[f"sort[{i}][field]"] = field
            params[f"sort[{i}][direction]"] = direction
        if max_records is not None:
            params["maxRecords"] = max_records

        records: List[Record] = []
        while True:
            page = self._request("GET", self._path(table), params=dict(params))
            records.extend(page.get("records", []))
            offset = page.get("offset")
            if not offset:
                break
            params["offset"] = offset
        return records

    def create(self, table: str, fields: Mapping[str, Any]) -> Record:
        return self._request("POST", self._path(table), body={"fields": dict(fields)})

    def update(self, table: str, record_id: str, fields: Mapping[str, Any]) -> Record:
        return self._request(
            "PATCH", self._path(table, record_id), body={"fields": dict(fields)}
        )
