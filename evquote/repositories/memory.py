# evquote/repositories/memory.py
from __future__ import annotations

import copy
import secrets
import string
import threading
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

from evquote.core.errors import NotFoundError
from evquote.repositories.base import Record, SortSpec

_ID_ALPHABET = string.ascii_letters + string.digits


def _new_record_id() -> str:
    return "rec" + "".join(secrets.choice(_ID_ALPHABET) for _ in range(14))


def _sort_key(value: Any):
    # None altijd achteraan bij asc
    return (value is None, value if value is not None else 0)


class MemoryStore:
    """
    In-process record store with Airtable semantics.

    Used by the test-suite and for local runs without Airtable credentials.
    Records are copied in and out so callers never share state with the store.
    """

    def __init__(self, tables: Optional[Dict[str, List[Record]]] = None):
        self._lock = threading.Lock()
        self._tables: Dict[str, Dict[str, Record]] = {}
        for table, records in (tables or {}).items():
            for rec in records:
                self.seed(table, rec.get("fields", {}), record_id=rec.get("id"))

    def seed(self, table: str, fields: Mapping[str, Any], *, record_id: Optional[str] = None) -> Record:
        with self._lock:
            rec = {
                "id": record_id or _new_record_id(),
                "fields": copy.deepcopy(dict(fields)),
                "createdTime": datetime.now(timezone.utc).isoformat(),
            }
            self._tables.setdefault(table, {})[rec["id"]] = rec
            return copy.deepcopy(rec)

    def get(self, table: str, record_id: str) -> Record:
        with self._lock:
            rec = self._tables.get(table, {}).get(record_id)
            if rec is None:
                raise NotFoundError(f"Record not found: {table}/{record_id}")
            return copy.deepcopy(rec)

    def list(
        self,
        table: str,
        *,
        where: Optional[Mapping[str, Any]] = None,
        linked: Optional[Mapping[str, str]] = None,
        sort: Optional[SortSpec] = None,
        max_records: Optional[int] = None,
    ) -> List[Record]:
        with self._lock:
            rows = [copy.deepcopy(r) for r in self._tables.get(table, {}).values()]

        def matches(rec: Record) -> bool:
            fields = rec["fields"]
            for field, value in (where or {}).items():
                if fields.get(field) != value:
                    return False
            for field, record_id in (linked or {}).items():
                if record_id not in (fields.get(field) or []):
                    return False
            return True

        rows = [r for r in rows if matches(r)]
        # stabiele sort: laatste sleutel eerst
        for field, direction in reversed(list(sort or ())):
            rows.sort(
                key=lambda r: _sort_key(r["fields"].get(field)),
                reverse=direction.lower() == "desc",
            )
        if max_records is not None:
            rows = rows[:max_records]
        return rows

    def create(self, table: str, fields: Mapping[str, Any]) -> Record:
        return self.seed(table, fields)

    def update(self, table: str, record_id: str, fields: Mapping[str, Any]) -> Record:
        with self._lock:
            rec = self._tables.get(table, {}).get(record_id)
            if rec is None:
                raise NotFoundError(f"Record not found: {table}/{record_id}")
            rec["fields"].update(copy.deepcopy(dict(fields)))
            return copy.deepcopy(rec)
