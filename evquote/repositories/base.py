# evquote/repositories/base.py
from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence, Tuple

# Airtable-shaped record: {"id": "rec...", "fields": {...}, "createdTime": "..."}
Record = Dict[str, Any]
SortSpec = Sequence[Tuple[str, str]]  # (field, "asc" | "desc")


class RecordStore(Protocol):
    """
    Narrow gateway to the external record store.

    `where` matches fields by equality (all must match); `linked` matches
    linked-record fields that contain the given record id.
    """

    def get(self, table: str, record_id: str) -> Record: ...

    def list(
        self,
        table: str,
        *,
        where: Optional[Mapping[str, Any]] = None,
        linked: Optional[Mapping[str, str]] = None,
        sort: Optional[SortSpec] = None,
        max_records: Optional[int] = None,
    ) -> List[Record]: ...

    def create(self, table: str, fields: Mapping[str, Any]) -> Record: ...

    def update(self, table: str, record_id: str, fields: Mapping[str, Any]) -> Record: ...
