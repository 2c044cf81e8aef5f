# evquote/services/quote_lifecycle.py
from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple

from pydantic import ValidationError

from evquote.config import Settings
from evquote.core.errors import (
    InvalidTransitionError,
    MalformedStoredData,
    NotFoundError,
    PartialWriteError,
)
from evquote.observability.metrics import quote_transition_counter, quotes_generated_counter
from evquote.repositories.base import Record, RecordStore
from evquote.schemas.assessment import QuoteForm
from evquote.schemas.project import Project
from evquote.schemas.quote import Quote, QuoteStatus, QuoteVersion
from evquote.services.quote_assembler import QuoteAssembler
from evquote.services.quote_ids import new_quote_id
from evquote.services.share_links import ShareLinkStore
from evquote.workflow.status import (
    PROJECT_QUOTE_DRAFT,
    PROJECT_QUOTE_SENT,
    PROJECT_STATUS_FOR,
    can_transition,
    is_repeat_of_terminal,
)

logger = logging.getLogger(__name__)

# (quote_id, project_id, new_status, error) -> None
PartialWriteHook = Callable[[str, str, QuoteStatus, Exception], None]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class KeyedLocks:
    """
    One lock per key (project id, quote id). Only guards this process.

    An entry lives only while someone holds or waits for it.
    """

    def __init__(self):
        self._guard = threading.Lock()
        # key -> [lock, holders + waiters]
        self._locks: Dict[str, List[Any]] = {}

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)

    @contextmanager
    def __call__(self, key: str) -> Iterator[None]:
        with self._guard:
            entry = self._locks.setdefault(key, [threading.Lock(), 0])
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[key]


@dataclass
class TransitionResult:
    quote_id: str
    project_id: str
    status: QuoteStatus
    project_status: str
    changed: bool = True


@dataclass
class SendResult:
    shareable_link: str
    token: str
    transition: TransitionResult


def version_from_record(record: Record) -> QuoteVersion:
    """
    Parse one QUOTES row. A payload that no longer parses gives
    `quote_data=None` instead of failing the caller.
    """
    fields = record.get("fields") or {}
    raw = fields.get("Quote Data")

    quote: Optional[Quote] = None
    if raw:
        try:
            if isinstance(raw, str):
                quote = Quote.model_validate_json(raw)
            else:
                quote = Quote.model_validate(raw)
        except ValidationError as e:
            logger.warning(
                "Error parsing quote data for record %s: %s error(s)",
                record.get("id"),
                e.error_count(),
            )

    version = QuoteVersion(
        id=record["id"],
        quote_id=fields.get("Quote ID") or "",
        project_id=fields.get("Project ID"),
        customer_name=fields.get("Customer Name"),
        customer_email=fields.get("Customer Email"),
        total_amount=fields.get("Total Amount"),
        quote_data=quote,
        status=fields.get("Status"),
        date_created=fields.get("Date Created"),
        version=fields.get("Version") or 1,
        modified_by=fields.get("Modified By") or "Unknown",
    )

    # Status kolom is leidend; de JSON snapshot blijft ongewijzigd in de store
    if version.quote_data is not None and version.status is not None:
        version.quote_data = version.quote_data.model_copy(update={"status": version.status})
    return version


def latest_per_quote(versions: List[QuoteVersion]) -> List[QuoteVersion]:
    latest: Dict[str, QuoteVersion] = {}
    for v in versions:
        existing = latest.get(v.quote_id)
        if existing is None or v.version > existing.version:
            latest[v.quote_id] = v
    return list(latest.values())


class QuoteLifecycleManager:
    """
    Quote ids, versioned persistence and status transitions.

    Every status change writes the quote record first and the project record
    second. The two writes are not atomic: when the second one fails the
    `on_partial_write` hook is called and PartialWriteError is raised.
    """

    def __init__(
        self,
        store: RecordStore,
        assembler: QuoteAssembler,
        share_links: ShareLinkStore,
        *,
        projects_table: str = "PROJECTS",
        quotes_table: str = "QUOTES",
        public_base_url: str = "http://localhost:8000",
        modified_by: str = "System",
        on_partial_write: Optional[PartialWriteHook] = None,
        clock: Callable[[], datetime] = _utcnow,
        id_factory: Callable[[], str] = new_quote_id,
    ):
        self.store = store
        self.assembler = assembler
        self.share_links = share_links
        self.projects_table = projects_table
        self.quotes_table = quotes_table
        self.public_base_url = public_base_url.rstrip("/")
        self.modified_by = modified_by
        self.on_partial_write = on_partial_write
        self.clock = clock
        self.id_factory = id_factory

        self._project_locks = KeyedLocks()
        self._quote_locks = KeyedLocks()

    @classmethod
    def from_settings(
        cls,
        store: RecordStore,
        assembler: QuoteAssembler,
        share_links: ShareLinkStore,
        s: Settings,
        **kwargs: Any,
    ) -> "QuoteLifecycleManager":
        return cls(
            store,
            assembler,
            share_links,
            projects_table=s.PROJECTS_TABLE,
            quotes_table=s.QUOTES_TABLE,
            public_base_url=s.PUBLIC_BASE_URL,
            **kwargs,
        )

    # ----------------------------------------------------
    # Projects
    # ----------------------------------------------------
    def get_project(self, project_id: str) -> Project:
        return Project.from_record(self.store.get(self.projects_table, project_id))

    def update_project_status(self, project_id: str, status: str) -> Project:
        record = self.store.update(self.projects_table, project_id, {"Project Status": status})
        return Project.from_record(record)

    # ----------------------------------------------------
    # Quote ids
    # ----------------------------------------------------
    def get_or_create_quote_id(self, project_id: str) -> Tuple[str, bool]:
        """Return (quote_id, created). Idempotent per project."""
        with self._project_locks(project_id):
            project = self.get_project(project_id)
            if project.quote_id:
                return project.quote_id, False

            quote_id = self.id_factory()
            self.store.update(self.projects_table, project_id, {"Quote ID": quote_id})
            logger.info("minted quote id %s for project %s", quote_id, project_id)
            return quote_id, True

    # ----------------------------------------------------
    # Versions
    # ----------------------------------------------------
    def _version_records(self, quote_id: str) -> List[Record]:
        return self.store.list(
            self.quotes_table,
            where={"Quote ID": quote_id},
            sort=[("Version", "desc")],
        )

    def persist_quote(
        self,
        quote: Quote,
        is_revision: bool = False,
        *,
        modified_by: Optional[str] = None,
    ) -> QuoteVersion:
        """Append a new version record; earlier versions are never touched."""
        with self._quote_locks(quote.quote_id):
            version = 1
            if is_revision:
                existing = self._version_records(quote.quote_id)
                if existing:
                    version = max(int(r["fields"].get("Version") or 1) for r in existing) + 1

            record = self.store.create(
                self.quotes_table,
                {
                    "Quote ID": quote.quote_id,
                    "Project ID": quote.project_id,
                    "Customer Name": quote.customer.name,
                    "Customer Email": quote.customer.email,
                    "Total Amount": float(quote.pricing.total),
                    "Quote Data": quote.model_dump_json(by_alias=True),
                    "Status": quote.status.value,
                    "Date Created": self.clock().isoformat(),
                    "Version": version,
                    "Modified By": modified_by or self.modified_by,
                },
            )

        quotes_generated_counter.labels(kind="revision" if version > 1 else "new").inc()
        logger.info("saved quote %s version %s", quote.quote_id, version)
        return version_from_record(record)

    def list_versions(self, quote_id: str) -> List[QuoteVersion]:
        versions = [version_from_record(r) for r in self._version_records(quote_id)]
        versions.sort(key=lambda v: v.version, reverse=True)
        return versions

    def get_current(self, quote_id: str) -> QuoteVersion:
        versions = self.list_versions(quote_id)
        if not versions:
            raise NotFoundError(f"Quote {quote_id} not found")
        return versions[0]

    def get_current_quote(self, quote_id: str) -> Quote:
        current = self.get_current(quote_id)
        if current.quote_data is None:
            raise MalformedStoredData(
                f"Quote {quote_id} version {current.version} has unreadable quote data"
            )
        return current.quote_data

    def list_all(self, status_filter: Optional[QuoteStatus] = None) -> List[QuoteVersion]:
        """Latest version of every quote id, optionally only those in `status_filter`."""
        records = self.store.list(self.quotes_table, sort=[("Date Created", "desc")])
        latest = latest_per_quote([version_from_record(r) for r in records])
        if status_filter is not None:
            latest = [v for v in latest if v.status == status_filter]
        return latest

    # ----------------------------------------------------
    # Generation
    # ----------------------------------------------------
    def generate_quote(self, assessment: QuoteForm) -> Quote:
        quote_id, created = self.get_or_create_quote_id(assessment.project_id)
        quote = self.assembler.assemble_quote(assessment, quote_id=quote_id)

        # bestaande id => nieuwe versie naast de oude
        self.persist_quote(quote, is_revision=not created)
        self.update_project_status(assessment.project_id, PROJECT_QUOTE_DRAFT)
        return quote

    # ----------------------------------------------------
    # Status
    # ----------------------------------------------------
    def transition(
        self,
        quote_id: str,
        project_id: str,
        new_status: QuoteStatus,
        reason: Optional[str] = None,
    ) -> TransitionResult:
        new_status = QuoteStatus.parse(new_status)
        project_status = PROJECT_STATUS_FOR[new_status]

        current = self.get_current(quote_id)
        if is_repeat_of_terminal(current.status, new_status):
            quote_transition_counter.labels(status=new_status.value, result="skipped").inc()
            return TransitionResult(quote_id, project_id, new_status, project_status, changed=False)
        if not can_transition(current.status, new_status):
            quote_transition_counter.labels(status=new_status.value, result="rejected").inc()
            raise InvalidTransitionError(
                f"Quote {quote_id} cannot go from "
                f"{current.status.value if current.status else 'draft'} to {new_status.value}"
            )

        self.store.update(self.quotes_table, current.id, {"Status": new_status.value})
        try:
            self.update_project_status(project_id, project_status)
        except Exception as e:
            quote_transition_counter.labels(status=new_status.value, result="partial").inc()
            logger.error(
                "STATUS DRIFT: quote %s is %s but project %s could not be set to %r: %s",
                quote_id,
                new_status.value,
                project_id,
                project_status,
                e,
            )
            if self.on_partial_write is not None:
                self.on_partial_write(quote_id, project_id, new_status, e)
            raise PartialWriteError(
                f"Quote {quote_id} updated to {new_status.value}, project {project_id} was not",
                quote_id=quote_id,
                project_id=project_id,
            ) from e

        if reason:
            logger.info("quote %s -> %s, reason: %s", quote_id, new_status.value, reason)
        quote_transition_counter.labels(status=new_status.value, result="applied").inc()
        return TransitionResult(quote_id, project_id, new_status, project_status)

    def shareable_link(self, token: str) -> str:
        return f"{self.public_base_url}/quote/{token}"

    def send_quote(self, quote_id: str, project_id: str) -> SendResult:
        result = self.transition(quote_id, project_id, QuoteStatus.SENT)
        token = self.share_links.put(quote_id)
        return SendResult(shareable_link=self.shareable_link(token), token=token, transition=result)

    def mark_viewed(self, quote_id: str, project_id: str) -> bool:
        """First customer view while the project is "Quote Sent"; anything else is left alone."""
        project = self.get_project(project_id)
        if project.status != PROJECT_QUOTE_SENT:
            quote_transition_counter.labels(status=QuoteStatus.VIEWED.value, result="skipped").inc()
            return False
        return self.transition(quote_id, project_id, QuoteStatus.VIEWED).changed

    def quote_for_token(self, token: str) -> Quote:
        quote_id = self.share_links.resolve(token)
        if not quote_id:
            raise NotFoundError("Quote not found")

        current = self.get_current(quote_id)
        if current.quote_data is None:
            raise NotFoundError("Quote not found")

        quote = current.quote_data.model_copy(update={"shareable_link": self.shareable_link(token)})
        if self.mark_viewed(quote_id, quote.project_id):
            quote = quote.model_copy(update={"status": QuoteStatus.VIEWED})
        return quote

    def record_decision(
        self,
        quote_id: str,
        project_id: str,
        accept: bool,
        reason: Optional[str] = None,
    ) -> TransitionResult:
        new_status = QuoteStatus.ACCEPTED if accept else QuoteStatus.REJECTED
        result = self.transition(quote_id, project_id, new_status)

        # reden gaat alleen naar de log, niet in het Quote schema
        if result.changed:
            logger.info(
                "Customer %s quote %s%s",
                "accepted" if accept else "rejected",
                quote_id,
                f" (reason: {reason})" if reason else "",
            )
        return result
