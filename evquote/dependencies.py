# evquote/dependencies.py
from __future__ import annotations

from functools import lru_cache

from evquote.config import get_settings
from evquote.repositories.airtable import AirtableStore
from evquote.repositories.base import RecordStore
from evquote.repositories.memory import MemoryStore
from evquote.services.projects import ProjectService
from evquote.services.quote_assembler import QuoteAssembler
from evquote.services.quote_lifecycle import QuoteLifecycleManager
from evquote.services.share_links import InMemoryShareLinkStore, ShareLinkStore, SignedShareLinkStore


@lru_cache(maxsize=1)
def get_store() -> RecordStore:
    s = get_settings()
    backend = (s.RECORD_STORE_BACKEND or "airtable").strip().lower()
    if backend == "memory":
        return MemoryStore()
    if backend == "airtable":
        return AirtableStore.from_settings(s)
    raise ValueError(f"Unknown RECORD_STORE_BACKEND: {backend!r}")


@lru_cache(maxsize=1)
def get_share_links() -> ShareLinkStore:
    s = get_settings()
    if s.SHARE_LINK_SECRET:
        return SignedShareLinkStore(s.SHARE_LINK_SECRET)
    return InMemoryShareLinkStore()


def get_project_service() -> ProjectService:
    s = get_settings()
    return ProjectService(get_store(), projects_table=s.PROJECTS_TABLE, photos_table=s.PHOTOS_TABLE)


def get_assembler() -> QuoteAssembler:
    return QuoteAssembler.from_settings(get_store(), get_settings())


@lru_cache(maxsize=1)
def get_lifecycle() -> QuoteLifecycleManager:
    # gecached: de per-quote locks moeten over requests heen gedeeld worden
    return QuoteLifecycleManager.from_settings(
        get_store(),
        get_assembler(),
        get_share_links(),
        get_settings(),
    )
