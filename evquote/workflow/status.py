# evquote/workflow/status.py
from __future__ import annotations

from typing import Dict, FrozenSet, Optional

from evquote.schemas.quote import QuoteStatus

# Project Status kolom in Airtable
PROJECT_NEW = "New"
PROJECT_PHOTOS_UPLOADED = "Photos Uploaded"
PROJECT_QUOTE_DRAFT = "Quote Draft"
PROJECT_QUOTE_SENT = "Quote Sent"
PROJECT_QUOTE_VIEWED = "Quote Viewed"
PROJECT_ACCEPTED = "Accepted"
PROJECT_REJECTED = "Rejected"

PROJECT_STATUSES = (
    PROJECT_NEW,
    PROJECT_PHOTOS_UPLOADED,
    PROJECT_QUOTE_DRAFT,
    PROJECT_QUOTE_SENT,
    PROJECT_QUOTE_VIEWED,
    PROJECT_ACCEPTED,
    PROJECT_REJECTED,
)

PROJECT_STATUS_FOR: Dict[QuoteStatus, str] = {
    QuoteStatus.DRAFT: PROJECT_QUOTE_DRAFT,
    QuoteStatus.SENT: PROJECT_QUOTE_SENT,
    QuoteStatus.VIEWED: PROJECT_QUOTE_VIEWED,
    QuoteStatus.ACCEPTED: PROJECT_ACCEPTED,
    QuoteStatus.REJECTED: PROJECT_REJECTED,
}

QUOTE_TERMINAL: FrozenSet[QuoteStatus] = frozenset({QuoteStatus.ACCEPTED, QuoteStatus.REJECTED})

# draft komt alleen via (her)genereren, nooit via een transition
ALLOWED_TRANSITIONS: Dict[QuoteStatus, FrozenSet[QuoteStatus]] = {
    QuoteStatus.DRAFT: frozenset({QuoteStatus.SENT}),
    QuoteStatus.SENT: frozenset(
        {QuoteStatus.SENT, QuoteStatus.VIEWED, QuoteStatus.ACCEPTED, QuoteStatus.REJECTED}
    ),
    QuoteStatus.VIEWED: frozenset(
        {QuoteStatus.SENT, QuoteStatus.VIEWED, QuoteStatus.ACCEPTED, QuoteStatus.REJECTED}
    ),
    QuoteStatus.ACCEPTED: frozenset(),
    QuoteStatus.REJECTED: frozenset(),
}


def can_transition(current: Optional[QuoteStatus], new: QuoteStatus) -> bool:
    return new in ALLOWED_TRANSITIONS[current or QuoteStatus.DRAFT]


def is_repeat_of_terminal(current: Optional[QuoteStatus], new: QuoteStatus) -> bool:
    """Accepting an accepted quote again is a no-op, not an error."""
    return current in QUOTE_TERMINAL and current == new
