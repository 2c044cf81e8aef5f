# evquote/core/errors.py
from __future__ import annotations

from typing import Optional


class QuoteServiceError(RuntimeError):
    """Base for every error the API turns into a `{"success": false}` response."""

    status_code: int = 500

    def __init__(self, message: str, *, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class UpstreamUnavailableError(QuoteServiceError):
    """Record store unreachable, misconfigured or refusing our credentials."""

    status_code = 503


class StoreError(QuoteServiceError):
    """Record store answered, but not with something we can use."""

    status_code = 502


class NotFoundError(QuoteServiceError):
    status_code = 404


class MalformedStoredData(QuoteServiceError):
    """A persisted quote payload no longer parses into a Quote."""

    status_code = 500


class InvalidTransitionError(QuoteServiceError):
    status_code = 409


class PartialWriteError(QuoteServiceError):
    """Quote status was written, the linked project status was not."""

    status_code = 500

    def __init__(self, message: str, *, quote_id: str, project_id: str):
        super().__init__(message)
        self.quote_id = quote_id
        self.project_id = project_id


class InvalidInputError(QuoteServiceError):
    """Request input that passed schema validation but is still unusable."""

    status_code = 400
