# evquote/routers/quotes.py
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import ConfigDict, Field
from pydantic.alias_generators import to_camel

from evquote.core.errors import InvalidInputError
from evquote.core.responses import ok
from evquote.dependencies import get_lifecycle
from evquote.schemas.assessment import QuoteForm
from evquote.schemas.common import CamelModel
from evquote.schemas.quote import QuoteStatus
from evquote.services.quote_lifecycle import QuoteLifecycleManager

router = APIRouter(prefix="/api", tags=["quotes"])


class StatusChange(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    project_id: str = Field(min_length=1)
    status: QuoteStatus
    reason: Optional[str] = None


class SendQuoteRequest(CamelModel):
    quote_id: str = Field(min_length=1)
    project_id: str = Field(min_length=1)


def _status_filter(raw: Optional[str]) -> Optional[QuoteStatus]:
    if raw is None or not raw.strip() or raw.strip().lower() == "all":
        return None
    try:
        return QuoteStatus.parse(raw)
    except ValueError:
        raise InvalidInputError(f"Unknown quote status: {raw!r}") from None


@router.get("/get-or-create-quote")
def get_or_create_quote(
    project_id: str = Query(..., alias="projectId", min_length=1),
    lifecycle: QuoteLifecycleManager = Depends(get_lifecycle),
):
    quote_id, created = lifecycle.get_or_create_quote_id(project_id)
    return ok({"quoteId": quote_id, "created": created})


@router.post("/generate-quote")
def generate_quote(
    assessment: QuoteForm,
    lifecycle: QuoteLifecycleManager = Depends(get_lifecycle),
):
    quote = lifecycle.generate_quote(assessment)
    return ok(quote.to_api())


@router.get("/quotes")
def list_quotes(
    status: Optional[str] = Query(None),
    lifecycle: QuoteLifecycleManager = Depends(get_lifecycle),
):
    versions = lifecycle.list_all(_status_filter(status))
    return ok([v.to_api() for v in versions])


@router.get("/quotes/{quote_id}")
def get_current_quote(quote_id: str, lifecycle: QuoteLifecycleManager = Depends(get_lifecycle)):
    return ok(lifecycle.get_current_quote(quote_id).to_api())


@router.get("/quotes/{quote_id}/versions")
def list_quote_versions(quote_id: str, lifecycle: QuoteLifecycleManager = Depends(get_lifecycle)):
    return ok([v.to_api() for v in lifecycle.list_versions(quote_id)])


@router.post("/quotes/{quote_id}/status")
def change_quote_status(
    quote_id: str,
    payload: StatusChange,
    lifecycle: QuoteLifecycleManager = Depends(get_lifecycle),
):
    result = lifecycle.transition(quote_id, payload.project_id, payload.status, payload.reason)
    return ok(
        {
            "quoteId": result.quote_id,
            "projectId": result.project_id,
            "status": result.status.value,
            "projectStatus": result.project_status,
            "changed": result.changed,
        }
    )


@router.post("/send-quote")
def send_quote(payload: SendQuoteRequest, lifecycle: QuoteLifecycleManager = Depends(get_lifecycle)):
    sent = lifecycle.send_quote(payload.quote_id, payload.project_id)
    return ok({"shareableLink": sent.shareable_link, "token": sent.token})
