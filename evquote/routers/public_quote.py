# evquote/routers/public_quote.py
from __future__ import annotations

from typing import Literal, Optional

from fastapi import APIRouter, Depends
from pydantic import Field

from evquote.core.responses import ok
from evquote.dependencies import get_lifecycle
from evquote.schemas.common import CamelModel
from evquote.services.quote_lifecycle import QuoteLifecycleManager

router = APIRouter(prefix="/api", tags=["public_quote"])


class CustomerDecision(CamelModel):
    quote_id: str = Field(min_length=1)
    project_id: str = Field(min_length=1)
    decision: Literal["accept", "reject"]
    reason: Optional[str] = None


@router.get("/quote/{token}")
def public_quote(token: str, lifecycle: QuoteLifecycleManager = Depends(get_lifecycle)):
    # eerste bezoek zet "Quote Sent" -> "Quote Viewed", daarna geen effect
    quote = lifecycle.quote_for_token(token)
    return ok(quote.to_api())


@router.post("/customer-decision")
def customer_decision(payload: CustomerDecision, lifecycle: QuoteLifecycleManager = Depends(get_lifecycle)):
    result = lifecycle.record_decision(
        payload.quote_id,
        payload.project_id,
        accept=payload.decision == "accept",
        reason=payload.reason,
    )
    return ok({"status": result.status.value, "changed": result.changed})
