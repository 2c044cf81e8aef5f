# evquote/observability/metrics.py
from fastapi import APIRouter
from starlette.responses import Response

from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest

router = APIRouter(tags=["observability"])

quotes_generated_counter = Counter(
    "evquote_quotes_generated_total",
    "Aantal gegenereerde quote-versies",
    ["kind"],  # new|revision
)

quote_transition_counter = Counter(
    "evquote_quote_transitions_total",
    "Statuswijzigingen van quotes",
    ["status", "result"],  # result: applied|skipped|rejected|partial
)

store_error_counter = Counter(
    "evquote_store_errors_total",
    "Fouten richting de record store",
    ["kind"],  # upstream|not_found|store
)

latency_hist = Histogram(
    "evquote_api_latency_seconds",
    "API latency per route",
    ["route"],
)


@router.get("/metrics", include_in_schema=True)
def metrics() -> Response:
    # Prometheus expects text/plain; version=0.0.4
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
