# evquote/main.py
import time

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from evquote.config import settings
from evquote.core.errors import (
    NotFoundError,
    QuoteServiceError,
    StoreError,
    UpstreamUnavailableError,
)
from evquote.core.logging_config import logger, setup_logging
from evquote.core.responses import fail
from evquote.observability.metrics import latency_hist, router as metrics_router, store_error_counter
from evquote.routers import projects, public_quote, quotes

# ----------------------------------------------------
# App init
# ----------------------------------------------------
app = FastAPI(title="EV Quote", version="0.1.0")

setup_logging(settings.log_level)
logger.info("startup", service="evquote-api", env=settings.app_env)


# ----------------------------------------------------
# Health
# ----------------------------------------------------
@app.get("/health", include_in_schema=True)
def health() -> dict:
    return {"status": "ok"}


# ----------------------------------------------------
# Logging middleware
# ----------------------------------------------------
@app.middleware("http")
async def logging_middleware(request: Request, call_next):
    start = time.time()

    request_id = request.headers.get("X-Request-ID", "unknown")
    client_ip = request.client.host if request.client else "unknown"

    bound_logger = logger.bind(
        request_id=request_id,
        ip=client_ip,
        endpoint=str(request.url.path),
        method=request.method,
    )

    bound_logger.info("request_started")
    response = await call_next(request)
    elapsed = time.time() - start

    # route template, niet het pad: tokens en ids horen niet in labels
    route = request.scope.get("route")
    latency_hist.labels(route=getattr(route, "path", "unmatched")).observe(elapsed)

    bound_logger.bind(status_code=response.status_code, latency_ms=round(elapsed * 1000, 2)).info(
        "request_finished"
    )
    return response


# ----------------------------------------------------
# Middleware
# ----------------------------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ----------------------------------------------------
# Errors -> {"success": false, "error": ...}
# ----------------------------------------------------
@app.exception_handler(QuoteServiceError)
def quote_service_error_handler(request: Request, exc: QuoteServiceError):
    if isinstance(exc, UpstreamUnavailableError):
        store_error_counter.labels(kind="upstream").inc()
    elif isinstance(exc, NotFoundError):
        store_error_counter.labels(kind="not_found").inc()
    elif isinstance(exc, StoreError):
        store_error_counter.labels(kind="store").inc()

    if exc.status_code >= 500:
        logger.error(
            "request_failed",
            endpoint=str(request.url.path),
            error_type=type(exc).__name__,
            error=exc.message,
        )
    return fail(exc.message, exc.status_code)


@app.exception_handler(RequestValidationError)
def validation_error_handler(request: Request, exc: RequestValidationError):
    return fail("Invalid request", 422, details=jsonable_encoder(exc.errors()))


@app.exception_handler(Exception)
def unhandled_error_handler(request: Request, exc: Exception):
    logger.error(
        "request_crashed",
        endpoint=str(request.url.path),
        error_type=type(exc).__name__,
        exc_info=exc,
    )
    return fail("Internal server error", 500)


# ----------------------------------------------------
# Routers
# ----------------------------------------------------
app.include_router(projects.router)
app.include_router(quotes.router)
app.include_router(public_quote.router)
if settings.metrics_enabled:
    app.include_router(metrics_router)  # /metrics
