"""FastAPI application instance."""
from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse

from mailtrack.api.routes import messages, segments, subscribers, webhooks, workspaces
from mailtrack.core.config import settings
from mailtrack.core.exceptions import SubscriptionConfirmationError, UnknownEventTypeError
from mailtrack.db import models
from mailtrack.db.session import engine
from mailtrack.utils.logger import configure_logging, logger


@asynccontextmanager
async def lifespan(app: FastAPI):  # pragma: no cover - startup hook
    configure_logging()
    # Ensure tables exist for local development. Alembic should manage in production.
    models.Base.metadata.create_all(bind=engine)
    logger.info("%s %s started (environment=%s)", settings.app_name, settings.api_version, settings.environment)
    yield


app = FastAPI(
    title=settings.app_name,
    version=settings.api_version,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(UnknownEventTypeError)
async def unknown_event_type_handler(request: Request, exc: UnknownEventTypeError) -> PlainTextResponse:
    logger.warning("Unhandled SES event type %r on %s", exc.event_type, request.url.path)
    return PlainTextResponse("Not Found", status_code=status.HTTP_404_NOT_FOUND)


@app.exception_handler(SubscriptionConfirmationError)
async def subscription_confirmation_handler(request: Request, exc: SubscriptionConfirmationError) -> PlainTextResponse:
    logger.error("SNS subscription confirmation failed url=%s reason=%s", exc.url, exc.reason)
    return PlainTextResponse("Subscription confirmation failed", status_code=status.HTTP_502_BAD_GATEWAY)


app.include_router(webhooks.router)
app.include_router(workspaces.router)
app.include_router(subscribers.router)
app.include_router(segments.router)
app.include_router(messages.router)


@app.get("/health", tags=["system"])
async def health() -> dict[str, str]:
    """Simple uptime check."""

    return {"status": "ok"}
