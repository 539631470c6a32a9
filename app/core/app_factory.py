"""Application factory for FastAPI app.

Centralizes app construction (metadata, middleware, handlers, routers) and
owns the lifecycle of the stateful collaborators: the submission ledger and
the mail senders are built here, stored on ``app.state`` and injected into
handlers. Tests pass their own instances for isolation.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from app.adapters.mail.factory import MailSenders, create_mail_senders
from app.adapters.rate_limit.base import AbstractSubmissionLedger
from app.adapters.rate_limit.in_memory import InMemorySubmissionLedger
from app.api.routes import forms_router, health_router, limits_router
from app.core.config import Settings, settings as default_settings
from app.core.exception_handlers import setup_exception_handlers
from app.core.logging import configure_logging
from app.core.middleware import request_id_middleware
from app.core.openapi import apply_openapi_customizations
from app.services.relay_service import FormRelayService

logger = logging.getLogger(__name__)


async def _verify_senders(senders: MailSenders) -> None:
    for label, sender in (("admin", senders.admin), ("hr", senders.hr)):
        result = await sender.verify()
        if result.success:
            logger.info("mail.sender_ready", extra={"sender": label})
        else:
            logger.error("mail.sender_unavailable", extra={"sender": label, "error": result.error})


def create_app(
    *,
    app_settings: Settings | None = None,
    ledger: AbstractSubmissionLedger | None = None,
    mail_senders: MailSenders | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        app_settings: Settings to use; defaults to the global settings.
        ledger: Submission ledger; a fresh in-memory ledger when omitted.
        mail_senders: Mail senders; built from mail settings when omitted.

    Returns:
        Configured FastAPI app with middleware, handlers, routers and docs.

    Raises:
        ValidationAppError: If mail credentials are missing.
    """
    cfg = app_settings or default_settings

    # Logging first so subsequent init logs are formatted as desired
    configure_logging(cfg.log, debug=cfg.app.debug)

    if ledger is None:
        ledger = InMemorySubmissionLedger(
            limit=cfg.app.submission_limit,
            window_seconds=cfg.app.submission_window_hours * 3600,
        )
    if mail_senders is None:
        mail_senders = create_mail_senders(cfg.mail)

    upload_dir = Path(cfg.app.upload_dir)
    upload_dir.mkdir(parents=True, exist_ok=True)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if cfg.mail.verify_on_startup:
            await _verify_senders(mail_senders)
        logger.info(
            "app.started",
            extra={
                "port": cfg.app.port,
                "submission_limit": ledger.limit,
                "upload_dir": str(upload_dir),
            },
        )
        yield
        logger.info("app.stopped", extra={"tracked_identities": len(ledger.snapshot())})

    app = FastAPI(
        title="Form Relay API",
        description=(
            "Relays career applications (with resume) and contact inquiries by "
            "email, limiting each email address to a fixed number of submissions "
            "per rolling window."
        ),
        version="0.1.0",
        lifespan=lifespan,
    )

    app.state.settings = cfg
    app.state.submission_ledger = ledger
    app.state.mail_senders = mail_senders
    app.state.upload_dir = upload_dir
    app.state.relay_service = FormRelayService(
        ledger=ledger,
        senders=mail_senders,
        admin_recipient=cfg.mail.admin_recipient,
        hr_recipient=cfg.mail.hr_recipient,
        escape_user_input=cfg.mail.escape_user_input,
    )

    # Middleware
    app.middleware("http")(request_id_middleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cfg.app.cors_origin_list,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Exception handlers
    setup_exception_handlers(app)

    # Routers
    app.include_router(forms_router)
    app.include_router(limits_router)
    app.include_router(health_router, prefix="/api")

    app.mount("/uploads", StaticFiles(directory=upload_dir), name="uploads")

    # OpenAPI customizations (tags, admin warnings)
    apply_openapi_customizations(app)

    return app
