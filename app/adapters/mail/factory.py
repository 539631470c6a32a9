"""Factory for the two configured mail senders."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from app.adapters.mail.base import AbstractMailSender, SenderIdentity
from app.adapters.mail.smtp_client import SMTPMailSender
from app.core.config import MailSettings, settings
from app.core.errors import ValidationAppError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MailSenders:
    """The two logical senders: admin (contact form) and hr (career form)."""

    admin: AbstractMailSender
    hr: AbstractMailSender


def _resolve_identity(
    name: str,
    address: str | None,
    password: str | None,
    mail_settings: MailSettings,
) -> SenderIdentity:
    """Resolve one sender identity, applying the proxy override.

    Raises:
        ValidationAppError: If the identity has no usable address or password.
    """
    via_proxy = bool(mail_settings.proxy_email)
    if via_proxy:
        address = mail_settings.proxy_email
        password = mail_settings.proxy_password or password

    if not address or not password:
        raise ValidationAppError(
            code="mail_missing_credentials",
            message=f"Mail sender '{name}' requires an email address and password",
            details={"context": {"sender": name, "via_proxy": via_proxy}},
        )

    return SenderIdentity(
        name=name,
        address=address,
        username=address,
        password=password,
        via_proxy=via_proxy,
    )


def resolve_sender_identities(
    mail_settings: MailSettings | None = None,
) -> tuple[SenderIdentity, SenderIdentity]:
    """Resolve the (admin, hr) sender identities once, at startup.

    When PROXY_EMAIL is set its address (and PROXY_PASSWORD, when given)
    replace the admin and hr credentials alike; recipients are unaffected.
    """
    cfg = mail_settings or settings.mail
    admin = _resolve_identity("admin", cfg.admin_email, cfg.admin_password, cfg)
    hr = _resolve_identity("hr", cfg.hr_email, cfg.hr_password, cfg)

    logger.info(
        "mail.identities_resolved",
        extra={
            "admin_from": admin.address,
            "hr_from": hr.address,
            "via_proxy": admin.via_proxy,
        },
    )
    return admin, hr


def create_mail_senders(mail_settings: MailSettings | None = None) -> MailSenders:
    """Build SMTP senders for both identities from settings.

    Raises:
        ValidationAppError: If credentials for either sender are missing.
    """
    cfg = mail_settings or settings.mail
    admin, hr = resolve_sender_identities(cfg)

    def _build(identity: SenderIdentity) -> SMTPMailSender:
        return SMTPMailSender(
            identity,
            host=cfg.smtp_host,
            port=cfg.smtp_port,
            use_ssl=cfg.use_ssl,
            starttls=cfg.starttls,
            timeout_seconds=cfg.timeout_seconds,
        )

    return MailSenders(admin=_build(admin), hr=_build(hr))
