"""Structured logging for the form relay.

What this module owns:
- request_id propagation via contextvars (set by the request-id middleware)
- redaction of mail credentials and submitted form content on log records
- masking of email addresses that appear inside free-text values
  (request paths, provider error messages)
- a JSON formatter producing one object per line
- root logger setup from ``LogSettings`` (stdout, file or rotating file)

Submitter addresses are personal data. Code that needs to correlate log
lines per submitter logs ``hash_identifier(email)`` instead of the address.
"""

from __future__ import annotations

import hashlib
import json
import logging
import re
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from logging import LogRecord
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Iterable, Mapping

from app.core.config import LogSettings, settings

REDACTED = "[REDACTED]"
EMAIL_MASK = "[EMAIL]"

_request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)

# Extras whose whole value is replaced
SENSITIVE_KEYS_DEFAULT: frozenset[str] = frozenset(
    {
        "authorization",
        "token",
        "secret",
        "cookie",
        "set-cookie",
        "password",
        "email",
        "phone",
        "name",
        "message_body",
        "html",
        "html_body",
    }
)

# Any extra ending in one of these is a credential (admin_password, smtp_token...)
SENSITIVE_SUFFIXES: tuple[str, ...] = ("_password", "_secret", "_token")

_EMAIL_PATTERN = re.compile(r"[\w.+-]+@[\w-]+(?:\.[\w-]+)+")

# Free-text extras that may quote a submitter address (paths, provider errors)
FREE_TEXT_KEYS: frozenset[str] = frozenset({"route", "path", "error", "error_msg", "error_message"})

# Standard LogRecord attributes; everything else on a record is an ``extra``
_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", None, None))
) | {"message", "asctime", "taskName"}

# Libraries that log request bodies or wire chatter at DEBUG
_NOISY_LOGGERS = ("multipart", "python_multipart", "asyncio")


def set_request_id(request_id: str | None) -> None:
    """Store the current request id in a context variable."""

    _request_id_var.set(request_id)


def get_request_id() -> str | None:
    """Fetch the current request id from context."""

    return _request_id_var.get()


def clear_request_id() -> None:
    _request_id_var.set(None)


def hash_identifier(value: str) -> str:
    """Return a short, stable digest of an identifier for log correlation.

    The digest is taken over the value exactly as the submission ledger
    keys it, so a hash in the logs matches the ledger entry it refers to.

    Examples:
        >>> len(hash_identifier("a@x.com"))
        16
    """
    return hashlib.sha256(value.encode()).hexdigest()[:16]


def mask_emails(text: str) -> str:
    """Replace every email address found in ``text`` with a fixed marker."""
    return _EMAIL_PATTERN.sub(EMAIL_MASK, text)


class Redactor:
    """Decides what may be logged as-is.

    Keys are matched case-insensitively, either exactly against
    ``sensitive_keys`` or by credential suffix. Free-text values (see
    ``FREE_TEXT_KEYS``) that survive key matching have embedded email
    addresses masked.
    """

    def __init__(self, sensitive_keys: Iterable[str] | None = None) -> None:
        keys = SENSITIVE_KEYS_DEFAULT if sensitive_keys is None else sensitive_keys
        self.sensitive_keys = frozenset(k.lower() for k in keys)

    def is_sensitive(self, key: str) -> bool:
        lowered = key.lower()
        return lowered in self.sensitive_keys or lowered.endswith(SENSITIVE_SUFFIXES)

    def redact(self, value: Any, key: str | None = None) -> Any:
        if isinstance(value, str):
            return mask_emails(value) if key in FREE_TEXT_KEYS else value
        if isinstance(value, Mapping):
            return {
                k: REDACTED if isinstance(k, str) and self.is_sensitive(k) else self.redact(v, k)
                for k, v in value.items()
            }
        if isinstance(value, (list, tuple)):
            return type(value)(self.redact(v, key) for v in value)
        return value

    def extras(self, record: LogRecord) -> dict[str, Any]:
        """Return the record's ``extra`` fields, redacted."""
        return {
            key: REDACTED if self.is_sensitive(key) else self.redact(value, key)
            for key, value in record.__dict__.items()
            if key not in _RECORD_ATTRS and not key.startswith("_")
        }


class RequestIdFilter(logging.Filter):
    """Attach request_id from context when absent on the record."""

    def filter(self, record: LogRecord) -> bool:  # noqa: D401
        if getattr(record, "request_id", None) is None:
            record.request_id = get_request_id()
        return True


class SensitiveDataFilter(logging.Filter):
    """Redact sensitive extras in place so every formatter sees safe values."""

    def __init__(self, sensitive_keys: Iterable[str] | None = None) -> None:
        super().__init__()
        self.redactor = Redactor(sensitive_keys)

    def filter(self, record: LogRecord) -> bool:  # noqa: D401
        for key, value in self.redactor.extras(record).items():
            setattr(record, key, value)
        return True


class JsonFormatter(logging.Formatter):
    """Render a record as a single JSON object.

    Fixed keys come first (timestamp, level, logger, message, request_id),
    followed by the redacted extras and, for ``logger.exception`` calls, the
    formatted traceback.
    """

    def __init__(
        self,
        *,
        sensitive_keys: Iterable[str] | None = None,
        ensure_ascii: bool = True,
    ) -> None:
        super().__init__()
        self.redactor = Redactor(sensitive_keys)
        self.ensure_ascii = ensure_ascii

    def format(self, record: LogRecord) -> str:  # noqa: D401
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }

        extras = self.redactor.extras(record)
        request_id = extras.pop("request_id", None) or get_request_id()
        if request_id:
            payload["request_id"] = request_id
        payload.update(extras)

        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str, ensure_ascii=self.ensure_ascii)


def _build_handler(log_settings: LogSettings) -> logging.Handler:
    if log_settings.output.lower() != "file":
        return logging.StreamHandler(sys.stdout)

    file_path = Path(log_settings.file_path or "logs/form-relay.log")
    file_path.parent.mkdir(parents=True, exist_ok=True)
    if log_settings.max_bytes:
        return RotatingFileHandler(
            file_path,
            maxBytes=log_settings.max_bytes,
            backupCount=log_settings.backup_count,
            encoding="utf-8",
        )
    return logging.FileHandler(file_path, encoding="utf-8")


def _build_formatter(log_settings: LogSettings) -> logging.Formatter:
    if log_settings.format.lower() == "plain":
        return logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s [%(request_id)s] %(message)s",
            defaults={"request_id": "-"},
        )
    return JsonFormatter()


def configure_logging(log_settings: LogSettings | None = None, *, debug: bool | None = None) -> None:
    """Configure the root logger with redaction and request correlation.

    Safe to call more than once; existing root handlers are replaced.

    Args:
        log_settings: Log settings; defaults to the global settings.
        debug: Force DEBUG level and let library loggers through. Defaults
            to ``settings.app.debug``.
    """

    cfg = log_settings or settings.log
    debug = settings.app.debug if debug is None else debug

    level = logging.DEBUG if debug else getattr(logging, cfg.level.upper(), logging.INFO)

    handler = _build_handler(cfg)
    handler.addFilter(RequestIdFilter())
    handler.addFilter(SensitiveDataFilter())
    handler.setFormatter(_build_formatter(cfg))

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if debug else logging.WARNING)

    # Avoid double logging from uvicorn if it gets re-configured
    logging.getLogger("uvicorn").propagate = False
    logging.getLogger("uvicorn.access").propagate = False
