"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file

Mail credentials also accept the bare variable names used by older
deployments (EMAIL, PASSWORD, HR_EMAIL, ...), see MailSettings.
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# Determine which environment to load (default: development)
APP_ENV = os.getenv("APP_ENV", "development")

# Project root (so .env resolution doesn't depend on current working directory)
PROJECT_ROOT = Path(__file__).resolve().parents[2]

ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}

_env_filename = ENV_FILE_MAP.get(APP_ENV, ".env.development")
_env_path = PROJECT_ROOT / _env_filename

# Only load from file if it exists (production might inject via env vars only)
_env_file = str(_env_path) if _env_path.is_file() else None


# Load .env file early to populate os.environ before creating nested settings
# This is necessary because Pydantic nested BaseSettings don't inherit env_file
if _env_file and not os.getenv("TESTING"):
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


def _build_log_settings() -> "LogSettings":
    return LogSettings()  # type: ignore[call-arg]


def _build_app_settings() -> "AppSettings":
    return AppSettings()  # type: ignore[call-arg]


def _build_mail_settings() -> "MailSettings":
    """Build mail settings from environment.

    Static type checkers treat aliased fields as required constructor
    arguments, which is not how BaseSettings is intended to be used.
    """

    return MailSettings()  # type: ignore[call-arg]


class LogSettings(BaseSettings):
    """Logging configuration."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field("json", description="Log format: json or plain")
    output: str = Field("stdout", description="Log output: stdout or file")
    file_path: str | None = Field(None, description="Log file path when output=file")
    max_bytes: int = Field(
        10 * 1024 * 1024,
        description="Rotate the log file at this size (0 disables rotation)",
    )
    backup_count: int = Field(5, description="Rotated log files to keep")
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header used to read and echo the request correlation id",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class AppSettings(BaseSettings):
    """Application-wide configuration."""

    debug: bool = Field(
        False,
        description="Enable debug mode with verbose logging",
    )
    port: int = Field(
        8080,
        description="Listening port",
        validation_alias=AliasChoices("APP_PORT", "PORT"),
    )
    upload_dir: str = Field(
        "uploads",
        description="Directory for transient resume uploads (served at /uploads)",
    )
    max_upload_size_mb: int = Field(
        5,
        description="Maximum file upload size in megabytes",
        ge=1,
    )
    allowed_upload_extensions: str = Field(
        ".pdf,.doc,.docx",
        description="Comma-separated list of accepted resume extensions",
    )
    verify_file_signature: bool = Field(
        True,
        description="Reject uploads whose leading bytes don't match their extension",
    )
    submission_limit: int = Field(
        3,
        description="Accepted submissions allowed per email address per window",
        ge=1,
    )
    submission_window_hours: int = Field(
        24,
        description="Rolling window length in hours, anchored at the first submission",
        ge=1,
    )
    cors_origins: str = Field(
        "*",
        description="Comma-separated list of allowed CORS origins",
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_size_mb * 1024 * 1024

    @property
    def allowed_extensions(self) -> set[str]:
        return {
            ext.strip().lower()
            for ext in self.allowed_upload_extensions.split(",")
            if ext.strip()
        }

    @property
    def cors_origin_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


class MailSettings(BaseSettings):
    """Outbound mail configuration.

    Two logical senders exist: ``admin`` (contact/blog form) and ``hr``
    (career form). When proxy credentials are set they replace the address
    and credentials of both senders. Resolution happens once at startup in
    ``app.adapters.mail.factory``.
    """

    admin_email: str | None = Field(
        None,
        description="Admin sender address",
        validation_alias=AliasChoices("MAIL_ADMIN_EMAIL", "EMAIL"),
    )
    admin_password: str | None = Field(
        None,
        description="Admin sender password",
        validation_alias=AliasChoices("MAIL_ADMIN_PASSWORD", "PASSWORD"),
    )
    hr_email: str | None = Field(
        None,
        description="HR sender address",
        validation_alias=AliasChoices("MAIL_HR_EMAIL", "HR_EMAIL"),
    )
    hr_password: str | None = Field(
        None,
        description="HR sender password",
        validation_alias=AliasChoices("MAIL_HR_PASSWORD", "HR_PASSWORD"),
    )
    proxy_email: str | None = Field(
        None,
        description="Optional proxy sender address overriding both senders",
        validation_alias=AliasChoices("MAIL_PROXY_EMAIL", "PROXY_EMAIL"),
    )
    proxy_password: str | None = Field(
        None,
        description="Password for the proxy sender",
        validation_alias=AliasChoices("MAIL_PROXY_PASSWORD", "PROXY_PASSWORD"),
    )
    admin_recipient: str = Field(
        "admin@areta360.com",
        description="Recipient of contact/blog form messages",
    )
    hr_recipient: str = Field(
        "hr@areta360.com",
        description="Recipient of career applications",
    )
    smtp_host: str = Field("smtp.gmail.com", description="SMTP server host")
    smtp_port: int = Field(465, description="SMTP server port")
    use_ssl: bool = Field(True, description="Connect with implicit TLS (SMTPS)")
    starttls: bool = Field(False, description="Upgrade a plain connection with STARTTLS")
    timeout_seconds: float = Field(
        30.0,
        description="Upper bound for a single delivery (connect, login, send)",
        gt=0,
    )
    verify_on_startup: bool = Field(
        False,
        description="Check SMTP connectivity and credentials for both senders at startup",
    )
    escape_user_input: bool = Field(
        True,
        description="HTML-escape submitted fields before interpolating them into messages",
    )

    model_config = SettingsConfigDict(
        env_prefix="MAIL_",
        case_sensitive=False,
        populate_by_name=True,
    )


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.
    Raises validation errors on startup if settings are malformed.
    """

    app_env: str = APP_ENV
    log: LogSettings = Field(default_factory=_build_log_settings)
    app: AppSettings = Field(default_factory=_build_app_settings)
    mail: MailSettings = Field(default_factory=_build_mail_settings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


# Global settings instance - composed from domain-specific settings
# Nested settings are created via default_factory so env loading works.
settings = Settings()
