"""Settings for the relay, read from the environment with pydantic-settings.

``APP_ENV`` (development, testing, staging, production) selects an optional
``.env.<APP_ENV>`` file at the project root. Its values are exported into
``os.environ`` before the settings groups are built and override variables
already set there. Without a file, only the process environment is used.

A few unprefixed variable names (EMAIL, RESEND_API_KEY, FRONTEND, PORT) are
accepted as aliases so existing deployments keep working.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Literal

from dotenv import load_dotenv
from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

APP_ENV = os.getenv("APP_ENV", "development")
PROJECT_ROOT = Path(__file__).resolve().parents[2]
KNOWN_ENVIRONMENTS = ("development", "testing", "staging", "production")


def env_file_for(app_env: str) -> Path | None:
    """Return the dotenv file for ``app_env`` if it exists on disk.

    Unknown environment names fall back to the development file.
    """

    name = app_env if app_env in KNOWN_ENVIRONMENTS else "development"
    path = PROJECT_ROOT / f".env.{name}"
    return path if path.is_file() else None


# Nested BaseSettings don't inherit env_file, so the file is exported up front.
_env_file = env_file_for(APP_ENV)
if _env_file is not None:
    load_dotenv(_env_file, override=True)


def _build_app_settings() -> "AppSettings":
    return AppSettings()  # type: ignore[call-arg]


def _build_mail_settings() -> "MailSettings":
    return MailSettings()  # type: ignore[call-arg]


def _build_log_settings() -> "LogSettings":
    return LogSettings()  # type: ignore[call-arg]


class AppSettings(BaseSettings):
    """HTTP surface, CORS and rate limiting configuration."""

    debug: bool = Field(
        False,
        description="Enable debug mode with verbose logging",
    )
    host: str = Field(
        "0.0.0.0",
        description="Interface the server binds to",
    )
    port: int = Field(
        3000,
        description="Listening port",
        validation_alias=AliasChoices("APP_PORT", "PORT"),
    )
    frontend_origin: str | None = Field(
        None,
        description="The single browser origin allowed to call the API",
        validation_alias=AliasChoices("APP_FRONTEND_ORIGIN", "FRONTEND"),
    )
    trust_proxy: bool = Field(
        True,
        description=(
            "Take the client IP from X-Forwarded-For (left-most entry). Only enable "
            "behind a proxy that sets this header: otherwise clients can spoof it "
            "and bypass the per-IP rate limit"
        ),
    )
    welcome_message: str = Field(
        "Welcome to the email API",
        description="Message returned by the root liveness endpoint",
    )

    rate_limit_enabled: bool = Field(
        True,
        description="Enable per-IP rate limiting on the send endpoint",
    )
    rate_limit_requests: int = Field(
        5,
        description="Maximum number of requests allowed per window (per IP)",
        ge=1,
    )
    rate_limit_window_seconds: int = Field(
        15 * 60,
        description="Rate limit window size in seconds",
        ge=1,
    )
    rate_limit_message: str | None = Field(
        None,
        description="Override for the 429 message; derived from the window when unset",
    )
    rate_limit_plain_text: bool = Field(
        False,
        description="Return the 429 message as text/plain instead of {message: ...}",
    )
    rate_limit_include_headers: bool = Field(
        True,
        description="Include X-RateLimit-* and Retry-After headers when throttling",
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
        populate_by_name=True,
    )


class MailSettings(BaseSettings):
    """Mail transport configuration.

    ``provider`` selects the transport; provider-specific requirements are
    validated in the transport factory, not here.
    """

    provider: Literal["resend", "smtp"] = Field(
        "resend",
        description="Mail transport: 'resend' (HTTP API) or 'smtp'",
    )
    owner_email: str | None = Field(
        None,
        description="Operator address that receives contact messages",
        validation_alias=AliasChoices("MAIL_OWNER_EMAIL", "EMAIL"),
    )
    from_address: str = Field(
        "Portfolio <onboarding@resend.dev>",
        description="Sender used for the owner notification",
    )
    timeout_seconds: float = Field(
        30.0,
        description="Transport-level timeout in seconds",
    )

    api_key: str | None = Field(
        None,
        description="API key for the HTTP mail provider",
        validation_alias=AliasChoices("MAIL_API_KEY", "RESEND_API_KEY"),
    )
    api_base_url: str = Field(
        "https://api.resend.com",
        description="Base URL of the HTTP mail provider",
    )

    smtp_host: str = Field("smtp.gmail.com", description="SMTP server host")
    smtp_port: int = Field(587, description="SMTP server port")
    smtp_username: str | None = Field(None, description="SMTP login")
    smtp_password: str | None = Field(None, description="SMTP password or app password")
    smtp_use_tls: bool = Field(
        True,
        description="Upgrade the SMTP connection with STARTTLS",
    )

    auto_reply_enabled: bool = Field(
        False,
        description="Also send a thank-you message to the visitor",
    )
    auto_reply_required: bool = Field(
        False,
        description="Report the request as failed when the auto-reply cannot be sent",
    )
    auto_reply_from: str | None = Field(
        None,
        description="Sender of the auto-reply (defaults to from_address)",
    )
    auto_reply_subject: str = Field(
        "Thank you for your message!",
        description="Subject of the auto-reply",
    )
    auto_reply_signature: str = Field(
        "The Portfolio Team",
        description="Name signed at the bottom of the auto-reply",
    )

    model_config = SettingsConfigDict(
        env_prefix="MAIL_",
        case_sensitive=False,
        populate_by_name=True,
    )


class LogSettings(BaseSettings):
    """Logging configuration."""

    level: str = Field("INFO", description="Root log level")
    format: Literal["json", "plain"] = Field(
        "json",
        description="Log line format",
    )
    output: Literal["stdout", "file"] = Field(
        "stdout",
        description="Where log lines are written",
    )
    file_path: str | None = Field(
        None,
        description="Log file path when output is 'file'",
    )
    max_bytes: int = Field(
        0,
        description="Rotate the log file past this size (0 disables rotation)",
    )
    backup_count: int = Field(
        5,
        description="Number of rotated log files to keep",
    )
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header used to read and echo the correlation id",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """All settings groups. Malformed values fail at import time."""

    app_env: str = APP_ENV
    app: AppSettings = Field(default_factory=_build_app_settings)
    mail: MailSettings = Field(default_factory=_build_mail_settings)
    log: LogSettings = Field(default_factory=_build_log_settings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


settings = Settings()
