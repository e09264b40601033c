"""Logging setup for the relay: JSON lines, redaction and request correlation.

Contact submissions carry personal data, so two rules hold for every sink:
- credentials and message bodies are replaced by "[REDACTED]"
- e-mail addresses are masked to their first character and domain

The request id set by the HTTP middleware is stored in a ContextVar and
attached to every record emitted while the request is being handled.
"""

from __future__ import annotations

import json
import logging
import re
import sys
from contextvars import ContextVar
from dataclasses import dataclass, field
from datetime import datetime, timezone
from logging import LogRecord
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Iterable, Mapping

from contact_relay.core.config import LogSettings, settings

REDACTED = "[REDACTED]"
DEFAULT_LOG_FILE = "logs/contact-relay.log"
PLAIN_FORMAT = "%(asctime)s %(levelname)s %(name)s [%(request_id)s] %(message)s"

_request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)

SENSITIVE_KEYS_DEFAULT: frozenset[str] = frozenset(
    {
        # credentials
        "api_key",
        "mail_api_key",
        "resend_api_key",
        "authorization",
        "token",
        "secret",
        "password",
        "smtp_password",
        "cookie",
        "set-cookie",
        # visitor content
        "message_text",
        "body",
        "text",
    }
)

_EMAIL_RE = re.compile(r"([A-Za-z0-9._%+\-])[A-Za-z0-9._%+\-]*@([A-Za-z0-9.\-]+)")

# Attributes every LogRecord has; anything else on a record came from `extra=`.
_RECORD_ATTRS = frozenset(
    LogRecord("", logging.INFO, "", 0, "", None, None).__dict__
) | {"message", "asctime", "taskName"}


def set_request_id(request_id: str | None) -> None:
    _request_id_var.set(request_id)


def get_request_id() -> str | None:
    return _request_id_var.get()


def clear_request_id() -> None:
    _request_id_var.set(None)


def mask_email(value: str) -> str:
    """Mask e-mail addresses inside a string, keeping first char and domain.

    Examples:
        >>> mask_email("ada@example.com")
        'a***@example.com'
        >>> mask_email("reply to ada@example.com please")
        'reply to a***@example.com please'
    """

    return _EMAIL_RE.sub(r"\1***@\2", value)


@dataclass(frozen=True)
class Redactor:
    """Scrub values bound for a log sink.

    Keys are compared case-insensitively. Nested mappings and sequences are
    walked; strings anywhere in the structure get their addresses masked.
    """

    sensitive_keys: frozenset[str] = field(default=SENSITIVE_KEYS_DEFAULT)

    @classmethod
    def from_keys(cls, keys: Iterable[str] | None) -> "Redactor":
        if keys is None:
            return cls()
        return cls(frozenset(k.lower() for k in keys))

    def is_sensitive(self, key: str) -> bool:
        return key.lower() in self.sensitive_keys

    def scrub(self, value: Any) -> Any:
        if isinstance(value, str):
            return mask_email(value)
        if isinstance(value, Mapping):
            return {k: self.scrub_item(k, v) for k, v in value.items()}
        if isinstance(value, (list, tuple)):
            return type(value)(self.scrub(v) for v in value)
        return value

    def scrub_item(self, key: str, value: Any) -> Any:
        return REDACTED if self.is_sensitive(key) else self.scrub(value)

    def extras(self, record: LogRecord) -> dict[str, Any]:
        """Return the `extra=` fields of ``record``, scrubbed."""

        return {
            key: self.scrub_item(key, value)
            for key, value in record.__dict__.items()
            if key not in _RECORD_ATTRS and not key.startswith("_")
        }


class RequestIdFilter(logging.Filter):
    """Copy the context request id onto records that don't carry one."""

    def filter(self, record: LogRecord) -> bool:  # noqa: D401
        if getattr(record, "request_id", None) is None:
            record.request_id = get_request_id() or "-"
        return True


class SensitiveDataFilter(logging.Filter):
    """Scrub the record in place so every formatter sees redacted data."""

    def __init__(self, sensitive_keys: Iterable[str] | None = None) -> None:
        super().__init__()
        self.redactor = Redactor.from_keys(sensitive_keys)

    def filter(self, record: LogRecord) -> bool:  # noqa: D401
        for key, value in self.redactor.extras(record).items():
            setattr(record, key, value)
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per line: timestamp, level, logger, message and extras."""

    def __init__(
        self,
        *,
        sensitive_keys: Iterable[str] | None = None,
        ensure_ascii: bool = True,
    ) -> None:
        super().__init__()
        self.redactor = Redactor.from_keys(sensitive_keys)
        self.ensure_ascii = ensure_ascii

    def format(self, record: LogRecord) -> str:  # noqa: D401
        payload: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(self.redactor.extras(record))

        request_id = payload.get("request_id")
        if request_id in (None, "-"):
            request_id = get_request_id()
        if request_id:
            payload["request_id"] = request_id
        else:
            payload.pop("request_id", None)

        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str, ensure_ascii=self.ensure_ascii)


def _build_handler(log_settings: LogSettings) -> logging.Handler:
    if log_settings.output != "file":
        return logging.StreamHandler(sys.stdout)

    path = Path(log_settings.file_path or DEFAULT_LOG_FILE)
    path.parent.mkdir(parents=True, exist_ok=True)
    if not log_settings.max_bytes:
        return logging.FileHandler(path, encoding="utf-8")
    return RotatingFileHandler(
        path,
        maxBytes=log_settings.max_bytes,
        backupCount=log_settings.backup_count,
        encoding="utf-8",
    )


def configure_logging(log_settings: LogSettings | None = None) -> None:
    """Install a single redacting handler on the root logger.

    Args:
        log_settings: Optional log settings; defaults to the global settings.
            ``APP_DEBUG`` forces the DEBUG level.
    """

    cfg = log_settings or settings.log
    level = logging.DEBUG if settings.app.debug else getattr(logging, cfg.level.upper(), logging.INFO)

    handler = _build_handler(cfg)
    handler.addFilter(RequestIdFilter())
    handler.addFilter(SensitiveDataFilter())
    handler.setFormatter(
        logging.Formatter(PLAIN_FORMAT) if cfg.format == "plain" else JsonFormatter()
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    # uvicorn installs its own handlers; keep its records from being emitted twice
    for name in ("uvicorn", "uvicorn.access"):
        logging.getLogger(name).propagate = False
