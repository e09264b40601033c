"""Declarative validation for contact-form submissions.

Each field maps to an ordered tuple of rules. Every rule of every field is
evaluated (no early exit) so the client receives the complete list of
problems in a single response. Sanitizers run only for fields that passed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Mapping

from email_validator import EmailNotValidError, validate_email

from contact_relay.core.errors import ValidationAppError, Violation
from contact_relay.schemas.contact import ContactSubmission
from contact_relay.utils.text_sanitizer import escape_html, sanitize_email

logger = logging.getLogger(__name__)

NAME_MIN_LENGTH = 3
MESSAGE_MIN_LENGTH = 10


@dataclass(frozen=True)
class FieldRule:
    """A predicate over the trimmed field value and the message used when it fails."""

    check: Callable[[str], bool]
    message: str


def _not_empty(value: str) -> bool:
    return value != ""


def _min_length(minimum: int) -> Callable[[str], bool]:
    def check(value: str) -> bool:
        return len(value) >= minimum

    return check


def is_valid_email(value: str) -> bool:
    """Syntax-only e-mail check; no DNS lookups are performed."""
    try:
        validate_email(value, check_deliverability=False)
    except EmailNotValidError:
        return False
    return True


FIELD_RULES: dict[str, tuple[FieldRule, ...]] = {
    "name": (
        FieldRule(_not_empty, "Name is required"),
        FieldRule(
            _min_length(NAME_MIN_LENGTH),
            f"Name must be at least {NAME_MIN_LENGTH} characters long",
        ),
    ),
    "email": (
        FieldRule(_not_empty, "Email is required"),
        FieldRule(is_valid_email, "Invalid email address"),
    ),
    "message": (
        FieldRule(_not_empty, "Message is required"),
        FieldRule(
            _min_length(MESSAGE_MIN_LENGTH),
            f"Message must be at least {MESSAGE_MIN_LENGTH} characters long",
        ),
    ),
}

FIELD_SANITIZERS: dict[str, Callable[[str], str]] = {
    "name": escape_html,
    "email": sanitize_email,
    "message": escape_html,
}


def coerce_field(raw: Any) -> str:
    """Turn a raw body value into the trimmed string the rules operate on.

    Only scalars carry text: missing values, nested objects and uploaded files
    count as empty. For repeated form keys the first value wins.
    """
    if isinstance(raw, (list, tuple)):
        raw = raw[0] if raw else None
    if isinstance(raw, bool):
        return "true" if raw else "false"
    if not isinstance(raw, (str, int, float)):
        return ""
    return str(raw).strip()


def collect_violations(values: Mapping[str, str]) -> list[Violation]:
    """Evaluate every rule against already coerced values."""
    violations: list[Violation] = []
    for field_name, rules in FIELD_RULES.items():
        value = values.get(field_name, "")
        for rule in rules:
            if not rule.check(value):
                violations.append(
                    Violation(
                        type="field",
                        value=value,
                        msg=rule.message,
                        path=field_name,
                        location="body",
                    )
                )
    return violations


def validate_submission(payload: Mapping[str, Any]) -> ContactSubmission:
    """Validate and sanitize a raw submission body.

    Args:
        payload: Decoded JSON object or form fields.

    Returns:
        ContactSubmission with sanitized fields.

    Raises:
        ValidationAppError: Listing every failed rule when any field is invalid.
    """
    values = {field_name: coerce_field(payload.get(field_name)) for field_name in FIELD_RULES}
    violations = collect_violations(values)

    if violations:
        logger.info(
            "submission.invalid",
            extra={
                "violation_count": len(violations),
                "fields": sorted({v["path"] for v in violations}),
            },
        )
        raise ValidationAppError(
            code="validation_failed",
            message="Submission failed validation",
            violations=violations,
        )

    sanitized = {
        field_name: FIELD_SANITIZERS[field_name](value)
        for field_name, value in values.items()
    }
    return ContactSubmission(**sanitized)
