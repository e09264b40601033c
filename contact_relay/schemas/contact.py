"""Pydantic schemas for the contact endpoint."""

from __future__ import annotations

from typing import List

from pydantic import BaseModel, Field


class ContactSubmission(BaseModel):
    """A submission that passed validation; every field is already sanitized."""

    name: str = Field(..., description="Visitor name, trimmed and HTML-escaped.")
    email: str = Field(..., description="Visitor address, normalized.")
    message: str = Field(..., description="Message body, trimmed and HTML-escaped.")


class ContactRequest(BaseModel):
    """Documented request body for ``POST /send-email``.

    The endpoint reads the raw JSON or form body itself so that every rule of
    every field can be reported at once; this model only feeds the OpenAPI docs.
    """

    name: str = Field(..., min_length=3, examples=["Ada Lovelace"])
    email: str = Field(..., examples=["ada@example.com"])
    message: str = Field(..., min_length=10, examples=["Hello, I'd like to get in touch."])


class MessageResponse(BaseModel):
    message: str


class FieldViolation(BaseModel):
    """One failed rule on one field."""

    type: str = Field("field", description="Always 'field'.")
    value: str = Field(..., description="Trimmed value that failed the rule.")
    msg: str = Field(..., description="Human-readable description of the rule.")
    path: str = Field(..., description="Name of the offending field.")
    location: str = Field("body", description="Where the field was read from.")


class ValidationErrorResponse(BaseModel):
    errors: List[FieldViolation] = Field(default_factory=list)
