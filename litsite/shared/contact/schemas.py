"""Pydantic schemas for the contact form API."""

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, Field, ValidationError, ValidationInfo, field_validator

from litsite.shared.contact.input_validation import (
    RULES_BY_FIELD,
    normalize_email,
    sanitize_html,
)


class ContactRequest(BaseModel):
    """Schema for contact form submission."""
    name: str = Field(None, validate_default=True, description="Your name")
    email: str = Field(None, validate_default=True, description="Your email address")
    company: Optional[str] = Field(None, validate_default=True, description="Company name (optional)")
    message: str = Field(None, validate_default=True, description="Project details (10-5000 characters)")

    @field_validator("name", "email", "company", "message", mode="before")
    @classmethod
    def check_field_rule(cls, v: Any, info: ValidationInfo):
        """Apply the shared field rule, returning the trimmed value."""
        value, error = RULES_BY_FIELD[info.field_name].check(v)
        if error:
            raise ValueError(error)
        return value


class SanitizedContact(BaseModel):
    """Contact fields that are safe to interpolate into an HTML email."""
    name: str
    email: str
    company: Optional[str] = None
    message: str

    @classmethod
    def from_request(cls, contact: ContactRequest) -> "SanitizedContact":
        return cls(
            name=sanitize_html(contact.name),
            email=normalize_email(contact.email),
            company=sanitize_html(contact.company) if contact.company else None,
            message=sanitize_html(contact.message),
        )


class ContactResponse(BaseModel):
    """Schema for a successful contact form response."""
    success: bool = True


class ErrorResponse(BaseModel):
    """Schema for contact form error responses."""
    error: str
    fields: Optional[Dict[str, str]] = None


@dataclass
class ValidationResult:
    """Outcome of validating a candidate submission."""
    submission: Optional[ContactRequest] = None
    errors: Dict[str, str] = field(default_factory=dict)

    @property
    def is_valid(self) -> bool:
        return self.submission is not None and not self.errors


def validate_contact_submission(data: Mapping[str, Any]) -> ValidationResult:
    """
    Validate a candidate submission against the shared contact rules.

    Args:
        data: Mapping of raw form values (name, email, company, message)

    Returns:
        ValidationResult holding either the normalized submission or a
        mapping of field name to error message for every failing field
    """
    try:
        submission = ContactRequest.model_validate(dict(data))
    except ValidationError as e:
        errors = {}
        for err in e.errors():
            loc = err.get("loc") or ("form",)
            ctx_error = (err.get("ctx") or {}).get("error")
            errors.setdefault(str(loc[0]), str(ctx_error) if ctx_error else err["msg"])
        return ValidationResult(errors=errors)

    return ValidationResult(submission=submission)
