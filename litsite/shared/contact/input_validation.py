"""
Contact form field rules and HTML sanitization.

The rules below are the single definition of what a valid contact
submission looks like. The browser-side client and the server handler both
validate through them, so the two sides cannot drift apart.
"""

import re
import html
from dataclasses import dataclass
from typing import Any, Optional, Pattern, Tuple


# Maximum lengths for contact form fields
MAX_NAME_LENGTH = 100
MAX_EMAIL_LENGTH = 255
MAX_COMPANY_LENGTH = 200
MIN_MESSAGE_LENGTH = 10
MAX_MESSAGE_LENGTH = 5000

EMAIL_REGEX = re.compile(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$')

_LINE_BREAK = re.compile(r'\r\n|\r|\n')


@dataclass(frozen=True)
class FieldRule:
    """Presence, format and length constraints for one form field."""
    field: str
    label: str
    required: bool = True
    min_length: int = 0
    max_length: Optional[int] = None
    pattern: Optional[Pattern] = None
    required_message: Optional[str] = None
    too_short_message: Optional[str] = None
    too_long_message: Optional[str] = None
    pattern_message: Optional[str] = None

    def check(self, value: Any) -> Tuple[Optional[str], Optional[str]]:
        """
        Normalize and check a raw field value.

        Returns:
            Tuple of (normalized value, error message). Exactly one of the two
            is meaningful: a failing check returns (None, message), a passing
            check returns (value, None). Optional fields left empty pass as
            (None, None).
        """
        if value is None:
            value = ""
        if not isinstance(value, str):
            return None, f"{self.label} must be text"

        value = value.strip()

        if not value:
            if not self.required:
                return None, None
            return None, self.required_message or f"{self.label} is required"

        if len(value) < self.min_length:
            return None, self.too_short_message or (
                f"{self.label} must be at least {self.min_length} characters"
            )

        if self.pattern is not None and not self.pattern.match(value):
            return None, self.pattern_message or f"Invalid {self.label.lower()}"

        if self.max_length is not None and len(value) > self.max_length:
            return None, self.too_long_message or (
                f"{self.label} must be less than {self.max_length} characters"
            )

        return value, None


NAME_RULE = FieldRule(
    field="name",
    label="Name",
    min_length=1,
    max_length=MAX_NAME_LENGTH,
)

EMAIL_RULE = FieldRule(
    field="email",
    label="Email",
    max_length=MAX_EMAIL_LENGTH,
    pattern=EMAIL_REGEX,
    pattern_message="Invalid email address",
)

COMPANY_RULE = FieldRule(
    field="company",
    label="Company name",
    required=False,
    max_length=MAX_COMPANY_LENGTH,
)

MESSAGE_RULE = FieldRule(
    field="message",
    label="Message",
    min_length=MIN_MESSAGE_LENGTH,
    max_length=MAX_MESSAGE_LENGTH,
    required_message=f"Message must be at least {MIN_MESSAGE_LENGTH} characters",
)

CONTACT_RULES = (NAME_RULE, EMAIL_RULE, COMPANY_RULE, MESSAGE_RULE)
RULES_BY_FIELD = {rule.field: rule for rule in CONTACT_RULES}


def sanitize_html(text: str) -> str:
    """
    Escape text for interpolation into an HTML email body.

    &, <, >, " and ' become entities, then line breaks become <br> tags.
    Already-escaped input is escaped again.
    """
    if not text:
        return ""

    escaped = html.escape(text, quote=True)
    return _LINE_BREAK.sub("<br>", escaped)


def normalize_email(email: str) -> str:
    """Trim and lower-case an address for consistent reply-to handling."""
    return email.strip().lower()
