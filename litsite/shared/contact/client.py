"""
Browser-side contact form intake.

Holds form state, gates submissions with the session rate limiter and the
shared field rules, posts the payload to the contact endpoint and produces
the notice ("toast") shown to the visitor.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, MutableMapping, Optional

import httpx

from litsite.shared.contact.input_validation import CONTACT_RULES, normalize_email
from litsite.shared.contact.rate_limit import CLIENT_RATE_LIMIT_KEY, create_client_rate_limiter
from litsite.shared.contact.schemas import validate_contact_submission

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 15.0


@dataclass(frozen=True)
class Notice:
    """A toast message for the visitor."""
    title: str
    description: str
    variant: str = "default"

    @property
    def is_error(self) -> bool:
        return self.variant == "destructive"


RATE_LIMITED_NOTICE = Notice(
    title="Too many requests",
    description="Please wait a moment before submitting again.",
    variant="destructive",
)
SEND_FAILED_NOTICE = Notice(
    title="Error sending message",
    description="Please try again later or contact us directly.",
    variant="destructive",
)
SENT_NOTICE = Notice(
    title="Message Sent Successfully!",
    description="Thank you for reaching out. We'll get back to you within 24 hours.",
)


def _empty_values() -> Dict[str, str]:
    return {rule.field: "" for rule in CONTACT_RULES}


@dataclass
class ContactForm:
    """Current field values and per-field error messages."""
    values: Dict[str, str] = field(default_factory=_empty_values)
    errors: Dict[str, str] = field(default_factory=dict)

    def update_field(self, name: str, value: str) -> None:
        """Set a field value; editing a field clears its error."""
        if name not in self.values:
            raise KeyError(f"Unknown contact form field: {name}")
        self.values[name] = value
        self.errors.pop(name, None)

    def reset(self) -> None:
        self.values = _empty_values()
        self.errors = {}


@dataclass
class SubmitResult:
    """What happened on a submit attempt."""
    sent: bool
    notice: Optional[Notice] = None
    errors: Dict[str, str] = field(default_factory=dict)


class ContactFormClient:
    """Submits the contact form to the site service."""

    def __init__(
        self,
        endpoint_url: str,
        http_client: Optional[httpx.Client] = None,
        storage: Optional[MutableMapping[str, str]] = None,
    ):
        self.endpoint_url = endpoint_url
        self.http_client = http_client or httpx.Client(timeout=DEFAULT_TIMEOUT_SECONDS)
        self.rate_limiter = create_client_rate_limiter(storage)
        self.form = ContactForm()

    def submit(self) -> SubmitResult:
        """
        Run one submit attempt.

        Field errors are left on self.form.errors and returned without a
        notice; every other outcome carries a notice. On success the form is
        cleared.
        """
        self.form.errors = {}

        if self.rate_limiter.is_limited(CLIENT_RATE_LIMIT_KEY):
            return SubmitResult(sent=False, notice=RATE_LIMITED_NOTICE)

        result = validate_contact_submission(self.form.values)
        if not result.is_valid:
            self.form.errors = dict(result.errors)
            return SubmitResult(sent=False, errors=dict(result.errors))

        payload = result.submission.model_dump(exclude_none=True)
        payload["email"] = normalize_email(payload["email"])

        try:
            response = self.http_client.post(self.endpoint_url, json=payload)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning(f"Contact form submission failed: {type(e).__name__}")
            return SubmitResult(sent=False, notice=SEND_FAILED_NOTICE)

        self.form.reset()
        return SubmitResult(sent=True, notice=SENT_NOTICE)

    def close(self) -> None:
        self.http_client.close()

    def __enter__(self) -> "ContactFormClient":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()
