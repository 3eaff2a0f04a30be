"""Application configuration loaded from environment variables."""

import os
from dataclasses import dataclass
from functools import lru_cache

# Load environment variables from .env file (for local development)
from dotenv import load_dotenv

load_dotenv()


@dataclass(frozen=True)
class EmailSettings:
    """Email provider settings for the contact form relay."""
    api_key: str
    smtp_host: str = "smtp.resend.com"
    smtp_port: int = 587
    smtp_user: str = "resend"
    sender: str = "LIT Productions Contact <onboarding@resend.dev>"
    recipient: str = "litaiproductions@gmail.com"
    timeout_seconds: float = 10.0


def load_email_settings() -> EmailSettings:
    """
    Build email settings from the environment.

    Raises:
        ValueError if RESEND_API_KEY is not set
    """
    api_key = os.environ.get("RESEND_API_KEY")
    if not api_key:
        raise ValueError(
            "RESEND_API_KEY environment variable is required. "
            "Please set it to your email provider API key."
        )

    return EmailSettings(
        api_key=api_key,
        smtp_host=os.environ.get("SMTP_HOST", "smtp.resend.com"),
        smtp_port=int(os.environ.get("SMTP_PORT", "587")),
        smtp_user=os.environ.get("SMTP_USER", "resend"),
        sender=os.environ.get("CONTACT_EMAIL_FROM", "LIT Productions Contact <onboarding@resend.dev>"),
        recipient=os.environ.get("CONTACT_EMAIL_TO", "litaiproductions@gmail.com"),
        timeout_seconds=float(os.environ.get("SMTP_TIMEOUT_SECONDS", "10")),
    )


@lru_cache
def get_email_settings() -> EmailSettings:
    return load_email_settings()


def get_log_level() -> str:
    return os.environ.get("LOG_LEVEL", "INFO").upper()
