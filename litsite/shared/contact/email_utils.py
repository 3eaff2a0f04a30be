"""Email utilities for relaying contact form submissions to the site owner."""

import html
import smtplib
import logging
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart

from litsite.config import EmailSettings
from litsite.shared.contact.schemas import SanitizedContact

logger = logging.getLogger(__name__)


def _plain(value: str) -> str:
    """Undo HTML escaping for the text/plain part."""
    return html.unescape(value.replace("<br>", "\n"))


def _header_text(value: str) -> str:
    """Unescaped value collapsed onto one line for use in a header."""
    return " ".join(_plain(value).split())


def build_contact_email(contact: SanitizedContact, settings: EmailSettings) -> MIMEMultipart:
    """
    Build the notification email for one contact form submission.

    Args:
        contact: Sanitized contact fields (HTML-escaped, email normalized)
        settings: Sender/recipient configuration

    Returns:
        multipart/alternative message with plain text and HTML parts
    """
    msg = MIMEMultipart('alternative')
    msg['From'] = settings.sender
    msg['To'] = settings.recipient
    msg['Reply-To'] = contact.email
    msg['Subject'] = f"New Contact Form Submission from {_header_text(contact.name)}"

    company_line = f"Company: {_plain(contact.company)}\n" if contact.company else ""
    company_html = f'<p><strong>Company:</strong> {contact.company}</p>' if contact.company else ""

    # Plain text version
    text_body = f"""
New contact form submission from the LIT Productions website:

Name: {_plain(contact.name)}
Email: {contact.email}
{company_line}
Project details:
{_plain(contact.message)}

---
This email was sent from the LIT Productions contact form.
Reply directly to this email to respond.
"""

    # HTML version
    html_body = f"""
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
    <h1 style="color: #1a1a2e; border-bottom: 2px solid #d4af37; padding-bottom: 10px;">
        New Contact Form Submission
    </h1>

    <div style="background-color: #f5f5f5; padding: 20px; border-radius: 8px; margin: 20px 0;">
        <h2 style="color: #333; margin-top: 0;">Contact Details</h2>
        <p><strong>Name:</strong> {contact.name}</p>
        <p><strong>Email:</strong> <a href="mailto:{contact.email}">{contact.email}</a></p>
        {company_html}
    </div>

    <div style="background-color: #fff; padding: 20px; border: 1px solid #ddd; border-radius: 8px;">
        <h2 style="color: #333; margin-top: 0;">Project Details</h2>
        <p style="line-height: 1.6;">{contact.message}</p>
    </div>

    <p style="color: #666; font-size: 12px; margin-top: 20px;">
        This email was sent from the LIT Productions contact form.
    </p>
</div>
"""

    msg.attach(MIMEText(text_body, 'plain'))
    msg.attach(MIMEText(html_body, 'html'))
    return msg


def send_contact_email(contact: SanitizedContact, settings: EmailSettings) -> bool:
    """
    Send a contact form notification through the provider's SMTP relay.

    Never retries. Log lines carry no submitter details.

    Returns:
        True if email sent successfully, False otherwise
    """
    try:
        msg = build_contact_email(contact, settings)

        with smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=settings.timeout_seconds) as server:
            server.starttls()  # Enable encryption
            server.login(settings.smtp_user, settings.api_key)
            server.send_message(msg)

        logger.info("Contact form email sent successfully")
        return True

    except Exception as e:
        logger.error(f"Failed to send contact form email: {type(e).__name__}")
        return False
