import os
from unittest.mock import patch

import pytest

# The app refuses to start without a provider key
os.environ.setdefault("RESEND_API_KEY", "re_test_key")


@pytest.fixture(autouse=True)
def reset_contact_rate_limiter():
    from litsite.shared.contact.rate_limit import contact_rate_limiter
    contact_rate_limiter.reset()
    yield
    contact_rate_limiter.reset()


@pytest.fixture
def client():
    from fastapi.testclient import TestClient
    from litsite.app import app
    return TestClient(app)


@pytest.fixture
def mock_smtp():
    """Patch the SMTP class used by the contact mailer."""
    with patch("litsite.shared.contact.email_utils.smtplib.SMTP") as smtp:
        yield smtp


@pytest.fixture
def smtp_server(mock_smtp):
    """The connection object yielded by `with smtplib.SMTP(...) as server`."""
    return mock_smtp.return_value.__enter__.return_value


@pytest.fixture
def valid_payload():
    return {
        "name": "Jane Doe",
        "email": "jane@example.com",
        "company": "",
        "message": "I would like a quote for a new site.",
    }
