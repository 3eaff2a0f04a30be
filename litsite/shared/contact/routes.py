"""Contact routes for relaying website enquiries to the site owner."""

import json
import logging

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse, Response
from starlette.concurrency import run_in_threadpool

from litsite.config import get_email_settings
from litsite.shared.contact.email_utils import send_contact_email
from litsite.shared.contact.rate_limit import contact_rate_limiter, get_rate_limit_identifier
from litsite.shared.contact.schemas import (
    ContactResponse,
    ErrorResponse,
    SanitizedContact,
    validate_contact_submission,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["contact"])

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
}

ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


def _error(status_code: int, error: str, fields=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=error, fields=fields).model_dump(exclude_none=True),
        headers=CORS_HEADERS,
    )


@router.api_route("/send-contact-email", methods=ALL_METHODS)
async def send_contact_email_handler(request: Request):
    """
    Relay a contact form submission to the site owner's inbox.

    Order of checks:
    - OPTIONS preflight is answered with CORS headers only
    - anything but POST is refused (405)
    - rate limit per User-Agent derived identifier (429)
    - JSON object body (400)
    - shared contact field rules (400)
    Valid submissions are sanitized and emailed; the response is
    {"success": true} or a generic error.
    """
    if request.method == "OPTIONS":
        return Response(status_code=status.HTTP_204_NO_CONTENT, headers=CORS_HEADERS)

    if request.method != "POST":
        return _error(status.HTTP_405_METHOD_NOT_ALLOWED, "Method not allowed")

    try:
        if contact_rate_limiter.is_limited(get_rate_limit_identifier(request)):
            logger.info("Rate limit exceeded")
            return _error(status.HTTP_429_TOO_MANY_REQUESTS, "Too many requests. Please try again later.")

        try:
            data = await request.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            return _error(status.HTTP_400_BAD_REQUEST, "Invalid request body")
        if not isinstance(data, dict):
            return _error(status.HTTP_400_BAD_REQUEST, "Invalid request body")

        result = validate_contact_submission(data)
        if not result.is_valid:
            return _error(
                status.HTTP_400_BAD_REQUEST,
                f"Invalid fields: {', '.join(result.errors)}",
                fields=result.errors,
            )

        contact = SanitizedContact.from_request(result.submission)

        # Log only non-PII for debugging (no names, emails or messages)
        logger.info("Processing contact form submission")

        email_sent = await run_in_threadpool(send_contact_email, contact, get_email_settings())
        if not email_sent:
            return _error(
                status.HTTP_500_INTERNAL_SERVER_ERROR,
                "Failed to send message. Please try again later.",
            )

        return JSONResponse(
            status_code=status.HTTP_200_OK,
            content=ContactResponse(success=True).model_dump(),
            headers=CORS_HEADERS,
        )

    except Exception as e:
        logger.error(f"Error in send-contact-email handler: {type(e).__name__}")
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "An error occurred. Please try again.")
