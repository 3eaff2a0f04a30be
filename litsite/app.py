"""LIT Productions site service - FastAPI backend for the website contact form."""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from litsite.config import get_email_settings, get_log_level
from litsite.shared.contact.routes import CORS_HEADERS, router as contact_router

logging.basicConfig(
    level=get_log_level(),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

# Fail fast at startup when the email provider key is missing
get_email_settings()

app = FastAPI(
    title="LIT Productions Site Service",
    description="Contact form relay for the LIT Productions website",
    version="0.1.0"
)

# Include contact routes
app.include_router(contact_router)


# Global exception handlers to ensure CORS headers are always added
@app.exception_handler(StarletteHTTPException)
async def starlette_http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Ensure CORS headers are added to Starlette HTTP exceptions."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail if isinstance(exc.detail, str) else str(exc.detail)},
        headers=CORS_HEADERS
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Ensure CORS headers are added to all exceptions."""
    logging.error(f"Unhandled exception: {type(exc).__name__}")
    return JSONResponse(
        status_code=500,
        content={"error": "An error occurred. Please try again."},
        headers=CORS_HEADERS
    )


@app.get("/")
async def root():
    return {"message": "LIT Productions site service is running", "status": "ok"}


@app.get("/health")
async def health():
    return {"status": "healthy"}
