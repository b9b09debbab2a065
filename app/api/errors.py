"""Exception handlers — every failure leaves as ``{"error": message}`` (HTTP 400)."""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.billing.errors import BillingError
from app.schemas.billing import error_body

logger = logging.getLogger(__name__)


async def billing_exception_handler(request: Request, exc: BillingError) -> JSONResponse:
    """Convert a billing error into the uniform error body."""
    logger.error("%s on %s: %s", type(exc).__name__, request.url.path, exc.message)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body(exc.message),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle malformed request bodies with the same shape as billing errors."""
    errors = exc.errors()
    logger.warning("Validation error on %s: %s", request.url.path, errors)
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid request")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body(f"{location}: {message}" if location else message),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(BillingError, billing_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore[arg-type]
