from typing import Any

from fastapi import Request, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from geo_resolver.errors import (
    InvalidIpError,
    LocationProviderError,
    ProviderMalfunctionError,
    ProviderNotFoundError,
)
from geo_resolver.logger import logger

# Most specific classes first; the first isinstance match wins.
_PROVIDER_ERROR_RESPONSES: list[tuple[type[LocationProviderError], int, str]] = [
    (InvalidIpError, status.HTTP_400_BAD_REQUEST, "invalid_ip"),
    (ProviderNotFoundError, status.HTTP_400_BAD_REQUEST, "unknown_provider"),
    (ProviderMalfunctionError, status.HTTP_502_BAD_GATEWAY, "provider_error"),
]


def _request_label(request: Request) -> str:
    provider_id = request.query_params.get("provider")
    return f"path={request.url.path} method={request.method} provider={provider_id}"


def _error_body(request: Request, code: str, message: str) -> dict[str, Any]:
    return {
        "code": code,
        "message": message,
        "provider": request.query_params.get("provider"),
    }


def _validation_error_code(errors: list[Any]) -> tuple[str, str]:
    """Pick a stable code/message pair; raw pydantic details are not exposed to clients."""
    for error in errors:
        loc = error.get("loc", ())
        # Both request-level ("query", "ip") and model-level ("ip") locations end with the field.
        if loc and loc[-1] == "ip":
            return "invalid_ip", "The supplied IP address is not a valid IPv4 or IPv6 address."
    return "invalid_request", "Invalid request parameters"


async def pydantic_validation_exception_handler(request: Request, exc: ValidationError) -> JSONResponse:
    """Handle Pydantic validation errors raised while building query models."""
    errors = exc.errors(include_context=False, include_url=False)
    logger.info(f"Validation error during request handling {_request_label(request)} errors={errors}")
    code, message = _validation_error_code(errors)
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=_error_body(request, code, message))


async def location_provider_exception_handler(request: Request, exc: LocationProviderError) -> JSONResponse:
    """Map domain errors escaping a lookup to structured HTTP responses."""
    for error_cls, status_code, code in _PROVIDER_ERROR_RESPONSES:
        if isinstance(exc, error_cls):
            break
    else:
        status_code, code = status.HTTP_502_BAD_GATEWAY, "provider_error"

    if status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.exception(f"Location provider failure {_request_label(request)} error={exc!r}")
    else:
        logger.error(f"Rejected location request {_request_label(request)} error={exc}")
    return JSONResponse(status_code=status_code, content=_error_body(request, code, str(exc)))


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected errors to return a structured 500 response."""
    logger.exception(f"Unhandled exception while processing request: {exc!r} {_request_label(request)}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body(request, "internal_error", "An unexpected error occurred while processing the request."),
    )
