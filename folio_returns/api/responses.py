"""Shared JSON error envelopes for API routers."""

from __future__ import annotations

from fastapi import status
from fastapi.responses import JSONResponse

from folio_returns.domain import DataIntegrityError


_UNPROCESSABLE_STATUS_CODE = 422


def api_error_response(code: str, message: str, status_code: int) -> JSONResponse:
    """Build the standard error envelope.

    Args:
        code: Stable machine-readable error code.
        message: Human-readable detail.
        status_code: HTTP status code.

    Returns:
        JSONResponse: Error envelope response.
    """

    payload = {
        "status": "error",
        "code": code,
        "message": message,
    }
    return JSONResponse(content=payload, status_code=status_code)


def api_exception_response(error: Exception) -> JSONResponse:
    """Map an engine or store exception onto its error envelope.

    Data-integrity failures map to 422, unknown records to 404, and any other
    `ValueError` (bad dates, ranges, or scopes) to 400.

    Args:
        error: Raised exception.

    Returns:
        JSONResponse: Error envelope response.

    Raises:
        Exception: Re-raises exceptions outside the mapped families.
    """

    if isinstance(error, DataIntegrityError):
        return api_error_response(error.error_code, str(error), _UNPROCESSABLE_STATUS_CODE)
    if isinstance(error, KeyError):
        message = error.args[0] if error.args else "resource not found"
        return api_error_response("NOT_FOUND", str(message), status.HTTP_404_NOT_FOUND)
    if isinstance(error, ValueError):
        return api_error_response("INVALID_REQUEST", str(error), status.HTTP_400_BAD_REQUEST)
    raise error


__all__ = ["api_error_response", "api_exception_response"]
