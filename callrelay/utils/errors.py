"""
Error handling utilities for safe, standardized error responses.

Standard Error Response Format:
{
    "detail": {
        "code": "ERROR_CODE",
        "message": "Human readable message"
    }
}

Webhook trigger routes answer with {"success": false, "error": "..."}
instead, because phone-system dial plans only look at that flag.
"""
from enum import Enum
from typing import Optional, Dict, Any
from loguru import logger
from fastapi import Request
from fastapi.responses import JSONResponse


class ErrorCode(str, Enum):
    """Standardized error codes for API responses."""

    # Not found errors (404)
    NOT_FOUND = "NOT_FOUND"
    UNKNOWN_CONFIG = "UNKNOWN_CONFIG"

    # Validation errors (400)
    INVALID_REQUEST = "INVALID_REQUEST"

    # Conflict errors (409)
    ALREADY_EXISTS = "ALREADY_EXISTS"

    # Server errors (500/502)
    INTERNAL_ERROR = "INTERNAL_ERROR"
    EXTERNAL_SERVICE_ERROR = "EXTERNAL_SERVICE_ERROR"
    CREDENTIAL_ERROR = "CREDENTIAL_ERROR"
    NO_RECIPIENTS = "NO_RECIPIENTS"
    STORAGE_ERROR = "STORAGE_ERROR"


def create_error_response(
    code: ErrorCode,
    message: str,
    status_code: int,
    details: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """Body of a management API error; status_code is informational only."""
    response = {
        "code": code.value,
        "message": message
    }
    if details:
        response["details"] = details
    return response


class RelayError(Exception):
    """Base class for errors raised by the relay core."""

    code: ErrorCode = ErrorCode.INTERNAL_ERROR
    status_code: int = 500

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> Dict[str, Any]:
        return create_error_response(self.code, self.message, self.status_code, self.details)


class CredentialError(RelayError):
    """GoTo token exchange failed."""

    code = ErrorCode.CREDENTIAL_ERROR
    status_code = 502

    def __init__(self, message: str, upstream: Any = None):
        self.upstream = upstream
        super().__init__(message, {"upstream": upstream} if upstream is not None else None)


class DispatchError(RelayError):
    """Sending an SMS through the provider failed."""

    code = ErrorCode.EXTERNAL_SERVICE_ERROR
    status_code = 500


class NoRecipientsError(DispatchError):
    """Recipient list was empty after parsing."""

    code = ErrorCode.NO_RECIPIENTS


class NotFoundError(RelayError):
    code = ErrorCode.NOT_FOUND
    status_code = 404


class UnknownConfigError(NotFoundError):
    """Webhook triggered for a name with no active config."""

    code = ErrorCode.UNKNOWN_CONFIG


class InvalidInputError(RelayError):
    code = ErrorCode.INVALID_REQUEST
    status_code = 400


class AlreadyExistsError(RelayError):
    code = ErrorCode.ALREADY_EXISTS
    status_code = 409


class PersistenceError(RelayError):
    """A JSON document could not be written; in-memory state was not changed."""

    code = ErrorCode.STORAGE_ERROR
    status_code = 500


async def relay_error_handler(request: Request, exc: RelayError) -> JSONResponse:
    """Render RelayError subclasses in the standard error format."""
    if exc.status_code >= 500:
        logger.error(f"API Error [{exc.code.value}] {request.method} {request.url.path}: {exc.message}")
    else:
        logger.warning(f"API Error [{exc.code.value}] {request.method} {request.url.path}: {exc.message}")

    return JSONResponse(status_code=exc.status_code, content={"detail": exc.to_response()})
