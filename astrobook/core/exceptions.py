from typing import Any, Dict, Optional
from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse
import logging

from .config import settings

logger = logging.getLogger(__name__)


class APIError(HTTPException):
    """Base class for errors rendered as {"message", "code"} responses."""
    code = "APIError"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Bad request"

    def __init__(
        self,
        message: Optional[str] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        super().__init__(
            status_code=type(self).status_code,
            detail=message or self.default_message,
            headers=headers,
        )

    @property
    def message(self) -> str:
        return self.detail

    def to_content(self) -> Dict[str, Any]:
        return {"message": self.message, "code": self.code}


# Client input errors
class MissingFieldError(APIError):
    code = "MissingField"
    default_message = "All fields are required"

class InvalidEmailError(APIError):
    code = "InvalidEmail"
    default_message = "Invalid email format"

class InvalidPhoneError(APIError):
    code = "InvalidPhone"
    default_message = "Invalid phone number format"

class InvalidDateError(APIError):
    code = "InvalidDate"
    default_message = "Invalid date format"

class PastDateError(APIError):
    code = "PastDate"
    default_message = "Please select a future date"

class ConflictError(APIError):
    code = "Conflict"
    default_message = "User already exists"


class NotFoundError(APIError):
    code = "NotFound"
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class RateLimitedError(APIError):
    code = "RateLimited"
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    default_message = "Too many requests. Please try again later."


class ServiceUnavailableError(APIError):
    code = "ServiceUnavailable"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_message = "Service temporarily unavailable. Please try again later."


class InternalError(APIError):
    """Unexpected storage or signing fault.

    ``error`` keeps the underlying fault message. It is logged always and
    only returned to the client when EXPOSE_ERROR_DETAILS is on.
    """
    code = "InternalError"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Server error"

    def __init__(self, message: Optional[str] = None, error: Optional[str] = None):
        super().__init__(message)
        self.error = error

    def to_content(self) -> Dict[str, Any]:
        content = super().to_content()
        if self.error and settings.EXPOSE_ERROR_DETAILS:
            content["error"] = self.error
        return content


async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
    if isinstance(exc, InternalError):
        logger.error(f"{request.method} {request.url.path} - {exc.message}: {exc.error}")
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_content(),
        headers=exc.headers,
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    content = {"message": "Internal server error"}
    if settings.DEBUG:
        content["error"] = str(exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=content,
    )
