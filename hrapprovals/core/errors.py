"""
Domain errors and central error handling for the HR approvals service

Services raise the HTTPException subclasses below; the handlers render every
error with the same JSON envelope.
"""
import logging
import traceback
from typing import Optional

from fastapi import Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi import HTTPException

from hrapprovals.core.config import settings

logger = logging.getLogger(__name__)


class DomainError(HTTPException):
    """Base class for errors raised by the approval engine"""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "domain_error"

    def __init__(self, detail: str, code: Optional[str] = None):
        super().__init__(status_code=self.status_code, detail=detail)
        if code is not None:
            self.code = code


class ValidationError(DomainError):
    """Malformed input: reason too short, past start date, end before start, negative hours"""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "validation_error"


class AuthorizationError(DomainError):
    """Actor lacks authority for the requested transition"""

    status_code = status.HTTP_403_FORBIDDEN
    code = "forbidden"


class NotFoundError(DomainError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"


class ConflictError(DomainError):
    """Overlap, duplicate record, or a request that is no longer in the expected state"""

    status_code = status.HTTP_409_CONFLICT
    code = "conflict"


class StateError(ConflictError):
    """A guarded transition found the row in a different status than expected"""

    code = "invalid_state"

    def __init__(self, entity: str, current_status: Optional[str], detail: Optional[str] = None):
        self.entity = entity
        self.current_status = current_status
        if detail is None:
            if current_status is None:
                detail = f"{entity} is no longer available"
            else:
                detail = f"{entity} is already {current_status.lower()}"
        super().__init__(detail)


def _error_body(request: Request, status_code: int, detail, code: Optional[str] = None) -> dict:
    body = {
        "error": True,
        "status_code": status_code,
        "detail": detail,
        "path": str(request.url.path),
    }
    if code is not None:
        body["code"] = code
    return body


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """
    Handle HTTPException (including domain errors) with consistent JSON response format

    Args:
        request: FastAPI request object
        exc: HTTPException instance

    Returns:
        JSONResponse with error details
    """
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(request, exc.status_code, exc.detail, getattr(exc, "code", None)),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Handle RequestValidationError with consistent JSON response format

    Does not leak internal validation details in production.
    """
    if settings.APP_ENV == "prod":
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content=_error_body(request, 422, "Validation error: Invalid request data", "request_validation"),
        )

    # ctx may carry exception instances (e.g. ValueError from a validator); stringify them
    errors = []
    for e in exc.errors():
        err = dict(e)
        if "ctx" in err and isinstance(err["ctx"], dict):
            err["ctx"] = {
                k: (str(v) if not isinstance(v, (str, int, float, bool, type(None))) else v)
                for k, v in err["ctx"].items()
            }
        errors.append(err)
    content = _error_body(request, 422, "Validation error", "request_validation")
    content["errors"] = errors
    return JSONResponse(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, content=content)


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Handle unexpected exceptions with consistent JSON response format

    Does not leak internal error details in production.
    """
    logger.error("Unhandled exception on %s: %s", request.url.path, exc, exc_info=True)

    if settings.APP_ENV == "prod":
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=_error_body(request, 500, "Internal server error", "internal_error"),
        )

    content = _error_body(request, 500, str(exc), "internal_error")
    if settings.APP_ENV == "local":
        content["traceback"] = traceback.format_exc()
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=content)
