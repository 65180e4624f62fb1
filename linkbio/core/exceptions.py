"""Domain error taxonomy and its mapping onto HTTP responses."""

from typing import Literal

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = structlog.get_logger()


class LinkbioError(Exception):
    """Base class for errors that carry their own HTTP status."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail: str = "Internal server error"

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class UnauthorizedError(LinkbioError):
    """No session, or the session token is invalid."""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "You must be logged in."


class ForbiddenError(LinkbioError):
    """Valid session, but the caller does not own the resource."""

    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "You do not have access to this resource."


class NotFoundError(LinkbioError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found"


class InvalidInputError(LinkbioError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid input"


class ConflictError(LinkbioError):
    """A uniqueness rule was violated.

    Reported as 400 rather than 409; clients rely on that status.
    """

    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Resource already exists"


class UpstreamTimeoutError(LinkbioError):
    """A store or identity call exceeded its deadline.

    Connection-phase timeouts map to 503, query-phase timeouts to 504.
    """

    def __init__(self, phase: Literal["connect", "query"]) -> None:
        self.phase = phase
        if phase == "connect":
            self.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
            detail = "Database connection failed. Please try again later."
        else:
            self.status_code = status.HTTP_504_GATEWAY_TIMEOUT
            detail = "Request timed out. Please try again later."
        super().__init__(detail)


async def linkbio_error_handler(request: Request, exc: LinkbioError) -> JSONResponse:
    """Render a domain error as a JSON response."""
    if exc.status_code >= 500:
        logger.warning(
            "Request failed",
            status_code=exc.status_code,
            error=exc.detail,
        )
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


async def validation_error_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """Report malformed input as 400 with a readable message."""
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        message = str(error.get("msg", "Invalid value"))
        messages.append(f"{location}: {message}" if location else message)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": "; ".join(messages) or "Invalid input"},
    )


async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Hide internals behind a generic 500; keep the detail in the logs."""
    logger.exception("Unhandled error", error=str(exc))
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Install the error taxonomy on the application."""
    app.add_exception_handler(LinkbioError, linkbio_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unexpected_error_handler)
