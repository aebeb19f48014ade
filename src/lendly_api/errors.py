"""Error taxonomy for the request lifecycle and the FastAPI handlers that render it."""

from fastapi import Request
from fastapi import status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger

from lendly_api.monitoring.logger import log_response_info

__all__ = [
    "RequestLifecycleError",
    "Unauthenticated",
    "NotFound",
    "Forbidden",
    "InvalidTransition",
    "InvalidCode",
    "InvalidAction",
    "PersistenceFailure",
    "handle_broad_exceptions",
    "handle_lifecycle_errors",
    "handle_request_validation_errors",
]


class RequestLifecycleError(Exception):
    """
    Base class for every failure reported by the request lifecycle service.

    Each subclass carries a stable machine-checkable ``reason`` and the HTTP status
    it maps to. ``message`` is the human readable text returned to the caller.
    """

    reason = "lifecycle_error"
    http_status = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Request lifecycle error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"error": self.message, "reason": self.reason}


class Unauthenticated(RequestLifecycleError):
    """No valid caller identity."""

    reason = "unauthenticated"
    http_status = status.HTTP_401_UNAUTHORIZED
    default_message = "Unauthorized"


class NotFound(RequestLifecycleError):
    """Unknown request id."""

    reason = "not_found"
    http_status = status.HTTP_404_NOT_FOUND
    default_message = "Request not found"


class Forbidden(RequestLifecycleError):
    """Caller is not the actor designated for the action."""

    reason = "forbidden"
    http_status = status.HTTP_403_FORBIDDEN
    default_message = "Unauthorized action"


class InvalidTransition(RequestLifecycleError):
    """Action is not legal from the current status."""

    reason = "invalid_transition"
    http_status = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid status transition"


class InvalidCode(RequestLifecycleError):
    """Activation code does not match the stored handover code."""

    reason = "invalid_code"
    http_status = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid handover code"


class InvalidAction(RequestLifecycleError):
    """Unrecognised action name."""

    reason = "invalid_action"
    http_status = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid action"


class PersistenceFailure(RequestLifecycleError):
    """The request store could not be read or written. The only class a caller may retry."""

    reason = "persistence_failure"
    http_status = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Failed to update request status"


# fastapi docs on middlewares: https://fastapi.tiangolo.com/tutorial/middleware/
async def handle_broad_exceptions(request: Request, call_next):
    """Handle any exception that goes unhandled by a more specific exception handler."""
    try:
        return await call_next(request)
    except Exception as err:  # pylint: disable=broad-except
        error_response = {"error": "Internal server error", "reason": "internal_error"}

        logger.error(
            "Unhandled exception: {}: {}",
            type(err).__name__,
            str(err),
            http_status=500,
            http_method=request.method,
            url_path=str(request.url.path),
            error_type=type(err).__name__,
            exc_info=True,
        )

        response = JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_response,
        )
        log_response_info(response)
        return response


# fastapi docs on error handlers: https://fastapi.tiangolo.com/tutorial/handling-errors/
async def handle_lifecycle_errors(request: Request, exc: RequestLifecycleError) -> JSONResponse:
    """
    Convert a lifecycle error into its JSON response.

    4xx failures are deterministic given the same input and are logged as warnings.
    Persistence failures are logged as errors with the traceback of the underlying cause.
    """
    error_response = exc.to_dict()
    log_fields = dict(
        http_status=exc.http_status,
        http_method=request.method,
        url_path=str(request.url.path),
        error_type=type(exc).__name__,
        reason=exc.reason,
        response_body=error_response,
    )

    if exc.http_status >= 500:
        logger.opt(exception=exc).error("Request lifecycle failure: {}", exc.message, **log_fields)
    else:
        logger.warning("Request lifecycle rejected: {}", exc.message, **log_fields)

    response = JSONResponse(status_code=exc.http_status, content=error_response)
    log_response_info(response)
    return response


async def handle_request_validation_errors(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle malformed request bodies (missing requestId, wrong JSON types)."""
    errors = exc.errors()
    error_response = {
        "error": "; ".join(f"{'.'.join(str(p) for p in error['loc'])}: {error['msg']}" for error in errors)
        or "Invalid request body",
        "reason": "invalid_request",
    }

    logger.warning(
        "Validation error: {} validation errors",
        len(errors),
        http_status=400,
        http_method=request.method,
        url_path=str(request.url.path),
        error_type="RequestValidationError",
        validation_errors=errors,
        response_body=error_response,
    )

    response = JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_response,
    )
    log_response_info(response)
    return response
