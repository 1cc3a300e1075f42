"""Global error handling middleware for consistent error responses."""

import logging
import traceback
from typing import Any, Callable

from fastapi import HTTPException, Request, Response, status
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from storefront.schemas.common import ErrorResponse

logger = logging.getLogger(__name__)

# Routes whose malformed bodies are reported as invalid carts rather than 422s
CART_INPUT_PATHS = ("/create_preference",)


class APIError(Exception):
    """Base exception for API errors.

    Use this class to raise application-specific errors that should
    be returned to the client with a specific status code and message.
    """

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        error_type: str = "api_error",
        details: list[dict[str, Any]] | None = None,
    ) -> None:
        """Initialize API error.

        Args:
            message: Human-readable error message.
            status_code: HTTP status code to return.
            error_type: Error category/type for client handling.
            details: Optional additional error details.
        """
        self.message = message
        self.status_code = status_code
        self.error_type = error_type
        self.details = details
        super().__init__(message)


class NotFoundError(APIError):
    """Resource not found error."""

    def __init__(self, message: str = "Resource not found", details: list[dict[str, Any]] | None = None) -> None:
        super().__init__(
            message=message,
            status_code=status.HTTP_404_NOT_FOUND,
            error_type="not_found",
            details=details,
        )


class InvalidCartError(APIError):
    """Cart input the client has to fix before a payment intent can be created.

    Raised before any processor call, so it never leaves partial state behind.
    """

    def __init__(
        self,
        message: str = "Invalid cart",
        field: str | None = None,
        index: int | None = None,
    ) -> None:
        if index is not None:
            loc = ["items", str(index)] + ([field] if field else [])
        else:
            loc = [field or "items"]
        super().__init__(
            message=message,
            status_code=status.HTTP_400_BAD_REQUEST,
            error_type="invalid_cart",
            details=[{"loc": loc, "msg": message, "type": "invalid_cart"}],
        )
        self.field = field
        self.index = index


class PaymentProcessorError(APIError):
    """Transient or permanent failure reported by the payment processor."""

    def __init__(
        self,
        message: str = "Payment processor unavailable, please try again later",
        processor_status: int | None = None,
        processor_message: str | None = None,
    ) -> None:
        super().__init__(
            message=message,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            error_type="payment_processor_error",
        )
        self.processor_status = processor_status
        self.processor_message = processor_message


def create_error_response(
    error_type: str,
    message: str,
    status_code: int,
    details: list[dict[str, Any]] | None = None,
    request_id: str | None = None,
) -> JSONResponse:
    """Create a standardized JSON error response.

    Args:
        error_type: Error category for client handling.
        message: Human-readable error description.
        status_code: HTTP status code.
        details: Optional error details.
        request_id: Optional request ID for tracing.

    Returns:
        JSONResponse: Formatted error response.
    """
    error_response = ErrorResponse.from_exception(
        error_type=error_type,
        message=message,
        details=details,
        request_id=request_id,
    )
    return JSONResponse(
        status_code=status_code,
        content=error_response.model_dump(mode="json", exclude_none=True),
    )


async def error_handler_middleware(request: Request, call_next: Callable[[Request], Any]) -> Response:
    """Middleware to catch and format all exceptions.

    Ensures consistent error response format across the application.
    Logs full stack traces for debugging while returning safe messages to clients.

    Args:
        request: The incoming request.
        call_next: Next middleware or route handler.

    Returns:
        Response: Either the successful response or formatted error response.
    """
    request_id = request.headers.get("X-Request-ID")

    try:
        response = await call_next(request)
        return response

    except PaymentProcessorError as e:
        # Processor detail stays in the logs; clients get the generic retry message
        logger.error(
            "Payment processor error: %s (status=%s)",
            e.processor_message,
            e.processor_status,
            extra={"request_id": request_id, "path": request.url.path},
        )
        return create_error_response(
            error_type=e.error_type,
            message=e.message,
            status_code=e.status_code,
            request_id=request_id,
        )

    except APIError as e:
        logger.warning(
            "API error: %s - %s",
            e.error_type,
            e.message,
            extra={"request_id": request_id, "status_code": e.status_code},
        )
        return create_error_response(
            error_type=e.error_type,
            message=e.message,
            status_code=e.status_code,
            details=e.details,
            request_id=request_id,
        )

    except HTTPException as e:
        logger.warning(
            "HTTP exception: %s - %s",
            e.status_code,
            e.detail,
            extra={"request_id": request_id},
        )
        return create_error_response(
            error_type="http_error",
            message=str(e.detail),
            status_code=e.status_code,
            request_id=request_id,
        )

    except Exception as e:
        # Unexpected exceptions - log full stack trace
        logger.error(
            "Unhandled exception: %s\n%s",
            str(e),
            traceback.format_exc(),
            extra={"request_id": request_id},
        )
        return create_error_response(
            error_type="internal_error",
            message="An unexpected error occurred",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            request_id=request_id,
        )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> Response:
    """Report unparseable cart submissions as 400 invalid_cart errors.

    The storefront frontend only understands the ErrorResponse shape on
    /create_preference, so a body that is not JSON or has the wrong types
    gets the same answer as a cart that fails validation. Other routes keep
    FastAPI's default 422.

    Args:
        request: The incoming request.
        exc: The validation error raised while parsing the request.

    Returns:
        Response: 400 ErrorResponse for cart input routes, FastAPI's default otherwise.
    """
    if request.url.path not in CART_INPUT_PATHS:
        return await request_validation_exception_handler(request, exc)

    details = [
        {
            "loc": [str(part) for part in error.get("loc", ())],
            "msg": error.get("msg", "Invalid value"),
            "type": error.get("type", "invalid_cart"),
        }
        for error in exc.errors()
    ]
    logger.warning(
        "Rejected malformed cart submission: %s",
        [d["loc"] for d in details],
        extra={"request_id": request.headers.get("X-Request-ID"), "path": request.url.path},
    )
    return create_error_response(
        error_type="invalid_cart",
        message="The cart submission could not be read",
        status_code=status.HTTP_400_BAD_REQUEST,
        details=details,
        request_id=request.headers.get("X-Request-ID"),
    )
