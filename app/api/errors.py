"""Custom exceptions and error handling"""
from typing import Any, Dict, Optional
from fastapi import Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException
import structlog


logger = structlog.get_logger(__name__)

PLAN_LIMIT_REACHED = "PLAN_LIMIT_REACHED"
PLAN_LIMIT_REACHED_MESSAGE = (
    "You've reached the limit included in your current plan.\n"
    "Upgrade your plan to add more."
)
GENERIC_FAILURE_MESSAGE = "Something went wrong. Please try again."


class APIError(Exception):
    """Base API error with error envelope"""

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 400,
        details: Optional[Dict[str, Any]] = None
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class PlanLimitError(APIError):
    """Creation refused because the user's plan quota is used up"""

    def __init__(self, resource: str, limit: int):
        super().__init__(
            code=PLAN_LIMIT_REACHED,
            message=PLAN_LIMIT_REACHED_MESSAGE,
            status_code=status.HTTP_403_FORBIDDEN,
            details={"resource": resource, "limit": limit},
        )


class UnauthenticatedError(APIError):
    def __init__(self, message: str = "User must be authenticated"):
        super().__init__("UNAUTHENTICATED", message, status_code=status.HTTP_401_UNAUTHORIZED)


class ForbiddenError(APIError):
    def __init__(self, message: str = "Not allowed"):
        super().__init__("FORBIDDEN", message, status_code=status.HTTP_403_FORBIDDEN)


class NotFoundError(APIError):
    def __init__(self, entity: str, entity_id: str):
        super().__init__(
            "NOT_FOUND",
            f"{entity} not found",
            status_code=status.HTTP_404_NOT_FOUND,
            details={"id": entity_id},
        )


class InvoiceLockedError(APIError):
    def __init__(self, invoice_id: str):
        super().__init__(
            "INVOICE_LOCKED",
            "Paid invoices cannot be modified",
            status_code=status.HTTP_409_CONFLICT,
            details={"id": invoice_id},
        )


class CounterConflictError(APIError):
    def __init__(self, attempts: int):
        super().__init__(
            "COUNTER_CONFLICT",
            "Could not allocate an invoice number, please retry",
            status_code=status.HTTP_409_CONFLICT,
            details={"attempts": attempts},
        )


class EmailDeliveryError(APIError):
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            "EMAIL_DELIVERY_FAILED",
            f"Failed to send email: {message}",
            status_code=status.HTTP_502_BAD_GATEWAY,
            details=details,
        )


def create_error_response(
    code: str,
    message: str,
    request_id: str,
    details: Optional[Dict[str, Any]] = None,
    status_code: int = 400
) -> JSONResponse:
    """Create standardized error response"""
    return JSONResponse(
        status_code=status_code,
        content={
            "error": {
                "code": code,
                "message": message,
                "request_id": request_id,
                "details": jsonable_encoder(details or {})
            }
        }
    )


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "unknown")


async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
    """Handle APIError exceptions"""
    request_id = _request_id(request)

    log = logger.warning if exc.status_code < 500 else logger.error
    log(
        "api_error",
        code=exc.code,
        message=exc.message,
        request_id=request_id,
        path=request.url.path
    )

    return create_error_response(
        code=exc.code,
        message=exc.message,
        request_id=request_id,
        details=exc.details,
        status_code=exc.status_code
    )


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle Pydantic validation errors"""
    request_id = _request_id(request)

    logger.warning(
        "validation_error",
        errors=jsonable_encoder(exc.errors()),
        request_id=request_id,
        path=request.url.path
    )

    return create_error_response(
        code="VALIDATION_ERROR",
        message="Request validation failed",
        request_id=request_id,
        details={"errors": exc.errors()},
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Handle HTTP exceptions"""
    request_id = _request_id(request)

    logger.warning(
        "http_exception",
        status_code=exc.status_code,
        detail=exc.detail,
        request_id=request_id,
        path=request.url.path
    )

    return create_error_response(
        code="HTTP_ERROR",
        message=str(exc.detail),
        request_id=request_id,
        status_code=exc.status_code
    )


async def storage_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Storage failures surface as a generic message; the client retries by hand"""
    request_id = _request_id(request)

    logger.error(
        "storage_error",
        exc_info=exc,
        request_id=request_id,
        path=request.url.path
    )

    return create_error_response(
        code="STORAGE_ERROR",
        message=GENERIC_FAILURE_MESSAGE,
        request_id=request_id,
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions"""
    request_id = _request_id(request)

    logger.error(
        "unhandled_exception",
        exc_info=exc,
        request_id=request_id,
        path=request.url.path
    )

    return create_error_response(
        code="INTERNAL_ERROR",
        message="An internal error occurred",
        request_id=request_id,
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR
    )
