import logging

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.platform.response import api_response

logger = logging.getLogger(__name__)


class AffiliateError(Exception):
    """Base for errors raised by the attribution and ledger services."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "error"
    message = "Request could not be processed"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)
        self.message = message or self.message


class InvalidSignature(AffiliateError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "invalid_signature"
    message = "Webhook signature verification failed"


class InvalidPayload(AffiliateError):
    code = "invalid_payload"
    message = "Webhook payload could not be parsed"


class UnsupportedPlatform(AffiliateError):
    code = "unsupported_platform"
    message = "Platform is not supported"


class InvalidAmount(AffiliateError):
    code = "invalid_amount"
    message = "Withdrawal amount is invalid"


class InsufficientFunds(AffiliateError):
    code = "insufficient"
    message = "Insufficient balance for this withdrawal"


class WithdrawalNotFound(AffiliateError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"
    message = "Withdrawal not found"


class InvalidWithdrawalTransition(AffiliateError):
    status_code = status.HTTP_409_CONFLICT
    code = "invalid_transition"
    message = "Withdrawal cannot move to the requested status"


class StorageFailure(AffiliateError):
    """Persistence error; callers may retry the whole operation."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "storage_failure"
    message = "Could not persist the operation, please retry"


def add_exception_handlers(app):
    @app.exception_handler(AffiliateError)
    async def affiliate_exception_handler(request: Request, exc: AffiliateError):
        if isinstance(exc, StorageFailure):
            logger.error(f"Storage failure on {request.url.path}: {exc}")
        return api_response(
            data={"error": exc.code},
            message=exc.message,
            status_code=exc.status_code,
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return api_response(message=str(exc.detail) or "Error", status_code=exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return api_response(
            message="Validation failed",
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            data={"errors": exc.errors()},
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled exception: {exc}")
        return api_response(
            message="Internal server error",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )
