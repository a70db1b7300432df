"""
Application error hierarchy and FastAPI exception handlers.

AppError is the base for all typed errors. The global exception handler
converts AppError subclasses to consistent JSON responses.

Every expected failure of the verification and credential flows has exactly
one ErrorKind. Domain errors are raised where the condition is detected;
nothing wraps arbitrary exceptions into them. Store outages surface as
StoreUnavailableError (503) and are never reported as "not found".

Non-AppError exceptions bubble up as 500s (with Sentry reporting in production).
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse


class ErrorKind(str, Enum):
    """Closed set of domain failure kinds exposed to callers."""

    EMAIL_ALREADY_REGISTERED = "email_already_registered"
    RATE_LIMIT_EXCEEDED = "rate_limit_exceeded"
    OTP_EXPIRED = "otp_expired"
    SESSION_EXPIRED = "session_expired"
    INVALID_OTP = "invalid_otp"
    MAX_ATTEMPTS_EXCEEDED = "max_attempts_exceeded"
    VERIFICATION_NOT_COMPLETED = "verification_not_completed"
    PASSWORD_MISMATCH = "password_mismatch"
    INVALID_CREDENTIALS = "invalid_credentials"
    ACCOUNT_NOT_ACTIVE = "account_not_active"
    INVALID_TOKEN = "invalid_token"
    TOKEN_REVOKED_OR_EXPIRED = "token_revoked_or_expired"
    SERVICE_UNAVAILABLE = "service_unavailable"


class AppError(Exception):
    """Base application error. All typed errors inherit from this."""

    status_code: int = 500
    error_code: str = "internal_error"

    def __init__(
        self,
        message: str,
        *,
        field: Optional[str] = None,
        details: Optional[Any] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.field = field
        self.details = details

    def to_dict(self) -> dict:
        payload: dict = {"error": self.message, "code": self.error_code}
        if self.field is not None:
            payload["field"] = self.field
        if self.details is not None:
            payload["details"] = self.details
        return payload

    def headers(self) -> dict[str, str]:
        return {}


class ValidationError(AppError):
    status_code = 400
    error_code = "validation_error"


class AuthenticationError(AppError):
    status_code = 401
    error_code = "authentication_error"


class ForbiddenError(AppError):
    status_code = 403
    error_code = "forbidden"


class NotFoundError(AppError):
    status_code = 404
    error_code = "not_found"


class ConflictError(AppError):
    status_code = 409
    error_code = "conflict"


class GoneError(AppError):
    status_code = 410
    error_code = "gone"


class RateLimitError(AppError):
    status_code = 429
    error_code = "rate_limit_exceeded"


class ServiceUnavailableError(AppError):
    status_code = 503
    error_code = "service_unavailable"


# ── Registration / OTP ───────────────────────────────────────────────────────


class EmailAlreadyRegisteredError(ConflictError):
    error_code = ErrorKind.EMAIL_ALREADY_REGISTERED.value

    def __init__(self, message: str = "Email already registered") -> None:
        super().__init__(message, field="email")


class OtpRateLimitExceededError(RateLimitError):
    error_code = ErrorKind.RATE_LIMIT_EXCEEDED.value

    def __init__(self, retry_after_seconds: int, max_requests: int) -> None:
        super().__init__(
            f"Too many OTP requests to this email. Maximum {max_requests} "
            f"requests allowed per hour. Try again in {retry_after_seconds} seconds.",
            details={"retry_after_seconds": retry_after_seconds},
        )
        self.retry_after_seconds = retry_after_seconds

    def headers(self) -> dict[str, str]:
        return {"Retry-After": str(self.retry_after_seconds)}


class OtpExpiredError(GoneError):
    error_code = ErrorKind.OTP_EXPIRED.value

    def __init__(
        self, message: str = "OTP has expired. Please request a new one."
    ) -> None:
        super().__init__(message)


class SessionExpiredError(GoneError):
    error_code = ErrorKind.SESSION_EXPIRED.value

    def __init__(self, message: str = "Verification session expired.") -> None:
        super().__init__(message)


class InvalidOtpError(ValidationError):
    error_code = ErrorKind.INVALID_OTP.value

    def __init__(self, attempts_remaining: int) -> None:
        super().__init__(
            f"Invalid OTP. Attempts remaining: {attempts_remaining}",
            field="otp",
            details={"attempts_remaining": attempts_remaining},
        )
        self.attempts_remaining = attempts_remaining


class MaxAttemptsExceededError(RateLimitError):
    error_code = ErrorKind.MAX_ATTEMPTS_EXCEEDED.value

    def __init__(
        self,
        message: str = "Max OTP attempts exceeded. Please request a new OTP.",
    ) -> None:
        super().__init__(message)


class VerificationNotCompletedError(ValidationError):
    error_code = ErrorKind.VERIFICATION_NOT_COMPLETED.value

    def __init__(
        self,
        message: str = "Verification not completed. Please verify OTP first.",
    ) -> None:
        super().__init__(message, field="verification_id")


class PasswordMismatchError(ValidationError):
    error_code = ErrorKind.PASSWORD_MISMATCH.value

    def __init__(self, message: str = "Passwords do not match") -> None:
        super().__init__(message, field="confirm_password")


# ── Login / tokens ───────────────────────────────────────────────────────────


class InvalidCredentialsError(AuthenticationError):
    error_code = ErrorKind.INVALID_CREDENTIALS.value

    def __init__(self, message: str = "Invalid email or password") -> None:
        super().__init__(message)


class AccountNotActiveError(ForbiddenError):
    error_code = ErrorKind.ACCOUNT_NOT_ACTIVE.value

    def __init__(self, message: str = "User account is not active") -> None:
        super().__init__(message)


class InvalidTokenError(AuthenticationError):
    error_code = ErrorKind.INVALID_TOKEN.value

    def __init__(self, message: str = "Invalid token") -> None:
        super().__init__(message)


class TokenRevokedOrExpiredError(AuthenticationError):
    error_code = ErrorKind.TOKEN_REVOKED_OR_EXPIRED.value

    def __init__(
        self, message: str = "Refresh token is expired or revoked"
    ) -> None:
        super().__init__(message)


# ── Infrastructure ───────────────────────────────────────────────────────────


class StoreUnavailableError(ServiceUnavailableError):
    """A backing store timed out or could not be reached. Callers should retry."""

    error_code = ErrorKind.SERVICE_UNAVAILABLE.value

    def __init__(self, store: str, operation: str) -> None:
        super().__init__(
            "Service temporarily unavailable. Please retry.",
            details={"store": store, "operation": operation, "retryable": True},
        )
        self.store = store
        self.operation = operation


def register_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers on the FastAPI app."""

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.to_dict(),
            headers=exc.headers() or None,
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        errors = exc.errors()
        first = errors[0] if errors else {}
        loc = [str(part) for part in first.get("loc", ()) if part != "body"]
        payload: dict = {
            "error": first.get("msg", "Invalid request"),
            "code": "validation_error",
        }
        if loc:
            payload["field"] = ".".join(loc)
        return JSONResponse(status_code=422, content=payload)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        # Sentry integration: if sentry_sdk is initialized it will auto-capture
        # unhandled exceptions before this handler fires.
        return JSONResponse(
            status_code=500,
            content={"error": "An internal server error occurred.", "code": "internal_error"},
        )
