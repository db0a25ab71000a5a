"""Custom exceptions and error codes."""

from enum import StrEnum
from typing import Any


class ErrorCode(StrEnum):
    """Error codes returned in the ``error`` field of API responses."""

    # Input errors (400)
    MISSING_PHONE = "missing_phone"
    INVALID_PHONE = "invalid_phone"

    # Authentication errors (401)
    MISSING_TOKEN = "missing_token"
    INVALID_TOKEN = "invalid_token"
    INVALID_CODE = "invalid_code"

    # Validation errors (422)
    VALIDATION_ERROR = "validation_error"

    # Rate limiting (429)
    RATE_LIMIT_EXCEEDED = "rate_limit_exceeded"

    # Upstream and server errors (500)
    ME_FAILED = "me_failed"
    UPDATE_FAILED = "update_failed"
    OTP_FAILED = "otp_failed"
    LOGIN_FAILED = "login_failed"
    INTERNAL_ERROR = "internal_error"


class AppException(Exception):
    """Base application exception, rendered as ``{"error": <code>}``."""

    def __init__(
        self,
        error_code: ErrorCode,
        message: str,
        status_code: int = 400,
        details: Any | None = None,
    ) -> None:
        self.error_code = error_code
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(self.message)


class InputError(AppException):
    """A required request field is missing or malformed."""

    def __init__(
        self,
        message: str = "Phone number required",
        error_code: ErrorCode = ErrorCode.MISSING_PHONE,
    ) -> None:
        super().__init__(
            error_code=error_code,
            message=message,
            status_code=400,
        )


class AuthenticationError(AppException):
    """Authentication failed."""

    def __init__(
        self,
        message: str = "Authentication required",
        error_code: ErrorCode = ErrorCode.MISSING_TOKEN,
    ) -> None:
        super().__init__(
            error_code=error_code,
            message=message,
            status_code=401,
        )


class UpstreamError(AppException):
    """A storage or provider call failed; details stay in the logs."""

    def __init__(self, error_code: ErrorCode, message: str = "Upstream failure") -> None:
        super().__init__(
            error_code=error_code,
            message=message,
            status_code=500,
        )


class MissingPhoneError(InputError):
    """Trusted-input mode and no phone was supplied."""

    def __init__(self) -> None:
        super().__init__(message="Phone number required")


class InvalidPhoneError(InputError):
    """Phone number is not in E.164 form."""

    def __init__(self, phone: str) -> None:
        super().__init__(
            message=f"Invalid phone number: {phone!r}",
            error_code=ErrorCode.INVALID_PHONE,
        )


class MissingTokenError(AuthenticationError):
    """No bearer credential on a verified-mode request."""

    def __init__(self) -> None:
        super().__init__(message="Authorization header required")


class InvalidTokenError(AuthenticationError):
    """Bearer credential failed verification."""

    def __init__(self, message: str = "Invalid or expired token") -> None:
        super().__init__(message=message, error_code=ErrorCode.INVALID_TOKEN)


class MissingPhoneClaimError(InvalidTokenError):
    """Token verified but carries no phone number claim."""

    def __init__(self) -> None:
        super().__init__(message="Token has no phone number claim")


class InvalidCodeError(AuthenticationError):
    """OTP code was rejected by the provider."""

    def __init__(self) -> None:
        super().__init__(
            message="Verification code rejected",
            error_code=ErrorCode.INVALID_CODE,
        )


# Infrastructure failures. These never reach the client directly: request
# handlers log them and raise an UpstreamError with the endpoint's code.


class ConfigurationError(Exception):
    """Required configuration is missing or malformed; aborts startup."""


class StoreError(Exception):
    """Base class for profile store failures."""


class StoreUnavailableError(StoreError):
    """Storage unreachable, timed out, or failed at the driver level."""


class ConstraintViolationError(StoreError):
    """An integrity constraint rejected a write."""


class OtpProviderError(Exception):
    """OTP provider request failed."""
