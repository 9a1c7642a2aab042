"""
Custom Exceptions - Application-specific error classes.

Every exception carries an HTTP status code and a stable error code so the
API layer can render consistent error bodies without leaking stack traces.
"""
from typing import Any, Optional


class AppError(Exception):
    """
    Base exception for all application errors.

    Subclass this for specific error types.
    """
    status_code: int = 500
    error_code: str = "UNKNOWN_ERROR"
    default_message: str = "An unknown error occurred"

    def __init__(self, message: Optional[str] = None, details: Optional[str] = None):
        message = message or self.default_message
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        """Convert to error response dict."""
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details
        }


class AuthError(AppError):
    """Raised when a request cannot be authenticated."""
    status_code = 401
    error_code = "AUTH_ERROR"
    default_message = "Authentication failed"


class ForbiddenError(AppError):
    """Raised when the user's plan does not allow an operation."""
    status_code = 403
    error_code = "FORBIDDEN_ERROR"
    default_message = "Operation not allowed for this plan"


class ValidationError(AppError):
    """Raised when input validation fails."""
    status_code = 400
    error_code = "VALIDATION_ERROR"
    default_message = "Validation failed"

    def __init__(self, message: Optional[str] = None, field: Optional[str] = None):
        super().__init__(message, details=f"field={field}" if field else None)
        self.field = field


class NotFoundError(AppError):
    """Raised when a resource does not exist or is not owned by the caller."""
    status_code = 404
    error_code = "NOT_FOUND_ERROR"
    default_message = "Resource not found"


class DatabaseError(AppError):
    """Raised when a database operation fails."""
    status_code = 500
    error_code = "DATABASE_ERROR"
    default_message = "Database operation failed"


class RateLimitError(AppError):
    """Raised when a client exceeds a request or message quota."""
    status_code = 429
    error_code = "RATE_LIMIT_ERROR"
    default_message = "Rate limit exceeded"

    def __init__(self, message: Optional[str] = None, retry_after: int = 60):
        super().__init__(message, details=f"retry_after={retry_after}")
        self.retry_after = retry_after


class LLMError(AppError):
    """Raised when the hosted LLM cannot produce a completion."""
    status_code = 503
    error_code = "LLM_ERROR"
    default_message = "LLM service unavailable"


class ConfigurationError(AppError):
    """Raised when a backing service is used without its configuration."""
    status_code = 500
    error_code = "CONFIGURATION_ERROR"
    default_message = "Service is not configured"


def is_app_error(error: Any) -> bool:
    return isinstance(error, AppError)


def handle_error(error: Any) -> AppError:
    """
    Normalize anything raised into an AppError.

    AppErrors pass through unchanged; other exceptions keep their message
    with a generic 500 code.
    """
    if is_app_error(error):
        return error

    if isinstance(error, Exception):
        return AppError(str(error) or None)

    return AppError()
