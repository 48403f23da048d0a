"""
Custom domain exceptions for the application.

These exceptions are raised by the service layer and converted to HTTP responses
by centralized exception handlers in main.py. Services stay HTTP-agnostic so
they can be reused from the CLI script and background tasks.

Verification never raises for a code that does not match; those outcomes are
ordinary MagicCodeResult values.
"""

from core.correlation import generate_correlation_id, get_correlation_id


class DomainException(Exception):
    """
    Base class for all domain exceptions.

    Attributes:
        message: Human-readable error message.
        correlation_id: Unique ID for error tracking (auto-generated if not provided).
    """

    def __init__(self, message: str, correlation_id: str | None = None):
        self.message = message
        self.correlation_id = (
            correlation_id or get_correlation_id() or generate_correlation_id()
        )
        super().__init__(self.message)


class NotFoundException(DomainException):
    """Raised when a requested resource is not found."""

    pass


class ValidationException(DomainException):
    """Raised when input validation fails."""

    pass


class TransientException(DomainException):
    """Raised when an operation failed but retrying it from scratch may succeed."""

    def __init__(
        self,
        message: str,
        retry_after_seconds: int = 1,
        correlation_id: str | None = None,
    ):
        self.retry_after_seconds = retry_after_seconds
        super().__init__(message, correlation_id)


class AuthenticationException(DomainException):
    """Raised when authentication fails."""

    pass


class PermissionDeniedException(DomainException):
    """Raised when user lacks permission for an action."""

    pass


class InsufficientPermissionsException(PermissionDeniedException):
    """User doesn't have sufficient permissions."""

    pass


class UserNotFoundException(NotFoundException):
    """User not found."""

    def __init__(self, user_id: int | None = None):
        message = "User not found."
        if user_id is not None:
            message = f"User {user_id} not found."
        super().__init__(message)


class ClientApplicationNotFoundException(NotFoundException):
    """Client application not found."""

    def __init__(self, client_id: str | int | None = None):
        message = "Client application not found."
        if client_id is not None:
            message = f"Client application {client_id} not found."
        super().__init__(message)


class MagicCodeNotFoundException(NotFoundException):
    """Magic code not found."""

    def __init__(self, code_id: int | None = None):
        message = "Magic code not found."
        if code_id is not None:
            message = f"Magic code {code_id} not found."
        super().__init__(message)


class DuplicateMagicCodeException(TransientException):
    """Code generation ran out of attempts to find an unused value."""

    def __init__(self, attempts: int | None = None):
        message = "Magic code value must be unique."
        if attempts is not None:
            message = (
                f"Could not generate a unique magic code in {attempts} attempts."
            )
        super().__init__(message, retry_after_seconds=1)
