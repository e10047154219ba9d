class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class AuthorizationError(DomainError):
    """Raised when an actor lacks permission for an action."""


class NotFoundError(DomainError):
    """Raised when a course or attendance record does not exist."""
