class DomainError(Exception):
    """Base exception for business rule violations."""

    status_code = 400


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    status_code = 400


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""

    status_code = 403


class AuthenticationError(AuthorizationError):
    """Raised when credentials or the bearer token are missing or invalid."""

    status_code = 401


class NotFoundError(DomainError):
    """Raised when a referenced entity does not exist."""

    status_code = 404


class ConflictError(DomainError):
    """Raised when the request clashes with current state (duplicates, stale transitions)."""

    status_code = 409
