"""Domain-level exceptions.

Services raise these errors to express business rule violations.
The API layer maps them to HTTP status codes and the JSON error envelope.
"""


class DomainError(Exception):
    """Base class for all domain errors."""

    status_code = 500


class NotFoundError(DomainError):
    """Requested entity does not exist."""

    status_code = 404


class DuplicateError(DomainError):
    """Entity with the same unique key already exists."""

    status_code = 400


class ValidationError(DomainError):
    """Input violates a business validation rule."""

    status_code = 400


class AuthenticationError(DomainError):
    """Caller is not (or no longer) authenticated."""

    status_code = 401


class InvalidTokenError(AuthenticationError):
    """Bearer token is malformed, tampered with or missing claims."""


class ExpiredTokenError(AuthenticationError):
    """Bearer token signature is valid but its expiry has passed."""


class PermissionDeniedError(DomainError):
    """Caller lacks permission for the requested action."""

    status_code = 403


class DeliveryError(DomainError):
    """An outbound message (e.g. email) could not be delivered."""

    status_code = 500
