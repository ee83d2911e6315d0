"""
Domain error taxonomy.

Services raise these (or subclasses); the handlers in cinecritic.main turn
them into the standard response envelope. Provider errors never leave the
adapter layer.
"""
from fastapi import status


class DomainError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "INTERNAL_ERROR"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.__class__.__doc__ or self.code
        super().__init__(self.message)


class ProviderUnavailableError(DomainError):
    """External movie provider could not be reached or returned garbage."""

    status_code = status.HTTP_502_BAD_GATEWAY
    code = "PROVIDER_UNAVAILABLE"


class ProviderNotConfiguredError(ProviderUnavailableError):
    """External movie provider has no API key configured."""


class DuplicateKeyError(DomainError):
    """A uniqueness constraint was violated."""

    status_code = status.HTTP_409_CONFLICT
    code = "DUPLICATE_KEY"


class NotFoundError(DomainError):
    """Requested resource does not exist."""

    status_code = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"


class ForbiddenError(DomainError):
    """Caller is not allowed to touch this resource."""

    status_code = status.HTTP_403_FORBIDDEN
    code = "FORBIDDEN"


class InvalidInputError(DomainError):
    """Request payload failed validation."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "VALIDATION_ERROR"


class UnauthorizedError(DomainError):
    """Missing, invalid or expired credentials."""

    status_code = status.HTTP_401_UNAUTHORIZED
    code = "UNAUTHORIZED"
