class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class InvalidTransitionError(DomainError):
    """Raised when a workflow event is not allowed in the current step."""


class NotFoundError(DomainError):
    """Raised when a referenced user or record does not exist."""


class GatewayError(DomainError):
    """Raised by the vision model client for transport or response problems."""

    def __init__(self, message: str, *, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class StorageError(DomainError):
    """Raised when the ledger store cannot persist data."""
