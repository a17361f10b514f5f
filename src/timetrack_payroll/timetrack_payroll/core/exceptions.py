class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class AuthenticationError(DomainError):
    """Raised when there is no valid actor (bad credentials or no session)."""


class AuthorizationError(DomainError):
    """Raised when an actor lacks permission for an action."""


class NotFoundError(DomainError):
    """Raised when a record does not exist or lies outside the actor's scope."""


class ImmutableStateError(DomainError):
    """Raised on an attempt to change a time track that was already paid."""
