"""Error taxonomy shared by the helpdesk services."""

from __future__ import annotations


class HelpdeskError(RuntimeError):
    """Base error for helpdesk domain failures."""


class UnauthorizedError(HelpdeskError):
    """Raised when no valid actor could be resolved from the presented credential."""


class ForbiddenError(HelpdeskError):
    """Raised when the actor lacks permission for the requested action."""


class NotFoundError(HelpdeskError):
    """Raised when a referenced entity does not exist."""

    def __init__(self, entity: str, entity_id: str) -> None:
        super().__init__(f"{entity} {entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id


class ValidationError(HelpdeskError):
    """Raised on malformed input. ``field`` names the offending attribute when known."""

    def __init__(self, message: str, *, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class ConflictError(HelpdeskError):
    """Raised when registration targets an email that is already in use."""


class InvalidTicketTransitionError(HelpdeskError):
    """Raised when strict lifecycle checking rejects a status change."""


class NotifierError(HelpdeskError):
    """Raised by notifier implementations when an email could not be dispatched."""
