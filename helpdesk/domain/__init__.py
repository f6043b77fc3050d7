"""Helpdesk domain entities and error taxonomy."""

from .errors import (
    ConflictError,
    ForbiddenError,
    HelpdeskError,
    InvalidTicketTransitionError,
    NotFoundError,
    NotifierError,
    UnauthorizedError,
    ValidationError,
)
from .models import (
    Actor,
    Comment,
    PopulatedUser,
    Role,
    Ticket,
    TicketPriority,
    TicketStatus,
    User,
    UserRef,
    UserReference,
)

__all__ = [
    "Actor",
    "Comment",
    "ConflictError",
    "ForbiddenError",
    "HelpdeskError",
    "InvalidTicketTransitionError",
    "NotFoundError",
    "NotifierError",
    "PopulatedUser",
    "Role",
    "Ticket",
    "TicketPriority",
    "TicketStatus",
    "UnauthorizedError",
    "User",
    "UserRef",
    "UserReference",
    "ValidationError",
]
