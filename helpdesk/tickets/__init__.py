"""Ticket lifecycle, access policy and orchestration services."""

from .policy import Action, authorize, can_access
from .query import StaleTicketQuery, TicketFilters, TicketQuery
from .repository import CommentRepository, TicketRepository, UserRepository
from .service import TicketService
from .state import TicketChanges, TicketStateMachine, TicketUpdate, plan_update

__all__ = [
    "Action",
    "CommentRepository",
    "StaleTicketQuery",
    "TicketChanges",
    "TicketFilters",
    "TicketQuery",
    "TicketRepository",
    "TicketService",
    "TicketStateMachine",
    "TicketUpdate",
    "UserRepository",
    "authorize",
    "can_access",
    "plan_update",
]
