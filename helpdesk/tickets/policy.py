"""Role based access rules for tickets and comments.

Every decision is a pure function of the actor, the requested action and,
where relevant, the ticket the action targets. Comment actions are judged
against their parent ticket.
"""

from __future__ import annotations

from enum import Enum

from helpdesk.domain.errors import ForbiddenError, UnauthorizedError
from helpdesk.domain.models import Actor, Ticket


class Action(str, Enum):
    READ_TICKET = "ticket:read"
    CREATE_TICKET = "ticket:create"
    UPDATE_TICKET = "ticket:update"
    DELETE_TICKET = "ticket:delete"
    READ_COMMENTS = "comment:read"
    CREATE_COMMENT = "comment:create"


_OWNERSHIP_ACTIONS = frozenset({Action.READ_TICKET, Action.READ_COMMENTS, Action.CREATE_COMMENT})
_AGENT_ACTIONS = frozenset({Action.UPDATE_TICKET, Action.DELETE_TICKET})


def can_access(actor: Actor, action: Action, ticket: Ticket | None = None) -> bool:
    """Return whether ``actor`` may perform ``action`` on ``ticket``."""

    if action == Action.CREATE_TICKET:
        return actor.is_client
    if action in _AGENT_ACTIONS:
        return actor.is_agent
    if action in _OWNERSHIP_ACTIONS:
        if actor.is_agent:
            return True
        return ticket is not None and actor.is_client and ticket.owner_id == actor.id
    return False


def require_actor(actor: Actor | None) -> Actor:
    if actor is None:
        raise UnauthorizedError("Authentication required")
    return actor


def authorize(actor: Actor | None, action: Action, ticket: Ticket | None = None) -> Actor:
    """Raise unless ``actor`` is authenticated and allowed to perform ``action``."""

    resolved = require_actor(actor)
    if not can_access(resolved, action, ticket):
        raise ForbiddenError(_DENIAL_MESSAGES.get(action, "Insufficient permissions"))
    return resolved


_DENIAL_MESSAGES: dict[Action, str] = {
    Action.CREATE_TICKET: "Only clients can create tickets",
    Action.UPDATE_TICKET: "Only agents can update tickets",
    Action.DELETE_TICKET: "Only agents can delete tickets",
}
