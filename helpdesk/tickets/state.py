from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Sequence

from helpdesk.domain.errors import InvalidTicketTransitionError
from helpdesk.domain.models import Actor, Ticket, TicketPriority, TicketStatus


class TicketStateMachine:
    """Validate ticket status transitions.

    Without a transition table every status may move to every other status.
    ``TicketStateMachine.strict()`` enforces the forward flow with reopening.
    """

    STRICT_TRANSITIONS: Mapping[TicketStatus, Sequence[TicketStatus]] = {
        TicketStatus.OPEN: (TicketStatus.IN_PROGRESS, TicketStatus.RESOLVED, TicketStatus.CLOSED),
        TicketStatus.IN_PROGRESS: (TicketStatus.OPEN, TicketStatus.RESOLVED, TicketStatus.CLOSED),
        TicketStatus.RESOLVED: (TicketStatus.IN_PROGRESS, TicketStatus.CLOSED, TicketStatus.OPEN),
        TicketStatus.CLOSED: (TicketStatus.OPEN,),
    }

    def __init__(self, transitions: Mapping[TicketStatus, Sequence[TicketStatus]] | None = None) -> None:
        self._transitions = transitions

    @classmethod
    def strict(cls) -> "TicketStateMachine":
        return cls(cls.STRICT_TRANSITIONS)

    def can_transition(self, current: TicketStatus, target: TicketStatus) -> bool:
        if current == target or self._transitions is None:
            return True
        return target in self._transitions.get(current, ())

    def assert_transition(self, current: TicketStatus, target: TicketStatus) -> None:
        if not self.can_transition(current, target):
            raise InvalidTicketTransitionError(f"Invalid status transition: {current.value} -> {target.value}")


@dataclass(slots=True)
class TicketUpdate:
    """Fields an agent asked to change. ``None`` leaves the field untouched."""

    status: TicketStatus | None = None
    priority: TicketPriority | None = None
    assigned_to: str | None = None


@dataclass(slots=True)
class TicketChanges:
    """Outcome of applying lifecycle rules to a requested update."""

    fields: dict[str, Any] = field(default_factory=dict)
    auto_assigned: bool = False
    closing: bool = False


def plan_update(
    ticket: Ticket,
    actor: Actor,
    update: TicketUpdate,
    *,
    state_machine: TicketStateMachine | None = None,
) -> TicketChanges:
    """Compute the persisted field set for an agent update of ``ticket``.

    An unassigned ticket is assigned to the acting agent on its first update,
    whatever the update asked for, including an explicit ``assigned_to``.
    Once assigned, only an explicit ``assigned_to`` moves the ticket.
    """

    machine = state_machine or TicketStateMachine()
    changes = TicketChanges()

    if update.status is not None:
        machine.assert_transition(ticket.status, update.status)
        changes.fields["status"] = update.status
        changes.closing = update.status == TicketStatus.CLOSED and ticket.status != TicketStatus.CLOSED

    if update.priority is not None:
        changes.fields["priority"] = update.priority

    if ticket.assigned_to is None and actor.is_agent:
        changes.fields["assigned_to"] = actor.id
        changes.auto_assigned = True
    elif update.assigned_to is not None:
        changes.fields["assigned_to"] = update.assigned_to

    return changes
