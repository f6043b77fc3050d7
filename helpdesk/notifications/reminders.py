from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable

from opentelemetry.trace import Tracer

from helpdesk.core.tracing import annotate, get_tracer, operation_span
from helpdesk.tickets.query import StaleTicketQuery
from helpdesk.tickets.repository import TicketRepository, UserRepository

from . import templates
from .notifier import NotificationDispatcher

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class SweepReport:
    tickets_checked: int
    emails_sent: int


class ReminderSweep:
    """Remind assigned agents about open tickets nobody touched recently."""

    def __init__(
        self,
        tickets: TicketRepository,
        users: UserRepository,
        dispatcher: NotificationDispatcher,
        *,
        stale_after_hours: int = 24,
        brand: str = "HelpDeskPro",
        clock: Callable[[], datetime] | None = None,
        tracer: Tracer | None = None,
    ) -> None:
        self._tickets = tickets
        self._users = users
        self._dispatcher = dispatcher
        self._stale_after_hours = stale_after_hours
        self._brand = brand
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._tracer = tracer or get_tracer()

    async def run(self) -> SweepReport:
        with operation_span(self._tracer, "reminders.sweep", stale_after_hours=self._stale_after_hours) as span:
            query = StaleTicketQuery.older_than(self._clock(), self._stale_after_hours)
            stale = await self._tickets.find(query)
            agents = await self._users.get_many(ticket.assignee_id for ticket in stale if ticket.assignee_id)

            emails_sent = 0
            for ticket in stale:
                agent = agents.get(ticket.assignee_id or "")
                if agent is None or not agent.email:
                    logger.warning("Ticket %s is assigned to unknown user %s", ticket.id, ticket.assignee_id)
                    continue
                notification = templates.stale_ticket_reminder(
                    to=agent.email, agent_name=agent.name, ticket=ticket, brand=self._brand
                )
                if await self._dispatcher.send_now(notification):
                    emails_sent += 1

            annotate(span, tickets_checked=len(stale), emails_sent=emails_sent)
            logger.info("Reminder sweep checked %d tickets, sent %d emails", len(stale), emails_sent)
            return SweepReport(tickets_checked=len(stale), emails_sent=emails_sent)
