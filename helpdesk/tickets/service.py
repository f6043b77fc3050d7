from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from datetime import datetime, timezone
from typing import Callable, Iterable, Sequence

from opentelemetry.trace import Tracer

from helpdesk.core.tracing import annotate, get_tracer, operation_span
from helpdesk.domain.errors import NotFoundError, ValidationError
from helpdesk.domain.models import (
    Actor,
    Comment,
    PopulatedUser,
    Role,
    Ticket,
    User,
    UserRef,
    UserReference,
)
from helpdesk.notifications import templates
from helpdesk.notifications.notifier import Notification, NotificationDispatcher

from .policy import Action, authorize, require_actor
from .query import TicketFilters, TicketQuery
from .repository import CommentRepository, TicketRepository, UserRepository
from .state import TicketStateMachine, TicketUpdate, plan_update

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TicketService:
    """High level orchestration for tickets and their comments.

    Every operation authorizes the actor before touching storage, persists a
    single entity, and only then queues notifications.
    """

    def __init__(
        self,
        tickets: TicketRepository,
        comments: CommentRepository,
        users: UserRepository,
        *,
        dispatcher: NotificationDispatcher,
        state_machine: TicketStateMachine | None = None,
        cascade_delete_comments: bool = False,
        brand: str = "HelpDeskPro",
        clock: Callable[[], datetime] | None = None,
        tracer: Tracer | None = None,
    ) -> None:
        self._tickets = tickets
        self._comments = comments
        self._users = users
        self._dispatcher = dispatcher
        self._state_machine = state_machine or TicketStateMachine()
        self._cascade_delete_comments = cascade_delete_comments
        self._brand = brand
        self._clock = clock or _utcnow
        self._tracer = tracer or get_tracer()

    async def list_tickets(self, actor: Actor | None, filters: TicketFilters | None = None) -> list[Ticket]:
        filters = filters or TicketFilters()
        with operation_span(
            self._tracer, "tickets.list", actor, filter_status=filters.status, filter_priority=filters.priority
        ) as span:
            actor = require_actor(actor)
            tickets = await self._tickets.find(TicketQuery.for_actor(actor, filters))
            annotate(span, ticket_count=len(tickets))
            return await self._populate_tickets(tickets)

    async def get_ticket(self, actor: Actor | None, ticket_id: str) -> Ticket:
        with operation_span(self._tracer, "tickets.get", actor, ticket_id=ticket_id):
            ticket = await self._load_ticket(actor, ticket_id)
            authorize(actor, Action.READ_TICKET, ticket)
            return (await self._populate_tickets([ticket]))[0]

    async def create_ticket(
        self,
        actor: Actor | None,
        *,
        title: str,
        description: str,
        priority: str | None = None,
    ) -> Ticket:
        with operation_span(self._tracer, "tickets.create", actor) as span:
            actor = authorize(actor, Action.CREATE_TICKET)
            now = self._clock()
            ticket = Ticket.create(
                id=str(uuid.uuid4()),
                title=title,
                description=description,
                priority=priority,
                created_by=actor.id,
                created_at=now,
            )
            await self._tickets.insert(ticket)
            annotate(span, ticket_id=ticket.id, ticket_priority=ticket.priority)
            logger.info("Ticket %s created by %s", ticket.id, actor.id)

            populated = (await self._populate_tickets([ticket]))[0]
            owner = populated.created_by
            if isinstance(owner, PopulatedUser):
                self._notify(templates.ticket_created(to=owner.email, ticket=populated, brand=self._brand))
            return populated

    async def update_ticket(self, actor: Actor | None, ticket_id: str, update: TicketUpdate) -> Ticket:
        with operation_span(self._tracer, "tickets.update", actor, ticket_id=ticket_id) as span:
            actor = authorize(actor, Action.UPDATE_TICKET)
            ticket = await self._load_ticket(actor, ticket_id)

            if update.assigned_to is not None:
                await self._require_agent(update.assigned_to)

            changes = plan_update(ticket, actor, update, state_machine=self._state_machine)
            updated = await self._tickets.update(ticket_id, changes.fields, self._clock())
            if updated is None:
                raise NotFoundError("Ticket", ticket_id)
            annotate(
                span,
                ticket_status=updated.status,
                ticket_auto_assigned=changes.auto_assigned,
                ticket_closing=changes.closing,
            )
            if changes.auto_assigned:
                logger.info("Ticket %s auto-assigned to agent %s", ticket_id, actor.id)

            populated = (await self._populate_tickets([updated]))[0]
            if changes.closing:
                owner = populated.created_by
                if isinstance(owner, PopulatedUser):
                    self._notify(templates.ticket_closed(to=owner.email, ticket=populated, brand=self._brand))
            return populated

    async def delete_ticket(self, actor: Actor | None, ticket_id: str) -> None:
        with operation_span(self._tracer, "tickets.delete", actor, ticket_id=ticket_id) as span:
            authorize(actor, Action.DELETE_TICKET)
            if not await self._tickets.delete(ticket_id):
                raise NotFoundError("Ticket", ticket_id)
            if self._cascade_delete_comments:
                removed = await self._comments.delete_for_ticket(ticket_id)
                annotate(span, comments_removed=removed)
                logger.info("Deleted %d comments of ticket %s", removed, ticket_id)
            logger.info("Ticket %s deleted", ticket_id)

    async def list_comments(self, actor: Actor | None, ticket_id: str) -> list[Comment]:
        with operation_span(self._tracer, "comments.list", actor, ticket_id=ticket_id) as span:
            ticket = await self._load_ticket(actor, ticket_id)
            authorize(actor, Action.READ_COMMENTS, ticket)
            comments = await self._comments.list_for_ticket(ticket_id)
            annotate(span, comment_count=len(comments))
            return await self._populate_comments(comments)

    async def create_comment(self, actor: Actor | None, *, ticket_id: str, message: str) -> Comment:
        with operation_span(self._tracer, "comments.create", actor, ticket_id=ticket_id) as span:
            require_actor(actor)
            if not (message or "").strip():
                raise ValidationError("message is required", field="message")
            ticket = await self._load_ticket(actor, ticket_id)
            actor = authorize(actor, Action.CREATE_COMMENT, ticket)

            comment = Comment.create(
                id=str(uuid.uuid4()),
                ticket_id=ticket.id,
                author=actor.id,
                message=message,
                created_at=self._clock(),
            )
            await self._comments.insert(comment)
            annotate(span, comment_id=comment.id)

            populated = (await self._populate_comments([comment]))[0]
            if actor.is_agent:
                owner = (await self._populate_tickets([ticket]))[0].created_by
                if isinstance(owner, PopulatedUser):
                    self._notify(
                        templates.ticket_response(
                            to=owner.email, ticket=ticket, message=comment.message, brand=self._brand
                        )
                    )
            return populated

    async def _load_ticket(self, actor: Actor | None, ticket_id: str) -> Ticket:
        require_actor(actor)
        ticket = await self._tickets.get(ticket_id)
        if ticket is None:
            raise NotFoundError("Ticket", ticket_id)
        return ticket

    async def _require_agent(self, user_id: str) -> User:
        user = await self._users.get(user_id)
        if user is None:
            raise NotFoundError("User", user_id)
        if user.role != Role.AGENT:
            raise ValidationError("Tickets can only be assigned to agents", field="assigned_to")
        return user

    async def _populate_tickets(self, tickets: Sequence[Ticket]) -> list[Ticket]:
        ids = {ticket.owner_id for ticket in tickets} | {t.assignee_id for t in tickets if t.assignee_id}
        users = await self._users.get_many(ids)
        return [
            replace(
                ticket,
                created_by=_resolve(ticket.created_by, users),
                assigned_to=None if ticket.assigned_to is None else _resolve(ticket.assigned_to, users),
            )
            for ticket in tickets
        ]

    async def _populate_comments(self, comments: Iterable[Comment]) -> list[Comment]:
        comments = list(comments)
        users = await self._users.get_many(comment.author.id for comment in comments)
        return [replace(comment, author=_resolve(comment.author, users)) for comment in comments]

    def _notify(self, notification: Notification) -> None:
        self._dispatcher.dispatch(notification)


def _resolve(ref: UserRef, users: dict[str, User]) -> UserRef:
    user = users.get(ref.id)
    if user is None:
        return UserReference(ref.id)
    return PopulatedUser.from_user(user)

