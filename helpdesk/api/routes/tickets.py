from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Query, status
from pydantic import BaseModel

from helpdesk.api.schemas import UserSummaryModel, to_user_summary
from helpdesk.dependencies.auth import CurrentActor
from helpdesk.dependencies.errors import to_http_error
from helpdesk.dependencies.services import TicketServiceDep
from helpdesk.domain.errors import HelpdeskError
from helpdesk.domain.models import Ticket, TicketPriority, TicketStatus
from helpdesk.tickets.query import TicketFilters
from helpdesk.tickets.state import TicketUpdate

router = APIRouter(prefix="/tickets", tags=["tickets"])


class TicketCreateRequest(BaseModel):
    title: str
    description: str
    priority: TicketPriority | None = None


class TicketUpdateRequest(BaseModel):
    status: TicketStatus | None = None
    priority: TicketPriority | None = None
    assigned_to: str | None = None

    def to_update(self) -> TicketUpdate:
        return TicketUpdate(status=self.status, priority=self.priority, assigned_to=self.assigned_to or None)


class TicketModel(BaseModel):
    id: str
    title: str
    description: str
    status: TicketStatus
    priority: TicketPriority
    created_by: UserSummaryModel
    assigned_to: UserSummaryModel | None = None
    created_at: datetime
    updated_at: datetime


def _to_response(ticket: Ticket) -> TicketModel:
    return TicketModel(
        id=ticket.id,
        title=ticket.title,
        description=ticket.description,
        status=ticket.status,
        priority=ticket.priority,
        created_by=to_user_summary(ticket.created_by),
        assigned_to=None if ticket.assigned_to is None else to_user_summary(ticket.assigned_to),
        created_at=ticket.created_at,
        updated_at=ticket.updated_at,
    )


@router.get("", response_model=list[TicketModel], summary="List tickets visible to the caller")
async def list_tickets(
    service: TicketServiceDep,
    actor: CurrentActor,
    status_filter: TicketStatus | None = Query(default=None, alias="status"),
    priority: TicketPriority | None = Query(default=None),
) -> list[TicketModel]:
    try:
        tickets = await service.list_tickets(actor, TicketFilters(status=status_filter, priority=priority))
    except HelpdeskError as exc:
        raise to_http_error(exc) from exc
    return [_to_response(ticket) for ticket in tickets]


@router.post("", response_model=TicketModel, status_code=status.HTTP_201_CREATED)
async def create_ticket(payload: TicketCreateRequest, service: TicketServiceDep, actor: CurrentActor) -> TicketModel:
    try:
        ticket = await service.create_ticket(
            actor,
            title=payload.title,
            description=payload.description,
            priority=payload.priority,
        )
    except HelpdeskError as exc:
        raise to_http_error(exc) from exc
    return _to_response(ticket)


@router.get("/{ticket_id}", response_model=TicketModel)
async def get_ticket(ticket_id: str, service: TicketServiceDep, actor: CurrentActor) -> TicketModel:
    try:
        ticket = await service.get_ticket(actor, ticket_id)
    except HelpdeskError as exc:
        raise to_http_error(exc) from exc
    return _to_response(ticket)


@router.put("/{ticket_id}", response_model=TicketModel)
async def update_ticket(
    ticket_id: str,
    payload: TicketUpdateRequest,
    service: TicketServiceDep,
    actor: CurrentActor,
) -> TicketModel:
    try:
        ticket = await service.update_ticket(actor, ticket_id, payload.to_update())
    except HelpdeskError as exc:
        raise to_http_error(exc) from exc
    return _to_response(ticket)


@router.delete("/{ticket_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_ticket(ticket_id: str, service: TicketServiceDep, actor: CurrentActor) -> None:
    try:
        await service.delete_ticket(actor, ticket_id)
    except HelpdeskError as exc:
        raise to_http_error(exc) from exc
