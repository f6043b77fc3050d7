from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Query, status
from pydantic import BaseModel, ConfigDict, Field

from helpdesk.api.schemas import UserSummaryModel, to_user_summary
from helpdesk.dependencies.auth import CurrentActor
from helpdesk.dependencies.errors import to_http_error
from helpdesk.dependencies.services import TicketServiceDep
from helpdesk.domain.errors import HelpdeskError
from helpdesk.domain.models import Comment

router = APIRouter(prefix="/comments", tags=["comments"])


class CommentCreateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    ticket_id: str = Field(alias="ticketId")
    message: str


class CommentModel(BaseModel):
    id: str
    ticket_id: str
    author: UserSummaryModel
    message: str
    created_at: datetime
    updated_at: datetime


def _to_response(comment: Comment) -> CommentModel:
    return CommentModel(
        id=comment.id,
        ticket_id=comment.ticket_id,
        author=to_user_summary(comment.author),
        message=comment.message,
        created_at=comment.created_at,
        updated_at=comment.updated_at,
    )


@router.get("", response_model=list[CommentModel], summary="List a ticket's comments, oldest first")
async def list_comments(
    service: TicketServiceDep,
    actor: CurrentActor,
    ticket_id: str = Query(alias="ticketId"),
) -> list[CommentModel]:
    try:
        comments = await service.list_comments(actor, ticket_id)
    except HelpdeskError as exc:
        raise to_http_error(exc) from exc
    return [_to_response(comment) for comment in comments]


@router.post("", response_model=CommentModel, status_code=status.HTTP_201_CREATED)
async def create_comment(payload: CommentCreateRequest, service: TicketServiceDep, actor: CurrentActor) -> CommentModel:
    try:
        comment = await service.create_comment(actor, ticket_id=payload.ticket_id, message=payload.message)
    except HelpdeskError as exc:
        raise to_http_error(exc) from exc
    return _to_response(comment)
