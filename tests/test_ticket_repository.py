from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from helpdesk.domain.errors import ConflictError
from helpdesk.domain.models import Comment, Role, Ticket, TicketPriority, TicketStatus, User, UserReference
from helpdesk.tickets.query import StaleTicketQuery, TicketQuery


def _ticket(ticket_id: str, owner: str, created_at: datetime) -> Ticket:
    return Ticket.create(
        id=ticket_id,
        title=f"Ticket {ticket_id}",
        description="Body",
        created_by=owner,
        created_at=created_at,
    )


@pytest.mark.asyncio
async def test_insert_and_get_ticket(repositories, people, clock):
    ticket = _ticket("t-1", people.client.id, clock())
    await repositories.tickets.insert(ticket)

    stored = await repositories.tickets.get("t-1")

    assert stored is not None
    assert stored.created_by == UserReference(people.client.id)
    assert stored.status == TicketStatus.OPEN
    assert stored.created_at.tzinfo is not None
    assert await repositories.tickets.get("missing") is None


@pytest.mark.asyncio
async def test_partial_update_leaves_other_fields(repositories, people, clock):
    await repositories.tickets.insert(_ticket("t-1", people.client.id, clock()))

    updated = await repositories.tickets.update("t-1", {"priority": TicketPriority.LOW}, clock())

    assert updated is not None
    assert updated.priority == TicketPriority.LOW
    assert updated.status == TicketStatus.OPEN
    assert updated.assigned_to is None
    assert updated.updated_at > updated.created_at
    assert await repositories.tickets.update("missing", {"priority": TicketPriority.LOW}, clock()) is None


@pytest.mark.asyncio
async def test_update_rejects_immutable_fields(repositories, people, clock):
    await repositories.tickets.insert(_ticket("t-1", people.client.id, clock()))

    with pytest.raises(ValueError):
        await repositories.tickets.update("t-1", {"created_by": people.other_client.id}, clock())


@pytest.mark.asyncio
async def test_find_scopes_by_owner(repositories, people, clock):
    await repositories.tickets.insert(_ticket("t-1", people.client.id, clock()))
    await repositories.tickets.insert(_ticket("t-2", people.other_client.id, clock()))

    mine = await repositories.tickets.find(TicketQuery(created_by=people.client.id))
    everything = await repositories.tickets.find(TicketQuery())

    assert [ticket.id for ticket in mine] == ["t-1"]
    assert [ticket.id for ticket in everything] == ["t-2", "t-1"]


@pytest.mark.asyncio
async def test_find_stale_assigned_tickets(repositories, people, clock):
    start = clock()
    for ticket_id in ("stale", "unassigned", "resolved", "fresh"):
        await repositories.tickets.insert(_ticket(ticket_id, people.client.id, start))
    await repositories.tickets.update("stale", {"assigned_to": people.agent.id}, start)
    await repositories.tickets.update(
        "resolved", {"assigned_to": people.agent.id, "status": TicketStatus.RESOLVED}, start
    )
    await repositories.tickets.update("fresh", {"assigned_to": people.agent.id}, start + timedelta(hours=30))

    found = await repositories.tickets.find(StaleTicketQuery.older_than(start + timedelta(hours=25), 24))

    assert [ticket.id for ticket in found] == ["stale"]


@pytest.mark.asyncio
async def test_delete_ticket(repositories, people, clock):
    await repositories.tickets.insert(_ticket("t-1", people.client.id, clock()))

    assert await repositories.tickets.delete("t-1") is True
    assert await repositories.tickets.delete("t-1") is False


@pytest.mark.asyncio
async def test_comments_ordered_and_deleted_per_ticket(repositories, people, clock):
    for index, message in enumerate(["one", "two", "three"]):
        await repositories.comments.insert(
            Comment.create(id=f"c-{index}", ticket_id="t-1", author=people.client.id, message=message, created_at=clock())
        )
    await repositories.comments.insert(
        Comment.create(id="c-other", ticket_id="t-2", author=people.agent.id, message="elsewhere", created_at=clock())
    )

    comments = await repositories.comments.list_for_ticket("t-1")
    assert [comment.message for comment in comments] == ["one", "two", "three"]

    assert await repositories.comments.delete_for_ticket("t-1") == 3
    assert await repositories.comments.list_for_ticket("t-1") == []
    assert len(await repositories.comments.list_for_ticket("t-2")) == 1


@pytest.mark.asyncio
async def test_user_lookups(repositories, people):
    assert (await repositories.users.get_by_email("ana@example.com")).id == people.agent.id
    assert await repositories.users.get_by_email("nobody@example.com") is None

    found = await repositories.users.get_many([people.client.id, people.agent.id, "ghost"])
    assert set(found) == {people.client.id, people.agent.id}
    assert await repositories.users.get_many([]) == {}


@pytest.mark.asyncio
async def test_duplicate_email_insert_raises_conflict(repositories, people, clock):
    duplicate = User.create(
        id="client-9",
        name="Carla Again",
        email="carla@example.com",
        password_hash="hash",
        role=Role.CLIENT,
        created_at=clock(),
    )

    with pytest.raises(ConflictError):
        await repositories.users.insert(duplicate)
    assert await repositories.users.get("client-9") is None
