"""Translate caller filters and role scoping into storage queries."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy.sql import Select
from sqlmodel import col, select

from helpdesk.db.models import TicketTable
from helpdesk.domain.models import Actor, TicketPriority, TicketStatus


@dataclass(slots=True, frozen=True)
class TicketFilters:
    """Optional caller supplied filters for ticket listings."""

    status: TicketStatus | None = None
    priority: TicketPriority | None = None


@dataclass(slots=True, frozen=True)
class TicketQuery:
    """Conjunctive ticket query. Unset fields do not constrain the result."""

    created_by: str | None = None
    status: TicketStatus | None = None
    priority: TicketPriority | None = None

    @classmethod
    def for_actor(cls, actor: Actor, filters: TicketFilters | None = None) -> "TicketQuery":
        filters = filters or TicketFilters()
        return cls(
            created_by=actor.id if actor.is_client else None,
            status=filters.status,
            priority=filters.priority,
        )

    def conditions(self) -> dict[str, Any]:
        values = {
            "created_by": self.created_by,
            "status": None if self.status is None else self.status.value,
            "priority": None if self.priority is None else self.priority.value,
        }
        return {name: value for name, value in values.items() if value is not None}

    def to_statement(self) -> Select:
        statement = select(TicketTable)
        for name, value in self.conditions().items():
            statement = statement.where(getattr(TicketTable, name) == value)
        return statement.order_by(col(TicketTable.created_at).desc())


@dataclass(slots=True, frozen=True)
class StaleTicketQuery:
    """Assigned tickets still awaiting work that have not been touched since ``cutoff``."""

    cutoff: datetime
    statuses: tuple[TicketStatus, ...] = (TicketStatus.OPEN, TicketStatus.IN_PROGRESS)

    @classmethod
    def older_than(cls, now: datetime, hours: int) -> "StaleTicketQuery":
        return cls(cutoff=now - timedelta(hours=hours))

    def to_statement(self) -> Select:
        return (
            select(TicketTable)
            .where(col(TicketTable.status).in_([status.value for status in self.statuses]))
            .where(col(TicketTable.assigned_to).is_not(None))
            .where(col(TicketTable.updated_at) < self.cutoff)
            .order_by(col(TicketTable.updated_at).asc())
        )
