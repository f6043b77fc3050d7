from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Iterable, Mapping, Sequence

from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker
from sqlmodel import SQLModel, col, select

from helpdesk.db.models import CommentTable, TicketTable, UserTable
from helpdesk.domain.errors import ConflictError
from helpdesk.domain.models import (
    Comment,
    Role,
    Ticket,
    TicketPriority,
    TicketStatus,
    User,
    UserReference,
)

from .query import StaleTicketQuery, TicketQuery

_TICKET_UPDATABLE_FIELDS = frozenset({"status", "priority", "assigned_to"})


class _Repository:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        engine: AsyncEngine | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._engine: AsyncEngine | None = engine

    async def ensure_schema(self) -> None:
        if self._engine is None:
            raise RuntimeError("Session factory is not bound to an async engine")
        async with self._engine.begin() as connection:
            await connection.run_sync(SQLModel.metadata.create_all)


class UserRepository(_Repository):
    """Persistence helper wrapping the ``users`` table."""

    async def insert(self, user: User) -> User:
        """Store a new user. A taken email surfaces as ``ConflictError``."""

        try:
            async with self._session_factory() as session:
                async with session.begin():
                    session.add(
                        UserTable(
                            id=user.id,
                            name=user.name,
                            email=user.email,
                            password_hash=user.password_hash,
                            role=user.role.value,
                            created_at=user.created_at,
                            updated_at=user.updated_at,
                        )
                    )
        except IntegrityError as exc:
            raise ConflictError(f"Email {user.email} is already registered") from exc
        return user

    async def get(self, user_id: str) -> User | None:
        async with self._session_factory() as session:
            row = await session.get(UserTable, user_id)
        return None if row is None else self._table_to_user(row)

    async def get_by_email(self, email: str) -> User | None:
        async with self._session_factory() as session:
            result = await session.execute(select(UserTable).where(UserTable.email == email))
            row = result.scalars().first()
        return None if row is None else self._table_to_user(row)

    async def get_many(self, user_ids: Iterable[str]) -> dict[str, User]:
        wanted = {user_id for user_id in user_ids if user_id}
        if not wanted:
            return {}
        async with self._session_factory() as session:
            result = await session.execute(select(UserTable).where(col(UserTable.id).in_(wanted)))
            rows = result.scalars().all()
        return {row.id: self._table_to_user(row) for row in rows}

    @staticmethod
    def _table_to_user(row: UserTable) -> User:
        return User(
            id=row.id,
            name=row.name,
            email=row.email,
            password_hash=row.password_hash,
            role=Role(row.role),
            created_at=_ensure_datetime(row.created_at),
            updated_at=_ensure_datetime(row.updated_at),
        )

class TicketRepository(_Repository):
    """Persistence helper wrapping the ``tickets`` table."""

    async def insert(self, ticket: Ticket) -> Ticket:
        async with self._session_factory() as session:
            async with session.begin():
                session.add(
                    TicketTable(
                        id=ticket.id,
                        title=ticket.title,
                        description=ticket.description,
                        status=ticket.status.value,
                        priority=ticket.priority.value,
                        created_by=ticket.owner_id,
                        assigned_to=ticket.assignee_id,
                        created_at=ticket.created_at,
                        updated_at=ticket.updated_at,
                    )
                )
        return ticket

    async def get(self, ticket_id: str) -> Ticket | None:
        async with self._session_factory() as session:
            row = await session.get(TicketTable, ticket_id)
        return None if row is None else self._table_to_ticket(row)

    async def find(self, query: TicketQuery | StaleTicketQuery) -> list[Ticket]:
        async with self._session_factory() as session:
            result = await session.execute(query.to_statement())
            return [self._table_to_ticket(row) for row in result.scalars().all()]

    async def update(self, ticket_id: str, fields: Mapping[str, Any], updated_at: datetime) -> Ticket | None:
        """Apply a partial update. Fields absent from ``fields`` keep their stored value."""

        unknown = set(fields) - _TICKET_UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Ticket fields cannot be updated: {sorted(unknown)}")

        async with self._session_factory() as session:
            row = await session.get(TicketTable, ticket_id)
            if row is None:
                return None
            for name, value in fields.items():
                setattr(row, name, value.value if isinstance(value, (TicketStatus, TicketPriority)) else value)
            row.updated_at = updated_at
            await session.commit()
            await session.refresh(row)
            return self._table_to_ticket(row)

    async def delete(self, ticket_id: str) -> bool:
        async with self._session_factory() as session:
            row = await session.get(TicketTable, ticket_id)
            if row is None:
                return False
            await session.delete(row)
            await session.commit()
            return True

    @staticmethod
    def _table_to_ticket(row: TicketTable) -> Ticket:
        return Ticket(
            id=row.id,
            title=row.title,
            description=row.description,
            status=TicketStatus(row.status),
            priority=TicketPriority(row.priority),
            created_by=UserReference(row.created_by),
            assigned_to=UserReference(row.assigned_to) if row.assigned_to else None,
            created_at=_ensure_datetime(row.created_at),
            updated_at=_ensure_datetime(row.updated_at),
        )


class CommentRepository(_Repository):
    """Persistence helper wrapping the ``comments`` table."""

    async def insert(self, comment: Comment) -> Comment:
        async with self._session_factory() as session:
            async with session.begin():
                session.add(
                    CommentTable(
                        id=comment.id,
                        ticket_id=comment.ticket_id,
                        author=comment.author.id,
                        message=comment.message,
                        created_at=comment.created_at,
                        updated_at=comment.updated_at,
                    )
                )
        return comment

    async def list_for_ticket(self, ticket_id: str) -> Sequence[Comment]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(CommentTable)
                .where(CommentTable.ticket_id == ticket_id)
                .order_by(col(CommentTable.created_at).asc())
            )
            return [self._table_to_comment(row) for row in result.scalars().all()]

    async def delete_for_ticket(self, ticket_id: str) -> int:
        async with self._session_factory() as session:
            async with session.begin():
                result = await session.execute(delete(CommentTable).where(CommentTable.ticket_id == ticket_id))
        return int(result.rowcount or 0)

    @staticmethod
    def _table_to_comment(row: CommentTable) -> Comment:
        return Comment(
            id=row.id,
            ticket_id=row.ticket_id,
            author=UserReference(row.author),
            message=row.message,
            created_at=_ensure_datetime(row.created_at),
            updated_at=_ensure_datetime(row.updated_at),
        )


def _ensure_datetime(value: datetime | None) -> datetime:
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value
    raise TypeError("Expected datetime value from database")
