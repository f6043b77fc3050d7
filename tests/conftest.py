from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

from helpdesk.domain.models import Role, User
from helpdesk.notifications.notifier import NotificationDispatcher
from helpdesk.tickets.repository import CommentRepository, TicketRepository, UserRepository
from helpdesk.tickets.service import TicketService


class FakeClock:
    """Deterministic clock advancing one second per reading."""

    def __init__(self, start: datetime | None = None) -> None:
        self.current = start or datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        self.current += timedelta(seconds=1)
        return self.current

    def advance(self, **kwargs: float) -> None:
        self.current += timedelta(**kwargs)


class RecordingNotifier:
    def __init__(self, *, fail: bool = False) -> None:
        self.sent: list[tuple[str, str, str]] = []
        self.fail = fail

    async def send(self, to_email: str, subject: str, body_html: str) -> None:
        if self.fail:
            raise RuntimeError("smtp relay unavailable")
        self.sent.append((to_email, subject, body_html))


@dataclass
class Repositories:
    users: UserRepository
    tickets: TicketRepository
    comments: CommentRepository


@dataclass
class Population:
    client: User
    other_client: User
    agent: User
    other_agent: User


@pytest_asyncio.fixture
async def engine() -> AsyncEngine:
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture
def repositories(engine: AsyncEngine) -> Repositories:
    session_factory = async_sessionmaker(engine, expire_on_commit=False)
    return Repositories(
        users=UserRepository(session_factory, engine=engine),
        tickets=TicketRepository(session_factory, engine=engine),
        comments=CommentRepository(session_factory, engine=engine),
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def dispatcher(notifier: RecordingNotifier) -> NotificationDispatcher:
    return NotificationDispatcher(notifier)


def make_user(user_id: str, name: str, email: str, role: Role, created_at: datetime) -> User:
    return User.create(
        id=user_id,
        name=name,
        email=email,
        password_hash="not-a-real-hash",
        role=role,
        created_at=created_at,
    )


@pytest_asyncio.fixture
async def people(repositories: Repositories, clock: FakeClock) -> Population:
    population = Population(
        client=make_user("client-1", "Carla Client", "carla@example.com", Role.CLIENT, clock()),
        other_client=make_user("client-2", "Diego Client", "diego@example.com", Role.CLIENT, clock()),
        agent=make_user("agent-1", "Ana Agent", "ana@example.com", Role.AGENT, clock()),
        other_agent=make_user("agent-2", "Bruno Agent", "bruno@example.com", Role.AGENT, clock()),
    )
    for user in (population.client, population.other_client, population.agent, population.other_agent):
        await repositories.users.insert(user)
    return population


@pytest.fixture
def service(repositories: Repositories, dispatcher: NotificationDispatcher, clock: FakeClock) -> TicketService:
    return TicketService(
        repositories.tickets,
        repositories.comments,
        repositories.users,
        dispatcher=dispatcher,
        clock=clock,
    )
