"""Helpdesk entities, enums and the validating constructors that build them."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, TypeVar, Union

from pydantic import EmailStr, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from .errors import ValidationError

_EMAIL_ADAPTER: TypeAdapter[str] = TypeAdapter(EmailStr)

E = TypeVar("E", bound=Enum)


class Role(str, Enum):
    """Roles a helpdesk user can hold."""

    CLIENT = "client"
    AGENT = "agent"


class TicketStatus(str, Enum):
    """Canonical states of the ticket lifecycle."""

    OPEN = "open"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"
    CLOSED = "closed"


class TicketPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


def require_text(field: str, value: str | None) -> str:
    """Return ``value`` stripped of surrounding whitespace, rejecting empty text."""

    cleaned = (value or "").strip()
    if not cleaned:
        raise ValidationError(f"{field} is required", field=field)
    return cleaned


def normalize_email(value: str | None) -> str:
    cleaned = require_text("email", value).lower()
    try:
        return _EMAIL_ADAPTER.validate_python(cleaned)
    except PydanticValidationError as exc:
        raise ValidationError(f"Invalid email address: {cleaned}", field="email") from exc


def parse_enum(enum_type: type[E], field: str, value: Any) -> E:
    """Coerce ``value`` into ``enum_type`` or raise a field-level validation error."""

    if isinstance(value, enum_type):
        return value
    try:
        return enum_type(value)
    except ValueError as exc:
        allowed = ", ".join(member.value for member in enum_type)
        raise ValidationError(f"Invalid {field} '{value}', expected one of: {allowed}", field=field) from exc


@dataclass(slots=True, frozen=True)
class Actor:
    """Authenticated identity making a request."""

    id: str
    role: Role

    @property
    def is_agent(self) -> bool:
        return self.role == Role.AGENT

    @property
    def is_client(self) -> bool:
        return self.role == Role.CLIENT


@dataclass(slots=True)
class User:
    """Registered helpdesk account. ``password_hash`` never leaves the service layer."""

    id: str
    name: str
    email: str
    password_hash: str
    role: Role
    created_at: datetime
    updated_at: datetime

    @classmethod
    def create(
        cls,
        *,
        id: str,
        name: str,
        email: str,
        password_hash: str,
        role: Role | str,
        created_at: datetime,
    ) -> "User":
        return cls(
            id=id,
            name=require_text("name", name),
            email=normalize_email(email),
            password_hash=password_hash,
            role=parse_enum(Role, "role", role),
            created_at=created_at,
            updated_at=created_at,
        )

    def as_actor(self) -> Actor:
        return Actor(id=self.id, role=self.role)


@dataclass(slots=True, frozen=True)
class UserReference:
    """Unresolved pointer to a user record."""

    id: str


@dataclass(slots=True, frozen=True)
class PopulatedUser:
    """User summary embedded on read paths."""

    id: str
    name: str
    email: str
    role: Role

    @classmethod
    def from_user(cls, user: User) -> "PopulatedUser":
        return cls(id=user.id, name=user.name, email=user.email, role=user.role)


UserRef = Union[UserReference, PopulatedUser]


@dataclass(slots=True)
class Ticket:
    """Support ticket filed by a client."""

    id: str
    title: str
    description: str
    status: TicketStatus
    priority: TicketPriority
    created_by: UserRef
    assigned_to: UserRef | None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def create(
        cls,
        *,
        id: str,
        title: str,
        description: str,
        created_by: str,
        created_at: datetime,
        priority: TicketPriority | str | None = None,
    ) -> "Ticket":
        return cls(
            id=id,
            title=require_text("title", title),
            description=require_text("description", description),
            status=TicketStatus.OPEN,
            priority=parse_enum(TicketPriority, "priority", priority or TicketPriority.MEDIUM),
            created_by=UserReference(created_by),
            assigned_to=None,
            created_at=created_at,
            updated_at=created_at,
        )

    @property
    def owner_id(self) -> str:
        return self.created_by.id

    @property
    def assignee_id(self) -> str | None:
        return None if self.assigned_to is None else self.assigned_to.id


@dataclass(slots=True)
class Comment:
    """Append-only message attached to a ticket."""

    id: str
    ticket_id: str
    author: UserRef
    message: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def create(cls, *, id: str, ticket_id: str, author: str, message: str, created_at: datetime) -> "Comment":
        return cls(
            id=id,
            ticket_id=require_text("ticket_id", ticket_id),
            author=UserReference(author),
            message=require_text("message", message),
            created_at=created_at,
            updated_at=created_at,
        )
