from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone

from helpdesk.domain.errors import ConflictError, NotFoundError, UnauthorizedError, ValidationError
from helpdesk.domain.models import Actor, Role, User, normalize_email, parse_enum, require_text
from helpdesk.tickets.policy import require_actor
from helpdesk.tickets.repository import UserRepository

from .auth import AuthService

logger = logging.getLogger(__name__)

_INVALID_CREDENTIALS = "Invalid credentials"


@dataclass(slots=True, frozen=True)
class LoginResult:
    token: str
    user: User


class UserService:
    """Registration, login and profile lookup."""

    def __init__(
        self,
        users: UserRepository,
        auth: AuthService,
        *,
        password_min_length: int = 6,
    ) -> None:
        self._users = users
        self._auth = auth
        self._password_min_length = password_min_length

    async def register(
        self,
        *,
        name: str,
        email: str,
        password: str,
        confirm_password: str | None = None,
        role: Role | str | None = None,
    ) -> User:
        name = require_text("name", name)
        email = normalize_email(email)
        resolved_role = parse_enum(Role, "role", role or Role.CLIENT)
        if len(password or "") < self._password_min_length:
            raise ValidationError(
                f"Password must be at least {self._password_min_length} characters long", field="password"
            )
        if confirm_password is not None and confirm_password != password:
            raise ValidationError("Passwords do not match", field="confirm_password")

        if await self._users.get_by_email(email) is not None:
            raise ConflictError(f"Email {email} is already registered")

        user = User.create(
            id=str(uuid.uuid4()),
            name=name,
            email=email,
            password_hash=self._auth.hash_password(password),
            role=resolved_role,
            created_at=datetime.now(timezone.utc),
        )
        await self._users.insert(user)
        logger.info("Registered %s user %s", user.role.value, user.id)
        return user

    async def login(self, *, email: str, password: str) -> LoginResult:
        if not (email or "").strip() or not password:
            raise ValidationError("Email and password are required")

        user = await self._users.get_by_email(email.strip().lower())
        if user is None or not self._auth.verify_password(password, user.password_hash):
            raise UnauthorizedError(_INVALID_CREDENTIALS)
        return LoginResult(token=self._auth.issue_token(user), user=user)

    async def me(self, actor: Actor | None) -> User:
        actor = require_actor(actor)
        user = await self._users.get(actor.id)
        if user is None:
            raise NotFoundError("User", actor.id)
        return user
