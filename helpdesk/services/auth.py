from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt
from passlib.context import CryptContext

from helpdesk.core.config import Settings
from helpdesk.domain.models import Actor, Role, User

logger = logging.getLogger(__name__)


class AuthService:
    """Password hashing and bearer token signing for helpdesk users."""

    def __init__(self, settings: Settings, *, pwd_context: CryptContext | None = None) -> None:
        self._secret = settings.jwt_secret
        self._algorithm = settings.jwt_algorithm
        self._token_ttl = timedelta(days=settings.token_ttl_days)
        self._pwd_context = pwd_context or CryptContext(schemes=["argon2"], deprecated="auto")

    def hash_password(self, password: str) -> str:
        return self._pwd_context.hash(password)

    def verify_password(self, password: str, password_hash: str) -> bool:
        try:
            return self._pwd_context.verify(password, password_hash)
        except (ValueError, TypeError):
            logger.warning("Stored password hash could not be identified")
            return False

    def issue_token(self, user: User, *, now: datetime | None = None) -> str:
        issued_at = now or datetime.now(timezone.utc)
        claims: dict[str, Any] = {
            "sub": user.id,
            "role": user.role.value,
            "iat": int(issued_at.timestamp()),
            "exp": int((issued_at + self._token_ttl).timestamp()),
        }
        return jwt.encode(claims, self._secret, algorithm=self._algorithm)

    def verify_actor(self, token: str | None) -> Actor | None:
        """Return the actor encoded in ``token`` or ``None`` when it cannot be trusted."""

        if not token:
            return None
        try:
            claims = jwt.decode(token, self._secret, algorithms=[self._algorithm])
        except JWTError:
            return None

        subject = claims.get("sub")
        try:
            role = Role(claims.get("role"))
        except ValueError:
            return None
        if not subject:
            return None
        return Actor(id=str(subject), role=role)
