from __future__ import annotations

from pydantic import BaseModel

from helpdesk.domain.models import PopulatedUser, Role, User, UserRef


class UserSummaryModel(BaseModel):
    """Embedded user reference. Only ``id`` is set when the user could not be resolved."""

    id: str
    name: str | None = None
    email: str | None = None
    role: Role | None = None


class UserModel(BaseModel):
    id: str
    name: str
    email: str
    role: Role


def to_user_summary(ref: UserRef) -> UserSummaryModel:
    if isinstance(ref, PopulatedUser):
        return UserSummaryModel(id=ref.id, name=ref.name, email=ref.email, role=ref.role)
    return UserSummaryModel(id=ref.id)


def to_user_model(user: User) -> UserModel:
    return UserModel(id=user.id, name=user.name, email=user.email, role=user.role)
