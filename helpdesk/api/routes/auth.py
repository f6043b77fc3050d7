from __future__ import annotations

from fastapi import APIRouter, status
from pydantic import BaseModel

from helpdesk.api.schemas import UserModel, to_user_model
from helpdesk.dependencies.auth import CurrentActor
from helpdesk.dependencies.errors import to_http_error
from helpdesk.dependencies.services import UserServiceDep
from helpdesk.domain.errors import HelpdeskError
from helpdesk.domain.models import Role

router = APIRouter(prefix="/auth", tags=["auth"])


class RegisterRequest(BaseModel):
    name: str
    email: str
    password: str
    confirm_password: str | None = None
    role: Role | None = None


class LoginRequest(BaseModel):
    email: str
    password: str


class LoginResponse(BaseModel):
    token: str
    user: UserModel


@router.post("/register", response_model=UserModel, status_code=status.HTTP_201_CREATED)
async def register(payload: RegisterRequest, service: UserServiceDep) -> UserModel:
    try:
        user = await service.register(
            name=payload.name,
            email=payload.email,
            password=payload.password,
            confirm_password=payload.confirm_password,
            role=payload.role,
        )
    except HelpdeskError as exc:
        raise to_http_error(exc) from exc
    return to_user_model(user)


@router.post("/login", response_model=LoginResponse)
async def login(payload: LoginRequest, service: UserServiceDep) -> LoginResponse:
    try:
        result = await service.login(email=payload.email, password=payload.password)
    except HelpdeskError as exc:
        raise to_http_error(exc) from exc
    return LoginResponse(token=result.token, user=to_user_model(result.user))


@router.get("/me", response_model=UserModel)
async def me(service: UserServiceDep, actor: CurrentActor) -> UserModel:
    try:
        user = await service.me(actor)
    except HelpdeskError as exc:
        raise to_http_error(exc) from exc
    return to_user_model(user)
