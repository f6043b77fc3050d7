from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from helpdesk.core.config import Settings
from helpdesk.domain.errors import ConflictError, NotFoundError, UnauthorizedError, ValidationError
from helpdesk.domain.models import Actor, Role
from helpdesk.services.auth import AuthService
from helpdesk.services.users import UserService

SETTINGS = Settings(jwt_secret="test-secret")


@pytest.fixture
def auth():
    return AuthService(SETTINGS)


@pytest.fixture
def users(repositories, auth):
    return UserService(repositories.users, auth)


def test_password_hashing_round_trip(auth):
    hashed = auth.hash_password("hunter22")

    assert hashed != "hunter22"
    assert auth.verify_password("hunter22", hashed)
    assert not auth.verify_password("wrong", hashed)
    assert not auth.verify_password("hunter22", "not-a-hash")


@pytest.mark.asyncio
async def test_token_round_trip(auth, people):
    issued_at = datetime.now(timezone.utc)
    token = auth.issue_token(people.agent, now=issued_at)

    assert auth.verify_actor(token) == Actor(id="agent-1", role=Role.AGENT)
    claims = jwt.get_unverified_claims(token)
    assert claims["exp"] - claims["iat"] == int(timedelta(days=7).total_seconds())


@pytest.mark.asyncio
async def test_untrusted_tokens_yield_no_actor(auth, people):
    assert auth.verify_actor(None) is None
    assert auth.verify_actor("garbage") is None

    foreign = AuthService(Settings(jwt_secret="other-secret")).issue_token(people.client)
    assert auth.verify_actor(foreign) is None

    expired = auth.issue_token(people.client, now=datetime.now(timezone.utc) - timedelta(days=8))
    assert auth.verify_actor(expired) is None

    bad_role = jwt.encode({"sub": "u-1", "role": "admin"}, "test-secret", algorithm="HS256")
    assert auth.verify_actor(bad_role) is None


@pytest.mark.asyncio
async def test_register_then_login(users, auth):
    user = await users.register(name="Eva", email="Eva@Example.com", password="secret1", confirm_password="secret1")

    assert user.email == "eva@example.com"
    assert user.role is Role.CLIENT
    assert user.password_hash != "secret1"

    result = await users.login(email="EVA@example.com", password="secret1")
    assert result.user.id == user.id
    assert auth.verify_actor(result.token) == user.as_actor()


@pytest.mark.asyncio
async def test_register_agent_role(users):
    user = await users.register(name="Ana", email="new-agent@example.com", password="secret1", role="agent")

    assert user.role is Role.AGENT


@pytest.mark.asyncio
async def test_register_rejects_duplicate_email(users, people):
    with pytest.raises(ConflictError):
        await users.register(name="Other", email="CARLA@example.com", password="secret1")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("kwargs", "field"),
    [
        ({"name": "", "email": "x@example.com", "password": "secret1"}, "name"),
        ({"name": "X", "email": "nope", "password": "secret1"}, "email"),
        ({"name": "X", "email": "x@example.com", "password": "short"}, "password"),
        ({"name": "X", "email": "x@example.com", "password": "secret1", "confirm_password": "secret2"}, "confirm_password"),
        ({"name": "X", "email": "x@example.com", "password": "secret1", "role": "admin"}, "role"),
    ],
)
async def test_register_validation(users, kwargs, field):
    with pytest.raises(ValidationError) as exc:
        await users.register(**kwargs)
    assert exc.value.field == field


@pytest.mark.asyncio
async def test_login_failures(users):
    await users.register(name="Eva", email="eva@example.com", password="secret1")

    with pytest.raises(UnauthorizedError):
        await users.login(email="eva@example.com", password="wrong-password")
    with pytest.raises(UnauthorizedError):
        await users.login(email="ghost@example.com", password="secret1")
    with pytest.raises(ValidationError):
        await users.login(email="", password="secret1")


@pytest.mark.asyncio
async def test_me(users, people):
    me = await users.me(people.client.as_actor())
    assert me.email == "carla@example.com"

    with pytest.raises(UnauthorizedError):
        await users.me(None)
    with pytest.raises(NotFoundError):
        await users.me(Actor(id="ghost", role=Role.CLIENT))


@pytest.mark.asyncio
async def test_register_conflict_when_email_taken_after_lookup(users, repositories, monkeypatch):
    await users.register(name="Eva", email="eva@example.com", password="secret1")

    async def stale_lookup(email):
        return None

    monkeypatch.setattr(repositories.users, "get_by_email", stale_lookup)

    with pytest.raises(ConflictError) as exc:
        await users.register(name="Eva Again", email="eva@example.com", password="secret1")
    assert str(exc.value) == "Email eva@example.com is already registered"
