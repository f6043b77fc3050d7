"""Application services living outside the ticket core."""

from .auth import AuthService
from .postgres import DatabaseHealthProbe, ProbeResult
from .users import LoginResult, UserService

__all__ = [
    "AuthService",
    "DatabaseHealthProbe",
    "LoginResult",
    "ProbeResult",
    "UserService",
]
