"""States of the identity reconciliation flow."""

from dataclasses import dataclass
from typing import TypeAlias

from src.shots.models.user import User


@dataclass(frozen=True)
class Unauthenticated:
    """No principal is signed in."""


@dataclass(frozen=True)
class AnonymousSession:
    """A principal is signed in but has no reconciled profile."""

    provider_user_id: str


@dataclass(frozen=True)
class AuthenticatedSession:
    """A principal is signed in and its profile is cached."""

    provider_user_id: str
    user: User


IdentityState: TypeAlias = Unauthenticated | AnonymousSession | AuthenticatedSession


def state_name(state: IdentityState) -> str:
    """Stable snake_case name of a state, used in API responses and logs."""
    if isinstance(state, AuthenticatedSession):
        return "authenticated"
    if isinstance(state, AnonymousSession):
        return "anonymous"
    return "unauthenticated"
