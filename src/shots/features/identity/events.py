"""Inbound events and outbound messages of the identity reconciliation flow."""

from dataclasses import dataclass
from typing import TypeAlias

from src.shots.models.session import Session
from src.shots.models.user import User
from src.shots.services.auth.nonce import ProviderCredential


# Inbound


@dataclass(frozen=True)
class SessionChanged:
    """The identity provider reported a new session (None when signed out)."""

    session: Session | None


@dataclass(frozen=True)
class SignInCompleted:
    """The provider sign-in sheet returned a credential."""

    credential: ProviderCredential | None


@dataclass(frozen=True)
class SignOutRequested:
    """The user asked to sign out."""


@dataclass(frozen=True)
class AccountDeletionRequested:
    """The user asked to delete their account."""


IdentityEvent: TypeAlias = (
    SessionChanged | SignInCompleted | SignOutRequested | AccountDeletionRequested
)


# Outbound


@dataclass(frozen=True)
class SignInSucceeded:
    """A provider sign-in finished and the profile is cached."""

    user: User


@dataclass(frozen=True)
class SignInFailed:
    """A provider sign-in failed; the flow stayed in its prior state."""

    description: str


@dataclass(frozen=True)
class ProfileSyncFailed:
    """Fetching or pushing the profile for a live session failed."""

    provider_user_id: str
    description: str


IdentityMessage: TypeAlias = SignInSucceeded | SignInFailed | ProfileSyncFailed
