"""In-memory identity provider for tests and offline runs."""

import logging
from uuid import uuid4

from jose import JWTError, jwt

from src.shots.models.session import Session
from src.shots.services.auth.exceptions import AuthenticationError
from src.shots.services.auth.nonce import SignInRequirements
from src.shots.services.auth.provider import (
    IdentityProvider,
    ProviderRegistration,
    SessionCallback,
)

logger = logging.getLogger(__name__)


class InMemoryProviderRegistration(ProviderRegistration):
    """Registration in an ``InMemoryIdentityProvider`` callback table."""

    def __init__(self, provider: "InMemoryIdentityProvider", token: str) -> None:
        self._provider = provider
        self._token = token

    def remove(self) -> None:
        self._provider._callbacks.pop(self._token, None)


class InMemoryIdentityProvider(IdentityProvider):
    """
    Local identity provider with the same callback behavior as Supabase Auth.

    Callbacks run synchronously inside the call that changed the session.
    Identity tokens are trusted: the principal id is the token's ``sub``
    claim. Failures can be scripted with ``anonymous_failures`` and
    ``sign_in_error``.

    Example:
        >>> provider = InMemoryIdentityProvider()
        >>> provider.anonymous_failures = 2
        >>> await provider.sign_in_anonymously()  # raises AuthenticationError
    """

    def __init__(self, session: Session | None = None) -> None:
        """
        Initialize the provider.

        Args:
            session: Session restored at startup, if any
        """
        self._session = session
        self._callbacks: dict[str, SessionCallback] = {}
        self.anonymous_failures = 0
        self.sign_in_error: AuthenticationError | None = None
        self.anonymous_sign_in_calls = 0
        self.deleted_accounts: list[str] = []

    @property
    def listener_count(self) -> int:
        """Number of registered session callbacks."""
        return len(self._callbacks)

    @property
    def session(self) -> Session | None:
        return self._session

    def emit(self, session: Session | None) -> None:
        """Replace the current session and notify every callback."""
        self._session = session
        for callback in list(self._callbacks.values()):
            callback(session)

    def add_session_listener(self, callback: SessionCallback) -> ProviderRegistration:
        token = str(uuid4())
        self._callbacks[token] = callback
        return InMemoryProviderRegistration(self, token)

    async def current_session(self) -> Session | None:
        return self._session

    async def sign_in_anonymously(self) -> Session:
        self.anonymous_sign_in_calls += 1
        if self.anonymous_failures > 0:
            self.anonymous_failures -= 1
            raise AuthenticationError("Anonymous sign-in is unavailable")

        session = Session(provider_user_id=f"anon-{uuid4()}", is_anonymous=True)
        self.emit(session)
        return session

    async def sign_in_with_id_token(self, requirements: SignInRequirements) -> Session:
        if self.sign_in_error is not None:
            raise self.sign_in_error
        try:
            claims = jwt.get_unverified_claims(requirements.id_token)
        except JWTError as e:
            raise AuthenticationError(f"Invalid identity token: {e}") from e

        subject = claims.get("sub")
        if not subject:
            raise AuthenticationError("Identity token has no subject")

        session = Session(provider_user_id=subject, email=claims.get("email"))
        self.emit(session)
        return session

    async def sign_out(self) -> None:
        self.emit(None)

    async def delete_account(self, provider_user_id: str) -> None:
        self.deleted_accounts.append(provider_user_id)
        logger.info(f"Deleted principal {provider_user_id}")
        await self.sign_out()
