"""Identity provider adapter over Supabase Auth."""

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

import httpx
from supabase import AsyncClient, AuthError

from src.shots.models.session import Session
from src.shots.services.auth.exceptions import AuthenticationError
from src.shots.services.auth.nonce import SignInRequirements

logger = logging.getLogger(__name__)

SessionCallback = Callable[[Session | None], None]

# Token refreshes and MFA steps do not change who is signed in
SESSION_CHANGE_EVENTS = {"SIGNED_IN", "SIGNED_OUT", "USER_UPDATED", "USER_DELETED"}


class ProviderRegistration(ABC):
    """Handle to one native auth-state callback."""

    @abstractmethod
    def remove(self) -> None:
        """Unregister the callback. Must be safe to call more than once."""
        pass


class IdentityProvider(ABC):
    """Operations the app needs from the identity provider."""

    @abstractmethod
    def add_session_listener(self, callback: SessionCallback) -> ProviderRegistration:
        """Call ``callback`` with the new session (or None) on every sign-in or sign-out."""
        pass

    @abstractmethod
    async def current_session(self) -> Session | None:
        """Return the session restored for this process, if any."""
        pass

    @abstractmethod
    async def sign_in_anonymously(self) -> Session:
        """Create an anonymous principal and sign it in."""
        pass

    @abstractmethod
    async def sign_in_with_id_token(self, requirements: SignInRequirements) -> Session:
        """Exchange a validated provider credential for a session."""
        pass

    @abstractmethod
    async def sign_out(self) -> None:
        """End the current session."""
        pass

    @abstractmethod
    async def delete_account(self, provider_user_id: str) -> None:
        """Permanently delete the principal."""
        pass


class _SupabaseRegistration(ProviderRegistration):
    def __init__(self, subscription: Any) -> None:
        self._subscription = subscription

    def remove(self) -> None:
        if self._subscription is None:
            return
        subscription, self._subscription = self._subscription, None
        subscription.unsubscribe()


class SupabaseIdentityProvider(IdentityProvider):
    """
    Identity provider backed by Supabase Auth.

    Account deletion needs the auth admin API, so it is only available
    when a service-role client is supplied.

    Example:
        >>> provider = SupabaseIdentityProvider(await get_supabase_client())
        >>> session = await provider.sign_in_anonymously()
    """

    def __init__(self, client: AsyncClient, admin_client: AsyncClient | None = None) -> None:
        """
        Initialize the provider.

        Args:
            client: Async Supabase client holding the user session
            admin_client: Optional service-role client for account deletion
        """
        self.client = client
        self.admin_client = admin_client

    @staticmethod
    def _to_session(native_session: Any) -> Session | None:
        if native_session is None or native_session.user is None:
            return None
        user = native_session.user
        return Session(
            provider_user_id=user.id,
            is_anonymous=bool(getattr(user, "is_anonymous", False)),
            email=user.email,
        )

    def add_session_listener(self, callback: SessionCallback) -> ProviderRegistration:
        def _on_auth_state_change(event: str, native_session: Any) -> None:
            if event not in SESSION_CHANGE_EVENTS:
                logger.debug(f"Ignoring auth event {event}")
                return
            callback(self._to_session(native_session))

        subscription = self.client.auth.on_auth_state_change(_on_auth_state_change)
        return _SupabaseRegistration(subscription)

    async def current_session(self) -> Session | None:
        try:
            return self._to_session(await self.client.auth.get_session())
        except (AuthError, httpx.HTTPError) as e:
            raise AuthenticationError(f"Unable to restore session: {e}") from e

    async def sign_in_anonymously(self) -> Session:
        try:
            response = await self.client.auth.sign_in_anonymously()
        except (AuthError, httpx.HTTPError) as e:
            raise AuthenticationError(f"Anonymous sign-in failed: {e}") from e

        session = self._to_session(response.session)
        if session is None:
            raise AuthenticationError("Anonymous sign-in returned no session")
        return session

    async def sign_in_with_id_token(self, requirements: SignInRequirements) -> Session:
        provider = requirements.credential.provider
        try:
            response = await self.client.auth.sign_in_with_id_token(
                {"provider": provider, "token": requirements.id_token, "nonce": requirements.nonce}
            )
        except (AuthError, httpx.HTTPError) as e:
            raise AuthenticationError(f"Sign-in with {provider} failed: {e}") from e

        session = self._to_session(response.session)
        if session is None:
            raise AuthenticationError(f"Sign-in with {provider} returned no session")
        return session

    async def sign_out(self) -> None:
        try:
            await self.client.auth.sign_out()
        except (AuthError, httpx.HTTPError) as e:
            logger.error(f"Unable to sign out: {e}")
            raise AuthenticationError(f"Unable to sign out: {e}") from e

    async def delete_account(self, provider_user_id: str) -> None:
        if self.admin_client is None:
            raise AuthenticationError("Account deletion requires a service-role client")
        try:
            await self.admin_client.auth.admin.delete_user(provider_user_id)
        except (AuthError, httpx.HTTPError) as e:
            logger.error(f"Unable to delete account {provider_user_id}: {e}")
            raise AuthenticationError(f"Unable to delete account: {e}") from e
        await self.sign_out()
