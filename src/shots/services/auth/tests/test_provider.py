"""Tests for the Supabase identity provider adapter."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from supabase import AuthError

from src.shots.services.auth import (
    AuthenticationError,
    ProviderCredential,
    SignInRequirements,
    SupabaseIdentityProvider,
)


def native_session(user_id: str = "user-1", is_anonymous: bool = False) -> MagicMock:
    """Supabase auth session with a user."""
    session = MagicMock()
    session.user.id = user_id
    session.user.email = None if is_anonymous else "a@example.com"
    session.user.is_anonymous = is_anonymous
    return session


@pytest.fixture
def mock_client() -> MagicMock:
    """Mock async Supabase client."""
    client = MagicMock()
    client.auth.get_session = AsyncMock(return_value=None)
    client.auth.sign_in_anonymously = AsyncMock()
    client.auth.sign_in_with_id_token = AsyncMock()
    client.auth.sign_out = AsyncMock()
    return client


class TestSessionCallbacks:
    """Tests for add_session_listener()."""

    def test_forwards_sign_in_and_sign_out(self, mock_client: MagicMock) -> None:
        """Test that session-changing events reach the callback."""
        received = []
        provider = SupabaseIdentityProvider(mock_client)
        provider.add_session_listener(received.append)
        on_change = mock_client.auth.on_auth_state_change.call_args[0][0]

        on_change("SIGNED_IN", native_session("user-1", is_anonymous=True))
        on_change("SIGNED_OUT", None)

        assert received[0].provider_user_id == "user-1"
        assert received[0].is_anonymous is True
        assert received[1] is None

    def test_ignores_token_refresh(self, mock_client: MagicMock) -> None:
        """Test that token refreshes do not produce a session change."""
        received = []
        provider = SupabaseIdentityProvider(mock_client)
        provider.add_session_listener(received.append)
        on_change = mock_client.auth.on_auth_state_change.call_args[0][0]

        on_change("TOKEN_REFRESHED", native_session())

        assert received == []

    def test_remove_unsubscribes_once(self, mock_client: MagicMock) -> None:
        """Test that removing the registration unsubscribes exactly once."""
        provider = SupabaseIdentityProvider(mock_client)
        registration = provider.add_session_listener(MagicMock())
        subscription = mock_client.auth.on_auth_state_change.return_value

        registration.remove()
        registration.remove()

        subscription.unsubscribe.assert_called_once_with()


@pytest.mark.asyncio
class TestSupabaseIdentityProvider:
    """Tests for SupabaseIdentityProvider calls."""

    async def test_current_session_none(self, mock_client: MagicMock) -> None:
        """Test that no stored session maps to None."""
        provider = SupabaseIdentityProvider(mock_client)

        assert await provider.current_session() is None

    async def test_sign_in_anonymously(self, mock_client: MagicMock) -> None:
        """Test that an anonymous sign-in returns an anonymous session."""
        mock_client.auth.sign_in_anonymously.return_value.session = native_session(
            "anon-1", is_anonymous=True
        )
        provider = SupabaseIdentityProvider(mock_client)

        session = await provider.sign_in_anonymously()

        assert session.provider_user_id == "anon-1"
        assert session.is_anonymous is True

    async def test_sign_in_anonymously_error_is_wrapped(self, mock_client: MagicMock) -> None:
        """Test that provider errors surface as AuthenticationError."""
        mock_client.auth.sign_in_anonymously.side_effect = AuthError("disabled", None)
        provider = SupabaseIdentityProvider(mock_client)

        with pytest.raises(AuthenticationError, match="disabled"):
            await provider.sign_in_anonymously()

    async def test_sign_in_with_id_token(self, mock_client: MagicMock) -> None:
        """Test that the token and raw nonce are passed to the identity service."""
        mock_client.auth.sign_in_with_id_token.return_value.session = native_session("user-1")
        provider = SupabaseIdentityProvider(mock_client)
        requirements = SignInRequirements(
            credential=ProviderCredential(provider="apple", id_token="token"),
            nonce="raw-nonce",
            id_token="token",
        )

        session = await provider.sign_in_with_id_token(requirements)

        assert session.provider_user_id == "user-1"
        mock_client.auth.sign_in_with_id_token.assert_awaited_once_with(
            {"provider": "apple", "token": "token", "nonce": "raw-nonce"}
        )

    async def test_delete_account_requires_admin_client(self, mock_client: MagicMock) -> None:
        """Test that deletion without a service-role client is refused."""
        provider = SupabaseIdentityProvider(mock_client)

        with pytest.raises(AuthenticationError):
            await provider.delete_account("user-1")

    async def test_delete_account_then_sign_out(self, mock_client: MagicMock) -> None:
        """Test that deletion removes the principal and ends the session."""
        admin_client = MagicMock()
        admin_client.auth.admin.delete_user = AsyncMock()
        provider = SupabaseIdentityProvider(mock_client, admin_client=admin_client)

        await provider.delete_account("user-1")

        admin_client.auth.admin.delete_user.assert_awaited_once_with("user-1")
        mock_client.auth.sign_out.assert_awaited_once_with()
