"""Tests for the user cache and user client."""

from datetime import UTC, datetime

import pytest

from src.shots.features.identity.user_client import UserClient, UserProfileCache
from src.shots.models.session import Absent, Exists, Session
from src.shots.models.user import User
from src.shots.services.auth import AuthenticationError, InMemoryIdentityProvider
from src.shots.services.database import Collection, DocumentStore, InMemoryDocumentBackend

TEST_USER = User(id="pid-1", created_at=datetime(2024, 1, 11, tzinfo=UTC), name="Ada")


@pytest.fixture
def provider() -> InMemoryIdentityProvider:
    return InMemoryIdentityProvider()


@pytest.fixture
def backend() -> InMemoryDocumentBackend:
    return InMemoryDocumentBackend()


@pytest.fixture
def user_client(provider: InMemoryIdentityProvider, backend: InMemoryDocumentBackend) -> UserClient:
    store = DocumentStore(backend, retry_attempts=1, retry_delay=0)
    return UserClient(provider, store, anonymous_retry_delay=0, anonymous_max_attempts=3)


class TestUserProfileCache:
    """Tests for UserProfileCache class."""

    def test_observers_see_every_write(self) -> None:
        """Test that observers are called with each new value."""
        cache = UserProfileCache()
        seen: list[User | None] = []
        cache.add_observer(seen.append)

        cache.set(TEST_USER)
        cache.clear()

        assert seen == [TEST_USER, None]
        assert cache.current is None

    def test_removed_observer_is_not_called(self) -> None:
        """Test that the returned remover unsubscribes the observer."""
        cache = UserProfileCache()
        seen: list[User | None] = []
        remove = cache.add_observer(seen.append)

        remove()
        cache.set(TEST_USER)

        assert seen == []
        assert cache.current == TEST_USER

    def test_failing_observer_does_not_block_others(self) -> None:
        """Test that an observer error is logged and the write still lands."""
        cache = UserProfileCache()
        seen: list[User | None] = []

        def broken(user: User | None) -> None:
            raise RuntimeError("observer failed")

        cache.add_observer(broken)
        cache.add_observer(seen.append)

        cache.set(TEST_USER)

        assert seen == [TEST_USER]


@pytest.mark.asyncio
class TestUserClient:
    """Tests for UserClient class."""

    async def test_get_user_missing_is_none(self, user_client: UserClient) -> None:
        """Test that a principal without a document has no user."""
        assert await user_client.get_user(Session(provider_user_id="pid-1")) is None

    async def test_update_then_find(self, user_client: UserClient) -> None:
        """Test that update_user writes the document and the cache."""
        await user_client.update_user(TEST_USER)

        found = await user_client.find_user("pid-1")

        assert isinstance(found, Exists)
        assert found.value.name == "Ada"
        assert user_client.user == TEST_USER

    async def test_create_user_only_once(self, user_client: UserClient) -> None:
        """Test that create_user reports whether it wrote."""
        assert await user_client.create_user(TEST_USER) is True
        assert await user_client.create_user(TEST_USER) is False

    async def test_delete_account(
        self,
        user_client: UserClient,
        provider: InMemoryIdentityProvider,
        backend: InMemoryDocumentBackend,
    ) -> None:
        """Test that the document is removed before the principal."""
        await user_client.update_user(TEST_USER)

        await user_client.delete_account("pid-1")

        assert await backend.fetch(Collection.USERS, "pid-1") is None
        assert provider.deleted_accounts == ["pid-1"]
        assert await user_client.find_user("pid-1") == Absent()

    async def test_anonymous_sign_in_retries(
        self, user_client: UserClient, provider: InMemoryIdentityProvider
    ) -> None:
        """Test that anonymous sign-in retries transient failures."""
        provider.anonymous_failures = 2

        session = await user_client.sign_in_anonymously()

        assert session.is_anonymous
        assert provider.anonymous_sign_in_calls == 3

    async def test_anonymous_sign_in_budget(
        self, user_client: UserClient, provider: InMemoryIdentityProvider
    ) -> None:
        """Test that a bounded budget gives up with the last failure."""
        provider.anonymous_failures = 10

        with pytest.raises(AuthenticationError):
            await user_client.sign_in_anonymously()

        assert provider.anonymous_sign_in_calls == 3
