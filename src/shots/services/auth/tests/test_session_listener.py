"""Tests for the session listener and its stream."""

import asyncio

import pytest

from src.shots.models.session import Session
from src.shots.services.auth import InMemoryIdentityProvider, SessionListener

RESTORED = Session(provider_user_id="user-1", email="a@example.com")


@pytest.fixture
def provider() -> InMemoryIdentityProvider:
    """Provider with no restored session."""
    return InMemoryIdentityProvider()


@pytest.fixture
def listener(provider: InMemoryIdentityProvider) -> SessionListener:
    return SessionListener(provider)


@pytest.mark.asyncio
class TestSessionListener:
    """Tests for SessionListener and SessionStream."""

    async def test_first_value_is_none_without_session(
        self, listener: SessionListener
    ) -> None:
        """Test that a fresh process without a session starts with None."""
        async with await listener.listen() as stream:
            assert await asyncio.wait_for(stream.__anext__(), timeout=1) is None

    async def test_first_value_is_restored_session(self) -> None:
        """Test that a restored session is delivered first."""
        listener = SessionListener(InMemoryIdentityProvider(session=RESTORED))

        async with await listener.listen() as stream:
            assert await asyncio.wait_for(stream.__anext__(), timeout=1) == RESTORED

    async def test_delivers_sign_in_and_sign_out(
        self, provider: InMemoryIdentityProvider, listener: SessionListener
    ) -> None:
        """Test that later changes are delivered in order."""
        async with await listener.listen() as stream:
            assert await stream.__anext__() is None

            session = await provider.sign_in_anonymously()
            assert await asyncio.wait_for(stream.__anext__(), timeout=1) == session

            await provider.sign_out()
            assert await asyncio.wait_for(stream.__anext__(), timeout=1) is None

    async def test_keeps_only_latest_unread_value(
        self, provider: InMemoryIdentityProvider, listener: SessionListener
    ) -> None:
        """Test that unread values are replaced by newer ones."""
        async with await listener.listen() as stream:
            provider.emit(Session(provider_user_id="first"))
            provider.emit(Session(provider_user_id="second"))

            latest = await asyncio.wait_for(stream.__anext__(), timeout=1)

        assert latest.provider_user_id == "second"

    async def test_single_registration(
        self, provider: InMemoryIdentityProvider, listener: SessionListener
    ) -> None:
        """Test that a second listen while active registers nothing and finishes at once."""
        first = await listener.listen()

        second = await listener.listen()

        assert provider.listener_count == 1
        assert second.closed
        with pytest.raises(StopAsyncIteration):
            await second.__anext__()
        await first.aclose()

    async def test_close_releases_callback(
        self, provider: InMemoryIdentityProvider, listener: SessionListener
    ) -> None:
        """Test that closing the stream unregisters the provider callback."""
        stream = await listener.listen()
        assert listener.is_listening

        await stream.aclose()

        assert provider.listener_count == 0
        assert not listener.is_listening
        with pytest.raises(StopAsyncIteration):
            await stream.__anext__()

    async def test_listen_again_after_close(
        self, provider: InMemoryIdentityProvider, listener: SessionListener
    ) -> None:
        """Test that a closed stream can be replaced by a new one."""
        await (await listener.listen()).aclose()

        stream = await listener.listen()

        assert not stream.closed
        assert provider.listener_count == 1
        await stream.aclose()

    async def test_cancelled_consumer_releases_callback(
        self, provider: InMemoryIdentityProvider, listener: SessionListener
    ) -> None:
        """Test that cancelling the consuming task unregisters the callback."""
        stream = await listener.listen()
        received: list[Session | None] = []

        async def consume() -> None:
            async for session in stream:
                received.append(session)

        task = asyncio.create_task(consume())
        await asyncio.sleep(0.01)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert received == [None]
        assert provider.listener_count == 0
        assert not listener.is_listening
