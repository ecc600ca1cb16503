"""Live stream of identity-provider session changes."""

import asyncio
import logging

from src.shots.models.session import Session
from src.shots.services.auth.provider import IdentityProvider, ProviderRegistration

logger = logging.getLogger(__name__)

_UNSET = object()


class SessionStream:
    """
    Cancelable stream of ``Session | None`` values.

    Holds a single slot: if several changes arrive before the consumer
    reads, only the most recent one is delivered. The provider callback is
    owned by the stream and unregistered when the stream closes, whether by
    ``aclose()``, leaving ``async with``, or cancellation of the consumer.
    """

    def __init__(self, listener: "SessionListener | None" = None) -> None:
        self._listener = listener
        self._registration: ProviderRegistration | None = None
        self._latest: object = _UNSET
        self._ready = asyncio.Event()
        self._closed = listener is None

    def _offer(self, session: Session | None) -> None:
        if self._closed:
            return
        self._latest = session
        self._ready.set()

    async def _open(self, provider: IdentityProvider) -> None:
        self._registration = provider.add_session_listener(self._offer)
        current = await provider.current_session()
        # A change delivered while restoring is newer than the restored session
        if self._latest is _UNSET:
            self._offer(current)

    @property
    def closed(self) -> bool:
        return self._closed

    def __aiter__(self) -> "SessionStream":
        return self

    async def __anext__(self) -> Session | None:
        if self._closed:
            raise StopAsyncIteration
        try:
            await self._ready.wait()
        except BaseException:
            self.aclose_nowait()
            raise
        if self._closed:
            raise StopAsyncIteration
        self._ready.clear()
        session, self._latest = self._latest, _UNSET
        return session  # type: ignore[return-value]

    def aclose_nowait(self) -> None:
        """Close the stream and release the provider callback immediately."""
        if self._closed and self._registration is None:
            return
        self._closed = True
        self._ready.set()
        if self._registration is not None:
            registration, self._registration = self._registration, None
            registration.remove()
            logger.debug("Session listener unregistered")
        if self._listener is not None:
            self._listener._release(self)

    async def aclose(self) -> None:
        """Close the stream and release the provider callback."""
        self.aclose_nowait()

    async def __aenter__(self) -> "SessionStream":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()


class SessionListener:
    """
    Wraps the provider's auth-state callback into a ``SessionStream``.

    Only one stream may be active at a time; asking for a second one while
    the first is open returns a stream that is already finished, so a
    second native callback is never registered.

    Example:
        >>> listener = SessionListener(provider)
        >>> async with await listener.listen() as sessions:
        ...     async for session in sessions:
        ...         print(session)
    """

    def __init__(self, provider: IdentityProvider) -> None:
        self.provider = provider
        self._active: SessionStream | None = None

    @property
    def is_listening(self) -> bool:
        return self._active is not None

    async def listen(self) -> SessionStream:
        """
        Open the session stream.

        The first value is the session restored at startup (or None).

        Returns:
            The live stream, or an already-finished stream if one is active
        """
        if self._active is not None:
            logger.warning("Session listener already registered; returning a finished stream")
            return SessionStream()

        stream = SessionStream(self)
        self._active = stream
        try:
            await stream._open(self.provider)
        except BaseException:
            stream.aclose_nowait()
            raise
        logger.info("Session listener registered")
        return stream

    def _release(self, stream: SessionStream) -> None:
        if self._active is stream:
            self._active = None
