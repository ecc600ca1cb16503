"""Process-wide user cache and the injectable user client."""

import asyncio
import logging
from collections.abc import Callable

from src.shots.config import settings
from src.shots.models.session import DocumentState, Session
from src.shots.models.user import User
from src.shots.services.auth import (
    IdentityProvider,
    SessionListener,
    SessionStream,
    SignInRequirements,
)
from src.shots.services.database import Collection, DocumentStore, NotFoundError, Query
from src.shots.services.retry import retrying

logger = logging.getLogger(__name__)

UserObserver = Callable[[User | None], None]


class UserProfileCache:
    """
    Last known user for this process.

    Written only by the reconciliation flow, read by everyone else.
    Last write wins; the cache is not kept transactionally in step with the
    remote profile.
    """

    def __init__(self) -> None:
        self._user: User | None = None
        self._observers: list[UserObserver] = []

    @property
    def current(self) -> User | None:
        return self._user

    def set(self, user: User | None) -> None:
        self._user = user
        for observer in list(self._observers):
            try:
                observer(user)
            except Exception as e:
                logger.error(f"User cache observer failed: {e}", exc_info=True)

    def clear(self) -> None:
        self.set(None)

    def add_observer(self, observer: UserObserver) -> Callable[[], None]:
        """
        Register a callback invoked after every write.

        Returns:
            Function that removes the observer
        """
        self._observers.append(observer)

        def _remove() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return _remove


class UserClient:
    """
    Everything the identity flow needs from the outside world, as one value.

    Built from an identity provider, a document store and a cache, so tests
    can substitute in-memory fakes for any of them.

    Example:
        >>> client = UserClient(SupabaseIdentityProvider(supabase), DocumentStore(backend))
        >>> user = await client.get_user(session)
    """

    def __init__(
        self,
        provider: IdentityProvider,
        store: DocumentStore,
        cache: UserProfileCache | None = None,
        anonymous_retry_delay: float | None = None,
        anonymous_max_attempts: int | None = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            provider: Identity provider adapter
            store: Document store façade
            cache: Shared user cache (a new one if None)
            anonymous_retry_delay: Seconds between anonymous sign-in attempts
            anonymous_max_attempts: Attempt budget for anonymous sign-in (None is unbounded)
        """
        self.provider = provider
        self.store = store
        self.cache = cache or UserProfileCache()
        self.session_listener = SessionListener(provider)
        self.anonymous_retry_delay = (
            anonymous_retry_delay
            if anonymous_retry_delay is not None
            else settings.anonymous_sign_in_retry_delay_seconds
        )
        self.anonymous_max_attempts = (
            anonymous_max_attempts
            if anonymous_max_attempts is not None
            else settings.anonymous_sign_in_max_attempts
        )

    @property
    def user(self) -> User | None:
        return self.cache.current

    def set_user(self, user: User | None) -> None:
        """Update the user in local state only."""
        self.cache.set(user)

    async def get_user(self, session: Session) -> User | None:
        """
        Fetch the profile document for a session's principal.

        A missing document is a normal outcome and returns None.

        Raises:
            DocumentStoreError: On network or decode failures
        """
        try:
            return await self.store.get_once(Collection.USERS, session.provider_user_id, User)
        except NotFoundError:
            return None

    async def find_user(self, user_id: str) -> DocumentState[User]:
        """Check whether a profile exists, matching on ``id`` only."""
        return await self.store.check_exists(Query(Collection.USERS, {"id": user_id}), User)

    async def create_user(self, user: User) -> bool:
        """Create the profile document unless one already exists. Returns True if created."""
        return await self.store.create(Collection.USERS, user.id, user)

    async def update_user(self, user: User) -> None:
        """Write the profile document and update local state."""
        await self.store.upsert(Collection.USERS, user.id, user)
        self.cache.set(user)

    async def delete_user(self, user_id: str) -> None:
        await self.store.delete_one(Collection.USERS, user_id)

    async def listen_sessions(self) -> SessionStream:
        return await self.session_listener.listen()

    async def sign_in_anonymously(self, stop_event: asyncio.Event | None = None) -> Session:
        """
        Sign in anonymously, retrying until it succeeds.

        Anonymous principals are never written to the document store.

        Args:
            stop_event: Optional event that ends the retry loop early

        Returns:
            The anonymous session
        """
        session = await retrying(
            self.provider.sign_in_anonymously,
            attempts=self.anonymous_max_attempts,
            delay=self.anonymous_retry_delay,
            stop_event=stop_event,
        )
        logger.info(f"User signed in anonymously: {session.provider_user_id}")
        return session

    async def sign_in_with_credential(self, requirements: SignInRequirements) -> Session:
        session = await self.provider.sign_in_with_id_token(requirements)
        logger.info(
            f"User signed in with {requirements.credential.provider}: {session.provider_user_id}"
        )
        return session

    async def sign_out(self) -> None:
        await self.provider.sign_out()

    async def delete_account(self, user_id: str) -> None:
        """Delete the profile document, then the principal itself."""
        await self.delete_user(user_id)
        await self.provider.delete_account(user_id)
