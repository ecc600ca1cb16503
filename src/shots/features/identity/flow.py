"""Identity reconciliation flow: keeps session, cache and profile document in step."""

import asyncio
import logging
from collections.abc import Callable
from datetime import UTC, datetime

from src.shots.features.identity.events import (
    AccountDeletionRequested,
    IdentityEvent,
    IdentityMessage,
    ProfileSyncFailed,
    SessionChanged,
    SignInCompleted,
    SignInFailed,
    SignInSucceeded,
    SignOutRequested,
)
from src.shots.features.identity.state import (
    AnonymousSession,
    AuthenticatedSession,
    IdentityState,
    Unauthenticated,
    state_name,
)
from src.shots.features.identity.user_client import UserClient, UserProfileCache
from src.shots.models.session import Exists, Session
from src.shots.models.user import User
from src.shots.services import PostHogService
from src.shots.services.auth import (
    AuthenticationError,
    ProviderCredential,
    SessionStream,
    check_credential,
    random_nonce,
    sha256_hex,
)
from src.shots.services.database import DocumentStoreError

logger = logging.getLogger(__name__)

MessageCallback = Callable[[IdentityMessage], None]


def _utc_now() -> datetime:
    return datetime.now(UTC)


class IdentityReconciliationFlow:
    """
    State machine driving sign-in for the app.

    Every inbound event goes through ``dispatch``, which holds a lock so
    transitions never overlap: two session changes for the same principal
    cannot run interleaved fetch/write chains. Results for the outside
    world are published as outbound messages to subscribers and mirrored
    to analytics.

    States:
    - Unauthenticated: no session; an anonymous sign-in is pending
    - AnonymousSession: a session without a reconciled profile
    - AuthenticatedSession: a session whose profile is cached

    Example:
        >>> flow = IdentityReconciliationFlow(user_client)
        >>> flow.subscribe(print)
        >>> await flow.start()
        >>> hashed_nonce = flow.request_sign_in()
        >>> message = await flow.complete_sign_in(credential)
    """

    def __init__(
        self,
        user_client: UserClient,
        analytics: PostHogService | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        """
        Initialize the flow.

        Args:
            user_client: Provider, store and cache access
            analytics: Analytics sink for sign-in outcomes
            clock: Source of ``created_at`` timestamps for new profiles
        """
        self.user_client = user_client
        self.analytics = analytics or PostHogService()
        self._clock = clock
        self._state: IdentityState = Unauthenticated()
        self._lock = asyncio.Lock()
        self._stop = asyncio.Event()
        self._pending_nonce: str | None = None
        self._subscribers: list[MessageCallback] = []
        self._stream: SessionStream | None = None
        self._listen_task: asyncio.Task | None = None
        self._anonymous_task: asyncio.Task | None = None
        self.anonymous_sign_in_launches = 0

    @property
    def state(self) -> IdentityState:
        return self._state

    @property
    def cache(self) -> UserProfileCache:
        return self.user_client.cache

    @property
    def anonymous_sign_in_pending(self) -> bool:
        return self._anonymous_task is not None and not self._anonymous_task.done()

    def subscribe(self, callback: MessageCallback) -> Callable[[], None]:
        """
        Receive every outbound message.

        Returns:
            Function that removes the subscription
        """
        self._subscribers.append(callback)

        def _unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return _unsubscribe

    # Lifecycle

    async def start(self) -> None:
        """Open the session stream and start reconciling every session change."""
        if self._listen_task is not None:
            logger.warning("Identity flow already started")
            return
        self._stop.clear()
        self._stream = await self.user_client.listen_sessions()
        self._listen_task = asyncio.create_task(
            self._consume(self._stream), name="identity-session-listener"
        )
        logger.info("Identity flow started")

    async def _consume(self, stream: SessionStream) -> None:
        async for session in stream:
            try:
                await self.dispatch(SessionChanged(session))
            except Exception as e:
                logger.error(f"Failed to reconcile session change: {e}", exc_info=True)

    async def close(self) -> None:
        """Stop listening, end any anonymous sign-in loop and release the stream."""
        self._stop.set()
        tasks = [task for task in (self._listen_task, self._anonymous_task) if task is not None]
        for task in tasks:
            task.cancel()
        if self._stream is not None:
            await self._stream.aclose()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._stream = None
        self._listen_task = None
        self._anonymous_task = None
        logger.info("Identity flow closed")

    # Public triggers

    def request_sign_in(self) -> str:
        """
        Start a provider sign-in.

        Issues a fresh one-time nonce, replacing any pending one.

        Returns:
            SHA-256 of the nonce, to be passed to the provider's sign-in request
        """
        self._pending_nonce = random_nonce()
        return sha256_hex(self._pending_nonce)

    async def complete_sign_in(self, credential: ProviderCredential | None) -> IdentityMessage:
        """Finish a provider sign-in. Returns the SignInSucceeded/SignInFailed message."""
        async with self._lock:
            return await self._on_sign_in_completed(credential)

    async def sign_out(self) -> None:
        """Sign out; the provider's session change then starts a new anonymous session."""
        await self.dispatch(SignOutRequested())

    async def delete_account(self) -> None:
        """Delete the profile document and the principal, then sign out locally."""
        await self.dispatch(AccountDeletionRequested())

    # Transitions

    async def dispatch(self, event: IdentityEvent) -> IdentityMessage | None:
        """
        Apply one event. Events are processed strictly one at a time.

        Args:
            event: Inbound event

        Returns:
            The outbound message published for this event, if any

        Raises:
            AuthenticationError: If sign-out or account deletion fails
        """
        async with self._lock:
            if isinstance(event, SessionChanged):
                return await self._on_session_changed(event.session)
            if isinstance(event, SignInCompleted):
                return await self._on_sign_in_completed(event.credential)
            if isinstance(event, SignOutRequested):
                await self._on_sign_out()
                return None
            if isinstance(event, AccountDeletionRequested):
                await self._on_account_deletion()
                return None
            raise TypeError(f"Unknown identity event: {event!r}")

    async def _on_session_changed(self, session: Session | None) -> IdentityMessage | None:
        if session is None:
            self._transition(Unauthenticated())
            self.user_client.set_user(None)
            self._launch_anonymous_sign_in()
            return None

        provider_user_id = session.provider_user_id
        try:
            user = await self.user_client.get_user(session)
            if user is None:
                if session.is_anonymous:
                    self._transition(AnonymousSession(provider_user_id))
                    self.user_client.set_user(None)
                    return None
                user = await self._create_profile(
                    User(id=provider_user_id, created_at=self._clock(), email=session.email)
                )
        except DocumentStoreError as e:
            return self._profile_sync_failed(provider_user_id, e)

        self._authenticate(user)
        try:
            await self.user_client.update_user(user)
        except DocumentStoreError as e:
            return self._profile_sync_failed(provider_user_id, e)
        return None

    async def _on_sign_in_completed(self, credential: ProviderCredential | None) -> IdentityMessage:
        nonce, self._pending_nonce = self._pending_nonce, None
        provider = credential.provider if credential is not None else "unknown"

        try:
            requirements = check_credential(credential, nonce)
            session = await self.user_client.sign_in_with_credential(requirements)
            candidate = User(
                id=session.provider_user_id,
                created_at=self._clock(),
                email=requirements.credential.email or session.email,
                name=requirements.credential.full_name,
            )
            existing = await self.user_client.find_user(candidate.id)
            if isinstance(existing, Exists):
                user = existing.value
            else:
                user = await self._create_profile(candidate)
        except Exception as e:
            logger.error(f"Error signing in with {provider}: {e}", exc_info=True)
            self.analytics.capture(
                distinct_id="anonymous",
                event="sign_in_failed",
                properties={"provider": provider, "error": type(e).__name__},
            )
            return self._emit(SignInFailed(description=str(e)))

        self._authenticate(user)
        self.analytics.capture(
            distinct_id=user.id,
            event="sign_in_succeeded",
            properties={"provider": provider, "timestamp": _utc_now().isoformat()},
        )
        return self._emit(SignInSucceeded(user=user))

    async def _on_sign_out(self) -> None:
        await self.user_client.sign_out()
        self.user_client.set_user(None)
        self._transition(Unauthenticated())

    async def _on_account_deletion(self) -> None:
        if isinstance(self._state, Unauthenticated):
            raise AuthenticationError("No signed-in user to delete")
        provider_user_id = self._state.provider_user_id
        try:
            await self.user_client.delete_account(provider_user_id)
        except DocumentStoreError as e:
            raise AuthenticationError(f"Unable to delete profile: {e}") from e
        self.user_client.set_user(None)
        self._transition(Unauthenticated())
        logger.info(f"Deleted account {provider_user_id}")

    # Helpers

    async def _create_profile(self, user: User) -> User:
        """Create the profile once; if another writer won, keep the stored record."""
        if await self.user_client.create_user(user):
            logger.info(f"Created profile for {user.id}")
            return user
        stored = await self.user_client.find_user(user.id)
        return stored.value if isinstance(stored, Exists) else user

    def _authenticate(self, user: User) -> None:
        self._transition(AuthenticatedSession(provider_user_id=user.id, user=user))
        self.user_client.set_user(user)

    def _profile_sync_failed(
        self, provider_user_id: str, error: DocumentStoreError
    ) -> ProfileSyncFailed:
        logger.error(
            f"Profile sync failed for {provider_user_id}: {error}",
            extra={"error_type": type(error).__name__},
        )
        already_signed_in = (
            isinstance(self._state, AuthenticatedSession)
            and self._state.provider_user_id == provider_user_id
        )
        if not already_signed_in:
            self._transition(AnonymousSession(provider_user_id))
        return self._emit(
            ProfileSyncFailed(provider_user_id=provider_user_id, description=str(error))
        )

    def _launch_anonymous_sign_in(self) -> None:
        if self.anonymous_sign_in_pending:
            logger.debug("Anonymous sign-in already pending")
            return
        self.anonymous_sign_in_launches += 1
        self._anonymous_task = asyncio.create_task(
            self._sign_in_anonymously(), name="identity-anonymous-sign-in"
        )

    async def _sign_in_anonymously(self) -> None:
        try:
            await self.user_client.sign_in_anonymously(stop_event=self._stop)
        except Exception as e:
            # Never surfaced to the user; the next session change retries
            logger.error(f"User failed to sign in anonymously: {e}")

    def _transition(self, new_state: IdentityState) -> None:
        if new_state != self._state:
            logger.info(f"Identity state {state_name(self._state)} -> {state_name(new_state)}")
        self._state = new_state

    def _emit(self, message: IdentityMessage) -> IdentityMessage:
        for callback in list(self._subscribers):
            try:
                callback(message)
            except Exception as e:
                logger.error(f"Identity message subscriber failed: {e}", exc_info=True)
        return message
