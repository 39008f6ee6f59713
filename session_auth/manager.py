"""
Session manager.

Owns the "who is signed in right now" state, keeps it in sync with an
auth service through a live listener and reports every lifecycle
transition to an optional AuthLogger.

All state lives on the asyncio event loop that created the manager; it is
never touched from other threads.
"""

import asyncio
import logging
from collections.abc import AsyncIterator, Callable
from typing import Any

from .config import AuthConfig
from .events import AuthEvent, AuthLogger, describe_event
from .exceptions import NotSignedInError
from .service import AuthService, BeforeDeleteHook
from .types import AuthenticatedUser, SignInOption, SignInResult

logger = logging.getLogger(__name__)

AuthObserver = Callable[[AuthenticatedUser | None], None]


class SessionManager:
    """Single source of truth for the current session.

    The manager must be created inside a running event loop: construction
    seeds the state from the service's cached user and starts a listener
    task. Call close() (or use `async with`) to stop the listener.

    Usage:
        async with SessionManager(service, logger=my_logger) as auth:
            user, is_new_user = await auth.sign_in_anonymously()
            print(auth.get_auth_id())
    """

    def __init__(
        self,
        service: AuthService,
        logger: AuthLogger | None = None,
        config: AuthConfig | None = None,
    ):
        """Initialize the manager.

        Args:
            service: Auth service to delegate to
            logger: Optional sink for auth lifecycle events
            config: Optional settings (Google client id, property priority)
        """
        self.service = service
        self.logger = logger
        self.config = config or AuthConfig()

        self._auth: AuthenticatedUser | None = service.get_authenticated_user()
        self._observers: list[AuthObserver] = []
        self._listener_task: asyncio.Task[None] | None = None
        self._listener_generation = 0
        self._closing: set[asyncio.Future[None]] = set()
        self._closed = False

        self._add_auth_listener()

    @property
    def auth(self) -> AuthenticatedUser | None:
        """The signed-in user, or None."""
        return self._auth

    @property
    def is_signed_in(self) -> bool:
        return self._auth is not None

    def get_auth_id(self) -> str:
        """Return the signed-in user's id.

        Raises:
            NotSignedInError: If no user is signed in
        """
        if self._auth is None:
            raise NotSignedInError()
        return self._auth.user_id

    def add_observer(self, observer: AuthObserver) -> Callable[[], None]:
        """Call `observer` with the new value on every state change.

        Returns:
            A function that removes the observer
        """
        self._observers.append(observer)

        def remove() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return remove

    # Listener

    def _add_auth_listener(self) -> None:
        """Replace the live listener with a fresh one."""
        if self._listener_task is not None:
            self._listener_task.cancel()
            self._listener_task = None

        if self._closed:
            return

        self._listener_generation += 1
        # Subscribe here, not inside the task: changes published before the
        # task first runs must reach the new stream.
        stream = self.service.add_authenticated_user_listener()
        task = asyncio.get_running_loop().create_task(
            self._listen(stream, self._listener_generation)
        )
        # Also covers a task cancelled before it ever started
        task.add_done_callback(lambda _: self._release_stream(stream))
        self._listener_task = task

    async def _listen(
        self, stream: AsyncIterator[AuthenticatedUser | None], generation: int
    ) -> None:
        try:
            async for value in stream:
                if generation != self._listener_generation:
                    break
                self._set_current_auth(value)
        except Exception as e:
            logger.error(f"Auth listener stopped: {e}")

    def _release_stream(self, stream: AsyncIterator[AuthenticatedUser | None]) -> None:
        closing = asyncio.ensure_future(_close_stream(stream))
        self._closing.add(closing)
        closing.add_done_callback(self._closing.discard)

    def _set_current_auth(self, value: AuthenticatedUser | None) -> None:
        self._update_state(value)

        if value is not None:
            self._identify(value)
            self._track(AuthEvent.auth_listener_success(value))
        else:
            self._track(AuthEvent.auth_listener_empty())

    # Sign in

    async def sign_in_anonymously(self) -> SignInResult:
        return await self._sign_in(SignInOption.anonymous())

    async def sign_in_apple(self) -> SignInResult:
        return await self._sign_in(SignInOption.apple())

    async def sign_in_google(self, client_id: str | None = None) -> SignInResult:
        """Sign in with Google.

        Args:
            client_id: OAuth client id. Defaults to config.google_client_id

        Raises:
            ValueError: If no client id is given or configured
        """
        client_id = client_id or self.config.google_client_id
        if not client_id:
            raise ValueError("Google sign-in requires a client_id (argument or config)")
        return await self._sign_in(SignInOption.google(client_id))

    async def _sign_in(self, option: SignInOption) -> SignInResult:
        self._track(AuthEvent.sign_in_start(option))

        try:
            result = await self.service.sign_in(option)
        except Exception as e:
            self._track(AuthEvent.sign_in_fail(e))
            raise
        else:
            self._update_state(result.user)
            self._identify(result.user)
            self._track(AuthEvent.sign_in_success(option, result.user, result.is_new_user))
            return result
        finally:
            # Linking an anonymous account keeps the same user id, and some
            # providers do not republish in that case; always re-attach.
            self._add_auth_listener()

    # Sign out / delete

    async def sign_out(self) -> None:
        """Sign out the current user.

        No-op when nobody is signed in. On failure the state is unchanged
        and the provider's error is re-raised.
        """
        if self._auth is None:
            logger.debug("sign_out called with no active session")
            return

        self._track(AuthEvent.sign_out_start())

        try:
            await self.service.sign_out()
        except Exception as e:
            self._track(AuthEvent.sign_out_fail(e))
            raise

        self._update_state(None)
        self._track(AuthEvent.sign_out_success())

    async def delete_account(self, on_before_delete: BeforeDeleteHook | None = None) -> None:
        """Delete the signed-in account.

        Args:
            on_before_delete: Cleanup awaited at most once, before the
                account is removed and before local state is cleared
        """
        self._track(AuthEvent.delete_account_start())

        try:
            await self.service.delete_account(_run_once(on_before_delete))
        except Exception as e:
            self._track(AuthEvent.delete_account_fail(e))
            raise

        self._update_state(None)
        self._track(AuthEvent.delete_account_success())

    async def delete_account_with_reauthentication(
        self,
        option: SignInOption,
        revoke_token: bool = False,
        on_before_delete: BeforeDeleteHook | None = None,
    ) -> None:
        """Re-authenticate with `option`, then delete the account."""
        self._track(AuthEvent.delete_account_start())

        try:
            await self.service.delete_account_with_reauthentication(
                option, revoke_token=revoke_token, on_before_delete=_run_once(on_before_delete)
            )
        except Exception as e:
            self._track(AuthEvent.delete_account_fail(e))
            raise

        self._update_state(None)
        self._track(AuthEvent.delete_account_success())

    # Lifecycle

    async def close(self) -> None:
        """Stop the listener. In-flight operations are left to finish."""
        self._closed = True
        task = self._listener_task
        self._listener_task = None
        self._listener_generation += 1

        if task is not None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

        if self._closing:
            await asyncio.gather(*self._closing)

    async def __aenter__(self) -> "SessionManager":
        return self

    async def __aexit__(self, exc_type: type, exc_val: Exception, exc_tb: object) -> None:
        await self.close()

    # Internals

    def _update_state(self, value: AuthenticatedUser | None) -> None:
        self._auth = value
        for observer in list(self._observers):
            try:
                observer(value)
            except Exception:
                logger.exception("Auth observer raised")

    def _identify(self, user: AuthenticatedUser) -> None:
        self._call_logger("identify_user", user.user_id, user.name, user.email)
        self._call_logger(
            "add_user_properties",
            user.event_parameters,
            self.config.high_priority_user_properties,
        )

    def _track(self, event: AuthEvent) -> None:
        if self.logger is None:
            return
        try:
            self.logger.track_event(describe_event(event))
        except Exception as e:
            logger.warning(f"AuthLogger.track_event failed for {event.kind.value}: {e}")

    def _call_logger(self, method: str, *args: Any) -> None:
        if self.logger is None:
            return
        try:
            getattr(self.logger, method)(*args)
        except Exception as e:
            # Logging is best-effort
            logger.warning(f"AuthLogger.{method} failed: {e}")


async def _close_stream(stream: AsyncIterator[AuthenticatedUser | None]) -> None:
    aclose = getattr(stream, "aclose", None)
    if aclose is None:
        return
    try:
        await aclose()
    except Exception as e:
        logger.warning(f"Closing auth listener failed: {e}")


def _run_once(hook: BeforeDeleteHook | None) -> BeforeDeleteHook | None:
    """Wrap `hook` so repeated calls after the first do nothing."""
    if hook is None:
        return None

    called = False

    async def wrapper() -> None:
        nonlocal called
        if called:
            return
        called = True
        await hook()

    return wrapper
