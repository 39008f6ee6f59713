"""
In-memory auth service.

Keeps the session in process memory and publishes changes to every open
listener. Used by tests and by applications running without a real
identity backend.
"""

import asyncio
import logging
from collections.abc import AsyncIterator

from .exceptions import NotSignedInError, ReauthenticationRequiredError
from .service import AuthService, BeforeDeleteHook
from .types import AuthenticatedUser, SignInKind, SignInOption, SignInResult

logger = logging.getLogger(__name__)


class _ListenerStream:
    """Listener stream over a single queue.

    The queue is registered when the stream is created, not when it is
    first iterated, so changes published in between are kept.
    """

    def __init__(
        self,
        listeners: set[asyncio.Queue[AuthenticatedUser | None]],
        initial: AuthenticatedUser | None,
        replay: bool,
    ):
        self._listeners = listeners
        self._queue: asyncio.Queue[AuthenticatedUser | None] = asyncio.Queue()
        self._closed = False
        if replay:
            self._queue.put_nowait(initial)
        listeners.add(self._queue)

    def __aiter__(self) -> "_ListenerStream":
        return self

    async def __anext__(self) -> AuthenticatedUser | None:
        if self._closed:
            raise StopAsyncIteration
        return await self._queue.get()

    async def aclose(self) -> None:
        self._closed = True
        self._listeners.discard(self._queue)


class MockAuthService(AuthService):
    """Auth service backed by process memory.

    Every listener first receives the current value (unless replay is
    off), then each later change. Failures can be injected by setting the *_error attributes,
    and out-of-band changes (e.g. a session revoked on another device)
    are simulated with simulate_auth_change().

    Usage:
        service = MockAuthService(user=AuthenticatedUser.mock())
        manager = SessionManager(service)
        service.simulate_auth_change(None)  # session revoked elsewhere
    """

    def __init__(
        self,
        user: AuthenticatedUser | None = None,
        sign_in_user: AuthenticatedUser | None = None,
        is_new_user: bool = False,
        strict_sign_out: bool = False,
        delay: float = 0.0,
        replay: bool = True,
    ):
        """Initialize the mock service.

        Args:
            user: Initially cached user (None means signed out)
            sign_in_user: User returned by sign_in(). Defaults to AuthenticatedUser.mock()
            is_new_user: Value reported as is_new_user on sign-in
            strict_sign_out: Raise NotSignedInError when signing out with no session
            delay: Seconds each remote operation sleeps before completing
            replay: Deliver the current value to each new listener first
        """
        self._current_user = user
        self._listeners: set[asyncio.Queue[AuthenticatedUser | None]] = set()

        self.sign_in_user = sign_in_user
        self.is_new_user = is_new_user
        self.strict_sign_out = strict_sign_out
        self.delay = delay
        self.replay = replay

        # Failure injection
        self.sign_in_error: Exception | None = None
        self.sign_out_error: Exception | None = None
        self.delete_account_error: Exception | None = None
        self.requires_reauthentication = False

        # Call tracking
        self.sign_in_calls: list[SignInOption] = []
        self.revoked_tokens = 0

    @property
    def current_user(self) -> AuthenticatedUser | None:
        return self._current_user

    @property
    def listener_count(self) -> int:
        """Number of currently open listener streams."""
        return len(self._listeners)

    def get_authenticated_user(self) -> AuthenticatedUser | None:
        return self._current_user

    def add_authenticated_user_listener(self) -> AsyncIterator[AuthenticatedUser | None]:
        return _ListenerStream(self._listeners, self._current_user, self.replay)

    def simulate_auth_change(self, user: AuthenticatedUser | None) -> None:
        """Change the session as if the backend changed it externally."""
        self._set_current_user(user)

    def _set_current_user(self, user: AuthenticatedUser | None) -> None:
        self._current_user = user
        for queue in list(self._listeners):
            queue.put_nowait(user)

    async def _simulate_latency(self) -> None:
        if self.delay > 0:
            await asyncio.sleep(self.delay)

    async def sign_in(self, option: SignInOption) -> SignInResult:
        self.sign_in_calls.append(option)
        await self._simulate_latency()

        if self.sign_in_error is not None:
            raise self.sign_in_error

        user = self.sign_in_user or AuthenticatedUser.mock()
        if self.sign_in_user is None and option.kind is SignInKind.ANONYMOUS:
            user = AuthenticatedUser.mock(is_anonymous=True)

        self._set_current_user(user)
        logger.debug(f"Mock sign-in via {option}: {user.user_id}")
        return SignInResult(user=user, is_new_user=self.is_new_user)

    async def sign_out(self) -> None:
        await self._simulate_latency()

        if self.sign_out_error is not None:
            raise self.sign_out_error
        if self._current_user is None:
            if self.strict_sign_out:
                raise NotSignedInError()
            return

        self._set_current_user(None)

    async def delete_account(self, on_before_delete: BeforeDeleteHook | None = None) -> None:
        await self._simulate_latency()

        if self._current_user is None:
            raise NotSignedInError()
        if self.requires_reauthentication:
            raise ReauthenticationRequiredError("delete_account", self._current_user.user_id)
        if self.delete_account_error is not None:
            raise self.delete_account_error

        await self._commit_delete(on_before_delete)

    async def delete_account_with_reauthentication(
        self,
        option: SignInOption,
        revoke_token: bool = False,
        on_before_delete: BeforeDeleteHook | None = None,
    ) -> None:
        await self.sign_in(option)

        if self.delete_account_error is not None:
            raise self.delete_account_error

        if revoke_token:
            self.revoked_tokens += 1

        await self._commit_delete(on_before_delete)

    async def _commit_delete(self, on_before_delete: BeforeDeleteHook | None) -> None:
        if on_before_delete is not None:
            await on_before_delete()
        self.requires_reauthentication = False
        self._set_current_user(None)
