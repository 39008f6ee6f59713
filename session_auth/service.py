"""
Auth service abstract interface.

Defines the contract that every identity backend must implement.
"""

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Awaitable, Callable

from .types import AuthenticatedUser, SignInOption, SignInResult

BeforeDeleteHook = Callable[[], Awaitable[None]]


class AuthService(ABC):
    """Abstract auth service.

    Implementations wrap a concrete identity provider (a federated auth
    backend, an anonymous-account service, an in-memory double, ...).

    The service is responsible for:
    - Verifying credentials and issuing sessions
    - Caching the current session locally
    - Publishing session changes, including ones made elsewhere
    - Sign out and account deletion
    """

    @abstractmethod
    def get_authenticated_user(self) -> AuthenticatedUser | None:
        """Return the locally cached user, if any.

        Must not perform I/O or change any state.
        """
        ...

    @abstractmethod
    def add_authenticated_user_listener(self) -> AsyncIterator[AuthenticatedUser | None]:
        """Open a live stream of session changes.

        The stream yields a value every time the session changes,
        including None when it ends. Implementations may replay the
        current value first. Closing the iterator, or cancelling the task
        consuming it, must release the subscription.
        """
        ...

    @abstractmethod
    async def sign_in(self, option: SignInOption) -> SignInResult:
        """Sign in using the given flow.

        Returns:
            The signed-in user and whether the account was just created

        Raises:
            Exception: Provider-defined errors for rejected credentials,
                network failures or user cancellation
        """
        ...

    @abstractmethod
    async def sign_out(self) -> None:
        """Sign out and clear the locally cached session."""
        ...

    @abstractmethod
    async def delete_account(self, on_before_delete: BeforeDeleteHook | None = None) -> None:
        """Irreversibly delete the signed-in account.

        Args:
            on_before_delete: Awaited once, right before the account is
                removed, while the session is still valid

        Raises:
            Exception: If re-authentication is required or the backend
                rejects the request
        """
        ...

    @abstractmethod
    async def delete_account_with_reauthentication(
        self,
        option: SignInOption,
        revoke_token: bool = False,
        on_before_delete: BeforeDeleteHook | None = None,
    ) -> None:
        """Re-authenticate with `option`, then delete the account.

        Args:
            option: Sign-in flow used to refresh credentials
            revoke_token: Also revoke the provider token (e.g. Apple)
            on_before_delete: As for delete_account()
        """
        ...
