"""
Lifecycle events emitted by the session manager.

Each moment in the auth lifecycle is one AuthEvent. describe_event()
flattens an event into the (name, type, parameters) triple that an
AuthLogger receives.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Any

from .types import AuthenticatedUser, SignInOption


class AuthLogType(IntEnum):
    """Severity of a logged auth event."""

    INFO = 0
    ANALYTIC = 1
    WARNING = 2
    SEVERE = 3

    @property
    def emoji(self) -> str:
        return _EMOJI[self]

    @property
    def as_string(self) -> str:
        return self.name.lower()

    @property
    def log_level(self) -> int:
        """Matching stdlib logging level."""
        return _LOG_LEVELS[self]


_EMOJI = {
    AuthLogType.INFO: "👋",
    AuthLogType.ANALYTIC: "📈",
    AuthLogType.WARNING: "⚠️",
    AuthLogType.SEVERE: "🚨",
}

_LOG_LEVELS = {
    AuthLogType.INFO: logging.INFO,
    AuthLogType.ANALYTIC: logging.INFO,
    AuthLogType.WARNING: logging.WARNING,
    AuthLogType.SEVERE: logging.ERROR,
}


class AuthEventKind(Enum):
    """Lifecycle moments, valued by their logged event name."""

    AUTH_LISTENER_SUCCESS = "Auth_Listener_Success"
    AUTH_LISTENER_EMPTY = "Auth_Listener_Empty"
    SIGN_IN_START = "Auth_SignIn_Start"
    SIGN_IN_SUCCESS = "Auth_SignIn_Success"
    SIGN_IN_FAIL = "Auth_SignIn_Fail"
    SIGN_OUT_START = "Auth_SignOut_Start"
    SIGN_OUT_SUCCESS = "Auth_SignOut_Success"
    SIGN_OUT_FAIL = "Auth_SignOut_Fail"
    DELETE_ACCOUNT_START = "Auth_DeleteAccount_Start"
    DELETE_ACCOUNT_SUCCESS = "Auth_DeleteAccount_Success"
    DELETE_ACCOUNT_FAIL = "Auth_DeleteAccount_Fail"


@dataclass(frozen=True)
class AuthEvent:
    """One auth lifecycle fact.

    Only the payload fields relevant to `kind` are set. Use the factory
    classmethods to build events.
    """

    kind: AuthEventKind
    user: AuthenticatedUser | None = None
    option: SignInOption | None = None
    is_new_user: bool | None = None
    error: BaseException | None = None

    @classmethod
    def auth_listener_success(cls, user: AuthenticatedUser) -> "AuthEvent":
        return cls(AuthEventKind.AUTH_LISTENER_SUCCESS, user=user)

    @classmethod
    def auth_listener_empty(cls) -> "AuthEvent":
        return cls(AuthEventKind.AUTH_LISTENER_EMPTY)

    @classmethod
    def sign_in_start(cls, option: SignInOption) -> "AuthEvent":
        return cls(AuthEventKind.SIGN_IN_START, option=option)

    @classmethod
    def sign_in_success(
        cls, option: SignInOption, user: AuthenticatedUser, is_new_user: bool
    ) -> "AuthEvent":
        return cls(AuthEventKind.SIGN_IN_SUCCESS, user=user, option=option, is_new_user=is_new_user)

    @classmethod
    def sign_in_fail(cls, error: BaseException) -> "AuthEvent":
        return cls(AuthEventKind.SIGN_IN_FAIL, error=error)

    @classmethod
    def sign_out_start(cls) -> "AuthEvent":
        return cls(AuthEventKind.SIGN_OUT_START)

    @classmethod
    def sign_out_success(cls) -> "AuthEvent":
        return cls(AuthEventKind.SIGN_OUT_SUCCESS)

    @classmethod
    def sign_out_fail(cls, error: BaseException) -> "AuthEvent":
        return cls(AuthEventKind.SIGN_OUT_FAIL, error=error)

    @classmethod
    def delete_account_start(cls) -> "AuthEvent":
        return cls(AuthEventKind.DELETE_ACCOUNT_START)

    @classmethod
    def delete_account_success(cls) -> "AuthEvent":
        return cls(AuthEventKind.DELETE_ACCOUNT_SUCCESS)

    @classmethod
    def delete_account_fail(cls, error: BaseException) -> "AuthEvent":
        return cls(AuthEventKind.DELETE_ACCOUNT_FAIL, error=error)

    @property
    def event_name(self) -> str:
        return self.kind.value


@dataclass(frozen=True)
class AuthLogEvent:
    """Flat form of an event as handed to an AuthLogger."""

    event_name: str
    type: AuthLogType
    parameters: dict[str, Any] | None = None


def error_event_parameters(error: BaseException) -> dict[str, Any]:
    """Human-readable error description for logging.

    Falls back to the exception type name when str(error) is empty or
    itself raises.
    """
    try:
        description = str(error)
    except Exception:
        description = ""
    return {"error_description": description or type(error).__name__}


def _missing(event: AuthEvent, field_name: str) -> ValueError:
    return ValueError(f"{event.kind.value} event is missing its {field_name}")


def describe_event(event: AuthEvent) -> AuthLogEvent:
    """Map an event to its logged name, severity and parameters.

    Raises:
        ValueError: If the event lacks a payload its kind requires
    """
    parameters: dict[str, Any] | None = None

    match event.kind:
        case AuthEventKind.AUTH_LISTENER_SUCCESS:
            if event.user is None:
                raise _missing(event, "user")
            log_type = AuthLogType.INFO
            parameters = event.user.event_parameters
        case AuthEventKind.AUTH_LISTENER_EMPTY:
            log_type = AuthLogType.WARNING
        case AuthEventKind.SIGN_IN_START:
            if event.option is None:
                raise _missing(event, "sign-in option")
            log_type = AuthLogType.INFO
            parameters = event.option.event_parameters
        case AuthEventKind.SIGN_IN_SUCCESS:
            if event.user is None:
                raise _missing(event, "user")
            if event.option is None:
                raise _missing(event, "sign-in option")
            log_type = AuthLogType.INFO
            parameters = event.user.event_parameters
            parameters.update(event.option.event_parameters)
            parameters["is_new_user"] = bool(event.is_new_user)
        case (
            AuthEventKind.SIGN_IN_FAIL
            | AuthEventKind.SIGN_OUT_FAIL
            | AuthEventKind.DELETE_ACCOUNT_FAIL
        ):
            if event.error is None:
                raise _missing(event, "error")
            log_type = AuthLogType.SEVERE
            parameters = error_event_parameters(event.error)
        case (
            AuthEventKind.SIGN_OUT_START
            | AuthEventKind.SIGN_OUT_SUCCESS
            | AuthEventKind.DELETE_ACCOUNT_START
            | AuthEventKind.DELETE_ACCOUNT_SUCCESS
        ):
            log_type = AuthLogType.INFO
        case _:
            raise ValueError(f"Unhandled auth event kind: {event.kind}")

    return AuthLogEvent(event_name=event.event_name, type=log_type, parameters=parameters)


class AuthLogger(ABC):
    """Sink for auth analytics and diagnostics.

    Implementations forward to whatever analytics or logging backend the
    application uses. The session manager treats every call as
    best-effort: exceptions raised here never reach its callers.
    """

    @abstractmethod
    def identify_user(self, user_id: str, name: str | None, email: str | None) -> None:
        """Associate subsequent events with a user."""
        ...

    @abstractmethod
    def track_event(self, event: AuthLogEvent) -> None:
        """Record a single lifecycle event."""
        ...

    @abstractmethod
    def add_user_properties(self, properties: dict[str, Any], is_high_priority: bool) -> None:
        """Attach properties to the identified user."""
        ...
