"""
Session Auth

Client-side authentication facade over a pluggable identity provider.

Provides:
- AuthService contract for identity backends, plus an in-memory MockAuthService
- SessionManager owning the current-user state and its live listener
- Structured lifecycle events for analytics/logging sinks

Usage:

    >>> from session_auth import MockAuthService, SessionManager
    >>> service = MockAuthService()
    >>> async with SessionManager(service) as auth:
    ...     user, is_new_user = await auth.sign_in_anonymously()
    ...     auth.get_auth_id()
    ...     await auth.sign_out()
"""

from .config import AuthConfig
from .events import (
    AuthEvent,
    AuthEventKind,
    AuthLogEvent,
    AuthLogger,
    AuthLogType,
    describe_event,
)
from .exceptions import (
    ConfigurationError,
    NotSignedInError,
    ReauthenticationRequiredError,
    SessionAuthError,
)
from .logging_utils import LoggingAuthLogger, configure_logging
from .manager import SessionManager
from .mock_service import MockAuthService
from .service import AuthService
from .types import (
    AuthenticatedUser,
    AuthProviderOption,
    SignInKind,
    SignInOption,
    SignInResult,
)

__all__ = [
    # Core
    "SessionManager",
    "AuthService",
    "MockAuthService",
    "AuthConfig",
    # Types
    "AuthenticatedUser",
    "AuthProviderOption",
    "SignInKind",
    "SignInOption",
    "SignInResult",
    # Events / logging
    "AuthEvent",
    "AuthEventKind",
    "AuthLogEvent",
    "AuthLogger",
    "AuthLogType",
    "describe_event",
    "LoggingAuthLogger",
    "configure_logging",
    # Exceptions
    "SessionAuthError",
    "NotSignedInError",
    "ReauthenticationRequiredError",
    "ConfigurationError",
]

__version__ = "0.1.0"
