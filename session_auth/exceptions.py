"""
Custom exceptions for session authentication.

Errors raised by an auth service (the identity provider) are never
wrapped: the session manager re-raises them unchanged. The exceptions
below cover failures that originate locally.
"""


class SessionAuthError(Exception):
    """Base exception for all locally raised session auth errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class NotSignedInError(SessionAuthError):
    """Raised when an operation needs a session but none is active."""

    def __init__(self, message: str = "No user is signed in"):
        super().__init__(message)


class ReauthenticationRequiredError(SessionAuthError):
    """Raised when the provider requires a fresh sign-in before proceeding."""

    def __init__(self, operation: str, user_id: str | None = None):
        details = {"operation": operation}
        if user_id:
            details["user_id"] = user_id
        super().__init__(f"Re-authentication required before {operation}", details)
        self.operation = operation
        self.user_id = user_id


class ConfigurationError(SessionAuthError):
    """Raised when the auth settings file cannot be used."""

    def __init__(self, path: str, reason: str, cause: Exception | None = None):
        details = {"path": path, "reason": reason}
        if cause:
            details["cause"] = str(cause)
        super().__init__(f"Invalid auth configuration in {path}: {reason}", details)
        self.path = path
        self.reason = reason
        self.cause = cause
