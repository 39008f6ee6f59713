"""
Shared test configuration and fixtures.

Provides a recording AuthLogger, a cached user and an in-memory auth
service for session manager tests.
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any

import pytest

from session_auth import (
    AuthenticatedUser,
    AuthLogEvent,
    AuthLogger,
    AuthProviderOption,
    MockAuthService,
)


class RecordingAuthLogger(AuthLogger):
    """
    AuthLogger that keeps every call in memory for assertions.
    """

    def __init__(self) -> None:
        self.events: list[AuthLogEvent] = []
        self.identified: list[tuple[str, str | None, str | None]] = []
        self.user_properties: list[tuple[dict[str, Any], bool]] = []

    def identify_user(self, user_id: str, name: str | None, email: str | None) -> None:
        self.identified.append((user_id, name, email))

    def track_event(self, event: AuthLogEvent) -> None:
        self.events.append(event)

    def add_user_properties(self, properties: dict[str, Any], is_high_priority: bool) -> None:
        self.user_properties.append((properties, is_high_priority))

    @property
    def event_names(self) -> list[str]:
        return [event.event_name for event in self.events]

    def events_named(self, name: str) -> list[AuthLogEvent]:
        return [event for event in self.events if event.event_name == name]

    def clear(self) -> None:
        self.events.clear()
        self.identified.clear()
        self.user_properties.clear()


async def _settle(rounds: int = 10) -> None:
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def settle() -> Callable[..., Awaitable[None]]:
    """Awaitable helper that lets pending listener deliveries run."""
    return _settle


@pytest.fixture
def recorder() -> RecordingAuthLogger:
    return RecordingAuthLogger()


@pytest.fixture
def cached_user() -> AuthenticatedUser:
    """A user already signed in before the manager starts."""
    return AuthenticatedUser(
        user_id="cached-user-1",
        email="cached@example.com",
        auth_providers=frozenset({AuthProviderOption.GOOGLE}),
        display_name="Cached User",
    )


@pytest.fixture
def service() -> MockAuthService:
    """Signed-out in-memory service."""
    return MockAuthService()
