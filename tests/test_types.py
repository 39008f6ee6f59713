"""Tests for auth types."""

from __future__ import annotations

import dataclasses
from datetime import UTC, datetime

import pytest

from session_auth import (
    AuthenticatedUser,
    AuthProviderOption,
    SignInKind,
    SignInOption,
    SignInResult,
)


class TestAuthProviderOption:
    """Tests for provider tags."""

    def test_provider_ids(self) -> None:
        """Test canonical backend provider ids."""
        assert AuthProviderOption.GOOGLE.provider_id == "google.com"
        assert AuthProviderOption.APPLE.provider_id == "apple.com"
        assert AuthProviderOption.EMAIL.provider_id == "password"
        assert AuthProviderOption.PHONE.provider_id == "phone"
        assert AuthProviderOption.FACEBOOK.provider_id == "facebook.com"
        assert AuthProviderOption.GAME_CENTER.provider_id == "gc.apple.com"
        assert AuthProviderOption.GITHUB.provider_id == "github.com"

    def test_from_provider_id(self) -> None:
        """Test reverse lookup for every tag."""
        for option in AuthProviderOption:
            assert AuthProviderOption.from_provider_id(option.provider_id) is option

    def test_from_unknown_provider_id(self) -> None:
        """Test that unknown ids are rejected."""
        with pytest.raises(ValueError, match="Unknown auth provider id"):
            AuthProviderOption.from_provider_id("myspace.com")


class TestAuthenticatedUser:
    """Tests for AuthenticatedUser dataclass."""

    def test_minimal_user(self) -> None:
        """Test user with only an id."""
        user = AuthenticatedUser(user_id="user-123")

        assert user.user_id == "user-123"
        assert user.email is None
        assert user.is_anonymous is False
        assert user.auth_providers == frozenset()
        assert user.name is None

    def test_empty_id_rejected(self) -> None:
        """Test that an empty user id is invalid."""
        with pytest.raises(ValueError, match="user_id"):
            AuthenticatedUser(user_id="")

    def test_providers_coerced_to_frozenset(self) -> None:
        """Test that provider collections become immutable."""
        user = AuthenticatedUser(
            user_id="user-123",
            auth_providers=[AuthProviderOption.APPLE, AuthProviderOption.APPLE],  # type: ignore[arg-type]
        )

        assert user.auth_providers == frozenset({AuthProviderOption.APPLE})

    def test_immutable(self) -> None:
        """Test that fields cannot be reassigned."""
        user = AuthenticatedUser(user_id="user-123")

        with pytest.raises(dataclasses.FrozenInstanceError):
            user.email = "new@example.com"  # type: ignore[misc]

    def test_replace_returns_new_instance(self) -> None:
        """Test that replace() leaves the original untouched."""
        original = AuthenticatedUser(user_id="user-123", is_anonymous=True)

        linked = original.replace(is_anonymous=False, email="linked@example.com")

        assert linked is not original
        assert linked.user_id == "user-123"
        assert linked.email == "linked@example.com"
        assert original.is_anonymous is True
        assert original.email is None

    def test_name_prefers_display_name(self) -> None:
        """Test name derivation order."""
        assert AuthenticatedUser("u", display_name="Joe", first_name="J").name == "Joe"
        assert AuthenticatedUser("u", first_name="Ada", last_name="Lovelace").name == "Ada Lovelace"
        assert AuthenticatedUser("u", first_name="Ada").name == "Ada"
        assert AuthenticatedUser("u", last_name="Lovelace").name == "Lovelace"

    def test_event_parameters_omit_unset_fields(self) -> None:
        """Test that only supplied fields appear."""
        user = AuthenticatedUser(user_id="user-123")

        params = user.event_parameters

        assert params == {
            "uauth_user_id": "user-123",
            "uauth_is_anonymous": False,
            "uauth_auth_providers": "",
        }

    def test_event_parameters_full(self) -> None:
        """Test that every supplied field appears under a prefixed key."""
        created = datetime(2024, 9, 28, 12, 0, tzinfo=UTC)
        user = AuthenticatedUser(
            user_id="user-456",
            email="user@example.com",
            is_anonymous=False,
            auth_providers=frozenset({AuthProviderOption.GOOGLE, AuthProviderOption.APPLE}),
            display_name="Full User",
            first_name="Full",
            last_name="User",
            phone_number="+15550100",
            photo_url="https://example.com/me.png",
            creation_date=created,
            last_sign_in_date=created,
        )

        params = user.event_parameters

        assert params["uauth_user_id"] == "user-456"
        assert params["uauth_email"] == "user@example.com"
        assert params["uauth_auth_providers"] == "apple, google"
        assert params["uauth_name"] == "Full User"
        assert params["uauth_phone_number"] == "+15550100"
        assert params["uauth_photo_url"] == "https://example.com/me.png"
        assert params["uauth_creation_date"] == created
        assert params["uauth_last_sign_in_date"] == created
        assert all(key.startswith("uauth_") for key in params)
        assert None not in params.values()

    def test_roundtrip(self) -> None:
        """Test serialization roundtrip."""
        now = datetime.now(UTC)
        original = AuthenticatedUser(
            user_id="user-roundtrip",
            email="roundtrip@example.com",
            auth_providers=frozenset({AuthProviderOption.GITHUB}),
            display_name="Roundtrip User",
            creation_date=now,
        )

        data = original.to_dict()
        restored = AuthenticatedUser.from_dict(data)

        assert data["auth_providers"] == ["github"]
        assert data["creation_date"] == now.isoformat()
        assert restored == original

    def test_mock_user(self) -> None:
        """Test fixture users."""
        linked = AuthenticatedUser.mock()
        guest = AuthenticatedUser.mock(is_anonymous=True)

        assert linked.auth_providers == frozenset({AuthProviderOption.APPLE})
        assert guest.is_anonymous is True
        assert guest.auth_providers == frozenset()
        assert linked.user_id == guest.user_id


class TestSignInOption:
    """Tests for SignInOption variants."""

    def test_string_values(self) -> None:
        """Test short string forms."""
        assert SignInOption.anonymous().string_value == "anonymous"
        assert SignInOption.apple().string_value == "apple"
        assert SignInOption.google("client-1").string_value == "google"
        assert str(SignInOption.apple()) == "apple"

    def test_event_parameters(self) -> None:
        """Test logging parameters."""
        assert SignInOption.google("client-1").event_parameters == {"sign_in_option": "google"}

    def test_google_carries_client_id(self) -> None:
        """Test Google configuration."""
        option = SignInOption.google("client-1")

        assert option.kind is SignInKind.GOOGLE
        assert option.client_id == "client-1"

    def test_google_requires_client_id(self) -> None:
        """Test that Google without a client id is rejected."""
        with pytest.raises(ValueError, match="client_id"):
            SignInOption.google("")

    def test_client_id_only_for_google(self) -> None:
        """Test that other flows take no configuration."""
        with pytest.raises(ValueError):
            SignInOption(SignInKind.APPLE, client_id="client-1")

    def test_equality(self) -> None:
        """Test value equality."""
        assert SignInOption.apple() == SignInOption.apple()
        assert SignInOption.google("a") != SignInOption.google("b")


class TestSignInResult:
    """Tests for SignInResult."""

    def test_unpacking(self) -> None:
        """Test tuple-style unpacking."""
        user = AuthenticatedUser(user_id="user-123")

        result_user, is_new_user = SignInResult(user=user, is_new_user=True)

        assert result_user is user
        assert is_new_user is True
