"""
Authentication types and data classes.

Defines the signed-in user, the provider tags attached to it and the
sign-in options understood by an auth service.
"""

import dataclasses
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

EVENT_PARAMETER_PREFIX = "uauth_"


class AuthProviderOption(Enum):
    """Identity providers a user account can be linked to."""

    GOOGLE = "google"
    APPLE = "apple"
    EMAIL = "email"
    PHONE = "phone"
    FACEBOOK = "facebook"
    GAME_CENTER = "game_center"
    GITHUB = "github"

    @property
    def provider_id(self) -> str:
        """Canonical provider id used by the identity backend."""
        return _PROVIDER_IDS[self]

    @classmethod
    def from_provider_id(cls, provider_id: str) -> "AuthProviderOption":
        """Look up a provider tag from its backend provider id."""
        for option, known_id in _PROVIDER_IDS.items():
            if known_id == provider_id:
                return option
        raise ValueError(f"Unknown auth provider id: {provider_id}")


_PROVIDER_IDS: dict[AuthProviderOption, str] = {
    AuthProviderOption.GOOGLE: "google.com",
    AuthProviderOption.APPLE: "apple.com",
    AuthProviderOption.EMAIL: "password",
    AuthProviderOption.PHONE: "phone",
    AuthProviderOption.FACEBOOK: "facebook.com",
    AuthProviderOption.GAME_CENTER: "gc.apple.com",
    AuthProviderOption.GITHUB: "github.com",
}


@dataclass(frozen=True)
class AuthenticatedUser:
    """Identity of the currently signed-in user.

    Instances are immutable. Use replace() to derive a changed copy.
    """

    # Core identity
    user_id: str
    email: str | None = None
    is_anonymous: bool = False
    auth_providers: frozenset[AuthProviderOption] = field(default_factory=frozenset)

    # Profile
    display_name: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    phone_number: str | None = None
    photo_url: str | None = None

    # Timestamps
    creation_date: datetime | None = None
    last_sign_in_date: datetime | None = None

    def __post_init__(self) -> None:
        if not self.user_id:
            raise ValueError("user_id must not be empty")
        if not isinstance(self.auth_providers, frozenset):
            object.__setattr__(self, "auth_providers", frozenset(self.auth_providers))

    @property
    def name(self) -> str | None:
        """Best available human-readable name."""
        if self.display_name:
            return self.display_name
        if self.first_name and self.last_name:
            return f"{self.first_name} {self.last_name}"
        return self.first_name or self.last_name

    @property
    def event_parameters(self) -> dict[str, Any]:
        """Flattened user fields for analytics, omitting anything unset."""
        values: dict[str, Any] = {
            "user_id": self.user_id,
            "email": self.email,
            "is_anonymous": self.is_anonymous,
            "auth_providers": ", ".join(sorted(p.value for p in self.auth_providers)),
            "display_name": self.display_name,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "name": self.name,
            "phone_number": self.phone_number,
            "photo_url": self.photo_url,
            "creation_date": self.creation_date,
            "last_sign_in_date": self.last_sign_in_date,
        }
        return {
            f"{EVENT_PARAMETER_PREFIX}{key}": value
            for key, value in values.items()
            if value is not None
        }

    def replace(self, **changes: Any) -> "AuthenticatedUser":
        """Return a copy with the given fields changed."""
        return dataclasses.replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "user_id": self.user_id,
            "email": self.email,
            "is_anonymous": self.is_anonymous,
            "auth_providers": sorted(p.value for p in self.auth_providers),
            "display_name": self.display_name,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "phone_number": self.phone_number,
            "photo_url": self.photo_url,
            "creation_date": self.creation_date.isoformat() if self.creation_date else None,
            "last_sign_in_date": (
                self.last_sign_in_date.isoformat() if self.last_sign_in_date else None
            ),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AuthenticatedUser":
        """Deserialize from dictionary."""
        creation_date = None
        if data.get("creation_date"):
            creation_date = datetime.fromisoformat(data["creation_date"])

        last_sign_in_date = None
        if data.get("last_sign_in_date"):
            last_sign_in_date = datetime.fromisoformat(data["last_sign_in_date"])

        return cls(
            user_id=data["user_id"],
            email=data.get("email"),
            is_anonymous=data.get("is_anonymous", False),
            auth_providers=frozenset(
                AuthProviderOption(value) for value in data.get("auth_providers", [])
            ),
            display_name=data.get("display_name"),
            first_name=data.get("first_name"),
            last_name=data.get("last_name"),
            phone_number=data.get("phone_number"),
            photo_url=data.get("photo_url"),
            creation_date=creation_date,
            last_sign_in_date=last_sign_in_date,
        )

    @classmethod
    def mock(cls, is_anonymous: bool = False) -> "AuthenticatedUser":
        """Fixture user for test doubles and previews."""
        now = datetime.now(UTC)
        return cls(
            user_id="mock_user_123",
            email="hello@gmail.com",
            is_anonymous=is_anonymous,
            auth_providers=frozenset() if is_anonymous else frozenset({AuthProviderOption.APPLE}),
            display_name="Joe",
            creation_date=now,
            last_sign_in_date=now,
        )


class SignInKind(Enum):
    """Sign-in flows supported by an auth service."""

    ANONYMOUS = "anonymous"
    APPLE = "apple"
    GOOGLE = "google"


@dataclass(frozen=True)
class SignInOption:
    """A sign-in flow plus the configuration it needs.

    Build instances through the anonymous(), apple() and google()
    constructors rather than directly.
    """

    kind: SignInKind
    client_id: str | None = None

    def __post_init__(self) -> None:
        if self.kind is SignInKind.GOOGLE and not self.client_id:
            raise ValueError("Google sign-in requires a client_id")
        if self.kind is not SignInKind.GOOGLE and self.client_id is not None:
            raise ValueError(f"{self.kind.value} sign-in does not take a client_id")

    @classmethod
    def anonymous(cls) -> "SignInOption":
        return cls(SignInKind.ANONYMOUS)

    @classmethod
    def apple(cls) -> "SignInOption":
        return cls(SignInKind.APPLE)

    @classmethod
    def google(cls, client_id: str) -> "SignInOption":
        return cls(SignInKind.GOOGLE, client_id)

    @property
    def string_value(self) -> str:
        return self.kind.value

    @property
    def event_parameters(self) -> dict[str, Any]:
        return {"sign_in_option": self.string_value}

    def __str__(self) -> str:
        return self.string_value


@dataclass(frozen=True)
class SignInResult:
    """Outcome of a successful sign-in."""

    user: AuthenticatedUser
    is_new_user: bool = False

    def __iter__(self):
        # Allows `user, is_new_user = await manager.sign_in_apple()`
        yield self.user
        yield self.is_new_user
