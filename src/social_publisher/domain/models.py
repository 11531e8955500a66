"""Domain models - pure Python classes independent of transport and storage."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from social_publisher.domain.enums import (
    AuthorizationStatus,
    FailureReason,
    Platform,
    VideoStatus,
)

ALL_PLATFORMS = "all"


@dataclass(frozen=True)
class UnsupportedPlatform:
    """A platform identifier that did not match any known platform."""

    raw: str

    def __str__(self) -> str:
        return self.raw


def parse_platform(value: str | Platform) -> Platform | UnsupportedPlatform:
    """Parse a caller-supplied platform identifier.

    Matching is case-insensitive and ignores surrounding whitespace. Unknown
    values come back as UnsupportedPlatform instead of raising.
    """
    if isinstance(value, Platform):
        return value
    try:
        return Platform(str(value).strip().lower())
    except ValueError:
        return UnsupportedPlatform(raw=str(value))


@dataclass(frozen=True)
class PlatformCredentials:
    """App-level OAuth configuration and user tokens for one platform."""

    platform: Platform
    client_id: str | None = None
    client_secret: str | None = field(default=None, repr=False)
    access_token: str | None = field(default=None, repr=False)
    refresh_token: str | None = field(default=None, repr=False)
    token_expires_at: datetime | None = None
    account_id: str | None = None

    @property
    def is_configured(self) -> bool:
        return bool(self.client_id) and bool(self.client_secret)

    @property
    def is_authorized(self) -> bool:
        return self.is_configured and bool(self.access_token)


@dataclass
class VideoAsset:
    """A video owned by the video storage collaborator."""

    id: int
    title: str
    owner_id: int
    media_location: str | None = None
    description: str | None = None
    thumbnail_location: str | None = None
    status: VideoStatus = VideoStatus.DRAFT


@dataclass
class PublishRequest:
    """Request to publish one video to an ordered set of platforms."""

    video_id: int
    platforms: list[str]

    def __post_init__(self) -> None:
        if not self.platforms:
            raise ValueError("At least one platform must be selected")


@dataclass(frozen=True)
class PublishResult:
    """Outcome of publishing a video to a single platform.

    remote_url is present iff the publish succeeded, failure_reason iff it
    did not.
    """

    platform: str
    succeeded: bool
    message: str
    remote_url: str | None = None
    failure_reason: FailureReason | None = None

    def __post_init__(self) -> None:
        if self.succeeded and (self.remote_url is None or self.failure_reason is not None):
            raise ValueError("A successful result needs a remote_url and no failure_reason")
        if not self.succeeded and (self.failure_reason is None or self.remote_url is not None):
            raise ValueError("A failed result needs a failure_reason and no remote_url")

    @classmethod
    def success(cls, platform: str, remote_url: str, message: str) -> "PublishResult":
        return cls(platform=platform, succeeded=True, message=message, remote_url=remote_url)

    @classmethod
    def failure(
        cls,
        platform: str,
        reason: FailureReason,
        message: str,
    ) -> "PublishResult":
        return cls(platform=platform, succeeded=False, message=message, failure_reason=reason)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the shape returned by the HTTP layer."""
        return {
            "platform": self.platform,
            "success": self.succeeded,
            "url": self.remote_url,
            "message": self.message,
            "error": str(self.failure_reason) if self.failure_reason else None,
        }


@dataclass(frozen=True)
class OAuthTokens:
    """Tokens returned by a platform's token endpoint."""

    access_token: str = field(repr=False)
    refresh_token: str | None = field(default=None, repr=False)
    expires_in: int | None = None
    token_type: str = "Bearer"
    scope: str = ""
    account_id: str | None = None


@dataclass
class CallbackOutcome:
    """Terminal result of handling an OAuth callback."""

    platform: str
    status: AuthorizationStatus
    message: str
    failure_reason: FailureReason | None = None

    @property
    def succeeded(self) -> bool:
        return self.status == AuthorizationStatus.TOKEN_EXCHANGED
