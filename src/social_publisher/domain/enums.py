"""Domain enumerations."""

from enum import StrEnum


class Platform(StrEnum):
    """Supported publishing platforms.

    Declaration order is the discovery order used when listing platforms.
    """

    YOUTUBE = "youtube"
    TIKTOK = "tiktok"
    INSTAGRAM = "instagram"

    @property
    def display_name(self) -> str:
        """Human readable platform name for user-facing messages."""
        return _DISPLAY_NAMES[self]


_DISPLAY_NAMES = {
    Platform.YOUTUBE: "YouTube",
    Platform.TIKTOK: "TikTok",
    Platform.INSTAGRAM: "Instagram",
}


class FailureReason(StrEnum):
    """Structured failure kinds reported in publish and callback outcomes."""

    NOT_CONFIGURED = "NOT_CONFIGURED"
    NOT_AUTHORIZED = "NOT_AUTHORIZED"
    NO_MEDIA = "NO_MEDIA"
    MEDIA_NOT_FOUND = "MEDIA_NOT_FOUND"
    UNSUPPORTED_PLATFORM = "UNSUPPORTED_PLATFORM"
    PROVIDER_ERROR = "PROVIDER_ERROR"
    INVALID_CALLBACK = "INVALID_CALLBACK"
    CANCELLED = "CANCELLED"


class AuthorizationStatus(StrEnum):
    """Lifecycle of a single OAuth authorization attempt."""

    PENDING = "pending"
    CODE_RECEIVED = "code_received"
    TOKEN_EXCHANGED = "token_exchanged"
    DENIED = "denied"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (
            AuthorizationStatus.TOKEN_EXCHANGED,
            AuthorizationStatus.DENIED,
            AuthorizationStatus.FAILED,
        )


class VideoStatus(StrEnum):
    """Status of a video as tracked by the video storage collaborator."""

    DRAFT = "draft"
    PROCESSING = "processing"
    COMPLETED = "completed"
    PUBLISHED = "published"


class ActivityAction(StrEnum):
    """Activity entries recorded around a publish request."""

    PUBLISH_STARTED = "video_publish_started"
    PUBLISHED = "video_published"
