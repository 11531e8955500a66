"""Domain models and enumerations."""

from social_publisher.domain.enums import (
    ActivityAction,
    AuthorizationStatus,
    FailureReason,
    Platform,
    VideoStatus,
)
from social_publisher.domain.models import (
    ALL_PLATFORMS,
    CallbackOutcome,
    OAuthTokens,
    PlatformCredentials,
    PublishRequest,
    PublishResult,
    UnsupportedPlatform,
    VideoAsset,
    parse_platform,
)

__all__ = [
    "ALL_PLATFORMS",
    "ActivityAction",
    "AuthorizationStatus",
    "CallbackOutcome",
    "FailureReason",
    "OAuthTokens",
    "Platform",
    "PlatformCredentials",
    "PublishRequest",
    "PublishResult",
    "UnsupportedPlatform",
    "VideoAsset",
    "VideoStatus",
    "parse_platform",
]
