"""Video publishing adapters and platform OAuth providers."""

from social_publisher.adapters.publisher.base import (
    ProviderError,
    PublisherAdapter,
)
from social_publisher.adapters.publisher.instagram import InstagramPublisher
from social_publisher.adapters.publisher.instagram_oauth import InstagramOAuthProvider
from social_publisher.adapters.publisher.oauth import OAuthError, OAuthProvider
from social_publisher.adapters.publisher.stub import StubPublisherAdapter
from social_publisher.adapters.publisher.tiktok import TikTokPublisher
from social_publisher.adapters.publisher.tiktok_oauth import TikTokOAuthProvider
from social_publisher.adapters.publisher.youtube import YouTubePublisher
from social_publisher.adapters.publisher.youtube_oauth import YouTubeOAuthProvider

__all__ = [
    # Base
    "PublisherAdapter",
    "ProviderError",
    "OAuthProvider",
    "OAuthError",
    # Stub
    "StubPublisherAdapter",
    # YouTube
    "YouTubePublisher",
    "YouTubeOAuthProvider",
    # TikTok
    "TikTokPublisher",
    "TikTokOAuthProvider",
    # Instagram
    "InstagramPublisher",
    "InstagramOAuthProvider",
]
