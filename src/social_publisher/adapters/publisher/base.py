"""Base interface for video publishing adapters."""

import asyncio
from abc import ABC, abstractmethod
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

import httpx

from social_publisher.adapters.http import safe_json, send_with_retry
from social_publisher.adapters.publisher.oauth import OAuthProvider
from social_publisher.domain.enums import FailureReason, Platform
from social_publisher.domain.models import PlatformCredentials, PublishResult, VideoAsset
from social_publisher.logging import get_logger
from social_publisher.services.credentials import CredentialStore

logger = get_logger(__name__)

# Refresh tokens this long before they expire
TOKEN_REFRESH_MARGIN = timedelta(minutes=5)


class ProviderError(Exception):
    """Raised inside an adapter when the platform rejects an upload."""

    pass


class PublisherAdapter(ABC):
    """Abstract base class for platform publishing adapters.

    publish() never raises: a missing token becomes NOT_AUTHORIZED and any
    error or timeout while talking to the platform becomes PROVIDER_ERROR.
    Subclasses only implement _upload().

    Implementations:
    - StubPublisherAdapter: Simulates uploads without external calls
    - YouTubePublisher: YouTube Data API v3 resumable upload
    - TikTokPublisher: TikTok Content Posting API
    - InstagramPublisher: Instagram Graph API Reels
    """

    def __init__(
        self,
        credentials: CredentialStore,
        client: httpx.AsyncClient | None = None,
        oauth: OAuthProvider | None = None,
        timeout: float = 600.0,
        max_attempts: int = 3,
    ) -> None:
        self.credentials = credentials
        self.client = client
        self.oauth = oauth
        self.timeout = timeout
        self.max_attempts = max_attempts

    @property
    @abstractmethod
    def platform(self) -> Platform:
        """The platform this adapter publishes to."""
        ...

    @abstractmethod
    async def _upload(
        self,
        video: VideoAsset,
        media_path: Path,
        credentials: PlatformCredentials,
    ) -> str:
        """Upload and publish the video.

        Returns:
            The platform URL of the published video.

        Raises:
            Exception: Any failure; publish() converts it into a result.
        """
        ...

    async def publish(self, video: VideoAsset, media_path: Path) -> PublishResult:
        """Publish a video to the platform.

        Args:
            video: The video being published.
            media_path: Resolved local file holding the video bytes.

        Returns:
            PublishResult describing the outcome.
        """
        name = self.platform.display_name
        credentials = self.credentials.get(self.platform)

        if credentials is None or not credentials.is_authorized:
            logger.info("publish_not_authorized", platform=self.platform.value, video_id=video.id)
            return PublishResult.failure(
                platform=self.platform.value,
                reason=FailureReason.NOT_AUTHORIZED,
                message=f"{name} not authorized. Please connect your {name} account.",
            )

        logger.info(
            "publish_started",
            platform=self.platform.value,
            video_id=video.id,
            title=video.title,
        )

        try:
            async with asyncio.timeout(self.timeout):
                credentials = await self._ensure_fresh_token(credentials)
                remote_url = await self._upload(video, media_path, credentials)
        except Exception as e:
            logger.exception(
                "publish_failed",
                platform=self.platform.value,
                video_id=video.id,
                error=str(e) or type(e).__name__,
            )
            return PublishResult.failure(
                platform=self.platform.value,
                reason=FailureReason.PROVIDER_ERROR,
                message=f"Failed to publish to {name}. Please try again later.",
            )

        logger.info(
            "publish_completed",
            platform=self.platform.value,
            video_id=video.id,
            url=remote_url,
        )
        return PublishResult.success(
            platform=self.platform.value,
            remote_url=remote_url,
            message=f"Video successfully published to {name}",
        )

    async def _ensure_fresh_token(self, credentials: PlatformCredentials) -> PlatformCredentials:
        """Refresh the access token when it is about to expire.

        Tokens without a known expiry are used as-is.
        """
        expires_at = credentials.token_expires_at
        if expires_at is None or self.oauth is None:
            return credentials

        if expires_at > datetime.now(UTC) + TOKEN_REFRESH_MARGIN:
            return credentials

        logger.info("access_token_refreshing", platform=self.platform.value)
        tokens = await self.oauth.refresh(credentials)
        stored = await asyncio.to_thread(
            self.credentials.set_access_token,
            self.platform,
            tokens.access_token,
            refresh_token=tokens.refresh_token,
            expires_in=tokens.expires_in,
            account_id=tokens.account_id,
        )
        refreshed = self.credentials.get(self.platform)
        if not stored or refreshed is None:
            raise ProviderError(f"Refreshed {self.platform.display_name} token was not stored")
        return refreshed

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        if self.client is None:
            raise ProviderError(f"No HTTP client configured for {self.platform.display_name}")
        return await send_with_retry(
            self.client, method, url, max_attempts=self.max_attempts, **kwargs
        )

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        """Extract a readable error message from a platform API response."""
        data = safe_json(response)
        if data:
            error = data.get("error")
            if isinstance(error, dict) and error.get("message"):
                return str(error["message"])
            if isinstance(error, str):
                return str(data.get("error_description") or error)
        return response.text or f"HTTP {response.status_code}"
