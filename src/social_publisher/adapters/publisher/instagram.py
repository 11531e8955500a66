"""Instagram Publisher Adapter using the Meta Graph API.

Publishing Flow:
1. POST /{ig-user-id}/media - Create media container with video_url
2. GET /{container-id}?fields=status_code - Poll until FINISHED
3. POST /{ig-user-id}/media_publish - Publish the container

The Graph API fetches the video itself, so the file must be reachable through
a public HTTPS URL.
"""

import asyncio
from pathlib import Path
from urllib.parse import urljoin, urlparse

import httpx

from social_publisher.adapters.http import safe_json
from social_publisher.adapters.publisher.base import ProviderError, PublisherAdapter
from social_publisher.adapters.publisher.instagram_oauth import GRAPH_API_URL
from social_publisher.adapters.publisher.oauth import OAuthProvider
from social_publisher.domain.enums import Platform
from social_publisher.domain.models import PlatformCredentials, VideoAsset
from social_publisher.logging import get_logger
from social_publisher.services.credentials import CredentialStore

logger = get_logger(__name__)

MAX_CAPTION_LENGTH = 2200
LOOPBACK_HOSTS = ("localhost", "127.0.0.1", "::1")


class InstagramPublisher(PublisherAdapter):
    """Instagram Reels publisher using the Content Publishing API."""

    poll_interval = 5.0
    max_polls = 60

    def __init__(
        self,
        credentials: CredentialStore,
        client: httpx.AsyncClient | None = None,
        oauth: OAuthProvider | None = None,
        timeout: float = 600.0,
        max_attempts: int = 3,
        public_base_url: str | None = None,
    ) -> None:
        super().__init__(
            credentials,
            client=client,
            oauth=oauth,
            timeout=timeout,
            max_attempts=max_attempts,
        )
        self.public_base_url = public_base_url

    @property
    def platform(self) -> Platform:
        return Platform.INSTAGRAM

    def build_caption(self, video: VideoAsset) -> str:
        parts = [p for p in (video.title, video.description) if p]
        return "\n\n".join(parts)[:MAX_CAPTION_LENGTH]

    def public_video_url(self, video: VideoAsset, media_path: Path) -> str:
        """Resolve the public URL Instagram downloads the video from.

        Raises:
            ProviderError: If the video is only reachable locally.
        """
        location = video.media_location or ""
        parsed = urlparse(location)

        if parsed.scheme in ("http", "https") and parsed.hostname not in LOOPBACK_HOSTS:
            return location

        if self.public_base_url:
            base = self.public_base_url.rstrip("/") + "/"
            return urljoin(base, media_path.name)

        raise ProviderError(
            "Video must be accessible via public URL for Instagram publishing. "
            "Set PUBLIC_BASE_URL to where generated media is served."
        )

    async def _upload(
        self,
        video: VideoAsset,
        media_path: Path,
        credentials: PlatformCredentials,
    ) -> str:
        ig_user_id = credentials.account_id
        if not ig_user_id:
            raise ProviderError(
                "No Instagram Business account linked. Reconnect Instagram or set "
                "INSTAGRAM_ACCOUNT_ID."
            )

        video_url = self.public_video_url(video, media_path)
        access_token = credentials.access_token

        # Step 1: Create media container
        container_response = await self._request(
            "POST",
            f"{GRAPH_API_URL}/{ig_user_id}/media",
            params={
                "media_type": "REELS",
                "video_url": video_url,
                "caption": self.build_caption(video),
                "access_token": access_token,
            },
        )

        if container_response.status_code != 200:
            raise ProviderError(
                f"Failed to create media container: {self._error_message(container_response)}"
            )

        container_id = (safe_json(container_response) or {}).get("id")
        if not container_id:
            raise ProviderError("No container ID in response")

        logger.info("instagram_container_created", container_id=container_id)

        # Step 2: Poll for container status
        await self._wait_for_container(container_id, access_token)

        # Step 3: Publish the container
        publish_response = await self._request(
            "POST",
            f"{GRAPH_API_URL}/{ig_user_id}/media_publish",
            params={"creation_id": container_id, "access_token": access_token},
        )

        if publish_response.status_code != 200:
            raise ProviderError(
                f"Failed to publish media: {self._error_message(publish_response)}"
            )

        media_id = (safe_json(publish_response) or {}).get("id")
        if not media_id:
            raise ProviderError("No media ID in publish response")

        return await self._get_permalink(media_id, access_token)

    async def _wait_for_container(self, container_id: str, access_token: str | None) -> None:
        for attempt in range(self.max_polls):
            status_response = await self._request(
                "GET",
                f"{GRAPH_API_URL}/{container_id}",
                params={"fields": "status_code,status", "access_token": access_token},
            )

            if status_response.status_code == 200:
                status_data = safe_json(status_response) or {}
                status_code = status_data.get("status_code")

                if status_code == "FINISHED":
                    return
                if status_code == "ERROR":
                    raise ProviderError(f"Media processing failed: {status_data.get('status')}")

                logger.debug("instagram_container_processing", attempt=attempt + 1)

            await asyncio.sleep(self.poll_interval)

        raise ProviderError("Media processing timed out")

    async def _get_permalink(self, media_id: str, access_token: str | None) -> str:
        response = await self._request(
            "GET",
            f"{GRAPH_API_URL}/{media_id}",
            params={"fields": "permalink", "access_token": access_token},
        )

        permalink = (safe_json(response) or {}).get("permalink") if response.status_code == 200 else None
        return permalink or f"https://www.instagram.com/reel/{media_id}/"
