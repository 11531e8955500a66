"""Stub publisher adapter for development and testing."""

from pathlib import Path
from uuid import uuid4

from social_publisher.adapters.publisher.base import PublisherAdapter
from social_publisher.domain.enums import Platform
from social_publisher.domain.models import PlatformCredentials, VideoAsset
from social_publisher.logging import get_logger
from social_publisher.services.credentials import CredentialStore

logger = get_logger(__name__)

STUB_URLS = {
    Platform.YOUTUBE: "https://youtube.com/watch?v={id}",
    Platform.TIKTOK: "https://tiktok.com/@username/video/{id}",
    Platform.INSTAGRAM: "https://instagram.com/p/{id}",
}


class StubPublisherAdapter(PublisherAdapter):
    """Stub adapter that simulates publishing without external calls.

    Still requires an access token, so authorization flows can be exercised
    end to end.
    """

    def __init__(self, platform: Platform, credentials: CredentialStore) -> None:
        super().__init__(credentials)
        self._platform = platform

    @property
    def platform(self) -> Platform:
        return self._platform

    async def _upload(
        self,
        video: VideoAsset,
        media_path: Path,
        credentials: PlatformCredentials,
    ) -> str:
        remote_id = uuid4().hex[:11]
        logger.info(
            "stub_publish",
            platform=self.platform.value,
            title=video.title,
            media_path=str(media_path),
        )
        return STUB_URLS[self.platform].format(id=remote_id)
