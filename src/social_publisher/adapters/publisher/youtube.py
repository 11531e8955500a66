"""YouTube Publisher Adapter using YouTube Data API v3.

Uploads go through the resumable upload protocol: a metadata request opens an
upload session and the video bytes are PUT to the returned session URL.
"""

import asyncio
from pathlib import Path
from typing import Any

import httpx

from social_publisher.adapters.http import safe_json
from social_publisher.adapters.publisher.base import ProviderError, PublisherAdapter
from social_publisher.domain.enums import Platform
from social_publisher.domain.models import PlatformCredentials, VideoAsset

# YouTube API endpoints
YOUTUBE_UPLOAD_URL = "https://www.googleapis.com/upload/youtube/v3/videos"
YOUTUBE_WATCH_URL = "https://www.youtube.com/watch?v={video_id}"

MAX_TITLE_LENGTH = 100
MAX_DESCRIPTION_LENGTH = 5000
DEFAULT_CATEGORY_ID = "22"  # People & Blogs

# Map API error reasons to friendlier messages
ERROR_REASONS = {
    "quotaExceeded": "YouTube API quota exceeded. Try again tomorrow.",
    "uploadLimitExceeded": "YouTube upload limit exceeded for this account.",
    "forbidden": "The YouTube account does not allow uploads from this app.",
}


class YouTubePublisher(PublisherAdapter):
    """YouTube publisher using the Data API resumable upload."""

    visibility = "public"

    @property
    def platform(self) -> Platform:
        return Platform.YOUTUBE

    def build_video_metadata(self, video: VideoAsset) -> dict[str, Any]:
        """Build the video resource sent with the upload."""
        snippet: dict[str, Any] = {
            "title": (video.title or "Untitled video")[:MAX_TITLE_LENGTH],
            "categoryId": DEFAULT_CATEGORY_ID,
        }
        if video.description:
            snippet["description"] = video.description[:MAX_DESCRIPTION_LENGTH]

        return {
            "snippet": snippet,
            "status": {
                "privacyStatus": self.visibility,
                "selfDeclaredMadeForKids": False,
            },
        }

    async def _upload(
        self,
        video: VideoAsset,
        media_path: Path,
        credentials: PlatformCredentials,
    ) -> str:
        video_data = await asyncio.to_thread(media_path.read_bytes)
        metadata = self.build_video_metadata(video)

        # Step 1: Open the resumable upload session
        init_response = await self._request(
            "POST",
            YOUTUBE_UPLOAD_URL,
            params={"uploadType": "resumable", "part": "snippet,status"},
            headers={
                "Authorization": f"Bearer {credentials.access_token}",
                "Content-Type": "application/json; charset=UTF-8",
                "X-Upload-Content-Length": str(len(video_data)),
                "X-Upload-Content-Type": "video/mp4",
            },
            json=metadata,
        )

        if init_response.status_code != 200:
            raise ProviderError(
                f"Failed to initialize upload: {self._describe_failure(init_response)}"
            )

        upload_url = init_response.headers.get("Location")
        if not upload_url:
            raise ProviderError("No upload URL in response")

        # Step 2: Upload the video bytes
        upload_response = await self._request(
            "PUT",
            upload_url,
            headers={"Content-Type": "video/mp4"},
            content=video_data,
        )

        if upload_response.status_code not in (200, 201):
            raise ProviderError(f"Upload failed: {self._describe_failure(upload_response)}")

        video_id = (safe_json(upload_response) or {}).get("id")
        if not video_id:
            raise ProviderError("Upload response did not include a video id")

        return YOUTUBE_WATCH_URL.format(video_id=video_id)

    def _describe_failure(self, response: httpx.Response) -> str:
        data = safe_json(response) or {}
        error = data.get("error")
        if isinstance(error, dict):
            for err in error.get("errors", []):
                reason = err.get("reason", "")
                if reason in ERROR_REASONS:
                    return ERROR_REASONS[reason]
        return self._error_message(response)
