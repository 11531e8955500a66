"""TikTok Publisher Adapter using the Content Posting API.

Publishing Flow (Direct Post):
1. POST /v2/post/publish/video/init/ - Initialize upload
2. PUT upload_url - Upload video chunks
3. POST /v2/post/publish/status/fetch/ - Poll for completion
"""

import asyncio
from pathlib import Path
from typing import Any

from social_publisher.adapters.http import safe_json
from social_publisher.adapters.publisher.base import ProviderError, PublisherAdapter
from social_publisher.domain.enums import Platform
from social_publisher.domain.models import PlatformCredentials, VideoAsset
from social_publisher.logging import get_logger

logger = get_logger(__name__)

# TikTok Content Posting API endpoints
TIKTOK_POST_INIT_URL = "https://open.tiktokapis.com/v2/post/publish/video/init/"
TIKTOK_POST_STATUS_URL = "https://open.tiktokapis.com/v2/post/publish/status/fetch/"
TIKTOK_VIDEO_URL = "https://www.tiktok.com/@/video/{video_id}"

MAX_TITLE_LENGTH = 150
MAX_CHUNK_SIZE = 64 * 1024 * 1024  # 64 MB
PROCESSING_STATUSES = ("PROCESSING_UPLOAD", "PROCESSING_DOWNLOAD", "SENDING_TO_USER_INBOX")


class TikTokPublisher(PublisherAdapter):
    """TikTok publisher using Direct Post."""

    poll_interval = 5.0
    max_polls = 60
    privacy_level = "SELF_ONLY"  # Unaudited apps may only post privately

    @property
    def platform(self) -> Platform:
        return Platform.TIKTOK

    def _auth_headers(self, credentials: PlatformCredentials) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {credentials.access_token}",
            "Content-Type": "application/json; charset=UTF-8",
        }

    async def _upload(
        self,
        video: VideoAsset,
        media_path: Path,
        credentials: PlatformCredentials,
    ) -> str:
        video_data = await asyncio.to_thread(media_path.read_bytes)
        file_size = len(video_data)
        if file_size == 0:
            raise ProviderError(f"Video file is empty: {media_path}")

        chunk_size = min(MAX_CHUNK_SIZE, file_size)
        total_chunks = file_size // chunk_size

        # Step 1: Initialize upload
        init_response = await self._request(
            "POST",
            TIKTOK_POST_INIT_URL,
            headers=self._auth_headers(credentials),
            json={
                "post_info": {
                    "title": (video.title or "")[:MAX_TITLE_LENGTH],
                    "privacy_level": self.privacy_level,
                    "disable_duet": False,
                    "disable_comment": False,
                    "disable_stitch": False,
                },
                "source_info": {
                    "source": "FILE_UPLOAD",
                    "video_size": file_size,
                    "chunk_size": chunk_size,
                    "total_chunk_count": total_chunks,
                },
            },
        )

        init_data = safe_json(init_response) or {}
        if init_response.status_code != 200 or _error_code(init_data) != "ok":
            raise ProviderError(
                f"Failed to initialize upload: {self._error_message(init_response)}"
            )

        upload_url = init_data.get("data", {}).get("upload_url")
        publish_id = init_data.get("data", {}).get("publish_id")
        if not upload_url or not publish_id:
            raise ProviderError("No upload URL or publish ID in response")

        logger.info("tiktok_upload_initialized", publish_id=publish_id)

        # Step 2: Upload video chunks; the last chunk absorbs the remainder
        for chunk_num in range(total_chunks):
            start_byte = chunk_num * chunk_size
            end_byte = file_size if chunk_num == total_chunks - 1 else start_byte + chunk_size
            chunk = video_data[start_byte:end_byte]

            upload_response = await self._request(
                "PUT",
                upload_url,
                headers={
                    "Content-Type": "video/mp4",
                    "Content-Range": f"bytes {start_byte}-{end_byte - 1}/{file_size}",
                },
                content=chunk,
            )

            if upload_response.status_code not in (200, 201, 206):
                raise ProviderError(f"Chunk upload failed: {upload_response.text}")

            logger.debug("tiktok_chunk_uploaded", chunk=chunk_num + 1, total=total_chunks)

        # Step 3: Poll for completion
        status_data = await self._wait_for_publish(publish_id, credentials)
        post_ids = status_data.get("publicaly_available_post_id") or []
        video_id = post_ids[0] if post_ids else publish_id
        return TIKTOK_VIDEO_URL.format(video_id=video_id)

    async def _wait_for_publish(
        self,
        publish_id: str,
        credentials: PlatformCredentials,
    ) -> dict[str, Any]:
        for attempt in range(self.max_polls):
            status_response = await self._request(
                "POST",
                TIKTOK_POST_STATUS_URL,
                headers=self._auth_headers(credentials),
                json={"publish_id": publish_id},
            )

            status_data = safe_json(status_response) or {}
            if status_response.status_code == 200 and _error_code(status_data) == "ok":
                data = status_data.get("data", {})
                status = data.get("status")

                if status == "PUBLISH_COMPLETE":
                    return data
                if status == "FAILED":
                    raise ProviderError(
                        f"Video processing failed: {data.get('fail_reason', 'unknown')}"
                    )
                if status in PROCESSING_STATUSES:
                    logger.debug("tiktok_processing", status=status, attempt=attempt + 1)

            await asyncio.sleep(self.poll_interval)

        raise ProviderError("Video processing timed out")


def _error_code(data: dict[str, Any]) -> str | None:
    error = data.get("error")
    return error.get("code") if isinstance(error, dict) else None
