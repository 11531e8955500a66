"""Publishing service: validates a publish request and records its outcome."""

from collections.abc import Sequence
from typing import Any

from social_publisher.domain.enums import ActivityAction, VideoStatus
from social_publisher.domain.models import PublishRequest, PublishResult
from social_publisher.logging import get_logger
from social_publisher.services.orchestrator import PublishOrchestrator
from social_publisher.services.videos import ActivityRecorder, VideoRepository

logger = get_logger(__name__)


class PublishingError(Exception):
    """Base class for request-level publishing errors."""

    pass


class VideoNotFoundError(PublishingError):
    """Raised when the requested video does not exist."""

    pass


class PublishValidationError(PublishingError):
    """Raised when a publish request cannot be attempted at all."""

    pass


class PublishingService:
    """Publishes stored videos and keeps video status and activity in sync."""

    def __init__(
        self,
        videos: VideoRepository,
        activities: ActivityRecorder,
        orchestrator: PublishOrchestrator,
    ) -> None:
        self.videos = videos
        self.activities = activities
        self.orchestrator = orchestrator

    async def publish_video(self, video_id: int, platforms: Sequence[str]) -> list[PublishResult]:
        """Publish a stored video to the given platforms.

        Per-platform failures come back inside the result list; only problems
        with the request itself raise.

        Raises:
            PublishValidationError: If no platform was selected or the video
                has not been generated yet.
            VideoNotFoundError: If the video does not exist.
        """
        try:
            request = PublishRequest(video_id=video_id, platforms=list(platforms))
        except ValueError as e:
            raise PublishValidationError(str(e))

        video = await self.videos.get_video_by_id(request.video_id)
        if video is None:
            raise VideoNotFoundError(f"Video not found: {request.video_id}")

        if not video.media_location:
            raise PublishValidationError(
                "Video has not been generated yet. Generate the video first."
            )

        await self._record(
            video.owner_id,
            ActivityAction.PUBLISH_STARTED,
            {
                "videoId": video.id,
                "message": f'Started publishing "{video.title}" to {", ".join(request.platforms)}',
            },
        )

        results = await self.orchestrator.publish(video, request.platforms)

        published = [r.platform for r in results if r.succeeded]
        if published:
            try:
                await self.videos.update_video_status(video.id, VideoStatus.PUBLISHED)
            except Exception as e:
                logger.error("video_status_update_failed", video_id=video.id, error=str(e))

            await self._record(
                video.owner_id,
                ActivityAction.PUBLISHED,
                {
                    "videoId": video.id,
                    "platforms": published,
                    "message": f'Published "{video.title}" to {", ".join(published)}',
                },
            )

        return results

    async def _record(self, owner_id: int, action: ActivityAction, details: dict[str, Any]) -> None:
        try:
            await self.activities.record_activity(owner_id, action.value, details)
        except Exception as e:
            logger.error("activity_record_failed", action=action.value, error=str(e))
