"""Fan-out of one publish request across platform publishers."""

import asyncio
from collections.abc import Mapping, Sequence
from pathlib import Path

from social_publisher.adapters.publisher.base import PublisherAdapter
from social_publisher.domain.enums import FailureReason, Platform
from social_publisher.domain.models import (
    ALL_PLATFORMS,
    PublishResult,
    UnsupportedPlatform,
    VideoAsset,
    parse_platform,
)
from social_publisher.logging import get_logger
from social_publisher.services.media import MediaNotFoundError, MediaResolver

logger = get_logger(__name__)


class PublishOrchestrator:
    """Publishes a video to several platforms and aggregates the results.

    Every requested platform gets exactly one result, in request order. A
    failure on one platform never prevents the others from being attempted.
    """

    def __init__(
        self,
        publishers: Mapping[Platform, PublisherAdapter],
        media: MediaResolver,
    ) -> None:
        self.publishers = dict(publishers)
        self.media = media

    async def publish(self, video: VideoAsset, platforms: Sequence[str]) -> list[PublishResult]:
        """Publish a video to the requested platforms.

        Adapters run concurrently. If this call is cancelled while adapters
        are in flight, they are cancelled as well and the partial result list
        is returned, with platforms that had not finished marked CANCELLED.

        Args:
            video: The video to publish.
            platforms: Platform ids in the order results should be reported.

        Returns:
            One PublishResult per requested platform, or a single "all" result
            when the video's media cannot be used.
        """
        if not video.media_location:
            logger.warning("publish_rejected_no_media", video_id=video.id)
            return [
                PublishResult.failure(
                    platform=ALL_PLATFORMS,
                    reason=FailureReason.NO_MEDIA,
                    message="No video URL available",
                )
            ]

        try:
            media_path = self.media.resolve(video.media_location)
        except MediaNotFoundError as e:
            logger.warning("publish_rejected_media_not_found", video_id=video.id, error=str(e))
            return [
                PublishResult.failure(
                    platform=ALL_PLATFORMS,
                    reason=FailureReason.MEDIA_NOT_FOUND,
                    message="Video file not found",
                )
            ]

        parsed = [parse_platform(p) for p in platforms]

        # Repeated platforms share one upload
        tasks: dict[Platform, asyncio.Task[PublishResult]] = {}
        for platform in parsed:
            if isinstance(platform, Platform) and platform in self.publishers:
                if platform not in tasks:
                    tasks[platform] = asyncio.create_task(
                        self._run_adapter(self.publishers[platform], video, media_path),
                        name=f"publish-{platform.value}-{video.id}",
                    )

        logger.info(
            "publish_fanout",
            video_id=video.id,
            requested=[str(p) for p in parsed],
            dispatched=[p.value for p in tasks],
        )

        if tasks:
            try:
                await asyncio.wait(tasks.values())
            except asyncio.CancelledError:
                logger.warning(
                    "publish_cancelled",
                    video_id=video.id,
                    pending=[p.value for p, t in tasks.items() if not t.done()],
                )
                for task in tasks.values():
                    task.cancel()
                await asyncio.gather(*tasks.values(), return_exceptions=True)

        results = [self._result_for(platform, tasks) for platform in parsed]

        logger.info(
            "publish_finished",
            video_id=video.id,
            succeeded=[r.platform for r in results if r.succeeded],
            failed=[r.platform for r in results if not r.succeeded],
        )
        return results

    async def _run_adapter(
        self,
        adapter: PublisherAdapter,
        video: VideoAsset,
        media_path: Path,
    ) -> PublishResult:
        try:
            return await adapter.publish(video, media_path)
        except Exception:
            # Adapters should never raise; contain the ones that do
            logger.exception("publisher_adapter_raised", platform=adapter.platform.value)
            name = adapter.platform.display_name
            return PublishResult.failure(
                platform=adapter.platform.value,
                reason=FailureReason.PROVIDER_ERROR,
                message=f"Failed to publish to {name}. Please try again later.",
            )

    @staticmethod
    def _result_for(
        platform: Platform | UnsupportedPlatform,
        tasks: Mapping[Platform, asyncio.Task[PublishResult]],
    ) -> PublishResult:
        if isinstance(platform, UnsupportedPlatform) or platform not in tasks:
            return PublishResult.failure(
                platform=str(platform),
                reason=FailureReason.UNSUPPORTED_PLATFORM,
                message=f"Unsupported platform: {platform}",
            )

        task = tasks[platform]
        if task.done() and not task.cancelled():
            return task.result()

        return PublishResult.failure(
            platform=platform.value,
            reason=FailureReason.CANCELLED,
            message=f"Publishing to {platform.display_name} was cancelled",
        )
