"""Tests for the publishing service."""

from unittest.mock import AsyncMock

import pytest

from social_publisher.domain.enums import ActivityAction, FailureReason, VideoStatus
from social_publisher.domain.models import PublishResult, VideoAsset
from social_publisher.services.publishing import (
    PublishingService,
    PublishValidationError,
    VideoNotFoundError,
)
from social_publisher.services.videos import InMemoryActivityLog, InMemoryVideoRepository


@pytest.fixture
def videos(video):
    return InMemoryVideoRepository([video])


@pytest.fixture
def activities():
    return InMemoryActivityLog()


def orchestrator_returning(*results: PublishResult) -> AsyncMock:
    orchestrator = AsyncMock()
    orchestrator.publish.return_value = list(results)
    return orchestrator


class TestPublishingService:
    """Tests for PublishingService."""

    @pytest.mark.asyncio
    async def test_partial_success_marks_published(self, videos, activities, video):
        orchestrator = orchestrator_returning(
            PublishResult.success("youtube", "https://youtube.com/watch?v=1", "ok"),
            PublishResult.failure("tiktok", FailureReason.NOT_AUTHORIZED, "connect"),
        )
        service = PublishingService(videos, activities, orchestrator)

        results = await service.publish_video(video.id, ["youtube", "tiktok"])

        assert [r.platform for r in results] == ["youtube", "tiktok"]
        stored = await videos.get_video_by_id(video.id)
        assert stored.status == VideoStatus.PUBLISHED

        started, published = activities.for_owner(video.owner_id)
        assert started.action == ActivityAction.PUBLISH_STARTED
        assert started.details["message"] == 'Started publishing "Sunset Timelapse" to youtube, tiktok'
        assert published.action == ActivityAction.PUBLISHED
        assert published.details["platforms"] == ["youtube"]

    @pytest.mark.asyncio
    async def test_total_failure_leaves_status(self, videos, activities, video):
        orchestrator = orchestrator_returning(
            PublishResult.failure("youtube", FailureReason.PROVIDER_ERROR, "failed"),
        )
        service = PublishingService(videos, activities, orchestrator)

        results = await service.publish_video(video.id, ["youtube"])

        assert results[0].succeeded is False
        assert (await videos.get_video_by_id(video.id)).status == VideoStatus.DRAFT
        assert [a.action for a in activities.entries] == [ActivityAction.PUBLISH_STARTED]

    @pytest.mark.asyncio
    async def test_unknown_video(self, videos, activities):
        service = PublishingService(videos, activities, orchestrator_returning())

        with pytest.raises(VideoNotFoundError):
            await service.publish_video(999, ["youtube"])

    @pytest.mark.asyncio
    async def test_empty_platform_list(self, videos, activities, video):
        orchestrator = orchestrator_returning()
        service = PublishingService(videos, activities, orchestrator)

        with pytest.raises(PublishValidationError):
            await service.publish_video(video.id, [])
        orchestrator.publish.assert_not_called()

    @pytest.mark.asyncio
    async def test_video_without_media(self, activities):
        videos = InMemoryVideoRepository([VideoAsset(id=3, title="Draft", owner_id=1)])
        orchestrator = orchestrator_returning()
        service = PublishingService(videos, activities, orchestrator)

        with pytest.raises(PublishValidationError, match="not been generated"):
            await service.publish_video(3, ["youtube"])
        orchestrator.publish.assert_not_called()
        assert activities.entries == []

    @pytest.mark.asyncio
    async def test_activity_failure_does_not_abort(self, videos, video):
        activities = AsyncMock()
        activities.record_activity.side_effect = RuntimeError("log store down")
        orchestrator = orchestrator_returning(
            PublishResult.success("instagram", "https://instagram.com/p/x", "ok"),
        )
        service = PublishingService(videos, activities, orchestrator)

        results = await service.publish_video(video.id, ["instagram"])

        assert results[0].succeeded is True
        assert activities.record_activity.await_count == 2
        assert (await videos.get_video_by_id(video.id)).status == VideoStatus.PUBLISHED
