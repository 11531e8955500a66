"""Video storage and activity log collaborators.

Publishing only needs a narrow view of both: look up a video, update its
status, and record activity entries. The in-memory implementations back the
HTTP app and CLI until a durable store is wired in.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Protocol

from social_publisher.domain.enums import VideoStatus
from social_publisher.domain.models import VideoAsset


class VideoRepository(Protocol):
    async def get_video_by_id(self, video_id: int) -> VideoAsset | None: ...

    async def update_video_status(self, video_id: int, status: VideoStatus) -> VideoAsset | None: ...


class ActivityRecorder(Protocol):
    async def record_activity(
        self,
        owner_id: int,
        action: str,
        details: dict[str, Any] | None = None,
    ) -> None: ...


class InMemoryVideoRepository:
    """Video store held in a dict keyed by video id."""

    def __init__(self, videos: list[VideoAsset] | None = None) -> None:
        self._videos: dict[int, VideoAsset] = {v.id: v for v in videos or []}

    def add(self, video: VideoAsset) -> VideoAsset:
        self._videos[video.id] = video
        return video

    async def get_video_by_id(self, video_id: int) -> VideoAsset | None:
        return self._videos.get(video_id)

    async def update_video_status(self, video_id: int, status: VideoStatus) -> VideoAsset | None:
        video = self._videos.get(video_id)
        if video is not None:
            video.status = status
        return video


@dataclass
class Activity:
    owner_id: int
    action: str
    details: dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))


class InMemoryActivityLog:
    """Append-only activity log."""

    def __init__(self) -> None:
        self.entries: list[Activity] = []

    async def record_activity(
        self,
        owner_id: int,
        action: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.entries.append(Activity(owner_id=owner_id, action=action, details=details or {}))

    def for_owner(self, owner_id: int) -> list[Activity]:
        return [a for a in self.entries if a.owner_id == owner_id]
