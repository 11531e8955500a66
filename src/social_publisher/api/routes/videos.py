"""Video publishing endpoints."""

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel, Field

from social_publisher.api.deps import PublishingServiceDep
from social_publisher.logging import get_logger
from social_publisher.services.publishing import PublishValidationError, VideoNotFoundError

router = APIRouter(prefix="/videos", tags=["Videos"])
logger = get_logger(__name__)


class PublishVideoRequest(BaseModel):
    """Request to publish a video."""

    platforms: list[str] = Field(..., description="Platform ids in the order results are reported")


class PublishResultResponse(BaseModel):
    platform: str
    success: bool
    url: str | None = None
    message: str
    error: str | None = None


class PublishVideoResponse(BaseModel):
    """Per-platform outcomes; inspect success on each entry."""

    results: list[PublishResultResponse]


@router.post(
    "/{video_id}/publish",
    response_model=PublishVideoResponse,
    summary="Publish video",
    description=(
        "Publish a video to the selected platforms. Returns 200 with one result "
        "per platform even when every platform failed."
    ),
)
async def publish_video(
    video_id: str,
    request: PublishVideoRequest,
    publishing: PublishingServiceDep,
) -> PublishVideoResponse:
    try:
        parsed_id = int(video_id.strip())
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid video ID",
        )

    try:
        results = await publishing.publish_video(parsed_id, request.platforms)
    except VideoNotFoundError:
        logger.info("publish_video_not_found", video_id=parsed_id)
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Video not found",
        )
    except PublishValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )

    return PublishVideoResponse(results=[PublishResultResponse(**r.to_dict()) for r in results])
