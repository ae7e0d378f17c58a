"""
Resource progress, engagement telemetry and completion endpoints
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from uuid import UUID
import logging

from fellowship.database import get_db
from fellowship.schemas.completion import CompletionRequest, CompletionResponse
from fellowship.schemas.engagement import (
    EngagementQualityResponse, EngagementUpdate, ProgressResponse,
    ProgressUpdate, ViewRequest
)
from fellowship.services.completion_service import completion_service
from fellowship.services.engagement_service import engagement_service
from fellowship.services.exceptions import (
    CompletionRejectedError, ProgressNotFoundError,
    ResourceAlreadyCompletedError, ResourceNotFoundError, UserNotFoundError
)
from fellowship.utils.rate_limiter import telemetry_limiter

router = APIRouter(prefix="/api/resources", tags=["resources"])
logger = logging.getLogger(__name__)


@router.post("/{resource_id}/view", response_model=ProgressResponse)
async def view_resource(
    resource_id: UUID,
    request: ViewRequest,
    db: Session = Depends(get_db)
):
    """
    Register a view, creating the progress row on first visit

    Telemetry can only be reported after a view.
    """
    try:
        return completion_service.record_view(db, request.user_id, resource_id)
    except ResourceNotFoundError:
        raise HTTPException(status_code=404, detail="Resource not found")


@router.put("/{resource_id}/progress", response_model=ProgressResponse)
async def update_progress(
    resource_id: UUID,
    progress: ProgressUpdate,
    db: Session = Depends(get_db)
):
    """
    Report time spent and watch/scroll percentages

    - time_spent is added to the running total
    - Percentages keep their highest reported value
    """
    try:
        return completion_service.update_progress(
            db,
            progress.user_id,
            resource_id,
            time_spent=progress.time_spent,
            watch_percentage=progress.watch_percentage,
            scroll_depth=progress.scroll_depth
        )
    except ProgressNotFoundError:
        raise HTTPException(status_code=404, detail="Progress record not found")


@router.post("/{resource_id}/engagement", response_model=ProgressResponse)
async def track_engagement(
    resource_id: UUID,
    update: EngagementUpdate,
    db: Session = Depends(get_db)
):
    """
    Apply a telemetry report

    - playback_speed, attention_score: last value wins
    - pause_count, seek_count: deltas added atomically
    """
    telemetry_limiter.hit(str(update.user_id))

    try:
        return engagement_service.track_engagement(
            db,
            update.user_id,
            resource_id,
            playback_speed=update.playback_speed,
            pause_count=update.pause_count,
            seek_count=update.seek_count,
            attention_score=update.attention_score
        )
    except ProgressNotFoundError:
        raise HTTPException(status_code=404, detail="Progress record not found")


@router.get("/{resource_id}/engagement/quality", response_model=EngagementQualityResponse)
async def get_engagement_quality(
    resource_id: UUID,
    user_id: UUID,
    db: Session = Depends(get_db)
):
    """Score engagement from the current counters (0 when never viewed)"""
    quality = engagement_service.calculate_engagement_quality(db, user_id, resource_id)

    return EngagementQualityResponse(
        user_id=user_id,
        resource_id=resource_id,
        engagement_quality=round(quality, 4)
    )


@router.post("/{resource_id}/complete", response_model=CompletionResponse)
async def complete_resource(
    resource_id: UUID,
    request: CompletionRequest,
    db: Session = Depends(get_db)
):
    """
    Mark a resource complete if engagement thresholds are met

    Returns the credited points; capped is true when the monthly cap cut
    the award. Rejections list every unmet criterion.
    """
    try:
        result = completion_service.complete_resource(db, request.user_id, resource_id)
    except ResourceNotFoundError:
        raise HTTPException(status_code=404, detail="Resource not found")
    except (ProgressNotFoundError, UserNotFoundError) as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ResourceAlreadyCompletedError:
        raise HTTPException(status_code=409, detail="Resource already completed")
    except CompletionRejectedError as e:
        raise HTTPException(
            status_code=422,
            detail={
                "error": "completion_rejected",
                "unmet_criteria": e.unmet_criteria
            }
        )

    return CompletionResponse(**result)
