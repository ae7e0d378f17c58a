"""
Facilitator dashboard analytics endpoints
"""
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from typing import List, Optional
from uuid import UUID
import logging

from fellowship.config import settings
from fellowship.database import get_db
from fellowship.schemas.analytics import CohortStats, FellowEngagement, ResourceCompletion
from fellowship.schemas.engagement import SkimmingAlert
from fellowship.services.analytics_service import analytics_service
from fellowship.services.engagement_service import engagement_service
from fellowship.services.exceptions import CohortAccessDeniedError

router = APIRouter(prefix="/api/facilitator/cohorts", tags=["facilitator"])
logger = logging.getLogger(__name__)


@router.get("/{cohort_id}/stats", response_model=CohortStats)
async def get_cohort_stats(
    cohort_id: UUID,
    requester_id: UUID,
    db: Session = Depends(get_db)
):
    """
    Get headline numbers for a cohort

    Returns:
    - Fellow and active-fellow counts
    - Average resource progress and attendance rate
    - Discussion activity and average quiz score
    """
    try:
        return CohortStats(**analytics_service.get_cohort_stats(db, cohort_id, requester_id))
    except CohortAccessDeniedError as e:
        raise HTTPException(status_code=403, detail=str(e))


@router.get("/{cohort_id}/fellows", response_model=List[FellowEngagement])
async def get_fellow_engagement(
    cohort_id: UUID,
    requester_id: UUID,
    db: Session = Depends(get_db)
):
    """Per-fellow progress with needs-attention flags"""
    try:
        return analytics_service.get_fellow_engagement(db, cohort_id, requester_id)
    except CohortAccessDeniedError as e:
        raise HTTPException(status_code=403, detail=str(e))


@router.get("/{cohort_id}/resources", response_model=List[ResourceCompletion])
async def get_resource_completions(
    cohort_id: UUID,
    requester_id: UUID,
    db: Session = Depends(get_db)
):
    """Completion rate and average time per resource"""
    try:
        return analytics_service.get_resource_completions(db, cohort_id, requester_id)
    except CohortAccessDeniedError as e:
        raise HTTPException(status_code=403, detail=str(e))


@router.get("/{cohort_id}/skimming-alerts", response_model=List[SkimmingAlert])
async def get_skimming_alerts(
    cohort_id: UUID,
    requester_id: UUID,
    threshold: Optional[float] = Query(None, ge=0.0, le=1.0, description="Quality cut-off (0-1)"),
    db: Session = Depends(get_db)
):
    """Progress rows whose engagement quality falls below the threshold"""
    try:
        analytics_service.verify_access(db, cohort_id, requester_id)
    except CohortAccessDeniedError as e:
        raise HTTPException(status_code=403, detail=str(e))

    threshold = settings.SKIMMING_ALERT_THRESHOLD if threshold is None else threshold

    return engagement_service.get_skimming_alerts(db, cohort_id, threshold)
