"""
Per-user engagement, points and achievement endpoints
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List, Optional
from uuid import UUID
import logging

from fellowship.database import get_db
from fellowship.schemas.engagement import EngagementReport
from fellowship.schemas.gamification import PointsSummary, UserAchievementResponse
from fellowship.services.achievement_service import achievement_service
from fellowship.services.engagement_service import engagement_service
from fellowship.services.exceptions import UserNotFoundError
from fellowship.services.points_service import points_service

router = APIRouter(prefix="/api/users", tags=["users"])
logger = logging.getLogger(__name__)


@router.get("/{user_id}/engagement-report", response_model=EngagementReport)
async def get_engagement_report(
    user_id: UUID,
    session_id: Optional[UUID] = None,
    db: Session = Depends(get_db)
):
    """
    Get a user's viewing behaviour summary

    Returns:
    - Completed and tracked resource counts
    - Video speed, attention and quality averages
    - Flagged resources with issues
    - Study recommendations
    """
    logger.info(f"Building engagement report for user {user_id}")

    return EngagementReport(**engagement_service.generate_engagement_report(db, user_id, session_id))


@router.get("/{user_id}/points", response_model=PointsSummary)
async def get_points(
    user_id: UUID,
    db: Session = Depends(get_db)
):
    """All-time points and this month's standing against the cap"""
    try:
        return PointsSummary(**points_service.get_points_summary(db, user_id))
    except UserNotFoundError:
        raise HTTPException(status_code=404, detail="User not found")


@router.get("/{user_id}/achievements", response_model=List[UserAchievementResponse])
async def get_user_achievements(
    user_id: UUID,
    db: Session = Depends(get_db)
):
    """Unlocked achievements, newest first"""
    return achievement_service.get_user_achievements(db, user_id)
