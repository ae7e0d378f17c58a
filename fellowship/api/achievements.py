"""
Achievement catalogue and threshold administration endpoints
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List
from uuid import UUID
import logging

from fellowship.database import get_db
from fellowship.schemas.gamification import AchievementResponse, RebalanceRequest, RebalanceResponse
from fellowship.services.achievement_service import achievement_service
from fellowship.services.exceptions import AdminRequiredError, InvalidTierConfigurationError
from fellowship.utils.gamification import LEADERBOARD_TIERS, LeaderboardTier

router = APIRouter(prefix="/api/achievements", tags=["achievements"])
logger = logging.getLogger(__name__)


@router.get("", response_model=List[AchievementResponse])
async def list_achievements(db: Session = Depends(get_db)):
    """All achievements, highest bonus first"""
    return achievement_service.get_all_achievements(db)


@router.post("/seed", status_code=201)
async def seed_achievements(
    requester_id: UUID,
    db: Session = Depends(get_db)
):
    """Create any missing leaderboard tiers (admins only)"""
    try:
        achievement_service.verify_admin(db, requester_id)
    except AdminRequiredError as e:
        raise HTTPException(status_code=403, detail=str(e))

    created = achievement_service.seed_leaderboard_achievements(db)
    return {"created": created}


@router.post("/rebalance", response_model=RebalanceResponse)
async def rebalance_achievements(
    request: RebalanceRequest,
    requester_id: UUID,
    db: Session = Depends(get_db)
):
    """
    Raise monthly caps and rewrite leaderboard thresholds

    Admins only. Existing unlocks are kept. Tiers must be strictly ascending.
    """
    try:
        achievement_service.verify_admin(db, requester_id)
    except AdminRequiredError as e:
        raise HTTPException(status_code=403, detail=str(e))

    if request.tiers is None:
        tiers = LEADERBOARD_TIERS
    else:
        tiers = [
            LeaderboardTier(t.name, t.total_points, t.point_value, t.description)
            for t in request.tiers
        ]

    try:
        result = achievement_service.rebalance_achievements(db, tiers, request.monthly_cap)
    except InvalidTierConfigurationError as e:
        raise HTTPException(status_code=422, detail=str(e))

    logger.info(f"Rebalance complete: {result}")

    return RebalanceResponse(**result)
