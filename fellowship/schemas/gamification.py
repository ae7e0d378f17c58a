"""
Pydantic schemas for points and achievements
"""
from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional
from uuid import UUID
from datetime import datetime


class PointsSummary(BaseModel):
    """All-time total and this month's standing"""
    user_id: UUID
    total_points: int
    current_month_points: int
    monthly_points_cap: int
    remaining_this_month: int
    cohort_total_target: Optional[int] = None


class AchievementResponse(BaseModel):
    """Achievement definition"""
    id: UUID
    name: str
    description: Optional[str] = None
    category: str
    criteria: Dict[str, Any]
    point_value: int

    class Config:
        from_attributes = True


class UserAchievementResponse(BaseModel):
    """Unlocked achievement"""
    achievement: AchievementResponse
    unlocked_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class TierConfig(BaseModel):
    """Leaderboard tier threshold"""
    name: str = Field(..., max_length=100)
    total_points: int = Field(..., gt=0)
    point_value: int = Field(0, ge=0)
    description: str = Field(..., max_length=255)


class RebalanceRequest(BaseModel):
    """Cap raise and threshold rewrite; defaults to the standard tiers"""
    monthly_cap: int = Field(2500, gt=0)
    tiers: Optional[List[TierConfig]] = None


class RebalanceResponse(BaseModel):
    """Rebalance outcome"""
    users_updated: int
    achievements_updated: int
    missing: List[str]
