"""
Pydantic schemas for resource completion
"""
from pydantic import BaseModel
from typing import List, Optional
from uuid import UUID
from datetime import datetime


class CompletionRequest(BaseModel):
    """Completion attempt"""
    user_id: UUID


class UnlockedAchievement(BaseModel):
    """Achievement unlocked as a side effect of a completion"""
    id: UUID
    name: str
    point_value: int


class CompletionResponse(BaseModel):
    """
    Successful completion

    capped is true when the award was cut to the remaining monthly headroom.
    """
    resource_id: UUID
    state: str
    completed_at: Optional[datetime] = None
    engagement_quality: float
    points_requested: int
    points_awarded: int
    capped: bool
    achievements_unlocked: List[UnlockedAchievement]
