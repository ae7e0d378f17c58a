"""
Pydantic schemas for facilitator analytics endpoints
"""
from pydantic import BaseModel
from typing import Optional
from uuid import UUID
from datetime import datetime


class CohortStats(BaseModel):
    """Headline cohort numbers; percentages are rounded integers"""
    cohort_id: UUID
    fellow_count: int
    active_fellows: int
    avg_progress: int
    total_resources: int
    completed_resources: int
    total_discussions: int
    active_discussions: int
    avg_quiz_score: int
    attendance_rate: int


class FellowEngagement(BaseModel):
    """Per-fellow dashboard row"""
    user_id: UUID
    name: str
    email: str
    progress: int
    last_active: Optional[datetime] = None
    resources_completed: int
    total_points: int
    discussion_count: int
    quiz_avg: int
    needs_attention: bool
    attention_reason: Optional[str] = None


class ResourceCompletion(BaseModel):
    """Per-resource completion summary"""
    resource_id: UUID
    title: str
    type: str
    completion_rate: int
    avg_time_spent: int
    total_completions: int
