"""
Pydantic schemas for resource viewing and engagement telemetry
"""
from pydantic import BaseModel, Field
from typing import List, Optional
from uuid import UUID
from datetime import datetime


class ViewRequest(BaseModel):
    """First view of a resource"""
    user_id: UUID


class ProgressUpdate(BaseModel):
    """Schema for reporting viewing progress"""
    user_id: UUID
    time_spent: Optional[int] = Field(None, ge=0, description="Seconds since the last report")
    watch_percentage: Optional[float] = Field(None, ge=0.0, le=100.0, description="Video watched percentage")
    scroll_depth: Optional[float] = Field(None, ge=0.0, le=100.0, description="Article scroll percentage")


class EngagementUpdate(BaseModel):
    """
    Periodic telemetry report

    pause_count and seek_count are deltas since the previous report.
    """
    user_id: UUID
    playback_speed: Optional[float] = Field(None, gt=0.0, le=16.0, description="Current playback speed")
    pause_count: Optional[int] = Field(None, ge=0, description="Pauses since last report")
    seek_count: Optional[int] = Field(None, ge=0, description="Seeks since last report")
    attention_score: Optional[float] = Field(None, ge=0.0, le=1.0, description="Attention check score")


class ProgressResponse(BaseModel):
    """Current progress snapshot"""
    user_id: UUID
    resource_id: UUID
    state: str
    playback_speed: float
    pause_count: int
    seek_count: int
    attention_span_score: float
    engagement_quality: float
    watch_percentage: float
    scroll_depth: float
    time_spent: int
    completed_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class EngagementQualityResponse(BaseModel):
    """Freshly scored engagement quality"""
    user_id: UUID
    resource_id: UUID
    engagement_quality: float


class FlaggedResource(BaseModel):
    """Resource with suspicious viewing behaviour"""
    resource_id: UUID
    resource_title: str
    issues: List[str]


class EngagementReport(BaseModel):
    """User-level engagement summary"""
    user_id: UUID
    total_resources: int
    completed: int
    average_playback_speed: float
    total_pauses: int
    total_seeks: int
    average_attention_score: float
    average_engagement_quality: float
    flagged_resources: List[FlaggedResource]
    recommendations: List[str]


class SkimmingAlert(BaseModel):
    """Low engagement progress row for facilitator review"""
    user_id: UUID
    user_name: str
    user_email: str
    resource_id: UUID
    resource_title: str
    resource_type: str
    engagement_quality: float
    playback_speed: float
    pause_count: int
    seek_count: int
    attention_score: float
    watch_percentage: float
    time_spent: int
    severity: str
