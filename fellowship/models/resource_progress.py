"""
ResourceProgress model - per-user-per-resource engagement snapshot
"""
from sqlalchemy import Column, String, Integer, Float, TIMESTAMP, ForeignKey, UniqueConstraint, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from fellowship.database import Base
import uuid


class ProgressState:
    LOCKED = "LOCKED"
    UNLOCKED = "UNLOCKED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"


class ResourceProgress(Base):
    """
    Resource progress table - telemetry counters and completion state

    pause_count and seek_count only ever grow; engagement_quality is only
    written with the scorer's output.
    """
    __tablename__ = "resource_progress"
    __table_args__ = (
        UniqueConstraint("user_id", "resource_id", name="uq_progress_user_resource"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)
    resource_id = Column(UUID(as_uuid=True), ForeignKey("resources.id"), nullable=False, index=True)
    state = Column(String(20), nullable=False, default=ProgressState.IN_PROGRESS)
    playback_speed = Column(Float, nullable=False, default=1.0)
    pause_count = Column(Integer, nullable=False, default=0)
    seek_count = Column(Integer, nullable=False, default=0)
    attention_span_score = Column(Float, nullable=False, default=1.0)
    engagement_quality = Column(Float, nullable=False, default=1.0)
    watch_percentage = Column(Float, nullable=False, default=0.0)  # 0.00 to 100.00
    scroll_depth = Column(Float, nullable=False, default=0.0)  # 0.00 to 100.00
    time_spent = Column(Integer, nullable=False, default=0)  # seconds
    completed_at = Column(TIMESTAMP)
    created_at = Column(TIMESTAMP, server_default=func.now())
    updated_at = Column(TIMESTAMP, server_default=func.now())

    resource = relationship("Resource")
    user = relationship("User")

    def __repr__(self):
        return f"<ResourceProgress(user_id={self.user_id}, resource_id={self.resource_id}, state={self.state})>"
