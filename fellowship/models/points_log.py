"""
PointsLog model - append-only ledger of credited points
"""
from sqlalchemy import Column, String, Integer, TIMESTAMP, ForeignKey, func
from sqlalchemy.dialects.postgresql import UUID
from fellowship.database import Base
import uuid


class PointsEventType:
    RESOURCE_COMPLETE = "RESOURCE_COMPLETE"
    ACHIEVEMENT_UNLOCKED = "ACHIEVEMENT_UNLOCKED"


class PointsLog(Base):
    """
    Points log table - the all-time total is the sum of this table per user
    """
    __tablename__ = "points_log"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)
    points = Column(Integer, nullable=False)
    event_type = Column(String(30), nullable=False)
    description = Column(String(255))
    created_at = Column(TIMESTAMP, server_default=func.now())

    def __repr__(self):
        return f"<PointsLog(user_id={self.user_id}, points={self.points}, event={self.event_type})>"
