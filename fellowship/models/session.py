"""
Session and attendance models - scheduled cohort sessions and check-ins
"""
from sqlalchemy import Column, String, Integer, TIMESTAMP, ForeignKey, UniqueConstraint, func
from sqlalchemy.dialects.postgresql import UUID
from fellowship.database import Base
import uuid


class LearningSession(Base):
    """
    Sessions table - a cohort meeting that resources hang off
    """
    __tablename__ = "sessions"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    cohort_id = Column(UUID(as_uuid=True), ForeignKey("cohorts.id"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    session_number = Column(Integer)
    scheduled_at = Column(TIMESTAMP)

    def __repr__(self):
        return f"<LearningSession(id={self.id}, title={self.title})>"


class Attendance(Base):
    """
    Attendance table - one check-in row per user per session
    """
    __tablename__ = "attendance"
    __table_args__ = (
        UniqueConstraint("session_id", "user_id", name="uq_attendance_session_user"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    session_id = Column(UUID(as_uuid=True), ForeignKey("sessions.id"), nullable=False, index=True)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)
    checked_in_at = Column(TIMESTAMP, server_default=func.now())

    def __repr__(self):
        return f"<Attendance(session_id={self.session_id}, user_id={self.user_id})>"
