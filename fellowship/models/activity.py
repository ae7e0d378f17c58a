"""
Discussion and quiz response models - read by analytics and achievements
"""
from sqlalchemy import Column, String, Integer, Boolean, TIMESTAMP, ForeignKey, func
from sqlalchemy.dialects.postgresql import UUID
from fellowship.database import Base
import uuid


class Discussion(Base):
    """
    Discussions table - posts on a cohort discussion board
    """
    __tablename__ = "discussions"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    cohort_id = Column(UUID(as_uuid=True), ForeignKey("cohorts.id"), index=True)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    created_at = Column(TIMESTAMP, server_default=func.now())

    def __repr__(self):
        return f"<Discussion(id={self.id}, user_id={self.user_id})>"


class QuizResponse(Base):
    """
    Quiz responses table - a user's graded attempt, score 0-100
    """
    __tablename__ = "quiz_responses"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)
    quiz_id = Column(UUID(as_uuid=True), nullable=False, index=True)
    score = Column(Integer, nullable=False, default=0)
    passed = Column(Boolean, nullable=False, default=False)
    completed_at = Column(TIMESTAMP, server_default=func.now())

    def __repr__(self):
        return f"<QuizResponse(user_id={self.user_id}, quiz_id={self.quiz_id}, score={self.score})>"
