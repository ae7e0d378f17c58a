"""
Resource model - static learning material metadata
"""
from sqlalchemy import Column, String, Integer, Boolean, ForeignKey
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from fellowship.database import Base
import uuid


class ResourceType:
    VIDEO = "VIDEO"
    ARTICLE = "ARTICLE"
    DOCUMENT = "DOCUMENT"
    EXERCISE = "EXERCISE"


class Resource(Base):
    """
    Resources table - read-only input to engagement scoring and completion
    """
    __tablename__ = "resources"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    session_id = Column(UUID(as_uuid=True), ForeignKey("sessions.id"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    type = Column(String(20), nullable=False, default=ResourceType.ARTICLE)
    estimated_minutes = Column(Integer)  # NULL falls back to 10 minutes
    point_value = Column(Integer, nullable=False, default=0)
    is_core = Column(Boolean, nullable=False, default=True)
    order = Column(Integer, nullable=False, default=0)

    session = relationship("LearningSession")

    def __repr__(self):
        return f"<Resource(id={self.id}, title={self.title}, type={self.type})>"
