"""
Cohort model - a fellowship program run with a fixed start and end date
"""
from sqlalchemy import Column, String, TIMESTAMP, ForeignKey, UniqueConstraint, func
from sqlalchemy.dialects.postgresql import UUID
from fellowship.database import Base
import uuid


class Cohort(Base):
    """
    Cohorts table - program duration drives the monthly points cap
    """
    __tablename__ = "cohorts"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(100), nullable=False)
    start_date = Column(TIMESTAMP, nullable=False)
    end_date = Column(TIMESTAMP, nullable=False)
    created_at = Column(TIMESTAMP, server_default=func.now())

    def __repr__(self):
        return f"<Cohort(id={self.id}, name={self.name})>"


class CohortFacilitator(Base):
    """
    Facilitator assignments - grants dashboard access to a cohort
    """
    __tablename__ = "cohort_facilitators"
    __table_args__ = (
        UniqueConstraint("cohort_id", "user_id", name="uq_cohort_facilitator"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    cohort_id = Column(UUID(as_uuid=True), ForeignKey("cohorts.id"), nullable=False, index=True)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)

    def __repr__(self):
        return f"<CohortFacilitator(cohort_id={self.cohort_id}, user_id={self.user_id})>"
