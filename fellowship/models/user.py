"""
User model - fellows, facilitators and admins
"""
from sqlalchemy import Column, String, Integer, TIMESTAMP, ForeignKey, func
from sqlalchemy.dialects.postgresql import UUID
from fellowship.database import Base
import uuid


class UserRole:
    FELLOW = "FELLOW"
    FACILITATOR = "FACILITATOR"
    ADMIN = "ADMIN"


class User(Base):
    """
    Users table - carries the monthly points ledger counters
    """
    __tablename__ = "users"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    email = Column(String(255), unique=True, nullable=False)
    first_name = Column(String(100), nullable=False, default="")
    last_name = Column(String(100), nullable=False, default="")
    role = Column(String(20), nullable=False, default=UserRole.FELLOW)
    cohort_id = Column(UUID(as_uuid=True), ForeignKey("cohorts.id"), index=True)
    monthly_points_cap = Column(Integer)  # NULL: derived from cohort duration
    current_month_points = Column(Integer, nullable=False, default=0)
    last_point_reset = Column(TIMESTAMP)
    last_login_at = Column(TIMESTAMP)
    created_at = Column(TIMESTAMP, server_default=func.now())

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def __repr__(self):
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"
