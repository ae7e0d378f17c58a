"""
Achievement models - threshold unlock rules and unlocked records
"""
from sqlalchemy import Column, String, Integer, JSON, TIMESTAMP, ForeignKey, UniqueConstraint, func
from sqlalchemy.dialects.postgresql import UUID, JSONB
from sqlalchemy.orm import relationship
from fellowship.database import Base
import uuid


class AchievementCategory:
    MILESTONE = "MILESTONE"
    SOCIAL = "SOCIAL"
    STREAK = "STREAK"
    LEADERBOARD = "LEADERBOARD"


class Achievement(Base):
    """
    Achievements table - criteria JSON such as {"totalPoints": 150}
    """
    __tablename__ = "achievements"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(100), unique=True, nullable=False)
    description = Column(String(255))
    category = Column(String(20), nullable=False, default=AchievementCategory.MILESTONE)
    criteria = Column(JSON().with_variant(JSONB(), "postgresql"), nullable=False)
    point_value = Column(Integer, nullable=False, default=0)

    def __repr__(self):
        return f"<Achievement(name={self.name}, category={self.category})>"


class UserAchievement(Base):
    """
    User achievements table - one row per unlock, never revoked
    """
    __tablename__ = "user_achievements"
    __table_args__ = (
        UniqueConstraint("user_id", "achievement_id", name="uq_user_achievement"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)
    achievement_id = Column(UUID(as_uuid=True), ForeignKey("achievements.id"), nullable=False)
    unlocked_at = Column(TIMESTAMP, server_default=func.now())

    achievement = relationship("Achievement")

    def __repr__(self):
        return f"<UserAchievement(user_id={self.user_id}, achievement_id={self.achievement_id})>"
