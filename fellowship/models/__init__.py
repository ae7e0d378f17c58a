"""
Database models package
"""
from fellowship.models.cohort import Cohort, CohortFacilitator
from fellowship.models.user import User, UserRole
from fellowship.models.session import LearningSession, Attendance
from fellowship.models.resource import Resource, ResourceType
from fellowship.models.resource_progress import ResourceProgress, ProgressState
from fellowship.models.points_log import PointsLog, PointsEventType
from fellowship.models.achievement import Achievement, AchievementCategory, UserAchievement
from fellowship.models.activity import Discussion, QuizResponse

__all__ = [
    "Cohort", "CohortFacilitator", "User", "UserRole", "LearningSession",
    "Attendance", "Resource", "ResourceType", "ResourceProgress", "ProgressState",
    "PointsLog", "PointsEventType", "Achievement", "AchievementCategory",
    "UserAchievement", "Discussion", "QuizResponse",
]
