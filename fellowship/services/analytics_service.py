"""
Facilitator analytics service for cohort dashboards
"""
import logging
from datetime import timedelta
from typing import Any, Dict, List
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from fellowship.database import utcnow
from fellowship.models import (
    Attendance,
    CohortFacilitator,
    Discussion,
    LearningSession,
    PointsLog,
    ProgressState,
    QuizResponse,
    Resource,
    ResourceProgress,
    User,
    UserRole,
)
from fellowship.services.exceptions import CohortAccessDeniedError
from fellowship.utils.cache import cache_service
from fellowship.utils.gamification import safe_percentage

logger = logging.getLogger(__name__)


class AnalyticsService:
    """Read-only rollups over fellows, resources, attendance and activity"""

    ACTIVE_WINDOW_DAYS = 7
    INACTIVE_AFTER_DAYS = 5
    PROGRESS_ATTENTION_THRESHOLD = 50

    def verify_access(self, db: Session, cohort_id: UUID, requester_id: UUID) -> None:
        """
        Allow admins and facilitators assigned to the cohort

        Raises:
            CohortAccessDeniedError: unknown requester or not assigned
        """
        requester = db.query(User).filter(User.id == requester_id).first()
        if not requester:
            raise CohortAccessDeniedError("Not authenticated")

        if requester.role == UserRole.ADMIN:
            return

        assignment = db.query(CohortFacilitator).filter(
            CohortFacilitator.cohort_id == cohort_id,
            CohortFacilitator.user_id == requester_id
        ).first()

        if not assignment:
            raise CohortAccessDeniedError("You are not assigned to this cohort")

    def _fellow_ids(self, cohort_id: UUID):
        return select(User.id).where(User.cohort_id == cohort_id, User.role == UserRole.FELLOW)

    def _resource_ids(self, cohort_id: UUID):
        return select(Resource.id).join(
            LearningSession, Resource.session_id == LearningSession.id
        ).where(LearningSession.cohort_id == cohort_id)

    def get_cohort_stats(self, db: Session, cohort_id: UUID, requester_id: UUID) -> Dict[str, Any]:
        """
        Get headline numbers for a cohort

        Args:
            db: Database session
            cohort_id: Cohort UUID
            requester_id: Facilitator or admin UUID

        Returns:
            Dictionary with counts and rounded percentages (0 when empty)
        """
        self.verify_access(db, cohort_id, requester_id)

        key = cache_service.generate_cohort_key(str(cohort_id), "stats")
        return cache_service.get_or_compute(key, lambda: self._compute_stats(db, cohort_id))

    def _compute_stats(self, db: Session, cohort_id: UUID) -> Dict[str, Any]:
        since = utcnow() - timedelta(days=self.ACTIVE_WINDOW_DAYS)
        fellow_ids = self._fellow_ids(cohort_id)
        resource_ids = self._resource_ids(cohort_id)

        fellow_query = db.query(User).filter(User.cohort_id == cohort_id, User.role == UserRole.FELLOW)
        fellow_count = fellow_query.count()
        active_fellows = fellow_query.filter(User.last_login_at >= since).count()

        total_resources = db.query(Resource).filter(Resource.id.in_(resource_ids)).count()
        completed_resources = db.query(ResourceProgress).filter(
            ResourceProgress.resource_id.in_(resource_ids),
            ResourceProgress.user_id.in_(fellow_ids),
            ResourceProgress.state == ProgressState.COMPLETED
        ).count() if total_resources else 0

        discussion_query = db.query(Discussion).filter(Discussion.cohort_id == cohort_id)
        total_discussions = discussion_query.count()
        active_discussions = discussion_query.filter(Discussion.created_at >= since).count()

        total_sessions = db.query(LearningSession).filter(LearningSession.cohort_id == cohort_id).count()
        attended = db.query(Attendance).join(
            LearningSession, Attendance.session_id == LearningSession.id
        ).filter(
            LearningSession.cohort_id == cohort_id,
            Attendance.user_id.in_(fellow_ids)
        ).count()

        avg_quiz = db.query(func.avg(QuizResponse.score)).filter(
            QuizResponse.user_id.in_(fellow_ids)
        ).scalar()

        stats = {
            "cohort_id": str(cohort_id),
            "fellow_count": fellow_count,
            "active_fellows": active_fellows,
            "avg_progress": safe_percentage(completed_resources, fellow_count * total_resources),
            "total_resources": total_resources,
            "completed_resources": completed_resources,
            "total_discussions": total_discussions,
            "active_discussions": active_discussions,
            "avg_quiz_score": round(float(avg_quiz)) if avg_quiz is not None else 0,
            "attendance_rate": safe_percentage(attended, fellow_count * total_sessions)
        }

        logger.info(f"Cohort stats computed: cohort={cohort_id}, fellows={fellow_count}")

        return stats

    def get_fellow_engagement(self, db: Session, cohort_id: UUID, requester_id: UUID) -> List[Dict[str, Any]]:
        """
        Per-fellow progress with a needs-attention flag

        A fellow needs attention when inactive for 5 days or below 50%
        progress; inactivity is reported first.
        """
        self.verify_access(db, cohort_id, requester_id)

        key = cache_service.generate_cohort_key(str(cohort_id), "fellows")
        return cache_service.get_or_compute(key, lambda: self._compute_fellow_engagement(db, cohort_id))

    def _compute_fellow_engagement(self, db: Session, cohort_id: UUID) -> List[Dict[str, Any]]:
        fellows = db.query(User).filter(
            User.cohort_id == cohort_id,
            User.role == UserRole.FELLOW
        ).order_by(User.last_name, User.first_name).all()

        if not fellows:
            return []

        resource_ids = self._resource_ids(cohort_id)
        total_resources = db.query(Resource).filter(Resource.id.in_(resource_ids)).count()
        fellow_ids = [f.id for f in fellows]

        completed = dict(db.query(ResourceProgress.user_id, func.count(ResourceProgress.id)).filter(
            ResourceProgress.user_id.in_(fellow_ids),
            ResourceProgress.resource_id.in_(resource_ids),
            ResourceProgress.state == ProgressState.COMPLETED
        ).group_by(ResourceProgress.user_id).all())

        points = dict(db.query(PointsLog.user_id, func.sum(PointsLog.points)).filter(
            PointsLog.user_id.in_(fellow_ids)
        ).group_by(PointsLog.user_id).all())

        discussions = dict(db.query(Discussion.user_id, func.count(Discussion.id)).filter(
            Discussion.user_id.in_(fellow_ids),
            Discussion.cohort_id == cohort_id
        ).group_by(Discussion.user_id).all())

        quiz_avgs = dict(db.query(QuizResponse.user_id, func.avg(QuizResponse.score)).filter(
            QuizResponse.user_id.in_(fellow_ids)
        ).group_by(QuizResponse.user_id).all())

        inactive_before = utcnow() - timedelta(days=self.INACTIVE_AFTER_DAYS)
        fellow_data = []

        for fellow in fellows:
            resources_completed = completed.get(fellow.id, 0)
            progress = safe_percentage(resources_completed, total_resources)

            last_active = fellow.last_login_at or fellow.created_at
            is_inactive = last_active is None or last_active < inactive_before

            if is_inactive:
                attention_reason = "No activity in 5 days"
            elif progress < self.PROGRESS_ATTENTION_THRESHOLD:
                attention_reason = "Below 50% progress"
            else:
                attention_reason = None

            quiz_avg = quiz_avgs.get(fellow.id)

            fellow_data.append({
                "user_id": str(fellow.id),
                "name": fellow.full_name,
                "email": fellow.email,
                "progress": progress,
                "last_active": last_active,
                "resources_completed": resources_completed,
                "total_points": int(points.get(fellow.id) or 0),
                "discussion_count": discussions.get(fellow.id, 0),
                "quiz_avg": round(float(quiz_avg)) if quiz_avg is not None else 0,
                "needs_attention": attention_reason is not None,
                "attention_reason": attention_reason
            })

        return fellow_data

    def get_resource_completions(self, db: Session, cohort_id: UUID, requester_id: UUID) -> List[Dict[str, Any]]:
        """Completion rate and average time per cohort resource"""
        self.verify_access(db, cohort_id, requester_id)

        key = cache_service.generate_cohort_key(str(cohort_id), "resources")
        return cache_service.get_or_compute(key, lambda: self._compute_resource_completions(db, cohort_id))

    def _compute_resource_completions(self, db: Session, cohort_id: UUID) -> List[Dict[str, Any]]:
        fellow_ids = self._fellow_ids(cohort_id)
        fellow_count = db.query(User).filter(User.cohort_id == cohort_id, User.role == UserRole.FELLOW).count()

        resources = db.query(Resource).join(
            LearningSession, Resource.session_id == LearningSession.id
        ).filter(LearningSession.cohort_id == cohort_id).order_by(Resource.order).all()

        if not resources:
            return []

        rows = db.query(
            ResourceProgress.resource_id,
            func.count(ResourceProgress.id),
            func.avg(ResourceProgress.time_spent)
        ).filter(
            ResourceProgress.resource_id.in_([r.id for r in resources]),
            ResourceProgress.user_id.in_(fellow_ids),
            ResourceProgress.state == ProgressState.COMPLETED
        ).group_by(ResourceProgress.resource_id).all()

        completion_map = {resource_id: (count, avg_time) for resource_id, count, avg_time in rows}

        completions = []
        for resource in resources:
            count, avg_time = completion_map.get(resource.id, (0, None))
            completions.append({
                "resource_id": str(resource.id),
                "title": resource.title,
                "type": resource.type,
                "completion_rate": safe_percentage(count, fellow_count),
                "avg_time_spent": int(avg_time or 0),
                "total_completions": count
            })

        return completions


# Global instance
analytics_service = AnalyticsService()
