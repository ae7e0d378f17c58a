"""
Resource completion service
View registration, progress reporting and the engagement completion gate
"""
import logging
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import case, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from fellowship.config import settings
from fellowship.database import utcnow
from fellowship.models import PointsEventType, ProgressState, Resource, ResourceProgress, ResourceType
from fellowship.services.achievement_service import achievement_service
from fellowship.services.engagement_service import engagement_service
from fellowship.services.exceptions import (
    CompletionRejectedError,
    ProgressNotFoundError,
    ResourceAlreadyCompletedError,
    ResourceNotFoundError,
)
from fellowship.services.notification_service import notification_service
from fellowship.services.points_service import points_service
from fellowship.utils.cache import cache_service

logger = logging.getLogger(__name__)


class CompletionService:
    """
    Service for gating resource completion on genuine engagement

    Gate (every unmet criterion is reported):
    - Video: watch percentage >= VIDEO_WATCH_THRESHOLD (85%)
    - Article: scroll depth >= ARTICLE_SCROLL_THRESHOLD (80%)
    - Video/Article: engagement quality >= MIN_ENGAGEMENT_QUALITY (0.5)
    Other resource types pass unconditionally.
    """

    GATED_TYPES = (ResourceType.VIDEO, ResourceType.ARTICLE)

    def get_resource(self, db: Session, resource_id: UUID) -> Resource:
        resource = db.query(Resource).filter(Resource.id == resource_id).first()
        if not resource:
            raise ResourceNotFoundError(f"Resource {resource_id} not found")
        return resource

    def record_view(self, db: Session, user_id: UUID, resource_id: UUID) -> ResourceProgress:
        """
        Create the progress row on a user's first view of a resource

        Repeat views return the existing row unchanged.
        """
        self.get_resource(db, resource_id)

        progress = db.query(ResourceProgress).filter(
            ResourceProgress.user_id == user_id,
            ResourceProgress.resource_id == resource_id
        ).first()

        if progress:
            return progress

        progress = ResourceProgress(
            user_id=user_id,
            resource_id=resource_id,
            state=ProgressState.IN_PROGRESS
        )
        db.add(progress)

        try:
            db.commit()
        except IntegrityError:
            # A concurrent first view created the row
            db.rollback()
            return engagement_service.get_progress(db, user_id, resource_id)

        db.refresh(progress)
        logger.info(f"Resource viewed: user={user_id}, resource={resource_id}")

        return progress

    def update_progress(
        self,
        db: Session,
        user_id: UUID,
        resource_id: UUID,
        time_spent: Optional[int] = None,
        watch_percentage: Optional[float] = None,
        scroll_depth: Optional[float] = None
    ) -> ResourceProgress:
        """
        Record viewing progress

        time_spent is a delta in seconds; percentages only ever move up.
        """
        progress = engagement_service.get_progress(db, user_id, resource_id)

        values: Dict[str, Any] = {"updated_at": utcnow()}
        if time_spent is not None:
            values["time_spent"] = ResourceProgress.time_spent + time_spent
        if watch_percentage is not None:
            values["watch_percentage"] = case(
                (ResourceProgress.watch_percentage < watch_percentage, watch_percentage),
                else_=ResourceProgress.watch_percentage
            )
        if scroll_depth is not None:
            values["scroll_depth"] = case(
                (ResourceProgress.scroll_depth < scroll_depth, scroll_depth),
                else_=ResourceProgress.scroll_depth
            )

        db.execute(
            update(ResourceProgress)
            .where(ResourceProgress.id == progress.id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        db.commit()
        db.refresh(progress)

        return progress

    def evaluate_completion(
        self,
        progress: Any,
        resource: Any,
        engagement_quality: float
    ) -> List[str]:
        """
        List the completion criteria a progress snapshot fails

        Returns:
            Unmet criteria messages; empty when completion is allowed
        """
        unmet = []

        if resource.type == ResourceType.VIDEO and progress.watch_percentage < settings.VIDEO_WATCH_THRESHOLD:
            unmet.append(
                f"Watch at least {settings.VIDEO_WATCH_THRESHOLD:.0f}% of the video "
                f"(currently {progress.watch_percentage:.0f}%)"
            )

        if resource.type == ResourceType.ARTICLE and progress.scroll_depth < settings.ARTICLE_SCROLL_THRESHOLD:
            unmet.append(
                f"Read at least {settings.ARTICLE_SCROLL_THRESHOLD:.0f}% of the article "
                f"(currently {progress.scroll_depth:.0f}%)"
            )

        if resource.type in self.GATED_TYPES and engagement_quality < settings.MIN_ENGAGEMENT_QUALITY:
            unmet.append(
                f"Engagement quality must be at least {settings.MIN_ENGAGEMENT_QUALITY * 100:.0f}% "
                f"(currently {engagement_quality * 100:.0f}%)"
            )

        return unmet

    def complete_resource(self, db: Session, user_id: UUID, resource_id: UUID) -> Dict[str, Any]:
        """
        Mark a resource complete, credit its points and check achievements

        Raises:
            ResourceNotFoundError: unknown resource
            ProgressNotFoundError: resource never viewed
            ResourceAlreadyCompletedError: completion already credited
            CompletionRejectedError: engagement thresholds not met
        """
        resource = self.get_resource(db, resource_id)

        progress = db.query(ResourceProgress).filter(
            ResourceProgress.user_id == user_id,
            ResourceProgress.resource_id == resource_id
        ).with_for_update().first()

        if not progress:
            raise ProgressNotFoundError(
                f"Progress record not found for user {user_id} and resource {resource_id}"
            )

        if progress.state == ProgressState.COMPLETED:
            raise ResourceAlreadyCompletedError(f"Resource {resource_id} already completed")

        quality = engagement_service.refresh_quality(db, progress, resource)
        unmet = self.evaluate_completion(progress, resource, quality)

        if unmet:
            db.commit()
            logger.info(f"Completion rejected: user={user_id}, resource={resource_id}, unmet={unmet}")
            raise CompletionRejectedError(unmet)

        progress.state = ProgressState.COMPLETED
        progress.completed_at = utcnow()

        award = points_service.award_points(
            db,
            user_id,
            resource.point_value,
            PointsEventType.RESOURCE_COMPLETE,
            f"Completed: {resource.title}"
        )

        unlocked = achievement_service.check_and_award_achievements(db, user_id)

        db.commit()

        logger.info(
            f"Resource completed: user={user_id}, resource={resource_id}, "
            f"points={award.awarded}/{award.requested}, capped={award.capped}, "
            f"achievements={len(unlocked)}"
        )

        cache_service.clear_cohort_cache(str(resource.session.cohort_id))

        if award.capped:
            notification_service.notify_cap_reached(user_id, award)
        for achievement in unlocked:
            notification_service.notify_achievement_unlocked(user_id, achievement)

        return {
            "resource_id": str(resource_id),
            "state": progress.state,
            "completed_at": progress.completed_at,
            "engagement_quality": round(quality, 4),
            "points_requested": award.requested,
            "points_awarded": award.awarded,
            "capped": award.capped,
            "achievements_unlocked": [
                {"id": str(a.id), "name": a.name, "point_value": a.point_value}
                for a in unlocked
            ]
        }


# Global instance
completion_service = CompletionService()
