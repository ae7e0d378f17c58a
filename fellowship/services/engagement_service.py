"""
Engagement tracking and quality scoring service
Penalty-chain heuristic for separating genuine attention from skimming
"""
import logging
import math
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.orm import Session, joinedload

from fellowship.database import utcnow
from fellowship.models import (
    ProgressState, Resource, ResourceProgress, ResourceType, User
)
from fellowship.services.exceptions import ProgressNotFoundError

logger = logging.getLogger(__name__)


class EngagementService:
    """
    Service for engagement telemetry and quality scoring

    Algorithm: multiplicative penalties starting from 1.0
    - Playback speed (video only): most severe band wins
      > 2.5x -> 0.3, > 2.0x -> 0.5, > 1.5x -> 0.7
    - Pausing: more than 3x the expected pauses (1 per 5 minutes) -> 0.8
    - Seeking: more than 3x the expected seeks (2) -> 0.7
    - Attention span score multiplies in last
    Result clamped to [0, 1]
    """

    # (threshold, multiplier) from most to least severe
    SPEED_PENALTY_BANDS = (
        (2.5, 0.3),
        (2.0, 0.5),
        (1.5, 0.7),
    )

    DEFAULT_ESTIMATED_MINUTES = 10
    MINUTES_PER_EXPECTED_PAUSE = 5
    EXPECTED_SEEKS = 2
    EXCESS_FACTOR = 3
    PAUSE_PENALTY = 0.8
    SEEK_PENALTY = 0.7

    # Report flagging limits
    FLAG_SPEED = 2.0
    FLAG_PAUSES = 20
    FLAG_SEEKS = 10
    FLAG_ATTENTION = 0.5
    FLAG_QUALITY = 0.5

    MAX_ALERTS = 50

    def score(self, progress: Any, resource: Any) -> float:
        """
        Calculate engagement quality for a progress snapshot

        Args:
            progress: Object with playback_speed, pause_count, seek_count,
                attention_span_score
            resource: Object with type and estimated_minutes

        Returns:
            Quality score between 0.0 and 1.0
        """
        quality = 1.0

        if resource.type == ResourceType.VIDEO:
            quality *= self._speed_multiplier(progress.playback_speed)

        estimated_minutes = resource.estimated_minutes or self.DEFAULT_ESTIMATED_MINUTES
        expected_pauses = math.ceil(estimated_minutes / self.MINUTES_PER_EXPECTED_PAUSE)
        if progress.pause_count > expected_pauses * self.EXCESS_FACTOR:
            quality *= self.PAUSE_PENALTY

        if progress.seek_count > self.EXPECTED_SEEKS * self.EXCESS_FACTOR:
            quality *= self.SEEK_PENALTY

        quality *= progress.attention_span_score

        return max(0.0, min(1.0, quality))

    def _speed_multiplier(self, playback_speed: float) -> float:
        for threshold, multiplier in self.SPEED_PENALTY_BANDS:
            if playback_speed > threshold:
                return multiplier
        return 1.0

    def get_progress(self, db: Session, user_id: UUID, resource_id: UUID) -> ResourceProgress:
        """Load a progress row or raise ProgressNotFoundError"""
        progress = db.query(ResourceProgress).filter(
            ResourceProgress.user_id == user_id,
            ResourceProgress.resource_id == resource_id
        ).first()

        if not progress:
            raise ProgressNotFoundError(
                f"Progress record not found for user {user_id} and resource {resource_id}"
            )

        return progress

    def track_engagement(
        self,
        db: Session,
        user_id: UUID,
        resource_id: UUID,
        playback_speed: Optional[float] = None,
        pause_count: Optional[int] = None,
        seek_count: Optional[int] = None,
        attention_score: Optional[float] = None
    ) -> ResourceProgress:
        """
        Apply a telemetry report to an existing progress row

        Speed and attention overwrite; pause and seek counts are deltas
        added in a single UPDATE so concurrent reports never lose increments.

        Raises:
            ProgressNotFoundError: no view has been recorded yet
        """
        progress = self.get_progress(db, user_id, resource_id)

        values: Dict[str, Any] = {"updated_at": utcnow()}
        if playback_speed is not None:
            values["playback_speed"] = playback_speed
        if attention_score is not None:
            values["attention_span_score"] = attention_score
        if pause_count is not None:
            values["pause_count"] = ResourceProgress.pause_count + pause_count
        if seek_count is not None:
            values["seek_count"] = ResourceProgress.seek_count + seek_count

        db.execute(
            update(ResourceProgress)
            .where(ResourceProgress.id == progress.id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        db.commit()
        db.refresh(progress)

        logger.debug(
            f"Engagement tracked: user={user_id}, resource={resource_id}, "
            f"speed={progress.playback_speed}, pauses={progress.pause_count}, "
            f"seeks={progress.seek_count}, attention={progress.attention_span_score}"
        )

        return progress

    def refresh_quality(self, db: Session, progress: ResourceProgress, resource: Resource) -> float:
        """Recompute the stored engagement quality from the current counters"""
        quality = self.score(progress, resource)
        progress.engagement_quality = quality
        db.flush()
        return quality

    def calculate_engagement_quality(self, db: Session, user_id: UUID, resource_id: UUID) -> float:
        """
        Score a user's engagement with a resource and persist the result

        Returns 0.0 when the user has never viewed the resource.
        """
        progress = db.query(ResourceProgress).options(
            joinedload(ResourceProgress.resource)
        ).filter(
            ResourceProgress.user_id == user_id,
            ResourceProgress.resource_id == resource_id
        ).first()

        if not progress:
            return 0.0

        quality = self.refresh_quality(db, progress, progress.resource)
        db.commit()

        logger.info(f"Engagement quality: user={user_id}, resource={resource_id}, quality={quality:.2f}")

        return quality

    def generate_engagement_report(
        self,
        db: Session,
        user_id: UUID,
        session_id: Optional[UUID] = None
    ) -> Dict[str, Any]:
        """
        Summarize a user's viewing behaviour with flags and recommendations

        Args:
            db: Database session
            user_id: User UUID
            session_id: Restrict to resources of one session

        Returns:
            Dictionary with totals, video averages, flagged resources and
            recommendations
        """
        query = db.query(ResourceProgress).join(
            Resource, ResourceProgress.resource_id == Resource.id
        ).options(
            joinedload(ResourceProgress.resource)
        ).filter(ResourceProgress.user_id == user_id)

        if session_id:
            query = query.filter(Resource.session_id == session_id)

        records = query.all()

        report: Dict[str, Any] = {
            "user_id": str(user_id),
            "total_resources": len(records),
            "completed": sum(1 for p in records if p.state == ProgressState.COMPLETED),
            "average_playback_speed": 0.0,
            "total_pauses": 0,
            "total_seeks": 0,
            "average_attention_score": 0.0,
            "average_engagement_quality": 0.0,
            "flagged_resources": [],
            "recommendations": []
        }

        if not records:
            return report

        qualities = {p.id: self.score(p, p.resource) for p in records}

        videos = [p for p in records if p.resource.type == ResourceType.VIDEO]
        if videos:
            count = len(videos)
            report["average_playback_speed"] = round(sum(p.playback_speed for p in videos) / count, 2)
            report["total_pauses"] = sum(p.pause_count for p in videos)
            report["total_seeks"] = sum(p.seek_count for p in videos)
            report["average_attention_score"] = round(sum(p.attention_span_score for p in videos) / count, 2)
            report["average_engagement_quality"] = round(sum(qualities[p.id] for p in videos) / count, 2)

        for progress in records:
            issues = self._flag_issues(progress, qualities[progress.id])
            if issues:
                report["flagged_resources"].append({
                    "resource_id": str(progress.resource.id),
                    "resource_title": progress.resource.title,
                    "issues": issues
                })

        report["recommendations"] = self._generate_recommendations(report, has_videos=bool(videos))

        return report

    def _flag_issues(self, progress: ResourceProgress, quality: float) -> List[str]:
        issues = []

        if progress.playback_speed > self.FLAG_SPEED:
            issues.append(f"High playback speed: {progress.playback_speed:.1f}x")

        if progress.pause_count > self.FLAG_PAUSES:
            issues.append(f"Excessive pauses: {progress.pause_count}")

        if progress.seek_count > self.FLAG_SEEKS:
            issues.append(f"Excessive seeking: {progress.seek_count}")

        if progress.attention_span_score < self.FLAG_ATTENTION:
            issues.append(f"Low attention: {progress.attention_span_score * 100:.0f}%")

        if quality < self.FLAG_QUALITY:
            issues.append(f"Low engagement quality: {quality * 100:.0f}%")

        return issues

    def _generate_recommendations(self, report: Dict[str, Any], has_videos: bool) -> List[str]:
        recommendations = []
        total = report["total_resources"]

        if has_videos and report["average_playback_speed"] > 1.5:
            recommendations.append("Consider watching videos at normal speed to improve retention.")

        if has_videos and report["average_attention_score"] < 0.6:
            recommendations.append("Try to minimize distractions while watching videos.")

        if total and report["total_pauses"] / total > 15:
            recommendations.append("Frequent pausing may indicate distraction. Consider dedicated study time.")

        if total and report["total_seeks"] / total > 8:
            recommendations.append("Excessive seeking may reduce learning effectiveness. Watch content sequentially.")

        return recommendations

    def get_skimming_alerts(
        self,
        db: Session,
        cohort_id: Optional[UUID] = None,
        threshold: float = 0.5
    ) -> List[Dict[str, Any]]:
        """
        List unlocked progress rows whose engagement quality is below threshold

        Quality is rescored from the live counters, lowest first, capped at 50.
        """
        query = db.query(ResourceProgress).join(
            Resource, ResourceProgress.resource_id == Resource.id
        ).join(
            User, ResourceProgress.user_id == User.id
        ).options(
            joinedload(ResourceProgress.resource),
            joinedload(ResourceProgress.user)
        ).filter(ResourceProgress.state != ProgressState.LOCKED)

        if cohort_id:
            query = query.filter(User.cohort_id == cohort_id)

        scored = []
        for progress in query.all():
            quality = self.score(progress, progress.resource)
            if quality < threshold:
                scored.append((quality, progress))

        scored.sort(key=lambda item: item[0])

        return [self._build_alert(progress, quality) for quality, progress in scored[:self.MAX_ALERTS]]

    def _build_alert(self, progress: ResourceProgress, quality: float) -> Dict[str, Any]:
        if quality < 0.3:
            severity = "HIGH"
        elif quality < 0.5:
            severity = "MEDIUM"
        else:
            severity = "LOW"

        return {
            "user_id": str(progress.user.id),
            "user_name": progress.user.full_name,
            "user_email": progress.user.email,
            "resource_id": str(progress.resource.id),
            "resource_title": progress.resource.title,
            "resource_type": progress.resource.type,
            "engagement_quality": round(quality, 4),
            "playback_speed": progress.playback_speed,
            "pause_count": progress.pause_count,
            "seek_count": progress.seek_count,
            "attention_score": progress.attention_span_score,
            "watch_percentage": progress.watch_percentage,
            "time_spent": progress.time_spent,
            "severity": severity
        }


# Global instance
engagement_service = EngagementService()
