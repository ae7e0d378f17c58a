"""
Achievement unlocking service
Threshold rules evaluated against a user's cumulative stats
"""
import json
import logging
from typing import Any, Dict, List, Optional, Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session, joinedload

from fellowship.models import (
    Achievement,
    AchievementCategory,
    Discussion,
    PointsEventType,
    ProgressState,
    QuizResponse,
    ResourceProgress,
    User,
    UserAchievement,
    UserRole,
)
from fellowship.services.exceptions import AdminRequiredError, InvalidTierConfigurationError
from fellowship.services.points_service import points_service
from fellowship.utils.gamification import LEADERBOARD_TIERS, LeaderboardTier, is_strictly_ascending

logger = logging.getLogger(__name__)


class AchievementService:
    """
    Service for evaluating and unlocking achievements

    Criteria keys (all present keys must be met):
    - totalPoints: all-time points total
    - resourceCount: completed resources
    - quizCount: passed quizzes
    - quizPerfectScore: at least one 100% quiz
    - discussionCount: discussion posts

    Unlocks are permanent and never re-awarded. The bonus point value is
    credited once per unlock through the capped ledger, so it may be cut
    short or dropped when the month is already full.
    """

    PERFECT_QUIZ_SCORE = 100

    def verify_admin(self, db: Session, requester_id: UUID) -> None:
        """
        Tier seeding and rebalancing rewrite every user's cap; admins only

        Raises:
            AdminRequiredError: unknown requester or not an admin
        """
        requester = db.query(User).filter(User.id == requester_id).first()
        if not requester or requester.role != UserRole.ADMIN:
            logger.warning(f"Achievement administration refused for {requester_id}")
            raise AdminRequiredError("Only admins can administer achievements")

    def check_and_award_achievements(self, db: Session, user_id: UUID) -> List[Achievement]:
        """
        Unlock every not-yet-unlocked achievement whose criteria are met

        Changes are flushed; the caller owns the commit.

        Returns:
            Newly unlocked achievements (empty on repeat calls)
        """
        unlocked_ids = select(UserAchievement.achievement_id).where(
            UserAchievement.user_id == user_id
        )

        available = db.query(Achievement).filter(
            Achievement.id.not_in(unlocked_ids)
        ).order_by(Achievement.name).all()

        if not available:
            return []

        stats = self._get_user_stats(db, user_id)
        awarded = []

        for achievement in available:
            criteria = self._parse_criteria(achievement)
            if criteria is None:
                continue

            if not self._criteria_met(criteria, stats):
                continue

            db.add(UserAchievement(user_id=user_id, achievement_id=achievement.id))

            # The unlock stands even when the cap leaves no room for the bonus
            if achievement.point_value:
                points_service.award_points(
                    db,
                    user_id,
                    achievement.point_value,
                    PointsEventType.ACHIEVEMENT_UNLOCKED,
                    f"Achievement unlocked: {achievement.name}"
                )

            awarded.append(achievement)
            logger.info(f"Achievement unlocked: user={user_id}, achievement={achievement.name}")

        db.flush()

        return awarded

    def _get_user_stats(self, db: Session, user_id: UUID) -> Dict[str, int]:
        return {
            "total_points": points_service.get_total_points(db, user_id),
            "resource_count": db.query(ResourceProgress).filter(
                ResourceProgress.user_id == user_id,
                ResourceProgress.state == ProgressState.COMPLETED
            ).count(),
            "quiz_count": db.query(QuizResponse).filter(
                QuizResponse.user_id == user_id,
                QuizResponse.passed.is_(True)
            ).count(),
            "perfect_quizzes": db.query(QuizResponse).filter(
                QuizResponse.user_id == user_id,
                QuizResponse.score == self.PERFECT_QUIZ_SCORE
            ).count(),
            "discussion_count": db.query(Discussion).filter(
                Discussion.user_id == user_id
            ).count(),
        }

    def _parse_criteria(self, achievement: Achievement) -> Optional[Dict[str, Any]]:
        criteria = achievement.criteria

        if isinstance(criteria, str):
            try:
                criteria = json.loads(criteria)
            except ValueError:
                logger.error(f"Failed to parse achievement criteria: {achievement.id}")
                return None

        if not isinstance(criteria, dict) or not criteria:
            logger.warning(f"Achievement {achievement.name} has no usable criteria")
            return None

        return criteria

    def _criteria_met(self, criteria: Dict[str, Any], stats: Dict[str, int]) -> bool:
        for key, expected in criteria.items():
            if key == "totalPoints":
                met = stats["total_points"] >= expected
            elif key == "resourceCount":
                met = stats["resource_count"] >= expected
            elif key == "quizCount":
                met = stats["quiz_count"] >= expected
            elif key == "quizPerfectScore":
                met = not expected or stats["perfect_quizzes"] >= 1
            elif key == "discussionCount":
                met = stats["discussion_count"] >= expected
            else:
                logger.warning(f"Unknown achievement criterion: {key}")
                met = False

            if not met:
                return False

        return True

    def get_user_achievements(self, db: Session, user_id: UUID) -> List[UserAchievement]:
        return db.query(UserAchievement).options(
            joinedload(UserAchievement.achievement)
        ).filter(
            UserAchievement.user_id == user_id
        ).order_by(UserAchievement.unlocked_at.desc()).all()

    def get_all_achievements(self, db: Session) -> List[Achievement]:
        return db.query(Achievement).order_by(Achievement.point_value.desc()).all()

    def seed_leaderboard_achievements(
        self,
        db: Session,
        tiers: Sequence[LeaderboardTier] = LEADERBOARD_TIERS
    ) -> int:
        """Create any missing leaderboard tier achievements, returns count created"""
        self._validate_tiers(tiers)

        existing = {name for (name,) in db.query(Achievement.name).all()}
        created = 0

        for tier in tiers:
            if tier.name in existing:
                continue
            db.add(Achievement(
                name=tier.name,
                description=tier.description,
                category=AchievementCategory.LEADERBOARD,
                criteria={"totalPoints": tier.total_points},
                point_value=tier.point_value
            ))
            created += 1

        db.commit()
        logger.info(f"Seeded {created} leaderboard achievements")

        return created

    def rebalance_achievements(
        self,
        db: Session,
        tiers: Sequence[LeaderboardTier] = LEADERBOARD_TIERS,
        monthly_cap: int = 2500
    ) -> Dict[str, Any]:
        """
        Raise monthly caps and rewrite leaderboard thresholds

        Existing unlocks are preserved; only explicit user caps below
        monthly_cap are raised.

        Returns:
            Dictionary with users_updated, achievements_updated and
            missing achievement names
        """
        self._validate_tiers(tiers)

        users_updated = db.query(User).filter(
            User.monthly_points_cap < monthly_cap
        ).update({User.monthly_points_cap: monthly_cap}, synchronize_session=False)
        logger.info(f"Raised monthly_points_cap to {monthly_cap} for {users_updated} user(s)")

        updated = 0
        missing = []
        for tier in tiers:
            achievement = db.query(Achievement).filter(Achievement.name == tier.name).first()
            if not achievement:
                logger.warning(f"Achievement not found: {tier.name} - skipping")
                missing.append(tier.name)
                continue

            achievement.description = tier.description
            achievement.criteria = {"totalPoints": tier.total_points}
            updated += 1

        db.commit()
        logger.info(f"Updated {updated} leaderboard achievement thresholds")

        return {
            "users_updated": users_updated,
            "achievements_updated": updated,
            "missing": missing
        }

    def _validate_tiers(self, tiers: Sequence[LeaderboardTier]) -> None:
        if not is_strictly_ascending([tier.total_points for tier in tiers]):
            raise InvalidTierConfigurationError("Tier thresholds must be strictly ascending")


# Global instance
achievement_service = AchievementService()
