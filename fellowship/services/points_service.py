"""
Points ledger with monthly cap enforcement
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from fellowship.config import settings
from fellowship.database import utcnow
from fellowship.models import Cohort, PointsLog, User
from fellowship.services.exceptions import UserNotFoundError
from fellowship.utils.gamification import (
    get_cohort_duration_months,
    get_monthly_cap_for_duration,
    get_total_target_for_duration,
)

logger = logging.getLogger(__name__)


@dataclass
class PointsAward:
    """Outcome of a crediting attempt; capped awards are not errors"""
    requested: int
    awarded: int
    capped: bool
    month_total: int
    monthly_cap: int


class PointsService:
    """
    Service for crediting gamification points

    Rules:
    - current_month_points resets when the last reset was in another
      calendar month
    - An award is truncated to the remaining monthly headroom, down to zero
    - Only credited points are written to the points log
    """

    def resolve_monthly_cap(self, db: Session, user: User) -> int:
        """
        Monthly cap for a user

        Explicit user cap first, then the cohort-duration table, then the
        configured default.
        """
        if user.monthly_points_cap is not None:
            return user.monthly_points_cap

        if user.cohort_id:
            cohort = db.query(Cohort).filter(Cohort.id == user.cohort_id).first()
            if cohort:
                months = get_cohort_duration_months(cohort.start_date, cohort.end_date)
                return get_monthly_cap_for_duration(months)

        return settings.DEFAULT_MONTHLY_POINTS_CAP

    def _needs_reset(self, user: User, now) -> bool:
        last_reset = user.last_point_reset
        return (
            last_reset is None
            or last_reset.month != now.month
            or last_reset.year != now.year
        )

    def award_points(
        self,
        db: Session,
        user_id: UUID,
        points: int,
        event_type: str,
        description: str
    ) -> PointsAward:
        """
        Credit points to a user without exceeding the monthly cap

        The user row is locked for the read-modify-write. Changes are
        flushed; the caller owns the commit.

        Args:
            db: Database session
            user_id: User UUID
            points: Requested points
            event_type: PointsEventType value
            description: Human-readable reason

        Returns:
            PointsAward with the credited amount and capped flag
        """
        user = db.query(User).filter(User.id == user_id).with_for_update().first()
        if not user:
            raise UserNotFoundError(f"User {user_id} not found")

        now = utcnow()
        needs_reset = self._needs_reset(user, now)
        current = 0 if needs_reset else user.current_month_points

        cap = self.resolve_monthly_cap(db, user)
        requested = max(points, 0)
        headroom = max(cap - current, 0)
        awarded = min(requested, headroom)

        user.current_month_points = current + awarded
        if needs_reset:
            user.last_point_reset = now

        if awarded > 0:
            db.add(PointsLog(
                user_id=user_id,
                points=awarded,
                event_type=event_type,
                description=description
            ))

        db.flush()

        award = PointsAward(
            requested=requested,
            awarded=awarded,
            capped=awarded < requested,
            month_total=user.current_month_points,
            monthly_cap=cap
        )

        if award.capped:
            logger.warning(
                f"Monthly cap reached: user={user_id}, requested={requested}, "
                f"awarded={awarded}, cap={cap}"
            )
        else:
            logger.info(f"Points awarded: user={user_id}, points={awarded}, event={event_type}")

        return award

    def get_total_points(self, db: Session, user_id: UUID) -> int:
        """All-time points total from the ledger"""
        total = db.query(func.coalesce(func.sum(PointsLog.points), 0)).filter(
            PointsLog.user_id == user_id
        ).scalar()
        return int(total or 0)

    def get_points_summary(self, db: Session, user_id: UUID) -> Dict[str, Any]:
        """All-time total plus this month's standing against the cap"""
        user = db.query(User).filter(User.id == user_id).first()
        if not user:
            raise UserNotFoundError(f"User {user_id} not found")

        month_total = 0 if self._needs_reset(user, utcnow()) else user.current_month_points
        cap = self.resolve_monthly_cap(db, user)

        summary = {
            "user_id": str(user_id),
            "total_points": self.get_total_points(db, user_id),
            "current_month_points": month_total,
            "monthly_points_cap": cap,
            "remaining_this_month": max(cap - month_total, 0),
            "cohort_total_target": None
        }

        if user.cohort_id:
            cohort = db.query(Cohort).filter(Cohort.id == user.cohort_id).first()
            if cohort:
                months = get_cohort_duration_months(cohort.start_date, cohort.end_date)
                summary["cohort_total_target"] = get_total_target_for_duration(months)

        return summary


# Global instance
points_service = PointsService()
