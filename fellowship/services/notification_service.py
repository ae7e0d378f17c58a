"""
Fire-and-forget gamification events for the push/notification layer
"""
import logging
from typing import Any
from uuid import UUID

from fellowship.utils.cache import cache_service

logger = logging.getLogger(__name__)


class NotificationService:
    """Publishes events on a Redis channel; delivery happens elsewhere"""

    CHANNEL = "gamification-events"

    def notify_achievement_unlocked(self, user_id: UUID, achievement: Any) -> None:
        self._emit({
            "type": "ACHIEVEMENT_UNLOCKED",
            "user_id": str(user_id),
            "achievement_id": str(achievement.id),
            "achievement_name": achievement.name,
            "point_value": achievement.point_value
        })

    def notify_cap_reached(self, user_id: UUID, award: Any) -> None:
        self._emit({
            "type": "MONTHLY_CAP_REACHED",
            "user_id": str(user_id),
            "requested": award.requested,
            "awarded": award.awarded,
            "monthly_cap": award.monthly_cap
        })

    def _emit(self, event: dict) -> None:
        published = cache_service.publish(self.CHANNEL, event)
        logger.info(f"Event {event['type']} for user {event['user_id']} (published={published})")


# Global instance
notification_service = NotificationService()
