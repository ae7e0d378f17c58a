"""
Domain exceptions raised by services and translated to HTTP errors by routers
"""
from typing import List


class EngagementServiceError(Exception):
    """Base exception for engagement and gamification service errors."""

    pass


class ResourceNotFoundError(EngagementServiceError):
    """Raised when a resource does not exist."""

    pass


class ProgressNotFoundError(EngagementServiceError):
    """Raised when no progress row exists for a user/resource pair."""

    pass


class UserNotFoundError(EngagementServiceError):
    """Raised when a user does not exist."""

    pass


class CohortAccessDeniedError(EngagementServiceError):
    """Raised when a requester may not read a cohort's analytics."""

    pass


class AdminRequiredError(EngagementServiceError):
    """Raised when a non-admin calls an achievement administration operation."""

    pass


class ResourceAlreadyCompletedError(EngagementServiceError):
    """Raised when completion is attempted on a completed resource."""

    pass


class InvalidTierConfigurationError(EngagementServiceError):
    """Raised when achievement tiers are not strictly ascending."""

    pass


class CompletionRejectedError(EngagementServiceError):
    """Raised when a completion attempt misses engagement thresholds."""

    def __init__(self, unmet_criteria: List[str]):
        self.unmet_criteria = unmet_criteria
        super().__init__("; ".join(unmet_criteria))
