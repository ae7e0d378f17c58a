"""
Sliding-window rate limiting for API requests and engagement telemetry
"""
import time
from collections import defaultdict
from fastapi import Request, HTTPException
from typing import Dict, List, Tuple
import logging

from fellowship.config import settings

logger = logging.getLogger(__name__)


class RateLimiter:
    """
    In-memory sliding-window limiter keyed by client id

    Windows are checked shortest first. State is per process; a
    multi-worker deployment needs a shared store.
    """

    def __init__(self, requests_per_minute: int = 60, requests_per_hour: int = 1000, name: str = "api"):
        self.name = name
        self.requests_per_minute = requests_per_minute
        self.requests_per_hour = requests_per_hour
        self.hits: Dict[str, List[float]] = defaultdict(list)

    def _windows(self) -> Tuple[Tuple[int, int, str], ...]:
        return (
            (60, self.requests_per_minute, "minute"),
            (3600, self.requests_per_hour, "hour"),
        )

    def _client_id(self, request: Request) -> str:
        if hasattr(request.state, "user_id"):
            return str(request.state.user_id)
        return request.client.host if request.client else "unknown"

    def hit(self, client_id: str) -> None:
        """
        Count one request for a client

        Raises:
            HTTPException: 429 when any window is full; the request is not counted
        """
        now = time.time()
        # Hour is the longest window; older stamps never matter again
        history = [ts for ts in self.hits[client_id] if ts > now - 3600]

        for window_seconds, limit, label in self._windows():
            in_window = sum(1 for ts in history if ts > now - window_seconds)
            if in_window >= limit:
                self.hits[client_id] = history
                logger.warning(f"Rate limit exceeded ({self.name}, {label}): {client_id}")
                raise HTTPException(
                    status_code=429,
                    detail={
                        "error": "rate_limit_exceeded",
                        "message": f"Too many requests. Limit: {limit} requests per {label}",
                        "retry_after": window_seconds
                    }
                )

        history.append(now)
        self.hits[client_id] = history

    async def check_rate_limit(self, request: Request) -> None:
        self.hit(self._client_id(request))

    def reset(self) -> None:
        self.hits.clear()


rate_limiter = RateLimiter(
    requests_per_minute=settings.RATE_LIMIT_PER_MINUTE,
    requests_per_hour=settings.RATE_LIMIT_PER_HOUR
)

# Clients report telemetry on a timer per open resource; limited per user
telemetry_limiter = RateLimiter(
    requests_per_minute=settings.TELEMETRY_EVENTS_PER_MINUTE,
    requests_per_hour=settings.TELEMETRY_EVENTS_PER_MINUTE * 60,
    name="telemetry"
)
