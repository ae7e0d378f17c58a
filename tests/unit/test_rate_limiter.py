"""Unit tests for the sliding-window rate limiter."""

import pytest
from fastapi import HTTPException

from fellowship.utils.rate_limiter import RateLimiter


class TestRateLimiter:
    def test_minute_limit(self):
        limiter = RateLimiter(requests_per_minute=2, requests_per_hour=10)

        limiter.hit("a")
        limiter.hit("a")
        with pytest.raises(HTTPException) as exc_info:
            limiter.hit("a")

        assert exc_info.value.status_code == 429
        assert exc_info.value.detail["retry_after"] == 60

    def test_hour_limit(self):
        limiter = RateLimiter(requests_per_minute=10, requests_per_hour=1)

        limiter.hit("a")
        with pytest.raises(HTTPException) as exc_info:
            limiter.hit("a")

        assert exc_info.value.detail["retry_after"] == 3600

    def test_clients_are_independent(self):
        limiter = RateLimiter(requests_per_minute=1)

        limiter.hit("a")
        limiter.hit("b")

    def test_rejected_requests_are_not_counted(self):
        limiter = RateLimiter(requests_per_minute=1, requests_per_hour=10)
        limiter.hit("a")
        for _ in range(3):
            with pytest.raises(HTTPException):
                limiter.hit("a")

        assert len(limiter.hits["a"]) == 1

    def test_reset(self):
        limiter = RateLimiter(requests_per_minute=1)
        limiter.hit("a")

        limiter.reset()

        limiter.hit("a")
