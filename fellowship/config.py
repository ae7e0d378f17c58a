"""
Configuration management using Pydantic Settings
"""
from pydantic import field_validator
from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Database
    DATABASE_URL: str

    # Redis (analytics cache and gamification events)
    REDIS_URL: str = "redis://redis:6379/0"

    # Application
    APP_NAME: str = "Fellowship Engagement Service"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ALLOWED_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:5173"]

    # Rate limiting
    RATE_LIMIT_PER_MINUTE: int = 60
    RATE_LIMIT_PER_HOUR: int = 1000
    TELEMETRY_EVENTS_PER_MINUTE: int = 30

    # Completion gate
    VIDEO_WATCH_THRESHOLD: float = 85.0
    ARTICLE_SCROLL_THRESHOLD: float = 80.0
    MIN_ENGAGEMENT_QUALITY: float = 0.5

    # Gamification
    DEFAULT_MONTHLY_POINTS_CAP: int = 2500

    # Facilitator analytics
    ANALYTICS_CACHE_TTL: int = 300  # 5 minutes
    SKIMMING_ALERT_THRESHOLD: float = 0.5

    LOG_LEVEL: str = "INFO"

    @field_validator("LOG_LEVEL")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {value}")
        return level

    @field_validator("MIN_ENGAGEMENT_QUALITY", "SKIMMING_ALERT_THRESHOLD")
    @classmethod
    def check_unit_interval(cls, value: float) -> float:
        if not 0.0 <= value <= 1.0:
            raise ValueError("must be between 0 and 1")
        return value

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
