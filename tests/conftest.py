"""Pytest configuration and shared fixtures.

Service tests run against an in-memory SQLite database; API tests reuse the
same session through a ``get_db`` override. Redis is pointed at a closed
port so caching and event publishing degrade to no-ops.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("REDIS_URL", "redis://127.0.0.1:1/0")
os.environ.setdefault("LOG_LEVEL", "DEBUG")

from datetime import datetime  # noqa: E402
from collections.abc import Callable, Generator  # noqa: E402
from typing import Any  # noqa: E402

import pytest  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import Session, sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from fellowship.database import Base, utcnow  # noqa: E402
from fellowship.models import (  # noqa: E402
    Achievement,
    AchievementCategory,
    Cohort,
    LearningSession,
    ProgressState,
    Resource,
    ResourceProgress,
    ResourceType,
    User,
    UserRole,
)


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture
def db_session() -> Generator[Session, None, None]:
    """Provide a session bound to a fresh in-memory database."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


# =============================================================================
# Factories
# =============================================================================


@pytest.fixture
def make_cohort(db_session: Session) -> Callable[..., Cohort]:
    """Create a cohort, four months long unless told otherwise."""

    def _make(**overrides: Any) -> Cohort:
        values = {
            "name": "2026",
            "start_date": datetime(2026, 1, 1),
            "end_date": datetime(2026, 5, 1),
        }
        values.update(overrides)
        cohort = Cohort(**values)
        db_session.add(cohort)
        db_session.commit()
        return cohort

    return _make


@pytest.fixture
def make_user(db_session: Session) -> Callable[..., User]:
    """Create a user, a fellow with a 2,500 cap unless told otherwise."""
    counter = {"n": 0}

    def _make(**overrides: Any) -> User:
        counter["n"] += 1
        values = {
            "email": f"user{counter['n']}@fellowship.test",
            "first_name": "Fellow",
            "last_name": f"Number{counter['n']:02d}",
            "role": UserRole.FELLOW,
            "monthly_points_cap": 2500,
            "current_month_points": 0,
            "last_login_at": utcnow(),
        }
        values.update(overrides)
        user = User(**values)
        db_session.add(user)
        db_session.commit()
        return user

    return _make


@pytest.fixture
def make_session(db_session: Session) -> Callable[..., LearningSession]:
    """Create a cohort session."""

    def _make(cohort: Cohort, **overrides: Any) -> LearningSession:
        values = {"cohort_id": cohort.id, "title": "Session 1", "session_number": 1}
        values.update(overrides)
        session = LearningSession(**values)
        db_session.add(session)
        db_session.commit()
        return session

    return _make


@pytest.fixture
def make_resource(db_session: Session) -> Callable[..., Resource]:
    """Create a resource, a 10-minute video worth 100 points by default."""

    def _make(session: LearningSession, **overrides: Any) -> Resource:
        values = {
            "session_id": session.id,
            "title": "Intro video",
            "type": ResourceType.VIDEO,
            "estimated_minutes": 10,
            "point_value": 100,
        }
        values.update(overrides)
        resource = Resource(**values)
        db_session.add(resource)
        db_session.commit()
        return resource

    return _make


@pytest.fixture
def make_progress(db_session: Session) -> Callable[..., ResourceProgress]:
    """Create a progress row in IN_PROGRESS state."""

    def _make(user: User, resource: Resource, **overrides: Any) -> ResourceProgress:
        values = {
            "user_id": user.id,
            "resource_id": resource.id,
            "state": ProgressState.IN_PROGRESS,
        }
        values.update(overrides)
        progress = ResourceProgress(**values)
        db_session.add(progress)
        db_session.commit()
        return progress

    return _make


@pytest.fixture
def make_achievement(db_session: Session) -> Callable[..., Achievement]:
    """Create a leaderboard achievement for a total-points threshold."""

    def _make(name: str, total_points: int, point_value: int = 0, **overrides: Any) -> Achievement:
        values = {
            "name": name,
            "description": f"Earn {total_points} points",
            "category": AchievementCategory.LEADERBOARD,
            "criteria": {"totalPoints": total_points},
            "point_value": point_value,
        }
        values.update(overrides)
        achievement = Achievement(**values)
        db_session.add(achievement)
        db_session.commit()
        return achievement

    return _make


@pytest.fixture
def video_setup(make_cohort, make_user, make_session, make_resource):
    """A fellow in a cohort with one 10-minute video resource."""
    cohort = make_cohort()
    user = make_user(cohort_id=cohort.id)
    session = make_session(cohort)
    resource = make_resource(session)
    return cohort, user, session, resource
