"""Unit tests for facilitator analytics rollups."""

from datetime import timedelta

import pytest

from fellowship.database import utcnow
from fellowship.models import (
    Attendance,
    CohortFacilitator,
    Discussion,
    PointsEventType,
    PointsLog,
    ProgressState,
    QuizResponse,
    UserRole,
)
from fellowship.services.analytics_service import analytics_service
from fellowship.services.exceptions import CohortAccessDeniedError
from uuid import uuid4


@pytest.fixture
def admin(make_user):
    return make_user(role=UserRole.ADMIN, first_name="Ada", last_name="Admin")


@pytest.fixture
def populated_cohort(db_session, make_cohort, make_user, make_session, make_resource, make_progress):
    """Two fellows, two resources, one session; one completion, one check-in."""
    cohort = make_cohort()
    active = make_user(cohort_id=cohort.id, first_name="Amy", last_name="Active")
    idle = make_user(cohort_id=cohort.id, first_name="Ian", last_name="Idle", last_login_at=utcnow() - timedelta(days=10))
    session = make_session(cohort)
    video = make_resource(session, title="Video", order=1)
    article = make_resource(session, title="Article", type="ARTICLE", order=2)

    make_progress(active, video, state=ProgressState.COMPLETED, time_spent=600)
    make_progress(idle, article)
    db_session.add_all([
        Attendance(session_id=session.id, user_id=active.id),
        Discussion(cohort_id=cohort.id, user_id=active.id, title="Week 1"),
        QuizResponse(user_id=active.id, quiz_id=uuid4(), score=80, passed=True),
        QuizResponse(user_id=idle.id, quiz_id=uuid4(), score=55, passed=False),
        PointsLog(user_id=active.id, points=120, event_type=PointsEventType.RESOURCE_COMPLETE),
    ])
    db_session.commit()
    return cohort, active, idle, video, article


class TestAccess:
    """Tests for facilitator access checks."""

    def test_unknown_requester(self, db_session, make_cohort):
        cohort = make_cohort()

        with pytest.raises(CohortAccessDeniedError):
            analytics_service.get_cohort_stats(db_session, cohort.id, uuid4())

    def test_unassigned_facilitator(self, db_session, make_cohort, make_user):
        cohort = make_cohort()
        facilitator = make_user(role=UserRole.FACILITATOR)

        with pytest.raises(CohortAccessDeniedError):
            analytics_service.get_fellow_engagement(db_session, cohort.id, facilitator.id)

    def test_assigned_facilitator(self, db_session, make_cohort, make_user):
        cohort = make_cohort()
        facilitator = make_user(role=UserRole.FACILITATOR)
        db_session.add(CohortFacilitator(cohort_id=cohort.id, user_id=facilitator.id))
        db_session.commit()

        analytics_service.verify_access(db_session, cohort.id, facilitator.id)


class TestCohortStats:
    """Tests for headline cohort numbers."""

    def test_empty_cohort_has_zero_rates(self, db_session, make_cohort, admin):
        cohort = make_cohort()

        stats = analytics_service.get_cohort_stats(db_session, cohort.id, admin.id)

        assert stats["fellow_count"] == 0
        assert stats["avg_progress"] == 0
        assert stats["attendance_rate"] == 0
        assert stats["avg_quiz_score"] == 0

    def test_fellows_without_resources(self, db_session, make_cohort, make_user, admin):
        cohort = make_cohort()
        make_user(cohort_id=cohort.id)

        stats = analytics_service.get_cohort_stats(db_session, cohort.id, admin.id)

        assert stats["fellow_count"] == 1
        assert stats["total_resources"] == 0
        assert stats["avg_progress"] == 0

    def test_populated_cohort(self, db_session, populated_cohort, admin):
        cohort = populated_cohort[0]

        stats = analytics_service.get_cohort_stats(db_session, cohort.id, admin.id)

        assert stats["fellow_count"] == 2
        assert stats["active_fellows"] == 1
        assert stats["total_resources"] == 2
        assert stats["completed_resources"] == 1
        assert stats["avg_progress"] == 25
        assert stats["attendance_rate"] == 50
        assert stats["total_discussions"] == 1
        assert stats["active_discussions"] == 1
        assert stats["avg_quiz_score"] == 68


class TestFellowEngagement:
    """Tests for per-fellow rows."""

    def test_rows_and_attention_flags(self, db_session, populated_cohort, admin):
        cohort = populated_cohort[0]

        rows = analytics_service.get_fellow_engagement(db_session, cohort.id, admin.id)

        assert [r["name"] for r in rows] == ["Amy Active", "Ian Idle"]
        amy, ian = rows
        assert amy["progress"] == 50
        assert amy["resources_completed"] == 1
        assert amy["total_points"] == 120
        assert amy["discussion_count"] == 1
        assert amy["quiz_avg"] == 80
        assert amy["needs_attention"] is False
        assert amy["attention_reason"] is None
        assert ian["progress"] == 0
        assert ian["needs_attention"] is True
        assert ian["attention_reason"] == "No activity in 5 days"

    def test_low_progress_reason(self, db_session, make_cohort, make_user, make_session, make_resource, admin):
        cohort = make_cohort()
        make_user(cohort_id=cohort.id)
        make_resource(make_session(cohort))

        rows = analytics_service.get_fellow_engagement(db_session, cohort.id, admin.id)

        assert rows[0]["attention_reason"] == "Below 50% progress"

    def test_empty_cohort(self, db_session, make_cohort, admin):
        cohort = make_cohort()

        assert analytics_service.get_fellow_engagement(db_session, cohort.id, admin.id) == []


class TestResourceCompletions:
    """Tests for per-resource completion rates."""

    def test_rates_in_resource_order(self, db_session, populated_cohort, admin):
        cohort = populated_cohort[0]

        rows = analytics_service.get_resource_completions(db_session, cohort.id, admin.id)

        assert [r["title"] for r in rows] == ["Video", "Article"]
        assert rows[0]["completion_rate"] == 50
        assert rows[0]["avg_time_spent"] == 600
        assert rows[0]["total_completions"] == 1
        assert rows[1]["completion_rate"] == 0
        assert rows[1]["avg_time_spent"] == 0
