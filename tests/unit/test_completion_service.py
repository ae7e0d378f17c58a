"""Unit tests for viewing, progress reporting and the completion gate."""

from types import SimpleNamespace
from uuid import uuid4

import pytest

from fellowship.database import utcnow
from fellowship.models import PointsEventType, PointsLog, ProgressState, ResourceProgress, ResourceType, UserAchievement
from fellowship.services.completion_service import completion_service
from fellowship.services.points_service import points_service
from fellowship.services.exceptions import (
    CompletionRejectedError,
    ProgressNotFoundError,
    ResourceAlreadyCompletedError,
    ResourceNotFoundError,
)


class TestRecordView:
    """Tests for first-view progress creation."""

    def test_first_view_creates_row(self, db_session, video_setup):
        _, user, _, resource = video_setup

        progress = completion_service.record_view(db_session, user.id, resource.id)

        assert progress.state == ProgressState.IN_PROGRESS
        assert progress.pause_count == 0
        assert progress.attention_span_score == pytest.approx(1.0)

    def test_repeat_view_returns_same_row(self, db_session, video_setup):
        _, user, _, resource = video_setup

        first = completion_service.record_view(db_session, user.id, resource.id)
        second = completion_service.record_view(db_session, user.id, resource.id)

        assert first.id == second.id
        assert db_session.query(ResourceProgress).count() == 1

    def test_unknown_resource(self, db_session, make_user):
        user = make_user()

        with pytest.raises(ResourceNotFoundError):
            completion_service.record_view(db_session, user.id, uuid4())


class TestUpdateProgress:
    """Tests for time and percentage reporting."""

    def test_requires_view(self, db_session, video_setup):
        _, user, _, resource = video_setup

        with pytest.raises(ProgressNotFoundError):
            completion_service.update_progress(db_session, user.id, resource.id, time_spent=30)

    def test_time_accumulates_and_percentages_only_rise(self, db_session, video_setup, make_progress):
        _, user, _, resource = video_setup
        make_progress(user, resource)

        completion_service.update_progress(db_session, user.id, resource.id, time_spent=60, watch_percentage=70)
        progress = completion_service.update_progress(
            db_session, user.id, resource.id, time_spent=45, watch_percentage=40, scroll_depth=10
        )

        assert progress.time_spent == 105
        assert progress.watch_percentage == pytest.approx(70)
        assert progress.scroll_depth == pytest.approx(10)


class TestEvaluateCompletion:
    """Tests for the gate criteria."""

    def snapshot(self, watch=100.0, scroll=100.0):
        return SimpleNamespace(watch_percentage=watch, scroll_depth=scroll)

    def test_video_passes(self):
        resource = SimpleNamespace(type=ResourceType.VIDEO)

        assert completion_service.evaluate_completion(self.snapshot(watch=85), resource, 0.5) == []

    def test_video_lists_every_unmet_criterion(self):
        resource = SimpleNamespace(type=ResourceType.VIDEO)

        unmet = completion_service.evaluate_completion(self.snapshot(watch=84.9), resource, 0.3)

        assert len(unmet) == 2
        assert unmet[0].startswith("Watch at least 85%")
        assert unmet[1].startswith("Engagement quality must be at least 50%")

    def test_article_uses_scroll_depth(self):
        resource = SimpleNamespace(type=ResourceType.ARTICLE)

        assert completion_service.evaluate_completion(self.snapshot(watch=0, scroll=80), resource, 1.0) == []
        unmet = completion_service.evaluate_completion(self.snapshot(watch=100, scroll=79), resource, 1.0)
        assert len(unmet) == 1
        assert unmet[0].startswith("Read at least 80%")

    def test_ungated_types_always_pass(self):
        resource = SimpleNamespace(type=ResourceType.EXERCISE)

        assert completion_service.evaluate_completion(self.snapshot(watch=0, scroll=0), resource, 0.0) == []


class TestCompleteResource:
    """Tests for the full completion flow."""

    def test_successful_completion_awards_points(self, db_session, video_setup, make_progress):
        _, user, _, resource = video_setup
        make_progress(user, resource, watch_percentage=90)

        result = completion_service.complete_resource(db_session, user.id, resource.id)

        assert result["state"] == ProgressState.COMPLETED
        assert result["points_awarded"] == 100
        assert result["capped"] is False
        assert result["completed_at"] is not None
        assert db_session.query(PointsLog).filter(PointsLog.user_id == user.id).count() == 1

    def test_rejection_lists_criteria_and_awards_nothing(self, db_session, video_setup, make_progress):
        _, user, _, resource = video_setup
        progress = make_progress(user, resource, watch_percentage=50, playback_speed=2.6)

        with pytest.raises(CompletionRejectedError) as exc_info:
            completion_service.complete_resource(db_session, user.id, resource.id)

        assert len(exc_info.value.unmet_criteria) == 2
        db_session.refresh(progress)
        assert progress.state == ProgressState.IN_PROGRESS
        assert progress.engagement_quality == pytest.approx(0.3)
        assert db_session.query(PointsLog).count() == 0

    def test_capped_completion_still_succeeds(self, db_session, video_setup, make_progress):
        _, user, _, resource = video_setup
        user.current_month_points = 2450
        user.last_point_reset = utcnow()
        db_session.commit()
        make_progress(user, resource, watch_percentage=100)

        result = completion_service.complete_resource(db_session, user.id, resource.id)

        assert result["points_requested"] == 100
        assert result["points_awarded"] == 50
        assert result["capped"] is True

    def test_cap_holds_across_completion_and_bonus(self, db_session, video_setup, make_progress, make_achievement):
        _, user, _, resource = video_setup
        db_session.add(PointsLog(user_id=user.id, points=2450, event_type=PointsEventType.RESOURCE_COMPLETE))
        user.current_month_points = 2450
        user.last_point_reset = utcnow()
        db_session.commit()
        make_achievement("Big", 2500, point_value=1000)
        make_progress(user, resource, watch_percentage=100)

        result = completion_service.complete_resource(db_session, user.id, resource.id)

        assert result["points_awarded"] == 50
        assert [a["name"] for a in result["achievements_unlocked"]] == ["Big"]
        db_session.refresh(user)
        assert user.current_month_points == 2500
        assert points_service.get_total_points(db_session, user.id) == 2500

    def test_completion_unlocks_achievements(self, db_session, video_setup, make_progress, make_achievement):
        _, user, _, resource = video_setup
        make_achievement("Point Starter", 50, point_value=15)
        make_progress(user, resource, watch_percentage=100)

        result = completion_service.complete_resource(db_session, user.id, resource.id)

        assert [a["name"] for a in result["achievements_unlocked"]] == ["Point Starter"]
        assert db_session.query(UserAchievement).count() == 1

    def test_second_completion_refused(self, db_session, video_setup, make_progress):
        _, user, _, resource = video_setup
        make_progress(user, resource, watch_percentage=100)
        completion_service.complete_resource(db_session, user.id, resource.id)

        with pytest.raises(ResourceAlreadyCompletedError):
            completion_service.complete_resource(db_session, user.id, resource.id)

        assert db_session.query(PointsLog).count() == 1

    def test_requires_view(self, db_session, video_setup):
        _, user, _, resource = video_setup

        with pytest.raises(ProgressNotFoundError):
            completion_service.complete_resource(db_session, user.id, resource.id)
