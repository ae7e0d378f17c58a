"""Unit tests for gamification constants and helpers."""

from datetime import datetime

import pytest

from fellowship.utils.gamification import (
    DEFAULT_MONTHLY_CAP,
    LEADERBOARD_TIERS,
    get_cohort_duration_months,
    get_monthly_cap_for_duration,
    get_total_target_for_duration,
    is_strictly_ascending,
    safe_percentage,
)


class TestCohortDuration:
    """Tests for cohort length in calendar months."""

    def test_whole_months(self):
        assert get_cohort_duration_months(datetime(2026, 1, 1), datetime(2026, 5, 1)) == 4

    def test_across_year_boundary(self):
        assert get_cohort_duration_months(datetime(2025, 11, 15), datetime(2026, 2, 1)) == 3

    def test_minimum_one_month(self):
        assert get_cohort_duration_months(datetime(2026, 3, 1), datetime(2026, 3, 20)) == 1
        assert get_cohort_duration_months(datetime(2026, 3, 1), datetime(2026, 1, 1)) == 1


class TestCaps:
    """Tests for the duration lookup tables."""

    @pytest.mark.parametrize(
        "months,cap,target",
        [(1, 10000, 10000), (2, 11000, 22000), (3, 15000, 45000), (4, 20000, 80000), (5, 24000, 120000)],
    )
    def test_known_durations(self, months, cap, target):
        assert get_monthly_cap_for_duration(months) == cap
        assert get_total_target_for_duration(months) == target

    def test_long_cohorts_use_default(self):
        assert get_monthly_cap_for_duration(6) == DEFAULT_MONTHLY_CAP
        assert get_monthly_cap_for_duration(12) == DEFAULT_MONTHLY_CAP
        assert get_total_target_for_duration(9) == 160000


class TestHelpers:
    """Tests for percentage and tier helpers."""

    def test_safe_percentage_zero_denominator(self):
        assert safe_percentage(5, 0) == 0
        assert safe_percentage(0, 0) == 0

    def test_safe_percentage_rounds(self):
        assert safe_percentage(1, 3) == 33
        assert safe_percentage(2, 3) == 67

    def test_default_tiers_ascend(self):
        thresholds = [tier.total_points for tier in LEADERBOARD_TIERS]

        assert thresholds == [50, 150, 400, 800, 1500, 3500, 6000, 10000, 18000, 50000]
        assert is_strictly_ascending(thresholds)

    def test_ascending_check(self):
        assert is_strictly_ascending([])
        assert is_strictly_ascending([10])
        assert not is_strictly_ascending([10, 10])
        assert not is_strictly_ascending([10, 5, 20])
