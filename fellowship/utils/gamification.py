"""
Cohort-duration-aware gamification constants

Monthly cap and total target by cohort length:
  1 month  -> 10,000/mo cap  (10,000 total)
  2 months -> 11,000/mo cap  (22,000 total)
  3 months -> 15,000/mo cap  (45,000 total)
  4 months -> 20,000/mo cap  (80,000 total)
  5 months -> 24,000/mo cap  (120,000 total)
  6+ months-> 26,667/mo cap  (160,000 total)
"""
from datetime import datetime
from typing import Dict, List, NamedTuple

MONTHLY_CAP_BY_MONTHS: Dict[int, int] = {
    1: 10000,
    2: 11000,
    3: 15000,
    4: 20000,
    5: 24000,
}

TOTAL_TARGET_BY_MONTHS: Dict[int, int] = {
    1: 10000,
    2: 22000,
    3: 45000,
    4: 80000,
    5: 120000,
}

DEFAULT_MONTHLY_CAP = 26667  # round(160_000 / 6)
DEFAULT_TOTAL_TARGET = 160000


class LeaderboardTier(NamedTuple):
    name: str
    total_points: int
    point_value: int
    description: str


# One tier per stage of a 6-month program at 2,500 pts/month
LEADERBOARD_TIERS: List[LeaderboardTier] = [
    LeaderboardTier("Point Starter", 50, 15, "Earn 50 points"),
    LeaderboardTier("Point Collector", 150, 25, "Earn 150 points"),
    LeaderboardTier("Point Accumulator", 400, 50, "Earn 400 points"),
    LeaderboardTier("Point Hoarder", 800, 75, "Earn 800 points"),
    LeaderboardTier("Point Enthusiast", 1500, 100, "Earn 1,500 points"),
    LeaderboardTier("Point Expert", 3500, 150, "Earn 3,500 points"),
    LeaderboardTier("Point Legend", 6000, 200, "Earn 6,000 points"),
    LeaderboardTier("Point Elite", 10000, 300, "Earn 10,000 points"),
    LeaderboardTier("Living Legend", 18000, 500, "Earn 18,000 points"),
    LeaderboardTier("The GOAT", 50000, 1000, "Earn 50,000 points, the greatest of all time"),
]


def get_cohort_duration_months(start: datetime, end: datetime) -> int:
    """
    Whole calendar months from start to end, at least 1

    Jan 1 -> May 1 is 4 months.
    """
    months = (end.year - start.year) * 12 + (end.month - start.month)
    return max(1, months)


def get_monthly_cap_for_duration(months: int) -> int:
    return MONTHLY_CAP_BY_MONTHS.get(months, DEFAULT_MONTHLY_CAP)


def get_total_target_for_duration(months: int) -> int:
    return TOTAL_TARGET_BY_MONTHS.get(months, DEFAULT_TOTAL_TARGET)


def is_strictly_ascending(thresholds: List[int]) -> bool:
    return all(a < b for a, b in zip(thresholds, thresholds[1:]))


def safe_percentage(numerator: float, denominator: float) -> int:
    """Rounded percentage, 0 when the denominator is 0"""
    if not denominator:
        return 0
    return round(numerator / denominator * 100)
