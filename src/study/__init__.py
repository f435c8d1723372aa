"""
Study Module for the B1 grammar coach.

Provides:
- SM-2 vocabulary scheduling and due-item selection
- Exam readiness scoring and daily goals
- Practice, vocabulary and placement services over the database
"""

from src.study.readiness import (
    DailyGoal,
    ReadinessScore,
    ReadinessScorer,
    TopicProgress,
    TopicScore,
    TopicWithProgress,
    calculate_daily_goal,
    calculate_readiness_score,
)
from src.study.spaced_repetition import (
    ReviewResult,
    ReviewState,
    SpacedRepetitionScheduler,
    is_due,
    review_forecast,
    schedule_review,
    select_due,
)

__all__ = [
    "SpacedRepetitionScheduler",
    "ReviewState",
    "ReviewResult",
    "schedule_review",
    "is_due",
    "select_due",
    "review_forecast",
    "ReadinessScorer",
    "ReadinessScore",
    "TopicProgress",
    "TopicScore",
    "TopicWithProgress",
    "calculate_readiness_score",
    "DailyGoal",
    "calculate_daily_goal",
]
