"""
Learning Path Builder.

Turns a completed set of placement assessments into a prioritized,
session-estimated remediation plan:
- Band order first (A1 before A2 before B1), heavier topics first within a band
- Mastered topics are skipped
- Effort estimate from the topic's confidence score
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum

from src.core.mastery import MasteryLevel, TopicAssessment
from src.core.topics import GrammarTopic, sort_by_band_then_weight

DEFAULT_TARGET_MASTERY = 0.80


class PathStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    SKIPPED = "skipped"


@dataclass
class LearningPathItem:
    """One topic's slot in a learner's remediation plan."""

    topic_id: int
    priority: int
    status: PathStatus = PathStatus.PENDING
    estimated_sessions: int = 5
    completed_sessions: int = 0
    target_mastery: float = DEFAULT_TARGET_MASTERY

    @property
    def remaining_sessions(self) -> int:
        if self.status == PathStatus.COMPLETED:
            return 0
        return max(0, self.estimated_sessions - self.completed_sessions)

    def to_dict(self) -> dict[str, object]:
        return {
            "topic_id": self.topic_id,
            "priority": self.priority,
            "status": self.status.value,
            "estimated_sessions": self.estimated_sessions,
            "completed_sessions": self.completed_sessions,
            "target_mastery": self.target_mastery,
        }


def estimate_effort(assessment: TopicAssessment | None) -> tuple[PathStatus, int]:
    """
    Status and estimated sessions from a topic's confidence.

    >= 0.75 review only, >= 0.50 some practice, >= 0.25 significant work,
    below that (or never assessed) learn from scratch.
    """
    if assessment is None:
        return PathStatus.PENDING, 5

    score = assessment.confidence_score
    if score >= 0.75:
        return PathStatus.PENDING, 1
    if score >= 0.50:
        return PathStatus.IN_PROGRESS, 2
    if score >= 0.25:
        return PathStatus.IN_PROGRESS, 4
    return PathStatus.PENDING, 5


class LearningPathBuilder:
    """Builds a fresh learning path at the end of each placement."""

    def __init__(self, target_mastery: float = DEFAULT_TARGET_MASTERY):
        self.target_mastery = target_mastery

    def build(
        self,
        assessments: list[TopicAssessment],
        topics: list[GrammarTopic],
    ) -> list[LearningPathItem]:
        """
        Generate a personalized learning path.

        Args:
            assessments: Placement results (topics without one count as unassessed)
            topics: Full topic catalog

        Returns:
            Items ordered by ascending priority, starting at 1
        """
        by_topic = {a.topic_id: a for a in assessments}
        path: list[LearningPathItem] = []
        priority = 1

        for topic in sort_by_band_then_weight(topics):
            assessment = by_topic.get(topic.id)
            if assessment is not None and assessment.mastery_level == MasteryLevel.MASTERED:
                continue

            status, sessions = estimate_effort(assessment)
            path.append(
                LearningPathItem(
                    topic_id=topic.id,
                    priority=priority,
                    status=status,
                    estimated_sessions=sessions,
                    completed_sessions=0,
                    target_mastery=self.target_mastery,
                )
            )
            priority += 1

        return path


def generate_learning_path(
    assessments: list[TopicAssessment],
    topics: list[GrammarTopic],
) -> list[LearningPathItem]:
    """Module-level shortcut using the default target mastery."""
    return LearningPathBuilder().build(assessments, topics)


@dataclass(frozen=True)
class PathEstimate:
    days: int
    sessions: int


def estimate_time_to_b1(path: list[LearningPathItem], daily_minutes: int) -> PathEstimate:
    """Remaining sessions and practice days, assuming one session per 5 minutes."""
    total_sessions = sum(item.remaining_sessions for item in path)
    sessions_per_day = max(1, daily_minutes // 5)
    return PathEstimate(days=math.ceil(total_sessions / sessions_per_day), sessions=total_sessions)
