"""
Core Mastery Module.

Converts raw (correct, total) tallies into a mastery category and a
confidence score. Used by the placement flow, the learning path builder and
the knowledge map.

Design:
- MasteryLevel: Enum for categorizing success rates
- TopicAssessment: Placement result for one topic
- mastery_level / confidence: pure scoring functions
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from src.core.errors import InvalidInput
from src.core.rounding import round_half_up


class MasteryLevel(str, Enum):
    """
    Mastery level categorization.

    Ordered from least to most competent; ``rank`` exposes that order.
    """

    NOT_ASSESSED = "not_assessed"  # no questions asked
    NOT_LEARNED = "not_learned"  # < 50%
    LEARNING = "learning"  # 50-74%
    PRACTICED = "practiced"  # 75-89%
    MASTERED = "mastered"  # 90-100%

    @classmethod
    def from_rate(cls, rate: float) -> MasteryLevel:
        """
        Convert a 0-1 success rate to a level.

        Args:
            rate: Fraction of questions answered correctly

        Returns:
            Corresponding MasteryLevel (never NOT_ASSESSED)
        """
        if rate >= MASTERED_THRESHOLD:
            return cls.MASTERED
        elif rate >= PRACTICED_THRESHOLD:
            return cls.PRACTICED
        elif rate >= LEARNING_THRESHOLD:
            return cls.LEARNING
        else:
            return cls.NOT_LEARNED

    @property
    def rank(self) -> int:
        return list(MasteryLevel).index(self)

    @property
    def display_name(self) -> str:
        """Human-readable name."""
        return self.value.replace("_", " ").title()

    @property
    def color(self) -> str:
        """Rich color for CLI display."""
        return {
            MasteryLevel.NOT_ASSESSED: "dim",
            MasteryLevel.NOT_LEARNED: "red",
            MasteryLevel.LEARNING: "yellow",
            MasteryLevel.PRACTICED: "cyan",
            MasteryLevel.MASTERED: "green",
        }[self]


MASTERED_THRESHOLD = 0.90
PRACTICED_THRESHOLD = 0.75
LEARNING_THRESHOLD = 0.50


def validate_counts(correct: int, total: int) -> None:
    """Reject tallies that break 0 <= correct <= total."""
    if total < 0 or correct < 0:
        raise InvalidInput(f"Counts must be non-negative (correct={correct}, total={total})")
    if correct > total:
        raise InvalidInput(f"correct ({correct}) cannot exceed total ({total})")


def mastery_level(correct: int, total: int) -> MasteryLevel:
    """Categorize a topic tally. Zero questions means not assessed."""
    validate_counts(correct, total)
    if total == 0:
        return MasteryLevel.NOT_ASSESSED
    return MasteryLevel.from_rate(correct / total)


def confidence(correct: int, total: int) -> float:
    """Success rate rounded half-up to two decimals, 0 when nothing was asked."""
    validate_counts(correct, total)
    if total == 0:
        return 0.0
    return round_half_up(correct / total, 2)


@dataclass
class TopicAssessment:
    """
    One learner's placement result for one topic.

    One row per (user, topic); repeat placements overwrite it.
    """

    topic_id: int
    questions_asked: int = 0
    questions_correct: int = 0
    mastery_level: MasteryLevel = MasteryLevel.NOT_ASSESSED
    confidence_score: float = 0.0

    def __post_init__(self):
        validate_counts(self.questions_correct, self.questions_asked)
        if not 0.0 <= self.confidence_score <= 1.0:
            raise InvalidInput(f"confidence_score out of range: {self.confidence_score}")
        if not isinstance(self.mastery_level, MasteryLevel):
            self.mastery_level = MasteryLevel(self.mastery_level)

    @property
    def success_rate(self) -> float:
        if self.questions_asked == 0:
            return 0.0
        return self.questions_correct / self.questions_asked

    def to_dict(self) -> dict[str, object]:
        """Convert to dictionary."""
        return {
            "topic_id": self.topic_id,
            "questions_asked": self.questions_asked,
            "questions_correct": self.questions_correct,
            "mastery_level": self.mastery_level.value,
            "confidence_score": self.confidence_score,
        }


def assess_topic(topic_id: int, correct: int, total: int) -> TopicAssessment:
    """Build a fully derived assessment from a raw tally."""
    return TopicAssessment(
        topic_id=topic_id,
        questions_asked=total,
        questions_correct=correct,
        mastery_level=mastery_level(correct, total),
        confidence_score=confidence(correct, total),
    )
