"""
Difficulty Controller for ongoing practice.

Keeps the learner's empirical success rate inside the flow zone
(target 60-75%, tolerated 50-80%) by stepping a 1-5 difficulty scalar
after each exercise, based on a rolling window of recent outcomes.

Also hosts the proficiency formula and the practice topic picker, which
consume the same per-topic progress numbers.
"""

from __future__ import annotations

import math
import random
from dataclasses import dataclass

from src.core.errors import InvalidInput
from src.core.rounding import round_to_int
from src.core.topics import CefrBand

MIN_DIFFICULTY = 1
MAX_DIFFICULTY = 5
MIN_ATTEMPTS_FOR_ADJUSTMENT = 5

# Flow zone the controller aims for
OPTIMAL_SUCCESS_RATE_LOW = 0.60
OPTIMAL_SUCCESS_RATE_HIGH = 0.75

# Step boundaries: above INCREASE_ABOVE go harder, below DECREASE_BELOW go easier
INCREASE_ABOVE = 0.80
DECREASE_BELOW = 0.50


@dataclass(frozen=True)
class PerformanceWindow:
    """Recent outcomes for one topic, supplied by the caller."""

    attempts: int
    correct: int
    current_difficulty: int
    topic_id: int | None = None

    @classmethod
    def from_outcomes(
        cls,
        outcomes: list[bool],
        current_difficulty: int,
        window: int = 10,
        topic_id: int | None = None,
    ) -> PerformanceWindow:
        """Build a window from the most recent ``window`` outcomes (oldest first)."""
        recent = outcomes[-window:] if window > 0 else []
        return cls(
            attempts=len(recent),
            correct=sum(1 for o in recent if o),
            current_difficulty=current_difficulty,
            topic_id=topic_id,
        )

    def validate(self) -> None:
        if self.attempts < 0 or self.correct < 0:
            raise InvalidInput(
                f"Window counts must be non-negative (attempts={self.attempts}, correct={self.correct})"
            )
        if self.correct > self.attempts:
            raise InvalidInput(f"correct ({self.correct}) cannot exceed attempts ({self.attempts})")
        if not MIN_DIFFICULTY <= self.current_difficulty <= MAX_DIFFICULTY:
            raise InvalidInput(
                f"Difficulty must be within {MIN_DIFFICULTY}..{MAX_DIFFICULTY}, got {self.current_difficulty}"
            )


@dataclass(frozen=True)
class DifficultyAdjustment:
    """Controller output. ``reason`` is a stable tag, ``message`` is for display."""

    new_difficulty: int
    reason: str  # insufficient_data | increased | at_maximum | decreased | at_minimum | optimal
    message: str
    should_increase_challenge: bool = False

    @property
    def changed(self) -> bool:
        return self.reason in ("increased", "decreased")


class DifficultyController:
    """
    Stateless difficulty stepping.

    Policy:
    - fewer than MIN_ATTEMPTS_FOR_ADJUSTMENT attempts: hold
    - success rate > 80%: +1 (clamped at 5)
    - success rate < 50%: -1 (clamped at 1)
    - otherwise: hold
    """

    def __init__(
        self,
        min_attempts: int = MIN_ATTEMPTS_FOR_ADJUSTMENT,
        increase_above: float = INCREASE_ABOVE,
        decrease_below: float = DECREASE_BELOW,
    ):
        self.min_attempts = min_attempts
        self.increase_above = increase_above
        self.decrease_below = decrease_below

    def adjust(self, window: PerformanceWindow) -> DifficultyAdjustment:
        """
        Compute the next difficulty for a performance window.

        Args:
            window: Rolling slice of recent outcomes with the current difficulty

        Returns:
            DifficultyAdjustment with the new level and a reason tag

        Raises:
            InvalidInput: On negative counts, correct > attempts or out-of-range difficulty
        """
        window.validate()
        current = window.current_difficulty

        if window.attempts < self.min_attempts:
            return DifficultyAdjustment(
                new_difficulty=current,
                reason="insufficient_data",
                message="Noch nicht genug Daten",
            )

        success_rate = window.correct / window.attempts
        percent = round_to_int(success_rate * 100)

        if success_rate > self.increase_above:
            if current < MAX_DIFFICULTY:
                return DifficultyAdjustment(
                    new_difficulty=current + 1,
                    reason="increased",
                    message=f"Sehr gut! Erhöhung der Schwierigkeit ({percent}% richtig)",
                    should_increase_challenge=True,
                )
            return DifficultyAdjustment(
                new_difficulty=MAX_DIFFICULTY,
                reason="at_maximum",
                message="Maximale Schwierigkeit erreicht",
            )

        if success_rate < self.decrease_below:
            if current > MIN_DIFFICULTY:
                return DifficultyAdjustment(
                    new_difficulty=current - 1,
                    reason="decreased",
                    message=f"Etwas einfacher machen ({percent}% richtig)",
                )
            return DifficultyAdjustment(
                new_difficulty=MIN_DIFFICULTY,
                reason="at_minimum",
                message="Minimale Schwierigkeit - weiter üben!",
            )

        return DifficultyAdjustment(
            new_difficulty=current,
            reason="optimal",
            message=f"Optimaler Bereich ({percent}% richtig)",
        )


def calculate_difficulty_adjustment(
    attempts: int,
    correct: int,
    current_difficulty: int,
) -> DifficultyAdjustment:
    """Module-level shortcut using the default controller."""
    window = PerformanceWindow(attempts=attempts, correct=correct, current_difficulty=current_difficulty)
    return DifficultyController().adjust(window)


def calculate_proficiency(
    attempts: int,
    correct: int,
    current_difficulty: int,
    days_since_last_practice: float = 0,
) -> int:
    """
    Proficiency (0-100) for a topic.

    Success rate scaled by a difficulty bonus (+10% per level above 1) and a
    decay of 2% per idle day, floored at half.
    """
    if attempts < 0 or correct < 0 or correct > attempts:
        raise InvalidInput(f"Invalid tally (attempts={attempts}, correct={correct})")
    if attempts == 0:
        return 0

    success_rate = correct / attempts
    difficulty_bonus = (current_difficulty - 1) * 0.1

    proficiency = success_rate * 100 * (1 + difficulty_bonus)
    decay = max(0.5, 1 - max(0.0, days_since_last_practice) * 0.02)
    proficiency *= decay

    return max(0, min(100, round_to_int(proficiency)))


@dataclass(frozen=True)
class TopicPracticeState:
    """Per-topic numbers used to pick what to practice next."""

    topic_id: int
    level: CefrBand
    proficiency: float
    days_since_last_practice: float
    weight: float = 1.0


def select_topics_for_session(
    topic_progress: list[TopicPracticeState],
    user_level: str,
    session_length: int = 5,
    rng: random.Random | None = None,
) -> list[int]:
    """
    Choose topic ids for a practice session.

    Only topics at or below the learner's band are considered. Lower score
    means higher priority: weak, stale, current-band and heavy topics first.
    Roughly 70% of the slots go to the top of that ranking, the rest are
    drawn at random from the remainder.
    """
    rng = rng or random.Random()
    user_band = CefrBand(user_level[:2])

    relevant = [t for t in topic_progress if CefrBand(t.level).index <= user_band.index]

    def score(t: TopicPracticeState) -> float:
        value = t.proficiency - t.days_since_last_practice * 2
        if CefrBand(t.level) == user_band:
            value -= 20
        return value - t.weight * 10

    ranked = sorted(relevant, key=score)

    priority_count = math.ceil(session_length * 0.7)
    variety_count = session_length - priority_count

    selected = [t.topic_id for t in ranked[:priority_count]]

    remaining = ranked[priority_count:]
    for _ in range(min(variety_count, len(remaining))):
        pick = remaining.pop(rng.randrange(len(remaining)))
        selected.append(pick.topic_id)

    return selected
