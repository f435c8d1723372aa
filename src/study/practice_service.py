"""
Practice Service.

Records one graded practice exercise:
1. Append to exercise history
2. Update topic progress (difficulty from the rolling window, proficiency)
3. Bump today's session counters
4. Add suggested vocabulary to the learner's deck

Steps 3 and 4 are best-effort: a failed write is logged and the exercise
still counts.
"""

from __future__ import annotations

import math
import random
from dataclasses import dataclass, field
from datetime import UTC, datetime

from loguru import logger

from config import get_settings
from src.adaptive.difficulty import (
    MAX_DIFFICULTY,
    MIN_DIFFICULTY,
    DifficultyAdjustment,
    DifficultyController,
    PerformanceWindow,
    TopicPracticeState,
    calculate_proficiency,
    select_topics_for_session,
)
from src.core.errors import InvalidInput, PersistenceFailure
from src.db.models import ExerciseHistory, UserTopicProgress, VocabularyItem
from src.db.repository import CoachRepository

FIRST_PROFICIENCY_CORRECT = 20
FIRST_PROFICIENCY_INCORRECT = 5


@dataclass(frozen=True)
class VocabularySuggestion:
    de: str
    en: str
    gender: str | None = None


@dataclass
class ExerciseOutcome:
    """What changed after one exercise."""

    topic_id: int
    was_correct: bool
    attempts: int
    correct: int
    difficulty_level: int
    proficiency: float
    adjustment: DifficultyAdjustment | None = None
    added_vocabulary: list[str] = field(default_factory=list)


class PracticeService:
    """
    Applies practice results to a learner's progress.
    """

    def __init__(
        self,
        repository: CoachRepository | None = None,
        controller: DifficultyController | None = None,
        window: int | None = None,
    ):
        self.repository = repository or CoachRepository()
        self.controller = controller or DifficultyController()
        self.window = window if window is not None else get_settings().difficulty_window

    def record_exercise(
        self,
        user_id: str,
        topic_id: int,
        exercise_type: str,
        was_correct: bool,
        difficulty: int = MIN_DIFFICULTY,
        user_answer: str | None = None,
        time_taken_seconds: int = 0,
        used_english_help: bool = False,
        session_id: str | None = None,
        suggestions: list[VocabularySuggestion] | None = None,
        now: datetime | None = None,
    ) -> ExerciseOutcome:
        """
        Record a graded exercise and update progress.

        Args:
            user_id: Learner id
            topic_id: Practiced grammar topic
            exercise_type: e.g. fill_gap, translate
            was_correct: Grading verdict (acceptable alternatives count as correct)
            difficulty: Difficulty the exercise was served at (1-5)
            suggestions: Vocabulary the grader suggested learning

        Raises:
            InvalidInput: On out-of-range difficulty or negative time
            PersistenceFailure: If history or progress cannot be written
        """
        if not MIN_DIFFICULTY <= difficulty <= MAX_DIFFICULTY:
            raise InvalidInput(f"difficulty must be within 1..5, got {difficulty}")
        if time_taken_seconds < 0:
            raise InvalidInput("time_taken_seconds must be non-negative")
        now = now or datetime.now(UTC)

        self.repository.add_exercise(
            ExerciseHistory(
                user_id=user_id,
                topic_id=topic_id,
                exercise_type=exercise_type,
                difficulty_level=difficulty,
                was_correct=was_correct,
                user_answer=user_answer,
                time_taken_seconds=time_taken_seconds,
                used_english_help=used_english_help,
                session_id=session_id,
                created_at=now,
            )
        )

        outcome = self._update_progress(user_id, topic_id, was_correct, difficulty, now)
        self._bump_daily_session(user_id, was_correct, time_taken_seconds, now)
        if suggestions:
            outcome.added_vocabulary = self._add_suggestions(user_id, topic_id, suggestions, now)
        return outcome

    def _update_progress(
        self,
        user_id: str,
        topic_id: int,
        was_correct: bool,
        difficulty: int,
        now: datetime,
    ) -> ExerciseOutcome:
        progress = self.repository.get_topic_progress(user_id, topic_id)

        if progress is None:
            progress = UserTopicProgress(
                user_id=user_id,
                topic_id=topic_id,
                attempts=1,
                correct=1 if was_correct else 0,
                difficulty_level=difficulty,
                proficiency=FIRST_PROFICIENCY_CORRECT if was_correct else FIRST_PROFICIENCY_INCORRECT,
                last_practiced=now,
            )
            self.repository.save_topic_progress(progress)
            logger.debug(f"Started progress for {user_id} on topic {topic_id}")
            return ExerciseOutcome(
                topic_id=topic_id,
                was_correct=was_correct,
                attempts=progress.attempts,
                correct=progress.correct,
                difficulty_level=progress.difficulty_level,
                proficiency=progress.proficiency,
            )

        attempts = progress.attempts + 1
        correct = progress.correct + (1 if was_correct else 0)

        outcomes = self.repository.recent_outcomes(user_id, topic_id, self.window)
        window = PerformanceWindow.from_outcomes(
            outcomes, current_difficulty=progress.difficulty_level, window=self.window, topic_id=topic_id
        )
        adjustment = self.controller.adjust(window)
        if adjustment.changed:
            logger.info(
                f"Topic {topic_id} difficulty {progress.difficulty_level} -> {adjustment.new_difficulty} ({adjustment.reason})"
            )

        proficiency = calculate_proficiency(attempts, correct, adjustment.new_difficulty, 0)

        progress.attempts = attempts
        progress.correct = correct
        progress.difficulty_level = adjustment.new_difficulty
        progress.proficiency = proficiency
        progress.last_practiced = now
        self.repository.save_topic_progress(progress)

        return ExerciseOutcome(
            topic_id=topic_id,
            was_correct=was_correct,
            attempts=attempts,
            correct=correct,
            difficulty_level=adjustment.new_difficulty,
            proficiency=proficiency,
            adjustment=adjustment,
        )

    def _bump_daily_session(
        self, user_id: str, was_correct: bool, time_taken_seconds: int, now: datetime
    ) -> None:
        try:
            with self.repository.best_effort():
                self.repository.increment_daily_session(
                    user_id,
                    now.date(),
                    completed=1,
                    correct=1 if was_correct else 0,
                    minutes=math.ceil(time_taken_seconds / 60),
                )
        except PersistenceFailure as e:
            logger.warning(f"Daily session update skipped for {user_id}: {e}")

    def _add_suggestions(
        self,
        user_id: str,
        topic_id: int,
        suggestions: list[VocabularySuggestion],
        now: datetime,
    ) -> list[str]:
        added = []
        for suggestion in suggestions:
            try:
                if self.repository.find_vocabulary(user_id, suggestion.de) is not None:
                    continue
                with self.repository.best_effort():
                    self.repository.save_vocabulary(
                        VocabularyItem(
                            user_id=user_id,
                            word_de=suggestion.de,
                            word_en=suggestion.en,
                            gender=suggestion.gender,
                            source_topic_id=topic_id,
                            ease_factor=2.5,
                            interval_days=1,
                            next_review=now,
                            review_count=0,
                            consecutive_correct=0,
                        )
                    )
                added.append(suggestion.de)
            except PersistenceFailure as e:
                logger.warning(f"Vocabulary suggestion '{suggestion.de}' not saved: {e}")
        return added

    def plan_session(
        self,
        user_id: str,
        user_level: str,
        session_length: int = 5,
        now: datetime | None = None,
        rng: random.Random | None = None,
    ) -> list[int]:
        """Topic ids for the next practice session, weakest and stalest first."""
        now = now or datetime.now(UTC)
        progress = self.repository.get_progress(user_id)
        states = []
        for topic in self.repository.list_topics():
            record = progress.get(topic.id)
            if record is not None and record.last_practiced is not None:
                last = record.last_practiced
                if last.tzinfo is None:
                    last = last.replace(tzinfo=UTC)
                days = max(0.0, (now - last).total_seconds() / 86400)
            else:
                days = 0.0
            states.append(
                TopicPracticeState(
                    topic_id=topic.id,
                    level=topic.level,
                    proficiency=record.proficiency if record is not None else 0.0,
                    days_since_last_practice=days,
                    weight=topic.weight,
                )
            )
        return select_topics_for_session(states, user_level, session_length, rng)
