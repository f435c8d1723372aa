"""
Practice Session.

One round of regular practice:

    plan()            -> topics from PracticeService.plan_session
    next_exercise()   -> generated at the learner's stored difficulty for the topic
    submit()          -> graded, then recorded through PracticeService, which
                         moves difficulty and proficiency, bumps the daily
                         counters and adds the grader's vocabulary suggestions
"""

from __future__ import annotations

import random
import uuid
from dataclasses import dataclass
from datetime import datetime

from src.adaptive.placement import PlacementQuestion, initial_difficulty_for_band
from src.core.topics import GrammarTopic, index_topics
from src.generation.question_service import QuestionService
from src.generation.schemas import AnswerEvaluation
from src.study.practice_service import ExerciseOutcome, PracticeService, VocabularySuggestion


@dataclass
class PracticeResult:
    exercise: PlacementQuestion
    evaluation: AnswerEvaluation
    outcome: ExerciseOutcome


class PracticeSession:
    """A learner's practice round. Not shared between learners."""

    def __init__(
        self,
        user_id: str,
        topics: list[GrammarTopic],
        question_service: QuestionService,
        practice_service: PracticeService | None = None,
        rng: random.Random | None = None,
    ):
        self.user_id = user_id
        self._by_id = index_topics(topics)
        self.question_service = question_service
        self.practice_service = practice_service or PracticeService()
        self.rng = rng
        self.session_id = str(uuid.uuid4())

    def plan(self, user_level: str, length: int = 5, now: datetime | None = None) -> list[GrammarTopic]:
        topic_ids = self.practice_service.plan_session(self.user_id, user_level, length, now=now, rng=self.rng)
        return [self._by_id[topic_id] for topic_id in topic_ids]

    def difficulty_for(self, topic: GrammarTopic) -> int:
        """Stored difficulty for the topic, or the band's starting difficulty."""
        progress = self.practice_service.repository.get_topic_progress(self.user_id, topic.id)
        if progress is None:
            return initial_difficulty_for_band(topic.level)
        return progress.difficulty_level

    async def next_exercise(self, topic: GrammarTopic) -> PlacementQuestion:
        """
        Raises:
            ExternalGenerationFailure: If the exercise cannot be generated
        """
        return await self.question_service.generate_question(topic, difficulty=self.difficulty_for(topic))

    async def submit(
        self,
        exercise: PlacementQuestion,
        user_answer: str,
        time_taken_seconds: int = 0,
        now: datetime | None = None,
    ) -> PracticeResult:
        """Grade the answer and record it against the learner's progress."""
        topic = self._by_id[exercise.topic_id]
        evaluation = await self.question_service.evaluate_exercise(exercise, topic, user_answer)

        outcome = self.practice_service.record_exercise(
            self.user_id,
            topic_id=topic.id,
            exercise_type=exercise.type,
            was_correct=evaluation.is_correct or evaluation.is_acceptable,
            difficulty=exercise.difficulty,
            user_answer=user_answer,
            time_taken_seconds=time_taken_seconds,
            session_id=self.session_id,
            suggestions=[
                VocabularySuggestion(word.de, word.en, word.gender) for word in evaluation.vocabulary_to_learn
            ],
            now=now,
        )
        return PracticeResult(exercise=exercise, evaluation=evaluation, outcome=outcome)

