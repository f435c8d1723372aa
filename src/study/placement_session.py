"""
Placement Session.

Drives one adaptive placement test end to end:

    prepare()  -> one generated question per key topic, budget fixed
    loop:
        next_question()  -> selector picks from the pool
        submit_answer()  -> grade, update QuizState, maybe generate a follow-up
    finish()   -> assessments, overall level, learning path, knowledge map
    save()     -> single transaction through the repository

Generation failures only shrink the pool. The session fails only when not a
single initial question could be generated.
"""

from __future__ import annotations

import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime

from loguru import logger

from config import get_settings
from src.adaptive.knowledge_map import KnowledgeMap, build_knowledge_map
from src.adaptive.learning_path import LearningPathBuilder, LearningPathItem
from src.adaptive.level_inference import determine_overall_level
from src.adaptive.placement import (
    PlacementQuestion,
    PlacementQuestionSelector,
    QuizState,
    build_assessments,
    initial_difficulty_for_band,
    key_topics,
    next_generation_difficulty,
    record_answer,
    should_continue_topic,
    start_quiz,
)
from src.core.errors import ExternalGenerationFailure, InvalidInput
from src.core.mastery import TopicAssessment
from src.core.topics import GrammarTopic, ProfileLevel, index_topics
from src.db.repository import CoachRepository
from src.generation.question_service import QuestionService
from src.generation.schemas import AnswerEvaluation

AnswerCallback = Callable[[PlacementQuestion, GrammarTopic], Awaitable[tuple[str, int | None]]]


@dataclass
class PlacementOutcome:
    state: QuizState
    assessments: list[TopicAssessment]
    overall_level: ProfileLevel
    path: list[LearningPathItem]
    knowledge_map: KnowledgeMap
    time_taken_seconds: int = 0
    skipped_generations: int = 0


@dataclass
class _Counters:
    generated: int = 0
    failed: int = 0
    failed_topics: list[int] = field(default_factory=list)


class PlacementSession:
    """One learner's placement test. Not shared between learners."""

    def __init__(
        self,
        topics: list[GrammarTopic],
        question_service: QuestionService,
        repository: CoachRepository | None = None,
        rng: random.Random | None = None,
        max_questions: int | None = None,
        key_topic_count: int | None = None,
    ):
        settings = get_settings()
        self.topics = list(topics)
        self._by_id = index_topics(self.topics)
        self.question_service = question_service
        self.repository = repository
        self.selector = PlacementQuestionSelector(self.topics, rng=rng)
        self.max_questions = max_questions if max_questions is not None else settings.placement_max_questions
        self.key_topic_count = (
            key_topic_count if key_topic_count is not None else settings.placement_key_topics
        )
        self.pool: list[PlacementQuestion] = []
        self.state: QuizState | None = None
        self._counters = _Counters()

    async def _try_generate(self, topic: GrammarTopic, difficulty: int) -> PlacementQuestion | None:
        try:
            question = await self.question_service.generate_question(topic, difficulty=difficulty)
        except ExternalGenerationFailure as e:
            self._counters.failed += 1
            self._counters.failed_topics.append(topic.id)
            logger.warning(f"Skipping question for topic {topic.id} ({topic.name_en}): {e}")
            return None
        self._counters.generated += 1
        return question

    async def prepare(self, now: datetime | None = None) -> QuizState:
        """
        Generate the initial pool and open the quiz.

        Raises:
            ExternalGenerationFailure: If no initial question could be generated
        """
        selected = key_topics(self.topics, self.key_topic_count)
        for topic in selected:
            question = await self._try_generate(topic, initial_difficulty_for_band(topic.level))
            if question is not None:
                self.pool.append(question)

        if not self.pool:
            raise ExternalGenerationFailure(
                f"Could not generate any placement question ({self._counters.failed} failures)"
            )

        self.state = start_quiz(len(self.pool), self.max_questions, now=now)
        logger.info(
            f"Placement ready: {len(self.pool)} questions for {len(selected)} key topics, "
            f"budget {self.state.total_questions}"
        )
        return self.state

    def _require_state(self) -> QuizState:
        if self.state is None:
            raise InvalidInput("Placement session has not been prepared")
        return self.state

    def next_question(self) -> PlacementQuestion | None:
        """Next question to ask, or None when the test is over."""
        return self.selector.select_next_question(self._require_state(), self.pool)

    def topic_for(self, question: PlacementQuestion) -> GrammarTopic:
        return self._by_id[question.topic_id]

    async def submit_answer(
        self,
        question: PlacementQuestion,
        user_answer: str,
        time_taken_seconds: int | None = None,
    ) -> AnswerEvaluation:
        """Grade an answer, record it and top up the pool for the topic."""
        state = self._require_state()
        topic = self.topic_for(question)

        evaluation = await self.question_service.evaluate_answer(question, topic, user_answer)
        is_correct = evaluation.is_correct or evaluation.is_acceptable

        self.state = record_answer(state, question, is_correct, time_taken_seconds)

        tally = self.state.tally(topic.id)
        if not self.state.budget_exhausted and should_continue_topic(tally.correct, tally.total):
            difficulty = next_generation_difficulty(question.difficulty, is_correct)
            follow_up = await self._try_generate(topic, difficulty)
            if follow_up is not None:
                self.pool.append(follow_up)

        return evaluation

    def finish(self, now: datetime | None = None) -> PlacementOutcome:
        """Turn the answered quiz into results. Pure; nothing is persisted."""
        state = self._require_state()
        assessments = build_assessments(state)
        return PlacementOutcome(
            state=state,
            assessments=assessments,
            overall_level=determine_overall_level(assessments, self.topics),
            path=LearningPathBuilder().build(assessments, self.topics),
            knowledge_map=build_knowledge_map(assessments, self.topics),
            time_taken_seconds=state.elapsed_seconds(now or datetime.now(UTC)),
            skipped_generations=self._counters.failed,
        )

    def save(self, user_id: str, outcome: PlacementOutcome) -> None:
        """
        Persist the outcome.

        Raises:
            PersistenceFailure: If the write fails; the results are not lost
                from ``outcome`` and the caller may retry
        """
        repository = self.repository or CoachRepository()
        repository.save_placement(
            user_id=user_id,
            overall_level=outcome.overall_level.value,
            total_questions=len(outcome.state.answers),
            correct_answers=outcome.state.correct_answers,
            time_taken_seconds=outcome.time_taken_seconds,
            assessments=outcome.assessments,
            path=outcome.path,
        )

    async def run(self, answer: AnswerCallback) -> PlacementOutcome:
        """
        Full loop with a caller-supplied answer source.

        ``answer`` receives the question and its topic and returns the
        learner's answer plus the seconds taken (None to use elapsed time).
        """
        if self.state is None:
            await self.prepare()
        while (question := self.next_question()) is not None:
            user_answer, seconds = await answer(question, self.topic_for(question))
            await self.submit_answer(question, user_answer, seconds)
        return self.finish()
