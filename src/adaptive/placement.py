"""
Adaptive Placement Quiz.

Selects the next placement question from a pool, tracks per-topic tallies in
an explicit QuizState, and decides when a topic (or the whole quiz) is done.

Features:
    - Band-first topic priority with weight tie-breaking
    - Controlled variety: random pick among the top candidates
    - Difficulty targeting from the topic's running success rate
    - Stopping rules (per-topic cap, decisive early stop, question budget)

QuizState is a plain value object: every function takes a state and returns
a new one, so a session can live client-side, in a cache or in a request.
"""

from __future__ import annotations

import random
from datetime import UTC, datetime
from typing import Literal

from pydantic import BaseModel, Field

from src.core.errors import InvalidInput, NoEligibleTopics
from src.core.mastery import TopicAssessment, assess_topic, validate_counts
from src.core.topics import CefrBand, GrammarTopic, ProfileLevel, index_topics

# Stopping criteria per topic
MIN_QUESTIONS_PER_TOPIC = 3
MAX_QUESTIONS_PER_TOPIC = 6
EARLY_STOP_MIN_QUESTIONS = 5
EARLY_STOP_HIGH_RATE = 0.95
EARLY_STOP_LOW_RATE = 0.15

# Candidate pool for the randomized topic pick
TOP_CANDIDATES = 3

# Whole-quiz defaults
DEFAULT_MAX_QUESTIONS = 20

QuestionType = Literal["translate", "fill_gap", "grammar_choice", "error_detection"]
QUESTION_TYPES: list[str] = ["translate", "fill_gap", "grammar_choice", "error_detection"]


class PlacementQuestion(BaseModel):
    """A generated placement question bound to one topic."""

    id: str
    topic_id: int
    level: CefrBand
    type: QuestionType
    prompt_en: str
    prompt_de: str | None = None
    correct_answer: str
    options: list[str] | None = None
    hint: str | None = None
    difficulty: int = Field(default=2, ge=1, le=5)


class TopicTally(BaseModel):
    """Running correct/total count for one topic."""

    correct: int = 0
    total: int = 0

    @property
    def success_rate(self) -> float | None:
        if self.total == 0:
            return None
        return self.correct / self.total


class AnswerOutcome(BaseModel):
    """One answered question."""

    question_id: str
    topic_id: int
    correct: bool
    time_taken_seconds: int = 0


class QuizState(BaseModel):
    """
    Session-scoped adaptive quiz state.

    Serializable (model_dump_json / model_validate_json). Never mutated in
    place by this module.
    """

    current_question: int = 0
    total_questions: int = 0
    answers: list[AnswerOutcome] = Field(default_factory=list)
    topic_results: dict[int, TopicTally] = Field(default_factory=dict)
    current_level: ProfileLevel = ProfileLevel.A1_1
    started_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @property
    def used_question_ids(self) -> set[str]:
        return {a.question_id for a in self.answers}

    @property
    def correct_answers(self) -> int:
        return sum(1 for a in self.answers if a.correct)

    @property
    def budget_exhausted(self) -> bool:
        return len(self.answers) >= self.total_questions

    def tally(self, topic_id: int) -> TopicTally:
        return self.topic_results.get(topic_id, TopicTally())

    def elapsed_seconds(self, now: datetime | None = None) -> int:
        now = now or datetime.now(UTC)
        started = self.started_at if self.started_at.tzinfo else self.started_at.replace(tzinfo=UTC)
        if now.tzinfo is None:
            now = now.replace(tzinfo=UTC)
        return max(0, int((now - started).total_seconds()))


# ==================== Stopping Rules ====================


def should_continue_topic(
    correct: int,
    total: int,
    max_questions: int = MAX_QUESTIONS_PER_TOPIC,
) -> bool:
    """
    Decide whether a topic needs more placement questions.

    Stops at the hard cap; never stops below the minimum sample; stops early
    only with a large, decisive sample (>= 5 asked and >= 95% or <= 15%).
    """
    validate_counts(correct, total)
    if total >= max_questions:
        return False
    if total < MIN_QUESTIONS_PER_TOPIC:
        return True

    rate = correct / total
    if total >= EARLY_STOP_MIN_QUESTIONS and (rate >= EARLY_STOP_HIGH_RATE or rate <= EARLY_STOP_LOW_RATE):
        return False

    return True


# ==================== Difficulty Targeting ====================


def target_difficulty(success_rate: float | None) -> int:
    """Map a running success rate to the difficulty to aim for (no data counts as 50%)."""
    rate = 0.5 if success_rate is None else success_rate
    if rate >= 0.75:
        return 4
    if rate >= 0.50:
        return 3
    return 2


def initial_difficulty_for_band(band: CefrBand) -> int:
    """Starting difficulty for a topic's first generated question."""
    return {CefrBand.A1: 2, CefrBand.A2: 3, CefrBand.B1: 4}[CefrBand(band)]


def next_generation_difficulty(question_difficulty: int, was_correct: bool) -> int:
    """Difficulty for the follow-up question generated after an answer."""
    if was_correct:
        return min(5, question_difficulty + 1)
    return max(1, question_difficulty - 1)


def key_topics(topics: list[GrammarTopic], limit: int = 15) -> list[GrammarTopic]:
    """Topics that receive an initial question, lower bands first."""
    ordered = sorted(topics, key=lambda t: (t.band_index, t.order_index))
    return ordered[:limit]


# ==================== State Transitions ====================


def start_quiz(
    pool_size: int,
    max_questions: int = DEFAULT_MAX_QUESTIONS,
    now: datetime | None = None,
) -> QuizState:
    """Open a quiz whose budget is bounded by the initial pool size."""
    if pool_size < 0 or max_questions < 0:
        raise InvalidInput("pool_size and max_questions must be non-negative")
    return QuizState(
        current_question=1,
        total_questions=min(max_questions, pool_size),
        started_at=now or datetime.now(UTC),
    )


def record_answer(
    state: QuizState,
    question: PlacementQuestion,
    correct: bool,
    time_taken_seconds: int | None = None,
    now: datetime | None = None,
) -> QuizState:
    """
    Append an answer and update the topic tally.

    Returns a new state; the input state is left untouched.

    Raises:
        InvalidInput: If the question was already answered in this session
    """
    if question.id in state.used_question_ids:
        raise InvalidInput(f"Question {question.id} was already answered")

    if time_taken_seconds is None:
        time_taken_seconds = state.elapsed_seconds(now)

    previous = state.tally(question.topic_id)
    tally = TopicTally(
        correct=previous.correct + (1 if correct else 0),
        total=previous.total + 1,
    )
    topic_results = dict(state.topic_results)
    topic_results[question.topic_id] = tally

    answers = [
        *state.answers,
        AnswerOutcome(
            question_id=question.id,
            topic_id=question.topic_id,
            correct=correct,
            time_taken_seconds=time_taken_seconds,
        ),
    ]

    return state.model_copy(
        update={
            "current_question": state.current_question + 1,
            "answers": answers,
            "topic_results": topic_results,
        }
    )


def build_assessments(state: QuizState) -> list[TopicAssessment]:
    """Turn the per-topic tallies into assessments, in first-asked order."""
    return [
        assess_topic(topic_id, tally.correct, tally.total)
        for topic_id, tally in state.topic_results.items()
    ]


# ==================== Question Selection ====================


class PlacementQuestionSelector:
    """
    Adaptive placement question selection.

    Holds only the topic catalog and the random source; all session state
    arrives through QuizState.
    """

    def __init__(
        self,
        topics: list[GrammarTopic],
        rng: random.Random | None = None,
        top_candidates: int = TOP_CANDIDATES,
    ):
        self.topics = index_topics(topics)
        self.rng = rng or random.Random()
        self.top_candidates = top_candidates

    @staticmethod
    def topic_priority(topic: GrammarTopic) -> float:
        """Lower is sooner: band dominates, heavier topics first within a band."""
        return topic.band_index * 100 + (10 - topic.weight)

    def _unused_by_topic(
        self,
        state: QuizState,
        pool: list[PlacementQuestion],
    ) -> dict[int, list[PlacementQuestion]]:
        used = state.used_question_ids
        grouped: dict[int, list[PlacementQuestion]] = {}
        for question in pool:
            if question.id in used:
                continue
            grouped.setdefault(question.topic_id, []).append(question)
        return grouped

    def eligible_topics(
        self,
        state: QuizState,
        pool: list[PlacementQuestion],
    ) -> list[GrammarTopic]:
        """
        Topics that still need testing and have an unused question, in priority order.
        """
        candidates = []
        for topic_id in self._unused_by_topic(state, pool):
            topic = self.topics.get(topic_id)
            if topic is None:
                continue
            tally = state.tally(topic_id)
            if should_continue_topic(tally.correct, tally.total):
                candidates.append(topic)
        return sorted(candidates, key=self.topic_priority)

    def choose_topic(
        self,
        state: QuizState,
        pool: list[PlacementQuestion],
    ) -> GrammarTopic | None:
        """Random pick among the top candidates of the best band."""
        eligible = self.eligible_topics(state, pool)
        if not eligible:
            return None

        best_band = eligible[0].level
        top = [t for t in eligible if t.level == best_band][: self.top_candidates]
        return top[self.rng.randrange(len(top))]

    def choose_question(
        self,
        state: QuizState,
        pool: list[PlacementQuestion],
        topic_id: int,
    ) -> PlacementQuestion | None:
        """Unused question of the topic closest to the target difficulty."""
        unused = self._unused_by_topic(state, pool).get(topic_id, [])
        if not unused:
            return None

        target = target_difficulty(state.tally(topic_id).success_rate)
        ordered = sorted(unused, key=lambda q: q.difficulty)

        best = ordered[0]
        best_gap = abs(best.difficulty - target)
        for question in ordered[1:]:
            gap = abs(question.difficulty - target)
            if gap < best_gap:
                best, best_gap = question, gap
        return best

    def select_next_question(
        self,
        state: QuizState,
        pool: list[PlacementQuestion],
    ) -> PlacementQuestion | None:
        """
        Select the next question, or None when the quiz should end.
        """
        if state.budget_exhausted:
            return None
        topic = self.choose_topic(state, pool)
        if topic is None:
            return None
        return self.choose_question(state, pool, topic.id)

    def require_next_question(
        self,
        state: QuizState,
        pool: list[PlacementQuestion],
    ) -> PlacementQuestion:
        """Like select_next_question but signals termination with NoEligibleTopics."""
        question = self.select_next_question(state, pool)
        if question is None:
            reason = "budget exhausted" if state.budget_exhausted else "no eligible topics"
            raise NoEligibleTopics(reason)
        return question

    def is_finished(self, state: QuizState, pool: list[PlacementQuestion]) -> bool:
        return state.budget_exhausted or not self.eligible_topics(state, pool)
