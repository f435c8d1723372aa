"""
Unit tests for the placement question selector, stopping rules and quiz state.
"""

import random
from datetime import UTC, datetime

import pytest

from src.adaptive.placement import (
    PlacementQuestion,
    PlacementQuestionSelector,
    QuizState,
    TopicTally,
    initial_difficulty_for_band,
    key_topics,
    next_generation_difficulty,
    record_answer,
    should_continue_topic,
    start_quiz,
    target_difficulty,
)
from src.core.errors import InvalidInput, NoEligibleTopics
from src.core.topics import CefrBand

NOW = datetime(2026, 3, 1, 10, 0, tzinfo=UTC)


def make_question(qid, topic_id, difficulty=2, level=CefrBand.A1):
    return PlacementQuestion(
        id=qid,
        topic_id=topic_id,
        level=level,
        type="translate",
        prompt_en="I am here.",
        correct_answer="Ich bin hier.",
        difficulty=difficulty,
    )


def state_with(tallies, total_questions=20):
    return QuizState(
        current_question=1,
        total_questions=total_questions,
        topic_results={tid: TopicTally(correct=c, total=t) for tid, (c, t) in tallies.items()},
        started_at=NOW,
    )


class TestShouldContinueTopic:
    @pytest.mark.parametrize(
        "correct,total,expected",
        [
            (0, 0, True),
            (2, 2, True),
            (3, 3, True),
            (4, 4, True),
            (5, 5, False),
            (0, 5, False),
            (3, 5, True),
            (1, 5, True),
            (3, 6, False),
            (6, 6, False),
        ],
    )
    def test_rules(self, correct, total, expected):
        assert should_continue_topic(correct, total) is expected

    def test_invalid_counts(self):
        with pytest.raises(InvalidInput):
            should_continue_topic(4, 3)


class TestDifficultyTargeting:
    @pytest.mark.parametrize(
        "rate,expected",
        [(None, 3), (0.8, 4), (0.75, 4), (0.6, 3), (0.5, 3), (0.2, 2), (0.0, 2)],
    )
    def test_target(self, rate, expected):
        assert target_difficulty(rate) == expected

    def test_initial_by_band(self):
        assert initial_difficulty_for_band(CefrBand.A1) == 2
        assert initial_difficulty_for_band(CefrBand.A2) == 3
        assert initial_difficulty_for_band(CefrBand.B1) == 4

    def test_follow_up_steps_and_clamps(self):
        assert next_generation_difficulty(3, True) == 4
        assert next_generation_difficulty(3, False) == 2
        assert next_generation_difficulty(5, True) == 5
        assert next_generation_difficulty(1, False) == 1


class TestKeyTopics:
    def test_lower_bands_first(self, topics):
        shuffled = list(reversed(topics))
        assert [t.id for t in key_topics(shuffled, limit=4)] == [1, 2, 3, 4]

    def test_limit_larger_than_catalog(self, topics):
        assert len(key_topics(topics, limit=15)) == 7


class TestQuizState:
    def test_budget_bounded_by_pool(self):
        assert start_quiz(pool_size=7, max_questions=20, now=NOW).total_questions == 7
        assert start_quiz(pool_size=30, max_questions=20, now=NOW).total_questions == 20

    def test_negative_pool_rejected(self):
        with pytest.raises(InvalidInput):
            start_quiz(pool_size=-1)

    def test_record_answer_returns_new_state(self):
        state = start_quiz(pool_size=5, now=NOW)
        question = make_question("q1", topic_id=1)
        updated = record_answer(state, question, correct=True, time_taken_seconds=12)

        assert state.answers == []
        assert state.topic_results == {}
        assert updated.current_question == 2
        assert updated.tally(1) == TopicTally(correct=1, total=1)
        assert updated.answers[0].time_taken_seconds == 12
        assert updated.correct_answers == 1

    def test_tallies_accumulate(self):
        state = start_quiz(pool_size=5, now=NOW)
        state = record_answer(state, make_question("q1", 1), True, 5)
        state = record_answer(state, make_question("q2", 1), False, 5)
        state = record_answer(state, make_question("q3", 2), True, 5)
        assert state.tally(1) == TopicTally(correct=1, total=2)
        assert state.tally(2) == TopicTally(correct=1, total=1)
        assert sum(t.total for t in state.topic_results.values()) == len(state.answers)

    def test_duplicate_answer_rejected(self):
        question = make_question("q1", topic_id=1)
        state = record_answer(start_quiz(pool_size=5, now=NOW), question, True, 5)
        with pytest.raises(InvalidInput):
            record_answer(state, question, False, 5)

    def test_elapsed_time_used_when_not_given(self):
        state = start_quiz(pool_size=5, now=NOW)
        later = datetime(2026, 3, 1, 10, 0, 42, tzinfo=UTC)
        updated = record_answer(state, make_question("q1", 1), True, now=later)
        assert updated.answers[0].time_taken_seconds == 42

    def test_json_round_trip(self):
        state = start_quiz(pool_size=5, now=NOW)
        state = record_answer(state, make_question("q1", 3), True, 7)
        restored = QuizState.model_validate_json(state.model_dump_json())
        assert restored == state
        assert restored.tally(3).correct == 1


class TestPlacementQuestionSelector:
    def test_lower_band_always_first(self, topics):
        pool = [make_question("b1", 7, level=CefrBand.B1), make_question("a1", 3)]
        for seed in range(20):
            selector = PlacementQuestionSelector(topics, rng=random.Random(seed))
            question = selector.select_next_question(state_with({}), pool)
            assert question.id == "a1"

    def test_random_pick_stays_in_top_three(self, topics):
        pool = [make_question(f"q{tid}", tid) for tid in (1, 2, 3, 4, 5)]
        picked = set()
        for seed in range(40):
            selector = PlacementQuestionSelector(topics, rng=random.Random(seed))
            picked.add(selector.select_next_question(state_with({}), pool).topic_id)
        assert picked <= {1, 2, 3}
        assert len(picked) > 1

    def test_moves_to_next_band_when_lower_band_done(self, topics):
        pool = [make_question(f"q{tid}", tid) for tid in (1, 2, 3, 4, 5, 6)]
        state = state_with({1: (6, 6), 2: (5, 5), 3: (0, 5)})
        selector = PlacementQuestionSelector(topics, rng=random.Random(0))
        question = selector.select_next_question(state, pool)
        assert question.topic_id in {4, 5}

    def test_unknown_topics_ignored(self, topics):
        pool = [make_question("x", 99)]
        selector = PlacementQuestionSelector(topics, rng=random.Random(0))
        assert selector.select_next_question(state_with({}), pool) is None

    def test_used_questions_not_repeated(self, topics):
        pool = [make_question("q1", 1), make_question("q2", 1, difficulty=3)]
        selector = PlacementQuestionSelector(topics, rng=random.Random(0))
        state = record_answer(start_quiz(len(pool), now=NOW), pool[1], True, 4)
        assert selector.select_next_question(state, pool).id == "q1"

    def test_difficulty_closest_to_target(self, topics):
        pool = [make_question(f"d{d}", 1, difficulty=d) for d in (2, 3, 4, 5)]
        state = state_with({1: (4, 5)})
        selector = PlacementQuestionSelector(topics, rng=random.Random(0))
        assert selector.select_next_question(state, pool).difficulty == 4

    def test_tie_goes_to_easier_question(self, topics):
        pool = [make_question("hard", 1, difficulty=4), make_question("easy", 1, difficulty=2)]
        selector = PlacementQuestionSelector(topics, rng=random.Random(0))
        assert selector.select_next_question(state_with({}), pool).id == "easy"

    def test_budget_exhausted(self, topics):
        pool = [make_question("q1", 1), make_question("q2", 2)]
        selector = PlacementQuestionSelector(topics, rng=random.Random(0))
        state = record_answer(start_quiz(pool_size=1, now=NOW), pool[0], True, 3)

        assert state.budget_exhausted
        assert selector.select_next_question(state, pool) is None
        assert selector.is_finished(state, pool)
        with pytest.raises(NoEligibleTopics):
            selector.require_next_question(state, pool)

    def test_no_eligible_topics(self, topics):
        pool = [make_question("q1", 1)]
        selector = PlacementQuestionSelector(topics, rng=random.Random(0))
        state = state_with({1: (6, 6)})
        with pytest.raises(NoEligibleTopics):
            selector.require_next_question(state, pool)
