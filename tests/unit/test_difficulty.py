"""
Unit tests for the practice difficulty controller, proficiency formula and
session topic picker.
"""

import random

import pytest

from src.adaptive.difficulty import (
    DifficultyController,
    PerformanceWindow,
    TopicPracticeState,
    calculate_difficulty_adjustment,
    calculate_proficiency,
    select_topics_for_session,
)
from src.core.errors import InvalidInput
from src.core.topics import CefrBand


class TestDifficultyController:
    def test_holds_with_too_few_attempts(self):
        adjustment = calculate_difficulty_adjustment(attempts=4, correct=4, current_difficulty=3)
        assert adjustment.new_difficulty == 3
        assert adjustment.reason == "insufficient_data"
        assert not adjustment.changed

    def test_increases_above_eighty_percent(self):
        adjustment = calculate_difficulty_adjustment(attempts=10, correct=9, current_difficulty=3)
        assert adjustment.new_difficulty == 4
        assert adjustment.reason == "increased"
        assert adjustment.should_increase_challenge is True
        assert "90%" in adjustment.message

    def test_clamped_at_maximum(self):
        adjustment = calculate_difficulty_adjustment(attempts=10, correct=10, current_difficulty=5)
        assert adjustment.new_difficulty == 5
        assert adjustment.reason == "at_maximum"

    def test_decreases_below_fifty_percent(self):
        adjustment = calculate_difficulty_adjustment(attempts=10, correct=2, current_difficulty=3)
        assert adjustment.new_difficulty == 2
        assert adjustment.reason == "decreased"

    def test_clamped_at_minimum(self):
        adjustment = calculate_difficulty_adjustment(attempts=10, correct=0, current_difficulty=1)
        assert adjustment.new_difficulty == 1
        assert adjustment.reason == "at_minimum"

    @pytest.mark.parametrize("correct", [5, 6, 7, 8])
    def test_boundaries_are_optimal(self, correct):
        """Exactly 50% and exactly 80% both hold."""
        adjustment = calculate_difficulty_adjustment(attempts=10, correct=correct, current_difficulty=3)
        assert adjustment.new_difficulty == 3
        assert adjustment.reason == "optimal"

    def test_repeated_success_climbs_to_the_top(self):
        controller = DifficultyController()
        difficulty = 1
        seen = [difficulty]
        for _ in range(6):
            difficulty = controller.adjust(PerformanceWindow(10, 9, difficulty)).new_difficulty
            seen.append(difficulty)
        assert seen == [1, 2, 3, 4, 5, 5, 5]

    def test_repeated_failure_descends_to_the_bottom(self):
        controller = DifficultyController()
        difficulty = 5
        for expected in [4, 3, 2, 1, 1]:
            difficulty = controller.adjust(PerformanceWindow(10, 2, difficulty)).new_difficulty
            assert difficulty == expected

    @pytest.mark.parametrize(
        "attempts,correct,difficulty",
        [(5, 6, 3), (-1, 0, 3), (5, 3, 0), (5, 3, 6)],
    )
    def test_invalid_window_rejected(self, attempts, correct, difficulty):
        with pytest.raises(InvalidInput):
            calculate_difficulty_adjustment(attempts, correct, difficulty)


class TestPerformanceWindow:
    def test_uses_most_recent_outcomes(self):
        outcomes = [False, False] + [True] * 10
        window = PerformanceWindow.from_outcomes(outcomes, current_difficulty=2, window=10)
        assert window.attempts == 10
        assert window.correct == 10

    def test_short_history(self):
        window = PerformanceWindow.from_outcomes([True, False, True], current_difficulty=2)
        assert (window.attempts, window.correct) == (3, 2)


class TestProficiency:
    def test_no_attempts(self):
        assert calculate_proficiency(0, 0, 1) == 0

    def test_difficulty_bonus(self):
        assert calculate_proficiency(10, 8, 1) == 80
        assert calculate_proficiency(10, 8, 3) == 96

    def test_capped_at_hundred(self):
        assert calculate_proficiency(10, 8, 5) == 100

    def test_idle_decay_with_floor(self):
        assert calculate_proficiency(10, 5, 1, days_since_last_practice=10) == 40
        assert calculate_proficiency(10, 5, 1, days_since_last_practice=100) == 25

    def test_invalid_tally(self):
        with pytest.raises(InvalidInput):
            calculate_proficiency(3, 4, 1)


class TestSelectTopicsForSession:
    @pytest.fixture
    def states(self):
        return [
            TopicPracticeState(topic_id=1, level=CefrBand.A1, proficiency=90, days_since_last_practice=0),
            TopicPracticeState(topic_id=2, level=CefrBand.A1, proficiency=10, days_since_last_practice=5),
            TopicPracticeState(topic_id=3, level=CefrBand.A2, proficiency=50, days_since_last_practice=0),
            TopicPracticeState(topic_id=4, level=CefrBand.A2, proficiency=95, days_since_last_practice=0),
            TopicPracticeState(topic_id=5, level=CefrBand.B1, proficiency=0, days_since_last_practice=0),
            TopicPracticeState(topic_id=6, level=CefrBand.A1, proficiency=60, days_since_last_practice=0),
        ]

    def test_priority_order_and_band_filter(self, states):
        selected = select_topics_for_session(states, "A2.1", session_length=5, rng=random.Random(1))
        assert selected == [2, 3, 6, 4, 1]
        assert 5 not in selected

    def test_short_session(self, states):
        selected = select_topics_for_session(states, "A2.2", session_length=2, rng=random.Random(1))
        assert selected == [2, 3]

    def test_variety_drawn_from_remainder(self, states):
        selected = select_topics_for_session(states, "A2.1", session_length=4, rng=random.Random(3))
        # three priority slots, one random pick among the rest
        assert selected[:3] == [2, 3, 6]
        assert selected[3] in {4, 1}
