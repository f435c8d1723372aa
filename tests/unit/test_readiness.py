"""
Unit tests for the exam readiness scorer and daily goal.
"""

from datetime import UTC, date, datetime, timedelta

import pytest

from src.core.topics import CefrBand, GrammarTopic
from src.study.readiness import (
    DailyGoal,
    ReadinessScorer,
    TopicProgress,
    TopicWithProgress,
    band_score,
    calculate_daily_goal,
    calculate_readiness_score,
    days_until,
    weakness_score,
)

NOW = datetime(2026, 3, 1, 10, 0, tzinfo=UTC)


def entry(topic_id, level, proficiency, weight=1.0, name=None):
    topic = GrammarTopic(
        id=topic_id,
        level=level,
        name_de=name or f"Thema {topic_id}",
        name_en=f"Topic {topic_id}",
        weight=weight,
    )
    progress = None if proficiency is None else TopicProgress(proficiency=proficiency, attempts=10)
    return TopicWithProgress(topic=topic, progress=progress)


@pytest.fixture
def one_per_band():
    return [
        entry(1, CefrBand.A1, 80, name="Präsens"),
        entry(2, CefrBand.A2, 60, name="Perfekt"),
        entry(3, CefrBand.B1, 30, name="Passiv"),
    ]


class TestBandScore:
    def test_empty_band(self):
        assert band_score([]) == 0.0

    def test_weighted_mean(self):
        entries = [entry(1, CefrBand.A1, 60, weight=1.0), entry(2, CefrBand.A1, 80, weight=3.0)]
        assert band_score(entries) == 75.0

    def test_missing_progress_counts_as_zero(self):
        entries = [entry(1, CefrBand.A1, None), entry(2, CefrBand.A1, 50)]
        assert band_score(entries) == 25.0

    def test_weakness_favours_higher_bands(self):
        assert weakness_score(entry(1, CefrBand.B1, 50)) > weakness_score(entry(2, CefrBand.A1, 50))


class TestReadinessScorer:
    def test_exam_weighted_overall(self, one_per_band):
        score = calculate_readiness_score(one_per_band, now=NOW)
        assert score.by_level == {"A1": 80, "A2": 60, "B1": 30}
        assert score.overall == 47
        assert not score.is_exam_ready

    def test_good_progress_names_weakest(self, one_per_band):
        score = calculate_readiness_score(one_per_band, now=NOW)
        assert score.weakest_topics[0].name_de == "Passiv"
        assert score.recommendation.startswith("Good progress! Next focus: Passiv (B1)")
        assert score.recommendation_de.startswith("Guter Fortschritt!")

    def test_strongest_topics(self, one_per_band):
        score = calculate_readiness_score(one_per_band, now=NOW)
        assert [t.id for t in score.strongest_topics] == [1, 2, 3]

    def test_nothing_practiced(self, topics):
        score = calculate_readiness_score([TopicWithProgress(t) for t in topics], now=NOW)
        assert score.overall == 0
        assert score.projected_ready_date == NOW.date() + timedelta(days=94)
        assert score.recommendation.startswith("Focus on A1 basics first")
        assert len(score.weakest_topics) == 5

    def test_weak_a2_named(self):
        entries = [
            entry(1, CefrBand.A1, 90),
            entry(2, CefrBand.A2, 40, name="Perfekt"),
            entry(3, CefrBand.A2, 20, name="Dativ"),
            entry(4, CefrBand.A2, 70, name="Modalverben"),
            entry(5, CefrBand.B1, 80),
        ]
        score = calculate_readiness_score(entries, now=NOW)
        assert score.recommendation == "Strengthen your A2 grammar. Key topics to practice: Dativ, Perfekt."

    def test_exam_ready(self):
        entries = [entry(1, CefrBand.A1, 90), entry(2, CefrBand.A2, 90), entry(3, CefrBand.B1, 90)]
        score = calculate_readiness_score(entries, exam_date=date(2026, 6, 1), now=NOW)
        assert score.overall == 90
        assert score.is_exam_ready
        assert score.projected_ready_date is None
        assert score.recommendation.startswith("You're exam-ready!")

    def test_exam_soon(self, one_per_band):
        score = calculate_readiness_score(one_per_band, exam_date=date(2026, 3, 11), now=NOW)
        assert score.days_until_exam == 10
        assert score.recommendation.startswith("Exam is soon! Intensify practice on: Passiv, Perfekt, Präsens.")

    def test_custom_threshold(self, one_per_band):
        scorer = ReadinessScorer(ready_threshold=40)
        score = scorer.score(one_per_band, now=NOW)
        assert score.recommendation.startswith("You're exam-ready!")
        assert score.projected_ready_date is None


class TestDaysUntil:
    def test_rounds_up_partial_days(self):
        assert days_until(date(2026, 3, 3), NOW) == 2

    def test_past_exam_is_zero(self):
        assert days_until(date(2026, 2, 1), NOW) == 0

    def test_naive_datetime(self):
        assert days_until(datetime(2026, 3, 2, 10, 0), NOW) == 1


class TestDailyGoal:
    @pytest.mark.parametrize(
        "readiness,days,expected",
        [
            (80, 10, DailyGoal(15, 10, "low")),
            (40, None, DailyGoal(15, 10, "low")),
            (40, 120, DailyGoal(15, 10, "low")),
            (30, 60, DailyGoal(30, 20, "high")),
            (65, 60, DailyGoal(20, 15, "medium")),
            (65, 20, DailyGoal(30, 25, "high")),
        ],
    )
    def test_table(self, readiness, days, expected):
        assert calculate_daily_goal(readiness, days) == expected
