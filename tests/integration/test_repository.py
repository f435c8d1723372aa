"""
Integration tests for CoachRepository against in-memory SQLite.
"""

from datetime import UTC, date, datetime, timedelta

import pytest

from src.adaptive.learning_path import LearningPathItem, PathStatus
from src.core.errors import PersistenceFailure
from src.core.mastery import MasteryLevel, assess_topic
from src.db.models import ExerciseHistory, VocabularyItem
from src.db.repository import CoachRepository

pytestmark = pytest.mark.integration

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


@pytest.fixture
def repo(db_session):
    return CoachRepository(session=db_session)


class TestTopicsAndProfile:
    def test_catalog_in_band_order(self, repo):
        assert [t.id for t in repo.list_topics()] == [1, 2, 3, 4, 5, 6, 7]

    def test_seed_is_idempotent(self, db_session, topics):
        from src.db.database import seed_topics

        assert seed_topics(db_session, topics) == 0

    def test_ensure_profile(self, repo):
        profile = repo.ensure_profile("anna", daily_goal_minutes=20)
        assert profile.current_level == "A1.1"
        assert profile.daily_goal_minutes == 20
        assert repo.ensure_profile("anna") is profile

    def test_update_profile(self, repo):
        repo.update_profile("ben", exam_date=date(2026, 6, 1), daily_goal_minutes=30)
        profile = repo.get_profile("ben")
        assert profile.exam_date == date(2026, 6, 1)
        assert profile.daily_goal_minutes == 30


class TestAssessmentsAndPath:
    def test_upsert_replaces_per_topic(self, repo):
        repo.upsert_assessments("anna", [assess_topic(1, 1, 4), assess_topic(2, 3, 3)])
        repo.upsert_assessments("anna", [assess_topic(1, 4, 4)])

        stored = {a.topic_id: a for a in repo.get_assessments("anna")}
        assert len(stored) == 2
        assert stored[1].questions_correct == 4
        assert stored[1].mastery_level == MasteryLevel.MASTERED
        assert stored[2].confidence_score == 1.0

    def test_replace_learning_path_drops_stale_rows(self, repo):
        repo.replace_learning_path(
            "anna",
            [LearningPathItem(topic_id=t, priority=i + 1) for i, t in enumerate([2, 3, 4])],
        )
        repo.replace_learning_path(
            "anna",
            [
                LearningPathItem(topic_id=4, priority=1, status=PathStatus.IN_PROGRESS, estimated_sessions=2),
                LearningPathItem(topic_id=6, priority=2),
            ],
        )
        path = repo.get_learning_path("anna")
        assert [item.topic_id for item in path] == [4, 6]
        assert path[0].status == PathStatus.IN_PROGRESS
        assert path[0].estimated_sessions == 2

    def test_save_placement(self, repo):
        repo.save_placement(
            user_id="anna",
            overall_level="A2.1",
            total_questions=8,
            correct_answers=6,
            time_taken_seconds=300,
            assessments=[assess_topic(1, 4, 4), assess_topic(4, 2, 4)],
            path=[LearningPathItem(topic_id=4, priority=1, estimated_sessions=2)],
        )
        profile = repo.get_profile("anna")
        assert profile.current_level == "A2.1"
        assert profile.has_completed_placement is True
        assert len(repo.get_assessments("anna")) == 2
        assert [item.topic_id for item in repo.get_learning_path("anna")] == [4]

        latest = repo.latest_placement("anna")
        assert latest.correct_answers == 6
        assert latest.total_questions == 8

    def test_save_placement_failure(self, repo):
        with pytest.raises(PersistenceFailure) as excinfo:
            repo.save_placement(
                user_id="anna",
                overall_level="A1.1",
                total_questions=1,
                correct_answers=0,
                time_taken_seconds=10,
                assessments=[assess_topic(999, 0, 1)],
                path=[],
            )
        assert excinfo.value.operation == "save_placement"


class TestPracticeRecords:
    def test_recent_outcomes_oldest_first(self, repo):
        for i, correct in enumerate([True, False, False, True]):
            repo.add_exercise(
                ExerciseHistory(
                    user_id="anna",
                    topic_id=1,
                    exercise_type="fill_gap",
                    was_correct=correct,
                    created_at=NOW + timedelta(minutes=i),
                )
            )
        assert repo.recent_outcomes("anna", 1, limit=3) == [False, False, True]
        assert repo.recent_outcomes("anna", 2, limit=3) == []

    def test_unknown_topic_is_persistence_failure(self, repo):
        with pytest.raises(PersistenceFailure):
            repo.add_exercise(
                ExerciseHistory(user_id="anna", topic_id=999, exercise_type="translate", was_correct=True)
            )

    def test_daily_session_accumulates(self, repo):
        repo.increment_daily_session("anna", date(2026, 3, 1), completed=1, correct=1, minutes=2)
        repo.increment_daily_session("anna", date(2026, 3, 1), completed=1, correct=0, minutes=1)
        record = repo.get_daily_session("anna", date(2026, 3, 1))
        assert (record.exercises_completed, record.exercises_correct, record.minutes_practiced) == (2, 1, 3)
        assert repo.get_daily_session("anna", date(2026, 3, 2)) is None


class TestVocabularyRecords:
    def test_due_items_oldest_first(self, repo):
        for word, offset in [("Haus", -1), ("Baum", -3), ("Auto", 2), ("Tisch", 0)]:
            repo.save_vocabulary(
                VocabularyItem(
                    user_id="anna",
                    word_de=word,
                    word_en=word.lower(),
                    next_review=NOW + timedelta(days=offset),
                )
            )
        due = repo.due_vocabulary("anna", now=NOW)
        assert [item.word_de for item in due] == ["Baum", "Haus", "Tisch"]
        assert [item.word_de for item in repo.due_vocabulary("anna", now=NOW, limit=1)] == ["Baum"]
        assert repo.due_vocabulary("other", now=NOW) == []
