"""
Coach Repository.

Record-store access for the assessment and scheduling engine. Works on an
injected Session (tests, multi-step transactions) or opens its own
transactional scope per call.

Writes wrap SQLAlchemyError in PersistenceFailure.
"""
from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, date, datetime
from typing import Any

from loguru import logger
from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from src.adaptive.learning_path import LearningPathItem
from src.core.errors import PersistenceFailure
from src.core.mastery import TopicAssessment
from src.core.topics import BAND_ORDER, GrammarTopic
from src.db.database import session_scope
from src.db.models import (
    DailySession,
    ExerciseHistory,
    GrammarTopicRecord,
    LearningPathRecord,
    PlacementResultRecord,
    Profile,
    TopicAssessmentRecord,
    UserTopicProgress,
    VocabularyItem,
)


class CoachRepository:
    """Fetch / upsert / insert operations used by the study services."""

    def __init__(self, session: Session | None = None):
        self._session = session

    # ==================== Topics ====================

    def list_topics(self) -> list[GrammarTopic]:
        """Whole catalog, band order then order_index."""
        with self._get_session() as session:
            records = session.scalars(select(GrammarTopicRecord)).all()
            topics = [r.to_domain() for r in records]
        return sorted(topics, key=lambda t: (BAND_ORDER.index(t.level), t.order_index, t.id))

    # ==================== Profile ====================

    def get_profile(self, user_id: str) -> Profile | None:
        with self._get_session() as session:
            return session.get(Profile, user_id)

    def ensure_profile(self, user_id: str, daily_goal_minutes: int = 15) -> Profile:
        with self._writing("ensure_profile"), self._get_session() as session:
            profile = session.get(Profile, user_id)
            if profile is None:
                profile = Profile(id=user_id, daily_goal_minutes=daily_goal_minutes)
                session.add(profile)
                session.flush()
                logger.info(f"Created profile for {user_id}")
            return profile

    def update_profile(self, user_id: str, **fields: Any) -> None:
        with self._writing("update_profile"), self._get_session() as session:
            profile = session.get(Profile, user_id)
            if profile is None:
                profile = Profile(id=user_id)
                session.add(profile)
            for name, value in fields.items():
                setattr(profile, name, value)
            session.flush()

    # ==================== Assessments ====================

    def get_assessments(self, user_id: str) -> list[TopicAssessment]:
        with self._get_session() as session:
            records = session.scalars(
                select(TopicAssessmentRecord).where(TopicAssessmentRecord.user_id == user_id)
            ).all()
            return [r.to_domain() for r in records]

    def upsert_assessments(self, user_id: str, assessments: list[TopicAssessment]) -> None:
        with self._writing("upsert_assessments"), self._get_session() as session:
            self._upsert_assessments(session, user_id, assessments)

    def _upsert_assessments(
        self, session: Session, user_id: str, assessments: list[TopicAssessment]
    ) -> None:
        existing = {
            r.topic_id: r
            for r in session.scalars(
                select(TopicAssessmentRecord).where(TopicAssessmentRecord.user_id == user_id)
            )
        }
        now = datetime.now(UTC)
        for assessment in assessments:
            record = existing.get(assessment.topic_id)
            if record is None:
                record = TopicAssessmentRecord(user_id=user_id, topic_id=assessment.topic_id)
                session.add(record)
            record.questions_asked = assessment.questions_asked
            record.questions_correct = assessment.questions_correct
            record.mastery_level = assessment.mastery_level.value
            record.confidence_score = assessment.confidence_score
            record.assessed_at = now
        session.flush()

    # ==================== Learning Path ====================

    def get_learning_path(self, user_id: str) -> list[LearningPathItem]:
        with self._get_session() as session:
            records = session.scalars(
                select(LearningPathRecord)
                .where(LearningPathRecord.user_id == user_id)
                .order_by(LearningPathRecord.priority)
            ).all()
            return [r.to_domain() for r in records]

    def replace_learning_path(self, user_id: str, items: list[LearningPathItem]) -> None:
        """Upsert the new path; topics no longer on it are removed."""
        with self._writing("replace_learning_path"), self._get_session() as session:
            self._replace_learning_path(session, user_id, items)

    def _replace_learning_path(
        self, session: Session, user_id: str, items: list[LearningPathItem]
    ) -> None:
        existing = {
            r.topic_id: r
            for r in session.scalars(
                select(LearningPathRecord).where(LearningPathRecord.user_id == user_id)
            )
        }
        keep = {item.topic_id for item in items}
        stale = [topic_id for topic_id in existing if topic_id not in keep]
        if stale:
            session.execute(
                delete(LearningPathRecord).where(
                    LearningPathRecord.user_id == user_id,
                    LearningPathRecord.topic_id.in_(stale),
                )
            )

        for item in items:
            record = existing.get(item.topic_id)
            if record is None:
                record = LearningPathRecord(user_id=user_id, topic_id=item.topic_id)
                session.add(record)
            record.priority = item.priority
            record.status = item.status.value
            record.target_mastery = item.target_mastery
            record.estimated_sessions = item.estimated_sessions
            record.completed_sessions = item.completed_sessions
        session.flush()

    # ==================== Placement ====================

    def save_placement(
        self,
        user_id: str,
        overall_level: str,
        total_questions: int,
        correct_answers: int,
        time_taken_seconds: int,
        assessments: list[TopicAssessment],
        path: list[LearningPathItem],
    ) -> None:
        """
        Persist a finished placement in one transaction: result row,
        assessments, learning path and profile level.

        Raises:
            PersistenceFailure: If any part of the write fails
        """
        with self._writing("save_placement"), self._get_session() as session:
            session.add(
                PlacementResultRecord(
                    user_id=user_id,
                    overall_level=overall_level,
                    total_questions=total_questions,
                    correct_answers=correct_answers,
                    time_taken_seconds=time_taken_seconds,
                )
            )
            self._upsert_assessments(session, user_id, assessments)
            self._replace_learning_path(session, user_id, path)

            profile = session.get(Profile, user_id)
            if profile is None:
                profile = Profile(id=user_id)
                session.add(profile)
            profile.current_level = overall_level
            profile.has_completed_placement = True
            session.flush()
        logger.info(f"Saved placement for {user_id}: {overall_level}, {len(path)} path items")

    def latest_placement(self, user_id: str) -> PlacementResultRecord | None:
        with self._get_session() as session:
            return session.scalars(
                select(PlacementResultRecord)
                .where(PlacementResultRecord.user_id == user_id)
                .order_by(PlacementResultRecord.completed_at.desc(), PlacementResultRecord.id.desc())
                .limit(1)
            ).first()

    # ==================== Practice ====================

    def get_progress(self, user_id: str) -> dict[int, UserTopicProgress]:
        with self._get_session() as session:
            records = session.scalars(
                select(UserTopicProgress).where(UserTopicProgress.user_id == user_id)
            ).all()
            return {r.topic_id: r for r in records}

    def get_topic_progress(self, user_id: str, topic_id: int) -> UserTopicProgress | None:
        with self._get_session() as session:
            return session.scalars(
                select(UserTopicProgress).where(
                    UserTopicProgress.user_id == user_id,
                    UserTopicProgress.topic_id == topic_id,
                )
            ).first()

    def save_topic_progress(self, progress: UserTopicProgress) -> UserTopicProgress:
        with self._writing("save_topic_progress"), self._get_session() as session:
            merged = session.merge(progress)
            session.flush()
            return merged

    def add_exercise(self, entry: ExerciseHistory) -> None:
        with self._writing("add_exercise"), self._get_session() as session:
            session.add(entry)
            session.flush()

    def recent_outcomes(self, user_id: str, topic_id: int, limit: int) -> list[bool]:
        """Last ``limit`` correctness flags for a topic, oldest first."""
        with self._get_session() as session:
            rows = session.scalars(
                select(ExerciseHistory.was_correct)
                .where(ExerciseHistory.user_id == user_id, ExerciseHistory.topic_id == topic_id)
                .order_by(ExerciseHistory.created_at.desc(), ExerciseHistory.id.desc())
                .limit(limit)
            ).all()
        return list(reversed(rows))

    def increment_daily_session(
        self,
        user_id: str,
        day: date,
        completed: int = 0,
        correct: int = 0,
        minutes: int = 0,
    ) -> DailySession:
        with self._writing("increment_daily_session"), self._get_session() as session:
            record = session.scalars(
                select(DailySession).where(
                    DailySession.user_id == user_id, DailySession.session_date == day
                )
            ).first()
            if record is None:
                record = DailySession(
                    user_id=user_id,
                    session_date=day,
                    exercises_completed=0,
                    exercises_correct=0,
                    minutes_practiced=0,
                )
                session.add(record)
            record.exercises_completed += completed
            record.exercises_correct += correct
            record.minutes_practiced += minutes
            session.flush()
            return record

    def get_daily_session(self, user_id: str, day: date) -> DailySession | None:
        with self._get_session() as session:
            return session.scalars(
                select(DailySession).where(
                    DailySession.user_id == user_id, DailySession.session_date == day
                )
            ).first()

    # ==================== Vocabulary ====================

    def find_vocabulary(self, user_id: str, word_de: str) -> VocabularyItem | None:
        with self._get_session() as session:
            return session.scalars(
                select(VocabularyItem).where(
                    VocabularyItem.user_id == user_id, VocabularyItem.word_de == word_de
                )
            ).first()

    def get_vocabulary(self, vocab_id: int) -> VocabularyItem | None:
        with self._get_session() as session:
            return session.get(VocabularyItem, vocab_id)

    def list_vocabulary(self, user_id: str) -> list[VocabularyItem]:
        with self._get_session() as session:
            return list(
                session.scalars(
                    select(VocabularyItem)
                    .where(VocabularyItem.user_id == user_id)
                    .order_by(VocabularyItem.next_review)
                ).all()
            )

    def due_vocabulary(
        self,
        user_id: str,
        now: datetime | None = None,
        limit: int | None = None,
    ) -> list[VocabularyItem]:
        """Items with next_review <= now, oldest-due first."""
        now = now or datetime.now(UTC)
        query = (
            select(VocabularyItem)
            .where(VocabularyItem.user_id == user_id, VocabularyItem.next_review <= now)
            .order_by(VocabularyItem.next_review, VocabularyItem.id)
        )
        if limit is not None:
            query = query.limit(limit)
        with self._get_session() as session:
            return list(session.scalars(query).all())

    def save_vocabulary(self, item: VocabularyItem) -> VocabularyItem:
        with self._writing("save_vocabulary"), self._get_session() as session:
            merged = session.merge(item)
            session.flush()
            return merged

    # ==================== Helpers ====================

    @contextmanager
    def best_effort(self) -> Iterator[None]:
        """
        Scope for writes whose failure the caller logs and ignores.

        On an injected session the writes run in a SAVEPOINT, so a failed
        flush rolls back only those writes and the session stays usable.
        Without one, each write already has its own transaction.
        """
        if self._session is None:
            yield
            return
        with self._session.begin_nested():
            yield

    @contextmanager
    def _writing(self, operation: str) -> Iterator[None]:
        try:
            yield
        except SQLAlchemyError as e:
            logger.error(f"Database write failed ({operation}): {e}")
            raise PersistenceFailure(f"{operation} failed: {e}", operation=operation) from e

    def _get_session(self):
        """Get session context manager."""
        if self._session is not None:
            class SessionWrapper:
                def __init__(self, s):
                    self.session = s
                def __enter__(self):
                    return self.session
                def __exit__(self, *args):
                    pass
            return SessionWrapper(self._session)
        return session_scope()
