"""
Learner Models.

Per-learner state mutated during practice and review:
- Profile (level, exam date, daily goal)
- Topic progress (attempts, difficulty, proficiency)
- Exercise history (one row per practice submission)
- Daily session counters
- Vocabulary items with SM-2 review state
"""

from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from src.study.readiness import TopicProgress
from src.study.spaced_repetition import ReviewState

from .base import Base, utcnow


class Profile(Base):
    __tablename__ = "profiles"

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    display_name: Mapped[str | None] = mapped_column(Text)
    current_level: Mapped[str] = mapped_column(String(4), default="A1.1")
    exam_date: Mapped[date | None] = mapped_column(Date)
    daily_goal_minutes: Mapped[int] = mapped_column(Integer, default=15)
    has_completed_placement: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )

    def __repr__(self) -> str:
        return f"<Profile {self.id} level={self.current_level}>"


class UserTopicProgress(Base):
    """
    Practice aggregate for one learner and topic.

    Created on first practice, never reset. difficulty_level in 1..5,
    proficiency in 0..100.
    """

    __tablename__ = "user_topic_progress"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    topic_id: Mapped[int] = mapped_column(
        ForeignKey("grammar_topics.id", ondelete="CASCADE"), nullable=False
    )
    attempts: Mapped[int] = mapped_column(Integer, default=0)
    correct: Mapped[int] = mapped_column(Integer, default=0)
    difficulty_level: Mapped[int] = mapped_column(Integer, default=1)
    proficiency: Mapped[float] = mapped_column(Float, default=0.0)
    last_practiced: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    __table_args__ = (UniqueConstraint("user_id", "topic_id", name="uq_progress_user_topic"),)

    def to_domain(self) -> TopicProgress:
        return TopicProgress(
            proficiency=self.proficiency,
            attempts=self.attempts,
            correct=self.correct,
            difficulty_level=self.difficulty_level,
            last_practiced=self.last_practiced,
        )


class ExerciseHistory(Base):
    """One practice submission. Source of the rolling difficulty window."""

    __tablename__ = "exercise_history"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(Text, nullable=False)
    topic_id: Mapped[int] = mapped_column(
        ForeignKey("grammar_topics.id", ondelete="CASCADE"), nullable=False
    )
    exercise_type: Mapped[str] = mapped_column(String(30), nullable=False)
    difficulty_level: Mapped[int] = mapped_column(Integer, default=1)
    was_correct: Mapped[bool] = mapped_column(Boolean, nullable=False)
    user_answer: Mapped[str | None] = mapped_column(Text)
    time_taken_seconds: Mapped[int | None] = mapped_column(Integer)
    used_english_help: Mapped[bool] = mapped_column(Boolean, default=False)
    session_id: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    __table_args__ = (Index("idx_history_user_topic_time", "user_id", "topic_id", "created_at"),)


class DailySession(Base):
    __tablename__ = "daily_sessions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(Text, nullable=False)
    session_date: Mapped[date] = mapped_column(Date, nullable=False)
    exercises_completed: Mapped[int] = mapped_column(Integer, default=0)
    exercises_correct: Mapped[int] = mapped_column(Integer, default=0)
    minutes_practiced: Mapped[int] = mapped_column(Integer, default=0)

    __table_args__ = (UniqueConstraint("user_id", "session_date", name="uq_daily_session"),)


class VocabularyItem(Base):
    """
    A vocabulary card with its SM-2 review state.

    ease_factor >= 1.3, interval_days >= 1. Due when next_review <= now.
    """

    __tablename__ = "vocabulary"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(Text, nullable=False)
    word_de: Mapped[str] = mapped_column(Text, nullable=False)
    word_en: Mapped[str] = mapped_column(Text, nullable=False)
    gender: Mapped[str | None] = mapped_column(String(3))  # der, die, das
    part_of_speech: Mapped[str | None] = mapped_column(String(30))
    example_sentence_de: Mapped[str | None] = mapped_column(Text)
    example_sentence_en: Mapped[str | None] = mapped_column(Text)
    source_topic_id: Mapped[int | None] = mapped_column(
        ForeignKey("grammar_topics.id", ondelete="SET NULL")
    )
    ease_factor: Mapped[float] = mapped_column(Float, default=2.5)
    interval_days: Mapped[int] = mapped_column(Integer, default=1)
    next_review: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    review_count: Mapped[int] = mapped_column(Integer, default=0)
    consecutive_correct: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    __table_args__ = (
        UniqueConstraint("user_id", "word_de", name="uq_vocab_user_word"),
        Index("idx_vocab_due", "user_id", "next_review"),
    )

    @property
    def review_state(self) -> ReviewState:
        return ReviewState(
            ease_factor=self.ease_factor,
            interval_days=self.interval_days,
            consecutive_correct=self.consecutive_correct,
            review_count=self.review_count,
        )

    @property
    def display_word(self) -> str:
        return f"{self.gender} {self.word_de}" if self.gender else self.word_de

    def __repr__(self) -> str:
        return f"<VocabularyItem {self.word_de} next={self.next_review}>"
