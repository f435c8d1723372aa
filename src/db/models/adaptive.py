"""
Adaptive Assessment Models.

SQLAlchemy models written at the end of a placement test:
- Per-topic assessment (upsert per learner and topic)
- Learning path items (one row per learner and topic)
- Placement result summary (one row per completed test)
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Float, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from src.adaptive.learning_path import LearningPathItem, PathStatus
from src.core.mastery import MasteryLevel, TopicAssessment

from .base import Base, utcnow


class TopicAssessmentRecord(Base):
    """
    Latest placement assessment of one topic for one learner.

    questions_correct <= questions_asked and 0 <= confidence_score <= 1.
    """

    __tablename__ = "topic_assessments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    topic_id: Mapped[int] = mapped_column(
        ForeignKey("grammar_topics.id", ondelete="CASCADE"), nullable=False
    )
    questions_asked: Mapped[int] = mapped_column(Integer, default=0)
    questions_correct: Mapped[int] = mapped_column(Integer, default=0)
    mastery_level: Mapped[str] = mapped_column(String(20), default=MasteryLevel.NOT_ASSESSED.value)
    confidence_score: Mapped[float] = mapped_column(Float, default=0.0)
    assessed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    __table_args__ = (UniqueConstraint("user_id", "topic_id", name="uq_assessment_user_topic"),)

    def to_domain(self) -> TopicAssessment:
        return TopicAssessment(
            topic_id=self.topic_id,
            questions_asked=self.questions_asked,
            questions_correct=self.questions_correct,
            mastery_level=MasteryLevel(self.mastery_level),
            confidence_score=self.confidence_score,
        )

    def __repr__(self) -> str:
        return f"<TopicAssessmentRecord user={self.user_id} topic={self.topic_id} {self.mastery_level}>"


class LearningPathRecord(Base):
    """One topic slot in a learner's remediation plan."""

    __tablename__ = "learning_paths"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(Text, nullable=False)
    topic_id: Mapped[int] = mapped_column(
        ForeignKey("grammar_topics.id", ondelete="CASCADE"), nullable=False
    )
    priority: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(String(20), default=PathStatus.PENDING.value)
    target_mastery: Mapped[float] = mapped_column(Float, default=0.80)
    estimated_sessions: Mapped[int] = mapped_column(Integer, default=5)
    completed_sessions: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    __table_args__ = (
        UniqueConstraint("user_id", "topic_id", name="uq_path_user_topic"),
        Index("idx_path_priority", "user_id", "priority"),
    )

    def to_domain(self) -> LearningPathItem:
        return LearningPathItem(
            topic_id=self.topic_id,
            priority=self.priority,
            status=PathStatus(self.status),
            estimated_sessions=self.estimated_sessions,
            completed_sessions=self.completed_sessions,
            target_mastery=self.target_mastery,
        )


class PlacementResultRecord(Base):
    """Summary row for a completed placement test."""

    __tablename__ = "placement_results"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    overall_level: Mapped[str] = mapped_column(String(4), nullable=False)  # A1.1 .. B1.2
    total_questions: Mapped[int] = mapped_column(Integer, nullable=False)
    correct_answers: Mapped[int] = mapped_column(Integer, nullable=False)
    time_taken_seconds: Mapped[int | None] = mapped_column(Integer)
    completed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    def __repr__(self) -> str:
        return f"<PlacementResultRecord user={self.user_id} level={self.overall_level}>"
