"""
B1 Exam Readiness Scorer.

Aggregates per-topic proficiency into per-band scores and an exam-weighted
overall readiness percentage, ranks weak and strong topics, and picks a
recommendation.

Weights:
    A1 15%  (foundation, should be solid)
    A2 30%  (bridge)
    B1 55%  (exam target)

All displayed numbers use round-half-up.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import UTC, date, datetime, timedelta
from typing import Literal

from src.core.rounding import round_to_int
from src.core.topics import BAND_ORDER, CefrBand, GrammarTopic, ProfileLevel

BAND_WEIGHTS: dict[CefrBand, float] = {
    CefrBand.A1: 0.15,
    CefrBand.A2: 0.30,
    CefrBand.B1: 0.55,
}

WEAKNESS_MULTIPLIERS: dict[CefrBand, float] = {
    CefrBand.A1: 1.0,
    CefrBand.A2: 1.2,
    CefrBand.B1: 1.5,
}

READY_THRESHOLD = 75
DAILY_IMPROVEMENT = 0.8  # readiness points gained per practice day
WEAKEST_COUNT = 5
STRONGEST_COUNT = 3


@dataclass(frozen=True)
class TopicProgress:
    """The slice of UserTopicProgress the scorer consumes."""

    proficiency: float = 0.0
    attempts: int = 0
    correct: int = 0
    difficulty_level: int = 1
    last_practiced: datetime | None = None


@dataclass(frozen=True)
class TopicWithProgress:
    topic: GrammarTopic
    progress: TopicProgress | None = None

    @property
    def proficiency(self) -> float:
        return self.progress.proficiency if self.progress is not None else 0.0


@dataclass(frozen=True)
class TopicScore:
    """A topic as shown in the weakest / strongest lists."""

    id: int
    name_de: str
    name_en: str
    proficiency: float
    level: CefrBand


@dataclass
class ReadinessScore:
    overall: int
    by_level: dict[str, int]
    weakest_topics: list[TopicScore] = field(default_factory=list)
    strongest_topics: list[TopicScore] = field(default_factory=list)
    days_until_exam: int | None = None
    projected_ready_date: date | None = None
    recommendation: str = ""
    recommendation_de: str = ""
    raw_overall: float = 0.0

    @property
    def is_exam_ready(self) -> bool:
        return self.raw_overall >= READY_THRESHOLD


def band_score(entries: list[TopicWithProgress]) -> float:
    """Weight-weighted mean proficiency; 0 for an empty band."""
    if not entries:
        return 0.0
    total_weight = sum(e.topic.weight for e in entries)
    if total_weight <= 0:
        return 0.0
    return sum(e.proficiency * e.topic.weight for e in entries) / total_weight


def weakness_score(entry: TopicWithProgress) -> float:
    """Low proficiency, high exam weight and higher bands rank as weaker."""
    return (100 - entry.proficiency) * entry.topic.weight * WEAKNESS_MULTIPLIERS[entry.topic.level]


def days_until(exam_date: date | datetime, now: datetime) -> int:
    """Whole days until the exam, rounded up; 0 once the exam has passed."""
    if isinstance(exam_date, datetime):
        exam = exam_date if exam_date.tzinfo else exam_date.replace(tzinfo=UTC)
    else:
        exam = datetime(exam_date.year, exam_date.month, exam_date.day, tzinfo=UTC)
    if now.tzinfo is None:
        now = now.replace(tzinfo=UTC)
    days = math.ceil((exam - now).total_seconds() / 86400)
    return max(0, days)


class ReadinessScorer:
    """
    Computes the exam readiness dashboard.

    Pure and stateless; runs from persisted per-topic aggregates.
    """

    def __init__(
        self,
        ready_threshold: float = READY_THRESHOLD,
        daily_improvement: float = DAILY_IMPROVEMENT,
    ):
        self.ready_threshold = ready_threshold
        self.daily_improvement = daily_improvement

    def score(
        self,
        topics: list[TopicWithProgress],
        exam_date: date | datetime | None = None,
        current_level: ProfileLevel | str = ProfileLevel.A1_1,
        now: datetime | None = None,
    ) -> ReadinessScore:
        """
        Calculate the readiness score.

        Args:
            topics: Every catalog topic paired with its progress (or None)
            exam_date: Optional exam date
            current_level: Learner's profile level (informational)
            now: Reference time (defaults to UTC now)

        Returns:
            ReadinessScore with rounded band and overall values
        """
        now = now or datetime.now(UTC)

        level_scores = {
            band: band_score([t for t in topics if t.topic.level == band]) for band in BAND_ORDER
        }
        overall = sum(level_scores[band] * BAND_WEIGHTS[band] for band in BAND_ORDER)

        weakest = [
            self._to_score(e)
            for e in sorted(topics, key=weakness_score, reverse=True)[:WEAKEST_COUNT]
        ]
        strongest = [
            self._to_score(e)
            for e in sorted(topics, key=lambda e: e.proficiency, reverse=True)[:STRONGEST_COUNT]
        ]

        days_until_exam = days_until(exam_date, now) if exam_date is not None else None

        projected = None
        if overall < self.ready_threshold:
            points_needed = max(0.0, self.ready_threshold - overall)
            days_to_ready = math.ceil(points_needed / self.daily_improvement)
            projected = now.date() + timedelta(days=days_to_ready)

        recommendation, recommendation_de = self.recommend(
            overall, level_scores, weakest, days_until_exam
        )

        return ReadinessScore(
            overall=round_to_int(overall),
            by_level={band.value: round_to_int(level_scores[band]) for band in BAND_ORDER},
            weakest_topics=weakest,
            strongest_topics=strongest,
            days_until_exam=days_until_exam,
            projected_ready_date=projected,
            recommendation=recommendation,
            recommendation_de=recommendation_de,
            raw_overall=overall,
        )

    @staticmethod
    def _to_score(entry: TopicWithProgress) -> TopicScore:
        return TopicScore(
            id=entry.topic.id,
            name_de=entry.topic.name_de,
            name_en=entry.topic.name_en,
            proficiency=entry.proficiency,
            level=entry.topic.level,
        )

    def recommend(
        self,
        overall: float,
        level_scores: dict[CefrBand, float],
        weakest: list[TopicScore],
        days_until_exam: int | None,
    ) -> tuple[str, str]:
        """
        Pick the recommendation (English, German). Earlier rules win.
        """
        if level_scores[CefrBand.A1] < 60:
            return (
                "Focus on A1 basics first. Your foundation needs strengthening before moving to harder topics.",
                "Konzentriere dich zuerst auf A1-Grundlagen. Dein Fundament muss stärker werden.",
            )

        if level_scores[CefrBand.A2] < 50:
            names = ", ".join([t.name_de for t in weakest if t.level == CefrBand.A2][:2])
            return (
                f"Strengthen your A2 grammar. Key topics to practice: {names}.",
                f"Stärke deine A2-Grammatik. Wichtige Themen: {names}.",
            )

        if overall >= self.ready_threshold:
            return (
                "You're exam-ready! Keep practicing to maintain your skills. Focus on any remaining weak spots.",
                "Du bist prüfungsbereit! Übe weiter, um deine Fähigkeiten zu halten.",
            )

        if days_until_exam is not None and days_until_exam < 30 and overall < 60:
            names = ", ".join(t.name_de for t in weakest[:3])
            return (
                f"Exam is soon! Intensify practice on: {names}. Consider daily sessions.",
                f"Die Prüfung ist bald! Intensive Übung bei: {names}. Täglich üben!",
            )

        if not weakest:
            return (
                "Good progress! Practice daily for best results.",
                "Guter Fortschritt! Täglich üben für beste Ergebnisse.",
            )

        top = weakest[0]
        return (
            f"Good progress! Next focus: {top.name_de} ({top.level.value}). Practice daily for best results.",
            f"Guter Fortschritt! Nächster Fokus: {top.name_de}. Täglich üben für beste Ergebnisse.",
        )


def calculate_readiness_score(
    topics: list[TopicWithProgress],
    exam_date: date | datetime | None = None,
    current_level: ProfileLevel | str = ProfileLevel.A1_1,
    now: datetime | None = None,
) -> ReadinessScore:
    """Module-level shortcut using the default scorer."""
    return ReadinessScorer().score(topics, exam_date, current_level, now)


@dataclass(frozen=True)
class DailyGoal:
    minutes: int
    exercises: int
    urgency: Literal["low", "medium", "high"]


def calculate_daily_goal(
    current_readiness: float,
    days_until_exam: int | None,
    target_readiness: float = READY_THRESHOLD,
) -> DailyGoal:
    """Daily practice goal from the readiness gap and time left."""
    gap = target_readiness - current_readiness

    if gap <= 0:
        return DailyGoal(minutes=15, exercises=10, urgency="low")

    if days_until_exam is None or days_until_exam > 90:
        return DailyGoal(minutes=15, exercises=10, urgency="low")

    if days_until_exam > 30:
        if gap > 30:
            return DailyGoal(minutes=30, exercises=20, urgency="high")
        return DailyGoal(minutes=20, exercises=15, urgency="medium")

    return DailyGoal(minutes=30, exercises=25, urgency="high")
