"""
Vocabulary Service - deck management and SM-2 reviews over the record store.
"""

from __future__ import annotations

from datetime import UTC, date, datetime, time

from loguru import logger

from src.core.errors import InvalidInput
from src.db.models import VocabularyItem
from src.db.repository import CoachRepository
from src.study.spaced_repetition import (
    DEFAULT_EASE_FACTOR,
    FIRST_INTERVAL_DAYS,
    ReviewResult,
    SpacedRepetitionScheduler,
    review_forecast,
)

GENDERS = ("der", "die", "das")


class VocabularyService:
    def __init__(
        self,
        repository: CoachRepository | None = None,
        scheduler: SpacedRepetitionScheduler | None = None,
    ):
        self.repository = repository or CoachRepository()
        self.scheduler = scheduler or SpacedRepetitionScheduler()

    def add_word(
        self,
        user_id: str,
        word_de: str,
        word_en: str,
        gender: str | None = None,
        part_of_speech: str | None = None,
        example_de: str | None = None,
        example_en: str | None = None,
        now: datetime | None = None,
    ) -> VocabularyItem:
        """
        Add a word to the learner's deck, due immediately.

        Re-adding an existing word returns the stored item unchanged.
        """
        word_de = word_de.strip()
        word_en = word_en.strip()
        if not word_de or not word_en:
            raise InvalidInput("word_de and word_en are required")
        if gender is not None and gender not in GENDERS:
            raise InvalidInput(f"gender must be one of {', '.join(GENDERS)}, got {gender!r}")

        existing = self.repository.find_vocabulary(user_id, word_de)
        if existing is not None:
            return existing

        item = VocabularyItem(
            user_id=user_id,
            word_de=word_de,
            word_en=word_en,
            gender=gender,
            part_of_speech=part_of_speech,
            example_sentence_de=example_de,
            example_sentence_en=example_en,
            ease_factor=DEFAULT_EASE_FACTOR,
            interval_days=FIRST_INTERVAL_DAYS,
            next_review=now or datetime.now(UTC),
            review_count=0,
            consecutive_correct=0,
        )
        saved = self.repository.save_vocabulary(item)
        logger.info(f"Added vocabulary '{word_de}' for {user_id}")
        return saved

    def due_items(
        self,
        user_id: str,
        now: datetime | None = None,
        limit: int | None = None,
    ) -> list[VocabularyItem]:
        return self.repository.due_vocabulary(user_id, now, limit)

    def review(
        self,
        vocab_id: int,
        was_correct: bool,
        now: datetime | None = None,
    ) -> ReviewResult:
        """
        Apply one review outcome and reschedule the item.

        Raises:
            InvalidInput: If the item does not exist
            PersistenceFailure: If the new state cannot be saved
        """
        now = now or datetime.now(UTC)
        item = self.repository.get_vocabulary(vocab_id)
        if item is None:
            raise InvalidInput(f"Vocabulary item {vocab_id} not found")

        result = self.scheduler.review(item.review_state, was_correct, today=now.date())

        item.ease_factor = result.ease_factor
        item.interval_days = result.interval_days
        item.consecutive_correct = result.consecutive_correct
        item.review_count = result.review_count
        item.next_review = datetime.combine(result.next_review, time.min, tzinfo=UTC)
        self.repository.save_vocabulary(item)

        logger.debug(
            f"Reviewed '{item.word_de}': {'correct' if was_correct else 'missed'}, next in {result.interval_days}d"
        )
        return result

    def forecast(self, user_id: str, today: date | None = None, days: int = 7) -> dict[str, int]:
        """Upcoming review load per day."""
        today = today or datetime.now(UTC).date()
        return review_forecast(self.repository.list_vocabulary(user_id), today, days)
