"""
Integration tests for the vocabulary deck and SM-2 reviews.
"""

from datetime import UTC, date, datetime, time, timedelta

import pytest

from src.core.errors import InvalidInput
from src.db.repository import CoachRepository
from src.study.vocabulary_service import VocabularyService

pytestmark = pytest.mark.integration

NOW = datetime(2026, 3, 1, 8, 0, tzinfo=UTC)


def naive(value):
    return value.replace(tzinfo=None) if value.tzinfo else value


@pytest.fixture
def service(db_session):
    return VocabularyService(repository=CoachRepository(session=db_session))


class TestAddWord:
    def test_new_word_is_due_now(self, service):
        item = service.add_word("anna", " Hund ", "dog", gender="der", now=NOW)
        assert item.word_de == "Hund"
        assert item.ease_factor == 2.5
        assert item.interval_days == 1
        assert [i.word_de for i in service.due_items("anna", now=NOW)] == ["Hund"]

    def test_re_adding_returns_existing(self, service):
        first = service.add_word("anna", "Hund", "dog", now=NOW)
        second = service.add_word("anna", "Hund", "hound", now=NOW)
        assert second.id == first.id
        assert second.word_en == "dog"

    @pytest.mark.parametrize(
        "word_de,word_en,gender",
        [("", "dog", None), ("Hund", " ", None), ("Hund", "dog", "den")],
    )
    def test_invalid(self, service, word_de, word_en, gender):
        with pytest.raises(InvalidInput):
            service.add_word("anna", word_de, word_en, gender=gender)


class TestReview:
    def test_three_correct_reviews(self, service):
        item = service.add_word("anna", "Baum", "tree", now=NOW)
        intervals = []
        when = NOW
        for _ in range(3):
            result = service.review(item.id, True, now=when)
            intervals.append(result.interval_days)
            when = when + timedelta(days=result.interval_days)
        assert intervals == [1, 6, 16]

        stored = service.repository.get_vocabulary(item.id)
        assert stored.ease_factor == 2.8
        assert stored.consecutive_correct == 3
        assert naive(stored.next_review) == datetime.combine(when.date(), time.min)

    def test_miss_brings_item_back_tomorrow(self, service):
        item = service.add_word("anna", "Tisch", "table", now=NOW)
        service.review(item.id, True, now=NOW)
        service.review(item.id, True, now=NOW + timedelta(days=1))

        result = service.review(item.id, False, now=NOW + timedelta(days=7))
        assert result.interval_days == 1
        assert result.ease_factor == 2.5
        assert service.due_items("anna", now=NOW + timedelta(days=7)) == []
        assert len(service.due_items("anna", now=NOW + timedelta(days=8))) == 1

    def test_late_review_is_due_next_morning(self, service):
        late = datetime(2026, 3, 1, 23, 30, tzinfo=UTC)
        item = service.add_word("anna", "Haus", "house", now=late)

        result = service.review(item.id, True, now=late)
        assert result.next_review == date(2026, 3, 2)

        stored = service.repository.get_vocabulary(item.id)
        assert naive(stored.next_review) == datetime(2026, 3, 2, 0, 0)
        morning = datetime(2026, 3, 2, 8, 0, tzinfo=UTC)
        assert [i.word_de for i in service.due_items("anna", now=morning)] == ["Haus"]

    def test_unknown_item(self, service):
        with pytest.raises(InvalidInput):
            service.review(12345, True, now=NOW)


class TestForecast:
    def test_counts_per_day(self, service):
        service.add_word("anna", "Hund", "dog", now=NOW)
        cat = service.add_word("anna", "Katze", "cat", now=NOW)
        service.review(cat.id, True, now=NOW)

        forecast = service.forecast("anna", today=date(2026, 3, 1), days=3)
        assert forecast == {"2026-03-01": 1, "2026-03-02": 1, "2026-03-03": 0}
