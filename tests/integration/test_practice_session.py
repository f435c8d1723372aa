"""
Integration tests for a practice round: generation at the stored difficulty,
grading through the provider, and progress recorded in the database.

The provider talks to an httpx.MockTransport instead of a real model server.
"""

import json
import random
from datetime import UTC, date, datetime, timedelta

import httpx
import pytest

from src.db.repository import CoachRepository
from src.generation.provider import OllamaProvider
from src.generation.question_service import QuestionService
from src.study.practice_service import PracticeService
from src.study.practice_session import PracticeSession

pytestmark = pytest.mark.integration

NOW = datetime(2026, 3, 1, 18, 0, tzinfo=UTC)

# Valid for every question type, so the random type choice never matters
EXERCISE = {
    "prompt_en": "Choose the right article",
    "prompt_de": "Ich sehe ___ Mann.",
    "correct_answer": "den",
    "options": ["der", "den", "dem", "des"],
}


class ScriptedModel:
    """Answers generation prompts with EXERCISE and grading prompts with a verdict."""

    def __init__(self, verdict):
        self.verdict = verdict
        self.prompts = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        prompt = json.loads(request.content)["prompt"]
        self.prompts.append(prompt)
        reply = self.verdict if "grading a practice exercise" in prompt else EXERCISE
        return httpx.Response(200, json={"response": json.dumps(reply)})


@pytest.fixture
def repo(db_session):
    return CoachRepository(session=db_session)


def make_session(repo, topics, model):
    provider = OllamaProvider(client=httpx.AsyncClient(transport=httpx.MockTransport(model)))
    return PracticeSession(
        "anna",
        topics,
        QuestionService(provider, rng=random.Random(1)),
        PracticeService(repository=repo, window=10),
        rng=random.Random(0),
    )


class TestPracticeRound:
    @pytest.mark.asyncio
    async def test_first_exercise_uses_band_difficulty(self, repo, topics):
        model = ScriptedModel({"is_correct": True, "feedback_de": "Richtig!"})
        session = make_session(repo, topics, model)

        exercise = await session.next_exercise(topics[5])  # B1 Passiv
        assert exercise.difficulty == 4
        assert "Difficulty: 4/5" in model.prompts[0]

    @pytest.mark.asyncio
    async def test_submit_records_progress_and_vocabulary(self, repo, topics):
        model = ScriptedModel(
            {
                "is_correct": True,
                "feedback_de": "Gut gemacht!",
                "vocabulary_to_learn": [
                    {"de": "Mann", "en": "man", "gender": "der"},
                    {"de": "sehen", "en": "to see", "gender": "null"},
                ],
            }
        )
        session = make_session(repo, topics, model)
        exercise = await session.next_exercise(topics[1])

        result = await session.submit(exercise, "den", time_taken_seconds=45, now=NOW)

        assert result.outcome.was_correct
        assert result.outcome.added_vocabulary == ["Mann", "sehen"]
        assert repo.find_vocabulary("anna", "Mann").display_word == "der Mann"
        assert repo.find_vocabulary("anna", "sehen").gender is None

        progress = repo.get_topic_progress("anna", 2)
        assert (progress.attempts, progress.correct, progress.difficulty_level) == (1, 1, 2)
        daily = repo.get_daily_session("anna", date(2026, 3, 1))
        assert (daily.exercises_completed, daily.exercises_correct, daily.minutes_practiced) == (1, 1, 1)

    @pytest.mark.asyncio
    async def test_acceptable_alternative_counts_as_correct(self, repo, topics):
        model = ScriptedModel({"is_correct": False, "is_acceptable": True})
        session = make_session(repo, topics, model)
        exercise = await session.next_exercise(topics[0])

        result = await session.submit(exercise, "Den", now=NOW)
        assert result.outcome.was_correct
        assert repo.recent_outcomes("anna", 1, 10) == [True]

    @pytest.mark.asyncio
    async def test_difficulty_follows_the_rolling_window(self, repo, topics):
        model = ScriptedModel({"is_correct": True})
        session = make_session(repo, topics, model)
        topic = topics[1]

        for minute in range(5):
            exercise = await session.next_exercise(topic)
            assert exercise.difficulty == 2
            result = await session.submit(exercise, "den", now=NOW + timedelta(minutes=minute))

        assert result.outcome.adjustment.reason == "increased"
        assert repo.get_topic_progress("anna", 2).difficulty_level == 3

        exercise = await session.next_exercise(topic)
        assert exercise.difficulty == 3

    @pytest.mark.asyncio
    async def test_grader_failure_falls_back_to_local_check(self, repo, topics):
        def handler(request):
            prompt = json.loads(request.content)["prompt"]
            if "grading a practice exercise" in prompt:
                return httpx.Response(503, text="busy")
            return httpx.Response(200, json={"response": json.dumps(EXERCISE)})

        session = make_session(repo, topics, handler)
        exercise = await session.next_exercise(topics[0])

        result = await session.submit(exercise, "dem", now=NOW)
        assert not result.outcome.was_correct
        assert result.evaluation.vocabulary_to_learn == []
        assert result.outcome.added_vocabulary == []

    def test_plan_returns_topics(self, repo, topics):
        session = make_session(repo, topics, ScriptedModel({"is_correct": True}))
        planned = session.plan("A1.2", length=3, now=NOW)
        assert sorted(t.id for t in planned) == [1, 2, 3]
