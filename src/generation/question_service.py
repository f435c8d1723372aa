"""
Question generation and answer evaluation for placement and practice.

Wraps an AIProvider with prompt rendering, JSON extraction and strict schema
validation. Generation failures raise ExternalGenerationFailure; evaluation
never fails and falls back to a local string comparison.
"""

from __future__ import annotations

import random
import uuid

from loguru import logger
from pydantic import ValidationError

from src.adaptive.placement import (
    QUESTION_TYPES,
    PlacementQuestion,
    QuestionType,
    initial_difficulty_for_band,
)
from src.core.errors import ExternalGenerationFailure, InvalidInput
from src.core.topics import GrammarTopic
from src.generation.prompts import (
    build_evaluation_prompt,
    build_exercise_evaluation_prompt,
    build_question_prompt,
)
from src.generation.provider import AIProvider, parse_ai_response
from src.generation.schemas import AnswerEvaluation, question_payload_adapter


def normalize_answer(text: str) -> str:
    return text.strip().lower()


def local_evaluation(user_answer: str, correct_answer: str) -> AnswerEvaluation:
    """Exact case-insensitive comparison with fixed bilingual feedback."""
    is_correct = normalize_answer(user_answer) == normalize_answer(correct_answer)
    return AnswerEvaluation(
        is_correct=is_correct,
        is_acceptable=is_correct,
        feedback_de="Richtig!" if is_correct else f"Die richtige Antwort ist: {correct_answer}",
        feedback_en="Correct!" if is_correct else f"The correct answer is: {correct_answer}",
    )


class QuestionService:
    """Generates and grades placement questions through a text-generation provider."""

    def __init__(self, provider: AIProvider, rng: random.Random | None = None):
        self.provider = provider
        self.rng = rng or random.Random()

    async def generate_question(
        self,
        topic: GrammarTopic,
        question_type: QuestionType | None = None,
        difficulty: int | None = None,
    ) -> PlacementQuestion:
        """
        Generate one placement question for a topic.

        Args:
            topic: Grammar topic to test
            question_type: Fixed type, or None for a random one
            difficulty: 1-5, or None for the band's starting difficulty

        Raises:
            InvalidInput: If difficulty is outside 1..5
            ExternalGenerationFailure: If the provider fails or the payload is invalid
        """
        if difficulty is None:
            difficulty = initial_difficulty_for_band(topic.level)
        if not 1 <= difficulty <= 5:
            raise InvalidInput(f"difficulty must be within 1..5, got {difficulty}")
        if question_type is None:
            question_type = self.rng.choice(QUESTION_TYPES)  # type: ignore[assignment]

        prompt = build_question_prompt(topic, question_type, difficulty)
        try:
            response = await self.provider.generate(prompt)
            data = parse_ai_response(response.content)
            payload = question_payload_adapter.validate_python({**data, "type": question_type})
        except ExternalGenerationFailure as e:
            e.topic_id = topic.id
            raise
        except ValidationError as e:
            logger.warning(f"Rejected generated {question_type} question for topic {topic.id}: {e.error_count()} errors")
            raise ExternalGenerationFailure(
                f"Generated {question_type} question failed validation", topic_id=topic.id
            ) from e

        return PlacementQuestion(
            id=str(uuid.uuid4()),
            topic_id=topic.id,
            level=topic.level,
            type=payload.type,
            prompt_en=payload.prompt_en,
            prompt_de=payload.prompt_de,
            correct_answer=payload.correct_answer,
            options=getattr(payload, "options", None),
            hint=payload.hint,
            difficulty=difficulty,
        )

    async def evaluate_answer(
        self,
        question: PlacementQuestion,
        topic: GrammarTopic,
        user_answer: str,
    ) -> AnswerEvaluation:
        """
        Grade an answer.

        Multiple choice is decided locally. Free-text answers go to the
        provider; any provider or payload failure degrades to the local check.
        """
        if question.type == "grammar_choice":
            return local_evaluation(user_answer, question.correct_answer)

        prompt = build_evaluation_prompt(
            topic,
            question.type,
            prompt=question.prompt_de or question.prompt_en,
            correct_answer=question.correct_answer,
            user_answer=user_answer,
        )
        return await self._grade(question, prompt, user_answer)

    async def evaluate_exercise(
        self,
        exercise: PlacementQuestion,
        topic: GrammarTopic,
        user_answer: str,
    ) -> AnswerEvaluation:
        """
        Grade a practice answer.

        Every type goes to the provider so the verdict can carry a corrected
        version and vocabulary suggestions. Falls back to the local check.
        """
        prompt = build_exercise_evaluation_prompt(
            topic,
            exercise.type,
            prompt=exercise.prompt_de or exercise.prompt_en,
            correct_answer=exercise.correct_answer,
            user_answer=user_answer,
        )
        return await self._grade(exercise, prompt, user_answer)

    async def _grade(self, question: PlacementQuestion, prompt: str, user_answer: str) -> AnswerEvaluation:
        try:
            response = await self.provider.generate(prompt)
            return AnswerEvaluation.model_validate(parse_ai_response(response.content))
        except (ExternalGenerationFailure, ValidationError) as e:
            logger.warning(f"Answer evaluation failed for question {question.id}, using local comparison: {e}")
            return local_evaluation(user_answer, question.correct_answer)
