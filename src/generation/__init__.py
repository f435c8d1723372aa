"""Placement question generation over a pluggable text-generation provider.

Pipeline:
1. Prompt rendered per question type and difficulty
2. Provider (Ollama / Groq / Claude) returns raw text
3. JSON extracted and validated against a strict per-type schema

Usage:
    from src.generation import QuestionService, get_ai_provider

    async with get_ai_provider() as provider:
        service = QuestionService(provider)
        question = await service.generate_question(topic)
"""
from src.generation.provider import (
    AIProvider,
    AIResponse,
    ClaudeProvider,
    GroqProvider,
    OllamaProvider,
    get_ai_provider,
    parse_ai_response,
)
from src.generation.question_service import QuestionService, local_evaluation
from src.generation.schemas import AnswerEvaluation, question_payload_adapter

__all__ = [
    "AIProvider",
    "AIResponse",
    "OllamaProvider",
    "GroqProvider",
    "ClaudeProvider",
    "get_ai_provider",
    "parse_ai_response",
    "QuestionService",
    "local_evaluation",
    "AnswerEvaluation",
    "question_payload_adapter",
]
