"""
Strict schemas for generated placement questions and answer evaluations.

Model output is parsed into a discriminated union keyed on the question
type, so a translate payload and a grammar-choice payload are validated by
different rules.
"""

from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator, model_validator


class _QuestionPayload(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    prompt_en: str = Field(min_length=1)
    correct_answer: str = Field(min_length=1)
    hint: str | None = None
    explanation_de: str | None = None
    explanation_en: str | None = None


class TranslatePayload(_QuestionPayload):
    """English sentence to translate; the learner writes the German."""

    type: Literal["translate"] = "translate"
    prompt_de: str | None = None


class FillGapPayload(_QuestionPayload):
    """German sentence with a ___ gap; answer is the missing word."""

    type: Literal["fill_gap"] = "fill_gap"
    prompt_de: str = Field(min_length=1)


class GrammarChoicePayload(_QuestionPayload):
    type: Literal["grammar_choice"] = "grammar_choice"
    prompt_de: str | None = None
    options: list[str] = Field(min_length=2)

    @model_validator(mode="after")
    def _answer_among_options(self) -> GrammarChoicePayload:
        wanted = self.correct_answer.strip().lower()
        if not any(option.strip().lower() == wanted for option in self.options):
            raise ValueError("correct_answer must be one of the options")
        return self


class ErrorDetectionPayload(_QuestionPayload):
    """German sentence containing an error; answer is the corrected sentence."""

    type: Literal["error_detection"] = "error_detection"
    prompt_de: str = Field(min_length=1)

    @model_validator(mode="after")
    def _correction_differs(self) -> ErrorDetectionPayload:
        if self.correct_answer.strip() == self.prompt_de.strip():
            raise ValueError("corrected sentence must differ from the erroneous one")
        return self


QuestionPayload = Annotated[
    Union[TranslatePayload, FillGapPayload, GrammarChoicePayload, ErrorDetectionPayload],
    Field(discriminator="type"),
]

question_payload_adapter: TypeAdapter[QuestionPayload] = TypeAdapter(QuestionPayload)


class SuggestedWord(BaseModel):
    """A word the grader suggests adding to the vocabulary deck."""

    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    de: str = Field(min_length=1)
    en: str = Field(min_length=1)
    gender: str | None = None

    @field_validator("gender")
    @classmethod
    def _article_or_none(cls, value: str | None) -> str | None:
        return value if value in ("der", "die", "das") else None


class AnswerEvaluation(BaseModel):
    """Verdict on a learner's placement or practice answer."""

    model_config = ConfigDict(extra="ignore")

    is_correct: bool
    is_acceptable: bool = False
    feedback_de: str = ""
    feedback_en: str = ""
    corrected_version: str | None = None
    vocabulary_to_learn: list[SuggestedWord] = Field(default_factory=list)
