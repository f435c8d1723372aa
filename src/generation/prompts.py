"""
Prompt templates for placement question generation and answer evaluation.

Each template asks for a single JSON object so the response can be validated
against the schemas in src.generation.schemas.
"""
from __future__ import annotations

from src.adaptive.placement import QuestionType
from src.core.topics import GrammarTopic

DIFFICULTY_GUIDE: dict[int, str] = {
    1: "Very basic: simple sentences, common vocabulary, single concept",
    2: "Basic: slightly longer sentences, standard vocabulary",
    3: "Intermediate: moderate complexity, some subordinate clauses",
    4: "Upper intermediate: complex structures, less common vocabulary",
    5: "Advanced: B1 exam level complexity",
}

# =============================================================================
# Per-type instructions
# =============================================================================

QUESTION_INSTRUCTIONS: dict[str, str] = {
    "translate": """Create a TRANSLATION question.
- prompt_en: An English sentence to translate
- prompt_de: null (the learner writes the German)
- correct_answer: The expected German translation
The sentence should test: {name_en}""",
    "fill_gap": """Create a FILL THE GAP question.
- prompt_en: Short instruction like "Fill in the blank"
- prompt_de: A German sentence with ___ for the missing word (e.g. "Ich ___ nach Hause.")
- correct_answer: The missing word (e.g. "gehe")
The missing word should test: {name_en}""",
    "grammar_choice": """Create a GRAMMAR CHOICE question.
- prompt_en: Short instruction
- prompt_de: A German sentence with a blank
- correct_answer: The correct option, copied exactly
- options: Array of 4 choices (one correct, three wrong)
Test: {name_en}""",
    "error_detection": """Create an ERROR DETECTION question.
- prompt_en: "Find and correct the error in this sentence"
- prompt_de: A German sentence WITH A GRAMMATICAL ERROR
- correct_answer: The CORRECTED sentence
The error must relate to: {name_en}""",
}

QUESTION_PROMPT = """You are assessing a German learner's knowledge for a placement test.

{instructions}

Requirements:
- Difficulty: {difficulty}/5 - {difficulty_guide}
- Grammar focus: {name_de} ({name_en})
- Keep sentences practical and natural
- The question should clearly test understanding of this specific grammar point

IMPORTANT: Respond ONLY with valid JSON, no other text.
{{
  "prompt_en": "English instruction or sentence to translate",
  "prompt_de": "German sentence (required for fill_gap and error_detection)",
  "correct_answer": "The expected correct answer",
  "options": {options},
  "hint": "Brief hint",
  "explanation_de": "Simple German explanation",
  "explanation_en": "English explanation"
}}"""

EVALUATION_PROMPT = """You are evaluating a placement test answer.

Question type: {question_type}
Grammar focus: {name_en} ({name_de})
Question: {prompt}
Expected answer: {correct_answer}
User's answer: {user_answer}

Evaluate strictly for this placement test. Be fair but precise.
Accept minor typos but not grammar errors for the tested concept.

Respond in JSON:
{{
  "is_correct": true/false,
  "is_acceptable": true/false (correct concept but minor variation),
  "feedback_de": "Brief feedback in simple German",
  "feedback_en": "Brief feedback in English"
}}"""

EXERCISE_EVALUATION_PROMPT = """You are a German tutor grading a practice exercise.

Exercise type: {question_type}
Grammar focus: {name_en} ({name_de})
Exercise: {prompt}
Expected answer: {correct_answer}
Student's answer: {user_answer}

Be understanding of minor typos but strict on the grammar point.
Accept grammatically valid alternatives (word order variations, synonyms).
Write the German feedback in simple A2-level German and be encouraging.

Respond in JSON:
{{
  "is_correct": true/false,
  "is_acceptable": true/false (not the expected answer but grammatically valid),
  "corrected_version": "Full corrected sentence if wrong, else null",
  "feedback_de": "Short explanation in simple German",
  "feedback_en": "Short explanation in English",
  "vocabulary_to_learn": [
    {{"de": "word", "en": "translation", "gender": "der/die/das or null"}}
  ]
}}"""


def build_question_prompt(topic: GrammarTopic, question_type: QuestionType, difficulty: int) -> str:
    """Render the generation prompt for one placement question."""
    options = (
        '["correct", "wrong1", "wrong2", "wrong3"]' if question_type == "grammar_choice" else "null"
    )
    return QUESTION_PROMPT.format(
        instructions=QUESTION_INSTRUCTIONS[question_type].format(name_en=topic.name_en),
        difficulty=difficulty,
        difficulty_guide=DIFFICULTY_GUIDE.get(difficulty, DIFFICULTY_GUIDE[3]),
        name_de=topic.name_de,
        name_en=topic.name_en,
        options=options,
    )


def build_evaluation_prompt(
    topic: GrammarTopic,
    question_type: QuestionType,
    prompt: str,
    correct_answer: str,
    user_answer: str,
) -> str:
    return EVALUATION_PROMPT.format(
        question_type=question_type,
        name_en=topic.name_en,
        name_de=topic.name_de,
        prompt=prompt,
        correct_answer=correct_answer,
        user_answer=user_answer,
    )


def build_exercise_evaluation_prompt(
    topic: GrammarTopic,
    question_type: QuestionType,
    prompt: str,
    correct_answer: str,
    user_answer: str,
) -> str:
    """Grading prompt for practice; also asks for vocabulary worth learning."""
    return EXERCISE_EVALUATION_PROMPT.format(
        question_type=question_type,
        name_en=topic.name_en,
        name_de=topic.name_de,
        prompt=prompt,
        correct_answer=correct_answer,
        user_answer=user_answer,
    )
