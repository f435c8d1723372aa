"""
B1 Coach CLI - German grammar coaching toward the B1 exam.

Usage:
    b1coach init-db                  # Create tables and seed the topic catalog
    b1coach placement --user anna    # Adaptive placement test
    b1coach readiness --user anna    # Exam readiness dashboard
    b1coach path --user anna         # Learning path after placement
    b1coach plan --user anna         # Topics for the next practice session
    b1coach practice --user anna     # One round of graded practice
    b1coach profile --exam-date 2026-09-15 --daily-goal 20
    b1coach vocab add Haus house --gender das
    b1coach vocab due
    b1coach vocab review
"""

from __future__ import annotations

import asyncio
import time
from datetime import date
from typing import Annotated

import typer
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm, Prompt
from rich.table import Table

from config import get_settings
from src.adaptive.learning_path import estimate_time_to_b1
from src.adaptive.placement import PlacementQuestion
from src.content.catalog import load_catalog
from src.core.errors import CoachError, ExternalGenerationFailure, PersistenceFailure
from src.core.mastery import MasteryLevel
from src.core.topics import GrammarTopic, index_topics
from src.db.database import init_db, seed_topics, session_scope
from src.db.repository import CoachRepository
from src.generation.provider import get_ai_provider
from src.generation.question_service import QuestionService
from src.logging_setup import configure_logging
from src.study.placement_session import PlacementOutcome, PlacementSession
from src.study.practice_service import PracticeService
from src.study.practice_session import PracticeSession
from src.study.readiness import TopicWithProgress, calculate_daily_goal, calculate_readiness_score
from src.study.vocabulary_service import VocabularyService

# =============================================================================
# CLI Setup
# =============================================================================

app = typer.Typer(
    name="b1coach",
    help="German grammar coach for the B1 exam",
    add_completion=False,
    rich_markup_mode="rich",
)
vocab_app = typer.Typer(help="Vocabulary deck with spaced repetition")
app.add_typer(vocab_app, name="vocab")

console = Console()

UserOption = Annotated[str, typer.Option("--user", "-u", help="Learner id")]

MASTERY_STYLE = {
    MasteryLevel.MASTERED: "green",
    MasteryLevel.PRACTICED: "cyan",
    MasteryLevel.LEARNING: "yellow",
    MasteryLevel.NOT_LEARNED: "red",
    MasteryLevel.NOT_ASSESSED: "dim",
}


def _load_topics(repository: CoachRepository) -> list[GrammarTopic]:
    topics = repository.list_topics()
    if not topics:
        console.print("[red]No grammar topics found. Run [bold]b1coach init-db[/bold] first.[/red]")
        raise typer.Exit(1)
    return topics


def _parse_date(value: str, option: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError as e:
        raise typer.BadParameter(f"expected YYYY-MM-DD, got {value!r}", param_hint=option) from e


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Debug logging")] = False,
) -> None:
    """German grammar coach: placement, readiness, learning path and vocabulary."""
    configure_logging("DEBUG" if verbose else get_settings().log_level)


# =============================================================================
# Setup
# =============================================================================


@app.command("init-db")
def init_db_command() -> None:
    """Create tables and seed the grammar topic catalog."""
    init_db()
    with session_scope() as session:
        added = seed_topics(session, load_catalog())
    console.print(f"[green]Database ready.[/green] {added} topics added.")


# =============================================================================
# Placement
# =============================================================================


def _ask(
    question: PlacementQuestion, topic: GrammarTopic, number: int, total: int, label: str = "Frage"
) -> tuple[str, int]:
    body = f"[bold]{question.prompt_en}[/bold]"
    if question.prompt_de:
        body += f"\n\n{question.prompt_de}"
    if question.options:
        body += "\n\n" + "\n".join(f"  {i}. {opt}" for i, opt in enumerate(question.options, start=1))
    console.print(
        Panel(body, title=f"{label} {number}/{total} - {topic.level.value} {topic.name_de}", border_style="blue")
    )

    started = time.monotonic()
    answer = Prompt.ask("Antwort")
    if question.options and answer.isdigit() and 1 <= int(answer) <= len(question.options):
        answer = question.options[int(answer) - 1]
    return answer, int(time.monotonic() - started)


async def _run_placement(session: PlacementSession) -> PlacementOutcome:
    with console.status("Generating questions..."):
        state = await session.prepare()

    number = 1
    while (question := session.next_question()) is not None:
        topic = session.topic_for(question)
        answer, seconds = _ask(question, topic, number, state.total_questions)
        evaluation = await session.submit_answer(question, answer, seconds)
        style = "green" if evaluation.is_correct or evaluation.is_acceptable else "red"
        console.print(f"[{style}]{evaluation.feedback_de}[/{style}]  [dim]{evaluation.feedback_en}[/dim]\n")
        number += 1

    return session.finish()


def _show_outcome(outcome: PlacementOutcome, topics: list[GrammarTopic]) -> None:
    by_id = index_topics(topics)
    km = outcome.knowledge_map

    console.print(
        Panel(
            f"Level: [bold]{outcome.overall_level.value}[/bold]\n"
            f"Correct: {outcome.state.correct_answers}/{len(outcome.state.answers)}\n"
            f"Readiness: {km.readiness_score}%",
            title="Placement result",
            border_style="green",
        )
    )

    table = Table(title="Knowledge map")
    table.add_column("Level")
    table.add_column("Topic")
    table.add_column("Score", justify="right")
    table.add_column("Mastery")
    for assessment in outcome.assessments:
        topic = by_id.get(assessment.topic_id)
        if topic is None:
            continue
        style = MASTERY_STYLE[assessment.mastery_level]
        table.add_row(
            topic.level.value,
            topic.name_de,
            f"{assessment.questions_correct}/{assessment.questions_asked}",
            f"[{style}]{assessment.mastery_level.display_name}[/{style}]",
        )
    console.print(table)


@app.command()
def placement(user: UserOption = "default") -> None:
    """Run the adaptive placement test and save the results."""
    if not get_settings().has_ai_configured():
        console.print("[yellow]No API key for the selected provider, using the local Ollama server.[/yellow]")

    repository = CoachRepository()
    topics = _load_topics(repository)

    async def _go() -> tuple[PlacementSession, PlacementOutcome]:
        async with get_ai_provider() as provider:
            session = PlacementSession(topics, QuestionService(provider), repository=repository)
            return session, await _run_placement(session)

    try:
        session, outcome = asyncio.run(_go())
    except ExternalGenerationFailure as e:
        console.print(f"[red]Could not start the placement test: {e}[/red]")
        raise typer.Exit(1) from e

    _show_outcome(outcome, topics)

    try:
        session.save(user, outcome)
    except PersistenceFailure as e:
        console.print(f"[red]Results could not be saved: {e}[/red]")
        raise typer.Exit(1) from e
    console.print(f"[green]Saved.[/green] {len(outcome.path)} topics on your learning path.")


# =============================================================================
# Dashboard
# =============================================================================


@app.command()
def readiness(
    user: UserOption = "default",
    exam_date: Annotated[
        str | None, typer.Option("--exam-date", help="Exam date (YYYY-MM-DD), overrides the profile")
    ] = None,
) -> None:
    """Show the B1 exam readiness score."""
    repository = CoachRepository()
    topics = _load_topics(repository)
    progress = repository.get_progress(user)
    profile = repository.get_profile(user)

    exam: date | None = None
    if exam_date:
        exam = _parse_date(exam_date, "--exam-date")
    elif profile is not None:
        exam = profile.exam_date

    score = calculate_readiness_score(
        [
            TopicWithProgress(topic, progress[topic.id].to_domain() if topic.id in progress else None)
            for topic in topics
        ],
        exam_date=exam,
    )
    goal = calculate_daily_goal(score.overall, score.days_until_exam, get_settings().readiness_target)

    lines = [f"Overall: [bold]{score.overall}%[/bold]"]
    lines += [f"{band}: {value}%" for band, value in score.by_level.items()]
    if score.days_until_exam is not None:
        lines.append(f"Days until exam: {score.days_until_exam}")
    if score.projected_ready_date is not None:
        lines.append(f"Projected ready: {score.projected_ready_date.isoformat()}")
    lines.append(f"Daily goal: {goal.minutes} min / {goal.exercises} exercises ({goal.urgency})")
    console.print(Panel("\n".join(lines), title="B1 readiness", border_style="cyan"))

    table = Table(title="Weakest topics")
    table.add_column("Level")
    table.add_column("Topic")
    table.add_column("Proficiency", justify="right")
    for weak in score.weakest_topics:
        table.add_row(weak.level.value, weak.name_de, f"{weak.proficiency:.0f}")
    console.print(table)

    console.print(f"\n{score.recommendation_de}\n[dim]{score.recommendation}[/dim]")


@app.command()
def path(user: UserOption = "default") -> None:
    """Show the learning path from the last placement."""
    repository = CoachRepository()
    by_id = index_topics(_load_topics(repository))
    items = repository.get_learning_path(user)
    if not items:
        console.print("[yellow]No learning path yet. Run [bold]b1coach placement[/bold] first.[/yellow]")
        return

    table = Table(title="Learning path")
    table.add_column("#", justify="right")
    table.add_column("Level")
    table.add_column("Topic")
    table.add_column("Status")
    table.add_column("Sessions", justify="right")
    for item in items:
        topic = by_id.get(item.topic_id)
        table.add_row(
            str(item.priority),
            topic.level.value if topic else "?",
            topic.name_de if topic else str(item.topic_id),
            item.status.value,
            f"{item.completed_sessions}/{item.estimated_sessions}",
        )
    console.print(table)

    profile = repository.get_profile(user)
    minutes = profile.daily_goal_minutes if profile else get_settings().default_daily_goal_minutes
    estimate = estimate_time_to_b1(items, minutes)
    console.print(f"About {estimate.sessions} sessions, ~{estimate.days} days at {minutes} min/day.")


@app.command()
def plan(
    user: UserOption = "default",
    length: Annotated[int, typer.Option("--length", "-n", help="Topics in the session")] = 5,
) -> None:
    """Pick topics for the next practice session."""
    repository = CoachRepository()
    by_id = index_topics(_load_topics(repository))
    profile = repository.get_profile(user)
    level = profile.current_level if profile else "A1.1"

    topic_ids = PracticeService(repository).plan_session(user, level, length)
    for topic_id in topic_ids:
        topic = by_id[topic_id]
        console.print(f"  {topic.level.value}  {topic.name_de} [dim]({topic.name_en})[/dim]")


# =============================================================================
# Practice
# =============================================================================


@app.command()
def practice(
    user: UserOption = "default",
    length: Annotated[int, typer.Option("--length", "-n", help="Exercises in the round")] = 5,
) -> None:
    """One round of graded practice on the planned topics."""
    repository = CoachRepository()
    topics = _load_topics(repository)
    profile = repository.get_profile(user)
    level = profile.current_level if profile else "A1.1"

    async def _go() -> tuple[int, int]:
        async with get_ai_provider() as provider:
            session = PracticeSession(user, topics, QuestionService(provider), PracticeService(repository))
            planned = session.plan(level, length)
            answered = correct = 0
            for number, topic in enumerate(planned, start=1):
                try:
                    exercise = await session.next_exercise(topic)
                except ExternalGenerationFailure as e:
                    console.print(f"[yellow]Skipped {topic.name_de}: {e}[/yellow]")
                    continue

                answer, seconds = _ask(exercise, topic, number, len(planned), label="Übung")
                result = await session.submit(exercise, answer, seconds)
                answered += 1
                correct += int(result.outcome.was_correct)

                evaluation = result.evaluation
                style = "green" if result.outcome.was_correct else "red"
                console.print(f"[{style}]{evaluation.feedback_de}[/{style}]  [dim]{evaluation.feedback_en}[/dim]")
                if not result.outcome.was_correct and evaluation.corrected_version:
                    console.print(f"-> {evaluation.corrected_version}")
                adjustment = result.outcome.adjustment
                if adjustment is not None and adjustment.changed:
                    console.print(f"[cyan]{adjustment.message}[/cyan]")
                if result.outcome.added_vocabulary:
                    console.print(f"[dim]New words: {', '.join(result.outcome.added_vocabulary)}[/dim]")
                console.print()
            return answered, correct

    try:
        answered, correct = asyncio.run(_go())
    except PersistenceFailure as e:
        console.print(f"[red]Progress could not be saved: {e}[/red]")
        raise typer.Exit(1) from e

    if answered == 0:
        console.print("[red]No exercise could be generated.[/red]")
        raise typer.Exit(1)
    console.print(f"{correct}/{answered} correct.")


# =============================================================================
# Profile
# =============================================================================

DAILY_GOAL_OPTIONS = (5, 10, 15, 20, 30, 45, 60)


@app.command()
def profile(
    user: UserOption = "default",
    exam_date: Annotated[str | None, typer.Option("--exam-date", help="Exam date (YYYY-MM-DD)")] = None,
    daily_goal: Annotated[
        int | None, typer.Option("--daily-goal", help="Daily minimum in minutes (5, 10, 15, 20, 30, 45 or 60)")
    ] = None,
) -> None:
    """Set the exam date and daily goal, or show them."""
    repository = CoachRepository()
    fields: dict[str, object] = {}
    if exam_date is not None:
        fields["exam_date"] = _parse_date(exam_date, "--exam-date")
    if daily_goal is not None:
        if daily_goal not in DAILY_GOAL_OPTIONS:
            raise typer.BadParameter(
                f"choose one of {', '.join(map(str, DAILY_GOAL_OPTIONS))}", param_hint="--daily-goal"
            )
        fields["daily_goal_minutes"] = daily_goal

    if fields:
        try:
            repository.update_profile(user, **fields)
        except PersistenceFailure as e:
            console.print(f"[red]Profile could not be saved: {e}[/red]")
            raise typer.Exit(1) from e

    stored = repository.get_profile(user)
    if stored is None:
        console.print("[yellow]No profile yet.[/yellow]")
        return
    exam = stored.exam_date.isoformat() if stored.exam_date else "not set"
    console.print(
        Panel(
            f"Level: {stored.current_level}\nExam date: {exam}\nDaily goal: {stored.daily_goal_minutes} min",
            title=f"Profile {user}",
            border_style="cyan",
        )
    )


# =============================================================================
# Vocabulary
# =============================================================================


@vocab_app.command("add")
def vocab_add(
    word_de: str,
    word_en: str,
    user: UserOption = "default",
    gender: Annotated[str | None, typer.Option("--gender", "-g", help="der, die or das")] = None,
    part_of_speech: Annotated[str | None, typer.Option("--pos", help="Part of speech")] = None,
) -> None:
    """Add a word to the deck."""
    try:
        item = VocabularyService().add_word(user, word_de, word_en, gender, part_of_speech)
    except CoachError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1) from e
    console.print(f"[green]Added[/green] {item.display_word} = {item.word_en}")


@vocab_app.command("due")
def vocab_due(user: UserOption = "default") -> None:
    """List words due for review."""
    service = VocabularyService()
    items = service.due_items(user)
    table = Table(title=f"{len(items)} due")
    table.add_column("Word")
    table.add_column("English")
    table.add_column("Interval", justify="right")
    table.add_column("Ease", justify="right")
    for item in items:
        table.add_row(item.display_word, item.word_en, f"{item.interval_days}d", f"{item.ease_factor:.2f}")
    console.print(table)

    forecast = service.forecast(user)
    console.print("Next days: " + ", ".join(f"{day[5:]}={count}" for day, count in forecast.items()))


@vocab_app.command("review")
def vocab_review(
    user: UserOption = "default",
    limit: Annotated[int, typer.Option("--limit", "-n", help="Maximum words")] = 20,
) -> None:
    """Review due words (self-graded)."""
    service = VocabularyService()
    items = service.due_items(user, limit=limit)
    if not items:
        console.print("[green]Nothing due.[/green]")
        return

    correct = 0
    for item in items:
        console.print(Panel(f"[bold]{item.word_en}[/bold]", border_style="blue"))
        Prompt.ask("Deutsch", default="")
        console.print(f"-> {item.display_word}")
        remembered = Confirm.ask("Gewusst?")
        result = service.review(item.id, remembered)
        correct += int(remembered)
        console.print(f"[dim]Next review in {result.interval_days} day(s)[/dim]\n")

    console.print(f"{correct}/{len(items)} remembered.")


def run() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    run()
