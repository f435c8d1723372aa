"""
Spaced Repetition Scheduler - vocabulary review intervals.

Implements a simplified SM-2 algorithm:
1. First correct recall -> 1 day, second -> 6 days, then interval x ease
2. Each correct recall raises the ease factor by 0.1
3. A miss resets the streak and interval, and lowers ease by 0.2
4. Ease never drops below 1.3, intervals never below 1 day

The scheduler is a pure state transition; picking due items is a simple
predicate over the stored collection.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta
from typing import Protocol, TypeVar

from src.core.errors import InvalidInput
from src.core.rounding import round_half_up, round_to_int

# =============================================================================
# SM-2 CONSTANTS
# =============================================================================

DEFAULT_EASE_FACTOR = 2.5
MIN_EASE_FACTOR = 1.3
EASE_BONUS = 0.1
EASE_PENALTY = 0.2

FIRST_INTERVAL_DAYS = 1
SECOND_INTERVAL_DAYS = 6
MIN_INTERVAL_DAYS = 1


@dataclass(frozen=True)
class ReviewState:
    """Memory state for a vocabulary item."""

    ease_factor: float = DEFAULT_EASE_FACTOR
    interval_days: int = FIRST_INTERVAL_DAYS
    consecutive_correct: int = 0
    review_count: int = 0

    def validate(self) -> None:
        if self.ease_factor < MIN_EASE_FACTOR:
            raise InvalidInput(f"ease_factor must be >= {MIN_EASE_FACTOR}, got {self.ease_factor}")
        if self.interval_days < MIN_INTERVAL_DAYS:
            raise InvalidInput(f"interval_days must be >= {MIN_INTERVAL_DAYS}, got {self.interval_days}")
        if self.consecutive_correct < 0 or self.review_count < 0:
            raise InvalidInput("consecutive_correct and review_count must be non-negative")


@dataclass(frozen=True)
class ReviewResult:
    """Result of reviewing one item."""

    ease_factor: float
    interval_days: int
    consecutive_correct: int
    review_count: int
    next_review: date
    was_correct: bool

    @property
    def state(self) -> ReviewState:
        return ReviewState(
            ease_factor=self.ease_factor,
            interval_days=self.interval_days,
            consecutive_correct=self.consecutive_correct,
            review_count=self.review_count,
        )


class SpacedRepetitionScheduler:
    """
    SM-2 style scheduler.

    Stateless: every call receives the item's current state and returns the
    next one.
    """

    def __init__(
        self,
        min_ease_factor: float = MIN_EASE_FACTOR,
        ease_bonus: float = EASE_BONUS,
        ease_penalty: float = EASE_PENALTY,
    ):
        self.min_ease_factor = min_ease_factor
        self.ease_bonus = ease_bonus
        self.ease_penalty = ease_penalty

    def review(
        self,
        state: ReviewState,
        was_correct: bool,
        today: date | None = None,
    ) -> ReviewResult:
        """
        Process one review outcome.

        Args:
            state: Current ease/interval/streak of the item
            was_correct: Whether the learner recalled the item
            today: Review date (defaults to today, UTC)

        Returns:
            ReviewResult with the new state and next review date

        Raises:
            InvalidInput: If the incoming state breaks the SM-2 invariants
        """
        state.validate()
        today = today or datetime.now(UTC).date()

        if was_correct:
            consecutive = state.consecutive_correct + 1
            if consecutive == 1:
                interval = FIRST_INTERVAL_DAYS
            elif consecutive == 2:
                interval = SECOND_INTERVAL_DAYS
            else:
                interval = round_to_int(state.interval_days * state.ease_factor)
            # a successful recall never shortens the gap
            interval = max(interval, state.interval_days)
            ease = state.ease_factor + self.ease_bonus
        else:
            consecutive = 0
            interval = MIN_INTERVAL_DAYS
            ease = state.ease_factor - self.ease_penalty

        ease = max(self.min_ease_factor, round_half_up(ease, 2))
        interval = max(MIN_INTERVAL_DAYS, interval)

        return ReviewResult(
            ease_factor=ease,
            interval_days=interval,
            consecutive_correct=consecutive,
            review_count=state.review_count + 1,
            next_review=today + timedelta(days=interval),
            was_correct=was_correct,
        )


def schedule_review(state: ReviewState, was_correct: bool, today: date | None = None) -> ReviewResult:
    """Module-level shortcut using the default scheduler."""
    return SpacedRepetitionScheduler().review(state, was_correct, today)


# =============================================================================
# DUE ITEM SELECTION
# =============================================================================


class HasNextReview(Protocol):
    next_review: date | datetime


T = TypeVar("T", bound=HasNextReview)


def _as_datetime(value: date | datetime) -> datetime:
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=UTC)
    return datetime(value.year, value.month, value.day, tzinfo=UTC)


def is_due(next_review: date | datetime, now: datetime | None = None) -> bool:
    """An item is due iff its next review is not in the future."""
    now = now or datetime.now(UTC)
    return _as_datetime(next_review) <= _as_datetime(now)


def select_due(items: Iterable[T], now: datetime | None = None, limit: int | None = None) -> list[T]:
    """Due items, oldest-due first."""
    now = now or datetime.now(UTC)
    due = sorted(
        (item for item in items if is_due(item.next_review, now)),
        key=lambda item: _as_datetime(item.next_review),
    )
    return due[:limit] if limit is not None else due


def review_forecast(items: Iterable[HasNextReview], today: date, days: int = 7) -> dict[str, int]:
    """Number of reviews falling on each of the next ``days`` days (overdue counted today)."""
    load = {(today + timedelta(days=i)).isoformat(): 0 for i in range(days)}
    for item in items:
        review_day = _as_datetime(item.next_review).date()
        if review_day < today:
            review_day = today
        key = review_day.isoformat()
        if key in load:
            load[key] += 1
    return load
