"""Spaced repetition scheduler for vocabulary items.

The scheduler decides which items are due, in which order they should be
studied and how a review outcome moves an item's next due date. Every
function is pure: items are read and new values are returned, and the
current time is always passed in by the caller so that results are
deterministic.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Iterable, List, Optional, Tuple

from vocab_scheduler.intervals import DEFAULT_INTERVALS, IntervalTable
from vocab_scheduler.vocabulary_item import Difficulty, VocabularyItem, ensure_utc

__all__ = [
    "Scheduler",
    "apply_review",
    "compute_next_review_at",
    "due_count",
    "hard_items",
    "prioritize",
    "select_due",
]


def compute_next_review_at(
    difficulty: Difficulty,
    review_count: int,
    now: datetime,
    table: IntervalTable = DEFAULT_INTERVALS,
) -> datetime:
    """Return ``now`` plus the interval for *difficulty* at *review_count*."""

    return ensure_utc(now) + timedelta(days=table.interval_days(difficulty, review_count))


def _is_due(item: VocabularyItem, now: datetime) -> bool:
    return item.next_review_at is None or item.next_review_at <= now


def select_due(items: Iterable[VocabularyItem], now: datetime) -> List[VocabularyItem]:
    """Return the items that were never scheduled or whose due date has passed."""

    now = ensure_utc(now)
    return [item for item in items if _is_due(item, now)]


def _priority_key(item: VocabularyItem) -> Tuple[int, float, int]:
    # Never-reviewed items share the first bucket, so only difficulty
    # separates them; dated items order by due date first.
    if item.next_review_at is None:
        return (0, 0.0, -item.difficulty.weight)
    return (1, item.next_review_at.timestamp(), -item.difficulty.weight)


def prioritize(items: Iterable[VocabularyItem]) -> List[VocabularyItem]:
    """Return a new list in study order.

    Never-reviewed items come first, then items by ascending due date. Ties
    are broken by difficulty (hard, medium, easy). :func:`sorted` is stable,
    so items equal on both criteria keep their input order.
    """

    return sorted(items, key=_priority_key)


def apply_review(
    item: VocabularyItem,
    new_difficulty: Difficulty,
    now: datetime,
    table: IntervalTable = DEFAULT_INTERVALS,
) -> VocabularyItem:
    """Return *item* rescheduled after a review graded *new_difficulty*.

    Raises :class:`~vocab_scheduler.errors.InvalidDifficulty` before computing
    anything if the grade is not one of the three recognised levels.
    """

    difficulty = Difficulty.parse(new_difficulty)
    now = ensure_utc(now)
    review_count = item.review_count + 1
    return item.replace(
        difficulty=difficulty,
        review_count=review_count,
        last_reviewed_at=now,
        next_review_at=compute_next_review_at(difficulty, review_count, now, table),
    )


def due_count(items: Iterable[VocabularyItem], now: datetime) -> int:
    return len(select_due(items, now))


def hard_items(items: Iterable[VocabularyItem]) -> List[VocabularyItem]:
    return [item for item in items if item.difficulty is Difficulty.HARD]


class Scheduler:
    """Scheduler bound to one interval table.

    Only the table is stored; items are always passed in and never retained
    between calls.
    """

    def __init__(self, table: Optional[IntervalTable] = None) -> None:
        self.table = table or DEFAULT_INTERVALS

    def interval_days(self, difficulty: Difficulty, review_count: int) -> int:
        return self.table.interval_days(difficulty, review_count)

    def compute_next_review_at(
        self, difficulty: Difficulty, review_count: int, now: datetime
    ) -> datetime:
        return compute_next_review_at(difficulty, review_count, now, self.table)

    def select_due(self, items: Iterable[VocabularyItem], now: datetime) -> List[VocabularyItem]:
        return select_due(items, now)

    def prioritize(self, items: Iterable[VocabularyItem]) -> List[VocabularyItem]:
        return prioritize(items)

    def apply_review(
        self, item: VocabularyItem, new_difficulty: Difficulty, now: datetime
    ) -> VocabularyItem:
        return apply_review(item, new_difficulty, now, self.table)

    def due_count(self, items: Iterable[VocabularyItem], now: datetime) -> int:
        return due_count(items, now)

    def hard_items(self, items: Iterable[VocabularyItem]) -> List[VocabularyItem]:
        return hard_items(items)
